"""
Account Service - removes everything stored for a user

Covers API keys with their usage logs, saved images and custom API
registrations. The identity provider account itself is managed by the
provider.
"""

import logging
from typing import Dict

from alexzo.core.errors import InternalError
from alexzo.custom_apis.service import CustomApiService
from alexzo.gallery.store import GalleryStore
from alexzo.keys.manager import KeyManager

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to delete user data"


class AccountService:
    """Deletes a user's data across the key store, gallery and database"""

    def __init__(self, key_manager: KeyManager, gallery: GalleryStore,
                 custom_apis: CustomApiService):
        self.key_manager = key_manager
        self.gallery = gallery
        self.custom_apis = custom_apis

    async def delete_user_data(self, user_id: str) -> Dict[str, int]:
        """
        Remove all data owned by ``user_id``

        Returns:
            Number of removed records per kind

        Raises:
            InternalError: any store failed; data already removed stays removed
        """
        try:
            deleted = {
                "apiKeys": await self.key_manager.delete_user_keys(user_id),
                "images": await self.gallery.delete_for_user(user_id),
                "customApis": await self.custom_apis.delete_for_user(user_id),
            }
        except Exception as e:
            logger.error("Account cleanup for %s failed: %s", user_id, e)
            raise InternalError(FAILURE_MESSAGE) from e

        logger.info("Deleted all data for user %s: %s", user_id, deleted)
        return deleted
