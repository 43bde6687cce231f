"""
API Key Manager
Manages issued API key lifecycle, validation and ownership checks
"""

import logging
import secrets
import string
from typing import List

from alexzo.core.errors import (
    AuthenticationError,
    AuthorizationError,
    InternalError,
    NotFoundError,
)
from alexzo.core.logging import mask_key

from .models import IssuedKey
from .store import KeyStore

logger = logging.getLogger(__name__)

KEY_ALPHABET = string.ascii_lowercase + string.digits

INVALID_FORMAT_MESSAGE = "Invalid API key. Please use a valid alexzo_ API key."
NOT_FOUND_MESSAGE = "Invalid API key. Key not found."


def generate_key_string(prefix: str = "alexzo_", suffix_length: int = 26) -> str:
    """
    Generate a new opaque key string

    Format: {prefix}{random lowercase alphanumerics}
    """
    suffix = "".join(secrets.choice(KEY_ALPHABET) for _ in range(suffix_length))
    return f"{prefix}{suffix}"


class KeyManager:
    """Issues, validates and deletes API keys held in a KeyStore"""

    MAX_CREATE_ATTEMPTS = 5

    def __init__(self, store: KeyStore, prefix: str = "alexzo_", suffix_length: int = 26):
        """
        Initialize KeyManager

        Args:
            store: Document store holding key records
            prefix: Fixed prefix of every key string
            suffix_length: Number of random characters after the prefix
        """
        self.store = store
        self.prefix = prefix
        self.suffix_length = suffix_length

    def generate_key_string(self) -> str:
        return generate_key_string(self.prefix, self.suffix_length)

    def has_valid_format(self, api_key: str) -> bool:
        return api_key.startswith(self.prefix) and len(api_key) > len(self.prefix)

    async def create_key(self, user_id: str, user_name: str, name: str) -> IssuedKey:
        """
        Issue a new key for a user

        Key strings are the document id, so a collision is retried with a
        fresh string rather than overwriting.
        """
        for _ in range(self.MAX_CREATE_ATTEMPTS):
            issued = IssuedKey(
                key=self.generate_key_string(),
                user_id=user_id,
                user_name=user_name,
                name=name
            )
            if await self.store.create(issued):
                logger.info("Issued API key %s for user %s (%s)",
                            mask_key(issued.key), user_id, name)
                return issued
            logger.warning("Generated key collided with an existing key, retrying")

        raise InternalError("Failed to create API key")

    async def validate(self, api_key: str) -> IssuedKey:
        """
        Resolve a presented key string to its record

        Raises:
            AuthenticationError: malformed or unknown key
        """
        if not self.has_valid_format(api_key):
            raise AuthenticationError(INVALID_FORMAT_MESSAGE)

        issued = await self.store.get(api_key)
        if issued is None:
            logger.info("Rejected unknown API key %s", mask_key(api_key))
            raise AuthenticationError(NOT_FOUND_MESSAGE)
        return issued

    async def list_keys(self, user_id: str) -> List[IssuedKey]:
        return await self.store.list_for_user(user_id)

    async def get_owned_key(self, key_id: str, user_id: str) -> IssuedKey:
        """
        Fetch a key the caller owns

        Raises:
            NotFoundError: no such key
            AuthorizationError: key belongs to someone else
        """
        issued = await self.store.get(key_id)
        if issued is None:
            raise NotFoundError("API key not found")
        if not issued.is_owned_by(user_id):
            logger.warning("User %s denied access to key %s", user_id, mask_key(key_id))
            raise AuthorizationError("Forbidden")
        return issued

    async def delete_key(self, key_id: str, user_id: str) -> None:
        """Delete a key after checking ownership"""
        issued = await self.get_owned_key(key_id, user_id)
        if not await self.store.delete(issued.key):
            # Removed concurrently between the ownership check and delete
            raise NotFoundError("API key not found")
        logger.info("Deleted API key %s for user %s", mask_key(key_id), user_id)

    async def delete_user_keys(self, user_id: str) -> int:
        """Delete every key the user owns, with its usage log"""
        removed = await self.store.delete_for_user(user_id)
        logger.info("Deleted %d API keys for user %s", removed, user_id)
        return removed
