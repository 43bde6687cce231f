"""
Custom API Service - Business logic for user-registered APIs

Users register their own APIs on the dashboard; each registration gets an
alexzo_ key of its own and an active/inactive status the owner controls.
"""

import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alexzo.core.errors import AuthorizationError, InternalError, NotFoundError
from alexzo.core.security import Identity
from alexzo.keys.manager import generate_key_string

from .models import CustomApi
from .schemas import CustomApiCreate, CustomApiUpdate

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "API not found"


class CustomApiService:
    """Business logic for custom API registrations"""

    MAX_CREATE_ATTEMPTS = 5

    def __init__(self, db: AsyncSession, key_prefix: str = "alexzo_", key_suffix_length: int = 26):
        self.db = db
        self.key_prefix = key_prefix
        self.key_suffix_length = key_suffix_length

    async def list_apis(self, user_id: str) -> List[CustomApi]:
        stmt = (
            select(CustomApi)
            .where(CustomApi.user_id == user_id)
            .order_by(CustomApi.created_at.desc(), CustomApi.id.desc())
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Custom API lookup failed: %s", e)
            raise InternalError("Failed to fetch APIs") from e
        return list(result.scalars().all())

    async def create_api(self, identity: Identity, form: CustomApiCreate) -> CustomApi:
        """
        Register a custom API with a fresh key

        A key collision hits the unique constraint and is retried with a new
        key string.
        """
        for _ in range(self.MAX_CREATE_ATTEMPTS):
            api = CustomApi(
                user_id=identity.uid,
                user_name=form.user_name or identity.name or "Unknown User",
                user_email=identity.email,
                name=form.name,
                url=form.url,
                link=form.link or None,
                status="active",
                api_key=generate_key_string(self.key_prefix, self.key_suffix_length)
            )
            self.db.add(api)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning("Generated custom API key collided, retrying")
                continue
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error("Failed to create API: %s", e)
                raise InternalError("Failed to create API") from e

            await self.db.refresh(api)
            logger.info("Custom API %d registered for user %s", api.id, identity.uid)
            return api

        raise InternalError("Failed to create API")

    async def get_owned_api(self, api_id: int, user_id: str) -> CustomApi:
        """
        Fetch a custom API the caller owns

        Raises:
            NotFoundError: no such API
            AuthorizationError: API belongs to someone else
        """
        try:
            api = await self.db.get(CustomApi, api_id)
        except SQLAlchemyError as e:
            logger.error("Custom API lookup failed: %s", e)
            raise InternalError("Failed to fetch APIs") from e
        if api is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        if api.user_id != user_id:
            logger.warning("User %s denied access to custom API %d", user_id, api_id)
            raise AuthorizationError("Forbidden")
        return api

    async def update_api(self, api_id: int, user_id: str, form: CustomApiUpdate) -> CustomApi:
        api = await self.get_owned_api(api_id, user_id)

        api.status = form.status
        if form.name:
            api.name = form.name
        if form.url:
            api.url = form.url
        if form.link:
            api.link = form.link

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to update API: %s", e)
            raise InternalError("Failed to update API") from e
        await self.db.refresh(api)
        logger.info("Custom API %d set to %s", api.id, api.status)
        return api

    async def delete_api(self, api_id: int, user_id: str) -> None:
        api = await self.get_owned_api(api_id, user_id)
        await self.db.delete(api)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to delete API: %s", e)
            raise InternalError("Failed to delete API") from e
        logger.info("Custom API %d deleted for user %s", api_id, user_id)

    async def delete_for_user(self, user_id: str) -> int:
        """Remove every custom API the user registered; returns the count"""
        stmt = delete(CustomApi).where(CustomApi.user_id == user_id)
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to delete custom APIs for %s: %s", user_id, e)
            raise InternalError("Failed to delete user data") from e
        return result.rowcount
