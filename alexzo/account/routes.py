"""
FastAPI routes for the signed-in user's account
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from alexzo.core.database import get_db
from alexzo.core.security import Identity
from alexzo.custom_apis.service import CustomApiService
from alexzo.dependencies import get_current_identity, get_gallery_store, get_key_manager
from alexzo.gallery.store import GalleryStore
from alexzo.keys.manager import KeyManager

from .service import AccountService

router = APIRouter(
    prefix="/user",
    tags=["Account"]
)


@router.delete("")
async def delete_account(
    identity: Annotated[Identity, Depends(get_current_identity)],
    key_manager: Annotated[KeyManager, Depends(get_key_manager)],
    gallery: Annotated[GalleryStore, Depends(get_gallery_store)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Delete all of the caller's data

    API keys stop working immediately; their usage logs, saved images and
    custom API registrations are removed as well.
    """
    service = AccountService(key_manager, gallery, CustomApiService(db))
    deleted = await service.delete_user_data(identity.uid)
    return {
        "success": True,
        "message": "User and all associated data deleted successfully",
        "deleted": deleted
    }
