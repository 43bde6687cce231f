"""
FastAPI routes for API key management

Every route except /track acts on behalf of the signed-in user identified by
a Firebase ID token, and only on that user's keys.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from alexzo.core.errors import AuthenticationError, ValidationError
from alexzo.core.security import Identity
from alexzo.dependencies import get_current_identity, get_key_manager, get_usage_tracker

from .manager import KeyManager
from .models import (
    IssuedKey,
    KeyCreate,
    KeyCreateResponse,
    KeyListResponse,
    KeyUsageResponse,
    KeyView,
    TrackUsageRequest,
)
from .usage import UsageTracker

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/keys",
    tags=["API Keys"]
)

CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
Manager = Annotated[KeyManager, Depends(get_key_manager)]


@router.get("", response_model=KeyListResponse)
async def list_keys(identity: CurrentIdentity, key_manager: Manager):
    """List the caller's API keys, newest first"""
    keys = await key_manager.list_keys(identity.uid)
    return KeyListResponse(keys=[KeyView.from_issued_key(k) for k in keys])


@router.post("", response_model=KeyCreateResponse, status_code=201)
async def create_key(key_data: KeyCreate, identity: CurrentIdentity, key_manager: Manager):
    """
    Create a new API key for the caller

    The full key string is returned and stays visible on the dashboard.
    """
    issued = await key_manager.create_key(
        user_id=identity.uid,
        user_name=identity.name,
        name=key_data.name
    )
    return KeyCreateResponse(key=KeyView.from_issued_key(issued))


@router.post("/track")
async def track_usage(
    body: TrackUsageRequest,
    key_manager: Manager,
    tracker: Annotated[UsageTracker, Depends(get_usage_tracker)]
):
    """
    Record one call made with an API key

    Used by callers outside this service that front the same keys.
    """
    if not body.api_key:
        raise ValidationError("API key required")

    if not await tracker.record(body.api_key, body.endpoint):
        raise AuthenticationError("Invalid API key")

    logger.debug("Tracked usage on %s", body.endpoint)
    return {"success": True}


@router.get("/{key_id}", response_model=IssuedKey)
async def get_key(key_id: str, identity: CurrentIdentity, key_manager: Manager):
    """
    Get full metadata for one key

    Users can only access their own keys.
    """
    return await key_manager.get_owned_key(key_id, identity.uid)


@router.get("/{key_id}/usage", response_model=KeyUsageResponse)
async def get_key_usage(
    key_id: str,
    identity: CurrentIdentity,
    key_manager: Manager,
    limit: int = Query(100, ge=1, le=1000)
):
    """Most recent tracked calls for one of the caller's keys"""
    issued = await key_manager.get_owned_key(key_id, identity.uid)
    records = await key_manager.store.usage_for_key(issued.key, limit)
    return KeyUsageResponse(
        key_id=issued.key,
        total_requests=issued.request_count,
        records=records
    )


@router.delete("/{key_id}")
async def delete_key(key_id: str, identity: CurrentIdentity, key_manager: Manager):
    """
    Delete an API key

    Users can only delete their own keys; the key stops working immediately.
    """
    await key_manager.delete_key(key_id, identity.uid)
    return {"success": True}
