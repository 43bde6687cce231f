"""
FastAPI routes for custom API registrations

Every route acts on behalf of the signed-in user and only on the APIs that
user registered.
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from alexzo.core.config import Settings
from alexzo.core.database import get_db
from alexzo.core.security import Identity
from alexzo.dependencies import get_current_identity, get_json_body, get_settings

from .schemas import (
    CustomApiCreate,
    CustomApiListResponse,
    CustomApiResponse,
    CustomApiUpdate,
    CustomApiView,
)
from .service import CustomApiService

router = APIRouter(
    prefix="/custom-apis",
    tags=["Custom APIs"]
)

CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
Session = Annotated[AsyncSession, Depends(get_db)]
Body = Annotated[Optional[Dict[str, Any]], Depends(get_json_body)]


def get_custom_api_service(
    db: Session,
    settings: Annotated[Settings, Depends(get_settings)]
) -> CustomApiService:
    return CustomApiService(db, settings.API_KEY_PREFIX, settings.API_KEY_SUFFIX_LENGTH)


Service = Annotated[CustomApiService, Depends(get_custom_api_service)]


@router.get("", response_model=CustomApiListResponse)
async def list_apis(identity: CurrentIdentity, service: Service):
    """List the caller's custom APIs, newest first"""
    apis = await service.list_apis(identity.uid)
    return CustomApiListResponse(apis=[CustomApiView.model_validate(a) for a in apis])


@router.post("", response_model=CustomApiResponse, status_code=201)
async def create_api(body: Body, identity: CurrentIdentity, service: Service):
    """
    Register a custom API

    The response carries the generated key for the new API.
    """
    form = CustomApiCreate.parse(body)
    api = await service.create_api(identity, form)
    return CustomApiResponse(api=CustomApiView.model_validate(api))


@router.patch("/{api_id}", response_model=CustomApiResponse)
async def update_api(api_id: int, body: Body, identity: CurrentIdentity, service: Service):
    """Change status, and optionally name, url or link, of one of the caller's APIs"""
    form = CustomApiUpdate.parse(body)
    api = await service.update_api(api_id, identity.uid, form)
    return CustomApiResponse(api=CustomApiView.model_validate(api))


@router.delete("/{api_id}")
async def delete_api(api_id: int, identity: CurrentIdentity, service: Service):
    await service.delete_api(api_id, identity.uid)
    return {"success": True}
