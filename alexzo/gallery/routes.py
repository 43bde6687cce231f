"""
FastAPI routes for the generated-images gallery

Signed-in users save images they generated and can list or delete only
their own.
"""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import ValidationError as PydanticValidationError

from alexzo.core.errors import AuthorizationError, NotFoundError, ValidationError
from alexzo.core.security import Identity
from alexzo.dependencies import get_current_identity, get_gallery_store, get_json_body

from .models import GeneratedImage, ImageListResponse, ImageSave, ImageSaveResponse
from .store import GalleryStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/generated-images",
    tags=["Generated Images"]
)

CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
Gallery = Annotated[GalleryStore, Depends(get_gallery_store)]
Body = Annotated[Optional[Dict[str, Any]], Depends(get_json_body)]

MISSING_FIELDS_MESSAGE = "Missing required fields"


@router.get("", response_model=ImageListResponse)
async def list_images(identity: CurrentIdentity, gallery: Gallery):
    """List the caller's saved images, newest first"""
    return ImageListResponse(images=await gallery.list_for_user(identity.uid))


@router.post("", response_model=ImageSaveResponse, status_code=201)
async def save_image(body: Body, identity: CurrentIdentity, gallery: Gallery):
    """Save a generated image; prompt and imageUrl are required"""
    try:
        form = ImageSave.model_validate(body or {})
    except PydanticValidationError as e:
        raise ValidationError(MISSING_FIELDS_MESSAGE) from e
    if not form.prompt or not form.image_url:
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    image = GeneratedImage(user_id=identity.uid, prompt=form.prompt, image_url=form.image_url)
    await gallery.save(image)
    logger.info("Saved image %s for user %s", image.id, identity.uid)
    return ImageSaveResponse(image=image)


@router.delete("/{image_id}")
async def delete_image(image_id: str, identity: CurrentIdentity, gallery: Gallery):
    image = await gallery.get(image_id)
    if image is None:
        raise NotFoundError("Image not found")
    if not image.is_owned_by(identity.uid):
        logger.warning("User %s denied access to image %s", identity.uid, image_id)
        raise AuthorizationError("Forbidden")

    if not await gallery.delete(image_id):
        raise NotFoundError("Image not found")
    return {"success": True}
