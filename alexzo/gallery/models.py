"""
Pydantic models for saved generated images
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from alexzo.keys.models import utcnow


def new_image_id() -> str:
    return uuid.uuid4().hex


class GeneratedImage(BaseModel):
    """
    Image a user saved to their gallery, as stored in the document store

    Field aliases are the persisted document field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_image_id)
    user_id: str = Field(..., alias="userId")
    prompt: str
    image_url: str = Field(..., alias="imageUrl")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "GeneratedImage":
        return cls.model_validate(document)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id


class ImageSave(BaseModel):
    """Body of a save request; both fields are checked by the route"""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    prompt: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")


class ImageListResponse(BaseModel):
    images: list[GeneratedImage]


class ImageSaveResponse(BaseModel):
    success: bool = True
    image: GeneratedImage
