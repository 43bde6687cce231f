"""
Pydantic schemas for custom API registrations
"""

from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from alexzo.core.errors import ValidationError

MISSING_FIELDS_MESSAGE = "Missing required fields"


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


class CustomApiCreate(BaseModel):
    """Registration request; the owner comes from the caller's identity"""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = None
    user_name: Optional[str] = Field(None, alias="userName")
    url: Optional[str] = None
    link: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        if v and not is_valid_url(v):
            raise ValueError("Valid URL required")
        return v or None

    @classmethod
    def parse(cls, body) -> "CustomApiCreate":
        try:
            form = cls.model_validate(body or {})
        except PydanticValidationError as e:
            first = e.errors()[0]
            message = "Valid URL required" if first["loc"] == ("url",) else "Invalid request"
            raise ValidationError(message) from e
        if not form.name:
            raise ValidationError("Name is required")
        return form


class CustomApiUpdate(BaseModel):
    """
    Status change, optionally with new name, url or link

    Empty optional fields leave the stored value unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    status: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = None
    url: Optional[str] = None
    link: Optional[str] = None

    @classmethod
    def parse(cls, body) -> "CustomApiUpdate":
        try:
            form = cls.model_validate(body or {})
        except PydanticValidationError as e:
            raise ValidationError(MISSING_FIELDS_MESSAGE) from e
        if not form.status:
            raise ValidationError(MISSING_FIELDS_MESSAGE)
        if form.url and not is_valid_url(form.url):
            raise ValidationError("Valid URL required")
        return form


class CustomApiView(BaseModel):
    """Custom API as shown on the owner's dashboard"""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    name: str
    user_name: Optional[str] = Field(None, alias="userName")
    user_email: Optional[str] = Field(None, alias="userEmail")
    url: Optional[str] = None
    link: Optional[str] = None
    status: str
    api_key: str = Field(..., alias="apiKey")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class CustomApiListResponse(BaseModel):
    apis: list[CustomApiView]


class CustomApiResponse(BaseModel):
    success: bool = True
    api: CustomApiView
