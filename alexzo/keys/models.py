"""
Pydantic models for issued API keys and their usage
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IssuedKey(BaseModel):
    """
    API key record as stored in the document store

    The key string is the document id. Field aliases are the persisted
    document field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(..., description="Opaque key string, also the document id")
    user_id: str = Field(..., alias="userId", description="Owning user")
    user_name: Optional[str] = Field(None, alias="userName")
    name: str = Field(..., description="Display name chosen by the owner")
    created: datetime = Field(default_factory=utcnow)
    last_used: Optional[datetime] = Field(None, alias="lastUsed")
    request_count: int = Field(default=0, ge=0, alias="requestCount")

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the stored JSON document"""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "IssuedKey":
        return cls.model_validate(document)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id


class UsageRecord(BaseModel):
    """One tracked call made with an API key"""

    model_config = ConfigDict(populate_by_name=True)

    api_key_id: str = Field(..., alias="apiKeyId")
    user_id: str = Field(..., alias="userId")
    endpoint: str
    timestamp: datetime = Field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class KeyCreate(BaseModel):
    """Request model for creating a new API key"""
    name: str = Field(..., description="Key display name (1-50 characters)")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Key name is required")
        if len(v) > 50:
            raise ValueError("Key name is too long")
        return v


class KeyView(BaseModel):
    """Key as listed on the owner's dashboard"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    key: str
    created: datetime
    last_used: Optional[datetime] = Field(None, alias="lastUsed")
    requests: int = 0

    @classmethod
    def from_issued_key(cls, issued: IssuedKey) -> "KeyView":
        return cls(
            id=issued.key,
            name=issued.name,
            key=issued.key,
            created=issued.created,
            last_used=issued.last_used,
            requests=issued.request_count
        )


class KeyListResponse(BaseModel):
    keys: list[KeyView]


class KeyCreateResponse(BaseModel):
    """Response model for key creation"""
    success: bool = True
    key: KeyView


class KeyUsageResponse(BaseModel):
    key_id: str = Field(..., alias="keyId")
    total_requests: int = Field(..., alias="totalRequests")
    records: list[UsageRecord]

    model_config = ConfigDict(populate_by_name=True)


class TrackUsageRequest(BaseModel):
    """Body of the usage tracking endpoint"""
    api_key: Optional[str] = Field(None, alias="apiKey")
    endpoint: str = "unknown"

    model_config = ConfigDict(populate_by_name=True)
