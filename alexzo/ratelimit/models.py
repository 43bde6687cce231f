"""
Models for rate limiting configuration, state and decisions
"""

from dataclasses import dataclass
from pydantic import BaseModel, Field


class RateLimitConfig(BaseModel):
    """Rate limit configuration for one protected endpoint"""

    limit: int = Field(
        default=15,
        ge=1,
        le=1_000_000,
        description="Maximum requests per window"
    )
    window_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Window length in seconds, measured from the first request"
    )
    prune_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Minimum time between sweeps of idle client records"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "limit": 15,
                "window_seconds": 60
            }
        }
    }


@dataclass
class RateLimitRecord:
    """Request count for one client in its current window"""
    count: int
    window_start: float


class RateLimitDecision(BaseModel):
    """Outcome of a single rate limit check"""

    allowed: bool = Field(description="Whether the request may proceed")
    count: int = Field(ge=0, description="Requests seen in the current window")
    limit: int = Field(ge=1, description="Configured ceiling")
    retry_after: int = Field(
        ge=0,
        description="Whole seconds until the current window ends"
    )

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)
