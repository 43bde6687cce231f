"""
Rate Limiting Module
Per-client request rate limiting for public endpoints
"""

from .models import RateLimitConfig, RateLimitDecision, RateLimitRecord
from .store import RateLimitStore, InMemoryRateLimitStore
from .limiter import RateLimiter
from .client_ip import client_identifier

__all__ = [
    "RateLimitConfig",
    "RateLimitDecision",
    "RateLimitRecord",
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "RateLimiter",
    "client_identifier",
]
