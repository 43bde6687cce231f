"""
API Key Management
Handles key issuance, validation, ownership checks and usage tracking
"""

from .models import (
    IssuedKey,
    UsageRecord,
    KeyCreate,
    KeyView,
)
from .store import KeyStore, InMemoryKeyStore, RedisKeyStore
from .manager import KeyManager
from .usage import UsageTracker

__all__ = [
    'IssuedKey',
    'UsageRecord',
    'KeyCreate',
    'KeyView',
    'KeyStore',
    'InMemoryKeyStore',
    'RedisKeyStore',
    'KeyManager',
    'UsageTracker',
]
