"""
Custom APIs
User-registered APIs with their own keys and status
"""

from .models import CustomApi
from .service import CustomApiService

__all__ = [
    'CustomApi',
    'CustomApiService',
]
