"""
Search Proxy
Rate-limited passthrough to the JSON search upstream
"""

from .client import SearchClient

__all__ = ["SearchClient"]
