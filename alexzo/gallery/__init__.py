"""
Generated Images
Per-user gallery of saved image generations
"""

from .models import GeneratedImage
from .store import GalleryStore, InMemoryGalleryStore, RedisGalleryStore

__all__ = [
    'GeneratedImage',
    'GalleryStore',
    'InMemoryGalleryStore',
    'RedisGalleryStore',
]
