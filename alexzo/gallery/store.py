"""
Document storage for saved generated images

Images are stored one document per image id, with a per-user index ordered
by save time.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from redis import asyncio as aioredis

from .models import GeneratedImage

logger = logging.getLogger(__name__)


class GalleryStore(ABC):
    """Storage interface for users' saved images"""

    @abstractmethod
    async def save(self, image: GeneratedImage) -> None:
        """Store an image record"""

    @abstractmethod
    async def get(self, image_id: str) -> Optional[GeneratedImage]:
        """Fetch an image record by id"""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[GeneratedImage]:
        """Images saved by ``user_id``, newest first"""

    @abstractmethod
    async def delete(self, image_id: str) -> bool:
        """Remove an image record; False if it did not exist"""

    @abstractmethod
    async def delete_for_user(self, user_id: str) -> int:
        """Remove every image saved by ``user_id``; returns the count"""


class InMemoryGalleryStore(GalleryStore):
    """Process-local store for development and tests"""

    def __init__(self):
        self._images: Dict[str, GeneratedImage] = {}

    async def save(self, image: GeneratedImage) -> None:
        self._images[image.id] = image.model_copy()

    async def get(self, image_id: str) -> Optional[GeneratedImage]:
        image = self._images.get(image_id)
        return image.model_copy() if image else None

    async def list_for_user(self, user_id: str) -> List[GeneratedImage]:
        owned = [i.model_copy() for i in self._images.values() if i.user_id == user_id]
        return sorted(owned, key=lambda i: i.created_at, reverse=True)

    async def delete(self, image_id: str) -> bool:
        return self._images.pop(image_id, None) is not None

    async def delete_for_user(self, user_id: str) -> int:
        owned = [i for i, image in self._images.items() if image.user_id == user_id]
        for image_id in owned:
            del self._images[image_id]
        return len(owned)


class RedisGalleryStore(GalleryStore):
    """
    Redis-backed image store sharing the key store's client

    Layout:
        alexzo:generated_images:{id}        JSON document of the image
        alexzo:user_generated_images:{uid}  sorted set of the user's images by save time
    """

    IMAGE_PREFIX = "alexzo:generated_images:"
    USER_INDEX_PREFIX = "alexzo:user_generated_images:"

    def __init__(self, redis_client: aioredis.Redis):
        self.redis = redis_client

    def _doc_key(self, image_id: str) -> str:
        return f"{self.IMAGE_PREFIX}{image_id}"

    def _user_index(self, user_id: str) -> str:
        return f"{self.USER_INDEX_PREFIX}{user_id}"

    async def save(self, image: GeneratedImage) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(self._doc_key(image.id), json.dumps(image.to_document()))
            pipe.zadd(self._user_index(image.user_id), {image.id: image.created_at.timestamp()})
            await pipe.execute()

    async def get(self, image_id: str) -> Optional[GeneratedImage]:
        raw = await self.redis.get(self._doc_key(image_id))
        if raw is None:
            return None
        return GeneratedImage.from_document(json.loads(raw))

    async def list_for_user(self, user_id: str) -> List[GeneratedImage]:
        ids = await self.redis.zrevrange(self._user_index(user_id), 0, -1)
        if not ids:
            return []

        raw_docs = await self.redis.mget([self._doc_key(i) for i in ids])
        images = []
        for image_id, raw in zip(ids, raw_docs):
            if raw is None:
                await self.redis.zrem(self._user_index(user_id), image_id)
                continue
            images.append(GeneratedImage.from_document(json.loads(raw)))
        return images

    async def delete(self, image_id: str) -> bool:
        image = await self.get(image_id)
        if image is None:
            return False

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(self._doc_key(image_id))
            pipe.zrem(self._user_index(image.user_id), image_id)
            await pipe.execute()
        return True

    async def delete_for_user(self, user_id: str) -> int:
        index = self._user_index(user_id)
        ids = await self.redis.zrange(index, 0, -1)

        async with self.redis.pipeline(transaction=True) as pipe:
            for image_id in ids:
                pipe.delete(self._doc_key(image_id))
            pipe.delete(index)
            results = await pipe.execute()

        removed = sum(results[:-1])
        logger.debug("Removed %d gallery images for %s", removed, user_id)
        return removed
