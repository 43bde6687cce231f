"""
Storage backends for rate limit state

The limiter only talks to the RateLimitStore interface so a shared backend
can replace the process-local map without touching request handling.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional, Tuple

from .models import RateLimitRecord


class RateLimitStore(ABC):
    """Keyed storage of rate limit records"""

    @abstractmethod
    def get(self, identifier: str) -> Optional[RateLimitRecord]:
        ...

    @abstractmethod
    def put(self, identifier: str, record: RateLimitRecord) -> None:
        ...

    @abstractmethod
    def delete(self, identifier: str) -> None:
        ...

    @abstractmethod
    def items(self) -> Iterator[Tuple[str, RateLimitRecord]]:
        ...

    def __len__(self) -> int:
        return sum(1 for _ in self.items())


class InMemoryRateLimitStore(RateLimitStore):
    """
    Process-local store backed by a dict

    Not shared across workers or instances and cleared on restart. No lock:
    callers run on a single event loop and never await between get and put.
    """

    def __init__(self):
        self._records: Dict[str, RateLimitRecord] = {}

    def get(self, identifier: str) -> Optional[RateLimitRecord]:
        return self._records.get(identifier)

    def put(self, identifier: str, record: RateLimitRecord) -> None:
        self._records[identifier] = record

    def delete(self, identifier: str) -> None:
        self._records.pop(identifier, None)

    def items(self) -> Iterator[Tuple[str, RateLimitRecord]]:
        return iter(list(self._records.items()))

    def __len__(self) -> int:
        return len(self._records)
