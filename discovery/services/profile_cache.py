"""
Owner-summary cache with an explicit TTL and explicit invalidation.

Injected into the result assembler; nothing in discovery shares it
implicitly. Callers that mutate or sign out a profile call `invalidate`.
"""

import logging
import time
from typing import Awaitable, Callable, Dict, Optional, Tuple

from discovery.models import OwnerSummary

logger = logging.getLogger(__name__)


class ProfileSummaryCache:
    """Time-boxed cache of OwnerSummary keyed by owner id.

    Attributes:
        ttl_seconds: Lifetime of an entry
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[float, OwnerSummary]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, owner_id: str) -> Optional[OwnerSummary]:
        entry = self._entries.get(owner_id)
        if entry is None:
            return None
        stored_at, summary = entry
        if self.clock() - stored_at >= self.ttl_seconds:
            del self._entries[owner_id]
            return None
        return summary

    def set(self, owner_id: str, summary: OwnerSummary) -> None:
        self._entries[owner_id] = (self.clock(), summary)

    def invalidate(self, owner_id: str) -> None:
        """Drop one owner's entry, e.g. after a profile edit or logout."""
        self._entries.pop(owner_id, None)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_load(
        self,
        owner_id: str,
        loader: Callable[[str], Awaitable[Optional[OwnerSummary]]]
    ) -> Optional[OwnerSummary]:
        cached = self.get(owner_id)
        if cached is not None:
            return cached
        summary = await loader(owner_id)
        # Misses are not cached so a newly created profile shows up at once
        if summary is not None:
            self.set(owner_id, summary)
        return summary
