"""Per-entity asyncio locks.

Serializes read-modify-write sequences on a single market or position while
leaving unrelated keys free to run in parallel. Process-local only; the
PostgreSQL backend additionally takes row locks.
"""

import asyncio
from collections import defaultdict
from collections.abc import Hashable


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = defaultdict(asyncio.Lock)

    def get(self, key: Hashable) -> asyncio.Lock:
        return self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
