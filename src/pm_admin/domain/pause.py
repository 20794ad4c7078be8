"""Pause gate: emergency stop for market creation and staking.

Toggling the flag is an operator concern outside the ledger; the ledger only
reads it. Resolution, cancellation and claims are never gated so funds can
always leave a paused system.
"""

import logging
from typing import Protocol

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class PauseGateProtocol(Protocol):
    async def is_paused(self) -> bool: ...


class StaticPauseGate:
    """Fixed flag, typically settings.TRADING_PAUSED."""

    def __init__(self, paused: bool = False) -> None:
        self._paused = paused

    async def is_paused(self) -> bool:
        return self._paused


class RedisPauseGate:
    """Reads a Redis flag key; "1"/"true" means paused, a missing key falls back."""

    def __init__(self, redis: aioredis.Redis, key: str, default: bool = False) -> None:
        self._redis = redis
        self._key = key
        self._default = default

    async def is_paused(self) -> bool:
        value = await self._redis.get(self._key)
        if value is None:
            return self._default
        paused = str(value).strip().lower() in ("1", "true", "yes")
        logger.debug("Pause flag %s=%r -> paused=%s", self._key, value, paused)
        return paused
