"""Ledger notifications: fire-and-forget, best-effort.

Core services publish through `notify()` so a broken sink can never fail or
delay a stake, resolution or claim. Delivery is at-most-once.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

import redis.asyncio as aioredis

from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import EventType

logger = logging.getLogger(__name__)


@dataclass
class LedgerEvent:
    event_type: EventType
    market_id: int
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)

    def to_json(self) -> str:
        return json.dumps(
            {
                "event_type": self.event_type.value,
                "market_id": self.market_id,
                "payload": self.payload,
                "occurred_at": self.occurred_at.isoformat(),
            }
        )


class NotificationSinkProtocol(Protocol):
    def publish(self, event: LedgerEvent) -> None: ...


class LoggingNotificationSink:
    """Writes every event to the `pm.events` logger."""

    def __init__(self) -> None:
        self._logger = logging.getLogger("pm.events")

    def publish(self, event: LedgerEvent) -> None:
        self._logger.info("%s market=%s %s", event.event_type.value, event.market_id, event.payload)


class RedisNotificationSink:
    """Redis Pub/Sub sink. PUBLISH runs on a background task."""

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel
        self._pending: set[asyncio.Task[None]] = set()

    def publish(self, event: LedgerEvent) -> None:
        task = asyncio.get_running_loop().create_task(self._send(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, event: LedgerEvent) -> None:
        try:
            await self._redis.publish(self._channel, event.to_json())
        except Exception:  # noqa: BLE001 -- best-effort delivery
            logger.warning(
                "Dropped %s notification for market %s",
                event.event_type.value,
                event.market_id,
                exc_info=True,
            )


class NullNotificationSink:
    def publish(self, event: LedgerEvent) -> None:
        return None


def notify(sink: NotificationSinkProtocol, event: LedgerEvent) -> None:
    """Publish without letting sink failures reach the caller."""
    try:
        sink.publish(event)
    except Exception:  # noqa: BLE001 -- notifications never block core logic
        logger.warning(
            "Notification sink failed for %s market=%s",
            event.event_type.value,
            event.market_id,
            exc_info=True,
        )
