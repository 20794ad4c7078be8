# tests/unit/test_events_and_pause.py
"""Unit tests for notification sinks and the pause gate."""
import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock

from src.pm_admin.domain.pause import RedisPauseGate, StaticPauseGate
from src.pm_common.enums import EventType
from src.pm_common.events import (
    LedgerEvent,
    LoggingNotificationSink,
    NullNotificationSink,
    RedisNotificationSink,
    notify,
)


def _event() -> LedgerEvent:
    return LedgerEvent(EventType.BET_PLACED, 3, {"stake": "1000"})


class TestLedgerEvent:
    def test_to_json(self):
        data = json.loads(_event().to_json())
        assert data["event_type"] == "BET_PLACED"
        assert data["market_id"] == 3
        assert data["payload"] == {"stake": "1000"}
        assert data["occurred_at"].endswith("+00:00")


class TestSinks:
    def test_logging_sink(self, caplog):
        with caplog.at_level(logging.INFO, logger="pm.events"):
            LoggingNotificationSink().publish(_event())
        assert "BET_PLACED market=3" in caplog.text

    def test_null_sink(self):
        assert NullNotificationSink().publish(_event()) is None

    async def test_redis_sink_publishes_json(self):
        redis = MagicMock()
        redis.publish = AsyncMock(return_value=1)
        sink = RedisNotificationSink(redis, "pm:events")

        sink.publish(_event())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        channel, body = redis.publish.call_args.args
        assert channel == "pm:events"
        assert json.loads(body)["event_type"] == "BET_PLACED"

    async def test_redis_failure_is_logged_not_raised(self, caplog):
        redis = MagicMock()
        redis.publish = AsyncMock(side_effect=ConnectionError("redis down"))
        sink = RedisNotificationSink(redis, "pm:events")

        with caplog.at_level(logging.WARNING):
            sink.publish(_event())
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        assert "Dropped BET_PLACED notification" in caplog.text

    def test_notify_swallows_sink_errors(self, caplog):
        sink = MagicMock()
        sink.publish.side_effect = RuntimeError("boom")
        with caplog.at_level(logging.WARNING):
            notify(sink, _event())
        assert "Notification sink failed" in caplog.text


class TestPauseGate:
    async def test_static(self):
        assert await StaticPauseGate().is_paused() is False
        assert await StaticPauseGate(True).is_paused() is True

    async def test_redis_flag_set(self):
        redis = MagicMock()
        redis.get = AsyncMock(return_value="true")
        assert await RedisPauseGate(redis, "k").is_paused() is True

    async def test_redis_flag_cleared(self):
        redis = MagicMock()
        redis.get = AsyncMock(return_value="0")
        assert await RedisPauseGate(redis, "k", default=True).is_paused() is False

    async def test_redis_missing_key_uses_default(self):
        redis = MagicMock()
        redis.get = AsyncMock(return_value=None)
        assert await RedisPauseGate(redis, "k", default=True).is_paused() is True
