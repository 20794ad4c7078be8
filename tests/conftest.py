"""Shared test fixtures."""

import os

# Settings() requires JWT_SECRET; set before any src/config import
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from datetime import UTC, datetime, timedelta  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from config.settings import settings  # noqa: E402
from src.container import Services, build_in_memory_services  # noqa: E402
from src.pm_account.infrastructure.memory import InMemoryFundsTransfer  # noqa: E402
from src.pm_admin.domain.pause import StaticPauseGate  # noqa: E402
from src.pm_common.events import LedgerEvent  # noqa: E402
from src.pm_common.fixed_point import SCALE  # noqa: E402

OWNER = "OWNER"
RESOLVER = "resolver-1"


class ManualClock:
    """Deterministic clock; tests move time with advance()."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> None:
        self._now += timedelta(**kwargs)

    def set(self, when: datetime) -> None:
        self._now = when


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[LedgerEvent] = []

    def publish(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.event_type.value for e in self.events]


@pytest.fixture
def db():
    """Stand-in AsyncSession: the memory backend only calls commit/rollback."""
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def transfer() -> InMemoryFundsTransfer:
    return InMemoryFundsTransfer()


@pytest.fixture
def pause_gate() -> StaticPauseGate:
    return StaticPauseGate(False)


@pytest.fixture
def cfg():
    return settings.model_copy(
        update={
            "OWNER_ID": OWNER,
            "RESOLVER_IDS": [RESOLVER],
            "PROTOCOL_FEE_BPS": 200,
            "MIN_BET": SCALE // 1000,
            "MAX_BET": 100 * SCALE,
        }
    )


@pytest.fixture
def services(cfg, clock, sink, transfer, pause_gate) -> Services:
    return build_in_memory_services(
        cfg, transfer=transfer, clock=clock, pause_gate=pause_gate, sink=sink
    )
