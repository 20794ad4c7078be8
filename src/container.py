"""Service wiring.

One `Services` bundle per process so every router shares the same repositories
and the same per-market lock map. `get_services` is the FastAPI dependency.
"""

import logging
from dataclasses import dataclass

from config.settings import Settings, settings
from src.pm_account.application.service import PositionLedger
from src.pm_account.domain.repository import FundsTransferProtocol, PositionRepositoryProtocol
from src.pm_account.infrastructure.memory import InMemoryFundsTransfer, InMemoryPositionRepository
from src.pm_account.infrastructure.persistence import PositionRepository
from src.pm_account.infrastructure.transfer import AccountFundsTransfer
from src.pm_admin.application.service import AdminService
from src.pm_admin.domain.pause import PauseGateProtocol, RedisPauseGate, StaticPauseGate
from src.pm_clearing.application.service import ResolutionService
from src.pm_common.datetime_utils import ClockProtocol, SystemClock
from src.pm_common.events import (
    LoggingNotificationSink,
    NotificationSinkProtocol,
    NullNotificationSink,
    RedisNotificationSink,
)
from src.pm_common.locks import KeyedLocks
from src.pm_common.redis_client import get_redis
from src.pm_gateway.auth.authorizer import AuthorizerProtocol, StaticAuthorizer
from src.pm_market.application.service import MarketRegistry
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.memory import InMemoryMarketRepository
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_order.application.service import BettingService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    registry: MarketRegistry
    ledger: PositionLedger
    betting: BettingService
    resolution: ResolutionService
    admin: AdminService


def build_services(
    market_repo: MarketRepositoryProtocol,
    position_repo: PositionRepositoryProtocol,
    transfer: FundsTransferProtocol,
    authorizer: AuthorizerProtocol,
    *,
    fee_bps: int,
    min_bet: int,
    max_bet: int,
    clock: ClockProtocol | None = None,
    pause_gate: PauseGateProtocol | None = None,
    sink: NotificationSinkProtocol | None = None,
) -> Services:
    clock = clock or SystemClock()
    pause_gate = pause_gate or StaticPauseGate()
    sink = sink or LoggingNotificationSink()
    locks = KeyedLocks()

    registry = MarketRegistry(market_repo, clock=clock, pause_gate=pause_gate, sink=sink)
    ledger = PositionLedger(position_repo, market_repo, min_bet=min_bet, max_bet=max_bet)
    betting = BettingService(
        registry, ledger, locks=locks, clock=clock, pause_gate=pause_gate, sink=sink
    )
    resolution = ResolutionService(
        registry,
        ledger,
        market_repo,
        position_repo,
        transfer,
        authorizer,
        fee_bps=fee_bps,
        locks=locks,
        clock=clock,
        sink=sink,
    )
    return Services(
        registry=registry,
        ledger=ledger,
        betting=betting,
        resolution=resolution,
        admin=AdminService(registry, ledger),
    )


def build_in_memory_services(
    cfg: Settings = settings,
    *,
    transfer: FundsTransferProtocol | None = None,
    clock: ClockProtocol | None = None,
    pause_gate: PauseGateProtocol | None = None,
    sink: NotificationSinkProtocol | None = None,
) -> Services:
    """Single-process wiring with dict-backed stores (STORAGE_BACKEND=memory)."""
    return build_services(
        InMemoryMarketRepository(),
        InMemoryPositionRepository(),
        transfer or InMemoryFundsTransfer(),
        StaticAuthorizer(cfg.OWNER_ID, cfg.RESOLVER_IDS),
        fee_bps=cfg.PROTOCOL_FEE_BPS,
        min_bet=cfg.MIN_BET,
        max_bet=cfg.MAX_BET,
        clock=clock,
        pause_gate=pause_gate or StaticPauseGate(cfg.TRADING_PAUSED),
        sink=sink,
    )


async def build_services_from_settings(cfg: Settings = settings) -> Services:
    if cfg.STORAGE_BACKEND == "memory":
        sink: NotificationSinkProtocol = (
            LoggingNotificationSink() if cfg.NOTIFICATIONS_ENABLED else NullNotificationSink()
        )
        return build_in_memory_services(cfg, sink=sink)
    if cfg.STORAGE_BACKEND != "postgres":
        raise ValueError(f"Unknown STORAGE_BACKEND: {cfg.STORAGE_BACKEND}")

    redis = await get_redis()
    sink = (
        RedisNotificationSink(redis, cfg.EVENTS_CHANNEL)
        if cfg.NOTIFICATIONS_ENABLED
        else NullNotificationSink()
    )
    return build_services(
        MarketRepository(),
        PositionRepository(),
        AccountFundsTransfer(),
        StaticAuthorizer(cfg.OWNER_ID, cfg.RESOLVER_IDS),
        fee_bps=cfg.PROTOCOL_FEE_BPS,
        min_bet=cfg.MIN_BET,
        max_bet=cfg.MAX_BET,
        pause_gate=RedisPauseGate(redis, cfg.PAUSE_FLAG_KEY, default=cfg.TRADING_PAUSED),
        sink=sink,
    )


_services: Services | None = None


async def get_services() -> Services:
    """FastAPI dependency: lazily built process-wide Services."""
    global _services  # noqa: PLW0603
    if _services is None:
        _services = await build_services_from_settings()
        logger.info("Services built (backend=%s)", settings.STORAGE_BACKEND)
    return _services


def reset_services() -> None:
    global _services  # noqa: PLW0603
    _services = None
