# src/pm_admin/application/service.py
"""Admin application service: invariant audits across markets."""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.service import PositionLedger
from src.pm_clearing.domain.invariants import verify_market_invariants
from src.pm_market.application.service import MarketRegistry

_PAGE_SIZE = 100


class AdminService:
    def __init__(self, registry: MarketRegistry, ledger: PositionLedger) -> None:
        self._registry = registry
        self._ledger = ledger

    async def verify_market(self, db: AsyncSession, market_id: int) -> list[str]:
        market = await self._registry.get_market(db, market_id)
        positions = await self._ledger.list_positions(db, market_id)
        return verify_market_invariants(market, positions)

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, Any]:
        """Run INV-1..INV-4 over every market, paging by id."""
        violations: list[str] = []
        checked = 0
        after_id: int | None = None
        while True:
            page, has_more = await self._registry.list_markets(db, None, after_id, _PAGE_SIZE)
            for market in page:
                positions = await self._ledger.list_positions(db, market.id)
                violations.extend(verify_market_invariants(market, positions))
                checked += 1
            if not has_more or not page:
                break
            after_id = page[-1].id
        return {"ok": len(violations) == 0, "markets_checked": checked, "violations": violations}
