# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Read-side projection of an account's claim records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from digilinex_core.mining.clock import ClockSource, SystemClock
from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.ledger import ClaimRecord
from digilinex_core.mining.services.claiming import ClaimStore
from digilinex_core.mining.types import ClaimOrigin, MoneyDLX, ensure_utc


@dataclass(frozen=True, slots=True)
class HistoryPage:
    recent: List[ClaimRecord]
    older: List[ClaimRecord]
    has_more_recent: bool
    has_more_older: bool

    def to_dict(self) -> dict:
        return {
            "recent": [r.to_dict() for r in self.recent],
            "older": [r.to_dict() for r in self.older],
            "has_more_recent": self.has_more_recent,
            "has_more_older": self.has_more_older,
        }


@dataclass(frozen=True, slots=True)
class HistoryTotals:
    mined: MoneyDLX
    team: MoneyDLX

    @property
    def total(self) -> MoneyDLX:
        return self.mined + self.team

    def to_dict(self) -> dict:
        return {
            "mined": self.mined.to_str(),
            "team": self.team.to_str(),
            "total": self.total.to_str(),
        }


def sort_records(records: List[ClaimRecord]) -> List[ClaimRecord]:
    """Newest first; equal timestamps ordered by id ascending."""
    by_id = sorted(records, key=lambda r: r.id)
    return sorted(by_id, key=lambda r: r.created_at, reverse=True)


def _take(records: List[ClaimRecord], limit: Optional[int]) -> Tuple[List[ClaimRecord], bool]:
    if not limit:
        return list(records), False
    return records[:limit], len(records) > limit


class HistoryView:
    def __init__(
        self,
        store: ClaimStore,
        cfg: MiningConfig | None = None,
        *,
        clock: ClockSource | None = None,
    ) -> None:
        self.store = store
        self.cfg = cfg or MiningConfig()
        self.clock = clock or SystemClock()

    async def list(
        self,
        account_id: str,
        now: datetime | None = None,
        *,
        recent_limit: int | None = None,
        older_limit: int | None = None,
    ) -> HistoryPage:
        """
        Recent (within recent_window of now) and older records, newest first.

        Limits default to history_page_size; 0 means no limit. To load more,
        call again with a larger limit.
        """
        now = ensure_utc(now) if now is not None else self.clock.now()
        if recent_limit is None:
            recent_limit = self.cfg.history_page_size
        if older_limit is None:
            older_limit = self.cfg.history_page_size

        cutoff = now - self.cfg.recent_window
        records = sort_records(await self.store.list_records(account_id))
        recent = [r for r in records if r.created_at >= cutoff]
        older = [r for r in records if r.created_at < cutoff]

        recent_page, more_recent = _take(recent, recent_limit)
        older_page, more_older = _take(older, older_limit)
        return HistoryPage(
            recent=recent_page,
            older=older_page,
            has_more_recent=more_recent,
            has_more_older=more_older,
        )

    async def totals(self, account_id: str) -> HistoryTotals:
        mined = Decimal("0")
        team = Decimal("0")
        for record in await self.store.list_records(account_id):
            if record.origin == ClaimOrigin.TEAM:
                team += record.amount.value
            else:
                mined += record.amount.value
        return HistoryTotals(mined=MoneyDLX(mined), team=MoneyDLX(team))
