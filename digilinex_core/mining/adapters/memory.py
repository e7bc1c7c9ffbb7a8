# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Set

from digilinex_core.mining.ledger import ClaimRecord
from digilinex_core.mining.services.claiming import (
    AccountNotFoundError,
    ClaimStore,
    StoreConflictError,
)
from digilinex_core.mining.types import AccountMiningState, ClaimOrigin, Tier


class InMemoryClaimStore(ClaimStore):
    """Process-local store with the same conditional-commit semantics as Firestore."""

    def __init__(self) -> None:
        self._accounts: Dict[str, AccountMiningState] = {}
        self._records: Dict[str, Dict[str, ClaimRecord]] = {}
        self._orders: Set[str] = set()
        self._lock = asyncio.Lock()

    def add_account(
        self,
        account_id: str,
        *,
        tier: Tier = Tier.INACTIVE,
        state: AccountMiningState | None = None,
    ) -> AccountMiningState:
        if state is None:
            state = AccountMiningState(account_id=account_id, tier=tier)
        self._accounts[account_id] = state
        self._records.setdefault(account_id, {})
        return state

    def add_order(self, account_id: str) -> None:
        self._orders.add(account_id)

    async def has_orders(self, account_id: str) -> bool:
        return account_id in self._orders

    async def read_account(self, account_id: str) -> AccountMiningState | None:
        state = self._accounts.get(account_id)
        # Yield like a network read would, so concurrent callers interleave.
        await asyncio.sleep(0)
        return state

    async def commit_claim(
        self,
        account_id: str,
        *,
        expected_last_claim_at: Optional[datetime],
        record: ClaimRecord,
        new_streak: int,
    ) -> AccountMiningState:
        if record.origin != ClaimOrigin.SELF:
            raise ValueError("commit_claim only accepts self claims.")
        async with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            if current.last_claim_at != expected_last_claim_at:
                raise StoreConflictError(f"lastClaimAt changed for {account_id}.")
            records = self._records.setdefault(account_id, {})
            if record.id in records:
                raise StoreConflictError(f"Claim record {record.id} already exists.")

            updated = replace(
                current,
                last_claim_at=record.created_at,
                balance=current.balance + record.amount,
                streak=new_streak,
            )
            records[record.id] = record
            self._accounts[account_id] = updated
            return updated

    async def append_team_credit(self, account_id: str, record: ClaimRecord) -> AccountMiningState:
        if record.origin != ClaimOrigin.TEAM:
            raise ValueError("append_team_credit only accepts team records.")
        async with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            updated = replace(current, balance=current.balance + record.amount)
            self._records.setdefault(account_id, {})[record.id] = record
            self._accounts[account_id] = updated
            return updated

    async def get_record(self, account_id: str, record_id: str) -> ClaimRecord | None:
        return self._records.get(account_id, {}).get(record_id)

    async def list_records(self, account_id: str) -> List[ClaimRecord]:
        return list(self._records.get(account_id, {}).values())

    async def set_tier(self, account_id: str, tier: Tier) -> None:
        async with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            self._accounts[account_id] = replace(current, tier=tier)
