# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.ledger import ClaimRecord
from digilinex_core.mining.services.claiming import (
    AccountNotFoundError,
    ClaimStore,
    StoreConflictError,
)
from digilinex_core.mining.types import (
    AccountMiningState,
    ClaimOrigin,
    MoneyDLX,
    Tier,
    ensure_utc,
)


def _timestamp_to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if hasattr(value, "to_datetime"):
        return ensure_utc(value.to_datetime())
    if isinstance(value, (int, float)):
        # Older dashboard builds stored epoch milliseconds.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return None


def _get_path(data: dict, dotted: str) -> Any:
    node: Any = data
    for part in dotted.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


class FirestoreClaimStore(ClaimStore):
    """
    Mining state on `users/{uid}`, claim records in `miningHistory/{id}`.

    Self claims run in a Firestore transaction that re-reads lastClaimAt and
    compares it with the value the ledger based its decision on. Balance is
    always written with Increment so team credits never overwrite a claim.
    """

    def __init__(self, db: firestore.AsyncClient, *, config: MiningConfig | None = None) -> None:
        self._db = db
        self._config = config or MiningConfig()
        self._users = self._db.collection(self._config.user_collection)
        self._history = self._db.collection(self._config.history_collection)

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def _state_from_dict(self, account_id: str, data: dict) -> AccountMiningState:
        cfg = self._config
        streak = _get_path(data, cfg.streak_field)
        return AccountMiningState(
            account_id=account_id,
            last_claim_at=_timestamp_to_datetime(_get_path(data, cfg.last_claim_field)),
            balance=MoneyDLX.of(_get_path(data, cfg.balance_field)),
            streak=max(0, int(streak or 0)),
            tier=Tier.parse(_get_path(data, cfg.tier_field)),
        )

    def _record_to_dict(self, record: ClaimRecord) -> dict:
        d = {
            "id": record.id,
            "userId": record.account_id,
            "amount": record.amount.to_number(),
            "origin": record.origin.value,
            "date": record.created_at,
            "status": "claimed",
        }
        if record.origin == ClaimOrigin.TEAM:
            d["sourceUserId"] = record.source_user_id
            d["sourceName"] = record.source_name
        else:
            if record.base_amount is not None:
                d["baseAmount"] = record.base_amount.to_number()
            if record.bonus_amount is not None:
                d["bonusAmount"] = record.bonus_amount.to_number()
            if record.streak is not None:
                d["streak"] = record.streak
        return d

    def _record_from_dict(self, doc_id: str, data: dict) -> ClaimRecord:
        base = data.get("baseAmount")
        bonus = data.get("bonusAmount")
        streak = data.get("streak")
        return ClaimRecord(
            id=data.get("id") or doc_id,
            account_id=data.get("userId", ""),
            amount=MoneyDLX.of(data.get("amount")),
            origin=ClaimOrigin(data.get("origin") or ClaimOrigin.SELF.value),
            created_at=_timestamp_to_datetime(data.get("date")) or datetime.now(timezone.utc),
            source_user_id=data.get("sourceUserId"),
            source_name=data.get("sourceName"),
            base_amount=MoneyDLX.of(base) if base is not None else None,
            bonus_amount=MoneyDLX.of(bonus) if bonus is not None else None,
            streak=int(streak) if streak is not None else None,
        )

    # -------------------------------------------------------------------------
    # ClaimStore
    # -------------------------------------------------------------------------

    async def read_account(self, account_id: str) -> AccountMiningState | None:
        snapshot = await self._users.document(account_id).get()
        if not snapshot.exists:
            return None
        return self._state_from_dict(account_id, snapshot.to_dict() or {})

    async def commit_claim(
        self,
        account_id: str,
        *,
        expected_last_claim_at: Optional[datetime],
        record: ClaimRecord,
        new_streak: int,
    ) -> AccountMiningState:
        cfg = self._config
        user_ref = self._users.document(account_id)
        record_ref = self._history.document(record.id)
        transaction = self._db.transaction()

        @firestore.async_transactional
        async def _commit(transaction):  # type: ignore[no-untyped-def]
            user_snapshot = await user_ref.get(transaction=transaction)
            if not user_snapshot.exists:
                raise AccountNotFoundError(account_id)
            current = self._state_from_dict(account_id, user_snapshot.to_dict() or {})
            if current.last_claim_at != expected_last_claim_at:
                raise StoreConflictError(f"lastClaimAt changed for {account_id}.")

            record_snapshot = await record_ref.get(transaction=transaction)
            if record_snapshot.exists:
                raise StoreConflictError(f"Claim record {record.id} already exists.")

            transaction.update(user_ref, {
                cfg.last_claim_field: record.created_at,
                cfg.streak_field: new_streak,
                cfg.balance_field: firestore.Increment(record.amount.to_number()),
            })
            transaction.set(record_ref, self._record_to_dict(record))
            return AccountMiningState(
                account_id=account_id,
                last_claim_at=record.created_at,
                balance=current.balance + record.amount,
                streak=new_streak,
                tier=current.tier,
            )

        try:
            return await _commit(transaction)
        except (gcp_exceptions.Aborted, gcp_exceptions.Conflict) as exc:
            raise StoreConflictError(f"Transaction contention for {account_id}: {exc}") from exc
        except gcp_exceptions.DeadlineExceeded as exc:
            raise StoreConflictError(
                f"Commit deadline exceeded for {account_id}; outcome unknown.",
                ambiguous=True,
            ) from exc

    async def append_team_credit(self, account_id: str, record: ClaimRecord) -> AccountMiningState:
        cfg = self._config
        user_ref = self._users.document(account_id)
        batch = self._db.batch()
        batch.update(user_ref, {cfg.balance_field: firestore.Increment(record.amount.to_number())})
        batch.set(self._history.document(record.id), self._record_to_dict(record))
        try:
            await batch.commit()
        except gcp_exceptions.NotFound as exc:
            raise AccountNotFoundError(account_id) from exc

        state = await self.read_account(account_id)
        if state is None:
            raise AccountNotFoundError(account_id)
        return state

    async def get_record(self, account_id: str, record_id: str) -> ClaimRecord | None:
        snapshot = await self._history.document(record_id).get()
        if not snapshot.exists:
            return None
        data = snapshot.to_dict() or {}
        if data.get("userId") != account_id:
            return None
        return self._record_from_dict(snapshot.id, data)

    async def list_records(self, account_id: str) -> List[ClaimRecord]:
        query = self._history.where("userId", "==", account_id)
        records: List[ClaimRecord] = []
        async for snapshot in query.stream():
            records.append(self._record_from_dict(snapshot.id, snapshot.to_dict() or {}))
        return records

    async def set_tier(self, account_id: str, tier: Tier) -> None:
        try:
            await self._users.document(account_id).update({
                self._config.tier_field: tier.value,
                "statusUpdatedAt": firestore.SERVER_TIMESTAMP,
            })
        except gcp_exceptions.NotFound as exc:
            raise AccountNotFoundError(account_id) from exc


class FirestoreOrderLookup:
    def __init__(self, db: firestore.AsyncClient, *, config: MiningConfig | None = None) -> None:
        self._config = config or MiningConfig()
        self._orders = db.collection(self._config.orders_collection)

    async def has_orders(self, account_id: str) -> bool:
        query = self._orders.where("userId", "==", account_id).limit(1)
        async for _ in query.stream():
            return True
        return False
