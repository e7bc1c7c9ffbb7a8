# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Claim Ledger for Mining.

The ledger owns every write to an account's mining fields:
1. Load the account state
2. Check the cooldown (EligibilityPolicy)
3. Compute amount and streak (RewardPolicy)
4. Commit record + balance + lastClaimAt + streak in one conditional write
5. Notify (fire-and-forget)

A commit is conditional on the lastClaimAt value read in step 1. If another
writer got there first the store raises StoreConflictError and the whole flow
is retried from step 1, never just the balance increment.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Set, runtime_checkable

from digilinex_core.mining.clock import ClockSource, SystemClock
from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.ledger import ClaimRecord, build_self_claim_id, build_team_credit_id
from digilinex_core.mining.notifications import KIND_CLAIM, KIND_ERROR, Notification, NotificationSink
from digilinex_core.mining.policy import EligibilityPolicy, RewardPolicy
from digilinex_core.mining.types import (
    AccountMiningState,
    ClaimOrigin,
    MiningState,
    MoneyDLX,
    Tier,
    ensure_utc,
    format_countdown,
)

logger = logging.getLogger(__name__)


class ClaimError(RuntimeError):
    default_user_message = "Claim failed, try again."

    def __init__(self, message: str | None = None, *, user_message: str | None = None) -> None:
        super().__init__(message or self.default_user_message)
        self.user_message = user_message or self.default_user_message


class CooldownActiveError(ClaimError):
    def __init__(self, remaining: timedelta) -> None:
        self.remaining = remaining
        countdown = format_countdown(remaining)
        super().__init__(
            f"Cooldown active, {countdown} remaining.",
            user_message=f"Next claim in {countdown}.",
        )


class AccountNotFoundError(ClaimError):
    default_user_message = "Account not found."

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Mining account not found: {account_id}")


class StoreConflictError(ClaimError):
    """Concurrent update, or a commit whose outcome is unknown (ambiguous)."""

    def __init__(self, message: str | None = None, *, ambiguous: bool = False) -> None:
        self.ambiguous = ambiguous
        super().__init__(message or "Concurrent update of mining state.")


class ClaimFailedError(ClaimError):
    pass


@runtime_checkable
class ClaimStore(Protocol):
    """Persistent mining state and append-only claim records."""

    async def read_account(self, account_id: str) -> AccountMiningState | None:
        """Mining fields of the account (defaults when unset); None if the account does not exist."""
        ...

    async def commit_claim(
        self,
        account_id: str,
        *,
        expected_last_claim_at: Optional[datetime],
        record: ClaimRecord,
        new_streak: int,
    ) -> AccountMiningState:
        """
        Atomically append `record`, add record.amount to balance, set
        lastClaimAt = record.created_at and streak = new_streak.
        Raises StoreConflictError if lastClaimAt no longer equals
        expected_last_claim_at.
        """
        ...

    async def append_team_credit(self, account_id: str, record: ClaimRecord) -> AccountMiningState:
        """Atomically append a team record and add its amount to balance."""
        ...

    async def get_record(self, account_id: str, record_id: str) -> ClaimRecord | None:
        ...

    async def list_records(self, account_id: str) -> List[ClaimRecord]:
        ...

    async def set_tier(self, account_id: str, tier: Tier) -> None:
        ...


class ClaimLedger:
    """Eligibility-gated, at-most-once-per-window claim commits."""

    def __init__(
        self,
        store: ClaimStore,
        cfg: MiningConfig | None = None,
        *,
        clock: ClockSource | None = None,
        reward_policy: RewardPolicy | None = None,
        sink: NotificationSink | None = None,
    ) -> None:
        self.store = store
        self.cfg = cfg or MiningConfig()
        self.clock = clock or SystemClock()
        self.eligibility = EligibilityPolicy(self.cfg.cooldown)
        self.rewards = reward_policy or RewardPolicy.from_config(self.cfg)
        self.sink = sink
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Set[asyncio.Task] = set()

    def _now(self, now: datetime | None) -> datetime:
        return ensure_utc(now) if now is not None else self.clock.now()

    def _lock_for(self, account_id: str) -> asyncio.Lock:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock
        return lock

    async def _load(self, account_id: str) -> AccountMiningState:
        state = await self.store.read_account(account_id)
        if state is None:
            raise AccountNotFoundError(account_id)
        return state

    def project(self, state: AccountMiningState, now: datetime) -> MiningState:
        eligibility = self.eligibility.evaluate(state.last_claim_at, now)
        return MiningState(
            account_id=state.account_id,
            last_claim_at=state.last_claim_at,
            balance=state.balance,
            streak=state.streak,
            tier=state.tier,
            claimable=eligibility.claimable,
            remaining=eligibility.remaining,
            cooldown=self.cfg.cooldown,
            evaluated_at=now,
        )

    async def get_state(self, account_id: str, now: datetime | None = None) -> MiningState:
        now = self._now(now)
        state = await self._load(account_id)
        return self.project(state, now)

    async def claim(self, account_id: str, now: datetime | None = None) -> ClaimRecord:
        """
        Claim the daily reward for `account_id` at `now`.

        Raises:
            CooldownActiveError: the claim window is still locked
            AccountNotFoundError: unknown account
            StoreConflictError: conflicts persisted past max_commit_attempts,
                or the commit timed out and its outcome is unknown
            ClaimFailedError: any other store failure (detail is logged only)
        """
        now = self._now(now)
        async with self._lock_for(account_id):
            try:
                record = await self._claim_with_retry(account_id, now)
            except ClaimError:
                raise
            except Exception as exc:
                logger.exception("[Mining] Claim failed for %s", account_id)
                self._dispatch(
                    account_id,
                    Notification(kind=KIND_ERROR, message=ClaimFailedError.default_user_message),
                )
                raise ClaimFailedError() from exc

        self._dispatch(account_id, Notification(
            kind=KIND_CLAIM,
            message=_claim_message(record),
            meta={"record_id": record.id, "amount": record.amount.to_str(), "streak": record.streak},
        ))
        return record

    async def _claim_with_retry(self, account_id: str, now: datetime) -> ClaimRecord:
        delay = self.cfg.retry_backoff_s
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._claim_once(account_id, now)
            except StoreConflictError as exc:
                if exc.ambiguous or attempt >= self.cfg.max_commit_attempts:
                    raise
                logger.debug(
                    "[Mining] Conflict on %s (attempt %d/%d), retrying in %.3fs",
                    account_id,
                    attempt,
                    self.cfg.max_commit_attempts,
                    delay,
                )
                await asyncio.sleep(delay)
                delay *= 2

    async def _claim_once(self, account_id: str, now: datetime) -> ClaimRecord:
        state = await self._load(account_id)

        eligibility = self.eligibility.evaluate(state.last_claim_at, now)
        if not eligibility.claimable:
            raise CooldownActiveError(eligibility.remaining)

        reward = self.rewards.compute_reward(state.streak, state.last_claim_at, now, state.tier)
        record = ClaimRecord(
            id=build_self_claim_id(account_id, now),
            account_id=account_id,
            amount=reward.amount,
            origin=ClaimOrigin.SELF,
            created_at=now,
            base_amount=reward.base_amount,
            bonus_amount=reward.bonus_amount,
            streak=reward.new_streak,
        )

        # The commit runs to completion even if we stop waiting for it.
        commit = asyncio.ensure_future(self.store.commit_claim(
            account_id,
            expected_last_claim_at=state.last_claim_at,
            record=record,
            new_streak=reward.new_streak,
        ))
        try:
            updated = await asyncio.wait_for(asyncio.shield(commit), timeout=self.cfg.commit_timeout_s)
        except asyncio.TimeoutError:
            commit.add_done_callback(_log_late_commit)
            return await self._reconcile(account_id, record)

        logger.info(
            "[Mining] %s claimed %s DLX (streak=%d, balance=%s)",
            account_id,
            record.amount.to_str(),
            updated.streak,
            updated.balance.to_str(),
        )
        return record

    async def _reconcile(self, account_id: str, record: ClaimRecord) -> ClaimRecord:
        """Commit acknowledgment timed out: find out whether it landed."""
        existing = await self.store.get_record(account_id, record.id)
        if existing is not None:
            logger.info("[Mining] Commit ack lost for %s, record %s is present", account_id, record.id)
            return existing
        logger.warning("[Mining] Commit outcome unknown for %s (record %s)", account_id, record.id)
        raise StoreConflictError(
            "Claim commit timed out; re-check state before retrying.",
            ambiguous=True,
        )

    async def record_team_credit(
        self,
        account_id: str,
        amount: MoneyDLX | Decimal | int | float | str,
        source_user_id: str,
        source_name: str | None = None,
        now: datetime | None = None,
    ) -> ClaimRecord:
        """Credit a referred user's claim to `account_id`. No cooldown, no streak change."""
        money = amount if isinstance(amount, MoneyDLX) else MoneyDLX.of(amount)
        if not money.is_positive():
            raise ValueError("Team credit amount must be positive.")
        if not source_user_id:
            raise ValueError("Team credit requires source_user_id.")

        record = ClaimRecord(
            id=build_team_credit_id(),
            account_id=account_id,
            amount=money,
            origin=ClaimOrigin.TEAM,
            created_at=self._now(now),
            source_user_id=source_user_id,
            source_name=source_name,
        )
        updated = await self.store.append_team_credit(account_id, record)
        logger.info(
            "[Mining] Team credit %s DLX to %s from %s (balance=%s)",
            money.to_str(),
            account_id,
            source_user_id,
            updated.balance.to_str(),
        )
        self._dispatch(account_id, Notification(
            kind=KIND_CLAIM,
            message=f"Team reward: +{money.to_str()} DLX from {source_name or 'your team'}",
            meta={"record_id": record.id, "source_user_id": source_user_id},
        ))
        return record

    def _dispatch(self, account_id: str, notification: Notification) -> None:
        if self.sink is None:
            return
        task = asyncio.get_running_loop().create_task(self._notify(account_id, notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _notify(self, account_id: str, notification: Notification) -> None:
        try:
            await self.sink.notify(account_id, notification)
        except Exception as exc:
            logger.warning("[Mining] Notification for %s failed: %s", account_id, exc)

    async def drain_notifications(self) -> None:
        """Wait for in-flight notifications (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


def _claim_message(record: ClaimRecord) -> str:
    msg = f"Claimed {record.amount.to_str()} DLX"
    if record.has_bonus:
        msg += f" (incl. +{record.bonus_amount.to_str()} streak bonus)"
    return msg


def _log_late_commit(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("[Mining] Late commit failed: %s", exc)
