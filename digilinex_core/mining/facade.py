# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from digilinex_core.config import DigilinexConfig
from digilinex_core.mining.clock import ClockSource, SystemClock
from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.ledger import ClaimRecord
from digilinex_core.mining.notifications import (
    FallbackNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
    RealtimeNotificationSink,
)
from digilinex_core.mining.policy import RewardPolicy
from digilinex_core.mining.services.claiming import ClaimLedger, ClaimStore
from digilinex_core.mining.services.history import HistoryPage, HistoryTotals, HistoryView
from digilinex_core.mining.services.tier import OrderLookup, TierTracker
from digilinex_core.mining.types import MiningState, MoneyDLX, Tier

logger = logging.getLogger(__name__)


class MiningFacade:
    """Single entry point for the presentation layer."""

    def __init__(
        self,
        *,
        store: ClaimStore,
        config: MiningConfig | None = None,
        clock: ClockSource | None = None,
        reward_policy: RewardPolicy | None = None,
        sink: NotificationSink | None = None,
        orders: OrderLookup | None = None,
    ) -> None:
        self._config = config or MiningConfig()
        self._clock = clock or SystemClock()
        self.ledger = ClaimLedger(
            store,
            self._config,
            clock=self._clock,
            reward_policy=reward_policy,
            sink=sink,
        )
        self.history = HistoryView(store, self._config, clock=self._clock)
        self.tiers = TierTracker(store, orders) if orders is not None else None

    async def get_state(self, account_id: str, now: datetime | None = None) -> MiningState:
        return await self.ledger.get_state(account_id, now)

    async def claim(self, account_id: str, now: datetime | None = None) -> ClaimRecord:
        if self.tiers is not None:
            await self.tiers.refresh(account_id)
        return await self.ledger.claim(account_id, now)

    async def record_team_credit(
        self,
        account_id: str,
        amount: MoneyDLX | Decimal | int | float | str,
        source_user_id: str,
        source_name: str | None = None,
        now: datetime | None = None,
    ) -> ClaimRecord:
        return await self.ledger.record_team_credit(account_id, amount, source_user_id, source_name, now)

    async def list_history(
        self,
        account_id: str,
        now: datetime | None = None,
        *,
        recent_limit: int | None = None,
        older_limit: int | None = None,
    ) -> HistoryPage:
        return await self.history.list(account_id, now, recent_limit=recent_limit, older_limit=older_limit)

    async def history_totals(self, account_id: str) -> HistoryTotals:
        return await self.history.totals(account_id)

    async def refresh_tier(self, account_id: str) -> Tier | None:
        if self.tiers is None:
            return None
        return await self.tiers.refresh(account_id)

    async def aclose(self) -> None:
        await self.ledger.drain_notifications()


def build_notification_sink(settings: DigilinexConfig, config: MiningConfig | None = None) -> NotificationSink:
    """Realtime Database sink with local fallback, or local logging only."""
    config = config or MiningConfig()
    local = LoggingNotificationSink(buffer_size=settings.notification_buffer_size)
    if not settings.firebase_database_url:
        return local

    from firebase_admin import db as rtdb

    _ensure_firebase_app(settings)
    primary = RealtimeNotificationSink(rtdb.reference("/"), path=config.notifications_path)
    return FallbackNotificationSink(primary, local)


def build_facade(
    settings: DigilinexConfig,
    config: MiningConfig | None = None,
    *,
    clock: ClockSource | None = None,
) -> MiningFacade:
    """Wire a facade from deployment settings."""
    config = config or MiningConfig()
    sink = build_notification_sink(settings, config)

    if settings.store_backend == "firestore":
        from firebase_admin import firestore_async

        from digilinex_core.mining.adapters.firestore import FirestoreClaimStore, FirestoreOrderLookup

        app = _ensure_firebase_app(settings)
        client = firestore_async.client(app)
        logger.debug("[Mining] Using Firestore store (project=%s)", settings.firebase_project_id)
        return MiningFacade(
            store=FirestoreClaimStore(client, config=config),
            config=config,
            clock=clock,
            sink=sink,
            orders=FirestoreOrderLookup(client, config=config),
        )

    from digilinex_core.mining.adapters.memory import InMemoryClaimStore

    store = InMemoryClaimStore()
    logger.debug("[Mining] Using in-memory store")
    return MiningFacade(store=store, config=config, clock=clock, sink=sink, orders=store)


def _ensure_firebase_app(settings: DigilinexConfig):
    import firebase_admin
    from firebase_admin import credentials

    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred = (
        credentials.Certificate(settings.firebase_credentials_path)
        if settings.firebase_credentials_path
        else credentials.ApplicationDefault()
    )
    options = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id
    if settings.firebase_database_url:
        options["databaseURL"] = settings.firebase_database_url
    return firebase_admin.initialize_app(cred, options)
