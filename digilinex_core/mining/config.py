# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from digilinex_core.mining.types import MoneyDLX
from digilinex_core.runtime_config import _parse_float, _parse_int, _parse_str


@dataclass(frozen=True, slots=True)
class MiningConfig:
    """Configuration for the mining claim system."""

    # Firestore paths (same documents the dashboard reads)
    user_collection: str = "users"
    history_collection: str = "miningHistory"
    orders_collection: str = "orders"
    tier_field: str = "status"
    last_claim_field: str = "lastClaimAt"
    streak_field: str = "miningStreak"
    balance_field: str = "wallet.miningBalance"

    # Realtime Database notification root
    notifications_path: str = "notifications/users"
    notification_route: str = "/mining"

    # Claim window
    cooldown_hours: int = 24
    # Streak continues if the next claim lands within grace_multiplier * cooldown
    grace_multiplier: int = 2

    # Rewards (DLX)
    base_inactive: MoneyDLX = MoneyDLX(Decimal("10"))
    base_active: MoneyDLX = MoneyDLX(Decimal("15"))
    streak_bonus: MoneyDLX = MoneyDLX(Decimal("20"))
    streak_bonus_every: int = 7

    # Commit retries
    max_commit_attempts: int = 3
    retry_backoff_s: float = 0.05
    commit_timeout_s: float = 10.0

    # History
    recent_window_days: int = 7
    history_page_size: int = 10

    @property
    def cooldown(self) -> timedelta:
        return timedelta(hours=self.cooldown_hours)

    @property
    def grace_window(self) -> timedelta:
        return self.cooldown * self.grace_multiplier

    @property
    def recent_window(self) -> timedelta:
        return timedelta(days=self.recent_window_days)

    @staticmethod
    def load_from_env() -> "MiningConfig":
        defaults = MiningConfig()
        return MiningConfig(
            user_collection=_parse_str(
                os.getenv("DIGILINEX_USER_COLLECTION"), default=defaults.user_collection
            ),
            history_collection=_parse_str(
                os.getenv("DIGILINEX_MINING_HISTORY_COLLECTION"), default=defaults.history_collection
            ),
            cooldown_hours=_parse_int(
                os.getenv("DIGILINEX_MINING_COOLDOWN_HOURS"), default=defaults.cooldown_hours, min_v=1, max_v=24 * 7
            ),
            grace_multiplier=_parse_int(
                os.getenv("DIGILINEX_MINING_GRACE_MULTIPLIER"), default=defaults.grace_multiplier, min_v=1, max_v=10
            ),
            base_inactive=MoneyDLX(Decimal(str(_parse_float(
                os.getenv("DIGILINEX_MINING_BASE_INACTIVE"), default=10.0, min_v=0.0, max_v=1_000_000.0
            )))),
            base_active=MoneyDLX(Decimal(str(_parse_float(
                os.getenv("DIGILINEX_MINING_BASE_ACTIVE"), default=15.0, min_v=0.0, max_v=1_000_000.0
            )))),
            streak_bonus=MoneyDLX(Decimal(str(_parse_float(
                os.getenv("DIGILINEX_MINING_STREAK_BONUS"), default=20.0, min_v=0.0, max_v=1_000_000.0
            )))),
            streak_bonus_every=_parse_int(
                os.getenv("DIGILINEX_MINING_STREAK_BONUS_EVERY"), default=defaults.streak_bonus_every, min_v=1, max_v=365
            ),
            max_commit_attempts=_parse_int(
                os.getenv("DIGILINEX_MINING_MAX_COMMIT_ATTEMPTS"), default=defaults.max_commit_attempts, min_v=1, max_v=10
            ),
            retry_backoff_s=_parse_float(
                os.getenv("DIGILINEX_MINING_RETRY_BACKOFF_S"), default=defaults.retry_backoff_s, min_v=0.0, max_v=5.0
            ),
            commit_timeout_s=_parse_float(
                os.getenv("DIGILINEX_MINING_COMMIT_TIMEOUT_S"), default=defaults.commit_timeout_s, min_v=0.5, max_v=120.0
            ),
            recent_window_days=_parse_int(
                os.getenv("DIGILINEX_MINING_RECENT_DAYS"), default=defaults.recent_window_days, min_v=1, max_v=365
            ),
            history_page_size=_parse_int(
                os.getenv("DIGILINEX_MINING_PAGE_SIZE"), default=defaults.history_page_size, min_v=0, max_v=500
            ),
        )
