# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from digilinex_core.mining.clock import ClockSource, FixedClock, SystemClock
from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.facade import MiningFacade, build_facade
from digilinex_core.mining.ledger import ClaimRecord, build_self_claim_id
from digilinex_core.mining.notifications import (
    FallbackNotificationSink,
    LoggingNotificationSink,
    Notification,
    NotificationError,
    NotificationSink,
    RealtimeNotificationSink,
)
from digilinex_core.mining.policy import EligibilityPolicy, RewardPolicy, is_claimable
from digilinex_core.mining.services.claiming import (
    AccountNotFoundError,
    ClaimError,
    ClaimFailedError,
    ClaimLedger,
    ClaimStore,
    CooldownActiveError,
    StoreConflictError,
)
from digilinex_core.mining.services.history import HistoryPage, HistoryTotals, HistoryView
from digilinex_core.mining.adapters.memory import InMemoryClaimStore
from digilinex_core.mining.types import (
    AccountMiningState,
    ClaimOrigin,
    Eligibility,
    MiningState,
    MoneyDLX,
    Reward,
    Tier,
    format_countdown,
)

__all__ = [
    "ClockSource",
    "FixedClock",
    "SystemClock",
    "MiningConfig",
    "MiningFacade",
    "build_facade",
    "ClaimRecord",
    "build_self_claim_id",
    "Notification",
    "NotificationError",
    "NotificationSink",
    "RealtimeNotificationSink",
    "LoggingNotificationSink",
    "FallbackNotificationSink",
    "EligibilityPolicy",
    "RewardPolicy",
    "is_claimable",
    "ClaimLedger",
    "ClaimStore",
    "ClaimError",
    "CooldownActiveError",
    "AccountNotFoundError",
    "StoreConflictError",
    "ClaimFailedError",
    "HistoryView",
    "HistoryPage",
    "HistoryTotals",
    "InMemoryClaimStore",
    "AccountMiningState",
    "ClaimOrigin",
    "Eligibility",
    "MiningState",
    "MoneyDLX",
    "Reward",
    "Tier",
    "format_countdown",
]
