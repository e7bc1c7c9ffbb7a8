# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from digilinex_core.mining.services.claiming import (
    AccountNotFoundError,
    ClaimError,
    ClaimFailedError,
    ClaimLedger,
    ClaimStore,
    CooldownActiveError,
    StoreConflictError,
)
from digilinex_core.mining.services.history import (
    HistoryPage,
    HistoryTotals,
    HistoryView,
)
from digilinex_core.mining.services.tier import (
    OrderLookup,
    TierTracker,
)

__all__ = [
    # Claims
    "ClaimLedger",
    "ClaimStore",
    "ClaimError",
    "CooldownActiveError",
    "AccountNotFoundError",
    "StoreConflictError",
    "ClaimFailedError",
    # History
    "HistoryView",
    "HistoryPage",
    "HistoryTotals",
    # Tier
    "TierTracker",
    "OrderLookup",
]
