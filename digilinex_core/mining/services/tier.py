# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Purchase-driven tier activation.

An account becomes `active` once it has at least one order. Tier only moves
inactive -> active; the claim ledger reads it and never writes it.
"""

from __future__ import annotations

import logging
from typing import Protocol

from digilinex_core.mining.services.claiming import AccountNotFoundError, ClaimStore
from digilinex_core.mining.types import Tier

logger = logging.getLogger(__name__)


class OrderLookup(Protocol):
    async def has_orders(self, account_id: str) -> bool:
        ...


class TierTracker:
    def __init__(self, store: ClaimStore, orders: OrderLookup) -> None:
        self.store = store
        self.orders = orders

    async def refresh(self, account_id: str) -> Tier:
        state = await self.store.read_account(account_id)
        if state is None:
            raise AccountNotFoundError(account_id)
        if state.tier == Tier.ACTIVE:
            return state.tier
        if not await self.orders.has_orders(account_id):
            return state.tier

        await self.store.set_tier(account_id, Tier.ACTIVE)
        logger.info("[Tier] %s activated by first order", account_id)
        return Tier.ACTIVE
