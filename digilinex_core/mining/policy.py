# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Claim eligibility and reward rules.

Both policies are pure: they read the values they are handed and never touch
the store or the wall clock. ClaimLedger applies their results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.types import Eligibility, MoneyDLX, Reward, Tier


def is_claimable(
    last_claim_at: Optional[datetime],
    now: datetime,
    cooldown: timedelta,
) -> Eligibility:
    if last_claim_at is None:
        return Eligibility(claimable=True, remaining=timedelta(0))
    remaining = max(timedelta(0), last_claim_at + cooldown - now)
    return Eligibility(claimable=remaining == timedelta(0), remaining=remaining)


class EligibilityPolicy:
    def __init__(self, cooldown: timedelta) -> None:
        self.cooldown = cooldown

    def evaluate(self, last_claim_at: Optional[datetime], now: datetime) -> Eligibility:
        return is_claimable(last_claim_at, now, self.cooldown)


@dataclass(frozen=True, slots=True)
class RewardPolicy:
    """
    Tiered base reward plus a streak bonus.

    Streak rule:
    - previous claim within grace_window of now -> prev_streak + 1
    - otherwise (or first claim) -> 1, the claim itself starts a fresh streak

    Bonus rule: every `bonus_every`-th streak day adds `streak_bonus` once.
    """

    base_inactive: MoneyDLX
    base_active: MoneyDLX
    streak_bonus: MoneyDLX
    bonus_every: int
    grace_window: timedelta

    @classmethod
    def from_config(cls, cfg: MiningConfig) -> "RewardPolicy":
        return cls(
            base_inactive=cfg.base_inactive,
            base_active=cfg.base_active,
            streak_bonus=cfg.streak_bonus,
            bonus_every=cfg.streak_bonus_every,
            grace_window=cfg.grace_window,
        )

    @classmethod
    def flat(cls, amount: MoneyDLX, *, grace_window: timedelta | None = None) -> "RewardPolicy":
        """Same amount for every claim: equal tier bases, no streak bonus."""
        if grace_window is None:
            grace_window = MiningConfig().grace_window
        return cls(
            base_inactive=amount,
            base_active=amount,
            streak_bonus=MoneyDLX.zero(),
            bonus_every=1,
            grace_window=grace_window,
        )

    def base_for(self, tier: Tier) -> MoneyDLX:
        return self.base_active if tier == Tier.ACTIVE else self.base_inactive

    def next_streak(
        self,
        prev_streak: int,
        prev_last_claim_at: Optional[datetime],
        now: datetime,
    ) -> int:
        if prev_last_claim_at is not None and now - prev_last_claim_at <= self.grace_window:
            return max(0, prev_streak) + 1
        return 1

    def compute_reward(
        self,
        prev_streak: int,
        prev_last_claim_at: Optional[datetime],
        now: datetime,
        tier: Tier,
    ) -> Reward:
        new_streak = self.next_streak(prev_streak, prev_last_claim_at, now)
        base = self.base_for(tier)
        bonus = MoneyDLX.zero()
        if new_streak > 0 and new_streak % self.bonus_every == 0:
            bonus = self.streak_bonus
        return Reward(
            amount=base + bonus,
            new_streak=new_streak,
            base_amount=base,
            bonus_amount=bonus,
        )
