# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Unit tests for EligibilityPolicy and RewardPolicy."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.policy import EligibilityPolicy, RewardPolicy, is_claimable
from digilinex_core.mining.types import MoneyDLX, Tier

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
DAY = timedelta(hours=24)


class TestEligibility:
    def test_never_claimed_is_claimable(self):
        result = is_claimable(None, T0, DAY)
        assert result.claimable is True
        assert result.remaining == timedelta(0)

    def test_just_claimed_has_full_cooldown(self):
        result = is_claimable(T0, T0, DAY)
        assert result.claimable is False
        assert result.remaining == DAY

    def test_partially_elapsed(self):
        result = is_claimable(T0, T0 + timedelta(hours=20), DAY)
        assert result.claimable is False
        assert result.remaining == timedelta(hours=4)

    def test_claimable_exactly_at_cooldown(self):
        result = is_claimable(T0, T0 + DAY, DAY)
        assert result.claimable is True
        assert result.remaining == timedelta(0)

    def test_remaining_never_negative(self):
        result = is_claimable(T0, T0 + 5 * DAY, DAY)
        assert result.claimable is True
        assert result.remaining == timedelta(0)

    def test_policy_uses_configured_cooldown(self):
        policy = EligibilityPolicy(timedelta(hours=6))
        assert policy.evaluate(T0, T0 + timedelta(hours=6)).claimable is True
        assert policy.evaluate(T0, T0 + timedelta(hours=5)).remaining == timedelta(hours=1)


class TestRewardPolicy:
    def _policy(self):
        return RewardPolicy.from_config(MiningConfig())

    def test_first_claim_inactive(self):
        reward = self._policy().compute_reward(0, None, T0, Tier.INACTIVE)
        assert reward.amount.value == Decimal("10")
        assert reward.new_streak == 1
        assert not reward.has_bonus

    def test_active_tier_gets_higher_base(self):
        reward = self._policy().compute_reward(0, None, T0, Tier.ACTIVE)
        assert reward.amount.value == Decimal("15")
        assert reward.base_amount.value == Decimal("15")

    def test_streak_continues_within_grace(self):
        reward = self._policy().compute_reward(3, T0, T0 + DAY, Tier.INACTIVE)
        assert reward.new_streak == 4

    def test_streak_continues_at_grace_boundary(self):
        reward = self._policy().compute_reward(3, T0, T0 + 2 * DAY, Tier.INACTIVE)
        assert reward.new_streak == 4

    def test_streak_resets_outside_grace(self):
        reward = self._policy().compute_reward(5, T0, T0 + 2 * DAY + timedelta(seconds=1), Tier.INACTIVE)
        assert reward.new_streak == 1

    def test_streak_resets_after_long_gap(self):
        reward = self._policy().compute_reward(5, T0, T0 + 10 * DAY, Tier.INACTIVE)
        assert reward.new_streak == 1

    @pytest.mark.parametrize("prev_streak", [6, 13, 20])
    def test_bonus_on_every_seventh_day(self, prev_streak):
        reward = self._policy().compute_reward(prev_streak, T0, T0 + DAY, Tier.INACTIVE)
        assert reward.new_streak % 7 == 0
        assert reward.bonus_amount.value == Decimal("20")
        assert reward.amount.value == Decimal("30")

    def test_no_bonus_on_eighth_day(self):
        reward = self._policy().compute_reward(7, T0, T0 + DAY, Tier.ACTIVE)
        assert reward.new_streak == 8
        assert reward.bonus_amount == MoneyDLX.zero()
        assert reward.amount.value == Decimal("15")

    def test_flat_scheme_ignores_tier_and_streak(self):
        policy = RewardPolicy.flat(MoneyDLX(Decimal("5")), grace_window=2 * DAY)
        inactive = policy.compute_reward(6, T0, T0 + DAY, Tier.INACTIVE)
        active = policy.compute_reward(6, T0, T0 + DAY, Tier.ACTIVE)
        assert inactive.amount.value == Decimal("5")
        assert active.amount.value == Decimal("5")
        assert inactive.new_streak == 7

    def test_grace_window_scales_with_cooldown(self):
        cfg = MiningConfig(cooldown_hours=12)
        policy = RewardPolicy.from_config(cfg)
        assert policy.grace_window == timedelta(hours=24)
        assert policy.compute_reward(2, T0, T0 + timedelta(hours=25), Tier.INACTIVE).new_streak == 1
