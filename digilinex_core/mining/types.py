# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

DLX_PLACES = 6
DLX_QUANT = Decimal("0.000001")


# -----------------------------------------------------------------------------
# Money Helpers (Decimal-based, no floats)
# -----------------------------------------------------------------------------

def quantize_dlx(value: Decimal, rounding=ROUND_HALF_UP) -> Decimal:
    """Quantize a Decimal to DLX precision."""
    return value.quantize(DLX_QUANT, rounding=rounding)


def dlx_to_str(value: Decimal) -> str:
    """Convert Decimal to string, stripping unnecessary zeros."""
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(int(normalized))
    return format(normalized, "f")


def to_money_dlx(value: Decimal | float | int | str) -> Decimal:
    """Convert any numeric to Decimal."""
    return Decimal(str(value))


# -----------------------------------------------------------------------------
# MoneyDLX Dataclass (frozen, safe arithmetic)
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MoneyDLX:
    """Immutable DLX amount with automatic quantization."""
    value: Decimal

    def __post_init__(self):
        object.__setattr__(self, "value", quantize_dlx(to_money_dlx(self.value)))

    def __add__(self, other: "MoneyDLX") -> "MoneyDLX":
        return MoneyDLX(self.value + other.value)

    def __sub__(self, other: "MoneyDLX") -> "MoneyDLX":
        return MoneyDLX(self.value - other.value)

    def __mul__(self, factor: Decimal | int | float) -> "MoneyDLX":
        return MoneyDLX(self.value * Decimal(str(factor)))

    def __lt__(self, other: "MoneyDLX") -> bool:
        return self.value < other.value

    def __le__(self, other: "MoneyDLX") -> bool:
        return self.value <= other.value

    def __gt__(self, other: "MoneyDLX") -> bool:
        return self.value > other.value

    def __ge__(self, other: "MoneyDLX") -> bool:
        return self.value >= other.value

    def is_positive(self) -> bool:
        return self.value > 0

    def to_str(self) -> str:
        return dlx_to_str(self.value)

    def to_number(self) -> int | float:
        """Plain number for stores that only persist JSON numbers."""
        if self.value == self.value.to_integral_value():
            return int(self.value)
        return float(self.value)

    @classmethod
    def zero(cls) -> "MoneyDLX":
        return cls(Decimal("0"))

    @classmethod
    def of(cls, value: Decimal | float | int | str | None) -> "MoneyDLX":
        if value is None:
            return cls.zero()
        return cls(to_money_dlx(value))


# -----------------------------------------------------------------------------
# Time Helpers
# -----------------------------------------------------------------------------

def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_countdown(remaining: timedelta) -> str:
    """HH:MM:SS countdown; hours are not wrapped at 24."""
    total = max(0, int(remaining.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Tier(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"

    @classmethod
    def parse(cls, raw: object) -> "Tier":
        if isinstance(raw, Tier):
            return raw
        if str(raw or "").strip().lower() == cls.ACTIVE.value:
            return cls.ACTIVE
        return cls.INACTIVE


class ClaimOrigin(str, Enum):
    SELF = "self"
    TEAM = "team"


# -----------------------------------------------------------------------------
# Policy Results
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Eligibility:
    claimable: bool
    remaining: timedelta


@dataclass(frozen=True, slots=True)
class Reward:
    amount: MoneyDLX
    new_streak: int
    base_amount: MoneyDLX
    bonus_amount: MoneyDLX

    @property
    def has_bonus(self) -> bool:
        return self.bonus_amount.is_positive()


# -----------------------------------------------------------------------------
# Account Mining State (persisted fields)
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AccountMiningState:
    """Mining fields of one account, as stored."""
    account_id: str
    last_claim_at: Optional[datetime] = None
    balance: MoneyDLX = MoneyDLX(Decimal("0"))
    streak: int = 0
    tier: Tier = Tier.INACTIVE

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "last_claim_at": self.last_claim_at.isoformat() if self.last_claim_at else None,
            "balance": self.balance.to_str(),
            "streak": self.streak,
            "tier": self.tier.value,
        }


# -----------------------------------------------------------------------------
# Mining State (read projection)
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MiningState:
    """What the dashboard renders: stored fields plus the evaluated timer."""
    account_id: str
    last_claim_at: Optional[datetime]
    balance: MoneyDLX
    streak: int
    tier: Tier
    claimable: bool
    remaining: timedelta
    cooldown: timedelta
    evaluated_at: datetime

    @property
    def next_claim_at(self) -> Optional[datetime]:
        if self.last_claim_at is None:
            return None
        return self.last_claim_at + self.cooldown

    @property
    def progress_pct(self) -> int:
        """Share of the cooldown already elapsed, 0..100."""
        if self.last_claim_at is None:
            return 0
        elapsed = (self.evaluated_at - self.last_claim_at) / self.cooldown
        return max(0, min(100, int(elapsed * 100)))

    def countdown(self) -> str:
        return format_countdown(self.remaining)

    def at(self, now: datetime) -> "MiningState":
        """Re-evaluate the timer locally, without another store read."""
        now = ensure_utc(now)
        if self.last_claim_at is None:
            return replace(self, claimable=True, remaining=timedelta(0), evaluated_at=now)
        remaining = max(timedelta(0), self.last_claim_at + self.cooldown - now)
        return replace(self, claimable=remaining == timedelta(0), remaining=remaining, evaluated_at=now)

    def to_dict(self) -> dict:
        next_at = self.next_claim_at
        return {
            "account_id": self.account_id,
            "last_claim_at": self.last_claim_at.isoformat() if self.last_claim_at else None,
            "balance": self.balance.to_str(),
            "streak": self.streak,
            "tier": self.tier.value,
            "claimable": self.claimable,
            "seconds_remaining": int(self.remaining.total_seconds()),
            "countdown": self.countdown(),
            "next_claim_at": next_at.isoformat() if next_at else None,
            "progress_pct": self.progress_pct,
        }
