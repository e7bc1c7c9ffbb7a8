# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
import hashlib
import uuid

from digilinex_core import CLAIM_SCHEMA_VERSION
from digilinex_core.mining.types import ClaimOrigin, MoneyDLX, ensure_utc


@dataclass(frozen=True, slots=True)
class ClaimRecord:
    """One append-only entry of an account's mining history."""

    id: str
    account_id: str
    amount: MoneyDLX
    origin: ClaimOrigin
    created_at: datetime

    # Team credits only
    source_user_id: Optional[str] = None
    source_name: Optional[str] = None

    # Self claims only: how the amount was made up
    base_amount: Optional[MoneyDLX] = None
    bonus_amount: Optional[MoneyDLX] = None
    streak: Optional[int] = None

    def __post_init__(self):
        if not self.amount.is_positive():
            raise ValueError("Claim record amount must be positive.")
        if self.origin == ClaimOrigin.TEAM and not self.source_user_id:
            raise ValueError("Team credit requires source_user_id.")

    @property
    def has_bonus(self) -> bool:
        return self.bonus_amount is not None and self.bonus_amount.is_positive()

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "account_id": self.account_id,
            "amount": self.amount.to_str(),
            "origin": self.origin.value,
            "created_at": self.created_at.isoformat(),
        }
        if self.origin == ClaimOrigin.TEAM:
            d["source_user_id"] = self.source_user_id
            d["source_name"] = self.source_name
        else:
            if self.base_amount is not None:
                d["base_amount"] = self.base_amount.to_str()
            if self.bonus_amount is not None:
                d["bonus_amount"] = self.bonus_amount.to_str()
            if self.streak is not None:
                d["streak"] = self.streak
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClaimRecord":
        created = data.get("created_at")
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        if not isinstance(created, datetime):
            raise ValueError("Claim record without created_at.")

        base = data.get("base_amount")
        bonus = data.get("bonus_amount")
        streak = data.get("streak")
        return cls(
            id=data["id"],
            account_id=data["account_id"],
            amount=MoneyDLX.of(data.get("amount")),
            origin=ClaimOrigin(data.get("origin", ClaimOrigin.SELF.value)),
            created_at=ensure_utc(created),
            source_user_id=data.get("source_user_id"),
            source_name=data.get("source_name"),
            base_amount=MoneyDLX.of(base) if base is not None else None,
            bonus_amount=MoneyDLX.of(bonus) if bonus is not None else None,
            streak=int(streak) if streak is not None else None,
        )


def build_self_claim_id(account_id: str, created_at: datetime) -> str:
    """
    Stable id for a self claim.
    Format: sha256({account_id}:{created_at iso}:self:{schema})

    At most one self claim can commit per account per timestamp, so the id is
    unique, and a caller that lost the commit acknowledgment can look it up.
    """
    raw = f"{account_id}:{ensure_utc(created_at).isoformat()}:self:{CLAIM_SCHEMA_VERSION}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def build_team_credit_id() -> str:
    return uuid.uuid4().hex
