# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Mining CLI Commands

Commands:
- status <account>: Show balance, streak and the claim countdown
- claim <account>: Claim the daily reward
- history <account>: Recent and older claim records
- credit <account> <amount> --from <uid>: Record a team credit
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import NoReturn

from digilinex_core.config import DigilinexConfig
from digilinex_core.mining.adapters.memory import InMemoryClaimStore
from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.facade import MiningFacade, build_facade
from digilinex_core.mining.services.claiming import ClaimError
from digilinex_core.mining.types import ensure_utc


def _settings_from_env() -> DigilinexConfig:
    return DigilinexConfig(
        firebase_credentials_path=os.getenv("DIGILINEX_FIREBASE_CREDENTIALS") or None,
        firebase_project_id=os.getenv("DIGILINEX_FIREBASE_PROJECT") or None,
        firebase_database_url=os.getenv("DIGILINEX_FIREBASE_DATABASE_URL") or None,
        store_backend=os.getenv("DIGILINEX_STORE_BACKEND", "memory"),
    )


def _parse_now(raw: str | None) -> datetime | None:
    if not raw:
        return None
    return ensure_utc(datetime.fromisoformat(raw))


def _parse_amount(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid DLX amount: {raw!r}")


def _emit(args: argparse.Namespace, payload: dict, text: str) -> None:
    if args.json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(text)


def _prepare(facade: MiningFacade, account_id: str) -> None:
    # The in-memory backend starts empty; register the account being inspected.
    store = facade.ledger.store
    if isinstance(store, InMemoryClaimStore):
        store.add_account(account_id)


async def cmd_status(facade: MiningFacade, args: argparse.Namespace) -> int:
    state = await facade.get_state(args.account, _parse_now(args.now))
    label = "Ready to claim" if state.claimable else f"Next claim in {state.countdown()}"
    _emit(
        args,
        state.to_dict(),
        f"{state.account_id}: {state.balance.to_str()} DLX, streak {state.streak}, "
        f"tier {state.tier.value}. {label}",
    )
    return 0


async def cmd_claim(facade: MiningFacade, args: argparse.Namespace) -> int:
    record = await facade.claim(args.account, _parse_now(args.now))
    text = f"✓ Claimed {record.amount.to_str()} DLX"
    if record.has_bonus:
        text += f" (incl. +{record.bonus_amount.to_str()} streak bonus)"
    _emit(args, record.to_dict(), text)
    return 0


async def cmd_history(facade: MiningFacade, args: argparse.Namespace) -> int:
    page = await facade.list_history(
        args.account,
        _parse_now(args.now),
        recent_limit=args.limit,
        older_limit=args.limit,
    )
    lines = ["Recent:"]
    lines += [f"  {r.created_at.isoformat()}  +{r.amount.to_str()} DLX  ({r.origin.value})" for r in page.recent]
    if page.has_more_recent:
        lines.append("  ...")
    lines.append("Older:")
    lines += [f"  {r.created_at.isoformat()}  +{r.amount.to_str()} DLX  ({r.origin.value})" for r in page.older]
    if page.has_more_older:
        lines.append("  ...")
    _emit(args, page.to_dict(), "\n".join(lines))
    return 0


async def cmd_credit(facade: MiningFacade, args: argparse.Namespace) -> int:
    record = await facade.record_team_credit(
        args.account,
        args.amount,
        args.source_user_id,
        args.source_name,
        _parse_now(args.now),
    )
    _emit(args, record.to_dict(), f"✓ Team credit {record.amount.to_str()} DLX from {args.source_user_id}")
    return 0


_COMMANDS = {
    "status": cmd_status,
    "claim": cmd_claim,
    "history": cmd_history,
    "credit": cmd_credit,
}


async def run(args: argparse.Namespace, facade: MiningFacade | None = None) -> int:
    if facade is None:
        facade = build_facade(_settings_from_env(), MiningConfig.load_from_env())
        _prepare(facade, args.account)
    try:
        return await _COMMANDS[args.command](facade, args)
    except ClaimError as e:
        print(f"✗ {e.user_message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2
    finally:
        await facade.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="digilinex",
        description="DigiLinex mining ledger tools",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument("--now", help="Evaluate at this ISO-8601 time instead of the wall clock")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("status", help="Show mining state")
    p.add_argument("account", help="Account id (users/{uid})")

    p = subparsers.add_parser("claim", help="Claim the daily reward")
    p.add_argument("account", help="Account id")

    p = subparsers.add_parser("history", help="Show claim history")
    p.add_argument("account", help="Account id")
    p.add_argument("--limit", type=int, default=None, help="Items per bucket (0 = all)")

    p = subparsers.add_parser("credit", help="Record a team credit")
    p.add_argument("account", help="Receiving account id")
    p.add_argument("amount", type=_parse_amount, help="DLX amount")
    p.add_argument("--from", dest="source_user_id", required=True, help="Referred user id")
    p.add_argument("--name", dest="source_name", default=None, help="Referred user display name")

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(run(args)))
