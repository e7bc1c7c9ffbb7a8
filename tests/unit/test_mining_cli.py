# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import json
from decimal import Decimal

import pytest

from digilinex_cli.mining_cmd import build_parser, run
from digilinex_core.mining.adapters.memory import InMemoryClaimStore
from digilinex_core.mining.clock import FixedClock
from digilinex_core.mining.facade import MiningFacade

NOW = "2025-01-01T00:00:00+00:00"


@pytest.fixture
def facade(mining_config, t0):
    store = InMemoryClaimStore()
    store.add_account("alice")
    return MiningFacade(store=store, config=mining_config, clock=FixedClock(t0))


async def _run(facade, *argv):
    return await run(build_parser().parse_args(list(argv)), facade)


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_rejects_bad_amount():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["credit", "alice", "lots", "--from", "carol"])


def test_parser_credit_args():
    args = build_parser().parse_args(["credit", "alice", "2.5", "--from", "carol", "--name", "Carol"])
    assert args.amount == Decimal("2.5")
    assert args.source_user_id == "carol"
    assert args.source_name == "Carol"


@pytest.mark.asyncio
async def test_claim_then_status(facade, capsys):
    assert await _run(facade, "--now", NOW, "claim", "alice") == 0
    assert "Claimed 10 DLX" in capsys.readouterr().out

    assert await _run(facade, "--json", "--now", "2025-01-01T06:00:00+00:00", "status", "alice") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["balance"] == "10"
    assert payload["countdown"] == "18:00:00"
    assert payload["claimable"] is False


@pytest.mark.asyncio
async def test_second_claim_reports_cooldown(facade, capsys):
    await _run(facade, "--now", NOW, "claim", "alice")
    capsys.readouterr()

    code = await _run(facade, "--now", "2025-01-01T20:00:00+00:00", "claim", "alice")

    assert code == 1
    assert "Next claim in 04:00:00." in capsys.readouterr().err


@pytest.mark.asyncio
async def test_unknown_account(facade, capsys):
    assert await _run(facade, "status", "nobody") == 1
    assert "Account not found." in capsys.readouterr().err


@pytest.mark.asyncio
async def test_credit_and_history(facade, capsys):
    assert await _run(facade, "--now", NOW, "credit", "alice", "3", "--from", "carol") == 0
    assert "Team credit 3 DLX from carol" in capsys.readouterr().out

    assert await _run(facade, "--json", "--now", NOW, "history", "alice") == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["recent"]) == 1
    assert payload["older"] == []


@pytest.mark.asyncio
async def test_non_positive_credit_rejected(facade, capsys):
    assert await _run(facade, "credit", "alice", "0", "--from", "carol") == 2
    assert "positive" in capsys.readouterr().err
