# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.


from datetime import datetime, timezone

import pytest

from digilinex_core.mining.adapters.memory import InMemoryClaimStore
from digilinex_core.mining.clock import FixedClock
from digilinex_core.mining.config import MiningConfig
from digilinex_core.mining.notifications import LoggingNotificationSink
from digilinex_core.mining.services.claiming import ClaimLedger
from digilinex_core.mining.services.history import HistoryView


@pytest.fixture
def t0():
    return datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def mining_config():
    # No real sleeping between conflict retries in tests.
    return MiningConfig(retry_backoff_s=0.0)


@pytest.fixture
def clock(t0):
    return FixedClock(t0)


@pytest.fixture
def store():
    store = InMemoryClaimStore()
    store.add_account("alice")
    return store


@pytest.fixture
def sink():
    return LoggingNotificationSink()


@pytest.fixture
def ledger(store, mining_config, clock, sink):
    return ClaimLedger(store, mining_config, clock=clock, sink=sink)


@pytest.fixture
def history(store, mining_config, clock):
    return HistoryView(store, mining_config, clock=clock)
