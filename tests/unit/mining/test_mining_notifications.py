# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from digilinex_core.mining.notifications import (
    KIND_CLAIM,
    KIND_ERROR,
    FallbackNotificationSink,
    LoggingNotificationSink,
    Notification,
    NotificationError,
    RealtimeNotificationSink,
    build_notification_id,
)


def test_notification_id_format():
    nid = build_notification_id(1735689600000)
    assert re.fullmatch(r"n_1735689600000_[0-9a-z]{6}", nid)


def test_route_defaults_by_kind():
    assert Notification(KIND_CLAIM, "ok").resolved_route() == "/mining"
    assert Notification(KIND_ERROR, "no").resolved_route() == "/mining"
    assert Notification("other", "x").resolved_route() is None
    assert Notification(KIND_CLAIM, "ok", route="/wallet").resolved_route() == "/wallet"


class TestRealtimeSink:
    @pytest.mark.asyncio
    async def test_writes_under_user_path(self):
        root = MagicMock()
        ref = root.child.return_value
        sink = RealtimeNotificationSink(root, path="/notifications/users/")

        await sink.notify("alice", Notification(KIND_CLAIM, "Claimed 10 DLX", meta={"amount": "10"}))

        path = root.child.call_args[0][0]
        assert path.startswith("notifications/users/alice/n_")
        payload = ref.set.call_args[0][0]
        assert payload["type"] == "claim"
        assert payload["message"] == "Claimed 10 DLX"
        assert payload["read"] is False
        assert payload["route"] == "/mining"
        assert payload["meta"] == {"amount": "10"}
        assert path.endswith(payload["id"])

    @pytest.mark.asyncio
    async def test_wraps_write_errors(self):
        root = MagicMock()
        root.child.return_value.set.side_effect = ConnectionError("offline")
        sink = RealtimeNotificationSink(root)

        with pytest.raises(NotificationError, match="offline"):
            await sink.notify("alice", Notification(KIND_ERROR, "boom"))


class TestLocalSinks:
    @pytest.mark.asyncio
    async def test_logging_sink_keeps_recent(self):
        sink = LoggingNotificationSink(buffer_size=2)
        for i in range(3):
            await sink.notify("alice", Notification(KIND_CLAIM, f"m{i}"))

        assert [n.message for _, n in sink.delivered] == ["m1", "m2"]

    @pytest.mark.asyncio
    async def test_fallback_used_when_primary_fails(self):
        primary = AsyncMock()
        primary.notify.side_effect = NotificationError("down")
        fallback = LoggingNotificationSink()
        sink = FallbackNotificationSink(primary, fallback)

        await sink.notify("alice", Notification(KIND_CLAIM, "hi"))

        assert fallback.delivered[0][0] == "alice"

    @pytest.mark.asyncio
    async def test_fallback_unused_when_primary_succeeds(self):
        primary = LoggingNotificationSink()
        fallback = LoggingNotificationSink()

        await FallbackNotificationSink(primary, fallback).notify("alice", Notification(KIND_CLAIM, "hi"))

        assert len(primary.delivered) == 1
        assert fallback.delivered == []
