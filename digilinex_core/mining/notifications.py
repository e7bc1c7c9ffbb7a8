# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Claim outcome notifications.

Sinks are fire-and-forget from the ledger's point of view: a failing sink is
logged and never fails or rolls back a claim. The realtime sink writes the same
`notifications/users/{uid}/{id}` documents the dashboard bell listens to.
"""

from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Protocol, Tuple, runtime_checkable

logger = logging.getLogger(__name__)

KIND_CLAIM = "claim"
KIND_ERROR = "error"

_ROUTES = {
    KIND_CLAIM: "/mining",
    KIND_ERROR: "/mining",
}

_ID_ALPHABET = string.digits + string.ascii_lowercase


class NotificationError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class Notification:
    kind: str
    message: str
    route: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def resolved_route(self) -> Optional[str]:
        return self.route or _ROUTES.get(self.kind)


@runtime_checkable
class NotificationSink(Protocol):
    async def notify(self, account_id: str, notification: Notification) -> None:
        ...


def build_notification_id(now_ms: int | None = None) -> str:
    """n_<epoch ms>_<6 base36 chars>"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"n_{now_ms}_{suffix}"


class RealtimeNotificationSink:
    """Writes notifications into the Firebase Realtime Database."""

    def __init__(self, root: Any, *, path: str = "notifications/users") -> None:
        # root: firebase_admin.db.Reference (db.reference("/"))
        self._root = root
        self._path = path.strip("/")

    def _payload(self, notification: Notification) -> Tuple[str, dict]:
        now_ms = int(time.time() * 1000)
        nid = build_notification_id(now_ms)
        return nid, {
            "id": nid,
            "type": notification.kind,
            "message": notification.message,
            "createdAt": now_ms,
            "read": False,
            "route": notification.resolved_route(),
            "meta": dict(notification.meta),
        }

    async def notify(self, account_id: str, notification: Notification) -> None:
        nid, payload = self._payload(notification)
        ref = self._root.child(f"{self._path}/{account_id}/{nid}")
        try:
            # firebase_admin.db is blocking
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, ref.set, payload)
        except Exception as exc:
            raise NotificationError(f"Realtime notification write failed: {exc}") from exc


class LoggingNotificationSink:
    """Local fallback: logs and keeps the most recent notifications."""

    def __init__(self, *, buffer_size: int = 100) -> None:
        self._buffer: Deque[Tuple[str, Notification]] = deque(maxlen=buffer_size)

    @property
    def delivered(self) -> List[Tuple[str, Notification]]:
        return list(self._buffer)

    async def notify(self, account_id: str, notification: Notification) -> None:
        self._buffer.append((account_id, notification))
        logger.info(
            "[Notify] %s -> %s: %s",
            notification.kind,
            account_id,
            notification.message,
        )


class FallbackNotificationSink:
    """Primary sink with a local fallback when the primary fails."""

    def __init__(self, primary: NotificationSink, fallback: NotificationSink) -> None:
        self.primary = primary
        self.fallback = fallback

    async def notify(self, account_id: str, notification: Notification) -> None:
        try:
            await self.primary.notify(account_id, notification)
        except Exception as exc:
            logger.warning("[Notify] primary sink failed for %s: %s. Using fallback.", account_id, exc)
            await self.fallback.notify(account_id, notification)
