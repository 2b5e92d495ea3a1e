"""
Post-commit side-channel for write events.

The engine only hands events to a Notifier. Delivery (webhooks, chat
integrations, e-mail) belongs to whatever implementation is installed on
app.state.notifier.
"""
from __future__ import annotations

import logging
from typing import Any, Protocol

from fastapi import Request

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, action: str, entity: str, payload: dict[str, Any]) -> None: ...


class LoggingNotifier:
    def notify(self, action: str, entity: str, payload: dict[str, Any]) -> None:
        logger.info("event=%s entity=%s keys=%s", action, entity, sorted(payload))


def deliver(notifier: Notifier | None, action: str, entity: str, payload: dict[str, Any]) -> None:
    """The write is already committed; a failing notifier must not change the response."""
    if notifier is None:
        return
    try:
        notifier.notify(action, entity, payload)
    except Exception:
        logger.warning("Notifier failed event=%s entity=%s", action, entity, exc_info=True)


def get_notifier(request: Request) -> Notifier | None:
    return getattr(request.app.state, "notifier", None)
