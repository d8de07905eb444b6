"""Fire-and-forget notification dispatch."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from calendar_engine.interfaces import Notifier

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Notifier that only records events in the log."""

    def send(self, event: str, payload: Mapping[str, Any]) -> None:
        logger.info("Notification %s: %s", event, dict(payload))


def dispatch_notification(notifier: Optional[Notifier], event: str, payload: Mapping[str, Any]) -> bool:
    """
    Send a notification without letting delivery failures reach the caller.

    Returns:
        True if the notifier accepted the event, False otherwise
    """
    if notifier is None:
        return False
    try:
        notifier.send(event, payload)
        return True
    except Exception:
        logger.exception("Notification '%s' failed; continuing", event)
        return False
