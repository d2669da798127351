"""
app/services/ports.py

Capabilities injected into the feed and detail view instead of being
reached through globals.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class NoticeLevel:
    INFO = "info"
    ERROR = "error"


class Notifier(Protocol):
    def notify(self, title: str, description: str, *, level: str = NoticeLevel.INFO) -> None:
        ...


class Clipboard(Protocol):
    def write_text(self, text: str) -> None:
        ...


class LoggingNotifier:
    """
    Notifier that writes notices to the application log.
    """

    def notify(self, title: str, description: str, *, level: str = NoticeLevel.INFO) -> None:
        log_level = logging.ERROR if level == NoticeLevel.ERROR else logging.INFO
        logger.log(log_level, "%s: %s", title, description)
