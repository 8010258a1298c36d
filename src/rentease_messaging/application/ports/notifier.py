from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """User-visible feedback channel."""

    def success(self, text: str) -> None: ...

    def error(self, text: str) -> None: ...


class LoggingNotifier:
    """Default notifier for headless use."""

    def success(self, text: str) -> None:
        logger.info("%s", text)

    def error(self, text: str) -> None:
        logger.warning("%s", text)
