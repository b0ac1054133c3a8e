from __future__ import annotations

import logging
from typing import Protocol

from tasktree.domain.enums import Severity

logger = logging.getLogger(__name__)

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class Notifier(Protocol):
    def notify(self, message: str, severity: Severity = Severity.INFO) -> None: ...


class Interaction(Protocol):
    """Blocking questions the presentation layer can answer."""

    def confirm(self, message: str) -> bool: ...

    def prompt(self, message: str, default: str = "") -> str | None: ...


class LoggingNotifier:
    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        logger.log(_LEVELS.get(Severity(severity), logging.INFO), "%s", message)
