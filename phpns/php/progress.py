"""Progress reporting for move operations.

The orchestrators only talk to a `ProgressSink`; what an operator actually
sees (a terminal line, a log file, nothing) is up to the caller.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    def on_stage(self, label: str, detail: str) -> None: ...

    def on_fraction(self, fraction: float) -> None: ...

    def is_cancelled(self) -> bool: ...


class NullProgress:
    def on_stage(self, label: str, detail: str) -> None:
        pass

    def on_fraction(self, fraction: float) -> None:
        pass

    def is_cancelled(self) -> bool:
        return False


class LoggingProgress:
    """Writes stage transitions to the log. Never cancels."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def on_stage(self, label: str, detail: str) -> None:
        logger.log(self.level, f"{label} {detail}".rstrip())

    def on_fraction(self, fraction: float) -> None:
        logger.debug(f"Progress: {fraction:.0%}")

    def is_cancelled(self) -> bool:
        return False
