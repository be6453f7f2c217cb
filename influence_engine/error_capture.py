"""
Error-capture collaborators.

Import failures are not raised to callers; they are handed to an
ErrorCapture with context tags (component, migration step) and the caller
gets a null result it can render as a recoverable state.

Usage:
    from influence_engine.error_capture import RecordingErrorCapture

    capture = RecordingErrorCapture()
    graph = import_snapshot(raw, error_capture=capture)
    if graph is None:
        print(capture.events[-1].message)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CapturedError:
    """One reported failure with its context tags."""

    error_type: str
    message: str
    tags: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


class ErrorCapture(ABC):
    """Sink for failures the engine reports instead of raising."""

    @abstractmethod
    def capture(
        self,
        error: BaseException,
        tags: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Record an error with context tags."""
        ...


class LoggingErrorCapture(ErrorCapture):
    """Default capture: writes the failure to the module logger."""

    def capture(
        self,
        error: BaseException,
        tags: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        tag_text = " ".join(f"{k}={v}" for k, v in sorted((tags or {}).items()))
        logger.error("%s: %s [%s]", type(error).__name__, error, tag_text)


class RecordingErrorCapture(ErrorCapture):
    """Keeps captured failures in memory."""

    def __init__(self):
        self.events: list[CapturedError] = []

    def capture(
        self,
        error: BaseException,
        tags: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.events.append(
            CapturedError(
                error_type=type(error).__name__,
                message=str(error),
                tags=dict(tags or {}),
                extra=dict(extra or {}),
            )
        )

    def clear(self) -> None:
        self.events.clear()


_default_capture: ErrorCapture = LoggingErrorCapture()


def get_error_capture() -> ErrorCapture:
    """Get the process-wide default capture."""
    return _default_capture


def set_error_capture(capture: ErrorCapture) -> None:
    """Replace the process-wide default capture."""
    global _default_capture
    _default_capture = capture
