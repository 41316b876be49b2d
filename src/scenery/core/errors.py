"""Exceptions raised by scenery."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from scenery.core.models import ScenarioResult, StepResult


class SceneryError(Exception):
    """Base class for scenery errors."""


class ScenarioConfigurationError(SceneryError):
    """A scenario was registered in a way that cannot be executed."""


class ScenarioFailedError(SceneryError, AssertionError):
    """A scenario run recorded at least one failure.

    Only the first failing step (by phase, then step order) is described in
    the message. The full report is available as ``report``.
    """

    def __init__(
        self,
        message: str,
        step: "StepResult",
        result: "ScenarioResult",
        report: Optional[str] = None,
        log_messages: Optional[list[str]] = None,
    ):
        super().__init__(message)
        self.step = step
        self.result = result
        self.report = report
        self.log_messages = log_messages or []
