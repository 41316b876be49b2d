"""Data models for scenario execution results."""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class StepType(str, Enum):
    """Scenario phase a step belongs to."""
    GIVEN = "Given"
    WHEN = "When"
    THEN = "Then"


class StepStatus(str, Enum):
    """Outcome of a step or assertion."""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


def describe_error(error: Optional[BaseException]) -> Optional[str]:
    """Format an exception with its traceback."""
    if error is None:
        return None
    return "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    ).rstrip()


@dataclass
class StepAssertion:
    """Result of one result action within a step."""
    index: int
    message: Optional[str]
    error: Optional[BaseException] = None
    attempted: bool = False

    @property
    def status(self) -> StepStatus:
        if self.error is not None:
            return StepStatus.FAILED
        return StepStatus.PASSED if self.attempted else StepStatus.SKIPPED

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "index": self.index,
            "message": self.message,
            "status": self.status.value,
            "error": repr(self.error) if self.error is not None else None,
        }


@dataclass
class StepResult:
    """Result of a single step execution."""
    step_index: int
    step_type: StepType
    message: Optional[str] = None
    error: Optional[BaseException] = None
    assertions: list[StepAssertion] = field(default_factory=list)
    executed: bool = False

    @property
    def has_failure(self) -> bool:
        return self.error is not None or any(
            a.error is not None for a in self.assertions
        )

    @property
    def status(self) -> StepStatus:
        if self.has_failure:
            return StepStatus.FAILED
        return StepStatus.PASSED if self.executed else StepStatus.SKIPPED

    @property
    def first_error(self) -> Optional[BaseException]:
        """The step's own error, or else the first failed assertion's."""
        if self.error is not None:
            return self.error
        for assertion in self.assertions:
            if assertion.error is not None:
                return assertion.error
        return None

    def error_description(self) -> Optional[str]:
        return describe_error(self.first_error)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "index": self.step_index,
            "type": self.step_type.value,
            "message": self.message,
            "status": self.status.value,
            "error": repr(self.error) if self.error is not None else None,
            "assertions": [a.to_dict() for a in self.assertions],
        }


@dataclass
class ScenarioResult:
    """Step results of one scenario run, grouped by phase."""
    name: str
    givens: list[StepResult] = field(default_factory=list)
    when: Optional[StepResult] = None
    thens: list[StepResult] = field(default_factory=list)
    log_messages: list[str] = field(default_factory=list)

    def steps(self) -> Iterator[StepResult]:
        """Iterate over all steps in phase order."""
        yield from self.givens
        if self.when is not None:
            yield self.when
        yield from self.thens

    def first_failure(self) -> Optional[StepResult]:
        """Return the first failed step, searching Givens, When, then Thens."""
        return next((step for step in self.steps() if step.has_failure), None)

    @property
    def total_steps(self) -> int:
        return sum(1 for _ in self.steps())

    @property
    def passed_count(self) -> int:
        return sum(1 for s in self.steps() if s.status == StepStatus.PASSED)

    @property
    def failed_count(self) -> int:
        return sum(1 for s in self.steps() if s.status == StepStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for s in self.steps() if s.status == StepStatus.SKIPPED)

    @property
    def passed(self) -> bool:
        return self.first_failure() is None

    def __str__(self) -> str:
        from scenery.core.report import render_scenario

        return render_scenario(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "status": (StepStatus.PASSED if self.passed else StepStatus.FAILED).value,
            "givens": [s.to_dict() for s in self.givens],
            "when": self.when.to_dict() if self.when is not None else None,
            "thens": [s.to_dict() for s in self.thens],
            "log_messages": list(self.log_messages),
            "summary": {
                "total_steps": self.total_steps,
                "passed": self.passed_count,
                "failed": self.failed_count,
                "skipped": self.skipped_count,
            },
        }
