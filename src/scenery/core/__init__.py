"""Scenario execution core for scenery."""

from scenery.core.actions import Action, Check, ResultAction, StepFactory, UserAction
from scenery.core.builder import GivenBuilder, ThenBuilder, WhenBuilder
from scenery.core.errors import ScenarioConfigurationError, ScenarioFailedError, SceneryError
from scenery.core.models import (
    ScenarioResult,
    StepAssertion,
    StepResult,
    StepStatus,
    StepType,
)
from scenery.core.report import ReportRenderer, render_scenario
from scenery.core.scenario import Scenario
from scenery.core.trace import TraceCapture
from scenery.core.transport import ClientFactory, build_application, not_found_application
from scenery.core.users import User

__all__ = [
    # Actions
    "Action",
    "Check",
    "ResultAction",
    "StepFactory",
    "UserAction",
    # Models
    "ScenarioResult",
    "StepAssertion",
    "StepResult",
    "StepStatus",
    "StepType",
    # Execution
    "Scenario",
    "GivenBuilder",
    "WhenBuilder",
    "ThenBuilder",
    "User",
    "ClientFactory",
    "build_application",
    "not_found_application",
    # Reporting
    "ReportRenderer",
    "render_scenario",
    "TraceCapture",
    # Errors
    "SceneryError",
    "ScenarioConfigurationError",
    "ScenarioFailedError",
]
