"""scenery - Given/When/Then scenario runner for in-process aiohttp applications."""

__version__ = "0.1.0"

from scenery.core import (
    Action,
    Check,
    Scenario,
    ScenarioFailedError,
    ScenarioResult,
    StepResult,
    StepType,
    User,
)

__all__ = [
    "__version__",
    "Action",
    "Check",
    "Scenario",
    "ScenarioFailedError",
    "ScenarioResult",
    "StepResult",
    "StepType",
    "User",
]
