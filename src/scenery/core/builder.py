"""Fluent step registration.

    scenario.with_users(alice).given(create_post).when(publish).then(listed)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from scenery.core.actions import StepFactory
from scenery.core.users import User

if TYPE_CHECKING:
    from scenery.core.models import ScenarioResult
    from scenery.core.scenario import Scenario


class _Builder:
    def __init__(self, scenario: "Scenario"):
        self.scenario = scenario

    async def execute(self, name: str) -> "ScenarioResult":
        return await self.scenario.execute(name)

    def execute_sync(self, name: str) -> "ScenarioResult":
        return self.scenario.execute_sync(name)


class ThenBuilder(_Builder):
    """Registers postconditions."""

    def then(self, factory: StepFactory) -> "ThenBuilder":
        self.scenario.add_then(factory)
        return self


class WhenBuilder(_Builder):
    def when(self, factory: StepFactory) -> ThenBuilder:
        self.scenario.set_when(factory)
        return ThenBuilder(self.scenario)


class GivenBuilder(WhenBuilder):
    """Registers preconditions; the first ``when`` moves to the next phase."""

    def with_users(self, *users: User) -> "GivenBuilder":
        self.scenario.add_users(users)
        return self

    def given(self, factory: StepFactory) -> "GivenBuilder":
        self.scenario.add_given(factory)
        return self

    def givens(self, factories: Iterable[StepFactory]) -> "GivenBuilder":
        for factory in factories:
            self.scenario.add_given(factory)
        return self
