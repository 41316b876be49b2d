"""Action interfaces consumed by the scenario executor.

Steps are registered as factories returning a ``UserAction``. Concrete actions
come from outside the engine; ``Action`` and ``Check`` are small callable-backed
implementations for the common case.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, Union, runtime_checkable

MessageSource = Union[str, Callable[[], Optional[str]], None]
Effect = Callable[[], Union[Awaitable[Any], Any]]


@runtime_checkable
class ResultAction(Protocol):
    """A single check belonging to an action."""

    @property
    def message(self) -> Optional[str]: ...

    def verify(self) -> Union[Awaitable[None], None]: ...


@runtime_checkable
class UserAction(Protocol):
    """A unit of work performed by a step."""

    @property
    def message(self) -> Optional[str]: ...

    def execute(self) -> Union[Awaitable[None], None]: ...

    @property
    def result_actions(self) -> Sequence[ResultAction]: ...


StepFactory = Callable[[], UserAction]


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value


def _resolve_message(source: MessageSource) -> Optional[str]:
    if callable(source):
        return source()
    return source


@dataclass
class Check:
    """Result action backed by a callable.

    The callable may be sync or async and signals failure by raising.
    """
    description: MessageSource
    check: Effect

    @property
    def message(self) -> Optional[str]:
        return _resolve_message(self.description)

    async def verify(self) -> None:
        await maybe_await(self.check())


@dataclass
class Action:
    """User action backed by a callable.

    ``description`` may be a callable so the message can use data produced
    by earlier steps.
    """
    description: MessageSource
    effect: Optional[Effect] = None
    checks: list[ResultAction] = field(default_factory=list)

    @property
    def message(self) -> Optional[str]:
        return _resolve_message(self.description)

    @property
    def result_actions(self) -> list[ResultAction]:
        return self.checks

    async def execute(self) -> None:
        if self.effect is not None:
            await maybe_await(self.effect())

    def expect(self, description: MessageSource, check: Effect) -> "Action":
        """Append a check and return self for chaining."""
        self.checks.append(Check(description, check))
        return self
