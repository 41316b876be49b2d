"""Scenario executor - runs Given/When/Then steps and reports the outcome."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from rich.console import Console

from scenery.config.schema import SceneryConfig
from scenery.core.actions import StepFactory, maybe_await
from scenery.core.builder import GivenBuilder
from scenery.core.errors import ScenarioConfigurationError, ScenarioFailedError
from scenery.core.models import ScenarioResult, StepAssertion, StepResult, StepType
from scenery.core.report import ReportRenderer
from scenery.core.trace import TraceCapture
from scenery.core.transport import ClientFactory, Pipeline
from scenery.core.users import User

logger = logging.getLogger(__name__)

TRACE_FORMAT = "%(levelname)s %(name)s: %(message)s"


class _RunState:
    """Failure latch for a single ``execute`` call."""

    def __init__(self) -> None:
        self.failure_occurred = False


class Scenario:
    """A Given/When/Then scenario against an in-process application.

    Steps are registered as factories and invoked when the scenario runs.
    Once any step or assertion fails, later effects and assertions are
    skipped but every step is still recorded in the report.

    Handles:
    - Binding each user to its own client before the first step
    - Sequential step execution with failure short-circuiting
    - Report rendering and a single aggregate failure
    """

    def __init__(
        self,
        pipeline: Optional[Pipeline] = None,
        config: Optional[SceneryConfig] = None,
        trace: Optional[TraceCapture] = None,
        console: Optional[Console] = None,
    ):
        self.pipeline = pipeline
        self.config = config or SceneryConfig()
        self.trace = trace
        self._console_injected = console is not None
        self.console = console or Console(stderr=self.config.report.stream == "stderr")
        self.renderer = ReportRenderer(self.config.report)

        self._users: list[User] = []
        self._givens: list[StepFactory] = []
        self._when: Optional[StepFactory] = None
        self._thens: list[StepFactory] = []

    def configure(self, config: SceneryConfig) -> None:
        """Replace the configuration used by subsequent runs.

        A console passed to the constructor is kept.
        """
        self.config = config
        self.renderer = ReportRenderer(config.report)
        if not self._console_injected:
            self.console = Console(stderr=config.report.stream == "stderr")

    # Registration

    def with_users(self, *users: User) -> GivenBuilder:
        self.add_users(users)
        return GivenBuilder(self)

    def add_users(self, users: Iterable[User]) -> None:
        self._users.extend(users)

    def add_given(self, factory: StepFactory) -> None:
        self._givens.append(factory)

    def set_when(self, factory: StepFactory) -> None:
        if self._when is not None:
            raise ScenarioConfigurationError("A scenario can only have one When step")
        self._when = factory

    def add_then(self, factory: StepFactory) -> None:
        self._thens.append(factory)

    @property
    def users(self) -> list[User]:
        return list(self._users)

    # Execution

    async def execute(self, scenario_name: str) -> ScenarioResult:
        """Run all steps and raise ScenarioFailedError if any failed.

        Args:
            scenario_name: Name shown in the report header

        Returns:
            ScenarioResult when every step and assertion passed
        """
        logger.info(f"Running scenario: {scenario_name}")

        result = ScenarioResult(name=scenario_name)
        state = _RunState()
        trace = self.setup_trace()
        clients = ClientFactory(self.pipeline, self.config.transport)

        try:
            await self._initialize_users(clients)

            index = 1
            for given in self._givens:
                result.givens.append(
                    await self._execute_step(given, StepType.GIVEN, index, state)
                )
                index += 1
            if self._when is not None:
                result.when = await self._execute_step(
                    self._when, StepType.WHEN, index, state
                )
                index += 1
            for then in self._thens:
                result.thens.append(
                    await self._execute_step(then, StepType.THEN, index, state)
                )
                index += 1
        finally:
            if trace is not None:
                trace.detach()
                result.log_messages = trace.messages
            await clients.close()

        first_failure = result.first_failure()
        report = self.renderer.render(result)

        summary = None
        if first_failure is not None:
            summary = self.renderer.failure_summary(first_failure)
            logger.error(
                f"Scenario '{scenario_name}' failed at "
                f"{first_failure.step_type.value} {first_failure.step_index}"
            )
        self._emit(report, summary)

        if first_failure is not None:
            raise ScenarioFailedError(
                summary,
                step=first_failure,
                result=result,
                report=report,
                log_messages=result.log_messages,
            ) from first_failure.first_error

        return result

    def execute_sync(self, scenario_name: str) -> ScenarioResult:
        """Synchronous execute."""
        return asyncio.run(self.execute(scenario_name))

    def setup_trace(self) -> Optional[TraceCapture]:
        """Attach the capture used for this run.

        An injected capture is reused as-is; otherwise a fresh one is created
        per run when tracing is enabled.
        """
        trace_config = self.config.trace
        trace = self.trace
        if trace is None:
            if not trace_config.enabled:
                return None
            trace = TraceCapture(
                level=logging.getLevelName(trace_config.level),
                strip_prefix=None if trace_config.strip_executable_prefix else "",
            )
            trace.setFormatter(logging.Formatter(TRACE_FORMAT))

        trace.attach(logging.getLogger(trace_config.logger or None))
        return trace

    async def _initialize_users(self, clients: ClientFactory) -> None:
        if not self._users:
            return

        await clients.start()

        async def initialize(user: User) -> None:
            client = await clients.create_client()
            await maybe_await(user.initialize(client))

        if self.config.transport.concurrent_user_setup:
            outcomes = await asyncio.gather(
                *(initialize(user) for user in self._users), return_exceptions=True
            )
            errors = [o for o in outcomes if isinstance(o, BaseException)]
            if errors:
                raise errors[0]
        else:
            for user in self._users:
                await initialize(user)

    async def _execute_step(
        self,
        factory: StepFactory,
        step_type: StepType,
        index: int,
        state: _RunState,
    ) -> StepResult:
        """Run one step. Failures are recorded on the result, never raised."""
        result = StepResult(step_index=index, step_type=step_type)

        try:
            action = factory()
            message = action.message
        except Exception as e:
            logger.debug(f"{step_type.value} {index} could not be created: {e!r}")
            result.error = e
            state.failure_occurred = True
            return result

        result.message = None if message is None else str(message)
        logger.debug(f"{step_type.value} {index}: {result.message}")

        if not state.failure_occurred:
            result.executed = True
            try:
                await maybe_await(action.execute())
            except Exception as e:
                logger.debug(f"{step_type.value} {index} failed: {e!r}")
                result.error = e
                state.failure_occurred = True

        try:
            result_actions = list(action.result_actions)
        except Exception as e:
            # Skipped steps may only know their checks after executing
            logger.debug(f"{step_type.value} {index} checks could not be read: {e!r}")
            if result.executed and result.error is None:
                result.error = e
                state.failure_occurred = True
            return result

        for assertion_index, result_action in enumerate(result_actions, start=1):
            assertion = StepAssertion(index=assertion_index, message=None)
            result.assertions.append(assertion)
            try:
                text = result_action.message
                assertion.message = None if text is None else str(text)
                if not state.failure_occurred:
                    assertion.attempted = True
                    await maybe_await(result_action.verify())
            except Exception as e:
                logger.debug(f"{step_type.value} {index}.{assertion_index} failed: {e!r}")
                assertion.error = e
                state.failure_occurred = True

        return result

    def _emit(self, report: str, summary: Optional[str]) -> None:
        if not self.config.report.enabled:
            return
        if summary is not None:
            self.console.out("**FAILURE *************************************", highlight=False)
            self.console.out(summary, highlight=False, end="")
        self.console.out(report, highlight=False, end="")
