"""Tests for scenario execution."""

import asyncio
import logging

import pytest

from scenery.core.actions import Action, Check
from scenery.core.errors import ScenarioConfigurationError, ScenarioFailedError
from scenery.core.models import StepStatus, StepType
from scenery.core.users import User

from helpers import Spy, action


def failure_markers(report):
    return [line for line in report.splitlines() if "*** Failure in" in line or "***Failed" in line]


def test_passing_scenario_returns_result(make_scenario, output):
    """A scenario without failures completes and reports no failure markers."""
    effect = Spy()
    check = Spy()
    scenario = make_scenario()
    scenario.add_given(action("a user exists", effect, ("user is stored", check)))
    scenario.set_when(action("the user logs in", effect))
    scenario.add_then(action("the dashboard is shown", None, ("title is Dashboard", check)))

    result = scenario.execute_sync("login")

    assert result.passed
    assert effect.calls == 2
    assert check.calls == 2
    assert all(s.status == StepStatus.PASSED for s in result.steps())
    report = output.file.getvalue()
    assert "Scenario: login" in report
    assert failure_markers(report) == []


def test_step_indices_are_global(make_scenario):
    """Indices run 1..6 across 3 Givens, 1 When and 2 Thens."""
    scenario = make_scenario()
    for i in range(3):
        scenario.add_given(action(f"given {i}"))
    scenario.set_when(action("when"))
    scenario.add_then(action("then a"))
    scenario.add_then(action("then b"))

    result = scenario.execute_sync("indices")

    assert [s.step_index for s in result.steps()] == [1, 2, 3, 4, 5, 6]
    assert [s.step_type for s in result.steps()] == [StepType.GIVEN] * 3 + [StepType.WHEN] + [StepType.THEN] * 2


def test_failing_when_skips_later_steps(make_scenario, output):
    """A failing When is reported as the first failure; the Then is listed but not run."""
    then_effect = Spy()
    then_check = Spy()
    scenario = make_scenario()
    scenario.add_given(action("a user exists"))
    scenario.add_given(action("the user is logged in"))
    scenario.set_when(action("the user publishes", Spy(RuntimeError("boom"))))
    scenario.add_then(action("the post is listed", then_effect, ("post appears in feed", then_check)))

    with pytest.raises(ScenarioFailedError) as excinfo:
        scenario.execute_sync("publish")

    error = excinfo.value
    assert error.step.step_type == StepType.WHEN
    assert error.step.step_index == 3
    assert "When 3 - the user publishes" in str(error)
    assert "RuntimeError: boom" in str(error)
    assert isinstance(error.__cause__, RuntimeError)

    assert then_effect.calls == 0
    assert then_check.calls == 0
    then = error.result.thens[0]
    assert then.message == "the post is listed"
    assert not then.has_failure
    assert then.status == StepStatus.SKIPPED
    assert [a.status for a in then.assertions] == [StepStatus.SKIPPED]

    report = error.report
    assert "....Given 1 - a user exists\n" in report
    assert "....Given 2 - the user is logged in\n" in report
    assert "....*** Failure in: When 3 - the user publishes\n....See exception details below\n" in report
    assert "....Then 4 - the post is listed\n....Assertions:\n........Then 4.1 - post appears in feed\n" in report
    assert report in output.file.getvalue()


def test_first_failing_given_wins_over_later_failures(make_scenario):
    """The raised failure names the Given even when a Then also fails."""

    def broken_then():
        raise ValueError("then factory broke")

    scenario = make_scenario()
    scenario.add_given(action("ok"))
    scenario.add_given(action("fails", Spy(RuntimeError("given failed"))))
    scenario.add_then(broken_then)

    with pytest.raises(ScenarioFailedError) as excinfo:
        scenario.execute_sync("first failure")

    error = excinfo.value
    assert error.step.step_type == StepType.GIVEN
    assert error.step.step_index == 2
    assert "then factory broke" not in str(error)
    # Later failures are still in the full report
    assert "*** Failure in: Then 3 - <none>" in error.report


def test_failing_assertion_skips_siblings(make_scenario):
    """Assertion B fails, so C is recorded without being attempted."""
    a, b, c = Spy(), Spy(AssertionError("B is wrong")), Spy()
    scenario = make_scenario()
    scenario.set_when(action("check everything", None, ("A", a), ("B", b), ("C", c)))

    with pytest.raises(ScenarioFailedError) as excinfo:
        scenario.execute_sync("assertions")

    step = excinfo.value.step
    assert step.error is None
    assert step.has_failure
    assert [x.calls for x in (a, b, c)] == [1, 1, 0]
    assert [x.status for x in step.assertions] == [
        StepStatus.PASSED,
        StepStatus.FAILED,
        StepStatus.SKIPPED,
    ]
    assert step.assertions[2].message == "C"
    assert "........***Failed: When 1.2 - B\n" in excinfo.value.report
    assert "See exception details below" not in excinfo.value.report


def test_factory_failure_records_no_message(make_scenario):
    """A factory that raises leaves the step without message or assertions."""

    def factory():
        raise KeyError("missing")

    later = Spy()
    scenario = make_scenario()
    scenario.add_given(factory)
    scenario.add_then(action("later", later))

    with pytest.raises(ScenarioFailedError) as excinfo:
        scenario.execute_sync("factory")

    step = excinfo.value.step
    assert step.message is None
    assert step.assertions == []
    assert isinstance(step.error, KeyError)
    assert later.calls == 0


def test_execution_failure_keeps_message_and_lists_assertions(make_scenario):
    check = Spy()
    scenario = make_scenario()
    scenario.add_given(action("create order", Spy(RuntimeError("db down")), ("order saved", check)))

    with pytest.raises(ScenarioFailedError) as excinfo:
        scenario.execute_sync("execution")

    step = excinfo.value.step
    assert step.message == "create order"
    assert step.executed
    assert check.calls == 0
    assert step.assertions[0].status == StepStatus.SKIPPED


def test_messages_are_evaluated_at_run_time(make_scenario):
    """A lazy message can use data produced by an earlier step."""
    state = {}

    def create():
        state["id"] = 42

    scenario = make_scenario()
    scenario.add_given(action("create item", create))
    scenario.set_when(lambda: Action(f"open item {state['id']}"))
    scenario.add_then(lambda: Action(lambda: f"item {state['id']} is shown"))

    result = scenario.execute_sync("lazy")

    assert result.when.message == "open item 42"
    assert result.thens[0].message == "item 42 is shown"


def test_async_effects_are_awaited_in_order(make_scenario):
    events = []

    async def slow():
        await asyncio.sleep(0.01)
        events.append("given")

    async def fast_check():
        events.append("check")

    scenario = make_scenario()
    scenario.add_given(lambda: Action("slow setup", slow))
    scenario.set_when(lambda: Action("act", lambda: events.append("when"), [Check("checked", fast_check)]))

    scenario.execute_sync("async")

    assert events == ["given", "when", "check"]


def test_empty_scenario_reports_header_only(make_scenario, output):
    scenario = make_scenario()

    result = scenario.execute_sync("empty")

    assert result.total_steps == 0
    assert result.when is None
    separator = "*" * 47
    assert str(result) == f"{separator}\nScenario: empty\n{separator}\n"
    assert output.file.getvalue().strip() == str(result).strip()


def test_only_one_when_allowed(make_scenario):
    scenario = make_scenario()
    scenario.set_when(action("first"))

    with pytest.raises(ScenarioConfigurationError):
        scenario.set_when(action("second"))


def test_failure_is_an_assertion_error(make_scenario):
    """Test runners report the aggregate failure as a failed assertion."""
    scenario = make_scenario()
    scenario.add_given(action("boom", Spy(RuntimeError("x"))))

    with pytest.raises(AssertionError):
        scenario.execute_sync("assertion error")


def test_failure_summary_is_emitted_before_report(make_scenario, output):
    scenario = make_scenario()
    scenario.add_given(action("boom", Spy(RuntimeError("x"))))

    with pytest.raises(ScenarioFailedError):
        scenario.execute_sync("summary")

    text = output.file.getvalue()
    assert text.index("** This test failed at step: Given 1 - boom") < text.index("Scenario: summary")


def test_users_are_initialized_before_steps(make_scenario):
    """Every user gets its own client before the first Given runs."""
    seen = []

    class Recorder(User):
        async def initialize(self, client):
            await super().initialize(client)
            seen.append(self.name)

    alice, bob = Recorder("alice"), Recorder("bob")

    def check_users():
        assert sorted(seen) == ["alice", "bob"]
        assert alice.client is not bob.client

    scenario = make_scenario()
    scenario.add_users([alice, bob])
    scenario.add_given(action("users are ready", check_users))

    scenario.execute_sync("users")

    assert alice.is_initialized and bob.is_initialized


def test_users_call_application(make_scenario):
    """Steps send requests through the user's client."""
    from aiohttp import web

    async def handler(request):
        return web.Response(text=f"hello {request.path}")

    user = User("visitor")
    seen = {}

    async def visit():
        resp = await user.client.get("/home")
        seen["text"] = await resp.text()

    def greeted():
        assert seen["text"] == "hello /home"

    scenario = make_scenario(handler)
    scenario.add_users([user])
    scenario.set_when(lambda: Action("visitor opens /home", visit, [Check("greeting shown", greeted)]))

    scenario.execute_sync("visit")


def test_log_output_is_captured(make_scenario):
    """Log records emitted by steps end up in the result's log messages."""
    log = logging.getLogger("tests.scenario")

    scenario = make_scenario()
    scenario.add_given(action("noisy step", lambda: log.warning("inside the step")))

    result = scenario.execute_sync("capture")

    assert any("inside the step" in m for m in result.log_messages)
    assert scenario.config.trace.enabled


def test_concurrent_runs_do_not_share_state(make_scenario):
    """A failure in one run does not skip steps of another."""
    ok = Spy()
    failing = make_scenario()
    failing.add_given(action("boom", Spy(RuntimeError("x"))))
    passing = make_scenario()
    passing.add_given(action("fine", ok))

    async def both():
        return await asyncio.gather(
            failing.execute("failing"), passing.execute("passing"), return_exceptions=True
        )

    failed, result = asyncio.run(both())

    assert isinstance(failed, ScenarioFailedError)
    assert result.passed
    assert ok.calls == 1


class RespondingAction:
    """Action whose checks are built from the response of its own execute."""

    message = "the user fetches the profile"

    def __init__(self):
        self.response = None

    async def execute(self):
        self.response = {"name": "alice"}

    @property
    def result_actions(self):
        if self.response is None:
            raise RuntimeError("not executed yet")
        return [Check(f"name is {self.response['name']}", lambda: None)]


def test_checks_are_read_after_execute(make_scenario):
    scenario = make_scenario()
    scenario.set_when(RespondingAction)

    result = scenario.execute_sync("checks after execute")

    assert result.when.message == "the user fetches the profile"
    assert [a.message for a in result.when.assertions] == ["name is alice"]
    assert result.when.assertions[0].status == StepStatus.PASSED


def test_unreadable_checks_fail_step_but_keep_message(make_scenario):
    class BrokenChecks(RespondingAction):
        @property
        def result_actions(self):
            raise RuntimeError("cannot build checks")

    scenario = make_scenario()
    scenario.set_when(BrokenChecks)

    with pytest.raises(ScenarioFailedError) as excinfo:
        scenario.execute_sync("broken checks")

    step = excinfo.value.step
    assert step.message == "the user fetches the profile"
    assert step.executed
    assert str(step.error) == "cannot build checks"


def test_skipped_step_with_unreadable_checks_is_not_a_failure(make_scenario):
    scenario = make_scenario()
    scenario.add_given(action("boom", Spy(RuntimeError("x"))))
    scenario.set_when(RespondingAction)

    with pytest.raises(ScenarioFailedError) as excinfo:
        scenario.execute_sync("skipped")

    when = excinfo.value.result.when
    assert when.message == "the user fetches the profile"
    assert when.status == StepStatus.SKIPPED


def test_app_factory_can_run_twice(make_scenario):
    from aiohttp import web

    async def hello(request):
        return web.Response(text="hi")

    def create_app():
        app = web.Application()
        app.router.add_get("/", hello)
        return app

    user = User("visitor")
    seen = []

    async def visit():
        seen.append((await user.client.get("/")).status)

    scenario = make_scenario(create_app)
    scenario.add_users([user])
    scenario.set_when(action("visit", visit))

    scenario.execute_sync("one")
    scenario.execute_sync("two")

    assert seen == [200, 200]


def test_reused_application_instance_is_rejected(make_scenario):
    from aiohttp import web

    scenario = make_scenario(web.Application())
    scenario.add_users([User("visitor")])
    scenario.execute_sync("one")

    with pytest.raises(ScenarioConfigurationError, match="already served"):
        scenario.execute_sync("two")


def test_failed_user_setup_waits_for_other_users(make_scenario):
    """Every initialization finishes and every client is closed before the error surfaces."""

    class Broken(User):
        async def initialize(self, client):
            raise RuntimeError("login rejected")

    class Slow(User):
        async def initialize(self, client):
            await asyncio.sleep(0.05)
            await super().initialize(client)

    slow = Slow("slow")
    given = Spy()
    scenario = make_scenario()
    scenario.add_users([Broken("broken"), slow])
    scenario.add_given(action("never runs", given))

    with pytest.raises(RuntimeError, match="login rejected"):
        scenario.execute_sync("setup")

    assert slow.is_initialized
    assert slow.client.session.closed
    assert given.calls == 0


def test_configure_keeps_injected_console(make_scenario, output):
    from scenery.config.schema import SceneryConfig

    scenario = make_scenario()
    scenario.configure(SceneryConfig(report={"separator_width": 5}))
    scenario.execute_sync("configured")

    assert scenario.console is output
    assert output.file.getvalue().startswith("*****\nScenario: configured\n")
