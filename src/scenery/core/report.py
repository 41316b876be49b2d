"""Plain-text scenario report."""

from __future__ import annotations

import re
from typing import Optional

from scenery.config.schema import ReportConfig
from scenery.core.models import ScenarioResult, StepResult

LINE_BREAK = re.compile(r"\r?\n")


class ReportRenderer:
    """Render a ScenarioResult as an indented text report.

    Output depends only on the result and the layout config, so rendering the
    same result twice yields identical text.
    """

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()

    @property
    def separator(self) -> str:
        return self.config.separator_char * self.config.separator_width

    def render(self, result: ScenarioResult) -> str:
        lines = [self.separator, f"Scenario: {result.name}", self.separator]

        if result.givens:
            lines.append("Given:")
            lines.extend(self.render_step(step) for step in result.givens)

        if result.when is not None:
            lines.append("When:")
            lines.append(self.render_step(result.when))

        if result.thens:
            lines.append("Then:")
            lines.extend(self.render_step(step) for step in result.thens)

        return "".join(line + "\n" for line in lines)

    def render_step(self, step: StepResult) -> str:
        """Render one step block, terminated by a newline."""
        indent = self.config.indent
        label = f"{step.step_type.value} {step.step_index}"
        out = []

        if step.has_failure:
            out.append(f"{indent}*** Failure in: {label} - {self.format_message(step.message)}")
        elif step.message is not None:
            out.append(f"{indent}{label} - {self.format_message(step.message)}")

        if step.assertions:
            out.append(f"{indent}Assertions:")
            for assertion in step.assertions:
                text = self.format_message(assertion.message)
                if assertion.error is not None:
                    out.append(f"{indent * 2}***Failed: {label}.{assertion.index} - {text}")
                else:
                    out.append(f"{indent * 2}{label}.{assertion.index} - {text}")

        if step.error is not None:
            out.append(f"{indent}See exception details below")

        return "".join(line + "\n" for line in out)

    def format_message(self, message: Optional[str]) -> str:
        """Substitute the placeholder for None and indent continuation lines."""
        if message is None:
            return self.config.null_placeholder
        return ("\n" + self.config.indent).join(LINE_BREAK.split(message))

    def failure_summary(self, step: StepResult) -> str:
        """Describe the first failing step and its cause."""
        return (
            f"** This test failed at step: {step.step_type.value} {step.step_index}"
            f" - {self.format_message(step.message)}\n\n"
            f"\t Cause: {step.error_description()}\n"
        )


def render_scenario(result: ScenarioResult, config: Optional[ReportConfig] = None) -> str:
    """Render ``result`` with the given (or default) layout."""
    return ReportRenderer(config).render(result)
