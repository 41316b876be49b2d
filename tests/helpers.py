"""Shared test helpers."""

from scenery.core.actions import Action, Check


class Spy:
    """Counts calls and optionally raises."""

    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error


def action(message, effect=None, *checks):
    """Step factory for an Action with optional (message, callable) checks."""
    return lambda: Action(message, effect, [Check(m, c) for m, c in checks])
