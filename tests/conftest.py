"""Pytest configuration and fixtures."""

import io

import pytest
from rich.console import Console

from scenery.config.schema import SceneryConfig
from scenery.core.scenario import Scenario


@pytest.fixture
def output():
    """In-memory console the scenario report is written to."""
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def make_scenario(output):
    """Build a Scenario whose report goes to the ``output`` console."""

    def factory(pipeline=None, config=None, trace=None):
        return Scenario(pipeline, config=config or SceneryConfig(), trace=trace, console=output)

    return factory


@pytest.fixture
def sample_config():
    """Return sample configuration dict."""
    return {
        "version": 1,
        "default_target": "app.scenarios:checkout",
        "report": {
            "separator_width": 20,
            "stream": "stderr",
        },
        "trace": {
            "level": "INFO",
        },
    }


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    """Keep a developer's SCENERY_CONFIG out of the tests."""
    monkeypatch.delenv("SCENERY_CONFIG", raising=False)
