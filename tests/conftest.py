"""Shared fixtures: every test gets its own calculator session with default settings."""

import pytest

from DecimalCalc import config_manager
from DecimalCalc.MathEngine import Calculator


@pytest.fixture()
def settings():
    """Default settings, independent of whatever config.json holds."""
    return dict(config_manager.DEFAULT_SETTINGS)


@pytest.fixture()
def calc(settings):
    """A fresh session; use calc.evaluate(...) for chained calls."""
    return Calculator(settings)


@pytest.fixture()
def evaluate(settings):
    """Evaluate one expression in a brand-new session."""
    def run(expression):
        return Calculator(settings).evaluate(expression)
    return run
