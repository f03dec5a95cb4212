"""
Shared pytest fixtures and configuration for statekit tests.

This module provides:
- Context reset fixtures for test isolation
- Sample logic declarations (counter, keyed todo)
- A recording plugin that logs every lifecycle phase it sees

Usage:
    Fixtures are auto-discovered by pytest. Request them as arguments:

    def test_something(context, counter_logic):
        ...
"""

import sys
from pathlib import Path
from typing import Any, Generator

import pytest

# Ensure statekit package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from statekit import Context, LifecyclePhase, Plugin, define, reset_context
from statekit.core.settings import clear_settings_cache


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Context Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_context_fixture() -> Generator[None, None, None]:
    """
    Start and end every test with a fresh context and uncached settings.

    No test can leak activated plugins, cached logics or store state into
    another.
    """
    clear_settings_cache()
    reset_context()
    yield
    clear_settings_cache()
    reset_context()


@pytest.fixture
def context() -> Context:
    """The current (fresh) context."""
    from statekit import get_context

    return get_context()


# =============================================================================
# Sample Logic Fixtures
# =============================================================================


@pytest.fixture
def counter_logic():
    """
    Lazy counter at ``scenes.counter``: one action, one reducer, one selector.
    """
    return define(
        {
            "path": ("scenes", "counter"),
            "options": {"lazy": True},
            "actions": {"increment": lambda amount=1: {"amount": amount}, "reset": True},
            "reducers": lambda logic: {
                "count": [
                    0,
                    int,
                    {
                        logic.action_creators.increment: lambda state, p: state + p["amount"],
                        logic.action_creators.reset: lambda state, p: 0,
                    },
                ],
            },
            "selectors": lambda logic: {
                "doubled": (lambda: [logic.selectors.count], lambda count: count * 2, int),
            },
        }
    )


@pytest.fixture
def todo_logic():
    """
    Keyed todo logic: one instance per ``props["id"]`` at ``scenes.todo.<id>``.
    """
    return define(
        {
            "path": ("scenes", "todo"),
            "key": lambda props: props["id"],
            "actions": {"rename": lambda title: {"title": title}},
            "reducers": lambda logic: {
                "title": [
                    lambda state, props: f"todo {props.get('id', 'untitled')}",
                    {logic.action_creators.rename: lambda state, p: p["title"]},
                ],
            },
        }
    )


# =============================================================================
# Plugin Fixtures
# =============================================================================


class RecordingPlugin:
    """Factory for a plugin that records every lifecycle phase it is called for."""

    def __init__(self, name: str = "recorder"):
        self.name = name
        self.calls: list[tuple[str, Any]] = []

    def _record(self, phase: LifecyclePhase):
        def handler(*args: Any) -> None:
            subject = args[0] if args else None
            label = getattr(subject, "path_string", None) if phase not in (
                LifecyclePhase.AFTER_PLUGIN,
                LifecyclePhase.BEFORE_LOGIC,
                LifecyclePhase.BEFORE_BUILD,
            ) else None
            self.calls.append((phase.value, label))

        return handler

    def __call__(self) -> Plugin:
        return Plugin(name=self.name, events={phase: self._record(phase) for phase in LifecyclePhase})

    def phases(self) -> list[str]:
        return [phase for phase, _ in self.calls]


@pytest.fixture
def recorder() -> RecordingPlugin:
    return RecordingPlugin()
