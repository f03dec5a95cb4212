"""
Core build steps.

Each step is a handler ``(logic, spec, build) -> None`` that fills in part of
the logic. The core plugin registers them in this order::

    connect → constants → action_creators → actions → defaults → reducers
            → reducer → reducer_selectors → selectors → values → events
"""

from statekit.steps.actions import ActionCreator, BoundAction, build_action_creators, build_actions
from statekit.steps.connect import build_connect
from statekit.steps.constants import build_constants
from statekit.steps.events import LOGIC_EVENTS, build_events
from statekit.steps.reducers import (
    build_defaults,
    build_reducer,
    build_reducer_selectors,
    build_reducers,
    combine_reducers,
)
from statekit.steps.selectors import ValuesView, build_selectors, build_values

CORE_STEPS = {
    "connect": build_connect,
    "constants": build_constants,
    "action_creators": build_action_creators,
    "actions": build_actions,
    "defaults": build_defaults,
    "reducers": build_reducers,
    "reducer": build_reducer,
    "reducer_selectors": build_reducer_selectors,
    "selectors": build_selectors,
    "values": build_values,
    "events": build_events,
}

__all__ = [
    "ActionCreator",
    "BoundAction",
    "CORE_STEPS",
    "LOGIC_EVENTS",
    "ValuesView",
    "combine_reducers",
]
