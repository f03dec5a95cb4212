"""
statekit - plugin-driven logic builds for state stores.

Declare a logic (actions, reducers, selectors, connections) once; statekit
builds it through an ordered pipeline of plugin steps, caches one instance per
path and key, and attaches its reducer to the store while something has it
mounted.

Usage::

    from statekit import define, get_context

    todos = define({
        "path": ("scenes", "todos"),
        "actions": {"add_todo": lambda text: {"text": text}},
        "reducers": lambda logic: {
            "todos": [[], {logic.action_creators.add_todo: lambda state, p: [*state, p["text"]]}],
        },
    })

    unmount = todos.mount()
    todos.actions.add_todo("write docs")
    todos.values.todos   # ["write docs"]
    unmount()
"""

__version__ = "0.1.0"

from statekit.binding import LogicBinding
from statekit.context import (
    Context,
    activate_plugin,
    get_context,
    get_plugin_state,
    reset_context,
    set_context,
    set_plugin_state,
)
from statekit.core import *  # noqa: F403
from statekit.logic import (
    Logic,
    LogicIdentity,
    LogicWrapper,
    Specification,
    connect,
    define,
    resolve_identity,
    resolve_partial,
)
from statekit.plugins import LifecyclePhase, Placement, Plugin
from statekit.steps import ActionCreator
from statekit.store import InMemoryStore, Store

__all__ = [
    "ActionCreator",
    "Context",
    "InMemoryStore",
    "LifecyclePhase",
    "Logic",
    "LogicBinding",
    "LogicIdentity",
    "LogicWrapper",
    "Placement",
    "Plugin",
    "Specification",
    "Store",
    "activate_plugin",
    "connect",
    "define",
    "get_context",
    "get_plugin_state",
    "reset_context",
    "resolve_identity",
    "resolve_partial",
    "set_context",
    "set_plugin_state",
]
