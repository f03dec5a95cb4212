"""
``action_creators`` and ``actions`` steps.

An action creator turns call arguments into ``{"type": ..., "payload": ...}``.
Types are namespaced by the logic's path so two logics can both declare
``add_todo`` without clashing::

    add_todo (scenes.todos)

``actions`` are the same creators bound to the store: calling one dispatches
the action and returns it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from statekit.core.errors import SpecificationError
from statekit.core.fields import as_dict
from statekit.steps.base import resolve_mapping

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.model import BuildContext, Logic
    from statekit.logic.specification import Specification


def format_action_type(name: str, path_string: str) -> str:
    return f"{name.replace('_', ' ')} ({path_string})"


class ActionCreator:
    """Callable producing actions of one type.

    ``str(creator)`` is the action type, so creators can be used as reducer
    mapping keys.
    """

    def __init__(self, name: str, type_: str, payload: Callable[..., Any]):
        self.name = name
        self.type = type_
        self.payload = payload

    def __call__(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload(*args, **kwargs)}

    def __str__(self) -> str:
        return self.type

    def __repr__(self) -> str:
        return f"ActionCreator({self.type!r})"


class BoundAction:
    """An action creator that dispatches what it creates."""

    def __init__(self, creator: ActionCreator, context: Context):
        self.creator = creator
        self.context = context

    @property
    def type(self) -> str:
        return self.creator.type

    def __call__(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        return self.context.store.dispatch(self.creator(*args, **kwargs))

    def __str__(self) -> str:
        return self.creator.type

    def __repr__(self) -> str:
        return f"BoundAction({self.creator.type!r})"


def action_type(key: Any) -> str:
    """Normalize a reducer mapping key (type string or creator) to a type string."""
    if isinstance(key, str):
        return key
    if isinstance(key, (ActionCreator, BoundAction)):
        return key.type
    raise SpecificationError(f"Reducer handlers must be keyed by action type or creator, got {key!r}")


def _constant_payload(value: Any) -> Callable[..., Any]:
    def payload(*args: Any, **kwargs: Any) -> dict[str, Any]:
        return {"value": value}

    return payload


def build_action_creators(logic: Logic, spec: Specification, build: BuildContext) -> None:
    definitions = resolve_mapping(spec.actions, logic, "actions")
    for name, definition in definitions.items():
        payload = definition if callable(definition) else _constant_payload(definition)
        logic.action_creators[name] = ActionCreator(
            name, format_action_type(name, logic.path_string), payload
        )


def build_actions(logic: Logic, spec: Specification, build: BuildContext) -> None:
    for name, creator in as_dict(logic.action_creators).items():
        logic.actions[name] = BoundAction(creator, build.context)


__all__ = [
    "ActionCreator",
    "BoundAction",
    "action_type",
    "build_action_creators",
    "build_actions",
    "format_action_type",
]
