"""``connect`` step: import actions and selectors from connected logics."""

from __future__ import annotations

from typing import TYPE_CHECKING

from statekit.logic.connections import resolve_connections

if TYPE_CHECKING:
    from statekit.logic.model import BuildContext, Logic
    from statekit.logic.specification import Specification


def build_connect(logic: Logic, spec: Specification, build: BuildContext) -> None:
    for connection in resolve_connections(spec, build):
        dependency = connection.logic
        logic.connections[dependency.path_string] = dependency
        for name, alias in connection.actions:
            logic.action_creators[alias] = dependency.action_creators[name]
        for name, alias in connection.selectors:
            logic.selectors[alias] = dependency.selectors[name]
            if name in dependency.prop_types:
                logic.prop_types[alias] = dependency.prop_types[name]


__all__ = ["build_connect"]
