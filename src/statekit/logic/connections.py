"""
Connection Graph — resolving what a logic imports from other logics.

Manifesto:
A logic can reuse actions and selectors of other logics. Those dependencies
are built (never mounted) before the dependent's own steps run, so the
dependent can bind imported actions and compose imported selectors as if they
were its own. Mounting is the lifecycle manager's job and follows the
``connections`` recorded on the built logic.

Accepted declarations::

    # import everything
    "connect": [todos_logic, user_logic]

    # pick names, optionally aliased
    "connect": {
        "actions": [(todos_logic, ["add_todo", "remove_todo as drop"])],
        "values": [(todos_logic, ["todos"])],
    }

    # depend on props ("connect with key")
    "connect": lambda props: {"values": [(todo_logic.partial(key=props["id"]), ["todo"])]}

Tags:
    statekit, connections, dependencies, build

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from statekit.core.errors import SpecificationError, UnresolvedConnectionError
from statekit.core.logging import get_logger
from statekit.logic.specification import Specification

if TYPE_CHECKING:
    from statekit.logic.model import BuildContext, Logic

logger = get_logger(__name__)

_ALIAS = re.compile(r"^\s*(\S+)\s+as\s+(\S+)\s*$")
_SELECTOR_KEYS = ("values", "selectors")


@dataclass(frozen=True)
class ResolvedConnection:
    """A built dependency and the names imported from it as ``(name, alias)`` pairs."""

    logic: Logic
    actions: tuple[tuple[str, str], ...] = ()
    selectors: tuple[tuple[str, str], ...] = ()


def parse_name(name: str) -> tuple[str, str]:
    """Split ``"name as alias"`` into ``(name, alias)``."""
    match = _ALIAS.match(name)
    if match:
        return match.group(1), match.group(2)
    return name.strip(), name.strip()


def _target_spec(target: Any, path: str) -> Specification:
    spec = getattr(target, "spec", target)
    if not isinstance(spec, Specification):
        raise UnresolvedConnectionError(
            f"Cannot connect to {target!r}: expected a logic wrapper or specification", path=path
        )
    return spec


def _build_target(target: Any, build: BuildContext) -> Logic:
    spec = _target_spec(target, build.path_string)
    try:
        return build.context.get_logic(spec, build.props)
    except SpecificationError as exc:
        raise UnresolvedConnectionError(
            f"Cannot resolve connection {spec!r} from '{build.path_string}': {exc.message}",
            path=build.path_string,
        ) from exc


def _import_names(
    dependency: Logic, names: Sequence[str], available: Mapping[str, Any], kind: str, path: str
) -> tuple[tuple[str, str], ...]:
    if isinstance(names, str):
        names = [names]
    pairs = []
    for raw in names:
        name, alias = parse_name(raw)
        if name not in available:
            raise UnresolvedConnectionError(
                f"'{name}' is not {kind} of '{dependency.path_string}' (connected from '{path}')",
                path=path,
            )
        pairs.append((name, alias))
    return tuple(pairs)


def resolve_connections(spec: Specification, build: BuildContext) -> list[ResolvedConnection]:
    """Build every dependency ``spec`` declares and list what it imports.

    Raises:
        UnresolvedConnectionError: A target cannot be built or a name is missing
    """
    declaration = spec.connect
    if declaration is None:
        return []
    if callable(declaration) and not hasattr(declaration, "spec"):
        declaration = declaration(build.props)
        if declaration is None:
            return []

    path = build.path_string
    resolved: list[ResolvedConnection] = []

    if isinstance(declaration, Mapping):
        unknown = set(declaration) - {"actions", *_SELECTOR_KEYS}
        if unknown:
            raise UnresolvedConnectionError(
                f"Unknown connection keys {sorted(unknown)} in '{path}'", path=path
            )
        for target, names in declaration.get("actions", ()):
            dependency = _build_target(target, build)
            pairs = _import_names(dependency, names, dependency.action_creators, "an action", path)
            resolved.append(ResolvedConnection(dependency, actions=pairs))
        for key in _SELECTOR_KEYS:
            for target, names in declaration.get(key, ()):
                dependency = _build_target(target, build)
                pairs = _import_names(dependency, names, dependency.selectors, "a selector", path)
                resolved.append(ResolvedConnection(dependency, selectors=pairs))
    else:
        targets = declaration if isinstance(declaration, (list, tuple)) else [declaration]
        for target in targets:
            dependency = _build_target(target, build)
            resolved.append(
                ResolvedConnection(
                    dependency,
                    actions=tuple((n, n) for n in dependency.action_creators),
                    selectors=tuple((n, n) for n in dependency.selectors),
                )
            )

    logger.debug(
        "connections_resolved",
        path=path,
        dependencies=[c.logic.path_string for c in resolved],
    )
    return resolved


__all__ = ["ResolvedConnection", "parse_name", "resolve_connections"]
