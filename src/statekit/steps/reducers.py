"""
``defaults``, ``reducers``, ``reducer`` and ``reducer_selectors`` steps.

Reducer definitions come in four shapes::

    "todos": [[], {add_todo: lambda state, payload: [*state, payload]}]
    "todos": [[], list, {...}]                       # with a prop type
    "todos": [[], list, {"persist": True}, {...}]    # with prop type and options
    "todos": lambda state, action: state             # plain reducer

Handlers receive ``(state, payload)``. The combined reducer returns the very
same dict when no key changed, which keeps the store state identical across
no-op dispatches.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from statekit.core.errors import SpecificationError
from statekit.core.fields import as_dict, get_in
from statekit.steps.actions import action_type
from statekit.steps.base import resolve_mapping

if TYPE_CHECKING:
    from statekit.logic.model import BuildContext, Logic
    from statekit.logic.specification import Specification
    from statekit.store import Action, Reducer


def build_defaults(logic: Logic, spec: Specification, build: BuildContext) -> None:
    defaults = resolve_mapping(spec.defaults, logic, "defaults")
    if not defaults:
        return
    state = build.store.get_state()
    for name, value in defaults.items():
        logic.defaults[name] = value(state, build.props) if callable(value) else value


def _handler_reducer(handlers: Mapping[str, Callable[[Any, Any], Any]]) -> Reducer:
    def reducer(state: Any, action: Action) -> Any:
        handler = handlers.get(action["type"])
        if handler is None:
            return state
        return handler(state, action.get("payload"))

    return reducer


def _parse_definition(name: str, definition: Any, logic: Logic) -> tuple[Any, Any, Any, Mapping[Any, Any]]:
    if not isinstance(definition, (list, tuple)) or not 2 <= len(definition) <= 4:
        raise SpecificationError(
            f"Reducer '{name}' must be a callable or [default, (prop_type,) (options,) handlers]"
        ).with_context(path=logic.path_string, step="reducers")

    default, *middle, handlers = definition
    prop_type = middle[0] if len(middle) >= 1 else None
    options = middle[1] if len(middle) == 2 else None
    if not isinstance(handlers, Mapping):
        raise SpecificationError(
            f"Reducer '{name}' handlers must be a mapping, got {type(handlers).__name__}"
        ).with_context(path=logic.path_string, step="reducers")
    return default, prop_type, options, handlers


def build_reducers(logic: Logic, spec: Specification, build: BuildContext) -> None:
    definitions = resolve_mapping(spec.reducers, logic, "reducers")
    for name, definition in definitions.items():
        if callable(definition):
            logic.reducers[name] = definition
            if name not in logic.defaults:
                logic.defaults[name] = None
            continue

        default, prop_type, options, handlers = _parse_definition(name, definition, logic)
        normalized: dict[str, Callable[[Any, Any], Any]] = {}
        for key, handler in handlers.items():
            if not callable(handler):
                raise SpecificationError(
                    f"Handler for '{key}' in reducer '{name}' is not callable"
                ).with_context(path=logic.path_string, step="reducers")
            normalized[action_type(key)] = handler

        logic.reducers[name] = _handler_reducer(normalized)
        if name not in logic.defaults:
            if callable(default):
                default = default(build.store.get_state(), build.props)
            logic.defaults[name] = default
        if prop_type is not None:
            logic.prop_types[name] = prop_type
        if options is not None:
            logic.reducer_options[name] = dict(options)


def combine_reducers(reducers: Mapping[str, Reducer], defaults: Mapping[str, Any]) -> Reducer:
    """Combine per-key reducers into one reducer over a dict."""
    reducers = as_dict(reducers)
    defaults = as_dict(defaults)

    def combined(state: Any, action: Action) -> dict[str, Any]:
        if not isinstance(state, Mapping):
            state = {}
        changed = len(state) != len(reducers)
        next_state: dict[str, Any] = {}
        for key, reducer in reducers.items():
            previous = state[key] if key in state else defaults.get(key)
            updated = reducer(previous, action)
            if key not in state or updated is not previous:
                changed = True
            next_state[key] = updated
        return next_state if changed else state  # type: ignore[return-value]

    return combined


def build_reducer(logic: Logic, spec: Specification, build: BuildContext) -> None:
    if not logic.reducers:
        logic.reducer = None
        return
    logic.reducer = combine_reducers(logic.reducers, logic.defaults)


def _key_selector(root: Callable[..., Any], key: str) -> Callable[..., Any]:
    def selector(state: Any, props: Any = None) -> Any:
        return root(state, props)[key]

    selector.__name__ = key
    return selector


def build_reducer_selectors(logic: Logic, spec: Specification, build: BuildContext) -> None:
    if logic.reducer is None:
        return
    path = logic.path

    def selector(state: Any, props: Any = None) -> Any:
        return get_in(state, path)

    logic.selector = selector
    for key in logic.reducers:
        logic.selectors[key] = _key_selector(selector, key)


__all__ = [
    "build_defaults",
    "build_reducer",
    "build_reducer_selectors",
    "build_reducers",
    "combine_reducers",
]
