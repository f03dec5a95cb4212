"""
``selectors`` and ``values`` steps.

Selector definitions are ``(inputs, compute)`` or ``(inputs, compute, prop_type)``
where ``inputs`` is a list of selectors or a zero-arg callable returning one.
Every name gets a placeholder before any definition is evaluated, so a
selector may take inputs from selectors declared after it::

    "selectors": lambda logic: {
        "done_count": (lambda: [logic.selectors.done], len),
        "done": (lambda: [logic.selectors.todos], lambda todos: [t for t in todos if t["done"]]),
    }
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import TYPE_CHECKING, Any

from statekit.core.errors import SpecificationError
from statekit.core.fields import as_dict
from statekit.core.selectors import create_selector
from statekit.steps.base import resolve_mapping

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.model import BuildContext, Logic
    from statekit.logic.specification import Specification


def _placeholder(name: str, built: dict[str, Callable[..., Any]]) -> Callable[..., Any]:
    def selector(state: Any, props: Any = None) -> Any:
        return built[name](state, props)

    selector.__name__ = name
    return selector


def build_selectors(logic: Logic, spec: Specification, build: BuildContext) -> None:
    definitions = resolve_mapping(spec.selectors, logic, "selectors")
    if not definitions:
        return

    built: dict[str, Callable[..., Any]] = {}
    for name in definitions:
        logic.selectors[name] = _placeholder(name, built)

    for name, definition in definitions.items():
        if not isinstance(definition, (list, tuple)) or len(definition) not in (2, 3):
            raise SpecificationError(
                f"Selector '{name}' must be (inputs, compute) or (inputs, compute, prop_type)"
            ).with_context(path=logic.path_string, step="selectors")

        inputs, compute = definition[0], definition[1]
        if callable(inputs):
            inputs = inputs()
        if not isinstance(inputs, Sequence):
            raise SpecificationError(
                f"Inputs of selector '{name}' must be a sequence of selectors"
            ).with_context(path=logic.path_string, step="selectors")

        built[name] = create_selector(inputs, compute)
        if len(definition) == 3:
            logic.prop_types[name] = definition[2]

    for name, selector in built.items():
        logic.selectors[name] = selector


class ValuesView:
    """Reads every selector of a logic against the store's current state.

    ``logic.values.todos`` and ``logic.values["todos"]`` both evaluate the
    ``todos`` selector with the logic's props. Selector names win over the
    view's own methods, and errors raised while selecting propagate as is.
    """

    def __init__(self, logic: Logic, context: Context):
        self._logic = logic
        self._context = context

    def __getitem__(self, name: str) -> Any:
        selector = self._logic.selectors[name]
        return selector(self._context.store.get_state(), self._logic.props)

    def __getattribute__(self, name: str) -> Any:
        if not name.startswith("_"):
            logic = object.__getattribute__(self, "_logic")
            if name in logic.selectors:
                return self[name]
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> Any:
        raise AttributeError(f"Logic '{self._logic.path_string}' has no selector '{name}'")

    def __contains__(self, name: object) -> bool:
        return name in self._logic.selectors

    def __iter__(self) -> Iterator[str]:
        return iter(self._logic.selectors)

    def keys(self) -> list[str]:
        return list(self._logic.selectors)

    def to_dict(self) -> dict[str, Any]:
        state = self._context.store.get_state()
        selectors = as_dict(self._logic.selectors)
        return {name: sel(state, self._logic.props) for name, sel in selectors.items()}

    def __repr__(self) -> str:
        return f"ValuesView({self._logic.path_string!r}, {list(self._logic.selectors)})"


def build_values(logic: Logic, spec: Specification, build: BuildContext) -> None:
    logic.values = ValuesView(logic, build.context)


__all__ = ["ValuesView", "build_selectors", "build_values"]
