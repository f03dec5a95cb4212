"""
View binding — connecting a rendering unit to a logic.

A :class:`LogicBinding` owns one mount of a logic for as long as the
rendering unit exists. It renders by calling ``render(props, values, actions)``
where ``values`` holds every selector's current value and ``actions`` the
logic's bound actions, passed in rather than attached to anything.

::

    render(props_1)   build → mount → subscribe → render
    store change      re-select → render only if a value changed (by identity)
    render(props_2)   same path: render; new path: transition(old, new) → render
    dispose()         unmount once → unsubscribe

While a path change or dispose is unmounting the old logic, store
notifications read the last snapshot taken for that path instead of a slice
that is being detached.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from statekit.core.fields import FieldMap, as_dict
from statekit.core.logging import get_logger
from statekit.plugins.types import LifecyclePhase

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.model import Logic
    from statekit.logic.wrapper import LogicWrapper

logger = get_logger(__name__)


class LogicBinding:
    """Mounts a logic for a rendering unit and re-renders on relevant changes.

    Args:
        wrapper: The logic wrapper to bind
        render: Callable ``(props, values, actions) -> output``
        actions: Extra actions passed to ``render`` alongside the logic's own
    """

    def __init__(
        self,
        wrapper: LogicWrapper,
        render: Callable[[Any, FieldMap, FieldMap], Any],
        *,
        actions: Mapping[str, Any] | None = None,
    ):
        self.wrapper = wrapper
        self.render_fn = render
        self.extra_actions = dict(actions or {})
        self.context: Context = wrapper.context
        self.logic: Logic | None = None
        self.props: Any = None
        self.output: Any = None
        self.render_count = 0
        self.disposed = False

        self._unmount: Callable[[], None] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._rendered: dict[str, Any] | None = None
        self._snapshots: dict[str, dict[str, Any]] = {}

        plugins = self.context.registry.get_local_plugins(wrapper.spec)
        plugins.run_event(LifecyclePhase.BEFORE_WRAPPER, wrapper, render)
        plugins.run_event(LifecyclePhase.AFTER_WRAPPER, wrapper, render, self)

    @property
    def is_mounted(self) -> bool:
        return self._unmount is not None

    def render(self, props: Any = None) -> Any:
        """Render with ``props``, mounting (or switching logics) first when needed."""
        if self.disposed:
            raise RuntimeError("Cannot render a disposed binding")

        logic = self.wrapper.build(props)
        if self._unmount is None:
            self._unmount = self.context.lifecycle.mount(logic)
            self._unsubscribe = self.context.store.subscribe(self._on_store_change)
        elif self.logic is not None and logic.path_string != self.logic.path_string:
            previous = self.logic
            self._unmount = self.context.lifecycle.transition(previous, logic)
            self._snapshots.pop(previous.path_string, None)
            logger.debug("binding_path_changed", old=previous.path_string, new=logic.path_string)

        self.logic = logic
        self.props = props if props is not None else {}
        logic.plugins.run_event(LifecyclePhase.BEFORE_RENDER, logic, props)
        return self._render(self.select())

    def select(self) -> dict[str, Any]:
        """Current value of every selector of the bound logic."""
        logic = self.logic
        if logic is None:
            return {}
        if self.context.lifecycle.is_unmounting(logic.path_string):
            return self._snapshots.get(logic.path_string, {})

        state = self.context.store.get_state()
        values = {name: selector(state, self.props) for name, selector in as_dict(logic.selectors).items()}
        self._snapshots[logic.path_string] = values
        return values

    def _on_store_change(self) -> None:
        if self.disposed or self.logic is None:
            return
        selected = self.select()
        if self._rendered is not None and _same_values(selected, self._rendered):
            return
        self._render(selected)

    def _render(self, selected: dict[str, Any]) -> Any:
        actions = FieldMap({**self.extra_actions, **as_dict(self.logic.actions)})
        self._rendered = selected
        self.render_count += 1
        self.output = self.render_fn(self.props, FieldMap(selected), actions)
        return self.output

    def dispose(self) -> None:
        """Unmount the bound logic. Safe to call more than once."""
        if self.disposed:
            return
        self.disposed = True
        if self._unmount is not None and self.logic is not None:
            with self.context.lifecycle.unmounting(self.logic):
                self._unmount()
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unmount = None
        self._unsubscribe = None

    def __repr__(self) -> str:
        path = self.logic.path_string if self.logic is not None else None
        return f"LogicBinding(path={path!r}, renders={self.render_count}, disposed={self.disposed})"


def _same_values(left: Mapping[str, Any], right: Mapping[str, Any]) -> bool:
    return left.keys() == right.keys() and all(left[k] is right[k] for k in left)


__all__ = ["LogicBinding"]
