"""
Logic wrappers — the handle returned when a logic is declared.

A wrapper holds a specification and builds, mounts and reads the logic on
demand in the current context. Fields are explicit properties that build and
then read (``wrapper.actions``, ``wrapper.values``...) plus ``get(name)`` for
plugin-added fields.

Example::

    from statekit import define

    counter = define({
        "path": ("scenes", "counter"),
        "actions": {"increment": lambda amount=1: {"amount": amount}},
        "reducers": {
            "count": [0, {"increment (scenes.counter)": lambda state, p: state + p["amount"]}],
        },
    })

    unmount = counter.mount()
    counter.actions.increment(2)
    counter.values.count   # 2
    unmount()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from statekit.core.errors import SpecificationError
from statekit.core.logging import get_logger
from statekit.logic.specification import Specification, resolve_identity, resolve_partial
from statekit.plugins.types import LifecyclePhase

if TYPE_CHECKING:
    from statekit.binding import LogicBinding
    from statekit.context import Context
    from statekit.logic.model import Logic

logger = get_logger(__name__)


class LogicWrapper:
    """Handle around a declared specification.

    Non-lazy specifications are built and attached to the store when the
    wrapper is created. Lazy ones (``options.lazy``, a ``key`` or a callable
    ``connect``) wait for the first build or mount.
    """

    def __init__(self, spec: Specification, *, context: Context | None = None, declare: bool = True):
        self.spec = spec
        self._context = context
        self.lazy = spec.is_lazy(self.context.settings.default_lazy)
        if declare:
            self._declare()

    def _declare(self) -> None:
        context = self.context
        context.registry.get_local_plugins(self.spec).run_event(LifecyclePhase.BEFORE_LOGIC, self.spec)
        if not self.lazy:
            logic = self.build()
            context.lifecycle.attach_eager(logic)
            logger.debug("logic_declared_eager", path=logic.path_string)

    @property
    def context(self) -> Context:
        if self._context is not None:
            return self._context
        from statekit.context import get_context

        return get_context()

    # ── Building and mounting ────────────────────────────────────────────

    def build(self, props: Any = None) -> Logic:
        """Build (or fetch from the cache) the logic for ``props``."""
        return self.context.get_logic(self.spec, props)

    def must_build(self, props: Any = None) -> bool:
        """Whether building for ``props`` would create a new logic."""
        context = self.context
        identity = resolve_identity(self.spec, props, auto_path_root=context.settings.auto_path_root)
        return identity.path_string not in context.cache

    def mount(self, props: Any = None) -> Callable[[], None]:
        """Build and mount; returns the unmount callable."""
        return self.context.lifecycle.mount(self.build(props))

    def with_key(self, key: Any) -> Logic | Callable[[Any], Logic]:
        """Build for a fixed key, or return a builder deriving the key from props."""
        if callable(key):
            return lambda props=None: self.build_with_key(key(props), props)
        return self.build_with_key(key)

    def build_with_key(self, key: Any, props: Any = None) -> Logic:
        if not self.spec.is_keyed:
            raise SpecificationError(f"{self.spec!r} is not keyed; use build() instead")
        return self.context.get_logic(self.spec, props, key=key)

    def mount_with_key(self, key: Any, props: Any = None) -> Callable[[], None]:
        return self.context.lifecycle.mount(self.build_with_key(key, props))

    def partial(self, **overrides: Any) -> LogicWrapper:
        """Wrapper for a derived specification (see :func:`resolve_partial`)."""
        return LogicWrapper(resolve_partial(self.spec, **overrides), context=self._context)

    def bind(self, render: Callable[..., Any], *, actions: Mapping[str, Any] | None = None) -> LogicBinding:
        from statekit.binding import LogicBinding

        return LogicBinding(self, render, actions=actions)

    # ── Fields (build, then read) ────────────────────────────────────────

    def get(self, name: str, props: Any = None) -> Any:
        """Build for ``props`` and read field ``name``, including plugin fields."""
        logic = self.build(props)
        try:
            return getattr(logic, name)
        except AttributeError:
            raise AttributeError(f"Logic '{logic.path_string}' has no field '{name}'") from None

    @property
    def logic(self) -> Logic:
        return self.build()

    @property
    def path(self) -> tuple[str, ...]:
        return self.build().path

    @property
    def path_string(self) -> str:
        return self.build().path_string

    @property
    def constants(self):
        return self.build().constants

    @property
    def action_creators(self):
        return self.build().action_creators

    @property
    def actions(self):
        return self.build().actions

    @property
    def reducers(self):
        return self.build().reducers

    @property
    def reducer(self):
        return self.build().reducer

    @property
    def selector(self):
        return self.build().selector

    @property
    def selectors(self):
        return self.build().selectors

    @property
    def values(self):
        return self.build().values

    @property
    def defaults(self):
        return self.build().defaults

    @property
    def prop_types(self):
        return self.build().prop_types

    @property
    def events(self):
        return self.build().events

    @property
    def connections(self):
        return self.build().connections

    @property
    def cache(self):
        return self.build().cache

    @property
    def mounted(self) -> bool:
        return self.build().mounted

    @property
    def mount_count(self) -> int:
        return self.build().mount_count

    def __repr__(self) -> str:
        return f"LogicWrapper({self.spec!r}, lazy={self.lazy})"


def define(spec: Specification | Mapping[str, Any] | None = None, **kwargs: Any) -> LogicWrapper:
    """Declare a logic. Returns its wrapper.

    Accepts a :class:`Specification`, a mapping of specification fields, or
    keyword arguments (merged over the mapping).
    """
    return LogicWrapper(Specification.from_input(spec, **kwargs))


def connect(targets: Any) -> LogicWrapper:
    """Declare a logic that only connects to other logics."""
    return define({"connect": targets})


__all__ = ["LogicWrapper", "connect", "define"]
