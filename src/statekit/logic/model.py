"""
Built logic and the per-build context handed to step handlers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from statekit.core.fields import FieldMap

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.specification import LogicIdentity, Specification
    from statekit.plugins.registry import PluginSet
    from statekit.store import Reducer, Store


@dataclass(eq=False)
class Logic:
    """The compiled artifact of a specification.

    Build steps fill the fields in order. Once built, only ``cache``,
    ``mounted`` and ``mount_count`` change. Plugins add fields of their own
    through ``defaults()``; those are plain attributes.
    """

    path: tuple[str, ...] = ()
    path_string: str = ""
    key: Any = None
    props: Any = None
    constants: FieldMap = field(default_factory=FieldMap)
    action_creators: FieldMap = field(default_factory=FieldMap)
    actions: FieldMap = field(default_factory=FieldMap)
    reducers: FieldMap = field(default_factory=FieldMap)
    reducer: Reducer | None = None
    reducer_options: dict[str, Any] = field(default_factory=dict)
    selector: Callable[..., Any] | None = None
    selectors: FieldMap = field(default_factory=FieldMap)
    values: Any = None
    defaults: FieldMap = field(default_factory=FieldMap)
    prop_types: dict[str, Any] = field(default_factory=dict)
    events: dict[str, list[Callable[[], None]]] = field(default_factory=dict)
    connections: dict[str, Logic] = field(default_factory=dict)
    cache: dict[str, Any] = field(default_factory=dict)
    mounted: bool = False
    mount_count: int = 0
    spec: Specification | None = field(default=None, repr=False)
    plugins: PluginSet | None = field(default=None, repr=False)

    def run_events(self, name: str) -> None:
        """Call the logic-level handlers registered under ``name``."""
        for handler in self.events.get(name, ()):
            handler()

    def __repr__(self) -> str:
        return (
            f"Logic({self.path_string!r}, actions={len(self.actions)}, "
            f"reducers={len(self.reducers)}, mount_count={self.mount_count})"
        )


@dataclass
class BuildContext:
    """What a step handler can see besides the logic and its spec."""

    context: Context
    identity: LogicIdentity
    props: Any
    plugins: PluginSet

    @property
    def store(self) -> Store:
        return self.context.store

    @property
    def path_string(self) -> str:
        return self.identity.path_string


__all__ = ["BuildContext", "Logic"]
