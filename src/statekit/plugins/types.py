"""Plugin Types — the shape of a plugin and the lifecycle phases it can hook.

Manifesto:
A plugin is a named bundle of build-step handlers, lifecycle event handlers,
step placements and logic field defaults. The registry merges many of them
without knowing about any of them in advance, so the bundle has to be plain
data that is easy to validate up front.

ARCHITECTURE
────────────
::

    Plugin
      ├── name          ── unique within a registry
      ├── build_steps   ── step name -> handler(logic, spec, build)
      ├── build_order   ── step name -> Placement(before=..., after=...)
      ├── events        ── LifecyclePhase -> handler(*phase args)
      └── defaults      ── () -> {logic field: initial value}

    LifecyclePhase  ── fixed enum of hookable phases
    as_plugin()     ── Plugin | mapping | zero-arg factory -> Plugin

Example::

    from statekit.plugins import Plugin, Placement

    audit = Plugin(
        name="audit",
        build_steps={"audit": lambda logic, spec, build: logic.cache.setdefault("audited", True)},
        build_order={"audit": Placement(after="reducers")},
    )

Tags:
    statekit, plugins, build-steps, lifecycle

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from statekit.core.errors import PluginConfigError

if TYPE_CHECKING:
    from statekit.logic.builder import BuildContext
    from statekit.logic.model import Logic
    from statekit.logic.specification import Specification

StepHandler = Callable[["Logic", "Specification", "BuildContext"], None]
EventHandler = Callable[..., None]


class LifecyclePhase(str, Enum):
    """Phases plugins can hook, with the arguments their handlers receive.

    AFTER_PLUGIN    (context)               the plugin was just activated
    BEFORE_LOGIC    (spec)                  a logic is being declared
    BEFORE_BUILD    (spec, props)           a build is about to start
    AFTER_LOGIC     (logic, spec)           all build steps have run
    AFTER_BUILD     (logic, spec)           a new logic was stored in the cache
    AFTER_MOUNT     (logic)                 mount count went 0 -> 1
    AFTER_UNMOUNT   (logic)                 mount count went 1 -> 0
    BEFORE_WRAPPER  (wrapper, render)       a binding is being created
    AFTER_WRAPPER   (wrapper, render, binding)
    BEFORE_RENDER   (logic, props)          a binding is about to render
    """

    AFTER_PLUGIN = "after_plugin"
    BEFORE_LOGIC = "before_logic"
    BEFORE_BUILD = "before_build"
    AFTER_LOGIC = "after_logic"
    AFTER_BUILD = "after_build"
    AFTER_MOUNT = "after_mount"
    AFTER_UNMOUNT = "after_unmount"
    BEFORE_WRAPPER = "before_wrapper"
    AFTER_WRAPPER = "after_wrapper"
    BEFORE_RENDER = "before_render"


@dataclass(frozen=True)
class Placement:
    """Where a step goes relative to another step."""

    before: str | None = None
    after: str | None = None

    def __post_init__(self):
        if self.before is None and self.after is None:
            raise PluginConfigError("A placement needs 'before' or 'after'")

    @property
    def anchor(self) -> str:
        """The step this placement is positioned against."""
        return self.after if self.after is not None else self.before  # type: ignore[return-value]

    @classmethod
    def from_value(cls, value: Placement | Mapping[str, str]) -> Placement:
        if isinstance(value, Placement):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {"before", "after"}
            if unknown:
                raise PluginConfigError(f"Unknown placement keys: {sorted(unknown)}")
            return cls(before=value.get("before"), after=value.get("after"))
        raise PluginConfigError(f"Invalid placement: {value!r}")


@dataclass
class Plugin:
    """A named bundle of build steps, placements, event handlers and defaults.

    Attributes:
        name: Unique plugin name
        build_steps: Handlers keyed by step name
        build_order: Placements for new (or handler-less) steps
        events: Lifecycle handlers keyed by phase
        defaults: Zero-arg callable returning initial logic fields
    """

    name: str
    build_steps: dict[str, StepHandler] = field(default_factory=dict)
    build_order: dict[str, Placement] = field(default_factory=dict)
    events: dict[LifecyclePhase, EventHandler] = field(default_factory=dict)
    defaults: Callable[[], Mapping[str, Any]] | None = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise PluginConfigError(f"Plugin name must be a non-empty string, got {self.name!r}")

        for step, handler in self.build_steps.items():
            if not callable(handler):
                raise PluginConfigError(
                    f"Build step '{step}' of plugin '{self.name}' is not callable",
                    plugin_name=self.name,
                )

        self.build_order = {step: Placement.from_value(p) for step, p in self.build_order.items()}

        events: dict[LifecyclePhase, EventHandler] = {}
        for phase, handler in self.events.items():
            try:
                events[LifecyclePhase(phase)] = handler
            except ValueError:
                raise PluginConfigError(
                    f"Plugin '{self.name}' hooks unknown event '{phase}'",
                    plugin_name=self.name,
                ) from None
            if not callable(handler):
                raise PluginConfigError(
                    f"Event handler '{phase}' of plugin '{self.name}' is not callable",
                    plugin_name=self.name,
                )
        self.events = events

        if self.defaults is not None and not callable(self.defaults):
            raise PluginConfigError(
                f"Plugin '{self.name}' defaults must be a zero-argument callable",
                plugin_name=self.name,
            )

    @property
    def step_names(self) -> list[str]:
        """Steps this plugin places or handles, placements first."""
        names = list(self.build_order)
        names.extend(step for step in self.build_steps if step not in self.build_order)
        return names

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Plugin:
        unknown = set(data) - {"name", "build_steps", "build_order", "events", "defaults"}
        if unknown:
            raise PluginConfigError(f"Unknown plugin keys: {sorted(unknown)}", plugin_name=data.get("name"))
        if "name" not in data:
            raise PluginConfigError("Plugin is missing a 'name'")
        return cls(
            name=data["name"],
            build_steps=dict(data.get("build_steps") or {}),
            build_order=dict(data.get("build_order") or {}),
            events=dict(data.get("events") or {}),
            defaults=data.get("defaults"),
        )

    def __repr__(self) -> str:
        return f"Plugin({self.name!r}, steps={len(self.build_steps)}, events={len(self.events)})"


def as_plugin(candidate: Plugin | Mapping[str, Any] | Callable[[], Any]) -> Plugin:
    """Normalize a plugin, a plugin mapping or a zero-arg factory into a ``Plugin``."""
    if isinstance(candidate, Plugin):
        return candidate
    if isinstance(candidate, Mapping):
        return Plugin.from_dict(candidate)
    if callable(candidate):
        produced = candidate()
        if isinstance(produced, Plugin):
            return produced
        if isinstance(produced, Mapping):
            return Plugin.from_dict(produced)
        raise PluginConfigError(
            f"Plugin factory returned {type(produced).__name__}, expected a Plugin or mapping"
        )
    raise PluginConfigError(f"Expected a Plugin, mapping or factory, got {type(candidate).__name__}")


__all__ = [
    "EventHandler",
    "LifecyclePhase",
    "Placement",
    "Plugin",
    "StepHandler",
    "as_plugin",
]
