"""
Plugin Registry — the active plugins and the build step order they produce.

WHY
───
Every build needs the same three answers: which steps run, in which order,
and which handlers each step (or lifecycle phase) calls. Computing them once
per registry state and freezing the result in a :class:`PluginSet` keeps the
build loop a plain iteration, and lets a specification get its own local view
(extra plugins, excluded plugins) without touching the global registry.

ARCHITECTURE
────────────
::

    PluginRegistry (owned by a Context, mutable)
      ├── activate(plugin)       ── validate → compute order → commit → after_plugin
      ├── get_step_order()       ── tuple of step names
      ├── get_local_plugins(spec)── PluginSet view for one build
      └── plugins                ── current PluginSet

    PluginSet (immutable)
      ├── step_order             ── merged total order
      ├── handlers(step)         ── [(plugin name, handler), ...] in activation order
      ├── event_handlers(phase)  ── [(plugin name, handler), ...]
      ├── run_event(phase, *args)
      └── logic_defaults()       ── merged defaults(), later plugins win

Tags:
    statekit, plugins, registry, build-order

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from statekit.core.errors import DuplicatePluginError, PluginConfigError
from statekit.core.logging import get_logger
from statekit.plugins.ordering import compute_step_order
from statekit.plugins.types import EventHandler, LifecyclePhase, Plugin, StepHandler, as_plugin

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.specification import Specification

logger = get_logger(__name__)

CORE_PLUGIN_NAME = "core"


@dataclass(frozen=True)
class PluginSet:
    """An immutable, ordered selection of plugins with its merged step order."""

    plugins: tuple[Plugin, ...] = ()
    step_order: tuple[str, ...] = ()
    _steps: dict[str, list[tuple[str, StepHandler]]] = field(default_factory=dict, repr=False)
    _events: dict[LifecyclePhase, list[tuple[str, EventHandler]]] = field(
        default_factory=dict, repr=False
    )

    @classmethod
    def from_plugins(cls, plugins: Iterable[Plugin]) -> PluginSet:
        """Validate names, compute the step order and index the handlers.

        Raises:
            DuplicatePluginError: If two plugins share a name
            CyclicStepOrderError: If the placements contradict each other
        """
        plugins = tuple(plugins)
        seen: set[str] = set()
        for plugin in plugins:
            if plugin.name in seen:
                raise DuplicatePluginError(plugin.name)
            seen.add(plugin.name)

        order = tuple(compute_step_order(plugins))

        steps: dict[str, list[tuple[str, StepHandler]]] = {}
        events: dict[LifecyclePhase, list[tuple[str, EventHandler]]] = {}
        for plugin in plugins:
            for step, handler in plugin.build_steps.items():
                steps.setdefault(step, []).append((plugin.name, handler))
            for phase, handler in plugin.events.items():
                events.setdefault(phase, []).append((plugin.name, handler))

        return cls(plugins=plugins, step_order=order, _steps=steps, _events=events)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def names(self) -> list[str]:
        return [plugin.name for plugin in self.plugins]

    def get(self, name: str) -> Plugin | None:
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def __contains__(self, name: object) -> bool:
        return any(plugin.name == name for plugin in self.plugins)

    def __iter__(self) -> Iterator[Plugin]:
        return iter(self.plugins)

    def __len__(self) -> int:
        return len(self.plugins)

    def handlers(self, step: str) -> list[tuple[str, StepHandler]]:
        """Handlers for ``step`` in contribution order. Empty for ordering-only steps."""
        return list(self._steps.get(step, ()))

    def event_handlers(self, phase: LifecyclePhase | str) -> list[tuple[str, EventHandler]]:
        return list(self._events.get(LifecyclePhase(phase), ()))

    def contributors(self, step: str) -> list[str]:
        """Names of plugins that handle or place ``step``."""
        return [p.name for p in self.plugins if step in p.build_steps or step in p.build_order]

    # ── Derived views ────────────────────────────────────────────────────

    def with_plugin(self, plugin: Plugin) -> PluginSet:
        return PluginSet.from_plugins((*self.plugins, plugin))

    def without(self, names: Iterable[str]) -> PluginSet:
        excluded = set(names)
        return PluginSet.from_plugins(p for p in self.plugins if p.name not in excluded)

    def run_event(self, phase: LifecyclePhase | str, *args: Any) -> None:
        """Call every handler registered for ``phase``, in activation order."""
        for _, handler in self.event_handlers(phase):
            handler(*args)

    def logic_defaults(self) -> dict[str, Any]:
        """Merge every plugin's ``defaults()``; later plugins win on conflicts."""
        merged: dict[str, Any] = {}
        for plugin in self.plugins:
            if plugin.defaults is not None:
                merged.update(plugin.defaults())
        return merged


class PluginRegistry:
    """Mutable holder of the active :class:`PluginSet` for one context.

    Example:
        >>> registry = PluginRegistry(context)
        >>> registry.activate({"name": "audit", "build_steps": {"audit": handler}})
        >>> registry.get_step_order()[-1]
        'audit'
    """

    def __init__(self, context: Context | None = None):
        self.context = context
        self._plugins = PluginSet.from_plugins(())

    @property
    def plugins(self) -> PluginSet:
        return self._plugins

    def activate(self, plugin: Plugin | Any) -> Plugin:
        """Activate a plugin and run its own ``after_plugin`` handler.

        Nothing is committed when validation or ordering fails, and the
        plugin is removed again if its ``after_plugin`` handler raises.

        Raises:
            DuplicatePluginError: A plugin with the same name is active
            CyclicStepOrderError: The new placements create a cycle
            PluginConfigError: The plugin is malformed
        """
        plugin = as_plugin(plugin)
        if plugin.name in self._plugins:
            raise DuplicatePluginError(plugin.name)

        previous = self._plugins
        self._plugins = previous.with_plugin(plugin)
        logger.debug(
            "plugin_activated",
            plugin=plugin.name,
            steps=list(plugin.build_steps),
            step_order=list(self._plugins.step_order),
        )

        handler = plugin.events.get(LifecyclePhase.AFTER_PLUGIN)
        if handler is not None:
            try:
                handler(self.context)
            except Exception:
                self._plugins = previous
                logger.warning("plugin_activation_rolled_back", plugin=plugin.name)
                raise
        return plugin

    def is_activated(self, name: str) -> bool:
        return name in self._plugins

    def get_step_order(self) -> tuple[str, ...]:
        return self._plugins.step_order

    def get_local_plugins(self, spec: Specification) -> PluginSet:
        """Plugin view for one build: global plugins plus ``spec.plugins`` minus ``spec.exclude_plugins``.

        Raises:
            PluginConfigError: On excluding ``core`` or a plugin that is not active
        """
        if not spec.plugins and not spec.exclude_plugins:
            return self._plugins

        view = self._plugins
        if spec.exclude_plugins:
            for name in spec.exclude_plugins:
                if name == CORE_PLUGIN_NAME:
                    raise PluginConfigError("The core plugin cannot be excluded", plugin_name=name)
                if name not in view:
                    raise PluginConfigError(
                        f"Cannot exclude plugin '{name}': it is not activated", plugin_name=name
                    )
            view = view.without(spec.exclude_plugins)

        for local in spec.plugins:
            view = view.with_plugin(as_plugin(local))
        return view

    def clear(self) -> None:
        """Drop every plugin (including core). Used by ``Context.reset``."""
        self._plugins = PluginSet.from_plugins(())
        logger.debug("plugin_registry_cleared")

    def __repr__(self) -> str:
        return f"PluginRegistry(plugins={self._plugins.names})"


__all__ = ["CORE_PLUGIN_NAME", "PluginRegistry", "PluginSet"]
