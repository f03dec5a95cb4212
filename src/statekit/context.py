"""
Context — the process-wide state of statekit, behind one object.

Everything that outlives a single build lives here: settings, the plugin
registry, the instance cache, the lifecycle manager, the store and the
plugin-scoped state plugins keep between builds. Core classes receive the
context explicitly; only the module-level helpers below reach for the
current one.

Usage::

    from statekit import get_context, reset_context

    context = reset_context(plugins=[my_plugin])   # fresh context, e.g. per test
    context.set_plugin_state("my_plugin", {"seen": 0})

Tags:
    statekit, context, registry, cache, testing

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from statekit.core.logging import get_logger
from statekit.core.settings import StatekitSettings, get_settings
from statekit.logic.builder import LogicBuilder
from statekit.logic.cache import InstanceCache
from statekit.logic.lifecycle import LifecycleManager
from statekit.logic.model import Logic
from statekit.logic.specification import Specification, resolve_identity
from statekit.plugins.core import core_plugin
from statekit.plugins.registry import PluginRegistry
from statekit.plugins.types import Plugin
from statekit.store import InMemoryStore, Store

logger = get_logger(__name__)


class Context:
    """Registry, cache, lifecycle, store and plugin state for one application.

    Args:
        store: Store to attach reducers to (default: a new ``InMemoryStore``)
        settings: Settings (default: ``get_settings()``)
        plugins: Plugins to activate after the core plugin
    """

    def __init__(
        self,
        *,
        store: Store | None = None,
        settings: StatekitSettings | None = None,
        plugins: Iterable[Plugin | Any] = (),
    ):
        self._store_factory: Callable[[], Store] = (lambda: store) if store is not None else InMemoryStore
        self._initial_plugins = tuple(plugins)
        self.settings = settings or get_settings()
        self._setup()

    def _setup(self) -> None:
        self.store: Store = self._store_factory()
        self.plugin_state: dict[str, Any] = {}
        self.registry = PluginRegistry(self)
        self.cache = InstanceCache(self)
        self.builder = LogicBuilder(self)
        self.lifecycle = LifecycleManager(self)

        self.registry.activate(core_plugin())
        for plugin in self._initial_plugins:
            self.registry.activate(plugin)

    def reset(self) -> None:
        """Clear registry, cache, store and plugin state; reactivate the initial plugins.

        A store passed to the constructor is kept, with the reducers of every
        cached logic detached from it; the default ``InMemoryStore`` is
        replaced by a fresh one.
        """
        detached = self.lifecycle.detach_all()
        self.cache.clear()
        self.registry.clear()
        self._setup()
        logger.debug("context_reset", detached=detached)

    # ── Plugins ──────────────────────────────────────────────────────────

    def activate_plugin(self, plugin: Plugin | Any) -> Plugin:
        return self.registry.activate(plugin)

    def set_plugin_state(self, name: str, value: Any) -> None:
        self.plugin_state[name] = value

    def get_plugin_state(self, name: str, default: Any = None) -> Any:
        return self.plugin_state.get(name, default)

    # ── Logics ───────────────────────────────────────────────────────────

    def get_logic(self, spec: Specification, props: Any = None, key: Any = None) -> Logic:
        """Resolve the identity of ``spec`` and return its (possibly new) logic.

        Missing props become ``{}`` so keys, defaults and selectors all see the
        same value.
        """
        if props is None:
            props = {}
        identity = resolve_identity(spec, props, key, auto_path_root=self.settings.auto_path_root)
        return self.cache.get_or_build(identity, spec, props)

    def mount(self, logic: Logic) -> Callable[[], None]:
        return self.lifecycle.mount(logic)

    def unmount(self, logic: Logic) -> None:
        self.lifecycle.unmount(logic)

    def __repr__(self) -> str:
        return f"Context(plugins={self.registry.plugins.names}, logics={len(self.cache)})"


# ── Current context ──────────────────────────────────────────────────────

_context: Context | None = None


def get_context() -> Context:
    """Get the current context, creating a default one on first use."""
    global _context
    if _context is None:
        _context = Context()
    return _context


def set_context(context: Context) -> None:
    global _context
    _context = context


def reset_context(
    *,
    store: Store | None = None,
    settings: StatekitSettings | None = None,
    plugins: Iterable[Plugin | Any] = (),
) -> Context:
    """Replace the current context with a fresh one and return it."""
    context = Context(store=store, settings=settings, plugins=plugins)
    set_context(context)
    return context


def activate_plugin(plugin: Plugin | Any) -> Plugin:
    """Activate a plugin in the current context."""
    return get_context().activate_plugin(plugin)


def set_plugin_state(name: str, value: Any) -> None:
    get_context().set_plugin_state(name, value)


def get_plugin_state(name: str, default: Any = None) -> Any:
    return get_context().get_plugin_state(name, default)


__all__ = [
    "Context",
    "activate_plugin",
    "get_context",
    "get_plugin_state",
    "reset_context",
    "set_context",
    "set_plugin_state",
]
