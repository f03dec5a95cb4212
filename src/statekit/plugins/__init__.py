"""
Plugin system.

A plugin contributes build steps (placed before/after existing steps),
lifecycle event handlers and logic field defaults. ``PluginRegistry`` merges
the active plugins into one step order; ``PluginSet`` is the frozen view a
build runs against.

Usage::

    from statekit import activate_plugin
    from statekit.plugins import Placement, Plugin

    activate_plugin(Plugin(
        name="timestamps",
        build_steps={"stamp": lambda logic, spec, build: logic.cache.update(built=True)},
        build_order={"stamp": Placement(after="reducers")},
    ))
"""

from statekit.plugins.ordering import BASE_STEP_ORDER, compute_step_order
from statekit.plugins.registry import CORE_PLUGIN_NAME, PluginRegistry, PluginSet
from statekit.plugins.types import EventHandler, LifecyclePhase, Placement, Plugin, StepHandler, as_plugin

__all__ = [
    "BASE_STEP_ORDER",
    "CORE_PLUGIN_NAME",
    "EventHandler",
    "LifecyclePhase",
    "Placement",
    "Plugin",
    "PluginRegistry",
    "PluginSet",
    "StepHandler",
    "as_plugin",
    "compute_step_order",
]
