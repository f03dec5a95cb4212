"""The core plugin: registers the base build steps in their base order."""

from __future__ import annotations

from statekit.plugins.ordering import BASE_STEP_ORDER
from statekit.plugins.registry import CORE_PLUGIN_NAME
from statekit.plugins.types import Plugin
from statekit.steps import CORE_STEPS


def core_plugin() -> Plugin:
    """Create the core plugin. Every context activates it first."""
    return Plugin(
        name=CORE_PLUGIN_NAME,
        build_steps={step: CORE_STEPS[step] for step in BASE_STEP_ORDER},
    )


__all__ = ["core_plugin"]
