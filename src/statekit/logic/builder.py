"""
Build Pipeline — turning a specification into a logic.

WHY
───
A build is a fixed sequence: seed a fresh logic with plugin defaults, stamp its
identity, run every step of the merged step order, then tell plugins the logic
is complete. Keeping that sequence in one place means plugins only ever see a
fully built logic in ``after_logic`` and a step failure never leaves a
half-built logic behind.

ARCHITECTURE
────────────
::

    LogicBuilder.build(spec, identity, props)
      ├── plugins = registry.get_local_plugins(spec)
      ├── BEFORE_BUILD(spec, props)
      ├── Logic(**plugins.logic_defaults()) + identity fields
      ├── for step in plugins.step_order:
      │     for plugin, handler in plugins.handlers(step):
      │         handler(logic, spec, build)   ── failure → BuildStepError
      └── AFTER_LOGIC(logic, spec)

    Storing the logic and AFTER_BUILD belong to the instance cache.

Tags:
    statekit, build, pipeline, steps

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from statekit.core.errors import BuildStepError, StatekitError
from statekit.core.logging import LogContext, get_logger
from statekit.logic.model import BuildContext, Logic
from statekit.plugins.types import LifecyclePhase

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.specification import LogicIdentity, Specification

logger = get_logger(__name__)


class LogicBuilder:
    """Runs the build steps for one identity at a time."""

    def __init__(self, context: Context):
        self.context = context

    def build(self, spec: Specification, identity: LogicIdentity, props: Any = None) -> Logic:
        """Build a new logic for ``identity``. Does not touch the cache.

        Raises:
            BuildStepError: A step handler raised a non-statekit exception
            StatekitError: From handlers and nested builds, with any missing
                plugin, step or path filled in
        """
        plugins = self.context.registry.get_local_plugins(spec)
        plugins.run_event(LifecyclePhase.BEFORE_BUILD, spec, props)

        logic = Logic(spec=spec, plugins=plugins)
        for name, value in plugins.logic_defaults().items():
            setattr(logic, name, value)
        logic.path = identity.path
        logic.path_string = identity.path_string
        logic.key = identity.key
        logic.props = props

        build = BuildContext(context=self.context, identity=identity, props=props, plugins=plugins)

        with LogContext(logic_path=identity.path_string):
            for step in plugins.step_order:
                for plugin_name, handler in plugins.handlers(step):
                    try:
                        handler(logic, spec, build)
                    except StatekitError as exc:
                        _annotate(exc, plugin=plugin_name, step=step, path=identity.path_string)
                        raise
                    except Exception as exc:
                        logger.warning(
                            "build_step_failed",
                            step=step,
                            plugin=plugin_name,
                            error=repr(exc),
                        )
                        raise BuildStepError(step, plugin_name, identity.path_string, cause=exc) from exc

            plugins.run_event(LifecyclePhase.AFTER_LOGIC, logic, spec)

        logger.debug(
            "logic_built",
            path=identity.path_string,
            actions=len(logic.actions),
            reducers=len(logic.reducers),
            selectors=len(logic.selectors),
        )
        return logic


def _annotate(error: StatekitError, **fields: str) -> None:
    missing = {name: value for name, value in fields.items() if getattr(error.context, name) is None}
    if missing:
        error.with_context(**missing)


__all__ = ["LogicBuilder"]
