"""``events`` step: logic-level mount and unmount handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from statekit.core.errors import SpecificationError
from statekit.steps.base import resolve_mapping

if TYPE_CHECKING:
    from statekit.logic.model import BuildContext, Logic
    from statekit.logic.specification import Specification

LOGIC_EVENTS = ("before_mount", "after_mount", "before_unmount", "after_unmount")


def build_events(logic: Logic, spec: Specification, build: BuildContext) -> None:
    for name, handlers in resolve_mapping(spec.events, logic, "events").items():
        if name not in LOGIC_EVENTS:
            raise SpecificationError(
                f"Unknown logic event '{name}'; expected one of {', '.join(LOGIC_EVENTS)}"
            ).with_context(path=logic.path_string, step="events")
        if callable(handlers):
            handlers = [handlers]
        for handler in handlers:
            if not callable(handler):
                raise SpecificationError(
                    f"Handler for logic event '{name}' is not callable"
                ).with_context(path=logic.path_string, step="events")
            logic.events.setdefault(name, []).append(handler)


__all__ = ["LOGIC_EVENTS", "build_events"]
