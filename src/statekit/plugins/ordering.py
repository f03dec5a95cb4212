"""
Build step ordering.

Merges the base step order with every plugin's placements into one total
order. Two passes:

1. Layout. Steps are laid out in activation order. ``after: X`` inserts a step
   right after ``X`` (behind any step already placed after ``X``),
   ``before: Y`` inserts it right before ``Y``, and a step without a placement
   is appended. A placement whose anchor has not appeared yet waits until it
   does; if it never does the step is appended.
2. Sort. Kahn's algorithm over the base chain plus one edge per placement,
   always taking the ready step with the lowest layout index. The layout only
   breaks ties, so it never violates a constraint, and two runs over the same
   plugins always agree.

Leftover steps after the sort mean the placements contradict each other (or
the base order) and raise :class:`CyclicStepOrderError`.
"""

from __future__ import annotations

import heapq
from collections import defaultdict
from collections.abc import Sequence

from statekit.core.errors import CyclicStepOrderError
from statekit.core.logging import get_logger
from statekit.plugins.types import Placement, Plugin

logger = get_logger(__name__)

BASE_STEP_ORDER: tuple[str, ...] = (
    "connect",
    "constants",
    "action_creators",
    "actions",
    "defaults",
    "reducers",
    "reducer",
    "reducer_selectors",
    "selectors",
    "values",
    "events",
)


class _Layout:
    def __init__(self, base: Sequence[str]):
        self.steps: list[str] = list(base)
        self.placed_after: dict[str, set[str]] = defaultdict(set)

    def __contains__(self, step: str) -> bool:
        return step in self.steps

    def append(self, step: str) -> None:
        if step not in self.steps:
            self.steps.append(step)

    def place(self, step: str, placement: Placement) -> bool:
        """Insert ``step`` at its placement. False if the anchor is not laid out yet."""
        anchor = placement.anchor
        if anchor not in self.steps:
            return False
        if step in self.steps:
            return True

        if placement.after is not None:
            index = self.steps.index(anchor) + 1
            followers = self.placed_after[anchor]
            while index < len(self.steps) and self.steps[index] in followers:
                index += 1
            followers.add(step)
        else:
            index = self.steps.index(anchor)
        self.steps.insert(index, step)
        return True


def compute_step_order(plugins: Sequence[Plugin], base: Sequence[str] = BASE_STEP_ORDER) -> list[str]:
    """Merge ``base`` with the placements of ``plugins`` (in activation order).

    Raises:
        CyclicStepOrderError: If the placements cannot all be satisfied.
    """
    layout = _Layout(base)
    pending: list[tuple[str, Placement, str]] = []

    def retry_pending() -> None:
        progressed = True
        while progressed:
            progressed = False
            for item in list(pending):
                if layout.place(item[0], item[1]):
                    pending.remove(item)
                    progressed = True

    for plugin in plugins:
        for step, placement in plugin.build_order.items():
            if not layout.place(step, placement):
                pending.append((step, placement, plugin.name))
        retry_pending()
        for step in plugin.build_steps:
            if step not in plugin.build_order:
                layout.append(step)
        retry_pending()

    for step, placement, plugin_name in pending:
        logger.debug("step_anchor_missing", step=step, anchor=placement.anchor, plugin=plugin_name)
        layout.append(step)

    edges: set[tuple[str, str]] = set(zip(base, base[1:]))
    owners: dict[str, str] = {}
    for plugin in plugins:
        for step, placement in plugin.build_order.items():
            owners.setdefault(step, plugin.name)
            if placement.after is not None and placement.after in layout:
                edges.add((placement.after, step))
            if placement.before is not None and placement.before in layout:
                edges.add((step, placement.before))

    order = _stable_topological_sort(layout.steps, edges)
    if len(order) != len(layout.steps):
        stuck = [step for step in layout.steps if step not in order]
        culprit = next((owners[s] for s in stuck if s in owners), None)
        raise CyclicStepOrderError(stuck, plugin_name=culprit)
    return order


def _stable_topological_sort(steps: list[str], edges: set[tuple[str, str]]) -> list[str]:
    position = {step: index for index, step in enumerate(steps)}
    in_degree: dict[str, int] = {step: 0 for step in steps}
    successors: dict[str, list[str]] = defaultdict(list)

    for source, target in edges:
        successors[source].append(target)
        in_degree[target] += 1

    ready = [(position[step], step) for step, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        _, step = heapq.heappop(ready)
        order.append(step)
        for successor in successors[step]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                heapq.heappush(ready, (position[successor], successor))
    return order


__all__ = ["BASE_STEP_ORDER", "compute_step_order"]
