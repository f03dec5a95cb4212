"""
Memoized selectors.

A selector is a function ``(state, props=None) -> value``. A derived selector
built with :func:`create_selector` reads its input selectors and only calls the
compute function again when one of the inputs changed (compared by identity),
so unchanged store state never produces a new derived value.

Example::

    name = lambda state, props=None: state["user"]["name"]
    upper = create_selector([name], lambda n: n.upper())

    upper(state)   # computes
    upper(state)   # returns the memoized value
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

Selector = Callable[..., Any]

_MISSING = object()


class MemoizedSelector:
    """Derived selector with a single-entry cache keyed on input identity."""

    def __init__(self, inputs: Sequence[Selector], compute: Callable[..., Any]):
        self.inputs = tuple(inputs)
        self.compute = compute
        self.recomputations = 0
        self._last_args: tuple[Any, ...] | None = None
        self._last_result: Any = _MISSING

    def __call__(self, state: Any, props: Any = None) -> Any:
        args = tuple(selector(state, props) for selector in self.inputs)
        if self._last_args is not None and _same_args(args, self._last_args):
            return self._last_result

        self._last_result = self.compute(*args)
        self._last_args = args
        self.recomputations += 1
        return self._last_result

    def reset(self) -> None:
        """Forget the memoized value."""
        self._last_args = None
        self._last_result = _MISSING

    def __repr__(self) -> str:
        name = getattr(self.compute, "__name__", "compute")
        return f"MemoizedSelector({name}, inputs={len(self.inputs)})"


def _same_args(left: tuple[Any, ...], right: tuple[Any, ...]) -> bool:
    return len(left) == len(right) and all(a is b for a, b in zip(left, right))


def create_selector(inputs: Sequence[Selector], compute: Callable[..., Any]) -> MemoizedSelector:
    """Create a memoized selector from input selectors and a compute function."""
    for selector in inputs:
        if not callable(selector):
            raise TypeError(f"Selector inputs must be callable, got {type(selector).__name__}")
    return MemoizedSelector(inputs, compute)


__all__ = ["MemoizedSelector", "Selector", "create_selector"]
