"""
In-memory store implementation.

Manifesto:
    Tests and single-process applications need a store that behaves like a
    real one (reducers attached by path, listeners notified after each
    dispatch) without any external machinery.

State is a nested dict keyed by path segments. Updates are copy-on-write
along the changed paths only, so a dispatch that leaves every slice
unchanged leaves the root state object unchanged too.

Tags:
    statekit, store, in-memory, reducers, testing

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from statekit.core.errors import StoreError
from statekit.core.fields import path_to_string
from statekit.core.logging import get_logger
from statekit.store import INIT_ACTION_TYPE, Action, Listener, Reducer

logger = get_logger(__name__)

__all__ = ["InMemoryStore"]


def _assoc_in(state: Mapping[str, Any], path: tuple[str, ...], value: Any) -> dict[str, Any]:
    head, rest = path[0], path[1:]
    new_state = dict(state)
    if rest:
        child = state.get(head)
        new_state[head] = _assoc_in(child if isinstance(child, Mapping) else {}, rest, value)
    else:
        new_state[head] = value
    return new_state


def _dissoc_in(state: Mapping[str, Any], path: tuple[str, ...]) -> dict[str, Any]:
    head, rest = path[0], path[1:]
    if head not in state:
        return dict(state)
    new_state = dict(state)
    if rest:
        child = _dissoc_in(state[head], rest)
        if child:
            new_state[head] = child
        else:
            del new_state[head]
    else:
        del new_state[head]
    return new_state


def _lookup(state: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = state
    for segment in path:
        if not isinstance(node, Mapping) or segment not in node:
            return None
        node = node[segment]
    return node


class InMemoryStore:
    """In-process store with reducers attached by path.

    Example::

        store = InMemoryStore()
        unsubscribe = store.subscribe(lambda: print(store.get_state()))
        store.attach_reducer(("counter",), lambda state, action: (state or 0) + 1)
    """

    def __init__(self, initial_state: Mapping[str, Any] | None = None) -> None:
        self._state: dict[str, Any] = dict(initial_state or {})
        self._reducers: dict[tuple[str, ...], Reducer] = {}
        self._listeners: dict[int, Listener] = {}
        self._next_listener_id = 0
        self._dispatching = False

    # ── Reducer attachment ───────────────────────────────────────────────

    def attach_reducer(self, path: Sequence[str], reducer: Reducer) -> None:
        key = tuple(path)
        if not key:
            raise StoreError("Cannot attach a reducer at the root path")
        for existing in self._reducers:
            shorter = min(len(existing), len(key))
            if existing[:shorter] == key[:shorter]:
                raise StoreError(
                    f"Cannot attach reducer at '{path_to_string(key)}': "
                    f"overlaps reducer at '{path_to_string(existing)}'"
                ).with_context(path=path_to_string(key))

        self._reducers[key] = reducer
        initial = reducer(_lookup(self._state, key), {"type": INIT_ACTION_TYPE})
        self._state = _assoc_in(self._state, key, initial)
        logger.debug("reducer_attached", path=path_to_string(key))
        self._notify()

    def detach_reducer(self, path: Sequence[str]) -> None:
        key = tuple(path)
        if key not in self._reducers:
            raise StoreError(
                f"No reducer attached at '{path_to_string(key)}'"
            ).with_context(path=path_to_string(key))

        del self._reducers[key]
        self._state = _dissoc_in(self._state, key)
        logger.debug("reducer_detached", path=path_to_string(key))
        self._notify()

    def has_reducer(self, path: Sequence[str]) -> bool:
        """Check if a reducer is attached at ``path``."""
        return tuple(path) in self._reducers

    @property
    def attached_paths(self) -> list[tuple[str, ...]]:
        """Paths with an attached reducer, in attachment order."""
        return list(self._reducers)

    # ── State and dispatch ───────────────────────────────────────────────

    def get_state(self) -> dict[str, Any]:
        return self._state

    def dispatch(self, action: Action) -> Action:
        if not isinstance(action, Mapping) or "type" not in action:
            raise StoreError(f"Actions must be mappings with a 'type' key, got {action!r}")
        if self._dispatching:
            raise StoreError("Reducers may not dispatch actions")

        self._dispatching = True
        try:
            state = self._state
            for key, reducer in self._reducers.items():
                previous = _lookup(state, key)
                updated = reducer(previous, action)
                if updated is not previous:
                    state = _assoc_in(state, key, updated)
            self._state = state
        finally:
            self._dispatching = False

        self._notify()
        return action

    # ── Subscriptions ────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        """Number of active listeners."""
        return len(self._listeners)

    def _notify(self) -> None:
        for listener in list(self._listeners.values()):
            listener()

    def __repr__(self) -> str:
        return f"InMemoryStore(reducers={len(self._reducers)}, listeners={len(self._listeners)})"
