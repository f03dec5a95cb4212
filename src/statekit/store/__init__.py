"""Store interface the core attaches reducers to.

Why This Package Exists
-----------------------
The lifecycle manager attaches a logic's reducer when it is first mounted and
detaches it when the last consumer unmounts. It does not care how the store
keeps state, only that it honours the ``Store`` protocol below.

``InMemoryStore`` is the reference implementation used by default and by the
test suite.

Usage::

    from statekit.store import InMemoryStore

    store = InMemoryStore()
    store.attach_reducer(("scenes", "todos"), reducer)
    store.dispatch({"type": "add todo (scenes.todos)", "payload": {"text": "x"}})
    store.get_state()["scenes"]["todos"]

Modules
-------
memory      InMemoryStore -- nested dict state, copy-on-write along paths
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

Action = Mapping[str, Any]
Reducer = Callable[[Any, Action], Any]
Listener = Callable[[], None]

INIT_ACTION_TYPE = "@@statekit/INIT"


@runtime_checkable
class Store(Protocol):
    """Protocol for stores a logic can be mounted into."""

    def attach_reducer(self, path: Sequence[str], reducer: Reducer) -> None:
        """Attach ``reducer`` so that it owns the state slice at ``path``."""
        ...

    def detach_reducer(self, path: Sequence[str]) -> None:
        """Detach the reducer at ``path`` and drop its state slice."""
        ...

    def get_state(self) -> dict[str, Any]:
        """Return the current root state."""
        ...

    def dispatch(self, action: Action) -> Action:
        """Run ``action`` through every attached reducer and notify listeners."""
        ...

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unsubscribes it."""
        ...


from statekit.store.memory import InMemoryStore  # noqa: E402

__all__ = [
    "Action",
    "Reducer",
    "Listener",
    "Store",
    "InMemoryStore",
    "INIT_ACTION_TYPE",
]
