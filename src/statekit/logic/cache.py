"""
Instance cache.

One live logic per identity (path string). ``get_or_build`` either returns the
cached logic or builds, stores and announces a new one. Identities under
construction are tracked so a connection that loops back to one of them fails
with :class:`UnresolvedConnectionError` instead of recursing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from statekit.core.errors import IdentityCollisionError, UnresolvedConnectionError
from statekit.core.logging import get_logger
from statekit.plugins.types import LifecyclePhase

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.model import Logic
    from statekit.logic.specification import LogicIdentity, Specification

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    logic: Logic
    origin_id: int
    eager: bool = False

    @property
    def mount_count(self) -> int:
        return self.logic.mount_count


class InstanceCache:
    """Identity -> built logic, for one context."""

    def __init__(self, context: Context):
        self.context = context
        self._entries: dict[str, CacheEntry] = {}
        self._building: list[str] = []

    def get_or_build(self, identity: LogicIdentity, spec: Specification, props: Any = None) -> Logic:
        """Return the logic cached for ``identity``, building it on first use.

        Raises:
            IdentityCollisionError: A different specification owns ``identity``
            UnresolvedConnectionError: ``identity`` is already being built
        """
        key = identity.path_string
        entry = self._entries.get(key)
        if entry is not None:
            if entry.origin_id != spec.origin_id:
                raise IdentityCollisionError(key)
            return entry.logic

        if key in self._building:
            chain = " -> ".join([*self._building, key])
            raise UnresolvedConnectionError(f"Cyclic connection while building: {chain}", path=key)

        self._building.append(key)
        try:
            logic = self.context.builder.build(spec, identity, props)
        finally:
            self._building.pop()

        self._entries[key] = CacheEntry(logic=logic, origin_id=spec.origin_id)
        logger.debug("logic_cached", path=key, entries=len(self._entries))
        if logic.plugins is not None:
            logic.plugins.run_event(LifecyclePhase.AFTER_BUILD, logic, spec)
        return logic

    def get(self, path_string: str) -> Logic | None:
        entry = self._entries.get(path_string)
        return entry.logic if entry is not None else None

    def entry(self, path_string: str) -> CacheEntry | None:
        return self._entries.get(path_string)

    def is_building(self, path_string: str) -> bool:
        return path_string in self._building

    def evict(self, path_string: str) -> bool:
        """Drop an unmounted logic from the cache. Mounted logics stay."""
        entry = self._entries.get(path_string)
        if entry is None or entry.mount_count > 0:
            return False
        del self._entries[path_string]
        logger.debug("logic_evicted", path=path_string)
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._building.clear()

    def __contains__(self, path_string: object) -> bool:
        return path_string in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def paths(self) -> list[str]:
        return list(self._entries)


__all__ = ["CacheEntry", "InstanceCache"]
