"""
Lifecycle Manager — reference-counted mounting coupled to the store.

Manifesto:
A logic's reducer should live in the store exactly as long as something uses
the logic. Consumers call ``mount`` and get back an ``unmount`` callable; the
manager counts them, attaches the reducer on the first mount, detaches it on
the last unmount and mounts connected logics along the way so a dependency
never disappears under a dependent.

Lifecycle of one logic::

    mount (0 → 1)   connections mounted → reducer attached → before_mount
                    → after_mount → plugin AFTER_MOUNT
    mount (n → n+1) connections mounted, count only
    unmount (1 → 0) before_unmount → reducer detached → after_unmount
                    → plugin AFTER_UNMOUNT → connections unmounted
    unmount (0)     MountStateError

Eagerly attached logics (declared non-lazy) and their connections keep their
reducers across unmount-to-zero.

Tags:
    statekit, lifecycle, mount, reference-counting, store

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from statekit.core.errors import MountStateError
from statekit.core.logging import get_logger
from statekit.plugins.types import LifecyclePhase

if TYPE_CHECKING:
    from statekit.context import Context
    from statekit.logic.model import Logic

logger = get_logger(__name__)


class LifecycleManager:
    """Mounts and unmounts logics of one context."""

    def __init__(self, context: Context):
        self.context = context
        self._unmounting: set[str] = set()

    # ── Mounting ─────────────────────────────────────────────────────────

    def mount(self, logic: Logic) -> Callable[[], None]:
        """Mount ``logic`` and its connections; returns an idempotent unmount callable."""
        self._mount(logic)
        released = False

        def unmount() -> None:
            nonlocal released
            if released:
                return
            released = True
            self.unmount(logic)

        return unmount

    def _mount(self, logic: Logic) -> None:
        mounted: list[Logic] = []
        try:
            for dependency in logic.connections.values():
                self._mount(dependency)
                mounted.append(dependency)
            if logic.mount_count == 0 and not logic.mounted:
                self._attach(logic)
                logic.mounted = True
        except Exception:
            for dependency in reversed(mounted):
                self.unmount(dependency)
            raise

        if logic.mount_count == 0:
            logic.mount_count = 1
            logger.debug("logic_mounted", path=logic.path_string)
            logic.run_events("before_mount")
            logic.run_events("after_mount")
            if logic.plugins is not None:
                logic.plugins.run_event(LifecyclePhase.AFTER_MOUNT, logic)
        else:
            logic.mount_count += 1

    def attach_eager(self, logic: Logic) -> None:
        """Attach a non-lazy logic and its connections at declaration time.

        They stay attached for good.
        """
        for dependency in logic.connections.values():
            self.attach_eager(dependency)
        entry = self.context.cache.entry(logic.path_string)
        if entry is not None:
            entry.eager = True
        if not logic.mounted:
            self._attach(logic)
            logic.mounted = True

    def _attach(self, logic: Logic) -> None:
        if logic.reducer is not None:
            self.context.store.attach_reducer(logic.path, logic.reducer)

    # ── Unmounting ───────────────────────────────────────────────────────

    def unmount(self, logic: Logic) -> None:
        """Release one mount of ``logic`` and of its connections.

        Raises:
            MountStateError: If ``logic`` is not mounted
        """
        if logic.mount_count <= 0:
            raise MountStateError(logic.path_string)

        logic.mount_count -= 1
        if logic.mount_count == 0:
            self._teardown(logic)

        for dependency in reversed(list(logic.connections.values())):
            self.unmount(dependency)

    def _teardown(self, logic: Logic) -> None:
        entry = self.context.cache.entry(logic.path_string)
        eager = entry is not None and entry.eager

        logic.run_events("before_unmount")
        if not eager:
            if logic.reducer is not None:
                self.context.store.detach_reducer(logic.path)
            logic.mounted = False
        logger.debug("logic_unmounted", path=logic.path_string, detached=not eager)
        logic.run_events("after_unmount")
        if logic.plugins is not None:
            logic.plugins.run_event(LifecyclePhase.AFTER_UNMOUNT, logic)

        if self.context.settings.evict_on_unmount and not eager:
            self.context.cache.evict(logic.path_string)

    def detach_all(self) -> list[str]:
        """Detach the reducer of every cached logic that is attached. Returns their paths.

        No events run; used when the whole context is being reset.
        """
        detached = []
        for path_string in self.context.cache.paths():
            logic = self.context.cache.get(path_string)
            if logic is None or not logic.mounted:
                continue
            if logic.reducer is not None:
                self.context.store.detach_reducer(logic.path)
                detached.append(path_string)
            logic.mounted = False
            logic.mount_count = 0
        return detached

    # ── Path changes ─────────────────────────────────────────────────────

    def transition(self, old: Logic, new: Logic) -> Callable[[], None]:
        """Swap a consumer from ``old`` to ``new``; returns the unmount callable for ``new``.

        Observers see ``is_unmounting(old.path_string)`` while the swap runs.
        """
        with self.unmounting(old):
            self.unmount(old)
            return self.mount(new)

    def release(self, logic: Logic) -> None:
        """Unmount once with ``logic`` flagged as unmounting."""
        with self.unmounting(logic):
            self.unmount(logic)

    @contextmanager
    def unmounting(self, logic: Logic) -> Iterator[None]:
        self._unmounting.add(logic.path_string)
        try:
            yield
        finally:
            self._unmounting.discard(logic.path_string)

    def is_unmounting(self, path_string: str) -> bool:
        return path_string in self._unmounting


__all__ = ["LifecycleManager"]
