"""
Specifications and identity resolution.

A :class:`Specification` is the immutable description a logic is built from.
Its identity (path + key) decides which cache entry a build lands in:

- static spec: ``path`` as declared, or ``(<auto_path_root>, "inline", <origin_id>)``
- keyed spec:  the key comes from an explicit key, the bound key of a partial
  spec, or ``spec.key(props)``; callable paths receive it, other paths get it
  appended as the last segment.

Example::

    spec = Specification.from_input({"path": ("scenes", "todo"), "key": lambda p: p["id"]})
    resolve_identity(spec, {"id": 5}).path_string   # "scenes.todo.5"
"""

from __future__ import annotations

import dataclasses
import itertools
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from statekit.core.errors import SpecificationError
from statekit.core.fields import path_to_string

_spec_ids = itertools.count(1)

SPEC_FIELDS = (
    "path",
    "key",
    "connect",
    "constants",
    "actions",
    "reducers",
    "selectors",
    "defaults",
    "events",
    "options",
    "plugins",
    "exclude_plugins",
)


def _next_spec_id() -> int:
    return next(_spec_ids)


@dataclass(frozen=True, eq=False)
class Specification:
    """Immutable pre-build description of a logic.

    Attributes:
        path: Sequence of segments, a callable ``(key) -> sequence`` (keyed specs)
            or ``() -> sequence``, or None for an automatic path
        key: Callable ``(props) -> key``; marks the spec as keyed
        connect: Connection declaration, or a callable ``(props) -> declaration``
        constants, actions, reducers, selectors, defaults, events: Field inputs,
            each a plain value or a callable ``(logic) -> value``
        options: ``{"lazy": bool}``
        plugins: Local plugins for this spec only
        exclude_plugins: Names of global plugins this spec opts out of
        extras: Unrecognized keys, for plugins to consume
        bound_key: Key fixed by :func:`resolve_partial`
        spec_id: Process-unique id of this spec object
        origin_id: Shared by partial specs that only bind a key
    """

    path: Sequence[str] | Callable[..., Sequence[Any]] | None = None
    key: Callable[[Any], Any] | None = None
    connect: Any = None
    constants: Any = None
    actions: Any = None
    reducers: Any = None
    selectors: Any = None
    defaults: Any = None
    events: Any = None
    options: Mapping[str, Any] = field(default_factory=dict)
    plugins: tuple[Any, ...] = ()
    exclude_plugins: tuple[str, ...] = ()
    extras: Mapping[str, Any] = field(default_factory=dict)
    bound_key: Any = None
    spec_id: int = field(default_factory=_next_spec_id)
    origin_id: int | None = None

    def __post_init__(self):
        if self.origin_id is None:
            object.__setattr__(self, "origin_id", self.spec_id)
        if self.path is not None and not callable(self.path):
            if isinstance(self.path, str) or not isinstance(self.path, Sequence):
                raise SpecificationError(f"'path' must be a sequence of segments, got {self.path!r}")
            object.__setattr__(self, "path", tuple(self.path))
        if self.key is not None and not callable(self.key):
            raise SpecificationError("'key' must be a callable taking props")
        if not isinstance(self.options, Mapping):
            raise SpecificationError(f"'options' must be a mapping, got {self.options!r}")
        object.__setattr__(self, "plugins", tuple(self.plugins or ()))
        if isinstance(self.exclude_plugins, str):
            object.__setattr__(self, "exclude_plugins", (self.exclude_plugins,))
        else:
            object.__setattr__(self, "exclude_plugins", tuple(self.exclude_plugins or ()))

    @classmethod
    def from_input(cls, data: Specification | Mapping[str, Any] | None = None, **kwargs: Any) -> Specification:
        """Create a specification from a mapping and/or keyword arguments.

        Unknown keys end up in ``extras``.
        """
        if isinstance(data, Specification):
            if not kwargs:
                return data
            return resolve_partial(data, **kwargs)
        if data is not None and not isinstance(data, Mapping):
            raise SpecificationError(f"Expected a mapping, got {type(data).__name__}")

        merged = {**(data or {}), **kwargs}
        known = {name: merged.pop(name) for name in SPEC_FIELDS if name in merged}
        return cls(**known, extras=dict(merged))

    # ── Classification ───────────────────────────────────────────────────

    @property
    def is_keyed(self) -> bool:
        """Identity includes a key."""
        return self.key is not None or self.bound_key is not None

    @property
    def is_dynamic(self) -> bool:
        return self.is_keyed or callable(self.connect)

    def is_lazy(self, default_lazy: bool = False) -> bool:
        """Lazy specs are only built on demand; others are built at declaration."""
        if self.is_dynamic:
            return True
        return bool(self.options.get("lazy", default_lazy))

    def get(self, name: str, default: Any = None) -> Any:
        """Read a recognized field or an extra."""
        if name in SPEC_FIELDS:
            value = getattr(self, name)
            return default if value is None else value
        return self.extras.get(name, default)

    def __repr__(self) -> str:
        path = "<auto>" if self.path is None else ("<callable>" if callable(self.path) else ".".join(self.path))
        return f"Specification(path={path}, spec_id={self.spec_id}, origin_id={self.origin_id})"


@dataclass(frozen=True)
class LogicIdentity:
    """Resolved path and key of a logic. ``path_string`` is the cache key."""

    path: tuple[str, ...]
    key: Any = None

    @property
    def path_string(self) -> str:
        return path_to_string(self.path)


def resolve_key(spec: Specification, props: Any = None, key: Any = None) -> Any:
    """Resolve the key of a keyed spec.

    Raises:
        SpecificationError: If no key can be derived or the key function fails
    """
    if key is None:
        key = spec.bound_key
    if key is None and spec.key is not None:
        try:
            key = spec.key(props if props is not None else {})
        except Exception as exc:
            raise SpecificationError(
                f"Key function of {spec!r} failed for props {props!r}", cause=exc
            ) from exc
    if key is None:
        raise SpecificationError(f"Keyed logic {spec!r} needs a key but none could be derived")
    return key


def resolve_identity(
    spec: Specification,
    props: Any = None,
    key: Any = None,
    *,
    auto_path_root: str = "statekit",
) -> LogicIdentity:
    """Resolve the identity a build of ``spec`` with ``props`` lands in.

    Raises:
        SpecificationError: Missing key, or a path that resolves to nothing
    """
    if not spec.is_keyed:
        if key is not None:
            raise SpecificationError(f"{spec!r} has no key function; cannot build it with key {key!r}")
        raw = spec.path() if callable(spec.path) else spec.path
        if raw is None:
            raw = (auto_path_root, "inline", str(spec.origin_id))
        return LogicIdentity(_normalize_path(raw, spec), None)

    key = resolve_key(spec, props, key)
    if callable(spec.path):
        raw = spec.path(key)
    elif spec.path is not None:
        raw = (*spec.path, key)
    else:
        raw = (auto_path_root, "inline", str(spec.origin_id), key)
    return LogicIdentity(_normalize_path(raw, spec), key)


def _normalize_path(raw: Any, spec: Specification) -> tuple[str, ...]:
    if isinstance(raw, str) or not isinstance(raw, Sequence):
        raise SpecificationError(f"Path of {spec!r} must resolve to a sequence, got {raw!r}")
    path = tuple(str(segment) for segment in raw)
    if not path:
        raise SpecificationError(f"Path of {spec!r} resolved to an empty path")
    return path


def resolve_partial(spec: Specification, **overrides: Any) -> Specification:
    """Derive a new specification with ``overrides`` applied.

    Overriding only ``key`` keeps the origin: a plain value becomes the bound
    key, a callable replaces the key function. Any other override creates a
    new origin.
    """
    if not overrides:
        return spec

    if set(overrides) == {"key"}:
        value = overrides["key"]
        changes = {"key": value} if callable(value) else {"bound_key": value}
        return dataclasses.replace(spec, **changes, spec_id=_next_spec_id(), origin_id=spec.origin_id)

    data: dict[str, Any] = {name: getattr(spec, name) for name in SPEC_FIELDS}
    data.update(spec.extras)
    if "key" in overrides and not callable(overrides["key"]):
        bound_key = overrides.pop("key")
    else:
        bound_key = spec.bound_key
    data.update(overrides)
    partial = Specification.from_input(data)
    if bound_key is not None:
        partial = dataclasses.replace(partial, bound_key=bound_key)
    return partial


__all__ = [
    "LogicIdentity",
    "SPEC_FIELDS",
    "Specification",
    "resolve_identity",
    "resolve_key",
    "resolve_partial",
]
