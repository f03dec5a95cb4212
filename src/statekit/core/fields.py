"""Small containers shared by build steps."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any


class FieldMap(MutableMapping):
    """A mapping whose string keys are also readable as attributes.

    Used for ``logic.actions``, ``logic.selectors`` and friends so callers can
    write ``logic.actions.add_todo("x")`` as well as ``logic.actions["add_todo"]``.

    Keys win over mapping methods: with an action named ``clear``,
    ``logic.actions.clear`` is the action, not ``MutableMapping.clear``. Code
    that handles arbitrary field maps goes through the dunder protocol or
    :func:`as_dict` instead of calling ``items()``, ``update()`` and friends.
    """

    def __init__(self, data: Mapping[str, Any] | Iterable[tuple[str, Any]] = (), **kwargs: Any):
        self._data: dict[str, Any] = as_dict(data) if isinstance(data, Mapping) else dict(data)
        self._data.update(kwargs)

    def __getattribute__(self, name: str) -> Any:
        if not name.startswith("_"):
            data = object.__getattribute__(self, "_data")
            if name in data:
                return data[name]
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> Any:
        raise AttributeError(name)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return self._data == as_dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"FieldMap({self._data!r})"

    def __dir__(self) -> Iterable[str]:
        return list(object.__dir__(self)) + [k for k in self._data if isinstance(k, str)]


def as_dict(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Shallow plain-dict copy of ``mapping`` that never calls its public methods."""
    if isinstance(mapping, FieldMap):
        return dict(object.__getattribute__(mapping, "_data"))
    if isinstance(mapping, dict):
        return dict(mapping)
    return {key: mapping[key] for key in mapping}


def get_in(state: Mapping[str, Any], path: Iterable[str]) -> Any:
    """Walk ``path`` through nested mappings.

    Raises:
        KeyError: If a segment is missing (the slice is not attached).
    """
    node: Any = state
    for segment in path:
        node = node[segment]
    return node


def path_to_string(path: Iterable[Any]) -> str:
    """Join path segments with dots."""
    return ".".join(str(p) for p in path)


__all__ = ["FieldMap", "as_dict", "get_in", "path_to_string"]
