"""Helpers shared by the core build steps."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from statekit.core.errors import SpecificationError
from statekit.core.fields import as_dict

if TYPE_CHECKING:
    from statekit.logic.model import Logic


def resolve_input(value: Any, logic: Logic) -> Any:
    """Field inputs may be given directly or as a callable ``(logic) -> value``."""
    if callable(value):
        return value(logic)
    return value


def resolve_mapping(value: Any, logic: Logic, field_name: str) -> Mapping[str, Any]:
    """Resolve a field input that must be a mapping (empty when absent)."""
    resolved = resolve_input(value, logic)
    if resolved is None:
        return {}
    if not isinstance(resolved, Mapping):
        raise SpecificationError(
            f"'{field_name}' must be a mapping, got {type(resolved).__name__}"
        ).with_context(path=logic.path_string, step=field_name)
    return as_dict(resolved)


__all__ = ["resolve_input", "resolve_mapping"]
