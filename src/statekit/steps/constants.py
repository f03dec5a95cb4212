"""``constants`` step: a list of names becomes ``{name: name}``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from statekit.core.errors import SpecificationError
from statekit.steps.base import resolve_input

if TYPE_CHECKING:
    from statekit.logic.model import BuildContext, Logic
    from statekit.logic.specification import Specification


def build_constants(logic: Logic, spec: Specification, build: BuildContext) -> None:
    names = resolve_input(spec.constants, logic)
    if not names:
        return
    if isinstance(names, (str, Mapping)):
        raise SpecificationError(
            f"'constants' must be a sequence of names, got {names!r}"
        ).with_context(path=logic.path_string, step="constants")

    for name in names:
        logic.constants[name] = name


__all__ = ["build_constants"]
