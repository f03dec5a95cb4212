"""
CLI utility helpers — reference resolution and output formatting.
"""

from __future__ import annotations

import importlib
import json
from typing import Any

import typer
from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def resolve_ref(ref: str) -> Any:
    """Import ``module:attr`` (or ``module.attr``) and return the attribute."""
    if ":" in ref:
        module_name, _, attr = ref.partition(":")
    else:
        module_name, _, attr = ref.rpartition(".")
    if not module_name or not attr:
        fail(f"Invalid reference '{ref}'; expected 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        fail(f"Cannot import module '{module_name}': {exc}")

    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            fail(f"Module '{module_name}' has no attribute '{attr}'")
    return target


def fail(message: str, code: int = 1) -> None:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=code)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))
