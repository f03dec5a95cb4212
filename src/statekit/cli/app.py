"""
Root Typer application for the statekit CLI.

Commands inspect what statekit would do without running an application:

    statekit steps [--plugin module:attr]...     merged build step order
    statekit describe module:attr [--key K]      fields of a declared logic
"""

from __future__ import annotations

from typing import Any

import typer
from rich.table import Table

from statekit.cli.utils import console, fail, print_json, resolve_ref
from statekit.context import Context, get_context
from statekit.core.errors import StatekitError
from statekit.core.fields import as_dict
from statekit.core.logging import configure_logging
from statekit.core.settings import get_settings
from statekit.logic.wrapper import LogicWrapper

app = typer.Typer(
    name="statekit",
    help="statekit — plugin-driven logic builds for state stores.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("statekit")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"statekit {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override STATEKIT_LOG_LEVEL."),
) -> None:
    """statekit CLI — inspect build step orders and declared logics."""
    settings = get_settings()
    configure_logging(
        level=(log_level or settings.log_level).upper(),
        json_format=settings.json_logs,
        service="statekit-cli",
    )


# ── steps ────────────────────────────────────────────────────────────────


@app.command("steps")
def show_steps(
    plugins: list[str] = typer.Option([], "--plugin", "-p", help="Plugin to activate (module:attr)."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the build step order with the plugins contributing to each step."""
    try:
        context = Context(plugins=[resolve_ref(ref) for ref in plugins])
    except StatekitError as exc:
        fail(exc.message)

    plugin_set = context.registry.plugins
    rows = [
        {"index": index, "step": step, "plugins": plugin_set.contributors(step)}
        for index, step in enumerate(plugin_set.step_order, start=1)
    ]

    if json_out:
        print_json({"plugins": plugin_set.names, "steps": rows})
        return

    table = Table(title="Build steps")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Step", style="cyan")
    table.add_column("Plugins")
    for row in rows:
        table.add_row(str(row["index"]), row["step"], ", ".join(row["plugins"]) or "[dim]-[/dim]")
    console.print(table)


# ── describe ─────────────────────────────────────────────────────────────


def _describe(wrapper: LogicWrapper, key: str | None) -> dict[str, Any]:
    logic = wrapper.build_with_key(key) if key is not None else wrapper.build()
    return {
        "path": logic.path_string,
        "key": logic.key,
        "lazy": wrapper.lazy,
        "mounted": logic.mounted,
        "mount_count": logic.mount_count,
        "constants": list(logic.constants),
        "actions": {name: creator.type for name, creator in as_dict(logic.action_creators).items()},
        "reducers": {name: as_dict(logic.defaults).get(name) for name in logic.reducers},
        "selectors": list(logic.selectors),
        "connections": list(logic.connections),
    }


@app.command("describe")
def describe_logic(
    target: str = typer.Argument(..., help="Declared logic (module:attr)."),
    key: str | None = typer.Option(None, "--key", "-k", help="Key for keyed logics."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Build a declared logic and show its path, actions, reducers and selectors."""
    wrapper = resolve_ref(target)
    if not isinstance(wrapper, LogicWrapper):
        fail(f"'{target}' is a {type(wrapper).__name__}, not a declared logic")

    try:
        info = _describe(wrapper, key)
    except StatekitError as exc:
        fail(exc.message)

    if json_out:
        print_json(info)
        return

    console.print(f"[bold]Logic[/bold] [cyan]{info['path']}[/cyan]")
    console.print(f"  lazy: {info['lazy']}  mounted: {info['mounted']}  mount_count: {info['mount_count']}")

    table = Table(show_header=True)
    table.add_column("Kind", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Detail")
    for name in info["constants"]:
        table.add_row("constant", name, "")
    for name, action_type in info["actions"].items():
        table.add_row("action", name, action_type)
    for name, default in info["reducers"].items():
        table.add_row("reducer", name, repr(default))
    for name in info["selectors"]:
        table.add_row("selector", name, "")
    for path in info["connections"]:
        table.add_row("connection", path, "")
    console.print(table)

    context = get_context()
    console.print(f"[dim]{len(context.cache)} logic(s) in cache[/dim]")


if __name__ == "__main__":
    app()
