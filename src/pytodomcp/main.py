from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from .app_context import AppContext
from .config.models import LOG_LEVELS, ConfigError
from .mcp.framing import FRAMINGS, StdioTransport
from .tools.errors import ToolError
from .util.log import setup_logging

app = typer.Typer(add_completion=False, help="pytodomcp: persistent todo tools over MCP stdio.")
console = Console()
err_console = Console(stderr=True)


def _context(
    config: Path | None,
    store: Path | None,
    framing: str | None = None,
    log_level: str | None = None,
) -> AppContext:
    if framing is not None and framing not in FRAMINGS:
        raise typer.BadParameter(f"--framing must be one of: {', '.join(FRAMINGS)}")
    if log_level is not None and log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(f"--log-level must be one of: {', '.join(LOG_LEVELS)}")
    try:
        ctx = AppContext.from_env(
            cwd=Path.cwd(),
            config_path=config,
            store_path=store,
            framing=framing,
            log_level=log_level,
        )
    except ConfigError as e:
        err_console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(code=2)
    setup_logging(ctx.config.log_level)
    return ctx


def _parse_arg_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command()
def serve(
    config: Path = typer.Option(None, "--config", help="YAML config path (merged over global/project config)."),
    store: Path = typer.Option(None, "--store", help="Backing JSON document (default: user data dir)."),
    framing: str = typer.Option(None, "--framing", help="Message framing: auto, ndjson or content-length."),
    log_level: str = typer.Option(None, "--log-level", help="Log level for stderr diagnostics."),
):
    """Serve the tool catalog over stdin/stdout until the peer closes the stream."""
    ctx = _context(config, store, framing, log_level)
    transport = StdioTransport(sys.stdin.buffer, sys.stdout.buffer, framing=ctx.config.framing)
    status = ctx.server().run(transport)
    raise typer.Exit(code=status)


@app.command()
def tools(
    config: Path = typer.Option(None, "--config", help="YAML config path."),
):
    """List the tool catalog and advertised capabilities."""
    ctx = _context(config, None)
    caps = ctx.config.capabilities
    table = Table(title="Tools")
    table.add_column("name", style="bold")
    table.add_column("description")
    table.add_column("arguments")
    for spec in ctx.dispatcher.list_tools():
        args = ", ".join(f"{a.name}:{a.kind.json_type}" for a in spec.args) or "-"
        table.add_row(spec.name, spec.description, args)
    console.print(table)
    console.print(
        f"capabilities: tools={caps.tools} resources={caps.resources} "
        f"prompts={caps.prompts} enforce={caps.enforce}"
    )


@app.command()
def todos(
    config: Path = typer.Option(None, "--config", help="YAML config path."),
    store: Path = typer.Option(None, "--store", help="Backing JSON document."),
):
    """Show the todos currently stored in the document."""
    ctx = _context(config, store)
    try:
        content = ctx.dispatcher.call_tool("get_todos", {})
    except ToolError as e:
        err_console.print(f"[red]{e.kind}:[/red] {e.message}")
        raise typer.Exit(code=1)
    items = json.loads(content[0].text) if content else []
    if not items:
        console.print("(empty todo list)")
        return
    table = Table(title=str(ctx.store.path))
    table.add_column("id", justify="right")
    table.add_column("done")
    table.add_column("text")
    for it in items:
        table.add_row(str(it["id"]), "x" if it["done"] else "", it["text"])
    console.print(table)


@app.command()
def call(
    name: str = typer.Argument(..., help="Tool name (see `pytodomcp tools`)."),
    arg: list[str] = typer.Option(None, "--arg", "-A", help="Tool argument as key=value; value parsed as JSON if possible."),
    config: Path = typer.Option(None, "--config", help="YAML config path."),
    store: Path = typer.Option(None, "--store", help="Backing JSON document."),
):
    """Invoke one tool locally, without a protocol session."""
    ctx = _context(config, store)
    args: dict[str, Any] = {}
    for it in (arg or []):
        if "=" not in it:
            raise typer.BadParameter(f"--arg must look like key=value, got: {it}")
        k, v = it.split("=", 1)
        args[k.strip()] = _parse_arg_value(v)
    try:
        content = ctx.dispatcher.call_tool(name, args)
    except ToolError as e:
        err_console.print(f"[red]{e.kind}:[/red] {e.message}")
        raise typer.Exit(code=1)
    for c in content:
        console.print(c.to_obj().get("text", ""), markup=False, highlight=False, soft_wrap=True)


if __name__ == "__main__":
    app()
