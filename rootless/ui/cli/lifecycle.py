"""
CLI commands for tool lifecycle operations.

Thin wrappers over ``rootless.core.services.provision.LifecycleController``.
"""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from rootless.core.models.report import OperationReport
from rootless.core.models.tool import ToolDefinition

_STATUS_STYLE = {
    "ok": ("✅", "green"),
    "skipped": ("⏭️ ", "yellow"),
    "partial": ("⚠️ ", "yellow"),
}

_FILE_STYLE = {
    "updated": ("✏️ ", "green"),
    "already_configured": ("✓ ", "white"),
    "skipped": ("·  ", "white"),
    "failed": ("❌", "red"),
    "removed": ("🧹", "green"),
    "nothing_to_remove": ("·  ", "white"),
}


# ── Shared helpers ──────────────────────────────────────────────


def _load(ctx: click.Context) -> tuple[dict[str, ToolDefinition], Any]:
    """Settings, catalog and controller, loaded once per invocation."""
    if "controller" not in ctx.obj:
        from rootless.core.config.catalog_loader import discover_tools
        from rootless.core.config.settings import load_settings
        from rootless.core.services.provision import LifecycleController

        settings = load_settings(ctx.obj.get("config_path"))
        ctx.obj["tools"] = discover_tools(settings.catalog_paths())
        ctx.obj["controller"] = LifecycleController.from_settings(settings)
    return ctx.obj["tools"], ctx.obj["controller"]


def _tool(ctx: click.Context, name: str) -> ToolDefinition:
    from rootless.core.config.catalog_loader import get_tool

    tools, _ = _load(ctx)
    return get_tool(tools, name)


def _fail(exc: Exception, as_json: bool) -> NoReturn:
    phase = getattr(exc, "phase", None)
    if as_json:
        click.echo(json.dumps({
            "ok": False,
            "error": str(exc),
            "type": type(exc).__name__,
            "phase": phase,
        }, indent=2))
        sys.exit(1)

    click.secho(f"❌ {exc}", fg="red", err=True)
    if phase:
        click.echo(f"   Phase: {phase}", err=True)
    missing = getattr(exc, "missing", None)
    if missing:
        click.echo(f"   Missing: {', '.join(missing)}", err=True)
    sys.exit(1)


def _print_report(report: OperationReport, quiet: bool = False) -> None:
    icon, color = _STATUS_STYLE[report.status]
    click.secho(f"{icon} {report.message}", fg=color, bold=True)
    if quiet:
        return

    if report.install_root:
        click.echo(f"   Root: {report.install_root}")
    if report.artifact is not None:
        click.echo(f"   Artifact: {report.artifact.filename} ({report.artifact.kind})")
    removed_paths = report.metadata.get("removed_paths", [])
    for path in removed_paths:
        click.echo(f"   Removed: {path}")

    profiles = report.profiles
    if profiles is None:
        return
    if profiles.live_env_satisfied:
        click.echo("   ℹ️  Current shell already configured; profiles left untouched")
        return
    for outcome in profiles.outcomes:
        f_icon, f_color = _FILE_STYLE[outcome.status]
        detail = outcome.status.replace("_", " ")
        if outcome.lines_added:
            detail += f" (+{len(outcome.lines_added)})"
        if outcome.lines_removed:
            detail += f" (-{outcome.lines_removed})"
        click.secho(f"   {f_icon} {outcome.path}: {detail}", fg=f_color)
        if outcome.backup:
            click.echo(f"      backup: {outcome.backup}")
        if outcome.error:
            click.echo(f"      {outcome.error}")
    if profiles.touched:
        click.echo("   Restart your shell or source the updated file(s) to apply changes.")


def _emit(ctx: click.Context, report: OperationReport, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report, quiet=ctx.obj.get("quiet", False))


def run_operation(
    ctx: click.Context,
    name: str,
    operation: str,
    *,
    as_json: bool = False,
    **kwargs: Any,
) -> None:
    """Resolve ``name`` and run ``operation``; exit 1 on any failure."""
    from rootless.core.config.settings import ConfigError
    from rootless.core.services.provision import ProvisionError

    try:
        tool = _tool(ctx, name)
        _, controller = _load(ctx)
        report = controller.run(tool, operation, **kwargs)
    except (ProvisionError, ConfigError) as exc:
        _fail(exc, as_json)
    _emit(ctx, report, as_json)


def parse_assignments(pairs: tuple[str, ...]) -> dict[str, str]:
    """``("A=1", "B=2")`` → ``{"A": "1", "B": "2"}``."""
    values: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got {pair!r}", param_hint="--set")
        values[name.strip()] = value
    return values


def prompt_values(tool: ToolDefinition, given: dict[str, str]) -> dict[str, str]:
    """Prompt for every configure variable not already supplied."""
    values = dict(given)
    if tool.configure is None:
        return values
    for var in tool.configure.variables:
        if var.name in values:
            continue
        values[var.name] = click.prompt(
            var.prompt or f"Enter {var.name}",
            default="",
            show_default=False,
            hide_input=var.secret,
        )
    return values


# ── Commands ────────────────────────────────────────────────────


@click.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_tools(ctx: click.Context, as_json: bool) -> None:
    """List catalog tools and whether they are installed."""
    from rootless.core.config.settings import ConfigError

    try:
        tools, controller = _load(ctx)
    except ConfigError as exc:
        _fail(exc, as_json)

    rows = [
        {
            "name": tool.name,
            "label": tool.display_name,
            "delivery": tool.delivery,
            "installed": controller.is_installed(tool),
            "configurable": tool.configure is not None,
            "description": tool.description,
        }
        for tool in sorted(tools.values(), key=lambda t: t.name)
    ]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.secho("No tools in catalog.", fg="yellow")
        return

    click.secho(f"🧰 Tools ({len(rows)}):", fg="cyan", bold=True)
    for row in rows:
        state = click.style("installed", fg="green") if row["installed"] else "-"
        click.echo(f"   {row['name']:<14} {state:<10}  {row['description']}")


@click.command()
@click.argument("tool")
@click.option("--version", "version", default="latest", help="Version to install.")
@click.option("--reinstall", is_flag=True, help="Reinstall even if already present.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, tool: str, version: str, reinstall: bool, as_json: bool) -> None:
    """Install TOOL under your home directory."""
    run_operation(ctx, tool, "install", as_json=as_json, version=version, reinstall=reinstall)


@click.command()
@click.argument("tool")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, tool: str, as_json: bool) -> None:
    """Remove TOOL and its shell profile lines."""
    run_operation(ctx, tool, "uninstall", as_json=as_json)


@click.command()
@click.argument("tool")
@click.option("--version", "version", default="latest", help="Version to reinstall.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def repair(ctx: click.Context, tool: str, version: str, as_json: bool) -> None:
    """Uninstall then reinstall TOOL."""
    run_operation(ctx, tool, "repair", as_json=as_json, version=version)


@click.command()
@click.argument("tool")
@click.option(
    "--set", "assignments", multiple=True, metavar="NAME=VALUE",
    help="Variable to write (repeatable). Missing ones are prompted for.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def configure(ctx: click.Context, tool: str, assignments: tuple[str, ...], as_json: bool) -> None:
    """Write TOOL's user-supplied variables to your shell profiles.

    Examples:

        rootless configure claude-code --set ANTHROPIC_BASE_URL=https://router.local
    """
    from rootless.core.config.settings import ConfigError
    from rootless.core.services.provision import ProvisionError

    values = parse_assignments(assignments)
    try:
        definition = _tool(ctx, tool)
    except (ProvisionError, ConfigError) as exc:
        _fail(exc, as_json)
    run_operation(ctx, tool, "configure", as_json=as_json, values=prompt_values(definition, values))
