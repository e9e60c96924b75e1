"""
Interactive numbered menu for one tool.

    1. install (default)
    2. uninstall
    3. repair
    4. configure …        (only when the tool has a configure section)

Empty input selects install; anything else unknown exits 1.
"""

from __future__ import annotations

import sys

import click

from rootless.ui.cli.lifecycle import _fail, _tool, prompt_values, run_operation


def menu_choices(has_configure: bool, label: str = "configure") -> list[tuple[str, str]]:
    """Ordered ``(operation, caption)`` pairs; index + 1 is the menu number."""
    choices = [
        ("install", "install (default)"),
        ("uninstall", "uninstall"),
        ("repair", "repair"),
    ]
    if has_configure:
        choices.append(("configure", f"configure {label}"))
    return choices


@click.command()
@click.argument("tool")
@click.pass_context
def menu(ctx: click.Context, tool: str) -> None:
    """Choose an operation for TOOL from a numbered menu."""
    from rootless.core.config.settings import ConfigError
    from rootless.core.services.provision import ProvisionError

    try:
        definition = _tool(ctx, tool)
    except (ProvisionError, ConfigError) as exc:
        _fail(exc, as_json=False)

    configure_spec = definition.configure
    choices = menu_choices(
        configure_spec is not None,
        configure_spec.label if configure_spec is not None else "configure",
    )

    click.secho(f"{definition.display_name}", fg="cyan", bold=True)
    for number, (_, caption) in enumerate(choices, start=1):
        click.echo(f"{number}. {caption}")
    selection = click.prompt("Enter selection", default="1", show_default=True).strip()

    if not selection.isdigit() or not 1 <= int(selection) <= len(choices):
        click.secho("Invalid choice. Exiting.", fg="red", err=True)
        sys.exit(1)

    operation = choices[int(selection) - 1][0]
    if operation == "configure":
        run_operation(ctx, tool, operation, values=prompt_values(definition, {}))
    else:
        run_operation(ctx, tool, operation)
