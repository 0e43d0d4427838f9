"""
CLI commands for tool installation.

Thin wrappers over ``devboot.core.services.tool_install``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devboot.core.config.loader import ConfigError
from devboot.core.models.tool import Tool

# Exit code for configuration errors (bad catalog, unknown manager, ...)
EXIT_CONFIG = 2


def _load_tools(catalog_path: str | None) -> dict[str, Tool]:
    """Load the catalog from --catalog, a devboot.yml nearby, or the bundled one."""
    from devboot.core.config.loader import find_catalog_file, load_catalog

    path = Path(catalog_path) if catalog_path else find_catalog_file()
    return load_catalog(path)


def _select(catalog: dict[str, Tool], names: tuple[str, ...]) -> list[Tool]:
    unknown = [n for n in names if n not in catalog]
    if unknown:
        raise ConfigError(
            f"Unknown tool(s): {', '.join(unknown)} "
            f"(available: {', '.join(sorted(catalog))})"
        )
    return [catalog[n] for n in names]


def _config_error(message: str, as_json: bool = False) -> None:
    if as_json:
        click.echo(json.dumps({"ok": False, "error": message}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(EXIT_CONFIG)


def _print_event(event: str, tool: str, detail: str) -> None:
    if event == "started":
        click.secho(f"📦 {tool}", fg="cyan", bold=True)
    elif event == "command_start":
        click.echo(f"   → {detail}")
    elif event == "rollback":
        click.secho(f"   ↩️  rolling back {detail}", fg="yellow")
    elif event == "warning":
        click.secho(f"   ⚠️  {detail}", fg="yellow")
    elif event == "installed":
        click.secho(f"   ✅ installed ({detail})", fg="green")
    elif event == "failed":
        click.secho(f"   ❌ {detail}", fg="red")


@click.group()
def tools() -> None:
    """Tools — list, install, verify."""


# ── Catalog ─────────────────────────────────────────────────────


@tools.command("list")
@click.option("--catalog", "catalog_path", type=click.Path(), default=None, help="Tool catalog YAML (default: auto-detect).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_tools(catalog_path: str | None, as_json: bool) -> None:
    """List the tools in the catalog."""
    try:
        catalog = _load_tools(catalog_path)
    except ConfigError as e:
        _config_error(str(e), as_json)
        return

    if as_json:
        click.echo(json.dumps([t.model_dump() for t in catalog.values()], indent=2))
        return

    if not catalog:
        click.secho("⚠️  Catalog is empty", fg="yellow")
        return

    click.secho(f"🧰 Tools ({len(catalog)}):", fg="cyan", bold=True)
    for tool in catalog.values():
        category = f" [{tool.category}]" if tool.category else ""
        click.echo(f"   {tool.name:<16}{category} {tool.description}")
    click.echo()


# ── Install ─────────────────────────────────────────────────────


@tools.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--catalog", "catalog_path", type=click.Path(), default=None, help="Tool catalog YAML (default: auto-detect).")
@click.option("--manager", "-m", default=None, help="Package manager (default: auto-detect).")
@click.option("--retries", type=int, default=None, help="Install attempts per package.")
@click.option("--retry-delay", type=float, default=None, help="Seconds between attempts.")
@click.option("--shell", "shell_name", type=click.Choice(["bash", "zsh", "fish"]), default=None, help="Shell whose rc file to update (default: $SHELL).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    names: tuple[str, ...],
    catalog_path: str | None,
    manager: str | None,
    retries: int | None,
    retry_delay: float | None,
    shell_name: str | None,
    as_json: bool,
) -> None:
    """Install catalog tools by name."""
    from devboot.adapters.package_managers.registry import get_package_manager
    from devboot.core.config.settings import InstallerSettings
    from devboot.core.services.tool_install.domain.errors import InstallError
    from devboot.core.services.tool_install.execution.shell_config import (
        ShellConfigError,
        ShellConfigWriter,
        ShellKind,
    )
    from devboot.core.services.tool_install.orchestration.installer import install_tools
    from devboot.core.session import InstallSession

    obj = ctx.obj or {}

    try:
        catalog = _load_tools(catalog_path)
        selected = _select(catalog, names)
        settings = InstallerSettings.from_env()
        overrides = {}
        if retries is not None:
            overrides["max_retries"] = retries
        if retry_delay is not None:
            overrides["retry_delay"] = retry_delay
        if overrides:
            settings = InstallerSettings.model_validate({**settings.model_dump(), **overrides})
        pm = obj.get("package_manager") or get_package_manager(manager)
    except ConfigError as e:
        _config_error(str(e), as_json)
        return
    except ValueError as e:
        _config_error(f"Invalid option: {e}", as_json)
        return

    shell_writer = obj.get("shell_writer")
    if shell_writer is None:
        try:
            shell_writer = (
                ShellConfigWriter(ShellKind.parse(shell_name))
                if shell_name
                else ShellConfigWriter.detect()
            )
        except ShellConfigError as e:
            if not as_json:
                click.secho(f"⚠️  {e}; shell config will be skipped", fg="yellow")

    session = InstallSession(
        package_manager=pm,
        tools=selected,
        settings=settings,
        shell_writer=shell_writer,
        catalog=catalog,
        on_event=None if as_json or obj.get("quiet") else _print_event,
    )

    try:
        install_tools(session)
    except InstallError as e:
        _config_error(str(e), as_json)
        return

    if as_json:
        click.echo(json.dumps({
            "ok": not session.failed,
            "manager": pm.name,
            "results": [r.to_dict() for r in session.results],
        }, indent=2))
    else:
        click.echo()
        if session.failed:
            click.secho(
                f"❌ {len(session.failed)} of {len(session.results)} tools failed", fg="red", bold=True,
            )
            for r in session.failed:
                click.echo(f"   • {r.error}")
        else:
            click.secho(f"✅ Installed {len(session.results)} tools", fg="green", bold=True)

    if session.failed:
        sys.exit(1)


# ── Verify ──────────────────────────────────────────────────────


@tools.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--catalog", "catalog_path", type=click.Path(), default=None, help="Tool catalog YAML (default: auto-detect).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def verify(names: tuple[str, ...], catalog_path: str | None, as_json: bool) -> None:
    """Check that catalog tools are installed and usable."""
    from devboot.core.config.settings import InstallerSettings
    from devboot.core.services.tool_install.execution.verify import verify_tool

    try:
        catalog = _load_tools(catalog_path)
        selected = _select(catalog, names)
        settings = InstallerSettings.from_env()
    except ConfigError as e:
        _config_error(str(e), as_json)
        return

    results = {
        tool.name: verify_tool(tool, extra_paths=settings.extra_bin_paths)
        for tool in selected
    }

    if as_json:
        click.echo(json.dumps(results, indent=2))
    else:
        for name, result in results.items():
            if result["ok"]:
                how = {"binary": f"found at {result.get('path')}", "skipped": "no verify command"}
                click.secho(f"✅ {name}", fg="green", nl=False)
                click.echo(f" ({how[result['method']]})" if result["method"] in how else "")
            else:
                click.secho(f"❌ {name}: {result['error']}", fg="red")

    if not all(r["ok"] for r in results.values()):
        sys.exit(1)
