"""Thin CLI wrapper for build_router.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from build_router import __version__
from build_router.config import Settings, get_settings, print_settings_json
from build_router.errors import BuildRouterError

app = typer.Typer(
    name="build-router",
    help="Build Router - fan a tagged build out into per-region builds",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"build-router version {__version__}")
        raise typer.Exit()


def configure_logging(settings: Settings) -> None:
    """Send log records to stderr through rich."""
    level = "DEBUG" if settings.verbose else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_settings() -> Settings:
    """Load settings, exiting with code 1 on invalid values."""
    try:
        settings = get_settings()
    except ValidationError as e:
        err_console.print("[red]Invalid configuration:[/red]")
        err_console.print(str(e))
        raise typer.Exit(code=1) from None
    configure_logging(settings)
    return settings


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Build Router - fan a tagged build out into per-region builds."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = load_settings()
    if json_output:
        console.print(print_settings_json(settings))
        return

    regions = [line for line in settings.supported_regions.splitlines() if line]
    excludes = [line for line in settings.all_tag_excludes.splitlines() if line]
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Build:[/bold]")
    console.print(f"  App slug:            {settings.app_slug or '(unset)'}")
    console.print(f"  Build slug:          {settings.build_slug or '(unset)'}")
    console.print(f"  Build number:        {settings.build_number or '(unset)'}")
    console.print(f"  Parent build:        {settings.parent_build or '(none)'}")
    console.print(f"  Workflow:            {settings.triggered_workflow or '(unset)'}")
    console.print()
    console.print("[bold]Source:[/bold]")
    console.print(f"  Tag:                 {settings.git_tag or '(none)'}")
    console.print(f"  Branch:              {settings.git_branch or '(none)'}")
    console.print(f"  Commit:              {settings.git_commit or '(none)'}")
    console.print(f"  Pull request:        {settings.is_pull_request}")
    console.print()
    console.print("[bold]Regions:[/bold]")
    console.print(f"  Supported:           {', '.join(regions) or '(none)'}")
    console.print(f"  Excluded from ALL:   {', '.join(excludes) or '(none)'}")
    console.print(f"  Default region:      {settings.default_region}")
    console.print(f"  Package base:        {settings.package_base}")
    console.print()
    console.print("[bold]API:[/bold]")
    console.print(f"  Base URL:            {settings.api_base_url}")
    console.print(f"  Timeout (seconds):   {settings.api_timeout}")


@app.command()
def plan(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the builds the current environment would produce.

    Nothing is exported and no build is started.
    """
    from build_router.router import plan_builds

    settings = load_settings()
    try:
        records = plan_builds(settings)
    except BuildRouterError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        typer.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    console.print(f"[bold]{len(records)} build(s):[/bold]")
    console.print()
    for index, r in enumerate(records):
        where = "this build" if index == 0 else "new build"
        console.print(f"  [green]{r.region}[/green] ({r.alpha2_code}, {where})")
        console.print(f"    Task: {r.build_task}")
        console.print(f"    Package: {r.package_name}")
        console.print(f"    Type: {r.build_type.label} ({r.bs_suffix})")
        if r.new_tag:
            console.print(f"    Tag: {r.new_tag}")
        if r.new_commit_hash:
            console.print(f"    Commit: {r.new_commit_hash}")
        console.print()


@app.command()
def run() -> None:
    """Apply this build's parameters and start the other region builds."""
    from build_router.router import route_builds

    settings = load_settings()
    try:
        result = route_builds(settings)
    except BuildRouterError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None

    if result.bypassed:
        console.print(f"Child build of {settings.parent_build}, skipped")
        return
    console.print(
        f"[green]Applied {result.records[0].build_task}, "
        f"started {len(result.started)} build(s)[/green]"
    )
    for slug in result.build_slugs:
        console.print(f"  {slug}")


if __name__ == "__main__":
    app()
