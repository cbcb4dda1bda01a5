"""
CLI entry point for cspforge.

This module provides the Typer-based command-line interface for cspforge.

Commands:
    generate    Write one artifact per environment
    watch       Generate, then regenerate whenever the rules change
    compile     Print the compiled policy for an environment
    header      Print the live-serving header (with nonce substitution)
    verify      Compare a deployed site's CSP header with the compiled policy

Architecture Note:
    The CLI is intentionally thin - it loads the YAML configuration and
    delegates to the generation, compiler and proxy modules.
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from cspforge import __version__
from cspforge.compiler import compute_directive_for_environment
from cspforge.errors import CspForgeError
from cspforge.generation import ConfigurationFileGenerator, GenerationResult
from cspforge.headers import header_name_for_report_type
from cspforge.proxy import CspProxy
from cspforge.schema import CspConfig, ReportType, load_config, load_rules
from cspforge.watcher import watch as watch_directory

app = typer.Typer(
    name="cspforge",
    help="Compile Content Security Policy rules into headers and server configuration.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

DEFAULT_CONFIG_PATH = Path("content-security-policy/csp-configuration.yaml")

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to the CSP configuration YAML file.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]cspforge[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    cspforge - Content Security Policy compiler.

    Resolve per-environment CSP rules into response headers and
    Nginx/Apache configuration snippets.
    """
    pass


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(config_path: Path, debug: bool) -> CspConfig:
    """Load the configuration, exiting with code 1 on any configuration error."""
    try:
        return load_config(config_path)
    except CspForgeError as e:
        console.print(f"[red]Error loading configuration: {escape(str(e))}[/red]")
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
        raise typer.Exit(code=1)


def _build_generator(
    config: CspConfig,
    config_path: Path,
    output: Path | None,
    report_type: ReportType | None,
    reload_rules: bool = False,
) -> ConfigurationFileGenerator:
    return ConfigurationFileGenerator(
        rules=config.rules,
        environments=config.environments,
        report_type=report_type or config.report_type,
        rules_path=config.rules_path or config_path,
        output_dir=output or config.output_dir,
        rules_loader=(lambda: load_rules(config_path)) if reload_rules else None,
    )


def _display_generation_results(results: list[GenerationResult]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Environment", style="cyan")
    table.add_column("Status", width=8)
    table.add_column("Path")

    for result in results:
        if result.success:
            status = "[green]✓[/green]"
            details = str(result.path)
        else:
            status = "[red]✗[/red]"
            details = result.error.message if result.error else str(result.path)
        table.add_row(result.environment, status, details)

    console.print(table)


ReportOption = Annotated[
    Optional[ReportType],
    typer.Option(
        "--report-type",
        "-r",
        help="Override the configured report type (report or strict).",
        case_sensitive=False,
    ),
]


@app.command()
def generate(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--out",
            "-o",
            help="Output directory. Defaults to the configured output_dir.",
        ),
    ] = None,
    report_type: ReportOption = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose output for debugging."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
) -> None:
    """
    Write one CSP configuration file per environment.

    Example:
        $ cspforge generate --config csp.yaml --out build/csp
    """
    _configure_logging(verbose)
    config = _load(config_path, debug)

    if not config.environments:
        console.print("[yellow]No environments configured, nothing to generate[/yellow]")
        raise typer.Exit(code=0)

    generator = _build_generator(config, config_path, output, report_type)
    results = generator.generate_files()
    _display_generation_results(results)

    if not all(result.success for result in results):
        raise typer.Exit(code=1)


@app.command()
def watch(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    directory: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Directory to watch for changes.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    output: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Output directory."),
    ] = None,
    report_type: ReportOption = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose output for debugging."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
) -> None:
    """
    Generate configuration files, then regenerate them on change.

    Regeneration happens when the rules file or pyproject.toml changes.
    Each pass re-reads the rules from the configuration file. Changes to
    environments, report_type or output_dir need a restart.

    Example:
        $ cspforge watch --config csp.yaml
    """
    _configure_logging(verbose)
    config = _load(config_path, debug)
    generator = _build_generator(config, config_path, output, report_type, reload_rules=True)
    watch_directory(generator, directory)


@app.command("compile")
def compile_policy(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    environment: Annotated[
        Optional[str],
        typer.Option("--env", "-e", help="Environment whose overrides apply."),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
) -> None:
    """
    Print the compiled policy for an environment.

    Example:
        $ cspforge compile --config csp.yaml --env production
    """
    config = _load(config_path, debug)
    print(compute_directive_for_environment(config.rules, environment))


@app.command()
def header(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    report_type: ReportOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the header in JSON format."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
) -> None:
    """
    Print the header served by a live server, with a fresh nonce.

    Example:
        $ cspforge header --config csp.yaml --json
    """
    config = _load(config_path, debug)
    proxy = CspProxy(
        config.rules,
        report_type=report_type or config.report_type,
        nonces=config.nonces,
    )

    if json_output:
        print(json.dumps({
            "name": proxy.header_name,
            "value": proxy.header_value(),
            "nonce": proxy.nonce,
        }, indent=2))
        return

    print(f"{proxy.header_name}: {proxy.header_value()}")


@app.command()
def verify(
    url: Annotated[
        str,
        typer.Argument(help="URL of the deployed site to check."),
    ],
    environment: Annotated[
        str,
        typer.Option("--env", "-e", help="Environment the site is deployed as."),
    ],
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    report_type: ReportOption = None,
    timeout: Annotated[
        float,
        typer.Option("--timeout", help="Request timeout in seconds."),
    ] = 10.0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
) -> None:
    """
    Check that a deployed site serves the compiled policy.

    Exits with code 1 if the header is missing or differs.

    Example:
        $ cspforge verify https://staging.example.com --env staging
    """
    config = _load(config_path, debug)
    header_name = header_name_for_report_type(report_type or config.report_type)
    expected = compute_directive_for_environment(config.rules, environment)

    try:
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        console.print(f"[red]Request failed: {escape(str(e))}[/red]")
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
        raise typer.Exit(code=1)

    served = response.headers.get(header_name)
    if served is None:
        console.print(f"[red]✗[/red] {url} does not send {header_name}")
        raise typer.Exit(code=1)

    if served != expected:
        console.print(f"[red]✗[/red] {header_name} differs for environment [bold]{environment}[/bold]")
        console.print(f"  expected: {escape(expected)}")
        console.print(f"  served:   {escape(served)}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] {url} serves the {environment} policy")


if __name__ == "__main__":
    app()
