"""Command-line interface for mpv-handler."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import (
    DEFAULT_CONFIG_PATH,
    HandlerConfig,
    create_sample_config,
    load_config,
    save_player_path,
)
from .core.handler import handle_uri
from .error_handling import ConfigurationError, ErrorCategory, HandlerError, handle_error
from .players.builders import supported_targets
from .registration import get_registrar, handler_command

console = Console()
logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Exit code for a URI that could not be decoded
EXIT_BAD_URI = 2


def setup_logging(
    *,
    verbose: bool = False,
    config: HandlerConfig | None = None,
) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    # Clean up existing handlers first to prevent resource leaks
    cleanup_logging()

    show_path = level == logging.DEBUG
    handlers: list[logging.Handler] = [
        RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=show_path),
    ]

    if config and config.enable_log:
        config.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,  # Force reconfiguration of root logger
    )


def cleanup_logging() -> None:
    """Clean up logging handlers to prevent ResourceWarnings."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root_logger.removeHandler(handler)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """mpv-handler - open custom-scheme links in external media players."""
    try:
        ctx.ensure_object(dict)
        loaded_config = load_config(config)
        ctx.obj["config"] = loaded_config
        ctx.obj["config_path"] = config
        ctx.obj["verbose"] = verbose

        setup_logging(verbose=verbose, config=loaded_config)
    except (OSError, ValueError) as e:
        config_error = ConfigurationError(
            f"Failed to load configuration: {e}",
            config_path=config,
            solution="Run 'mpv-handler config validate' to check your configuration file",
        )
        console.print(f"[red]Configuration Error:[/red] {config_error}")
        sys.exit(1)


@cli.command("open")
@click.argument("uri")
@click.option("--scheme", "-s", help="Only accept URIs with this scheme")
@click.pass_context
def open_uri(ctx: click.Context, uri: str, scheme: str | None) -> None:
    """Decode a URI and launch the players it describes."""
    config: HandlerConfig = ctx.obj["config"]

    try:
        report = handle_uri(uri, config, expected_scheme=scheme)
    except HandlerError:
        # Already logged; there is usually no console to show it on.
        sys.exit(EXIT_BAD_URI)

    if report.failed:
        logger.warning(
            f"{len(report.failed)} of {len(report.outcomes)} instruction(s) were not launched",
        )


@cli.command()
@click.option("--scheme", "-s", required=True, help="URI scheme to register, e.g. mpv")
@click.option(
    "--target",
    "-t",
    default="mpv",
    show_default=True,
    type=click.Choice(supported_targets()),
    help="Player the executable belongs to",
)
@click.argument("player_path", type=click.Path(path_type=Path))
@click.pass_context
def install(ctx: click.Context, scheme: str, target: str, player_path: Path) -> None:
    """Register SCHEME with the OS and store PLAYER_PATH in the config."""
    if not player_path.is_file():
        console.print(f"[red]Error: player not found at the specified path: {player_path}[/red]")
        sys.exit(1)

    config_path: Path = ctx.obj.get("config_path") or DEFAULT_CONFIG_PATH

    try:
        if config_path.exists():
            save_player_path(config_path, target, str(player_path))
            console.print(f"[green]Set players.{target} in {config_path}[/green]")
        else:
            create_sample_config(config_path, players={target: str(player_path)})
            console.print(f"[green]Created configuration at {config_path}[/green]")
    except (OSError, ValueError) as e:
        handle_error(
            e,
            category=ErrorCategory.CONFIGURATION,
            solution=f"Fix {config_path} or run 'mpv-handler config init'",
        )
        sys.exit(1)

    try:
        get_registrar().install(scheme, handler_command())
    except HandlerError as e:
        e.display_to_user()
        sys.exit(1)

    console.print(f"[green]Protocol installed: {scheme}[/green]")


@cli.command()
@click.option("--scheme", "-s", required=True, help="URI scheme to remove")
def uninstall(scheme: str) -> None:
    """Remove the OS registration for SCHEME."""
    try:
        removed = get_registrar().uninstall(scheme)
    except HandlerError as e:
        e.display_to_user()
        sys.exit(1)

    if removed:
        console.print(f"[green]Protocol uninstalled: {scheme}[/green]")
    else:
        console.print(f"[yellow]Protocol {scheme} was not registered[/yellow]")


@cli.group("config")
def config_cmd() -> None:
    """Configuration management commands."""


@config_cmd.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: HandlerConfig = ctx.obj["config"]

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    for target in supported_targets():
        table.add_row(f"Player: {target}", config.executable_for(target) or "Not configured")
    table.add_row("Logging", "Enabled" if config.enable_log else "Disabled")
    table.add_row("Log File", str(config.log_path))
    table.add_row("Launch Delay", f"{config.launch_delay:.3f}s")
    table.add_row("Strict Payload", "Yes" if config.strict_payload else "No")
    for scheme, profile in config.scheme_profiles.items():
        table.add_row(f"Profile: {scheme}://", profile)

    console.print(table)


@config_cmd.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate current configuration."""
    config: HandlerConfig = ctx.obj["config"]

    console.print("[bold]Configuration Validation[/bold]")

    errors = []
    unknown = sorted(set(config.players) - set(supported_targets()))
    for target in unknown:
        console.print(f"[yellow]⚠[/yellow] No builder for configured player '{target}'")

    configured = 0
    for target in supported_targets():
        path = config.executable_for(target)
        if not path:
            continue
        configured += 1
        if Path(path).is_file():
            console.print(f"[green]✓[/green] {target}: {path}")
        else:
            console.print(f"[red]✗[/red] {target}: not found at {path}")
            errors.append(f"{target} executable not found")

    if configured == 0:
        console.print("[red]✗[/red] No player executable configured")
        errors.append("No player executable configured")

    if errors:
        console.print(f"\n[red]Found {len(errors)} configuration errors[/red]")
        sys.exit(1)
    else:
        console.print("\n[green]Configuration is valid[/green]")


@config_cmd.command("init")
@click.option(
    "--path",
    "-p",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Path for the configuration file",
)
def config_init(path: Path) -> None:
    """Create a sample configuration file."""
    try:
        create_sample_config(path)
        console.print(f"[green]Created sample configuration at {path}[/green]")
        console.print("Please edit the configuration file with your settings.")
    except OSError as e:
        handle_error(e, solution=f"Choose a writable location with --path (tried {path})")
        sys.exit(1)


def route_args(args: list[str]) -> list[str]:
    """Treat a sole ``scheme://...`` argument as ``open <uri>``."""
    if len(args) == 1 and "://" in args[0]:
        return ["open", args[0]]
    return args


def main() -> None:
    """Entry point for the CLI."""
    cli(args=route_args(sys.argv[1:]))


if __name__ == "__main__":
    main()
