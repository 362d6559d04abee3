"""Test Lab step CLI."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from firebase_testlab import __version__
from firebase_testlab._constants import BITRISE, DEFAULT_MATRIX_FILE, GCLOUD, GCS_RESULTS_DIR
from firebase_testlab.config import (
    ConfigError,
    ConfigValidationError,
    DeviceMatrix,
    StepConfig,
    generate_example_matrix_yaml,
    load_config,
    load_matrix,
)
from firebase_testlab.envman import ExportError
from firebase_testlab.gcloud import CommandError
from firebase_testlab.naming import gcs_object_name
from firebase_testlab.step import run_step

logger = logging.getLogger(__name__)

# Exit codes
EXIT_EXPORT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_COMMAND_FAILED = 3

app = typer.Typer(
    name="testlab-step",
    help="Authenticate gcloud and prepare a Firebase Test Lab Android run from CI",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Inputs are read from GCLOUD_* / APP_APK / TEST_APK environment variables[/dim]",
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]OK[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]ERROR[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]...[/blue] {message}")


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich when --verbose is given."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def config_table(cfg: StepConfig) -> Table:
    """Summarise the loaded configuration. The key itself is never shown."""
    table = Table(title="Config", show_header=False, expand=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Project", escape(cfg.project))
    table.add_row("User", escape(cfg.user))
    table.add_row("Results bucket", escape(cfg.results_bucket))
    table.add_row("Key file", escape(cfg.key_path))
    table.add_row("App APK", escape(cfg.app_apk))
    table.add_row("Test APK", escape(cfg.test_apk) or "[dim](none, robo test)[/dim]")
    table.add_row("Options", escape(cfg.options) or "[dim](none)[/dim]")
    return table


def load_matrix_or_exit(matrix_file: Path | None) -> DeviceMatrix:
    try:
        return load_matrix(matrix_file)
    except ConfigValidationError as e:
        print_error("Device matrix validation failed:")
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"])
            console.print(f"  [red]•[/red] {loc}: {err['msg']}")
        raise typer.Exit(EXIT_CONFIG_ERROR)  # noqa: B904
    except ConfigError as e:
        print_error(f"Config error: {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR)  # noqa: B904


# =============================================================================
# CLI Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"firebase-testlab-step version {__version__}")


@app.command()
def run(
    matrix_file: Annotated[
        Path | None,
        typer.Option(
            "--matrix",
            "-m",
            help="Device matrix YAML overriding the default device, OS, locale and timeout",
        ),
    ] = None,
    execute: Annotated[
        bool,
        typer.Option(
            "--execute",
            help="Start the Test Lab run after exporting the results directory",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Run the step.

    Writes the service-account key to $HOME/gcloudkey.json, authenticates
    gcloud, assembles the Test Lab arguments and exports GCS_RESULTS_DIR
    for later steps.

    Exit codes: 1 export failed, 2 configuration error, 3 gcloud failed.
    """
    setup_logging(verbose)
    matrix = load_matrix_or_exit(matrix_file)

    try:
        cfg = load_config()
    except ConfigError as e:
        print_error(f"Config error: {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR)  # noqa: B904

    console.print(config_table(cfg))

    try:
        result = run_step(cfg, matrix=matrix, execute=execute)
    except ExportError as e:
        print_error(escape(str(e)))
        if e.output:
            console.print(f"  output: {e.output.strip()}", markup=False, soft_wrap=True)
        raise typer.Exit(EXIT_EXPORT_FAILED)  # noqa: B904
    except CommandError as e:
        print_error(escape(str(e)))
        raise typer.Exit(EXIT_COMMAND_FAILED)  # noqa: B904
    except ConfigError as e:
        print_error(f"Config error: {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR)  # noqa: B904

    console.print(f"user options: {result.user_options}", markup=False, soft_wrap=True)
    console.print(f"args: {result.invocation.args}", markup=False, soft_wrap=True)
    print_success(f"Exported {GCS_RESULTS_DIR}={result.results_uri}")
    if result.executed:
        print_success(f"{result.invocation.test_type.value} test finished")
    else:
        print_warning("Test Lab run not started (pass --execute to start it)")


@app.command()
def validate(
    matrix_file: Annotated[
        Path | None,
        typer.Option(
            "--matrix",
            "-m",
            help="Device matrix YAML to validate",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show detailed validation output",
        ),
    ] = False,
) -> None:
    """Validate step inputs without side effects.

    This command performs the following checks:
    - Required environment variables are present
    - GCLOUD_KEY decodes and yields a user and project
    - APP_APK and TEST_APK exist
    - gcloud and bitrise are on PATH
    """
    setup_logging(verbose)
    console.print(Panel("Validating step inputs", expand=False))

    checks_failed = 0

    console.print("\n[bold]Configuration[/bold]")
    try:
        cfg = load_config(write_key=False)
        print_success("Environment valid")
        if verbose:
            console.print(config_table(cfg))
    except ConfigError as e:
        print_error(escape(str(e)))
        checks_failed += 1

    matrix = load_matrix_or_exit(matrix_file)
    print_success(
        f"Device matrix: {matrix.device_id} / API {matrix.os_version} / "
        f"{matrix.locale} / {matrix.orientation} / {matrix.timeout}"
    )

    console.print("\n[bold]CLI Tools[/bold]")
    for tool in [GCLOUD, BITRISE]:
        if shutil.which(tool):
            print_success(f"{tool} found on PATH")
        else:
            print_error(f"{tool} not found on PATH")
            checks_failed += 1

    console.print()
    if checks_failed:
        print_error(f"{checks_failed} check(s) failed")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    print_success("All checks passed")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path for the device matrix",
        ),
    ] = Path(DEFAULT_MATRIX_FILE),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing file",
        ),
    ] = False,
) -> None:
    """Generate a starter device matrix file."""
    if output.exists() and not force:
        print_error(f"File already exists: {output}")
        print_info("Use --force to overwrite")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    output.write_text(generate_example_matrix_yaml())
    print_success(f"Created device matrix: {output}")
    print_info(f"Use it with: testlab-step run --matrix {output}")


@app.command()
def name() -> None:
    """Print a unique results directory name."""
    console.print(gcs_object_name(), markup=False, soft_wrap=True)
