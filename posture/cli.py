#!/usr/bin/env python3
"""
Posture CLI Interface
Command-line interface for the SSL posture validator
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from posture.core.engine import ValidationEngine
from posture.core.errors import PostureError
from posture.core.model import EnvironmentSnapshot
from posture.core.probe import DEFAULT_TIMEOUT_MS
from posture.data.checklist import DEFAULT_CHECKLIST
from posture.utils.console_report import ConsoleReporter
from posture.utils.logger import setup_logger

app = typer.Typer(
    name="posture",
    help="SSL Posture Validator",
    no_args_is_help=True
)

console = Console()

BANNER = "SSL SECURITY POSTURE VALIDATION"


def build_engine(timeout_ms: int,
                 output_dir: Optional[str],
                 logger,
                 reporter: ConsoleReporter) -> ValidationEngine:
    """Create the engine for a CLI run."""
    return ValidationEngine(
        timeout_ms=timeout_ms,
        output_dir=output_dir,
        logger=logger,
        reporter=reporter,
    )


@app.command()
def validate(
    env_file: Optional[str] = typer.Option(
        None, "--env-file", "-e",
        help="Dotenv file layered under the process environment"
    ),
    timeout_ms: int = typer.Option(
        DEFAULT_TIMEOUT_MS, "--timeout-ms", "-t",
        help="Connection probe timeout in milliseconds"
    ),
    output_dir: str = typer.Option(
        "./reports", "--output-dir", "-o",
        help="Output directory for result files"
    ),
    no_save: bool = typer.Option(
        False, "--no-save",
        help="Do not write result files"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file",
        help="Write detailed logs to this file"
    ),
    verbose: int = typer.Option(
        1, "--verbose", "-v",
        help="Verbosity level: 0=minimal, 1=standard, 2=debug"
    )
):
    """Validate the deployment's SSL posture. Exits 0 only when secure."""

    console.print(Panel(BANNER, border_style="cyan"))

    try:
        logger = setup_logger(verbose, log_file=log_file)
        reporter = ConsoleReporter(console, verbosity=verbose)
        snapshot = EnvironmentSnapshot.capture(env_file=env_file)

        engine = build_engine(timeout_ms, None if no_save else output_dir, logger, reporter)
        report = asyncio.run(engine.run(snapshot))

        try:
            for path in asyncio.run(engine.save(report)):
                reporter.log_message("INFO", f"Report written: {path}")
        except PostureError as e:
            console.print(f"[yellow]Report not saved: {e}[/yellow]")

        result = report.verdict.to_result()
        console.print_json(data=result)

    except KeyboardInterrupt:
        console.print("[yellow]Validation interrupted by user[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error running validation: {e}[/red]")
        if verbose >= 2:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(1)

    raise typer.Exit(0 if result["secure"] else 1)


@app.command()
def list_checks():
    """List the environment checks."""
    console.print("[cyan]Environment checks:[/cyan]\n")
    for spec in DEFAULT_CHECKLIST:
        console.print(f"  {spec.key}={spec.expected_value}  [dim]{spec.description} (weight {spec.weight:g})[/dim]")


@app.command()
def version():
    """Show version information."""
    from posture import __version__, __author__
    console.print(f"Posture Validator v{__version__}")
    console.print(f"By {__author__}")


def main():
    app()


if __name__ == "__main__":
    main()
