"""
Console Reporter for the posture validator
Colored, one-line-per-event output of a validation run
"""

from datetime import datetime
from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table

from posture.core.model import (
    CheckOutcome,
    ProbeFailure,
    ProbeOutcome,
    ProbeSuccess,
    Tier,
    ValidationReport,
)

LEVEL_STYLES = {
    "INFO": "cyan",
    "SUCCESS": "green",
    "WARNING": "yellow",
    "ERROR": "red",
}

REMEDIATION_STYLES = {
    "critical": "red",
    "warning": "yellow",
    "advisory": "blue",
}

TIER_STYLES = {
    Tier.SECURE: "green bold",
    Tier.PARTIALLY_SECURE: "yellow bold",
    Tier.INSECURE: "red bold",
}

TIER_MESSAGES = {
    Tier.SECURE: "SSL configuration SECURE",
    Tier.PARTIALLY_SECURE: "SSL configuration PARTIALLY SECURE - further hardening required",
    Tier.INSECURE: "SSL configuration INSECURE - critical weaknesses detected",
}


class ConsoleReporter:
    """Prints validation progress and results."""

    def __init__(self, console: Optional[Console] = None, verbosity: int = 1):
        self.console = console or Console()
        self.verbosity = verbosity

    def log_message(self, level: str, message: str):
        """Log a message with timestamp and color coding."""
        color = LEVEL_STYLES.get(level, "white")
        if self.verbosity >= 1 or level == "ERROR":
            self.console.print(f"[{self._get_timestamp()}] [{level}] {message}",
                               style=color, markup=False, highlight=False)

    def section(self, number: int, title: str):
        if self.verbosity >= 1:
            self.console.print(f"\n{number}. {title}", style="blue bold", markup=False)

    def print_checks(self, outcomes: Sequence[CheckOutcome]):
        table = Table(title="Environment checks", show_lines=False)
        table.add_column("Check")
        table.add_column("Key")
        table.add_column("Expected")
        table.add_column("Actual")
        table.add_column("Result")

        for outcome in outcomes:
            actual = outcome.actual_value if outcome.actual_value is not None else "undefined"
            result = "[green]PASS[/green]" if outcome.passed else "[red]FAIL[/red]"
            table.add_row(outcome.spec.description, outcome.spec.key,
                          outcome.spec.expected_value, actual, result)

        if self.verbosity >= 1:
            self.console.print(table)

    def print_probe(self, probe: ProbeOutcome):
        if isinstance(probe, ProbeSuccess):
            self.log_message("SUCCESS", "SSL connection verified")
        elif isinstance(probe, ProbeFailure):
            self.log_message("ERROR", f"SSL connection failed [{probe.classification.value}]: {probe.message}")
        else:
            self.log_message("ERROR", probe.message)

    def print_verdict(self, report: ValidationReport):
        verdict = report.verdict
        style = TIER_STYLES[verdict.tier]

        self.console.print("\n" + "=" * 40, style="cyan")
        self.console.print("SECURITY POSTURE RESULT", style="cyan bold")
        self.console.print("=" * 40, style="cyan")
        self.console.print(
            f"Final score: {verdict.rounded_score}/{verdict.max_score:g} "
            f"({verdict.percentage}%)  raw={verdict.raw_score:g}",
            style=style, markup=False,
        )
        self.console.print(TIER_MESSAGES[verdict.tier], style=style, markup=False)

    def print_remediation(self, entries: Sequence):
        if not entries:
            return
        self.console.print("\nRECOMMENDATIONS:", style="blue bold")
        for entry in entries:
            self.console.print(f"- {entry.text}", style=REMEDIATION_STYLES.get(entry.level, "white"),
                               markup=False, highlight=False)

    def _get_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S")
