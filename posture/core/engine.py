"""
Posture Validation Engine
Main orchestrator for a validation run
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from .check_registry import CheckRegistry
from .errors import ReportError
from .model import (
    CheckSpec,
    EnvironmentSnapshot,
    ExtraSignals,
    SignalKeys,
    ValidationReport,
)
from .probe import DEFAULT_TIMEOUT_MS, ConnectionProbe
from .remediation import RemediationReporter
from .result_manager import ResultManager
from .scoring import MAX_SCORE, ScoreAggregator, exposure_subscore, url_ssl_mode_subscore
from ..data import checklist as default_checklist

if TYPE_CHECKING:
    from ..utils.console_report import ConsoleReporter


class ValidationEngine:
    """Runs checks, the live probe, scoring and remediation for one snapshot."""

    def __init__(self,
                 checklist: Optional[Iterable[CheckSpec]] = None,
                 keys: SignalKeys = SignalKeys(),
                 driver: Optional[Any] = None,
                 timeout_ms: int = DEFAULT_TIMEOUT_MS,
                 max_score: float = MAX_SCORE,
                 output_dir: Optional[str] = None,
                 logger: Optional[logging.Logger] = None,
                 reporter: Optional["ConsoleReporter"] = None):

        self.keys = keys
        self.logger = logger or logging.getLogger("posture")
        self.reporter = reporter

        self.registry = CheckRegistry(
            default_checklist.DEFAULT_CHECKLIST if checklist is None else checklist
        )
        self.probe = ConnectionProbe(driver=driver, logger=self.logger)
        self.timeout_ms = self.probe.resolve_timeout(timeout_ms)
        self.aggregator = ScoreAggregator(max_score)
        self.remediation = RemediationReporter(keys)
        self.result_manager = ResultManager(output_dir) if output_dir else None

        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None

    def _log(self, level: str, message: str):
        if self.reporter:
            self.reporter.log_message(level, message)
        else:
            log_level = {"ERROR": logging.ERROR, "WARNING": logging.WARNING}.get(level, logging.INFO)
            self.logger.log(log_level, message)

    def _section(self, number: int, title: str):
        if self.reporter:
            self.reporter.section(number, title)
        else:
            self.logger.debug(f"{number}. {title}")

    async def run(self, snapshot: EnvironmentSnapshot) -> ValidationReport:
        """Run the complete validation against one snapshot."""
        self.start_time = datetime.now()
        self.logger.info("Starting SSL security posture validation")

        signals = ExtraSignals.from_snapshot(snapshot, self.keys)

        self._section(1, "Checking SSL environment variables")
        outcomes = self.registry.evaluate(snapshot)
        for outcome in outcomes:
            shown = outcome.actual_value if outcome.actual_value is not None else "undefined"
            self._log("SUCCESS" if outcome.passed else "ERROR",
                      f"{outcome.spec.description}: {outcome.spec.key}={shown}")
        if self.reporter:
            self.reporter.print_checks(outcomes)
        stats = self.registry.get_stats(outcomes)
        self._log("INFO", f"SSL variable score: {stats['passed']}/{stats['total_checks']}")

        self._section(2, "Testing secure SSL connection")
        probe_outcome = await self.probe.probe(signals.connection_url, self.timeout_ms)
        if self.reporter:
            self.reporter.print_probe(probe_outcome)

        self._section(3, "Checking execution mode")
        self._log_mode(signals)

        self._section(4, "Checking secret configuration")
        self._log_secret(signals)

        self._section(5, "Checking connection URL")
        self._log_url(signals)

        self._section(6, "Checking rate limiting")
        breakdown = self.aggregator.breakdown(outcomes, probe_outcome, signals)
        if breakdown.rate_limit > 0:
            self._log("SUCCESS", f"Rate limiting configured: {signals.rate_limit} requests")
        else:
            self._log("WARNING", "Rate limiting not configured")

        entries = self.remediation.entries(outcomes, probe_outcome, signals)
        verdict = self.aggregator.verdict(breakdown.total, [e.text for e in entries])

        self.end_time = datetime.now()
        report = ValidationReport(
            checks=tuple(outcomes),
            probe=probe_outcome,
            signals=signals,
            breakdown=breakdown,
            verdict=verdict,
            target=signals.connection_url,
            metadata=self.get_run_stats(),
        )

        if self.reporter:
            self.reporter.print_verdict(report)
            self.reporter.print_remediation(entries)

        await self.probe.drain()

        self.logger.info(f"Validation completed: {verdict.percentage}% ({verdict.tier.value})")
        return report

    async def save(self, report: ValidationReport) -> List[str]:
        """Persist the report; returns the written paths."""
        if not self.result_manager:
            return []
        paths = []
        try:
            paths.append(await self.result_manager.save_result(report))
            paths.append(await self.result_manager.save_summary(report))
        except ReportError as e:
            self._log("ERROR", str(e))
            raise
        return paths

    def _log_mode(self, signals: ExtraSignals):
        mode = signals.execution_mode
        if mode == "production":
            self._log("SUCCESS", "Production environment detected")
        elif mode == "development":
            self._log("WARNING", "Development environment detected; use secure settings in production")
        else:
            self._log("WARNING", f"{self.keys.execution_mode} not configured: {mode or 'undefined'}")

    def _log_secret(self, signals: ExtraSignals):
        length = signals.secret_length
        if length is None:
            self._log("ERROR", f"{self.keys.secret} not configured")
        elif length >= 64:
            self._log("SUCCESS", f"{self.keys.secret} configured and strong (64+ characters)")
        elif length >= 32:
            self._log("WARNING", f"{self.keys.secret} configured but could be stronger (64+ recommended)")
        else:
            self._log("ERROR", f"{self.keys.secret} too short (64 characters minimum recommended)")

    def _log_url(self, signals: ExtraSignals):
        url = signals.connection_url
        if not url:
            self._log("ERROR", f"{self.keys.connection_url} not configured")
            return
        if url_ssl_mode_subscore(url) > 0:
            self._log("SUCCESS", f"{self.keys.connection_url} configured with sslmode=require")
        else:
            self._log("WARNING", f"{self.keys.connection_url} does not include sslmode=require")
        if exposure_subscore(url) < 1:
            self._log("WARNING", f"{self.keys.connection_url} contains a plaintext password")

    def get_run_stats(self) -> Dict[str, Any]:
        duration = None
        if self.start_time and self.end_time:
            duration = (self.end_time - self.start_time).total_seconds()

        return {
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": duration,
            "timeout_ms": self.timeout_ms,
            "total_checks": len(self.registry.checklist),
        }

