"""
Result Manager for the posture validator
Serializes validation reports to JSON and plain-text summaries
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from tabulate import tabulate

from .errors import ReportError
from .model import ValidationReport, describe_probe
from ..utils.urls import mask_connection_url


def report_to_dict(report: ValidationReport) -> Dict[str, Any]:
    """Result object plus the detail behind it."""
    verdict = report.verdict
    data = verdict.to_result()
    data.update({
        "raw_score": verdict.raw_score,
        "max_score": verdict.max_score,
        "tier": verdict.tier.value,
        "breakdown": report.breakdown.to_dict(),
        "checks": [
            {
                "key": outcome.spec.key,
                "description": outcome.spec.description,
                "expected": outcome.spec.expected_value,
                "actual": outcome.actual_value,
                "passed": outcome.passed,
            }
            for outcome in report.checks
        ],
        "probe": describe_probe(report.probe),
        "target": mask_connection_url(report.target) or None,
        "remediation": list(verdict.remediation_lines),
    })
    return data


class ResultManager:
    """Stores validation results."""

    def __init__(self, output_dir: str = "./reports"):
        self.output_dir = Path(output_dir)
        self.logger = logging.getLogger(__name__)

    def _target_path(self, subdir: str, suffix: str, timestamp: Optional[str]) -> Path:
        directory = self.output_dir / subdir
        directory.mkdir(parents=True, exist_ok=True)
        stamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        return directory / f"posture_{stamp}.{suffix}"

    async def save_result(self, report: ValidationReport, timestamp: Optional[str] = None) -> str:
        """Save the result object to a JSON file."""
        try:
            filepath = self._target_path("json", "json", timestamp)
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump({
                    "metadata": {
                        "generated_at": datetime.now().isoformat(),
                        "tool": "Posture Validator v1.0",
                        **report.metadata,
                    },
                    "result": report_to_dict(report),
                }, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            raise ReportError(f"Could not write result file: {e}") from e

        self.logger.info(f"Result saved to: {filepath}")
        return str(filepath)

    async def save_summary(self, report: ValidationReport, timestamp: Optional[str] = None) -> str:
        """Save a human-readable summary with the remediation list."""
        verdict = report.verdict
        rows = [
            [o.spec.description, o.spec.key, o.spec.expected_value,
             o.actual_value if o.actual_value is not None else "undefined",
             "PASS" if o.passed else "FAIL"]
            for o in report.checks
        ]
        breakdown_rows = [[name, f"{value:g}"] for name, value in report.breakdown.to_dict().items()]

        content = []
        content.append("=" * 70)
        content.append("SSL SECURITY POSTURE SUMMARY")
        content.append("=" * 70)
        content.append("")
        content.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        if report.target:
            content.append(f"Target: {mask_connection_url(report.target)}")
        content.append(f"Score: {verdict.rounded_score}/{verdict.max_score:g} ({verdict.percentage}%)")
        content.append(f"Tier: {verdict.tier.value}")
        content.append(f"Issues: {verdict.issues}")
        content.append("")
        content.append("ENVIRONMENT CHECKS")
        content.append("-" * 20)
        content.append(tabulate(rows, headers=["Check", "Key", "Expected", "Actual", "Result"],
                                tablefmt="grid"))
        content.append("")
        content.append("SCORE BREAKDOWN")
        content.append("-" * 20)
        content.append(tabulate(breakdown_rows, headers=["Subscore", "Points"], tablefmt="simple"))
        content.append("")
        content.append("PROBE")
        content.append("-" * 20)
        for key, value in describe_probe(report.probe).items():
            content.append(f"{key}: {value}")
        content.append("")
        content.append("RECOMMENDATIONS")
        content.append("-" * 20)
        for line in verdict.remediation_lines:
            content.append(f"- {line}")

        try:
            filepath = self._target_path("text", "txt", timestamp)
            filepath.write_text("\n".join(content) + "\n", encoding="utf-8")
        except OSError as e:
            raise ReportError(f"Could not write summary file: {e}") from e

        self.logger.info(f"Summary saved to: {filepath}")
        return str(filepath)
