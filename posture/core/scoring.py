"""
Score Aggregator for the posture validator

Combines checklist outcomes, the probe outcome and the extra signals into a
bounded raw score, a percentage and a three-tier verdict.
"""

import math
import re
from typing import Optional, Sequence, Tuple

from .check_registry import environment_subscore
from .model import (
    CheckOutcome,
    ExtraSignals,
    ProbeOutcome,
    ScoreBreakdown,
    Tier,
    VerdictResult,
)
from ..utils.urls import has_plaintext_password_marker, is_local_host, requires_ssl_mode

MAX_SCORE = 10.0

CONNECTION_POINTS = 2.0
SECURE_THRESHOLD = 80
PARTIAL_THRESHOLD = 60

STRONG_SECRET_LENGTH = 64
MINIMUM_SECRET_LENGTH = 32

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Math.round semantics)."""
    return int(math.floor(value + 0.5))


def parse_rate_limit(value: Optional[str]) -> Optional[int]:
    """Leading integer of ``value``, or None when it has none."""
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def connection_subscore(probe: ProbeOutcome) -> float:
    # Failure category never matters here, only success with TLS on.
    return CONNECTION_POINTS if probe.secure else 0.0


def execution_mode_subscore(mode: Optional[str]) -> float:
    if mode == "production":
        return 1.0
    if mode == "development":
        return 0.5
    return 0.0


def secret_subscore(length: Optional[int]) -> float:
    if length is None:
        return 0.0
    if length >= STRONG_SECRET_LENGTH:
        return 1.0
    if length >= MINIMUM_SECRET_LENGTH:
        return 0.5
    return 0.0


def url_ssl_mode_subscore(url: Optional[str]) -> float:
    return 1.0 if requires_ssl_mode(url) else 0.0


def exposure_subscore(url: Optional[str]) -> float:
    if not url:
        return 0.0
    if is_local_host(url):
        return 1.0
    if has_plaintext_password_marker(url):
        return 0.5
    return 1.0


def rate_limit_subscore(value: Optional[str]) -> float:
    limit = parse_rate_limit(value)
    return 0.5 if limit is not None and limit > 0 else 0.0


def tier_for(percentage: int) -> Tier:
    if percentage >= SECURE_THRESHOLD:
        return Tier.SECURE
    if percentage >= PARTIAL_THRESHOLD:
        return Tier.PARTIALLY_SECURE
    return Tier.INSECURE


def percentage_for(raw_score: float, max_score: float = MAX_SCORE) -> int:
    if max_score <= 0:
        return 0
    return max(0, min(100, round_half_up(100 * raw_score / max_score)))


class ScoreAggregator:
    """Pure scoring over already-computed inputs."""

    def __init__(self, max_score: float = MAX_SCORE):
        self.max_score = max_score

    def breakdown(self,
                  check_outcomes: Sequence[CheckOutcome],
                  probe: ProbeOutcome,
                  signals: ExtraSignals) -> ScoreBreakdown:
        return ScoreBreakdown(
            environment=environment_subscore(check_outcomes),
            connection=connection_subscore(probe),
            environment_mode=execution_mode_subscore(signals.execution_mode),
            secret=secret_subscore(signals.secret_length),
            url_ssl_mode=url_ssl_mode_subscore(signals.connection_url),
            exposure=exposure_subscore(signals.connection_url),
            rate_limit=rate_limit_subscore(signals.rate_limit),
        )

    def verdict(self, raw_score: float,
                remediation_lines: Sequence[str] = ()) -> VerdictResult:
        raw_score = max(0.0, min(self.max_score, raw_score))
        percentage = percentage_for(raw_score, self.max_score)
        return VerdictResult(
            raw_score=raw_score,
            rounded_score=round_half_up(raw_score),
            percentage=percentage,
            tier=tier_for(percentage),
            max_score=self.max_score,
            remediation_lines=tuple(remediation_lines),
        )

    def aggregate(self,
                  check_outcomes: Sequence[CheckOutcome],
                  probe: ProbeOutcome,
                  signals: ExtraSignals,
                  remediation_lines: Sequence[str] = ()) -> Tuple[ScoreBreakdown, VerdictResult]:
        breakdown = self.breakdown(check_outcomes, probe, signals)
        return breakdown, self.verdict(breakdown.total, remediation_lines)
