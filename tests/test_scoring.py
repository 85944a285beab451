"""
Test suite for score aggregation
"""

import pytest

from posture.core.check_registry import CheckRegistry
from posture.core.model import (
    EnvironmentSnapshot,
    ErrorCategory,
    ExtraSignals,
    ProbeFailure,
    ProbeSuccess,
    ProbeTimeout,
    Tier,
)
from posture.core.scoring import (
    ScoreAggregator,
    connection_subscore,
    execution_mode_subscore,
    exposure_subscore,
    parse_rate_limit,
    percentage_for,
    rate_limit_subscore,
    round_half_up,
    secret_subscore,
    tier_for,
    url_ssl_mode_subscore,
)
from posture.data.checklist import DEFAULT_CHECKLIST


class TestSubscores:
    """Individual subscore tables."""

    def test_connection(self):
        assert connection_subscore(ProbeSuccess("PostgreSQL 16.2")) == 2
        assert connection_subscore(ProbeTimeout(10)) == 0
        for category in ErrorCategory:
            assert connection_subscore(ProbeFailure(category, "boom")) == 0
        assert connection_subscore(ProbeFailure(ErrorCategory.OTHER, "plain", connected=True)) == 0

    @pytest.mark.parametrize("mode, expected", [
        ("production", 1.0),
        ("development", 0.5),
        ("staging", 0.0),
        ("Production", 0.0),
        (None, 0.0),
    ])
    def test_execution_mode(self, mode, expected):
        assert execution_mode_subscore(mode) == expected

    @pytest.mark.parametrize("length, expected", [
        (None, 0.0),
        (0, 0.0),
        (31, 0.0),
        (32, 0.5),
        (63, 0.5),
        (64, 1.0),
        (200, 1.0),
    ])
    def test_secret(self, length, expected):
        assert secret_subscore(length) == expected

    @pytest.mark.parametrize("url, expected", [
        ("postgres://u:p@db.example.com/app?sslmode=require", 1.0),
        ("postgres://u:p@db.example.com/app?sslmode=prefer", 0.0),
        ("postgres://u:p@db.example.com/app", 0.0),
        (None, 0.0),
    ])
    def test_url_ssl_mode(self, url, expected):
        assert url_ssl_mode_subscore(url) == expected

    @pytest.mark.parametrize("url, expected", [
        (None, 0.0),
        ("", 0.0),
        ("postgres://u:p@localhost/app", 1.0),
        ("postgres://u:p@127.0.0.1/app", 1.0),
        ("postgres://u:p@db.example.com/app", 1.0),
        ("postgres://db.example.com/app?password=hunter2", 0.5),
        ("postgres://localhost/app?password=hunter2", 1.0),
    ])
    def test_exposure(self, url, expected):
        assert exposure_subscore(url) == expected

    @pytest.mark.parametrize("value, expected", [
        ("100", 0.5),
        ("100/min", 0.5),
        ("0", 0.0),
        ("-3", 0.0),
        ("abc", 0.0),
        (None, 0.0),
    ])
    def test_rate_limit(self, value, expected):
        assert rate_limit_subscore(value) == expected

    def test_parse_rate_limit(self):
        assert parse_rate_limit(" 42 per second") == 42
        assert parse_rate_limit("x42") is None


class TestVerdict:
    """Percentage, rounding and tiers."""

    @pytest.mark.parametrize("percentage, tier", [
        (100, Tier.SECURE),
        (80, Tier.SECURE),
        (79, Tier.PARTIALLY_SECURE),
        (60, Tier.PARTIALLY_SECURE),
        (59, Tier.INSECURE),
        (0, Tier.INSECURE),
    ])
    def test_tier_boundaries(self, percentage, tier):
        assert tier_for(percentage) is tier

    def test_round_half_up(self):
        assert round_half_up(8.5) == 9
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2
        assert round_half_up(0.0) == 0

    def test_percentage_is_bounded_and_monotonic(self):
        values = [percentage_for(raw / 4) for raw in range(-4, 50)]
        assert all(0 <= value <= 100 for value in values)
        assert values == sorted(values)

    def test_verdict_clamps_raw_score(self):
        aggregator = ScoreAggregator()
        assert aggregator.verdict(12.0).raw_score == 10.0
        assert aggregator.verdict(-1.0).raw_score == 0.0

    def test_result_object(self):
        verdict = ScoreAggregator().verdict(6.2)
        assert verdict.to_result() == {
            "score": 6,
            "percentage": 62,
            "secure": False,
            "issues": 4,
        }
        assert verdict.tier is Tier.PARTIALLY_SECURE


class TestAggregate:
    """Whole-run scoring."""

    def test_fully_configured_deployment(self, secure_snapshot):
        outcomes = CheckRegistry(DEFAULT_CHECKLIST).evaluate(secure_snapshot)
        signals = ExtraSignals.from_snapshot(secure_snapshot)

        breakdown, verdict = ScoreAggregator().aggregate(
            outcomes, ProbeSuccess("PostgreSQL 16.2"), signals
        )

        assert breakdown.total == pytest.approx(8.5)
        assert verdict.percentage == 85
        assert verdict.tier is Tier.SECURE
        assert verdict.rounded_score == 9
        assert verdict.to_result() == {"score": 9, "percentage": 85, "secure": True, "issues": 1}

    def test_nothing_configured(self, empty_snapshot):
        outcomes = CheckRegistry(DEFAULT_CHECKLIST).evaluate(empty_snapshot)
        signals = ExtraSignals.from_snapshot(empty_snapshot)

        breakdown, verdict = ScoreAggregator().aggregate(outcomes, ProbeTimeout(10000), signals)

        assert breakdown.total == 0
        assert verdict.percentage == 0
        assert verdict.tier is Tier.INSECURE
        assert verdict.to_result() == {"score": 0, "percentage": 0, "secure": False, "issues": 10}

    def test_failure_category_does_not_change_score(self, secure_snapshot):
        outcomes = CheckRegistry(DEFAULT_CHECKLIST).evaluate(secure_snapshot)
        signals = ExtraSignals.from_snapshot(secure_snapshot)
        aggregator = ScoreAggregator()

        totals = [
            aggregator.breakdown(outcomes, ProbeFailure(category, "x"), signals).total
            for category in ErrorCategory
        ]
        assert totals == [pytest.approx(6.5)] * len(ErrorCategory)

    def test_custom_max_score(self):
        snapshot = EnvironmentSnapshot({"NODE_ENV": "production"})
        outcomes = CheckRegistry([]).evaluate(snapshot)
        signals = ExtraSignals.from_snapshot(snapshot)

        _, verdict = ScoreAggregator(max_score=4.0).aggregate(outcomes, ProbeTimeout(5), signals)

        assert verdict.percentage == 25
        assert verdict.rounded_score == 1
        assert verdict.issues == 3
