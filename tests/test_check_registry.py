"""
Test suite for the check registry and environment snapshot
"""

import pytest

from posture.core.check_registry import CheckRegistry, environment_subscore
from posture.core.errors import ConfigurationError
from posture.core.model import CheckSpec, EnvironmentSnapshot
from posture.data.checklist import DEFAULT_CHECKLIST


class TestEnvironmentSnapshot:
    """Snapshot lookups and capture."""

    def test_absent_and_empty_are_distinct(self):
        snapshot = EnvironmentSnapshot({"EMPTY": ""})
        assert snapshot.get("EMPTY") == ""
        assert snapshot.get("MISSING") is None
        assert "EMPTY" in snapshot
        assert "MISSING" not in snapshot

    def test_snapshot_is_a_copy(self):
        source = {"DB_SSL": "true"}
        snapshot = EnvironmentSnapshot(source)
        source["DB_SSL"] = "false"
        assert snapshot.get("DB_SSL") == "true"

    def test_capture_layers_env_file_under_environment(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DB_SSL=false\nJWT_SECRET=from-file\n", encoding="utf-8")

        snapshot = EnvironmentSnapshot.capture(environ={"DB_SSL": "true"}, env_file=str(env_file))

        assert snapshot.get("DB_SSL") == "true"
        assert snapshot.get("JWT_SECRET") == "from-file"

    def test_capture_rejects_missing_env_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            EnvironmentSnapshot.capture(environ={}, env_file=str(tmp_path / "missing.env"))


class TestCheckRegistry:
    """Checklist evaluation."""

    @pytest.fixture
    def registry(self):
        return CheckRegistry(DEFAULT_CHECKLIST)

    def test_default_checklist_shape(self):
        keys = [spec.key for spec in DEFAULT_CHECKLIST]
        assert keys == [
            "DB_SSL",
            "DB_SSL_MODE",
            "DB_SSL_REJECT_UNAUTHORIZED",
            "SSL_VERIFY_CERTIFICATE",
            "SSL_CHECK_HOSTNAME",
        ]

    def test_outcomes_follow_declaration_order(self, registry, secure_snapshot):
        outcomes = registry.evaluate(secure_snapshot)
        assert [o.spec for o in outcomes] == list(DEFAULT_CHECKLIST)
        assert all(o.passed for o in outcomes)

    def test_all_correct_scores_two(self, registry, secure_snapshot):
        assert environment_subscore(registry.evaluate(secure_snapshot)) == 2

    def test_all_missing_scores_zero(self, registry, empty_snapshot):
        outcomes = registry.evaluate(empty_snapshot)
        assert not any(o.passed for o in outcomes)
        assert all(o.actual_value is None for o in outcomes)
        assert environment_subscore(outcomes) == 0

    def test_partial_credit(self, registry):
        snapshot = EnvironmentSnapshot({
            "DB_SSL": "true",
            "DB_SSL_MODE": "require",
            "DB_SSL_REJECT_UNAUTHORIZED": "false",
        })
        assert environment_subscore(registry.evaluate(snapshot)) == pytest.approx(0.8)

    def test_comparison_is_exact(self, registry):
        snapshot = EnvironmentSnapshot({"DB_SSL": "TRUE", "DB_SSL_MODE": " require"})
        outcomes = registry.evaluate(snapshot)
        assert not outcomes[0].passed
        assert not outcomes[1].passed

    def test_synthetic_checklist(self):
        registry = CheckRegistry([CheckSpec("A", "1", 1.0, "a"), CheckSpec("B", "2", 1.0, "b")])
        outcomes = registry.evaluate(EnvironmentSnapshot({"A": "1"}))
        assert environment_subscore(outcomes) == 1.0
        assert registry.get_stats(outcomes)["failed_keys"] == ["B"]

    def test_empty_checklist_scores_zero(self):
        assert environment_subscore(CheckRegistry([]).evaluate(EnvironmentSnapshot({}))) == 0

    def test_duplicate_keys_rejected(self):
        with pytest.raises(ConfigurationError):
            CheckRegistry([CheckSpec("A", "1", 1.0, "a"), CheckSpec("A", "2", 1.0, "b")])

    def test_get_check(self, registry):
        assert registry.get_check("DB_SSL_MODE").expected_value == "require"
        with pytest.raises(KeyError):
            registry.get_check("NOPE")
