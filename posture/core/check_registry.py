"""
Check Registry for the posture validator
Evaluates a fixed, ordered checklist against an environment snapshot
"""

import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .errors import ConfigurationError
from .model import CheckOutcome, CheckSpec, EnvironmentSnapshot

ENVIRONMENT_POINTS = 2.0


class CheckRegistry:
    """Holds an immutable checklist and evaluates it against snapshots."""

    def __init__(self, checklist: Iterable[CheckSpec]):
        self.checklist: Tuple[CheckSpec, ...] = tuple(checklist)
        self.logger = logging.getLogger(__name__)

        seen = set()
        for spec in self.checklist:
            if spec.key in seen:
                raise ConfigurationError(f"Duplicate check key: {spec.key}")
            if spec.weight < 0:
                raise ConfigurationError(f"Check {spec.key} has a negative weight")
            seen.add(spec.key)

    def evaluate(self, snapshot: EnvironmentSnapshot) -> List[CheckOutcome]:
        """Return one outcome per check, in declaration order."""
        outcomes = []
        for spec in self.checklist:
            actual = snapshot.get(spec.key)
            passed = actual == spec.expected_value
            outcomes.append(CheckOutcome(spec=spec, actual_value=actual, passed=passed))
            self.logger.debug(f"{spec.key}: expected={spec.expected_value!r} "
                              f"actual={actual!r} passed={passed}")
        return outcomes

    def get_check(self, key: str) -> CheckSpec:
        for spec in self.checklist:
            if spec.key == key:
                return spec
        raise KeyError(key)

    def get_stats(self, outcomes: Sequence[CheckOutcome]) -> Dict[str, Any]:
        passed = [o.spec.key for o in outcomes if o.passed]
        failed = [o.spec.key for o in outcomes if not o.passed]
        return {
            "total_checks": len(outcomes),
            "passed": len(passed),
            "failed": len(failed),
            "failed_keys": failed,
        }


def environment_subscore(outcomes: Sequence[CheckOutcome],
                         points: float = ENVIRONMENT_POINTS) -> float:
    """Weighted share of passed checks, scaled to ``points``.

    With equal weights this is ``points * passed / total``. An empty
    checklist earns nothing.
    """
    total_weight = sum(o.spec.weight for o in outcomes)
    if total_weight <= 0:
        return 0.0
    passed_weight = sum(o.spec.weight for o in outcomes if o.passed)
    return points * (passed_weight / total_weight)
