"""
Posture Core Components
Check evaluation, live probing, scoring and remediation
"""

from .engine import ValidationEngine
from .check_registry import CheckRegistry
from .classifier import classify
from .probe import ConnectionProbe
from .remediation import RemediationReporter
from .result_manager import ResultManager
from .scoring import ScoreAggregator

__all__ = [
    "ValidationEngine",
    "CheckRegistry",
    "classify",
    "ConnectionProbe",
    "RemediationReporter",
    "ResultManager",
    "ScoreAggregator"
]
