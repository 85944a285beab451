"""
Core models for the posture validator

Defines the value types shared by the check registry, the connection probe,
the score aggregator and the remediation reporter. Everything here is
immutable once built; a run derives all of it from one environment snapshot
and one probe attempt.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from dotenv import dotenv_values

from .errors import ConfigurationError


class EnvironmentSnapshot:
    """Read-only view of the configuration captured once per run.

    A key that is not set reads as ``None``; an empty string is a value.
    """

    def __init__(self, values: Optional[Mapping[str, Optional[str]]] = None):
        self._values = MappingProxyType(dict(values or {}))

    @classmethod
    def capture(cls,
                environ: Optional[Mapping[str, str]] = None,
                env_file: Optional[str] = None) -> "EnvironmentSnapshot":
        """Copy the process environment, optionally layered over a dotenv file.

        Values from the process environment take precedence over the file.
        A missing file raises ConfigurationError.
        """
        values: Dict[str, Optional[str]] = {}
        if env_file:
            if not Path(env_file).is_file():
                raise ConfigurationError(f"Env file not found: {env_file}")
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)
        return cls(values)

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def keys(self) -> List[str]:
        return list(self._values.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._values and self._values[key] is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


@dataclass(frozen=True)
class CheckSpec:
    """One named comparison between an expected and an actual config value."""

    key: str
    expected_value: str
    weight: float
    description: str


@dataclass(frozen=True)
class CheckOutcome:
    spec: CheckSpec
    actual_value: Optional[str]
    passed: bool


@dataclass(frozen=True)
class SignalKeys:
    """Environment keys read for the independently scored signals."""

    execution_mode: str = "NODE_ENV"
    secret: str = "JWT_SECRET"
    connection_url: str = "DATABASE_URL"
    rate_limit: str = "API_RATE_LIMIT"
    reject_unauthorized: str = "DB_SSL_REJECT_UNAUTHORIZED"


@dataclass(frozen=True)
class ExtraSignals:
    """Inputs scored outside the checklist and the probe.

    Only the secret's length is kept, never the secret itself.
    """

    execution_mode: Optional[str] = None
    secret_length: Optional[int] = None
    connection_url: Optional[str] = None
    rate_limit: Optional[str] = None
    reject_unauthorized: Optional[str] = None

    @classmethod
    def from_snapshot(cls,
                      snapshot: EnvironmentSnapshot,
                      keys: SignalKeys = SignalKeys()) -> "ExtraSignals":
        secret = snapshot.get(keys.secret)
        return cls(
            execution_mode=snapshot.get(keys.execution_mode),
            secret_length=len(secret) if secret is not None else None,
            connection_url=snapshot.get(keys.connection_url),
            rate_limit=snapshot.get(keys.rate_limit),
            reject_unauthorized=snapshot.get(keys.reject_unauthorized),
        )


class ErrorCategory(str, Enum):
    UNVERIFIED_CERTIFICATE_CHAIN = "unverified_certificate_chain"
    SELF_SIGNED_CERTIFICATE = "self_signed_certificate"
    EXPIRED_CERTIFICATE = "expired_certificate"
    OTHER = "other"


@dataclass(frozen=True)
class ProbeSuccess:
    server_version: str
    ssl_negotiated: bool = True

    @property
    def secure(self) -> bool:
        return self.ssl_negotiated


@dataclass(frozen=True)
class ProbeFailure:
    classification: ErrorCategory
    message: str
    code: Optional[str] = None
    # True when the driver connected but the session was not encrypted
    connected: bool = False
    server_version: Optional[str] = None

    @property
    def secure(self) -> bool:
        return False


@dataclass(frozen=True)
class ProbeTimeout:
    timeout_ms: int

    @property
    def secure(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return f"connection attempt timed out after {self.timeout_ms} ms"


ProbeOutcome = Union[ProbeSuccess, ProbeFailure, ProbeTimeout]


class Tier(str, Enum):
    SECURE = "secure"
    PARTIALLY_SECURE = "partially_secure"
    INSECURE = "insecure"


@dataclass(frozen=True)
class ScoreBreakdown:
    environment: float
    connection: float
    environment_mode: float
    secret: float
    url_ssl_mode: float
    exposure: float
    rate_limit: float

    @property
    def total(self) -> float:
        return (self.environment + self.connection + self.environment_mode
                + self.secret + self.url_ssl_mode + self.exposure
                + self.rate_limit)

    def to_dict(self) -> Dict[str, float]:
        return {
            "environment": self.environment,
            "connection": self.connection,
            "environment_mode": self.environment_mode,
            "secret": self.secret,
            "url_ssl_mode": self.url_ssl_mode,
            "exposure": self.exposure,
            "rate_limit": self.rate_limit,
        }


@dataclass(frozen=True)
class VerdictResult:
    raw_score: float
    rounded_score: int
    percentage: int
    tier: Tier
    max_score: float
    remediation_lines: Tuple[str, ...] = ()

    @property
    def secure(self) -> bool:
        return self.tier is Tier.SECURE

    @property
    def issues(self) -> int:
        return int(self.max_score - self.rounded_score)

    def to_result(self) -> Dict[str, Any]:
        """Machine-readable result object."""
        return {
            "score": self.rounded_score,
            "percentage": self.percentage,
            "secure": self.secure,
            "issues": self.issues,
        }


@dataclass(frozen=True)
class ValidationReport:
    """Everything one run produced, for printing and persistence."""

    checks: Tuple[CheckOutcome, ...]
    probe: ProbeOutcome
    signals: ExtraSignals
    breakdown: ScoreBreakdown
    verdict: VerdictResult
    target: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def describe_probe(outcome: ProbeOutcome) -> Dict[str, Any]:
    """Serializable view of a probe outcome."""
    if isinstance(outcome, ProbeSuccess):
        return {
            "status": "success",
            "ssl_negotiated": outcome.ssl_negotiated,
            "server_version": outcome.server_version,
        }
    if isinstance(outcome, ProbeTimeout):
        return {"status": "timeout", "timeout_ms": outcome.timeout_ms}
    return {
        "status": "failure",
        "classification": outcome.classification.value,
        "message": outcome.message,
        "code": outcome.code,
        "connected": outcome.connected,
        "server_version": outcome.server_version,
    }
