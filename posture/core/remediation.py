"""
Remediation Reporter for the posture validator

Turns the same inputs the aggregator sees into an ordered list of suggested
fixes. It does not look at the numeric score.
"""

from dataclasses import dataclass
from typing import List, Sequence

from .model import (
    CheckOutcome,
    ErrorCategory,
    ExtraSignals,
    ProbeFailure,
    ProbeOutcome,
    ProbeTimeout,
    SignalKeys,
)
from .probe import MISSING_URL_MESSAGE
from .scoring import STRONG_SECRET_LENGTH, parse_rate_limit
from ..utils.urls import has_plaintext_password_marker, is_local_host, requires_ssl_mode

CRITICAL = "critical"
WARNING = "warning"
ADVISORY = "advisory"

PROBE_REMEDIATION = {
    ErrorCategory.UNVERIFIED_CERTIFICATE_CHAIN: (
        "Server certificate could not be verified; configure the issuing CA "
        "(a self-signed certificate without a trusted CA is the usual cause)"
    ),
    ErrorCategory.SELF_SIGNED_CERTIFICATE: (
        "Self-signed server certificate detected; use a certificate issued "
        "by a trusted CA in production"
    ),
    ErrorCategory.EXPIRED_CERTIFICATE: "Server certificate has expired; renew it immediately",
}

GENERAL_ADVISORIES = (
    "Review SSL certificate validity regularly",
    "Monitor SSL error logs",
    "Alert on SSL connection failures",
)


@dataclass(frozen=True)
class RemediationEntry:
    text: str
    level: str


class RemediationReporter:
    """Builds remediation lines in a fixed priority order.

    Order: reject-unauthorized flag, sslmode in the connection URL,
    execution mode, secret strength, remaining failed checks, probe
    diagnostics, exposure and rate limit, then general advisories.
    """

    def __init__(self, keys: SignalKeys = SignalKeys()):
        self.keys = keys

    def entries(self,
                check_outcomes: Sequence[CheckOutcome],
                probe: ProbeOutcome,
                signals: ExtraSignals) -> List[RemediationEntry]:
        out: List[RemediationEntry] = []
        keys = self.keys

        if signals.reject_unauthorized != "true":
            out.append(RemediationEntry(f"Set {keys.reject_unauthorized}=true", CRITICAL))

        if not requires_ssl_mode(signals.connection_url):
            out.append(RemediationEntry(f"Use sslmode=require in {keys.connection_url}", CRITICAL))

        if signals.execution_mode != "production":
            out.append(RemediationEntry(f"Set {keys.execution_mode}=production in production", WARNING))

        if signals.secret_length is None or signals.secret_length < STRONG_SECRET_LENGTH:
            out.append(RemediationEntry(
                f"Use a {keys.secret} of at least {STRONG_SECRET_LENGTH} characters (128 recommended)",
                CRITICAL,
            ))

        for outcome in check_outcomes:
            if outcome.passed or outcome.spec.key == keys.reject_unauthorized:
                continue
            out.append(RemediationEntry(
                f"Set {outcome.spec.key}={outcome.spec.expected_value} ({outcome.spec.description})",
                CRITICAL,
            ))

        out.extend(self._probe_entries(probe))

        url = signals.connection_url
        if url and not is_local_host(url) and has_plaintext_password_marker(url):
            out.append(RemediationEntry(
                f"{keys.connection_url} contains a plaintext password; "
                "supply credentials through the system environment",
                WARNING,
            ))

        limit = parse_rate_limit(signals.rate_limit)
        if limit is None or limit <= 0:
            out.append(RemediationEntry(f"Configure a positive {keys.rate_limit}", WARNING))

        out.extend(RemediationEntry(text, ADVISORY) for text in GENERAL_ADVISORIES)
        return out

    def remediate(self,
                  check_outcomes: Sequence[CheckOutcome],
                  probe: ProbeOutcome,
                  signals: ExtraSignals) -> List[str]:
        return [entry.text for entry in self.entries(check_outcomes, probe, signals)]

    def _probe_entries(self, probe: ProbeOutcome) -> List[RemediationEntry]:
        if isinstance(probe, ProbeTimeout):
            return [RemediationEntry(
                f"Connection attempt timed out after {probe.timeout_ms} ms; "
                "check database reachability and firewall rules",
                CRITICAL,
            )]
        if not isinstance(probe, ProbeFailure):
            return []

        if probe.connected:
            return [RemediationEntry(
                "Database accepted a connection without SSL; enable SSL on the server "
                "and require it for all clients",
                CRITICAL,
            )]
        if probe.classification in PROBE_REMEDIATION:
            return [RemediationEntry(PROBE_REMEDIATION[probe.classification], CRITICAL)]
        if probe.message == MISSING_URL_MESSAGE:
            return [RemediationEntry(f"Configure {self.keys.connection_url}", CRITICAL)]
        return [RemediationEntry(f"Fix the SSL connection error: {probe.message}", CRITICAL)]
