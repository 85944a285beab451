"""
Error Classifier for the posture validator

Maps a connection failure to a remediation category. The category only
selects remediation text; it never changes the score.
"""

from typing import Optional, Tuple

from .model import ErrorCategory

# OpenSSL X509_V_ERR_* values surfaced by ssl.SSLCertVerificationError
OPENSSL_VERIFY_CODES = {
    10: "CERT_HAS_EXPIRED",
    18: "DEPTH_ZERO_SELF_SIGNED_CERT",
    19: "SELF_SIGNED_CERT_IN_CHAIN",
    20: "UNABLE_TO_GET_ISSUER_CERT_LOCALLY",
    21: "UNABLE_TO_VERIFY_LEAF_SIGNATURE",
}

CODE_CATEGORIES = {
    "UNABLE_TO_VERIFY_LEAF_SIGNATURE": ErrorCategory.UNVERIFIED_CERTIFICATE_CHAIN,
    "DEPTH_ZERO_SELF_SIGNED_CERT": ErrorCategory.SELF_SIGNED_CERTIFICATE,
    "CERT_HAS_EXPIRED": ErrorCategory.EXPIRED_CERTIFICATE,
}

# Checked in order; first match wins
MESSAGE_PATTERNS = (
    ("unable to verify the first certificate", ErrorCategory.UNVERIFIED_CERTIFICATE_CHAIN),
    ("unable to verify leaf signature", ErrorCategory.UNVERIFIED_CERTIFICATE_CHAIN),
    ("unable to get local issuer certificate", ErrorCategory.UNVERIFIED_CERTIFICATE_CHAIN),
    ("self signed certificate in certificate chain", ErrorCategory.OTHER),
    ("self-signed certificate in certificate chain", ErrorCategory.OTHER),
    ("self signed certificate", ErrorCategory.SELF_SIGNED_CERTIFICATE),
    ("self-signed certificate", ErrorCategory.SELF_SIGNED_CERTIFICATE),
    ("certificate has expired", ErrorCategory.EXPIRED_CERTIFICATE),
)


def classify(failure_code: Optional[str], failure_message: Optional[str] = None) -> ErrorCategory:
    """Classify a failure by code, falling back to its message text.

    Total: anything unrecognized is ``ErrorCategory.OTHER``.
    """
    if failure_code:
        category = CODE_CATEGORIES.get(str(failure_code).strip().upper())
        if category is not None:
            return category

    message = (failure_message or "").lower()
    for pattern, category in MESSAGE_PATTERNS:
        if pattern in message:
            return category

    return ErrorCategory.OTHER


def failure_signal(error: BaseException) -> Tuple[Optional[str], str]:
    """Pull a ``(code, message)`` pair out of a raised connection error.

    Walks the ``__cause__``/``__context__`` chain so that a certificate
    error wrapped by the driver is still found. A code the classifier
    recognizes wins; otherwise symbolic codes come before OpenSSL verify
    codes, which come before SQLSTATE values.
    """
    message = str(error) or error.__class__.__name__
    symbolic = []
    verify = None
    sqlstate = None

    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))

        code = getattr(current, "code", None)
        if isinstance(code, str) and code:
            symbolic.append(code)

        verify_code = getattr(current, "verify_code", None)
        if verify is None and isinstance(verify_code, int):
            verify = OPENSSL_VERIFY_CODES.get(verify_code)
            verify_message = getattr(current, "verify_message", None)
            if verify_message and verify_message not in message:
                message = f"{message} ({verify_message})"

        state = getattr(current, "sqlstate", None)
        if sqlstate is None and isinstance(state, str) and state:
            sqlstate = state

        current = current.__cause__ or current.__context__

    candidates = symbolic + [c for c in (verify, sqlstate) if c]
    for candidate in candidates:
        if candidate.upper() in CODE_CATEGORIES:
            return candidate, message
    return (candidates[0] if candidates else None), message
