"""
Error types for the posture validator.

Probe failures are never raised; they are captured into a ProbeOutcome.
These exceptions cover the surfaces around the run: option validation
and report persistence.
"""


class PostureError(Exception):
    """Base class for validator errors."""


class ConfigurationError(PostureError):
    """Raised when a runtime option has an invalid value."""


class ReportError(PostureError):
    """Raised when a result report cannot be written."""
