from posture.core.model import CheckSpec


DEFAULT_CHECKLIST = (
    CheckSpec("DB_SSL", "true", 1.0, "SSL enabled"),
    CheckSpec("DB_SSL_MODE", "require", 1.0, "SSL mode required"),
    CheckSpec("DB_SSL_REJECT_UNAUTHORIZED", "true", 1.0, "Reject unauthorized certificates"),
    CheckSpec("SSL_VERIFY_CERTIFICATE", "true", 1.0, "Certificate verification"),
    CheckSpec("SSL_CHECK_HOSTNAME", "true", 1.0, "Hostname verification"),
)
