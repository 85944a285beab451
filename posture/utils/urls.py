"""
Connection URL helpers

Masking, host extraction and the small heuristics scored against the
database connection string.
"""

import ipaddress
import re
import urllib.parse
from typing import Optional

_CREDENTIALS = re.compile(r"//[^/?#]*@")
_QUERY_SECRET = re.compile(r"(^|[?&;\s])((?:password|user)\s*[:=]\s*)[^&;\s#]*", re.I)
_PLACEHOLDER = re.compile(r"\$\{[^}]+\}")
_PLAINTEXT_PASSWORD = re.compile(r"password\s*[:=]", re.I)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


def mask_connection_url(url: Optional[str]) -> str:
    """Hide credentials and ``${...}`` placeholders before echoing a URL.

    The whole userinfo up to the last ``@`` before the host is replaced,
    as are ``password`` and ``user`` parameter values.
    """
    if not url:
        return ""
    masked = _CREDENTIALS.sub("//***:***@", url)
    masked = _QUERY_SECRET.sub(r"\1\2***", masked)
    return _PLACEHOLDER.sub("***", masked)


def extract_host(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        return urllib.parse.urlparse(url).hostname
    except ValueError:
        return None


def is_local_host(url: Optional[str]) -> bool:
    """True when the URL points at the loopback interface."""
    if not url:
        return False

    hostname = extract_host(url)
    if hostname is None:
        # Unparseable (e.g. templated) URLs fall back to a plain scan
        return any(local in url for local in LOCAL_HOSTS)

    if hostname in LOCAL_HOSTS:
        return True
    try:
        return ipaddress.ip_address(hostname).is_loopback
    except ValueError:
        return False


def requires_ssl_mode(url: Optional[str]) -> bool:
    """True when the URL carries ``sslmode=require``."""
    if not url:
        return False
    try:
        query = urllib.parse.urlparse(url).query
        modes = urllib.parse.parse_qs(query).get("sslmode", [])
    except ValueError:
        return "sslmode=require" in url
    return "require" in modes


def has_plaintext_password_marker(url: Optional[str]) -> bool:
    if not url:
        return False
    return bool(_PLAINTEXT_PASSWORD.search(url))
