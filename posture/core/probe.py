"""
Connection Probe for the posture validator

Opens one encrypted connection within a time budget, checks that the
session actually negotiated TLS, reads the server version and releases
everything it acquired on every exit path.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from .classifier import classify, failure_signal
from .driver import PostgresDriver
from .errors import ConfigurationError
from .model import ErrorCategory, ProbeFailure, ProbeOutcome, ProbeSuccess, ProbeTimeout
from ..utils.urls import mask_connection_url

DEFAULT_TIMEOUT_MS = 10000
MAX_TIMEOUT_MS = 30000
CLEANUP_GRACE_SECONDS = 1.0
CLEANUP_DRAIN_SECONDS = 5.0

SSL_STATUS_QUERY = "SELECT ssl FROM pg_stat_ssl WHERE pid = pg_backend_pid()"
VERSION_QUERY = "SELECT version()"

MISSING_URL_MESSAGE = "missing connection string"


def _first_value(rows: List[Dict[str, Any]]) -> Any:
    if not rows:
        return None
    row = rows[0]
    return next(iter(row.values()), None) if row else None


def ssl_is_on(value: Any) -> bool:
    """True only for an affirmative encryption status."""
    if value is True:
        return True
    return isinstance(value, str) and value.strip().lower() in ("on", "true", "t")


def short_version(version: str) -> str:
    return " ".join(version.split()[:2])


class ConnectionProbe:
    """Single guarded connect-and-verify attempt.

    ``probe`` never raises for connection problems: every outcome comes
    back as a ProbeSuccess, ProbeFailure or ProbeTimeout. It never
    retries.
    """

    def __init__(self,
                 driver: Optional[Any] = None,
                 logger: Optional[logging.Logger] = None,
                 cleanup_grace: float = CLEANUP_GRACE_SECONDS):
        self.driver = driver or PostgresDriver()
        self.logger = logger or logging.getLogger(__name__)
        self.cleanup_grace = cleanup_grace
        self._abandoned: Set["asyncio.Future[ProbeOutcome]"] = set()

    def resolve_timeout(self, timeout_ms: Optional[int]) -> int:
        if timeout_ms is None:
            return DEFAULT_TIMEOUT_MS
        if timeout_ms <= 0:
            raise ConfigurationError(f"Probe timeout must be positive, got {timeout_ms}")
        if timeout_ms > MAX_TIMEOUT_MS:
            self.logger.warning(f"Probe timeout {timeout_ms} ms capped to {MAX_TIMEOUT_MS} ms")
            return MAX_TIMEOUT_MS
        return int(timeout_ms)

    async def probe(self, connection_url: Optional[str],
                    timeout_ms: Optional[int] = DEFAULT_TIMEOUT_MS) -> ProbeOutcome:
        if not connection_url:
            self.logger.error("No connection string configured; skipping live probe")
            return ProbeFailure(ErrorCategory.OTHER, MISSING_URL_MESSAGE)

        try:
            budget_ms = self.resolve_timeout(timeout_ms)
        except ConfigurationError as e:
            self.logger.error(f"Skipping live probe: {e}")
            return ProbeFailure(ErrorCategory.OTHER, f"invalid timeout: {e}")

        self.logger.info(f"Connecting to: {mask_connection_url(connection_url)}")

        attempt = asyncio.ensure_future(self._connect_and_verify(connection_url))
        timer = asyncio.ensure_future(asyncio.sleep(budget_ms / 1000.0))
        try:
            await asyncio.wait({attempt, timer}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            attempt.cancel()
            timer.cancel()
            raise

        if attempt.done():
            timer.cancel()
            return attempt.result()

        self.logger.error(f"Connection attempt timed out after {budget_ms} ms")
        await self._abandon(attempt)
        return ProbeTimeout(budget_ms)

    async def _abandon(self, attempt: "asyncio.Future[ProbeOutcome]") -> None:
        # Cancelling unwinds the attempt's finally block, which releases
        # whatever it had acquired.
        attempt.cancel()
        done, _ = await asyncio.wait({attempt}, timeout=self.cleanup_grace)
        if attempt in done:
            if not attempt.cancelled() and attempt.exception() is not None:
                self.logger.debug(f"Abandoned attempt ended with: {attempt.exception()}")
            return

        self.logger.warning("Abandoned connection attempt is still releasing resources")
        self._abandoned.add(attempt)
        attempt.add_done_callback(self._log_late_settlement)

    @property
    def pending_cleanups(self) -> int:
        return sum(1 for attempt in self._abandoned if not attempt.done())

    async def drain(self, timeout: float = CLEANUP_DRAIN_SECONDS) -> bool:
        """Wait for abandoned attempts to finish releasing their resources.

        Must be awaited before the event loop shuts down: ``asyncio.run``
        cancels leftover tasks, which would interrupt a pool teardown
        midway and leak the connection. Returns False if some cleanup is
        still running after ``timeout`` seconds.
        """
        pending = {attempt for attempt in self._abandoned if not attempt.done()}
        if not pending:
            return True

        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        if still_pending:
            self.logger.warning(
                f"{len(still_pending)} connection cleanup(s) still running after {timeout:g}s; "
                "they will be cancelled at loop shutdown"
            )
            return False
        return True

    def _log_late_settlement(self, attempt: "asyncio.Future[ProbeOutcome]") -> None:
        self._abandoned.discard(attempt)
        if attempt.cancelled():
            self.logger.debug("Abandoned connection attempt finished cleanup")
        elif attempt.exception() is not None:
            self.logger.debug(f"Abandoned connection attempt failed late: {attempt.exception()}")

    async def _connect_and_verify(self, connection_url: str) -> ProbeOutcome:
        pool = None
        connection = None
        try:
            pool = self.driver.create_pool(connection_url)
            connection = await pool.connect()

            ssl_status = _first_value(await connection.query(SSL_STATUS_QUERY))
            version_value = _first_value(await connection.query(VERSION_QUERY))
            server_version = str(version_value) if version_value is not None else "unknown"

            if not ssl_is_on(ssl_status):
                self.logger.error(f"Connection is not using SSL (ssl={ssl_status!r})")
                return ProbeFailure(
                    ErrorCategory.OTHER,
                    f"connection established without transport encryption (ssl={ssl_status!r})",
                    connected=True,
                    server_version=server_version,
                )

            self.logger.info("SSL connection established")
            self.logger.info(f"Server: {short_version(server_version)}")
            return ProbeSuccess(server_version=server_version, ssl_negotiated=True)

        except Exception as e:
            code, message = failure_signal(e)
            category = classify(code, message)
            self.logger.error(f"SSL connection error: {message}")
            return ProbeFailure(category, message, code=code)

        finally:
            await self._release(pool, connection)

    async def _release(self, pool: Any, connection: Any) -> None:
        if connection is not None:
            try:
                await connection.release()
            except Exception as e:
                self.logger.debug(f"Error releasing connection: {e}")
        if pool is not None:
            try:
                await pool.end()
            except Exception as e:
                self.logger.debug(f"Error closing pool: {e}")
