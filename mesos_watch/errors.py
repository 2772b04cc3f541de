"""
Mesos watch error hierarchy.

Errors are classified by:
- Category: What failed (network, protocol, discovery, config)
- Severity: How serious (transient, degraded, fatal)

Setup and leader resolution failures are raised. Per-cycle decode
failures on the watch stream are never raised; they reach the consumer
as an empty payload.
"""

from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """How serious is this error?"""

    TRANSIENT = auto()
    """Retry on the next cycle is expected to succeed."""

    DEGRADED = auto()
    """The operation failed but the client remains usable."""

    FATAL = auto()
    """The client cannot be used."""


class ErrorCategory(Enum):
    """What kind of error is this?"""

    NETWORK = auto()
    """Connect, send and receive failures, timeouts, closed peers."""

    PROTOCOL = auto()
    """Unexpected or malformed responses."""

    DISCOVERY = auto()
    """Leader resolution outcomes."""

    CONFIG = auto()
    """Invalid construction parameters."""


class MesosWatchError(Exception):
    """
    Base exception for all mesos watch errors.

    All errors carry:
    - message: Human-readable description
    - category: What kind of error
    - severity: How serious
    - context: Additional debugging info
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        cause: BaseException | None = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.cause = cause
        self.context: dict[str, Any] = context

    def __str__(self) -> str:
        ctx = f" {self.context}" if self.context else ""
        cause = f" (caused by: {self.cause})" if self.cause else ""
        return f"[{self.category.name}/{self.severity.name}] {self.message}{ctx}{cause}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"category={self.category}, "
            f"severity={self.severity}, "
            f"context={self.context})"
        )

    @property
    def is_transient(self) -> bool:
        return self.severity == ErrorSeverity.TRANSIENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'category': self.category.name,
            'severity': self.severity.name,
            'context': self.context,
            'cause': str(self.cause) if self.cause else None,
        }


class ClientInitError(MesosWatchError):
    """The client cannot be constructed or bound as requested."""

    def __init__(self, message: str, cause: BaseException | None = None, **context: Any):
        super().__init__(
            message,
            category=ErrorCategory.CONFIG,
            severity=ErrorSeverity.FATAL,
            cause=cause,
            **context,
        )


# =============================================================================
# Network Errors - Transient, the caller retries on its next cycle
# =============================================================================

class NetworkError(MesosWatchError):
    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.TRANSIENT,
        cause: BaseException | None = None,
        **context: Any,
    ):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            severity=severity,
            cause=cause,
            **context,
        )


class ConnectError(NetworkError):
    """The watch socket could not be connected."""


class ConnectTimeout(NetworkError):
    """The watch socket did not become writable before the timeout."""

    def __init__(self, endpoint: str, timeout_ms: int):
        super().__init__(
            f"Error obtaining socket: timeout after {timeout_ms}ms",
            endpoint=endpoint,
            timeout_ms=timeout_ms,
        )


class SendError(NetworkError):
    """The watch request could not be written in full."""


class SendTimeout(NetworkError):
    """No response became readable before the timeout."""

    def __init__(self, endpoint: str, timeout_ms: int):
        super().__init__(
            f"Send: no response after {timeout_ms}ms",
            endpoint=endpoint,
            timeout_ms=timeout_ms,
        )


class ConnectionClosed(NetworkError):
    """The peer closed the watch connection."""

    def __init__(self, endpoint: str):
        super().__init__(
            f"Connection [{endpoint}] closed",
            endpoint=endpoint,
        )


class WatchConnectionError(NetworkError):
    """Reading from the watch socket failed."""

    def __init__(self, endpoint: str, system_message: str, cause: BaseException | None = None):
        super().__init__(
            f"Connection [{endpoint}] error: {system_message}",
            cause=cause,
            endpoint=endpoint,
            system_message=system_message,
        )
        self.system_message = system_message


class FetchFailed(NetworkError):
    """A one-shot blocking fetch did not produce a usable response."""

    def __init__(self, url: str, reason: str, cause: BaseException | None = None, **context: Any):
        super().__init__(
            f"Fetch from [{url}] failed: {reason}",
            severity=ErrorSeverity.DEGRADED,
            cause=cause,
            url=url,
            **context,
        )


# =============================================================================
# Protocol Errors - The leader answered with something unusable
# =============================================================================

class MalformedResponse(MesosWatchError):
    def __init__(self, message: str, cause: BaseException | None = None, **context: Any):
        super().__init__(
            message,
            category=ErrorCategory.PROTOCOL,
            severity=ErrorSeverity.DEGRADED,
            cause=cause,
            **context,
        )


class MissingAdvertisement(MesosWatchError):
    """An active tracked framework does not advertise a URL."""

    def __init__(self, framework_name: str, framework_id: str):
        super().__init__(
            f"Can not obtain URL for framework {framework_name} ({framework_id})",
            category=ErrorCategory.PROTOCOL,
            severity=ErrorSeverity.DEGRADED,
            framework_name=framework_name,
            framework_id=framework_id,
        )


# =============================================================================
# Discovery Errors - Leader resolution outcomes
# =============================================================================

class StandbyNoDiscovery(MesosWatchError):
    """The endpoint is a standby master and autodiscovery is disabled."""

    def __init__(self, endpoint: str):
        super().__init__(
            "Detected standby Mesos master: autodiscovery not enabled. Giving up (will retry).",
            category=ErrorCategory.DISCOVERY,
            severity=ErrorSeverity.TRANSIENT,
            endpoint=endpoint,
        )


class LeaderUnreachable(MesosWatchError):
    """Redirects point back at the current endpoint or never settle."""

    def __init__(self, endpoint: str, hops: int, reason: str):
        super().__init__(
            f"Mesos master leader not discovered at [{endpoint}]: {reason}. Giving up temporarily ...",
            category=ErrorCategory.DISCOVERY,
            severity=ErrorSeverity.TRANSIENT,
            endpoint=endpoint,
            hops=hops,
        )
