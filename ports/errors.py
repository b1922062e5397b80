"""
Error types for the indicator engine and its collaborators.

Every error carries a structured code so that callers (CLI, dashboards,
log processors) can branch on the failure family without string matching.
"Insufficient data" is deliberately absent here: it is a valid result,
represented as ``None``, never an exception.
"""

from datetime import datetime
from enum import Enum
from typing import Any


# ============================================================================
# Error Codes
# ============================================================================

class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # Fetch errors (2xx)
    FETCH_FAILED = "E201"
    FETCH_NOT_FOUND = "E206"

    # Data errors (4xx)
    DATA_MISSING = "E401"
    DATA_INVALID = "E402"
    DATA_EMPTY = "E404"

    # Validation errors (5xx)
    VALIDATION_TICKER = "E501"
    VALIDATION_PERIOD = "E502"

    # Dispatch errors (6xx)
    WORKER_UNAVAILABLE = "E601"
    UNKNOWN_COMPUTATION = "E602"
    COMPUTATION_FAILED = "E603"
    REQUEST_CANCELLED = "E604"
    REQUEST_TIMEOUT = "E605"

    # Internal errors (9xx)
    INTERNAL = "E901"
    CONFIG_INVALID = "E902"
    UNKNOWN = "E999"


# ============================================================================
# Base
# ============================================================================

class EngineError(Exception):
    """
    Base exception for stockwatch failures.

    Provides structured error information for debugging and monitoring.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        source: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.source = source
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now()

        parts = [f"[{code.value}]"]
        if source:
            parts.append(f"[{source}]")
        parts.append(message)

        self.message = message
        super().__init__(" ".join(parts))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "source": self.source,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def with_context(self, **kwargs: Any) -> "EngineError":
        """Add additional context and return self for chaining."""
        self.context.update(kwargs)
        return self


# ============================================================================
# Validation
# ============================================================================

class InvalidPeriodError(EngineError, ValueError):
    """Raised when an indicator window is not a positive integer."""

    def __init__(self, period: Any, name: str = "period"):
        self.period = period
        super().__init__(
            message=f"{name} must be a positive integer, got {period!r}",
            code=ErrorCode.VALIDATION_PERIOD,
            context={"field": name, "value": repr(period)[:50]},
        )


class InvalidTickerError(EngineError, ValueError):
    """Raised when a ticker symbol cannot be normalized."""

    def __init__(self, ticker: str, reason: str = "Invalid format"):
        super().__init__(
            message=f"Invalid ticker '{ticker}': {reason}",
            code=ErrorCode.VALIDATION_TICKER,
            context={"field": "ticker", "value": str(ticker)[:50]},
        )


# ============================================================================
# Adapter errors
# ============================================================================

class FetchError(EngineError):
    """Raised when a history provider cannot retrieve data."""

    def __init__(
        self,
        source: str,
        reason: str,
        code: ErrorCode = ErrorCode.FETCH_FAILED,
        symbol: str | None = None,
        cause: Exception | None = None,
    ):
        self.reason = reason
        context = {"reason": reason}
        if symbol:
            context["symbol"] = symbol

        super().__init__(
            message=reason,
            code=code,
            source=source,
            context=context,
            cause=cause,
        )


class DataError(EngineError):
    """Raised when provider data is missing or malformed."""

    def __init__(
        self,
        source: str,
        reason: str,
        code: ErrorCode = ErrorCode.DATA_INVALID,
        field: str | None = None,
    ):
        context = {"reason": reason}
        if field:
            context["field"] = field

        super().__init__(
            message=reason,
            code=code,
            source=source,
            context=context,
        )

    @classmethod
    def missing(cls, source: str, field: str) -> "DataError":
        """Create error for missing required field."""
        return cls(
            source=source,
            reason=f"Missing required field: {field}",
            code=ErrorCode.DATA_MISSING,
            field=field,
        )

    @classmethod
    def empty(cls, source: str, description: str = "No data") -> "DataError":
        """Create error for empty result set."""
        return cls(source=source, reason=description, code=ErrorCode.DATA_EMPTY)


# ============================================================================
# Dispatch errors
# ============================================================================

class DispatchError(EngineError):
    """Base class for failures surfaced by the computation dispatcher."""


class WorkerUnavailableError(DispatchError):
    """No worker could be created, or it has been terminated."""

    def __init__(self, reason: str = "Worker is not ready", state: str | None = None):
        context = {"state": state} if state else {}
        super().__init__(
            message=reason,
            code=ErrorCode.WORKER_UNAVAILABLE,
            source="dispatcher",
            context=context,
        )


class UnknownComputationKindError(DispatchError):
    """The worker received a request tag it does not recognize."""

    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(
            message=f"Unknown computation kind: {kind!r}",
            code=ErrorCode.UNKNOWN_COMPUTATION,
            source="worker",
            context={"kind": str(kind)[:50]},
        )


class ComputationFailedError(DispatchError):
    """The math raised while the worker was evaluating a request."""

    def __init__(self, reason: str, kind: str | None = None, cause: Exception | None = None):
        context = {"kind": kind} if kind else {}
        super().__init__(
            message=reason,
            code=ErrorCode.COMPUTATION_FAILED,
            source="worker",
            context=context,
            cause=cause,
        )


class RequestCancelledError(DispatchError):
    """A request was still pending when the dispatcher shut down."""

    def __init__(self, request_id: int | None = None):
        context = {"request_id": request_id} if request_id is not None else {}
        super().__init__(
            message="Request cancelled: dispatcher terminated",
            code=ErrorCode.REQUEST_CANCELLED,
            source="dispatcher",
            context=context,
        )


class RequestTimeoutError(DispatchError):
    """A request did not receive a response in time."""

    def __init__(self, timeout: float, request_id: int | None = None):
        self.timeout = timeout
        context: dict[str, Any] = {"timeout_seconds": timeout}
        if request_id is not None:
            context["request_id"] = request_id
        super().__init__(
            message=f"No response after {timeout:.2f}s",
            code=ErrorCode.REQUEST_TIMEOUT,
            source="dispatcher",
            context=context,
        )
