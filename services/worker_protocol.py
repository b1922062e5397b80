"""
Message protocol between the dispatcher and its calculation worker.

Requests are tagged variants: one frozen dataclass per computation kind,
wrapped in an envelope carrying a correlation id. The worker side is
``handle_request``, which never raises: every outcome becomes a
``WorkerResponse`` with either a success payload or an error message.

Wire form (``to_message`` / ``from_message``):
    request:  {"id": 1, "kind": "rsi", "prices": [...], "period": 14}
    success:  {"id": 1, "status": "success", "payload": ...}
    failure:  {"id": 1, "status": "error", "code": "E603", "message": "..."}
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from domain.indicators import (
    calculate_bollinger_bands,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
)
from domain.signals import SignalThresholds, compute_all
from ports.errors import (
    ComputationFailedError,
    DispatchError,
    ErrorCode,
    UnknownComputationKindError,
)

logger = logging.getLogger(__name__)


class ComputationKind(str, Enum):
    """Tag identifying which calculation a request asks for."""
    RSI = "rsi"
    MACD = "macd"
    BOLLINGER_BANDS = "bollinger_bands"
    SMA = "sma"
    ALL = "all"


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


# ============================================================================
# Request variants
# ============================================================================

@dataclass(frozen=True)
class RSIComputation:
    prices: tuple[float, ...]
    period: int = 14
    kind = ComputationKind.RSI


@dataclass(frozen=True)
class MACDComputation:
    prices: tuple[float, ...]
    kind = ComputationKind.MACD


@dataclass(frozen=True)
class BollingerComputation:
    prices: tuple[float, ...]
    period: int = 20
    kind = ComputationKind.BOLLINGER_BANDS


@dataclass(frozen=True)
class SMAComputation:
    prices: tuple[float, ...]
    period: int
    kind = ComputationKind.SMA


@dataclass(frozen=True)
class AllComputation:
    prices: tuple[float, ...]
    current_price: float | None = None
    sma_value: float | None = None
    thresholds: SignalThresholds | None = None
    kind = ComputationKind.ALL


Computation = (
    RSIComputation
    | MACDComputation
    | BollingerComputation
    | SMAComputation
    | AllComputation
)


# ============================================================================
# Envelopes
# ============================================================================

@dataclass(frozen=True)
class WorkerRequest:
    """A computation plus the correlation id used to route its response."""
    request_id: int
    computation: Computation

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {
            "id": self.request_id,
            "kind": self.computation.kind.value,
            "prices": list(self.computation.prices),
        }
        for name in ("period", "current_price", "sma_value"):
            value = getattr(self.computation, name, None)
            if value is not None:
                message[name] = value
        return message

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> "WorkerRequest":
        """
        Decode a wire message into a typed request.

        Raises:
            UnknownComputationKindError: If the kind tag is not recognized
        """
        raw_kind = message.get("kind")
        try:
            kind = ComputationKind(raw_kind)
        except ValueError:
            raise UnknownComputationKindError(raw_kind) from None

        prices = tuple(message.get("prices", ()))
        period = message.get("period")

        computation: Computation
        if kind is ComputationKind.RSI:
            computation = RSIComputation(prices, 14 if period is None else period)
        elif kind is ComputationKind.MACD:
            computation = MACDComputation(prices)
        elif kind is ComputationKind.BOLLINGER_BANDS:
            computation = BollingerComputation(prices, 20 if period is None else period)
        elif kind is ComputationKind.SMA:
            computation = SMAComputation(prices, period)
        elif kind is ComputationKind.ALL:
            computation = AllComputation(
                prices,
                current_price=message.get("current_price"),
                sma_value=message.get("sma_value"),
            )
        else:
            raise UnknownComputationKindError(raw_kind)

        return cls(request_id=int(message.get("id", 0)), computation=computation)


@dataclass(frozen=True)
class WorkerResponse:
    """Outcome of one request: a payload on success, a message on error."""
    request_id: int
    status: ResponseStatus
    payload: Any = None
    message: str | None = None
    code: ErrorCode | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is ResponseStatus.SUCCESS

    @classmethod
    def success(cls, request_id: int, payload: Any) -> "WorkerResponse":
        return cls(request_id=request_id, status=ResponseStatus.SUCCESS, payload=payload)

    @classmethod
    def failure(cls, request_id: int, error: DispatchError) -> "WorkerResponse":
        return cls(
            request_id=request_id,
            status=ResponseStatus.ERROR,
            message=error.message,
            code=error.code,
            context=dict(error.context),
        )

    def to_message(self) -> dict[str, Any]:
        if self.ok:
            return {"id": self.request_id, "status": self.status.value, "payload": _to_wire(self.payload)}
        return {
            "id": self.request_id,
            "status": self.status.value,
            "code": self.code.value if self.code else None,
            "message": self.message,
        }

    def to_error(self) -> DispatchError:
        """Rebuild the caller-facing exception for a failure response."""
        if self.code is ErrorCode.UNKNOWN_COMPUTATION:
            return UnknownComputationKindError(self.context.get("kind", self.message))
        return ComputationFailedError(
            self.message or "Computation failed",
            kind=self.context.get("kind"),
        )


def _to_wire(payload: Any) -> Any:
    if hasattr(payload, "to_dict"):
        return payload.to_dict()
    return payload


# ============================================================================
# Worker side
# ============================================================================

def execute(computation: Computation) -> Any:
    """
    Run one computation on the calling thread.

    Raises:
        UnknownComputationKindError: If ``computation`` is not a known variant
        Any exception raised by the indicator math
    """
    if isinstance(computation, RSIComputation):
        return calculate_rsi(computation.prices, computation.period)
    if isinstance(computation, MACDComputation):
        return calculate_macd(computation.prices)
    if isinstance(computation, BollingerComputation):
        return calculate_bollinger_bands(computation.prices, computation.period)
    if isinstance(computation, SMAComputation):
        return calculate_sma(computation.prices, computation.period)
    if isinstance(computation, AllComputation):
        prices = computation.prices
        current_price = computation.current_price
        if current_price is None:
            current_price = prices[-1] if prices else 0.0
        return compute_all(
            prices,
            current_price,
            sma_value=computation.sma_value,
            thresholds=computation.thresholds,
        )
    raise UnknownComputationKindError(type(computation).__name__)


def handle_request(request: WorkerRequest) -> WorkerResponse:
    """Evaluate a request, converting every failure into an error response."""
    computation = request.computation
    kind = getattr(computation, "kind", None)
    try:
        payload = execute(computation)
    except DispatchError as e:
        logger.warning(f"Request {request.request_id} rejected: {e}")
        return WorkerResponse.failure(request.request_id, e)
    except Exception as e:
        logger.error(f"Request {request.request_id} ({kind}) failed: {e}")
        error = ComputationFailedError(
            f"{type(e).__name__}: {e}",
            kind=kind.value if isinstance(kind, ComputationKind) else None,
            cause=e,
        )
        return WorkerResponse.failure(request.request_id, error)

    return WorkerResponse.success(request.request_id, payload)
