from .errors import (
    ErrorCode,
    EngineError,
    InvalidPeriodError,
    InvalidTickerError,
    FetchError,
    DataError,
    DispatchError,
    WorkerUnavailableError,
    UnknownComputationKindError,
    ComputationFailedError,
    RequestCancelledError,
    RequestTimeoutError,
)
from .sources import PriceHistorySource

__all__ = [
    "ErrorCode",
    "EngineError",
    "InvalidPeriodError",
    "InvalidTickerError",
    "FetchError",
    "DataError",
    "DispatchError",
    "WorkerUnavailableError",
    "UnknownComputationKindError",
    "ComputationFailedError",
    "RequestCancelledError",
    "RequestTimeoutError",
    "PriceHistorySource",
]
