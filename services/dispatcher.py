"""
Computation dispatcher for technical indicators.

Presents one asynchronous call surface for the indicator math, whether it
runs on the caller's thread (``DispatchMode.INLINE``) or on a single
isolated worker thread (``DispatchMode.WORKER``).

Lifecycle:
    UNINITIALIZED -> READY        worker started (or inline mode)
    UNINITIALIZED -> UNAVAILABLE  worker could not be created
    READY -> UNAVAILABLE          worker thread stopped unexpectedly
    READY/UNAVAILABLE -> TERMINATED  terminate() called

Calls made while not READY fail fast with WorkerUnavailableError; there is
no silent fallback to inline execution.

Usage:
    async with IndicatorDispatcher() as dispatcher:
        rsi = await dispatcher.calculate_rsi(prices)
        summary = await dispatcher.calculate_all(prices)
"""

import asyncio
import itertools
import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol, Sequence

from domain.indicators import BollingerBands, MACDResult
from domain.signals import IndicatorSummary, SignalThresholds
from ports.errors import (
    RequestCancelledError,
    RequestTimeoutError,
    WorkerUnavailableError,
)

from .worker_protocol import (
    AllComputation,
    BollingerComputation,
    Computation,
    MACDComputation,
    RSIComputation,
    SMAComputation,
    WorkerRequest,
    WorkerResponse,
    handle_request,
)

logger = logging.getLogger(__name__)


class DispatchMode(str, Enum):
    WORKER = "worker"
    INLINE = "inline"


class DispatcherState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    UNAVAILABLE = "unavailable"
    TERMINATED = "terminated"


class WorkerHandle(Protocol):
    """The subset of ``threading.Thread`` the dispatcher relies on."""

    def start(self) -> None: ...

    def join(self, timeout: float | None = None) -> None: ...


WorkerFactory = Callable[[Callable[[], None]], WorkerHandle]

# Placed on the inbox to stop the worker loop
_SHUTDOWN = object()


def default_worker_factory(target: Callable[[], None]) -> WorkerHandle:
    return threading.Thread(target=target, name="indicator-worker", daemon=True)


@dataclass
class _PendingCall:
    """A future waiting on the worker, and the loop that owns it."""
    future: asyncio.Future
    loop: asyncio.AbstractEventLoop


def _settle(future: asyncio.Future, response: WorkerResponse) -> None:
    if future.done():
        return
    if response.ok:
        future.set_result(response.payload)
    else:
        future.set_exception(response.to_error())


def _fail(future: asyncio.Future, error: Exception) -> None:
    if not future.done():
        future.set_exception(error)


class IndicatorDispatcher:
    """
    Dispatches indicator computations to an isolated worker thread.

    Each call gets its own correlation id and future, so any number of
    concurrent calls can be outstanding without cross-talk. The worker
    thread is owned by this instance and must not be shared.
    """

    def __init__(
        self,
        mode: DispatchMode | str = DispatchMode.WORKER,
        worker_factory: WorkerFactory | None = None,
        timeout: float | None = None,
        join_timeout: float = 5.0,
    ):
        self.mode = DispatchMode(mode)
        self.timeout = timeout
        self.join_timeout = join_timeout

        self._state = DispatcherState.UNINITIALIZED
        self._unavailable_reason: str | None = None
        self._inbox: queue.Queue = queue.Queue()
        self._pending: dict[int, _PendingCall] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._worker: WorkerHandle | None = None

        self._start(worker_factory or default_worker_factory)

    @classmethod
    def from_config(cls, config: Any, **kwargs: Any) -> "IndicatorDispatcher":
        """Build from a ``DispatcherConfig`` section; keyword arguments take precedence."""
        options = {"mode": config.mode, "timeout": config.timeout_seconds}
        options.update(kwargs)
        return cls(**options)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _start(self, factory: WorkerFactory) -> None:
        if self.mode is DispatchMode.INLINE:
            self._state = DispatcherState.READY
            logger.debug("Dispatcher running inline")
            return

        try:
            worker = factory(self._run_worker)
            worker.start()
        except Exception as e:
            self._state = DispatcherState.UNAVAILABLE
            self._unavailable_reason = f"Worker creation failed: {e}"
            logger.warning(self._unavailable_reason)
            return

        self._worker = worker
        self._state = DispatcherState.READY
        logger.info("Indicator worker started")

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is DispatcherState.READY

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def terminate(self) -> None:
        """
        Stop the worker and cancel every request still in flight.

        Safe to call more than once.
        """
        with self._lock:
            if self._state is DispatcherState.TERMINATED:
                return
            self._state = DispatcherState.TERMINATED
            pending, self._pending = self._pending, {}

        if self._worker is not None:
            self._inbox.put(_SHUTDOWN)
            self._worker.join(timeout=self.join_timeout)
            self._worker = None

        for request_id, call in pending.items():
            self._post(call, _fail, call.future, RequestCancelledError(request_id))

        logger.info(f"Dispatcher terminated ({len(pending)} pending request(s) cancelled)")

    def __enter__(self) -> "IndicatorDispatcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.terminate()

    async def __aenter__(self) -> "IndicatorDispatcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.terminate()

    # ------------------------------------------------------------------
    # Worker thread
    # ------------------------------------------------------------------

    def _run_worker(self) -> None:
        stopped = False
        try:
            while True:
                request = self._inbox.get()
                if request is _SHUTDOWN:
                    stopped = True
                    break
                self._deliver(handle_request(request))
        finally:
            if not stopped:
                self._worker_died()

    def _worker_died(self) -> None:
        """Mark the dispatcher UNAVAILABLE and fail whatever was in flight."""
        with self._lock:
            if self._state is DispatcherState.TERMINATED:
                return
            self._state = DispatcherState.UNAVAILABLE
            self._unavailable_reason = "Worker stopped unexpectedly"
            pending, self._pending = self._pending, {}

        logger.error(f"Indicator worker stopped unexpectedly ({len(pending)} pending)")
        for call in pending.values():
            self._post(call, _fail, call.future, self._unavailable())

    def _deliver(self, response: WorkerResponse) -> None:
        with self._lock:
            call = self._pending.pop(response.request_id, None)
        if call is None:
            logger.debug(f"Dropping response {response.request_id}: no longer pending")
            return
        self._post(call, _settle, call.future, response)

    @staticmethod
    def _post(call: _PendingCall, callback: Callable[..., None], *args: Any) -> None:
        try:
            call.loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop already closed; nobody is awaiting the result
            logger.debug("Event loop closed before response delivery")

    def _forget(self, request_id: int) -> None:
        with self._lock:
            self._pending.pop(request_id, None)

    # ------------------------------------------------------------------
    # Call protocol
    # ------------------------------------------------------------------

    def _unavailable(self) -> WorkerUnavailableError:
        reason = self._unavailable_reason or f"Worker is {self._state.value}"
        return WorkerUnavailableError(reason, state=self._state.value)

    async def _submit(self, computation: Computation) -> Any:
        if self._state is not DispatcherState.READY:
            raise self._unavailable()

        request = WorkerRequest(request_id=next(self._ids), computation=computation)

        if self.mode is DispatchMode.INLINE:
            response = handle_request(request)
            if response.ok:
                return response.payload
            raise response.to_error()

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        with self._lock:
            # terminate() may have run since the check above
            if self._state is not DispatcherState.READY:
                raise self._unavailable()
            self._pending[request.request_id] = _PendingCall(future=future, loop=loop)

        logger.debug(f"Dispatching request {request.request_id} ({computation.kind.value})")
        self._inbox.put(request)

        try:
            if self.timeout is None:
                return await future
            return await asyncio.wait_for(future, self.timeout)
        except TimeoutError:
            self._forget(request.request_id)
            raise RequestTimeoutError(self.timeout, request.request_id) from None
        except asyncio.CancelledError:
            self._forget(request.request_id)
            raise

    async def calculate_rsi(self, prices: Sequence[float], period: int = 14) -> float | None:
        return await self._submit(RSIComputation(tuple(prices), period))

    async def calculate_macd(self, prices: Sequence[float]) -> MACDResult:
        return await self._submit(MACDComputation(tuple(prices)))

    async def calculate_bollinger_bands(
        self,
        prices: Sequence[float],
        period: int = 20,
    ) -> BollingerBands | None:
        return await self._submit(BollingerComputation(tuple(prices), period))

    async def calculate_sma(self, prices: Sequence[float], period: int) -> float | None:
        return await self._submit(SMAComputation(tuple(prices), period))

    async def calculate_all(
        self,
        prices: Sequence[float],
        current_price: float | None = None,
        sma_value: float | None = None,
        thresholds: SignalThresholds | None = None,
    ) -> IndicatorSummary:
        """All indicators with labels; ``current_price`` defaults to the last price."""
        return await self._submit(AllComputation(
            tuple(prices),
            current_price=current_price,
            sma_value=sma_value,
            thresholds=thresholds,
        ))
