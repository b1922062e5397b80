"""
Tests for the indicator dispatcher.

Async calls are driven with asyncio.run so no event-loop plugin is needed.
Workers that never answer are simulated with an idle handle whose start()
does nothing, leaving requests pending on the inbox.
"""

import asyncio

import pytest

from domain import IndicatorSummary, MACDResult, calculate_rsi, calculate_sma
from ports import (
    ComputationFailedError,
    ErrorCode,
    RequestCancelledError,
    RequestTimeoutError,
    WorkerUnavailableError,
)
from services import DispatchMode, DispatcherState, IndicatorDispatcher

RISING = [float(p) for p in range(1, 31)]


class IdleWorker:
    """A worker handle that never consumes its inbox."""

    def __init__(self, target):
        self.target = target
        self.joined = False

    def start(self):
        pass

    def join(self, timeout=None):
        self.joined = True


def failing_factory(target):
    raise RuntimeError("threads disabled")


async def wait_for_pending(dispatcher, count):
    while dispatcher.pending_count < count:
        await asyncio.sleep(0)


@pytest.fixture
def dispatcher():
    d = IndicatorDispatcher()
    yield d
    d.terminate()


class TestLifecycle:
    """State transitions."""

    def test_worker_starts_ready(self, dispatcher):
        assert dispatcher.state == DispatcherState.READY
        assert dispatcher.is_ready

    def test_inline_is_ready(self):
        with IndicatorDispatcher(mode="inline") as d:
            assert d.mode is DispatchMode.INLINE
            assert d.is_ready

    def test_failed_worker_creation_is_unavailable(self):
        d = IndicatorDispatcher(worker_factory=failing_factory)
        assert d.state == DispatcherState.UNAVAILABLE

        with pytest.raises(WorkerUnavailableError) as exc_info:
            asyncio.run(d.calculate_rsi(RISING))
        assert exc_info.value.code == ErrorCode.WORKER_UNAVAILABLE
        assert "threads disabled" in exc_info.value.message

    def test_terminate_is_idempotent(self, dispatcher):
        dispatcher.terminate()
        dispatcher.terminate()
        assert dispatcher.state == DispatcherState.TERMINATED

    def test_calls_after_terminate_fail(self, dispatcher):
        dispatcher.terminate()
        with pytest.raises(WorkerUnavailableError) as exc_info:
            asyncio.run(dispatcher.calculate_macd(RISING))
        assert exc_info.value.context["state"] == "terminated"

    def test_terminate_unavailable_dispatcher(self):
        d = IndicatorDispatcher(worker_factory=failing_factory)
        d.terminate()
        assert d.state == DispatcherState.TERMINATED

    def test_from_config(self):
        from config import DispatcherConfig

        d = IndicatorDispatcher.from_config(DispatcherConfig(mode="inline", timeout_seconds=2.0))
        assert d.mode is DispatchMode.INLINE
        assert d.timeout == 2.0

    def test_from_config_overrides(self):
        from config import DispatcherConfig

        d = IndicatorDispatcher.from_config(DispatcherConfig(), mode="inline")
        assert d.mode is DispatchMode.INLINE

    @pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
    def test_worker_crash_marks_unavailable(self, dispatcher, monkeypatch):
        def crash(request):
            raise RuntimeError("worker crashed")

        monkeypatch.setattr("services.dispatcher.handle_request", crash)

        with pytest.raises(WorkerUnavailableError) as exc_info:
            asyncio.run(dispatcher.calculate_rsi(RISING))
        assert "stopped unexpectedly" in exc_info.value.message
        assert exc_info.value.context["state"] == "unavailable"
        assert dispatcher.state == DispatcherState.UNAVAILABLE
        assert dispatcher.pending_count == 0

        # Later calls fail fast instead of waiting on a dead thread
        with pytest.raises(WorkerUnavailableError):
            asyncio.run(dispatcher.calculate_macd(RISING))

        dispatcher.terminate()
        assert dispatcher.state == DispatcherState.TERMINATED


class TestCalls:
    """Results match the direct calculations."""

    @pytest.mark.parametrize("mode", ["worker", "inline"])
    def test_each_operation(self, mode):
        async def run(d):
            return (
                await d.calculate_rsi(RISING),
                await d.calculate_macd(RISING),
                await d.calculate_bollinger_bands(RISING),
                await d.calculate_sma(RISING, 20),
                await d.calculate_all(RISING),
            )

        with IndicatorDispatcher(mode=mode) as d:
            rsi, macd, bands, sma, summary = asyncio.run(run(d))

        assert rsi == 100.0
        assert macd.macd == pytest.approx(6.05)
        assert bands.middle == 20.5
        assert sma == 20.5
        assert isinstance(summary, IndicatorSummary)
        assert summary.current_price == 30.0

    def test_insufficient_data_resolves_normally(self, dispatcher):
        assert asyncio.run(dispatcher.calculate_rsi(RISING[:3])) is None
        assert asyncio.run(dispatcher.calculate_macd(RISING[:3])) == MACDResult.insufficient()

    def test_calculate_all_passes_options(self, dispatcher):
        summary = asyncio.run(dispatcher.calculate_all(RISING, current_price=40.0, sma_value=20.0))
        assert summary.current_price == 40.0
        assert summary.sma_comparison.deviation_percent == pytest.approx(100.0)

    def test_computation_failure(self, dispatcher):
        with pytest.raises(ComputationFailedError) as exc_info:
            asyncio.run(dispatcher.calculate_sma(RISING, 0))
        assert exc_info.value.code == ErrorCode.COMPUTATION_FAILED

    def test_inline_computation_failure(self):
        with IndicatorDispatcher(mode="inline") as d:
            with pytest.raises(ComputationFailedError):
                asyncio.run(d.calculate_rsi(RISING, period=-2))

    def test_worker_survives_failure(self, dispatcher):
        with pytest.raises(ComputationFailedError):
            asyncio.run(dispatcher.calculate_sma(RISING, 0))
        assert asyncio.run(dispatcher.calculate_sma(RISING, 10)) == 25.5

    def test_concurrent_calls_are_not_mixed_up(self, dispatcher):
        """Each caller gets the answer to its own request."""
        periods = list(range(1, 21))

        async def run():
            return await asyncio.gather(*(dispatcher.calculate_sma(RISING, p) for p in periods))

        results = asyncio.run(run())

        assert results == [calculate_sma(RISING, p) for p in periods]
        assert dispatcher.pending_count == 0

    def test_concurrent_rsi_calls(self, dispatcher):
        # One loss of size k per series gives a distinct RSI for each k
        series = [[100.0 + i for i in range(14)] + [113.0 - k] for k in range(1, 11)]

        async def run():
            return await asyncio.gather(*(dispatcher.calculate_rsi(s) for s in series))

        results = asyncio.run(run())

        assert results == [calculate_rsi(s) for s in series]
        assert len(set(results)) == len(series)


class TestCancellation:
    """Pending requests on shutdown or timeout."""

    def test_terminate_cancels_pending(self):
        workers = []

        def factory(target):
            workers.append(IdleWorker(target))
            return workers[-1]

        d = IndicatorDispatcher(worker_factory=factory)

        async def run():
            tasks = [asyncio.ensure_future(d.calculate_rsi(RISING)) for _ in range(3)]
            await wait_for_pending(d, 3)
            d.terminate()
            return await asyncio.gather(*tasks, return_exceptions=True)

        results = asyncio.run(run())

        assert all(isinstance(r, RequestCancelledError) for r in results)
        assert all(r.code == ErrorCode.REQUEST_CANCELLED for r in results)
        assert workers[0].joined
        assert d.pending_count == 0

    def test_timeout(self):
        d = IndicatorDispatcher(worker_factory=IdleWorker, timeout=0.05)

        with pytest.raises(RequestTimeoutError) as exc_info:
            asyncio.run(d.calculate_rsi(RISING))

        assert exc_info.value.code == ErrorCode.REQUEST_TIMEOUT
        assert d.pending_count == 0
        d.terminate()

    def test_caller_cancellation_forgets_request(self):
        d = IndicatorDispatcher(worker_factory=IdleWorker)

        async def run():
            task = asyncio.ensure_future(d.calculate_rsi(RISING))
            await wait_for_pending(d, 1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())
        assert d.pending_count == 0
        d.terminate()

    def test_async_context_manager_terminates(self):
        async def run():
            async with IndicatorDispatcher() as d:
                value = await d.calculate_sma(RISING, 5)
            return d, value

        d, value = asyncio.run(run())
        assert value == 28.0
        assert d.state == DispatcherState.TERMINATED
