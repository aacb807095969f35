"""Tests for TransferMetrics."""

import threading
from collections.abc import Generator

import pytest

from src.easy.metrics import TransferMetrics


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None]:
    """Reset singleton before and after each test."""
    TransferMetrics.reset()
    yield
    TransferMetrics.reset()


class TestTransferMetricsSingleton:
    """Tests for singleton pattern."""

    def test_get_instance_returns_same_instance(self) -> None:
        """get_instance returns the same instance each time."""
        assert TransferMetrics.get_instance() is TransferMetrics.get_instance()

    def test_reset_clears_singleton(self) -> None:
        """reset clears the singleton, allowing new instance creation."""
        instance1 = TransferMetrics.get_instance()
        instance1.record_perform(200, succeeded=True, duration_ms=1.0)
        TransferMetrics.reset()
        instance2 = TransferMetrics.get_instance()

        assert instance1 is not instance2
        assert instance2.perform_count == 0


class TestRecording:
    """Tests for metric recording."""

    def test_record_success(self) -> None:
        """Successful performs are counted by status."""
        metrics = TransferMetrics.get_instance()

        metrics.record_perform(200, succeeded=True, duration_ms=10.0)
        metrics.record_perform(200, succeeded=True, duration_ms=30.0)

        assert metrics.performs_by_status[200] == 2
        assert metrics.successes_total == 2
        assert metrics.failures_total == 0
        assert metrics.avg_transfer_time_ms == 20.0

    def test_record_transport_failure(self) -> None:
        """Code 0 counts as both a failure and a transport failure."""
        metrics = TransferMetrics.get_instance()

        metrics.record_perform(0, succeeded=False, duration_ms=5.0)
        metrics.record_perform(404, succeeded=False, duration_ms=5.0)

        assert metrics.failures_total == 2
        assert metrics.transport_failures_total == 1

    def test_record_reset(self) -> None:
        """Resets are counted."""
        metrics = TransferMetrics.get_instance()

        metrics.record_reset()

        assert metrics.resets_total == 1

    def test_avg_without_performs(self) -> None:
        """Average is zero before any perform."""
        assert TransferMetrics.get_instance().avg_transfer_time_ms == 0.0

    def test_to_dict(self) -> None:
        """to_dict exposes every metric."""
        metrics = TransferMetrics.get_instance()
        metrics.record_perform(503, succeeded=False, duration_ms=2.5)

        assert metrics.to_dict() == {
            "performs_by_status": {503: 1},
            "successes_total": 0,
            "failures_total": 1,
            "transport_failures_total": 0,
            "resets_total": 0,
            "transfer_time_ms_total": 2.5,
            "perform_count": 1,
        }

    def test_concurrent_recording(self) -> None:
        """Recording from several threads loses no updates."""
        metrics = TransferMetrics.get_instance()

        def record() -> None:
            for _ in range(100):
                metrics.record_perform(200, succeeded=True, duration_ms=1.0)

        threads = [threading.Thread(target=record) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert metrics.perform_count == 800
        assert metrics.performs_by_status[200] == 800
