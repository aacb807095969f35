"""Metrics collection for transfer handles."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

from src.easy.constants import RESPONSE_CODE_NONE


# Module-level singleton state
_metrics_instance: "TransferMetrics | None" = None
_metrics_lock: Lock = Lock()


@dataclass
class TransferMetrics:
    """Thread-safe metrics for performed transfers.

    Handles are not shared between threads, but the metrics are.
    Use get_instance() for singleton access.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    performs_by_status: Counter[int] = field(default_factory=Counter)
    successes_total: int = 0
    failures_total: int = 0
    transport_failures_total: int = 0
    resets_total: int = 0
    transfer_time_ms_total: float = 0.0
    perform_count: int = 0

    @classmethod
    def get_instance(cls) -> "TransferMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared TransferMetrics instance.
        """
        global _metrics_instance  # noqa: PLW0603
        if _metrics_instance is None:
            with _metrics_lock:
                if _metrics_instance is None:
                    _metrics_instance = cls()
        return _metrics_instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        global _metrics_instance  # noqa: PLW0603
        with _metrics_lock:
            _metrics_instance = None

    def record_perform(
        self,
        status_code: int,
        succeeded: bool,
        duration_ms: float,
    ) -> None:
        """Record a completed perform.

        Args:
            status_code: Response code, 0 for transport failures.
            succeeded: Whether the code classified as success.
            duration_ms: Transfer time in milliseconds.
        """
        with self._lock:
            self.performs_by_status[status_code] += 1
            self.perform_count += 1
            self.transfer_time_ms_total += duration_ms
            if succeeded:
                self.successes_total += 1
            else:
                self.failures_total += 1
                if status_code == RESPONSE_CODE_NONE:
                    self.transport_failures_total += 1

    def record_reset(self) -> None:
        """Record a handle reset."""
        with self._lock:
            self.resets_total += 1

    @property
    def avg_transfer_time_ms(self) -> float:
        """Calculate average transfer time.

        Returns:
            Average duration in milliseconds.
        """
        with self._lock:
            if self.perform_count == 0:
                return 0.0
            return self.transfer_time_ms_total / self.perform_count

    def to_dict(self) -> dict[str, int | float | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "performs_by_status": dict(self.performs_by_status),
                "successes_total": self.successes_total,
                "failures_total": self.failures_total,
                "transport_failures_total": self.transport_failures_total,
                "resets_total": self.resets_total,
                "transfer_time_ms_total": self.transfer_time_ms_total,
                "perform_count": self.perform_count,
            }
