"""Rolling success, error and latency statistics for a single agent."""
from __future__ import annotations

import time
from collections import deque
from typing import Deque, List

from .models import HealthMetricsData

MAX_SAMPLES = 100


class HealthMetrics:
    """Counts outcomes and keeps a bounded window of processing times."""

    def __init__(self, max_samples: int = MAX_SAMPLES) -> None:
        self._samples: Deque[float] = deque(maxlen=max_samples)
        self.message_count = 0
        self.error_count = 0
        self.last_processing_time = 0.0
        self.last_error_time = 0.0
        self.last_success_time = 0.0

    def record_success(self, processing_time_ms: float) -> None:
        self.message_count += 1
        self.last_processing_time = processing_time_ms
        self.last_success_time = time.time()
        self._samples.append(processing_time_ms)

    def record_error(self, processing_time_ms: float) -> None:
        self.message_count += 1
        self.error_count += 1
        self.last_processing_time = processing_time_ms
        self.last_error_time = time.time()
        self._samples.append(processing_time_ms)

    @property
    def samples(self) -> List[float]:
        return list(self._samples)

    def get_metrics(self) -> HealthMetricsData:
        """Summarise the counters.

        An agent that has not processed anything yet reports a 100% success
        rate: there is no evidence of failure.
        """
        if self.message_count:
            success_rate = (self.message_count - self.error_count) / self.message_count * 100
        else:
            success_rate = 100.0
        avg = sum(self._samples) / len(self._samples) if self._samples else 0.0
        return HealthMetricsData(
            message_count=self.message_count,
            error_count=self.error_count,
            success_rate=success_rate,
            avg_processing_time=avg,
            last_processing_time=self.last_processing_time,
            last_error_time=self.last_error_time,
            last_success_time=self.last_success_time,
        )

    def reset(self) -> None:
        self._samples.clear()
        self.message_count = 0
        self.error_count = 0
        self.last_processing_time = 0.0
        self.last_error_time = 0.0
        self.last_success_time = 0.0
