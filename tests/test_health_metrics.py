"""Tests for rolling agent health metrics."""
from __future__ import annotations

import pytest

from agentrouter.core.health import HealthMetrics


def test_empty_metrics_report_full_success() -> None:
    data = HealthMetrics().get_metrics()

    assert data.message_count == 0
    assert data.success_rate == 100.0
    assert data.avg_processing_time == 0.0


def test_success_rate_counts_errors() -> None:
    metrics = HealthMetrics()
    for elapsed in (10.0, 20.0, 30.0):
        metrics.record_success(elapsed)
    metrics.record_error(40.0)

    data = metrics.get_metrics()
    assert data.message_count == 4
    assert data.error_count == 1
    assert data.success_rate == pytest.approx(75.0)
    assert data.avg_processing_time == pytest.approx(25.0)
    assert data.last_processing_time == 40.0
    assert data.last_error_time >= data.last_success_time > 0


def test_only_the_latest_hundred_samples_are_averaged() -> None:
    metrics = HealthMetrics()
    for elapsed in range(150):
        metrics.record_success(float(elapsed))

    data = metrics.get_metrics()
    assert len(metrics.samples) == 100
    assert metrics.samples[0] == 50.0
    assert data.message_count == 150
    assert data.avg_processing_time == pytest.approx(99.5)


def test_reset_clears_everything() -> None:
    metrics = HealthMetrics()
    metrics.record_error(5.0)
    metrics.reset()

    data = metrics.get_metrics()
    assert data.message_count == 0
    assert data.error_count == 0
    assert metrics.samples == []
