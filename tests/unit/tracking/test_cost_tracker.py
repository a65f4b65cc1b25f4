# tests/unit/tracking/test_cost_tracker.py — v1
"""Tests for tracking/cost_tracker.py."""

from __future__ import annotations

import logging
import threading

import pytest

from autopost.tracking.cost_tracker import (
    RECOMMEND_IMPROVE,
    RECOMMEND_OK,
    CostTracker,
    compute_hit_rate,
)


class TestComputeHitRate:
    def test_zero_requests(self):
        assert compute_hit_rate(0, 0) == 0.0

    def test_rounded_to_one_decimal(self):
        assert compute_hit_rate(1, 3) == 33.3

    def test_all_hits(self):
        assert compute_hit_rate(5, 5) == 100.0


class TestCostTracker:
    def test_initial_snapshot(self, tracker):
        stats = tracker.snapshot()
        assert stats.total_requests == 0
        assert stats.hit_rate == 0.0
        assert stats.is_optimal is False
        assert stats.recommendation == RECOMMEND_IMPROVE

    def test_record_hit(self, tracker):
        tracker.record_hit()
        m = tracker.metrics()
        assert m.total_requests == 1
        assert m.cache_hits == 1
        assert m.ai_calls_saved == 1
        assert m.cache_misses == 0
        assert m.estimated_cost_saved == pytest.approx(0.01)

    def test_record_miss(self, tracker):
        tracker.record_miss()
        m = tracker.metrics()
        assert m.total_requests == 1
        assert m.cache_misses == 1
        assert m.cache_hits == 0
        assert m.ai_calls_saved == 0
        assert m.estimated_cost_saved == 0.0

    def test_one_hit_one_miss(self, tracker):
        tracker.record_miss()
        tracker.record_hit()
        stats = tracker.snapshot()
        assert stats.total_requests == 2
        assert stats.cache_hits == 1
        assert stats.cache_misses == 1
        assert stats.hit_rate == 50.0

    def test_optimal_at_threshold(self, tracker):
        for _ in range(9):
            tracker.record_hit()
        tracker.record_miss()
        stats = tracker.snapshot()
        assert stats.hit_rate == 90.0
        assert stats.is_optimal is True
        assert stats.recommendation == RECOMMEND_OK

    def test_just_below_threshold_rounds_up_but_is_not_optimal(self, tracker):
        # 2249 / 2500 = 89.96%
        for _ in range(2249):
            tracker.record_hit()
        for _ in range(251):
            tracker.record_miss()
        stats = tracker.snapshot()
        assert stats.hit_rate == 90.0
        assert stats.is_optimal is False
        assert stats.recommendation == RECOMMEND_IMPROVE

    def test_custom_cost_per_call(self):
        t = CostTracker(cost_per_call=0.25, logging_enabled=False)
        t.record_hit()
        t.record_hit()
        assert t.metrics().estimated_cost_saved == pytest.approx(0.5)

    def test_metrics_is_a_copy(self, tracker):
        m = tracker.metrics()
        m.cache_hits = 99
        assert tracker.metrics().cache_hits == 0

    def test_invalid_log_interval(self):
        with pytest.raises(ValueError, match="log_interval"):
            CostTracker(log_interval=0)

    def test_no_lost_updates_across_threads(self):
        t = CostTracker(logging_enabled=False)

        def worker():
            for _ in range(1000):
                t.record_hit()
                t.record_miss()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for th in threads:
            th.start()
        for th in threads:
            th.join()
        m = t.metrics()
        assert m.total_requests == 16_000
        assert m.cache_hits == m.cache_misses == 8_000


class TestPeriodicLog:
    def test_logs_every_interval(self, caplog):
        t = CostTracker(log_interval=2)
        with caplog.at_level(logging.INFO, logger="autopost.tracking.cost_tracker"):
            t.record_hit()
            t.record_miss()
            t.record_hit()
        records = [r for r in caplog.records if r.getMessage() == "Cost optimization stats"]
        assert len(records) == 1
        assert records[0].data["requests"] == 2
        assert records[0].data["hit_rate"] == "50.0%"

    def test_disabled_logging_is_silent(self, caplog):
        t = CostTracker(log_interval=1, logging_enabled=False)
        with caplog.at_level(logging.INFO, logger="autopost.tracking.cost_tracker"):
            t.record_hit()
        assert not caplog.records
