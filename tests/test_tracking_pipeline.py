"""
Integration tests for the TrackingPipeline (filter + gate).

Tests cover:
- End-to-end accept/reject on a short walk
- Cold start and current estimate accessors
- Reset idempotence and jump-triggered recalibration
- Session isolation and concurrent delivery
- TrackingUpdate schema
"""

import threading

import pytest

from arpin_core import (
    TrackingPipeline,
    TrackingPipelineConfig,
    TrackingUpdate,
    UpdateDecision,
    create_default_pipeline,
)
from arpin_core import config as default_config
from arpin_core.proto import create_no_update
from arpin_core.localization import PositionFilterConfig
from arpin_core.domain import UpdateGateConfig
from tests.conftest import make_fix, make_estimate, noisy_stationary_fixes


# =============================================================================
# End-to-End
# =============================================================================


class TestEndToEnd:
    """First fix, ~0.3m step 0.3s later, ~2m step 0.4s after that."""

    def test_short_walk(self, pipeline):
        first = make_fix(0.0, t=0.0, accuracy_m=5.0)
        second = make_fix(0.3, t=0.3, accuracy_m=5.0)
        third = make_fix(2.0, t=0.7, accuracy_m=5.0)

        u1 = pipeline.process(first)
        u2 = pipeline.process(second)
        u3 = pipeline.process(third)

        assert u1.decision == UpdateDecision.ACCEPTED_FIRST
        assert u1.estimate.latitude == first.latitude

        assert u2.decision == UpdateDecision.REJECTED
        assert not u2.has_update
        assert u2.estimate is None

        assert u3.decision == UpdateDecision.ACCEPTED_MOVED
        assert first.latitude < u3.estimate.latitude < third.latitude

        assert pipeline.accepted_count() == 2
        assert pipeline.rejected_count() == 1
        assert pipeline.efficiency_ratio() == pytest.approx(1 / 3)

    def test_short_walk_with_tight_accuracy_floor(self):
        """Trusting 5m accuracy pulls the estimate closer to the new fix."""
        config = TrackingPipelineConfig(
            filter_config=PositionFilterConfig(accuracy_floor_m=5.0),
        )
        pipeline = TrackingPipeline("tight", config)

        first = make_fix(0.0, t=0.0)
        second = make_fix(0.3, t=0.3)
        third = make_fix(2.0, t=0.7)

        pipeline.process(first)
        assert not pipeline.process(second).has_update
        u3 = pipeline.process(third)

        assert u3.has_update
        midpoint = (first.latitude + third.latitude) / 2
        assert midpoint < u3.estimate.latitude < third.latitude

    def test_rejected_estimate_still_current(self, pipeline):
        """current_estimate() tracks the filter regardless of gating."""
        pipeline.process(make_fix(0.0, t=0.0))
        update = pipeline.process(make_fix(0.3, t=0.3))

        assert not update.has_update
        current = pipeline.current_estimate()
        assert current.timestamp == 0.3
        assert current.latitude > make_fix(0.0).latitude

    def test_stationary_noise_mostly_suppressed(self, pipeline):
        """~0.5m noise at 20Hz on a stationary point: few updates get through."""
        fixes = noisy_stationary_fixes(200, noise_deg=5e-6, dt=0.05)

        updates = [pipeline.process(fix) for fix in fixes]

        assert updates[0].decision == UpdateDecision.ACCEPTED_FIRST
        assert pipeline.efficiency_ratio() > 0.8


# =============================================================================
# Reset and Recalibration
# =============================================================================


class TestReset:
    """Tests for pipeline reset and jump recalibration."""

    def test_reset_idempotence(self, pipeline):
        fixes = [make_fix(0.4 * i, t=0.5 * i) for i in range(12)]

        first_run = [pipeline.process(f) for f in fixes]
        pipeline.reset()
        second_run = [pipeline.process(f) for f in fixes]

        assert first_run == second_run
        assert second_run[0].decision == UpdateDecision.ACCEPTED_FIRST
        assert second_run[0].estimate.latitude == fixes[0].latitude

    def test_reset_clears_both_components(self, pipeline):
        pipeline.process(make_fix(0.0, t=0.0))
        pipeline.process(make_fix(0.1, t=0.1))

        pipeline.reset()

        assert pipeline.current_estimate() is None
        assert pipeline.accepted_count() == 0
        assert pipeline.rejected_count() == 0
        assert pipeline.metrics.get_counter('pipeline_resets') == 1

    def test_jump_triggers_recalibration(self):
        config = TrackingPipelineConfig(reset_on_jump_m=100.0)
        pipeline = TrackingPipeline("jumpy", config)

        pipeline.process(make_fix(0.0, t=0.0))
        pipeline.process(make_fix(0.1, t=0.1))
        far = make_fix(1000.0, t=0.2)

        update = pipeline.process(far)

        assert update.decision == UpdateDecision.ACCEPTED_FIRST
        assert update.estimate.latitude == far.latitude
        assert update.estimate.is_cold_start
        assert pipeline.metrics.get_counter('pipeline_jump_resets') == 1

    def test_jump_absorbed_without_recalibration(self, pipeline):
        pipeline.process(make_fix(0.0, t=0.0))
        far = make_fix(1000.0, t=0.2)

        update = pipeline.process(far)

        assert update.decision == UpdateDecision.ACCEPTED_MOVED
        assert update.estimate.latitude < far.latitude

    def test_jump_config_validation(self):
        with pytest.raises(ValueError):
            TrackingPipelineConfig(reset_on_jump_m=0.0)


# =============================================================================
# Sessions and Concurrency
# =============================================================================


class TestSessions:
    """Tests for session isolation and thread safety."""

    def test_sessions_are_independent(self):
        a = TrackingPipeline("a")
        b = TrackingPipeline("b")

        a.process(make_fix(0.0, t=0.0))
        a.process(make_fix(0.1, t=0.1))

        assert b.current_estimate() is None
        assert b.accepted_count() == 0
        assert b.metrics.get_counter('fixes_in') == 0
        assert a.metrics is not b.metrics

    def test_session_id_carried(self, pipeline):
        accepted = pipeline.process(make_fix(0.0, t=0.0))
        rejected = pipeline.process(make_fix(0.0, t=0.1))

        assert accepted.session_id == "test-session"
        assert rejected.session_id == "test-session"

    def test_concurrent_delivery_counts_every_fix(self, pipeline):
        """Fixes from several threads are all evaluated exactly once."""
        n_threads = 4
        per_thread = 50

        def worker(offset):
            for i in range(per_thread):
                pipeline.process(make_fix(0.05 * (i % 3), t=offset + i * 0.001))

        threads = [threading.Thread(target=worker, args=(k,)) for k in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        total = pipeline.accepted_count() + pipeline.rejected_count()
        assert total == n_threads * per_thread
        assert pipeline.metrics.get_counter('fixes_in') == n_threads * per_thread


# =============================================================================
# Defaults and Schema
# =============================================================================


class TestDefaultsAndSchema:
    """Tests for default construction and TrackingUpdate."""

    def test_create_default_pipeline_uses_config(self):
        pipeline = create_default_pipeline("default")

        assert pipeline.session_id == "default"
        assert pipeline.filter.config.process_noise == default_config.FILTER_CONFIG["process_noise"]
        assert pipeline.gate.config.min_distance_m == default_config.GATE_CONFIG["min_distance_m"]
        assert pipeline.gate.config.max_interval_s == default_config.GATE_CONFIG["max_interval_s"]
        assert pipeline.config.reset_on_jump_m is None

    def test_filter_and_gate_share_metrics(self, pipeline):
        assert pipeline.filter.metrics is pipeline.metrics
        assert pipeline.gate.metrics is pipeline.metrics

    def test_statistics(self, pipeline):
        pipeline.process(make_fix(0.0, t=0.0))
        pipeline.process(make_fix(0.1, t=0.1))

        stats = pipeline.get_statistics()

        assert stats['fixes_in'] == 2
        assert stats['accepted'] == 1
        assert stats['rejected'] == 1
        assert stats['efficiency_ratio'] == 0.5
        assert stats['gain_stats']['count'] == 1

    def test_no_update_value(self):
        update = create_no_update("s", displacement_m=0.2)

        assert not update.has_update
        assert update.estimate is None
        assert update.to_dict()['decision'] == 'REJECTED'

    def test_update_requires_matching_estimate(self):
        with pytest.raises(ValueError):
            TrackingUpdate("s", UpdateDecision.ACCEPTED_MOVED, None)
        with pytest.raises(ValueError):
            TrackingUpdate("s", UpdateDecision.REJECTED, make_estimate())

    def test_custom_gate_config(self):
        config = TrackingPipelineConfig(gate_config=UpdateGateConfig(min_distance_m=5.0))
        pipeline = TrackingPipeline("coarse", config)

        pipeline.process(make_fix(0.0, t=0.0))
        update = pipeline.process(make_fix(3.0, t=0.1))

        assert not update.has_update
