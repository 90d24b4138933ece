"""
Tracking Pipeline.

Composes the position filter and the update gate into the single entry
point used by the rendering layer:

    raw fix -> PositionFilter -> UpdateGate -> TrackingUpdate

Usage:
    pipeline = create_default_pipeline("tour-1")

    for fix in location_source:
        update = pipeline.process(fix)
        if update.has_update:
            move_pins(update.session_id, update.estimate)

    print(f"Efficiency: {pipeline.efficiency_ratio():.0%}")
"""

from typing import Optional
from dataclasses import dataclass, field
import logging
import threading

from arpin_core import config as default_config
from arpin_core.localization.position_filter import PositionFilter, PositionFilterConfig
from arpin_core.localization.geo_distance import distance_between
from arpin_core.domain.update_gate import UpdateGate, UpdateGateConfig
from arpin_core.proto.fix import RawFix, FilteredEstimate
from arpin_core.proto.tracking_update import TrackingUpdate, create_no_update
from arpin_core.metrics import MetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class TrackingPipelineConfig:
    """
    Configuration for the tracking pipeline.

    Attributes:
        filter_config: PositionFilter configuration
        gate_config: UpdateGate configuration
        reset_on_jump_m: If set, a raw fix farther than this from the
            current estimate resets filter and gate before processing
    """

    filter_config: PositionFilterConfig = field(default_factory=PositionFilterConfig)
    gate_config: UpdateGateConfig = field(default_factory=UpdateGateConfig)
    reset_on_jump_m: Optional[float] = None

    def __post_init__(self):
        """Validate configuration."""
        if self.reset_on_jump_m is not None and self.reset_on_jump_m <= 0:
            raise ValueError(f"Jump reset distance must be positive: {self.reset_on_jump_m}")


class TrackingPipeline:
    """
    Filter + gate for one tracking session.

    Each session owns its own filter, gate and metrics collector. A lock
    serializes process() and reset(), so fixes may be delivered on one
    thread while another thread requests recalibration.
    """

    def __init__(
        self,
        session_id: str,
        config: Optional[TrackingPipelineConfig] = None
    ):
        """
        Initialize tracking pipeline.

        Args:
            session_id: Opaque identifier handed back with every update
            config: Pipeline configuration (uses defaults if None)
        """
        self.session_id = session_id
        self.config = config or TrackingPipelineConfig()
        self.metrics = MetricsCollector()

        self.filter = PositionFilter(self.config.filter_config, metrics=self.metrics)
        self.gate = UpdateGate(self.config.gate_config, metrics=self.metrics)

        self._lock = threading.Lock()

    def process(self, fix: RawFix) -> TrackingUpdate:
        """
        Process one raw fix.

        Args:
            fix: Raw fix from the location source

        Returns:
            TrackingUpdate carrying the accepted estimate, or the explicit
            no-update value when the gate rejects it
        """
        with self._lock:
            self.metrics.increment('fixes_in')

            if self._is_jump(fix):
                logger.info(
                    "Session %s: raw fix jumped beyond %.1fm, recalibrating",
                    self.session_id, self.config.reset_on_jump_m
                )
                self.metrics.increment('pipeline_jump_resets')
                self._reset_components()

            estimate = self.filter.filter(fix)
            decision = self.gate.evaluate(estimate)

            if not decision.accepted:
                return create_no_update(self.session_id, self.gate.last_displacement_m)

            return TrackingUpdate(
                session_id=self.session_id,
                decision=decision,
                estimate=estimate,
                displacement_m=self.gate.last_displacement_m,
            )

    def _is_jump(self, fix: RawFix) -> bool:
        """Check if a raw fix is too far from the current estimate to blend."""
        if self.config.reset_on_jump_m is None:
            return False

        current = self.filter.current_estimate()
        if current is None:
            return False

        return distance_between(current, fix) > self.config.reset_on_jump_m

    def current_estimate(self) -> Optional[FilteredEstimate]:
        """Last filtered estimate, regardless of gating."""
        return self.filter.current_estimate()

    def efficiency_ratio(self) -> float:
        """Fraction of estimates rejected by the gate."""
        return self.gate.efficiency_ratio()

    def accepted_count(self) -> int:
        """Accepted updates since the last reset."""
        return self.gate.accepted_count()

    def rejected_count(self) -> int:
        """Rejected updates since the last reset."""
        return self.gate.rejected_count()

    def reset(self):
        """Reset filter and gate together (new session or recalibration)."""
        with self._lock:
            self._reset_components()

    def _reset_components(self):
        self.filter.reset()
        self.gate.reset()
        self.metrics.increment('pipeline_resets')

    def get_statistics(self) -> dict:
        """Get pipeline statistics."""
        return {
            'session_id': self.session_id,
            'fixes_in': self.metrics.get_counter('fixes_in'),
            'accepted': self.gate.accepted_count(),
            'rejected': self.gate.rejected_count(),
            'efficiency_ratio': self.gate.efficiency_ratio(),
            'resets': self.metrics.get_counter('pipeline_resets'),
            'jump_resets': self.metrics.get_counter('pipeline_jump_resets'),
            'accuracy_clamped': self.metrics.get_counter('accuracy_clamped'),
            'gain_stats': self.metrics.get_histogram_stats('filter_gain'),
        }


def create_default_pipeline(session_id: str) -> TrackingPipeline:
    """
    Create tracking pipeline with the default configuration.

    Args:
        session_id: Tracking session ID

    Returns:
        Configured TrackingPipeline
    """
    config = TrackingPipelineConfig(
        filter_config=PositionFilterConfig(**default_config.FILTER_CONFIG),
        gate_config=UpdateGateConfig(**default_config.GATE_CONFIG),
        reset_on_jump_m=default_config.PIPELINE_CONFIG["reset_on_jump_m"],
    )

    return TrackingPipeline(session_id, config)
