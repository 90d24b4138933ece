"""
Update Gate for Filtered Position Estimates.

Decides, per filtered estimate, whether consumers should re-render AR
pins. Suppresses redundant work and visual jitter while the tracked
point is effectively stationary, yet bounds staleness with a maximum
interval between accepted updates.

Rules, first match wins:
1. No prior accepted estimate           -> accept
2. Elapsed time > max_interval_s        -> accept
3. Displacement >= min_distance_m       -> accept
4. Otherwise                            -> reject

Elapsed time is measured on the estimates' own timestamps, which are
carried through unchanged from the raw fixes. An elapsed time that cannot
be measured (non-finite timestamp) counts as stale.
"""

from typing import Optional
from dataclasses import dataclass
import logging
import math

from arpin_core.proto.fix import FilteredEstimate
from arpin_core.proto.tracking_update import UpdateDecision
from arpin_core.localization.geo_distance import distance_between
from arpin_core.metrics import MetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class UpdateGateConfig:
    """
    Configuration for the update gate.

    Attributes:
        min_distance_m: Displacement that always triggers an update (m).
            Must exceed residual filter noise but stay below a
            perceptible step.
        max_interval_s: Elapsed time that forces an update (s)
    """

    min_distance_m: float = 0.5
    max_interval_s: float = 2.0

    def __post_init__(self):
        """Validate configuration."""
        if self.min_distance_m < 0:
            raise ValueError(f"Minimum distance cannot be negative: {self.min_distance_m}")

        if self.max_interval_s <= 0:
            raise ValueError(f"Maximum interval must be positive: {self.max_interval_s}")


@dataclass(frozen=True)
class UpdateThresholds:
    """Thresholds in effect for one gate evaluation."""

    distance_m: float
    interval_s: float


@dataclass
class GateState:
    """
    Running gate state for one tracking session.

    Attributes:
        last_accepted: Last accepted estimate (None before the first accept)
        last_accepted_time: Timestamp of the last accept, never decreases
        accepted_count: Accepted evaluations since the last reset
        rejected_count: Rejected evaluations since the last reset
    """

    last_accepted: Optional[FilteredEstimate] = None
    last_accepted_time: Optional[float] = None
    accepted_count: int = 0
    rejected_count: int = 0

    @property
    def total_evaluations(self) -> int:
        return self.accepted_count + self.rejected_count

    def clear(self):
        """Return to the empty state."""
        self.last_accepted = None
        self.last_accepted_time = None
        self.accepted_count = 0
        self.rejected_count = 0


class UpdateGate:
    """
    Distance/time gate for AR pin updates.

    Usage:
        gate = UpdateGate(UpdateGateConfig(min_distance_m=0.5, max_interval_s=2.0))

        estimate = position_filter.filter(fix)
        if gate.should_update(estimate):
            move_pins(estimate)

        print(f"Skipped {gate.efficiency_ratio():.0%} of updates")
    """

    def __init__(
        self,
        config: Optional[UpdateGateConfig] = None,
        state: Optional[GateState] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        """
        Initialize update gate.

        Args:
            config: Gate configuration (uses defaults if None)
            state: Caller-owned gate state (fresh state if None)
            metrics: Session metrics collector (private collector if None)
        """
        self.config = config or UpdateGateConfig()
        self.state = state if state is not None else GateState()
        self.metrics = metrics if metrics is not None else MetricsCollector()

        # Displacement measured by the last evaluation (None if not measured)
        self.last_displacement_m: Optional[float] = None

    def should_update(self, estimate: FilteredEstimate) -> bool:
        """
        Decide whether consumers should act on this estimate.

        Args:
            estimate: Filtered estimate to evaluate

        Returns:
            True if pins should update, False if the update should be skipped
        """
        return self.evaluate(estimate).accepted

    def evaluate(self, estimate: FilteredEstimate) -> UpdateDecision:
        """
        Evaluate an estimate against the gate rules.

        Args:
            estimate: Filtered estimate to evaluate

        Returns:
            UpdateDecision naming the rule that matched

        Side Effects:
            - Records the estimate as last accepted on acceptance
            - Increments the accepted or rejected counter
        """
        self.last_displacement_m = None
        thresholds = self.get_adaptive_thresholds(estimate)

        # Rule 1: first estimate
        if self.state.last_accepted is None:
            return self._accept(estimate, UpdateDecision.ACCEPTED_FIRST)

        # Rule 2: staleness bound
        elapsed = self.time_since_last_update(estimate.timestamp)
        if elapsed is None or not math.isfinite(elapsed) or elapsed > thresholds.interval_s:
            return self._accept(estimate, UpdateDecision.ACCEPTED_STALE)

        # Rule 3: movement
        displacement = distance_between(self.state.last_accepted, estimate)
        self.last_displacement_m = displacement
        self.metrics.record_histogram('gate_displacement_m', displacement)

        if displacement >= thresholds.distance_m:
            return self._accept(estimate, UpdateDecision.ACCEPTED_MOVED)

        # Rule 4: not enough movement
        self.state.rejected_count += 1
        self.metrics.increment('gate_rejected')
        self.metrics.increment_drop('below_min_distance')

        logger.debug(
            "Update skipped: moved %.3fm < %.3fm after %.3fs",
            displacement, thresholds.distance_m, elapsed
        )

        return UpdateDecision.REJECTED

    def _accept(self, estimate: FilteredEstimate, decision: UpdateDecision) -> UpdateDecision:
        """Record an accepted estimate."""
        previous_time = self.state.last_accepted_time

        self.state.last_accepted = estimate
        if not math.isfinite(estimate.timestamp):
            logger.warning("Accepted estimate has no usable timestamp (%s)", estimate.timestamp)
        elif previous_time is None or estimate.timestamp >= previous_time:
            self.state.last_accepted_time = estimate.timestamp
        else:
            logger.warning(
                "Accepted estimate older than last accepted (%.3f < %.3f), keeping newer time",
                estimate.timestamp, previous_time
            )
        self.state.accepted_count += 1

        self.metrics.increment('gate_accepted')
        self.metrics.increment(f'gate_{decision.name.lower()}')

        logger.debug("Update accepted (%s) at t=%.3f", decision.name, estimate.timestamp)

        return decision

    def get_adaptive_thresholds(self, estimate: FilteredEstimate) -> UpdateThresholds:
        """
        Get the thresholds to apply to this estimate.

        Args:
            estimate: Estimate about to be evaluated

        Returns:
            UpdateThresholds (currently the configured static values)
        """
        return UpdateThresholds(
            distance_m=self.config.min_distance_m,
            interval_s=self.config.max_interval_s,
        )

    def efficiency_ratio(self) -> float:
        """
        Fraction of evaluated estimates that were rejected.

        Returns:
            Value in [0, 1]; 0.0 before any evaluation.
            Example: 0.75 means 75% of potential updates were skipped.
        """
        total = self.state.total_evaluations
        if total == 0:
            return 0.0
        return self.state.rejected_count / total

    def accepted_count(self) -> int:
        """Number of accepted evaluations since the last reset."""
        return self.state.accepted_count

    def rejected_count(self) -> int:
        """Number of rejected evaluations since the last reset."""
        return self.state.rejected_count

    def last_accepted(self) -> Optional[FilteredEstimate]:
        """Last estimate that triggered an update."""
        return self.state.last_accepted

    def time_since_last_update(self, now: float) -> Optional[float]:
        """
        Get time elapsed since the last accepted estimate.

        Args:
            now: Current time, on the same clock as the fix timestamps

        Returns:
            Seconds since last accept, or None if nothing accepted yet
        """
        if self.state.last_accepted_time is None:
            return None
        return now - self.state.last_accepted_time

    def get_debug_info(self, now: Optional[float] = None) -> dict:
        """Get gate diagnostics for debug overlays and logs."""
        last = self.state.last_accepted
        since = self.time_since_last_update(now) if now is not None else None

        return {
            'accepted_count': self.state.accepted_count,
            'rejected_count': self.state.rejected_count,
            'efficiency_ratio': round(self.efficiency_ratio(), 2),
            'time_since_last_update_s': since,
            'last_position': (
                f"{last.latitude:.6f}, {last.longitude:.6f}" if last is not None else 'none'
            ),
        }

    def reset(self):
        """Reset gate state and counters (new tracking session)."""
        self.state.clear()
        self.last_displacement_m = None
        self.metrics.increment('gate_resets')
        logger.info("Update gate reset")
