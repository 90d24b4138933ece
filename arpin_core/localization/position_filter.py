"""
Position Filter (per-axis scalar Kalman).

Maintains a noise-reduced estimate of a moving point's geographic
position using three independent 1-D recursive estimators: latitude,
longitude and altitude. Each axis runs a random-walk predict/update
cycle whose measurement trust adapts to the fix's reported accuracy.

State per axis: (estimate, error variance)

    P- = P + Q
    K  = P- / (P- + R)
    x  = x + K * (z - x)
    P  = (1 - K) * P-

Smoothness is preferred over responsiveness: there is no cap on
variance growth, so a far jump after a long gap is absorbed gradually.
"""

from typing import Optional, Tuple
from dataclasses import dataclass, field
import logging

from arpin_core.proto.fix import RawFix, FilteredEstimate
from arpin_core.localization.accuracy_noise import (
    accuracy_to_measurement_noise,
    clamp_accuracy,
)
from arpin_core.metrics import MetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class PositionFilterConfig:
    """
    Configuration for the position filter.

    Attributes:
        process_noise: Process noise Q added to each axis per update
        accuracy_floor_m: Reported accuracies below this are clamped (m)
        reference_accuracy_m: Accuracy that maps to measurement noise R = 1 (m)
        initial_variance: Error variance assigned to each axis at cold start
        zero_altitude_is_unknown: Treat altitude == 0.0 as "no altitude"

    The defaults are empirically tuned smoothing/responsiveness trade-offs,
    not physical constants.
    """

    process_noise: float = 1e-3
    accuracy_floor_m: float = 50.0
    reference_accuracy_m: float = 50.0
    initial_variance: float = 1.0
    zero_altitude_is_unknown: bool = True

    def __post_init__(self):
        """Validate configuration."""
        if self.process_noise < 0:
            raise ValueError(f"Process noise cannot be negative: {self.process_noise}")

        if self.accuracy_floor_m <= 0:
            raise ValueError(f"Accuracy floor must be positive: {self.accuracy_floor_m}")

        if self.reference_accuracy_m <= 0:
            raise ValueError(f"Reference accuracy must be positive: {self.reference_accuracy_m}")

        if self.initial_variance < 0:
            raise ValueError(f"Initial variance cannot be negative: {self.initial_variance}")


@dataclass(frozen=True)
class AxisState:
    """Estimate and error variance of one axis."""

    estimate: float
    variance: float


@dataclass
class FilterState:
    """
    Running filter state for one tracking session.

    Attributes:
        latitude: Latitude axis (None until initialized)
        longitude: Longitude axis (None until initialized)
        altitude: Altitude axis (None until a fix with altitude arrives)
        last_estimate: Last FilteredEstimate produced
    """

    latitude: Optional[AxisState] = None
    longitude: Optional[AxisState] = None
    altitude: Optional[AxisState] = None
    last_estimate: Optional[FilteredEstimate] = field(default=None, compare=False)

    @property
    def initialized(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def clear(self):
        """Return to the uninitialized state."""
        self.latitude = None
        self.longitude = None
        self.altitude = None
        self.last_estimate = None


def predict_update(
    axis: AxisState,
    measurement: float,
    measurement_noise: float,
    process_noise: float
) -> Tuple[AxisState, float]:
    """
    Run one predict/update cycle on a single axis.

    Args:
        axis: Current axis state
        measurement: Measured value z
        measurement_noise: Measurement noise R (>= 0)
        process_noise: Process noise Q (>= 0)

    Returns:
        (new axis state, Kalman gain K in [0, 1])
    """
    predicted_variance = axis.variance + process_noise

    denominator = predicted_variance + measurement_noise
    if denominator <= 0.0:
        # Q = R = P = 0: nothing to blend, keep the prior
        return axis, 0.0

    gain = predicted_variance / denominator
    estimate = axis.estimate + gain * (measurement - axis.estimate)
    variance = (1.0 - gain) * predicted_variance

    return AxisState(estimate=estimate, variance=variance), gain


class PositionFilter:
    """
    Accuracy-adaptive per-axis Kalman filter for geographic fixes.

    Usage:
        position_filter = PositionFilter(config)

        for fix in location_source:
            estimate = position_filter.filter(fix)
            place_pin(estimate.latitude, estimate.longitude)

        # New session or large external jump
        position_filter.reset()

    Features:
    - Cold start returns the first fix unchanged
    - Worse reported accuracy moves the estimate less
    - Altitude axis is skipped for fixes without altitude
    - State can be supplied by the caller for inspection in tests
    """

    def __init__(
        self,
        config: Optional[PositionFilterConfig] = None,
        state: Optional[FilterState] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        """
        Initialize position filter.

        Args:
            config: Filter configuration (uses defaults if None)
            state: Caller-owned filter state (fresh state if None)
            metrics: Session metrics collector (private collector if None)
        """
        self.config = config or PositionFilterConfig()
        self.state = state if state is not None else FilterState()
        self.metrics = metrics if metrics is not None else MetricsCollector()

    def is_initialized(self) -> bool:
        """Check if filter has been initialized."""
        return self.state.initialized

    def filter(self, fix: RawFix) -> FilteredEstimate:
        """
        Filter a raw fix.

        Args:
            fix: Raw fix from the location source

        Returns:
            FilteredEstimate with smoothed latitude/longitude/altitude and
            the fix's own accuracy and timestamp

        Notes:
            - If not initialized, initializes from the fix and returns it as-is
            - Altitude axis only updates when the fix carries an altitude
        """
        if not self.is_initialized():
            return self._initialize_from_fix(fix)

        cfg = self.config

        # Optimistic, missing or NaN accuracy
        if clamp_accuracy(fix.accuracy_m, cfg.accuracy_floor_m) != fix.accuracy_m:
            self.metrics.increment('accuracy_clamped')

        noise = accuracy_to_measurement_noise(
            fix.accuracy_m, cfg.accuracy_floor_m, cfg.reference_accuracy_m
        )

        self.state.latitude, gain = predict_update(
            self.state.latitude, fix.latitude, noise, cfg.process_noise
        )
        self.state.longitude, _ = predict_update(
            self.state.longitude, fix.longitude, noise, cfg.process_noise
        )

        if fix.has_altitude(cfg.zero_altitude_is_unknown):
            if self.state.altitude is None:
                self.state.altitude = AxisState(fix.altitude_m, cfg.initial_variance)
            else:
                self.state.altitude, _ = predict_update(
                    self.state.altitude, fix.altitude_m, noise, cfg.process_noise
                )
        else:
            self.metrics.increment('altitude_skipped')

        altitude = self.state.altitude.estimate if self.state.altitude is not None else fix.altitude_m

        estimate = FilteredEstimate(
            latitude=self.state.latitude.estimate,
            longitude=self.state.longitude.estimate,
            altitude_m=altitude,
            accuracy_m=fix.accuracy_m,
            timestamp=fix.timestamp,
            gain=gain,
        )
        self.state.last_estimate = estimate

        self.metrics.increment('filter_updates')
        self.metrics.record_histogram('filter_gain', gain)

        logger.debug(
            "Filtered fix t=%.3f gain=%.4f R=%.3f -> (%.7f, %.7f)",
            fix.timestamp, gain, noise, estimate.latitude, estimate.longitude
        )

        return estimate

    def _initialize_from_fix(self, fix: RawFix) -> FilteredEstimate:
        """Initialize every axis from the first fix."""
        variance = self.config.initial_variance

        self.state.latitude = AxisState(fix.latitude, variance)
        self.state.longitude = AxisState(fix.longitude, variance)
        if fix.has_altitude(self.config.zero_altitude_is_unknown):
            self.state.altitude = AxisState(fix.altitude_m, variance)
        else:
            self.state.altitude = None

        estimate = FilteredEstimate.from_raw_fix(fix)
        self.state.last_estimate = estimate

        self.metrics.increment('filter_initialized')
        logger.info(
            "Position filter initialized at (%.7f, %.7f), accuracy=%s",
            fix.latitude, fix.longitude, fix.accuracy_m
        )

        return estimate

    def current_estimate(self) -> Optional[FilteredEstimate]:
        """
        Get the last computed estimate, regardless of gating.

        Returns:
            Last FilteredEstimate, or None if not initialized
        """
        if not self.is_initialized():
            return None
        return self.state.last_estimate

    def get_variances(self) -> Optional[Tuple[float, float, Optional[float]]]:
        """
        Get current error variances (latitude, longitude, altitude).

        Returns:
            Variances tuple (altitude None if untracked), or None if not initialized
        """
        if not self.is_initialized():
            return None

        altitude = self.state.altitude.variance if self.state.altitude is not None else None
        return (self.state.latitude.variance, self.state.longitude.variance, altitude)

    def reset(self):
        """Reset filter to uninitialized state."""
        self.state.clear()
        self.metrics.increment('filter_resets')
        logger.info("Position filter reset")
