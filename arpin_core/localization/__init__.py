"""
Localization Module: Position smoothing and geodesy helpers.

Key classes:
- PositionFilter: Per-axis accuracy-adaptive Kalman filter
- FilterState / AxisState: Caller-inspectable filter state

Helpers:
- haversine_m / distance_between: Great-circle distance in meters
- accuracy_to_measurement_noise: Fix accuracy -> measurement noise R
"""

from .geo_distance import (
    EARTH_RADIUS_M,
    haversine_m,
    distance_between,
)
from .accuracy_noise import (
    clamp_accuracy,
    accuracy_to_measurement_noise,
)
from .position_filter import (
    AxisState,
    FilterState,
    PositionFilter,
    PositionFilterConfig,
    predict_update,
)

__all__ = [
    # Geodesy
    'EARTH_RADIUS_M',
    'haversine_m',
    'distance_between',
    # Measurement noise
    'clamp_accuracy',
    'accuracy_to_measurement_noise',
    # Filter
    'AxisState',
    'FilterState',
    'PositionFilter',
    'PositionFilterConfig',
    'predict_update',
]
