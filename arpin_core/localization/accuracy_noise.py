"""
Accuracy-based measurement noise.

Converts the horizontal accuracy radius reported with a fix into the
measurement noise R used by the per-axis Kalman update.

R = (max(accuracy, floor) / reference) ** 2

Larger accuracy values mean a worse fix and therefore a larger R. The
floor keeps optimistic accuracy claims from producing near-infinite
trust in a single reading.
"""

import math
from typing import Optional


def clamp_accuracy(accuracy_m: Optional[float], floor_m: float) -> float:
    """
    Clamp a reported accuracy to the configured floor.

    Args:
        accuracy_m: Reported accuracy (m); None or NaN means unknown
        floor_m: Minimum accuracy value used for noise modelling (m)

    Returns:
        Accuracy in meters, never below floor_m
    """
    if accuracy_m is None or math.isnan(accuracy_m):
        return floor_m
    return max(accuracy_m, floor_m)


def accuracy_to_measurement_noise(
    accuracy_m: Optional[float],
    floor_m: float,
    reference_m: float
) -> float:
    """
    Convert fix accuracy to measurement noise variance R.

    Args:
        accuracy_m: Reported accuracy (m)
        floor_m: Accuracy floor (m)
        reference_m: Accuracy that maps to R = 1

    Returns:
        Measurement noise R (> 0 for positive floor and reference)

    Reference values (floor = reference = 50 m):
    - accuracy 5 m   -> R = 1.0 (clamped to floor)
    - accuracy 100 m -> R = 4.0
    - accuracy 200 m -> R = 16.0
    """
    clamped = clamp_accuracy(accuracy_m, floor_m)
    return (clamped / reference_m) ** 2
