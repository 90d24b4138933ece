"""
Position Fix Schemas.

Defines the raw fix delivered by the location source and the filtered
estimate produced by the position filter.

A FilteredEstimate is shaped like a fix so the rendering layer can treat
both the same way; accuracy and timestamp are carried through unchanged
from the raw fix that triggered the update.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import math
import numbers


def _is_finite(value) -> bool:
    return isinstance(value, numbers.Real) and math.isfinite(value)


@dataclass(frozen=True)
class RawFix:
    """
    Single reading from the location source.

    Attributes:
        latitude: Latitude in decimal degrees (signed)
        longitude: Longitude in decimal degrees (signed)
        altitude_m: Altitude in meters, None if the device reported none.
            Some devices report 0.0 instead of omitting the value.
        accuracy_m: Horizontal accuracy radius in meters (larger is worse).
            May be None, NaN or non-positive; the filter clamps it.
        timestamp: Time of the fix in seconds (monotonic or epoch)

    Notes:
        - Coordinates are validated; accuracy and altitude never are
    """

    latitude: float
    longitude: float
    altitude_m: Optional[float] = None
    accuracy_m: Optional[float] = None
    timestamp: float = 0.0

    def __post_init__(self):
        """Validate coordinates and store numeric fields as plain floats."""
        if not _is_finite(self.latitude) or not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude must be finite and in [-90, 90]: {self.latitude}")

        if not _is_finite(self.longitude) or not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude must be finite and in [-180, 180]: {self.longitude}")

        # numpy scalars (e.g. np.float32) keep their dtype in arithmetic
        object.__setattr__(self, 'latitude', float(self.latitude))
        object.__setattr__(self, 'longitude', float(self.longitude))
        if isinstance(self.altitude_m, numbers.Real):
            object.__setattr__(self, 'altitude_m', float(self.altitude_m))

    def has_altitude(self, zero_is_unknown: bool = True) -> bool:
        """
        Check if this fix carries a usable altitude.

        Args:
            zero_is_unknown: Treat an altitude of exactly 0.0 as missing

        Returns:
            True if the altitude axis should be updated from this fix
        """
        if self.altitude_m is None or not _is_finite(self.altitude_m):
            return False
        if zero_is_unknown and self.altitude_m == 0.0:
            return False
        return True

    @property
    def position_2d(self) -> Tuple[float, float]:
        """Get (latitude, longitude) in degrees."""
        return (self.latitude, self.longitude)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/debugging."""
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'altitude_m': self.altitude_m,
            'accuracy_m': self.accuracy_m,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class FilteredEstimate:
    """
    Filtered position estimate.

    Attributes:
        latitude: Filtered latitude (degrees)
        longitude: Filtered longitude (degrees)
        altitude_m: Filtered altitude (m), or the raw value if the altitude
            axis has never been initialized
        accuracy_m: Accuracy of the triggering raw fix (unfiltered)
        timestamp: Timestamp of the triggering raw fix (unfiltered)
        gain: Horizontal Kalman gain applied this step (None on cold start)
        is_cold_start: True if this estimate is the raw fix passed through
    """

    latitude: float
    longitude: float
    altitude_m: Optional[float]
    accuracy_m: Optional[float]
    timestamp: float
    gain: Optional[float] = None
    is_cold_start: bool = False

    @classmethod
    def from_raw_fix(cls, fix: RawFix) -> 'FilteredEstimate':
        """Build the cold-start estimate (raw fix unchanged)."""
        return cls(
            latitude=fix.latitude,
            longitude=fix.longitude,
            altitude_m=fix.altitude_m,
            accuracy_m=fix.accuracy_m,
            timestamp=fix.timestamp,
            gain=None,
            is_cold_start=True,
        )

    @property
    def position_2d(self) -> Tuple[float, float]:
        """Get (latitude, longitude) in degrees."""
        return (self.latitude, self.longitude)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/debugging."""
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'altitude_m': self.altitude_m,
            'accuracy_m': self.accuracy_m,
            'timestamp': self.timestamp,
            'gain': self.gain,
            'is_cold_start': self.is_cold_start,
        }
