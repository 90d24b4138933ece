"""
Pytest configuration and shared fixtures for the AR pin core tests.

Provides fix builders that place points a known number of meters from a
reference position, plus fresh filter/gate/pipeline instances.
"""

import sys
import math
from pathlib import Path
from typing import List, Optional

import numpy as np
import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from arpin_core.proto import RawFix, FilteredEstimate
from arpin_core.localization import (
    EARTH_RADIUS_M,
    PositionFilter,
    PositionFilterConfig,
)
from arpin_core.domain import (
    UpdateGate,
    UpdateGateConfig,
    TrackingPipeline,
)


# Degrees of latitude per meter along a meridian on the spherical Earth
METERS_PER_DEG_LAT = math.pi * EARTH_RADIUS_M / 180.0

ORIGIN_LAT = 30.0
ORIGIN_LON = 31.0


# =============================================================================
# Helper Functions
# =============================================================================


def lat_offset(meters: float, lat: float = ORIGIN_LAT) -> float:
    """Latitude lying `meters` north of `lat`."""
    return lat + meters / METERS_PER_DEG_LAT


def make_fix(
    north_m: float = 0.0,
    t: float = 0.0,
    accuracy_m: Optional[float] = 5.0,
    altitude_m: Optional[float] = None,
    lat: float = ORIGIN_LAT,
    lon: float = ORIGIN_LON,
) -> RawFix:
    """Build a raw fix `north_m` meters north of (lat, lon)."""
    return RawFix(
        latitude=lat_offset(north_m, lat),
        longitude=lon,
        altitude_m=altitude_m,
        accuracy_m=accuracy_m,
        timestamp=t,
    )


def make_estimate(
    north_m: float = 0.0,
    t: float = 0.0,
    lat: float = ORIGIN_LAT,
    lon: float = ORIGIN_LON,
) -> FilteredEstimate:
    """Build a filtered estimate `north_m` meters north of (lat, lon)."""
    return FilteredEstimate(
        latitude=lat_offset(north_m, lat),
        longitude=lon,
        altitude_m=None,
        accuracy_m=5.0,
        timestamp=t,
    )


def noisy_stationary_fixes(
    n: int,
    noise_deg: float = 1e-5,
    accuracy_m: float = 5.0,
    dt: float = 0.2,
    seed: int = 42,
) -> List[RawFix]:
    """Zero-mean Gaussian noise around the origin, clipped to 3 sigma."""
    rng = np.random.default_rng(seed)
    noise = np.clip(rng.normal(0.0, noise_deg, size=(n, 2)), -3 * noise_deg, 3 * noise_deg)

    return [
        RawFix(
            latitude=ORIGIN_LAT + float(d_lat),
            longitude=ORIGIN_LON + float(d_lon),
            accuracy_m=accuracy_m,
            timestamp=i * dt,
        )
        for i, (d_lat, d_lon) in enumerate(noise)
    ]


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def position_filter() -> PositionFilter:
    """Fresh PositionFilter with default configuration."""
    return PositionFilter(PositionFilterConfig())


@pytest.fixture
def update_gate() -> UpdateGate:
    """Fresh UpdateGate with 0.5m / 2s thresholds."""
    return UpdateGate(UpdateGateConfig(min_distance_m=0.5, max_interval_s=2.0))


@pytest.fixture
def pipeline() -> TrackingPipeline:
    """Fresh TrackingPipeline with default configuration."""
    return TrackingPipeline("test-session")
