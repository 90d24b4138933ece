#!/usr/bin/env python3
"""
Replay a synthetic track through the tracking pipeline.

Generates a noisy stationary phase followed by a walking phase, feeds
every fix through a TrackingPipeline and reports how many updates the
gate let through per phase and how far the filtered track strays from
the true path.

Usage:
    python scripts/replay_track.py --still-s 30 --walk-s 30 --noise-m 1.5
"""

import os
import sys
import logging
import argparse
from typing import List, Tuple

import numpy as np

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from arpin_core import RawFix, create_default_pipeline
from arpin_core.config import LOGGING_CONFIG
from arpin_core.localization import EARTH_RADIUS_M, haversine_m

logger = logging.getLogger("replay_track")

METERS_PER_DEG_LAT = np.pi * EARTH_RADIUS_M / 180.0


def generate_track(
    origin: Tuple[float, float],
    still_s: float,
    walk_s: float,
    rate_hz: float,
    noise_m: float,
    accuracy_m: float,
    walk_speed_m_s: float,
    seed: int
) -> List[Tuple[str, Tuple[float, float], RawFix]]:
    """
    Build (phase, true position, raw fix) samples.

    The point stands still at origin, then walks north at walk_speed_m_s.
    """
    rng = np.random.default_rng(seed)
    lat0, lon0 = origin
    meters_per_deg_lon = METERS_PER_DEG_LAT * np.cos(np.radians(lat0))

    n_samples = int((still_s + walk_s) * rate_hz)
    times = np.arange(n_samples) / rate_hz
    north_m = np.where(times < still_s, 0.0, (times - still_s) * walk_speed_m_s)
    noise = rng.normal(0.0, noise_m, size=(n_samples, 2))

    samples = []
    for t, n_true, (dn, de) in zip(times, north_m, noise):
        true_lat = lat0 + n_true / METERS_PER_DEG_LAT
        fix = RawFix(
            latitude=float(true_lat + dn / METERS_PER_DEG_LAT),
            longitude=float(lon0 + de / meters_per_deg_lon),
            altitude_m=None,
            accuracy_m=accuracy_m,
            timestamp=float(t),
        )
        phase = "still" if t < still_s else "walk"
        samples.append((phase, (float(true_lat), lon0), fix))

    return samples


def replay(samples, session_id: str = "replay") -> dict:
    """Feed samples through a default pipeline and collect per-phase stats."""
    pipeline = create_default_pipeline(session_id)
    phases = {}

    for phase, (true_lat, true_lon), fix in samples:
        update = pipeline.process(fix)
        estimate = pipeline.current_estimate()

        stats = phases.setdefault(phase, {'fixes': 0, 'accepted': 0, 'raw_err': [], 'filt_err': []})
        stats['fixes'] += 1
        stats['accepted'] += int(update.has_update)
        stats['raw_err'].append(haversine_m(true_lat, true_lon, fix.latitude, fix.longitude))
        stats['filt_err'].append(haversine_m(true_lat, true_lon, estimate.latitude, estimate.longitude))

    return {'pipeline': pipeline, 'phases': phases}


def print_report(result: dict):
    """Print per-phase gate and error statistics."""
    pipeline = result['pipeline']

    print("\n" + "=" * 70)
    print("  TRACK REPLAY")
    print("=" * 70)
    for phase, stats in result['phases'].items():
        raw_rms = float(np.sqrt(np.mean(np.square(stats['raw_err']))))
        filt_rms = float(np.sqrt(np.mean(np.square(stats['filt_err']))))
        print(f"  {phase:6s}: fixes={stats['fixes']:5d}  accepted={stats['accepted']:5d}  "
              f"raw_rms={raw_rms:7.2f}m  filtered_rms={filt_rms:7.2f}m")

    print(f"\n  Overall efficiency ratio: {pipeline.efficiency_ratio():.2f}")
    print(pipeline.metrics.format_summary())


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Replay a synthetic track through the AR pin pipeline')
    parser.add_argument('--lat', type=float, default=30.0, help='Origin latitude (deg)')
    parser.add_argument('--lon', type=float, default=31.0, help='Origin longitude (deg)')
    parser.add_argument('--still-s', type=float, default=30.0, help='Stationary phase duration (s)')
    parser.add_argument('--walk-s', type=float, default=30.0, help='Walking phase duration (s)')
    parser.add_argument('--rate-hz', type=float, default=5.0, help='Fix rate (Hz)')
    parser.add_argument('--noise-m', type=float, default=1.5, help='Horizontal noise std (m)')
    parser.add_argument('--accuracy-m', type=float, default=5.0, help='Reported accuracy (m)')
    parser.add_argument('--speed', type=float, default=1.4, help='Walking speed (m/s)')
    parser.add_argument('--seed', type=int, default=7, help='Random seed')
    parser.add_argument('--debug', '-d', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, LOGGING_CONFIG["level"]),
        format=LOGGING_CONFIG["format"]
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    samples = generate_track(
        origin=(args.lat, args.lon),
        still_s=args.still_s,
        walk_s=args.walk_s,
        rate_hz=args.rate_hz,
        noise_m=args.noise_m,
        accuracy_m=args.accuracy_m,
        walk_speed_m_s=args.speed,
        seed=args.seed,
    )
    logger.info("Generated %d fixes", len(samples))

    print_report(replay(samples))


if __name__ == "__main__":
    main()
