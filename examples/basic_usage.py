#!/usr/bin/env python3
"""
Basic usage example of the UWB positioning engine.

This example walks a simulated pedestrian around a rectangular hall and
feeds noisy UWB fixes through a tracking session, without any ranging
hardware.
"""

import sys
import os
import time
import logging
import numpy as np

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from uwb_positioning import Config, LocationData, RawFix, TrackingSession, configure_logging
from uwb_positioning.math.constants import MEASUREMENT_NOISE

logger = logging.getLogger("basic_usage")

def simulate_pedestrian_walk(duration=60, dt=0.1, dropout_probability=0.05):
    """
    Simulate a pedestrian walking laps of a 10 m x 6 m rectangle.

    Args:
        duration: Simulation duration in seconds
        dt: Time step in seconds
        dropout_probability: Chance that a UWB fix is lost

    Yields:
        (t, true_position, raw_fix or None) tuples
    """
    rng = np.random.default_rng()
    speed = 1.3           # m/s
    height = 1.1          # tag worn at hip height
    corners = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 6.0], [0.0, 6.0], [0.0, 0.0]])
    leg_lengths = np.linalg.norm(np.diff(corners, axis=0), axis=1)
    lap_length = leg_lengths.sum()

    noise = np.array(MEASUREMENT_NOISE)

    t = 0.0
    while t < duration:
        distance = (speed * t) % lap_length
        leg = np.searchsorted(np.cumsum(leg_lengths), distance, side='right')
        leg_start = np.concatenate([[0.0], np.cumsum(leg_lengths)])[leg]
        direction = (corners[leg + 1] - corners[leg]) / leg_lengths[leg]
        xy = corners[leg] + direction * (distance - leg_start)
        truth = np.array([xy[0], xy[1], height])

        # Step-induced vertical bounce in the accelerometer, plus sensor noise
        sample = rng.multivariate_normal(np.zeros(6), noise)
        accel = np.array([0.0, 0.0, 0.5 * np.sin(2 * np.pi * 2.0 * t)]) + sample[3:]

        fix = None
        if rng.random() > dropout_probability:
            fix = RawFix(*(truth + sample[:3]), *accel,
                         quality_factor=int(rng.integers(70, 100)),
                         timestamp=time.time() + t)

        yield t, truth, fix

        t += dt

def main():
    """Main example function."""
    config = Config()
    configure_logging(config)

    print("UWB Positioning Engine - Basic Usage Example")
    print("=" * 50)

    last_print_time = -np.inf
    print_interval = 5.0  # Print status every 5 seconds
    errors = []

    def show_estimate(location: LocationData, quality_factor):
        logger.debug("Estimate %s (quality %s)", location, quality_factor)

    session = TrackingSession(listener=show_estimate, config=config)
    session.start()

    print("Starting simulation (rectangular walk, 60 seconds)...")

    for t, truth, fix in simulate_pedestrian_walk(duration=60, dt=config.time_delta):
        # Lost fix: the collaborator simply does not deliver anything
        if fix is None:
            continue

        location = session.on_fix(fix)
        if location is None:
            continue

        errors.append(np.linalg.norm(location.position - truth))

        if t - last_print_time >= print_interval:
            print_status(t, truth, location, session)
            last_print_time = t

    session.stop()

    print("\nSimulation completed!")

    stats = session.get_statistics()
    print("\n=== Final Statistics ===")
    print(f"Estimates: {stats['estimates']}")
    print(f"Rejected fixes: {stats['rejected_fixes']}")
    print(f"Skipped updates: {stats['skipped_updates']}")
    print(f"Mean position error: {np.mean(errors):.3f} m")
    print(f"Final position uncertainty: {stats['position_uncertainty']:.3f} m")

def print_status(t: float, truth: np.ndarray, location: LocationData, session: TrackingSession):
    """Print current system status."""
    state = session.filter.get_current_state()

    print(f"Time: {t:.1f}s")
    print(f"  True:      [{truth[0]:6.2f}, {truth[1]:6.2f}, {truth[2]:6.2f}] m")
    print(f"  Estimated: [{location.x:6.2f}, {location.y:6.2f}, {location.z:6.2f}] m")
    print(f"  Velocity:  [{state.vx:5.2f}, {state.vy:5.2f}, {state.vz:5.2f}] m/s (Speed: {state.speed:4.2f} m/s)")
    print(f"  Uncertainty: {session.filter.get_position_uncertainty():5.3f} m")
    print()

if __name__ == "__main__":
    main()
