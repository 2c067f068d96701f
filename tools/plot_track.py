#!/usr/bin/env python3
"""
Plot raw UWB fixes against the filtered track for a simulated walk.

Usage: plot_track.py [config.json]
"""
import sys
import os
import numpy as np
import matplotlib.pyplot as plt

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from uwb_positioning import Config, LocationData, RawFix, TrackingSession

config = Config(sys.argv[1] if len(sys.argv) > 1 else None)
rng = np.random.default_rng(0)

# ------------------------------------------
# Simulate a figure-eight walk
# ------------------------------------------
dt = config.time_delta
t = np.arange(0.0, 40.0, dt)
omega = 2 * np.pi / 20.0
truth = np.column_stack([
    4.0 * np.sin(omega * t),
    2.0 * np.sin(2 * omega * t),
    np.full_like(t, 1.1)
])
accel = np.column_stack([
    -4.0 * omega**2 * np.sin(omega * t),
    -8.0 * omega**2 * np.sin(2 * omega * t),
    np.zeros_like(t)
])

session = TrackingSession(config=config)
session.start(LocationData(*truth[0]))
R = session.filter.R

raw = []
filtered = []
for position, acceleration in zip(truth[1:], accel[1:]):
    noise = rng.multivariate_normal(np.zeros(6), R)
    fix = RawFix(*(position + noise[:3]), *(acceleration + noise[3:]))
    location = session.on_fix(fix)

    raw.append(fix.position)
    filtered.append(location.position if location is not None else [np.nan] * 3)

raw = np.array(raw)
filtered = np.array(filtered)

err_raw = np.linalg.norm(raw - truth[1:], axis=1)
err_filtered = np.linalg.norm(filtered - truth[1:], axis=1)
print(f"RMS error raw: {np.sqrt(np.nanmean(err_raw**2)):.3f} m, "
      f"filtered: {np.sqrt(np.nanmean(err_filtered**2)):.3f} m")

# ------------------------------------------
# Plot
# ------------------------------------------
fig, (ax_xy, ax_err) = plt.subplots(1, 2, figsize=(14, 6))

ax_xy.plot(truth[:, 0], truth[:, 1], 'k--', label="Ground truth", linewidth=1)
ax_xy.scatter(raw[:, 0], raw[:, 1], s=8, c='red', label="UWB fix", alpha=0.5)
ax_xy.plot(filtered[:, 0], filtered[:, 1], 'b-', label="Kalman estimate", linewidth=2)
ax_xy.set_xlabel("X (m)")
ax_xy.set_ylabel("Y (m)")
ax_xy.set_title("Pedestrian Track (UWB vs Kalman)")
ax_xy.grid(True)
ax_xy.axis('equal')
ax_xy.legend()

ax_err.plot(t[1:], err_raw, 'r-', label="UWB fix", alpha=0.6)
ax_err.plot(t[1:], err_filtered, 'b-', label="Kalman estimate")
ax_err.set_xlabel("Time (s)")
ax_err.set_ylabel("Position error (m)")
ax_err.grid(True)
ax_err.legend()

plt.tight_layout()
plt.show()


#Sample run command: python3 plot_track.py config.json
