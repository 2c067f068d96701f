"""
Physical constants and default tuning for UWB pedestrian positioning.
"""

# Dimensions
STATE_SIZE = 9        # [px, py, pz, vx, vy, vz, ax, ay, az]
MEASUREMENT_SIZE = 6  # [px, py, pz, ax, ay, az]
AXES = 3

# State vector layout (first index of each 3-axis block)
POSITION_OFFSET = 0
ACCELERATION_OFFSET = 6

# UWB fixes arrive every 100 ms
TIME_DELTA_S = 0.1

# Highest acceleration change for pedestrians lies between 0.7 and 1.4 m/s².
MAX_PEDESTRIAN_ACCELERATION = 0.8

# Empirically measured UWB position / accelerometer noise covariance
MEASUREMENT_NOISE = [
    [0.005,  0.0023, 0.0018, 0.0,   0.0,   0.0],
    [0.0023, 0.0137, 0.0036, 0.0,   0.0,   0.0],
    [0.0018, 0.0036, 0.029,  0.0,   0.0,   0.0],
    [0.0,    0.0,    0.0,    0.05,  0.001, 0.001],
    [0.0,    0.0,    0.0,    0.001, 0.05,  0.001],
    [0.0,    0.0,    0.0,    0.001, 0.001, 0.2],
]

# Uncorrelated variant, accelerometer nearly trusted
MEASUREMENT_NOISE_DIAGONAL = [0.005, 0.0137, 0.029, 0.00001, 0.00001, 0.00001]

# Initial state uncertainty (P0 = identity)
INITIAL_STATE_VARIANCE = 1.0

# Innovation covariance above this condition number is treated as singular
MAX_CONDITION_NUMBER = 1e12

# Tolerance used when checking covariance symmetry
SYMMETRY_TOLERANCE = 1e-9
