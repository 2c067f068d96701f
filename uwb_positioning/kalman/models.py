"""
Motion and measurement models for the linear Kalman filter.
"""

import numpy as np
from typing import Optional, Tuple

from .state import LocationData
from ..errors import ConfigurationError
from ..math.constants import *
from ..math.utils import is_finite, is_symmetric

# Component class of each state index: 0 = position, 1 = velocity, 2 = acceleration
_STATE_CLASS = np.repeat(np.arange(3), AXES)

PROCESS_NOISE_MODELS = ('complete', 'simple')
MEASUREMENT_NOISE_MODELS = ('complete', 'diagonal')


def default_acceleration_variance(time_delta: float,
                                  max_acceleration: float = MAX_PEDESTRIAN_ACCELERATION) -> float:
    """Variance of half the largest pedestrian acceleration change per time step."""
    return (max_acceleration * time_delta / 2) ** 2


def transition_matrix(dt: float) -> np.ndarray:
    """
    Constant acceleration state transition over one time step.

    Each axis evolves independently:
        p' = p + v*dt + 0.5*a*dt²
        v' = v + a*dt
        a' = a
    """
    block = np.array([
        [1.0, dt, 0.5 * dt**2],
        [0.0, 1.0, dt],
        [0.0, 0.0, 1.0]
    ])
    # Kronecker with I3 keeps axes uncoupled under the [p, v, a] block ordering
    return np.kron(block, np.eye(AXES))


def process_noise_template(dt: float, noise_model: str = 'complete') -> np.ndarray:
    """
    Unscaled process noise for the discretized constant acceleration model.

    Args:
        dt: Time step in seconds
        noise_model: 'complete' populates every entry from the coupling of the
            two state components, 'simple' only the acceleration block

    Returns:
        9x9 template, to be multiplied by the acceleration variance
    """
    if noise_model == 'complete':
        # Coupling between [position, velocity, acceleration] component classes
        coupling = np.array([
            [0.25 * dt**4, 0.5 * dt**3, 0.5 * dt**2],
            [0.5 * dt**3,  dt**2,       dt],
            [0.5 * dt**2,  dt,          1.0]
        ])
        return coupling[np.ix_(_STATE_CLASS, _STATE_CLASS)]

    if noise_model == 'simple':
        template = np.zeros((STATE_SIZE, STATE_SIZE))
        acc = slice(ACCELERATION_OFFSET, ACCELERATION_OFFSET + AXES)
        template[acc, acc] = 1.0
        return template

    raise ConfigurationError(f"Unknown process noise model: {noise_model}")


class MotionModel:
    """
    Constant acceleration motion model for a walking pedestrian.

    State: [px, py, pz, vx, vy, vz, ax, ay, az]
    """

    def __init__(self, initial_location: LocationData,
                 time_delta: float = TIME_DELTA_S,
                 acceleration_variance: Optional[float] = None,
                 noise_model: str = 'complete'):
        """
        Initialize the motion model.

        Args:
            initial_location: First UWB fix, used as the initial position
            time_delta: Fixed filter time step in seconds
            acceleration_variance: Scale of the process noise; defaults to
                the variance of half the maximum pedestrian acceleration change
                per time step
            noise_model: 'complete' (dense) or 'simple' (acceleration only)

        Raises:
            ConfigurationError: On a non-finite seed or invalid tuning
        """
        if not is_finite([initial_location.x, initial_location.y, initial_location.z]):
            raise ConfigurationError(f"Initial location must be finite, got {initial_location!r}")

        if not is_finite(time_delta) or time_delta <= 0:
            raise ConfigurationError(f"Time delta must be positive, got {time_delta!r}")

        if acceleration_variance is None:
            acceleration_variance = default_acceleration_variance(time_delta)
        elif not is_finite(acceleration_variance) or acceleration_variance < 0:
            raise ConfigurationError(
                f"Acceleration variance must be non-negative, got {acceleration_variance!r}"
            )

        if noise_model not in PROCESS_NOISE_MODELS:
            raise ConfigurationError(f"Unknown process noise model: {noise_model}")

        self.initial_location = initial_location
        self.time_delta = float(time_delta)
        self.acceleration_variance = float(acceleration_variance)
        self.noise_model = noise_model

        self._F = transition_matrix(self.time_delta)
        self._B = np.zeros((STATE_SIZE, 1))
        self._Q = process_noise_template(self.time_delta, noise_model) * self.acceleration_variance

    def initial_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Initial state vector and covariance.

        Returns:
            (x0, P0): position from the seed, zero velocity and acceleration,
            identity covariance
        """
        x0 = np.zeros(STATE_SIZE)
        x0[POSITION_OFFSET:POSITION_OFFSET + AXES] = self.initial_location.position
        P0 = np.eye(STATE_SIZE) * INITIAL_STATE_VARIANCE
        return x0, P0

    def transition(self) -> np.ndarray:
        """9x9 state transition matrix F."""
        return self._F.copy()

    def control(self) -> np.ndarray:
        """9x1 control matrix B; no control input is modelled."""
        return self._B.copy()

    def process_noise(self) -> np.ndarray:
        """9x9 process noise covariance Q."""
        return self._Q.copy()

    def predict_state(self, state: np.ndarray) -> np.ndarray:
        """Propagate a state vector one time step."""
        return self._F @ state


class MeasurementModel:
    """
    Linear observation of position (UWB fix) and acceleration (accelerometer).
    """

    def __init__(self, measurement_noise: Optional[np.ndarray] = None,
                 noise_model: str = 'complete'):
        """
        Initialize the measurement model.

        Args:
            measurement_noise: Optional 6x6 covariance overriding the noise model
            noise_model: 'complete' (correlated) or 'diagonal'

        Raises:
            ConfigurationError: On an invalid noise matrix or model name
        """
        if measurement_noise is not None:
            if not is_finite(measurement_noise):
                raise ConfigurationError("Measurement noise must be a finite numeric matrix")
            R = np.array(measurement_noise, dtype=float)
            if R.shape != (MEASUREMENT_SIZE, MEASUREMENT_SIZE):
                raise ConfigurationError(
                    f"Measurement noise must be {MEASUREMENT_SIZE}x{MEASUREMENT_SIZE}, got {R.shape}"
                )
            if not is_symmetric(R):
                raise ConfigurationError("Measurement noise must be symmetric")
        elif noise_model == 'complete':
            R = np.array(MEASUREMENT_NOISE)
        elif noise_model == 'diagonal':
            R = np.diag(MEASUREMENT_NOISE_DIAGONAL)
        else:
            raise ConfigurationError(f"Unknown measurement noise model: {noise_model}")

        self.noise_model = noise_model
        self._R = R

        H = np.zeros((MEASUREMENT_SIZE, STATE_SIZE))
        for row, col in enumerate(self.observed_indices()):
            H[row, col] = 1.0
        self._H = H

    @staticmethod
    def observed_indices():
        """State indices observed by each measurement row."""
        return (list(range(POSITION_OFFSET, POSITION_OFFSET + AXES)) +
                list(range(ACCELERATION_OFFSET, ACCELERATION_OFFSET + AXES)))

    def observation(self) -> np.ndarray:
        """6x9 measurement matrix H."""
        return self._H.copy()

    def measurement_noise(self) -> np.ndarray:
        """6x6 measurement noise covariance R."""
        return self._R.copy()

    def predict_measurement(self, state: np.ndarray) -> np.ndarray:
        """
        Expected measurement for a state.

        Args:
            state: State vector

        Returns:
            [px, py, pz, ax, ay, az]
        """
        return self._H @ state
