"""
Linear Kalman filter fusing UWB position fixes with sensed acceleration.
"""

import logging
import numpy as np
import time
from typing import Optional, Dict, Any

from .state import LocationData, PedestrianState
from .models import MotionModel, MeasurementModel
from ..errors import InputError, NumericalError
from ..math.constants import MEASUREMENT_SIZE, MAX_CONDITION_NUMBER, STATE_SIZE
from ..math.utils import conditioned_inverse, is_finite, nearest_psd

logger = logging.getLogger(__name__)

class KalmanFilter:
    """
    Kalman filter for pedestrian position, velocity and acceleration.

    Every new measurement is processed as predict() followed by update(z).
    Between measurements the filter dead-reckons through predict() alone.
    """

    def __init__(self, motion_model: MotionModel,
                 measurement_model: Optional[MeasurementModel] = None,
                 max_condition_number: float = MAX_CONDITION_NUMBER):
        """
        Initialize the Kalman filter.

        Args:
            motion_model: Supplies F, Q and the initial state
            measurement_model: Supplies H and R (default literal R)
            max_condition_number: Innovation covariance conditioning limit
        """
        self.motion_model = motion_model
        self.measurement_model = measurement_model or MeasurementModel()
        self.max_condition_number = max_condition_number

        # Constant model matrices
        self.F = self.motion_model.transition()
        self.Q = self.motion_model.process_noise()
        self.H = self.measurement_model.observation()
        self.R = self.measurement_model.measurement_noise()

        # State vector and covariance
        self.state, self.P = self.motion_model.initial_state()

        # Statistics
        self.prediction_count = 0
        self.update_count = 0
        self.skipped_update_count = 0

    def predict(self) -> PedestrianState:
        """
        Time update of the filter.

        Returns:
            Predicted pedestrian state
        """
        self.state = self.motion_model.predict_state(self.state)

        # P = F * P * F^T + Q, kept positive semi-definite
        self.P = nearest_psd(self.F @ self.P @ self.F.T + self.Q)

        self.prediction_count += 1

        return self.get_current_state()

    def update(self, measurement) -> Optional[PedestrianState]:
        """
        Measurement update with a UWB fix and acceleration reading.

        Args:
            measurement: [px, py, pz, ax, ay, az]

        Returns:
            Updated pedestrian state, or None if the innovation covariance
            could not be inverted and the predicted state was kept

        Raises:
            ValueError: If the measurement does not have 6 elements
            InputError: If the measurement contains non-finite values
        """
        z = np.asarray(measurement, dtype=float).reshape(-1)
        if len(z) != MEASUREMENT_SIZE:
            raise ValueError(f"Measurement must have {MEASUREMENT_SIZE} elements")
        if not is_finite(z):
            raise InputError(f"Measurement contains non-finite values: {z}")

        # Innovation (measurement residual)
        y = z - self.measurement_model.predict_measurement(self.state)

        # Innovation covariance
        S = self.H @ self.P @ self.H.T + self.R

        try:
            S_inv = conditioned_inverse(S, self.max_condition_number)
        except NumericalError as e:
            self.skipped_update_count += 1
            logger.warning("Skipping measurement update (%d skipped so far): %s",
                           self.skipped_update_count, e)
            return None

        # Kalman gain
        K = self.P @ self.H.T @ S_inv

        # Update state and covariance
        self.state = self.state + K @ y
        I = np.eye(STATE_SIZE)
        self.P = nearest_psd((I - K @ self.H) @ self.P)

        self.update_count += 1

        return self.get_current_state()

    def get_current_state(self) -> PedestrianState:
        """Get current estimated state."""
        return PedestrianState.from_vector(self.state, timestamp=time.time())

    def get_location(self) -> LocationData:
        """Get current position estimate."""
        return LocationData.from_vector(self.state)

    def get_uncertainty(self) -> np.ndarray:
        """Get current state uncertainty (standard deviation of each state)."""
        return np.sqrt(np.clip(np.diag(self.P), 0.0, None))

    def get_position_uncertainty(self) -> float:
        """Get position uncertainty (3D RMS error)."""
        pos_var = self.P[0, 0] + self.P[1, 1] + self.P[2, 2]
        return float(np.sqrt(max(pos_var, 0.0)))

    def reset(self, location: Optional[LocationData] = None):
        """Reset filter to a new initial location."""
        if location is not None:
            self.motion_model = MotionModel(
                location,
                time_delta=self.motion_model.time_delta,
                acceleration_variance=self.motion_model.acceleration_variance,
                noise_model=self.motion_model.noise_model
            )
        self.state, self.P = self.motion_model.initial_state()

        # Reset counters
        self.prediction_count = 0
        self.update_count = 0
        self.skipped_update_count = 0

    def get_statistics(self) -> Dict[str, Any]:
        """Get filter statistics."""
        return {
            'predictions': self.prediction_count,
            'updates': self.update_count,
            'skipped_updates': self.skipped_update_count,
            'position_uncertainty': self.get_position_uncertainty(),
            'state_uncertainty': self.get_uncertainty().tolist()
        }
