"""
Raw UWB fixes and their conversion into filter measurements.
"""

import logging
import numpy as np
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import InputError
from ..kalman.state import LocationData
from ..math.constants import MEASUREMENT_SIZE
from ..math.utils import is_finite

logger = logging.getLogger(__name__)

@dataclass
class RawFix:
    """One UWB position fix with the acceleration sensed alongside it."""

    # UWB position (meters)
    pos_x: float
    pos_y: float
    pos_z: float

    # Accelerometer (m/s²)
    acc_x: float = 0.0
    acc_y: float = 0.0
    acc_z: float = 0.0

    # Confidence reported by the ranging subsystem, passed through untouched
    quality_factor: Optional[int] = None

    # Timestamp
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @classmethod
    def from_sequence(cls, values: Sequence[float],
                      quality_factor: Optional[int] = None) -> 'RawFix':
        """
        Build a fix from [px, py, pz, ax, ay, az].

        Raises:
            InputError: If the sequence does not have 6 entries
        """
        if len(values) != MEASUREMENT_SIZE:
            raise InputError(f"Raw fix must have {MEASUREMENT_SIZE} components, got {len(values)}")
        return cls(*values, quality_factor=quality_factor)

    @property
    def position(self) -> np.ndarray:
        return np.array([self.pos_x, self.pos_y, self.pos_z], dtype=float)

    @property
    def acceleration(self) -> np.ndarray:
        return np.array([self.acc_x, self.acc_y, self.acc_z], dtype=float)

    @property
    def measurement(self) -> np.ndarray:
        """Measurement vector [px, py, pz, ax, ay, az]."""
        return np.concatenate([self.position, self.acceleration])

    @property
    def location(self) -> LocationData:
        return LocationData(x=self.pos_x, y=self.pos_y, z=self.pos_z)

    @property
    def is_valid(self) -> bool:
        """Check that every component is finite."""
        return is_finite([self.pos_x, self.pos_y, self.pos_z,
                          self.acc_x, self.acc_y, self.acc_z])

class FixProcessor:
    """
    Validates raw fixes before they reach the filter.
    """

    def __init__(self):
        self.sample_count = 0
        self.rejected_count = 0
        self.last_fix: Optional[RawFix] = None

    def get_measurement_for_filter(self, fix: RawFix) -> np.ndarray:
        """
        Convert a fix into a filter measurement vector.

        Args:
            fix: Raw fix from the ranging subsystem

        Returns:
            Measurement [px, py, pz, ax, ay, az]

        Raises:
            InputError: If any component is not a finite number
        """
        self.sample_count += 1

        if not fix.is_valid:
            self.rejected_count += 1
            raise InputError(f"Raw fix has non-finite components: {fix}")

        self.last_fix = fix
        return fix.measurement

    def get_statistics(self):
        return {
            'samples': self.sample_count,
            'rejected': self.rejected_count,
        }
