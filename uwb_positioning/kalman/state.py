"""
Pedestrian state representation for the Kalman filter.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional
import time

from ..math.constants import STATE_SIZE

@dataclass(frozen=True)
class LocationData:
    """
    Position estimate in meters, in the UWB anchor coordinate frame.

    Used to seed the filter and to report the smoothed estimate.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_vector(cls, vector) -> 'LocationData':
        """Build from the first three entries of a vector."""
        return cls(x=float(vector[0]), y=float(vector[1]), z=float(vector[2]))

    @property
    def position(self) -> np.ndarray:
        """Get position as [x, y, z] vector."""
        return np.array([self.x, self.y, self.z])

    @property
    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.position)))

    def __str__(self) -> str:
        return f"{self.x:.3f}, {self.y:.3f}, {self.z:.3f}"

@dataclass
class PedestrianState:
    """
    Represents the pedestrian state estimated by the filter.

    State vector: [px, py, pz, vx, vy, vz, ax, ay, az]
    - px, py, pz: Position in meters
    - vx, vy, vz: Velocity in m/s
    - ax, ay, az: Acceleration in m/s²
    """

    # Position (meters)
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0

    # Velocity (m/s)
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0

    # Acceleration (m/s²)
    ax: float = 0.0
    ay: float = 0.0
    az: float = 0.0

    # Timestamp
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @classmethod
    def from_vector(cls, vector: np.ndarray, timestamp: Optional[float] = None) -> 'PedestrianState':
        state = cls(timestamp=timestamp)
        state.state_vector = vector
        return state

    @property
    def state_vector(self) -> np.ndarray:
        """Get state as numpy vector."""
        return np.array([
            self.px, self.py, self.pz,
            self.vx, self.vy, self.vz,
            self.ax, self.ay, self.az
        ])

    @state_vector.setter
    def state_vector(self, vector: np.ndarray):
        """Set state from numpy vector."""
        if len(vector) != STATE_SIZE:
            raise ValueError(f"State vector must have {STATE_SIZE} elements")

        self.px, self.py, self.pz = (float(v) for v in vector[0:3])
        self.vx, self.vy, self.vz = (float(v) for v in vector[3:6])
        self.ax, self.ay, self.az = (float(v) for v in vector[6:9])

    @property
    def position(self) -> np.ndarray:
        """Get position as [px, py, pz] vector."""
        return np.array([self.px, self.py, self.pz])

    @property
    def velocity(self) -> np.ndarray:
        """Get velocity as [vx, vy, vz] vector."""
        return np.array([self.vx, self.vy, self.vz])

    @property
    def acceleration(self) -> np.ndarray:
        """Get acceleration as [ax, ay, az] vector."""
        return np.array([self.ax, self.ay, self.az])

    @property
    def speed(self) -> float:
        """Get walking speed in m/s."""
        return float(np.linalg.norm(self.velocity))

    @property
    def location(self) -> LocationData:
        """Position part as an immutable LocationData."""
        return LocationData(x=self.px, y=self.py, z=self.pz)

    def copy(self) -> 'PedestrianState':
        """Create a copy of the state."""
        return PedestrianState.from_vector(self.state_vector, timestamp=self.timestamp)

    def __str__(self) -> str:
        return (
            f"PedestrianState(pos=[{self.px:.2f}, {self.py:.2f}, {self.pz:.2f}], "
            f"vel=[{self.vx:.2f}, {self.vy:.2f}, {self.vz:.2f}], "
            f"acc=[{self.ax:.2f}, {self.ay:.2f}, {self.az:.2f}])"
        )
