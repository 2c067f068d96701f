"""
UWB pedestrian positioning engine.

This package provides platform-independent implementations of:
- Linear Kalman filter fusing UWB fixes with sensed acceleration
- Raw fix validation
- Tracking session lifecycle and configuration
"""

__version__ = "1.0.0"
__author__ = "UWB Positioning Team"

from .errors import PositioningError, ConfigurationError, NumericalError, InputError
from .kalman import KalmanFilter, LocationData, PedestrianState, MotionModel, MeasurementModel
from .sensors import RawFix, FixProcessor
from .config import Config, configure_logging
from .session import TrackingSession

__all__ = [
    "KalmanFilter",
    "LocationData",
    "PedestrianState",
    "MotionModel",
    "MeasurementModel",
    "RawFix",
    "FixProcessor",
    "Config",
    "configure_logging",
    "TrackingSession",
    "PositioningError",
    "ConfigurationError",
    "NumericalError",
    "InputError"
]
