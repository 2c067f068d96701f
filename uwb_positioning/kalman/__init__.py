"""
Linear Kalman filter for UWB pedestrian positioning.
"""

from .filter import KalmanFilter
from .state import LocationData, PedestrianState
from .models import MotionModel, MeasurementModel

__all__ = ["KalmanFilter", "LocationData", "PedestrianState", "MotionModel", "MeasurementModel"]
