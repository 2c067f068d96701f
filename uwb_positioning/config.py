"""
Configuration manager for the UWB positioning engine.
"""

import copy
import json
import logging
import os
from typing import Dict, Any, Optional

from .errors import ConfigurationError
from .kalman.filter import KalmanFilter
from .kalman.models import (MotionModel, MeasurementModel, default_acceleration_variance,
                            PROCESS_NOISE_MODELS, MEASUREMENT_NOISE_MODELS)
from .kalman.state import LocationData
from .math.constants import (TIME_DELTA_S, MAX_PEDESTRIAN_ACCELERATION,
                             MAX_CONDITION_NUMBER)
from .math.utils import is_finite

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

class Config:
    """Configuration manager for the positioning engine."""

    DEFAULT_CONFIG = {
        # Filter timing
        "time_delta": TIME_DELTA_S,

        # Process noise tuning
        "max_acceleration": MAX_PEDESTRIAN_ACCELERATION,
        "acceleration_variance": None,
        "process_noise_model": "complete",

        # Measurement noise
        "measurement_noise_model": "complete",
        "measurement_noise": None,

        # Numerical safeguards
        "max_condition_number": MAX_CONDITION_NUMBER,

        # Logging
        "log_level": "INFO",
        "log_file": None
    }

    def __init__(self, config_file: Optional[str] = None,
                 overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_file: Optional path to a JSON configuration file
            overrides: Values applied on top of defaults and file contents

        Raises:
            ConfigurationError: If the file is unreadable or values are invalid
        """
        self.config_file = config_file
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file is not None:
            if os.path.exists(config_file):
                self.load_config()
            else:
                logger.info("Config file %s not found, using defaults", config_file)

        if overrides:
            self._merge_config(self.config, overrides)

        self.validate()

    def load_config(self):
        """
        Load configuration from file.

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        try:
            with open(self.config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to load config {self.config_file}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Config {self.config_file} must hold a JSON object")

        # Merge with defaults (file config overrides defaults)
        self._merge_config(self.config, file_config)

        logger.info("Configuration loaded from %s", self.config_file)

    def save_config(self, config_file: Optional[str] = None):
        """Save current configuration to file."""
        path = config_file or self.config_file
        if path is None:
            raise ConfigurationError("No config file path given")

        with open(path, 'w') as f:
            json.dump(self.config, f, indent=2)

        logger.info("Configuration saved to %s", path)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def validate(self):
        """
        Check tuning values.

        Raises:
            ConfigurationError: On the first invalid value
        """
        if not is_finite(self.time_delta) or self.time_delta <= 0:
            raise ConfigurationError(f"time_delta must be positive, got {self.time_delta!r}")

        if not is_finite(self.config["max_acceleration"]) or self.config["max_acceleration"] < 0:
            raise ConfigurationError("max_acceleration must be non-negative")

        variance = self.config["acceleration_variance"]
        if variance is not None and (not is_finite(variance) or variance < 0):
            raise ConfigurationError("acceleration_variance must be non-negative")

        if self.process_noise_model not in PROCESS_NOISE_MODELS:
            raise ConfigurationError(f"Unknown process_noise_model: {self.process_noise_model}")

        if self.measurement_noise_model not in MEASUREMENT_NOISE_MODELS:
            raise ConfigurationError(
                f"Unknown measurement_noise_model: {self.measurement_noise_model}"
            )

        if not is_finite(self.max_condition_number) or self.max_condition_number <= 1:
            raise ConfigurationError("max_condition_number must be greater than 1")

        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigurationError(f"Unknown log_level: {self.log_level}")

        # Raises ConfigurationError on a malformed measurement_noise matrix
        self.build_measurement_model()

    def get(self, key: str, default=None):
        """Get configuration value with optional default."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value."""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    # Property accessors for common configuration values
    @property
    def time_delta(self) -> float:
        return self.config["time_delta"]

    @property
    def acceleration_variance(self) -> float:
        """Configured variance, or the variance of half the max acceleration change per step."""
        variance = self.config["acceleration_variance"]
        if variance is None:
            variance = default_acceleration_variance(self.time_delta,
                                                     self.config["max_acceleration"])
        return variance

    @property
    def process_noise_model(self) -> str:
        return self.config["process_noise_model"]

    @property
    def measurement_noise_model(self) -> str:
        return self.config["measurement_noise_model"]

    @property
    def measurement_noise(self):
        return self.config["measurement_noise"]

    @property
    def max_condition_number(self) -> float:
        return self.config["max_condition_number"]

    @property
    def log_level(self) -> str:
        return self.config["log_level"]

    @property
    def log_file(self) -> Optional[str]:
        return self.config["log_file"]

    def build_motion_model(self, initial_location: LocationData) -> MotionModel:
        return MotionModel(
            initial_location,
            time_delta=self.time_delta,
            acceleration_variance=self.acceleration_variance,
            noise_model=self.process_noise_model
        )

    def build_measurement_model(self) -> MeasurementModel:
        return MeasurementModel(
            measurement_noise=self.measurement_noise,
            noise_model=self.measurement_noise_model
        )

    def build_filter(self, initial_location: LocationData) -> KalmanFilter:
        """Create a filter seeded at the given location with this tuning."""
        return KalmanFilter(
            self.build_motion_model(initial_location),
            self.build_measurement_model(),
            max_condition_number=self.max_condition_number
        )

def configure_logging(config: Optional[Config] = None):
    """
    Apply the log level and optional log file of a configuration.

    Intended for applications; the library itself never installs handlers.
    """
    config = config or Config()
    level = getattr(logging, str(config.log_level).upper())

    handlers = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
