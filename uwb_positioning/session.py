"""
Tracking session connecting the ranging collaborator to the Kalman filter.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from .config import Config
from .errors import ConfigurationError, InputError
from .kalman.filter import KalmanFilter
from .kalman.state import LocationData
from .sensors.fix import FixProcessor, RawFix

logger = logging.getLogger(__name__)

EstimateListener = Callable[[LocationData, Any], None]

class TrackingSession:
    """
    One positioning session for a single pedestrian.

    The ranging subsystem calls on_fix() from its own delivery thread; each
    predict+update cycle runs under the session lock. Listeners receive
    (LocationData, quality_factor) after every successful update, in update
    order; the seeding fix is not reported.
    """

    def __init__(self, listener: Optional[EstimateListener] = None,
                 config: Optional[Config] = None):
        """
        Initialize the tracking session.

        Args:
            listener: Called with the smoothed location and the quality factor
            config: Filter tuning, defaults used when omitted
        """
        self.config = config or Config()
        self.listener = listener

        self.fix_processor = FixProcessor()
        self.filter: Optional[KalmanFilter] = None

        # Threading control
        self._lock = threading.RLock()
        self.running = False

        # Statistics
        self.start_time: Optional[float] = None
        self.rejected_fix_count = 0
        self.estimate_count = 0
        self.last_estimate: Optional[LocationData] = None

    @property
    def is_running(self) -> bool:
        return self.running

    @property
    def current_location(self) -> Optional[LocationData]:
        with self._lock:
            if self.filter is None:
                return None
            return self.filter.get_location()

    def start(self, initial_location: Optional[LocationData] = None):
        """
        Start the session.

        Args:
            initial_location: Seed position; when omitted the first valid fix
                seeds the filter

        Raises:
            ConfigurationError: If the tuning is invalid or the seed is not finite
        """
        with self._lock:
            if self.running:
                logger.info("Session already running")
                return

            self.config.validate()

            self.filter = None
            if initial_location is not None:
                self.filter = self.config.build_filter(initial_location)

            self.running = True
            self.start_time = time.time()

        logger.info("Tracking session started (seed=%s)", initial_location)

    def stop(self):
        """Stop the session; later fixes are ignored."""
        with self._lock:
            if not self.running:
                return
            self.running = False

        logger.info("Tracking session stopped after %d estimates", self.estimate_count)

    def on_fix(self, fix: RawFix) -> Optional[LocationData]:
        """
        Process one raw fix from the ranging subsystem.

        Args:
            fix: Position fix with acceleration and quality factor

        Returns:
            The new smoothed location, the seed location for the first fix
            of an unseeded session, or None if the tick was skipped
        """
        with self._lock:
            if not self.running:
                logger.debug("Ignoring fix while session is stopped")
                return None

            try:
                measurement = self.fix_processor.get_measurement_for_filter(fix)
            except InputError as e:
                self.rejected_fix_count += 1
                logger.warning("Rejected raw fix: %s", e)
                return None

            if self.filter is None:
                return self._seed(fix)

            location = self._step(measurement)
            if location is None:
                return None

            self.estimate_count += 1
            self.last_estimate = location

            # Still under the lock so listeners see estimates in update order
            if self.listener is not None:
                self.listener(location, fix.quality_factor)

        return location

    def _seed(self, fix: RawFix) -> LocationData:
        """First fix of the session becomes the initial position."""
        try:
            self.filter = self.config.build_filter(fix.location)
        except ConfigurationError:
            self.running = False
            raise

        logger.info("Filter seeded at %s", fix.location)
        return self.filter.get_location()

    def _step(self, measurement) -> Optional[LocationData]:
        self.filter.predict()
        updated = self.filter.update(measurement)
        if updated is None:
            return None

        logger.debug("Estimate %s", updated)
        return updated.location

    def get_statistics(self) -> Dict[str, Any]:
        """Get session statistics."""
        with self._lock:
            stats = {
                'running': self.running,
                'estimates': self.estimate_count,
                'rejected_fixes': self.rejected_fix_count,
                'uptime_s': time.time() - self.start_time if self.start_time else 0.0,
            }
            stats.update(self.fix_processor.get_statistics())
            if self.filter is not None:
                stats.update(self.filter.get_statistics())
        return stats
