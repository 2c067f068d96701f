#!/usr/bin/env python3
"""
Integration tests for the complete positioning pipeline.
"""

import json
import os
import sys
import tempfile
import threading
import unittest

import numpy as np

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from uwb_positioning import (Config, ConfigurationError, FixProcessor, InputError,
                             LocationData, RawFix, TrackingSession)

class RecordingListener:
    """Collects estimates the way the presentation layer would display them."""

    def __init__(self):
        self.estimates = []

    def __call__(self, location, quality_factor):
        self.estimates.append((location, quality_factor))

class TestFixProcessing(unittest.TestCase):
    """Test raw fix validation."""

    def setUp(self):
        self.processor = FixProcessor()

    def test_measurement_layout(self):
        fix = RawFix(1.0, 2.0, 3.0, 0.1, 0.2, 0.3, quality_factor=87)

        measurement = self.processor.get_measurement_for_filter(fix)

        np.testing.assert_array_equal(measurement, [1.0, 2.0, 3.0, 0.1, 0.2, 0.3])
        self.assertEqual(self.processor.sample_count, 1)
        self.assertIs(self.processor.last_fix, fix)

    def test_from_sequence(self):
        fix = RawFix.from_sequence([1.0, 2.0, 3.0, 0.0, 0.0, 9.81], quality_factor=50)
        self.assertEqual(fix.location, LocationData(1.0, 2.0, 3.0))
        self.assertEqual(fix.acc_z, 9.81)
        self.assertEqual(fix.quality_factor, 50)
        self.assertIsNotNone(fix.timestamp)

        with self.assertRaises(InputError):
            RawFix.from_sequence([1.0, 2.0, 3.0])

    def test_non_finite_fix_rejected(self):
        for bad in ([float('nan'), 0, 0, 0, 0, 0], [0, 0, 0, 0, float('inf'), 0]):
            with self.assertRaises(InputError):
                self.processor.get_measurement_for_filter(RawFix.from_sequence(bad))

        self.assertEqual(self.processor.get_statistics(), {'samples': 2, 'rejected': 2})

class TestConfig(unittest.TestCase):
    """Test configuration handling."""

    def test_defaults(self):
        config = Config()

        self.assertAlmostEqual(config.time_delta, 0.1)
        self.assertAlmostEqual(config.acceleration_variance, (0.8 * 0.1 / 2) ** 2)
        self.assertEqual(config.process_noise_model, "complete")
        self.assertEqual(config.get("log_level"), "INFO")
        self.assertIsNone(config.get("missing.key"))

    def test_file_overrides_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.json")
            with open(path, "w") as f:
                json.dump({"acceleration_variance": 0.01, "log_level": "DEBUG"}, f)

            config = Config(path)

        self.assertEqual(config.acceleration_variance, 0.01)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.measurement_noise_model, "complete")

    def test_missing_file_uses_defaults(self):
        config = Config(os.path.join(tempfile.gettempdir(), "does-not-exist-uwb.json"))
        self.assertEqual(config.config, Config.DEFAULT_CONFIG)

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.json")
            config = Config(overrides={"max_acceleration": 1.4})
            config.save_config(path)

            reloaded = Config(path)

        self.assertEqual(reloaded.get("max_acceleration"), 1.4)

    def test_set_dotted_key(self):
        config = Config()
        config.set("tuning.notes", "indoor hall")
        self.assertEqual(config.get("tuning.notes"), "indoor hall")

    def test_invalid_values(self):
        for overrides in ({"time_delta": 0}, {"acceleration_variance": -1.0},
                          {"process_noise_model": "bogus"},
                          {"measurement_noise_model": "bogus"},
                          {"max_condition_number": 0.5},
                          {"log_level": "LOUD"},
                          {"time_delta": "0.1"},
                          {"max_acceleration": None},
                          {"acceleration_variance": True},
                          {"max_condition_number": "1e12"}):
            with self.assertRaises(ConfigurationError, msg=str(overrides)):
                Config(overrides=overrides)

    def test_malformed_measurement_noise(self):
        for noise in ([[1.0, 2.0], [3.0, 4.0]], [[0.1] * 6] * 5, [["0.1"] * 6] * 6, "eye"):
            with self.assertRaises(ConfigurationError, msg=str(noise)):
                Config(overrides={"measurement_noise": noise})

    def test_malformed_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.json")
            with open(path, "w") as f:
                f.write("{not json")

            with self.assertRaises(ConfigurationError):
                Config(path)

    def test_build_filter_uses_tuning(self):
        config = Config(overrides={"acceleration_variance": 0.0,
                                   "measurement_noise_model": "diagonal"})
        kf = config.build_filter(LocationData(1.0, 2.0, 3.0))

        self.assertFalse(kf.Q.any())
        self.assertAlmostEqual(kf.R[3, 3], 1e-5)
        self.assertEqual(kf.get_location(), LocationData(1.0, 2.0, 3.0))

class TestTrackingSession(unittest.TestCase):
    """Test session lifecycle and listener notification."""

    def setUp(self):
        self.listener = RecordingListener()
        self.session = TrackingSession(listener=self.listener)

    def test_fix_ignored_before_start(self):
        self.assertIsNone(self.session.on_fix(RawFix(1.0, 2.0, 3.0)))
        self.assertEqual(self.listener.estimates, [])
        self.assertIsNone(self.session.current_location)

    def test_first_fix_seeds_filter(self):
        self.session.start()

        location = self.session.on_fix(RawFix(1.0, 2.0, 3.0, quality_factor=90))

        self.assertEqual(location, LocationData(1.0, 2.0, 3.0))
        self.assertEqual(self.listener.estimates, [])
        self.assertEqual(self.session.filter.prediction_count, 0)
        self.assertEqual(self.session.get_statistics()["estimates"], 0)

        estimate = self.session.on_fix(RawFix(1.1, 2.0, 3.0, quality_factor=80))

        self.assertEqual(self.listener.estimates, [(estimate, 80)])

    def test_explicit_seed(self):
        self.session.start(LocationData(5.0, 5.0, 1.0))

        self.assertEqual(self.session.current_location, LocationData(5.0, 5.0, 1.0))
        self.session.on_fix(RawFix(5.0, 5.0, 1.0))

        stats = self.session.get_statistics()
        self.assertEqual(stats['predictions'], 1)
        self.assertEqual(stats['updates'], 1)

    def test_non_finite_seed_is_fatal(self):
        with self.assertRaises(ConfigurationError):
            self.session.start(LocationData(float('nan'), 0.0, 0.0))
        self.assertFalse(self.session.is_running)

    def test_invalid_config_fails_at_start(self):
        config = Config()
        config.set("measurement_noise", [[1.0, 2.0], [3.0, 4.0]])
        session = TrackingSession(listener=self.listener, config=config)

        with self.assertRaises(ConfigurationError):
            session.start()

        self.assertFalse(session.is_running)
        self.assertIsNone(session.on_fix(RawFix(1.0, 2.0, 3.0)))

    def test_quality_factor_passed_through(self):
        self.session.start(LocationData())

        for quality in (10, 55, None):
            self.session.on_fix(RawFix(0.0, 0.0, 0.0, quality_factor=quality))

        self.assertEqual([q for _, q in self.listener.estimates], [10, 55, None])

    def test_invalid_fix_skips_tick(self):
        self.session.start(LocationData())
        self.session.on_fix(RawFix(0.1, 0.0, 0.0))
        before = self.session.current_location

        result = self.session.on_fix(RawFix(float('nan'), 0.0, 0.0))

        self.assertIsNone(result)
        self.assertEqual(self.session.current_location, before)
        self.assertEqual(len(self.listener.estimates), 1)
        stats = self.session.get_statistics()
        self.assertEqual(stats['rejected_fixes'], 1)
        self.assertEqual(stats['predictions'], 1)

    def test_singular_update_is_not_reported(self):
        config = Config(overrides={"acceleration_variance": 0.0,
                                   "measurement_noise": np.zeros((6, 6)).tolist()})
        session = TrackingSession(listener=self.listener, config=config)
        session.start(LocationData(1.0, 1.0, 1.0))
        session.filter.P[:] = 0.0

        self.assertIsNone(session.on_fix(RawFix(2.0, 2.0, 2.0)))
        self.assertTrue(session.is_running)
        self.assertEqual(session.current_location, LocationData(1.0, 1.0, 1.0))
        self.assertEqual(session.get_statistics()['skipped_updates'], 1)
        self.assertEqual(self.listener.estimates, [])

    def test_stop_ignores_later_fixes(self):
        self.session.start(LocationData())
        self.session.on_fix(RawFix(0.0, 0.0, 0.0))
        self.session.stop()

        self.assertIsNone(self.session.on_fix(RawFix(1.0, 1.0, 1.0)))
        self.assertFalse(self.session.is_running)
        self.assertEqual(len(self.listener.estimates), 1)

    def test_end_to_end_smoothing(self):
        """Three advancing fixes from the origin are smoothed, not passed through."""
        self.session.start(LocationData(0.0, 0.0, 0.0))

        for x in (0.1, 0.2, 0.3):
            location = self.session.on_fix(RawFix(x, 0.0, 0.0))

        self.assertGreater(location.x, 0.2)
        self.assertLess(location.x, 0.3)
        self.assertEqual(len(self.listener.estimates), 3)

    def test_concurrent_delivery(self):
        """Fixes delivered from several threads are processed one at a time."""
        self.session.start(LocationData(1.0, 2.0, 3.0))
        rng = np.random.default_rng(7)
        fixes = [RawFix(*(np.array([1.0, 2.0, 3.0]) + rng.normal(0, 0.05, 3)))
                 for _ in range(200)]

        def deliver(chunk):
            for fix in chunk:
                self.session.on_fix(fix)

        threads = [threading.Thread(target=deliver, args=(fixes[i::4],)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stats = self.session.get_statistics()
        self.assertEqual(stats['predictions'], 200)
        self.assertEqual(stats['updates'], 200)
        P = self.session.filter.P
        self.assertLess(np.linalg.norm(P - P.T), 1e-9)

    def test_listener_sees_estimates_in_update_order(self):
        """Concurrent deliveries reach the listener in the order the filter updated."""
        seen_updates = []

        def listener(location, quality_factor):
            # Reading the session from inside the callback must not deadlock
            seen_updates.append(session.get_statistics()['updates'])
            self.assertEqual(session.current_location, location)

        session = TrackingSession(listener=listener)
        session.start(LocationData(1.0, 2.0, 3.0))
        rng = np.random.default_rng(11)
        fixes = [RawFix(*(np.array([1.0, 2.0, 3.0]) + rng.normal(0, 0.05, 3)))
                 for _ in range(200)]

        def deliver(chunk):
            for fix in chunk:
                session.on_fix(fix)

        threads = [threading.Thread(target=deliver, args=(fixes[i::4],)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(seen_updates, list(range(1, 201)))
        self.assertEqual(session.get_statistics()['estimates'], 200)

class TestPedestrianWalk(unittest.TestCase):
    """Track a simulated walk."""

    def test_walk_tracking_error(self):
        rng = np.random.default_rng(3)
        dt = 0.1
        speed = 1.2
        session = TrackingSession()
        session.start(LocationData(0.0, 0.0, 1.2))

        errors = []
        raw_errors = []
        for tick in range(1, 301):
            truth = np.array([speed * tick * dt, 0.5, 1.2])
            noisy = truth + rng.multivariate_normal(np.zeros(3), session.filter.R[:3, :3])
            location = session.on_fix(RawFix(*noisy, 0.0, 0.0, 0.0))
            if tick > 50:
                errors.append(np.linalg.norm(location.position - truth))
                raw_errors.append(np.linalg.norm(noisy - truth))

        self.assertLess(np.mean(errors), np.mean(raw_errors))

if __name__ == '__main__':
    unittest.main()
