"""
Unit tests for synthetic calibration measurement generation.
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from gyrocal.sensors import EARTH_ROTATION_RATE, FrameBodyKinematics
from gyrocal.sensors.imu_models import measured_angular_rate
from gyrocal.sim import generate_measurements, random_ecef_frame


class TestGenerateMeasurements(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(0)
        self.bias = np.deg2rad([-9.0, 13.0, -8.0]) / 3600.0
        self.mg = rng.uniform(-1e-3, 1e-3, size=(3, 3))
        self.gg = rng.uniform(-1e-5, 1e-5, size=(3, 3))

    def test_count_and_types(self):
        measurements = generate_measurements(self.bias, self.mg, self.gg, 12, seed=1)
        self.assertEqual(len(measurements), 12)
        for m in measurements:
            self.assertIsInstance(m, FrameBodyKinematics)
            self.assertAlmostEqual(m.time_interval, 0.02)
            self.assertEqual(m.angular_rate_standard_deviation, 1.0)
            self.assertEqual(m.specific_force_standard_deviation, 1.0)

    def test_empty(self):
        self.assertEqual(generate_measurements(self.bias, self.mg, self.gg, 0), [])

    def test_reproducible_with_seed(self):
        a = generate_measurements(self.bias, self.mg, self.gg, 3, seed=5)
        b = generate_measurements(self.bias, self.mg, self.gg, 3, seed=5)
        for ma, mb in zip(a, b):
            assert_array_equal(ma.kinematics.angular_rate, mb.kinematics.angular_rate)
            assert_array_equal(ma.frame.c_body_to_ecef, mb.frame.c_body_to_ecef)

    def test_noise_free_measurements_follow_error_model(self):
        measurements = generate_measurements(self.bias, self.mg, self.gg, 5, seed=2)
        for m in measurements:
            truth = m.expected_kinematics()
            expected = measured_angular_rate(
                truth.angular_rate, truth.specific_force, self.bias, self.mg, self.gg
            )
            assert_array_equal(m.kinematics.angular_rate, expected)
            assert_array_equal(m.kinematics.specific_force, truth.specific_force)

    def test_noise_sets_standard_deviations(self):
        measurements = generate_measurements(
            self.bias,
            self.mg,
            self.gg,
            4,
            gyro_noise_std=1e-3,
            accel_noise_std=1e-2,
            seed=3,
        )
        for m in measurements:
            self.assertEqual(m.angular_rate_standard_deviation, 1e-3)
            self.assertEqual(m.specific_force_standard_deviation, 1e-2)
            truth = m.expected_kinematics()
            expected = measured_angular_rate(
                truth.angular_rate, truth.specific_force, self.bias, self.mg, self.gg
            )
            self.assertGreater(np.abs(m.kinematics.angular_rate - expected).max(), 0.0)
            self.assertLess(np.abs(m.kinematics.angular_rate - expected).max(), 1e-2)

    def test_static_measurements_sense_earth_rate(self):
        measurements = generate_measurements(
            np.zeros(3),
            np.zeros((3, 3)),
            np.zeros((3, 3)),
            4,
            max_angular_rate=0.0,
            seed=4,
        )
        for m in measurements:
            self.assertAlmostEqual(
                np.linalg.norm(m.kinematics.angular_rate), EARTH_ROTATION_RATE, delta=1e-10
            )
            self.assertAlmostEqual(
                np.linalg.norm(m.kinematics.specific_force), 9.8, delta=0.05
            )

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="count"):
            generate_measurements(self.bias, self.mg, self.gg, -1)
        with pytest.raises(ValueError, match="time_interval"):
            generate_measurements(self.bias, self.mg, self.gg, 1, time_interval=0.0)
        with pytest.raises(ValueError, match="max_angular_rate"):
            generate_measurements(self.bias, self.mg, self.gg, 1, max_angular_rate=-1.0)


class TestRandomEcefFrame(unittest.TestCase):
    def test_frame_is_static_near_surface(self):
        rng = np.random.default_rng(9)
        for _ in range(10):
            frame = random_ecef_frame(rng)
            radius = np.linalg.norm(frame.position)
            self.assertGreater(radius, 6.35e6)
            self.assertLess(radius, 6.38e6)
            # Latitude stays below 80 degrees
            self.assertLess(abs(frame.position[2]) / radius, np.sin(np.deg2rad(80.5)))
            assert_array_equal(frame.velocity, np.zeros(3))
            c = frame.c_body_to_ecef
            assert_allclose(c.T @ c, np.eye(3), atol=1e-12)


if __name__ == "__main__":
    unittest.main()
