"""
Synthetic calibration measurements.

Each measurement places the sensor at a random location on the Earth with a
random attitude and rotates it, as a rate table would, at a random constant
body rate over one sampling interval. The true kinematics follow from the
frame pair through estimate_kinematics; the measured angular rate follows
from applying the gyroscope error model, optionally with white noise added.

Because the measured values are produced with the same kinematics estimator
the calibrator uses, a noise-free set is reproduced exactly by the true
error model.
"""

from typing import List, Optional

import numpy as np

from gyrocal.coords.rotations import euler_to_rotation_matrix, rotation_vector_to_matrix
from gyrocal.coords.transforms import llh_to_ecef, ned_attitude_to_ecef
from gyrocal.sensors.imu_models import measured_angular_rate
from gyrocal.sensors.kinematics import estimate_kinematics
from gyrocal.sensors.types import BodyKinematics, ECEFFrame, FrameBodyKinematics

DEFAULT_TIME_INTERVAL = 0.02  # s, 50 Hz
DEFAULT_MAX_ANGULAR_RATE = 1.0  # rad/s
MAX_LATITUDE = np.deg2rad(80.0)
MAX_HEIGHT = 50.0  # m


def random_ecef_frame(rng: np.random.Generator) -> ECEFFrame:
    """Static ECEF frame at a random location with a random attitude."""
    lat = rng.uniform(-MAX_LATITUDE, MAX_LATITUDE)
    lon = rng.uniform(-np.pi, np.pi)
    height = rng.uniform(-MAX_HEIGHT, MAX_HEIGHT)

    roll = rng.uniform(-np.pi, np.pi)
    pitch = rng.uniform(-0.5 * np.pi, 0.5 * np.pi)
    yaw = rng.uniform(-np.pi, np.pi)
    c_body_to_ned = euler_to_rotation_matrix(roll, pitch, yaw)

    return ECEFFrame(
        position=llh_to_ecef(lat, lon, height),
        velocity=np.zeros(3),
        c_body_to_ecef=ned_attitude_to_ecef(lat, lon, c_body_to_ned),
    )


def generate_measurements(
    bias: np.ndarray,
    mg: np.ndarray,
    gg: np.ndarray,
    count: int,
    time_interval: float = DEFAULT_TIME_INTERVAL,
    max_angular_rate: float = DEFAULT_MAX_ANGULAR_RATE,
    gyro_noise_std: Optional[float] = None,
    accel_noise_std: Optional[float] = None,
    seed: Optional[int] = None,
) -> List[FrameBodyKinematics]:
    """
    Generate calibration measurements from a known gyroscope error model.

    Args:
        bias: Gyroscope bias, rad/s. Shape: (3,).
        mg: Scale factor and cross-coupling matrix. Shape: (3, 3).
        gg: G-sensitivity matrix. Shape: (3, 3).
        count: Number of measurements.
        time_interval: Interval between both frames of a measurement, s.
        max_angular_rate: Body rates are drawn uniformly per axis from
                          [-max_angular_rate, max_angular_rate] rad/s.
                          Zero gives static measurements.
        gyro_noise_std: White noise std added to angular rate, rad/s.
                        None adds no noise.
        accel_noise_std: White noise std added to specific force, m/s².
                         None adds no noise.
        seed: Seed for np.random.default_rng.

    Returns:
        List of FrameBodyKinematics. Standard deviations are the noise
        levels used, or 1.0 when no noise was added.

    Example:
        >>> mg = np.diag([400e-6, -300e-6, -350e-6])
        >>> measurements = generate_measurements(
        ...     np.zeros(3), mg, np.zeros((3, 3)), count=6, seed=0)
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if time_interval <= 0.0:
        raise ValueError(f"time_interval must be positive, got {time_interval}")
    if max_angular_rate < 0.0:
        raise ValueError(
            f"max_angular_rate must be non-negative, got {max_angular_rate}"
        )

    rng = np.random.default_rng(seed)

    angular_rate_std = 1.0 if gyro_noise_std is None else gyro_noise_std
    specific_force_std = 1.0 if accel_noise_std is None else accel_noise_std

    measurements = []
    for _ in range(count):
        previous_frame = random_ecef_frame(rng)

        body_rate = rng.uniform(-max_angular_rate, max_angular_rate, size=3)
        c_body_to_ecef = previous_frame.c_body_to_ecef @ rotation_vector_to_matrix(
            body_rate * time_interval
        )
        frame = ECEFFrame(
            position=previous_frame.position,
            velocity=previous_frame.velocity,
            c_body_to_ecef=c_body_to_ecef,
        )

        truth = estimate_kinematics(time_interval, frame, previous_frame)

        angular_rate = measured_angular_rate(
            truth.angular_rate, truth.specific_force, bias, mg, gg
        )
        specific_force = truth.specific_force.copy()
        if gyro_noise_std is not None:
            angular_rate = angular_rate + rng.normal(0.0, gyro_noise_std, size=3)
        if accel_noise_std is not None:
            specific_force = specific_force + rng.normal(0.0, accel_noise_std, size=3)

        measurements.append(
            FrameBodyKinematics(
                kinematics=BodyKinematics(
                    specific_force=specific_force, angular_rate=angular_rate
                ),
                frame=frame,
                previous_frame=previous_frame,
                time_interval=time_interval,
                specific_force_standard_deviation=specific_force_std,
                angular_rate_standard_deviation=angular_rate_std,
            )
        )

    return measurements
