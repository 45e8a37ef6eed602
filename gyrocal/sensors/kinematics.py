"""
True body kinematics from a pair of ECEF frames.

Given the ground-truth attitude, velocity and position of a body at two
instants, estimate_kinematics returns the specific force and angular rate a
perfect IMU would report over the interval. Earth rotation and the J2
gravity model are accounted for, so a static sensor reports the Earth
rotation rate and the negative of local gravity.

References:
    Groves, "Principles of GNSS, Inertial, and Multisensor Integrated
    Navigation Systems", 2nd ed., Section 5.2 (ECEF-frame kinematics).
"""

import numpy as np

from gyrocal.coords.rotations import skew_matrix
from gyrocal.sensors.gravity import EARTH_ROTATION_RATE, ecef_gravity
from gyrocal.sensors.types import BodyKinematics, ECEFFrame

# Below this angle the small-angle attitude increment is used as is
_SMALL_ANGLE_THRESHOLD = 2e-5

# Below this magnitude the attitude averaging correction is skipped
_AVERAGING_THRESHOLD = 1e-8

_OMEGA_IE = np.array([0.0, 0.0, EARTH_ROTATION_RATE])


def _earth_rotation(alpha_ie: float) -> np.ndarray:
    """Rotation of ECEF relative to inertial axes over an angle alpha_ie."""
    c = np.cos(alpha_ie)
    s = np.sin(alpha_ie)
    return np.array(
        [
            [c, s, 0.0],
            [-s, c, 0.0],
            [0.0, 0.0, 1.0],
        ]
    )


def estimate_kinematics(
    time_interval: float,
    frame: ECEFFrame,
    previous_frame: ECEFFrame,
) -> BodyKinematics:
    """
    Estimate body kinematics between two ECEF frames.

    Attitude increment:
        C_old_new = C_b_e(k)ᵀ · C_e_i(α_ie) · C_b_e(k-1),  α_ie = ω_ie·Δt
        α_ib_b    = rotation vector of C_old_new (exact above 2e-5 rad)
        ω_ib_b    = α_ib_b / Δt

    Specific force:
        f_ib_e = (v(k) - v(k-1))/Δt - g(r(k-1)) + 2 [ω_ie×] v(k-1)
        f_ib_b = C̄_b_e⁻¹ f_ib_e

    where C̄_b_e is the body-to-ECEF attitude averaged over the interval.

    Args:
        time_interval: Elapsed time between frames, seconds. Zero yields zero
                       kinematics.
        frame: Frame at the end of the interval.
        previous_frame: Frame at the start of the interval.

    Returns:
        BodyKinematics with specific force (m/s²) and angular rate (rad/s).

    Raises:
        ValueError: If time_interval is negative.

    Example:
        >>> from gyrocal.coords import llh_to_ecef
        >>> frame = ECEFFrame(llh_to_ecef(0.7, 0.2, 0.0))
        >>> k = estimate_kinematics(0.02, frame, frame)
        >>> np.linalg.norm(k.angular_rate)  # Earth rotation rate
    """
    if time_interval < 0.0:
        raise ValueError(f"time_interval must be non-negative, got {time_interval}")
    if time_interval == 0.0:
        return BodyKinematics()

    c_be = frame.c_body_to_ecef
    old_c_be = previous_frame.c_body_to_ecef

    alpha_ie = EARTH_ROTATION_RATE * time_interval
    c_earth = _earth_rotation(alpha_ie)

    c_old_new = c_be.T @ c_earth @ old_c_be

    alpha_ib_b = 0.5 * np.array(
        [
            c_old_new[1, 2] - c_old_new[2, 1],
            c_old_new[2, 0] - c_old_new[0, 2],
            c_old_new[0, 1] - c_old_new[1, 0],
        ]
    )

    cos_angle = np.clip(0.5 * (np.trace(c_old_new) - 1.0), -1.0, 1.0)
    angle = np.arccos(cos_angle)
    if angle > _SMALL_ANGLE_THRESHOLD:
        alpha_ib_b = alpha_ib_b * angle / np.sin(angle)

    angular_rate = alpha_ib_b / time_interval

    f_ib_e = (
        (frame.velocity - previous_frame.velocity) / time_interval
        - ecef_gravity(previous_frame.position)
        + 2.0 * np.cross(_OMEGA_IE, previous_frame.velocity)
    )

    mag_alpha = np.linalg.norm(alpha_ib_b)
    alpha_skew = skew_matrix(alpha_ib_b)
    if mag_alpha > _AVERAGING_THRESHOLD:
        mag_sq = mag_alpha**2
        ave_c_be = old_c_be @ (
            np.eye(3)
            + (1.0 - np.cos(mag_alpha)) / mag_sq * alpha_skew
            + (1.0 - np.sin(mag_alpha) / mag_alpha) / mag_sq * alpha_skew @ alpha_skew
        ) - 0.5 * skew_matrix(np.array([0.0, 0.0, alpha_ie])) @ old_c_be
    else:
        ave_c_be = old_c_be - 0.5 * skew_matrix(np.array([0.0, 0.0, alpha_ie])) @ old_c_be

    specific_force = np.linalg.solve(ave_c_be, f_ib_e)

    return BodyKinematics(specific_force=specific_force, angular_rate=angular_rate)
