"""Rotation helpers for ground-truth attitudes.

Used by the kinematics estimator and the measurement generator. Attitude
matrices C map body-frame vectors into a reference frame (NED or ECEF),
v_ref = C @ v_body. Euler angles follow the roll-pitch-yaw 3-2-1 sequence.
Rotation vectors are axis * angle in radians.
"""

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

ORTHONORMALITY_THRESHOLD = 1e-6


def euler_to_rotation_matrix(
    roll: float,
    pitch: float,
    yaw: float,
) -> NDArray[np.float64]:
    """Body-to-NED attitude matrix from roll, pitch and yaw.

    Uses the aerospace 3-2-1 sequence: yaw about down, then pitch about the
    intermediate east axis, then roll about the body x-axis.

    Args:
        roll: φ, rad.
        pitch: θ, rad.
        yaw: ψ, rad.

    Returns:
        C_b^n, shape (3, 3), with v_ned = C_b^n @ v_body.

    Example:
        >>> C = euler_to_rotation_matrix(0.0, 0.0, np.pi / 2)
        >>> C @ np.array([1.0, 0.0, 0.0])  # body x points east
    """
    c_roll, s_roll = np.cos(roll), np.sin(roll)
    c_pitch, s_pitch = np.cos(pitch), np.sin(pitch)
    c_yaw, s_yaw = np.cos(yaw), np.sin(yaw)

    return np.array(
        [
            [
                c_yaw * c_pitch,
                c_yaw * s_pitch * s_roll - s_yaw * c_roll,
                c_yaw * s_pitch * c_roll + s_yaw * s_roll,
            ],
            [
                s_yaw * c_pitch,
                s_yaw * s_pitch * s_roll + c_yaw * c_roll,
                s_yaw * s_pitch * c_roll - c_yaw * s_roll,
            ],
            [-s_pitch, c_pitch * s_roll, c_pitch * c_roll],
        ],
        dtype=np.float64,
    )


def skew_matrix(v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the skew-symmetric matrix [v×] such that [v×] @ u = v × u.

    Args:
        v: 3-vector.

    Returns:
        3x3 skew-symmetric matrix.

    Raises:
        ValueError: If v does not have 3 elements.
    """
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"Expected 3-vector, got shape {v.shape}")

    return np.array(
        [
            [0.0, -v[2], v[1]],
            [v[2], 0.0, -v[0]],
            [-v[1], v[0], 0.0],
        ],
        dtype=np.float64,
    )


def rotation_vector_to_matrix(rotvec: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert a rotation vector (axis * angle, radians) to a rotation matrix.

    This is the SO(3) exponential map, exp([rotvec×]).

    Args:
        rotvec: Rotation vector, shape (3,).

    Returns:
        3x3 rotation matrix.
    """
    rotvec = np.asarray(rotvec, dtype=np.float64)
    if rotvec.shape != (3,):
        raise ValueError(f"Expected 3-vector, got shape {rotvec.shape}")
    return Rotation.from_rotvec(rotvec).as_matrix()


def is_rotation_matrix(
    R: NDArray[np.float64],
    threshold: float = ORTHONORMALITY_THRESHOLD,
) -> bool:
    """Check whether R is orthonormal with determinant +1 within threshold."""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        return False
    orthogonality_error = np.max(np.abs(R.T @ R - np.eye(3)))
    return bool(
        orthogonality_error <= threshold and abs(np.linalg.det(R) - 1.0) <= threshold
    )
