"""Coordinate systems and rotations used to describe ground-truth frames.

This module provides:
- LLH (Latitude, Longitude, Height) to ECEF (Earth-Centered Earth-Fixed)
- NED (North-East-Down) attitudes resolved in ECEF
- Rotation representations (matrices, Euler angles, rotation vectors)
"""

from gyrocal.coords.rotations import (
    euler_to_rotation_matrix,
    is_rotation_matrix,
    rotation_vector_to_matrix,
    skew_matrix,
)
from gyrocal.coords.transforms import (
    llh_to_ecef,
    ned_attitude_to_ecef,
    ned_to_ecef_rotation,
)

__all__ = [
    # Transforms
    "llh_to_ecef",
    "ned_to_ecef_rotation",
    "ned_attitude_to_ecef",
    # Rotations
    "euler_to_rotation_matrix",
    "is_rotation_matrix",
    "rotation_vector_to_matrix",
    "skew_matrix",
]
