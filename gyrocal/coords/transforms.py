"""Geodetic (LLH) and local NED to ECEF transformations.

These helpers place a sensor at a geodetic location and express a local
North-East-Down attitude as a body-to-ECEF coordinate transformation, which
is how calibration measurements describe their ground-truth frames.
"""

import numpy as np
from numpy.typing import NDArray

WGS84_A = 6378137.0  # equatorial radius, m
WGS84_F = 1.0 / 298.257223563
WGS84_B = WGS84_A * (1.0 - WGS84_F)  # polar radius, m
WGS84_E2 = WGS84_F * (2.0 - WGS84_F)


def llh_to_ecef(
    lat: float,
    lon: float,
    height: float,
) -> NDArray[np.float64]:
    """Cartesian ECEF position of a point given in WGS84 geodetic coordinates.

    Args:
        lat: Geodetic latitude, rad.
        lon: Longitude, rad.
        height: Ellipsoidal height, m.

    Returns:
        Position r_eb^e, m. Shape: (3,).

    Example:
        >>> r = llh_to_ecef(np.deg2rad(41.38), np.deg2rad(2.17), 100.0)
    """
    s_lat = np.sin(lat)
    c_lat = np.cos(lat)
    # Transverse radius of curvature
    r_e = WGS84_A / np.sqrt(1.0 - WGS84_E2 * s_lat**2)

    return np.array(
        [
            (r_e + height) * c_lat * np.cos(lon),
            (r_e + height) * c_lat * np.sin(lon),
            ((1.0 - WGS84_E2) * r_e + height) * s_lat,
        ],
        dtype=np.float64,
    )


def ned_to_ecef_rotation(lat: float, lon: float) -> NDArray[np.float64]:
    """Rotation matrix from the local NED frame to ECEF at (lat, lon).

    Columns are the North, East and Down unit vectors resolved in ECEF.

    Args:
        lat: Latitude in radians.
        lon: Longitude in radians.

    Returns:
        3x3 matrix C_n_e such that v_ecef = C_n_e @ v_ned.
    """
    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    sin_lon = np.sin(lon)
    cos_lon = np.cos(lon)

    return np.array(
        [
            [-sin_lat * cos_lon, -sin_lon, -cos_lat * cos_lon],
            [-sin_lat * sin_lon, cos_lon, -cos_lat * sin_lon],
            [cos_lat, 0.0, -sin_lat],
        ],
        dtype=np.float64,
    )


def ned_attitude_to_ecef(
    lat: float,
    lon: float,
    c_body_to_ned: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Express a body-to-NED attitude as a body-to-ECEF transformation.

    Args:
        lat: Latitude in radians.
        lon: Longitude in radians.
        c_body_to_ned: 3x3 body-to-NED rotation matrix.

    Returns:
        3x3 body-to-ECEF rotation matrix C_b_e = C_n_e @ C_b_n.

    Raises:
        ValueError: If c_body_to_ned is not 3x3.
    """
    c_body_to_ned = np.asarray(c_body_to_ned, dtype=np.float64)
    if c_body_to_ned.shape != (3, 3):
        raise ValueError(f"c_body_to_ned must be (3, 3), got {c_body_to_ned.shape}")

    return ned_to_ecef_rotation(lat, lon) @ c_body_to_ned
