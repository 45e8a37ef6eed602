"""
Earth gravity models used to derive true specific force.

Two models are provided:
    - normal_gravity_magnitude: WGS-84 latitude-dependent gravity magnitude
      at the ellipsoid surface, used as a quick sanity reference.
    - ecef_gravity: full gravity vector (J2 gravitation plus centrifugal
      term) resolved in ECEF, used by the kinematics estimator.

A static sensor senses the negative of local gravity as specific force, so
the gravity vector is what couples into a gyroscope through its
g-sensitivity matrix during calibration.
"""

import numpy as np

from gyrocal.coords.transforms import WGS84_A

# WGS-84 Earth model constants
EARTH_ROTATION_RATE = 7.292115e-5  # rad/s
EARTH_GRAVITATIONAL_CONSTANT = 3.986004418e14  # m³/s²
EARTH_SECOND_GRAVITATIONAL_CONSTANT = 1.082627e-3  # J2, unitless


def normal_gravity_magnitude(lat_rad: float) -> float:
    """
    Compute gravity magnitude at the ellipsoid surface using WGS-84.

        g(φ) = 9.7803 * (1 + 0.0053024·sin²(φ) - 0.000005·sin²(2φ))

    where φ is geodetic latitude in radians.

    Physical Interpretation:
        - Equator (φ=0°):   g ≈ 9.780 m/s² (strongest centrifugal effect)
        - 45° latitude:     g ≈ 9.806 m/s²
        - Poles (φ=±90°):   g ≈ 9.832 m/s² (no centrifugal effect)

    Args:
        lat_rad: Geodetic latitude in radians, range [-π/2, +π/2].

    Returns:
        Gravity magnitude g in m/s².
    """
    sin_lat = np.sin(lat_rad)
    sin_lat_sq = sin_lat * sin_lat
    sin_2lat = np.sin(2.0 * lat_rad)
    sin_2lat_sq = sin_2lat * sin_2lat

    g = 9.7803 * (1.0 + 0.0053024 * sin_lat_sq - 0.000005 * sin_2lat_sq)

    return g


def ecef_gravity(position: np.ndarray) -> np.ndarray:
    """
    Compute the acceleration due to gravity resolved about ECEF axes.

    Gravity is gravitation (point mass plus J2 oblateness term) plus the
    centrifugal acceleration caused by Earth rotation:

        γ = -μ/|r|³ (r + 3/2 J2 (R0/|r|)² [(1 - 5 z²/|r|²) x,
                                             (1 - 5 z²/|r|²) y,
                                             (3 - 5 z²/|r|²) z])
        g = γ + ω_ie² [x, y, 0]

    Args:
        position: ECEF position [x, y, z] in meters. Shape: (3,).

    Returns:
        Gravity vector in ECEF, shape (3,), m/s². Zero at the Earth centre.

    Raises:
        ValueError: If position does not have shape (3,).

    Example:
        >>> from gyrocal.coords import llh_to_ecef
        >>> g = ecef_gravity(llh_to_ecef(0.0, 0.0, 0.0))
        >>> print(f"{np.linalg.norm(g):.4f} m/s²")
        9.7803 m/s²
    """
    position = np.asarray(position, dtype=np.float64)
    if position.shape != (3,):
        raise ValueError(f"position must be (3,), got {position.shape}")

    mag_r = np.linalg.norm(position)
    if mag_r == 0.0:
        return np.zeros(3)

    x, y, z = position
    z_scale = 5.0 * (z / mag_r) ** 2
    j2_factor = 1.5 * EARTH_SECOND_GRAVITATIONAL_CONSTANT * (WGS84_A / mag_r) ** 2

    gamma = (
        -EARTH_GRAVITATIONAL_CONSTANT
        / mag_r**3
        * (
            position
            + j2_factor
            * np.array([(1.0 - z_scale) * x, (1.0 - z_scale) * y, (3.0 - z_scale) * z])
        )
    )

    centrifugal = EARTH_ROTATION_RATE**2 * np.array([x, y, 0.0])

    return gamma + centrifugal
