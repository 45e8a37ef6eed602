"""
Data structures for gyroscope calibration measurements.

This module defines the value types shared by the kinematics estimator, the
measurement generator and the calibrator:
    - Triad / AngularSpeedTriad: three components of one physical quantity
    - BodyKinematics: specific force and angular rate resolved in body axes
    - ECEFFrame: position, velocity and attitude of the body in ECEF
    - FrameBodyKinematics: one calibration measurement, i.e. measured body
      kinematics together with the ground-truth frames they were sensed in
      and the noise standard deviations used to weight them

All structures are frozen dataclasses holding NumPy arrays. Nothing in the
calibration engine mutates a measurement; it only reads it.

Frame Conventions:
    - b: Body frame (sensor frame)
    - e: ECEF frame (Earth-Centered Earth-Fixed)
    - c_body_to_ecef maps body vectors into ECEF, v_e = C_b_e @ v_b
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from gyrocal.coords.rotations import ORTHONORMALITY_THRESHOLD, is_rotation_matrix
from gyrocal.sensors.units import AngularSpeed, AngularSpeedUnit, convert_angular_speed


def _as_vector3(name: str, value: Any) -> np.ndarray:
    """Validate and copy a 3-vector, accepting (3,) arrays or (3, 1) columns."""
    arr = np.array(value, dtype=np.float64)
    if arr.shape == (3, 1):
        arr = arr.reshape(3)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have shape (3,) or (3, 1), got {arr.shape}")
    return arr


# ============================================================================
# Triads
# ============================================================================

@dataclass(frozen=True)
class Triad:
    """
    Three related scalar components (x, y, z) of a quantity in one unit.

    Attributes:
        x: Component along body x axis.
        y: Component along body y axis.
        z: Component along body z axis.
        unit: Unit shared by all three components.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    unit: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "z", float(self.z))

    def as_array(self) -> np.ndarray:
        """Return components as an array of shape (3,)."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def as_matrix(self) -> np.ndarray:
        """Return components as a column matrix of shape (3, 1)."""
        return self.as_array().reshape(3, 1)

    @property
    def norm(self) -> float:
        return float(np.linalg.norm(self.as_array()))

    def equals(self, other: "Triad", tol: float = 0.0) -> bool:
        """Component-wise comparison within an absolute tolerance."""
        if other.unit != self.unit:
            return False
        return bool(np.all(np.abs(self.as_array() - other.as_array()) <= tol))


@dataclass(frozen=True)
class AngularSpeedTriad(Triad):
    """
    Triad of angular speeds, e.g. a gyroscope bias or reading.

    Attributes:
        unit: AngularSpeedUnit of the components. Default: rad/s.

    Example:
        >>> bias = AngularSpeedTriad(-9.0, 13.0, -8.0, AngularSpeedUnit.DEGREES_PER_HOUR)
        >>> bias.to_rad_per_sec()
        array([-4.36332313e-05,  6.30257785e-05, -3.87850945e-05])
    """

    unit: AngularSpeedUnit = AngularSpeedUnit.RADIANS_PER_SECOND

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.unit, AngularSpeedUnit):
            raise ValueError(f"Unknown angular speed unit: {self.unit!r}")

    @classmethod
    def from_array(
        cls,
        values: Any,
        unit: AngularSpeedUnit = AngularSpeedUnit.RADIANS_PER_SECOND,
    ) -> "AngularSpeedTriad":
        """Build a triad from a (3,) array or (3, 1) column matrix."""
        x, y, z = _as_vector3("values", values)
        return cls(x, y, z, unit)

    def convert(self, unit: AngularSpeedUnit) -> "AngularSpeedTriad":
        """Return an equivalent triad expressed in unit."""
        values = convert_angular_speed(self.as_array(), self.unit, unit)
        return AngularSpeedTriad.from_array(values, unit)

    def to_rad_per_sec(self) -> np.ndarray:
        """Return components in rad/s as an array of shape (3,)."""
        return np.asarray(
            convert_angular_speed(
                self.as_array(), self.unit, AngularSpeedUnit.RADIANS_PER_SECOND
            ),
            dtype=np.float64,
        )

    def get_measurement_x(self) -> AngularSpeed:
        return AngularSpeed(self.x, self.unit)

    def get_measurement_y(self) -> AngularSpeed:
        return AngularSpeed(self.y, self.unit)

    def get_measurement_z(self) -> AngularSpeed:
        return AngularSpeed(self.z, self.unit)

    def equals(self, other: "Triad", tol: float = 0.0) -> bool:
        """Compare in rad/s so that triads in different units can be equal."""
        if not isinstance(other, AngularSpeedTriad):
            return False
        return bool(np.all(np.abs(self.to_rad_per_sec() - other.to_rad_per_sec()) <= tol))


# ============================================================================
# Kinematics and frames
# ============================================================================

@dataclass(frozen=True)
class BodyKinematics:
    """
    Specific force and angular rate resolved about body axes.

    Attributes:
        specific_force: Specific force f_ib_b [fx, fy, fz] in m/s². Shape: (3,).
        angular_rate: Angular rate ω_ib_b [wx, wy, wz] in rad/s. Shape: (3,).
    """

    specific_force: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_rate: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "specific_force", _as_vector3("specific_force", self.specific_force)
        )
        object.__setattr__(
            self, "angular_rate", _as_vector3("angular_rate", self.angular_rate)
        )

    @property
    def angular_rate_triad(self) -> AngularSpeedTriad:
        return AngularSpeedTriad.from_array(self.angular_rate)


@dataclass(frozen=True)
class ECEFFrame:
    """
    Position, velocity and attitude of a body resolved in ECEF.

    Attributes:
        position: ECEF position r_eb_e in meters. Shape: (3,).
        velocity: ECEF velocity v_eb_e in m/s. Shape: (3,). Default: zeros.
        c_body_to_ecef: Body-to-ECEF coordinate transformation C_b_e.
                        Shape: (3, 3). Default: identity.

    Notes:
        A c_body_to_ecef that is not orthonormal within 1e-6 is accepted but
        triggers a UserWarning, since derived kinematics will be biased.
    """

    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    c_body_to_ecef: np.ndarray = field(default_factory=lambda: np.eye(3))

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _as_vector3("position", self.position))
        object.__setattr__(self, "velocity", _as_vector3("velocity", self.velocity))

        c = np.array(self.c_body_to_ecef, dtype=np.float64)
        if c.shape != (3, 3):
            raise ValueError(f"c_body_to_ecef must be (3, 3), got {c.shape}")
        if not is_rotation_matrix(c, ORTHONORMALITY_THRESHOLD):
            warnings.warn(
                "c_body_to_ecef is not a valid rotation matrix "
                f"(threshold {ORTHONORMALITY_THRESHOLD})",
                UserWarning,
            )
        object.__setattr__(self, "c_body_to_ecef", c)


@dataclass(frozen=True)
class FrameBodyKinematics:
    """
    One calibration measurement.

    Bundles the body kinematics reported by the sensor with the ground-truth
    frames at the start and end of the sampling interval, from which the
    true kinematics are derived, and the per-axis noise standard deviations
    used as fit weights.

    Attributes:
        kinematics: Measured body kinematics (raw sensor output).
        frame: Ground-truth ECEF frame at the end of the interval.
        previous_frame: Ground-truth ECEF frame at the start of the interval.
                        Defaults to frame (static measurement).
        time_interval: Elapsed time between both frames, seconds (>= 0).
        specific_force_standard_deviation: Accelerometer noise std, m/s² (> 0).
        angular_rate_standard_deviation: Gyroscope noise std, rad/s (> 0).

    Example:
        >>> from gyrocal.coords import llh_to_ecef
        >>> frame = ECEFFrame(llh_to_ecef(0.7, 0.2, 0.0))
        >>> m = FrameBodyKinematics(BodyKinematics(), frame, time_interval=0.02)
        >>> truth = m.expected_kinematics()
    """

    kinematics: BodyKinematics
    frame: ECEFFrame
    previous_frame: Optional[ECEFFrame] = None
    time_interval: float = 0.0
    specific_force_standard_deviation: float = 1.0
    angular_rate_standard_deviation: float = 1.0

    def __post_init__(self) -> None:
        if self.previous_frame is None:
            object.__setattr__(self, "previous_frame", self.frame)

        if self.time_interval < 0.0:
            raise ValueError(
                f"time_interval must be non-negative, got {self.time_interval}"
            )
        if self.specific_force_standard_deviation <= 0.0:
            raise ValueError(
                "specific_force_standard_deviation must be positive, "
                f"got {self.specific_force_standard_deviation}"
            )
        if self.angular_rate_standard_deviation <= 0.0:
            raise ValueError(
                "angular_rate_standard_deviation must be positive, "
                f"got {self.angular_rate_standard_deviation}"
            )
        object.__setattr__(self, "time_interval", float(self.time_interval))

    def expected_kinematics(self) -> BodyKinematics:
        """True body kinematics implied by the ground-truth frame pair."""
        from gyrocal.sensors.kinematics import estimate_kinematics

        return estimate_kinematics(self.time_interval, self.frame, self.previous_frame)
