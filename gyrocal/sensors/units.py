"""
Angular speed units and unit-aware values for gyroscope calibration.

Conversion functions name both their input and output unit. Gyroscope
biases are usually quoted in deg/h and turntable rates in deg/s; both are
converted to rad/s before fitting.

On top of the plain functions, AngularSpeed wraps a single value together
with its AngularSpeedUnit. The calibrator stores every angular quantity in
rad/s and only uses AngularSpeed as an alternate view.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

import numpy as np

Numeric = Union[float, np.ndarray]


# ============================================================================
# Gyroscope Unit Conversions
# ============================================================================

def deg_per_hour_to_rad_per_sec(deg_per_hr: Numeric) -> Numeric:
    """
    Convert gyroscope bias from deg/h to rad/s.

    Args:
        deg_per_hr: Bias in degrees per hour.

    Returns:
        Bias in radians per second.

    Example:
        >>> bias_rad_s = deg_per_hour_to_rad_per_sec(-9.0)
        >>> print(f"{bias_rad_s:.4e} rad/s")
        -4.3633e-05 rad/s
    """
    return np.deg2rad(deg_per_hr) / 3600.0


def deg_per_sec_to_rad_per_sec(deg_per_s: Numeric) -> Numeric:
    """Convert a turntable rate from deg/s to rad/s."""
    return np.deg2rad(deg_per_s)


def rad_per_hour_to_rad_per_sec(rad_per_hr: Numeric) -> Numeric:
    """Convert angular rate from rad/hr to rad/s."""
    return rad_per_hr / 3600.0


# ============================================================================
# Reverse Conversions
# ============================================================================

def rad_per_sec_to_deg_per_hour(rad_per_s: Numeric) -> Numeric:
    """Convert gyroscope bias from rad/s to deg/h, for display."""
    return np.rad2deg(rad_per_s) * 3600.0


def rad_per_sec_to_deg_per_sec(rad_per_s: Numeric) -> Numeric:
    """Convert angular velocity from rad/s to deg/s."""
    return np.rad2deg(rad_per_s)


def rad_per_sec_to_rad_per_hour(rad_per_s: Numeric) -> Numeric:
    """Convert angular rate from rad/s to rad/hr."""
    return rad_per_s * 3600.0


# ============================================================================
# Unit-aware angular speed
# ============================================================================

class AngularSpeedUnit(Enum):
    """Angular speed units supported by AngularSpeed and AngularSpeedTriad."""

    RADIANS_PER_SECOND = "rad/s"
    DEGREES_PER_SECOND = "deg/s"
    RADIANS_PER_HOUR = "rad/h"
    DEGREES_PER_HOUR = "deg/h"


_TO_RAD_PER_SEC = {
    AngularSpeedUnit.RADIANS_PER_SECOND: lambda v: v,
    AngularSpeedUnit.DEGREES_PER_SECOND: deg_per_sec_to_rad_per_sec,
    AngularSpeedUnit.RADIANS_PER_HOUR: rad_per_hour_to_rad_per_sec,
    AngularSpeedUnit.DEGREES_PER_HOUR: deg_per_hour_to_rad_per_sec,
}

_FROM_RAD_PER_SEC = {
    AngularSpeedUnit.RADIANS_PER_SECOND: lambda v: v,
    AngularSpeedUnit.DEGREES_PER_SECOND: rad_per_sec_to_deg_per_sec,
    AngularSpeedUnit.RADIANS_PER_HOUR: rad_per_sec_to_rad_per_hour,
    AngularSpeedUnit.DEGREES_PER_HOUR: rad_per_sec_to_deg_per_hour,
}


def convert_angular_speed(
    value: Numeric,
    from_unit: AngularSpeedUnit,
    to_unit: AngularSpeedUnit,
) -> Numeric:
    """
    Convert an angular speed between any two supported units.

    Conversions go through rad/s, so converting to the same unit returns the
    input unchanged.

    Args:
        value: Scalar or array of angular speeds expressed in from_unit.
        from_unit: Unit of value.
        to_unit: Requested unit.

    Returns:
        value expressed in to_unit.

    Raises:
        ValueError: If either unit is not an AngularSpeedUnit.
    """
    if not isinstance(from_unit, AngularSpeedUnit):
        raise ValueError(f"Unknown angular speed unit: {from_unit!r}")
    if not isinstance(to_unit, AngularSpeedUnit):
        raise ValueError(f"Unknown angular speed unit: {to_unit!r}")

    if from_unit is to_unit:
        return value

    return _FROM_RAD_PER_SEC[to_unit](_TO_RAD_PER_SEC[from_unit](value))


@dataclass(frozen=True)
class AngularSpeed:
    """
    A single angular speed value with its unit.

    Attributes:
        value: Numeric value expressed in unit.
        unit: Unit of value. Default: rad/s.

    Example:
        >>> bias_x = AngularSpeed(-9.0, AngularSpeedUnit.DEGREES_PER_HOUR)
        >>> bias_x.to_rad_per_sec()
        -4.363323129985824e-05
    """

    value: float
    unit: AngularSpeedUnit = AngularSpeedUnit.RADIANS_PER_SECOND

    def __post_init__(self) -> None:
        if not isinstance(self.unit, AngularSpeedUnit):
            raise ValueError(f"Unknown angular speed unit: {self.unit!r}")
        object.__setattr__(self, "value", float(self.value))

    def to(self, unit: AngularSpeedUnit) -> "AngularSpeed":
        """Return an equivalent AngularSpeed expressed in unit."""
        return AngularSpeed(convert_angular_speed(self.value, self.unit, unit), unit)

    def to_rad_per_sec(self) -> float:
        """Return the value in rad/s as a plain float."""
        return float(
            convert_angular_speed(
                self.value, self.unit, AngularSpeedUnit.RADIANS_PER_SECOND
            )
        )

    def equals(self, other: "AngularSpeed", tol: float = 0.0) -> bool:
        """Compare two angular speeds in rad/s within an absolute tolerance."""
        return abs(self.to_rad_per_sec() - other.to_rad_per_sec()) <= tol


def to_rad_per_sec(value: Union[float, AngularSpeed]) -> float:
    """Return value in rad/s, accepting either a plain float or an AngularSpeed."""
    if isinstance(value, AngularSpeed):
        return value.to_rad_per_sec()
    return float(value)

