"""
Sensor models used by gyroscope calibration.

Modules:
    units: Angular speed units, AngularSpeed and explicit conversion helpers
    types: Triads, body kinematics, ECEF frames and calibration measurements
    gravity: WGS-84 normal gravity and ECEF gravity (J2 + centrifugal)
    kinematics: True body kinematics from a pair of ECEF frames
    imu_models: Gyroscope error model and its inverse (angular-rate fixer)

Example:
    >>> from gyrocal.sensors import (
    ...     AngularSpeedTriad, AngularSpeedUnit, ECEFFrame,
    ...     estimate_kinematics,
    ... )
    >>> from gyrocal.coords import llh_to_ecef
    >>> frame = ECEFFrame(llh_to_ecef(0.7, 0.2, 0.0))
    >>> truth = estimate_kinematics(0.02, frame, frame)
"""

from gyrocal.sensors.gravity import (
    EARTH_ROTATION_RATE,
    ecef_gravity,
    normal_gravity_magnitude,
)
from gyrocal.sensors.imu_models import fix_angular_rate, measured_angular_rate
from gyrocal.sensors.kinematics import estimate_kinematics
from gyrocal.sensors.types import (
    AngularSpeedTriad,
    BodyKinematics,
    ECEFFrame,
    FrameBodyKinematics,
    Triad,
)
from gyrocal.sensors.units import (
    AngularSpeed,
    AngularSpeedUnit,
    convert_angular_speed,
    deg_per_hour_to_rad_per_sec,
    deg_per_sec_to_rad_per_sec,
    rad_per_hour_to_rad_per_sec,
    rad_per_sec_to_deg_per_hour,
    rad_per_sec_to_deg_per_sec,
    rad_per_sec_to_rad_per_hour,
    to_rad_per_sec,
)

__all__ = [
    # Units
    "AngularSpeed",
    "AngularSpeedUnit",
    "convert_angular_speed",
    "deg_per_hour_to_rad_per_sec",
    "deg_per_sec_to_rad_per_sec",
    "rad_per_hour_to_rad_per_sec",
    "rad_per_sec_to_deg_per_hour",
    "rad_per_sec_to_deg_per_sec",
    "rad_per_sec_to_rad_per_hour",
    "to_rad_per_sec",
    # Types
    "Triad",
    "AngularSpeedTriad",
    "BodyKinematics",
    "ECEFFrame",
    "FrameBodyKinematics",
    # Gravity
    "EARTH_ROTATION_RATE",
    "ecef_gravity",
    "normal_gravity_magnitude",
    # Kinematics
    "estimate_kinematics",
    # Error model
    "measured_angular_rate",
    "fix_angular_rate",
]
