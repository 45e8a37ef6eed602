"""
Gyroscope calibration.

Modules:
    parameterization: (Mg, Gg) <-> parameter vector mapping and covariance
                      expansion to the full 18-parameter order
    gyroscope_model: Forward model and Jacobian for one measurement
    gyroscope: KnownBiasAndFrameGyroscopeCalibrator and CalibratorListener
    exceptions: Calibrator error types
"""

from gyrocal.calibration.exceptions import (
    CalibrationError,
    CalibratorError,
    LockedError,
    NotReadyError,
)
from gyrocal.calibration.gyroscope import (
    MINIMUM_MEASUREMENTS,
    CalibratorListener,
    KnownBiasAndFrameGyroscopeCalibrator,
)
from gyrocal.calibration.gyroscope_model import GyroscopeErrorModel
from gyrocal.calibration.parameterization import (
    COMMON_AXIS_PARAMETER_COUNT,
    GENERAL_PARAMETER_COUNT,
    PARAMETER_NAMES,
    decode,
    encode,
    expand_covariance,
    parameter_count,
)

__all__ = [
    # Calibrator
    "KnownBiasAndFrameGyroscopeCalibrator",
    "CalibratorListener",
    "MINIMUM_MEASUREMENTS",
    # Model
    "GyroscopeErrorModel",
    # Parameterization
    "GENERAL_PARAMETER_COUNT",
    "COMMON_AXIS_PARAMETER_COUNT",
    "PARAMETER_NAMES",
    "parameter_count",
    "encode",
    "decode",
    "expand_covariance",
    # Errors
    "CalibratorError",
    "LockedError",
    "NotReadyError",
    "CalibrationError",
]
