"""Errors raised by the gyroscope calibrators."""


class CalibratorError(Exception):
    """Base class for calibrator errors."""


class LockedError(CalibratorError):
    """Raised when a calibrator is modified or re-run while it is running."""


class NotReadyError(CalibratorError):
    """Raised when calibrate() is called without enough measurements."""


class CalibrationError(CalibratorError):
    """Raised when the error-model fit fails numerically."""
