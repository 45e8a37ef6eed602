"""
Simulation utilities for generating synthetic gyroscope calibration data.

Modules:
    measurements: Random rate-table measurements produced from a known
                  gyroscope error model
"""

from gyrocal.sim.measurements import generate_measurements, random_ecef_frame

__all__ = [
    "generate_measurements",
    "random_ecef_frame",
]
