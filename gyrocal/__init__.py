"""
gyrocal: nonlinear least-squares calibration of tri-axial gyroscopes.

Subpackages:
    coords: Rotations and geodetic / NED to ECEF transforms
    sensors: Units, measurement types, gravity, kinematics, error model
    estimators: Levenberg-Marquardt nonlinear least squares
    calibration: Known-bias, known-frame gyroscope calibrator
    sim: Synthetic calibration measurements
"""

__version__ = "0.1.0"
