"""
Estimators used to fit sensor error models.

Available estimators:
    - Nonlinear Least Squares (Levenberg-Marquardt), for whole-vector models
      and for per-sample multivariate models
"""

from gyrocal.estimators.nonlinear_least_squares import (
    FittingError,
    LevenbergMarquardtOptions,
    NonlinearLSResult,
    fit_multivariate,
    levenberg_marquardt,
)

__all__ = [
    "levenberg_marquardt",
    "fit_multivariate",
    "LevenbergMarquardtOptions",
    "NonlinearLSResult",
    "FittingError",
]
