"""
Known-bias, known-frame gyroscope calibration.

Estimates the scale factor and cross-coupling matrix Mg and the
g-sensitivity matrix Gg of a tri-axial gyroscope from measurements taken in
known ECEF frames, when the gyroscope bias is already known:

    ω̃ = b + (I + Mg) ω + Gg f

The true angular rate ω and specific force f of every measurement are
derived from its ground-truth frames; the fit is weighted by each
measurement's angular-rate standard deviation and solved with
Levenberg-Marquardt.

With a common axis (common_axis_used=True) the cross-couplings myx, mzx and
mzy are assumed to be zero and only 15 parameters are fitted; otherwise 18.

Lifecycle:
    not ready ──(enough measurements)──> ready ──calibrate()──> running
    running ──(success or CalibrationError)──> ready

While running, every setter and calibrate() itself raise LockedError.

Example:
    >>> from gyrocal.sim import generate_measurements
    >>> measurements = generate_measurements(bias, mg, gg, count=20, seed=1)
    >>> calibrator = KnownBiasAndFrameGyroscopeCalibrator(
    ...     measurements=measurements, bias=bias)
    >>> calibrator.calibrate()
    >>> calibrator.estimated_mg
"""

import logging
from typing import Any, Optional, Sequence, Union

import numpy as np

from gyrocal.calibration.exceptions import (
    CalibrationError,
    LockedError,
    NotReadyError,
)
from gyrocal.calibration.gyroscope_model import GyroscopeErrorModel
from gyrocal.calibration.parameterization import (
    decode,
    encode,
    expand_covariance,
    parameter_count,
)
from gyrocal.estimators.nonlinear_least_squares import (
    FittingError,
    LevenbergMarquardtOptions,
    fit_multivariate,
)
from gyrocal.sensors.types import AngularSpeedTriad, FrameBodyKinematics
from gyrocal.sensors.units import AngularSpeed, AngularSpeedUnit, to_rad_per_sec

logger = logging.getLogger(__name__)

# Six measurements give 18 equations, the general-mode unknown count.
MINIMUM_MEASUREMENTS = 6

BiasLike = Union[Sequence[float], np.ndarray, AngularSpeedTriad]
ScalarLike = Union[float, AngularSpeed]


class CalibratorListener:
    """
    Observer notified when a calibration starts and ends.

    Both callbacks run synchronously on the thread calling calibrate() and
    receive the calibrator, which may be queried but not modified. Override
    only the callbacks you need.
    """

    def on_calibrate_start(self, calibrator: "KnownBiasAndFrameGyroscopeCalibrator") -> None:
        pass

    def on_calibrate_end(self, calibrator: "KnownBiasAndFrameGyroscopeCalibrator") -> None:
        pass


def _as_bias_vector(value: Any) -> np.ndarray:
    """Bias in rad/s from a triad, a (3,) array or a (3, 1) column matrix."""
    if isinstance(value, AngularSpeedTriad):
        return value.to_rad_per_sec()
    arr = np.array(value, dtype=np.float64)
    if arr.shape == (3, 1):
        arr = arr.reshape(3)
    if arr.shape != (3,):
        raise ValueError(f"bias must have shape (3,) or (3, 1), got {arr.shape}")
    return arr


def _as_matrix3(name: str, value: Any) -> np.ndarray:
    arr = np.array(value, dtype=np.float64)
    if arr.shape != (3, 3):
        raise ValueError(f"{name} must be (3, 3), got {arr.shape}")
    return arr


def _initial_mg_element(row: int, col: int, doc: str) -> property:
    def fget(self) -> float:
        return float(self._initial_mg[row, col])

    def fset(self, value: float) -> None:
        self._check_not_running()
        self._initial_mg[row, col] = float(value)

    return property(fget, fset, doc=doc)


def _estimated_mg_element(row: int, col: int, doc: str) -> property:
    def fget(self) -> Optional[float]:
        if self._estimated_mg is None:
            return None
        return float(self._estimated_mg[row, col])

    return property(fget, doc=doc)


def _bias_element(index: int, axis: str) -> property:
    def fget(self) -> float:
        return float(self._bias[index])

    def fset(self, value: ScalarLike) -> None:
        self._check_not_running()
        self._bias[index] = to_rad_per_sec(value)

    return property(fget, fset, doc=f"Known {axis}-axis bias, rad/s.")


class KnownBiasAndFrameGyroscopeCalibrator:
    """
    Nonlinear least-squares gyroscope calibrator with known bias.

    Every field is optional and keyword-only; defaults are no measurements,
    general (18-parameter) mode, zero bias and zero initial Mg and Gg.

    Args:
        measurements: Sequence of FrameBodyKinematics. Referenced, not copied.
        common_axis_used: Constrain myx, mzx and mzy to zero.
        bias: Known bias in rad/s as (3,) array, (3, 1) matrix or
              AngularSpeedTriad in any unit.
        initial_mg: Initial guess of Mg. Shape: (3, 3).
        initial_gg: Initial guess of Gg. Shape: (3, 3).
        listener: CalibratorListener notified on start and end.
        fitter_options: LevenbergMarquardtOptions for the fit.

    Raises:
        ValueError: If any array argument has the wrong shape.
    """

    MINIMUM_MEASUREMENTS = MINIMUM_MEASUREMENTS

    def __init__(
        self,
        *,
        measurements: Optional[Sequence[FrameBodyKinematics]] = None,
        common_axis_used: bool = False,
        bias: Optional[BiasLike] = None,
        initial_mg: Optional[np.ndarray] = None,
        initial_gg: Optional[np.ndarray] = None,
        listener: Optional[CalibratorListener] = None,
        fitter_options: Optional[LevenbergMarquardtOptions] = None,
    ) -> None:
        self._running = False

        self._measurements = measurements
        self._common_axis_used = bool(common_axis_used)
        self._bias = np.zeros(3) if bias is None else _as_bias_vector(bias)
        self._initial_mg = (
            np.zeros((3, 3)) if initial_mg is None else _as_matrix3("initial_mg", initial_mg)
        )
        self._initial_gg = (
            np.zeros((3, 3)) if initial_gg is None else _as_matrix3("initial_gg", initial_gg)
        )
        self._listener = listener
        self._fitter_options = (
            LevenbergMarquardtOptions() if fitter_options is None else fitter_options
        )
        if not isinstance(self._fitter_options, LevenbergMarquardtOptions):
            raise ValueError(
                f"fitter_options must be LevenbergMarquardtOptions, "
                f"got {type(fitter_options).__name__}"
            )

        self._estimated_mg: Optional[np.ndarray] = None
        self._estimated_gg: Optional[np.ndarray] = None
        self._estimated_covariance: Optional[np.ndarray] = None
        self._estimated_chi_sq: Optional[float] = None
        self._estimated_mse: Optional[float] = None

    def _check_not_running(self) -> None:
        if self._running:
            raise LockedError("calibrator is running")

    # ========================================================================
    # Bias
    # ========================================================================

    bias_x = _bias_element(0, "x")
    bias_y = _bias_element(1, "y")
    bias_z = _bias_element(2, "z")

    def get_bias_angular_speed_x(self) -> AngularSpeed:
        return AngularSpeed(self._bias[0], AngularSpeedUnit.RADIANS_PER_SECOND)

    def get_bias_angular_speed_y(self) -> AngularSpeed:
        return AngularSpeed(self._bias[1], AngularSpeedUnit.RADIANS_PER_SECOND)

    def get_bias_angular_speed_z(self) -> AngularSpeed:
        return AngularSpeed(self._bias[2], AngularSpeedUnit.RADIANS_PER_SECOND)

    def set_bias_x(self, value: ScalarLike) -> None:
        self.bias_x = value

    def set_bias_y(self, value: ScalarLike) -> None:
        self.bias_y = value

    def set_bias_z(self, value: ScalarLike) -> None:
        self.bias_z = value

    def set_bias_coordinates(self, x: ScalarLike, y: ScalarLike, z: ScalarLike) -> None:
        """Set all three bias components, as floats in rad/s or AngularSpeeds."""
        self._check_not_running()
        values = np.array([to_rad_per_sec(x), to_rad_per_sec(y), to_rad_per_sec(z)])
        self._bias = values

    @property
    def bias(self) -> np.ndarray:
        """Known bias as an array of shape (3,), rad/s."""
        return self._bias.copy()

    @bias.setter
    def bias(self, value: BiasLike) -> None:
        self.set_bias(value)

    def set_bias(self, value: BiasLike) -> None:
        """Set bias from a (3,) array, a (3, 1) matrix or an AngularSpeedTriad."""
        self._check_not_running()
        self._bias = _as_bias_vector(value)

    @property
    def bias_as_matrix(self) -> np.ndarray:
        """Known bias as a column matrix of shape (3, 1), rad/s."""
        return self._bias.reshape(3, 1).copy()

    @property
    def bias_as_triad(self) -> AngularSpeedTriad:
        return AngularSpeedTriad.from_array(self._bias)

    # ========================================================================
    # Initial guesses
    # ========================================================================

    initial_sx = _initial_mg_element(0, 0, "Initial x-axis scale factor.")
    initial_sy = _initial_mg_element(1, 1, "Initial y-axis scale factor.")
    initial_sz = _initial_mg_element(2, 2, "Initial z-axis scale factor.")
    initial_mxy = _initial_mg_element(0, 1, "Initial x-y cross-coupling.")
    initial_mxz = _initial_mg_element(0, 2, "Initial x-z cross-coupling.")
    initial_myx = _initial_mg_element(1, 0, "Initial y-x cross-coupling.")
    initial_myz = _initial_mg_element(1, 2, "Initial y-z cross-coupling.")
    initial_mzx = _initial_mg_element(2, 0, "Initial z-x cross-coupling.")
    initial_mzy = _initial_mg_element(2, 1, "Initial z-y cross-coupling.")

    def set_initial_scaling_factors(self, sx: float, sy: float, sz: float) -> None:
        self._check_not_running()
        mg = self._initial_mg.copy()
        mg[0, 0], mg[1, 1], mg[2, 2] = float(sx), float(sy), float(sz)
        self._initial_mg = mg

    def set_initial_cross_coupling_errors(
        self,
        mxy: float,
        mxz: float,
        myx: float,
        myz: float,
        mzx: float,
        mzy: float,
    ) -> None:
        self._check_not_running()
        mg = self._initial_mg.copy()
        mg[0, 1], mg[0, 2] = float(mxy), float(mxz)
        mg[1, 0], mg[1, 2] = float(myx), float(myz)
        mg[2, 0], mg[2, 1] = float(mzx), float(mzy)
        self._initial_mg = mg

    def set_initial_scaling_factors_and_cross_coupling_errors(
        self,
        sx: float,
        sy: float,
        sz: float,
        mxy: float,
        mxz: float,
        myx: float,
        myz: float,
        mzx: float,
        mzy: float,
    ) -> None:
        self._check_not_running()
        self._initial_mg = np.array(
            [
                [sx, mxy, mxz],
                [myx, sy, myz],
                [mzx, mzy, sz],
            ],
            dtype=np.float64,
        )

    @property
    def initial_mg(self) -> np.ndarray:
        """Initial scale factor and cross-coupling matrix. Shape: (3, 3)."""
        return self._initial_mg.copy()

    @initial_mg.setter
    def initial_mg(self, value: np.ndarray) -> None:
        self._check_not_running()
        self._initial_mg = _as_matrix3("initial_mg", value)

    @property
    def initial_gg(self) -> np.ndarray:
        """Initial g-sensitivity matrix. Shape: (3, 3)."""
        return self._initial_gg.copy()

    @initial_gg.setter
    def initial_gg(self, value: np.ndarray) -> None:
        self._check_not_running()
        self._initial_gg = _as_matrix3("initial_gg", value)

    # ========================================================================
    # Configuration
    # ========================================================================

    @property
    def common_axis_used(self) -> bool:
        return self._common_axis_used

    @common_axis_used.setter
    def common_axis_used(self, value: bool) -> None:
        self._check_not_running()
        self._common_axis_used = bool(value)

    @property
    def measurements(self) -> Optional[Sequence[FrameBodyKinematics]]:
        return self._measurements

    @measurements.setter
    def measurements(self, value: Optional[Sequence[FrameBodyKinematics]]) -> None:
        self._check_not_running()
        self._measurements = value

    @property
    def listener(self) -> Optional[CalibratorListener]:
        return self._listener

    @listener.setter
    def listener(self, value: Optional[CalibratorListener]) -> None:
        self._check_not_running()
        self._listener = value

    @property
    def fitter_options(self) -> LevenbergMarquardtOptions:
        return self._fitter_options

    @fitter_options.setter
    def fitter_options(self, value: LevenbergMarquardtOptions) -> None:
        self._check_not_running()
        if not isinstance(value, LevenbergMarquardtOptions):
            raise ValueError(
                f"fitter_options must be LevenbergMarquardtOptions, "
                f"got {type(value).__name__}"
            )
        self._fitter_options = value

    @property
    def minimum_required_measurements(self) -> int:
        return MINIMUM_MEASUREMENTS

    @property
    def is_ready(self) -> bool:
        return (
            self._measurements is not None
            and len(self._measurements) >= MINIMUM_MEASUREMENTS
        )

    @property
    def is_running(self) -> bool:
        return self._running

    # ========================================================================
    # Results
    # ========================================================================

    @property
    def estimated_mg(self) -> Optional[np.ndarray]:
        """Estimated Mg, or None before the first successful calibration."""
        return None if self._estimated_mg is None else self._estimated_mg.copy()

    @property
    def estimated_gg(self) -> Optional[np.ndarray]:
        """Estimated Gg, or None before the first successful calibration."""
        return None if self._estimated_gg is None else self._estimated_gg.copy()

    @property
    def estimated_covariance(self) -> Optional[np.ndarray]:
        """
        18x18 covariance of the estimated parameters.

        Order: sx, sy, sz, mxy, mxz, myx, myz, mzx, mzy, then Gg row-major.
        With a common axis the rows and columns of myx, mzx and mzy are zero.
        """
        if self._estimated_covariance is None:
            return None
        return self._estimated_covariance.copy()

    @property
    def estimated_chi_sq(self) -> Optional[float]:
        return self._estimated_chi_sq

    @property
    def estimated_mse(self) -> Optional[float]:
        return self._estimated_mse

    @property
    def estimated_parameter_variances(self) -> Optional[np.ndarray]:
        if self._estimated_covariance is None:
            return None
        return np.diag(self._estimated_covariance).copy()

    @property
    def estimated_parameter_standard_deviations(self) -> Optional[np.ndarray]:
        if self._estimated_covariance is None:
            return None
        return np.sqrt(np.diag(self._estimated_covariance))

    estimated_sx = _estimated_mg_element(0, 0, "Estimated x-axis scale factor.")
    estimated_sy = _estimated_mg_element(1, 1, "Estimated y-axis scale factor.")
    estimated_sz = _estimated_mg_element(2, 2, "Estimated z-axis scale factor.")
    estimated_mxy = _estimated_mg_element(0, 1, "Estimated x-y cross-coupling.")
    estimated_mxz = _estimated_mg_element(0, 2, "Estimated x-z cross-coupling.")
    estimated_myx = _estimated_mg_element(1, 0, "Estimated y-x cross-coupling.")
    estimated_myz = _estimated_mg_element(1, 2, "Estimated y-z cross-coupling.")
    estimated_mzx = _estimated_mg_element(2, 0, "Estimated z-x cross-coupling.")
    estimated_mzy = _estimated_mg_element(2, 1, "Estimated z-y cross-coupling.")

    # ========================================================================
    # Calibration
    # ========================================================================

    def calibrate(self) -> None:
        """
        Estimate Mg and Gg from the current measurements.

        On success the estimated values, covariance, chi-square and MSE are
        replaced. On failure they are left as they were before the call.

        Raises:
            LockedError: If already running.
            NotReadyError: If fewer than MINIMUM_MEASUREMENTS are available.
            CalibrationError: If the fit is singular or does not converge.
                              The calibrator is unlocked when this is raised.
        """
        if self._running:
            raise LockedError("calibrator is already running")
        if not self.is_ready:
            count = 0 if self._measurements is None else len(self._measurements)
            raise NotReadyError(
                f"at least {MINIMUM_MEASUREMENTS} measurements are required, "
                f"got {count}"
            )

        self._running = True
        try:
            if self._listener is not None:
                self._listener.on_calibrate_start(self)
            self._fit()
        except CalibrationError:
            self._running = False
            self._notify_end()
            raise
        finally:
            self._running = False

        self._notify_end()

    def _notify_end(self) -> None:
        if self._listener is not None:
            self._listener.on_calibrate_end(self)

    def _fit(self) -> None:
        common_axis = self._common_axis_used
        model = GyroscopeErrorModel(self._bias, common_axis)
        x0 = encode(self._initial_mg, self._initial_gg, common_axis)
        n_params = parameter_count(common_axis)

        n_measurements = len(self._measurements)
        points = []
        for measurement in self._measurements:
            truth = measurement.expected_kinematics()
            points.append(
                (
                    truth.angular_rate,
                    truth.specific_force,
                    measurement.kinematics.angular_rate,
                    measurement.angular_rate_standard_deviation,
                )
            )

        def evaluate(point, x):
            # Fitted against zero: the model predicts the normalized misfit
            residual, jacobian = model.weighted_residual(x, *point)
            return -residual, jacobian

        logger.debug(
            "Calibrating gyroscope: %d measurements, %d parameters, common_axis=%s",
            n_measurements,
            n_params,
            common_axis,
        )

        try:
            result = fit_multivariate(
                evaluate,
                points,
                np.zeros((n_measurements, 3)),
                x0,
                np.ones(n_measurements),
                self._fitter_options,
            )
        except (FittingError, np.linalg.LinAlgError) as e:
            logger.warning("Gyroscope calibration failed: %s", e)
            raise CalibrationError(f"gyroscope calibration failed: {e}") from e

        if not result.converged:
            logger.warning(
                "Gyroscope calibration did not converge in %d iterations",
                result.iterations,
            )
            raise CalibrationError(
                f"fit did not converge within {result.iterations} iterations"
            )

        mg, gg = decode(result.x, common_axis)
        covariance = expand_covariance(result.covariance, common_axis)
        dof = 3 * n_measurements - n_params
        if dof < 1:
            # Exactly determined: MSE is reported as the raw chi-square
            logger.debug("No residual degrees of freedom, MSE equals chi_sq")
            dof = 1

        self._estimated_mg = mg
        self._estimated_gg = gg
        self._estimated_covariance = covariance
        self._estimated_chi_sq = result.chi_sq
        self._estimated_mse = result.chi_sq / dof

        logger.info(
            "Gyroscope calibrated from %d measurements in %d iterations "
            "(chi_sq=%g, mse=%g)",
            n_measurements,
            result.iterations,
            self._estimated_chi_sq,
            self._estimated_mse,
        )
