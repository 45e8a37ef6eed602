"""
Forward model and Jacobian of the gyroscope error model.

For one measurement with true angular rate ω and true specific force f,
the predicted gyroscope output is

    ω̃(p) = ω + b + Mg(p) ω + Gg(p) f

which is linear in the parameters p (see parameterization for their
order). Row i of ∂ω̃/∂p holds ω_j in the column of Mg[i, j] and f_j in
the column of Gg[i, j]; every other entry is zero. Parameters dropped by
the common-axis encoding have no column at all.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from gyrocal.calibration.parameterization import decode, mg_indices, parameter_count


def _as_vector3(name: str, value: np.ndarray) -> np.ndarray:
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must be (3,), got {arr.shape}")
    return arr


@dataclass(frozen=True)
class GyroscopeErrorModel:
    """
    Known-bias gyroscope error model evaluated against true kinematics.

    Attributes:
        bias: Known gyroscope bias, rad/s. Shape: (3,).
        common_axis: Whether myx, mzx and mzy are constrained to zero.

    Example:
        >>> model = GyroscopeErrorModel(np.zeros(3), common_axis=False)
        >>> omega = np.array([0.1, -0.2, 0.3])
        >>> f = np.array([0.0, 0.0, -9.81])
        >>> predicted, J = model.evaluate(np.zeros(18), omega, f)
        >>> J.shape
        (3, 18)
    """

    bias: np.ndarray
    common_axis: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "bias", _as_vector3("bias", self.bias).copy())

    @property
    def parameter_count(self) -> int:
        return parameter_count(self.common_axis)

    def evaluate(
        self,
        params: np.ndarray,
        true_angular_rate: np.ndarray,
        true_specific_force: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Predicted gyroscope output and its Jacobian for one measurement.

        Args:
            params: Parameter vector, length parameter_count.
            true_angular_rate: True angular rate ω, rad/s. Shape: (3,).
            true_specific_force: True specific force f, m/s². Shape: (3,).

        Returns:
            Tuple of (predicted (3,), jacobian (3, parameter_count)).
        """
        omega = _as_vector3("true_angular_rate", true_angular_rate)
        f = _as_vector3("true_specific_force", true_specific_force)
        mg, gg = decode(params, self.common_axis)

        predicted = omega + self.bias + mg @ omega + gg @ f

        indices = mg_indices(self.common_axis)
        gg_offset = len(indices)
        jacobian = np.zeros((3, self.parameter_count))
        for col, (i, j) in enumerate(indices):
            jacobian[i, col] = omega[j]
        for i in range(3):
            jacobian[i, gg_offset + 3 * i:gg_offset + 3 * i + 3] = f

        return predicted, jacobian

    def weighted_residual(
        self,
        params: np.ndarray,
        true_angular_rate: np.ndarray,
        true_specific_force: np.ndarray,
        measured_angular_rate: np.ndarray,
        standard_deviation: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Noise-normalized residual and Jacobian for one measurement.

            r = (ω̃_meas - ω̃(p)) / σ,   J = (∂ω̃/∂p) / σ

        Raises:
            ValueError: If standard_deviation is not positive.
        """
        if standard_deviation <= 0.0:
            raise ValueError(
                f"standard_deviation must be positive, got {standard_deviation}"
            )
        measured = _as_vector3("measured_angular_rate", measured_angular_rate)
        predicted, jacobian = self.evaluate(
            params, true_angular_rate, true_specific_force
        )
        return (measured - predicted) / standard_deviation, jacobian / standard_deviation
