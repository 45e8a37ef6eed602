"""
Gyroscope error model and its inverse.

The deterministic gyroscope error model is

    ω̃ = b_g + (I + M_g) ω + G_g f

where:
    ω̃: measured angular rate [rad/s]
    b_g: bias [rad/s]
    M_g: scale factor (diagonal) and cross-coupling (off-diagonal) matrix
    G_g: g-sensitivity matrix [rad/s per m/s²]
    ω: true angular rate [rad/s]
    f: true specific force [m/s²]

measured_angular_rate applies the model to true kinematics (used to build
synthetic measurements); fix_angular_rate inverts it to recover true angular
rate from raw output once the error model has been calibrated.

Frame Conventions:
    - All quantities are resolved in the body (sensor) frame.
"""

import numpy as np


def _validate_model(bias: np.ndarray, mg: np.ndarray, gg: np.ndarray) -> None:
    if bias.shape != (3,):
        raise ValueError(f"bias must be (3,), got {bias.shape}")
    if mg.shape != (3, 3):
        raise ValueError(f"mg must be (3, 3), got {mg.shape}")
    if gg.shape != (3, 3):
        raise ValueError(f"gg must be (3, 3), got {gg.shape}")


def measured_angular_rate(
    true_angular_rate: np.ndarray,
    true_specific_force: np.ndarray,
    bias: np.ndarray,
    mg: np.ndarray,
    gg: np.ndarray,
) -> np.ndarray:
    """
    Apply the gyroscope error model to true kinematics.

        ω̃ = b_g + (I + M_g) ω + G_g f

    Args:
        true_angular_rate: True angular rate ω. Shape: (3,) or (N, 3). rad/s.
        true_specific_force: True specific force f, same shape as
                             true_angular_rate. m/s².
        bias: Gyroscope bias b_g. Shape: (3,). rad/s.
        mg: Scale factor and cross-coupling matrix M_g. Shape: (3, 3).
        gg: G-sensitivity matrix G_g. Shape: (3, 3).

    Returns:
        Measured angular rate ω̃, same shape as true_angular_rate.

    Example:
        >>> omega = np.array([0.1, 0.0, 0.0])
        >>> f = np.array([0.0, 0.0, 9.81])
        >>> mg = np.diag([400e-6, -300e-6, -350e-6])
        >>> measured_angular_rate(omega, f, np.zeros(3), mg, np.zeros((3, 3)))
        array([0.10004, 0.     , 0.     ])
    """
    omega = np.asarray(true_angular_rate, dtype=np.float64)
    f = np.asarray(true_specific_force, dtype=np.float64)
    bias = np.asarray(bias, dtype=np.float64)
    mg = np.asarray(mg, dtype=np.float64)
    gg = np.asarray(gg, dtype=np.float64)
    _validate_model(bias, mg, gg)

    if omega.shape != f.shape:
        raise ValueError(
            f"true_angular_rate {omega.shape} and true_specific_force "
            f"{f.shape} must have the same shape"
        )
    if omega.ndim == 1 and omega.shape != (3,):
        raise ValueError(f"true_angular_rate must be (3,), got {omega.shape}")
    if omega.ndim == 2 and omega.shape[1] != 3:
        raise ValueError(
            f"true_angular_rate must have shape (3,) or (N, 3), got {omega.shape}"
        )

    # Row-vector form handles both (3,) and (N, 3)
    return bias + omega @ (np.eye(3) + mg).T + f @ gg.T


def fix_angular_rate(
    measured: np.ndarray,
    true_specific_force: np.ndarray,
    bias: np.ndarray,
    mg: np.ndarray,
    gg: np.ndarray,
) -> np.ndarray:
    """
    Recover true angular rate from raw gyroscope output.

    Inverts the error model:
        ω = (I + M_g)⁻¹ (ω̃ - b_g - G_g f)

    Args:
        measured: Measured angular rate ω̃. Shape: (3,) or (N, 3). rad/s.
        true_specific_force: Specific force f, same shape as measured. m/s².
        bias: Gyroscope bias b_g. Shape: (3,). rad/s.
        mg: Scale factor and cross-coupling matrix M_g. Shape: (3, 3).
        gg: G-sensitivity matrix G_g. Shape: (3, 3).

    Returns:
        Corrected angular rate ω, same shape as measured.

    Raises:
        ValueError: If shapes are invalid or I + M_g is singular.
    """
    measured = np.asarray(measured, dtype=np.float64)
    f = np.asarray(true_specific_force, dtype=np.float64)
    bias = np.asarray(bias, dtype=np.float64)
    mg = np.asarray(mg, dtype=np.float64)
    gg = np.asarray(gg, dtype=np.float64)
    _validate_model(bias, mg, gg)

    if measured.shape != f.shape or measured.shape[-1:] != (3,) or measured.ndim > 2:
        raise ValueError(
            f"measured {measured.shape} and true_specific_force {f.shape} "
            "must both have shape (3,) or (N, 3)"
        )

    try:
        t_inv = np.linalg.inv(np.eye(3) + mg)
    except np.linalg.LinAlgError as e:
        raise ValueError("I + mg is singular and cannot be inverted") from e

    return (measured - bias - f @ gg.T) @ t_inv.T
