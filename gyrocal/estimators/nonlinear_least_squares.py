"""
Nonlinear least squares using Levenberg-Marquardt.

Mathematical Formulation:
    Given observations y and measurement model h(x), we seek:
        x̂ = argmin ½‖r(x)‖²_W
    where r(x) = y - h(x) is the residual vector and W = diag(w) holds the
    measurement weights (w = 1/σ² for per-measurement noise σ).

    Levenberg-Marquardt update:
        (J'WJ + μI) Δx = J'W r
    where J = ∂h/∂x and μ is an adaptive damping parameter driven by the
    gain ratio between the actual and the predicted cost decrease.

Two entry points are provided:
    - levenberg_marquardt: model and Jacobian given as whole-vector callables
    - fit_multivariate: model given per sample, each sample contributing a
      small block of observations (e.g. three angular-rate axes)

Both report the covariance of the estimate as (J'WJ)⁻¹ at the solution and
the chi-square r'Wr. Weights are expected to be true inverse variances; the
covariance is not rescaled by the residual variance.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITER = 200
DEFAULT_XTOL = 1e-12
DEFAULT_GTOL = 1e-12
DEFAULT_MU0 = 1e-3


class FittingError(RuntimeError):
    """Raised when a fit hits a singular system or a non-finite evaluation."""


@dataclass(frozen=True)
class LevenbergMarquardtOptions:
    """
    Tuning parameters of the Levenberg-Marquardt solver.

    Attributes:
        max_iter: Maximum number of outer iterations (>= 1).
        xtol: Relative step tolerance. Converged when
              ‖Δx‖ <= xtol · (‖x‖ + xtol).
        gtol: Gradient tolerance. Converged when max|J'W r| <= gtol.
        mu0: Initial damping, relative to the largest diagonal element of J'WJ.
    """

    max_iter: int = DEFAULT_MAX_ITER
    xtol: float = DEFAULT_XTOL
    gtol: float = DEFAULT_GTOL
    mu0: float = DEFAULT_MU0

    def __post_init__(self) -> None:
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.xtol < 0.0:
            raise ValueError(f"xtol must be non-negative, got {self.xtol}")
        if self.gtol < 0.0:
            raise ValueError(f"gtol must be non-negative, got {self.gtol}")
        if self.mu0 <= 0.0:
            raise ValueError(f"mu0 must be positive, got {self.mu0}")


@dataclass
class NonlinearLSResult:
    """Result container for nonlinear least squares optimization.

    Attributes:
        x: Estimated state vector.
        covariance: Covariance matrix (n × n), (J'WJ)⁻¹ at x.
        iterations: Number of iterations performed.
        residuals: Final residuals r = y - h(x̂).
        cost: Final cost value ½‖r‖²_W.
        converged: Whether the solver converged within tolerance.
        chi_sq: Weighted sum of squared residuals r'Wr.
        weights: Measurement weights used.
    """

    x: np.ndarray
    covariance: Optional[np.ndarray]
    iterations: int
    residuals: np.ndarray
    cost: float
    converged: bool
    chi_sq: float = 0.0
    weights: Optional[np.ndarray] = None


def levenberg_marquardt(
    h: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    y: np.ndarray,
    x0: np.ndarray,
    weights: Optional[np.ndarray] = None,
    options: Optional[LevenbergMarquardtOptions] = None,
) -> NonlinearLSResult:
    """
    Levenberg-Marquardt solver for nonlinear least squares.

    Solves: x̂ = argmin ½‖y - h(x)‖²_W

    Args:
        h: Measurement model function h: R^n → R^m.
        jacobian: Function returning Jacobian matrix J = ∂h/∂x (m × n).
        y: Observation vector (m,).
        x0: Initial state estimate (n,).
        weights: Optional measurement weights (m,). Default: all ones.
        options: Solver tuning. Default: LevenbergMarquardtOptions().

    Returns:
        NonlinearLSResult containing estimate, covariance, and diagnostics.

    Raises:
        ValueError: On inconsistent shapes or negative weights.
        FittingError: If J'WJ is rank deficient at the solution or the model
                      returns non-finite values.

    Example:
        >>> anchors = np.array([[0, 0], [10, 0], [0, 10], [10, 10]])
        >>> def h(x):
        ...     return np.linalg.norm(anchors - x, axis=1)
        >>> def jac(x):
        ...     diff = x - anchors
        ...     ranges = np.linalg.norm(diff, axis=1, keepdims=True)
        ...     return diff / np.maximum(ranges, 1e-10)
        >>> y = h(np.array([5.0, 5.0]))
        >>> result = levenberg_marquardt(h, jac, y, x0=np.array([1.0, 2.0]))
        >>> print(f"Estimate: {result.x}, Converged: {result.converged}")
    """
    y = np.asarray(y, dtype=np.float64)
    x0 = np.asarray(x0, dtype=np.float64)

    if y.ndim != 1:
        raise ValueError(f"y must be 1D array, got shape {y.shape}")
    if x0.ndim != 1:
        raise ValueError(f"x0 must be 1D array, got shape {x0.shape}")

    m = len(y)
    n = len(x0)

    if weights is None:
        weights = np.ones(m)
    else:
        weights = np.asarray(weights, dtype=np.float64)
        if weights.ndim != 1 or len(weights) != m:
            raise ValueError(f"weights must be 1D array of length {m}")
        if np.any(weights < 0):
            raise ValueError("weights must be non-negative")

    def evaluate(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        hx = np.asarray(h(x), dtype=np.float64)
        if hx.shape != (m,):
            raise ValueError(f"h(x) returned {hx.shape}, expected ({m},)")
        J = np.asarray(jacobian(x), dtype=np.float64)
        if J.shape != (m, n):
            raise ValueError(f"Jacobian shape {J.shape}, expected ({m}, {n})")
        return y - hx, J

    return _solve_levenberg_marquardt(evaluate, x0, weights, options)


def fit_multivariate(
    evaluate: Callable[[Any, np.ndarray], Tuple[np.ndarray, np.ndarray]],
    points: Sequence[Any],
    y: np.ndarray,
    x0: np.ndarray,
    sigmas: np.ndarray,
    options: Optional[LevenbergMarquardtOptions] = None,
) -> NonlinearLSResult:
    """
    Fit a model whose samples each produce a block of d observations.

    For every sample k the model callback returns the predicted block
    h_k(x) (d,) and its Jacobian J_k (d × n). Blocks are stacked into a
    single (N·d)-observation problem and solved with Levenberg-Marquardt.

    Args:
        evaluate: Callback evaluate(point, x) -> (h_k (d,), J_k (d, n)).
                  Must be a pure function of its arguments.
        points: Sequence of N per-sample inputs passed to evaluate.
        y: Observed blocks, shape (N, d).
        x0: Initial state estimate (n,).
        sigmas: Noise standard deviations, shape (N,) (one per sample) or
                (N, d) (one per observation). All must be positive.
        options: Solver tuning. Default: LevenbergMarquardtOptions().

    Returns:
        NonlinearLSResult. residuals are flattened to shape (N·d,).

    Raises:
        ValueError: On inconsistent shapes or non-positive sigmas.
        FittingError: On a rank-deficient system or non-finite evaluations.
    """
    y = np.asarray(y, dtype=np.float64)
    x0 = np.asarray(x0, dtype=np.float64)
    sigmas = np.asarray(sigmas, dtype=np.float64)

    if y.ndim != 2:
        raise ValueError(f"y must be (N, d), got shape {y.shape}")
    if x0.ndim != 1:
        raise ValueError(f"x0 must be 1D array, got shape {x0.shape}")

    n_samples, dim = y.shape
    n = len(x0)

    if len(points) != n_samples:
        raise ValueError(
            f"got {len(points)} points but {n_samples} observation blocks"
        )
    if sigmas.shape == (n_samples,):
        sigmas = np.repeat(sigmas[:, None], dim, axis=1)
    if sigmas.shape != (n_samples, dim):
        raise ValueError(
            f"sigmas must be ({n_samples},) or ({n_samples}, {dim}), "
            f"got {sigmas.shape}"
        )
    if not np.all(np.isfinite(sigmas)) or np.any(sigmas <= 0.0):
        raise ValueError("sigmas must be finite and positive")

    weights = 1.0 / sigmas.ravel() ** 2
    y_flat = y.ravel()

    def evaluate_all(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        hx = np.empty(n_samples * dim)
        J = np.empty((n_samples * dim, n))
        for k, point in enumerate(points):
            h_k, J_k = evaluate(point, x)
            rows = slice(k * dim, (k + 1) * dim)
            hx[rows] = h_k
            J[rows, :] = J_k
        return y_flat - hx, J

    return _solve_levenberg_marquardt(evaluate_all, x0, weights, options)


def _solve_levenberg_marquardt(
    evaluate: Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]],
    x0: np.ndarray,
    weights: np.ndarray,
    options: Optional[LevenbergMarquardtOptions],
) -> NonlinearLSResult:
    """Damped Gauss-Newton iterations with gain-ratio damping control."""
    if options is None:
        options = LevenbergMarquardtOptions()

    n = len(x0)
    x = x0.copy()

    r, J = _checked(evaluate, x)
    cost = 0.5 * np.sum(weights * r**2)

    mu = None
    nu = 2.0
    converged = False
    iteration = 0

    while iteration < options.max_iter and not converged:
        iteration += 1

        # Weighted normal equations: (J'WJ) Δx = J'Wr
        JtW = J.T * weights
        JtWJ = JtW @ J
        JtWr = JtW @ r

        if np.max(np.abs(JtWr)) <= options.gtol:
            converged = True
            break

        if mu is None:
            mu = options.mu0 * np.max(np.diag(JtWJ))
            if not mu > 0.0:
                raise FittingError("Jacobian is identically zero")

        while True:
            try:
                delta_x = np.linalg.solve(JtWJ + mu * np.eye(n), JtWr)
            except np.linalg.LinAlgError as e:
                raise FittingError("damped normal equations are singular") from e

            if np.linalg.norm(delta_x) <= options.xtol * (
                np.linalg.norm(x) + options.xtol
            ):
                converged = True
                break

            x_new = x + delta_x
            r_new, J_new = _checked(evaluate, x_new)
            cost_new = 0.5 * np.sum(weights * r_new**2)

            # Predicted decrease: ½ Δx'(μΔx + J'Wr)
            predicted_decrease = 0.5 * delta_x @ (mu * delta_x + JtWr)
            actual_decrease = cost - cost_new

            if predicted_decrease > 0.0:
                gain_ratio = actual_decrease / predicted_decrease
            else:
                gain_ratio = 0.0

            if gain_ratio > 0.0:
                x, r, J, cost = x_new, r_new, J_new, cost_new
                mu = mu * max(1.0 / 3.0, 1.0 - (2.0 * gain_ratio - 1.0) ** 3)
                nu = 2.0
                break

            mu = mu * nu
            nu = 2.0 * nu
            if not np.isfinite(mu):
                raise FittingError("damping diverged without an acceptable step")

    JtWJ = (J.T * weights) @ J
    rank = np.linalg.matrix_rank(J * np.sqrt(weights)[:, None])
    if rank < n:
        raise FittingError(
            f"normal equations are rank deficient (rank {rank} < {n} parameters)"
        )

    try:
        covariance = np.linalg.inv(JtWJ)
    except np.linalg.LinAlgError as e:
        raise FittingError("normal equations are singular") from e

    chi_sq = float(np.sum(weights * r**2))

    logger.debug(
        "Levenberg-Marquardt finished: %d iterations, converged=%s, chi_sq=%g",
        iteration,
        converged,
        chi_sq,
    )

    return NonlinearLSResult(
        x=x,
        covariance=covariance,
        iterations=iteration,
        residuals=r,
        cost=0.5 * chi_sq,
        converged=converged,
        chi_sq=chi_sq,
        weights=weights,
    )


def _checked(
    evaluate: Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]],
    x: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    r, J = evaluate(x)
    if not (np.all(np.isfinite(r)) and np.all(np.isfinite(J))):
        raise FittingError("model evaluation returned non-finite values")
    return r, J
