"""
Mapping between gyroscope error matrices and the fitted parameter vector.

The full parameter order is

    [sx, sy, sz, mxy, mxz, myx, myz, mzx, mzy, g11, g12, ..., g33]

where sx..mzy are the entries of Mg (diagonal scale factors and
off-diagonal cross-couplings) and g11..g33 are the entries of Gg in
row-major order. With a common axis, myx, mzx and mzy are structurally zero
and are dropped from the vector, leaving

    [sx, sy, sz, mxy, mxz, myz, g11, ..., g33]
"""

from typing import Tuple

import numpy as np

GENERAL_PARAMETER_COUNT = 18
COMMON_AXIS_PARAMETER_COUNT = 15

# (row, col) of each Mg entry, in full vector order
MG_INDICES = (
    (0, 0),  # sx
    (1, 1),  # sy
    (2, 2),  # sz
    (0, 1),  # mxy
    (0, 2),  # mxz
    (1, 0),  # myx
    (1, 2),  # myz
    (2, 0),  # mzx
    (2, 1),  # mzy
)

# Mg entries kept when a common axis is assumed (myx, mzx, mzy dropped)
COMMON_AXIS_MG_INDICES = (
    (0, 0),
    (1, 1),
    (2, 2),
    (0, 1),
    (0, 2),
    (1, 2),
)

PARAMETER_NAMES = (
    "sx", "sy", "sz", "mxy", "mxz", "myx", "myz", "mzx", "mzy",
    "g11", "g12", "g13", "g21", "g22", "g23", "g31", "g32", "g33",
)


def parameter_count(common_axis: bool) -> int:
    """Number of free parameters: 15 with a common axis, 18 otherwise."""
    return COMMON_AXIS_PARAMETER_COUNT if common_axis else GENERAL_PARAMETER_COUNT


def mg_indices(common_axis: bool) -> Tuple[Tuple[int, int], ...]:
    """(row, col) of the Mg entries present in the vector, in vector order."""
    return COMMON_AXIS_MG_INDICES if common_axis else MG_INDICES


def encode(mg: np.ndarray, gg: np.ndarray, common_axis: bool) -> np.ndarray:
    """
    Flatten (Mg, Gg) into a parameter vector.

    Args:
        mg: Scale factor and cross-coupling matrix. Shape: (3, 3).
        gg: G-sensitivity matrix. Shape: (3, 3).
        common_axis: If True, myx, mzx and mzy are omitted.

    Returns:
        Parameter vector of length parameter_count(common_axis).

    Raises:
        ValueError: If mg or gg is not 3x3.
    """
    mg = np.asarray(mg, dtype=np.float64)
    gg = np.asarray(gg, dtype=np.float64)
    if mg.shape != (3, 3):
        raise ValueError(f"mg must be (3, 3), got {mg.shape}")
    if gg.shape != (3, 3):
        raise ValueError(f"gg must be (3, 3), got {gg.shape}")

    mg_values = [mg[i, j] for i, j in mg_indices(common_axis)]
    return np.concatenate([np.array(mg_values), gg.ravel()])


def decode(params: np.ndarray, common_axis: bool) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rebuild (Mg, Gg) from a parameter vector.

    Entries omitted by the common-axis encoding are exactly zero.

    Raises:
        ValueError: If params has the wrong length for the axis mode.
    """
    params = np.asarray(params, dtype=np.float64)
    n = parameter_count(common_axis)
    if params.shape != (n,):
        raise ValueError(f"params must be ({n},), got {params.shape}")

    indices = mg_indices(common_axis)
    mg = np.zeros((3, 3))
    for value, (i, j) in zip(params[: len(indices)], indices):
        mg[i, j] = value
    gg = params[len(indices):].reshape(3, 3).copy()
    return mg, gg


def selection_matrix(common_axis: bool) -> np.ndarray:
    """
    Jacobian of the full 18-vector with respect to the fitted vector.

    Each fitted parameter maps to one full-order slot; slots of constrained
    terms have all-zero rows.
    """
    n = parameter_count(common_axis)
    full_positions = [MG_INDICES.index(ij) for ij in mg_indices(common_axis)]
    full_positions += list(range(len(MG_INDICES), GENERAL_PARAMETER_COUNT))

    selection = np.zeros((GENERAL_PARAMETER_COUNT, n))
    for col, row in enumerate(full_positions):
        selection[row, col] = 1.0
    return selection


def expand_covariance(covariance: np.ndarray, common_axis: bool) -> np.ndarray:
    """
    Propagate a fitted-parameter covariance to the full 18-parameter order.

        P_full = S P Sᵀ

    with S = selection_matrix(common_axis). Rows and columns of constrained
    terms come out exactly zero; in general mode this is a copy.

    Raises:
        ValueError: If covariance is not square of the fitted size.
    """
    covariance = np.asarray(covariance, dtype=np.float64)
    n = parameter_count(common_axis)
    if covariance.shape != (n, n):
        raise ValueError(f"covariance must be ({n}, {n}), got {covariance.shape}")

    selection = selection_matrix(common_axis)
    return selection @ covariance @ selection.T
