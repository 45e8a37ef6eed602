"""
Unit tests for the gyroscope error-model parameterization and forward model.
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from gyrocal.calibration.gyroscope_model import GyroscopeErrorModel
from gyrocal.calibration.parameterization import (
    COMMON_AXIS_PARAMETER_COUNT,
    GENERAL_PARAMETER_COUNT,
    PARAMETER_NAMES,
    decode,
    encode,
    expand_covariance,
    parameter_count,
    selection_matrix,
)


def _common_axis(mg):
    """Zero myx, mzx and mzy."""
    mg = mg.copy()
    mg[1, 0] = mg[2, 0] = mg[2, 1] = 0.0
    return mg


class TestParameterization(unittest.TestCase):
    """Test encode/decode and covariance expansion."""

    def setUp(self):
        rng = np.random.default_rng(11)
        self.mg = rng.uniform(-1e-3, 1e-3, size=(3, 3))
        self.gg = rng.uniform(-1e-5, 1e-5, size=(3, 3))

    def test_parameter_counts(self):
        self.assertEqual(parameter_count(False), GENERAL_PARAMETER_COUNT)
        self.assertEqual(parameter_count(True), COMMON_AXIS_PARAMETER_COUNT)
        self.assertEqual(GENERAL_PARAMETER_COUNT, 18)
        self.assertEqual(COMMON_AXIS_PARAMETER_COUNT, 15)
        self.assertEqual(len(PARAMETER_NAMES), 18)

    def test_general_vector_order(self):
        params = encode(self.mg, self.gg, common_axis=False)
        mg = self.mg
        expected_mg = [
            mg[0, 0], mg[1, 1], mg[2, 2],
            mg[0, 1], mg[0, 2], mg[1, 0], mg[1, 2], mg[2, 0], mg[2, 1],
        ]
        assert_array_equal(params[:9], expected_mg)
        assert_array_equal(params[9:], self.gg.ravel())

    def test_common_axis_vector_order(self):
        params = encode(self.mg, self.gg, common_axis=True)
        mg = self.mg
        self.assertEqual(params.shape, (15,))
        assert_array_equal(
            params[:6], [mg[0, 0], mg[1, 1], mg[2, 2], mg[0, 1], mg[0, 2], mg[1, 2]]
        )
        assert_array_equal(params[6:], self.gg.ravel())

    def test_round_trip_general(self):
        mg, gg = decode(encode(self.mg, self.gg, False), False)
        assert_array_equal(mg, self.mg)
        assert_array_equal(gg, self.gg)

    def test_round_trip_common_axis(self):
        expected_mg = _common_axis(self.mg)
        mg, gg = decode(encode(expected_mg, self.gg, True), True)
        assert_array_equal(mg, expected_mg)
        assert_array_equal(gg, self.gg)

    def test_decode_common_axis_zeroes_constrained_terms(self):
        mg, _ = decode(np.arange(1.0, 16.0), common_axis=True)
        self.assertEqual(mg[1, 0], 0.0)
        self.assertEqual(mg[2, 0], 0.0)
        self.assertEqual(mg[2, 1], 0.0)

    def test_invalid_shapes(self):
        with pytest.raises(ValueError, match="mg must be \\(3, 3\\)"):
            encode(np.eye(2), self.gg, False)
        with pytest.raises(ValueError, match="gg must be \\(3, 3\\)"):
            encode(self.mg, np.zeros(9), False)
        with pytest.raises(ValueError, match="params must be \\(15,\\)"):
            decode(np.zeros(18), True)
        with pytest.raises(ValueError, match="covariance must be \\(18, 18\\)"):
            expand_covariance(np.eye(15), False)

    def test_selection_matrix_structure(self):
        selection = selection_matrix(True)
        self.assertEqual(selection.shape, (18, 15))
        assert_array_equal(selection.sum(axis=1)[[5, 7, 8]], [0.0, 0.0, 0.0])
        assert_array_equal(selection.sum(axis=0), np.ones(15))
        assert_array_equal(selection_matrix(False), np.eye(18))

    def test_expand_covariance_common_axis(self):
        rng = np.random.default_rng(5)
        A = rng.normal(size=(15, 15))
        cov = A @ A.T
        full = expand_covariance(cov, common_axis=True)

        self.assertEqual(full.shape, (18, 18))
        for index in (5, 7, 8):  # myx, mzx, mzy
            assert_array_equal(full[index, :], np.zeros(18))
            assert_array_equal(full[:, index], np.zeros(18))

        kept = [0, 1, 2, 3, 4, 6] + list(range(9, 18))
        assert_allclose(full[np.ix_(kept, kept)], cov)

    def test_expand_covariance_general_is_copy(self):
        cov = np.diag(np.arange(1.0, 19.0))
        full = expand_covariance(cov, common_axis=False)
        assert_array_equal(full, cov)
        self.assertIsNot(full, cov)


class TestGyroscopeErrorModel(unittest.TestCase):
    """Test the forward model and its Jacobian."""

    def setUp(self):
        rng = np.random.default_rng(21)
        self.bias = np.deg2rad([-9.0, 13.0, -8.0]) / 3600.0
        self.mg = rng.uniform(-1e-3, 1e-3, size=(3, 3))
        self.gg = rng.uniform(-1e-5, 1e-5, size=(3, 3))
        self.omega = np.array([0.3, -0.7, 0.2])
        self.f = np.array([1.2, -0.4, -9.7])

    def test_prediction_matches_error_model(self):
        model = GyroscopeErrorModel(self.bias, common_axis=False)
        predicted, _ = model.evaluate(encode(self.mg, self.gg, False), self.omega, self.f)
        expected = self.omega + self.bias + self.mg @ self.omega + self.gg @ self.f
        assert_allclose(predicted, expected, atol=1e-15)

    def test_jacobian_matches_finite_differences(self):
        for common_axis in (False, True):
            mg = _common_axis(self.mg) if common_axis else self.mg
            model = GyroscopeErrorModel(self.bias, common_axis=common_axis)
            params = encode(mg, self.gg, common_axis)
            predicted, jacobian = model.evaluate(params, self.omega, self.f)

            n = parameter_count(common_axis)
            self.assertEqual(jacobian.shape, (3, n))
            # The model is linear in the parameters
            for k in range(n):
                step = np.zeros(n)
                step[k] = 1e-3
                shifted, _ = model.evaluate(params + step, self.omega, self.f)
                assert_allclose((shifted - predicted) / 1e-3, jacobian[:, k], atol=1e-9)

    def test_jacobian_structure(self):
        model = GyroscopeErrorModel(np.zeros(3), common_axis=False)
        _, jacobian = model.evaluate(np.zeros(18), self.omega, self.f)

        # Row x depends on sx, mxy, mxz and the first row of Gg
        assert_array_equal(jacobian[0, [0, 3, 4]], self.omega)
        assert_array_equal(jacobian[0, 9:12], self.f)
        self.assertEqual(np.count_nonzero(jacobian[0]), 6)
        # Row z depends on sz, mzx, mzy and the last row of Gg
        assert_array_equal(jacobian[2, [7, 8, 2]], self.omega)
        assert_array_equal(jacobian[2, 15:18], self.f)

    def test_jacobian_independent_of_parameters(self):
        model = GyroscopeErrorModel(self.bias, common_axis=True)
        _, j1 = model.evaluate(np.zeros(15), self.omega, self.f)
        _, j2 = model.evaluate(np.ones(15), self.omega, self.f)
        assert_array_equal(j1, j2)

    def test_weighted_residual(self):
        model = GyroscopeErrorModel(self.bias, common_axis=False)
        params = encode(self.mg, self.gg, False)
        predicted, jacobian = model.evaluate(params, self.omega, self.f)
        measured = predicted + np.array([1e-4, -2e-4, 3e-4])

        r, J = model.weighted_residual(params, self.omega, self.f, measured, 1e-4)
        assert_allclose(r, [1.0, -2.0, 3.0], rtol=1e-6)
        assert_allclose(J, jacobian / 1e-4)

        with pytest.raises(ValueError, match="standard_deviation must be positive"):
            model.weighted_residual(params, self.omega, self.f, measured, 0.0)

    def test_invalid_bias(self):
        with pytest.raises(ValueError, match="bias must be \\(3,\\)"):
            GyroscopeErrorModel(np.zeros(4))


if __name__ == "__main__":
    unittest.main()
