"""Tests for the M-spline basis."""

from __future__ import annotations

import numpy as np
import numpy.testing as nptest
import pytest
from scipy.integrate import quad

from splinebasis import (
    MsplineBasis,
    SplineFamily,
    tabulate_Bspline_basis,
    tabulate_Mspline_basis,
)
from splinebasis.knots import create_augmented_knot_vector

KNOTS = [0.3, 0.5, 0.6]
BOUNDARY = (0.0, 1.0)


class TestMsplineBasis:
    """Test tabulate_Mspline_basis."""

    def test_scenario_column_count(self) -> None:
        """Three internal knots, degree 2 and intercept give 6 columns."""
        basis = tabulate_Mspline_basis(
            np.linspace(0.0, 1.0, 9), knots=KNOTS, degree=2, intercept=True, boundary_knots=BOUNDARY
        )
        assert basis.shape == (9, 6)
        assert isinstance(basis, MsplineBasis)
        assert basis.family is SplineFamily.MSPLINE

    @pytest.mark.parametrize("derivs", [0, 1, 2])
    def test_rescaled_bspline(self, derivs: int) -> None:
        """Column j equals the B-spline column times order / support width."""
        degree = 3
        pts = np.linspace(0.0, 1.0, 17)
        mspline = tabulate_Mspline_basis(
            pts, knots=KNOTS, degree=degree, intercept=True, boundary_knots=BOUNDARY, derivs=derivs
        )
        bspline = tabulate_Bspline_basis(
            pts, knots=KNOTS, degree=degree, intercept=True, boundary_knots=BOUNDARY, derivs=derivs
        )
        knots = create_augmented_knot_vector(KNOTS, BOUNDARY, degree)
        factors = (degree + 1) / (knots[degree + 1 :] - knots[: -(degree + 1)])

        nptest.assert_allclose(mspline.values, bspline.values * factors, rtol=1e-13, atol=1e-12)
        assert mspline.derivs == derivs

    def test_narrow_domain(self) -> None:
        """Degree 0 without internal knots is 1 / w on a domain of width w."""
        width = 1e-16
        basis = tabulate_Mspline_basis(
            [0.0, 0.5 * width, width], degree=0, intercept=True, boundary_knots=(0.0, width)
        )
        nptest.assert_allclose(basis.values, 1.0 / width)

    @pytest.mark.parametrize("degree", [0, 1, 2, 3])
    def test_unit_integral(self, degree: int) -> None:
        """Every column integrates to 1 over the boundary knots."""
        basis = tabulate_Mspline_basis(
            [0.5], knots=KNOTS, degree=degree, intercept=True, boundary_knots=BOUNDARY
        )
        for col in range(basis.shape[1]):
            integral = quad(
                lambda x, col=col: float(basis.evaluate_at([x]).values[0, col]),
                *BOUNDARY,
                points=KNOTS,
            )[0]
            nptest.assert_allclose(integral, 1.0, rtol=1e-9)

    def test_non_negative(self) -> None:
        """M-splines are non-negative inside the boundary knots."""
        basis = tabulate_Mspline_basis(
            np.linspace(0.0, 1.0, 101), knots=KNOTS, degree=2, boundary_knots=BOUNDARY
        )
        assert np.all(basis.values >= 0.0)

    def test_zero_width_support(self) -> None:
        """A column with zero-width support is identically zero."""
        basis = tabulate_Mspline_basis(
            [0.2, 0.5, 1.0], knots=[1.0], degree=0, intercept=True, boundary_knots=BOUNDARY
        )
        nptest.assert_array_equal(basis.values, [[1.0, 0.0], [1.0, 0.0], [1.0, 0.0]])

    def test_nested_derivatives(self) -> None:
        """Nested differentiation matches a single call with the summed order."""
        pts = np.linspace(0.0, 1.0, 15)
        basis = tabulate_Mspline_basis(pts, knots=KNOTS, degree=3, boundary_knots=BOUNDARY)
        nested = basis.differentiate(1).differentiate(2)
        single = basis.differentiate(3)

        assert nested.derivs == single.derivs == 3  # noqa: PLR2004
        nptest.assert_allclose(nested.values, single.values, rtol=1e-12, atol=1e-9)

    def test_order_above_degree_is_zero(self) -> None:
        """Derivatives of order larger than the degree vanish."""
        basis = tabulate_Mspline_basis(
            [0.2, 0.8], knots=KNOTS, degree=1, boundary_knots=BOUNDARY, derivs=2
        )
        nptest.assert_array_equal(basis.values, 0.0)
