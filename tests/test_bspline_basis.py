"""Tests for the B-spline basis and its derivatives."""

from __future__ import annotations

import numpy as np
import numpy.testing as nptest
import numpy.typing as npt
import pytest
from scipy.interpolate import BSpline

from splinebasis import (
    BsplineBasis,
    BsplineDerivativeBasis,
    SplineFamily,
    tabulate_Bspline_basis,
    tabulate_Bspline_derivative_basis,
)
from splinebasis.exceptions import (
    EmptyDomainError,
    InvalidDegreeError,
    InvalidDerivativeOrderError,
    InvalidKnotRangeError,
)
from splinebasis.knots import create_augmented_knot_vector
from splinebasis.tolerance import get_default_tolerance

KNOTS = [0.3, 0.5, 0.6]
BOUNDARY = (0.0, 1.0)
# Points away from the knots so that one-sided derivatives agree
OFF_KNOT_PTS = np.array([0.0, 0.05, 0.17, 0.34, 0.42, 0.55, 0.61, 0.77, 0.93, 1.0])


def _compute_with_scipy_bspline(
    degree: int, pts: npt.NDArray[np.float64], derivs: int = 0
) -> npt.NDArray[np.float64]:
    """Evaluate every B-spline of the test knots (intercept included) with SciPy."""
    knots = create_augmented_knot_vector(KNOTS, BOUNDARY, degree)
    num_basis = knots.size - degree - 1
    spline = BSpline(knots, np.eye(num_basis), degree)
    if derivs > 0:
        spline = spline.derivative(derivs)
    return np.asarray(spline(pts), dtype=np.float64)


class TestBsplineBasis:
    """Test tabulate_Bspline_basis."""

    @pytest.mark.parametrize("degree", [1, 2, 3, 4])
    def test_against_scipy(self, degree: int) -> None:
        """The full basis agrees with scipy.interpolate.BSpline."""
        pts = np.linspace(0.0, 1.0, 41)
        basis = tabulate_Bspline_basis(
            pts, knots=KNOTS, degree=degree, intercept=True, boundary_knots=BOUNDARY
        )
        expected = _compute_with_scipy_bspline(degree, pts)
        nptest.assert_allclose(basis.values, expected, rtol=1e-12, atol=1e-14)

    @pytest.mark.parametrize("degree", [0, 1, 2, 3, 5])
    def test_partition_of_unity(self, degree: int) -> None:
        """With intercept every row sums to 1 inside the boundary knots."""
        pts = np.linspace(0.0, 1.0, 37)
        basis = tabulate_Bspline_basis(
            pts, knots=KNOTS, degree=degree, intercept=True, boundary_knots=BOUNDARY
        )
        nptest.assert_allclose(
            basis.values.sum(axis=1), 1.0, rtol=get_default_tolerance(np.float64)
        )
        assert np.all(basis.values >= 0.0)

    @pytest.mark.parametrize("width", [1e-16, 1e-9, 1e6])
    def test_partition_of_unity_any_domain_width(self, width: float) -> None:
        """Knot intervals are detected relative to the domain width."""
        pts = np.linspace(0.0, width, 9)
        basis = tabulate_Bspline_basis(
            pts,
            knots=[0.3 * width, 0.5 * width, 0.6 * width],
            degree=2,
            intercept=True,
            boundary_knots=(0.0, width),
        )
        nptest.assert_allclose(
            basis.values.sum(axis=1), 1.0, rtol=get_default_tolerance(np.float64)
        )

    def test_derivative_narrow_domain(self) -> None:
        """Linear basis derivatives on a narrow domain are -1/w and 1/w."""
        width = 1e-16
        derivative = tabulate_Bspline_derivative_basis(
            [0.0, 0.5 * width, width], degree=1, intercept=True, boundary_knots=(0.0, width)
        )
        nptest.assert_allclose(derivative.values, [[-1.0 / width, 1.0 / width]] * 3)

    @pytest.mark.parametrize(("degree", "intercept"), [(0, True), (1, False), (3, True)])
    def test_column_count(self, degree: int, intercept: bool) -> None:
        """Column count equals degree + n_internal + intercept."""
        basis = tabulate_Bspline_basis(
            [0.1, 0.2], knots=KNOTS, degree=degree, intercept=intercept, boundary_knots=BOUNDARY
        )
        assert basis.shape == (2, degree + len(KNOTS) + int(intercept))

    def test_intercept_drops_first_column(self) -> None:
        """Without intercept the first column of the full basis is dropped."""
        pts = np.linspace(0.0, 1.0, 11)
        with_intercept = tabulate_Bspline_basis(
            pts, knots=KNOTS, degree=2, intercept=True, boundary_knots=BOUNDARY
        )
        without_intercept = tabulate_Bspline_basis(
            pts, knots=KNOTS, degree=2, intercept=False, boundary_knots=BOUNDARY
        )
        nptest.assert_array_equal(without_intercept.values, with_intercept.values[:, 1:])

    def test_degree_zero_indicator(self) -> None:
        """Degree 0 gives an indicator matrix; x = 1 activates only the last column."""
        basis = tabulate_Bspline_basis(
            [0.0, 0.25, 0.5, 0.75, 1.0],
            knots=[0.5],
            degree=0,
            intercept=True,
            boundary_knots=BOUNDARY,
        )
        expected = np.array(
            [[1.0, 0.0], [1.0, 0.0], [0.0, 1.0], [0.0, 1.0], [0.0, 1.0]], dtype=np.float64
        )
        nptest.assert_array_equal(basis.values, expected)

    def test_linear_basis(self) -> None:
        """Degree 1 without internal knots gives the hat functions 1 - x and x."""
        pts = np.array([0.0, 0.25, 1.0])
        basis = tabulate_Bspline_basis(pts, degree=1, intercept=True)
        nptest.assert_allclose(basis.values, np.column_stack((1.0 - pts, pts)))

    def test_default_degree_and_boundary(self) -> None:
        """Defaults: cubic basis without intercept over the data range."""
        basis = tabulate_Bspline_basis([1.0, 2.0, 3.0])
        assert basis.shape == (3, 3)
        assert basis.knot_spec.boundary_knots == (1.0, 3.0)
        assert basis.knot_spec.degree == 3  # noqa: PLR2004
        assert basis.family is SplineFamily.BSPLINE
        assert isinstance(basis, BsplineBasis)

    def test_df_places_knots(self) -> None:
        """df selects the number of columns through quantile knots."""
        pts = np.linspace(0.0, 1.0, 51)
        basis = tabulate_Bspline_basis(pts, df=6, degree=3)
        assert basis.shape == (51, 6)
        nptest.assert_allclose(basis.knot_spec.internal_knots, [0.25, 0.5, 0.75], atol=1e-14)

    def test_scalar_and_nested_points(self) -> None:
        """Scalars and multi-dimensional inputs are flattened."""
        scalar = tabulate_Bspline_basis(0.5, knots=KNOTS, degree=2, boundary_knots=BOUNDARY)
        assert scalar.shape == (1, 5)
        nested = tabulate_Bspline_basis(
            [[0.1, 0.2], [0.3, 0.4]], knots=KNOTS, degree=2, boundary_knots=BOUNDARY
        )
        assert nested.shape == (4, 5)

    def test_missing_values(self) -> None:
        """NaN and None give all-NaN rows; other rows match the non-missing computation."""
        basis = tabulate_Bspline_basis(
            [0.1, np.nan, 0.7, None, 0.9], knots=KNOTS, degree=2, boundary_knots=BOUNDARY
        )
        reference = tabulate_Bspline_basis(
            [0.1, 0.7, 0.9], knots=KNOTS, degree=2, boundary_knots=BOUNDARY
        )

        assert np.all(np.isnan(basis.values[[1, 3]]))
        nptest.assert_array_equal(basis.values[[0, 2, 4]], reference.values)
        assert np.isnan(basis.points[1])

    def test_missing_values_default_boundary(self) -> None:
        """Missing values are ignored when resolving the boundary knots."""
        basis = tabulate_Bspline_basis([0.2, np.nan, 0.8], degree=1)
        assert basis.knot_spec.boundary_knots == (0.2, 0.8)

    def test_extrapolation_warns(self) -> None:
        """Points beyond the boundary knots warn and extend the boundary polynomials."""
        pts = np.array([-0.2, 0.5, 1.3])
        with pytest.warns(UserWarning, match="beyond the boundary knots"):
            basis = tabulate_Bspline_basis(
                pts, knots=KNOTS, degree=2, intercept=True, boundary_knots=BOUNDARY
            )
        expected = _compute_with_scipy_bspline(2, pts)
        nptest.assert_allclose(basis.values, expected, rtol=1e-12, atol=1e-14)

    def test_empty_domain_error(self) -> None:
        """Test that inputs without a non-missing value raise EmptyDomainError."""
        with pytest.raises(EmptyDomainError):
            tabulate_Bspline_basis([np.nan, None], boundary_knots=BOUNDARY)
        with pytest.raises(EmptyDomainError):
            tabulate_Bspline_basis([], boundary_knots=BOUNDARY)

    def test_non_numeric_points_error(self) -> None:
        """Test that non-numeric points raise TypeError."""
        with pytest.raises(TypeError, match="pts must be real numbers"):
            tabulate_Bspline_basis(["a", "b"])

    def test_invalid_inputs(self) -> None:
        """Invalid degree and knots raise the dedicated errors."""
        with pytest.raises(InvalidDegreeError):
            tabulate_Bspline_basis([0.1, 0.2], degree=-1, boundary_knots=BOUNDARY)
        with pytest.raises(InvalidKnotRangeError):
            tabulate_Bspline_basis([0.1, 0.2], knots=[1.5], boundary_knots=BOUNDARY)
        with pytest.raises(InvalidKnotRangeError):
            tabulate_Bspline_basis([0.1, 0.2], boundary_knots=(1.0, 0.0))


class TestBsplineDerivativeBasis:
    """Test the B-spline derivative engine."""

    @pytest.mark.parametrize(("degree", "derivs"), [(1, 1), (2, 1), (2, 2), (3, 1), (3, 3), (4, 2)])
    def test_against_scipy(self, degree: int, derivs: int) -> None:
        """Derivatives agree with scipy.interpolate.BSpline.derivative."""
        basis = tabulate_Bspline_derivative_basis(
            OFF_KNOT_PTS,
            knots=KNOTS,
            degree=degree,
            intercept=True,
            boundary_knots=BOUNDARY,
            derivs=derivs,
        )
        expected = _compute_with_scipy_bspline(degree, OFF_KNOT_PTS, derivs)
        nptest.assert_allclose(basis.values, expected, rtol=1e-10, atol=1e-10)

    def test_linear_derivative(self) -> None:
        """The derivatives of 1 - x and x are -1 and 1."""
        basis = tabulate_Bspline_basis([0.0, 0.5, 1.0], degree=1, intercept=True, derivs=1)
        nptest.assert_allclose(basis.values, [[-1.0, 1.0]] * 3)

    def test_derivative_rows_sum_to_zero(self) -> None:
        """The derivatives of a partition of unity sum to zero."""
        basis = tabulate_Bspline_basis(
            OFF_KNOT_PTS, knots=KNOTS, degree=3, intercept=True, boundary_knots=BOUNDARY, derivs=2
        )
        nptest.assert_allclose(basis.values.sum(axis=1), 0.0, atol=1e-9)

    def test_order_above_degree_is_zero(self) -> None:
        """Derivatives of order larger than the degree vanish with the right shape."""
        basis = tabulate_Bspline_basis(
            OFF_KNOT_PTS, knots=KNOTS, degree=2, boundary_knots=BOUNDARY, derivs=3
        )
        assert basis.shape == (OFF_KNOT_PTS.size, 5)
        nptest.assert_array_equal(basis.values, 0.0)

    def test_metadata(self) -> None:
        """The result carries its family and derivative order."""
        basis = tabulate_Bspline_derivative_basis(
            [0.2, 0.4], knots=KNOTS, degree=3, boundary_knots=BOUNDARY, derivs=2
        )
        assert isinstance(basis, BsplineDerivativeBasis)
        assert basis.family is SplineFamily.BSPLINE_DERIVATIVE
        assert basis.derivs == 2  # noqa: PLR2004

    def test_order_zero_gives_basis(self) -> None:
        """Order 0 returns the B-spline basis itself."""
        basis = tabulate_Bspline_derivative_basis(
            [0.2, 0.4], knots=KNOTS, degree=3, boundary_knots=BOUNDARY, derivs=0
        )
        assert basis.family is SplineFamily.BSPLINE

    def test_missing_values(self) -> None:
        """Missing points propagate to derivative rows."""
        basis = tabulate_Bspline_basis(
            [0.2, np.nan], knots=KNOTS, degree=3, boundary_knots=BOUNDARY, derivs=1
        )
        assert np.all(np.isnan(basis.values[1]))
        assert np.all(np.isfinite(basis.values[0]))

    def test_negative_order_error(self) -> None:
        """Test that a negative order raises InvalidDerivativeOrderError."""
        with pytest.raises(InvalidDerivativeOrderError, match="non-negative integer"):
            tabulate_Bspline_basis([0.2, 0.4], boundary_knots=BOUNDARY, derivs=-1)
        with pytest.raises(ValueError):
            tabulate_Bspline_derivative_basis([0.2, 0.4], boundary_knots=BOUNDARY, derivs=-2)
