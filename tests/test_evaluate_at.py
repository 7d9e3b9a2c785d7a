"""Tests for re-evaluating a basis at new points."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import numpy.testing as nptest
import pytest

from splinebasis import (
    BasisMatrix,
    evaluate_basis_at,
    tabulate_Bspline_basis,
    tabulate_Bspline_integral_basis,
    tabulate_Cspline_basis,
    tabulate_Ispline_basis,
    tabulate_Mspline_basis,
)
from splinebasis.exceptions import EmptyDomainError

PTS = np.linspace(0.0, 1.0, 11)

BUILDERS: list[Callable[..., BasisMatrix]] = [
    tabulate_Bspline_basis,
    tabulate_Bspline_integral_basis,
    tabulate_Mspline_basis,
    tabulate_Ispline_basis,
    tabulate_Cspline_basis,
]


class TestEvaluateAt:
    """Test BasisMatrix.evaluate_at and evaluate_basis_at."""

    @pytest.mark.parametrize("builder", BUILDERS)
    @pytest.mark.parametrize("derivs", [0, 1, 2])
    def test_subset_reproduces_rows(self, builder: Callable[..., BasisMatrix], derivs: int) -> None:
        """Evaluating at a subset of the original points reproduces the corresponding rows."""
        basis = builder(PTS, df=6, degree=2).differentiate(derivs)
        subset = evaluate_basis_at(basis, PTS[2:7])

        assert subset.family is basis.family
        assert subset.derivs == basis.derivs
        assert subset.knot_spec == basis.knot_spec
        nptest.assert_allclose(subset.values, basis.values[2:7], rtol=1e-13, atol=1e-12)

    def test_knots_are_not_rederived(self) -> None:
        """Data-driven knots and boundary knots are kept for the new points."""
        basis = tabulate_Bspline_basis(PTS, df=6, degree=3)
        narrow = basis.evaluate_at([0.2, 0.3])

        assert narrow.knot_spec == basis.knot_spec
        assert narrow.knot_spec.boundary_knots == (0.0, 1.0)
        assert narrow.shape == (2, 6)

    def test_scales_are_kept(self) -> None:
        """Re-evaluation keeps the C-spline scale factors."""
        basis = tabulate_Cspline_basis(PTS, degree=2)
        assert basis.scales is not None

        upper = basis.evaluate_at([1.0])
        assert upper.scales is not None
        nptest.assert_array_equal(upper.scales, basis.scales)
        nptest.assert_allclose(upper.values[0], 1.0, rtol=1e-13)

    def test_unscaled_stays_unscaled(self) -> None:
        """An unscaled C-spline basis is re-evaluated without scaling."""
        basis = tabulate_Cspline_basis(PTS, degree=0, scale=False)
        nptest.assert_allclose(basis.evaluate_at([1.0]).values, [[0.5]])

    def test_outside_points_warn(self) -> None:
        """New points beyond the stored boundary knots are extrapolated with a warning."""
        basis = tabulate_Bspline_basis(PTS, degree=1, intercept=True)
        with pytest.warns(UserWarning, match="beyond the boundary knots"):
            wide = basis.evaluate_at([1.5])
        nptest.assert_allclose(wide.values, [[-0.5, 1.5]])

    @pytest.mark.parametrize("builder", BUILDERS)
    def test_outside_points_warn_once_at_caller(self, builder: Callable[..., BasisMatrix]) -> None:
        """Both re-evaluation entry points warn once, at the line of the call."""
        basis = builder(PTS, degree=2)
        for evaluate in (basis.evaluate_at, lambda pts: evaluate_basis_at(basis, pts)):
            with pytest.warns(UserWarning) as record:
                evaluate([-0.5, 0.5])
            assert len(record) == 1
            assert record[0].filename == __file__

    def test_missing_values(self) -> None:
        """Missing new points give NaN rows."""
        basis = tabulate_Mspline_basis(PTS, degree=2)
        result = basis.evaluate_at([0.5, np.nan])
        assert np.all(np.isnan(result.values[1]))
        nptest.assert_allclose(result.values[0], basis.values[5])

    def test_empty_domain_error(self) -> None:
        """Test that new points without a non-missing value raise EmptyDomainError."""
        basis = tabulate_Ispline_basis(PTS, degree=2)
        with pytest.raises(EmptyDomainError):
            basis.evaluate_at([np.nan])

    def test_non_basis_error(self) -> None:
        """Test that evaluating a plain array raises TypeError."""
        with pytest.raises(TypeError, match="basis must be a BasisMatrix"):
            evaluate_basis_at(np.zeros((2, 2)), [0.5])  # type: ignore[arg-type]
