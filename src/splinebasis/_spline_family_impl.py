"""Array-level builders of the B-, M-, I- and C-spline families.

Every builder works on finite points only (missing values are handled by the
callers) and returns a plain array with one column per basis function, the
intercept column already removed when the knot specification asks for it.
"""

from __future__ import annotations

import warnings

import numpy as np
import numpy.typing as npt

from ._basis_utils import _drop_intercept_column
from ._bspline_basis_core import (
    _compute_derivative_coefficients_impl,
    _tabulate_Bspline_full_basis_impl,
    _tabulate_cumulative_Bspline_basis_impl,
)
from .knots import KnotSpec
from .tolerance import get_default_tolerance, get_strict_tolerance


def _get_domain_width(spec: KnotSpec) -> float:
    """Get the distance between the boundary knots."""
    lower, upper = spec.boundary_knots
    return upper - lower


def _get_knot_tolerance(spec: KnotSpec) -> float:
    """Get the tolerance below which a knot difference counts as zero.

    It is relative to the distance between the boundary knots, so that bases
    over narrow domains keep all their non-empty intervals.

    Args:
        spec (KnotSpec): Knot specification.

    Returns:
        float: Tolerance for zero-width knot intervals.
    """
    return get_strict_tolerance(np.float64) * _get_domain_width(spec)


def _get_support_widths(knots: npt.NDArray[np.float64], order: int) -> npt.NDArray[np.float64]:
    """Get ``knots[j + order] - knots[j]`` for every basis function ``j``."""
    return knots[order:] - knots[:-order]


def _get_Mspline_factors(spec: KnotSpec) -> npt.NDArray[np.float64]:
    """Get the per-column factors turning full B-spline columns into M-spline columns.

    Column ``j`` is scaled by ``order / (t[j+order] - t[j])`` so that it
    integrates to 1; zero-width supports get a zero factor.

    Args:
        spec (KnotSpec): Knot specification.

    Returns:
        npt.NDArray[np.float64]: One factor per full basis function.
    """
    widths = _get_support_widths(spec.augmented_knots, spec.order)
    factors = np.zeros_like(widths)
    nonzero = widths > _get_knot_tolerance(spec)
    factors[nonzero] = spec.order / widths[nonzero]
    return factors


def _tabulate_full_Bspline_derivative_impl(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
    derivs: int,
) -> npt.NDArray[np.float64]:
    """Evaluate the ``derivs``-th derivative of every function of the full basis.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        spec (KnotSpec): Knot specification.
        derivs (int): Non-negative derivative order.

    Returns:
        npt.NDArray[np.float64]: Array of shape (n_pts, degree + 1 + n_internal).
        Identically zero if ``derivs > degree``.
    """
    degree = spec.degree
    tol = _get_knot_tolerance(spec)
    knots = spec.augmented_knots
    num_full = knots.size - degree - 1

    if derivs > degree:
        return np.zeros((pts.size, num_full), dtype=np.float64)

    lower = _tabulate_Bspline_full_basis_impl(
        spec.get_augmented_knots(degree - derivs), degree - derivs, pts, tol
    )
    if derivs == 0:
        return lower

    coeffs = _compute_derivative_coefficients_impl(knots, degree, derivs, tol)
    return lower @ coeffs


def _tabulate_Bspline_impl(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
    derivs: int = 0,
) -> npt.NDArray[np.float64]:
    """Evaluate the B-spline basis (``derivs == 0``) or one of its derivatives.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        spec (KnotSpec): Knot specification.
        derivs (int): Non-negative derivative order. Defaults to 0.

    Returns:
        npt.NDArray[np.float64]: Array of shape (n_pts, spec.num_basis).
    """
    full = _tabulate_full_Bspline_derivative_impl(pts, spec, derivs)
    return _drop_intercept_column(full, spec.intercept)


def _tabulate_Bspline_integral_impl(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
) -> npt.NDArray[np.float64]:
    """Evaluate the integrals of the B-spline basis from the lower boundary knot.

    The integral of column ``j`` is the I-spline value of that column times
    the integral of the B-spline, ``(t[j+order] - t[j]) / order``.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        spec (KnotSpec): Knot specification.

    Returns:
        npt.NDArray[np.float64]: Array of shape (n_pts, spec.num_basis).
    """
    cumulative = _tabulate_cumulative_Bspline_basis_impl(
        spec.get_augmented_knots(spec.degree + 1), spec.degree, pts, _get_knot_tolerance(spec)
    )
    widths = _get_support_widths(spec.augmented_knots, spec.order)
    full = cumulative * (widths / spec.order)
    return _drop_intercept_column(full, spec.intercept)


def _tabulate_Mspline_impl(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
    derivs: int = 0,
) -> npt.NDArray[np.float64]:
    """Evaluate the M-spline basis (``derivs == 0``) or one of its derivatives.

    The requested derivative of the B-spline basis is built directly and the
    M-spline factors are applied once.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        spec (KnotSpec): Knot specification.
        derivs (int): Non-negative derivative order. Defaults to 0.

    Returns:
        npt.NDArray[np.float64]: Array of shape (n_pts, spec.num_basis).
    """
    full = _tabulate_full_Bspline_derivative_impl(pts, spec, derivs)
    full *= _get_Mspline_factors(spec)
    return _drop_intercept_column(full, spec.intercept)


def _tabulate_Ispline_impl(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
) -> npt.NDArray[np.float64]:
    """Evaluate the I-spline basis.

    The degree of the I-spline is the degree of the M-spline it integrates,
    so its polynomial degree is ``spec.degree + 1``.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        spec (KnotSpec): Knot specification.

    Returns:
        npt.NDArray[np.float64]: Array of shape (n_pts, spec.num_basis).
    """
    full = _tabulate_cumulative_Bspline_basis_impl(
        spec.get_augmented_knots(spec.degree + 1), spec.degree, pts, _get_knot_tolerance(spec)
    )
    return _drop_intercept_column(full, spec.intercept)


def _tabulate_Cspline_impl(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
) -> npt.NDArray[np.float64]:
    """Evaluate the unscaled C-spline basis (integrals of the I-splines).

    I-spline ``i`` is the sum of the elevated B-spline columns ``j > i``, so
    its integral is the sum of the integrals of those columns, obtained with
    the same cumulative mechanism one degree higher.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        spec (KnotSpec): Knot specification.

    Returns:
        npt.NDArray[np.float64]: Array of shape (n_pts, spec.num_basis).
    """
    elevated_degree = spec.degree + 1
    elevated_order = elevated_degree + 1

    cumulative = _tabulate_cumulative_Bspline_basis_impl(
        spec.get_augmented_knots(elevated_degree + 1),
        elevated_degree,
        pts,
        _get_knot_tolerance(spec),
    )
    widths = _get_support_widths(spec.get_augmented_knots(elevated_degree), elevated_order)
    elevated_integrals = cumulative * (widths / elevated_order)

    reverse_sums = np.cumsum(elevated_integrals[:, ::-1], axis=1)[:, ::-1]
    full = np.ascontiguousarray(reverse_sums[:, 1:])
    return _drop_intercept_column(full, spec.intercept)


def _compute_Cspline_scales_impl(spec: KnotSpec) -> npt.NDArray[np.float64]:
    """Compute the divisors making every C-spline column equal 1 at the upper boundary.

    C-spline values have the dimension of the points, so a column counts as
    vanishing when its value at the upper boundary knot is not positive
    relative to the distance between the boundary knots. Such columns are
    left unscaled (divisor 1) and a warning is issued.

    Args:
        spec (KnotSpec): Knot specification.

    Returns:
        npt.NDArray[np.float64]: One divisor per basis column.

    Note:
        The warning is attributed to the caller of the public builder, which
        calls this function directly.
    """
    upper = np.array([spec.boundary_knots[1]], dtype=np.float64)
    scales = _tabulate_Cspline_impl(upper, spec)[0].copy()

    vanishing = scales <= get_default_tolerance(np.float64) * _get_domain_width(spec)
    if np.any(vanishing):
        warnings.warn(
            f"C-spline columns {np.flatnonzero(vanishing).tolist()} vanish at the upper "
            "boundary knot and are left unscaled",
            UserWarning,
            stacklevel=3,
        )
        scales[vanishing] = 1.0
    return scales


__all__ = [
    "_compute_Cspline_scales_impl",
    "_get_Mspline_factors",
    "_tabulate_Bspline_impl",
    "_tabulate_Bspline_integral_impl",
    "_tabulate_Cspline_impl",
    "_tabulate_Ispline_impl",
    "_tabulate_Mspline_impl",
]
