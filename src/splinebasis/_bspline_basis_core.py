"""Core B-spline basis, derivative and cumulative-sum implementations.

This module provides the numerical kernels shared by every spline family:
Cox-de Boor evaluation of the full B-spline basis, the difference matrices
mapping a basis onto the derivatives of a higher degree basis, and the
row-wise reverse cumulative sum that turns an order-elevated B-spline basis
into integrals of lower order splines.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

from ._bspline_knots import _get_knot_span_ids_impl

F = TypeVar("F", bound=Callable[..., Any])

if TYPE_CHECKING:
    # During type-checking, make the decorator a no-op that preserves types.
    def nb_jit(*args: object, **kwargs: object) -> Callable[[F], F]:
        def decorator(func: F) -> F:
            return func

        return decorator
else:
    # At runtime, use the real Numba decorator.
    nb_jit = nb.jit  # type: ignore[attr-defined]


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _compute_basis_Cox_de_Boor_impl(  # noqa: PLR0913
    knots: npt.NDArray[np.float64],
    degree: int,
    tol: float,
    pts: npt.NDArray[np.float64],
    span_ids: npt.NDArray[np.int_],
    out_basis: npt.NDArray[np.float64],
) -> None:
    """Evaluate the full B-spline basis using Cox-de Boor recursion.

    For each point only the ``degree + 1`` functions that do not vanish on its
    knot span are computed (triangular scheme of Algorithm A2.2 in "The NURBS
    Book" by Piegl and Tiller) and written at their global column positions.
    Points outside the span they were assigned to get the polynomial
    continuation of that span.

    Args:
        knots (npt.NDArray[np.float64]): Augmented knot sequence.
        degree (int): B-spline degree (at least 1).
        tol (float): Knot differences below this value are treated as zero.
        pts (npt.NDArray[np.float64]): Finite evaluation points.
        span_ids (npt.NDArray[np.int_]): Knot span of every point.
        out_basis (npt.NDArray[np.float64]): Output array of shape
            (n_pts, len(knots) - degree - 1). Overwritten.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    order = degree + 1
    out_basis.fill(0.0)

    local = np.empty(order, dtype=knots.dtype)
    left = np.empty(order, dtype=knots.dtype)
    right = np.empty(order, dtype=knots.dtype)

    for pt_id in range(pts.size):
        pt = pts[pt_id]
        span = span_ids[pt_id]

        local[0] = 1.0
        for j in range(1, order):
            left[j] = pt - knots[span + 1 - j]
            right[j] = knots[span + j] - pt
            saved = 0.0
            for r in range(j):
                width = knots[span + r + 1] - knots[span + 1 - j + r]
                temp = 0.0 if width < tol else local[r] / width
                local[r] = saved + right[r + 1] * temp
                saved = left[j - r] * temp
            local[j] = saved

        first = span - degree
        for r in range(order):
            out_basis[pt_id, first + r] = local[r]


def _tabulate_Bspline_full_basis_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    pts: npt.NDArray[np.float64],
    tol: float,
) -> npt.NDArray[np.float64]:
    """Evaluate every B-spline basis function of an augmented knot sequence.

    Degree 0 is a direct step-function evaluation: column ``k`` is 1 on
    ``[knots[k], knots[k+1])`` and the last non-empty interval is closed on
    the right. Higher degrees use Cox-de Boor recursion.

    Args:
        knots (npt.NDArray[np.float64]): Augmented knot sequence for ``degree``.
        degree (int): Non-negative B-spline degree.
        pts (npt.NDArray[np.float64]): Finite evaluation points.
        tol (float): Tolerance for zero-width knot intervals.

    Returns:
        npt.NDArray[np.float64]: Array of shape (n_pts, len(knots) - degree - 1).

    Example:
        >>> knots = np.array([0.0, 0.5, 1.0])
        >>> _tabulate_Bspline_full_basis_impl(knots, 0, np.array([0.25, 0.5, 1.0]), 1e-15)
        array([[1., 0.],
               [0., 1.],
               [0., 1.]])
    """
    num_basis = knots.size - degree - 1
    span_ids = _get_knot_span_ids_impl(knots, degree, pts)
    out = np.zeros((pts.size, num_basis), dtype=np.float64)

    if degree == 0:
        out[np.arange(pts.size), span_ids] = 1.0
    else:
        _compute_basis_Cox_de_Boor_impl(knots, degree, tol, pts, span_ids, out)

    return out


def _compute_derivative_matrix_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    tol: float,
) -> npt.NDArray[np.float64]:
    """Build the matrix mapping degree-1 basis values onto first derivatives.

    With ``D`` the returned matrix, the first derivative of the degree
    ``degree`` basis over ``knots`` equals ``B @ D``, where ``B`` is the
    ``degree - 1`` basis over ``knots[1:-1]``. Column ``i`` holds
    ``degree / (t[i+degree] - t[i])`` in row ``i - 1`` and
    ``-degree / (t[i+degree+1] - t[i+1])`` in row ``i``; zero-width supports
    contribute nothing.

    Args:
        knots (npt.NDArray[np.float64]): Augmented knot sequence for ``degree``.
        degree (int): B-spline degree (at least 1).
        tol (float): Tolerance for zero-width knot intervals.

    Returns:
        npt.NDArray[np.float64]: Matrix of shape (num_basis - 1, num_basis).
    """
    num_basis = knots.size - degree - 1
    out = np.zeros((num_basis - 1, num_basis), dtype=np.float64)

    for i in range(num_basis):
        width = knots[i + degree] - knots[i]
        if i >= 1 and width > tol:
            out[i - 1, i] += degree / width
        width = knots[i + degree + 1] - knots[i + 1]
        if i <= num_basis - 2 and width > tol:
            out[i, i] -= degree / width

    return out


def _compute_derivative_coefficients_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    derivs: int,
    tol: float,
) -> npt.NDArray[np.float64]:
    """Build the coefficients expressing ``derivs``-th derivatives in a lower degree basis.

    The ``derivs``-th derivative of the degree ``degree`` basis equals the
    ``degree - derivs`` basis over ``knots[derivs:-derivs]`` times the
    returned matrix. It is the product of ``derivs`` first-derivative
    matrices, so it carries the factor ``degree! / (degree - derivs)!``.

    Args:
        knots (npt.NDArray[np.float64]): Augmented knot sequence for ``degree``.
        degree (int): B-spline degree.
        derivs (int): Derivative order, between 1 and ``degree``.
        tol (float): Tolerance for zero-width knot intervals.

    Returns:
        npt.NDArray[np.float64]: Matrix of shape
        (num_basis - derivs, num_basis).

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    num_basis = knots.size - degree - 1
    coeffs = np.eye(num_basis, dtype=np.float64)

    for step in range(derivs):
        sub_knots = knots[step : knots.size - step]
        coeffs = _compute_derivative_matrix_impl(sub_knots, degree - step, tol) @ coeffs

    return coeffs


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _cumulate_elevated_basis_impl(
    elevated: npt.NDArray[np.float64],
    span_ids: npt.NDArray[np.int_],
    degree: int,
    out: npt.NDArray[np.float64],
) -> None:
    """Integrate a basis through the reverse cumulative sum of its elevated basis.

    Column ``c`` of ``out`` receives the sum of the elevated columns ``j > c``,
    i.e. the integral from the lower boundary of the (unit-integral) M-spline
    ``c`` of degree ``degree - 1``. Columns to the right of the point's span
    are set to 0 and those whose support lies completely to its left to
    exactly 1. Columns are accumulated in descending order within each row.

    Args:
        elevated (npt.NDArray[np.float64]): Full basis of degree ``degree``
            with shape (n_pts, n_basis + 1).
        span_ids (npt.NDArray[np.int_]): Knot spans of the points in the
            elevated knot sequence.
        degree (int): Degree of the elevated basis.
        out (npt.NDArray[np.float64]): Output array of shape (n_pts, n_basis).
            Overwritten.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    num_basis = out.shape[1]

    for pt_id in range(out.shape[0]):
        span = span_ids[pt_id]
        last = span - 1
        first_partial = span - degree
        acc = 0.0
        for col in range(num_basis - 1, -1, -1):
            if col > last:
                out[pt_id, col] = 0.0
            elif col >= first_partial:
                acc += elevated[pt_id, col + 1]
                out[pt_id, col] = acc
            else:
                out[pt_id, col] = 1.0


def _tabulate_cumulative_Bspline_basis_impl(
    elevated_knots: npt.NDArray[np.float64],
    degree: int,
    pts: npt.NDArray[np.float64],
    tol: float,
) -> npt.NDArray[np.float64]:
    """Evaluate the integrals of the full degree ``degree`` M-spline basis.

    Args:
        elevated_knots (npt.NDArray[np.float64]): Augmented knot sequence for
            ``degree + 1`` over the same breakpoints.
        degree (int): Degree of the integrated basis.
        pts (npt.NDArray[np.float64]): Finite evaluation points.
        tol (float): Tolerance for zero-width knot intervals.

    Returns:
        npt.NDArray[np.float64]: Array of shape
        (n_pts, len(elevated_knots) - degree - 3), i.e. one column per
        function of the degree ``degree`` basis.
    """
    elevated_degree = degree + 1
    span_ids = _get_knot_span_ids_impl(elevated_knots, elevated_degree, pts)
    elevated = np.zeros((pts.size, elevated_knots.size - elevated_degree - 1), dtype=np.float64)
    _compute_basis_Cox_de_Boor_impl(elevated_knots, elevated_degree, tol, pts, span_ids, elevated)

    out = np.empty((pts.size, elevated.shape[1] - 1), dtype=np.float64)
    _cumulate_elevated_basis_impl(elevated, span_ids, elevated_degree, out)
    return out


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call.

    This function triggers compilation of the numba-decorated functions
    with float64 arrays, ensuring they are cached and ready for use.
    """
    knots_dummy = np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0], dtype=np.float64)
    pts_dummy = np.array([0.5], dtype=np.float64)
    degree_dummy = 2
    span_dummy = _get_knot_span_ids_impl(knots_dummy, degree_dummy, pts_dummy)
    basis_dummy = np.empty((pts_dummy.size, 3), dtype=np.float64)
    _compute_basis_Cox_de_Boor_impl(
        knots_dummy, degree_dummy, 1e-15, pts_dummy, span_dummy, basis_dummy
    )
    out_dummy = np.empty((pts_dummy.size, 2), dtype=np.float64)
    _cumulate_elevated_basis_impl(basis_dummy, span_dummy, degree_dummy, out_dummy)


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_compute_basis_Cox_de_Boor_impl",
    "_compute_derivative_coefficients_impl",
    "_compute_derivative_matrix_impl",
    "_cumulate_elevated_basis_impl",
    "_tabulate_Bspline_full_basis_impl",
    "_tabulate_cumulative_Bspline_basis_impl",
]
