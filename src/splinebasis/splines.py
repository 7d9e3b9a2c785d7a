"""Public builders of B-, M-, I- and C-spline bases.

Every builder resolves its :class:`~splinebasis.knots.KnotSpec` once from the
data and options, then evaluates the requested family. A non-zero ``derivs``
returns the corresponding derivative basis, built with the family's own
differentiation rule.
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from ._basis_utils import (
    _normalize_points_1D,
    _validate_derivative_order,
    _warn_if_outside_boundary,
)
from ._spline_family_impl import _compute_Cspline_scales_impl
from .basis_matrix import (
    BasisMatrix,
    _build_Bspline_basis,
    _build_Bspline_derivative_basis,
    _build_Bspline_integral_basis,
    _build_Cspline_basis,
    _build_Ispline_basis,
    _build_Mspline_basis,
)
from .knots import KnotSpec, _resolve_knot_spec


def _resolve_points_and_spec(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None,
    knots: npt.ArrayLike | None,
    degree: int,
    intercept: bool,
    boundary_knots: npt.ArrayLike | None,
) -> tuple[npt.NDArray[np.float64], KnotSpec]:
    """Normalize the points and resolve the knot specification of a public builder.

    Must be called directly by a public builder: warnings are attributed to
    that builder's caller.
    """
    points = _normalize_points_1D(pts)
    spec = _resolve_knot_spec(points, df, knots, degree, intercept, boundary_knots, stacklevel=4)
    _warn_if_outside_boundary(points, spec.boundary_knots, stacklevel=4)
    return points, spec


def tabulate_Bspline_basis(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None = None,
    knots: npt.ArrayLike | None = None,
    degree: int = 3,
    intercept: bool = False,
    boundary_knots: npt.ArrayLike | None = None,
    derivs: int = 0,
) -> BasisMatrix:
    """Evaluate a B-spline basis (or one of its derivatives) at the given points.

    Args:
        pts (npt.ArrayLike): Evaluation points. NaN (or None) marks missing
            values, which produce all-NaN rows.
        df (int | None): Target number of columns, used to place internal
            knots at sample quantiles when ``knots`` is None. Defaults to None.
        knots (npt.ArrayLike | None): Internal knots. Defaults to None.
        degree (int): Non-negative polynomial degree. Defaults to 3.
        intercept (bool): Whether the first basis column is kept. Defaults to False.
        boundary_knots (npt.ArrayLike | None): (lower, upper) boundary knots.
            Defaults to the range of the non-missing points.
        derivs (int): Non-negative derivative order. Defaults to 0.

    Returns:
        BasisMatrix: A :class:`~splinebasis.basis_matrix.BsplineBasis`, or a
        :class:`~splinebasis.basis_matrix.BsplineDerivativeBasis` if
        ``derivs > 0``, of shape (len(pts), degree + len(knots) + intercept).

    Raises:
        EmptyDomainError: If there is no non-missing point.
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidDerivativeOrderError: If derivs is negative.
        InvalidKnotRangeError: If the knots are inconsistent with the boundary knots.

    Example:
        >>> basis = tabulate_Bspline_basis([0.25, 1.0], knots=[0.5], degree=0,
        ...                                intercept=True, boundary_knots=(0.0, 1.0))
        >>> basis.values
        array([[1., 0.],
               [0., 1.]])
    """
    order = _validate_derivative_order(derivs)
    points, spec = _resolve_points_and_spec(pts, df, knots, degree, intercept, boundary_knots)
    if order == 0:
        return _build_Bspline_basis(points, spec)
    return _build_Bspline_derivative_basis(points, spec, order)


def tabulate_Bspline_derivative_basis(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None = None,
    knots: npt.ArrayLike | None = None,
    degree: int = 3,
    intercept: bool = False,
    boundary_knots: npt.ArrayLike | None = None,
    derivs: int = 1,
) -> BasisMatrix:
    """Evaluate the derivatives of a B-spline basis at the given points.

    Derivatives of order larger than ``degree`` are identically zero. At an
    internal knot the right derivative is returned.

    Args:
        pts (npt.ArrayLike): Evaluation points. NaN (or None) marks missing values.
        df (int | None): Target number of columns. Defaults to None.
        knots (npt.ArrayLike | None): Internal knots. Defaults to None.
        degree (int): Non-negative polynomial degree. Defaults to 3.
        intercept (bool): Whether the first basis column is kept. Defaults to False.
        boundary_knots (npt.ArrayLike | None): (lower, upper) boundary knots.
            Defaults to the range of the non-missing points.
        derivs (int): Non-negative derivative order. Defaults to 1.

    Returns:
        BasisMatrix: The ``derivs``-th derivative of the B-spline basis (the
        basis itself if ``derivs == 0``).

    Raises:
        EmptyDomainError: If there is no non-missing point.
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidDerivativeOrderError: If derivs is negative.
        InvalidKnotRangeError: If the knots are inconsistent with the boundary knots.
    """
    order = _validate_derivative_order(derivs)
    points, spec = _resolve_points_and_spec(pts, df, knots, degree, intercept, boundary_knots)
    if order == 0:
        return _build_Bspline_basis(points, spec)
    return _build_Bspline_derivative_basis(points, spec, order)


def tabulate_Bspline_integral_basis(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None = None,
    knots: npt.ArrayLike | None = None,
    degree: int = 3,
    intercept: bool = False,
    boundary_knots: npt.ArrayLike | None = None,
    derivs: int = 0,
) -> BasisMatrix:
    """Evaluate the integrals of a B-spline basis from the lower boundary knot.

    Args:
        pts (npt.ArrayLike): Evaluation points. NaN (or None) marks missing values.
        df (int | None): Target number of columns. Defaults to None.
        knots (npt.ArrayLike | None): Internal knots. Defaults to None.
        degree (int): Non-negative degree of the integrated B-splines.
            Defaults to 3.
        intercept (bool): Whether the first basis column is kept. Defaults to False.
        boundary_knots (npt.ArrayLike | None): (lower, upper) boundary knots.
            Defaults to the range of the non-missing points.
        derivs (int): Non-negative derivative order. 1 gives back the
            B-spline basis. Defaults to 0.

    Returns:
        BasisMatrix: A :class:`~splinebasis.basis_matrix.BsplineIntegralBasis`
        if ``derivs == 0``, otherwise its ``derivs``-th derivative.

    Raises:
        EmptyDomainError: If there is no non-missing point.
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidDerivativeOrderError: If derivs is negative.
        InvalidKnotRangeError: If the knots are inconsistent with the boundary knots.
    """
    order = _validate_derivative_order(derivs)
    points, spec = _resolve_points_and_spec(pts, df, knots, degree, intercept, boundary_knots)
    if order == 0:
        return _build_Bspline_integral_basis(points, spec)
    if order == 1:
        return _build_Bspline_basis(points, spec)
    return _build_Bspline_derivative_basis(points, spec, order - 1)


def tabulate_Mspline_basis(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None = None,
    knots: npt.ArrayLike | None = None,
    degree: int = 3,
    intercept: bool = False,
    boundary_knots: npt.ArrayLike | None = None,
    derivs: int = 0,
) -> BasisMatrix:
    """Evaluate an M-spline basis (or one of its derivatives) at the given points.

    M-splines are B-splines rescaled so that every column integrates to 1
    over the boundary knots.

    Args:
        pts (npt.ArrayLike): Evaluation points. NaN (or None) marks missing values.
        df (int | None): Target number of columns. Defaults to None.
        knots (npt.ArrayLike | None): Internal knots. Defaults to None.
        degree (int): Non-negative polynomial degree. Defaults to 3.
        intercept (bool): Whether the first basis column is kept. Defaults to False.
        boundary_knots (npt.ArrayLike | None): (lower, upper) boundary knots.
            Defaults to the range of the non-missing points.
        derivs (int): Non-negative derivative order. Defaults to 0.

    Returns:
        BasisMatrix: A :class:`~splinebasis.basis_matrix.MsplineBasis`.

    Raises:
        EmptyDomainError: If there is no non-missing point.
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidDerivativeOrderError: If derivs is negative.
        InvalidKnotRangeError: If the knots are inconsistent with the boundary knots.

    Example:
        >>> basis = tabulate_Mspline_basis([0.1, 0.5, 0.9], knots=[0.3, 0.5, 0.6],
        ...                                degree=2, intercept=True, boundary_knots=(0, 1))
        >>> basis.shape
        (3, 6)
    """
    order = _validate_derivative_order(derivs)
    points, spec = _resolve_points_and_spec(pts, df, knots, degree, intercept, boundary_knots)
    return _build_Mspline_basis(points, spec, order)


def tabulate_Ispline_basis(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None = None,
    knots: npt.ArrayLike | None = None,
    degree: int = 3,
    intercept: bool = False,
    boundary_knots: npt.ArrayLike | None = None,
    derivs: int = 0,
) -> BasisMatrix:
    """Evaluate an I-spline basis (or one of its derivatives) at the given points.

    I-splines are the integrals of M-splines from the lower boundary knot:
    every column is non-decreasing, 0 at the lower boundary knot and 1 at the
    upper one. ``degree`` is the degree of the integrated M-splines, so the
    polynomial degree of the I-splines is ``degree + 1``.

    Args:
        pts (npt.ArrayLike): Evaluation points. NaN (or None) marks missing values.
        df (int | None): Target number of columns. Defaults to None.
        knots (npt.ArrayLike | None): Internal knots. Defaults to None.
        degree (int): Non-negative degree of the associated M-splines.
            Defaults to 3.
        intercept (bool): Whether the first basis column is kept. Defaults to False.
        boundary_knots (npt.ArrayLike | None): (lower, upper) boundary knots.
            Defaults to the range of the non-missing points.
        derivs (int): Non-negative derivative order. 1 gives the M-spline
            basis. Defaults to 0.

    Returns:
        BasisMatrix: An :class:`~splinebasis.basis_matrix.IsplineBasis` if
        ``derivs == 0``, otherwise an M-spline derivative basis.

    Raises:
        EmptyDomainError: If there is no non-missing point.
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidDerivativeOrderError: If derivs is negative.
        InvalidKnotRangeError: If the knots are inconsistent with the boundary knots.
    """
    order = _validate_derivative_order(derivs)
    points, spec = _resolve_points_and_spec(pts, df, knots, degree, intercept, boundary_knots)
    if order == 0:
        return _build_Ispline_basis(points, spec)
    return _build_Mspline_basis(points, spec, order - 1)


def tabulate_Cspline_basis(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None = None,
    knots: npt.ArrayLike | None = None,
    degree: int = 3,
    intercept: bool = True,
    boundary_knots: npt.ArrayLike | None = None,
    derivs: int = 0,
    scale: bool = True,
) -> BasisMatrix:
    """Evaluate a C-spline basis (or one of its derivatives) at the given points.

    C-splines are the integrals of I-splines from the lower boundary knot and
    are convex. With ``scale=True`` every column is divided by its value at
    the upper boundary knot; columns vanishing there are left unscaled and a
    warning is issued. The derivatives (I- and M-splines) carry the same
    scale factors.

    Args:
        pts (npt.ArrayLike): Evaluation points. NaN (or None) marks missing values.
        df (int | None): Target number of columns. Defaults to None.
        knots (npt.ArrayLike | None): Internal knots. Defaults to None.
        degree (int): Non-negative degree of the associated M-splines.
            Defaults to 3.
        intercept (bool): Whether the first basis column is kept. Defaults to True.
        boundary_knots (npt.ArrayLike | None): (lower, upper) boundary knots.
            Defaults to the range of the non-missing points.
        derivs (int): Non-negative derivative order. 1 gives the I-spline
            basis and 2 the M-spline basis. Defaults to 0.
        scale (bool): Whether to scale every column to 1 at the upper
            boundary knot. Defaults to True.

    Returns:
        BasisMatrix: A :class:`~splinebasis.basis_matrix.CsplineBasis` if
        ``derivs == 0``, otherwise its ``derivs``-th derivative.

    Raises:
        EmptyDomainError: If there is no non-missing point.
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidDerivativeOrderError: If derivs is negative.
        InvalidKnotRangeError: If the knots are inconsistent with the boundary knots.

    Example:
        >>> basis = tabulate_Cspline_basis([0.5, 1.0], knots=[0.3, 0.5, 0.6], degree=2,
        ...                                boundary_knots=(0.0, 1.0))
        >>> np.allclose(basis.values[-1], 1.0)
        True
    """
    order = _validate_derivative_order(derivs)
    points, spec = _resolve_points_and_spec(pts, df, knots, degree, intercept, boundary_knots)
    scales = _compute_Cspline_scales_impl(spec) if scale else None
    basis = _build_Cspline_basis(points, spec, scales)
    return basis.differentiate(order)


def differentiate_basis(basis: BasisMatrix, derivs: int = 1) -> BasisMatrix:
    """Differentiate a basis matrix of any family.

    Args:
        basis (BasisMatrix): Basis to differentiate.
        derivs (int): Non-negative derivative order. 0 returns a copy.
            Defaults to 1.

    Returns:
        BasisMatrix: New basis matrix of the ``derivs``-th derivative.

    Raises:
        TypeError: If ``basis`` is not a BasisMatrix.
        InvalidDerivativeOrderError: If derivs is negative.

    Example:
        >>> ispline = tabulate_Ispline_basis(np.linspace(0.0, 1.0, 5), knots=[0.5], degree=2)
        >>> mspline = tabulate_Mspline_basis(np.linspace(0.0, 1.0, 5), knots=[0.5], degree=2)
        >>> np.allclose(differentiate_basis(ispline).values, mspline.values)
        True
    """
    if not isinstance(basis, BasisMatrix):
        raise TypeError(f"basis must be a BasisMatrix, got {type(basis).__name__}")
    return basis.differentiate(derivs)


def evaluate_basis_at(basis: BasisMatrix, pts: npt.ArrayLike) -> BasisMatrix:
    """Evaluate a basis of any family at new points.

    The knot specification, derivative order and scaling stored in ``basis``
    are reused; nothing is re-derived from the new points.

    Args:
        basis (BasisMatrix): Basis providing the parameters.
        pts (npt.ArrayLike): New evaluation points. NaN (or None) marks missing values.

    Returns:
        BasisMatrix: Basis of the same family evaluated at ``pts``.

    Raises:
        TypeError: If ``basis`` is not a BasisMatrix.
        EmptyDomainError: If there is no non-missing point.
    """
    if not isinstance(basis, BasisMatrix):
        raise TypeError(f"basis must be a BasisMatrix, got {type(basis).__name__}")
    return basis._evaluate_at_user_points(pts, stacklevel=4)


__all__ = [
    "differentiate_basis",
    "evaluate_basis_at",
    "tabulate_Bspline_basis",
    "tabulate_Bspline_derivative_basis",
    "tabulate_Bspline_integral_basis",
    "tabulate_Cspline_basis",
    "tabulate_Ispline_basis",
    "tabulate_Mspline_basis",
]
