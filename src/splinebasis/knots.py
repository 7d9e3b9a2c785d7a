"""Knot specifications for spline bases.

A :class:`KnotSpec` gathers the parameters that fully determine a spline
basis (internal knots, boundary knots, degree and intercept). It is resolved
once at the start of every build call by :func:`create_knot_spec` and stored
in the resulting basis matrix, so that later derivatives and re-evaluations
never depend on the data again.
"""

from __future__ import annotations

import functools
from typing import cast

import numpy as np
from numpy import typing as npt

from ._basis_utils import _normalize_points_1D, _split_missing_points
from ._bspline_knots import (
    _build_augmented_knots_impl,
    _check_degree,
    _check_knot_range,
    _get_num_internal_knots_from_df,
    _resolve_boundary_knots,
    _select_quantile_knots_impl,
)
from .exceptions import InvalidKnotRangeError


class KnotSpec:
    """Immutable set of parameters generating a spline basis.

    Attributes:
        _internal_knots (npt.NDArray[np.float64]): Sorted internal knots (read-only).
        _boundary_knots (tuple[float, float]): (lower, upper) boundary knots.
        _degree (int): Polynomial degree.
        _intercept (bool): Whether the first basis column is kept.
    """

    _internal_knots: npt.NDArray[np.float64]
    _boundary_knots: tuple[float, float]
    _degree: int
    _intercept: bool

    def __init__(
        self,
        internal_knots: npt.ArrayLike,
        boundary_knots: npt.ArrayLike,
        degree: int = 3,
        intercept: bool = False,
    ) -> None:
        """Initialize a knot specification.

        Args:
            internal_knots (npt.ArrayLike): Internal knots, in any order. May be empty.
            boundary_knots (npt.ArrayLike): (lower, upper) boundary knots.
            degree (int): Non-negative polynomial degree. Defaults to 3.
            intercept (bool): Whether the first basis column is kept. Defaults to False.

        Raises:
            InvalidDegreeError: If degree is not a non-negative integer.
            InvalidKnotRangeError: If lower >= upper or an internal knot lies
                outside the boundary knots.
        """
        self._degree = _check_degree(degree)

        if boundary_knots is None:
            raise InvalidKnotRangeError("boundary_knots must be given")
        knots = np.sort(np.asarray(internal_knots, dtype=np.float64).ravel())
        bounds = _resolve_boundary_knots(knots, boundary_knots)
        _check_knot_range(knots, bounds)

        knots.setflags(write=False)
        self._internal_knots = knots
        self._boundary_knots = bounds
        self._intercept = bool(intercept)

    @property
    def internal_knots(self) -> npt.NDArray[np.float64]:
        """Get the sorted internal knots.

        Returns:
            npt.NDArray[np.float64]: Read-only array of internal knots.
        """
        return self._internal_knots

    @property
    def boundary_knots(self) -> tuple[float, float]:
        """Get the boundary knots.

        Returns:
            tuple[float, float]: (lower, upper) boundary knots.
        """
        return self._boundary_knots

    @property
    def degree(self) -> int:
        """Get the polynomial degree.

        Returns:
            int: The degree.
        """
        return self._degree

    @property
    def intercept(self) -> bool:
        """Check whether the intercept column is kept.

        Returns:
            bool: True if the first basis column is part of the basis.
        """
        return self._intercept

    @property
    def order(self) -> int:
        """Get the spline order (degree + 1)."""
        return self._degree + 1

    @property
    def num_basis(self) -> int:
        """Get the number of basis columns.

        Returns:
            int: ``degree + len(internal_knots) + intercept``.
        """
        return self._degree + self._internal_knots.size + int(self._intercept)

    @functools.cached_property
    def augmented_knots(self) -> npt.NDArray[np.float64]:
        """Get the augmented knot sequence of the spec's degree.

        Returns:
            npt.NDArray[np.float64]: Read-only knot sequence with each boundary
            knot repeated ``degree + 1`` times.

        Example:
            >>> KnotSpec([0.5], (0.0, 1.0), degree=2).augmented_knots
            array([0. , 0. , 0. , 0.5, 1. , 1. , 1. ])
        """
        return self.get_augmented_knots(self._degree)

    def get_augmented_knots(self, degree: int) -> npt.NDArray[np.float64]:
        """Get the augmented knot sequence for another degree over the same breakpoints.

        Used to build order-elevated or order-reduced bases.

        Args:
            degree (int): Non-negative degree fixing the boundary multiplicity.

        Returns:
            npt.NDArray[np.float64]: Read-only augmented knot sequence.
        """
        knots = _build_augmented_knots_impl(
            self._internal_knots, self._boundary_knots, _check_degree(degree)
        )
        knots.setflags(write=False)
        return knots

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KnotSpec):
            return NotImplemented
        return (
            self._degree == other._degree
            and self._intercept == other._intercept
            and self._boundary_knots == other._boundary_knots
            and np.array_equal(self._internal_knots, other._internal_knots)
        )

    def __hash__(self) -> int:
        return hash(
            (
                self._degree,
                self._intercept,
                self._boundary_knots,
                self._internal_knots.tobytes(),
            )
        )

    def __repr__(self) -> str:
        return (
            f"KnotSpec(internal_knots={self._internal_knots.tolist()}, "
            f"boundary_knots={self._boundary_knots}, degree={self._degree}, "
            f"intercept={self._intercept})"
        )


def create_knot_spec(
    pts: npt.ArrayLike,
    df: int | None = None,
    knots: npt.ArrayLike | None = None,
    degree: int = 3,
    intercept: bool = False,
    boundary_knots: npt.ArrayLike | None = None,
) -> KnotSpec:
    """Resolve the knot specification of a build call from data and options.

    Boundary knots default to the range of the non-missing points. When
    ``knots`` is not given but ``df`` is, ``df - degree - intercept``
    internal knots are placed at equally spaced interior sample quantiles of
    the non-missing points lying inside the boundary knots.

    Args:
        pts (npt.ArrayLike): Evaluation points. NaN (or None) marks missing values.
        df (int | None): Target number of basis columns. Ignored when
            ``knots`` is given. Defaults to None.
        knots (npt.ArrayLike | None): Internal knots. Defaults to None (no
            internal knots unless ``df`` is given).
        degree (int): Non-negative polynomial degree. Defaults to 3.
        intercept (bool): Whether the first basis column is kept. Defaults to False.
        boundary_knots (npt.ArrayLike | None): (lower, upper) boundary knots.
            Defaults to the range of the non-missing points.

    Returns:
        KnotSpec: The resolved specification.

    Raises:
        EmptyDomainError: If there is no non-missing point.
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidKnotRangeError: If the boundary knots are not increasing or an
            internal knot lies outside them.

    Example:
        >>> create_knot_spec([0.0, 0.2, 0.4, 0.6, 0.8, 1.0], df=4, degree=3)
        KnotSpec(internal_knots=[0.5], boundary_knots=(0.0, 1.0), degree=3, intercept=False)
    """
    return _resolve_knot_spec(pts, df, knots, degree, intercept, boundary_knots, stacklevel=3)


def _resolve_knot_spec(  # noqa: PLR0913
    pts: npt.ArrayLike,
    df: int | None,
    knots: npt.ArrayLike | None,
    degree: int,
    intercept: bool,
    boundary_knots: npt.ArrayLike | None,
    stacklevel: int,
) -> KnotSpec:
    """Resolve a knot specification, see :func:`create_knot_spec`.

    ``stacklevel`` locates the caller the too-small ``df`` warning is
    attributed to, counted from this function (2 is its direct caller).
    """
    degree = _check_degree(degree)
    finite_pts, _ = _split_missing_points(_normalize_points_1D(pts))
    bounds = _resolve_boundary_knots(finite_pts, boundary_knots)

    if knots is None:
        if df is None:
            internal: npt.NDArray[np.float64] = np.empty(0, dtype=np.float64)
        else:
            _check_knot_range(np.empty(0, dtype=np.float64), bounds)
            num_internal = _get_num_internal_knots_from_df(
                df, degree, intercept, stacklevel=stacklevel + 1
            )
            internal = _select_quantile_knots_impl(finite_pts, bounds, num_internal)
    else:
        internal = np.asarray(knots, dtype=np.float64).ravel()

    return KnotSpec(internal, bounds, degree, intercept)


def create_augmented_knot_vector(
    internal_knots: npt.ArrayLike,
    boundary_knots: npt.ArrayLike,
    degree: int,
) -> npt.NDArray[np.float64]:
    """Create the augmented knot sequence of a spline basis.

    Args:
        internal_knots (npt.ArrayLike): Internal knots (any order, may be empty).
        boundary_knots (npt.ArrayLike): (lower, upper) boundary knots.
        degree (int): Non-negative polynomial degree.

    Returns:
        npt.NDArray[np.float64]: Knot sequence with each boundary knot
        repeated ``degree + 1`` times and the sorted internal knots in between.

    Raises:
        InvalidDegreeError: If degree is not a non-negative integer.
        InvalidKnotRangeError: If lower >= upper or an internal knot lies
            outside the boundary knots.

    Example:
        >>> create_augmented_knot_vector([0.6, 0.3], (0.0, 1.0), 1)
        array([0. , 0. , 0.3, 0.6, 1. , 1. ])
    """
    spec = KnotSpec(internal_knots, boundary_knots, degree)
    return cast(npt.NDArray[np.float64], spec.augmented_knots.copy())
