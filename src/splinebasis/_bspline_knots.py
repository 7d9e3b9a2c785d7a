"""Knot sequence construction, validation and knot span lookup.

This module turns boundary knots, internal knots and a degree into the
augmented knot sequence used by the basis recursions, validates those inputs,
resolves data-driven defaults (boundary knots from the data range, internal
knots from sample quantiles) and locates the knot span of evaluation points.
"""

from __future__ import annotations

import operator
import warnings
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

from .exceptions import InvalidDegreeError, InvalidKnotRangeError

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


def _check_degree(degree: int) -> int:
    """Validate a spline degree.

    Args:
        degree (int): Polynomial degree.

    Returns:
        int: The degree as a Python int.

    Raises:
        InvalidDegreeError: If degree is not a non-negative integer.
    """
    try:
        value = operator.index(degree)
    except TypeError as exc:
        raise InvalidDegreeError("degree must be a non-negative integer") from exc
    if value < 0:
        raise InvalidDegreeError("degree must be non-negative")
    return value


def _check_knot_range(
    internal_knots: npt.NDArray[np.float64],
    boundary_knots: tuple[float, float],
) -> None:
    """Validate boundary knots and the position of the internal knots.

    Args:
        internal_knots (npt.NDArray[np.float64]): Internal knots (any order).
        boundary_knots (tuple[float, float]): (lower, upper) boundary knots.

    Raises:
        InvalidKnotRangeError: If the boundary knots are not finite, if
            lower >= upper, or if any internal knot lies outside [lower, upper].
    """
    lower, upper = boundary_knots
    if not (np.isfinite(lower) and np.isfinite(upper)):
        raise InvalidKnotRangeError("boundary knots must be finite")
    if lower >= upper:
        raise InvalidKnotRangeError("boundary_knots[0] must be less than boundary_knots[1]")
    if not np.all(np.isfinite(internal_knots)):
        raise InvalidKnotRangeError("internal knots must be finite")
    if np.any(internal_knots < lower) or np.any(internal_knots > upper):
        raise InvalidKnotRangeError(
            f"internal knots must lie within the boundary knots [{lower}, {upper}]"
        )


def _build_augmented_knots_impl(
    internal_knots: npt.NDArray[np.float64],
    boundary_knots: tuple[float, float],
    degree: int,
) -> npt.NDArray[np.float64]:
    """Build the augmented knot sequence.

    Each boundary knot is repeated ``degree + 1`` times and the sorted
    internal knots are placed in between.

    Args:
        internal_knots (npt.NDArray[np.float64]): Internal knots.
        boundary_knots (tuple[float, float]): (lower, upper) boundary knots.
        degree (int): Polynomial degree.

    Returns:
        npt.NDArray[np.float64]: Non-decreasing knot sequence of length
        ``2 * (degree + 1) + len(internal_knots)``.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    order = degree + 1
    lower, upper = boundary_knots
    return np.concatenate(
        (
            np.full(order, lower, dtype=np.float64),
            np.sort(np.asarray(internal_knots, dtype=np.float64)),
            np.full(order, upper, dtype=np.float64),
        )
    )


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _get_knot_span_ids_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    pts: npt.NDArray[np.float64],
) -> npt.NDArray[np.int_]:
    """Get, for each point, the index of the non-empty knot span it belongs to.

    The span of ``x`` is the index ``i`` of the last knot with
    ``knots[i] <= x``, so a point on an internal knot belongs to the span that
    starts at that knot. Indices are clamped to the spans of the domain,
    ``[degree, len(knots) - degree - 2]``; the upper boundary point (and any
    point beyond it) falls in the last non-empty span, points below the lower
    boundary in the first one.

    Args:
        knots (npt.NDArray[np.float64]): Augmented knot sequence.
        degree (int): Polynomial degree matching the knot multiplicity at the
            boundaries.
        pts (npt.NDArray[np.float64]): Finite points.

    Returns:
        npt.NDArray[np.int_]: Span index for every point.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    last = knots.size - degree - 2
    span_ids = np.searchsorted(knots, pts, side="right") - 1

    for pt_id in range(pts.size):
        span = span_ids[pt_id]
        if span < degree:
            span = degree
            while span < last and knots[span + 1] <= knots[span]:
                span += 1
        elif span > last:
            span = last
            while span > degree and knots[span + 1] <= knots[span]:
                span -= 1
        span_ids[pt_id] = span

    return span_ids


def _resolve_boundary_knots(
    pts: npt.NDArray[np.float64],
    boundary_knots: npt.ArrayLike | None,
) -> tuple[float, float]:
    """Resolve the boundary knots of a build call.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        boundary_knots (npt.ArrayLike | None): User supplied (lower, upper)
            pair, or None to use the range of ``pts``.

    Returns:
        tuple[float, float]: (lower, upper) boundary knots.

    Raises:
        InvalidKnotRangeError: If the supplied boundary knots are not a pair.
    """
    if boundary_knots is None:
        return float(np.min(pts)), float(np.max(pts))

    bounds = np.asarray(boundary_knots, dtype=np.float64).ravel()
    if bounds.size != 2:  # noqa: PLR2004
        raise InvalidKnotRangeError("boundary_knots must contain exactly two values")
    return float(bounds[0]), float(bounds[1])


def _get_num_internal_knots_from_df(
    df: int, degree: int, intercept: bool, stacklevel: int = 2
) -> int:
    """Translate a requested number of basis columns into a number of internal knots.

    Args:
        df (int): Requested number of basis columns.
        degree (int): Polynomial degree.
        intercept (bool): Whether the intercept column is kept.
        stacklevel (int): Stack level of the too-small warning, counted from
            this function. Defaults to 2.

    Returns:
        int: Number of internal knots. A too small ``df`` issues a warning and
        yields zero internal knots.
    """
    num_internal = int(df) - degree - int(intercept)
    if num_internal < 0:
        warnings.warn(
            f"df = {df} is too small for degree {degree} (intercept={intercept}); "
            f"using df = {degree + int(intercept)} instead",
            UserWarning,
            stacklevel=stacklevel,
        )
        return 0
    return num_internal


def _select_quantile_knots_impl(
    pts: npt.NDArray[np.float64],
    boundary_knots: tuple[float, float],
    num_internal: int,
) -> npt.NDArray[np.float64]:
    """Place internal knots at equally spaced interior sample quantiles.

    Only points inside the boundary knots are used.

    Args:
        pts (npt.NDArray[np.float64]): Finite points.
        boundary_knots (tuple[float, float]): (lower, upper) boundary knots.
        num_internal (int): Number of internal knots.

    Returns:
        npt.NDArray[np.float64]: Sorted internal knots.
    """
    if num_internal == 0:
        return np.empty(0, dtype=np.float64)

    lower, upper = boundary_knots
    inside = pts[(pts >= lower) & (pts <= upper)]
    if inside.size == 0:
        raise InvalidKnotRangeError("no point lies within the boundary knots to place knots")
    probs = np.arange(1, num_internal + 1, dtype=np.float64) / (num_internal + 1)
    return np.asarray(np.quantile(inside, probs), dtype=np.float64)


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call."""
    knots_dummy = np.array([0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0], dtype=np.float64)
    pts_dummy = np.array([0.25, 1.0], dtype=np.float64)
    _get_knot_span_ids_impl(knots_dummy, 2, pts_dummy)


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_build_augmented_knots_impl",
    "_check_degree",
    "_check_knot_range",
    "_get_knot_span_ids_impl",
    "_get_num_internal_knots_from_df",
    "_resolve_boundary_knots",
    "_select_quantile_knots_impl",
]
