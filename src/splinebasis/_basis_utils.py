"""Utility functions shared by the spline basis builders."""

import operator
import warnings

import numpy as np
from numpy import typing as npt

from .exceptions import EmptyDomainError, InvalidDerivativeOrderError


def _normalize_points_1D(pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalize evaluation points to a 1D float64 array.

    Scalars become arrays with a single element and multi-dimensional inputs
    are flattened. ``None`` entries of a sequence are turned into NaN, which is
    the missing-value marker used by every builder.

    Args:
        pts (npt.ArrayLike): Evaluation points.

    Returns:
        npt.NDArray[np.float64]: 1D array of points (a new array, never a view
        of the input).

    Raises:
        TypeError: If the points cannot be interpreted as real numbers.
    """
    try:
        arr = np.array(pts, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise TypeError("pts must be real numbers (NaN or None for missing values)") from exc

    if arr.ndim == 0:
        arr = arr.reshape(1)
    elif arr.ndim > 1:
        arr = arr.ravel()

    return arr


def _split_missing_points(
    pts: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.bool_]]:
    """Separate missing points from the evaluable ones.

    Args:
        pts (npt.NDArray[np.float64]): Normalized 1D points.

    Returns:
        tuple[npt.NDArray[np.float64], npt.NDArray[np.bool_]]: Tuple of
        (finite_points, missing_mask) where ``missing_mask`` has the length of
        ``pts`` and is True at NaN entries.

    Raises:
        EmptyDomainError: If there is no non-missing point.
    """
    missing = np.isnan(pts)
    if pts.size == 0 or np.all(missing):
        raise EmptyDomainError("pts must contain at least one non-missing value")
    return pts[~missing], missing


def _restore_missing_rows(
    values: npt.NDArray[np.float64],
    missing: npt.NDArray[np.bool_],
) -> npt.NDArray[np.float64]:
    """Re-insert all-NaN rows at the positions of missing points.

    Args:
        values (npt.NDArray[np.float64]): Basis values of the non-missing
            points, with shape (n_finite, n_basis).
        missing (npt.NDArray[np.bool_]): Missing-value mask of the original
            points.

    Returns:
        npt.NDArray[np.float64]: Array with shape (len(missing), n_basis).
        ``values`` is returned unchanged if nothing is missing.
    """
    if not np.any(missing):
        return values
    out = np.full((missing.size, values.shape[1]), np.nan, dtype=values.dtype)
    out[~missing] = values
    return out


def _warn_if_outside_boundary(
    pts: npt.NDArray[np.float64],
    boundary_knots: tuple[float, float],
    stacklevel: int,
) -> None:
    """Warn when points lie beyond the boundary knots (they are extrapolated).

    Missing points are ignored.

    Args:
        pts (npt.NDArray[np.float64]): Normalized 1D points.
        boundary_knots (tuple[float, float]): (lower, upper) boundary knots.
        stacklevel (int): Stack level of the warning, counted from this function.
    """
    lower, upper = boundary_knots
    if np.any(pts < lower) or np.any(pts > upper):
        warnings.warn(
            f"some points lie beyond the boundary knots {boundary_knots}; "
            "the basis is extrapolated from the boundary polynomial pieces",
            UserWarning,
            stacklevel=stacklevel,
        )


def _validate_derivative_order(derivs: int) -> int:
    """Check a derivative order and return it as a Python int.

    Args:
        derivs (int): Requested derivative order.

    Returns:
        int: The same order.

    Raises:
        InvalidDerivativeOrderError: If ``derivs`` is not a non-negative integer.
    """
    try:
        order = operator.index(derivs)
    except TypeError as exc:
        raise InvalidDerivativeOrderError("derivs must be a non-negative integer") from exc
    if order < 0:
        raise InvalidDerivativeOrderError("derivs must be a non-negative integer")
    return order


def _drop_intercept_column(
    values: npt.NDArray[np.float64], intercept: bool
) -> npt.NDArray[np.float64]:
    """Remove the first basis column unless an intercept is requested."""
    if intercept:
        return values
    return values[:, 1:]
