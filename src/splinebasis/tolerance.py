"""Tolerance presets for floating-point comparisons in spline basis computations."""

from functools import cache
from typing import Any, NamedTuple, cast

import numpy as np
from numpy import typing as npt


class _TolerancePreset(NamedTuple):
    """Tolerance values for the floating-point types supported by the package."""

    float32: float
    float64: float


_TOLERANCE_PRESETS = {
    "default": _TolerancePreset(1e-6, 1e-12),
    "strict": _TolerancePreset(1e-7, 1e-15),
}


@cache
def _ensure_float_dtype_by_name(name: str) -> np.dtype[np.floating[Any]]:
    """Cached validator returning a supported floating dtype from its canonical name.

    Args:
        name (str): Canonical NumPy dtype name (e.g., "float64").

    Returns:
        np.dtype[np.floating[Any]]: Validated floating-point dtype.

    Raises:
        ValueError: If dtype is neither float32 nor float64.
    """
    dtype_obj = np.dtype(name)
    if dtype_obj.type not in (np.float32, np.float64):
        raise ValueError(f"Unsupported dtype: {name}")
    return cast(np.dtype[np.floating[Any]], dtype_obj)


def _get_tolerance(dtype: npt.DTypeLike, preset_name: str) -> float:
    """Look up the tolerance of a named preset for a dtype.

    Args:
        dtype (npt.DTypeLike): float32 or float64 dtype-like.
        preset_name (str): Either "default" or "strict".

    Returns:
        float: Tolerance value.

    Raises:
        ValueError: If dtype is not float32 or float64.
    """
    dtype_obj = _ensure_float_dtype_by_name(np.dtype(dtype).name)
    preset = _TOLERANCE_PRESETS[preset_name]
    if dtype_obj.type == np.float32:
        return preset.float32
    return preset.float64


def get_default_tolerance(dtype: npt.DTypeLike) -> float:
    """Get the tolerance used to decide whether a computed basis value is zero.

    Args:
        dtype (npt.DTypeLike): float32 or float64 dtype-like.

    Returns:
        float: Default tolerance for the given dtype.

    Raises:
        ValueError: If dtype is not float32 or float64.

    Example:
        >>> get_default_tolerance(np.float32)
        1e-06
        >>> get_default_tolerance("float64")
        1e-12
    """
    return _get_tolerance(dtype, "default")


def get_strict_tolerance(dtype: npt.DTypeLike) -> float:
    """Get the tolerance used to detect zero-width knot intervals.

    Args:
        dtype (npt.DTypeLike): float32 or float64 dtype-like.

    Returns:
        float: Strict tolerance for the given dtype.

    Raises:
        ValueError: If dtype is not float32 or float64.
    """
    return _get_tolerance(dtype, "strict")

