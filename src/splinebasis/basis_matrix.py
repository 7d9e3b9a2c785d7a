"""Basis matrix objects and derivative dispatch for every spline family.

A basis matrix stores its values together with everything needed to rebuild
it: the evaluation points, the :class:`~splinebasis.knots.KnotSpec`, the
derivative order already applied and, for bases derived from a scaled
C-spline, the per-column scale divisors. Each family is a subclass of
:class:`BasisMatrix` implementing its own differentiation rule; the set of
families is closed and listed in :class:`SplineFamily`.

Families that are integrals of other families keep those as cached
sub-bases (B-spline for the B-spline integral, M-spline for the I-spline,
I- and M-splines for the C-spline), so that the first derivatives are read
from the cache instead of being recomputed.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar

import numpy as np
import numpy.typing as npt

from ._basis_utils import (
    _normalize_points_1D,
    _restore_missing_rows,
    _split_missing_points,
    _validate_derivative_order,
    _warn_if_outside_boundary,
)
from ._spline_family_impl import (
    _tabulate_Bspline_impl,
    _tabulate_Bspline_integral_impl,
    _tabulate_Cspline_impl,
    _tabulate_Ispline_impl,
    _tabulate_Mspline_impl,
)
from .knots import KnotSpec


class SplineFamily(Enum):
    """Enumeration of the spline families a basis matrix can belong to.

    Attributes:
        BSPLINE (SplineFamily): B-spline basis.
        BSPLINE_DERIVATIVE (SplineFamily): Derivative of a B-spline basis.
        BSPLINE_INTEGRAL (SplineFamily): Integral of a B-spline basis from the
            lower boundary knot.
        MSPLINE (SplineFamily): M-spline basis or one of its derivatives.
        ISPLINE (SplineFamily): I-spline basis (integral of M-splines).
        CSPLINE (SplineFamily): C-spline basis (integral of I-splines).
    """

    BSPLINE = "bspline"
    BSPLINE_DERIVATIVE = "bspline_derivative"
    BSPLINE_INTEGRAL = "bspline_integral"
    MSPLINE = "mspline"
    ISPLINE = "ispline"
    CSPLINE = "cspline"


def _freeze(arr: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Return a read-only, contiguous copy of an array."""
    out = np.array(arr, dtype=np.float64, order="C", copy=True)
    out.setflags(write=False)
    return out


class BasisMatrix(ABC):
    """Immutable basis matrix with the metadata needed to differentiate and rebuild it.

    Rows correspond to evaluation points (all-NaN rows for missing points)
    and columns to basis functions.

    Attributes:
        family (ClassVar[SplineFamily]): Family tag of the concrete subclass.
        _values (npt.NDArray[np.float64]): Read-only basis values.
        _points (npt.NDArray[np.float64]): Read-only evaluation points.
        _knot_spec (KnotSpec): Parameters generating the basis.
        _derivs (int): Derivative order already applied.
        _scales (npt.NDArray[np.float64] | None): Per-column divisors applied
            to the values (C-spline scaling), or None.
    """

    family: ClassVar[SplineFamily]

    _values: npt.NDArray[np.float64]
    _points: npt.NDArray[np.float64]
    _knot_spec: KnotSpec
    _derivs: int
    _scales: npt.NDArray[np.float64] | None

    def __init__(
        self,
        values: npt.NDArray[np.float64],
        points: npt.NDArray[np.float64],
        knot_spec: KnotSpec,
        derivs: int = 0,
        scales: npt.NDArray[np.float64] | None = None,
    ) -> None:
        """Initialize a basis matrix.

        Args:
            values (npt.NDArray[np.float64]): Basis values with shape
                (len(points), knot_spec.num_basis).
            points (npt.NDArray[np.float64]): Normalized evaluation points.
            knot_spec (KnotSpec): Parameters generating the basis.
            derivs (int): Derivative order already applied. Defaults to 0.
            scales (npt.NDArray[np.float64] | None): Per-column divisors already
                applied to ``values``. Defaults to None.

        Raises:
            ValueError: If ``values`` does not have the expected shape.
        """
        expected_shape = (points.size, knot_spec.num_basis)
        if values.shape != expected_shape:
            raise ValueError(
                f"Basis values have shape {values.shape}, but expected shape {expected_shape}"
            )
        self._values = _freeze(values)
        self._points = _freeze(points)
        self._knot_spec = knot_spec
        self._derivs = int(derivs)
        self._scales = None if scales is None else _freeze(scales)

    @property
    def values(self) -> npt.NDArray[np.float64]:
        """Get the basis values.

        Returns:
            npt.NDArray[np.float64]: Read-only array of shape (n_points, n_basis).
        """
        return self._values

    @property
    def points(self) -> npt.NDArray[np.float64]:
        """Get the evaluation points, missing values included.

        Returns:
            npt.NDArray[np.float64]: Read-only 1D array.
        """
        return self._points

    @property
    def knot_spec(self) -> KnotSpec:
        """Get the knot specification generating the basis."""
        return self._knot_spec

    @property
    def derivs(self) -> int:
        """Get the derivative order already applied to the basis.

        Returns:
            int: 0 for a basis that is not a derivative of its family.
        """
        return self._derivs

    @property
    def scales(self) -> npt.NDArray[np.float64] | None:
        """Get the per-column divisors applied by C-spline scaling.

        Returns:
            npt.NDArray[np.float64] | None: Read-only divisors, or None if the
            basis is not scaled.
        """
        return self._scales

    @property
    def shape(self) -> tuple[int, int]:
        """Get the matrix shape (n_points, n_basis)."""
        return self._values.shape[0], self._values.shape[1]

    def __len__(self) -> int:
        return self._values.shape[0]

    def __getitem__(self, key: Any) -> Any:
        return self._values[key]

    def __array__(self, dtype: npt.DTypeLike | None = None, copy: bool | None = None) -> Any:
        if dtype is None and not copy:
            return self._values
        return np.array(self._values, dtype=dtype, copy=True)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(shape={self.shape}, derivs={self._derivs}, "
            f"knot_spec={self._knot_spec!r})"
        )

    def differentiate(self, derivs: int = 1) -> BasisMatrix:
        """Differentiate the basis.

        The result is always a new object. Nested calls are supported but a
        single call with the summed order avoids compounding rounding errors.

        Args:
            derivs (int): Non-negative derivative order. 0 returns a copy.
                Defaults to 1.

        Returns:
            BasisMatrix: Basis of the ``derivs``-th derivative.

        Raises:
            InvalidDerivativeOrderError: If ``derivs`` is negative.
        """
        order = _validate_derivative_order(derivs)
        if order == 0:
            return copy.copy(self)
        return self._differentiate(order)

    def evaluate_at(self, pts: npt.ArrayLike) -> BasisMatrix:
        """Evaluate the same basis at new points.

        Knots, boundary knots, degree, intercept, derivative order and scaling
        are taken from this object, never from the new points.

        Args:
            pts (npt.ArrayLike): New evaluation points. NaN (or None) marks
                missing values.

        Returns:
            BasisMatrix: Basis of the same family evaluated at ``pts``.

        Raises:
            EmptyDomainError: If there is no non-missing point.
        """
        return self._evaluate_at_user_points(pts, stacklevel=4)

    def _evaluate_at_user_points(self, pts: npt.ArrayLike, stacklevel: int) -> BasisMatrix:
        """Normalize new points, warn about extrapolation and rebuild the basis.

        ``stacklevel`` is handed to the extrapolation warning, so public entry
        points calling this method directly pass 4 to reach their caller.
        """
        points = _normalize_points_1D(pts)
        _warn_if_outside_boundary(points, self._knot_spec.boundary_knots, stacklevel=stacklevel)
        return self._evaluate_at(points)

    @abstractmethod
    def _differentiate(self, derivs: int) -> BasisMatrix:
        """Family-specific differentiation for ``derivs >= 1``."""

    @abstractmethod
    def _evaluate_at(self, pts: npt.NDArray[np.float64]) -> BasisMatrix:
        """Family-specific rebuild at normalized points."""


class BsplineBasis(BasisMatrix):
    """B-spline basis."""

    family = SplineFamily.BSPLINE

    def _differentiate(self, derivs: int) -> BasisMatrix:
        return _build_Bspline_derivative_basis(self._points, self._knot_spec, derivs)

    def _evaluate_at(self, pts: npt.NDArray[np.float64]) -> BasisMatrix:
        return _build_Bspline_basis(pts, self._knot_spec)


class BsplineDerivativeBasis(BasisMatrix):
    """Derivative of order ``derivs >= 1`` of a B-spline basis."""

    family = SplineFamily.BSPLINE_DERIVATIVE

    def _differentiate(self, derivs: int) -> BasisMatrix:
        return _build_Bspline_derivative_basis(
            self._points, self._knot_spec, self._derivs + derivs
        )

    def _evaluate_at(self, pts: npt.NDArray[np.float64]) -> BasisMatrix:
        return _build_Bspline_derivative_basis(pts, self._knot_spec, self._derivs)


class BsplineIntegralBasis(BasisMatrix):
    """Integral of a B-spline basis from the lower boundary knot.

    Attributes:
        _bspline (BsplineBasis): The integrated B-spline basis.
    """

    family = SplineFamily.BSPLINE_INTEGRAL

    _bspline: BsplineBasis

    def __init__(
        self,
        values: npt.NDArray[np.float64],
        points: npt.NDArray[np.float64],
        knot_spec: KnotSpec,
        bspline: BsplineBasis,
    ) -> None:
        super().__init__(values, points, knot_spec)
        self._bspline = bspline

    @property
    def bspline(self) -> BsplineBasis:
        """Get the cached B-spline basis (the first derivative)."""
        return self._bspline

    def _differentiate(self, derivs: int) -> BasisMatrix:
        if derivs == 1:
            return copy.copy(self._bspline)
        return _build_Bspline_derivative_basis(self._points, self._knot_spec, derivs - 1)

    def _evaluate_at(self, pts: npt.NDArray[np.float64]) -> BasisMatrix:
        return _build_Bspline_integral_basis(pts, self._knot_spec)


class MsplineBasis(BasisMatrix):
    """M-spline basis (``derivs == 0``) or one of its derivatives."""

    family = SplineFamily.MSPLINE

    def _differentiate(self, derivs: int) -> BasisMatrix:
        return _build_Mspline_basis(
            self._points, self._knot_spec, self._derivs + derivs, self._scales
        )

    def _evaluate_at(self, pts: npt.NDArray[np.float64]) -> BasisMatrix:
        return _build_Mspline_basis(pts, self._knot_spec, self._derivs, self._scales)


class IsplineBasis(BasisMatrix):
    """I-spline basis.

    Its degree is the degree of the associated M-spline, so its polynomial
    degree is ``knot_spec.degree + 1``.

    Attributes:
        _mspline (MsplineBasis): The integrated M-spline basis.
    """

    family = SplineFamily.ISPLINE

    _mspline: MsplineBasis

    def __init__(
        self,
        values: npt.NDArray[np.float64],
        points: npt.NDArray[np.float64],
        knot_spec: KnotSpec,
        mspline: MsplineBasis,
        scales: npt.NDArray[np.float64] | None = None,
    ) -> None:
        super().__init__(values, points, knot_spec, scales=scales)
        self._mspline = mspline

    @property
    def mspline(self) -> MsplineBasis:
        """Get the cached M-spline basis (the first derivative)."""
        return self._mspline

    def _differentiate(self, derivs: int) -> BasisMatrix:
        if derivs == 1:
            return copy.copy(self._mspline)
        return _build_Mspline_basis(self._points, self._knot_spec, derivs - 1, self._scales)

    def _evaluate_at(self, pts: npt.NDArray[np.float64]) -> BasisMatrix:
        return _build_Ispline_basis(pts, self._knot_spec, self._scales)


class CsplineBasis(BasisMatrix):
    """C-spline basis, optionally scaled to 1 at the upper boundary knot.

    Attributes:
        _ispline (IsplineBasis): The integrated I-spline basis (same scaling).
        _mspline (MsplineBasis): The M-spline basis (same scaling).
    """

    family = SplineFamily.CSPLINE

    _ispline: IsplineBasis
    _mspline: MsplineBasis

    def __init__(
        self,
        values: npt.NDArray[np.float64],
        points: npt.NDArray[np.float64],
        knot_spec: KnotSpec,
        ispline: IsplineBasis,
        scales: npt.NDArray[np.float64] | None = None,
    ) -> None:
        super().__init__(values, points, knot_spec, scales=scales)
        self._ispline = ispline
        self._mspline = ispline.mspline

    @property
    def scaled(self) -> bool:
        """Check whether the columns are scaled to 1 at the upper boundary knot."""
        return self._scales is not None

    @property
    def ispline(self) -> IsplineBasis:
        """Get the cached I-spline basis (the first derivative)."""
        return self._ispline

    @property
    def mspline(self) -> MsplineBasis:
        """Get the cached M-spline basis (the second derivative)."""
        return self._mspline

    def _differentiate(self, derivs: int) -> BasisMatrix:
        if derivs == 1:
            return copy.copy(self._ispline)
        if derivs == 2:  # noqa: PLR2004
            return copy.copy(self._mspline)
        return _build_Mspline_basis(self._points, self._knot_spec, derivs - 2, self._scales)

    def _evaluate_at(self, pts: npt.NDArray[np.float64]) -> BasisMatrix:
        return _build_Cspline_basis(pts, self._knot_spec, self._scales)


def _apply_scales(
    values: npt.NDArray[np.float64], scales: npt.NDArray[np.float64] | None
) -> npt.NDArray[np.float64]:
    """Divide every column by its scale divisor (no-op without scales)."""
    if scales is None:
        return values
    return values / scales


def _build_Bspline_basis(pts: npt.NDArray[np.float64], spec: KnotSpec) -> BsplineBasis:
    """Build a B-spline basis at normalized points (NaN allowed)."""
    finite, missing = _split_missing_points(pts)
    values = _tabulate_Bspline_impl(finite, spec)
    return BsplineBasis(_restore_missing_rows(values, missing), pts, spec)


def _build_Bspline_derivative_basis(
    pts: npt.NDArray[np.float64], spec: KnotSpec, derivs: int
) -> BsplineDerivativeBasis:
    """Build the ``derivs``-th derivative (``derivs >= 1``) of a B-spline basis."""
    finite, missing = _split_missing_points(pts)
    values = _tabulate_Bspline_impl(finite, spec, derivs)
    return BsplineDerivativeBasis(_restore_missing_rows(values, missing), pts, spec, derivs)


def _build_Bspline_integral_basis(
    pts: npt.NDArray[np.float64], spec: KnotSpec
) -> BsplineIntegralBasis:
    """Build the integral of a B-spline basis, caching the B-spline basis itself."""
    finite, missing = _split_missing_points(pts)
    values = _tabulate_Bspline_integral_impl(finite, spec)
    bspline = _build_Bspline_basis(pts, spec)
    return BsplineIntegralBasis(_restore_missing_rows(values, missing), pts, spec, bspline)


def _build_Mspline_basis(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
    derivs: int = 0,
    scales: npt.NDArray[np.float64] | None = None,
) -> MsplineBasis:
    """Build an M-spline basis or one of its derivatives, optionally scaled."""
    finite, missing = _split_missing_points(pts)
    values = _apply_scales(_tabulate_Mspline_impl(finite, spec, derivs), scales)
    return MsplineBasis(_restore_missing_rows(values, missing), pts, spec, derivs, scales)


def _build_Ispline_basis(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
    scales: npt.NDArray[np.float64] | None = None,
) -> IsplineBasis:
    """Build an I-spline basis, caching the M-spline basis of the same degree."""
    finite, missing = _split_missing_points(pts)
    values = _apply_scales(_tabulate_Ispline_impl(finite, spec), scales)
    mspline = _build_Mspline_basis(pts, spec, 0, scales)
    return IsplineBasis(_restore_missing_rows(values, missing), pts, spec, mspline, scales)


def _build_Cspline_basis(
    pts: npt.NDArray[np.float64],
    spec: KnotSpec,
    scales: npt.NDArray[np.float64] | None = None,
) -> CsplineBasis:
    """Build a C-spline basis, caching the I- and M-spline bases with the same scaling."""
    finite, missing = _split_missing_points(pts)
    values = _apply_scales(_tabulate_Cspline_impl(finite, spec), scales)
    ispline = _build_Ispline_basis(pts, spec, scales)
    return CsplineBasis(_restore_missing_rows(values, missing), pts, spec, ispline, scales)


__all__ = [
    "BasisMatrix",
    "BsplineBasis",
    "BsplineDerivativeBasis",
    "BsplineIntegralBasis",
    "CsplineBasis",
    "IsplineBasis",
    "MsplineBasis",
    "SplineFamily",
]
