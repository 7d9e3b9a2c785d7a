"""Exceptions raised by spline basis construction and differentiation."""


class SplineBasisError(ValueError):
    """Base exception for invalid spline basis requests."""

    pass


class InvalidDegreeError(SplineBasisError):
    """Spline degree is negative or not an integer."""

    pass


class InvalidKnotRangeError(SplineBasisError):
    """Boundary knots are not increasing or an internal knot lies outside them."""

    pass


class InvalidDerivativeOrderError(SplineBasisError):
    """Requested derivative order is negative or not an integer."""

    pass


class EmptyDomainError(SplineBasisError):
    """No evaluable (non-missing) point was given."""

    pass
