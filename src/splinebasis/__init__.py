"""Public API surface for splinebasis.

Defines package metadata and exported interfaces.
"""

from typing import Final

# Private API imports (accessible but not in __all__)
# Users can access private functions via: splinebasis._spline_family_impl._function_name, etc.
from . import (
    _bspline_basis_core,  # noqa: F401
    _bspline_knots,  # noqa: F401
    _spline_family_impl,  # noqa: F401
)

# Public API imports
from .basis_matrix import (
    BasisMatrix,
    BsplineBasis,
    BsplineDerivativeBasis,
    BsplineIntegralBasis,
    CsplineBasis,
    IsplineBasis,
    MsplineBasis,
    SplineFamily,
)
from .exceptions import (
    EmptyDomainError,
    InvalidDegreeError,
    InvalidDerivativeOrderError,
    InvalidKnotRangeError,
    SplineBasisError,
)
from .knots import (
    KnotSpec,
    create_augmented_knot_vector,
    create_knot_spec,
)
from .splines import (
    differentiate_basis,
    evaluate_basis_at,
    tabulate_Bspline_basis,
    tabulate_Bspline_derivative_basis,
    tabulate_Bspline_integral_basis,
    tabulate_Cspline_basis,
    tabulate_Ispline_basis,
    tabulate_Mspline_basis,
)
from .tolerance import (
    get_default_tolerance,
    get_strict_tolerance,
)

# Package metadata
__version__: Final[str] = "0.1.0"
__license__: Final[str] = "MIT"
__author__: Final[str] = "Pablo Antolin <pablo.antolin@epfl.ch>"

# Public interface: only functions/classes that don't start with _
__all__ = [
    "BasisMatrix",
    "BsplineBasis",
    "BsplineDerivativeBasis",
    "BsplineIntegralBasis",
    "CsplineBasis",
    "EmptyDomainError",
    "InvalidDegreeError",
    "InvalidDerivativeOrderError",
    "InvalidKnotRangeError",
    "IsplineBasis",
    "KnotSpec",
    "MsplineBasis",
    "SplineBasisError",
    "SplineFamily",
    "__author__",
    "__license__",
    "__version__",
    "create_augmented_knot_vector",
    "create_knot_spec",
    "differentiate_basis",
    "evaluate_basis_at",
    "get_default_tolerance",
    "get_strict_tolerance",
    "tabulate_Bspline_basis",
    "tabulate_Bspline_derivative_basis",
    "tabulate_Bspline_integral_basis",
    "tabulate_Cspline_basis",
    "tabulate_Ispline_basis",
    "tabulate_Mspline_basis",
]
