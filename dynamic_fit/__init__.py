from .dynamic import (
    NO_FIT,
    UNDEFINED_STATE,
    Dynamic,
    DynamicError,
    EmptyWindowError,
    FitDiagnostics,
    FittedState,
    IncompatibleBasisError,
    OutOfOrderSampleError,
    Range,
    Sample,
)
from .polynomial import (
    CHEBYSHEV2,
    CHEBYSHEV3,
    CHEBYSHEV4,
    CHEBYSHEV5,
    CHEBYSHEV6,
    Polynomial,
    PolynomialBasis,
    chebyshev_basis,
)
from .settings import TrackerSettings, load_settings, save_settings
from .solver import SymmetricSolver

__all__ = [
    'Dynamic', 'DynamicError', 'EmptyWindowError', 'IncompatibleBasisError',
    'OutOfOrderSampleError', 'FitDiagnostics', 'FittedState', 'NO_FIT',
    'UNDEFINED_STATE', 'Range', 'Sample', 'Polynomial', 'PolynomialBasis',
    'chebyshev_basis', 'CHEBYSHEV2', 'CHEBYSHEV3', 'CHEBYSHEV4', 'CHEBYSHEV5',
    'CHEBYSHEV6', 'SymmetricSolver', 'TrackerSettings', 'load_settings',
    'save_settings',
]
