"""
Polynomial value types used by the sliding-window fitter.

Polynomial        fixed-order coefficient vector, highest power first
PolynomialBasis   N polynomials of order N; maps basis coefficients to an
                  explicit polynomial
chebyshev_basis   Chebyshev-family basis of order N, cached per order
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Iterable, Sequence, Union

import numpy as np
from numpy.polynomial import chebyshev as C
from numpy.typing import ArrayLike, NDArray

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

FloatArray = NDArray[np.floating[Any]]
Scalar = Union[float, int, np.floating[Any]]


# ===========================================================================
# Polynomial
# ===========================================================================

class Polynomial:
    """Polynomial of fixed order N (N coefficients, degree N - 1).

    Coefficients are stored highest power first, the layout
    ``numpy.polyval`` expects, and are read-only after construction.
    """

    __slots__ = ("_coef",)

    def __init__(self, coefficients: Iterable[Scalar]) -> None:
        coef = np.array(list(coefficients), dtype=np.float64)
        if coef.ndim != 1 or coef.size == 0:
            raise ValueError("a polynomial needs a non-empty 1-D coefficient vector")
        coef.flags.writeable = False
        self._coef: FloatArray = coef

    @classmethod
    def zero(cls, order: int) -> Polynomial:
        return cls(np.zeros(order))

    @classmethod
    def constant(cls, value: float, order: int) -> Polynomial:
        coef = np.zeros(order)
        coef[-1] = value
        return cls(coef)

    @property
    def order(self) -> int:
        return int(self._coef.size)

    @property
    def coef(self) -> FloatArray:
        return self._coef

    def __len__(self) -> int:
        return self.order

    def __getitem__(self, i: int) -> float:
        if not -self.order <= i < self.order:
            raise IndexError(f"coefficient index {i} out of range for order {self.order}")
        return float(self._coef[i])

    def __call__(self, x: Union[Scalar, ArrayLike]) -> Union[float, FloatArray]:
        y = np.polyval(self._coef, np.asarray(x, dtype=np.float64))
        if np.ndim(y) == 0:
            return float(y)
        return np.asarray(y, dtype=np.float64)

    def __mul__(self, factor: Scalar) -> Polynomial:
        if not isinstance(factor, (int, float, np.floating, np.integer)):
            return NotImplemented
        return Polynomial(self._coef * float(factor))

    __rmul__ = __mul__

    def __add__(self, other: Polynomial) -> Polynomial:
        if not isinstance(other, Polynomial):
            return NotImplemented
        if other.order != self.order:
            raise ValueError(f"cannot add polynomials of order {self.order} and {other.order}")
        return Polynomial(self._coef + other._coef)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.order == other.order and bool(np.array_equal(self._coef, other._coef))

    def __hash__(self) -> int:
        return hash(self._coef.tobytes())

    def __repr__(self) -> str:
        return f"Polynomial({self._coef.tolist()!r})"


# ===========================================================================
# Polynomial basis
# ===========================================================================

class PolynomialBasis:
    """Fixed set of N polynomials of order N.

    A basis is logically immutable and meant to be shared by every engine
    that fits against it; engines compare bases by identity.
    """

    __slots__ = ("_members", "_matrix", "name")

    def __init__(self, members: Sequence[Polynomial], name: str = "") -> None:
        size = len(members)
        if size == 0:
            raise ValueError("a basis needs at least one member")
        for i, member in enumerate(members):
            if member.order != size:
                raise ValueError(
                    f"basis member {i} has order {member.order}, expected {size}"
                )
        self._members: tuple[Polynomial, ...] = tuple(members)
        # Row i holds the coefficients of member i, highest power first.
        matrix = np.vstack([m.coef for m in self._members])
        matrix.flags.writeable = False
        self._matrix: FloatArray = matrix
        self.name = name or f"basis{size}"

    @property
    def size(self) -> int:
        return len(self._members)

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, i: int) -> Polynomial:
        return self._members[i]

    def __iter__(self):
        return iter(self._members)

    def __call__(self, coefficients: ArrayLike) -> Polynomial:
        """Explicit polynomial ``sum(c[i] * basis[i])``."""
        c = np.asarray(coefficients, dtype=np.float64)
        if c.shape != (self.size,):
            raise ValueError(f"expected {self.size} basis coefficients, got shape {c.shape}")
        return Polynomial(c @ self._matrix)

    def design(self, x: ArrayLike) -> FloatArray:
        """Matrix ``Phi[k, i] = basis[i](x[k])``."""
        xv = np.atleast_1d(np.asarray(x, dtype=np.float64))
        powers = np.vander(xv, self.size)  # x^(N-1) .. x^0
        return powers @ self._matrix.T

    def __repr__(self) -> str:
        return f"PolynomialBasis({self.name!r}, size={self.size})"


# ===========================================================================
# Chebyshev bases
# ===========================================================================

# Fixed member tables, highest power first. Up to order 4 these are T_0 ..
# T_{N-1}; the top members of orders 5 and 6 carry extra lower-order terms
# (8x^4 + 4x^3 - 8x^2 + 1, 16x^5 - 20x^3 + 5x + 1). Rank truncation and
# condition numbers depend on the exact members.
CHEBYSHEV_TABLES: dict[int, tuple[tuple[float, ...], ...]] = {
    2: (
        (0.0, 1.0),
        (1.0, 0.0),
    ),
    3: (
        (0.0, 0.0, 1.0),
        (0.0, 1.0, 0.0),
        (2.0, 0.0, -1.0),
    ),
    4: (
        (0.0, 0.0, 0.0, 1.0),
        (0.0, 0.0, 1.0, 0.0),
        (0.0, 2.0, 0.0, -1.0),
        (4.0, 0.0, -3.0, 0.0),
    ),
    5: (
        (0.0, 0.0, 0.0, 0.0, 1.0),
        (0.0, 0.0, 0.0, 1.0, 0.0),
        (0.0, 0.0, 2.0, 0.0, -1.0),
        (0.0, 4.0, 0.0, -3.0, 0.0),
        (8.0, 4.0, -8.0, 0.0, 1.0),
    ),
    6: (
        (0.0, 0.0, 0.0, 0.0, 0.0, 1.0),
        (0.0, 0.0, 0.0, 0.0, 1.0, 0.0),
        (0.0, 0.0, 0.0, 2.0, 0.0, -1.0),
        (0.0, 0.0, 4.0, 0.0, -3.0, 0.0),
        (0.0, 8.0, 4.0, -8.0, 0.0, 1.0),
        (16.0, 0.0, -20.0, 0.0, 5.0, 1.0),
    ),
}


@lru_cache(maxsize=None)
def chebyshev_basis(order: int) -> PolynomialBasis:
    """Chebyshev-family basis of the given order.

    Orders listed in ``CHEBYSHEV_TABLES`` use those members; any other order
    gets the Chebyshev polynomials of the first kind T_0 .. T_{order-1}.
    Cached: every call with the same order returns the same instance, so
    engines built from it are assignment-compatible.
    """
    if order < 1:
        raise ValueError(f"basis order must be >= 1, got {order}")
    if order in CHEBYSHEV_TABLES:
        members = [Polynomial(row) for row in CHEBYSHEV_TABLES[order]]
        return PolynomialBasis(members, name=f"chebyshev{order}")
    members = []
    for k in range(order):
        # cheb2poly yields lowest power first; pad and flip to highest first
        power = C.cheb2poly(np.eye(order)[k])
        padded = np.zeros(order)
        padded[: power.size] = power
        members.append(Polynomial(padded[::-1]))
    return PolynomialBasis(members, name=f"chebyshev{order}")


CHEBYSHEV2 = chebyshev_basis(2)
CHEBYSHEV3 = chebyshev_basis(3)
CHEBYSHEV4 = chebyshev_basis(4)
CHEBYSHEV5 = chebyshev_basis(5)
CHEBYSHEV6 = chebyshev_basis(6)
