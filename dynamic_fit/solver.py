"""Conditioned least-squares solve of a symmetric (normal-equations) system."""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import linalg

FloatArray = NDArray[np.floating[Any]]


class SymmetricSolver:
    """Accumulates a symmetric Gram matrix and solves ``A c = b``.

    Only the lower triangle (``j <= i``) is accumulated. The solve goes
    through the eigen-decomposition of ``A`` and discards eigen-directions
    whose eigenvalue is more than ``condition`` times smaller than the
    largest one, so rank-deficient windows degrade to a smaller subspace
    instead of failing.
    """

    def __init__(self, order: int) -> None:
        if order < 1:
            raise ValueError(f"solver order must be >= 1, got {order}")
        self._order = order
        self._lower: FloatArray = np.zeros((order, order))
        self._eigenvalues: Optional[FloatArray] = None
        self._eigenvectors: Optional[FloatArray] = None
        self._decompositions = 0

    @property
    def order(self) -> int:
        return self._order

    def reset(self) -> None:
        self._lower[:] = 0.0
        self._eigenvalues = None
        self._eigenvectors = None
        self._decompositions = 0

    def accumulate(self, i: int, j: int, value: float) -> None:
        if not 0 <= j <= i < self._order:
            raise ValueError(f"entry ({i}, {j}) is not in the lower triangle of order {self._order}")
        self._lower[i, j] += value

    def accumulate_gram(self, phi: ArrayLike) -> None:
        """Add the lower triangle of ``phi.T @ phi`` for a design matrix phi."""
        p = np.asarray(phi, dtype=np.float64)
        if p.ndim != 2 or p.shape[1] != self._order:
            raise ValueError(f"design matrix must have {self._order} columns, got shape {p.shape}")
        self._lower += np.tril(p.T @ p)

    def matrix(self) -> FloatArray:
        """Full symmetric matrix rebuilt from the accumulated lower triangle."""
        return self._lower + np.tril(self._lower, -1).T

    def solve(self, rhs: ArrayLike, condition: float) -> tuple[FloatArray, int]:
        """Return ``(coefficients, retained_rank)``."""
        b = np.asarray(rhs, dtype=np.float64)
        if b.shape != (self._order,):
            raise ValueError(f"right-hand side must have shape ({self._order},), got {b.shape}")
        if not condition > 1.0:
            raise ValueError(f"condition threshold must be > 1, got {condition}")

        w, v = linalg.eigh(self.matrix())
        self._decompositions += 1
        # eigh sorts ascending; reorder by descending magnitude
        idx = np.argsort(-np.abs(w), kind="stable")
        w, v = w[idx], v[:, idx]
        self._eigenvalues, self._eigenvectors = w, v

        magnitude = np.abs(w)
        largest = magnitude[0] if magnitude.size else 0.0
        if largest <= 0.0:
            return np.zeros(self._order), 0
        keep = (magnitude > 0.0) & (largest <= condition * magnitude)
        rank = int(np.count_nonzero(keep))

        vk = v[:, keep]
        coefficients = vk @ ((vk.T @ b) / w[keep])
        return coefficients, rank

    def iteration_count(self) -> int:
        """Eigen-decompositions performed since construction or reset."""
        return self._decompositions

    def eigenvalue(self, rank: int) -> float:
        if self._eigenvalues is None:
            raise IndexError("no eigenvalues before solve()")
        return float(self._eigenvalues[rank])

    def condition_number(self, rank: int) -> float:
        """Ratio of the largest to the smallest retained eigenvalue."""
        if rank < 1:
            return float("nan")
        return self.eigenvalue(0) / self.eigenvalue(rank - 1)
