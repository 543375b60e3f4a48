"""
Sliding-window least-squares fitter.

A ``Dynamic`` keeps the last ``capacity`` samples ``(t, v)`` in a ring buffer
and fits a polynomial of the basis order over the normalized time domain

    x = 2 (t - To) / (Tx - To) - 1,    Tx = Tt + horizon * (Tt - To)

where To and Tt are the oldest and newest sample times of the fitted window
and Tx is the extrapolation horizon.

Three paths touch the engine, typically from different threads:

  write    update() / clear()        queue lock
  compute  process()                 queue lock for the snapshot copy,
                                     state lock for the publish
  read     evaluate() / snapshot()   state lock

The two locks are never held together. The staleness flag only lets
process() skip redundant solves; consistency comes from the locked
snapshot and the locked publish.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, NamedTuple, Optional, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .polynomial import Polynomial, PolynomialBasis
from .solver import SymmetricSolver

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating[Any]]

DEFAULT_CONDITION: float = 1.0e6
DEFAULT_HORIZON: float = 0.5


# ===========================================================================
# Errors
# ===========================================================================

class DynamicError(Exception):
    """Base class for engine precondition violations."""


class IncompatibleBasisError(DynamicError, ValueError):
    """Assignment between engines bound to different basis instances."""


class EmptyWindowError(DynamicError, RuntimeError):
    """process() called with no buffered samples."""


class OutOfOrderSampleError(DynamicError, ValueError):
    """Sample time earlier than the newest buffered sample."""


# ===========================================================================
# Data-classes
# ===========================================================================

class Range(IntEnum):
    BACKWARD = -1
    INSIDE = 0
    FORWARD = 1
    UNDEFINED = 2


@dataclass(frozen=True, slots=True, eq=False)
class Sample:
    t: float
    v: float

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sample):
            return NotImplemented
        return self.t == other.t

    def __hash__(self) -> int:
        return hash(self.t)


@dataclass(frozen=True, slots=True)
class FittedState:
    polynomial: Optional[Polynomial]
    t_start: float
    t_end: float
    t_horizon: float
    span: float

    @property
    def defined(self) -> bool:
        return self.polynomial is not None

    def normalize(self, t: Union[float, FloatArray]) -> Union[float, FloatArray]:
        """Map time onto the fitted domain, [To, Tx] -> [-1, 1]."""
        if self.span > 0:
            return 2.0 * (t - self.t_start) / self.span - 1.0
        # single sample or all-equal times: the fit is a constant
        return np.zeros_like(t) if np.ndim(t) else 0.0

    def __iter__(self):
        # unpacks like the (P, To, Tt, Tx) tuple plus span
        return iter((self.polynomial, self.t_start, self.t_end, self.t_horizon, self.span))


UNDEFINED_STATE = FittedState(
    polynomial=None, t_start=math.nan, t_end=math.nan, t_horizon=math.nan, span=math.nan
)


class FitDiagnostics(NamedTuple):
    iterations: int    # eigen-decompositions performed by the solve
    rank: int          # eigen-directions retained
    condition: float   # largest / smallest retained eigenvalue
    elapsed_us: float  # solve time, microseconds


# returned by process() when the window has not changed
NO_FIT = FitDiagnostics(0, 0, 0.0, 0.0)


# ===========================================================================
# Engine
# ===========================================================================

class Dynamic:
    """Bounded window of samples with a least-squares polynomial fit."""

    def __init__(
        self,
        capacity: int,
        basis: PolynomialBasis,
        *,
        condition: float = DEFAULT_CONDITION,
        horizon: float = DEFAULT_HORIZON,
    ) -> None:
        if int(capacity) < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if not condition > 1.0:
            raise ValueError(f"condition threshold must be > 1, got {condition}")
        if not horizon > 0.0:
            raise ValueError(f"horizon factor must be positive, got {horizon}")
        self._capacity = int(capacity)
        self._basis = basis
        self._condition = float(condition)
        self._horizon = float(horizon)

        # guarded by _queue_lock
        self._t: FloatArray = np.empty(self._capacity, dtype=np.float64)
        self._v: FloatArray = np.empty(self._capacity, dtype=np.float64)
        self._head = 0   # next write position
        self._count = 0  # live samples (<= capacity)
        self._generation = 0  # bumped on every window change
        self._queue_lock = threading.Lock()

        # guarded by _state_lock
        self._state: FittedState = UNDEFINED_STATE
        self._published = -1  # window generation of _state
        self._state_lock = threading.Lock()

        # nothing fitted yet, so a new window counts as changed
        self._mutant = threading.Event()
        self._mutant.set()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def order(self) -> int:
        return self._basis.size

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def basis(self) -> PolynomialBasis:
        return self._basis

    @property
    def condition(self) -> float:
        return self._condition

    @property
    def horizon(self) -> float:
        return self._horizon

    @property
    def mutant(self) -> bool:
        """True when the window changed since the last published fit."""
        return self._mutant.is_set()

    def length(self) -> int:
        with self._queue_lock:
            return self._count

    def __len__(self) -> int:
        return self.length()

    def defined(self) -> bool:
        with self._state_lock:
            return self._state.defined

    def snapshot(self) -> FittedState:
        with self._state_lock:
            return self._state

    def samples(self) -> tuple[FloatArray, FloatArray]:
        """Chronological copies of the live window."""
        with self._queue_lock:
            return self._ordered()

    def window(self) -> list[Sample]:
        t, v = self.samples()
        return [Sample(float(ti), float(vi)) for ti, vi in zip(t, v)]

    def __repr__(self) -> str:
        return (
            f"Dynamic(capacity={self._capacity}, basis={self._basis.name!r}, "
            f"length={self.length()}, defined={self.defined()})"
        )

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def update(self, t: float, v: float) -> int:
        """Append a sample, evicting the oldest once full. Returns the length."""
        t, v = float(t), float(v)
        if not (math.isfinite(t) and math.isfinite(v)):
            raise ValueError(f"sample must be finite, got ({t}, {v})")
        with self._queue_lock:
            if self._count:
                newest = self._t[(self._head - 1) % self._capacity]
                if t < newest:
                    raise OutOfOrderSampleError(
                        f"sample time {t} precedes newest buffered time {newest}"
                    )
            self._t[self._head] = t
            self._v[self._head] = v
            self._head = (self._head + 1) % self._capacity
            if self._count < self._capacity:
                self._count += 1
            self._generation += 1
            length, generation = self._count, self._generation
            if length == 1:
                self._mutant.clear()
            else:
                self._mutant.set()

        if length == 1:
            # a one-sample window is already fit by the constant polynomial
            self._publish(
                FittedState(
                    polynomial=Polynomial.constant(v, self.order),
                    t_start=t, t_end=t, t_horizon=t, span=0.0,
                ),
                generation,
            )
        return length

    def clear(self) -> None:
        """Empty the window. The published fit stays readable until the next process()."""
        with self._queue_lock:
            self._count = 0
            self._head = 0
            self._generation += 1
            self._mutant.set()

    # ------------------------------------------------------------------
    # Compute path
    # ------------------------------------------------------------------

    def process(self) -> FitDiagnostics:
        """Refit the window if it changed since the last fit."""
        if not self._mutant.is_set():
            return NO_FIT

        with self._queue_lock:
            if self._count == 0:
                raise EmptyWindowError("process() called on an empty window")
            # cleared together with the copy: a later update re-arms it
            self._mutant.clear()
            t, v = self._ordered()
            generation = self._generation

        try:
            return self._fit(t, v, generation)
        except Exception:
            self._mutant.set()
            raise

    def _fit(self, t: FloatArray, v: FloatArray, generation: int) -> FitDiagnostics:
        start = time.perf_counter()
        to, tt = float(t[0]), float(t[-1])
        tx = tt + self._horizon * (tt - to)
        span = tx - to
        x = 2.0 * (t - to) / span - 1.0 if span > 0 else np.zeros_like(t)

        phi = self._basis.design(x)
        solver = SymmetricSolver(self.order)
        solver.accumulate_gram(phi)
        rhs = phi.T @ v
        coefficients, rank = solver.solve(rhs, self._condition)
        polynomial = self._basis(coefficients)
        elapsed_us = (time.perf_counter() - start) * 1.0e6
        condition = solver.condition_number(rank)

        self._publish(
            FittedState(polynomial=polynomial, t_start=to, t_end=tt, t_horizon=tx, span=span),
            generation,
        )

        if rank < self.order:
            logger.debug(
                "rank-deficient window: %d of %d directions kept (cond %.3g, %d samples)",
                rank, self.order, condition, t.size,
            )
        logger.debug(
            "fit %d samples over [%.6g .. %.6g | %.6g] in %.1f us",
            t.size, to, tt, tx, elapsed_us,
        )
        return FitDiagnostics(solver.iteration_count(), rank, condition, elapsed_us)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def evaluate(self, t: Union[float, ArrayLike]) -> Union[float, FloatArray]:
        """Fitted (or extrapolated) value at time t; NaN before any fit."""
        return self._value(self.snapshot(), t)

    __call__ = evaluate

    def evaluate_ranged(self, t: float) -> tuple[float, Range]:
        """Value at t together with where t lies relative to the fitted window."""
        state = self.snapshot()
        value = float(self._value(state, float(t)))
        return value, self._classify(state, float(t), value)

    def classify(self, t: float) -> Range:
        return self.evaluate_ranged(t)[1]

    @staticmethod
    def _value(state: FittedState, t: Union[float, ArrayLike]) -> Union[float, FloatArray]:
        tv = np.asarray(t, dtype=np.float64)
        if state.polynomial is None:
            return math.nan if tv.ndim == 0 else np.full(tv.shape, np.nan)
        return state.polynomial(state.normalize(tv))

    @staticmethod
    def _classify(state: FittedState, t: float, value: float) -> Range:
        if math.isnan(value):
            return Range.UNDEFINED
        if t > state.t_horizon:
            return Range.FORWARD
        if t < state.t_start:
            return Range.BACKWARD
        return Range.INSIDE

    # ------------------------------------------------------------------
    # Copy / assignment
    # ------------------------------------------------------------------

    def copy(self) -> Dynamic:
        clone = Dynamic(
            self._capacity, self._basis, condition=self._condition, horizon=self._horizon
        )
        clone.assign(self)
        return clone

    __copy__ = copy

    def assign(self, other: Dynamic) -> None:
        """Take over the window, fit and staleness of an engine on the same basis."""
        if other is self:
            return
        if other._basis is not self._basis:
            raise IncompatibleBasisError(
                f"cannot assign an engine on {other._basis!r} to one on {self._basis!r}"
            )
        with other._queue_lock:
            t, v = other._ordered()
            mutant = other._mutant.is_set()
            source_generation = other._generation
        with other._state_lock:
            state = other._state
            published = other._published
        # a fit still in flight on the source leaves its state behind the window
        if published != source_generation:
            mutant = True

        if t.size > self._capacity:
            t, v = t[-self._capacity:], v[-self._capacity:]
            mutant = True
        n = t.size
        with self._queue_lock:
            self._t[:n] = t
            self._v[:n] = v
            self._count = n
            self._head = n % self._capacity
            self._generation += 1
            generation = self._generation
            if mutant:
                self._mutant.set()
            else:
                self._mutant.clear()
        with self._state_lock:
            self._state = state
            # a stale state must stay replaceable by the next process()
            self._published = generation - 1 if mutant else generation

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _publish(self, state: FittedState, generation: int) -> None:
        # overlapping process() calls must not replace a newer fit
        with self._state_lock:
            if generation > self._published:
                self._state = state
                self._published = generation

    def _ordered(self) -> tuple[FloatArray, FloatArray]:
        """Live samples oldest first. Caller holds the queue lock."""
        n = self._count
        if n < self._capacity:
            return self._t[:n].copy(), self._v[:n].copy()
        i = self._head
        return (
            np.concatenate((self._t[i:], self._t[:i])),
            np.concatenate((self._v[i:], self._v[:i])),
        )
