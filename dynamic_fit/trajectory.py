"""
Reference scenarios for the fitter.

1.  Reconstruction   quadratic t^2 - 2t + 3 sampled on [-1, 1], order-4 basis
2.  Arc tracking     point on a circle of radius 10 moving 9 deg/s, sampled
                     every second for 11 s, extrapolated 4 s ahead with an
                     order-6 basis per coordinate
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from .dynamic import Dynamic, FitDiagnostics, FittedState, Range
from .polynomial import CHEBYSHEV4, CHEBYSHEV6, PolynomialBasis

RECONSTRUCTION_TOLERANCE: float = 1.0e-6
# acceptable deviation as a fraction of the arc traversed over ARC_SWEEP_DEG
ARC_TOLERANCE_FRACTION: float = 0.01
ARC_SWEEP_DEG: float = 120.0


# ===========================================================================
# Trajectory
# ===========================================================================

@dataclass(frozen=True, slots=True)
class ArcTrajectory:
    radius: float = 10.0
    angular_velocity: float = math.radians(9.0)  # rad/s

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"radius must be positive, got {self.radius}")

    def x(self, t: float) -> float:
        return self.radius * math.cos(self.angular_velocity * t)

    def y(self, t: float) -> float:
        return self.radius * math.sin(self.angular_velocity * t)

    def position(self, t: float) -> tuple[float, float]:
        return self.x(t), self.y(t)

    def arc_length(self, duration: float) -> float:
        return self.radius * abs(self.angular_velocity) * duration


# ===========================================================================
# Reports
# ===========================================================================

@dataclass(frozen=True, slots=True)
class ScenarioRow:
    t: float
    expected: tuple[float, ...]
    estimate: tuple[float, ...]
    error: float
    range: Range


@dataclass(slots=True)
class ScenarioReport:
    name: str
    tolerance: float
    metric: str = "max"  # "max" deviation or "rms" residual against tolerance
    diagnostics: list[FitDiagnostics] = field(default_factory=list)
    states: list[FittedState] = field(default_factory=list)
    rows: list[ScenarioRow] = field(default_factory=list)

    @property
    def rms_error(self) -> float:
        if not self.rows:
            return math.nan
        return float(np.sqrt(np.mean([r.error ** 2 for r in self.rows])))

    @property
    def max_error(self) -> float:
        if not self.rows:
            return math.nan
        return max(r.error for r in self.rows)

    @property
    def passed(self) -> bool:
        measured = self.rms_error if self.metric == "rms" else self.max_error
        return bool(self.rows) and measured <= self.tolerance


def reconstruction_scenario(
    capacity: int = 11, basis: PolynomialBasis = CHEBYSHEV4
) -> ScenarioReport:
    """Fit samples of t^2 - 2t + 3 and compare at every sample time."""

    def u(t: float) -> float:
        return (t - 2.0) * t + 3.0

    times = [0.2 * (k - (capacity - 1) / 2) for k in range(capacity)]
    f = Dynamic(capacity, basis)
    for t in times:
        f.update(t, u(t))

    report = ScenarioReport(name="approximation of a polynomial function",
                            tolerance=RECONSTRUCTION_TOLERANCE, metric="rms")
    report.diagnostics.append(f.process())
    report.states.append(f.snapshot())
    for t in times:
        proxy, where = f.evaluate_ranged(t)
        report.rows.append(ScenarioRow(t, (u(t),), (proxy,), abs(proxy - u(t)), where))
    return report


def arc_scenario(
    capacity: int = 11,
    basis: PolynomialBasis = CHEBYSHEV6,
    lookahead: int = 4,
    trajectory: Optional[ArcTrajectory] = None,
    noise: Callable[[], float] = lambda: 0.0,
) -> ScenarioReport:
    """Track both coordinates of an arc and extrapolate past the last sample."""
    arc = trajectory or ArcTrajectory()
    X = Dynamic(capacity, basis)
    Y = Dynamic(capacity, basis)
    for i in range(capacity):
        t = float(i)
        X.update(t, arc.x(t) + noise())
        Y.update(t, arc.y(t) + noise())

    sweep = ARC_SWEEP_DEG / math.degrees(abs(arc.angular_velocity))
    report = ScenarioReport(
        name="approximation & extrapolation of point coordinates",
        tolerance=ARC_TOLERANCE_FRACTION * arc.arc_length(sweep),
    )
    for engine in (X, Y):
        report.diagnostics.append(engine.process())
        report.states.append(engine.snapshot())

    for i in range(capacity + lookahead):
        t = float(i)
        xi, yi = arc.position(t)
        Xi, where = X.evaluate_ranged(t)
        Yi = float(Y(t))
        report.rows.append(
            ScenarioRow(t, (xi, yi), (Xi, Yi), math.hypot(Xi - xi, Yi - yi), where)
        )
    return report


# ===========================================================================
# Formatting
# ===========================================================================

def format_report(report: ScenarioReport) -> str:
    lines = [f"TEST: {report.name.upper()}", ""]
    for d, s in zip(report.diagnostics, report.states):
        lines += [
            f"  Eigen decompositions        {d.iterations}",
            f"  Number of used eigen values {d.rank}",
            f"  Matrix condition number     {d.condition:.2e}",
            f"  Elapsed time                {d.elapsed_us:.2f} microsec",
            f"  Time range                  [ {s.t_start:.2f} .. {s.t_end:.2f} | .. {s.t_horizon:.2f} ] sec",
            "",
        ]
    lines.append(f"  {'#':>2} {'t':>7} {'expected':>20} {'estimate':>20} {'err':>9}  range")
    for k, row in enumerate(report.rows, start=1):
        exp = " ".join(f"{v:9.4f}" for v in row.expected)
        est = " ".join(f"{v:9.4f}" for v in row.estimate)
        lines.append(
            f"  {k:2d} {row.t:7.2f} {exp:>20} {est:>20} {row.error:9.2e}  {row.range.name.lower()}"
        )
    lines += [
        "",
        f"  RMS error {report.rms_error:.3e}   max error {report.max_error:.3e}"
        f"   tolerance ({report.metric}) {report.tolerance:.3e}",
        f"  Result: {'CORRECT' if report.passed else 'FAILURE'}",
    ]
    return "\n".join(lines)
