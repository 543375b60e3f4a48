import math

import pytest

from dynamic_fit.dynamic import Range
from dynamic_fit.polynomial import CHEBYSHEV6
from dynamic_fit.trajectory import (
    ArcTrajectory,
    arc_scenario,
    format_report,
    reconstruction_scenario,
)


def test_arc_positions():
    arc = ArcTrajectory(radius=10.0, angular_velocity=math.radians(90.0))
    assert arc.position(0.0) == pytest.approx((10.0, 0.0))
    assert arc.position(1.0) == pytest.approx((0.0, 10.0), abs=1e-12)
    assert arc.arc_length(2.0) == pytest.approx(10.0 * math.pi)
    with pytest.raises(ValueError):
        ArcTrajectory(radius=0.0)


def test_reconstruction_scenario():
    report = reconstruction_scenario()
    assert report.passed
    assert report.rms_error < 1e-6
    assert len(report.rows) == 11
    assert report.states[0].defined
    assert all(row.range is Range.INSIDE for row in report.rows)


def test_arc_extrapolation_within_one_percent():
    report = arc_scenario(11, CHEBYSHEV6, lookahead=4)
    expected_tolerance = 0.01 * 10.0 * math.radians(120.0)
    assert report.tolerance == pytest.approx(expected_tolerance)
    assert report.max_error <= expected_tolerance
    assert report.passed
    assert len(report.rows) == 15
    for d in report.diagnostics:
        assert d.rank >= 5
    state = report.states[0]
    assert (state.t_start, state.t_end, state.t_horizon) == pytest.approx((0.0, 10.0, 15.0))
    # four seconds past the last sample is still before the horizon
    assert [row.range for row in report.rows[11:]] == [Range.INSIDE] * 4


def test_format_report():
    text = format_report(reconstruction_scenario())
    assert "APPROXIMATION OF A POLYNOMIAL FUNCTION" in text
    assert "Result: CORRECT" in text
    assert "Time range" in text
