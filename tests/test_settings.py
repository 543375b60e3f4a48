import logging

import pytest

from dynamic_fit.polynomial import CHEBYSHEV6, chebyshev_basis
from dynamic_fit.settings import TrackerSettings, load_settings, save_settings


def test_defaults():
    s = TrackerSettings()
    assert s.capacity == 11
    assert s.basis is CHEBYSHEV6
    assert s.level == logging.INFO


@pytest.mark.parametrize(
    "field, value",
    [
        ("capacity", 0),
        ("order", 0),
        ("condition", 1.0),
        ("horizon", 0.0),
        ("sample_period", -1.0),
        ("radius", 0.0),
        ("noise", -0.1),
        ("refresh_hz", 0),
        ("latex_decimals", 11),
        ("log_level", "LOUD"),
    ],
)
def test_invalid_values(field, value):
    with pytest.raises(ValueError):
        TrackerSettings(**{field: value})


def test_missing_file_gives_defaults(tmp_path):
    assert load_settings(tmp_path / "absent.yaml") == TrackerSettings()


def test_load_coerces_types(tmp_path):
    path = tmp_path / "s.yaml"
    path.write_text("capacity: 8\norder: 3\ncondition: 1000\nlog_level: debug\n")
    s = load_settings(path)
    assert s.capacity == 8
    assert isinstance(s.condition, float)
    assert s.basis is chebyshev_basis(3)
    assert s.level == logging.DEBUG


def test_load_rejects_unknown_keys(tmp_path):
    path = tmp_path / "s.yaml"
    path.write_text("capacity: 8\nwindow: 3\n")
    with pytest.raises(ValueError, match="window"):
        load_settings(path)


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "s.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_settings(path)


def test_save_and_load(tmp_path):
    path = tmp_path / "s.yaml"
    original = TrackerSettings(capacity=20, noise=0.25, latex_approx=False)
    save_settings(original, path)
    assert load_settings(path) == original


def test_make_engine():
    s = TrackerSettings(capacity=7, order=3, horizon=0.25)
    f = s.make_engine()
    assert f.capacity == 7
    assert f.order == 3
    assert f.horizon == 0.25
    assert f.length() == 0


@pytest.mark.parametrize(
    "line",
    [
        "capacity: 11.7",
        "capacity: true",
        "latex_approx: 'no'",
        "condition: big",
        "log_level: 3",
    ],
)
def test_load_rejects_mistyped_values(tmp_path, line):
    path = tmp_path / "s.yaml"
    path.write_text(line + "\n")
    with pytest.raises(ValueError):
        load_settings(path)
