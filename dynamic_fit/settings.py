from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Union

import yaml

from .dynamic import Dynamic
from .polynomial import PolynomialBasis, chebyshev_basis

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True, slots=True)
class TrackerSettings:
    capacity: int = 11              # samples kept in the window
    order: int = 6                  # basis order (polynomial degree + 1)
    condition: float = 1.0e6        # eigenvalue ratio kept by the solve
    horizon: float = 0.5            # extrapolation horizon, fraction of the window
    sample_period: float = 1.0      # seconds between samples
    radius: float = 10.0            # demo arc radius
    angular_velocity_deg: float = 9.0
    noise: float = 0.0              # std-dev of sample noise in the viewer
    refresh_hz: int = 30            # viewer redraw rate
    latex_approx: bool = True
    latex_decimals: int = 3
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {self.capacity}")
        if self.order < 1:
            raise ValueError(f"order must be >= 1, got {self.order}")
        if self.condition <= 1.0:
            raise ValueError(f"condition must be > 1, got {self.condition}")
        if self.horizon <= 0:
            raise ValueError(f"horizon must be positive, got {self.horizon}")
        if self.sample_period <= 0:
            raise ValueError(f"sample_period must be positive, got {self.sample_period}")
        if self.radius <= 0:
            raise ValueError(f"radius must be positive, got {self.radius}")
        if self.noise < 0:
            raise ValueError(f"noise cannot be negative: {self.noise}")
        if not (1 <= self.refresh_hz <= 240):
            raise ValueError(f"refresh_hz must be in [1, 240], got {self.refresh_hz}")
        if not (0 <= self.latex_decimals <= 10):
            raise ValueError(f"latex_decimals must be in [0, 10], got {self.latex_decimals}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")

    @property
    def basis(self) -> PolynomialBasis:
        return chebyshev_basis(self.order)

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level.upper())

    def make_engine(self) -> Dynamic:
        return Dynamic(self.capacity, self.basis, condition=self.condition, horizon=self.horizon)


def load_settings(path: Union[str, Path]) -> TrackerSettings:
    """Read settings from YAML. A missing file yields the defaults."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}
    except FileNotFoundError:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    known = {f.name for f in fields(TrackerSettings)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"{path}: unknown settings {', '.join(unknown)}")
    defaults = TrackerSettings()
    values = {}
    for name, value in data.items():
        values[name] = _checked(path, name, value, type(getattr(defaults, name)))
    return TrackerSettings(**values)


def _checked(path: Union[str, Path], name: str, value: Any, kind: type) -> Any:
    # bool is an int subclass; only a float setting widens an int
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, kind) and (kind is bool or not isinstance(value, bool)):
        return value
    raise ValueError(
        f"{path}: {name} must be {kind.__name__}, got {type(value).__name__} {value!r}"
    )


def save_settings(settings: TrackerSettings, path: Union[str, Path]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(asdict(settings), f, sort_keys=False)
