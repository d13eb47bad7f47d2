"""Ordered configurator pipeline: configuration -> geometry -> electronics -> drivers.

Each stage receives the immutable outputs of the previous stages, so a
quantity is computed exactly once per run and every run starts from scratch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from math import isfinite
from typing import Any

from .acoustics.response import ResponseCurve, ResponseSample, evaluate_frequency, frequency_sweep, log_frequency_axis
from .config import Configuration
from .drivers import DriverSpec, select_drivers
from .electronics import Electronics, compute_electronics
from .errors import ConfigurationError, NumericDomainError
from .geometry import Dimensions, Geometry, VentSpec, compute_geometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Recommendation:
    """Everything derived from one configuration."""

    configuration: Configuration
    geometry: Geometry
    electronics: Electronics
    drivers: tuple[DriverSpec, ...]

    @property
    def volume_liters(self) -> float:
        return self.geometry.volume_liters

    @property
    def dimensions_cm(self) -> Dimensions:
        return self.geometry.dimensions_cm

    @property
    def materials(self) -> tuple[str, ...]:
        return self.geometry.materials

    @property
    def vent_spec(self) -> VentSpec | None:
        return self.geometry.vent_spec

    @property
    def nominal_impedance_ohm(self) -> int:
        return self.electronics.nominal_impedance_ohm

    @property
    def admissible_power_w(self) -> float:
        return self.electronics.admissible_power_w

    @property
    def crossover_frequencies_hz(self) -> tuple[float, ...]:
        return self.electronics.crossover_frequencies_hz

    @property
    def filter_slope_label(self) -> str:
        return self.electronics.filter_slope_label

    @property
    def sensitivity_db(self) -> float:
        return self.electronics.sensitivity_db

    def to_dict(self) -> dict[str, Any]:
        return {
            "configuration": self.configuration.to_dict(),
            "volume_liters": self.volume_liters,
            "dimensions_cm": self.dimensions_cm.to_dict(),
            "materials": list(self.materials),
            "vent_spec": self.vent_spec.to_dict() if self.vent_spec is not None else None,
            "nominal_impedance_ohm": self.nominal_impedance_ohm,
            "admissible_power_w": self.admissible_power_w,
            "crossover_frequencies_hz": list(self.crossover_frequencies_hz),
            "filter_slope_label": self.filter_slope_label,
            "sensitivity_db": self.sensitivity_db,
            "geometry": self.geometry.to_dict(),
            "electronics": self.electronics.to_dict(),
            "drivers": [driver.to_dict() for driver in self.drivers],
        }


def _as_configuration(config: Configuration | Mapping[str, Any]) -> Configuration:
    if isinstance(config, Configuration):
        return config
    if isinstance(config, Mapping):
        return Configuration.from_dict(config)
    raise ConfigurationError("configuration", f"expected a Configuration or mapping, got {type(config).__name__}")


def recommend(config: Configuration | Mapping[str, Any]) -> Recommendation:
    """Run the full pipeline for ``config``.

    Raises :class:`ConfigurationError` before any computation when the input is
    out of domain. No partial recommendation is ever returned.
    """

    config = _as_configuration(config)
    logger.debug(
        "Recommendation started: %d way(s), %s, %s",
        config.voice_count,
        config.enclosure_shape.value,
        config.load_type.value,
    )

    geometry = compute_geometry(config)
    electronics = compute_electronics(config, geometry)
    drivers = tuple(select_drivers(config, geometry, electronics))
    recommendation = Recommendation(config, geometry, electronics, drivers)
    _audit_finite(recommendation.to_dict(), "recommendation")

    logger.debug(
        "Recommendation finished: %.1f L, crossovers %s",
        geometry.volume_liters,
        list(electronics.crossover_frequencies_hz),
    )
    return recommendation


def _audit_finite(value: Any, path: str) -> None:
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return
    if isinstance(value, (int, float)):
        if not isfinite(value):
            raise NumericDomainError(path, f"non-finite value {value!r}")
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            _audit_finite(item, f"{path}.{key}")
        return
    if isinstance(value, (list, tuple)):
        for idx, item in enumerate(value):
            _audit_finite(item, f"{path}[{idx}]")


def _recommendation_for(
    config: Configuration | Mapping[str, Any],
    recommendation: Recommendation | None,
) -> Recommendation:
    if recommendation is None:
        return recommend(config)
    if _as_configuration(config) != recommendation.configuration:
        raise ConfigurationError("configuration", "does not match the given recommendation")
    return recommendation


def response_sample(
    config: Configuration | Mapping[str, Any],
    frequency_hz: float,
    recommendation: Recommendation | None = None,
) -> ResponseSample:
    """Per-voice and global level at ``frequency_hz``.

    A precomputed ``recommendation`` is reused only when it was built from ``config``.
    """

    recommendation = _recommendation_for(config, recommendation)
    return evaluate_frequency(frequency_hz, recommendation.configuration, recommendation.electronics)


def response_curve(
    config: Configuration | Mapping[str, Any],
    frequencies_hz: Iterable[float] | None = None,
    *,
    workers: int = 0,
    recommendation: Recommendation | None = None,
) -> ResponseCurve:
    """Sample the response over ``frequencies_hz`` (default: 20 Hz - 20 kHz log sweep)."""

    recommendation = _recommendation_for(config, recommendation)
    if frequencies_hz is None:
        frequencies_hz = log_frequency_axis()
    return frequency_sweep(frequencies_hz, recommendation.configuration, recommendation.electronics, workers=workers)


__all__ = ["Recommendation", "recommend", "response_curve", "response_sample"]
