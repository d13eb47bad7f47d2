"""Enclosure volume, external proportions, panel materials and port sizing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from math import cbrt, pi, sqrt

from .acoustics._utils import clamp, ensure_finite, safe_ratio
from .config import (
    BudgetTier,
    Configuration,
    EnclosureShape,
    LoadType,
    MusicalStyle,
    PrimaryUse,
    WallDistance,
)
from .errors import ConfigurationError, NumericDomainError

logger = logging.getLogger(__name__)

SPEED_OF_SOUND_CM_S = 34300.0  # 343 m/s at 20°C

# Litres of net volume per amplifier watt.
SHAPE_VOLUME_FACTOR: dict[EnclosureShape, float] = {
    EnclosureShape.WALL_MOUNT: 0.15,
    EnclosureShape.BOOKSHELF: 0.2,
    EnclosureShape.MONITOR: 0.3,
    EnclosureShape.TOWER: 0.4,
}
DOUBLE_REFLEX_VOLUME_FACTOR = 1.2
STYLE_VOLUME_FACTOR: dict[MusicalStyle, float] = {
    MusicalStyle.BASS_HEAVY: 1.3,
    MusicalStyle.ACOUSTIC: 0.9,
}
USE_VOLUME_FACTOR: dict[PrimaryUse, float] = {
    PrimaryUse.MUSIC: 1.0,
    PrimaryUse.HOME_THEATER: 1.1,
    PrimaryUse.MIXED: 1.05,
    PrimaryUse.STUDIO: 0.95,
}

# Height : width : depth, width normalised to 1.
SHAPE_PROPORTIONS: dict[EnclosureShape, tuple[float, float, float]] = {
    EnclosureShape.BOOKSHELF: (1.6, 1.0, 1.25),
    EnclosureShape.MONITOR: (1.4, 1.0, 1.2),
    EnclosureShape.TOWER: (2.618, 1.0, 1.3),
    EnclosureShape.WALL_MOUNT: (1.618, 1.0, 0.5),
}
DIMENSION_DECIMALS = 2  # 0.1 mm

REFERENCE_VOLUME_L = 30.0
SHAPE_RESONANCE_HZ: dict[EnclosureShape, float] = {
    EnclosureShape.BOOKSHELF: 55.0,
    EnclosureShape.MONITOR: 50.0,
    EnclosureShape.TOWER: 40.0,
    EnclosureShape.WALL_MOUNT: 60.0,
}
RESONANCE_LIMITS_HZ = (30.0, 90.0)
SHAPE_TUNING_HZ: dict[EnclosureShape, float] = {
    EnclosureShape.BOOKSHELF: 50.0,
    EnclosureShape.MONITOR: 45.0,
    EnclosureShape.TOWER: 35.0,
    EnclosureShape.WALL_MOUNT: 55.0,
}
TUNING_LIMITS_HZ = (25.0, 80.0)
SECONDARY_TUNING_RATIO = 1.4

VENT_AREA_CM2_PER_LITRE = 0.6
VENT_END_CORRECTION = 0.85  # times diameter, one flanged and one free end
MIN_VENT_LENGTH_CM = 1.0

BRACING_THRESHOLD_L = 50.0


@dataclass(frozen=True, slots=True)
class Dimensions:
    """External proportions of the cabinet (centimetres)."""

    height_cm: float
    width_cm: float
    depth_cm: float

    def volume_l(self) -> float:
        return self.height_cm * self.width_cm * self.depth_cm / 1000.0

    def to_dict(self) -> dict[str, float]:
        return {
            "height_cm": self.height_cm,
            "width_cm": self.width_cm,
            "depth_cm": self.depth_cm,
        }


@dataclass(frozen=True, slots=True)
class VentSpec:
    """Circular-equivalent port geometry for vented loads."""

    area_cm2: float
    diameter_cm: float
    length_cm: float
    tuning_frequency_hz: float
    secondary_tuning_frequency_hz: float | None = None
    """Second tuning point of a double bass-reflex load."""

    def to_dict(self) -> dict[str, float | None]:
        return {
            "area_cm2": self.area_cm2,
            "diameter_cm": self.diameter_cm,
            "length_cm": self.length_cm,
            "tuning_frequency_hz": self.tuning_frequency_hz,
            "secondary_tuning_frequency_hz": self.secondary_tuning_frequency_hz,
        }


@dataclass(frozen=True, slots=True)
class Geometry:
    volume_liters: float
    dimensions_cm: Dimensions
    materials: tuple[str, ...]
    vent_spec: VentSpec | None
    box_resonance_hz: float
    """Low-frequency corner of the closed box (used for sealed loads and woofer sizing)."""

    suggested_load_type: LoadType

    def to_dict(self) -> dict[str, object]:
        return {
            "volume_liters": self.volume_liters,
            "dimensions_cm": self.dimensions_cm.to_dict(),
            "materials": list(self.materials),
            "vent_spec": self.vent_spec.to_dict() if self.vent_spec is not None else None,
            "box_resonance_hz": self.box_resonance_hz,
            "suggested_load_type": self.suggested_load_type.value,
        }


def compute_geometry(config: Configuration) -> Geometry:
    """Derive the physical characteristics of the cabinet for ``config``."""

    volume = enclosure_volume_l(config)
    if volume <= 0.0:
        raise ConfigurationError("amplifier_power_w", f"derived volume {volume:g} L is not positive")

    vent = vent_spec(config, volume) if config.load_type.vented else None
    return Geometry(
        volume_liters=volume,
        dimensions_cm=cabinet_dimensions(volume, config.enclosure_shape),
        materials=recommended_materials(config, volume),
        vent_spec=vent,
        box_resonance_hz=box_resonance_hz(config.enclosure_shape, volume),
        suggested_load_type=suggested_load_type(config),
    )


def enclosure_volume_l(config: Configuration) -> float:
    volume = config.amplifier_power_w * SHAPE_VOLUME_FACTOR[config.enclosure_shape]
    if config.load_type is LoadType.DOUBLE_BASS_REFLEX:
        volume *= DOUBLE_REFLEX_VOLUME_FACTOR
    volume *= STYLE_VOLUME_FACTOR.get(config.musical_style, 1.0)
    volume *= USE_VOLUME_FACTOR[config.primary_use]
    return round(volume, 1)


def cabinet_dimensions(volume_l: float, shape: EnclosureShape) -> Dimensions:
    """Split ``volume_l`` into height/width/depth following the shape proportions."""

    if volume_l <= 0.0:
        raise ConfigurationError("volume_liters", "must be positive")
    h_ratio, w_ratio, d_ratio = SHAPE_PROPORTIONS[shape]
    edge = cbrt(volume_l * 1000.0 / (h_ratio * w_ratio * d_ratio))
    return Dimensions(
        height_cm=round(edge * h_ratio, DIMENSION_DECIMALS),
        width_cm=round(edge * w_ratio, DIMENSION_DECIMALS),
        depth_cm=round(edge * d_ratio, DIMENSION_DECIMALS),
    )


def recommended_materials(config: Configuration, volume_l: float) -> tuple[str, ...]:
    if config.budget_tier is BudgetTier.HIGH:
        materials = ["Baltic birch plywood 18 mm", "constrained-layer damping panels"]
    else:
        materials = ["MDF 19 mm"]
        if config.budget_tier is BudgetTier.MID:
            materials.append("polyester damping wadding")
    if volume_l > BRACING_THRESHOLD_L:
        materials.append("internal cross bracing")
    if config.primary_use is PrimaryUse.STUDIO:
        materials.append("acoustic foam lining")
    return tuple(materials)


def _volume_scaling(volume_l: float) -> float:
    return (REFERENCE_VOLUME_L / volume_l) ** 0.25


def box_resonance_hz(shape: EnclosureShape, volume_l: float) -> float:
    low, high = RESONANCE_LIMITS_HZ
    return round(clamp(SHAPE_RESONANCE_HZ[shape] * _volume_scaling(volume_l), low, high), 1)


def tuning_frequency_hz(config: Configuration, volume_l: float) -> float:
    """Return the port tuning: the advanced override, else a shape/volume estimate."""

    override = config.effective_tuning_override_hz
    if override is not None:
        return float(override)
    low, high = TUNING_LIMITS_HZ
    return round(clamp(SHAPE_TUNING_HZ[config.enclosure_shape] * _volume_scaling(volume_l), low, high), 1)


def vent_length_cm(area_cm2: float, diameter_cm: float, tuning_hz: float, volume_l: float) -> float:
    """Simplified Helmholtz port length with a fixed end correction.

    ``L = c² A / (4π² fb² V) - k d``, clamped to :data:`MIN_VENT_LENGTH_CM`.
    """

    try:
        effective = safe_ratio(
            SPEED_OF_SOUND_CM_S**2 * area_cm2,
            4 * pi**2 * tuning_hz**2 * volume_l * 1000.0,
            "vent_length_cm",
        )
        length = ensure_finite(effective - VENT_END_CORRECTION * diameter_cm, "vent_length_cm")
    except NumericDomainError as exc:
        logger.warning("Vent length fallback to %.1f cm (%s)", MIN_VENT_LENGTH_CM, exc)
        return MIN_VENT_LENGTH_CM
    return round(max(length, MIN_VENT_LENGTH_CM), 2)


def vent_spec(config: Configuration, volume_l: float) -> VentSpec:
    area = round(VENT_AREA_CM2_PER_LITRE * volume_l, 2)
    diameter = sqrt(4.0 * area / pi)
    tuning = tuning_frequency_hz(config, volume_l)
    if tuning <= 0.0:
        logger.warning("Tuning frequency %.3g Hz replaced by %.1f Hz", tuning, TUNING_LIMITS_HZ[0])
        tuning = TUNING_LIMITS_HZ[0]
    secondary = None
    if config.load_type is LoadType.DOUBLE_BASS_REFLEX:
        secondary = round(tuning * SECONDARY_TUNING_RATIO, 1)
    return VentSpec(
        area_cm2=area,
        diameter_cm=diameter,
        length_cm=vent_length_cm(area, diameter, tuning, volume_l),
        tuning_frequency_hz=tuning,
        secondary_tuning_frequency_hz=secondary,
    )


def suggested_load_type(config: Configuration) -> LoadType:
    """Return the load type best matched to the wall distance and style."""

    if config.wall_distance is WallDistance.NEAR:
        return LoadType.SEALED
    if config.musical_style is MusicalStyle.HIFI:
        return LoadType.DOUBLE_BASS_REFLEX
    return LoadType.BASS_REFLEX


__all__ = [
    "Dimensions",
    "Geometry",
    "VentSpec",
    "box_resonance_hz",
    "cabinet_dimensions",
    "compute_geometry",
    "enclosure_volume_l",
    "recommended_materials",
    "suggested_load_type",
    "tuning_frequency_hz",
    "vent_length_cm",
    "vent_spec",
]
