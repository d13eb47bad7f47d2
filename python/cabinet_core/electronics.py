"""Crossover topology, impedance, power handling and sensitivity."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .acoustics._utils import clamp
from .config import (
    BudgetTier,
    Configuration,
    ListeningLevel,
    LoadType,
    MusicalStyle,
    PrimaryUse,
    default_crossovers_for,
)
from .errors import ConfigurationError
from .geometry import Geometry, compute_geometry

BASS_HEAVY_CROSSOVER_RATIO = 0.8

IMPEDANCE_REDUCTION_OHM = 2
IMPEDANCE_FLOOR_OHM = 4
IMPEDANCE_RANGE_FACTORS = (0.8, 1.2)

POWER_HEADROOM: dict[ListeningLevel, float] = {
    ListeningLevel.LOW: 1.2,
    ListeningLevel.MEDIUM: 1.5,
    ListeningLevel.HIGH: 1.8,
}
CREST_FACTOR = 2.0

REFERENCE_SENSITIVITY_DB = 89.0
SENSITIVITY_LIMITS_DB = (85.0, 95.0)
LEVEL_SENSITIVITY_DB: dict[ListeningLevel, float] = {
    ListeningLevel.LOW: -2.0,
    ListeningLevel.MEDIUM: 0.0,
    ListeningLevel.HIGH: 2.0,
}
SENSITIVITY_PER_EXTRA_WAY_DB = 0.5
USE_SENSITIVITY_DB: dict[PrimaryUse, float] = {
    PrimaryUse.HOME_THEATER: 0.5,
    PrimaryUse.STUDIO: -0.5,
}


@dataclass(frozen=True, slots=True)
class Electronics:
    """Electrical parameters of the crossover network and the whole system."""

    crossover_frequencies_hz: tuple[float, ...]
    filter_slope_db_per_oct: int
    quality_factor: float
    nominal_impedance_ohm: int
    impedance_range_ohm: tuple[float, float]
    admissible_power_w: float
    peak_power_w: float
    sensitivity_db: float
    enclosure_corner_hz: float
    """Tuning frequency for vented loads, box resonance for sealed loads."""

    secondary_tuning_hz: float | None = None

    @property
    def filter_order(self) -> int:
        return self.filter_slope_db_per_oct // 6

    @property
    def filter_slope_label(self) -> str:
        return format_slope(self.filter_slope_db_per_oct)

    @property
    def impedance_label(self) -> str:
        return format_impedance(self.nominal_impedance_ohm)

    @property
    def admissible_power_label(self) -> str:
        return format_power(self.admissible_power_w)

    @property
    def peak_power_label(self) -> str:
        return format_power(self.peak_power_w, kind="peak")

    @property
    def sensitivity_label(self) -> str:
        return format_sensitivity(self.sensitivity_db)

    @property
    def crossover_labels(self) -> list[str]:
        return [format_frequency(freq) for freq in self.crossover_frequencies_hz]

    def to_dict(self) -> dict[str, object]:
        return {
            "crossover_frequencies_hz": list(self.crossover_frequencies_hz),
            "crossover_labels": self.crossover_labels,
            "filter_slope_db_per_oct": self.filter_slope_db_per_oct,
            "filter_slope_label": self.filter_slope_label,
            "quality_factor": self.quality_factor,
            "nominal_impedance_ohm": self.nominal_impedance_ohm,
            "impedance_label": self.impedance_label,
            "impedance_range_ohm": list(self.impedance_range_ohm),
            "admissible_power_w": self.admissible_power_w,
            "admissible_power_label": self.admissible_power_label,
            "peak_power_w": self.peak_power_w,
            "peak_power_label": self.peak_power_label,
            "sensitivity_db": self.sensitivity_db,
            "sensitivity_label": self.sensitivity_label,
            "enclosure_corner_hz": self.enclosure_corner_hz,
            "secondary_tuning_hz": self.secondary_tuning_hz,
        }


def compute_electronics(config: Configuration, geometry: Geometry | None = None) -> Electronics:
    """Derive the electrical parameters; ``geometry`` is computed when omitted."""

    if geometry is None:
        geometry = compute_geometry(config)

    nominal = nominal_impedance_ohm(config)
    low_factor, high_factor = IMPEDANCE_RANGE_FACTORS
    rms = admissible_power_w(config)

    corner = geometry.box_resonance_hz
    secondary = None
    if config.load_type is not LoadType.SEALED and geometry.vent_spec is not None:
        corner = geometry.vent_spec.tuning_frequency_hz
        secondary = geometry.vent_spec.secondary_tuning_frequency_hz

    return Electronics(
        crossover_frequencies_hz=crossover_frequencies_hz(config),
        filter_slope_db_per_oct=filter_slope_db_per_oct(config),
        quality_factor=config.effective_quality_factor,
        nominal_impedance_ohm=nominal,
        impedance_range_ohm=(round(nominal * low_factor, 1), round(nominal * high_factor, 1)),
        admissible_power_w=rms,
        peak_power_w=rms * CREST_FACTOR,
        sensitivity_db=sensitivity_db(config),
        enclosure_corner_hz=corner,
        secondary_tuning_hz=secondary,
    )


def crossover_frequencies_hz(config: Configuration) -> tuple[float, ...]:
    """Return the crossover points in ascending order (``voice_count - 1`` values)."""

    if config.manual_crossovers_active:
        freqs = tuple(float(freq) for freq in config.manual_crossover_frequencies_hz)
        if len(freqs) != config.voice_count - 1:
            raise ConfigurationError(
                "manual_crossover_frequencies_hz",
                f"expected {config.voice_count - 1} value(s), got {len(freqs)}",
            )
        return freqs

    freqs = default_crossovers_for(config.voice_count)
    if config.musical_style is MusicalStyle.BASS_HEAVY:
        freqs = tuple(round(freq * BASS_HEAVY_CROSSOVER_RATIO, 1) for freq in freqs)
    return freqs


def filter_slope_db_per_oct(config: Configuration) -> int:
    if config.advanced_mode_enabled:
        return config.filter_slope_db_per_oct
    if config.budget_tier is BudgetTier.HIGH or config.musical_style is MusicalStyle.HIFI:
        return 24
    if config.voice_count >= 3:
        return 18
    return 12


def nominal_impedance_ohm(config: Configuration) -> int:
    nominal = int(config.impedance_ohm)
    if config.voice_count >= 3:
        nominal = max(nominal - IMPEDANCE_REDUCTION_OHM, IMPEDANCE_FLOOR_OHM)
    return nominal


def admissible_power_w(config: Configuration) -> float:
    return float(round(config.amplifier_power_w * POWER_HEADROOM[config.listening_level]))


def sensitivity_db(config: Configuration) -> float:
    value = REFERENCE_SENSITIVITY_DB
    value += LEVEL_SENSITIVITY_DB[config.listening_level]
    value += (config.voice_count - 2) * SENSITIVITY_PER_EXTRA_WAY_DB
    value += USE_SENSITIVITY_DB.get(config.primary_use, 0.0)
    return clamp(value, *SENSITIVITY_LIMITS_DB)


# Labels ---------------------------------------------------------------------------

_SLOPE_RE = re.compile(r"^\s*(\d+)\s*dB/oct(?:ave)?\s*$")
_IMPEDANCE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:Ω|ohms?)(?:\s+nominal)?\s*$")
_POWER_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*W(?:\s+(?:RMS|peak))?\s*$")
_SENSITIVITY_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*dB\s*$")
_FREQUENCY_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(k?)Hz\s*$")


def _plain_number(value: float) -> str:
    # Shortest text that parses back to the same float.
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def format_slope(slope_db_per_oct: int) -> str:
    return f"{slope_db_per_oct} dB/octave"


def format_impedance(ohms: float) -> str:
    return f"{_plain_number(ohms)} Ω nominal"


def format_power(watts: float, *, kind: str = "RMS") -> str:
    return f"{_plain_number(watts)} W {kind}"


def format_sensitivity(db: float) -> str:
    return f"{db:.1f} dB"


def format_frequency(hz: float) -> str:
    return f"{_plain_number(hz)} Hz"


def _parse(pattern: re.Pattern[str], label: str, what: str) -> re.Match[str]:
    match = pattern.match(label)
    if match is None:
        raise ValueError(f"Unrecognised {what} label: {label!r}")
    return match


def parse_slope(label: str) -> int:
    return int(_parse(_SLOPE_RE, label, "slope").group(1))


def parse_impedance(label: str) -> float:
    return float(_parse(_IMPEDANCE_RE, label, "impedance").group(1))


def parse_power(label: str) -> float:
    return float(_parse(_POWER_RE, label, "power").group(1))


def parse_sensitivity(label: str) -> float:
    return float(_parse(_SENSITIVITY_RE, label, "sensitivity").group(1))


def parse_frequency(label: str) -> float:
    match = _parse(_FREQUENCY_RE, label, "frequency")
    value = float(match.group(1))
    return value * 1000.0 if match.group(2) else value


__all__ = [
    "Electronics",
    "admissible_power_w",
    "compute_electronics",
    "crossover_frequencies_hz",
    "filter_slope_db_per_oct",
    "format_frequency",
    "format_impedance",
    "format_power",
    "format_sensitivity",
    "format_slope",
    "nominal_impedance_ohm",
    "parse_frequency",
    "parse_impedance",
    "parse_power",
    "parse_sensitivity",
    "parse_slope",
    "sensitivity_db",
]
