"""Configuration value consumed by every stage of the configurator pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from enum import Enum
from math import isfinite
from typing import Any

from .errors import ConfigurationError

BUTTERWORTH_Q = 0.707

IMPEDANCE_CHOICES_OHM = (4, 8, 12, 16)
VOICE_COUNT_CHOICES = (1, 2, 3, 4)
FILTER_SLOPE_CHOICES = (6, 12, 18, 24)
AMPLIFIER_POWER_RANGE_W = (20.0, 250.0)
QUALITY_FACTOR_RANGE = (0.5, 1.2)
AUDIBLE_RANGE_HZ = (20.0, 20000.0)

# Automatic crossover points per voice count, before any style shift.
DEFAULT_CROSSOVERS_HZ: dict[int, tuple[float, ...]] = {
    1: (),
    2: (3000.0,),
    3: (500.0, 3000.0),
    4: (250.0, 1000.0, 3000.0),
}


class ListeningLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MusicalStyle(str, Enum):
    """Tonal target of the system.

    The set is open: any unrecognised value resolves to ``NEUTRAL`` so that
    callers never receive a style without a correction table.
    """

    NEUTRAL = "neutral"
    HIFI = "hifi"
    BASS_HEAVY = "bass-heavy"
    ACOUSTIC = "acoustic"
    CLASSICAL = "classical"
    JAZZ = "jazz"
    ROCK = "rock"
    ELECTRONIC = "electronic"

    @classmethod
    def _missing_(cls, value: object) -> MusicalStyle:
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return _STYLE_ALIASES.get(key, cls.NEUTRAL)


_STYLE_ALIASES: dict[str, MusicalStyle] = {
    "bass": MusicalStyle.BASS_HEAVY,
    "bass_heavy": MusicalStyle.BASS_HEAVY,
    "vocal": MusicalStyle.ACOUSTIC,
    "acoustic/vocal": MusicalStyle.ACOUSTIC,
}


class EnclosureShape(str, Enum):
    BOOKSHELF = "bookshelf"
    TOWER = "tower"
    WALL_MOUNT = "wall-mount"
    MONITOR = "monitor"


class BudgetTier(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    HIGH = "high"


class WallDistance(str, Enum):
    NEAR = "near"
    MEDIUM = "medium"
    FAR = "far"


class PrimaryUse(str, Enum):
    MUSIC = "music"
    HOME_THEATER = "home-theater"
    MIXED = "mixed"
    STUDIO = "studio"


class LoadType(str, Enum):
    SEALED = "sealed"
    BASS_REFLEX = "bass-reflex"
    DOUBLE_BASS_REFLEX = "double-bass-reflex"

    @property
    def vented(self) -> bool:
        return self is not LoadType.SEALED


_ENUM_FIELDS: dict[str, type[Enum]] = {
    "listening_level": ListeningLevel,
    "musical_style": MusicalStyle,
    "enclosure_shape": EnclosureShape,
    "budget_tier": BudgetTier,
    "wall_distance": WallDistance,
    "primary_use": PrimaryUse,
    "load_type": LoadType,
}


@dataclass(frozen=True, slots=True)
class Configuration:
    """Immutable set of user choices describing one loudspeaker.

    Instances validate themselves on construction, so any ``Configuration``
    that exists is inside its documented domain.
    """

    impedance_ohm: int = 8
    """Nominal amplifier load (ohms)."""

    amplifier_power_w: float = 100.0
    """Amplifier output power (watts RMS)."""

    voice_count: int = 2
    """Number of crossover ways."""

    listening_level: ListeningLevel = ListeningLevel.MEDIUM
    musical_style: MusicalStyle = MusicalStyle.NEUTRAL
    enclosure_shape: EnclosureShape = EnclosureShape.BOOKSHELF
    budget_tier: BudgetTier = BudgetTier.MID
    wall_distance: WallDistance = WallDistance.MEDIUM
    primary_use: PrimaryUse = PrimaryUse.MUSIC
    load_type: LoadType = LoadType.BASS_REFLEX

    filter_slope_db_per_oct: int = 12
    """Crossover slope, honoured only in advanced mode."""

    quality_factor: float = BUTTERWORTH_Q
    """Filter/tuning Q, honoured only in advanced mode."""

    manual_crossover_frequencies_hz: tuple[float, ...] = ()
    """Crossover points, honoured only in advanced mode when non-empty."""

    vent_tuning_frequency_hz: float | None = None
    """Port tuning override, honoured only in advanced mode."""

    advanced_mode_enabled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "manual_crossover_frequencies_hz",
            tuple(self.manual_crossover_frequencies_hz),
        )
        self.validate()

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` for the first out-of-domain field."""

        for name, enum_cls in _ENUM_FIELDS.items():
            if not isinstance(getattr(self, name), enum_cls):
                raise ConfigurationError(name, f"expected {enum_cls.__name__}")

        if _is_bool(self.impedance_ohm) or self.impedance_ohm not in IMPEDANCE_CHOICES_OHM:
            raise ConfigurationError(
                "impedance_ohm", f"must be one of {IMPEDANCE_CHOICES_OHM}, got {self.impedance_ohm!r}"
            )

        low_w, high_w = AMPLIFIER_POWER_RANGE_W
        if not _is_real(self.amplifier_power_w) or not low_w <= self.amplifier_power_w <= high_w:
            raise ConfigurationError(
                "amplifier_power_w", f"must lie within [{low_w:g}, {high_w:g}] W"
            )

        if _is_bool(self.voice_count) or self.voice_count not in VOICE_COUNT_CHOICES:
            raise ConfigurationError(
                "voice_count", f"must be one of {VOICE_COUNT_CHOICES}, got {self.voice_count!r}"
            )

        if _is_bool(self.filter_slope_db_per_oct) or self.filter_slope_db_per_oct not in FILTER_SLOPE_CHOICES:
            raise ConfigurationError(
                "filter_slope_db_per_oct",
                f"must be one of {FILTER_SLOPE_CHOICES}, got {self.filter_slope_db_per_oct!r}",
            )

        q_low, q_high = QUALITY_FACTOR_RANGE
        if not _is_real(self.quality_factor) or not q_low <= self.quality_factor <= q_high:
            raise ConfigurationError("quality_factor", f"must lie within [{q_low}, {q_high}]")

        if self.vent_tuning_frequency_hz is not None:
            if not _is_real(self.vent_tuning_frequency_hz) or self.vent_tuning_frequency_hz <= 0:
                raise ConfigurationError("vent_tuning_frequency_hz", "must be a positive frequency")

        if not isinstance(self.advanced_mode_enabled, bool):
            raise ConfigurationError("advanced_mode_enabled", "must be a boolean")

        for freq in self.manual_crossover_frequencies_hz:
            if not _is_real(freq):
                raise ConfigurationError("manual_crossover_frequencies_hz", "values must be real numbers")

        if self.manual_crossovers_active:
            self._validate_manual_crossovers()

    def _validate_manual_crossovers(self) -> None:
        freqs = self.manual_crossover_frequencies_hz
        expected = self.voice_count - 1
        if len(freqs) != expected:
            raise ConfigurationError(
                "manual_crossover_frequencies_hz",
                f"expected {expected} value(s) for {self.voice_count} way(s), got {len(freqs)}",
            )
        low_hz, high_hz = AUDIBLE_RANGE_HZ
        for freq in freqs:
            if not low_hz <= freq <= high_hz:
                raise ConfigurationError(
                    "manual_crossover_frequencies_hz",
                    f"{freq:g} Hz lies outside [{low_hz:g}, {high_hz:g}] Hz",
                )
        for lower, upper in zip(freqs, freqs[1:]):
            if upper <= lower:
                raise ConfigurationError(
                    "manual_crossover_frequencies_hz", "values must be strictly increasing"
                )

    @property
    def manual_crossovers_active(self) -> bool:
        return self.advanced_mode_enabled and bool(self.manual_crossover_frequencies_hz)

    @property
    def effective_quality_factor(self) -> float:
        return float(self.quality_factor) if self.advanced_mode_enabled else BUTTERWORTH_Q

    @property
    def effective_tuning_override_hz(self) -> float | None:
        if not self.advanced_mode_enabled:
            return None
        return self.vent_tuning_frequency_hz

    def replace(self, **updates: Any) -> Configuration:
        """Return a validated copy with ``updates`` applied (raw values are coerced)."""

        merged = self.to_dict()
        merged.update(updates)
        return Configuration.from_dict(merged)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            data[field.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Configuration:
        """Build a configuration from plain values (strings for enumerations).

        Missing keys take their defaults; unknown keys are rejected.
        """

        known = {field.name for field in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(unknown[0], "unknown configuration field")

        kwargs: dict[str, Any] = {}
        for name, value in data.items():
            if name in _ENUM_FIELDS:
                kwargs[name] = _coerce_enum(name, _ENUM_FIELDS[name], value)
            elif name in {"impedance_ohm", "voice_count", "filter_slope_db_per_oct"}:
                kwargs[name] = _coerce_int(name, value)
            elif name in {"amplifier_power_w", "quality_factor"}:
                kwargs[name] = _coerce_float(name, value)
            elif name == "vent_tuning_frequency_hz":
                kwargs[name] = None if value is None else _coerce_float(name, value)
            elif name == "manual_crossover_frequencies_hz":
                if value is None:
                    value = ()
                if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
                    raise ConfigurationError(name, "expected a sequence of frequencies")
                kwargs[name] = tuple(_coerce_float(name, freq) for freq in value)
            elif name == "advanced_mode_enabled":
                if not isinstance(value, bool):
                    raise ConfigurationError(name, "must be a boolean")
                kwargs[name] = value
        return cls(**kwargs)


def default_crossovers_for(voice_count: int) -> tuple[float, ...]:
    """Return the neutral-style crossover points for ``voice_count`` ways."""

    try:
        return DEFAULT_CROSSOVERS_HZ[voice_count]
    except KeyError:
        raise ConfigurationError(
            "voice_count", f"must be one of {VOICE_COUNT_CHOICES}, got {voice_count!r}"
        ) from None


def _is_bool(value: object) -> bool:
    return isinstance(value, bool)


def _is_real(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and isfinite(value)


def _coerce_enum(name: str, enum_cls: type[Enum], value: Any) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(name, f"unknown value {value!r} (expected one of {choices})") from None


def _coerce_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(name, "expected an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ConfigurationError(name, f"expected an integer, got {value!r}")


def _coerce_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(name, "expected a number")
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(name, f"expected a number, got {value!r}") from None
    if not isfinite(parsed):
        raise ConfigurationError(name, "must be finite")
    return parsed


DEFAULT_CONFIGURATION = Configuration()


__all__ = [
    "BUTTERWORTH_Q",
    "AMPLIFIER_POWER_RANGE_W",
    "AUDIBLE_RANGE_HZ",
    "FILTER_SLOPE_CHOICES",
    "IMPEDANCE_CHOICES_OHM",
    "QUALITY_FACTOR_RANGE",
    "VOICE_COUNT_CHOICES",
    "DEFAULT_CROSSOVERS_HZ",
    "DEFAULT_CONFIGURATION",
    "BudgetTier",
    "Configuration",
    "EnclosureShape",
    "ListeningLevel",
    "LoadType",
    "MusicalStyle",
    "PrimaryUse",
    "WallDistance",
    "default_crossovers_for",
]
