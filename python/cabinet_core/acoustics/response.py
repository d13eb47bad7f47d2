"""Heuristic frequency-response simulator.

Each voice's level is the reference level plus independent dB terms (the
crossover filter, enclosure loading, room gain, listening level and tonal
style), with the total deviation clamped to :data:`DEVIATION_LIMITS_DB`. The
global curve sums the voices as phase-aligned amplitudes.

Every function here is pure, so sweeps can be spread over worker threads
without synchronisation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from math import isfinite, log10
from statistics import median
from typing import TYPE_CHECKING

from ..config import AUDIBLE_RANGE_HZ, Configuration, ListeningLevel, MusicalStyle
from ..errors import ConfigurationError, NumericDomainError
from ._utils import clamp, ensure_finite, find_band_edges, safe_log10
from .enclosure import enclosure_term_db, room_gain_db
from .filters import crossover_term_db, filter_order

if TYPE_CHECKING:
    from ..electronics import Electronics

logger = logging.getLogger(__name__)

REFERENCE_LEVEL_DB = 89.0
DEVIATION_LIMITS_DB = (-40.0, 10.0)
GLOBAL_LIMITS_DB = (REFERENCE_LEVEL_DB + DEVIATION_LIMITS_DB[0], REFERENCE_LEVEL_DB + DEVIATION_LIMITS_DB[1])

BASS_BAND_UPPER_HZ = 200.0
TREBLE_BAND_LOWER_HZ = 2000.0
RIPPLE_WINDOW_HZ = (200.0, 5000.0)
BAND_EDGE_DROP_DB = 3.0

DEFAULT_SWEEP_POINTS = 121


class Band(str, Enum):
    BASS = "bass"
    MID = "mid"
    TREBLE = "treble"


# (bass, mid, treble) corrections in dB.
LEVEL_CORRECTION_DB: dict[ListeningLevel, tuple[float, float, float]] = {
    ListeningLevel.LOW: (3.0, 0.0, 1.5),
    ListeningLevel.MEDIUM: (0.0, 0.0, 0.0),
    ListeningLevel.HIGH: (-1.5, 0.0, -1.0),
}
STYLE_CORRECTION_DB: dict[MusicalStyle, tuple[float, float, float]] = {
    MusicalStyle.NEUTRAL: (0.0, 0.0, 0.0),
    MusicalStyle.HIFI: (-1.0, 0.0, 1.0),
    MusicalStyle.BASS_HEAVY: (3.0, 0.0, -1.0),
    MusicalStyle.ACOUSTIC: (-2.0, 1.0, 1.5),
    MusicalStyle.CLASSICAL: (-2.0, 1.0, -1.0),
    MusicalStyle.JAZZ: (1.0, 2.0, -2.0),
    MusicalStyle.ROCK: (3.0, -1.0, 2.0),
    MusicalStyle.ELECTRONIC: (4.0, -2.0, 3.0),
}
_FLAT = (0.0, 0.0, 0.0)
_BAND_SLOT = {Band.BASS: 0, Band.MID: 1, Band.TREBLE: 2}


def frequency_band(frequency_hz: float) -> Band:
    """Return the single correction band that owns ``frequency_hz``."""

    if frequency_hz < BASS_BAND_UPPER_HZ:
        return Band.BASS
    if frequency_hz <= TREBLE_BAND_LOWER_HZ:
        return Band.MID
    return Band.TREBLE


def listening_level_term_db(frequency_hz: float, level: ListeningLevel) -> float:
    return LEVEL_CORRECTION_DB.get(level, _FLAT)[_BAND_SLOT[frequency_band(frequency_hz)]]


def style_term_db(frequency_hz: float, style: MusicalStyle) -> float:
    return STYLE_CORRECTION_DB.get(style, _FLAT)[_BAND_SLOT[frequency_band(frequency_hz)]]


def _check_frequency(frequency_hz: float) -> float:
    if isinstance(frequency_hz, bool) or not isinstance(frequency_hz, (int, float)):
        raise ConfigurationError("frequency_hz", f"expected a number, got {frequency_hz!r}")
    if not isfinite(frequency_hz) or frequency_hz <= 0.0:
        raise ConfigurationError("frequency_hz", f"must be a positive finite frequency, got {frequency_hz!r}")
    return float(frequency_hz)


def voice_response_db(
    frequency_hz: float,
    voice_index: int,
    config: Configuration,
    electronics: Electronics,
) -> float:
    """Simulated level of voice ``voice_index`` at ``frequency_hz`` (absolute dB).

    Voice 0 is the bass (or full-range) voice and is the only one loaded by
    the enclosure and the room.
    """

    frequency_hz = _check_frequency(frequency_hz)
    crossovers = electronics.crossover_frequencies_hz
    voice_count = len(crossovers) + 1
    if not 0 <= voice_index < voice_count:
        raise IndexError(f"voice index {voice_index} out of range for {voice_count} voice(s)")

    low, high = DEVIATION_LIMITS_DB
    try:
        deviation = crossover_term_db(
            frequency_hz,
            voice_index,
            crossovers,
            filter_order(electronics.filter_slope_db_per_oct),
            electronics.quality_factor,
        )
    except NumericDomainError as exc:
        logger.warning("Filter term at %.1f Hz replaced by %.1f dB (%s)", frequency_hz, low, exc)
        deviation = low

    if voice_index == 0:
        try:
            deviation += enclosure_term_db(
                frequency_hz,
                config.load_type,
                electronics.enclosure_corner_hz,
                electronics.quality_factor,
                electronics.secondary_tuning_hz,
            )
        except NumericDomainError as exc:
            logger.warning("Enclosure term at %.1f Hz ignored (%s)", frequency_hz, exc)
        deviation += room_gain_db(frequency_hz, config.wall_distance)

    deviation += listening_level_term_db(frequency_hz, config.listening_level)
    deviation += style_term_db(frequency_hz, config.musical_style)
    return REFERENCE_LEVEL_DB + clamp(deviation, low, high)


def global_response_db(frequency_hz: float, per_voice_db: Sequence[float]) -> float:
    """Combine voice levels as phase-aligned amplitudes and return the total (dB)."""

    _check_frequency(frequency_hz)
    if not per_voice_db:
        raise ConfigurationError("per_voice_db", "at least one voice level is required")

    low, high = GLOBAL_LIMITS_DB
    amplitude = 0.0
    for level in per_voice_db:
        try:
            amplitude += 10.0 ** (ensure_finite(float(level), "voice_level_db") / 20.0)
        except NumericDomainError as exc:
            logger.warning("Voice level dropped from global sum at %.1f Hz (%s)", frequency_hz, exc)
    try:
        total = 20.0 * safe_log10(amplitude, "global_response_db")
    except NumericDomainError as exc:
        logger.warning("Global level at %.1f Hz replaced by %.1f dB (%s)", frequency_hz, low, exc)
        return low
    return clamp(total, low, high)


@dataclass(frozen=True, slots=True)
class ResponseSample:
    """Per-voice and combined levels at one frequency."""

    frequency_hz: float
    per_voice_db: tuple[float, ...]
    global_db: float

    def to_dict(self) -> dict[str, object]:
        return {
            "frequency_hz": self.frequency_hz,
            "per_voice_db": list(self.per_voice_db),
            "global_db": self.global_db,
        }


@dataclass(frozen=True, slots=True)
class CurveSummary:
    """Figures of merit of a global response curve."""

    reference_db: float
    f3_low_hz: float | None
    f3_high_hz: float | None
    peak_db: float
    peak_frequency_hz: float
    min_db: float
    min_frequency_hz: float
    ripple_db: float | None
    """Peak-to-trough spread between 200 Hz and 5 kHz."""

    def to_dict(self) -> dict[str, float | None]:
        return {
            "reference_db": self.reference_db,
            "f3_low_hz": self.f3_low_hz,
            "f3_high_hz": self.f3_high_hz,
            "peak_db": self.peak_db,
            "peak_frequency_hz": self.peak_frequency_hz,
            "min_db": self.min_db,
            "min_frequency_hz": self.min_frequency_hz,
            "ripple_db": self.ripple_db,
        }


@dataclass(frozen=True, slots=True)
class ResponseCurve:
    """Sampled response; ``per_voice_db[i]`` is aligned with ``frequency_hz``."""

    frequency_hz: tuple[float, ...]
    per_voice_db: tuple[tuple[float, ...], ...]
    global_db: tuple[float, ...]

    @classmethod
    def from_samples(cls, samples: Sequence[ResponseSample]) -> ResponseCurve:
        voice_count = len(samples[0].per_voice_db) if samples else 0
        return cls(
            frequency_hz=tuple(sample.frequency_hz for sample in samples),
            per_voice_db=tuple(
                tuple(sample.per_voice_db[idx] for sample in samples) for idx in range(voice_count)
            ),
            global_db=tuple(sample.global_db for sample in samples),
        )

    @property
    def voice_count(self) -> int:
        return len(self.per_voice_db)

    def samples(self) -> list[ResponseSample]:
        return [
            ResponseSample(freq, tuple(voice[idx] for voice in self.per_voice_db), self.global_db[idx])
            for idx, freq in enumerate(self.frequency_hz)
        ]

    def summary(self) -> CurveSummary:
        if not self.frequency_hz:
            raise ConfigurationError("frequency_hz", "cannot summarise an empty curve")

        reference = float(median(self.global_db))
        f3_low, f3_high = find_band_edges(self.frequency_hz, self.global_db, reference, BAND_EDGE_DROP_DB)

        peak_idx = max(range(len(self.global_db)), key=self.global_db.__getitem__)
        min_idx = min(range(len(self.global_db)), key=self.global_db.__getitem__)

        window_low, window_high = RIPPLE_WINDOW_HZ
        in_window = [
            level
            for freq, level in zip(self.frequency_hz, self.global_db, strict=True)
            if window_low <= freq <= window_high
        ]
        ripple = max(in_window) - min(in_window) if in_window else None

        return CurveSummary(
            reference_db=reference,
            f3_low_hz=f3_low,
            f3_high_hz=f3_high,
            peak_db=self.global_db[peak_idx],
            peak_frequency_hz=self.frequency_hz[peak_idx],
            min_db=self.global_db[min_idx],
            min_frequency_hz=self.frequency_hz[min_idx],
            ripple_db=ripple,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "frequency_hz": list(self.frequency_hz),
            "per_voice_db": [list(voice) for voice in self.per_voice_db],
            "global_db": list(self.global_db),
        }


def evaluate_frequency(frequency_hz: float, config: Configuration, electronics: Electronics) -> ResponseSample:
    frequency_hz = _check_frequency(frequency_hz)
    per_voice = tuple(
        voice_response_db(frequency_hz, idx, config, electronics)
        for idx in range(len(electronics.crossover_frequencies_hz) + 1)
    )
    return ResponseSample(frequency_hz, per_voice, global_response_db(frequency_hz, per_voice))


def log_frequency_axis(
    start_hz: float = AUDIBLE_RANGE_HZ[0],
    stop_hz: float = AUDIBLE_RANGE_HZ[1],
    count: int = DEFAULT_SWEEP_POINTS,
) -> list[float]:
    """Return ``count`` logarithmically spaced frequencies from ``start_hz`` to ``stop_hz``."""

    start_hz = _check_frequency(start_hz)
    stop_hz = _check_frequency(stop_hz)
    if stop_hz < start_hz:
        raise ConfigurationError("stop_hz", "must not be below start_hz")
    if count < 1:
        raise ConfigurationError("count", "at least one frequency is required")
    if count == 1:
        return [start_hz]

    log_start = log10(start_hz)
    step = (log10(stop_hz) - log_start) / (count - 1)
    axis = [10 ** (log_start + idx * step) for idx in range(count)]
    axis[-1] = stop_hz
    return axis


def frequency_sweep(
    frequencies_hz: Iterable[float],
    config: Configuration,
    electronics: Electronics,
    workers: int = 0,
) -> ResponseCurve:
    """Evaluate the response over ``frequencies_hz``, preserving their order.

    ``workers`` > 1 spreads the samples over a thread pool; otherwise the sweep
    runs inline.
    """

    freqs = [_check_frequency(freq) for freq in frequencies_hz]
    if workers and workers > 1 and len(freqs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            samples = list(pool.map(lambda freq: evaluate_frequency(freq, config, electronics), freqs))
    else:
        samples = [evaluate_frequency(freq, config, electronics) for freq in freqs]
    return ResponseCurve.from_samples(samples)


__all__ = [
    "Band",
    "CurveSummary",
    "DEVIATION_LIMITS_DB",
    "GLOBAL_LIMITS_DB",
    "LEVEL_CORRECTION_DB",
    "REFERENCE_LEVEL_DB",
    "ResponseCurve",
    "ResponseSample",
    "STYLE_CORRECTION_DB",
    "evaluate_frequency",
    "frequency_band",
    "frequency_sweep",
    "global_response_db",
    "listening_level_term_db",
    "log_frequency_axis",
    "style_term_db",
    "voice_response_db",
]
