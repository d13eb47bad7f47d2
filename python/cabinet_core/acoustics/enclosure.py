"""Low-frequency loading of the bass voice by the enclosure and the room."""

from __future__ import annotations

from math import exp, log, log10

from ..config import LoadType, WallDistance
from ._utils import ensure_finite

SEALED_ROLLOFF_DB = 12.0
SEALED_BUMP_DB = 2.0
REFLEX_ROLLOFF_DB = 12.0
REFLEX_BUMP_DB = 3.0
DOUBLE_REFLEX_ROLLOFF_DB = 6.0  # per tuning point
DOUBLE_REFLEX_BUMP_DB = 1.5
DOUBLE_REFLEX_TUNING_RATIO = 1.4
BUMP_REFERENCE_Q = 0.5

ROOM_GAIN_CUTOFF_HZ = 100.0
ROOM_GAIN_DB: dict[WallDistance, float] = {
    WallDistance.NEAR: 3.0,
    WallDistance.MEDIUM: 1.5,
    WallDistance.FAR: 0.0,
}


def resonance_window(frequency_hz: float, center_hz: float) -> float:
    """Gaussian weight on a natural-log frequency axis, 1.0 at ``center_hz``."""

    return exp(-(log(frequency_hz / center_hz) ** 2))


def sealed_term_db(frequency_hz: float, resonance_hz: float, q: float) -> float:
    level = SEALED_BUMP_DB * (q - BUMP_REFERENCE_Q) * resonance_window(frequency_hz, resonance_hz)
    if frequency_hz < resonance_hz:
        level -= SEALED_ROLLOFF_DB * log10(resonance_hz / frequency_hz)
    return level


def bass_reflex_term_db(frequency_hz: float, tuning_hz: float, q: float) -> float:
    level = REFLEX_BUMP_DB * (q - BUMP_REFERENCE_Q) * resonance_window(frequency_hz, tuning_hz)
    if frequency_hz < tuning_hz:
        level += REFLEX_ROLLOFF_DB * log10(frequency_hz / tuning_hz)
    return level


def double_bass_reflex_term_db(
    frequency_hz: float,
    tuning_hz: float,
    q: float,
    secondary_tuning_hz: float | None = None,
) -> float:
    """Two cascaded tuning points; each contributes its own rolloff below its tuning."""

    upper = secondary_tuning_hz if secondary_tuning_hz else tuning_hz * DOUBLE_REFLEX_TUNING_RATIO
    lower = min(tuning_hz, upper)
    upper = max(tuning_hz, upper)

    bumps = resonance_window(frequency_hz, lower) + resonance_window(frequency_hz, upper)
    level = DOUBLE_REFLEX_BUMP_DB * (q - BUMP_REFERENCE_Q) * bumps
    if frequency_hz < lower:
        level += DOUBLE_REFLEX_ROLLOFF_DB * log10(frequency_hz / lower)
    if frequency_hz < upper:
        level += DOUBLE_REFLEX_ROLLOFF_DB * log10(frequency_hz / upper)
    return level


def enclosure_term_db(
    frequency_hz: float,
    load_type: LoadType,
    corner_hz: float,
    q: float,
    secondary_tuning_hz: float | None = None,
) -> float:
    """Loading contribution of ``load_type`` around its corner frequency (dB)."""

    if load_type is LoadType.SEALED:
        level = sealed_term_db(frequency_hz, corner_hz, q)
    elif load_type is LoadType.BASS_REFLEX:
        level = bass_reflex_term_db(frequency_hz, corner_hz, q)
    elif load_type is LoadType.DOUBLE_BASS_REFLEX:
        level = double_bass_reflex_term_db(frequency_hz, corner_hz, q, secondary_tuning_hz)
    else:
        level = 0.0
    return ensure_finite(level, "enclosure_term_db")


def room_gain_db(frequency_hz: float, wall_distance: WallDistance) -> float:
    """Boundary reinforcement tapering linearly to zero at the cutoff."""

    if frequency_hz >= ROOM_GAIN_CUTOFF_HZ:
        return 0.0
    gain = ROOM_GAIN_DB.get(wall_distance, 0.0)
    return gain * (1.0 - frequency_hz / ROOM_GAIN_CUTOFF_HZ)


__all__ = [
    "bass_reflex_term_db",
    "double_bass_reflex_term_db",
    "enclosure_term_db",
    "resonance_window",
    "room_gain_db",
    "sealed_term_db",
]
