"""Driver (loudspeaker unit) selection for each way of the system."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from math import cbrt, sqrt

from .acoustics._utils import clamp
from .config import BudgetTier, Configuration, MusicalStyle
from .electronics import Electronics, format_frequency, format_impedance, format_power, format_sensitivity
from .geometry import Geometry

SUPER_TREBLE_RANGE_HZ = (12000.0, 40000.0)
SUPER_TREBLE_RESONANCE_HZ = 2000.0
TREBLE_RESONANCE_CAP_HZ = 800.0
LOWEST_DRIVER_FREQUENCY_HZ = 20.0
HIGHEST_DRIVER_FREQUENCY_HZ = 20000.0
BASS_RANGE_RATIO = 0.7  # usable extension relative to the enclosure corner

WOOFER_REFERENCE_VOLUME_L = 10.0
WOOFER_REFERENCE_DIAMETER_MM = 100.0
WOOFER_ROUNDING_MM = 5
FULL_RANGE_MAX_DIAMETER_MM = 130.0
MIDRANGE_DIAMETER_CONSTANT = 50000.0  # mm x Hz
MIDRANGE_DIAMETER_LIMITS_MM = (50.0, 170.0)
TWEETER_DIAMETER_MM = 25.0
SUPER_TWEETER_DIAMETER_MM = 19.0


class DriverRole(str, Enum):
    FULL_RANGE = "full-range"
    BASS = "bass"
    MIDRANGE = "midrange"
    TREBLE = "treble"
    SUPER_TREBLE = "super-treble"


ROLE_SENSITIVITY_OFFSET_DB: dict[DriverRole, float] = {
    DriverRole.FULL_RANGE: 0.0,
    DriverRole.BASS: 0.0,
    DriverRole.MIDRANGE: 1.0,
    DriverRole.TREBLE: 2.0,
    DriverRole.SUPER_TREBLE: 3.0,
}

# Share of the admissible power per driver, keyed by driver count. Five
# drivers only occur for a four-way system with a super-tweeter.
POWER_RATIOS: dict[int, tuple[float, ...]] = {
    1: (1.0,),
    2: (0.75, 0.25),
    3: (0.6, 0.2, 0.2),
    4: (0.6, 0.1, 0.1, 0.2),
    5: (0.6, 0.1, 0.1, 0.15, 0.05),
}

TECHNOLOGY: dict[tuple[DriverRole, BudgetTier], str] = {
    (DriverRole.FULL_RANGE, BudgetTier.ENTRY): "paper cone with whizzer",
    (DriverRole.FULL_RANGE, BudgetTier.MID): "treated paper cone with whizzer",
    (DriverRole.FULL_RANGE, BudgetTier.HIGH): "coated paper cone with phase plug",
    (DriverRole.BASS, BudgetTier.ENTRY): "standard polypropylene cone",
    (DriverRole.BASS, BudgetTier.MID): "treated paper cone",
    (DriverRole.BASS, BudgetTier.HIGH): "carbon-paper sandwich cone",
    (DriverRole.MIDRANGE, BudgetTier.ENTRY): "polypropylene cone",
    (DriverRole.MIDRANGE, BudgetTier.MID): "treated paper cone",
    (DriverRole.MIDRANGE, BudgetTier.HIGH): "high-stiffness paper cone",
    (DriverRole.TREBLE, BudgetTier.ENTRY): "polyester dome",
    (DriverRole.TREBLE, BudgetTier.MID): "treated silk dome",
    (DriverRole.TREBLE, BudgetTier.HIGH): "aluminium-magnesium dome",
    (DriverRole.SUPER_TREBLE, BudgetTier.ENTRY): "titanium dome",
    (DriverRole.SUPER_TREBLE, BudgetTier.MID): "titanium dome",
    (DriverRole.SUPER_TREBLE, BudgetTier.HIGH): "titanium dome",
}
STYLE_TECHNOLOGY: dict[tuple[DriverRole, BudgetTier, MusicalStyle], str] = {
    (DriverRole.BASS, BudgetTier.ENTRY, MusicalStyle.BASS_HEAVY): "long-throw polypropylene cone",
    (DriverRole.BASS, BudgetTier.MID, MusicalStyle.BASS_HEAVY): "reinforced polypropylene cone",
    (DriverRole.BASS, BudgetTier.HIGH, MusicalStyle.BASS_HEAVY): "carbon-Rohacell sandwich cone",
    (DriverRole.MIDRANGE, BudgetTier.HIGH, MusicalStyle.HIFI): "woven Kevlar cone",
    (DriverRole.TREBLE, BudgetTier.HIGH, MusicalStyle.HIFI): "treated silk dome with damped rear chamber",
}


@dataclass(frozen=True, slots=True)
class DriverSpec:
    """Recommended characteristics of one driver."""

    role: DriverRole
    technology: str
    impedance_ohm: int
    power_rating_w: float
    sensitivity_db: float
    resonance_hz: float
    frequency_range_hz: tuple[float, float]
    diameter_mm: float

    @property
    def power_label(self) -> str:
        return format_power(self.power_rating_w)

    @property
    def impedance_label(self) -> str:
        return format_impedance(self.impedance_ohm)

    @property
    def sensitivity_label(self) -> str:
        return format_sensitivity(self.sensitivity_db)

    @property
    def resonance_label(self) -> str:
        return format_frequency(self.resonance_hz)

    def to_dict(self) -> dict[str, object]:
        return {
            "role": self.role.value,
            "technology": self.technology,
            "impedance_ohm": self.impedance_ohm,
            "impedance_label": self.impedance_label,
            "power_rating_w": self.power_rating_w,
            "power_label": self.power_label,
            "sensitivity_db": self.sensitivity_db,
            "sensitivity_label": self.sensitivity_label,
            "resonance_hz": self.resonance_hz,
            "resonance_label": self.resonance_label,
            "frequency_range_hz": list(self.frequency_range_hz),
            "diameter_mm": self.diameter_mm,
        }


def driver_roles(voice_count: int, budget_tier: BudgetTier) -> list[DriverRole]:
    """Roles by position: bass first, treble last, midranges in between.

    A four-way system on the high budget tier gains a super-tweeter.
    """

    if voice_count == 1:
        return [DriverRole.FULL_RANGE]
    roles = [DriverRole.BASS] + [DriverRole.MIDRANGE] * (voice_count - 2) + [DriverRole.TREBLE]
    if voice_count == 4 and budget_tier is BudgetTier.HIGH:
        roles.append(DriverRole.SUPER_TREBLE)
    return roles


def driver_technology(role: DriverRole, budget_tier: BudgetTier, style: MusicalStyle) -> str:
    override = STYLE_TECHNOLOGY.get((role, budget_tier, style))
    if override is not None:
        return override
    return TECHNOLOGY[(role, budget_tier)]


def woofer_diameter_mm(volume_l: float) -> float:
    raw = cbrt(volume_l / WOOFER_REFERENCE_VOLUME_L) * WOOFER_REFERENCE_DIAMETER_MM
    return float(round(raw / WOOFER_ROUNDING_MM) * WOOFER_ROUNDING_MM)


def midrange_diameter_mm(lower_crossover_hz: float) -> float:
    return float(round(clamp(MIDRANGE_DIAMETER_CONSTANT / lower_crossover_hz, *MIDRANGE_DIAMETER_LIMITS_MM)))


def select_drivers(config: Configuration, geometry: Geometry, electronics: Electronics) -> list[DriverSpec]:
    """Return one :class:`DriverSpec` per role, ordered from bass to treble."""

    crossovers = electronics.crossover_frequencies_hz
    roles = driver_roles(config.voice_count, config.budget_tier)
    ratios = POWER_RATIOS[len(roles)]

    drivers: list[DriverSpec] = []
    for index, (role, ratio) in enumerate(zip(roles, ratios, strict=True)):
        resonance, frequency_range, diameter = _role_characteristics(role, index, crossovers, geometry, electronics)
        drivers.append(
            DriverSpec(
                role=role,
                technology=driver_technology(role, config.budget_tier, config.musical_style),
                impedance_ohm=electronics.nominal_impedance_ohm,
                power_rating_w=float(round(electronics.admissible_power_w * ratio)),
                sensitivity_db=electronics.sensitivity_db + ROLE_SENSITIVITY_OFFSET_DB[role],
                resonance_hz=resonance,
                frequency_range_hz=frequency_range,
                diameter_mm=diameter,
            )
        )
    return drivers


def _role_characteristics(
    role: DriverRole,
    index: int,
    crossovers: tuple[float, ...],
    geometry: Geometry,
    electronics: Electronics,
) -> tuple[float, tuple[float, float], float]:
    if role is DriverRole.SUPER_TREBLE:
        return SUPER_TREBLE_RESONANCE_HZ, SUPER_TREBLE_RANGE_HZ, SUPER_TWEETER_DIAMETER_MM

    if role in (DriverRole.BASS, DriverRole.FULL_RANGE):
        resonance = round(geometry.box_resonance_hz / sqrt(2.0), 1)
        upper = crossovers[0] if role is DriverRole.BASS else HIGHEST_DRIVER_FREQUENCY_HZ
        lower = max(LOWEST_DRIVER_FREQUENCY_HZ, round(BASS_RANGE_RATIO * electronics.enclosure_corner_hz, 1))
        diameter = woofer_diameter_mm(geometry.volume_liters)
        if role is DriverRole.FULL_RANGE:
            diameter = min(diameter, FULL_RANGE_MAX_DIAMETER_MM)
        return resonance, (min(lower, upper), upper), diameter

    lower_crossover = crossovers[index - 1]
    if role is DriverRole.MIDRANGE:
        return (
            round(0.5 * lower_crossover, 1),
            (lower_crossover, crossovers[index]),
            midrange_diameter_mm(lower_crossover),
        )

    resonance = round(min(TREBLE_RESONANCE_CAP_HZ, 0.5 * lower_crossover), 1)
    return resonance, (lower_crossover, HIGHEST_DRIVER_FREQUENCY_HZ), TWEETER_DIAMETER_MM


__all__ = [
    "DriverRole",
    "DriverSpec",
    "POWER_RATIOS",
    "driver_roles",
    "driver_technology",
    "midrange_diameter_mm",
    "select_drivers",
    "woofer_diameter_mm",
]
