"""Closed-form crossover filter magnitudes.

A filter of order ``n`` (``slope / 6``) is modelled as ``n // 2`` identical
second-order sections sharing the configured Q, plus one first-order section
when ``n`` is odd. With ``w = f / fc``:

* second-order low-pass:  ``1 / sqrt((1 - w²)² + (w / Q)²)``
* second-order high-pass: ``w² / sqrt((1 - w²)² + (w / Q)²)``
* first-order low-pass:   ``1 / sqrt(1 + w²)``
* first-order high-pass:  ``w / sqrt(1 + w²)``

Every magnitude is evaluated directly in dB. Above critical damping
(Q > 0.707) the second-order sections peak near ``fc``.
"""

from __future__ import annotations

from math import log10

from ..errors import ConfigurationError
from ._utils import ensure_finite


def _second_order_denominator_db(w: float, q: float) -> float:
    return 10.0 * log10((1.0 - w * w) ** 2 + (w / q) ** 2)


def _first_order_denominator_db(w: float) -> float:
    return 10.0 * log10(1.0 + w * w)


def filter_order(slope_db_per_oct: int) -> int:
    order, remainder = divmod(int(slope_db_per_oct), 6)
    if remainder or order < 1:
        raise ConfigurationError("filter_slope_db_per_oct", f"{slope_db_per_oct} is not a multiple of 6 dB")
    return order


def low_pass_db(frequency_hz: float, cutoff_hz: float, order: int, q: float) -> float:
    """Magnitude of the low-pass branch at ``frequency_hz`` (dB)."""

    w = frequency_hz / cutoff_hz
    pairs, single = divmod(order, 2)
    level = -pairs * _second_order_denominator_db(w, q)
    if single:
        level -= _first_order_denominator_db(w)
    return ensure_finite(level, "low_pass_db")


def high_pass_db(frequency_hz: float, cutoff_hz: float, order: int, q: float) -> float:
    """Magnitude of the high-pass branch at ``frequency_hz`` (dB)."""

    w = frequency_hz / cutoff_hz
    pairs, single = divmod(order, 2)
    w_db = 20.0 * log10(w)
    level = pairs * (2.0 * w_db - _second_order_denominator_db(w, q))
    if single:
        level += w_db - _first_order_denominator_db(w)
    return ensure_finite(level, "high_pass_db")


def crossover_term_db(
    frequency_hz: float,
    voice_index: int,
    crossovers_hz: tuple[float, ...] | list[float],
    order: int,
    q: float,
) -> float:
    """Filter contribution for one voice of the network.

    The first voice is low-passed at the first crossover, the last voice is
    high-passed at the last crossover and interior voices are band-passed
    between their two neighbouring crossovers. A single-voice system has no
    network and contributes 0 dB.
    """

    voice_count = len(crossovers_hz) + 1
    if voice_count == 1:
        return 0.0

    level = 0.0
    if voice_index > 0:
        level += high_pass_db(frequency_hz, crossovers_hz[voice_index - 1], order, q)
    if voice_index < voice_count - 1:
        level += low_pass_db(frequency_hz, crossovers_hz[voice_index], order, q)
    return level


__all__ = ["crossover_term_db", "filter_order", "high_pass_db", "low_pass_db"]
