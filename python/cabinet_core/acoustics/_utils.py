"""Numeric helpers shared across the calculators and the response simulator."""

from __future__ import annotations

from collections.abc import Sequence
from math import isfinite, log10

from ..errors import NumericDomainError


def ensure_finite(value: float, quantity: str) -> float:
    """Return ``value`` unchanged, raising :class:`NumericDomainError` for NaN/Inf."""

    if not isfinite(value):
        raise NumericDomainError(quantity, f"non-finite value {value!r}")
    return value


def safe_log10(value: float, quantity: str) -> float:
    if not isfinite(value) or value <= 0.0:
        raise NumericDomainError(quantity, f"log10 of non-positive value {value!r}")
    return log10(value)


def safe_ratio(numerator: float, denominator: float, quantity: str) -> float:
    if denominator == 0.0 or not isfinite(denominator):
        raise NumericDomainError(quantity, f"division by {denominator!r}")
    return ensure_finite(numerator / denominator, quantity)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def find_band_edges(
    frequencies: Sequence[float],
    values: Sequence[float],
    reference: float,
    drop_db: float,
) -> tuple[float | None, float | None]:
    """Return the outermost frequencies where ``values`` fall ``drop_db`` below ``reference``.

    The search walks outwards from the sample closest to ``reference`` and
    interpolates on a logarithmic frequency axis. When the curve never drops
    below the threshold on one side, the boundary frequency of the sweep is
    returned for that side.
    """

    if len(frequencies) != len(values) or not frequencies:
        return (None, None)

    pairs = sorted(zip(frequencies, values, strict=True), key=lambda item: item[0])
    freqs = [float(freq) for freq, _ in pairs]
    mags = [float(mag) for _, mag in pairs]
    threshold = reference - drop_db

    above = [idx for idx, mag in enumerate(mags) if mag >= threshold]
    if not above:
        return (None, None)
    start = min(above, key=lambda idx: abs(mags[idx] - reference))

    low = _search_edge(freqs, mags, start, -1, threshold)
    high = _search_edge(freqs, mags, start, 1, threshold)
    return (low, high)


def _search_edge(
    freqs: Sequence[float],
    mags: Sequence[float],
    start_idx: int,
    step: int,
    threshold: float,
) -> float:
    prev_freq = freqs[start_idx]
    prev_val = mags[start_idx]

    idx = start_idx + step
    while 0 <= idx < len(freqs):
        freq = freqs[idx]
        val = mags[idx]
        if val < threshold:
            return _interpolate_log(prev_freq, prev_val, freq, val, threshold)
        prev_freq = freq
        prev_val = val
        idx += step

    return prev_freq


def _interpolate_log(f1: float, v1: float, f2: float, v2: float, threshold: float) -> float:
    if v2 == v1 or f1 <= 0.0 or f2 <= 0.0:
        return f2
    ratio = (threshold - v1) / (v2 - v1)
    return 10 ** (log10(f1) + ratio * (log10(f2) - log10(f1)))


__all__ = ["clamp", "ensure_finite", "find_band_edges", "safe_log10", "safe_ratio"]
