"""Frequency-response simulation."""

from .enclosure import enclosure_term_db, room_gain_db
from .filters import crossover_term_db, filter_order, high_pass_db, low_pass_db
from .response import (
    CurveSummary,
    ResponseCurve,
    ResponseSample,
    evaluate_frequency,
    frequency_sweep,
    global_response_db,
    log_frequency_axis,
    voice_response_db,
)

__all__ = [
    "CurveSummary",
    "ResponseCurve",
    "ResponseSample",
    "crossover_term_db",
    "enclosure_term_db",
    "evaluate_frequency",
    "filter_order",
    "frequency_sweep",
    "global_response_db",
    "high_pass_db",
    "log_frequency_axis",
    "low_pass_db",
    "room_gain_db",
    "voice_response_db",
]
