"""JSON schema helpers describing the configurator request/response contracts.

The documents follow JSON Schema draft 2020-12 and are generated from the
dataclasses themselves, so the gateway, the command line tools and any UI
client share one description of each payload.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import MISSING, fields, is_dataclass
from enum import Enum
from types import UnionType
from typing import Any, Union, get_args, get_origin, get_type_hints

from .acoustics.response import CurveSummary
from .config import (
    AMPLIFIER_POWER_RANGE_W,
    AUDIBLE_RANGE_HZ,
    FILTER_SLOPE_CHOICES,
    IMPEDANCE_CHOICES_OHM,
    QUALITY_FACTOR_RANGE,
    VOICE_COUNT_CHOICES,
    Configuration,
    MusicalStyle,
)
from .drivers import DriverSpec
from .electronics import Electronics
from .geometry import Dimensions, Geometry, VentSpec

SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"


def dataclass_schema(
    cls: type[Any],
    *,
    field_overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Return a JSON schema describing the given dataclass."""

    if not is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")

    overrides: Mapping[str, Mapping[str, Any]] | None = field_overrides or _DATACLASS_OVERRIDES.get(cls)
    type_hints = get_type_hints(cls)

    properties: dict[str, dict[str, Any]] = {}
    required: list[str] = []

    for field in fields(cls):
        field_type = type_hints.get(field.name, field.type)
        properties[field.name] = _schema_for_type(field_type)
        if field.default is MISSING and field.default_factory is MISSING:
            required.append(field.name)

    schema_doc: dict[str, Any] = {
        "title": cls.__name__,
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": required,
    }

    if overrides:
        for name, override in overrides.items():
            prop = properties.get(name)
            if not prop:
                continue
            _apply_override(prop, override)

    return schema_doc


def configuration_request_schema() -> dict[str, Any]:
    """Return the schema of a configuration payload (every field optional)."""

    schema = dataclass_schema(Configuration)
    schema["$schema"] = SCHEMA_DRAFT
    schema["title"] = "ConfigurationRequest"
    schema["description"] = "Missing fields take their default values."
    return schema


def recommendation_response_schema() -> dict[str, Any]:
    """Return the schema of a serialised :class:`~cabinet_core.pipeline.Recommendation`."""

    configuration = dataclass_schema(Configuration)
    return {
        "$schema": SCHEMA_DRAFT,
        "title": "RecommendationResponse",
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "configuration": configuration,
            "volume_liters": _positive_number_schema("Net cabinet volume (L)"),
            "dimensions_cm": dataclass_schema(Dimensions),
            "materials": {"type": "array", "items": {"type": "string"}, "minItems": 1},
            "vent_spec": {"anyOf": [dataclass_schema(VentSpec), {"type": "null"}]},
            "nominal_impedance_ohm": {"type": "integer", "minimum": 4},
            "admissible_power_w": _positive_number_schema("Admissible power (W RMS)"),
            "crossover_frequencies_hz": _number_array_schema(
                title="Crossover frequencies (Hz)",
                description="Ascending crossover points, one fewer than the number of ways.",
            ),
            "filter_slope_label": {"type": "string", "pattern": r"^(6|12|18|24) dB/octave$"},
            "sensitivity_db": {"type": "number"},
            "geometry": dataclass_schema(Geometry),
            "electronics": _with_labels(
                dataclass_schema(Electronics),
                ("filter_slope_label", "impedance_label", "admissible_power_label", "peak_power_label",
                 "sensitivity_label"),
                array_labels=("crossover_labels",),
            ),
            "drivers": {
                "type": "array",
                "minItems": 1,
                "items": _with_labels(
                    dataclass_schema(DriverSpec),
                    ("impedance_label", "power_label", "sensitivity_label", "resonance_label"),
                ),
            },
        },
        "required": [
            "configuration",
            "volume_liters",
            "dimensions_cm",
            "materials",
            "vent_spec",
            "nominal_impedance_ohm",
            "admissible_power_w",
            "crossover_frequencies_hz",
            "filter_slope_label",
            "sensitivity_db",
            "geometry",
            "electronics",
            "drivers",
        ],
    }


def response_request_schema() -> dict[str, Any]:
    """Return the schema of a response-curve request."""

    low, high = AUDIBLE_RANGE_HZ
    return {
        "$schema": SCHEMA_DRAFT,
        "title": "ResponseCurveRequest",
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "configuration": dataclass_schema(Configuration),
            "frequencies_hz": {
                "anyOf": [
                    _number_array_schema(
                        title="Frequency bins (Hz)",
                        min_items=1,
                        description=f"Frequencies to evaluate; defaults to a {low:g}-{high:g} Hz log sweep.",
                    ),
                    {"type": "null"},
                ]
            },
        },
        "required": [],
    }


def response_curve_schema() -> dict[str, Any]:
    """Return the schema of a simulated response curve and its summary."""

    return {
        "$schema": SCHEMA_DRAFT,
        "title": "ResponseCurveResponse",
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "frequency_hz": _number_array_schema(
                title="Frequency bins (Hz)",
                min_items=1,
                description="Frequencies where the response was evaluated.",
            ),
            "per_voice_db": {
                "type": "array",
                "minItems": 1,
                "items": _number_array_schema(title="Voice level (dB)", min_items=1),
                "description": "One level series per voice, bass first.",
            },
            "global_db": _number_array_schema(
                title="Global level (dB)",
                min_items=1,
                description="Phase-aligned amplitude sum of all voices.",
            ),
            "summary": dataclass_schema(CurveSummary),
        },
        "required": ["frequency_hz", "per_voice_db", "global_db", "summary"],
    }


def recommend_schema() -> dict[str, dict[str, Any]]:
    return {
        "request": configuration_request_schema(),
        "response": recommendation_response_schema(),
    }


def response_schema() -> dict[str, dict[str, Any]]:
    return {
        "request": response_request_schema(),
        "response": response_curve_schema(),
    }


def configurator_json_schemas() -> dict[str, dict[str, dict[str, Any]]]:
    """Return a catalog of schemas keyed by operation."""

    return {
        "recommend": recommend_schema(),
        "response": response_schema(),
    }


def _with_labels(
    schema: dict[str, Any],
    labels: Sequence[str],
    *,
    array_labels: Sequence[str] = (),
) -> dict[str, Any]:
    for name in labels:
        schema["properties"][name] = {"type": "string"}
        schema["required"].append(name)
    for name in array_labels:
        schema["properties"][name] = {"type": "array", "items": {"type": "string"}}
        schema["required"].append(name)
    return schema


def _schema_for_type(tp: Any) -> dict[str, Any]:
    origin = get_origin(tp)

    if origin is None:
        if isinstance(tp, type) and issubclass(tp, Enum):
            return {"type": "string", "enum": [member.value for member in tp]}
        if tp in (float,):
            return {"type": "number"}
        if tp in (bool,):
            return {"type": "boolean"}
        if tp in (int,):
            return {"type": "integer"}
        if tp in (str,):
            return {"type": "string"}
        if tp is type(None):
            return {"type": "null"}
        if isinstance(tp, type) and is_dataclass(tp):
            return dataclass_schema(tp)
        return {}

    if origin in (list, Sequence, Iterable):
        args = get_args(tp)
        item_type = args[0] if args else Any
        return {
            "type": "array",
            "items": _schema_for_type(item_type) or {},
        }

    if origin is tuple:
        args = get_args(tp)
        if len(args) == 2 and args[1] is Ellipsis:
            return {
                "type": "array",
                "items": _schema_for_type(args[0]) or {},
            }
        return {
            "type": "array",
            "prefixItems": [_schema_for_type(arg) or {} for arg in args],
            "items": False,
        }

    if origin in (dict, Mapping):
        args = get_args(tp)
        key_schema = _schema_for_type(args[0]) if args else {"type": "string"}
        value_schema = _schema_for_type(args[1]) if len(args) > 1 else {}
        return {
            "type": "object",
            "propertyNames": key_schema or {"type": "string"},
            "additionalProperties": value_schema or {},
        }

    if origin is Union or origin is UnionType:
        options = [_schema_for_type(arg) for arg in get_args(tp)]
        options = [opt for opt in options if opt]
        if not options:
            return {}
        if len(options) == 1:
            return options[0]
        return {"anyOf": options}

    return {}


def _number_array_schema(
    *,
    title: str | None = None,
    min_items: int = 0,
    description: str | None = None,
) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "type": "array",
        "items": {"type": "number"},
    }
    if min_items:
        schema["minItems"] = min_items
    if title:
        schema["title"] = title
    if description:
        schema["description"] = description
    return schema


def _positive_number_schema(title: str | None = None, *, description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "type": "number",
        "exclusiveMinimum": 0.0,
    }
    if title:
        schema["title"] = title
    if description:
        schema["description"] = description
    return schema


def _apply_override(schema: dict[str, Any], override: Mapping[str, Any]) -> None:
    if "anyOf" in schema:
        for option in schema["anyOf"]:
            if option.get("type") == "null":
                continue
            _merge(option, override)
    else:
        _merge(schema, override)


def _merge(schema: dict[str, Any], override: Mapping[str, Any]) -> None:
    # A ``None`` override removes the keyword.
    for key, value in override.items():
        if value is None:
            schema.pop(key, None)
        else:
            schema[key] = value


_CONFIGURATION_FIELD_OVERRIDES: dict[str, dict[str, Any]] = {
    "impedance_ohm": {"enum": list(IMPEDANCE_CHOICES_OHM)},
    "amplifier_power_w": {"minimum": AMPLIFIER_POWER_RANGE_W[0], "maximum": AMPLIFIER_POWER_RANGE_W[1]},
    "voice_count": {"enum": list(VOICE_COUNT_CHOICES)},
    "filter_slope_db_per_oct": {"enum": list(FILTER_SLOPE_CHOICES)},
    "quality_factor": {"minimum": QUALITY_FACTOR_RANGE[0], "maximum": QUALITY_FACTOR_RANGE[1]},
    "vent_tuning_frequency_hz": {"exclusiveMinimum": 0.0},
    "musical_style": {
        "enum": None,
        "examples": [style.value for style in MusicalStyle],
        "description": "Unrecognised styles resolve to neutral.",
    },
}

_DIMENSIONS_FIELD_OVERRIDES: dict[str, dict[str, Any]] = {
    "height_cm": {"exclusiveMinimum": 0.0},
    "width_cm": {"exclusiveMinimum": 0.0},
    "depth_cm": {"exclusiveMinimum": 0.0},
}

_VENT_FIELD_OVERRIDES: dict[str, dict[str, Any]] = {
    "area_cm2": {"exclusiveMinimum": 0.0},
    "diameter_cm": {"exclusiveMinimum": 0.0},
    "length_cm": {"exclusiveMinimum": 0.0},
    "tuning_frequency_hz": {"exclusiveMinimum": 0.0},
}

_DATACLASS_OVERRIDES: dict[type[Any], dict[str, dict[str, Any]]] = {
    Configuration: _CONFIGURATION_FIELD_OVERRIDES,
    Dimensions: _DIMENSIONS_FIELD_OVERRIDES,
    VentSpec: _VENT_FIELD_OVERRIDES,
}


__all__ = [
    "SCHEMA_DRAFT",
    "configuration_request_schema",
    "configurator_json_schemas",
    "dataclass_schema",
    "recommend_schema",
    "recommendation_response_schema",
    "response_curve_schema",
    "response_request_schema",
    "response_schema",
]
