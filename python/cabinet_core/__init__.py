"""Public interface for the loudspeaker cabinet configurator core."""

from .acoustics.response import (
    CurveSummary,
    ResponseCurve,
    ResponseSample,
    frequency_sweep,
    global_response_db,
    log_frequency_axis,
    voice_response_db,
)
from .config import (
    DEFAULT_CONFIGURATION,
    BudgetTier,
    Configuration,
    EnclosureShape,
    ListeningLevel,
    LoadType,
    MusicalStyle,
    PrimaryUse,
    WallDistance,
    default_crossovers_for,
)
from .drivers import DriverRole, DriverSpec, select_drivers
from .electronics import (
    Electronics,
    compute_electronics,
    parse_frequency,
    parse_impedance,
    parse_power,
    parse_sensitivity,
    parse_slope,
)
from .errors import ConfigurationError, NumericDomainError
from .geometry import Dimensions, Geometry, VentSpec, compute_geometry
from .pipeline import Recommendation, recommend, response_curve, response_sample
from .serialization import (
    configuration_request_schema,
    configurator_json_schemas,
    dataclass_schema,
    recommendation_response_schema,
    response_curve_schema,
    response_request_schema,
)

__all__ = [
    "Configuration",
    "DEFAULT_CONFIGURATION",
    "ListeningLevel",
    "MusicalStyle",
    "EnclosureShape",
    "BudgetTier",
    "WallDistance",
    "PrimaryUse",
    "LoadType",
    "default_crossovers_for",
    "ConfigurationError",
    "NumericDomainError",
    "Dimensions",
    "VentSpec",
    "Geometry",
    "compute_geometry",
    "Electronics",
    "compute_electronics",
    "parse_slope",
    "parse_impedance",
    "parse_power",
    "parse_sensitivity",
    "parse_frequency",
    "DriverRole",
    "DriverSpec",
    "select_drivers",
    "voice_response_db",
    "global_response_db",
    "log_frequency_axis",
    "frequency_sweep",
    "ResponseSample",
    "ResponseCurve",
    "CurveSummary",
    "Recommendation",
    "recommend",
    "response_sample",
    "response_curve",
    "dataclass_schema",
    "configuration_request_schema",
    "recommendation_response_schema",
    "response_request_schema",
    "response_curve_schema",
    "configurator_json_schemas",
]
