"""FastAPI gateway exposing the configurator pipeline and the session store."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from cabinet_core import (
    Configuration,
    ConfigurationError,
    NumericDomainError,
    ResponseCurve,
    configurator_json_schemas,
    log_frequency_axis,
    recommend,
    response_curve,
)

from .store import ConfiguratorSession

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_POINTS = 121
DEFAULT_SWEEP_WORKERS = 0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True, slots=True)
class GatewaySettings:
    sweep_points: int = DEFAULT_SWEEP_POINTS
    sweep_workers: int = DEFAULT_SWEEP_WORKERS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GatewaySettings:
        """Read ``CABINET_GATEWAY_*`` variables, falling back to defaults on bad values."""

        env = os.environ if environ is None else environ
        level = env.get("CABINET_GATEWAY_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            logger.warning("Unknown log level %r, using %s", level, DEFAULT_LOG_LEVEL)
            level = DEFAULT_LOG_LEVEL
        return cls(
            sweep_points=_int_setting(env, "CABINET_GATEWAY_SWEEP_POINTS", DEFAULT_SWEEP_POINTS, minimum=2),
            sweep_workers=_int_setting(env, "CABINET_GATEWAY_SWEEP_WORKERS", DEFAULT_SWEEP_WORKERS, minimum=0),
            log_level=level,
        )


def _int_setting(env: Mapping[str, str], name: str, default: int, *, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer, using %d", name, raw, default)
        return default
    if value < minimum:
        logger.warning("%s=%d is below %d, using %d", name, value, minimum, default)
        return default
    return value


def schema_catalog() -> dict[str, dict[str, dict[str, Any]]]:
    """Return the JSON schema catalog for the configurator operations."""

    return configurator_json_schemas()


class ConfigurationPayload(BaseModel):
    """Configuration fields; anything left out keeps its default (or session) value."""

    model_config = ConfigDict(extra="forbid")

    impedance_ohm: int | None = Field(None)
    amplifier_power_w: float | None = Field(None)
    voice_count: int | None = Field(None)
    listening_level: str | None = Field(None)
    musical_style: str | None = Field(None)
    enclosure_shape: str | None = Field(None)
    budget_tier: str | None = Field(None)
    wall_distance: str | None = Field(None)
    primary_use: str | None = Field(None)
    load_type: str | None = Field(None)
    filter_slope_db_per_oct: int | None = Field(None)
    quality_factor: float | None = Field(None)
    manual_crossover_frequencies_hz: list[float] | None = Field(None)
    vent_tuning_frequency_hz: float | None = Field(None)
    advanced_mode_enabled: bool | None = Field(None)

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent (``vent_tuning_frequency_hz`` may be null)."""

        data = self.model_dump(exclude_unset=True)
        return {
            name: value
            for name, value in data.items()
            if value is not None or name == "vent_tuning_frequency_hz"
        }

    def to_configuration(self) -> Configuration:
        return Configuration.from_dict(self.changes())


class ResponseRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    configuration: ConfigurationPayload = Field(default_factory=ConfigurationPayload)
    frequencies_hz: list[float] | None = Field(None, min_length=1)


def _curve_payload(curve: ResponseCurve) -> dict[str, Any]:
    payload = curve.to_dict()
    payload["summary"] = curve.summary().to_dict()
    return payload


settings = GatewaySettings.from_env()
logging.basicConfig(level=settings.log_level)

_session = ConfiguratorSession()
app = FastAPI(title="Cabinet Configurator Gateway", version="0.1.0")


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(_: Request, exc: ConfigurationError) -> JSONResponse:
    logger.info("Rejected configuration (%s): %s", exc.field, exc.message)
    return JSONResponse(status_code=422, content={"detail": exc.message, "field": exc.field})


@app.exception_handler(NumericDomainError)
async def numeric_error_handler(_: Request, exc: NumericDomainError) -> JSONResponse:
    logger.error("Non-finite result for %s: %s", exc.quantity, exc.message)
    return JSONResponse(status_code=500, content={"detail": exc.message, "quantity": exc.quantity})


def _default_axis() -> list[float]:
    return log_frequency_axis(count=settings.sweep_points)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/recommend")
async def create_recommendation(payload: ConfigurationPayload) -> dict[str, Any]:
    return recommend(payload.to_configuration()).to_dict()


@app.post("/response")
async def simulate_response(payload: ResponseRequest) -> dict[str, Any]:
    config = payload.configuration.to_configuration()
    frequencies = payload.frequencies_hz if payload.frequencies_hz is not None else _default_axis()
    curve = response_curve(config, frequencies, workers=settings.sweep_workers)
    return _curve_payload(curve)


@app.get("/session")
async def fetch_session() -> dict[str, Any]:
    return _session.snapshot().to_dict()


@app.patch("/session")
async def update_session(payload: ConfigurationPayload) -> dict[str, Any]:
    return _session.update(payload.changes()).to_dict()


@app.put("/session")
async def replace_session(payload: ConfigurationPayload) -> dict[str, Any]:
    return _session.replace(payload.to_configuration()).to_dict()


@app.delete("/session")
async def reset_session() -> dict[str, Any]:
    return _session.reset().to_dict()


@app.get("/session/response")
async def session_response() -> dict[str, Any]:
    curve = _session.response_curve(_default_axis(), workers=settings.sweep_workers)
    return _curve_payload(curve)


@app.get("/schemas")
async def list_schemas() -> dict[str, Any]:
    """Return the JSON schema catalog for every operation."""

    return {"schemas": schema_catalog()}


@app.get("/schemas/{name}")
async def fetch_schema(name: str) -> dict[str, Any]:
    """Return the request and response schemas of one operation."""

    key = name.lower()
    entry = schema_catalog().get(key)
    if entry is None:
        raise HTTPException(status_code=404, detail="Schema not found")
    return {"name": key, "request": entry["request"], "response": entry["response"]}


__all__ = [
    "ConfigurationPayload",
    "GatewaySettings",
    "ResponseRequest",
    "app",
    "schema_catalog",
    "settings",
]
