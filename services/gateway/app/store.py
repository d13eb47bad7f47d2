"""In-memory configurator session holding the current configuration."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from cabinet_core import (
    DEFAULT_CONFIGURATION,
    Configuration,
    ConfigurationError,
    Recommendation,
    ResponseCurve,
    default_crossovers_for,
    recommend,
    response_curve,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionSnapshot:
    """Consistent view of the session at one revision."""

    revision: int
    updated_at: float
    configuration: Configuration
    recommendation: Recommendation

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision": self.revision,
            "updated_at": self.updated_at,
            "configuration": self.configuration.to_dict(),
            "recommendation": self.recommendation.to_dict(),
        }


class ConfiguratorSession:
    """Owns the mutable "current" configuration and its last valid recommendation.

    Every change recomputes the recommendation from scratch. A rejected change
    leaves the previous configuration and recommendation in place.
    """

    def __init__(self, config: Configuration | None = None) -> None:
        self._lock = threading.Lock()
        self._initial = config if config is not None else DEFAULT_CONFIGURATION
        self._config = self._initial
        self._recommendation = recommend(self._config)
        self._revision = 0
        self._updated_at = time.time()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def update(self, changes: Mapping[str, Any]) -> SessionSnapshot:
        """Merge ``changes`` into the current configuration.

        Changing the number of ways without supplying crossover points resets
        the manual crossover list to the defaults for the new way count.
        """

        with self._lock:
            try:
                candidate = self._merge_locked(changes)
                recommendation = recommend(candidate)
            except ConfigurationError as exc:
                logger.info("Rejected configuration change %s: %s", sorted(changes), exc)
                raise
            return self._commit_locked(candidate, recommendation)

    def replace(self, config: Configuration | Mapping[str, Any]) -> SessionSnapshot:
        with self._lock:
            try:
                candidate = config if isinstance(config, Configuration) else Configuration.from_dict(config)
                recommendation = recommend(candidate)
            except ConfigurationError as exc:
                logger.info("Rejected configuration: %s", exc)
                raise
            return self._commit_locked(candidate, recommendation)

    def reset(self) -> SessionSnapshot:
        with self._lock:
            return self._commit_locked(self._initial, recommend(self._initial))

    def response_curve(self, frequencies_hz: Iterable[float] | None = None, *, workers: int = 0) -> ResponseCurve:
        with self._lock:
            recommendation = self._recommendation
        return response_curve(
            recommendation.configuration,
            frequencies_hz,
            workers=workers,
            recommendation=recommendation,
        )

    def _merge_locked(self, changes: Mapping[str, Any]) -> Configuration:
        merged = self._config.to_dict()
        merged.update(changes)
        if "voice_count" not in changes or "manual_crossover_frequencies_hz" in changes:
            return Configuration.from_dict(merged)

        merged["manual_crossover_frequencies_hz"] = []
        candidate = Configuration.from_dict(merged)
        if candidate.voice_count == self._config.voice_count:
            crossovers = self._config.manual_crossover_frequencies_hz
        else:
            crossovers = default_crossovers_for(candidate.voice_count)
        return candidate.replace(manual_crossover_frequencies_hz=list(crossovers))

    def _commit_locked(self, config: Configuration, recommendation: Recommendation) -> SessionSnapshot:
        self._config = config
        self._recommendation = recommendation
        self._revision += 1
        self._updated_at = time.time()
        return self._snapshot_locked()

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            revision=self._revision,
            updated_at=self._updated_at,
            configuration=self._config,
            recommendation=self._recommendation,
        )


__all__ = ["ConfiguratorSession", "SessionSnapshot"]
