"""Exporter configuration.

All settings can be given on the command line or through ``TEAMCITY_*``
environment variables. ``ExporterConfig`` is built once at startup and is
immutable afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from tcexporter.core.errors import ConfigError

ENV_PREFIX = "TEAMCITY_"

DEFAULT_ROOT_PROJECT_ID = "_Root"
DEFAULT_PAGE_COUNT = 10000
DEFAULT_MAX_IN_FLIGHT = 16
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_METRICS_LISTEN = "0.0.0.0"
DEFAULT_METRICS_PORT = 2112
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_LOGGING_LEVEL = "info"
DEFAULT_LOGGING_FORMAT = "json"

LOGGING_FORMATS = ("json", "text", "logfmt")


def env_name(key: str) -> str:
    """Return the environment variable for a dotted setting (``page.count`` -> ``TEAMCITY_PAGE_COUNT``)."""
    return ENV_PREFIX + key.replace(".", "_").upper()


@dataclass(frozen=True)
class ExporterConfig:
    """Settings for the TeamCity API, the collectors and the metrics endpoint."""

    addr: str
    token: str
    root_project_id: str = DEFAULT_ROOT_PROJECT_ID
    page_count: int = DEFAULT_PAGE_COUNT
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    metrics_listen: str = DEFAULT_METRICS_LISTEN
    metrics_port: int = DEFAULT_METRICS_PORT
    metrics_path: str = DEFAULT_METRICS_PATH
    logging_level: str = DEFAULT_LOGGING_LEVEL
    logging_format: str = DEFAULT_LOGGING_FORMAT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ExporterConfig:
        """
        Build a config from ``TEAMCITY_*`` variables, using defaults for unset ones.

        The result is not validated; call ``validate()`` before use.

        Raises:
            ConfigError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ

        def text(key: str, default: str) -> str:
            return env.get(env_name(key), default)

        def number(key: str, default, kind):
            raw = env.get(env_name(key))
            if raw is None or not raw.strip():
                return default
            try:
                return kind(raw.strip())
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {env_name(key)}: {raw!r}") from exc

        return cls(
            addr=text("addr", ""),
            token=text("token", ""),
            root_project_id=text("root.project.id", DEFAULT_ROOT_PROJECT_ID),
            page_count=number("page.count", DEFAULT_PAGE_COUNT, int),
            max_in_flight=number("max.in.flight", DEFAULT_MAX_IN_FLIGHT, int),
            request_timeout=number("request.timeout", DEFAULT_REQUEST_TIMEOUT, float),
            metrics_listen=text("metrics.listen", DEFAULT_METRICS_LISTEN),
            metrics_port=number("metrics.port", DEFAULT_METRICS_PORT, int),
            metrics_path=text("metrics.path", DEFAULT_METRICS_PATH),
            logging_level=text("logging.level", DEFAULT_LOGGING_LEVEL),
            logging_format=text("logging.format", DEFAULT_LOGGING_FORMAT),
        )

    def validate(self) -> ExporterConfig:
        """Return self if the settings are usable, raise ConfigError otherwise."""
        if not self.addr:
            raise ConfigError(f"TeamCity address is required ({env_name('addr')}).")
        if not self.token:
            raise ConfigError(f"TeamCity token is required ({env_name('token')}).")
        if not self.root_project_id:
            raise ConfigError("Root project id must not be empty.")
        if self.page_count < 1:
            raise ConfigError("Page count must be >= 1.")
        if self.max_in_flight < 0:
            raise ConfigError("Max in-flight requests must be >= 0 (0 = unbounded).")
        if self.request_timeout <= 0:
            raise ConfigError("Request timeout must be > 0.")
        if not 1 <= self.metrics_port <= 65535:
            raise ConfigError(f"Invalid metrics port: {self.metrics_port}")
        if not self.metrics_path.startswith("/"):
            raise ConfigError(f"Metrics path must start with '/': {self.metrics_path}")
        if self.logging_format not in LOGGING_FORMATS:
            raise ConfigError(
                f"Unknown logging format {self.logging_format!r} "
                f"(expected one of: {', '.join(LOGGING_FORMATS)})"
            )
        return self

