"""Threshold constants, configuration loading, interpolation, and validation.

The module-level constants are the process-wide defaults observed on the
RUTOS / Starlink pair.  They are read-only; a host that needs different
values loads a config file and passes the resulting :class:`Thresholds`
explicitly.

Resolution order for ``${VAR}`` placeholders in the config file:
    CLI overrides → environment variables → raw default.

``${VAR}`` (no default) raises if unresolvable.
``${VAR:-default}`` falls back to *default*.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import orjson

logger = logging.getLogger(__name__)

# Accuracy thresholds (meters)
RUTOS_ACCURACY_M = 1.0
STARLINK_ACCURACY_M = 7.0

# Position and movement thresholds
POSITION_ACCURACY_M = 6.0
ALTITUDE_DIFFERENCE_M = 18.0
MOVEMENT_SPEED_THRESHOLD = 2.0  # reserved, not read by any detector

# Stability
STABILITY_THRESHOLD_M = 6.0
STABILITY_MIN_READINGS = 10

# Host cadences (seconds)
DATA_COLLECTION_INTERVAL_S = 30
ACCURACY_CHECK_INTERVAL_S = 300

# Two switches closer than this are reported as flapping.
FREQUENT_SWITCH_WINDOW_MS = 120_000

_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*?))?\}")

_SCHEMA_PATH = Path(__file__).resolve().parent / "config.schema.json"


@dataclass(frozen=True)
class Thresholds:
    """Accuracy, movement, and stability limits used by the core functions."""

    rutos_accuracy_m: float = RUTOS_ACCURACY_M
    starlink_accuracy_m: float = STARLINK_ACCURACY_M
    position_accuracy_m: float = POSITION_ACCURACY_M
    altitude_difference_m: float = ALTITUDE_DIFFERENCE_M
    movement_speed_threshold: float = MOVEMENT_SPEED_THRESHOLD
    stability_threshold_m: float = STABILITY_THRESHOLD_M
    stability_min_readings: int = STABILITY_MIN_READINGS


DEFAULT_THRESHOLDS = Thresholds()


@dataclass(frozen=True)
class MonitorConfig:
    """Cadence and flapping-window settings for the monitor."""

    data_collection_interval_s: int = DATA_COLLECTION_INTERVAL_S
    accuracy_check_interval_s: int = ACCURACY_CHECK_INTERVAL_S
    frequent_switch_window_ms: int = FREQUENT_SWITCH_WINDOW_MS


DEFAULT_MONITOR_CONFIG = MonitorConfig()


@dataclass
class AlertFilterConfig:
    """Alert filtering rules applied before alerts leave the CLI."""

    min_level: str = "info"
    drop_types: list[str] = field(default_factory=list)


@dataclass
class LogFileConfig:
    """Optional log file output settings.

    When ``enabled`` is True the CLI writes operational logs to a rotating
    file in addition to stderr.
    """

    enabled: bool = False
    path: str = "/var/log/gps-source-monitor/app.log"
    max_size_bytes: int = 10485760   # 10 MB
    backup_count: int = 5


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "info"
    file: LogFileConfig = field(default_factory=LogFileConfig)


@dataclass
class AppConfig:
    """Top-level application configuration."""

    instance_id: str = "gps-monitor-01"
    thresholds: Thresholds = field(default_factory=Thresholds)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    alerts: AlertFilterConfig = field(default_factory=AlertFilterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _interpolate_value(value: str, overrides: dict[str, str] | None = None) -> str:
    """Replace ``${VAR}`` / ``${VAR:-default}`` in *value*."""

    def _replacer(match: re.Match) -> str:
        var_name = match.group(1)
        default = match.group(2)  # None when no ``:-`` present

        if overrides and var_name in overrides:
            return overrides[var_name]
        env_val = os.environ.get(var_name)
        if env_val is not None:
            return env_val
        if default is not None:
            return default

        raise ValueError(
            f"Required variable ${{{var_name}}} is not set in environment "
            f"or CLI overrides"
        )

    return _VAR_RE.sub(_replacer, value)


def _walk_and_interpolate(obj: Any, overrides: dict[str, str] | None = None) -> Any:
    """Recursively interpolate all string values in a JSON-like structure."""
    if isinstance(obj, str):
        return _interpolate_value(obj, overrides)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v, overrides) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(item, overrides) for item in obj]
    return obj


def _known_fields(cls: type, raw: dict[str, Any]) -> dict[str, Any]:
    return {k: raw[k] for k in raw if k in cls.__dataclass_fields__}


def _dict_to_config(raw: dict[str, Any]) -> AppConfig:
    """Convert a raw dict into a typed :class:`AppConfig`."""
    alerts_raw = raw.get("alerts", {})
    logging_raw = raw.get("logging", {})

    return AppConfig(
        instance_id=raw.get("instance_id", "gps-monitor-01"),
        thresholds=Thresholds(**_known_fields(Thresholds, raw.get("thresholds", {}))),
        monitor=MonitorConfig(**_known_fields(MonitorConfig, raw.get("monitor", {}))),
        alerts=AlertFilterConfig(
            min_level=alerts_raw.get("min_level", "info"),
            drop_types=alerts_raw.get("drop_types", []),
        ),
        logging=LoggingConfig(
            level=logging_raw.get("level", "info"),
            file=LogFileConfig(**_known_fields(LogFileConfig, logging_raw.get("file", {}))),
        ),
    )


def load_config(
    path: str | Path,
    overrides: dict[str, str] | None = None,
    schema_path: str | Path | None = None,
) -> AppConfig:
    """Load, interpolate, validate, and return the application config.

    Parameters
    ----------
    path:
        Filesystem path to a JSON config file.
    overrides:
        CLI-supplied variable overrides.
    schema_path:
        Path to the JSON Schema file.  Defaults to the ``config.schema.json``
        shipped inside the package.

    Returns
    -------
    AppConfig
        Fully resolved and validated configuration.

    Raises
    ------
    ValueError
        If a required ``${VAR}`` cannot be resolved.
    jsonschema.ValidationError
        If the config fails schema validation.
    """
    raw: dict[str, Any] = orjson.loads(Path(path).read_bytes())

    interpolated = _walk_and_interpolate(raw, overrides=overrides)

    sp = Path(schema_path) if schema_path else _SCHEMA_PATH
    if sp.exists():
        schema = orjson.loads(sp.read_bytes())
        jsonschema.validate(instance=interpolated, schema=schema)
        logger.debug("Config passed schema validation")
    else:
        logger.warning("Schema file not found at %s, skipping validation", sp)

    return _dict_to_config(interpolated)
