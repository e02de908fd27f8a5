"""Click CLI for the GPS source monitor.

Entry point registered in ``pyproject.toml`` as ``gps-source-monitor``.

Subcommands::

    gps-source-monitor select --rutos-accuracy 0.5 --starlink-accuracy 5
    gps-source-monitor distance LAT1 LON1 LAT2 LON2
    gps-source-monitor stability FIXES.ndjson --source rutos
    gps-source-monitor run [TICKS.ndjson]       # stdin by default
    gps-source-monitor --validate-config -c config.json

``run`` reads one tick per line::

    {"rutos": {"latitude": .., "longitude": .., "accuracy": 0.4},
     "starlink": {"accuracy": 5.0}, "now_ms": 1700000000000}

and writes every alert that passes the configured filter as NDJSON.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import IO, Optional

import click
import orjson

from gps_source_monitor import __version__
from gps_source_monitor.config import AppConfig, LogFileConfig, load_config
from gps_source_monitor.detectors import check_gps_stability
from gps_source_monitor.filter import AlertFilter
from gps_source_monitor.geo import calculate_haversine_distance
from gps_source_monitor.models import Fix, MonitorState
from gps_source_monitor.monitor import monitor_gps_sources
from gps_source_monitor.output import StdoutSink
from gps_source_monitor.selector import select_gps_source
from gps_source_monitor.transform import malformed, to_ndjson

logger = logging.getLogger("gps_source_monitor")


# ── structured JSON log formatter ───────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON to stderr."""

    def format(self, record: logging.LogRecord) -> str:
        obj = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            obj["exception"] = self.formatException(record.exc_info)
        return orjson.dumps(obj).decode()


def _setup_logging(level: str, log_file_config: Optional[LogFileConfig] = None) -> None:
    """Configure the root logger with JSON output on stderr + optional file."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Replace handlers installed by an earlier invocation in the same process.
    for handler in list(root.handlers):
        if isinstance(handler.formatter, _JsonFormatter):
            root.removeHandler(handler)
            handler.close()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_JsonFormatter())
    root.addHandler(stderr_handler)

    if log_file_config and log_file_config.enabled:
        from logging.handlers import RotatingFileHandler

        Path(log_file_config.path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_file_config.path,
            maxBytes=log_file_config.max_size_bytes,
            backupCount=log_file_config.backup_count,
        )
        file_handler.setFormatter(_JsonFormatter())
        root.addHandler(file_handler)


# ── main CLI group ──────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.option("-c", "--config", "config_path", default=None,
              help="Config file path (default: built-in thresholds).")
@click.option("--log-level", default=None,
              type=click.Choice(["debug", "info", "warn", "error"]),
              help="Log verbosity.")
@click.option("--validate-config", "validate_only", is_flag=True,
              help="Validate config and exit.")
@click.option("--instance-id", default=None, help="Override GPS_MONITOR_INSTANCE_ID.")
@click.version_option(__version__)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Optional[str],
    log_level: Optional[str],
    validate_only: bool,
    instance_id: Optional[str],
) -> None:
    """GPS source monitor: dual-GPS selection, stability checks, and alerts."""
    cfg_path = config_path or os.environ.get("GPS_MONITOR_CONFIG")

    overrides: dict[str, str] = {}
    if instance_id:
        overrides["GPS_MONITOR_INSTANCE_ID"] = instance_id

    if cfg_path:
        try:
            cfg = load_config(cfg_path, overrides=overrides)
        except Exception as exc:
            click.echo(f"Config error: {exc}", err=True)
            raise SystemExit(1) from exc
    else:
        cfg = AppConfig()
        if instance_id:
            cfg.instance_id = instance_id

    effective_level = (
        log_level
        or os.environ.get("GPS_MONITOR_LOG_LEVEL")
        or cfg.logging.level
    )
    _setup_logging(effective_level, cfg.logging.file)

    if validate_only:
        click.echo("Configuration is valid.", err=True)
        raise SystemExit(0)

    ctx.obj = cfg
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command("select")
@click.option("--rutos-accuracy", type=float, default=None,
              help="RUTOS reported accuracy in meters (omit if unavailable).")
@click.option("--starlink-accuracy", type=float, default=None,
              help="Starlink reported accuracy in meters (omit if unavailable).")
@click.pass_obj
def select_cmd(
    cfg: AppConfig,
    rutos_accuracy: Optional[float],
    starlink_accuracy: Optional[float],
) -> None:
    """Print the source selection for one pair of accuracy figures."""
    result = select_gps_source(
        Fix(accuracy=rutos_accuracy),
        Fix(accuracy=starlink_accuracy),
        cfg.thresholds,
    )
    click.echo(to_ndjson(result).decode(), nl=False)


@main.command("distance")
@click.argument("lat1", type=float)
@click.argument("lon1", type=float)
@click.argument("lat2", type=float)
@click.argument("lon2", type=float)
def distance_cmd(lat1: float, lon1: float, lat2: float, lon2: float) -> None:
    """Print the great-circle distance in meters between two points."""
    click.echo(f"{calculate_haversine_distance(lat1, lon1, lat2, lon2):.3f}")


@main.command("stability")
@click.argument("fixes_file", type=click.File("r"), default="-")
@click.option("--source", "source_name", default="GPS", help="Source name for the report.")
@click.pass_obj
def stability_cmd(cfg: AppConfig, fixes_file: IO[str], source_name: str) -> None:
    """Check the spread of an NDJSON window of fixes from one source."""
    fixes: list[Fix] = []
    for line_number, line in enumerate(fixes_file, start=1):
        if not line.strip():
            continue
        try:
            fix = Fix.from_dict(orjson.loads(line))
        except ValueError as exc:
            raise click.ClickException(f"line {line_number}: {exc}") from exc
        if fix is not None:
            fixes.append(fix)

    result = check_gps_stability(fixes, source_name, cfg.thresholds)
    click.echo(to_ndjson(result).decode(), nl=False)


@main.command("run")
@click.argument("ticks_file", type=click.File("r"), default="-")
@click.option("--emit-state", is_flag=True,
              help="Also write the monitoring state after every tick.")
@click.pass_obj
def run_cmd(cfg: AppConfig, ticks_file: IO[str], emit_state: bool) -> None:
    """Run the monitor over an NDJSON stream of ticks."""
    logger.info("Starting gps-source-monitor %s (instance=%s)", __version__, cfg.instance_id)

    sink = StdoutSink()
    alert_filter = AlertFilter(cfg.alerts)
    state = MonitorState()
    ticks = 0

    try:
        for line_number, line in enumerate(ticks_file, start=1):
            if not line.strip():
                continue
            try:
                rutos, starlink, now_ms = _parse_tick(line)
            except ValueError as exc:
                logger.warning("Skipping malformed tick on line %d: %s", line_number, exc)
                sink.write(to_ndjson(malformed(line_number, str(exc), line.rstrip("\n"))))
                continue

            outcome = monitor_gps_sources(
                rutos,
                starlink,
                state,
                now_ms=now_ms,
                thresholds=cfg.thresholds,
                config=cfg.monitor,
            )
            state = outcome.monitoring
            ticks += 1

            for alert in outcome.alerts:
                if alert_filter.apply(alert) is not None:
                    sink.write(to_ndjson(alert))
            if emit_state:
                sink.write(to_ndjson(state))
    except BrokenPipeError:
        pass
    finally:
        sink.close()
        logger.info(
            "Monitor stopped (ticks=%d, switches=%d, records=%d)",
            ticks,
            state.switch_count,
            sink.records_written,
        )


def _parse_tick(line: str) -> tuple[Optional[Fix], Optional[Fix], Optional[int]]:
    """Split one NDJSON tick into its two fixes and optional timestamp.

    Raises
    ------
    ValueError
        On invalid JSON or non-numeric fields.
    """
    raw = orjson.loads(line)  # orjson.JSONDecodeError is a ValueError
    if not isinstance(raw, dict):
        raise ValueError("Tick must be a JSON object")
    now_ms = raw.get("now_ms")
    if now_ms is not None and (isinstance(now_ms, bool) or not isinstance(now_ms, int)):
        raise ValueError(f"now_ms must be an integer, got {now_ms!r}")
    return Fix.from_dict(raw.get("rutos")), Fix.from_dict(raw.get("starlink")), now_ms
