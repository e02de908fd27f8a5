"""Serialize results, alerts, and state into NDJSON lines.

Enum members are written as their values (``orjson`` native behavior).
Monitor state goes through :meth:`MonitorState.to_dict` so the line can be
fed back in with :meth:`MonitorState.from_dict`.  Alert and state lines carry
an ``event_type`` of ``"alert"`` / ``"state"`` so they can share one stream.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import Any

import orjson

from gps_source_monitor.models import MalformedReading, MonitorResult, MonitorState

# Maximum characters of raw input preserved in malformed records.
MAX_RAW_PAYLOAD_CHARS = 4096


def to_record(obj: Any) -> Any:
    """Convert a model into plain JSON-ready data."""
    if isinstance(obj, MonitorState):
        return {"event_type": "state", **obj.to_dict()}
    if isinstance(obj, MonitorResult):
        return {
            "gps_result": asdict(obj.gps_result),
            "alerts": [asdict(a) for a in obj.alerts],
            "monitoring": obj.monitoring.to_dict(),
        }
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return obj


def to_ndjson(obj: Any) -> bytes:
    """Serialize *obj* as one newline-terminated NDJSON line."""
    return orjson.dumps(to_record(obj), option=orjson.OPT_APPEND_NEWLINE)


def malformed(line_number: int, error: str, raw: str) -> MalformedReading:
    """Build a :class:`MalformedReading` with truncation of the raw input."""
    return MalformedReading(
        timestamp=datetime.now(timezone.utc).isoformat(),
        line_number=line_number,
        error=error,
        raw_payload=raw[:MAX_RAW_PAYLOAD_CHARS],
    )
