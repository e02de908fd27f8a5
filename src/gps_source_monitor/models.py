"""Dataclass models for fixes, selection outcomes, alerts, and monitor state.

All models are designed to be serializable via ``dataclasses.asdict()``
followed by ``orjson.dumps()``; enum members serialize as their values.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class Source(enum.Enum):
    """The positioning sensors competing for trust each cycle."""

    RUTOS = "rutos"
    STARLINK = "starlink"
    NONE = "none"

    @property
    def label(self) -> str:
        return self.value.upper()


class Priority(enum.IntEnum):
    """Ordinal confidence tier of a selection (1 is best).

    Used only for ranking and display, never for arithmetic.
    """

    EXCELLENT = 1
    GOOD = 2
    DEGRADED = 3
    ONLY_SOURCE_DEGRADED = 4
    UNAVAILABLE = 5


class AlertLevel(enum.Enum):
    """Operator-facing severity, ordered from least to most severe."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    AlertLevel.INFO: 0,
    AlertLevel.WARNING: 1,
    AlertLevel.ERROR: 2,
    AlertLevel.CRITICAL: 3,
}


class ConditionCode(enum.Enum):
    """Reasons a selection cycle should raise operator attention."""

    RUTOS_DEGRADED = "RUTOS_DEGRADED"
    GPS_SOURCE_SWITCHED = "GPS_SOURCE_SWITCHED"
    BOTH_GPS_DEGRADED = "BOTH_GPS_DEGRADED"
    RUTOS_DEGRADED_ONLY_SOURCE = "RUTOS_DEGRADED_ONLY_SOURCE"
    STARLINK_DEGRADED_ONLY_SOURCE = "STARLINK_DEGRADED_ONLY_SOURCE"
    GPS_FAILURE = "GPS_FAILURE"


# Alert type synthesized by the monitor itself on a source flip.
SOURCE_SWITCH_ALERT = "GPS_SOURCE_SWITCH"


@dataclass(frozen=True)
class Fix:
    """One sensor sample of position with its reported accuracy.

    ``accuracy is None`` means the source is unavailable this cycle.
    """

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    accuracy: Optional[float] = None

    @property
    def available(self) -> bool:
        return self.accuracy is not None

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, raw: Optional[dict]) -> Optional[Fix]:
        """Build a :class:`Fix` from a JSON-like dict.

        Returns ``None`` when *raw* is ``None``.

        Raises
        ------
        ValueError
            If a present field is not numeric.
        """
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ValueError(f"Fix must be an object, got {type(raw).__name__}")
        return cls(
            latitude=_optional_float(raw, "latitude"),
            longitude=_optional_float(raw, "longitude"),
            altitude=_optional_float(raw, "altitude"),
            accuracy=_optional_float(raw, "accuracy"),
        )


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of one source-selection cycle.  Derived fresh, never persisted."""

    source: Source
    data: Optional[Fix]
    reason: str
    priority: Priority
    condition_code: Optional[ConditionCode] = None


@dataclass(frozen=True)
class StabilityResult:
    """Spread check over a recent window of same-source fixes."""

    stable: bool
    max_spread: Optional[float]
    reason: str


@dataclass
class Alert:
    """An operator-facing alert record.  Output only, never read back."""

    timestamp: str
    type: str
    level: AlertLevel
    message: str
    recommended_action: str
    gps_state: Optional[dict] = None
    switch_count: Optional[int] = None
    event_type: str = "alert"


@dataclass(frozen=True)
class UptimeSeconds:
    """Seconds each source has spent as the active source."""

    rutos: int = 0
    starlink: int = 0


@dataclass(frozen=True)
class MonitorState:
    """State threaded through successive monitor ticks by the caller.

    ``switch_count`` and both ``uptime_seconds`` fields never decrease within
    a session.
    """

    active_source: Optional[Source] = None
    switch_count: int = 0
    last_switch_time_ms: Optional[int] = None
    uptime_seconds: UptimeSeconds = field(default_factory=UptimeSeconds)
    is_stable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "active_source": self.active_source.value if self.active_source else None,
            "switch_count": self.switch_count,
            "last_switch_time_ms": self.last_switch_time_ms,
            "uptime_seconds": {
                "rutos": self.uptime_seconds.rutos,
                "starlink": self.uptime_seconds.starlink,
            },
            "is_stable": self.is_stable,
        }

    @classmethod
    def from_dict(cls, raw: Optional[dict]) -> MonitorState:
        """Rebuild state from :meth:`to_dict` output; missing keys take defaults."""
        if not raw:
            return cls()
        active = raw.get("active_source")
        uptime = raw.get("uptime_seconds") or {}
        return cls(
            active_source=Source(active) if active else None,
            switch_count=int(raw.get("switch_count") or 0),
            last_switch_time_ms=raw.get("last_switch_time_ms"),
            uptime_seconds=UptimeSeconds(
                rutos=int(uptime.get("rutos") or 0),
                starlink=int(uptime.get("starlink") or 0),
            ),
            is_stable=bool(raw.get("is_stable", True)),
        )


@dataclass(frozen=True)
class MonitorResult:
    """Everything one monitor tick produces."""

    gps_result: SelectionResult
    alerts: list[Alert]
    monitoring: MonitorState


@dataclass
class MalformedReading:
    """Wrapper for input lines the CLI could not turn into fixes.

    These are never silently dropped; they appear in the NDJSON output
    alongside alerts so operators can monitor input quality.
    """

    event_type: str = "malformed"
    timestamp: str = ""
    line_number: int = 0
    error: str = ""
    raw_payload: str = ""


def _optional_float(raw: dict, key: str) -> Optional[float]:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Field {key!r} must be numeric, got bool")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field {key!r} must be numeric, got {value!r}") from exc
