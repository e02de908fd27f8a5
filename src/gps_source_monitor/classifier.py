"""Classify condition codes into operator-facing alerts.

Classification::

    condition code
      │
      ├─ not a ConditionCode member → None  (logged, never raised)
      └─ member                     → Alert(level, message, recommended_action)

| code                          | level    |
|-------------------------------|----------|
| RUTOS_DEGRADED                | info     |
| GPS_SOURCE_SWITCHED           | warning  |
| BOTH_GPS_DEGRADED             | error    |
| RUTOS_DEGRADED_ONLY_SOURCE    | warning  |
| STARLINK_DEGRADED_ONLY_SOURCE | warning  |
| GPS_FAILURE                   | critical |

``GPS_SOURCE_SWITCHED`` stays in the table for hosts that call the
classifier directly; the monitor builds its own ``GPS_SOURCE_SWITCH`` alert.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from gps_source_monitor.models import Alert, AlertLevel, ConditionCode, SelectionResult, Source

logger = logging.getLogger(__name__)


def handle_gps_alert(
    code: Union[ConditionCode, str, None],
    gps_result: SelectionResult,
    context: Optional[dict[str, Any]] = None,
) -> Optional[Alert]:
    """Build the alert for *code*.

    Parameters
    ----------
    code:
        A :class:`ConditionCode` or its string value.
    gps_result:
        The selection the alert describes.
    context:
        Extra figures used in messages: ``rutos_accuracy``,
        ``starlink_accuracy``, and ``alternative_accuracy``.

    Returns
    -------
    Alert
        When *code* is a known condition code.
    None
        When *code* is unknown or empty.
    """
    condition = _coerce(code)
    if condition is None:
        return None

    ctx = context or {}
    level, message, action = _template(condition, gps_result, ctx)

    return Alert(
        timestamp=datetime.now(timezone.utc).isoformat(),
        type=condition.value,
        level=level,
        message=message,
        recommended_action=action,
        gps_state={
            "active_source": gps_result.source.value,
            "reason": gps_result.reason,
            "priority": int(gps_result.priority),
        },
    )


# ── helpers ─────────────────────────────────────────────────────────


def _coerce(code: Union[ConditionCode, str, None]) -> Optional[ConditionCode]:
    if code is None:
        return None
    if isinstance(code, ConditionCode):
        return code
    try:
        return ConditionCode(code)
    except ValueError:
        logger.warning("Unknown condition code %r, no alert produced", code)
        return None


def _template(
    code: ConditionCode,
    gps_result: SelectionResult,
    ctx: dict[str, Any],
) -> tuple[AlertLevel, str, str]:
    """Return ``(level, message, recommended_action)`` for *code*."""
    accuracy = _fmt(gps_result.data.accuracy if gps_result.data else None)
    active = gps_result.source.label

    if code is ConditionCode.RUTOS_DEGRADED:
        rutos = ctx.get("rutos_accuracy")
        rutos_fmt = _fmt(rutos) if rutos is not None else accuracy
        starlink_fmt = _fmt(ctx.get("starlink_accuracy"))
        if gps_result.source is Source.RUTOS:
            comparison = f"but still more accurate than Starlink ({starlink_fmt}m)."
        else:
            comparison = f"using more accurate Starlink ({starlink_fmt}m)."
        return (
            AlertLevel.INFO,
            f"RUTOS GPS accuracy degraded to {rutos_fmt}m (normally ≤1m), {comparison}",
            "Monitor RUTOS performance, continue using most accurate source",
        )
    if code is ConditionCode.GPS_SOURCE_SWITCHED:
        return (
            AlertLevel.WARNING,
            f"GPS source switched to {active} ({accuracy}m) as it became more accurate "
            f"than the alternative ({_fmt(ctx.get('alternative_accuracy'))}m).",
            "Normal operation - using most accurate GPS source",
        )
    if code is ConditionCode.BOTH_GPS_DEGRADED:
        return (
            AlertLevel.ERROR,
            f"Both GPS sources degraded (RUTOS: {_fmt(ctx.get('rutos_accuracy'))}m, "
            f"Starlink: {_fmt(ctx.get('starlink_accuracy'))}m). "
            f"Using best available: {active}.",
            "Investigate GPS issues, consider reduced operational envelope if accuracy >10m",
        )
    if code is ConditionCode.RUTOS_DEGRADED_ONLY_SOURCE:
        return (
            AlertLevel.WARNING,
            f"RUTOS GPS degraded to {accuracy}m (normally ≤1m) and Starlink unavailable.",
            "Attempt to restore Starlink backup, monitor RUTOS closely",
        )
    if code is ConditionCode.STARLINK_DEGRADED_ONLY_SOURCE:
        return (
            AlertLevel.WARNING,
            f"Starlink GPS degraded to {accuracy}m (normally ≤8m) and RUTOS unavailable.",
            "Attempt to restore RUTOS primary, monitor Starlink closely",
        )
    if code is ConditionCode.GPS_FAILURE:
        return (
            AlertLevel.CRITICAL,
            "Complete GPS failure - no sources available",
            "Emergency protocol: maintain last known position, attempt GPS recovery",
        )
    raise ValueError(f"No alert template for condition code {code!r}")


def _fmt(value: Optional[float]) -> str:
    return "unknown" if value is None else f"{value:g}"
