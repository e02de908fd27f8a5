"""Source-switch tracking across successive selection cycles.

The monitor is a pure transition ``(readings, previous state) → (result,
alerts, next state)``.  It keeps nothing between calls: the caller owns the
:class:`MonitorState` value and must feed each tick's ``monitoring`` back in
as the next ``previous_state``, one tick at a time per pair of sources.

States::

    NO_ACTIVE_SOURCE ──(selector picks a source)──▶ ACTIVE(source)
    ACTIVE(a)        ──(selector picks b ≠ a)─────▶ ACTIVE(b) / NO_ACTIVE_SOURCE   (switch counted)

There is no hysteresis.  Switches closer together than the flapping window
are flagged with a ``warning`` alert but never suppressed.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from gps_source_monitor.classifier import handle_gps_alert
from gps_source_monitor.config import (
    DEFAULT_MONITOR_CONFIG,
    DEFAULT_THRESHOLDS,
    MonitorConfig,
    Thresholds,
)
from gps_source_monitor.models import (
    SOURCE_SWITCH_ALERT,
    Alert,
    AlertLevel,
    Fix,
    MonitorResult,
    MonitorState,
    SelectionResult,
    Source,
    UptimeSeconds,
)
from gps_source_monitor.selector import select_gps_source

logger = logging.getLogger(__name__)


def monitor_gps_sources(
    rutos: Optional[Fix],
    starlink: Optional[Fix],
    previous_state: Optional[MonitorState] = None,
    now_ms: Optional[int] = None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    config: MonitorConfig = DEFAULT_MONITOR_CONFIG,
) -> MonitorResult:
    """Run one monitoring tick.

    Parameters
    ----------
    rutos, starlink:
        This cycle's fixes; ``None`` or a fix without accuracy means the
        source is unavailable.
    previous_state:
        The ``monitoring`` value returned by the previous tick, or ``None``
        on the first tick of a session.
    now_ms:
        Current time in epoch milliseconds.  Defaults to the wall clock.
    thresholds, config:
        Selection limits and monitor cadences.

    Returns
    -------
    MonitorResult
        The selection, the alerts raised this tick (selector alert first,
        then the switch alert), and the next state.
    """
    prev = previous_state or MonitorState()
    now = int(time.time() * 1000) if now_ms is None else now_ms

    result = select_gps_source(rutos, starlink, thresholds)

    previous_source = prev.active_source
    source_changed = (
        previous_source is not None
        and previous_source is not Source.NONE
        and previous_source is not result.source
    )
    switch_count = prev.switch_count + 1 if source_changed else prev.switch_count

    if prev.last_switch_time_ms is None:
        since_last_switch = math.inf
    else:
        since_last_switch = now - prev.last_switch_time_ms
    frequent = source_changed and since_last_switch < config.frequent_switch_window_ms

    alerts: list[Alert] = []

    if result.condition_code is not None:
        context = {
            "rutos_accuracy": rutos.accuracy if rutos else None,
            "starlink_accuracy": starlink.accuracy if starlink else None,
        }
        alert = handle_gps_alert(result.condition_code, result, context)
        if alert is not None:
            alerts.append(alert)

    if source_changed:
        alerts.append(_switch_alert(previous_source, result, switch_count, frequent, now))
        if frequent:
            logger.warning(
                "Frequent GPS switching: %s → %s after %d ms (switch #%d)",
                previous_source.value,
                result.source.value,
                since_last_switch,
                switch_count,
            )
        else:
            logger.info(
                "GPS source switched %s → %s (switch #%d)",
                previous_source.value,
                result.source.value,
                switch_count,
            )

    monitoring = replace(
        prev,
        active_source=result.source,
        switch_count=switch_count,
        last_switch_time_ms=now if source_changed else prev.last_switch_time_ms,
        uptime_seconds=_accumulate_uptime(
            prev.uptime_seconds, result.source, config.data_collection_interval_s
        ),
        is_stable=not frequent,
    )

    return MonitorResult(gps_result=result, alerts=alerts, monitoring=monitoring)


def _switch_alert(
    previous_source: Source,
    result: SelectionResult,
    switch_count: int,
    frequent: bool,
    now_ms: int,
) -> Alert:
    if frequent:
        level = AlertLevel.WARNING
        action = "Investigate GPS instability - frequent switching detected"
    else:
        level = AlertLevel.INFO
        action = "Normal operation"

    return Alert(
        timestamp=datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc).isoformat(),
        type=SOURCE_SWITCH_ALERT,
        level=level,
        message=(
            f"GPS source switched: {previous_source.value} → {result.source.value}. "
            f"Reason: {result.reason}"
        ),
        recommended_action=action,
        gps_state={
            "active_source": result.source.value,
            "reason": result.reason,
            "priority": int(result.priority),
        },
        switch_count=switch_count,
    )


def _accumulate_uptime(uptime: UptimeSeconds, active: Source, cadence_s: int) -> UptimeSeconds:
    """Credit one cadence to the active source, degraded or not."""
    if active is Source.RUTOS:
        return replace(uptime, rutos=uptime.rutos + cadence_s)
    if active is Source.STARLINK:
        return replace(uptime, starlink=uptime.starlink + cadence_s)
    return uptime
