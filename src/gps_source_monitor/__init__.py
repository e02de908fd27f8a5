"""Dual-GPS source selection, stability detection, and alerting.

Public API::

    select_gps_source(rutos, starlink)                  -> SelectionResult
    is_significant_position_change(old, new)            -> bool
    check_gps_stability(recent, source)                 -> StabilityResult
    calculate_haversine_distance(lat1, lon1, lat2, lon2) -> float
    handle_gps_alert(code, gps_result, context)         -> Alert | None
    monitor_gps_sources(rutos, starlink, state)         -> MonitorResult
"""

__version__ = "0.1.0"

from gps_source_monitor.classifier import handle_gps_alert
from gps_source_monitor.detectors import (
    check_gps_stability,
    is_significant_position_change,
)
from gps_source_monitor.geo import calculate_haversine_distance
from gps_source_monitor.models import (
    Alert,
    AlertLevel,
    ConditionCode,
    Fix,
    MonitorResult,
    MonitorState,
    Priority,
    SelectionResult,
    Source,
    StabilityResult,
)
from gps_source_monitor.monitor import monitor_gps_sources
from gps_source_monitor.selector import select_gps_source

__all__ = [
    "__version__",
    "Alert",
    "AlertLevel",
    "ConditionCode",
    "Fix",
    "MonitorResult",
    "MonitorState",
    "Priority",
    "SelectionResult",
    "Source",
    "StabilityResult",
    "calculate_haversine_distance",
    "check_gps_stability",
    "handle_gps_alert",
    "is_significant_position_change",
    "monitor_gps_sources",
    "select_gps_source",
]
