"""Pick the GPS source to trust this cycle.

Decision chain (evaluated in order)::

    1. neither source has an accuracy      → NONE,     priority 5, GPS_FAILURE
    2. only RUTOS available                → RUTOS,    priority 1 / 4
    3. only Starlink available             → STARLINK, priority 2 / 4
    4. both available                      → smaller accuracy wins (ties → RUTOS)
         winner ≤ 1.0 m                    → priority 1
         winner ≤ 8.0 m                    → priority 2, RUTOS_DEGRADED / BOTH_GPS_DEGRADED
         winner > 8.0 m                    → priority 3, BOTH_GPS_DEGRADED
"""

from __future__ import annotations

import logging
from typing import Optional

from gps_source_monitor.config import DEFAULT_THRESHOLDS, Thresholds
from gps_source_monitor.models import (
    ConditionCode,
    Fix,
    Priority,
    SelectionResult,
    Source,
)

logger = logging.getLogger(__name__)

# Tier bounds applied to the winning accuracy when both sources report.
EXCELLENT_ACCURACY_M = 1.0
GOOD_ACCURACY_M = 8.0


def select_gps_source(
    rutos: Optional[Fix],
    starlink: Optional[Fix],
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> SelectionResult:
    """Choose between the RUTOS and Starlink fixes.

    A source is available when its fix is present and carries an accuracy.
    Stateless; safe to call without a monitor.
    """
    rutos_ok = rutos is not None and rutos.available
    starlink_ok = starlink is not None and starlink.available

    if not rutos_ok and not starlink_ok:
        result = SelectionResult(
            source=Source.NONE,
            data=None,
            reason="No GPS sources available",
            priority=Priority.UNAVAILABLE,
            condition_code=ConditionCode.GPS_FAILURE,
        )
    elif not starlink_ok:
        result = _only_source(
            Source.RUTOS, rutos, thresholds.rutos_accuracy_m,
            Priority.EXCELLENT, ConditionCode.RUTOS_DEGRADED_ONLY_SOURCE,
        )
    elif not rutos_ok:
        result = _only_source(
            Source.STARLINK, starlink, thresholds.starlink_accuracy_m,
            Priority.GOOD, ConditionCode.STARLINK_DEGRADED_ONLY_SOURCE,
        )
    else:
        result = _better_of_two(rutos, starlink, thresholds)

    logger.debug(
        "Selected %s (priority=%d, condition=%s): %s",
        result.source.value,
        result.priority,
        result.condition_code.value if result.condition_code else None,
        result.reason,
    )
    return result


def _only_source(
    source: Source,
    fix: Fix,
    limit: float,
    healthy_priority: Priority,
    degraded_code: ConditionCode,
) -> SelectionResult:
    """Use the single available source regardless of its accuracy."""
    degraded = fix.accuracy > limit
    return SelectionResult(
        source=source,
        data=fix,
        reason=f"{_name(source)} only source available ({fix.accuracy:g}m)",
        priority=Priority.ONLY_SOURCE_DEGRADED if degraded else healthy_priority,
        condition_code=degraded_code if degraded else None,
    )


def _better_of_two(rutos: Fix, starlink: Fix, thresholds: Thresholds) -> SelectionResult:
    if rutos.accuracy <= starlink.accuracy:
        source, better, worse = Source.RUTOS, rutos, starlink
    else:
        source, better, worse = Source.STARLINK, starlink, rutos

    rutos_degraded = rutos.accuracy > thresholds.rutos_accuracy_m
    starlink_degraded = starlink.accuracy > thresholds.starlink_accuracy_m

    code: Optional[ConditionCode] = None
    if better.accuracy <= EXCELLENT_ACCURACY_M:
        priority = Priority.EXCELLENT
    elif better.accuracy <= GOOD_ACCURACY_M:
        priority = Priority.GOOD
        if rutos_degraded and starlink_degraded:
            code = ConditionCode.BOTH_GPS_DEGRADED
        elif rutos_degraded:
            code = ConditionCode.RUTOS_DEGRADED
    else:
        priority = Priority.DEGRADED
        code = ConditionCode.BOTH_GPS_DEGRADED

    return SelectionResult(
        source=source,
        data=better,
        reason=(
            f"{source.label} more accurate "
            f"({better.accuracy:g}m vs {worse.accuracy:g}m)"
        ),
        priority=priority,
        condition_code=code,
    )


def _name(source: Source) -> str:
    return "RUTOS" if source is Source.RUTOS else "Starlink"
