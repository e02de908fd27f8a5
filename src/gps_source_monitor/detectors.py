"""Position-change and stability detectors.

Both run against fixes the caller has buffered; neither keeps history of its
own.
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Optional, Sequence

from gps_source_monitor.config import DEFAULT_THRESHOLDS, Thresholds
from gps_source_monitor.geo import calculate_haversine_distance
from gps_source_monitor.models import Fix, StabilityResult

logger = logging.getLogger(__name__)


def is_significant_position_change(
    old: Optional[Fix],
    new: Optional[Fix],
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """Decide whether *new* is real movement relative to *old* rather than jitter.

    An absent fix on either side (or one without coordinates) counts as a
    change.  Missing altitude is treated as 0.
    """
    if old is None or new is None or not old.has_position or not new.has_position:
        return True

    distance = calculate_haversine_distance(
        old.latitude, old.longitude, new.latitude, new.longitude
    )
    altitude_diff = abs((new.altitude or 0.0) - (old.altitude or 0.0))

    return (
        distance > thresholds.position_accuracy_m
        or altitude_diff > thresholds.altitude_difference_m
    )


def check_gps_stability(
    recent: Sequence[Fix],
    source: str,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> StabilityResult:
    """Check whether a window of fixes from one source is tightly clustered.

    Parameters
    ----------
    recent:
        Ordered recent fixes from a single source.  Fixes without coordinates
        are ignored.
    source:
        Source name used in the reason text.
    thresholds:
        Supplies the spread limit and the minimum window size.

    Returns
    -------
    StabilityResult
        ``stable=True`` with ``max_spread=None`` when the window is too
        small to judge; otherwise the maximum pairwise spread compared
        against the limit.
    """
    positions = [(f.latitude, f.longitude) for f in recent if f.has_position]
    if len(positions) < thresholds.stability_min_readings:
        return StabilityResult(stable=True, max_spread=None, reason="Insufficient data")

    # Quadratic in window size; windows are expected to stay around 10-30 fixes.
    max_spread = 0.0
    for (lat1, lon1), (lat2, lon2) in combinations(positions, 2):
        max_spread = max(max_spread, calculate_haversine_distance(lat1, lon1, lat2, lon2))

    limit = thresholds.stability_threshold_m
    stable = max_spread <= limit
    if stable:
        reason = f"{source} stable ({max_spread:.1f}m spread ≤ {limit:g}m)"
    else:
        reason = f"{source} unstable ({max_spread:.1f}m spread > {limit:g}m)"
        logger.info("Stability check failed: %s", reason)

    return StabilityResult(stable=stable, max_spread=max_spread, reason=reason)
