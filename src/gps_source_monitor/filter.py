"""Alert filtering by severity and type.

Filter chain (evaluated in order)::

    1. ``level`` below ``min_level``    → drop
    2. ``type`` in ``drop_types``       → drop
    3. Otherwise                        → pass
"""

from __future__ import annotations

import logging
from typing import Optional

from gps_source_monitor.config import AlertFilterConfig
from gps_source_monitor.models import Alert, AlertLevel

logger = logging.getLogger(__name__)


class AlertFilter:
    """Stateless filter that decides whether an alert reaches the output."""

    def __init__(self, config: AlertFilterConfig) -> None:
        self._min_level = AlertLevel(config.min_level)
        self._drop_types: set[str] = set(config.drop_types)

    def __call__(self, alert: Alert) -> Optional[Alert]:
        """Return *alert* if it passes all filters, else ``None``."""
        return self.apply(alert)

    def apply(self, alert: Alert) -> Optional[Alert]:
        """Evaluate the filter chain.

        Parameters
        ----------
        alert:
            An alert produced by the classifier or the monitor.

        Returns
        -------
        Alert or None
            The input unchanged when it passes, ``None`` when filtered.
        """
        if alert.level.rank < self._min_level.rank:
            logger.debug(
                "Filtered alert %s: level %s below %s",
                alert.type,
                alert.level.value,
                self._min_level.value,
            )
            return None

        if alert.type in self._drop_types:
            logger.debug("Filtered alert %s: in drop_types", alert.type)
            return None

        return alert
