"""Tests for the filter module."""

from gps_source_monitor.config import AlertFilterConfig
from gps_source_monitor.filter import AlertFilter
from gps_source_monitor.models import Alert, AlertLevel


def _alert(alert_type: str = "RUTOS_DEGRADED", level: AlertLevel = AlertLevel.INFO) -> Alert:
    """Build a minimal alert for filter tests."""
    return Alert(
        timestamp="2025-02-15T18:32:01+00:00",
        type=alert_type,
        level=level,
        message="test",
        recommended_action="none",
    )


def test_default_passes_everything() -> None:
    f = AlertFilter(AlertFilterConfig())
    alert = _alert()
    assert f.apply(alert) is alert


def test_below_min_level_dropped() -> None:
    """An info alert is dropped when min_level is warning."""
    f = AlertFilter(AlertFilterConfig(min_level="warning"))
    assert f.apply(_alert(level=AlertLevel.INFO)) is None


def test_at_and_above_min_level_pass() -> None:
    f = AlertFilter(AlertFilterConfig(min_level="warning"))
    assert f.apply(_alert(level=AlertLevel.WARNING)) is not None
    assert f.apply(_alert(level=AlertLevel.CRITICAL)) is not None


def test_drop_types() -> None:
    """Alert types listed in drop_types are filtered out."""
    f = AlertFilter(AlertFilterConfig(drop_types=["GPS_SOURCE_SWITCH"]))
    assert f(_alert(alert_type="GPS_SOURCE_SWITCH")) is None
    assert f(_alert(alert_type="GPS_FAILURE", level=AlertLevel.CRITICAL)) is not None
