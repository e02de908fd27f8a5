"""Tests for the monitor module."""

import pytest

from gps_source_monitor.config import MonitorConfig
from gps_source_monitor.models import AlertLevel, Fix, MonitorState, Source, UptimeSeconds
from gps_source_monitor.monitor import monitor_gps_sources

T0 = 1_700_000_000_000

RUTOS_GOOD = Fix(latitude=52.52, longitude=13.405, accuracy=0.4)
RUTOS_BAD = Fix(latitude=52.52, longitude=13.405, accuracy=6.0)
STARLINK = Fix(latitude=52.52, longitude=13.405, accuracy=5.0)


def _switch_alerts(outcome) -> list:
    return [a for a in outcome.alerts if a.type == "GPS_SOURCE_SWITCH"]


def test_first_tick_has_no_switch() -> None:
    """No previous source → no switch, state starts tracking."""
    outcome = monitor_gps_sources(RUTOS_GOOD, STARLINK, None, now_ms=T0)
    assert outcome.gps_result.source is Source.RUTOS
    assert outcome.alerts == []
    assert outcome.monitoring.active_source is Source.RUTOS
    assert outcome.monitoring.switch_count == 0
    assert outcome.monitoring.last_switch_time_ms is None
    assert outcome.monitoring.uptime_seconds == UptimeSeconds(rutos=30, starlink=0)


def test_same_source_no_switch() -> None:
    state = MonitorState(active_source=Source.RUTOS, switch_count=3)
    outcome = monitor_gps_sources(RUTOS_GOOD, STARLINK, state, now_ms=T0)
    assert _switch_alerts(outcome) == []
    assert outcome.monitoring.switch_count == 3


def test_switch_emits_info_alert() -> None:
    """A single switch with no prior switch is informational."""
    state = MonitorState(active_source=Source.RUTOS)
    outcome = monitor_gps_sources(RUTOS_BAD, STARLINK, state, now_ms=T0)

    assert outcome.gps_result.source is Source.STARLINK
    assert outcome.monitoring.switch_count == 1
    assert outcome.monitoring.last_switch_time_ms == T0
    assert outcome.monitoring.is_stable is True

    # Selector alert first, then the switch alert.
    assert [a.type for a in outcome.alerts] == ["RUTOS_DEGRADED", "GPS_SOURCE_SWITCH"]
    switch = outcome.alerts[1]
    assert switch.level is AlertLevel.INFO
    assert switch.recommended_action == "Normal operation"
    assert switch.switch_count == 1
    assert switch.message == (
        "GPS source switched: rutos → starlink. "
        "Reason: STARLINK more accurate (5m vs 6m)"
    )


def test_frequent_switching_within_window() -> None:
    """Two switches 60 s apart: count +2 and the second is a warning."""
    state = MonitorState(active_source=Source.RUTOS)
    first = monitor_gps_sources(RUTOS_BAD, STARLINK, state, now_ms=T0)
    second = monitor_gps_sources(RUTOS_GOOD, STARLINK, first.monitoring, now_ms=T0 + 60_000)

    assert second.monitoring.switch_count == 2
    alert = _switch_alerts(second)[0]
    assert alert.level is AlertLevel.WARNING
    assert alert.recommended_action == "Investigate GPS instability - frequent switching detected"
    assert second.monitoring.is_stable is False


def test_switch_after_window_is_info() -> None:
    """The same switch after a 121 s gap stays informational."""
    state = MonitorState(
        active_source=Source.STARLINK, switch_count=1, last_switch_time_ms=T0
    )
    outcome = monitor_gps_sources(RUTOS_GOOD, STARLINK, state, now_ms=T0 + 121_000)
    assert outcome.monitoring.switch_count == 2
    assert _switch_alerts(outcome)[0].level is AlertLevel.INFO


def test_degraded_alert_without_switch() -> None:
    """Condition codes are reported even when the source does not change."""
    state = MonitorState(active_source=Source.STARLINK)
    outcome = monitor_gps_sources(RUTOS_BAD, STARLINK, state, now_ms=T0)
    assert [a.type for a in outcome.alerts] == ["RUTOS_DEGRADED"]
    assert "Starlink (5m)" in outcome.alerts[0].message


def test_total_failure_counts_as_switch() -> None:
    """Losing both sources flips the active source to NONE."""
    state = MonitorState(active_source=Source.RUTOS)
    outcome = monitor_gps_sources(Fix(), Fix(), state, now_ms=T0)
    assert outcome.monitoring.active_source is Source.NONE
    assert outcome.monitoring.switch_count == 1
    assert [a.type for a in outcome.alerts] == ["GPS_FAILURE", "GPS_SOURCE_SWITCH"]
    assert outcome.alerts[0].level is AlertLevel.CRITICAL


def test_recovery_from_none_is_not_a_switch() -> None:
    """Coming back from no source is not counted as a switch."""
    state = MonitorState(active_source=Source.NONE, switch_count=1)
    outcome = monitor_gps_sources(RUTOS_GOOD, STARLINK, state, now_ms=T0)
    assert outcome.monitoring.switch_count == 1
    assert outcome.alerts == []


def test_uptime_accumulates_while_degraded() -> None:
    """Uptime credits the active source even when its accuracy is poor."""
    state = MonitorState(
        active_source=Source.RUTOS, uptime_seconds=UptimeSeconds(rutos=60, starlink=90)
    )
    outcome = monitor_gps_sources(Fix(accuracy=3.0), None, state, now_ms=T0)
    assert outcome.gps_result.condition_code is not None
    assert outcome.monitoring.uptime_seconds == UptimeSeconds(rutos=90, starlink=90)


def test_uptime_unchanged_without_source() -> None:
    state = MonitorState(uptime_seconds=UptimeSeconds(rutos=30, starlink=30))
    outcome = monitor_gps_sources(None, None, state, now_ms=T0)
    assert outcome.monitoring.uptime_seconds == UptimeSeconds(rutos=30, starlink=30)


def test_custom_cadence_and_window() -> None:
    config = MonitorConfig(data_collection_interval_s=10, frequent_switch_window_ms=5_000)
    state = MonitorState(
        active_source=Source.STARLINK, switch_count=1, last_switch_time_ms=T0
    )
    outcome = monitor_gps_sources(RUTOS_GOOD, STARLINK, state, now_ms=T0 + 6_000, config=config)
    assert _switch_alerts(outcome)[0].level is AlertLevel.INFO
    assert outcome.monitoring.uptime_seconds.rutos == 10


def test_previous_state_not_mutated() -> None:
    """The monitor returns a new state and leaves the input untouched."""
    state = MonitorState(active_source=Source.RUTOS)
    monitor_gps_sources(RUTOS_BAD, STARLINK, state, now_ms=T0)
    assert state == MonitorState(active_source=Source.RUTOS)


def test_switch_count_never_decreases() -> None:
    readings = [RUTOS_GOOD, RUTOS_BAD, RUTOS_GOOD, RUTOS_GOOD, RUTOS_BAD]
    state = None
    counts = []
    for i, rutos in enumerate(readings):
        state = monitor_gps_sources(rutos, STARLINK, state, now_ms=T0 + i * 30_000).monitoring
        counts.append(state.switch_count)
    assert counts == [0, 1, 2, 2, 3]
    assert state.uptime_seconds.rutos + state.uptime_seconds.starlink == 150


def test_defaults_to_wall_clock() -> None:
    state = MonitorState(active_source=Source.RUTOS)
    outcome = monitor_gps_sources(RUTOS_BAD, STARLINK, state)
    assert outcome.monitoring.last_switch_time_ms > T0


def test_switch_exactly_at_window_is_info() -> None:
    """A gap of exactly 120,000 ms is outside the flapping window."""
    state = MonitorState(
        active_source=Source.STARLINK, switch_count=1, last_switch_time_ms=T0
    )
    outcome = monitor_gps_sources(RUTOS_GOOD, STARLINK, state, now_ms=T0 + 120_000)
    assert _switch_alerts(outcome)[0].level is AlertLevel.INFO
    assert outcome.monitoring.is_stable is True


def test_switch_just_inside_window_is_warning() -> None:
    state = MonitorState(
        active_source=Source.STARLINK, switch_count=1, last_switch_time_ms=T0
    )
    outcome = monitor_gps_sources(RUTOS_GOOD, STARLINK, state, now_ms=T0 + 119_999)
    assert _switch_alerts(outcome)[0].level is AlertLevel.WARNING
