"""Tests for the watchdog logger and stage monitor."""

import pytest

from safeintel.watchdog import WatchdogLogger, monitor_function, watchdog


def test_singleton():
    assert WatchdogLogger() is watchdog


def test_pipeline_runs_are_counted_per_kind():
    before = watchdog.get_performance_stats()["pipelines"].get("route", {"runs": 0, "fallbacks": 0})

    watchdog.log_pipeline_run("route", "route-intel-x", 0.5, fallback_to_raw=True,
                              has_briefing=True, incident_count=0)

    after = watchdog.get_performance_stats()["pipelines"]["route"]
    assert after["runs"] == before["runs"] + 1
    assert after["fallbacks"] == before["fallbacks"] + 1


def test_monitor_logs_and_reraises():
    @monitor_function(warn_slow=10)
    def failing_stage():
        raise ValueError("boom")

    before = watchdog.get_performance_stats()["exceptions"]
    with pytest.raises(ValueError):
        failing_stage()
    assert watchdog.get_performance_stats()["exceptions"] == before + 1


def test_monitor_passes_results_through():
    @monitor_function
    def stage(x):
        return x * 2

    assert stage(21) == 42
    assert stage.__name__ == "stage"
