"""Tests for the background MonitorLoop and AnalysisCycle threads on the system clock."""

import threading
import time

import pytest

from hummiguard.monitor import FeederMonitorService

from conftest import ScriptedAnalyzer, reading


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


@pytest.fixture
def live_service(camera, config, cues):
    config.first_scan_delay = 1
    config.alert_period = 1
    service = FeederMonitorService(
        capture_source=camera,
        analyzer_client=ScriptedAnalyzer(reading(5)),
        config=config,
        cue=cues.append,
    )
    yield service
    service.stop()


def test_real_loop_runs_a_cycle_and_stops_cleanly(live_service, camera, cues):
    assert live_service.start() is True
    loop_thread = live_service.loop_thread
    assert loop_thread is not None and loop_thread.is_alive()

    assert wait_until(lambda: live_service.cycles_completed == 1)
    assert live_service.state.level == 5
    assert live_service.state.alert_active is True
    assert wait_until(lambda: len(cues) >= 2, timeout=3)

    assert live_service.stop() is True
    assert not loop_thread.is_alive()
    assert live_service.loop_thread is None
    assert camera.is_open is False

    cue_count = len(cues)
    time.sleep(1.5)
    assert len(cues) == cue_count
    assert live_service.state.countdown == 0


def test_quick_stop_then_start_keeps_a_timer_driver(live_service, config):
    config.first_scan_delay = 3
    live_service.start()
    first_loop = live_service.loop_thread

    stopper = threading.Thread(target=live_service.stop)
    stopper.start()
    assert wait_until(lambda: not live_service.state.running, timeout=2)

    # restart while the stop call may still be joining the old loop
    assert live_service.start() is True
    stopper.join(timeout=5)

    new_loop = live_service.loop_thread
    assert new_loop is not None and new_loop is not first_loop
    assert new_loop.is_alive()
    assert not first_loop.is_alive()
    assert wait_until(lambda: live_service.state.countdown < 3, timeout=3)
