"""Tests for the countdown scheduler against a virtual clock."""

import pytest

from hummiguard.monitor import CountdownScheduler, MonitoringState, VirtualClock


class Trigger:
    """on_zero stand-in that marks the state as analyzing, like the service does."""

    def __init__(self):
        self.state = None
        self.calls = 0

    def __call__(self):
        self.calls += 1
        self.state.analyzing = True
        return True


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def trigger():
    return Trigger()


@pytest.fixture
def state(trigger):
    state = MonitoringState(running=True, interval_seconds=30)
    trigger.state = state
    return state


@pytest.fixture
def scheduler(trigger, clock):
    return CountdownScheduler(on_zero=trigger, clock=clock, log_dir=None)


def test_countdown_decrements_once_per_second(scheduler, state, clock, trigger):
    scheduler.arm(state, 5)

    clock.advance(0.5)
    assert scheduler.poll() == 0
    assert state.countdown == 5

    clock.advance(0.5)
    assert scheduler.poll() == 1
    assert state.countdown == 4

    clock.advance(3)
    scheduler.poll()
    assert state.countdown == 1
    assert trigger.calls == 0


def test_reaching_zero_triggers_exactly_one_cycle(scheduler, state, clock, trigger):
    scheduler.arm(state, 2)

    clock.advance(2)
    scheduler.poll()
    assert state.countdown == 0
    assert trigger.calls == 1

    # ticks landing while analyzing are dropped
    clock.advance(10)
    scheduler.poll()
    assert trigger.calls == 1
    assert state.countdown == 0


def test_reset_uses_current_interval(scheduler, state, clock, trigger):
    scheduler.arm(state, 1)
    clock.advance(1)
    scheduler.poll()

    state.analyzing = False
    scheduler.reset(state.interval_seconds)
    assert state.countdown == 30


def test_interval_change_applies_on_next_reset_only(scheduler, state, clock, trigger):
    scheduler.arm(state, 27)
    state.interval_seconds = 10

    clock.advance(1)
    scheduler.poll()
    assert state.countdown == 26

    scheduler.reset()
    assert state.countdown == 10


def test_scan_now_preempts_countdown(scheduler, state, trigger):
    scheduler.arm(state, 27)

    assert scheduler.scan_now() is True
    assert state.countdown == 0
    assert trigger.calls == 1


def test_scan_now_is_ignored_while_analyzing(scheduler, state, trigger):
    scheduler.arm(state, 27)
    scheduler.scan_now()

    assert scheduler.scan_now() is False
    assert trigger.calls == 1


def test_not_running_never_ticks_or_triggers(scheduler, clock, trigger):
    idle = MonitoringState(running=False)
    trigger.state = idle
    scheduler.arm(idle, 3)

    clock.advance(10)
    scheduler.poll()
    assert idle.countdown == 3
    assert scheduler.scan_now() is False
    assert trigger.calls == 0


def test_cancel_zeroes_countdown_and_disarms(scheduler, state, clock, trigger):
    scheduler.arm(state, 3)
    scheduler.cancel()

    assert state.countdown == 0
    assert scheduler.armed is False

    clock.advance(10)
    assert scheduler.poll() == 0
    assert scheduler.scan_now() is False
    assert trigger.calls == 0


def test_refused_trigger_retries_on_next_tick(scheduler, state, clock):
    answers = [False, True]

    def on_zero():
        return answers.pop(0)

    scheduler.on_zero = on_zero
    scheduler.arm(state, 1)

    clock.advance(1)
    scheduler.poll()
    assert answers == [True]

    clock.advance(1)
    scheduler.poll()
    assert answers == []
