from datetime import UTC, datetime, timedelta

import pytest

from entitlement_gate.adapters.clock import FixedClock
from entitlement_gate.app_shell.replay_guard import ReplayGuard
from entitlement_gate.rules.models import ReplayRules

START = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def guard(clock):
    return ReplayGuard(ReplayRules(enabled=True, dedupe_window_seconds=60), time_port=clock)


def test_unseen_id(guard):
    assert guard.seen("msg_1") is False


def test_recorded_id_is_seen(guard):
    guard.record("msg_1")
    assert guard.seen("msg_1") is True
    assert guard.seen("msg_2") is False


def test_id_expires_after_window(guard, clock):
    guard.record("msg_1")

    clock.set(START + timedelta(seconds=59))
    assert guard.seen("msg_1") is True

    clock.set(START + timedelta(seconds=61))
    assert guard.seen("msg_1") is False
    assert len(guard) == 0


def test_empty_id_never_recorded(guard):
    guard.record("")
    assert guard.seen("") is False
    assert len(guard) == 0


def test_disabled_guard_sees_nothing(clock):
    guard = ReplayGuard(ReplayRules(enabled=False), time_port=clock)
    guard.record("msg_1")
    assert guard.enabled is False
    assert guard.seen("msg_1") is False
    assert len(guard) == 0


def test_default_time_source():
    guard = ReplayGuard(ReplayRules())
    guard.record("msg_1")
    assert guard.seen("msg_1") is True
