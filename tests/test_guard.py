"""Tests for the settlement-callback guard."""

import pytest

from flasharb.exceptions import ReentrantAttempt, UnauthorizedCallback
from flasharb.guard import IDLE, CallbackGuard

POOL = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"


def test_starts_idle() -> None:
    guard = CallbackGuard()
    assert guard.is_idle
    assert guard.permitted == IDLE


def test_armed_permits_only_that_pool() -> None:
    guard = CallbackGuard()
    with guard.armed(POOL) as permitted:
        assert permitted == POOL
        guard.check(POOL)
        with pytest.raises(UnauthorizedCallback):
            guard.check(OTHER)
    assert guard.is_idle


def test_idle_guard_rejects_everyone() -> None:
    guard = CallbackGuard()
    with pytest.raises(UnauthorizedCallback):
        guard.check(POOL)
    with pytest.raises(UnauthorizedCallback):
        guard.check(IDLE)


def test_disarmed_after_failure() -> None:
    guard = CallbackGuard()
    with pytest.raises(RuntimeError):
        with guard.armed(POOL):
            raise RuntimeError("second leg failed")
    assert guard.is_idle


def test_nested_arming_is_rejected() -> None:
    guard = CallbackGuard()
    with guard.armed(POOL):
        with pytest.raises(ReentrantAttempt):
            with guard.armed(OTHER):
                pass
        assert guard.permitted == POOL
    assert guard.is_idle
