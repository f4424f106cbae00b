"""
Unit tests for the timeout enforcer and its kill-target slot.

Timers are replaced by FakeTimer so firing is driven by the test instead
of the clock.
"""

import signal
import threading
import time
from unittest.mock import Mock

import psutil
import pytest

from myshell.orchestration.watchdog import EnforcerState, KillTargetSlot, TimeoutEnforcer


@pytest.mark.unit
class TestKillTargetSlot:
    """Test cases for the mutex-guarded kill target."""

    def test_register_and_clear(self, mock_target):
        slot = KillTargetSlot()
        generation = slot.register(mock_target)

        assert slot.current is mock_target
        assert slot.clear(generation) is True
        assert slot.current is None

    def test_double_register_rejected(self, mock_target):
        """Only one target may be registered at a time."""
        slot = KillTargetSlot()
        slot.register(mock_target)

        with pytest.raises(RuntimeError):
            slot.register(mock_target)

    def test_stale_generation_is_ignored(self, mock_target):
        """A clear or kill for an old generation never touches a newer target."""
        slot = KillTargetSlot()
        old = slot.register(mock_target)
        slot.clear(old)
        new_target = Mock()
        new_target.pid = 999
        slot.register(new_target)

        assert slot.clear(old) is False
        assert slot.kill_if_current(old) is False
        new_target.send_signal.assert_not_called()

    def test_kill_sends_sigkill(self, mock_target):
        slot = KillTargetSlot()
        generation = slot.register(mock_target)

        assert slot.kill_if_current(generation) is True
        mock_target.send_signal.assert_called_once_with(signal.SIGKILL)

    def test_kill_after_clear_is_suppressed(self, mock_target):
        slot = KillTargetSlot()
        generation = slot.register(mock_target)
        slot.clear(generation)

        assert slot.kill_if_current(generation) is False
        mock_target.send_signal.assert_not_called()

    def test_kill_of_vanished_process(self, mock_target):
        """NoSuchProcess counts as not delivered."""
        mock_target.send_signal.side_effect = psutil.NoSuchProcess(mock_target.pid)
        slot = KillTargetSlot()
        generation = slot.register(mock_target)

        assert slot.kill_if_current(generation) is False

    def test_kill_access_denied(self, mock_target, caplog):
        """AccessDenied is logged and counts as not delivered."""
        mock_target.send_signal.side_effect = psutil.AccessDenied(mock_target.pid)
        slot = KillTargetSlot()
        generation = slot.register(mock_target)

        assert slot.kill_if_current(generation) is False
        assert "Access denied" in caplog.text


@pytest.mark.unit
class TestTimeoutEnforcer:
    """Test cases for the enforcer state machine."""

    def test_arm_starts_daemon_timer(self, mock_target, fake_timers):
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)
        enforcer.arm(mock_target, 5)

        assert enforcer.state is EnforcerState.ARMED
        timer = fake_timers.created[0]
        assert timer.interval == 5
        assert timer.started
        assert timer.daemon is True
        assert timer.name.startswith("TimeoutEnforcer")

    def test_arm_without_timeout_creates_no_timer(self, mock_target, fake_timers):
        """Without a deadline the target is only registered."""
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)
        enforcer.arm(mock_target)

        assert enforcer.state is EnforcerState.ARMED
        assert fake_timers.created == []
        assert enforcer.disarm() is False
        assert enforcer.slot.current is None

    @pytest.mark.parametrize("seconds", [0, -1])
    def test_non_positive_timeout_rejected(self, mock_target, fake_timers, seconds):
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)

        with pytest.raises(ValueError):
            enforcer.arm(mock_target, seconds)
        assert enforcer.state is EnforcerState.DISARMED

    def test_timeout_beyond_timer_limit_rejected(self, mock_target, fake_timers):
        """Deadlines the timer thread cannot represent are refused up front."""
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)

        with pytest.raises(ValueError):
            enforcer.arm(mock_target, 10 ** 20)
        assert enforcer.state is EnforcerState.DISARMED
        assert fake_timers.created == []

    def test_arm_twice_rejected(self, mock_target, fake_timers):
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)
        enforcer.arm(mock_target, 5)

        with pytest.raises(RuntimeError):
            enforcer.arm(mock_target, 5)

    def test_disarm_before_deadline(self, mock_target, fake_timers):
        """Disarming cancels the timer and the target is never killed."""
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)
        enforcer.arm(mock_target, 5)

        assert enforcer.disarm() is False
        timer = fake_timers.created[0]
        assert timer.cancelled
        assert timer.joined
        assert enforcer.state is EnforcerState.DISARMED

        # A timer that slipped past cancel finds nothing to kill.
        timer.cancelled = False
        timer.trigger()
        mock_target.send_signal.assert_not_called()

    def test_fire_kills_once(self, mock_target, fake_timers):
        """Firing kills the target and disarm reports it."""
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)
        enforcer.arm(mock_target, 1)

        fake_timers.created[0].trigger()

        assert enforcer.state is EnforcerState.FIRED
        mock_target.send_signal.assert_called_once_with(signal.SIGKILL)
        assert enforcer.disarm() is True
        assert enforcer.state is EnforcerState.DISARMED

    def test_fire_on_vanished_target_is_not_a_timeout(self, mock_target, fake_timers):
        mock_target.send_signal.side_effect = psutil.NoSuchProcess(mock_target.pid)
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)
        enforcer.arm(mock_target, 1)

        fake_timers.created[0].trigger()

        assert enforcer.state is EnforcerState.ARMED
        assert enforcer.disarm() is False

    def test_disarm_when_idle(self):
        assert TimeoutEnforcer().disarm() is False

    def test_rearm_after_disarm(self, mock_target, fake_timers):
        """A stale timer from the first arming cannot kill the second target."""
        enforcer = TimeoutEnforcer(timer_factory=fake_timers)
        enforcer.arm(mock_target, 1)
        enforcer.disarm()

        second = Mock()
        second.pid = 54321
        enforcer.arm(second, 1)
        stale = fake_timers.created[0]
        stale.cancelled = False
        stale.trigger()

        second.send_signal.assert_not_called()
        assert enforcer.state is EnforcerState.ARMED
        enforcer.disarm()

    def test_real_timer_fires(self, mock_target):
        """With threading.Timer the kill happens on the timer thread."""
        fired = threading.Event()
        mock_target.send_signal.side_effect = lambda sig: fired.set()
        enforcer = TimeoutEnforcer()
        enforcer.arm(mock_target, 0.05)

        assert fired.wait(2.0)
        # Give the timer thread a moment to record the state change.
        deadline = time.monotonic() + 2.0
        while enforcer.state is not EnforcerState.FIRED and time.monotonic() < deadline:
            time.sleep(0.01)
        assert enforcer.disarm() is True
