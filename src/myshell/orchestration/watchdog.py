"""
Timeout enforcement for profiled commands.

The enforcer is a cancellable timer that, unless disarmed first, kills its
target exactly once with SIGKILL. The target lives in an explicitly owned
KillTargetSlot shared between the profiling call path and the timer thread.
Arming writes the slot, disarming clears it and firing reads it, all under
one short-lived lock that is never held across the blocking wait. The kill
itself is issued while the lock is held, so it either reaches the live
process (or its not yet reaped zombie) or is suppressed.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

import psutil

from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


class KillTargetSlot:
    """
    Mutex-guarded holder for the one process the enforcer may kill.

    Each registration gets a new generation number; clearing and killing
    only act when the caller's generation is still the current one, so a
    stale timer can never touch a later target.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._target: Optional[psutil.Process] = None
        self._generation = 0

    @property
    def current(self) -> Optional[psutil.Process]:
        with self._lock:
            return self._target

    def register(self, target: psutil.Process) -> int:
        """
        Store ``target`` and return its generation.

        Raises:
            RuntimeError: If a target is already registered.
        """
        with self._lock:
            if self._target is not None:
                raise RuntimeError("a kill target is already registered")
            self._generation += 1
            self._target = target
            return self._generation

    def clear(self, generation: int) -> bool:
        """Remove the target registered under ``generation``, if still current."""
        with self._lock:
            if self._target is None or generation != self._generation:
                return False
            self._target = None
            return True

    def kill_if_current(self, generation: int,
                        sig: int = TimeoutConstants.KILL_SIGNAL) -> bool:
        """
        Send ``sig`` to the target if ``generation`` is still registered.

        Returns:
            True if the signal was delivered.
        """
        with self._lock:
            if self._target is None or generation != self._generation:
                logger.debug(f"Kill for generation {generation} suppressed, target already cleared")
                return False
            target = self._target
            try:
                # psutil checks the creation time before signalling, so a
                # reused pid is reported as gone instead of being killed.
                target.send_signal(sig)
            except psutil.NoSuchProcess:
                logger.debug(f"Kill target PID {target.pid} already gone")
                return False
            except psutil.AccessDenied:
                logger.warning(f"Access denied killing PID {target.pid}")
                return False
            logger.info(f"Sent signal {sig} to PID {target.pid}")
            return True


class EnforcerState(Enum):
    """Timeout enforcer states."""
    DISARMED = "disarmed"
    ARMED = "armed"
    FIRED = "fired"


class TimeoutEnforcer:
    """
    Watchdog that kills the registered target after a deadline.

    State machine: ``DISARMED -> ARMED -> (FIRED | DISARMED) -> DISARMED``.
    Only one target may be armed at a time.
    """

    def __init__(self, slot: Optional[KillTargetSlot] = None,
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        """
        Args:
            slot: The shared kill-target slot; a private one is created if omitted
            timer_factory: Builds the cancellable timer, ``threading.Timer`` by default
        """
        self.slot = slot if slot is not None else KillTargetSlot()
        self._timer_factory = timer_factory
        self._state_lock = threading.Lock()
        self._state = EnforcerState.DISARMED
        self._generation: Optional[int] = None
        self._timer: Optional[threading.Timer] = None

    @property
    def state(self) -> EnforcerState:
        with self._state_lock:
            return self._state

    def arm(self, target: psutil.Process, seconds: Optional[float] = None) -> None:
        """
        Register ``target`` and, if ``seconds`` is given, start the deadline.

        Without ``seconds`` the target is only registered; the enforcer still
        has to be disarmed afterwards.

        Raises:
            ValueError: If ``seconds`` is not positive or exceeds ``threading.TIMEOUT_MAX``.
            RuntimeError: If the enforcer is already armed.
        """
        if seconds is not None and seconds <= 0:
            raise ValueError(f"timeout must be positive, got {seconds}")
        if seconds is not None and seconds > threading.TIMEOUT_MAX:
            raise ValueError(f"timeout must be at most {threading.TIMEOUT_MAX}, got {seconds}")

        with self._state_lock:
            if self._state is not EnforcerState.DISARMED:
                raise RuntimeError(f"timeout enforcer is {self._state.value}, cannot arm")
            generation = self.slot.register(target)
            self._generation = generation
            self._state = EnforcerState.ARMED

            if seconds is not None:
                timer = self._timer_factory(seconds, self._fire, args=(generation,))
                timer.daemon = True
                timer.name = f"{TimeoutConstants.TIMER_THREAD_NAME}-{generation}"
                self._timer = timer
                timer.start()
                logger.debug(f"Armed {seconds}s timeout for PID {target.pid}")

    def disarm(self) -> bool:
        """
        Clear the target and cancel the timer.

        Returns:
            True if the enforcer fired before it was disarmed.
        """
        with self._state_lock:
            if self._state is EnforcerState.DISARMED:
                return False
            generation = self._generation
            timer = self._timer

        # From here on a pending fire finds the slot empty and does nothing.
        self.slot.clear(generation)
        if timer is not None:
            timer.cancel()
            if timer is not threading.current_thread():
                timer.join(TimeoutConstants.TIMER_JOIN_TIMEOUT)

        with self._state_lock:
            fired = self._state is EnforcerState.FIRED
            self._state = EnforcerState.DISARMED
            self._generation = None
            self._timer = None

        if fired:
            logger.debug(f"Timeout enforcer generation {generation} disarmed after firing")
        return fired

    def _fire(self, generation: int) -> None:
        """Timer callback: kill the target if it is still registered."""
        if not self.slot.kill_if_current(generation):
            return
        with self._state_lock:
            if self._generation == generation and self._state is EnforcerState.ARMED:
                self._state = EnforcerState.FIRED
