"""
Shared constants for the orchestration module.

This module centralizes the exit codes and timing constants used by the
pipeline orchestrator, the profiler and the timeout enforcer.
"""

import signal


class ExitCodes:
    """
    Exit codes the shell synthesizes itself.
    """
    SUCCESS = 0
    # Process creation or wait failure reported by the shell.
    FAILURE = 1
    # Malformed input: bad quoting, profiler usage errors, missing cd argument.
    USAGE = 2
    # A stage whose program could not be loaded (not found, not executable).
    NOT_FOUND = 127


class TimeoutConstants:
    """
    Centralized timeout configuration.
    """
    # Signal used by the timeout enforcer; the target is removed unconditionally.
    KILL_SIGNAL = signal.SIGKILL

    # Upper bound for joining a cancelled or fired watchdog timer thread.
    TIMER_JOIN_TIMEOUT = 2.0

    # Name given to watchdog timer threads.
    TIMER_THREAD_NAME = "TimeoutEnforcer"
