"""
Interactive signal handling.

The shell itself must survive Ctrl-C while the foreground command is
interrupted. Installing a Python-level SIGINT handler (rather than ignoring
the signal) achieves both: the shell's blocking waits simply resume after
the handler runs, while child processes get the default disposition back
when they load their program image.
"""

import logging
import signal
import threading
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Installs and restores the interactive SIGINT policy.
    """

    def __init__(self):
        self._original_sigint_handler: Optional[Any] = None
        self._signal_handlers_set = False
        self.interrupt_count = 0

    @property
    def installed(self) -> bool:
        return self._signal_handlers_set

    def setup_signal_handlers(self) -> None:
        """Install the SIGINT handler. A no-op outside the main thread."""
        if self._signal_handlers_set:
            return
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, leaving signal handlers untouched")
            return
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._on_interrupt)
            self._signal_handlers_set = True
            logger.debug("Interactive SIGINT handler installed")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore the handler that was active before setup."""
        if not self._signal_handlers_set:
            return
        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            logger.debug("Original SIGINT handler restored")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False
            self._original_sigint_handler = None

    def _on_interrupt(self, signum: int, frame: Any) -> None:
        self.interrupt_count += 1
        logger.debug(f"Signal {signum} received, shell keeps running")

    def __enter__(self) -> "SignalHandler":
        self.setup_signal_handlers()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup_signal_handlers()
