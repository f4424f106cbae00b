"""
Orchestration module: process creation, profiling and timeout enforcement.

Components:
- PipelineOrchestrator: creates, wires and reaps the processes of a line
- ResourceProfiler: runs one command and measures its resource usage
- TimeoutEnforcer / KillTargetSlot: cancellable watchdog for profiled commands
- ProfileLogManager: append-mode profiling log
- SignalHandler: interactive SIGINT policy
"""

from .log_manager import ProfileLogManager, format_log_record, format_usage_report
from .pipeline import PipelineOrchestrator, run_pipeline
from .profiler import ResourceProfiler
from .shared_state import ExitCodes, TimeoutConstants
from .signal_handler import SignalHandler
from .watchdog import EnforcerState, KillTargetSlot, TimeoutEnforcer

__all__ = [
    "EnforcerState",
    "ExitCodes",
    "KillTargetSlot",
    "PipelineOrchestrator",
    "ProfileLogManager",
    "ResourceProfiler",
    "SignalHandler",
    "TimeoutConstants",
    "TimeoutEnforcer",
    "format_log_record",
    "format_usage_report",
    "run_pipeline",
]
