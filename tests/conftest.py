"""
Pytest configuration and shared fixtures for the myshell test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the myshell project.
"""

import io
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import List
from unittest.mock import Mock

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def restore_cwd():
    """Restore the working directory changed by ``cd`` tests."""
    original = os.getcwd()
    yield original
    os.chdir(original)


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "shell": {
            "prompt_format": "test:{cwd}> ",
            "log_level": "INFO",
            "handle_interrupts": False,
        },
        "limits": {
            "max_line_length": 1024,
            "max_args": 32,
            "max_stages": 8,
        },
        "profiler": {
            "command_name": "myprof",
        },
    }


# ============================================================================
# Mock Fixtures
# ============================================================================


class FakeTimer:
    """Stand-in for threading.Timer that fires only when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.name = None
        self.started = False
        self.cancelled = False
        self.joined = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def join(self, timeout=None):
        self.joined = True

    def trigger(self):
        """Run the callback as the timer thread would, unless cancelled."""
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


@pytest.fixture
def fake_timers():
    """A timer factory that records every FakeTimer it creates."""
    created: List[FakeTimer] = []

    def factory(interval, function, args=None, kwargs=None):
        timer = FakeTimer(interval, function, args=args, kwargs=kwargs)
        created.append(timer)
        return timer

    factory.created = created
    return factory


@pytest.fixture
def mock_target():
    """Mock psutil.Process used as a kill target."""
    target = Mock()
    target.pid = 12345
    target.send_signal.return_value = None
    return target


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create temporary configuration files for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump(sample_config_data, f)

    return {
        "config": config_file,
        "dir": temp_dir,
    }


# ============================================================================
# Test Utilities
# ============================================================================


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def make_shell(lines: str = "", config=None, **kwargs):
        """Create an InteractiveShell wired to in-memory streams."""
        from myshell.cli.shell import InteractiveShell
        from myshell.models.config import AppConfig

        if config is None:
            config = AppConfig()
            config.shell.handle_interrupts = False
        stdout = io.StringIO()
        stderr = io.StringIO()
        shell = InteractiveShell(
            config=config,
            stdin=io.StringIO(lines),
            stdout=stdout,
            stderr=stderr,
            **kwargs,
        )
        return shell, stdout, stderr

    @staticmethod
    def python_stage(code: str):
        """A StageSpec running ``code`` with the current interpreter."""
        from myshell.models.runtime import StageSpec

        return StageSpec((sys.executable, "-c", code))


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield  # Run the test

    from myshell.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
