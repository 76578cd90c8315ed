"""
Shared pytest fixtures for browserhub tests.

This module provides common fixtures including:
- FakeDriver: In-memory browser driver with controllable latency and failures
- Registry fixtures wired to the fake driver and an event recorder
"""

import asyncio
import itertools
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from browserhub.modules.session import (
    LaunchOptions,
    LaunchResult,
    SessionEvent,
    SessionRegistry,
)


# =============================================================================
# Browser Driver Fake
# =============================================================================

@dataclass(eq=False)
class FakeBrowser:
    """Handle returned by FakeDriver. Counts how often it was terminated."""
    port: int
    options: LaunchOptions
    terminate_count: int = 0


@dataclass
class FakeDriver:
    """
    Browser driver that never starts a process.

    Usage:
        def test_launch_failure(fake_driver):
            fake_driver.launch_error = RuntimeError("no chrome")
            ...
            assert fake_driver.launch_count == 0
    """
    launch_delay: float = 0.0
    terminate_delay: float = 0.0
    launch_error: Optional[Exception] = None
    terminate_error: Optional[Exception] = None
    endpoint_override: Optional[str] = None

    launched: List[FakeBrowser] = field(default_factory=list)
    terminated: List[FakeBrowser] = field(default_factory=list)
    cancelled_launches: int = 0

    def __post_init__(self):
        self._ports = itertools.count(9300)

    @property
    def launch_count(self) -> int:
        return len(self.launched)

    async def launch(self, options: LaunchOptions) -> LaunchResult:
        try:
            if self.launch_delay:
                await asyncio.sleep(self.launch_delay)
        except asyncio.CancelledError:
            self.cancelled_launches += 1
            raise
        if self.launch_error is not None:
            raise self.launch_error

        browser = FakeBrowser(port=next(self._ports), options=options)
        self.launched.append(browser)
        endpoint = self.endpoint_override
        if endpoint is None:
            endpoint = f"ws://127.0.0.1:{browser.port}/devtools/browser/{uuid.uuid4()}"
        return LaunchResult(endpoint=endpoint, handle=browser)

    async def terminate(self, handle: FakeBrowser) -> None:
        handle.terminate_count += 1
        self.terminated.append(handle)
        if self.terminate_delay:
            await asyncio.sleep(self.terminate_delay)
        if self.terminate_error is not None:
            raise self.terminate_error


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def events():
    """Recorder for session events; pass ``events.append`` as a listener."""
    recorded: List[SessionEvent] = []
    return recorded


@pytest.fixture
def registry(fake_driver, events):
    """SessionRegistry backed by the fake driver, recording events."""
    return SessionRegistry(fake_driver, listener=events.append)


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "concurrency: Tests exercising concurrent registry access"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring a real browser"
    )
