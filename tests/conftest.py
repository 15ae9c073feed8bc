"""
Pytest configuration and fixtures for telemetry tests
"""
import os

# Keep settings deterministic regardless of the developer's .env
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest

from creativity_telemetry.core.config import Settings
from creativity_telemetry.telemetry.capture import EventCapture, EventHub
from creativity_telemetry.telemetry.environment import StaticEnvironmentProbe
from creativity_telemetry.telemetry.schemas import TaskKind
from creativity_telemetry.telemetry.session import TelemetrySession


SESSION_START_MS = 1_700_000_000_000.0


class FakeClock:
    """Manually advanced millisecond clock"""

    def __init__(self, start: float = SESSION_START_MS):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


class Element:
    """Minimal DOM element stand-in"""

    def __init__(self, tag_name="div", id="", class_name="", dataset=None, parent=None):
        self.tagName = tag_name.upper()
        self.id = id
        self.className = class_name
        self.dataset = dataset or {}
        self.parentElement = parent


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    return Settings()


@pytest.fixture
def document():
    return EventHub()


@pytest.fixture
def window():
    hub = EventHub()
    hub.scrollY = 0
    return hub


@pytest.fixture
def capture(document, window, clock, test_settings):
    capture = EventCapture(document, window, clock=clock, settings=test_settings)
    capture.start("session_test", "participant_test", TaskKind.ALTERNATE_USES)
    yield capture
    capture.stop()


@pytest.fixture
def environment():
    return StaticEnvironmentProbe(
        language="en-US",
        platform="Linux x86_64",
        user_agent="pytest",
        screen_resolution="1920x1080",
        viewport="1280x720",
        timezone="Europe/Berlin",
        device_pixel_ratio=2.0,
        connection_type="4g",
    )


@pytest.fixture
def telemetry_session(document, window, clock, environment, test_settings):
    session = TelemetrySession(
        document,
        window,
        task_kind=TaskKind.REMOTE_ASSOCIATES,
        participant_id="P-001",
        session_id="session_fixture",
        environment=environment,
        clock=clock,
        settings=test_settings,
    )
    session.start()
    yield session
    session.stop()


@pytest.fixture
def element_factory():
    return Element


def type_text(document, clock, text, interval_ms=100.0, hold_ms=40.0):
    """Dispatch keydown/keyup pairs for every character"""
    for char in text:
        document.dispatch("keydown", {"key": char})
        clock.advance(hold_ms)
        document.dispatch("keyup", {"key": char})
        clock.advance(interval_ms - hold_ms)


@pytest.fixture
def typist():
    return type_text
