"""Shared pytest fixtures for the wiki_automation test suite."""

from __future__ import annotations

import pytest

from wiki_automation.mobile.config import SessionConfig
from wiki_automation.mobile.session_manager import SessionManager

from .fake_appium_server import FakeAppiumServer
from .fakes import FakeDevice, RecordingFactory, make_config


@pytest.fixture()
def session_config() -> SessionConfig:
    return make_config()


@pytest.fixture()
def factory() -> RecordingFactory:
    return RecordingFactory()


@pytest.fixture()
def manager(session_config: SessionConfig, factory: RecordingFactory) -> SessionManager:
    mgr = SessionManager(config_provider=lambda: session_config, session_factory=factory)
    yield mgr
    mgr.teardown_all()


@pytest.fixture()
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture()
def appium_server() -> FakeAppiumServer:
    server = FakeAppiumServer().start()
    yield server
    server.stop()
