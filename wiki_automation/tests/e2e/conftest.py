"""
Fixtures for the device scenarios.

Each test gets the shared SessionManager, a live session for its thread,
a screen recording, and a screenshot when the test body fails.
"""

from __future__ import annotations

import logging

import pytest

from wiki_automation.mobile.evidence import EvidenceRecorder
from wiki_automation.mobile.session_manager import SessionManager, get_session_manager

logger = logging.getLogger(__name__)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.fixture(scope="session")
def session_manager() -> SessionManager:
    manager = get_session_manager()
    yield manager
    manager.teardown_all()


@pytest.fixture()
def driver(session_manager: SessionManager):
    client = session_manager.initialize()
    yield client
    session_manager.teardown()


@pytest.fixture()
def evidence(session_manager: SessionManager) -> EvidenceRecorder:
    return EvidenceRecorder(session_manager)


@pytest.fixture(autouse=True)
def record_evidence(request, driver, evidence: EvidenceRecorder):
    name = request.node.name
    evidence.start_video_recording()
    yield

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        logger.error("Test %s failed, capturing screenshot", name)
        evidence.take_screenshot(f"FAILED_{name}")
    evidence.stop_and_save_video(name)
