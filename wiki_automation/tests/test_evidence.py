from __future__ import annotations

import re
from pathlib import Path

import pytest

from wiki_automation.mobile.evidence import (
    ARTIFACTS_DIR_ENV,
    EvidenceRecorder,
    default_artifacts_dir,
    sanitize_file_name,
)


@pytest.fixture()
def recorder(manager, device, tmp_path: Path) -> EvidenceRecorder:
    manager.set_session(device)
    return EvidenceRecorder(manager, screenshot_dir=tmp_path / "shots", video_dir=tmp_path / "videos")


@pytest.mark.parametrize(
    "name,expected",
    [
        ("test_search[Appium]", "test_search_Appium_"),
        ("plain-name_1.0", "plain-name_1.0"),
        ("a b/c", "a_b_c"),
    ],
)
def test_sanitize_file_name(name, expected):
    assert sanitize_file_name(name) == expected


@pytest.mark.parametrize("name", [None, "", "   "])
def test_sanitize_file_name_generates_short_id(name):
    generated = sanitize_file_name(name)
    assert re.fullmatch(r"[0-9a-f]{8}", generated)


def test_default_artifacts_dir_env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv(ARTIFACTS_DIR_ENV, str(tmp_path))
    assert default_artifacts_dir() == tmp_path.resolve()


def test_take_screenshot_writes_png(recorder, tmp_path: Path):
    path = recorder.take_screenshot("test_search[Appium]")

    assert path is not None
    assert path.parent == (tmp_path / "shots").resolve()
    assert re.fullmatch(r"test_search_Appium__\d{8}_\d{6}_\d{3}\.png", path.name)
    assert path.read_bytes() == b"\x89PNG fake"


def test_take_screenshot_without_session(manager, tmp_path: Path):
    recorder = EvidenceRecorder(manager, screenshot_dir=tmp_path)
    assert recorder.take_screenshot("x") is None


def test_take_screenshot_failure_returns_none(recorder, device, caplog):
    device.screenshot = None

    assert recorder.take_screenshot("x") is None
    assert "Failed to capture screenshot" in caplog.text


def test_take_screenshot_invalid_base64(recorder, device):
    device.screenshot = "not base64!!"
    assert recorder.take_screenshot("x") is None


def test_video_round_trip(recorder, device, tmp_path: Path):
    assert recorder.start_video_recording() is True
    assert recorder.is_recording is True
    assert device.recording_started == 1

    path = recorder.stop_and_save_video("TC01")

    assert recorder.is_recording is False
    assert path is not None
    assert path.parent == (tmp_path / "videos").resolve()
    assert re.fullmatch(r"TC01_\d{8}_\d{6}\.mp4", path.name)
    assert path.read_bytes() == b"fake mp4"


def test_stop_without_recording_returns_none(recorder):
    assert recorder.stop_and_save_video("TC01") is None


def test_start_without_session(manager, tmp_path: Path):
    recorder = EvidenceRecorder(manager, video_dir=tmp_path)

    assert recorder.start_video_recording() is False
    assert recorder.is_recording is False


def test_stop_failure_clears_recording_flag(recorder, device):
    recorder.start_video_recording()
    device.recording = None

    assert recorder.stop_and_save_video("TC01") is None
    assert recorder.is_recording is False


def test_empty_recording_is_not_saved(recorder, device, tmp_path: Path):
    recorder.start_video_recording()
    device.recording = ""

    assert recorder.stop_and_save_video("TC01") is None
    assert not (tmp_path / "videos").exists()


def test_unwritable_directory_returns_none(manager, device, tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    manager.set_session(device)
    recorder = EvidenceRecorder(manager, screenshot_dir=blocker / "shots")

    assert recorder.take_screenshot("x") is None


def test_stop_without_session_clears_recording_flag(manager, device, tmp_path: Path):
    manager.set_session(device)
    recorder = EvidenceRecorder(manager, video_dir=tmp_path)
    assert recorder.start_video_recording() is True
    manager.teardown()

    assert recorder.stop_and_save_video("TC01") is None
    assert recorder.is_recording is False
