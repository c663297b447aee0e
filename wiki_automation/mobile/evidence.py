"""
Screenshots and screen recordings for test evidence.

These helpers run around tests, so they never raise: failures are logged and
reported as a `None`/`False` return.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from .appium_http_client import AppiumHTTPError
from .session_manager import SessionManager

logger = logging.getLogger(__name__)

ARTIFACTS_DIR_ENV = "WIKI_ARTIFACTS_DIR"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def default_artifacts_dir() -> Path:
    return Path(os.environ.get(ARTIFACTS_DIR_ENV, "artifacts")).resolve()


def sanitize_file_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        return uuid.uuid4().hex[:8]
    return _UNSAFE_CHARS.sub("_", name)


class EvidenceRecorder:
    def __init__(
        self,
        session_manager: SessionManager,
        *,
        screenshot_dir: Optional[Path] = None,
        video_dir: Optional[Path] = None,
    ) -> None:
        self.session_manager = session_manager
        root = default_artifacts_dir()
        self.screenshot_dir = Path(screenshot_dir) if screenshot_dir is not None else root / "screenshots"
        self.video_dir = Path(video_dir) if video_dir is not None else root / "videos"
        self._recording = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    def start_video_recording(self) -> bool:
        client = self.session_manager.get_session()
        if client is None:
            logger.error("Cannot start screen recording: no active session")
            return False
        try:
            client.start_recording_screen()
        except (AppiumHTTPError, AttributeError, RuntimeError):
            logger.error("Failed to start screen recording", exc_info=True)
            self._recording = False
            return False
        self._recording = True
        logger.info("Screen recording started")
        return True

    def stop_and_save_video(self, test_name: Optional[str]) -> Optional[Path]:
        was_recording, self._recording = self._recording, False
        client = self.session_manager.get_session()
        if client is None:
            logger.error("Cannot stop screen recording: no active session")
            return None
        if not was_recording:
            logger.debug("No screen recording in progress")
            return None

        try:
            encoded = client.stop_recording_screen()
        except (AppiumHTTPError, AttributeError, RuntimeError):
            logger.error("Failed to stop screen recording", exc_info=True)
            return None
        if not encoded:
            logger.error("Screen recording came back empty")
            return None

        try:
            video_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            logger.error("Screen recording is not valid base64", exc_info=True)
            return None
        logger.info("Captured %d bytes of video", len(video_bytes))

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = self.video_dir / f"{sanitize_file_name(test_name)}_{stamp}.mp4"
        try:
            self.video_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(video_bytes)
        except OSError:
            logger.error("Failed to write video to %s", path, exc_info=True)
            return None

        path = path.resolve()
        logger.info("Video saved to %s", path)
        return path

    def take_screenshot(self, test_name: Optional[str]) -> Optional[Path]:
        client = self.session_manager.get_session()
        if client is None:
            logger.error("Cannot take screenshot: no active session")
            return None

        try:
            png_bytes = base64.b64decode(client.get_screenshot_base64(), validate=True)
        except (AppiumHTTPError, AttributeError, RuntimeError, binascii.Error, ValueError):
            logger.error("Failed to capture screenshot", exc_info=True)
            return None

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        path = self.screenshot_dir / f"{sanitize_file_name(test_name)}_{stamp}.png"
        try:
            self.screenshot_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(png_bytes)
        except OSError:
            logger.error("Failed to write screenshot to %s", path, exc_info=True)
            return None

        path = path.resolve()
        logger.info("Screenshot saved to %s", path)
        return path
