from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PLATFORM_NAME = "platformName"
AUTOMATION_NAME = "automationName"
DEVICE_NAME = "deviceName"
APP_PACKAGE = "appPackage"
APP_WAIT_ACTIVITY = "appWaitActivity"
IMPLICIT_WAIT = "implicitWaitTimeout"  # seconds
APPIUM_SERVER_URL = "appiumServerUrl"

DEFAULT_IMPLICIT_WAIT_S = 10
DEFAULT_APPIUM_SERVER_URL = "http://127.0.0.1:4723"

CONFIG_PATH_ENV = "WIKI_AUTOMATION_CONFIG"

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _repo_root() -> Path:
    # wiki_automation/mobile/config.py -> repo root is two levels up
    return Path(__file__).resolve().parents[2]


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return _repo_root() / "config" / "config.properties"


def _unescape(raw: str) -> str:
    out: list[str] = []
    chars = iter(raw)
    for c in chars:
        if c != "\\":
            out.append(c)
            continue
        nxt = next(chars, "")
        out.append(_ESCAPES.get(nxt, nxt))
    return "".join(out)


def _split_entry(line: str) -> tuple[str, str]:
    escaped = False
    for idx, c in enumerate(line):
        if escaped:
            escaped = False
            continue
        if c == "\\":
            escaped = True
            continue
        if c in "=:":
            return line[:idx].rstrip(), line[idx + 1 :].lstrip(" \t\f")
        if c in " \t\f":
            rest = line[idx:].lstrip(" \t\f")
            if rest[:1] in ("=", ":"):
                rest = rest[1:].lstrip(" \t\f")
            return line[:idx], rest
    return line, ""


def read_properties(path: str | Path) -> dict[str, str]:
    """
    Parse a Java-style .properties file.

    - Blank lines and lines starting with '#' or '!' are ignored
    - Keys and values are separated by '=', ':' or whitespace
    - Leading whitespace of a value is dropped; use '\\ ' to keep it
    - Backslash escapes (\\t, \\n, \\=, \\:, \\\\, ...) are unescaped

    Line continuations are not supported.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Properties file not found: {file_path}")
    if file_path.is_dir():
        raise IsADirectoryError(f"Expected a properties file but found a directory: {file_path}")

    props: dict[str, str] = {}
    for raw_line in file_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.lstrip(" \t\f")
        if not line or line[0] in "#!":
            continue
        key, value = _split_entry(line)
        key = _unescape(key)
        if not key:
            continue
        props[key] = _unescape(value)
    return props


@dataclass(frozen=True)
class SessionConfig:
    server_endpoint: str
    platform_name: Optional[str]
    automation_name: Optional[str]
    device_name: Optional[str]
    app_package: Optional[str]
    app_wait_activity: Optional[str]
    implicit_wait_s: int = DEFAULT_IMPLICIT_WAIT_S


class ConfigReader:
    """
    Holds the currently loaded properties file.

    A test may swap in another file with `load_test_properties()` and must
    restore the default with `reset_to_default()` afterwards.
    """

    def __init__(self, default_path: Optional[str | Path] = None) -> None:
        self.default_path = Path(default_path) if default_path is not None else default_config_path()
        self._lock = threading.Lock()
        self._properties: dict[str, str] = {}
        self._current_path = self.default_path
        self._load(self.default_path)

    @property
    def current_path(self) -> Path:
        return self._current_path

    def _load(self, path: Path) -> None:
        logger.info("Loading properties from %s", path)
        properties = read_properties(path)
        with self._lock:
            self._properties = properties
            self._current_path = path
        logger.debug("Loaded %d properties from %s", len(properties), path)

    def load_test_properties(self, path: str | Path) -> None:
        logger.warning("Loading test properties from %s", path)
        self._load(Path(path))

    def reset_to_default(self) -> None:
        if self._current_path == self.default_path:
            logger.debug("Default properties already loaded")
            return
        logger.warning("Restoring default properties from %s", self.default_path)
        self._load(self.default_path)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            value = self._properties.get(key)
            current = self._current_path
        if value is None:
            logger.warning("Property %r not found in %s", key, current)
            return default
        return value

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key)
        if value is None:
            return default
        if not value.strip():
            logger.warning("Property %r is blank in %s, using default %d", key, self._current_path, default)
            return default
        try:
            return int(value.strip())
        except ValueError:
            logger.warning(
                "Property %r (%r) in %s is not an integer, using default %d",
                key,
                value,
                self._current_path,
                default,
            )
            return default

    @property
    def platform_name(self) -> Optional[str]:
        return self.get(PLATFORM_NAME)

    @property
    def automation_name(self) -> Optional[str]:
        return self.get(AUTOMATION_NAME)

    @property
    def device_name(self) -> Optional[str]:
        return self.get(DEVICE_NAME)

    @property
    def app_package(self) -> Optional[str]:
        return self.get(APP_PACKAGE)

    @property
    def app_wait_activity(self) -> Optional[str]:
        return self.get(APP_WAIT_ACTIVITY)

    @property
    def implicit_wait_s(self) -> int:
        seconds = self.get_int(IMPLICIT_WAIT, DEFAULT_IMPLICIT_WAIT_S)
        if seconds < 0:
            logger.warning("Negative %s (%d), using default %d", IMPLICIT_WAIT, seconds, DEFAULT_IMPLICIT_WAIT_S)
            return DEFAULT_IMPLICIT_WAIT_S
        return seconds

    @property
    def appium_server_url(self) -> str:
        return self.get(APPIUM_SERVER_URL, DEFAULT_APPIUM_SERVER_URL) or DEFAULT_APPIUM_SERVER_URL

    def session_config(self) -> SessionConfig:
        return SessionConfig(
            server_endpoint=self.appium_server_url,
            platform_name=self.platform_name,
            automation_name=self.automation_name,
            device_name=self.device_name,
            app_package=self.app_package,
            app_wait_activity=self.app_wait_activity,
            implicit_wait_s=self.implicit_wait_s,
        )


_reader: Optional[ConfigReader] = None
_reader_lock = threading.Lock()


def get_config_reader() -> ConfigReader:
    """Return the process-wide reader, loading the default file on first use."""
    global _reader
    if _reader is None:
        with _reader_lock:
            if _reader is None:
                _reader = ConfigReader()
    return _reader
