"""
Lifecycle of remote Appium sessions, one per execution worker.

The manager is the only place sessions are created and released. Tests ask it
for a session in setup and release it in teardown; page objects only ever see
the handle it returns.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Hashable, Optional, Protocol
from urllib.parse import urlsplit

from .appium_http_client import AppiumHTTPError, create_appium_session
from .config import SessionConfig, get_config_reader

logger = logging.getLogger(__name__)

NEW_COMMAND_TIMEOUT_S = 3600


class SessionManagerError(RuntimeError):
    pass


class ConfigurationError(SessionManagerError):
    """The configured Appium server endpoint is not a usable URL."""


class SessionCreationError(SessionManagerError):
    """The automation server refused or could not create the session."""


class UnexpectedInitializationError(SessionManagerError):
    """Anything else that went wrong while bringing a session up."""


class SessionRejectedError(RuntimeError):
    """
    Raised by a session factory when the automation backend refuses the session.

    The default factory raises AppiumHTTPError instead; the manager treats both
    the same way.
    """


class SessionHandle(Protocol):
    session_id: Optional[str]

    def set_implicit_wait(self, seconds: float) -> None: ...

    def close(self) -> None: ...


# (endpoint, new-session payload) -> handle. Raise SessionRejectedError (or
# AppiumHTTPError) when the server refuses; anything else is unexpected.
SessionFactory = Callable[[str, dict[str, Any]], SessionHandle]
ConfigProvider = Callable[[], SessionConfig]


def parse_server_url(raw: Optional[str]) -> str:
    """
    Validate an Appium server URL and return it without a trailing slash.

    Raises ValueError for anything that is not an absolute http(s) URL.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("server URL is empty")
    parts = urlsplit(raw.strip())
    if parts.scheme not in ("http", "https"):
        raise ValueError(f"unsupported or missing URL scheme in {raw!r}")
    if not parts.hostname:
        raise ValueError(f"missing host in {raw!r}")
    # .port raises ValueError for non-numeric or out-of-range ports
    if parts.port == 0:
        raise ValueError(f"port 0 is not a valid server port in {raw!r}")
    return parts.geturl().rstrip("/")


def build_capabilities(config: SessionConfig) -> dict[str, Any]:
    """Build the W3C new-session payload for a UiAutomator2 Android session."""
    always_match: dict[str, Any] = {}
    for key, value in (
        ("platformName", config.platform_name),
        ("appium:automationName", config.automation_name),
        ("appium:deviceName", config.device_name),
        ("appium:appPackage", config.app_package),
        ("appium:appWaitActivity", config.app_wait_activity),
    ):
        if value is not None and str(value).strip():
            always_match[key] = value
    always_match["appium:newCommandTimeout"] = NEW_COMMAND_TIMEOUT_S
    always_match["appium:noReset"] = False
    return {"capabilities": {"alwaysMatch": always_match, "firstMatch": [{}]}}


def _default_config() -> SessionConfig:
    return get_config_reader().session_config()


class SessionManager:
    """
    Creates, caches and tears down one session per execution worker.

    A worker is identified by the `worker_id` argument, or by the calling
    thread when it is omitted. Workers never see each other's sessions.
    """

    def __init__(
        self,
        *,
        config_provider: Optional[ConfigProvider] = None,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self._config_provider = config_provider or _default_config
        self._session_factory = session_factory or create_appium_session
        self._sessions: dict[Hashable, SessionHandle] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _worker(worker_id: Optional[Hashable]) -> Hashable:
        return threading.get_ident() if worker_id is None else worker_id

    def initialize(self, worker_id: Optional[Hashable] = None) -> SessionHandle:
        worker = self._worker(worker_id)
        with self._lock:
            cached = self._sessions.get(worker)
            if cached is not None:
                return cached

            config = self._config_provider()
            try:
                endpoint = parse_server_url(config.server_endpoint)
            except ValueError as e:
                logger.error("Invalid Appium server URL %r: %s", config.server_endpoint, e)
                raise ConfigurationError(f"Invalid Appium server URL {config.server_endpoint!r}") from e

            payload = build_capabilities(config)
            try:
                handle = self._session_factory(endpoint, payload)
            except (AppiumHTTPError, SessionRejectedError) as e:
                logger.error("Appium server at %s rejected the session: %s", endpoint, e)
                raise SessionCreationError(f"Could not create a session on {endpoint}: {e}") from e
            except Exception as e:
                logger.exception("Unexpected failure creating a session on %s", endpoint)
                raise UnexpectedInitializationError(f"Unexpected failure creating a session: {e}") from e

            try:
                handle.set_implicit_wait(config.implicit_wait_s)
            except Exception as e:
                logger.exception("Failed to configure implicit wait on session %s", handle.session_id)
                self._close_quietly(handle)
                raise UnexpectedInitializationError(f"Failed to configure implicit wait: {e}") from e

            self._sessions[worker] = handle
            logger.info("Android session initialized. Session ID: %s", handle.session_id)
            return handle

    def get_session(self, worker_id: Optional[Hashable] = None) -> Optional[SessionHandle]:
        with self._lock:
            return self._sessions.get(self._worker(worker_id))

    def set_session(self, handle: SessionHandle, worker_id: Optional[Hashable] = None) -> None:
        """Put a handle straight into the cache. Meant for tests."""
        with self._lock:
            self._sessions[self._worker(worker_id)] = handle

    def teardown(self, worker_id: Optional[Hashable] = None) -> None:
        with self._lock:
            handle = self._sessions.pop(self._worker(worker_id), None)
        if handle is None:
            return
        session_id = handle.session_id
        if self._close_quietly(handle):
            logger.info("Session %s closed", session_id)

    def teardown_all(self) -> None:
        """Release every cached session, e.g. at the end of a test run."""
        with self._lock:
            workers = list(self._sessions)
        for worker in workers:
            self.teardown(worker)

    def active_workers(self) -> list[Hashable]:
        with self._lock:
            return list(self._sessions)

    @staticmethod
    def _close_quietly(handle: SessionHandle) -> bool:
        session_id = handle.session_id
        try:
            handle.close()
        except Exception:
            logger.error("Error closing session %s", session_id, exc_info=True)
            return False
        return True


_manager: Optional[SessionManager] = None
_manager_lock = threading.Lock()


def get_session_manager() -> SessionManager:
    """Return the process-wide manager, creating it on first use."""
    global _manager
    if _manager is None:
        with _manager_lock:
            if _manager is None:
                _manager = SessionManager()
    return _manager
