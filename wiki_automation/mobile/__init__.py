"""
Appium session lifecycle, element actions and page objects.

Sessions are only ever obtained from a SessionManager; everything else takes
the handle it returns.
"""

from .actions import ActionTimeoutError, CommonActions, Locator
from .appium_http_client import AppiumHTTPClient, AppiumHTTPError, WebDriverElementRef, create_appium_session
from .config import ConfigReader, SessionConfig, get_config_reader
from .evidence import EvidenceRecorder
from .session_manager import (
    ConfigurationError,
    SessionCreationError,
    SessionManager,
    SessionManagerError,
    SessionRejectedError,
    UnexpectedInitializationError,
    get_session_manager,
)

__all__ = [
    "ActionTimeoutError",
    "AppiumHTTPClient",
    "AppiumHTTPError",
    "CommonActions",
    "ConfigReader",
    "ConfigurationError",
    "EvidenceRecorder",
    "Locator",
    "SessionConfig",
    "SessionCreationError",
    "SessionManager",
    "SessionManagerError",
    "SessionRejectedError",
    "UnexpectedInitializationError",
    "WebDriverElementRef",
    "create_appium_session",
    "get_config_reader",
    "get_session_manager",
]
