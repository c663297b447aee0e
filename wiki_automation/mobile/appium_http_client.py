from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"


class AppiumHTTPError(RuntimeError):
    def __init__(
        self,
        *,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response_json: Optional[dict[str, Any]] = None,
        response_text: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_json = response_json
        self.response_text = response_text


@dataclass(frozen=True)
class WebDriverElementRef:
    element_id: str


def _extract_webdriver_value(payload: dict[str, Any]) -> Any:
    # W3C responses wrap the result in {"value": ...}
    if "value" in payload:
        return payload["value"]
    return payload


def _extract_element_id(element_obj: Any) -> str:
    if not isinstance(element_obj, dict):
        raise ValueError(f"Unexpected element payload type: {type(element_obj)}")

    if element_obj.get(W3C_ELEMENT_KEY):
        return str(element_obj[W3C_ELEMENT_KEY])

    # Legacy JSONWire key
    if element_obj.get("ELEMENT"):
        return str(element_obj["ELEMENT"])

    raise ValueError(f"Could not extract element id from payload keys: {list(element_obj.keys())}")


class AppiumHTTPClient:
    """
    Appium client speaking the W3C WebDriver HTTP protocol through `requests`.

    One instance owns at most one remote session. It doubles as the session
    handle returned by the default session factory: it exposes `session_id`,
    `set_implicit_wait()` and `close()`.
    """

    def __init__(self, server_url: str, *, timeout_s: float = 30.0) -> None:
        if not server_url:
            raise ValueError("server_url is required")
        self.server_url = server_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session_id: Optional[str] = None
        self._session = requests.Session()

    def __repr__(self) -> str:
        return f"AppiumHTTPClient(server_url={self.server_url!r}, session_id={self.session_id!r})"

    def _request(self, method: str, path: str, *, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = f"{self.server_url}{path}"
        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise AppiumHTTPError(
                message=f"Failed to call Appium server: {e}",
                method=method,
                url=url,
            ) from e

        response_text = None
        response_json: Optional[dict[str, Any]] = None
        try:
            response_json = response.json()
        except ValueError:
            response_text = response.text

        if response.status_code >= 400:
            details = None
            if response_json is not None:
                value = _extract_webdriver_value(response_json)
                if isinstance(value, dict):
                    details = value.get("message") or value.get("error")
            raise AppiumHTTPError(
                message=f"Appium HTTP {response.status_code} for {method} {path}"
                + (f": {details}" if details else ""),
                method=method,
                url=url,
                status_code=response.status_code,
                response_json=response_json,
                response_text=response_text,
            )

        if response_json is None:
            raise AppiumHTTPError(
                message=f"Appium returned non-JSON response for {method} {path}",
                method=method,
                url=url,
                status_code=response.status_code,
                response_text=response_text,
            )

        return response_json

    def _session_path(self, suffix: str = "") -> str:
        if not self.session_id:
            raise RuntimeError("No active Appium session. Call create_session() first.")
        return f"/session/{self.session_id}{suffix}"

    def _session_value(self, method: str, suffix: str, *, json: Optional[dict[str, Any]] = None) -> Any:
        path = self._session_path(suffix)
        return _extract_webdriver_value(self._request(method, path, json=json))

    def _unexpected_shape(self, method: str, suffix: str, expected: str, response: Any) -> AppiumHTTPError:
        return AppiumHTTPError(
            message=f"Unexpected {suffix or '/'} response shape (expected {expected})",
            method=method,
            url=f"{self.server_url}{self._session_path(suffix)}",
            response_json=response if isinstance(response, dict) else {"value": response},
        )

    def create_session(self, session_payload: dict[str, Any]) -> str:
        """
        Create an Appium session.

        `session_payload` must be a W3C new-session payload:
          {"capabilities": {"alwaysMatch": {...}, "firstMatch": [{}]}}
        """
        if not isinstance(session_payload, dict) or not session_payload:
            raise ValueError("session_payload must be a non-empty dict")

        response = self._request("POST", "/session", json=session_payload)

        # Both {"value": {"sessionId": ...}} and legacy {"sessionId": ...} are seen in the wild.
        value = _extract_webdriver_value(response)
        session_id = None
        if isinstance(value, dict):
            session_id = value.get("sessionId")
        session_id = session_id or response.get("sessionId")

        if not session_id:
            raise AppiumHTTPError(
                message="Appium did not return a sessionId in the create_session response",
                method="POST",
                url=f"{self.server_url}/session",
                response_json=response,
            )

        self.session_id = str(session_id)
        return self.session_id

    def delete_session(self) -> None:
        if not self.session_id:
            return
        path = self._session_path()
        try:
            self._request("DELETE", path)
        finally:
            self.session_id = None

    def close(self) -> None:
        try:
            self.delete_session()
        finally:
            self._session.close()

    def set_implicit_wait(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("implicit wait must be >= 0")
        self._session_value("POST", "/timeouts", json={"implicit": int(seconds * 1000)})

    def get_page_source(self) -> str:
        value = self._session_value("GET", "/source")
        if not isinstance(value, str):
            raise self._unexpected_shape("GET", "/source", "string", value)
        return value

    def get_screenshot_base64(self) -> str:
        value = self._session_value("GET", "/screenshot")
        if not isinstance(value, str):
            raise self._unexpected_shape("GET", "/screenshot", "base64 string", value)
        return value

    def get_window_rect(self) -> dict[str, int]:
        value = self._session_value("GET", "/window/rect")
        required = {"x", "y", "width", "height"}
        if not isinstance(value, dict) or not required.issubset(value.keys()):
            raise self._unexpected_shape("GET", "/window/rect", f"object with {sorted(required)}", value)
        return {k: int(value[k]) for k in required}

    def find_elements(self, *, using: str, value: str) -> list[WebDriverElementRef]:
        if not using or not value:
            raise ValueError("'using' and 'value' are required to find elements")
        payload = self._session_value("POST", "/elements", json={"using": using, "value": value})
        if not isinstance(payload, list):
            raise self._unexpected_shape("POST", "/elements", "list", payload)
        return [WebDriverElementRef(element_id=_extract_element_id(item)) for item in payload]

    def get_element_text(self, element: WebDriverElementRef) -> str:
        suffix = f"/element/{element.element_id}/text"
        value = self._session_value("GET", suffix)
        if not isinstance(value, str):
            raise self._unexpected_shape("GET", suffix, "string", value)
        return value

    def is_element_displayed(self, element: WebDriverElementRef) -> bool:
        return bool(self._session_value("GET", f"/element/{element.element_id}/displayed"))

    def is_element_enabled(self, element: WebDriverElementRef) -> bool:
        return bool(self._session_value("GET", f"/element/{element.element_id}/enabled"))

    def clear(self, element: WebDriverElementRef) -> None:
        self._session_value("POST", f"/element/{element.element_id}/clear", json={})

    def click(self, element: WebDriverElementRef) -> None:
        self._session_value("POST", f"/element/{element.element_id}/click", json={})

    def send_keys(self, element: WebDriverElementRef, *, text: str) -> None:
        if text is None:
            raise ValueError("text must not be None")
        # Older servers read `value` as a list of characters, newer ones read `text`.
        self._session_value(
            "POST",
            f"/element/{element.element_id}/value",
            json={"text": text, "value": list(text)},
        )

    def perform_actions(self, actions: list[dict[str, Any]]) -> None:
        self._session_value("POST", "/actions", json={"actions": actions})

    def tap(self, *, x: int, y: int) -> None:
        self.perform_actions(
            [
                {
                    "type": "pointer",
                    "id": "finger",
                    "parameters": {"pointerType": "touch"},
                    "actions": [
                        {"type": "pointerMove", "duration": 0, "origin": "viewport", "x": x, "y": y},
                        {"type": "pointerDown", "button": 0},
                        {"type": "pause", "duration": 100},
                        {"type": "pointerUp", "button": 0},
                    ],
                }
            ]
        )

    def swipe(self, *, x1: int, y1: int, x2: int, y2: int, duration_ms: int = 600) -> None:
        self.perform_actions(
            [
                {
                    "type": "pointer",
                    "id": "finger",
                    "parameters": {"pointerType": "touch"},
                    "actions": [
                        {"type": "pointerMove", "duration": 0, "origin": "viewport", "x": x1, "y": y1},
                        {"type": "pointerDown", "button": 0},
                        {"type": "pointerMove", "duration": duration_ms, "origin": "viewport", "x": x2, "y": y2},
                        {"type": "pointerUp", "button": 0},
                    ],
                }
            ]
        )

    def start_recording_screen(self) -> None:
        self._session_value("POST", "/appium/start_recording_screen", json={"options": {}})

    def stop_recording_screen(self) -> str:
        suffix = "/appium/stop_recording_screen"
        value = self._session_value("POST", suffix, json={"options": {}})
        if not isinstance(value, str):
            raise self._unexpected_shape("POST", suffix, "base64 string", value)
        return value


def create_appium_session(server_url: str, session_payload: dict[str, Any]) -> AppiumHTTPClient:
    """Default session factory: open a new remote session and return its client."""
    client = AppiumHTTPClient(server_url)
    try:
        session_id = client.create_session(session_payload)
    except Exception:
        client._session.close()
        raise
    logger.debug("Appium session %s created at %s", session_id, server_url)
    return client
