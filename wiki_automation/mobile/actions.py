from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from .appium_http_client import AppiumHTTPError, WebDriverElementRef

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_POLL_S = 0.5
SWIPE_DURATION_MS = 800

T = TypeVar("T")


class ActionTimeoutError(RuntimeError):
    pass


@dataclass(frozen=True)
class Locator:
    using: str
    value: str

    @classmethod
    def id(cls, resource_id: str) -> "Locator":
        return cls("id", resource_id)

    @classmethod
    def xpath(cls, expression: str) -> "Locator":
        return cls("xpath", expression)

    @classmethod
    def accessibility_id(cls, desc: str) -> "Locator":
        return cls("accessibility id", desc)

    def __str__(self) -> str:
        return f"{self.using}={self.value!r}"


class CommonActions:
    """
    Element interactions with explicit polling waits.

    `client` is anything exposing the AppiumHTTPClient element API
    (find_elements, is_element_displayed, click, ...).
    """

    def __init__(self, client: Any, *, timeout_s: float = DEFAULT_TIMEOUT_S, poll_s: float = DEFAULT_POLL_S) -> None:
        if client is None:
            raise ValueError("client must not be None")
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {timeout_s}")
        if poll_s <= 0:
            raise ValueError(f"poll_s must be > 0, got {poll_s}")
        self.client = client
        self.timeout_s = timeout_s
        self.poll_s = poll_s

    def _wait_until(self, condition: Callable[[], Optional[T]], *, description: str) -> T:
        deadline = time.monotonic() + self.timeout_s
        while True:
            result = condition()
            if result is not None:
                return result
            if time.monotonic() >= deadline:
                raise ActionTimeoutError(f"Timed out after {self.timeout_s}s waiting for {description}")
            time.sleep(self.poll_s)

    def find_all(self, locator: Locator) -> list[WebDriverElementRef]:
        return self.client.find_elements(using=locator.using, value=locator.value)

    def is_present(self, locator: Locator) -> bool:
        return bool(self.find_all(locator))

    def _first_matching(self, locator: Locator, *, require_enabled: bool) -> Optional[WebDriverElementRef]:
        for element in self.find_all(locator):
            try:
                if not self.client.is_element_displayed(element):
                    continue
                if require_enabled and not self.client.is_element_enabled(element):
                    continue
            except AppiumHTTPError as e:
                # stale or detached element; the next poll looks it up again
                logger.debug("Skipping %s element %s: %s", locator, element.element_id, e)
                continue
            return element
        return None

    def wait_for_visible(self, locator: Locator) -> WebDriverElementRef:
        logger.debug("Waiting for %s to be visible", locator)
        element = self._wait_until(
            lambda: self._first_matching(locator, require_enabled=False),
            description=f"{locator} to be visible",
        )
        logger.debug("%s is visible", locator)
        return element

    def wait_for_clickable(self, locator: Locator) -> WebDriverElementRef:
        return self._wait_until(
            lambda: self._first_matching(locator, require_enabled=True),
            description=f"{locator} to be clickable",
        )

    def click(self, locator: Locator) -> None:
        element = self.wait_for_clickable(locator)
        self.click_element(element)
        logger.info("Clicked %s", locator)

    def click_element(self, element: WebDriverElementRef) -> None:
        self.client.click(element)

    def input_text(self, locator: Locator, text: str) -> None:
        if not text:
            raise ValueError("text must be a non-empty string")
        element = self.wait_for_visible(locator)
        self.client.clear(element)
        self.client.send_keys(element, text=text)
        logger.info("Typed %r into %s", text, locator)

    def get_text(self, locator: Locator) -> str:
        element = self.wait_for_visible(locator)
        text = self.client.get_element_text(element)
        logger.info("Read %r from %s", text, locator)
        return text

    def swipe(self) -> None:
        """Vertical scroll-down swipe from 80% to 20% of the window height."""
        rect = self.client.get_window_rect()
        start_x = rect["x"] + rect["width"] // 2
        start_y = rect["y"] + int(rect["height"] * 0.8)
        end_y = rect["y"] + int(rect["height"] * 0.2)
        self.swipe_between(start_x, start_y, start_x, end_y)

    def swipe_between(self, start_x: int, start_y: int, end_x: int, end_y: int) -> None:
        if min(start_x, start_y, end_x, end_y) < 0:
            raise ValueError(f"coordinates must be >= 0: ({start_x},{start_y}) -> ({end_x},{end_y})")
        logger.debug("Swiping (%d, %d) -> (%d, %d)", start_x, start_y, end_x, end_y)
        self.client.swipe(x1=start_x, y1=start_y, x2=end_x, y2=end_y, duration_ms=SWIPE_DURATION_MS)
