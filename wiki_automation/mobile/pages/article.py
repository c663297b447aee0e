from __future__ import annotations

import logging
import time
from typing import Any, Optional

from ..actions import ActionTimeoutError, CommonActions, Locator
from ..appium_http_client import AppiumHTTPError

logger = logging.getLogger(__name__)

# The title TextView has no resource id; the first locator pins it by position.
TITLE_LOCATORS = (
    Locator.xpath("//android.widget.TextView[@bounds='[42,342][916,436]']"),
    Locator.xpath("//android.widget.TextView[contains(@text, 'Appium') or contains(@text, 'appium')]"),
    Locator.xpath("//android.widget.TextView[@index='0' and @package='org.wikipedia.alpha']"),
)
SAVE_BUTTON = Locator.id("org.wikipedia.alpha:id/page_save")
NAVIGATE_UP_BUTTON = Locator.xpath("//android.widget.ImageButton[@content-desc='Navigate up']")
BANNER_CLOSE_BUTTON = Locator.xpath("//android.widget.ImageView[@content-desc='Close']")
PLAY_GAME_BUTTON = Locator.id("org.wikipedia:id/playGameButton")

BANNER_SETTLE_S = 0.5


class ArticlePage:
    def __init__(
        self,
        client: Any,
        *,
        actions: Optional[CommonActions] = None,
        settle_s: float = BANNER_SETTLE_S,
    ) -> None:
        self.client = client
        self.actions = actions or CommonActions(client)
        self.settle_s = settle_s

    def _is_displayed(self, locator: Locator) -> bool:
        try:
            return any(self.client.is_element_displayed(el) for el in self.actions.find_all(locator))
        except AppiumHTTPError:
            return False

    def _settle(self) -> None:
        if self.settle_s > 0:
            time.sleep(self.settle_s)

    def dismiss_banner(self) -> Optional[str]:
        """
        Get the "today's game" banner out of the way before touching the article.

        Tries the close button, then the play button, then a swipe. Returns the
        strategy that worked, or None if every attempt failed.
        """
        for name, locator in (("close", BANNER_CLOSE_BUTTON), ("play_game", PLAY_GAME_BUTTON)):
            if not self._is_displayed(locator):
                continue
            try:
                self.actions.click(locator)
            except (ActionTimeoutError, AppiumHTTPError) as e:
                logger.info("Banner %s button failed: %s", name, e)
                continue
            self._settle()
            logger.info("Banner dismissed via %s button", name)
            return name

        try:
            self.actions.swipe()
        except AppiumHTTPError as e:
            logger.info("Banner swipe failed: %s", e)
            return None
        self._settle()
        logger.info("Banner dismissed via swipe")
        return "swipe"

    def get_article_title(self) -> str:
        self.dismiss_banner()
        self._settle()

        for idx, locator in enumerate(TITLE_LOCATORS, 1):
            try:
                return self.actions.get_text(locator)
            except (ActionTimeoutError, AppiumHTTPError) as e:
                logger.debug("Title locator %d/%d (%s) failed: %s", idx, len(TITLE_LOCATORS), locator, e)

        raise LookupError("Article title not found with any known locator")

    def is_title_correct(self, expected_text: str) -> bool:
        title = self.get_article_title()
        return expected_text.lower() in title.lower()

    def click_save_article(self) -> None:
        self.dismiss_banner()
        self.actions.click(SAVE_BUTTON)

    def navigate_back(self) -> None:
        logger.info("Navigating back")
        self.actions.click(NAVIGATE_UP_BUTTON)
