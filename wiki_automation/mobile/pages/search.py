from __future__ import annotations

import logging
from typing import Any, Optional

from ..actions import ActionTimeoutError, CommonActions, Locator
from ..appium_http_client import AppiumHTTPError

logger = logging.getLogger(__name__)

SEARCH_CONTAINER = Locator.id("org.wikipedia.alpha:id/search_container")
ANNOUNCEMENT_CLOSE_BUTTON = Locator.id("org.wikipedia.alpha:id/view_announcement_action_negative")
SEARCH_INPUT = Locator.id("org.wikipedia.alpha:id/search_src_text")
CLOSE_BUTTON = Locator.id("org.wikipedia.alpha:id/search_close_btn")
RESULT_TITLES = Locator.id("org.wikipedia.alpha:id/page_list_item_title")
NO_RESULTS_MESSAGE = Locator.xpath(
    "//android.widget.TextView[contains(@text, 'No results') or contains(@text, 'no results')"
    " or contains(@text, 'nenhum resultado')]"
)


class SearchPage:
    def __init__(self, client: Any, *, actions: Optional[CommonActions] = None) -> None:
        self.client = client
        self.actions = actions or CommonActions(client)

    def close_banner_if_present(self) -> None:
        try:
            self.actions.click(ANNOUNCEMENT_CLOSE_BUTTON)
        except (ActionTimeoutError, AppiumHTTPError) as e:
            logger.info("No announcement banner closed: %s", e)
            return
        logger.info("Announcement banner closed")

    def activate_search(self) -> None:
        logger.info("Opening search")
        self.actions.click(SEARCH_CONTAINER)

    def type_search(self, text: str) -> None:
        logger.info("Searching for %r", text)
        self.actions.input_text(SEARCH_INPUT, text)

    def search_for(self, text: str) -> None:
        self.activate_search()
        self.type_search(text)

    def clear_search(self) -> None:
        self.actions.click(CLOSE_BUTTON)

    def click_result(self, index: int) -> None:
        results = self.actions.find_all(RESULT_TITLES)
        if not results:
            raise LookupError("No search results to click")
        if index < 0 or index >= len(results):
            raise IndexError(f"Result index {index} out of range, {len(results)} result(s) shown")
        result = results[index]
        logger.info("Opening result [%d]: %s", index, self.client.get_element_text(result))
        self.actions.click_element(result)

    def has_results(self) -> bool:
        return self.actions.is_present(RESULT_TITLES)

    def is_no_results_message_displayed(self) -> bool:
        try:
            text = self.actions.get_text(NO_RESULTS_MESSAGE)
        except (ActionTimeoutError, AppiumHTTPError) as e:
            logger.info("'No results' message not shown: %s", e)
            return False
        logger.info("'No results' message shown: %r", text)
        return True
