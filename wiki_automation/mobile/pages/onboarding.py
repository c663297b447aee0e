from __future__ import annotations

import logging
from typing import Any, Optional

from ..actions import ActionTimeoutError, CommonActions, Locator

logger = logging.getLogger(__name__)

SKIP_BUTTON = Locator.id("org.wikipedia.alpha:id/fragment_onboarding_skip_button")
CONTINUE_BUTTON = Locator.id("org.wikipedia.alpha:id/fragment_onboarding_forward_button")
GET_STARTED_BUTTON = Locator.id("org.wikipedia.alpha:id/fragment_onboarding_done_button")


class OnboardingPage:
    def __init__(self, client: Any, *, actions: Optional[CommonActions] = None) -> None:
        self.client = client
        self.actions = actions or CommonActions(client)

    def click_skip(self) -> None:
        logger.info("Skipping onboarding")
        self.actions.click(SKIP_BUTTON)

    def click_continue(self) -> None:
        self.actions.click(CONTINUE_BUTTON)

    def click_get_started(self) -> None:
        logger.info("Clicking Get Started")
        self.actions.click(GET_STARTED_BUTTON)

    def skip_onboarding_if_present(self) -> bool:
        """
        Skip the onboarding carousel when it is showing.

        Returns False when the skip button never appears, which usually means
        the app already went past onboarding.
        """
        try:
            self.actions.wait_for_visible(SKIP_BUTTON)
        except ActionTimeoutError:
            logger.info("Onboarding not shown")
            return False
        self.click_skip()
        return True
