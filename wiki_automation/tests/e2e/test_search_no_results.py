from __future__ import annotations

import logging
import os
import time
import uuid

import pytest

from wiki_automation.mobile.pages import OnboardingPage, SearchPage

pytestmark = [
    pytest.mark.e2e,
    pytest.mark.skipif(os.environ.get("WIKI_E2E") != "1", reason="set WIKI_E2E=1 to drive a device"),
]

logger = logging.getLogger(__name__)

SEARCH_SETTLE_S = 1.5


@pytest.fixture()
def missing_term() -> str:
    term = f"NoResults_{uuid.uuid4().hex[:8]}"
    logger.info("Generated search term %s", term)
    return term


def test_search_without_results_shows_message(driver, evidence, missing_term):
    """TC02: a term no article matches yields no results and the 'No results' message."""
    OnboardingPage(driver).skip_onboarding_if_present()
    search = SearchPage(driver)
    search.close_banner_if_present()

    search.activate_search()
    search.type_search(missing_term)
    # let the app finish the remote search
    time.sleep(SEARCH_SETTLE_S)

    assert not search.has_results(), f"expected no results for {missing_term!r}"
    assert search.is_no_results_message_displayed(), f"'No results' message missing for {missing_term!r}"
    evidence.take_screenshot(f"TC02_no_results_{missing_term}")
