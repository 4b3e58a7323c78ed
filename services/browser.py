from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from playwright.sync_api import Page, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from config.settings import Settings, get_settings


logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class PlaywrightSurface:
    """Login-flow automation surface backed by one Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    def open(self, url: str) -> None:
        self.page.goto(url, wait_until="domcontentloaded")

    def current_url(self) -> str:
        return self.page.url

    def wait_for_url(self, predicate: Callable[[str], bool], timeout_seconds: float) -> bool:
        try:
            self.page.wait_for_url(predicate, timeout=max(1, int(timeout_seconds * 1000)))
            return True
        except PlaywrightTimeoutError:
            return False

    def cookies(self) -> List[Dict[str, Any]]:
        return list(self.page.context.cookies())


@contextmanager
def playwright_surface(settings: Optional[Settings] = None) -> Iterator[PlaywrightSurface]:
    """Launch a visible Chromium for an interactive login.

    The browser is closed when the block exits, whatever the exit path.
    """
    settings = settings or get_settings()
    with sync_playwright() as p:
        logger.info("Launching browser for authentication", extra={"step": "browser.launch"})
        browser = p.chromium.launch(
            headless=settings.browser_headless,
            args=[
                "--start-maximized",
                "--no-sandbox",
                "--disable-setuid-sandbox",
                "--disable-blink-features=AutomationControlled",
            ],
        )
        try:
            context = browser.new_context(
                user_agent=USER_AGENT,
                viewport={"width": 1366, "height": 768},
            )
            page = context.new_page()
            yield PlaywrightSurface(page)
        finally:
            browser.close()
            logger.info("Browser closed", extra={"step": "browser.close"})
