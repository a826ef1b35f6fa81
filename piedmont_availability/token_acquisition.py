"""Obtain a Booker access token by watching the public booking page's own traffic.

Booker has no public credential endpoint. The booking web app bootstraps a
short-lived bearer token and sends it as an ``access_token`` query parameter
on its API calls, so we load the page in a headless browser and read the
token off the first such request.
"""

import logging
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

from piedmont_availability import config
from piedmont_availability.errors import AcquisitionTimeout, AcquisitionUnavailable

logger = logging.getLogger(__name__)

API_HOST = urlparse(config.BASE_API_URL).netloc


def _load_playwright():
    """Imports Playwright on first use so hosts without it can still run on BOOKER_TOKEN."""
    try:
        from playwright.sync_api import Error, sync_playwright
    except ImportError as e:
        raise AcquisitionUnavailable(f"Playwright is not installed: {e}") from e
    return sync_playwright, Error


def extract_access_token(url: str, api_host: Optional[str] = API_HOST) -> Optional[str]:
    """Returns the access_token query value of a request URL, or None.

    Only requests to ``api_host`` count; pass ``None`` to accept any host.
    """
    parsed = urlparse(url)
    if api_host and parsed.netloc != api_host:
        return None
    values = parse_qs(parsed.query).get("access_token")
    if values and values[0]:
        return values[0]
    return None


class BrowserTokenAcquirer:
    """Callable token source backed by a fresh headless Chromium per call."""

    def __init__(
        self,
        booking_url: str = config.BOOKING_URL,
        api_host: Optional[str] = API_HOST,
        user_agent: str = config.USER_AGENT,
        headless: bool = config.HEADLESS,
        navigation_timeout_ms: int = config.NAVIGATION_TIMEOUT_MS,
        poll_interval_ms: int = config.TOKEN_POLL_INTERVAL_MS,
        poll_attempts: int = config.TOKEN_POLL_ATTEMPTS,
    ):
        self.booking_url = booking_url
        self.api_host = api_host
        self.user_agent = user_agent
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self.poll_attempts = poll_attempts

    def __call__(self) -> str:
        return self.acquire()

    def acquire(self) -> str:
        """Launches a browser, loads the booking page and returns the first token seen.

        Raises:
            AcquisitionUnavailable: Playwright or its browser cannot start here.
            AcquisitionTimeout: the page never sent a token within the polling budget.
        """
        sync_playwright, PlaywrightError = _load_playwright()

        logger.info("Launching browser to obtain access token...")
        try:
            playwright = sync_playwright().start()
        except (PlaywrightError, OSError) as e:
            raise AcquisitionUnavailable(f"Playwright driver could not start: {e}") from e

        try:
            try:
                browser = playwright.chromium.launch(headless=self.headless)
            except PlaywrightError as e:
                raise AcquisitionUnavailable(f"Browser runtime unavailable: {e}") from e

            try:
                token = self._capture_token(browser, PlaywrightError)
            finally:
                browser.close()
        finally:
            playwright.stop()

        if not token:
            raise AcquisitionTimeout(
                f"No access token observed from {self.booking_url} "
                f"after {self.poll_attempts * self.poll_interval_ms} ms"
            )
        return token

    def _capture_token(self, browser, PlaywrightError) -> Optional[str]:
        captured: List[str] = []

        def on_request(request) -> None:
            # First token wins: it comes from the page's own bootstrap call
            if captured:
                return
            token = extract_access_token(request.url, self.api_host)
            if token:
                captured.append(token)
                logger.info("Access token captured")

        try:
            context = browser.new_context(user_agent=self.user_agent)
            page = context.new_page()
        except PlaywrightError as e:
            raise AcquisitionUnavailable(f"Browser could not open a page: {e}") from e
        page.on("request", on_request)

        logger.info(f"Loading booking site {self.booking_url}")
        try:
            page.goto(self.booking_url, timeout=self.navigation_timeout_ms, wait_until="domcontentloaded")
        except PlaywrightError as e:
            # The token request may still have fired before the error
            logger.warning(f"Navigation warning: {e}")

        try:
            for attempt in range(self.poll_attempts):
                if captured:
                    break
                page.wait_for_timeout(self.poll_interval_ms)
                logger.debug(f"Waiting for token, attempt {attempt + 1}/{self.poll_attempts}")
            page.remove_listener("request", on_request)
        except PlaywrightError as e:
            logger.warning(f"Page closed while waiting for token: {e}")

        return captured[0] if captured else None


def acquire() -> str:
    """Acquires a token with the configured defaults."""
    return BrowserTokenAcquirer().acquire()
