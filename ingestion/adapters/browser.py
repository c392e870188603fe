"""
Headless-browser adapter base for portals with no machine-readable API.

Each fetch owns one Chromium instance from launch to close. Page timeouts
are applied by the browser itself, separately from the retry backoff, so
a hung page fails out instead of blocking the run.
"""

from abc import abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional
from playwright.async_api import (
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)
from core.config import settings
from core.exceptions import TransientNetworkError
from ingestion.base import SourceAdapter
from models.base import AdapterType
from schemas.ingestion import CursorState, FetchResult
import logging

logger = logging.getLogger(__name__)


class BrowserScraperAdapter(SourceAdapter):
    """
    Base class for Playwright-driven scrapers.

    Subclasses implement scrape(page, cursor) and, optionally,
    check_page(page) for health checks. Navigation timeouts and browser
    errors surface as TransientNetworkError so the whole fetch is retried.

    Config:
        timeout: page/action timeout in milliseconds
        batchSize: soft cap on records per fetch
        pageDelayMs: pause between page visits
    """

    adapter_type = AdapterType.SCRAPER
    scraper_name: str = ""
    default_batch_size = 50

    def parse_config(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return {
            **raw,
            "timeout": int(raw.get("timeout") or settings.BROWSER_TIMEOUT_MS),
            "batchSize": int(raw.get("batchSize") or self.default_batch_size),
            "pageDelayMs": int(raw.get("pageDelayMs", 300)),
            "headless": bool(raw.get("headless", settings.BROWSER_HEADLESS)),
        }

    @asynccontextmanager
    async def _open_page(self) -> AsyncIterator[Page]:
        """Launch a browser, yield one page, and always close the browser."""
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=self.config["headless"])
            try:
                context = await browser.new_context(user_agent=settings.BROWSER_USER_AGENT)
                page = await context.new_page()
                page.set_default_timeout(self.config["timeout"])
                page.set_default_navigation_timeout(self.config["timeout"])
                yield page
            finally:
                await browser.close()

    async def fetch(self, cursor: Optional[CursorState]) -> FetchResult:
        return await self._with_retry(
            lambda: self._fetch_once(cursor),
            description=f"scrape {self.scraper_name or self.source.endpoint}",
        )

    async def _fetch_once(self, cursor: Optional[CursorState]) -> FetchResult:
        try:
            async with self._open_page() as page:
                return await self.scrape(page, cursor)

        except PlaywrightTimeoutError as e:
            raise TransientNetworkError(
                f"Browser timeout scraping {self.source.endpoint}",
                context={"source_id": self.source.id, "timeout_ms": self.config["timeout"]},
                original_exception=e,
            )

        except PlaywrightError as e:
            raise TransientNetworkError(
                f"Browser error scraping {self.source.endpoint}",
                context={"source_id": self.source.id},
                original_exception=e,
            )

    @abstractmethod
    async def scrape(self, page: Page, cursor: Optional[CursorState]) -> FetchResult:
        """Drive the page from cursor and return one batch."""
        pass

    async def check_page(self, page: Page) -> bool:
        response = await page.goto(self.source.endpoint, wait_until="domcontentloaded")
        return response is not None and response.ok

    async def health_check(self) -> bool:
        try:
            async with self._open_page() as page:
                return await self.check_page(page)
        except PlaywrightError as e:
            logger.warning(f"Health check failed for {self.source.endpoint}: {e}")
            return False
