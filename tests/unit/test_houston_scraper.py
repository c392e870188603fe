"""
Unit tests for the Houston portal scraper, driven by a fake Playwright page
"""

import pytest
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from core.exceptions import TransientNetworkError
from ingestion.adapters.houston_scraper import (
    HoustonScraperAdapter,
    make_cursor,
    parse_cursor,
    parse_demographic,
    parse_facility_links,
    parse_facility_page,
)
from ingestion.retry import RetryPolicy
from models.base import AdapterType
from schemas.ingestion import CursorState

BASE_URL = "https://tx.healthinspections.us/houston"

FACILITY_BODY = (
    "Galleria Towers Pool\n"
    "Date: 03/15/2024\n"
    "5.01 Water clarity - cloudy\n"
    "5.12 Missing depth markers\n"
    "View Full Report\n"
    "Date: 01/10/2024\n"
    "No violations observed\n"
)


class FakeLocator:
    def __init__(self, matches=0, text=None):
        self.matches = matches
        self.text = text

    @property
    def first(self):
        return self

    async def count(self):
        return self.matches

    async def text_content(self):
        return self.text


class FakePage:
    """Just enough of playwright's Page for HoustonScraperAdapter.scrape"""

    def __init__(self, search_links, facilities, next_link=False, goto_error=None):
        self.search_links = search_links
        self.facilities = facilities
        self.next_link = next_link
        self.goto_error = goto_error
        self.visited = []
        self.current_facility = None

    async def goto(self, url, wait_until=None):
        if self.goto_error:
            raise self.goto_error
        self.visited.append(url)
        self.current_facility = url.split("facilityID=")[1] if "estab.cfm" in url else None

    async def eval_on_selector_all(self, selector, script):
        if "inspectionID" in selector:
            return self.facilities[self.current_facility]["hrefs"]
        return self.search_links

    def locator(self, selector):
        if selector == "#demographic":
            text = self.facilities[self.current_facility]["demographic"]
            return FakeLocator(1 if text else 0, text)
        return FakeLocator(1 if self.next_link else 0)

    async def inner_text(self, selector):
        return self.facilities[self.current_facility]["body"]

    async def wait_for_timeout(self, ms):
        pass


def facility(body="Date: 02/01/2024\nNo violations\n", demographic="POOL\n1 MAIN ST\nHOUSTON, TX 77002", hrefs=None):
    return {"body": body, "demographic": demographic, "hrefs": hrefs or []}


def make_adapter(source_config, page, batch_size=50, retry_policy=None):
    source = source_config(
        jurisdiction_slug="houston-tx",
        adapter_type=AdapterType.SCRAPER,
        endpoint=BASE_URL,
        config={"scraper": "houston", "batchSize": batch_size, "pageDelayMs": 0},
    )
    adapter = HoustonScraperAdapter(source, retry_policy=retry_policy, sleep=AsyncMock())

    @asynccontextmanager
    async def fake_open_page():
        yield page

    adapter._open_page = fake_open_page
    return adapter


class TestCursorHelpers:

    def test_round_trip(self):
        assert parse_cursor(make_cursor(21, 4)) == (21, 4)

    def test_missing_cursor_starts_at_first_page(self):
        assert parse_cursor(None) == (1, 0)

    def test_garbage_cursor_restarts(self):
        assert parse_cursor(CursorState(type="offset", value="not json")) == (1, 0)


class TestPageParsing:

    def test_facility_links_skip_inspection_links_and_duplicates(self):
        links = [
            ("estab.cfm?facilityID=F1", " Oak Pool "),
            ("estab.cfm?facilityID=F1&inspectionID=I9", "03/15/2024"),
            ("estab.cfm?facilityID=F2", "Elm Spa"),
            ("estab.cfm?facilityID=F1", "Oak Pool"),
            (None, "broken"),
        ]

        assert list(parse_facility_links(links).items()) == [("F1", "Oak Pool"), ("F2", "Elm Spa")]

    def test_demographic(self):
        location = parse_demographic("GALLERIA TOWERS\n5000 WESTHEIMER RD\nHOUSTON, TX 77056\n")

        assert location == {"address": "5000 WESTHEIMER RD", "city": "HOUSTON", "state": "TX", "zip": "77056"}

    def test_demographic_defaults(self):
        assert parse_demographic(None)["city"] == "HOUSTON"

    def test_one_record_per_dated_section(self):
        records = parse_facility_page(
            "F1",
            "Galleria Towers Pool",
            "GALLERIA TOWERS\n5000 WESTHEIMER RD\nHOUSTON, TX 77056",
            FACILITY_BODY,
            ["estab.cfm?facilityID=F1&inspectionID=I-100", "estab.cfm?facilityID=F1&inspectionID=I-90"],
        )

        # Assertions
        assert [r.external_id for r in records] == ["houston-F1-03-15-2024", "houston-F1-01-10-2024"]

        first, second = records[0].data, records[1].data
        assert first["violations"] == ["5.01 Water clarity", "5.12 Missing depth markers"]
        assert first["violationCount"] == 2
        assert first["result"] == "Violations Found"
        assert first["inspectionId"] == "I-100"
        assert first["zip"] == "77056"
        assert second["violations"] == []
        assert second["result"] == "Pass"
        assert second["inspectionId"] == "I-90"

    def test_page_without_dates_yields_nothing(self):
        assert parse_facility_page("F1", "Oak", None, "No inspections on file", []) == []


class TestHoustonScrape:

    @pytest.mark.asyncio
    async def test_batch_stops_between_facilities_and_resumes(self, source_config):
        page = FakePage(
            search_links=[
                ("estab.cfm?facilityID=F1", "Oak Pool"),
                ("estab.cfm?facilityID=F2", "Elm Spa"),
                ("estab.cfm?facilityID=F3", "Pine Pool"),
            ],
            facilities={"F1": facility(), "F2": facility(), "F3": facility()},
        )
        adapter = make_adapter(source_config, page, batch_size=2)

        first = await adapter.fetch(adapter.get_initial_cursor())

        # Assertions
        assert [r.data["facilityId"] for r in first.records] == ["F1", "F2"]
        assert first.has_more is True
        assert parse_cursor(first.next_cursor) == (1, 2)
        assert page.visited[0] == f"{BASE_URL}/search.cfm?start=1&1=1&facType=Pool"

        second = await adapter.fetch(first.next_cursor)

        assert [r.data["facilityId"] for r in second.records] == ["F3"]
        assert second.has_more is False
        assert second.next_cursor is None

    @pytest.mark.asyncio
    async def test_next_search_page(self, source_config):
        page = FakePage(
            search_links=[("estab.cfm?facilityID=F1", "Oak Pool")],
            facilities={"F1": facility()},
            next_link=True,
        )
        adapter = make_adapter(source_config, page)

        result = await adapter.fetch(make_cursor(11))

        assert parse_cursor(result.next_cursor) == (21, 0)
        assert page.visited[0] == f"{BASE_URL}/search.cfm?start=11&1=1&facType=Pool"

    @pytest.mark.asyncio
    async def test_browser_timeout_is_transient_and_retried(self, source_config):
        page = FakePage([], {}, goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))
        adapter = make_adapter(source_config, page, retry_policy=RetryPolicy(attempts=2, initial_delay=0.0))

        with pytest.raises(TransientNetworkError):
            await adapter.fetch(None)

        assert adapter._sleep.await_count == 1

    def test_cursors_always_rescan(self, source_config):
        adapter = make_adapter(source_config, FakePage([], {}))

        assert parse_cursor(adapter.get_initial_cursor()) == (1, 0)
        assert parse_cursor(adapter.get_incremental_cursor(None)) == (1, 0)
