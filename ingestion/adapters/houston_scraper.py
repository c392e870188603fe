"""
Houston health-inspection portal scraper.

The portal lists ten facilities per search page; each facility page shows
its inspections as "Date: MM/DD/YYYY" sections followed by violation
codes. The cursor value is JSON {"start": <search offset>, "facilityIndex":
<position within that page>} so a batch can stop between facilities.
"""

import json
import re
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple
from datetime import datetime
from playwright.async_api import Page
from ingestion.adapters.browser import BrowserScraperAdapter
from schemas.ingestion import CursorState, FetchResult, RawPayload
import logging

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://tx.healthinspections.us/houston"
PAGE_SIZE = 10

FACILITY_ID_RE = re.compile(r"facilityID=([^&]+)")
INSPECTION_ID_RE = re.compile(r"inspectionID=([^&]+)")
DATE_RE = re.compile(r"Date:\s*(\d{2}/\d{2}/\d{4})")
CITY_STATE_ZIP_RE = re.compile(r"([A-Z][A-Z\s]*),\s*([A-Z]{2})\s*(\d{5})")
VIOLATION_RE = re.compile(r"(\d+\.\d+[^\n-]*)")


def parse_cursor(cursor: Optional[CursorState]) -> Tuple[int, int]:
    """Return (start, facility_index); malformed cursors restart from page 1."""
    if cursor is None or cursor.type != "offset":
        return 1, 0
    try:
        data = json.loads(str(cursor.value))
        return int(data.get("start", 1)), int(data.get("facilityIndex", 0))
    except (ValueError, TypeError, AttributeError):
        logger.warning(f"Unreadable Houston cursor {cursor.value!r}, restarting")
        return 1, 0


def make_cursor(start: int, facility_index: int = 0) -> CursorState:
    return CursorState(
        type="offset",
        value=json.dumps({"start": start, "facilityIndex": facility_index}),
    )


def parse_facility_links(links: Iterable[Tuple[Optional[str], Optional[str]]]) -> "OrderedDict[str, str]":
    """Map facilityID -> name from (href, text) pairs, in page order."""
    facilities: "OrderedDict[str, str]" = OrderedDict()
    for href, text in links:
        if not href or not text or "inspectionID" in href:
            continue
        match = FACILITY_ID_RE.search(href)
        if match and match.group(1) not in facilities:
            facilities[match.group(1)] = text.strip()
    return facilities


def parse_demographic(text: Optional[str]) -> Dict[str, str]:
    """Pull street address and city/state/zip out of the facility header block."""
    result = {"address": "", "city": "HOUSTON", "state": "TX", "zip": ""}
    if not text:
        return result

    lines = [line.strip() for line in text.split("\n") if line.strip()]
    # Usually: name, street, "CITY, ST 12345"
    if len(lines) >= 2:
        result["address"] = lines[1]

    for line in lines:
        match = CITY_STATE_ZIP_RE.search(line)
        if match:
            result["city"] = match.group(1).strip()
            result["state"] = match.group(2)
            result["zip"] = match.group(3)
            break

    return result


def parse_facility_page(
    facility_id: str,
    facility_name: str,
    demographic_text: Optional[str],
    body_text: str,
    inspection_hrefs: Iterable[Optional[str]],
) -> List[RawPayload]:
    """One RawPayload per dated inspection section on a facility page."""
    location = parse_demographic(demographic_text)
    dates = DATE_RE.findall(body_text)
    sections = DATE_RE.split(body_text)

    inspection_ids: List[str] = []
    for href in inspection_hrefs:
        match = INSPECTION_ID_RE.search(href or "")
        if match and match.group(1) not in inspection_ids:
            inspection_ids.append(match.group(1))

    records = []
    for i, inspection_date in enumerate(dates):
        date_key = inspection_date.replace("/", "-")
        # split() interleaves captured dates: [before, date0, section0, date1, section1, ...]
        section = sections[2 * i + 2] if 2 * i + 2 < len(sections) else ""

        violations = [
            match.strip()
            for match in VIOLATION_RE.findall(section)
            if match.strip() and "View Full" not in match
        ]

        records.append(RawPayload(
            external_id=f"houston-{facility_id}-{date_key}",
            data={
                "facilityId": facility_id,
                "facilityName": facility_name,
                "address": location["address"],
                "city": location["city"],
                "state": location["state"],
                "zip": location["zip"],
                "inspectionDate": inspection_date,
                "inspectionId": inspection_ids[i] if i < len(inspection_ids) else f"{facility_id}-{date_key}",
                "violations": violations,
                "violationCount": len(violations),
                "result": "Pass" if not violations else "Violations Found",
            },
        ))

    return records


class HoustonScraperAdapter(BrowserScraperAdapter):
    """Scrapes pool facilities from the Houston inspection portal."""

    scraper_name = "houston"

    @property
    def base_url(self) -> str:
        return (self.source.endpoint or DEFAULT_BASE_URL).rstrip("/")

    async def scrape(self, page: Page, cursor: Optional[CursorState]) -> FetchResult:
        start, facility_index = parse_cursor(cursor)

        search_url = f"{self.base_url}/search.cfm?start={start}&1=1&facType=Pool"
        logger.info(f"Fetching Houston pools from start={start} facilityIndex={facility_index}")
        await page.goto(search_url, wait_until="networkidle")

        links = await page.eval_on_selector_all(
            'a[href*="facilityID="]',
            "els => els.map(e => [e.getAttribute('href'), e.textContent])",
        )
        facilities = list(parse_facility_links(links).items())

        # Checked before navigating away from the results page
        has_next_page = (
            await page.locator(f'a[href*="start={start + PAGE_SIZE}"]').count() > 0
            or len(facilities) == PAGE_SIZE
        )

        records: List[RawPayload] = []
        next_cursor: Optional[CursorState] = None

        for index in range(facility_index, len(facilities)):
            if len(records) >= self.config["batchSize"]:
                next_cursor = make_cursor(start, index)
                break

            facility_id, facility_name = facilities[index]
            await page.goto(f"{self.base_url}/estab.cfm?facilityID={facility_id}", wait_until="networkidle")
            records.extend(await self._scrape_facility(page, facility_id, facility_name))

            if self.config["pageDelayMs"]:
                await page.wait_for_timeout(self.config["pageDelayMs"])
        else:
            if has_next_page:
                next_cursor = make_cursor(start + PAGE_SIZE)

        return FetchResult(
            records=records,
            next_cursor=next_cursor,
            has_more=next_cursor is not None,
            metadata={"start": start, "facilities_on_page": len(facilities)},
        )

    async def _scrape_facility(self, page: Page, facility_id: str, facility_name: str) -> List[RawPayload]:
        demographic = page.locator("#demographic")
        demographic_text = await demographic.first.text_content() if await demographic.count() else None
        body_text = await page.inner_text("body")
        hrefs = await page.eval_on_selector_all(
            'a[href*="inspectionID"]',
            "els => els.map(e => e.getAttribute('href'))",
        )

        try:
            return parse_facility_page(facility_id, facility_name, demographic_text, body_text, hrefs)
        except (ValueError, IndexError) as e:
            logger.error(f"Skipping Houston facility {facility_id}: {e}")
            return []

    def get_initial_cursor(self) -> CursorState:
        return make_cursor(1)

    def get_incremental_cursor(self, last_sync: Optional[datetime]) -> CursorState:
        # The portal has no date filter; rescan and let dedup absorb replays
        return make_cursor(1)

    async def check_page(self, page: Page) -> bool:
        await page.goto(f"{self.base_url}/index.cfm", wait_until="networkidle")
        return "Houston" in await page.title()
