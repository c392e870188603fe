"""
Source adapters, one per protocol family:

    http            shared httpx client and status-code mapping
    socrata         paginated REST (offset and timestamp cursors)
    arcgis          feature server (OBJECTID cursor)
    csv_adapter     CSV file or URL, read with pandas
    manual          records embedded in the source config
    browser         Playwright-driven scraper base
    houston_scraper Houston inspection portal
"""

from ingestion.adapters.http import HTTPAdapter
from ingestion.adapters.socrata import SocrataAdapter
from ingestion.adapters.arcgis import ArcGISAdapter
from ingestion.adapters.csv_adapter import CSVAdapter
from ingestion.adapters.manual import ManualAdapter
from ingestion.adapters.browser import BrowserScraperAdapter
from ingestion.adapters.houston_scraper import HoustonScraperAdapter

__all__ = [
    "HTTPAdapter",
    "SocrataAdapter",
    "ArcGISAdapter",
    "CSVAdapter",
    "ManualAdapter",
    "BrowserScraperAdapter",
    "HoustonScraperAdapter",
]
