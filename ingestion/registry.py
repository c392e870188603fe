"""
Explicit registry from source configuration to adapter and transformer.

Built once at process start and handed to the runner; nothing here is
module-level mutable state.
"""

from typing import Dict, Optional, Type
from core.exceptions import UnknownAdapterError, UnknownTransformerError
from ingestion.base import SourceAdapter
from ingestion.retry import RetryPolicy
from ingestion.transformers.base import Transformer
from models.base import AdapterType
from schemas.source import SourceConfig
import logging

logger = logging.getLogger(__name__)


class IngestionRegistry:
    """
    Maps:
    - adapter type -> adapter class
    - config["scraper"] -> scraper class, for SCRAPER sources
    - jurisdiction slug -> transformer function
    """

    def __init__(self):
        self._adapters: Dict[AdapterType, Type[SourceAdapter]] = {}
        self._scrapers: Dict[str, Type[SourceAdapter]] = {}
        self._transformers: Dict[str, Transformer] = {}

    def register_adapter(self, adapter_type: AdapterType, adapter_cls: Type[SourceAdapter]) -> None:
        self._adapters[AdapterType(adapter_type)] = adapter_cls

    def register_scraper(self, name: str, adapter_cls: Type[SourceAdapter]) -> None:
        self._scrapers[name] = adapter_cls

    def register_transformer(self, jurisdiction_slug: str, transformer: Transformer) -> None:
        if jurisdiction_slug in self._transformers:
            logger.warning(f"Replacing transformer for {jurisdiction_slug}")
        self._transformers[jurisdiction_slug] = transformer

    def get_adapter(self, source: SourceConfig, retry_policy: Optional[RetryPolicy] = None, **kwargs) -> SourceAdapter:
        adapter_type = AdapterType(source.adapter_type)

        if adapter_type == AdapterType.SCRAPER:
            name = source.config.get("scraper")
            adapter_cls = self._scrapers.get(name)
            if adapter_cls is None:
                raise UnknownAdapterError(
                    f"Unknown scraper: {name}",
                    context={"source_id": source.id, "scraper": name, "registered": sorted(self._scrapers)},
                )
        else:
            adapter_cls = self._adapters.get(adapter_type)
            if adapter_cls is None:
                raise UnknownAdapterError(
                    f"Unknown adapter type: {adapter_type.value}",
                    context={"source_id": source.id, "adapter_type": adapter_type.value},
                )

        return adapter_cls(source, retry_policy=retry_policy, **kwargs)

    def get_transformer(self, jurisdiction_slug: str) -> Transformer:
        transformer = self._transformers.get(jurisdiction_slug)
        if transformer is None:
            raise UnknownTransformerError(
                f"Unknown jurisdiction slug: {jurisdiction_slug}. No transformer registered.",
                context={"jurisdiction_slug": jurisdiction_slug},
            )
        return transformer

    @property
    def transformer_slugs(self):
        return sorted(self._transformers)


def build_default_registry() -> IngestionRegistry:
    """Registry with every built-in adapter, scraper and transformer."""
    from ingestion.adapters import (
        ArcGISAdapter,
        CSVAdapter,
        HoustonScraperAdapter,
        ManualAdapter,
        SocrataAdapter,
    )
    from ingestion.transformers import DEFAULT_TRANSFORMERS

    registry = IngestionRegistry()
    registry.register_adapter(AdapterType.SOCRATA, SocrataAdapter)
    registry.register_adapter(AdapterType.ARCGIS, ArcGISAdapter)
    registry.register_adapter(AdapterType.CSV, CSVAdapter)
    registry.register_adapter(AdapterType.MANUAL, ManualAdapter)
    registry.register_scraper(HoustonScraperAdapter.scraper_name, HoustonScraperAdapter)

    for slug, transformer in DEFAULT_TRANSFORMERS.items():
        registry.register_transformer(slug, transformer)

    return registry
