"""
Unit tests for the adapter / transformer registry
"""

import pytest
from core.exceptions import UnknownAdapterError, UnknownTransformerError
from ingestion.adapters import ArcGISAdapter, HoustonScraperAdapter, SocrataAdapter
from ingestion.registry import IngestionRegistry, build_default_registry
from ingestion.transformers import transform_austin
from models.base import AdapterType


class TestDefaultRegistry:

    def test_resolves_adapter_by_type(self, source_config):
        registry = build_default_registry()

        assert isinstance(registry.get_adapter(source_config(adapter_type=AdapterType.SOCRATA)), SocrataAdapter)
        assert isinstance(registry.get_adapter(source_config(adapter_type=AdapterType.ARCGIS)), ArcGISAdapter)

    def test_resolves_scraper_by_config_name(self, source_config):
        registry = build_default_registry()
        source = source_config(adapter_type=AdapterType.SCRAPER, config={"scraper": "houston"})

        assert isinstance(registry.get_adapter(source), HoustonScraperAdapter)

    def test_unknown_scraper(self, source_config):
        registry = build_default_registry()
        source = source_config(adapter_type=AdapterType.SCRAPER, config={"scraper": "dallas"})

        with pytest.raises(UnknownAdapterError) as exc_info:
            registry.get_adapter(source)

        assert exc_info.value.context["scraper"] == "dallas"

    def test_resolves_transformer_by_slug(self):
        registry = build_default_registry()

        assert registry.get_transformer("austin-tx") is transform_austin
        assert "houston-tx" in registry.transformer_slugs

    def test_unknown_transformer(self):
        with pytest.raises(UnknownTransformerError):
            build_default_registry().get_transformer("gotham-nj")


class TestCustomRegistry:

    def test_unregistered_adapter_type(self, source_config):
        registry = IngestionRegistry()

        with pytest.raises(UnknownAdapterError):
            registry.get_adapter(source_config(adapter_type=AdapterType.CSV))

    def test_registries_are_independent(self):
        first = IngestionRegistry()
        first.register_transformer("austin-tx", transform_austin)

        assert IngestionRegistry().transformer_slugs == []
        assert first.transformer_slugs == ["austin-tx"]
