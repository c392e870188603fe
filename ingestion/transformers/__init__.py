"""
Per-jurisdiction transformers: raw payload -> canonical record.

Each is registered under its jurisdiction slug by
ingestion.registry.build_default_registry().
"""

from ingestion.transformers.base import Transformer
from ingestion.transformers.austin import transform_austin
from ingestion.transformers.webster import transform_webster
from ingestion.transformers.arlington import transform_arlington
from ingestion.transformers.houston import transform_houston
from ingestion.transformers.mecklenburg import transform_mecklenburg
from ingestion.transformers.nyc import transform_nyc
from ingestion.transformers.pinellas import transform_pinellas

DEFAULT_TRANSFORMERS = {
    "austin-tx": transform_austin,
    "webster-tx": transform_webster,
    "arlington-tx": transform_arlington,
    "houston-tx": transform_houston,
    "mecklenburg-nc": transform_mecklenburg,
    "nyc-ny": transform_nyc,
    "pinellas-fl": transform_pinellas,
}

__all__ = [
    "Transformer",
    "DEFAULT_TRANSFORMERS",
    "transform_austin",
    "transform_webster",
    "transform_arlington",
    "transform_houston",
    "transform_mecklenburg",
    "transform_nyc",
    "transform_pinellas",
]
