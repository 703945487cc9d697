"""Domain models for the master-data importer.

Configuration, canonical records, import targets and per-run results.
"""

from .config_models import DatabaseConfig, ImportConfig, IngestSettings
from .import_outcome import ImportOutcome, ImportStage
from .records import PriceListRecord, StoreRecord
from .targets import PRICELIST_TARGET, STORE_TARGET, ImportTarget, get_target

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "IngestSettings",
    # Targets & records
    "ImportTarget",
    "STORE_TARGET",
    "PRICELIST_TARGET",
    "get_target",
    "StoreRecord",
    "PriceListRecord",
    # Processing models
    "ImportOutcome",
    "ImportStage",
]
