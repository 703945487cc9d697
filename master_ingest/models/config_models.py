from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the master-data importer.

These are the domain-side settings consumed by the pipeline. The YAML loader in
master_ingest/config/loader.py produces them; code that never touches a config
file (tests, embedding in a web handler) can construct them directly and rely on
the defaults.
"""

DEFAULT_HEADER_SCAN_ROWS = 30
DEFAULT_NULL_TOKENS = frozenset({"#N/A"})
DEFAULT_PAGE_SIZE = 1000


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class IngestSettings:
    """Tunables for one import run.

    header_scan_rows: how many leading rows the header locator inspects
    null_tokens: placeholder cell values treated as empty (compared upper-cased)
    page_size: execute_values page size for the bulk upsert
    tables: target name -> table name overrides (e.g. {"stores": "stores_staging"})
    """
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS
    null_tokens: frozenset[str] = DEFAULT_NULL_TOKENS
    page_size: int = DEFAULT_PAGE_SIZE
    tables: dict[str, str] = field(default_factory=dict)

    def table_for(self, target_name: str, default: str) -> str:
        return self.tables.get(target_name, default)


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object: connection fallback plus ingest settings."""
    database: DatabaseConfig
    settings: IngestSettings
