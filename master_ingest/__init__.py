"""Master-data ingestion for store directories and price lists.

Spreadsheet exports (CSV / TSV / semicolon separated / XLSX) are decoded into a
grid of strings, the header row is located and resolved against per-target alias
tables, rows are normalized into canonical records and upserted into PostgreSQL
in a single transaction.
"""

__version__ = "0.1.0"
