"""Nobel laureate ETL: paginated fetch, nested-record flattening, CSV tables."""

__version__ = "0.1.0"
