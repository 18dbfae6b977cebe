"""
Data source adapters for the query builder.

- DataSourceRegistry: maps a data source id to a SQLAlchemy engine
- SchemaCatalog: datasets/tables/columns discovered by SQLAlchemy inspection
- SQLAlchemyQueryExecutor: read-only execution with a TTL result cache
"""

from .registry import DataSourceRegistry, UnknownDataSourceError, data_source_registry
from .catalog import SchemaCatalog, SchemaLoadError
from .executor import SQLAlchemyQueryExecutor, query_executor

__all__ = [
    "DataSourceRegistry",
    "UnknownDataSourceError",
    "data_source_registry",
    "SchemaCatalog",
    "SchemaLoadError",
    "SQLAlchemyQueryExecutor",
    "query_executor",
]
