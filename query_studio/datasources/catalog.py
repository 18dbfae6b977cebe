# query_studio/datasources/catalog.py
"""Schema discovery for registered data sources."""

import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from query_studio.query_builder.schemas import Column, Dataset, Schema, Table
from .registry import DataSourceRegistry

logger = logging.getLogger(__name__)

# Catalog schemas that never hold user tables
SYSTEM_SCHEMAS = {"information_schema", "pg_catalog", "pg_toast", "mysql", "performance_schema", "sys"}


class SchemaLoadError(Exception):
    """Schema discovery failed; the builder cannot start without a schema."""

    def __init__(self, data_source_id: str, message: str):
        super().__init__(f"Failed to load schema for '{data_source_id}': {message}")
        self.data_source_id = data_source_id
        self.message = message


class SchemaCatalog:
    """Reads datasets, tables and columns from a data source via SQLAlchemy inspection."""

    def __init__(self, registry: DataSourceRegistry):
        self.registry = registry

    def get_schema(self, data_source_id: str) -> Schema:
        engine = self.registry.get_engine(data_source_id)
        try:
            inspector = inspect(engine)
            default_schema = inspector.default_schema_name
            datasets = [
                self._load_dataset(inspector, schema_name, default_schema)
                for schema_name in inspector.get_schema_names()
                if schema_name.lower() not in SYSTEM_SCHEMAS
            ]
        except SQLAlchemyError as e:
            logger.error("Schema load failed for %s: %s", data_source_id, e)
            raise SchemaLoadError(data_source_id, str(e)) from e

        logger.info(
            "Loaded schema for %s: %d datasets, %d tables",
            data_source_id,
            len(datasets),
            sum(len(d.tables) for d in datasets),
        )
        return Schema(datasets=tuple(datasets))

    def _load_dataset(self, inspector, schema_name: str, default_schema: str) -> Dataset:
        tables: List[Table] = []
        for table_name in sorted(inspector.get_table_names(schema=schema_name)):
            columns = tuple(
                Column(name=col["name"], type=str(col["type"]), description=col.get("comment"))
                for col in inspector.get_columns(table_name, schema=schema_name)
            )
            # tables outside the default schema need a qualified id for FROM/JOIN
            table_id = table_name if schema_name == default_schema else f"{schema_name}.{table_name}"
            tables.append(Table(id=table_id, name=table_name, columns=columns))
        return Dataset(id=schema_name, name=schema_name, tables=tuple(tables))
