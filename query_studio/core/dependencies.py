# query_studio/core/dependencies.py
"""Shared FastAPI dependencies."""

from typing import Annotated
from fastapi import Depends
from sqlalchemy.orm import Session

from query_studio.core.database import get_db
from query_studio.datasources import (
    DataSourceRegistry,
    SchemaCatalog,
    SQLAlchemyQueryExecutor,
    data_source_registry,
    query_executor,
)

# Core database dependencies
SessionDep = Annotated[Session, Depends(get_db)]


def get_data_source_registry() -> DataSourceRegistry:
    return data_source_registry


def get_query_executor() -> SQLAlchemyQueryExecutor:
    return query_executor


def get_schema_catalog(
    registry: DataSourceRegistry = Depends(get_data_source_registry),
) -> SchemaCatalog:
    return SchemaCatalog(registry)


RegistryDep = Annotated[DataSourceRegistry, Depends(get_data_source_registry)]
ExecutorDep = Annotated[SQLAlchemyQueryExecutor, Depends(get_query_executor)]
CatalogDep = Annotated[SchemaCatalog, Depends(get_schema_catalog)]
