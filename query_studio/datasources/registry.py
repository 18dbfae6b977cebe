# query_studio/datasources/registry.py
"""Registry of queryable data sources keyed by id."""

import logging
from typing import Dict, List

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from query_studio.core.config import DEFAULT_DATA_SOURCE
from query_studio.core.database import dw_engine
from query_studio.query_builder.schemas import ConnectionStatus, SqlDialect

logger = logging.getLogger(__name__)


class UnknownDataSourceError(KeyError):
    """No engine is registered under the requested id."""

    def __init__(self, data_source_id: str):
        super().__init__(data_source_id)
        self.data_source_id = data_source_id

    def __str__(self) -> str:
        return f"Unknown data source: {self.data_source_id}"


class DataSourceRegistry:
    """Engine cache keyed by data source id."""

    def __init__(self):
        self._engines: Dict[str, Engine] = {}

    def register(self, data_source_id: str, engine: Engine) -> None:
        self._engines[data_source_id] = engine
        logger.info("Registered data source '%s' (%s)", data_source_id, engine.url.get_backend_name())

    def register_url(self, data_source_id: str, url: str) -> Engine:
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
        self.register(data_source_id, engine)
        return engine

    def unregister(self, data_source_id: str) -> None:
        self._engines.pop(data_source_id, None)

    def get_engine(self, data_source_id: str) -> Engine:
        if data_source_id not in self:
            raise UnknownDataSourceError(data_source_id)
        return self._engines[data_source_id]

    def dialect_for(self, data_source_id: str) -> SqlDialect:
        """BigQuery quoting for BigQuery engines, ANSI quoting for everything else."""
        engine = self.get_engine(data_source_id)
        if engine.dialect.name == "bigquery":
            return SqlDialect.BIGQUERY
        return SqlDialect.ANSI

    def check_connection(self, data_source_id: str) -> ConnectionStatus:
        """Run ``SELECT 1`` against the source; a failure is reported, not raised."""
        engine = self.get_engine(data_source_id)
        try:
            with engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1").scalar()
        except SQLAlchemyError as e:
            message = str(getattr(e, "orig", None) or e)
            logger.warning("Connection check failed for %s: %s", data_source_id, message)
            return ConnectionStatus(
                data_source_id=data_source_id,
                connected=False,
                dialect=engine.dialect.name,
                error=message,
            )
        return ConnectionStatus(data_source_id=data_source_id, connected=True, dialect=engine.dialect.name)

    def check_all(self) -> List[ConnectionStatus]:
        return [self.check_connection(data_source_id) for data_source_id in self.list_ids()]

    def list_ids(self) -> List[str]:
        return sorted(self._engines)

    def __contains__(self, data_source_id: str) -> bool:
        return data_source_id in self._engines


data_source_registry = DataSourceRegistry()
data_source_registry.register(DEFAULT_DATA_SOURCE, dw_engine)
