# query_studio/datasources/executor.py
"""SQLAlchemy-backed query executor with a short-lived result cache."""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from query_studio.core.config import QUERY_CACHE_MAX_ENTRIES, QUERY_CACHE_TTL_SECONDS
from query_studio.query_builder.execution import (
    BaseQueryExecutor,
    QueryCancelledError,
    QueryExecutionError,
)
from query_studio.query_builder.schemas import QueryResult
from .registry import DataSourceRegistry, UnknownDataSourceError, data_source_registry

logger = logging.getLogger(__name__)


class SQLAlchemyQueryExecutor(BaseQueryExecutor):
    """
    Runs raw SQL text against a registered engine.

    The statement is sent through ``exec_driver_sql`` so the text reaches the
    driver untouched (no bind-parameter parsing of ``:name`` inside literals).
    The blocking DBAPI call runs in a worker thread; the abort signal is
    checked before the call and again once it returns.

    Cached results expire after ``cache_ttl_seconds``. Expired entries are
    pruned on every write and the cache never holds more than
    ``cache_max_entries`` results; the oldest is evicted first.
    """

    def __init__(
        self,
        registry: DataSourceRegistry,
        cache_ttl_seconds: int = QUERY_CACHE_TTL_SECONDS,
        cache_max_entries: int = QUERY_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.cache_ttl_seconds = cache_ttl_seconds
        self.cache_max_entries = cache_max_entries
        self._clock = clock
        # oldest entry first
        self._cache: "OrderedDict[Tuple[str, str], Tuple[float, QueryResult]]" = OrderedDict()

    # ===== CACHE =====

    def _get_cached(self, key: Tuple[str, str]) -> Optional[QueryResult]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        stored_at, result = entry
        if self._is_expired(stored_at):
            del self._cache[key]
            return None
        return result

    def _is_expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at > self.cache_ttl_seconds

    def _store(self, key: Tuple[str, str], result: QueryResult) -> None:
        self._cache.pop(key, None)
        expired = [k for k, (stored_at, _) in self._cache.items() if self._is_expired(stored_at)]
        for k in expired:
            del self._cache[k]

        self._cache[key] = (self._clock(), result)
        while len(self._cache) > self.cache_max_entries:
            self._cache.popitem(last=False)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def invalidate(self, data_source_id: str, sql: str) -> None:
        self._cache.pop((data_source_id, sql), None)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ===== EXECUTION =====

    def _run_sync(self, data_source_id: str, sql: str) -> QueryResult:
        engine = self.registry.get_engine(data_source_id)
        with engine.connect() as conn:
            result = conn.exec_driver_sql(sql)
            columns = list(result.keys())
            rows = [dict(row._mapping) for row in result]
        return QueryResult(columns=columns, rows=rows, row_count=len(rows))

    async def execute(
        self,
        data_source_id: str,
        sql: str,
        signal: Optional[asyncio.Event] = None,
        use_cache: bool = True,
    ) -> QueryResult:
        if signal is not None and signal.is_set():
            raise QueryCancelledError()

        key = (data_source_id, sql)
        if use_cache and self.cache_ttl_seconds > 0:
            cached = self._get_cached(key)
            if cached is not None:
                logger.debug("Cache hit for query on %s", data_source_id)
                return cached

        start_time = time.time()
        try:
            result = await asyncio.to_thread(self._run_sync, data_source_id, sql)
        except UnknownDataSourceError:
            raise
        except SQLAlchemyError as e:
            # DBAPI errors carry the driver message in .orig
            message = str(getattr(e, "orig", None) or e)
            logger.error("Query failed on %s: %s", data_source_id, message)
            raise QueryExecutionError(message) from e

        if signal is not None and signal.is_set():
            raise QueryCancelledError()

        logger.info(
            "Query on %s returned %d rows in %.1fms",
            data_source_id,
            result.row_count,
            (time.time() - start_time) * 1000,
        )
        if self.cache_ttl_seconds > 0 and self.cache_max_entries > 0:
            self._store(key, result)
        return result


query_executor = SQLAlchemyQueryExecutor(data_source_registry)
