"""
Run/paginate/save controller for builder SQL.

One controller tracks one builder's results. Every ``run`` gets a new run id
and abort signal; a run that is no longer the latest never writes its outcome,
so an old response arriving late cannot replace a newer result.
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from query_studio.core.config import ROWS_PER_PAGE
from .schemas import QueryResult
from .validator import QueryValidator, SQLValidationResult

logger = logging.getLogger(__name__)


class QueryExecutionError(Exception):
    """The executor could not run the query; ``message`` is user-facing."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QueryCancelledError(Exception):
    """The run was aborted through its signal before a result was produced."""


class BaseQueryExecutor(ABC):
    """Runs read-only SQL against a data source."""

    @abstractmethod
    async def execute(
        self, data_source_id: str, sql: str, signal: Optional[asyncio.Event] = None
    ) -> QueryResult:
        """
        Execute ``sql`` against ``data_source_id``.

        Implementations should raise QueryCancelledError once ``signal`` is set
        and QueryExecutionError for driver or query failures.
        """


class ExecutionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# (data_source_id, {"name", "description", "sql"}) -> saved query
QuerySaver = Callable[[str, Dict[str, Any]], Awaitable[Any]]


def total_pages_for(row_count: int, rows_per_page: int = ROWS_PER_PAGE) -> int:
    return math.ceil(row_count / rows_per_page) if row_count > 0 else 0


def page_slice(rows: List[Dict[str, Any]], page: int, rows_per_page: int = ROWS_PER_PAGE) -> List[Dict[str, Any]]:
    start = (page - 1) * rows_per_page
    return rows[start:start + rows_per_page]


class QueryExecutionController:
    """Idle -> Running -> Succeeded | Failed, restartable by calling ``run`` again."""

    def __init__(
        self,
        executor: BaseQueryExecutor,
        data_source_id: str,
        saver: Optional[QuerySaver] = None,
        validator: Optional[QueryValidator] = None,
        rows_per_page: int = ROWS_PER_PAGE,
    ):
        self.executor = executor
        self.data_source_id = data_source_id
        self.saver = saver
        self.validator = validator or QueryValidator()
        self.rows_per_page = rows_per_page

        self.sql: str = ""
        self.status = ExecutionStatus.IDLE
        self.result: Optional[QueryResult] = None
        self.error: Optional[str] = None
        self.validation: Optional[SQLValidationResult] = None
        self.current_page = 1
        self.save_error: Optional[str] = None

        self._run_id = 0
        self._signal: Optional[asyncio.Event] = None

    # ===== SQL TRACKING =====

    def set_sql(self, sql: str) -> None:
        """Track the builder's current SQL; a different query starts again at page 1."""
        if sql != self.sql:
            self.sql = sql
            self.current_page = 1

    # ===== RUN =====

    @property
    def is_loading(self) -> bool:
        return self.status == ExecutionStatus.RUNNING

    @property
    def run_id(self) -> int:
        return self._run_id

    def _abort_in_flight(self) -> None:
        if self._signal is not None:
            self._signal.set()
            self._signal = None

    async def run(self, sql: Optional[str] = None) -> Optional[QueryResult]:
        """
        Validate and execute SQL. Returns the result, or None if the run failed,
        was cancelled, or was superseded by a newer run.
        """
        if sql is not None:
            self.set_sql(sql)

        self._abort_in_flight()
        self._run_id += 1
        run_id = self._run_id

        # previous result is hidden for the duration of the run
        self.result = None
        self.error = None

        self.validation = self.validator.validate(self.sql)
        if not self.validation.is_valid:
            self.status = ExecutionStatus.FAILED
            self.error = self.validation.error
            return None

        signal = asyncio.Event()
        self._signal = signal
        self.status = ExecutionStatus.RUNNING

        try:
            result = await self.executor.execute(self.data_source_id, self.sql, signal=signal)
        except QueryCancelledError:
            if run_id == self._run_id:
                self.status = ExecutionStatus.IDLE
            return None
        except Exception as e:
            if run_id != self._run_id:
                logger.debug("Ignoring failure of superseded run %s: %s", run_id, e)
                return None
            logger.warning("Query run %s failed on %s: %s", run_id, self.data_source_id, e)
            self.status = ExecutionStatus.FAILED
            self.error = str(e) or "Failed to execute query"
            self._signal = None
            return None

        if run_id != self._run_id or signal.is_set():
            logger.debug("Discarding result of superseded run %s", run_id)
            return None

        self._signal = None
        self.status = ExecutionStatus.SUCCEEDED
        self.result = result
        self.current_page = 1
        return result

    def cancel(self) -> None:
        """Abort the in-flight run, if any; its outcome will be ignored."""
        if self.status != ExecutionStatus.RUNNING:
            return
        self._abort_in_flight()
        self._run_id += 1
        self.status = ExecutionStatus.IDLE

    # ===== PAGINATION =====

    @property
    def total_pages(self) -> int:
        if self.result is None:
            return 0
        return total_pages_for(len(self.result.rows), self.rows_per_page)

    @property
    def visible_rows(self) -> List[Dict[str, Any]]:
        if self.result is None:
            return []
        return page_slice(self.result.rows, self.current_page, self.rows_per_page)

    def set_page(self, page: int) -> int:
        self.current_page = max(1, min(page, max(self.total_pages, 1)))
        return self.current_page

    def next_page(self) -> int:
        return self.set_page(self.current_page + 1)

    def previous_page(self) -> int:
        return self.set_page(self.current_page - 1)

    # ===== SAVE =====

    @property
    def can_save(self) -> bool:
        if self.saver is None or not self.sql.strip():
            return False
        return self.validator.validate(self.sql).is_valid

    async def save(self, name: str, description: Optional[str] = None) -> Optional[Any]:
        """Forward the current SQL to the saver. Query state is not touched."""
        if not self.can_save:
            self.save_error = self.validator.validate(self.sql).error or "Nothing to save"
            return None

        self.save_error = None
        try:
            return await self.saver(
                self.data_source_id, {"name": name, "description": description, "sql": self.sql}
            )
        except Exception as e:
            logger.warning("Saving query '%s' failed: %s", name, e)
            self.save_error = str(e) or "Failed to save query"
            return None
