"""Business logic for saved queries and query execution logs."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import HTTPException

from query_studio.core.base_service import BaseService
from query_studio.query_builder.validator import validate_sql
from query_studio.queries.dao import SavedQueryDAO, QueryExecutionLogDAO
from query_studio.queries.models import SavedQuery, QueryExecutionLog
from query_studio.queries.schemas import (
    SavedQueryCreate,
    SavedQueryUpdate,
    SavedQueryRead,
    ExecutionLogRead,
)

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 1000


class SavedQueryService(BaseService[SavedQuery, SavedQueryCreate, SavedQueryUpdate, SavedQueryRead]):
    """Saved queries are scoped to a data source; ids are only looked up within it."""

    response_model = SavedQueryRead

    def __init__(self, dao: SavedQueryDAO):
        super().__init__(dao)
        self.dao: SavedQueryDAO = dao

    def list_queries(self, data_source_id: str) -> List[SavedQueryRead]:
        return [self._to_response(q) for q in self.dao.list_for_source(data_source_id)]

    def list_all_grouped(self) -> Dict[str, List[SavedQueryRead]]:
        grouped: Dict[str, List[SavedQueryRead]] = defaultdict(list)
        for query in self.dao.list_all():
            grouped[query.data_source_id].append(self._to_response(query))
        return dict(grouped)

    def get_query(self, data_source_id: str, query_id: int) -> Optional[SavedQueryRead]:
        query = self.dao.get_for_source(data_source_id, query_id)
        return self._to_response(query) if query else None

    def create_query(self, data_source_id: str, query_data: SavedQueryCreate) -> SavedQueryRead:
        saved = self.create(query_data, data_source_id=data_source_id)
        logger.info("Saved query '%s' (id=%s) for %s", saved.name, saved.id, data_source_id)
        return saved

    def update_query(
        self, data_source_id: str, query_id: int, query_data: SavedQueryUpdate
    ) -> Optional[SavedQueryRead]:
        if self.dao.get_for_source(data_source_id, query_id) is None:
            return None
        return self.update(query_id, query_data, updated_at=datetime.now())

    def delete_query(self, data_source_id: str, query_id: int) -> bool:
        if self.dao.get_for_source(data_source_id, query_id) is None:
            return False
        deleted = self.delete(query_id)
        if deleted:
            logger.info("Deleted saved query %s from %s", query_id, data_source_id)
        return deleted

    def _check_sql(self, sql: str) -> None:
        result = validate_sql(sql)
        if not result.is_valid:
            raise HTTPException(status_code=400, detail=result.error)

    def _validate_create(self, create_data: SavedQueryCreate) -> None:
        self._check_sql(create_data.sql)

    def _validate_update(self, record: SavedQuery, update_data: SavedQueryUpdate) -> None:
        for field in ("name", "sql"):
            if field in update_data.model_fields_set and getattr(update_data, field) is None:
                raise HTTPException(status_code=400, detail=f"{field} cannot be null")
        if update_data.sql is not None:
            self._check_sql(update_data.sql)


class QueryExecutionLogService:
    """Records every query run and serves the recent history."""

    def __init__(self, dao: QueryExecutionLogDAO):
        self.dao = dao

    def log_execution(
        self,
        data_source_id: str,
        sql_text: str,
        success: bool = True,
        row_count: Optional[int] = None,
        execution_time_ms: Optional[float] = None,
        error_message: Optional[str] = None,
    ) -> QueryExecutionLog:
        if execution_time_ms is not None and execution_time_ms < 0:
            execution_time_ms = 0.0

        if error_message and len(error_message) > MAX_ERROR_MESSAGE_LENGTH:
            error_message = error_message[: MAX_ERROR_MESSAGE_LENGTH - 3] + "..."

        return self.dao.create(
            data_source_id=data_source_id,
            sql_text=sql_text,
            success=success,
            row_count=row_count,
            execution_time_ms=execution_time_ms,
            error_message=error_message,
            executed_at=datetime.now(),
        )

    def get_recent_executions(self, data_source_id: Optional[str] = None, limit: int = 50) -> List[ExecutionLogRead]:
        return [ExecutionLogRead.model_validate(log) for log in self.dao.get_recent(data_source_id, limit)]
