"""Data access for saved queries and execution logs."""

from typing import List, Optional
from sqlalchemy import select, desc
from sqlalchemy.orm import Session

from query_studio.core.base_dao import BaseDAO
from query_studio.queries.models import SavedQuery, QueryExecutionLog


class SavedQueryDAO(BaseDAO[SavedQuery]):
    def __init__(self, db: Session):
        super().__init__(SavedQuery, db)

    def get_for_source(self, data_source_id: str, query_id: int) -> Optional[SavedQuery]:
        query = select(SavedQuery).where(
            SavedQuery.id == query_id, SavedQuery.data_source_id == data_source_id
        )
        return self.db.execute(query).scalars().first()

    def list_for_source(self, data_source_id: str) -> List[SavedQuery]:
        query = (
            select(SavedQuery)
            .where(SavedQuery.data_source_id == data_source_id)
            .order_by(desc(SavedQuery.updated_at), desc(SavedQuery.id))
        )
        return list(self.db.execute(query).scalars().all())

    def list_all(self) -> List[SavedQuery]:
        query = select(SavedQuery).order_by(SavedQuery.data_source_id, SavedQuery.name)
        return list(self.db.execute(query).scalars().all())


class QueryExecutionLogDAO(BaseDAO[QueryExecutionLog]):
    def __init__(self, db: Session):
        super().__init__(QueryExecutionLog, db)

    def get_recent(self, data_source_id: Optional[str] = None, limit: int = 50) -> List[QueryExecutionLog]:
        """Most recent executions first."""
        query = select(QueryExecutionLog)
        if data_source_id is not None:
            query = query.where(QueryExecutionLog.data_source_id == data_source_id)
        query = query.order_by(desc(QueryExecutionLog.executed_at), desc(QueryExecutionLog.id)).limit(limit)
        return list(self.db.execute(query).scalars().all())
