"""Data access for request logs."""

from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy import select, desc
from sqlalchemy.orm import Session

from query_studio.core.base_dao import BaseDAO
from query_studio.logging.models import Log


class LogDAO(BaseDAO[Log]):
    def __init__(self, db_session: Session):
        super().__init__(Log, db_session)

    def _filtered(self, hours: int, status_min: Optional[int], status_max: Optional[int], path: Optional[str]):
        time_threshold = datetime.now() - timedelta(hours=hours)
        query = select(Log).where(Log.timestamp >= time_threshold)
        if status_min is not None:
            query = query.where(Log.status_code >= status_min)
        if status_max is not None:
            query = query.where(Log.status_code <= status_max)
        if path:
            query = query.where(Log.path.ilike(f"%{path}%"))
        return query

    def get_logs_with_filters(
        self,
        limit: int = 50,
        offset: int = 0,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        path: Optional[str] = None,
    ) -> List[Log]:
        """Newest first, restricted to the last ``hours`` hours."""
        query = (
            self._filtered(hours, status_min, status_max, path)
            .order_by(desc(Log.timestamp), desc(Log.id))
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())
