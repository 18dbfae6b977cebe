"""Service layer for request logs."""

from typing import List, Optional

from query_studio.logging.dao import LogDAO
from query_studio.logging.schemas import LogRead


class LogService:
    def __init__(self, log_dao: LogDAO):
        self.log_dao = log_dao

    def get_logs(
        self,
        limit: int = 50,
        offset: int = 0,
        hours: int = 24,
        status_min: Optional[int] = None,
        status_max: Optional[int] = None,
        path: Optional[str] = None,
    ) -> List[LogRead]:
        logs = self.log_dao.get_logs_with_filters(
            limit=limit, offset=offset, hours=hours, status_min=status_min, status_max=status_max, path=path
        )
        return [LogRead.model_validate(log) for log in logs]

    def get_log(self, log_id: int) -> Optional[LogRead]:
        log = self.log_dao.get_by_id(log_id)
        return LogRead.model_validate(log) if log else None
