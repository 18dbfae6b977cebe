# query_studio/logging/router.py
"""API router for request logs."""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from query_studio.core.dependencies import SessionDep
from query_studio.logging.dao import LogDAO
from query_studio.logging.schemas import LogRead
from query_studio.logging.service import LogService

router = APIRouter(prefix="/logs", tags=["logs"])


def get_log_service(session: SessionDep) -> LogService:
    return LogService(LogDAO(session))


@router.get("/", response_model=List[LogRead])
def get_logs(
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    hours: int = Query(24, ge=1, le=168, description="Time window in hours"),
    status_min: Optional[int] = Query(None, ge=100, le=599, description="Minimum status code"),
    status_max: Optional[int] = Query(None, ge=100, le=599, description="Maximum status code"),
    path: Optional[str] = Query(None, description="Substring of the request path"),
    log_service: LogService = Depends(get_log_service),
) -> List[LogRead]:
    if status_min is not None and status_max is not None and status_min > status_max:
        raise HTTPException(status_code=400, detail="status_min cannot be greater than status_max")
    return log_service.get_logs(
        limit=limit, offset=offset, hours=hours, status_min=status_min, status_max=status_max, path=path
    )


@router.get("/{log_id}", response_model=LogRead)
def get_log(log_id: int, log_service: LogService = Depends(get_log_service)) -> LogRead:
    log = log_service.get_log(log_id)
    if not log:
        raise HTTPException(status_code=404, detail="Log not found")
    return log
