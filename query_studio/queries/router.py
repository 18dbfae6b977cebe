"""API router for saved queries."""

from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException

from query_studio.core.dependencies import SessionDep
from query_studio.queries.dao import SavedQueryDAO
from query_studio.queries.schemas import SavedQueryCreate, SavedQueryUpdate, SavedQueryRead
from query_studio.queries.service import SavedQueryService

router = APIRouter(prefix="/queries", tags=["saved-queries"])


def get_saved_query_service(db: SessionDep) -> SavedQueryService:
    return SavedQueryService(SavedQueryDAO(db))


@router.get("/", response_model=Dict[str, List[SavedQueryRead]])
def list_all_queries(
    service: SavedQueryService = Depends(get_saved_query_service),
) -> Dict[str, List[SavedQueryRead]]:
    """All saved queries grouped by data source id."""
    return service.list_all_grouped()


@router.get("/{data_source_id}", response_model=List[SavedQueryRead])
def list_queries(
    data_source_id: str, service: SavedQueryService = Depends(get_saved_query_service)
) -> List[SavedQueryRead]:
    return service.list_queries(data_source_id)


@router.post("/{data_source_id}", response_model=SavedQueryRead, status_code=201)
def create_query(
    data_source_id: str,
    query_data: SavedQueryCreate,
    service: SavedQueryService = Depends(get_saved_query_service),
) -> SavedQueryRead:
    """Save a query. The SQL must pass validation."""
    return service.create_query(data_source_id, query_data)


@router.get("/{data_source_id}/{query_id}", response_model=SavedQueryRead)
def get_query(
    data_source_id: str, query_id: int, service: SavedQueryService = Depends(get_saved_query_service)
) -> SavedQueryRead:
    query = service.get_query(data_source_id, query_id)
    if not query:
        raise HTTPException(status_code=404, detail="Saved query not found")
    return query


@router.patch("/{data_source_id}/{query_id}", response_model=SavedQueryRead)
def update_query(
    data_source_id: str,
    query_id: int,
    query_data: SavedQueryUpdate,
    service: SavedQueryService = Depends(get_saved_query_service),
) -> SavedQueryRead:
    query = service.update_query(data_source_id, query_id, query_data)
    if not query:
        raise HTTPException(status_code=404, detail="Saved query not found")
    return query


@router.delete("/{data_source_id}/{query_id}")
def delete_query(
    data_source_id: str, query_id: int, service: SavedQueryService = Depends(get_saved_query_service)
) -> Dict[str, str]:
    if not service.delete_query(data_source_id, query_id):
        raise HTTPException(status_code=404, detail="Saved query not found")
    return {"message": "Saved query deleted successfully"}
