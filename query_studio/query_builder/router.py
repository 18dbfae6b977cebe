"""API router for the visual query builder."""

from typing import List
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from query_studio.core.config import DEFAULT_DATA_SOURCE
from query_studio.core.dependencies import CatalogDep, ExecutorDep, RegistryDep, SessionDep
from query_studio.queries.dao import QueryExecutionLogDAO
from query_studio.queries.schemas import ExecutionLogRead
from query_studio.queries.service import QueryExecutionLogService
from .schemas import (
    CompileRequest,
    CompileResponse,
    ConnectionStatus,
    DataSourceList,
    ExportRequest,
    RunQueryRequest,
    RunQueryResponse,
    Schema,
    ValidateRequest,
)
from .service import XLSX_MEDIA_TYPE, QueryRunService, compile_query
from .validator import SQLValidationResult, validate_sql

router = APIRouter(prefix="/query-builder", tags=["query-builder"])


# Dependency functions
def get_execution_log_service(db: SessionDep) -> QueryExecutionLogService:
    return QueryExecutionLogService(QueryExecutionLogDAO(db))


def get_query_run_service(
    executor: ExecutorDep,
    registry: RegistryDep,
    log_service: QueryExecutionLogService = Depends(get_execution_log_service),
) -> QueryRunService:
    return QueryRunService(executor, registry, log_service)


# ===== SQL ENDPOINTS =====


@router.post("/compile", response_model=CompileResponse)
def compile_builder_state(request: CompileRequest, registry: RegistryDep) -> CompileResponse:
    """Compile a builder state to SQL, honouring an active override.

    With a ``data_source_id`` the SQL is quoted for that source's dialect.
    """
    if request.data_source_id is None:
        return compile_query(request)
    return compile_query(request, registry.dialect_for(request.data_source_id))


@router.post("/validate", response_model=SQLValidationResult)
def validate_query(request: ValidateRequest) -> SQLValidationResult:
    return validate_sql(request.sql)


# ===== DATA SOURCE ENDPOINTS =====


@router.get("/data-sources", response_model=DataSourceList)
def list_data_sources(registry: RegistryDep) -> DataSourceList:
    return DataSourceList(data_sources=registry.list_ids(), default=DEFAULT_DATA_SOURCE)


@router.get("/data-sources/health", response_model=List[ConnectionStatus])
def check_all_data_sources(registry: RegistryDep) -> List[ConnectionStatus]:
    return registry.check_all()


@router.get("/{data_source_id}/health", response_model=ConnectionStatus)
def check_data_source(data_source_id: str, registry: RegistryDep) -> ConnectionStatus:
    """Run ``SELECT 1`` against a data source; connection failures come back as ``connected: false``."""
    return registry.check_connection(data_source_id)


@router.get("/{data_source_id}/schema", response_model=Schema)
def get_schema(data_source_id: str, catalog: CatalogDep) -> Schema:
    """Datasets, tables and columns of a data source."""
    return catalog.get_schema(data_source_id)


# ===== EXECUTION ENDPOINTS =====


@router.post("/{data_source_id}/run", response_model=RunQueryResponse)
async def run_query(
    data_source_id: str,
    request: RunQueryRequest,
    service: QueryRunService = Depends(get_query_run_service),
) -> RunQueryResponse:
    """Validate and run SQL, returning one page of rows."""
    return await service.run_query(data_source_id, request)


@router.post("/{data_source_id}/export-xlsx")
async def export_to_xlsx(
    data_source_id: str,
    request: ExportRequest,
    service: QueryRunService = Depends(get_query_run_service),
) -> Response:
    """Run SQL and return the full result as an Excel workbook."""
    excel_buffer = await service.export_to_xlsx(data_source_id, request.sql, request.sheet_name)
    return Response(
        content=excel_buffer.getvalue(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={data_source_id}_query.xlsx"},
    )


@router.get("/{data_source_id}/executions", response_model=List[ExecutionLogRead])
def get_recent_executions(
    data_source_id: str,
    limit: int = Query(50, ge=1, le=500),
    log_service: QueryExecutionLogService = Depends(get_execution_log_service),
) -> List[ExecutionLogRead]:
    return log_service.get_recent_executions(data_source_id, limit)
