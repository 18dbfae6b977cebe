# query_studio/query_builder/service.py
"""Run service: executes builder SQL for one API request and records the outcome."""

import io
import logging
import time
from typing import Optional, Tuple

import pandas as pd
from fastapi import HTTPException

from query_studio.datasources import DataSourceRegistry, SQLAlchemyQueryExecutor
from query_studio.queries.service import QueryExecutionLogService
from .execution import ExecutionStatus, QueryExecutionController
from .schemas import (
    CompileRequest,
    CompileResponse,
    QueryResult,
    RunQueryRequest,
    RunQueryResponse,
    SqlDialect,
)
from .session import QueryBuilderSession

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def compile_query(request: CompileRequest, dialect: SqlDialect = SqlDialect.BIGQUERY) -> CompileResponse:
    """Resolve the SQL a builder would display: override text if active, compiler output otherwise."""
    session = QueryBuilderSession(request.state, dialect)
    if request.override is not None and request.override.active:
        session.begin_edit()
        session.update_edit_buffer(request.override.text)
        session.confirm_edit()

    return CompileResponse(
        sql=session.sql,
        is_override=session.override.active,
        dialect=session.dialect,
        validation=session.validate(),
    )


class QueryRunService:
    """One controller per request, so no builder state is shared between requests."""

    def __init__(
        self,
        executor: SQLAlchemyQueryExecutor,
        registry: DataSourceRegistry,
        log_service: Optional[QueryExecutionLogService] = None,
    ):
        self.executor = executor
        self.registry = registry
        self.log_service = log_service

    async def _execute(
        self, data_source_id: str, sql: str, use_cache: bool = True
    ) -> Tuple[QueryExecutionController, float]:
        # unknown ids surface as 404 rather than as a failed run
        self.registry.get_engine(data_source_id)

        if not use_cache:
            self.executor.invalidate(data_source_id, sql)

        controller = QueryExecutionController(self.executor, data_source_id)
        start_time = time.time()
        result = await controller.run(sql)
        execution_time_ms = (time.time() - start_time) * 1000

        self._log(controller, execution_time_ms)
        if controller.status != ExecutionStatus.SUCCEEDED or result is None:
            raise HTTPException(status_code=400, detail=controller.error or "Failed to execute query")
        return controller, execution_time_ms

    def _log(self, controller: QueryExecutionController, execution_time_ms: float) -> None:
        if self.log_service is None:
            return
        succeeded = controller.status == ExecutionStatus.SUCCEEDED
        self.log_service.log_execution(
            data_source_id=controller.data_source_id,
            sql_text=controller.sql,
            success=succeeded,
            row_count=controller.result.row_count if succeeded and controller.result else None,
            execution_time_ms=execution_time_ms,
            error_message=None if succeeded else controller.error,
        )

    async def run_query(self, data_source_id: str, request: RunQueryRequest) -> RunQueryResponse:
        controller, execution_time_ms = await self._execute(data_source_id, request.sql, use_cache=request.use_cache)
        result: QueryResult = controller.result
        page = controller.set_page(request.page)

        return RunQueryResponse(
            columns=result.columns,
            rows=controller.visible_rows,
            row_count=result.row_count,
            page=page,
            rows_per_page=controller.rows_per_page,
            total_pages=controller.total_pages,
            execution_time_ms=round(execution_time_ms, 2),
        )

    async def export_to_xlsx(self, data_source_id: str, sql: str, sheet_name: str = "Query Results") -> io.BytesIO:
        """Run ``sql`` and write every row (not just one page) into an Excel workbook."""
        controller, _ = await self._execute(data_source_id, sql)
        result: QueryResult = controller.result

        df = pd.DataFrame(result.rows, columns=result.columns)
        if df.empty:
            raise HTTPException(status_code=400, detail="Query returned no rows to export")

        excel_buffer = io.BytesIO()
        # Excel sheet name limit is 31 chars
        sheet_name = (sheet_name or "Query Results")[:31]
        with pd.ExcelWriter(excel_buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            _format_worksheet(writer.sheets[sheet_name], len(df.columns))

        excel_buffer.seek(0)
        logger.info("Exported %d rows from %s to xlsx", len(df), data_source_id)
        return excel_buffer


def _format_worksheet(worksheet, column_count: int) -> None:
    """Bold header row and column widths sized to content."""
    from openpyxl.styles import Font, PatternFill, Alignment

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    for col_num in range(1, column_count + 1):
        cell = worksheet.cell(row=1, column=col_num)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for column in worksheet.columns:
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        # Set column width with some padding, max 50 characters
        worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)
