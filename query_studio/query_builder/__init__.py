"""
Visual query builder core.

Main Components:
- state: pure operations on QueryBuilderState (table cascade lives here)
- compiler: generate_sql, the only path from state to SQL text
- validator: denylist pre-flight check run before execution
- session: query state plus the hand-edited SQL override
- execution: run/paginate/save controller over a pluggable executor
"""

from .compiler import generate_sql
from .execution import (
    BaseQueryExecutor,
    ExecutionStatus,
    QueryCancelledError,
    QueryExecutionController,
    QueryExecutionError,
)
from .schemas import (
    # Catalog types
    Column,
    Table,
    Dataset,
    Schema,
    # Query state types
    SelectedColumn,
    Filter,
    Join,
    OrderBy,
    QueryBuilderState,
    SqlOverride,
    QueryResult,
    # Enums
    AggregationFunction,
    FilterOperator,
    LogicalOperator,
    JoinType,
    SortDirection,
    SqlDialect,
)
from .session import QueryBuilderSession
from .state import InvalidQueryStateError
from .validator import QueryValidator, SQLValidationError, SQLValidationResult, validate_sql

__all__ = [
    "generate_sql",
    "validate_sql",
    "QueryValidator",
    "SQLValidationError",
    "SQLValidationResult",
    "QueryBuilderSession",
    "InvalidQueryStateError",
    "BaseQueryExecutor",
    "ExecutionStatus",
    "QueryCancelledError",
    "QueryExecutionController",
    "QueryExecutionError",
    "Column",
    "Table",
    "Dataset",
    "Schema",
    "SelectedColumn",
    "Filter",
    "Join",
    "OrderBy",
    "QueryBuilderState",
    "SqlOverride",
    "QueryResult",
    "AggregationFunction",
    "FilterOperator",
    "LogicalOperator",
    "JoinType",
    "SortDirection",
    "SqlDialect",
]
