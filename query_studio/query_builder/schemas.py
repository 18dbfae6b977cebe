"""
Query builder schemas and types.

Every builder type is a frozen pydantic model so a QueryBuilderState is
immutable and hashable. Sequences are stored as tuples; lists passed in
(from JSON or Python) are coerced on validation.
"""

from typing import Any, Dict, List, Optional, Tuple, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

from query_studio.query_builder.validator import SQLValidationResult


class AggregationFunction(str, Enum):
    """Aggregations that can wrap a selected column."""

    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"


class FilterOperator(str, Enum):
    """Comparison operators available to filters."""

    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_OR_EQUAL = ">="
    LESS_OR_EQUAL = "<="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    BETWEEN = "BETWEEN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class JoinType(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL_OUTER = "FULL OUTER"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class SqlDialect(str, Enum):
    """Quoting rules the compiler writes for."""

    # backtick `a.b` paths, backslash-escaped quotes
    BIGQUERY = "bigquery"
    # dotted names left as qualified references, double-quoted parts, doubled quotes
    ANSI = "ansi"


# Filter values are a closed set of variants so value escaping stays exhaustive.
# Strict types keep bool from being read as int (and "10" from being read as 10).
ScalarValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]
FilterValue = Union[ScalarValue, Tuple[ScalarValue, ...]]


_FROZEN = ConfigDict(frozen=True)


# ===== SCHEMA CATALOG TYPES =====


class Column(BaseModel):
    """A column as reported by the schema catalog."""

    name: str
    type: str
    description: Optional[str] = None

    model_config = _FROZEN


class Table(BaseModel):
    """A table as reported by the schema catalog. Tables are identified by ``id``."""

    id: str
    name: str
    columns: Tuple[Column, ...] = ()

    model_config = _FROZEN

    def get_column(self, column_name: str) -> Optional[Column]:
        return next((c for c in self.columns if c.name == column_name), None)


class Dataset(BaseModel):
    id: str
    name: str
    tables: Tuple[Table, ...] = ()

    model_config = _FROZEN


class Schema(BaseModel):
    datasets: Tuple[Dataset, ...] = ()

    model_config = _FROZEN

    def find_table(self, table_id: str) -> Optional[Table]:
        for dataset in self.datasets:
            for table in dataset.tables:
                if table.id == table_id:
                    return table
        return None


# ===== QUERY STATE TYPES =====


class SelectedColumn(BaseModel):
    """A column in the SELECT list; ``table`` is the owning table's name."""

    table: str
    column: Column
    alias: Optional[str] = None
    aggregation: Optional[AggregationFunction] = None

    model_config = _FROZEN

    def matches(self, table_name: str, column_name: str) -> bool:
        return self.table == table_name and self.column.name == column_name


class Filter(BaseModel):
    """A WHERE condition. ``value2`` is only read by BETWEEN."""

    id: str
    column: str = ""
    operator: FilterOperator = FilterOperator.EQUALS
    value: FilterValue = ""
    value2: FilterValue = None
    logical_op: Optional[LogicalOperator] = None

    model_config = _FROZEN


class Join(BaseModel):
    id: str
    type: JoinType = JoinType.INNER
    table: Table
    left_column: str = ""
    right_column: str = ""

    model_config = _FROZEN


class OrderBy(BaseModel):
    column: str
    direction: SortDirection = SortDirection.ASC

    model_config = _FROZEN


class QueryBuilderState(BaseModel):
    """
    Structured, not-yet-rendered query.

    ``selected_tables[0]`` is the base table used in the FROM clause.
    """

    selected_tables: Tuple[Table, ...] = ()
    selected_columns: Tuple[SelectedColumn, ...] = ()
    filters: Tuple[Filter, ...] = ()
    joins: Tuple[Join, ...] = ()
    group_by: Tuple[str, ...] = ()
    order_by: Tuple[OrderBy, ...] = ()
    limit: Optional[int] = None

    model_config = _FROZEN

    @property
    def base_table(self) -> Optional[Table]:
        return self.selected_tables[0] if self.selected_tables else None

    def is_table_selected(self, table_id: str) -> bool:
        return any(t.id == table_id for t in self.selected_tables)


class SqlOverride(BaseModel):
    """Hand-edited SQL that replaces compiler output while ``active``."""

    active: bool = False
    text: str = ""

    model_config = _FROZEN


# ===== EXECUTION TYPES =====


class QueryResult(BaseModel):
    """Tabular result returned by an executor."""

    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0


# ===== API SCHEMAS =====


class CompileRequest(BaseModel):
    state: QueryBuilderState
    override: Optional[SqlOverride] = None
    # quote for this source's dialect; BigQuery rules when omitted
    data_source_id: Optional[str] = None


class CompileResponse(BaseModel):
    sql: str
    is_override: bool
    dialect: SqlDialect
    validation: SQLValidationResult


class ValidateRequest(BaseModel):
    sql: str


class RunQueryRequest(BaseModel):
    sql: str
    page: int = Field(1, ge=1)
    use_cache: bool = True


class RunQueryResponse(BaseModel):
    columns: List[str]
    rows: List[Dict[str, Any]]
    row_count: int
    page: int
    rows_per_page: int
    total_pages: int
    execution_time_ms: float


class ExportRequest(BaseModel):
    sql: str
    sheet_name: str = "Query Results"


class DataSourceList(BaseModel):
    data_sources: List[str]
    default: str


class ConnectionStatus(BaseModel):
    data_source_id: str
    connected: bool
    dialect: Optional[str] = None
    error: Optional[str] = None
