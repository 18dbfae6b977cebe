"""
Pure operations on QueryBuilderState.

Each function takes a state and returns a new one; nothing is mutated. The
cascade rule (deselecting a table drops its columns and joins) lives in
``toggle_table`` and nowhere else.
"""

import uuid
from typing import Any, Iterable, Optional

from query_studio.core.config import MAX_QUERY_LIMIT, MIN_QUERY_LIMIT
from .schemas import (
    AggregationFunction,
    Filter,
    Join,
    JoinType,
    LogicalOperator,
    OrderBy,
    QueryBuilderState,
    SelectedColumn,
    SortDirection,
    Table,
)


class InvalidQueryStateError(ValueError):
    """Raised when an operation would break a query state invariant."""


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ===== TABLES =====


def toggle_table(state: QueryBuilderState, table: Table) -> QueryBuilderState:
    """Select ``table``, or deselect it along with every column and join that references it."""
    if not state.is_table_selected(table.id):
        return state.model_copy(update={"selected_tables": state.selected_tables + (table,)})

    return state.model_copy(
        update={
            "selected_tables": tuple(t for t in state.selected_tables if t.id != table.id),
            "selected_columns": tuple(c for c in state.selected_columns if c.table != table.name),
            "joins": tuple(j for j in state.joins if j.table.id != table.id),
        }
    )


# ===== COLUMNS =====


def toggle_column(state: QueryBuilderState, table: Table, column_name: str) -> QueryBuilderState:
    column = table.get_column(column_name)
    if column is None:
        return state

    if any(c.matches(table.name, column_name) for c in state.selected_columns):
        remaining = tuple(c for c in state.selected_columns if not c.matches(table.name, column_name))
        return state.model_copy(update={"selected_columns": remaining})

    if not state.is_table_selected(table.id):
        raise InvalidQueryStateError(f"Table '{table.name}' is not selected")

    selected = SelectedColumn(table=table.name, column=column)
    return state.model_copy(update={"selected_columns": state.selected_columns + (selected,)})


def _replace_column(state: QueryBuilderState, table_name: str, column_name: str, **changes) -> QueryBuilderState:
    columns = tuple(
        c.model_copy(update=changes) if c.matches(table_name, column_name) else c
        for c in state.selected_columns
    )
    return state.model_copy(update={"selected_columns": columns})


def set_alias(state: QueryBuilderState, table_name: str, column_name: str, alias: Optional[str]) -> QueryBuilderState:
    return _replace_column(state, table_name, column_name, alias=alias or None)


def set_aggregation(
    state: QueryBuilderState,
    table_name: str,
    column_name: str,
    aggregation: Optional[AggregationFunction],
) -> QueryBuilderState:
    if aggregation is not None:
        aggregation = AggregationFunction(aggregation)
    return _replace_column(state, table_name, column_name, aggregation=aggregation)


def reorder_column(state: QueryBuilderState, from_index: int, to_index: int) -> QueryBuilderState:
    """Move a selected column; SELECT list order follows this order."""
    count = len(state.selected_columns)
    if not (0 <= from_index < count) or not (0 <= to_index < count):
        raise IndexError(f"Column index out of range (have {count} selected columns)")

    columns = list(state.selected_columns)
    moved = columns.pop(from_index)
    columns.insert(to_index, moved)
    return state.model_copy(update={"selected_columns": tuple(columns)})


# ===== FILTERS =====


def add_filter(state: QueryBuilderState, filter_id: Optional[str] = None) -> QueryBuilderState:
    new_filter = Filter(
        id=filter_id or _new_id("filter"),
        logical_op=LogicalOperator.AND if state.filters else None,
    )
    return state.model_copy(update={"filters": state.filters + (new_filter,)})


def remove_filter(state: QueryBuilderState, filter_id: str) -> QueryBuilderState:
    return state.model_copy(update={"filters": tuple(f for f in state.filters if f.id != filter_id)})


def update_filter(state: QueryBuilderState, filter_id: str, **changes: Any) -> QueryBuilderState:
    """Apply a partial update to one filter; unknown ids leave the state unchanged."""
    changes.pop("id", None)
    filters = tuple(
        Filter.model_validate({**f.model_dump(), **changes}) if f.id == filter_id else f
        for f in state.filters
    )
    return state.model_copy(update={"filters": filters})


# ===== JOINS =====


def add_join(state: QueryBuilderState, join_id: Optional[str] = None) -> QueryBuilderState:
    """Append an INNER join against the second selected table; needs two tables."""
    if len(state.selected_tables) < 2:
        return state

    new_join = Join(id=join_id or _new_id("join"), type=JoinType.INNER, table=state.selected_tables[1])
    return state.model_copy(update={"joins": state.joins + (new_join,)})


def remove_join(state: QueryBuilderState, join_id: str) -> QueryBuilderState:
    return state.model_copy(update={"joins": tuple(j for j in state.joins if j.id != join_id)})


def update_join(state: QueryBuilderState, join_id: str, **changes: Any) -> QueryBuilderState:
    changes.pop("id", None)
    joins = []
    for join in state.joins:
        if join.id == join_id:
            join = Join.model_validate({**join.model_dump(), **changes})
            base = state.base_table
            if base is not None and join.table.id == base.id:
                raise InvalidQueryStateError("A join cannot target the base table")
            if not state.is_table_selected(join.table.id):
                raise InvalidQueryStateError(f"Table '{join.table.name}' is not selected")
        joins.append(join)
    return state.model_copy(update={"joins": tuple(joins)})


# ===== GROUPING / ORDERING / LIMIT =====


def set_group_by(state: QueryBuilderState, columns: Iterable[str]) -> QueryBuilderState:
    return state.model_copy(update={"group_by": tuple(columns)})


def add_order_by(
    state: QueryBuilderState, column: str, direction: SortDirection = SortDirection.ASC
) -> QueryBuilderState:
    """Order by ``column``; re-adding an ordered column replaces its direction in place."""
    entry = OrderBy(column=column, direction=direction)
    if any(o.column == column for o in state.order_by):
        order_by = tuple(entry if o.column == column else o for o in state.order_by)
    else:
        order_by = state.order_by + (entry,)
    return state.model_copy(update={"order_by": order_by})


def remove_order_by(state: QueryBuilderState, column: str) -> QueryBuilderState:
    return state.model_copy(update={"order_by": tuple(o for o in state.order_by if o.column != column)})


def clamp_limit(limit: int) -> int:
    return max(MIN_QUERY_LIMIT, min(MAX_QUERY_LIMIT, int(limit)))


def set_limit(state: QueryBuilderState, limit: Optional[int]) -> QueryBuilderState:
    return state.model_copy(update={"limit": None if limit is None else clamp_limit(limit)})
