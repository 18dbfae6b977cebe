"""
Builder session: query state plus the SQL override that can stand in for it.

The displayed and executed SQL is decided in one place, ``QueryBuilderSession.sql``:
the override text while the override is active, compiler output otherwise.
Any change to the query state hands control back to the compiler.
"""

import logging
from typing import Any, Iterable, Optional

from query_studio.core.config import DEFAULT_QUERY_LIMIT
from . import state as ops
from .compiler import generate_sql
from .schemas import (
    AggregationFunction,
    QueryBuilderState,
    SortDirection,
    SqlDialect,
    SqlOverride,
    Table,
)
from .validator import SQLValidationResult, validate_sql

logger = logging.getLogger(__name__)


class QueryBuilderSession:
    """In-memory state for one builder instance. Nothing here is shared between sessions."""

    def __init__(self, state: Optional[QueryBuilderState] = None, dialect: SqlDialect = SqlDialect.BIGQUERY):
        self._state = state if state is not None else QueryBuilderState(limit=DEFAULT_QUERY_LIMIT)
        self._override = SqlOverride()
        self._edit_buffer: Optional[str] = None
        self.dialect = SqlDialect(dialect)

    # ===== READ ACCESS =====

    @property
    def state(self) -> QueryBuilderState:
        return self._state

    @property
    def override(self) -> SqlOverride:
        return self._override

    @property
    def generated_sql(self) -> str:
        return generate_sql(self._state, self.dialect)

    @property
    def sql(self) -> str:
        """SQL shown to the user and sent for execution."""
        if self._override.active:
            return self._override.text
        return self.generated_sql

    def validate(self) -> SQLValidationResult:
        return validate_sql(self.sql)

    # ===== OVERRIDE / EDIT MODE =====

    @property
    def is_editing(self) -> bool:
        return self._edit_buffer is not None

    @property
    def edit_buffer(self) -> Optional[str]:
        return self._edit_buffer

    def begin_edit(self) -> str:
        """Enter edit mode with the currently displayed SQL as the buffer."""
        self._edit_buffer = self.sql
        return self._edit_buffer

    def update_edit_buffer(self, text: str) -> None:
        if self._edit_buffer is None:
            raise RuntimeError("Not in edit mode")
        self._edit_buffer = text

    def confirm_edit(self) -> SqlOverride:
        """Make the buffer the active SQL. A blank buffer returns control to the compiler."""
        if self._edit_buffer is None:
            raise RuntimeError("Not in edit mode")

        text = self._edit_buffer
        self._edit_buffer = None
        if text.strip():
            self._override = SqlOverride(active=True, text=text)
        else:
            self._override = SqlOverride()
        return self._override

    def cancel_edit(self) -> None:
        self._edit_buffer = None

    def clear_override(self) -> None:
        """Drop any override; the compiler owns the SQL again."""
        self._override = SqlOverride()

    # ===== STATE MUTATIONS =====

    def _apply(self, new_state: QueryBuilderState) -> QueryBuilderState:
        if self._override.active:
            logger.debug("Query state changed; discarding SQL override")
        self._state = new_state
        self.clear_override()
        return new_state

    def toggle_table(self, table: Table) -> QueryBuilderState:
        return self._apply(ops.toggle_table(self._state, table))

    def toggle_column(self, table: Table, column_name: str) -> QueryBuilderState:
        return self._apply(ops.toggle_column(self._state, table, column_name))

    def set_alias(self, table_name: str, column_name: str, alias: Optional[str]) -> QueryBuilderState:
        return self._apply(ops.set_alias(self._state, table_name, column_name, alias))

    def set_aggregation(
        self, table_name: str, column_name: str, aggregation: Optional[AggregationFunction]
    ) -> QueryBuilderState:
        return self._apply(ops.set_aggregation(self._state, table_name, column_name, aggregation))

    def reorder_column(self, from_index: int, to_index: int) -> QueryBuilderState:
        return self._apply(ops.reorder_column(self._state, from_index, to_index))

    def add_filter(self, filter_id: Optional[str] = None) -> QueryBuilderState:
        return self._apply(ops.add_filter(self._state, filter_id))

    def remove_filter(self, filter_id: str) -> QueryBuilderState:
        return self._apply(ops.remove_filter(self._state, filter_id))

    def update_filter(self, filter_id: str, **changes: Any) -> QueryBuilderState:
        return self._apply(ops.update_filter(self._state, filter_id, **changes))

    def add_join(self, join_id: Optional[str] = None) -> QueryBuilderState:
        return self._apply(ops.add_join(self._state, join_id))

    def remove_join(self, join_id: str) -> QueryBuilderState:
        return self._apply(ops.remove_join(self._state, join_id))

    def update_join(self, join_id: str, **changes: Any) -> QueryBuilderState:
        return self._apply(ops.update_join(self._state, join_id, **changes))

    def set_group_by(self, columns: Iterable[str]) -> QueryBuilderState:
        return self._apply(ops.set_group_by(self._state, columns))

    def add_order_by(self, column: str, direction: SortDirection = SortDirection.ASC) -> QueryBuilderState:
        return self._apply(ops.add_order_by(self._state, column, direction))

    def remove_order_by(self, column: str) -> QueryBuilderState:
        return self._apply(ops.remove_order_by(self._state, column))

    def set_limit(self, limit: Optional[int]) -> QueryBuilderState:
        return self._apply(ops.set_limit(self._state, limit))

    def reset(self) -> QueryBuilderState:
        """Back to an empty query with the default limit."""
        self._edit_buffer = None
        return self._apply(QueryBuilderState(limit=DEFAULT_QUERY_LIMIT))
