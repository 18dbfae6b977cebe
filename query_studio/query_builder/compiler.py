"""
SQL generation for the visual query builder.

``generate_sql`` is the single source of truth for turning a QueryBuilderState
into SQL text. It is pure and memoized on the (hashable, frozen) state, so the
same state always yields byte-identical SQL.

Quoting defaults to BigQuery conventions: backtick identifiers containing a dot
or a space, backslash-escaped single quotes. ``SqlDialect.ANSI`` keeps dotted
names as qualified references (``orders.status``), double-quotes parts that
need it and doubles single quotes, which is what SQLite and Postgres expect.
"""

from functools import lru_cache
from typing import Any, Iterable, List

from .schemas import Filter, FilterOperator, LogicalOperator, QueryBuilderState, SqlDialect

NO_TABLE_PLACEHOLDER = "-- Please select at least one table"
NO_COLUMN_PLACEHOLDER = "-- Please select at least one column"

_NULL_CHECK_OPERATORS = {FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL}
_MEMBERSHIP_OPERATORS = {FilterOperator.IN, FilterOperator.NOT_IN}


def _ansi_quote(name: str) -> str:
    if " " in name or '"' in name:
        return '"' + name.replace('"', '""') + '"'
    return name


def escape_identifier(identifier: str, dialect: SqlDialect = SqlDialect.BIGQUERY) -> str:
    """Quote a table or column reference; bare when no quoting is needed."""
    if dialect == SqlDialect.ANSI:
        return ".".join(_ansi_quote(part) for part in identifier.split("."))
    if "." in identifier or " " in identifier:
        return f"`{identifier}`"
    return identifier


def escape_alias(alias: str, dialect: SqlDialect = SqlDialect.BIGQUERY) -> str:
    """Aliases are single names, so a dot never splits them."""
    if dialect == SqlDialect.ANSI:
        if "." in alias or " " in alias or '"' in alias:
            return '"' + alias.replace('"', '""') + '"'
        return alias
    return escape_identifier(alias, dialect)


def _format_number(value) -> str:
    # 10.0 -> 10, 1e16 -> 10000000000000000
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_value(value: Any, dialect: SqlDialect = SqlDialect.BIGQUERY) -> str:
    """Render a filter value as a SQL literal."""
    if value is None:
        return "NULL"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, str):
        if dialect == SqlDialect.ANSI:
            return "'" + value.replace("'", "''") + "'"
        return "'" + value.replace("'", "\\'") + "'"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, (list, tuple)):
        return "(" + ", ".join(escape_value(item, dialect) for item in value) + ")"
    return str(value)


def build_filter_condition(query_filter: Filter, dialect: SqlDialect = SqlDialect.BIGQUERY) -> str:
    column = escape_identifier(query_filter.column, dialect)
    operator = query_filter.operator.value

    if query_filter.operator in _NULL_CHECK_OPERATORS:
        return f"{column} {operator}"

    if query_filter.operator == FilterOperator.BETWEEN:
        return (
            f"{column} BETWEEN {escape_value(query_filter.value, dialect)} "
            f"AND {escape_value(query_filter.value2, dialect)}"
        )

    if query_filter.operator in _MEMBERSHIP_OPERATORS:
        if isinstance(query_filter.value, (list, tuple)):
            return f"{column} {operator} {escape_value(query_filter.value, dialect)}"
        return f"{column} {operator} ({escape_value(query_filter.value, dialect)})"

    # LIKE / NOT LIKE and plain comparisons
    return f"{column} {operator} {escape_value(query_filter.value, dialect)}"


def build_where_clause(filters: Iterable[Filter], dialect: SqlDialect = SqlDialect.BIGQUERY) -> str:
    conditions: List[str] = []
    for index, query_filter in enumerate(filters):
        condition = build_filter_condition(query_filter, dialect)
        if index == 0:
            conditions.append(condition)
        else:
            logical_op = query_filter.logical_op or LogicalOperator.AND
            conditions.append(f"{logical_op.value} {condition}")

    if not conditions:
        return ""
    return "WHERE " + "\n  ".join(conditions)


def _build_select_clause(state: QueryBuilderState, dialect: SqlDialect) -> str:
    items = []
    for selected in state.selected_columns:
        if dialect == SqlDialect.ANSI:
            expression = escape_identifier(f"{selected.table}.{selected.column.name}", dialect)
        else:
            expression = f"{escape_identifier(selected.table)}.{escape_identifier(selected.column.name)}"
        if selected.aggregation:
            expression = f"{selected.aggregation.value}({expression})"
        if selected.alias:
            expression = f"{expression} AS {escape_alias(selected.alias, dialect)}"
        items.append(expression)
    return "SELECT\n  " + ",\n  ".join(items)


def _build_join_clauses(state: QueryBuilderState, dialect: SqlDialect) -> str:
    return "\n".join(
        f"{join.type.value} JOIN {escape_identifier(join.table.id, dialect)} "
        f"ON {escape_identifier(join.left_column, dialect)} = {escape_identifier(join.right_column, dialect)}"
        for join in state.joins
    )


def generate_sql(state: QueryBuilderState, dialect: SqlDialect = SqlDialect.BIGQUERY) -> str:
    """
    Compile a builder state into SQL.

    Never raises: an incomplete state yields a one-line SQL comment naming
    what is missing.
    """
    # pydantic equality treats True == 1 == 1.0, the JSON form does not
    return _compile(state.model_dump_json(), state, SqlDialect(dialect))


@lru_cache(maxsize=256)
def _compile(state_key: str, state: QueryBuilderState, dialect: SqlDialect) -> str:
    if not state.selected_tables:
        return NO_TABLE_PLACEHOLDER

    if not state.selected_columns:
        return NO_COLUMN_PLACEHOLDER

    group_by_clause = ""
    if state.group_by:
        group_by_clause = "GROUP BY " + ", ".join(escape_identifier(c, dialect) for c in state.group_by)

    order_by_clause = ""
    if state.order_by:
        order_by_clause = "ORDER BY " + ", ".join(
            f"{escape_identifier(o.column, dialect)} {o.direction.value}" for o in state.order_by
        )

    parts = [
        _build_select_clause(state, dialect),
        f"FROM {escape_identifier(state.selected_tables[0].id, dialect)}",
        _build_join_clauses(state, dialect),
        build_where_clause(state.filters, dialect),
        group_by_clause,
        order_by_clause,
        f"LIMIT {state.limit}" if state.limit else "",
    ]
    return "\n".join(part for part in parts if part)
