"""
Unit tests for the builder session and its SQL override.
"""

import pytest

from query_studio.query_builder.compiler import NO_TABLE_PLACEHOLDER, generate_sql
from query_studio.query_builder.schemas import SqlDialect
from query_studio.query_builder.session import QueryBuilderSession


@pytest.fixture
def session(orders_table) -> QueryBuilderSession:
    session = QueryBuilderSession()
    session.toggle_table(orders_table)
    session.toggle_column(orders_table, "id")
    return session


class TestSessionDefaults:
    def test_starts_empty_with_default_limit(self):
        session = QueryBuilderSession()
        assert session.state.limit == 100
        assert session.sql == NO_TABLE_PLACEHOLDER
        assert session.override.active is False

    def test_sql_follows_state(self, session):
        assert session.sql == "SELECT\n  orders.id\nFROM orders\nLIMIT 100"
        assert session.validate().is_valid is True


class TestOverride:
    def test_confirmed_edit_replaces_compiled_sql(self, session):
        assert session.begin_edit() == session.generated_sql
        session.update_edit_buffer("SELECT 42")
        session.confirm_edit()

        assert session.override.active is True
        assert session.sql == "SELECT 42"
        assert session.is_editing is False

    def test_override_survives_until_state_changes(self, session, customers_table):
        session.begin_edit()
        session.update_edit_buffer("SELECT 42")
        session.confirm_edit()

        session.toggle_table(customers_table)

        assert session.override.active is False
        assert session.sql == generate_sql(session.state)

    @pytest.mark.parametrize(
        "mutation",
        [
            lambda s: s.set_limit(10),
            lambda s: s.add_filter(),
            lambda s: s.set_alias("orders", "id", "order_id"),
            lambda s: s.add_order_by("id"),
        ],
    )
    def test_any_mutation_clears_override(self, session, mutation):
        session.begin_edit()
        session.update_edit_buffer("SELECT 42")
        session.confirm_edit()

        mutation(session)

        assert session.override.active is False
        assert session.sql != "SELECT 42"

    def test_cancel_edit_keeps_previous_override(self, session):
        session.begin_edit()
        session.update_edit_buffer("SELECT 1")
        session.confirm_edit()

        session.begin_edit()
        session.update_edit_buffer("SELECT 2")
        session.cancel_edit()

        assert session.sql == "SELECT 1"
        assert session.edit_buffer is None

    def test_blank_edit_returns_to_compiler(self, session):
        session.begin_edit()
        session.update_edit_buffer("   ")
        session.confirm_edit()

        assert session.override.active is False
        assert session.sql == session.generated_sql

    def test_clear_override_hands_sql_back_to_compiler(self, session):
        session.begin_edit()
        session.update_edit_buffer("SELECT 42")
        session.confirm_edit()

        session.clear_override()

        assert session.override.active is False
        assert session.override.text == ""
        assert session.sql == session.generated_sql

    def test_invalid_override_is_reported(self, session):
        session.begin_edit()
        session.update_edit_buffer("DROP TABLE orders")
        session.confirm_edit()

        result = session.validate()
        assert result.is_valid is False
        assert result.error == "Query must start with SELECT"

    def test_buffer_updates_require_edit_mode(self, session):
        with pytest.raises(RuntimeError):
            session.update_edit_buffer("SELECT 1")
        with pytest.raises(RuntimeError):
            session.confirm_edit()

    def test_reset(self, session):
        session.begin_edit()
        session.reset()
        assert session.state.selected_tables == ()
        assert session.is_editing is False
        assert session.sql == NO_TABLE_PLACEHOLDER


class TestSessionDialect:
    def test_defaults_to_bigquery_quoting(self, session):
        session.add_filter()
        session.update_filter(session.state.filters[0].id, column="orders.id", value=1)
        assert session.dialect == SqlDialect.BIGQUERY
        assert "WHERE `orders.id` = 1" in session.sql

    def test_ansi_session(self, orders_table):
        session = QueryBuilderSession(dialect=SqlDialect.ANSI)
        session.toggle_table(orders_table)
        session.toggle_column(orders_table, "id")
        session.add_filter("f")
        session.update_filter("f", column="orders.status", value="it's")

        assert "WHERE orders.status = 'it''s'" in session.sql
