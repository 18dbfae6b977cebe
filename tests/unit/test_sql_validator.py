"""
Unit tests for the pre-flight SQL validator.
"""

import pytest

from query_studio.query_builder.validator import (
    DANGEROUS_QUERY_ERROR,
    EMPTY_QUERY_ERROR,
    NOT_SELECT_ERROR,
    QueryValidator,
    SQLValidationError,
    validate_sql,
)


class TestValidateSql:
    @pytest.mark.parametrize("sql", ["", "   ", "\n\t", None])
    def test_empty(self, sql):
        result = validate_sql(sql)
        assert result.is_valid is False
        assert result.error == "SQL query is empty"
        assert result.error == EMPTY_QUERY_ERROR

    def test_update_is_rejected(self):
        result = validate_sql("UPDATE x SET y=1")
        assert result.is_valid is False
        assert result.error == NOT_SELECT_ERROR

    def test_stacked_drop_is_rejected(self):
        result = validate_sql("SELECT 1; DROP TABLE x")
        assert result.is_valid is False
        assert result.error == DANGEROUS_QUERY_ERROR

    @pytest.mark.parametrize("keyword", ["delete", "TRUNCATE", "Alter", "create"])
    def test_other_stacked_statements(self, keyword):
        assert validate_sql(f"SELECT 1;\n  {keyword} something").is_valid is False

    def test_case_insensitive_select_with_leading_whitespace(self):
        assert validate_sql("  select id from orders").is_valid is True

    def test_compiler_placeholder_is_not_runnable(self):
        assert validate_sql("-- Please select at least one table").error == NOT_SELECT_ERROR

    def test_keyword_without_semicolon_is_allowed(self):
        # Only stacked statements are caught
        assert validate_sql("SELECT created_at FROM orders").is_valid is True


class TestQueryValidator:
    def test_ensure_valid_returns_sql(self):
        assert QueryValidator().ensure_valid("SELECT 1") == "SELECT 1"

    def test_ensure_valid_raises(self):
        with pytest.raises(SQLValidationError) as exc_info:
            QueryValidator().ensure_valid("DELETE FROM orders")
        assert exc_info.value.message == NOT_SELECT_ERROR

    def test_custom_patterns(self):
        validator = QueryValidator(dangerous_patterns=[r"\bpg_sleep\b"])
        assert validator.validate("SELECT pg_sleep(10)").is_valid is False
        assert validator.validate("SELECT 1; DROP TABLE x").is_valid is True
