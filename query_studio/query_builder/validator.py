# query_studio/query_builder/validator.py
"""Pre-flight SQL checks run before any query reaches an executor."""

import re
from typing import List, Optional, Pattern
from pydantic import BaseModel


class SQLValidationError(Exception):
    """Raised when SQL fails the pre-flight checks."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SQLValidationResult(BaseModel):
    """Result of SQL validation."""

    is_valid: bool
    error: Optional[str] = None


EMPTY_QUERY_ERROR = "SQL query is empty"
NOT_SELECT_ERROR = "Query must start with SELECT"
DANGEROUS_QUERY_ERROR = "Query contains potentially dangerous operations"


class QueryValidator:
    """
    Shallow denylist check for builder SQL.

    This is not a parser and not a security boundary: it only stops obviously
    non-SELECT text and stacked destructive statements from being sent.
    """

    def __init__(self, dangerous_patterns: Optional[List[str]] = None):
        patterns = dangerous_patterns or [
            r";\s*DROP",
            r";\s*DELETE",
            r";\s*TRUNCATE",
            r";\s*ALTER",
            r";\s*CREATE",
        ]
        self.dangerous_patterns: List[Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in patterns]

    def validate(self, sql_text: Optional[str]) -> SQLValidationResult:
        if not sql_text or not sql_text.strip():
            return SQLValidationResult(is_valid=False, error=EMPTY_QUERY_ERROR)

        if not sql_text.strip().upper().startswith("SELECT"):
            return SQLValidationResult(is_valid=False, error=NOT_SELECT_ERROR)

        for pattern in self.dangerous_patterns:
            if pattern.search(sql_text):
                return SQLValidationResult(is_valid=False, error=DANGEROUS_QUERY_ERROR)

        return SQLValidationResult(is_valid=True)

    def ensure_valid(self, sql_text: Optional[str]) -> str:
        """Return ``sql_text`` unchanged or raise SQLValidationError."""
        result = self.validate(sql_text)
        if not result.is_valid:
            raise SQLValidationError(result.error or "Invalid SQL")
        return sql_text


_default_validator = QueryValidator()


def validate_sql(sql_text: Optional[str]) -> SQLValidationResult:
    """Validate SQL with the default denylist."""
    return _default_validator.validate(sql_text)
