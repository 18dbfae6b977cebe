# query_studio/queries/models.py
"""Saved queries and query execution history."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Float
from datetime import datetime
from query_studio.core.database import Base


class SavedQuery(Base):
    """A named SQL query saved against a data source."""

    __tablename__ = "saved_queries"

    id = Column(Integer, primary_key=True, index=True)
    data_source_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    sql = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class QueryExecutionLog(Base):
    """One row per query run through the API."""

    __tablename__ = "query_execution_logs"

    id = Column(Integer, primary_key=True, index=True)
    data_source_id = Column(String, nullable=False, index=True)
    sql_text = Column(Text, nullable=False)
    success = Column(Boolean, nullable=False, default=True)
    row_count = Column(Integer, nullable=True)
    execution_time_ms = Column(Float, nullable=True)
    error_message = Column(Text, nullable=True)
    executed_at = Column(DateTime, default=datetime.now, index=True)
