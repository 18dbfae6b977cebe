"""Pydantic schemas for saved queries and execution logs."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator


class SavedQueryBase(BaseModel):
    name: str
    description: Optional[str] = None
    sql: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Query name is required")
        return v.strip()


class SavedQueryCreate(SavedQueryBase):
    pass


class SavedQueryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    sql: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Query name cannot be empty")
        return v.strip() if v is not None else v


class SavedQueryRead(SavedQueryBase):
    id: int
    data_source_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ExecutionLogRead(BaseModel):
    id: int
    data_source_id: str
    sql_text: str
    success: bool
    row_count: Optional[int] = None
    execution_time_ms: Optional[float] = None
    error_message: Optional[str] = None
    executed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
