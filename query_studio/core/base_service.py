# query_studio/core/base_service.py
"""Generic base service for business logic orchestration."""

from typing import Generic, TypeVar, Optional
from pydantic import BaseModel
from abc import ABC
from query_studio.core.base_dao import BaseDAO

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


class BaseService(Generic[ModelType, CreateSchemaType, UpdateSchemaType, ResponseSchemaType], ABC):
    """Generic service wrapping a DAO with validation hooks."""

    def __init__(self, dao: BaseDAO[ModelType]):
        self.dao = dao

    def create(self, create_data: CreateSchemaType, **extra_data) -> ResponseSchemaType:
        """Create new record with validation."""
        self._validate_create(create_data)

        data = create_data.model_dump()
        data.update(extra_data)
        record = self.dao.create(**data)
        return self._to_response(record)

    def update(self, id: int, update_data: UpdateSchemaType, **extra_data) -> Optional[ResponseSchemaType]:
        """Update existing record, applying only the fields that were sent."""
        record = self.dao.get_by_id(id)
        if not record:
            return None

        self._validate_update(record, update_data)

        data = update_data.model_dump(exclude_unset=True)
        data.update(extra_data)
        updated_record = self.dao.update(record, **data)
        return self._to_response(updated_record)

    def delete(self, id: int) -> bool:
        record = self.dao.get_by_id(id)
        if not record:
            return False
        return self.dao.delete(id)

    # ===== OVERRIDE IN SUBCLASSES =====

    def _to_response(self, record: ModelType) -> ResponseSchemaType:
        """Convert database model to response schema."""
        if hasattr(self, "response_model"):
            return self.response_model.model_validate(record)
        raise NotImplementedError("Must implement _to_response or set response_model")

    def _validate_create(self, create_data: CreateSchemaType) -> None:
        pass

    def _validate_update(self, record: ModelType, update_data: UpdateSchemaType) -> None:
        pass
