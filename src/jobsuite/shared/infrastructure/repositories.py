"""
Base repository classes for the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from jobsuite.shared.domain.types import EntityId

T = TypeVar("T")


def to_object_id(entity_id: Any) -> Optional[ObjectId]:
    """Convert an id value to an ObjectId, or None when it is not one."""
    if isinstance(entity_id, ObjectId):
        return entity_id
    try:
        return ObjectId(str(entity_id))
    except (InvalidId, TypeError):
        return None


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository."""

    @abstractmethod
    async def find_by_id(self, entity_id: EntityId) -> Optional[T]:
        """Find entity by ID."""
        pass


class BaseMongoRepository(BaseRepository[T]):
    """Base MongoDB repository implementation."""

    def __init__(self, database: AsyncIOMotorDatabase, collection_name: str, entity_class: type):
        self.database = database
        self.collection: AsyncIOMotorCollection = database[collection_name]
        self.entity_class = entity_class

    async def find_by_id(self, entity_id: EntityId) -> Optional[T]:
        """Find entity by ID."""
        object_id = to_object_id(entity_id)
        if object_id is None:
            return None

        document = await self.collection.find_one({"_id": object_id})
        if not document:
            return None
        return self._document_to_entity(document)

    async def delete_by_id(self, entity_id: EntityId) -> bool:
        """Delete entity by ID."""
        object_id = to_object_id(entity_id)
        if object_id is None:
            return False

        result = await self.collection.delete_one({"_id": object_id})
        return result.deleted_count > 0

    def _document_to_entity(self, document: Dict[str, Any]) -> T:
        """Convert MongoDB document to entity. Override in subclasses."""
        raise NotImplementedError("Subclasses must implement _document_to_entity")
