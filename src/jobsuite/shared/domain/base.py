"""
Base domain classes.
"""

from abc import ABC
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict


EntityIdT = TypeVar("EntityIdT")


class Entity(ABC, Generic[EntityIdT]):
    """Base entity class with identity."""

    def __init__(self, entity_id: EntityIdT):
        self._id = entity_id

    @property
    def id(self) -> EntityIdT:
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class ValueObject(BaseModel, ABC):
    """Base value object class."""

    model_config = ConfigDict(frozen=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.model_dump() == other.model_dump()

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.model_dump().items())))
