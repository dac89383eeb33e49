"""
Base models for all MongoDB document models.

PyObjectId handles the mismatch between BSON ObjectId and Pydantic v2.
MongoBaseModel provides to_mongo() / from_mongo() for round-tripping between
Python objects and raw MongoDB dicts. VersionedDoc adds the optimistic
concurrency counter shared by every mutable entity.
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    """BSON ObjectId that Pydantic v2 knows how to validate and serialize."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        if isinstance(v, ObjectId):
            return v
        if isinstance(v, str) and ObjectId.is_valid(v):
            return ObjectId(v)
        raise ValueError(f"Invalid ObjectId: {v!r}")


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return *value* as an ObjectId, or None when it is not a valid id.

    Path parameters arrive as strings; an id that cannot exist is reported
    the same way as an id that does not exist.
    """
    try:
        return PyObjectId._validate(value)
    except ValueError:
        return None


class MongoBaseModel(BaseModel):
    """
    Base for all document models.

    Stores the MongoDB _id as `id` (PyObjectId). Subclasses add collection-
    specific fields on top.

    to_mongo()  — converts model → dict suitable for pymongo insert/update
    from_mongo() — converts raw pymongo dict → model instance (returns None
                    gracefully when passed None)
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Return a dict ready for MongoDB insertion.

        - Renames `id` → `_id`
        - Excludes None `_id` so MongoDB can auto-generate it on insert
        - Leaves out resolved relations (fields declared with exclude=True)
        """
        data = self.model_dump(by_alias=True, exclude_none=False)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["MongoBaseModel"]:
        """Build a model instance from a raw MongoDB document dict.

        Returns None when data is None (e.g. find_one returns None).
        Missing optional fields are filled with their defaults.
        """
        if data is None:
            return None
        return cls.model_validate(data)


class VersionedDoc(MongoBaseModel):
    """Document with a version counter for compare-and-swap writes.

    The store increments ``version`` on every successful write of an existing
    document and rejects a write whose expected version is stale.
    """

    version: int = Field(default=0, ge=0)
