from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any
from bson import ObjectId


class MongoModel(BaseModel):
    """
    Base model for documents read from MongoDB.

    Field names are snake_case in Python and camelCase on the wire and in the
    database, matching what the web client sends and expects.
    """
    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def stringify_object_ids(cls, value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        return value
