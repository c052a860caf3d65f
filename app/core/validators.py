from typing import Any
from bson import ObjectId


def is_valid_object_id(value: Any) -> bool:
    """Check if value is a 24-character hex MongoDB ObjectId string."""
    return isinstance(value, str) and ObjectId.is_valid(value)


def is_non_empty_string(value: Any) -> bool:
    """Check if value is a non-empty string."""
    return isinstance(value, str) and value.strip() != ""
