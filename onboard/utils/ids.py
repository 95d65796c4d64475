from typing import Any, Dict

from bson import ObjectId
from fastapi import HTTPException


def to_object_id(value: str, label: str = "ID") -> ObjectId:
    """Parse a path/body id, answering 400 when it is not an ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")
    return ObjectId(value)


def serialize_doc(doc: Any) -> Any:
    """Turn a Mongo document into plain JSON-able data.

    ``_id`` becomes ``id`` and every ObjectId becomes its hex string.
    """
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [serialize_doc(item) for item in doc]
    if isinstance(doc, dict):
        result: Dict[str, Any] = {}
        for key, value in doc.items():
            if key == "_id":
                result["id"] = str(value)
            else:
                result[key] = serialize_doc(value)
        return result
    return doc
