"""Conversion of MongoDB documents into search index bodies."""

import base64
import re
from collections.abc import Mapping
from typing import Any

from bson import Binary, Decimal128, ObjectId, Regex, Timestamp

ID_FIELD = "_id"


def normalize_id(value: Any) -> str:
    """Convert a native document identifier to the index id type.

    Args:
        value: Value of the source document's ``_id`` field.

    Returns:
        String identifier (ObjectIds become their 24-char hex form).
    """
    return str(value)


def to_search_value(value: Any) -> Any:
    """Convert BSON-specific values into JSON-serializable equivalents.

    Args:
        value: Any value found in a MongoDB document.

    Returns:
        Value the Elasticsearch serializer can encode.
    """
    if isinstance(value, Mapping):
        return {str(k): to_search_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_search_value(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, Timestamp):
        return value.as_datetime()
    if isinstance(value, (Binary, bytes)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (Regex, re.Pattern)):
        pattern = value.pattern
        return pattern.decode() if isinstance(pattern, bytes) else pattern
    return value


def split_document(document: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    """Separate a document's identifier from its indexable body.

    The identifier is removed from the body and returned as a string so
    it can be used as the explicit index id; writes keyed this way are
    idempotent across replays.

    Args:
        document: Source document including ``_id``.

    Returns:
        Tuple of (normalized_id, body_without_id).

    Raises:
        KeyError: If the document has no ``_id``.
    """
    doc_id = normalize_id(document[ID_FIELD])
    body = {
        str(key): to_search_value(value)
        for key, value in document.items()
        if key != ID_FIELD
    }
    return doc_id, body
