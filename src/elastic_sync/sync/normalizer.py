"""Normalization of raw change stream documents into typed events."""

from collections.abc import Mapping
from typing import Any

from elastic_sync.sync.documents import ID_FIELD, normalize_id, split_document
from elastic_sync.sync.events import (
    ChangeEvent,
    DeleteEvent,
    DropEvent,
    InsertEvent,
    UnknownEvent,
    UpdateEvent,
)

# replaceOne delivers the complete new document, same as an update lookup
_DOCUMENT_OPERATIONS: frozenset[str] = frozenset({"insert", "update", "replace"})


def extract_collection(raw: Mapping[str, Any]) -> str | None:
    """Extract the collection name from an event namespace.

    Args:
        raw: Raw change stream document.

    Returns:
        Collection name, or None for database-level events.
    """
    ns = raw.get("ns")
    if not isinstance(ns, Mapping):
        return None
    coll = ns.get("coll")
    return coll if isinstance(coll, str) and coll else None


def _full_document(raw: Mapping[str, Any]) -> Mapping[str, Any] | None:
    document = raw.get("fullDocument")
    if isinstance(document, Mapping) and ID_FIELD in document:
        return document
    return None


def parse_change_event(raw: Mapping[str, Any]) -> ChangeEvent:
    """Transform a raw change stream document into a typed event.

    Never raises for unexpected shapes: anything that cannot be mapped
    becomes an UnknownEvent carrying the reason.

    Args:
        raw: Raw change stream document as yielded by the driver.

    Returns:
        Typed change event.
    """
    operation = str(raw.get("operationType", ""))
    collection = extract_collection(raw)

    if collection is None:
        return UnknownEvent(
            operation=operation, reason="event is not scoped to a collection"
        )

    if operation in _DOCUMENT_OPERATIONS:
        document = _full_document(raw)
        if document is None:
            # Update lookup returns null once the document has been deleted
            return UnknownEvent(
                operation=operation,
                collection=collection,
                reason="full document unavailable",
            )
        doc_id, body = split_document(document)
        if operation == "insert":
            return InsertEvent(collection=collection, document_id=doc_id, document=body)
        return UpdateEvent(collection=collection, document_id=doc_id, document=body)

    if operation == "delete":
        key = raw.get("documentKey")
        if not isinstance(key, Mapping) or ID_FIELD not in key:
            return UnknownEvent(
                operation=operation,
                collection=collection,
                reason="document key missing",
            )
        return DeleteEvent(collection=collection, document_id=normalize_id(key[ID_FIELD]))

    if operation == "drop":
        return DropEvent(collection=collection)

    return UnknownEvent(operation=operation, collection=collection)
