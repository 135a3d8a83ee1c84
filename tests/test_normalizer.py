"""Change event normalization tests."""

from bson import ObjectId

from elastic_sync.sync.events import (
    DeleteEvent,
    DropEvent,
    InsertEvent,
    UnknownEvent,
    UpdateEvent,
)
from elastic_sync.sync.normalizer import extract_collection, parse_change_event


def _ns(coll: str | None = "orders") -> dict:
    ns = {"db": "app"}
    if coll is not None:
        ns["coll"] = coll
    return ns


def test_insert_event_carries_stringified_id_and_body() -> None:
    """Insert events strip _id from the body and normalize it."""
    oid = ObjectId("64b7f0c2a1b2c3d4e5f60718")
    event = parse_change_event(
        {
            "operationType": "insert",
            "ns": _ns(),
            "documentKey": {"_id": oid},
            "fullDocument": {"_id": oid, "status": "new"},
        }
    )
    assert event == InsertEvent(
        collection="orders",
        document_id="64b7f0c2a1b2c3d4e5f60718",
        document={"status": "new"},
    )


def test_update_event_uses_full_document() -> None:
    """Update events carry the current document, not the delta."""
    event = parse_change_event(
        {
            "operationType": "update",
            "ns": _ns(),
            "documentKey": {"_id": "o1"},
            "updateDescription": {"updatedFields": {"status": "shipped"}},
            "fullDocument": {"_id": "o1", "status": "shipped", "total": 10},
        }
    )
    assert isinstance(event, UpdateEvent)
    assert event.document == {"status": "shipped", "total": 10}


def test_replace_event_maps_to_update() -> None:
    """replaceOne events are applied with upsert semantics."""
    event = parse_change_event(
        {
            "operationType": "replace",
            "ns": _ns(),
            "fullDocument": {"_id": "o1", "status": "void"},
        }
    )
    assert isinstance(event, UpdateEvent)
    assert event.document_id == "o1"


def test_update_without_full_document_is_unknown() -> None:
    """An update whose lookup found nothing is skipped, not applied."""
    event = parse_change_event(
        {"operationType": "update", "ns": _ns(), "documentKey": {"_id": "o1"}, "fullDocument": None}
    )
    assert isinstance(event, UnknownEvent)
    assert event.collection == "orders"
    assert event.reason == "full document unavailable"


def test_delete_event_uses_document_key() -> None:
    """Delete events carry only the normalized id."""
    event = parse_change_event(
        {"operationType": "delete", "ns": _ns(), "documentKey": {"_id": 7}}
    )
    assert event == DeleteEvent(collection="orders", document_id="7")


def test_drop_event() -> None:
    """Drop events carry the collection only."""
    event = parse_change_event({"operationType": "drop", "ns": _ns()})
    assert event == DropEvent(collection="orders")


def test_database_level_event_is_unknown() -> None:
    """Events without a collection namespace are not actionable."""
    event = parse_change_event({"operationType": "dropDatabase", "ns": _ns(None)})
    assert isinstance(event, UnknownEvent)
    assert event.collection is None


def test_unrecognized_operation_is_unknown() -> None:
    """New server operation kinds never raise."""
    event = parse_change_event({"operationType": "createIndexes", "ns": _ns()})
    assert event == UnknownEvent(operation="createIndexes", collection="orders")


def test_malformed_event_is_unknown() -> None:
    """Garbage input maps to an unknown event."""
    event = parse_change_event({})
    assert isinstance(event, UnknownEvent)
    assert event.operation == ""


def test_extract_collection_ignores_non_mapping_namespace() -> None:
    """A namespace that is not a mapping yields no collection."""
    assert extract_collection({"ns": "app.orders"}) is None
