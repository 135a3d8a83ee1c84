"""Typed change events observed on the source change stream."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class InsertEvent(_Event):
    """A document was inserted.

    Attributes:
        collection: Source collection name.
        document_id: Normalized string identifier.
        document: Full document body with ``_id`` removed.
    """

    kind: Literal["insert"] = "insert"
    collection: str
    document_id: str
    document: dict[str, Any]


class UpdateEvent(_Event):
    """A document was updated or replaced; carries its current full body.

    Attributes:
        collection: Source collection name.
        document_id: Normalized string identifier.
        document: Current full document body with ``_id`` removed.
    """

    kind: Literal["update"] = "update"
    collection: str
    document_id: str
    document: dict[str, Any]


class DeleteEvent(_Event):
    """A document was deleted.

    Attributes:
        collection: Source collection name.
        document_id: Normalized string identifier.
    """

    kind: Literal["delete"] = "delete"
    collection: str
    document_id: str


class DropEvent(_Event):
    """A collection was dropped.

    Attributes:
        collection: Source collection name.
    """

    kind: Literal["drop"] = "drop"
    collection: str


class UnknownEvent(_Event):
    """Any event the engine does not act upon.

    Attributes:
        operation: Raw ``operationType`` reported by the stream.
        collection: Collection name when the event is collection-scoped.
        reason: Why the event was not mapped to an actionable kind.
    """

    kind: Literal["unknown"] = "unknown"
    operation: str
    collection: str | None = None
    reason: str = "unhandled operation"


ChangeEvent = Annotated[
    InsertEvent | UpdateEvent | DeleteEvent | DropEvent | UnknownEvent,
    Field(discriminator="kind"),
]
