"""Adapters for the source database and the target search index."""

from elastic_sync.stores.base import (
    BulkItemResult,
    CollectionInfo,
    SourceStore,
    TargetStore,
)
from elastic_sync.stores.elastic import ElasticTarget
from elastic_sync.stores.mongo import MongoSource

__all__ = [
    "BulkItemResult",
    "CollectionInfo",
    "ElasticTarget",
    "MongoSource",
    "SourceStore",
    "TargetStore",
]
