"""Mapping from source collection names to target index names."""

INDEX_SEPARATOR = "__"


def index_name(prefix: str, collection: str) -> str:
    """Derive the index that mirrors a collection.

    Elasticsearch index names must be lowercase, so collections whose
    names differ only by case ("Users" and "users") share one index.
    Every component that addresses an index goes through this function.

    Args:
        prefix: Configured index prefix.
        collection: Source collection name.

    Returns:
        Target index name.
    """
    return f"{prefix}{INDEX_SEPARATOR}{collection.lower()}"
