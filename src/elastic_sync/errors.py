"""Exception hierarchy for the sync engine.

Store adapters translate driver exceptions into these types so the
engine never has to know which client library raised.
"""


class SyncError(Exception):
    """Base class for all sync failures."""


class ConnectionBootstrapError(SyncError):
    """Raised when a store cannot be reached at startup."""

    def __init__(self, message: str, store: str, url: str) -> None:
        """Initialize connection error.

        Args:
            message: Error description.
            store: Which store failed ("source" or "target").
            url: Address that was dialled, with credentials removed.
        """
        super().__init__(message)
        self.store = store
        self.url = url


class SourceError(SyncError):
    """Raised when reading from the source database fails."""

    def __init__(self, message: str, collection: str | None = None) -> None:
        """Initialize source error.

        Args:
            message: Error description.
            collection: Collection being read, if any.
        """
        super().__init__(message)
        self.collection = collection


class ChangeFeedError(SourceError):
    """Raised when the change stream errors or closes."""


class TargetError(SyncError):
    """Raised when a call to the search index fails as a whole."""

    def __init__(self, message: str, index: str | None = None) -> None:
        """Initialize target error.

        Args:
            message: Error description.
            index: Index being written, if any.
        """
        super().__init__(message)
        self.index = index


class SnapshotError(SyncError):
    """Raised after a snapshot in which one or more collections failed."""

    def __init__(self, failed_collections: list[str]) -> None:
        """Initialize snapshot error.

        Args:
            failed_collections: Names of collections whose snapshot step failed.
        """
        super().__init__(
            f"Snapshot failed for collections: {', '.join(failed_collections)}"
        )
        self.failed_collections = failed_collections


class MutationError(SyncError):
    """Raised when a change event could not be applied to its index."""

    def __init__(self, index: str, cause: BaseException) -> None:
        """Initialize mutation error.

        Args:
            index: Index the mutation targeted.
            cause: Underlying failure.
        """
        super().__init__(f"Mutation on {index} failed: {cause}")
        self.index = index
        self.cause = cause
