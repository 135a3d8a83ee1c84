"""Service configuration loaded from environment variables."""

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncOptions(BaseModel):
    """Immutable options consumed by the sync orchestrator.

    Attributes:
        prefix: Prefix prepended to every derived index name.
        initial_sync: Snapshot existing collections before watching.
        debug: Verbose per-step diagnostics.
        propagate_errors: Raise failures from top-level entry points
            instead of logging them and returning.
        excluded_collections: Collection names never read or indexed.
        chunk_size: Maximum documents per bulk request.
        snapshot_concurrency: Collections snapshotted in parallel.
        max_in_flight: Change mutations allowed to be pending at once.
    """

    model_config = ConfigDict(frozen=True)

    prefix: str = "auto-sync-"
    initial_sync: bool = True
    debug: bool = False
    propagate_errors: bool = False
    excluded_collections: frozenset[str] = frozenset()
    chunk_size: int = Field(default=500, ge=1)
    snapshot_concurrency: int = Field(default=4, ge=1)
    max_in_flight: int = Field(default=1000, ge=1)


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    Attributes:
        mongodb_url: MongoDB connection URI (replica set required for
            change streams).
        mongodb_database: Database to mirror. Uses the URI default if empty.
        elastic_url: Elasticsearch node URL.
        elastic_ca_certs: Path to a CA bundle for TLS verification.
        elastic_verify_certs: Verify the server certificate. Disable for
            self-signed deployments.
        index_prefix: Prefix for derived index names.
        initial_sync: Snapshot existing collections before watching.
        debug: Enable debug logging and error propagation.
        propagate_errors: Override the error policy independently of debug.
        excluded_collections_raw: Comma-separated collection names to skip.
        bulk_chunk_size: Maximum documents per bulk request.
        snapshot_concurrency: Collections snapshotted in parallel.
        max_in_flight_mutations: Pending change mutations before the feed
            consumer waits.
        shutdown_timeout: Seconds to wait for in-flight mutations on shutdown.
        health_enabled: Serve liveness/readiness probes over HTTP.
        host: Bind address for the probe server.
        port: Port number for the probe server.
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    mongodb_url: str
    mongodb_database: str = ""
    elastic_url: str
    elastic_ca_certs: str = ""
    elastic_verify_certs: bool = True

    index_prefix: str = "auto-sync-"
    initial_sync: bool = True
    debug: bool = False
    propagate_errors: bool | None = None
    excluded_collections_raw: str = ""

    bulk_chunk_size: int = Field(default=500, ge=1)
    snapshot_concurrency: int = Field(default=4, ge=1)
    max_in_flight_mutations: int = Field(default=1000, ge=1)
    shutdown_timeout: float = 30.0

    health_enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8000

    @computed_field
    @property
    def excluded_collections(self) -> list[str]:
        """Parse excluded collection names from comma-separated string.

        Returns:
            List of collection names that are never synchronized.
        """
        return [
            name.strip()
            for name in self.excluded_collections_raw.split(",")
            if name.strip()
        ]

    def sync_options(self) -> SyncOptions:
        """Build the orchestrator options from these settings.

        Returns:
            Frozen options value. The error policy follows debug unless
            propagate_errors is set explicitly.
        """
        propagate = self.debug if self.propagate_errors is None else self.propagate_errors
        return SyncOptions(
            prefix=self.index_prefix,
            initial_sync=self.initial_sync,
            debug=self.debug,
            propagate_errors=propagate,
            excluded_collections=frozenset(self.excluded_collections),
            chunk_size=self.bulk_chunk_size,
            snapshot_concurrency=self.snapshot_concurrency,
            max_in_flight=self.max_in_flight_mutations,
        )
