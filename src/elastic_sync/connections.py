"""Construction of connected store handles from settings."""

from typing import Any
from urllib.parse import urlsplit, urlunsplit

import structlog
from elasticsearch import ApiError, AsyncElasticsearch, TransportError
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from elastic_sync.config import Settings
from elastic_sync.errors import ConnectionBootstrapError
from elastic_sync.stores import ElasticTarget, MongoSource

logger = structlog.get_logger()


def redact_url(url: str) -> str:
    """Remove credentials from a connection URL for logging.

    Args:
        url: Connection URL, possibly with user:password.

    Returns:
        URL with the userinfo part replaced by "***".
    """
    parts = urlsplit(url)
    if "@" not in parts.netloc:
        return url
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit(parts._replace(netloc=f"***@{host}"))


async def connect_source(settings: Settings) -> MongoSource:
    """Connect to MongoDB and verify the server answers.

    Args:
        settings: Service configuration.

    Returns:
        Connected source store.

    Raises:
        ConnectionBootstrapError: If the server is unreachable or the
            URL names no database and none is configured.
    """
    url = redact_url(settings.mongodb_url)
    client: AsyncMongoClient = AsyncMongoClient(settings.mongodb_url)
    try:
        await client.admin.command("ping")
        source = MongoSource(client, settings.mongodb_database or None)
    except PyMongoError as e:
        await client.close()
        logger.error("mongo_connect_failed", url=url, error=str(e))
        raise ConnectionBootstrapError(
            f"Failed to connect mongodb server: {e}", "source", url
        ) from e

    logger.debug("mongo_connected", url=url, database=source.database_name)
    return source


async def connect_target(settings: Settings) -> ElasticTarget:
    """Connect to Elasticsearch and verify the cluster answers.

    Args:
        settings: Service configuration.

    Returns:
        Connected target store.

    Raises:
        ConnectionBootstrapError: If the cluster is unreachable.
    """
    url = redact_url(settings.elastic_url)
    options: dict[str, Any] = {"verify_certs": settings.elastic_verify_certs}
    if settings.elastic_ca_certs:
        options["ca_certs"] = settings.elastic_ca_certs
    if not settings.elastic_verify_certs:
        options["ssl_show_warn"] = False

    client = AsyncElasticsearch(settings.elastic_url, **options)
    try:
        info = await client.info()
    except (ApiError, TransportError) as e:
        await client.close()
        logger.error("elastic_connect_failed", url=url, error=str(e))
        raise ConnectionBootstrapError(
            f"Failed to connect elastic server: {e}", "target", url
        ) from e

    logger.debug("elastic_connected", url=url, version=info["version"]["number"])
    return ElasticTarget(client)
