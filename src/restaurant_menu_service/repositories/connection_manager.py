"""MongoDB connection management.

Owns the process-wide MongoDB client and the resolved menu collection.
The connection is established lazily on first use, retried with linear
backoff, and shared by all concurrent requests: while one connection attempt
is in flight, other callers wait for its result instead of opening their own.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient

from restaurant_menu_service.config import ServiceConfig, mask_uri
from restaurant_menu_service.observability.metrics import record_connection_attempt

logger = logging.getLogger(__name__)

# Collection names tried when the configured one does not exist
COMMON_COLLECTION_NAMES: tuple[str, ...] = ("menu", "menudata", "menuitems", "items", "products")


def resolve_collection_name(
    available: Sequence[str],
    configured: str | None,
    candidates: Sequence[str] = COMMON_COLLECTION_NAMES,
) -> str | None:
    """Pick the collection that holds menu documents.

    Precedence: the configured name if it exists, then the first existing
    candidate name, then the first collection in the database.

    Args:
        available: Collection names present in the database, in listing order
        configured: Explicitly configured collection name
        candidates: Common menu collection names to try

    Returns:
        Resolved collection name, or None if the database has no collections
    """
    existing = set(available)

    if configured and configured in existing:
        return configured

    for name in candidates:
        if name in existing:
            return name

    return available[0] if available else None


def describe_error(error: BaseException) -> str:
    """Build a one-line diagnostic for a connection failure."""
    parts = [f"{type(error).__name__}: {error}"]
    code = getattr(error, "code", None)
    if code is not None:
        parts.append(f"code={code}")
    return " ".join(parts)


class MongoConnectionManager:
    """Lazily connects to MongoDB and resolves the menu collection.

    Failures never propagate: callers receive None and can read
    `last_error` for the reason.
    """

    def __init__(
        self,
        config: ServiceConfig,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        """Initialize the connection manager.

        Args:
            config: Service configuration with connection settings
            client_factory: Callable creating a MongoDB client from a URI and
                keyword options (defaults to AsyncIOMotorClient)
        """
        self.config = config
        self._client_factory = client_factory or AsyncIOMotorClient
        self._client: Any | None = None
        self._collection: Any | None = None
        self._collection_name: str | None = None
        self._last_error: str | None = None
        self._pending: asyncio.Future[Any] | None = None

    @property
    def is_configured(self) -> bool:
        """Whether a connection string was supplied."""
        return self.config.database_configured

    @property
    def is_connected(self) -> bool:
        """Whether a collection handle is currently cached."""
        return self._collection is not None

    @property
    def collection(self) -> Any | None:
        """Cached collection handle, if connected."""
        return self._collection

    @property
    def collection_name(self) -> str | None:
        """Name of the resolved menu collection, if connected."""
        return self._collection_name

    @property
    def last_error(self) -> str | None:
        """Reason of the most recent connection failure."""
        return self._last_error

    @property
    def database(self) -> Any | None:
        """Database handle of the cached client, if connected."""
        if self._client is None:
            return None
        return self._client[self.config.mongodb_db]

    async def ensure_connected(self, force_reconnect: bool = False, stale: Any | None = None) -> Any | None:
        """Return the menu collection, connecting first if needed.

        Concurrent callers share a single in-flight connection attempt.

        Args:
            force_reconnect: Drop the cached connection and establish a new one
            stale: Handle the caller saw fail; a forced reconnect only happens
                while it is still the cached handle

        Returns:
            Collection handle, or None if no database is configured or every
            connection attempt failed
        """
        if not self.is_configured:
            return None

        if force_reconnect and stale is not None and stale is not self._collection:
            # Another caller already replaced the failed handle
            force_reconnect = False

        if self._collection is not None and not force_reconnect:
            return self._collection

        if self._pending is None or self._pending.done():
            self._pending = asyncio.ensure_future(self._establish(force_reconnect))

        # Shielded so a cancelled request does not abort the shared attempt
        return await asyncio.shield(self._pending)

    async def list_collection_names(self) -> list[str] | None:
        """List collections in the configured database.

        Returns:
            Collection names, or None if not connected or the listing failed
        """
        database = self.database
        if database is None:
            return None
        try:
            return list(await database.list_collection_names())
        except Exception as e:
            logger.warning(f"Failed to list collections: {describe_error(e)}")
            return None

    async def close(self) -> None:
        """Close the client and clear cached state."""
        self._release()
        logger.info("MongoDB connection closed")

    async def _establish(self, force_reconnect: bool) -> Any | None:
        if force_reconnect:
            self._release()

        max_attempts = self.config.connect_max_attempts
        options = self.config.mongo_client_options()
        last_error: str | None = None

        for attempt in range(1, max_attempts + 1):
            logger.info(
                f"Connecting to MongoDB at {mask_uri(self.config.mongodb_uri)} "
                f"(attempt {attempt}/{max_attempts}) options={options}"
            )
            try:
                collection = await self._connect_once(options)
            except Exception as e:
                last_error = describe_error(e)
                record_connection_attempt("error")
                logger.error(f"MongoDB connect attempt {attempt} failed: {last_error}")
                self._release()
            else:
                if collection is not None:
                    record_connection_attempt("success")
                    self._last_error = None
                    return collection

                last_error = f'No collections found in DB "{self.config.mongodb_db}"'
                record_connection_attempt("no_collection")
                logger.warning(f"MongoDB connect attempt {attempt}: {last_error}")
                self._release()

            if attempt < max_attempts:
                backoff = attempt * self.config.connect_backoff_seconds
                logger.warning(f"Retrying MongoDB connection in {backoff:.2f}s")
                await asyncio.sleep(backoff)

        self._last_error = last_error or "MongoDB connection failed"
        logger.error(f"MongoDB connection failed after {max_attempts} attempts: {self._last_error}")
        return None

    async def _connect_once(self, options: dict[str, Any]) -> Any | None:
        self._client = self._client_factory(self.config.mongodb_uri, **options)
        await self._client.admin.command("ping")

        database = self._client[self.config.mongodb_db]
        names = list(await database.list_collection_names())
        name = resolve_collection_name(names, self.config.mongodb_collection)
        if name is None:
            return None

        if name == self.config.mongodb_collection:
            logger.info(f'Using configured collection "{name}"')
        else:
            logger.warning(
                f'Configured collection "{self.config.mongodb_collection}" not found '
                f'in DB "{self.config.mongodb_db}", using "{name}"'
            )

        self._collection = database[name]
        self._collection_name = name
        return self._collection

    def _release(self) -> None:
        client = self._client
        self._client = None
        self._collection = None
        self._collection_name = None
        if client is not None:
            try:
                client.close()
            except Exception as e:
                logger.warning(f"Error while closing MongoDB client: {describe_error(e)}")
