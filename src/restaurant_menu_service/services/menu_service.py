"""Menu service orchestrating reads and writes of menu items.

Reads go database → normalizer → formatter, or to the fallback file when no
database is configured. Writes validate the payload before touching the
database and report their outcome through MutationResult.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from restaurant_menu_service.models.menu_models import (
    REQUIRED_CREATE_FIELDS,
    UPDATABLE_FIELDS,
    DeleteResponse,
    UpdateAcknowledgment,
    build_id_filter,
    parse_item_id,
    serialize_document,
)
from restaurant_menu_service.observability import traced
from restaurant_menu_service.observability.metrics import record_menu_request, record_mutation
from restaurant_menu_service.repositories.connection_manager import MongoConnectionManager
from restaurant_menu_service.repositories.fallback_menu import FallbackMenuLoader
from restaurant_menu_service.repositories.menu_repository import MenuItemRepository
from restaurant_menu_service.services.document_normalizer import normalize_documents
from restaurant_menu_service.services.item_formatter import ImageContext, format_menu_item, to_number

logger = logging.getLogger(__name__)

NO_ERROR_CAPTURED = "No specific error was captured. Check server logs."


class MenuQueryStatus(str, Enum):
    """Outcome of a menu read."""

    OK = "ok"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    NOT_FOUND = "not_found"
    NO_DATA_SOURCE = "no_data_source"


class MutationStatus(str, Enum):
    """Outcome of a create, update or delete."""

    OK = "ok"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    NOT_CONFIGURED = "not_configured"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    FAILED = "failed"


@dataclass
class MenuQueryResult:
    """Result of a menu read.

    Attributes:
        status: Outcome of the read
        items: Formatted items (database) or stored items (fallback file)
        source: "database", "file" or "none"
        collection: Resolved collection name when the database was used
        reason: Diagnostic for upstream failures
    """

    status: MenuQueryStatus
    items: list[Any] = field(default_factory=list)
    source: str = "none"
    collection: str | None = None
    reason: str | None = None


@dataclass
class MutationResult:
    """Result of a create, update or delete.

    Attributes:
        status: Outcome of the write
        document: Affected document or acknowledgment body on success
        message: Error message on failure
        reason: Diagnostic for upstream failures
        modified: Whether an update changed the stored document
    """

    status: MutationStatus
    document: dict[str, Any] | None = None
    message: str | None = None
    reason: str | None = None
    modified: bool = False


def _first_present(payload: Mapping[str, Any] | None, *keys: str) -> Any:
    if not isinstance(payload, Mapping):
        return None
    for key in keys:
        value = payload.get(key)
        if value is not None and value != "":
            return value
    return None


def _effective_description(values: Mapping[str, Any], default: Any = None) -> Any:
    description = values.get("description")
    if description is not None:
        return description
    desc = values.get("desc")
    return desc if desc is not None else default


class MenuService:
    """Serves and edits the restaurant menu."""

    def __init__(
        self,
        connection_manager: MongoConnectionManager,
        fallback_loader: FallbackMenuLoader,
    ) -> None:
        """Initialize the MenuService.

        Args:
            connection_manager: Shared MongoDB connection manager
            fallback_loader: Loader for the static fallback menu
        """
        self.connection_manager = connection_manager
        self.fallback_loader = fallback_loader

    @traced("menu.query")
    async def get_menu(self, context: ImageContext) -> MenuQueryResult:
        """Load the menu from MongoDB or the fallback file.

        Args:
            context: Base URLs for resolving item images

        Returns:
            MenuQueryResult with formatted items or the failure reason
        """
        if not self.connection_manager.is_configured:
            result = await self._get_fallback_menu()
        else:
            result = await self._get_database_menu(context)

        record_menu_request(result.source, result.status.value, len(result.items))
        return result

    async def _get_fallback_menu(self) -> MenuQueryResult:
        items = await self.fallback_loader.load()
        if items is None:
            logger.error("No menu data source available: MONGODB_URI unset and no fallback file")
            return MenuQueryResult(status=MenuQueryStatus.NO_DATA_SOURCE)

        logger.info(f"Serving {len(items)} items from fallback menu file")
        return MenuQueryResult(status=MenuQueryStatus.OK, items=items, source="file")

    async def _get_database_menu(self, context: ImageContext) -> MenuQueryResult:
        documents = await self._read_documents()
        collection_name = self.connection_manager.collection_name

        if documents is None:
            reason = self.connection_manager.last_error
            if reason is None and collection_name:
                reason = f'Failed to read documents from collection "{collection_name}"'
            return MenuQueryResult(
                status=MenuQueryStatus.UPSTREAM_UNAVAILABLE,
                source="database",
                collection=collection_name,
                reason=reason or NO_ERROR_CAPTURED,
            )

        raw_items = [item for item in normalize_documents(documents) if isinstance(item, Mapping)]
        if not raw_items:
            logger.warning(
                f'Collection "{collection_name}" has {len(documents)} documents but no menu items'
            )
            return MenuQueryResult(
                status=MenuQueryStatus.NOT_FOUND, source="database", collection=collection_name
            )

        items = [format_menu_item(item, context) for item in raw_items]
        return MenuQueryResult(
            status=MenuQueryStatus.OK, items=items, source="database", collection=collection_name
        )

    async def _read_documents(self) -> list[dict[str, Any]] | None:
        collection = await self.connection_manager.ensure_connected()
        if collection is None:
            return None

        documents = await MenuItemRepository(collection).find_all()
        if documents is not None:
            return documents

        # The cached connection may have gone stale; reconnect once and retry
        logger.warning("Menu read failed on cached connection, forcing reconnect")
        collection = await self.connection_manager.ensure_connected(force_reconnect=True, stale=collection)
        if collection is None:
            return None
        return await MenuItemRepository(collection).find_all()

    async def _writable_repository(self) -> MenuItemRepository | MutationResult:
        if not self.connection_manager.is_configured:
            return MutationResult(
                status=MutationStatus.NOT_CONFIGURED,
                message="No writable data source configured (set MONGODB_URI).",
            )

        collection = await self.connection_manager.ensure_connected()
        if collection is None:
            return MutationResult(
                status=MutationStatus.UPSTREAM_UNAVAILABLE,
                message="Failed to connect to MongoDB.",
                reason=self.connection_manager.last_error or NO_ERROR_CAPTURED,
            )
        return MenuItemRepository(collection)

    @traced("menu.create")
    async def create_item(self, payload: Mapping[str, Any] | None) -> MutationResult:
        """Create a menu item.

        Args:
            payload: Item fields; title, category and price are required

        Returns:
            MutationResult carrying the inserted document on success
        """
        result = await self._create_item(payload)
        record_mutation("create", result.status.value)
        return result

    async def _create_item(self, payload: Mapping[str, Any] | None) -> MutationResult:
        if not isinstance(payload, Mapping) or not all(payload.get(f) for f in REQUIRED_CREATE_FIELDS):
            return MutationResult(status=MutationStatus.INVALID, message="Missing required fields.")

        price = to_number(payload["price"])
        if price < 0:
            return MutationResult(
                status=MutationStatus.INVALID, message="Price must be a non-negative number."
            )

        description = _effective_description(payload, default="")
        document = {key: value for key, value in payload.items() if key != "_id"}
        document.update({"price": price, "description": description, "desc": description})

        repository = await self._writable_repository()
        if isinstance(repository, MutationResult):
            return repository

        created = await repository.insert(document)
        if created is None:
            return MutationResult(status=MutationStatus.FAILED, message="Failed to add menu item.")

        logger.info(f"Created menu item {created.get('_id')} ({document.get('title')})")
        return MutationResult(status=MutationStatus.OK, document=serialize_document(created))

    @traced("menu.update")
    async def update_item(self, raw_id: Any, payload: Mapping[str, Any] | None) -> MutationResult:
        """Update allow-listed fields of a menu item.

        An update that matches an item but changes nothing is a success.

        Args:
            raw_id: Identifier from the route or query string, if any
            payload: Fields to change; may also carry `_id`/`id`

        Returns:
            MutationResult carrying the stored document on success
        """
        result = await self._update_item(raw_id, payload)
        record_mutation("update", result.status.value)
        return result

    async def _update_item(self, raw_id: Any, payload: Mapping[str, Any] | None) -> MutationResult:
        item_id = parse_item_id(raw_id) or parse_item_id(_first_present(payload, "_id", "id"))
        if item_id is None:
            return MutationResult(status=MutationStatus.INVALID, message="Missing id for update")

        if not isinstance(payload, Mapping) or not payload:
            return MutationResult(status=MutationStatus.INVALID, message="Missing payload.")

        fields = {key: payload[key] for key in UPDATABLE_FIELDS if key in payload}
        if not fields:
            return MutationResult(
                status=MutationStatus.INVALID, message="No updatable fields in payload."
            )

        if "price" in fields:
            fields["price"] = to_number(fields["price"])
            if fields["price"] < 0:
                return MutationResult(
                    status=MutationStatus.INVALID, message="Price must be a non-negative number."
                )

        if "description" in fields or "desc" in fields:
            description = _effective_description(fields)
            fields["description"] = description
            fields["desc"] = description

        repository = await self._writable_repository()
        if isinstance(repository, MutationResult):
            return repository

        outcome = await repository.update(build_id_filter(item_id), fields)
        if outcome is None:
            return MutationResult(status=MutationStatus.FAILED, message="Failed to update menu item.")
        if outcome.matched == 0:
            return MutationResult(status=MutationStatus.NOT_FOUND, message="Menu item not found.")

        if outcome.modified == 0:
            logger.info(f"Update of menu item {item_id} changed nothing")

        document = (
            serialize_document(outcome.document)
            if outcome.document is not None
            else UpdateAcknowledgment(matched=outcome.matched, modified=outcome.modified).model_dump()
        )
        return MutationResult(
            status=MutationStatus.OK, document=document, modified=outcome.modified > 0
        )

    @traced("menu.delete")
    async def delete_item(self, raw_id: Any, payload: Mapping[str, Any] | None = None) -> MutationResult:
        """Delete a menu item.

        Args:
            raw_id: Identifier from the route or query string, if any
            payload: Optional body carrying `_id`/`id`

        Returns:
            MutationResult with an `{"ok": true}` acknowledgment on success
        """
        result = await self._delete_item(raw_id, payload)
        record_mutation("delete", result.status.value)
        return result

    async def _delete_item(self, raw_id: Any, payload: Mapping[str, Any] | None) -> MutationResult:
        item_id = parse_item_id(raw_id) or parse_item_id(_first_present(payload, "_id", "id"))
        if item_id is None:
            return MutationResult(status=MutationStatus.INVALID, message="Missing id for delete")

        repository = await self._writable_repository()
        if isinstance(repository, MutationResult):
            return repository

        deleted = await repository.delete(build_id_filter(item_id))
        if deleted is None:
            return MutationResult(status=MutationStatus.FAILED, message="Failed to delete menu item.")
        if deleted == 0:
            return MutationResult(status=MutationStatus.NOT_FOUND, message="Menu item not found.")

        logger.info(f"Deleted menu item {item_id}")
        return MutationResult(status=MutationStatus.OK, document=DeleteResponse().model_dump())
