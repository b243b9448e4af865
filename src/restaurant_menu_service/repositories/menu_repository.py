"""MongoDB repository for menu item documents.

Following the same convention as the rest of the data layer, driver errors
are logged and reported as simple return values (None) rather than raised.
"""

import logging
from dataclasses import dataclass
from typing import Any

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


@dataclass
class UpdateOutcome:
    """Result of a single-document update.

    Attributes:
        matched: Number of documents matched by the filter
        modified: Number of documents actually changed
        document: Document as stored after the update, if it could be re-read
    """

    matched: int
    modified: int
    document: dict[str, Any] | None = None


class MenuItemRepository:
    """CRUD operations on the resolved menu collection."""

    def __init__(self, collection: Any) -> None:
        """Initialize repository.

        Args:
            collection: Motor collection handle holding menu documents
        """
        self.collection = collection

    async def find_all(self) -> list[dict[str, Any]] | None:
        """Fetch every document in the collection.

        Returns:
            List of documents (possibly empty), or None on driver error
        """
        try:
            return list(await self.collection.find({}).to_list(None))
        except PyMongoError as e:
            logger.error(f"Failed to read menu documents: {e}")
            return None

    async def insert(self, document: dict[str, Any]) -> dict[str, Any] | None:
        """Insert a document and return it as stored.

        Args:
            document: Item document to insert

        Returns:
            Inserted document including its `_id`, or None on driver error
        """
        try:
            result = await self.collection.insert_one(document)
            created = await self.collection.find_one({"_id": result.inserted_id})
        except PyMongoError as e:
            logger.error(f"Failed to insert menu item: {e}")
            return None

        if created is None:
            return {**document, "_id": result.inserted_id}
        return created

    async def update(self, id_filter: dict[str, Any], fields: dict[str, Any]) -> UpdateOutcome | None:
        """Set fields on the document matching a filter.

        Args:
            id_filter: Filter selecting a single document
            fields: Field values to set

        Returns:
            UpdateOutcome with match/modify counts, or None on driver error
        """
        try:
            result = await self.collection.update_one(id_filter, {"$set": fields})
            outcome = UpdateOutcome(matched=result.matched_count, modified=result.modified_count)
            if outcome.matched:
                outcome.document = await self.collection.find_one(id_filter)
            return outcome
        except PyMongoError as e:
            logger.error(f"Failed to update menu item {id_filter}: {e}")
            return None

    async def delete(self, id_filter: dict[str, Any]) -> int | None:
        """Delete the document matching a filter.

        Args:
            id_filter: Filter selecting a single document

        Returns:
            Number of deleted documents, or None on driver error
        """
        try:
            result = await self.collection.delete_one(id_filter)
            return int(result.deleted_count)
        except PyMongoError as e:
            logger.error(f"Failed to delete menu item {id_filter}: {e}")
            return None
