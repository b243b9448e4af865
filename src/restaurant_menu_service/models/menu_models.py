"""Menu item data models.

Menu items are stored as free-form MongoDB documents, so most of the service
works on plain dictionaries. This module holds the pieces that need a fixed
shape: item identifiers, the writable field list, and JSON conversion of
stored documents.
"""

import base64
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union
from uuid import UUID

from bson import Decimal128, ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CATEGORY = "Other"

# Fields a client may change through an update
UPDATABLE_FIELDS: tuple[str, ...] = (
    "title",
    "category",
    "price",
    "image",
    "description",
    "desc",
    "badge",
    "tags",
)

# Fields that must be present and truthy to create an item
REQUIRED_CREATE_FIELDS: tuple[str, ...] = ("title", "category", "price")


@dataclass(frozen=True)
class NativeId:
    """Identifier stored by MongoDB in the `_id` field."""

    value: ObjectId

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class PlainId:
    """Application-assigned string identifier stored in the `id` field."""

    value: str

    def __str__(self) -> str:
        return self.value


ItemId = Union[NativeId, PlainId]


def parse_item_id(raw: Any) -> ItemId | None:
    """Parse a client-supplied identifier.

    Args:
        raw: Identifier from a path segment, query string or payload

    Returns:
        NativeId when the value is a valid ObjectId, PlainId otherwise,
        or None when no identifier was supplied
    """
    if raw is None:
        return None
    if isinstance(raw, ObjectId):
        return NativeId(raw)

    text = str(raw).strip()
    if not text:
        return None

    try:
        return NativeId(ObjectId(text))
    except (InvalidId, TypeError):
        return PlainId(text)


def build_id_filter(item_id: ItemId) -> dict[str, Any]:
    """Build a MongoDB filter matching a single item.

    Args:
        item_id: Parsed item identifier

    Returns:
        Filter on `_id` for native identifiers, on `id` for plain ones
    """
    if isinstance(item_id, NativeId):
        return {"_id": item_id.value}
    return {"id": item_id.value}


def serialize_value(value: Any) -> Any:
    """Convert BSON-specific values into JSON-compatible ones.

    Binary data is base64-encoded and non-finite floats become None.
    """
    if isinstance(value, (ObjectId, UUID)):
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Decimal128):
        return str(value.to_decimal())
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    return value


def serialize_document(document: dict[str, Any]) -> dict[str, Any]:
    """Convert a stored MongoDB document into a JSON-safe dictionary.

    Args:
        document: Raw document returned by the driver

    Returns:
        Copy of the document with ObjectId, UUID, Decimal128, datetime and
        binary values converted to strings
    """
    return {key: serialize_value(value) for key, value in document.items()}


class ErrorResponse(BaseModel):
    """Error body returned for every non-2xx response."""

    model_config = ConfigDict(extra="allow")

    error: str = Field(..., description="Human readable error message")


class DeleteResponse(BaseModel):
    """Acknowledgment returned after a successful delete."""

    ok: bool = Field(default=True, description="Whether the item was deleted")


class UpdateAcknowledgment(BaseModel):
    """Status-only response for an update whose document could not be re-read."""

    ok: bool = Field(default=True)
    matched: int = Field(..., ge=0, description="Number of documents matched")
    modified: int = Field(..., ge=0, description="Number of documents modified")
