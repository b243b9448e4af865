"""Normalization of stored menu documents into a flat list of items.

Menu collections come in two shapes: one document per item, or wrapper
documents that hold arrays of items (`items`, `data`, `menu`) or categories
with nested `items`. Each document is classified first and then unpacked
according to its shape.
"""

from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any

# Wrapper fields that may hold item arrays, in extraction order
WRAPPER_ITEM_FIELDS: tuple[str, ...] = ("items", "data", "menu")


class DocumentShape(str, Enum):
    """Structural classification of a stored document."""

    FLAT_ITEM = "flat_item"
    WRAPPER = "wrapper"


def looks_like_item(document: Any) -> bool:
    """Check whether a document is a single menu item.

    An item has a name or title and at least one of price, image or
    description/desc.

    Args:
        document: Stored document

    Returns:
        True when the document looks like a menu item
    """
    if not isinstance(document, Mapping):
        return False
    if not (document.get("name") or document.get("title")):
        return False
    return (
        document.get("price") is not None
        or bool(document.get("image"))
        or bool(document.get("description"))
        or bool(document.get("desc"))
    )


def classify_document(
    document: Any, is_item: Callable[[Any], bool] = looks_like_item
) -> DocumentShape:
    """Classify a document as a flat item or a wrapper."""
    return DocumentShape.FLAT_ITEM if is_item(document) else DocumentShape.WRAPPER


def extract_wrapped_items(document: Any) -> list[Any]:
    """Collect the items held by a wrapper document.

    Args:
        document: Wrapper document

    Returns:
        Items from `items`, `data` and `menu`, then from each
        `categories[].items`, in encounter order
    """
    if not isinstance(document, Mapping):
        return []

    items: list[Any] = []
    for field in WRAPPER_ITEM_FIELDS:
        value = document.get(field)
        if isinstance(value, list):
            items.extend(value)

    categories = document.get("categories")
    if isinstance(categories, list):
        for category in categories:
            if isinstance(category, Mapping) and isinstance(category.get("items"), list):
                items.extend(category["items"])

    return items


def normalize_documents(
    documents: Iterable[Any] | Mapping[str, Any] | None,
    is_item: Callable[[Any], bool] = looks_like_item,
) -> list[Any]:
    """Flatten stored documents into a list of menu items.

    If the first document is already an item the input is returned as-is.
    Otherwise every document is treated as a wrapper and its items are
    concatenated.

    Args:
        documents: Documents fetched from the collection (a single mapping
            is treated as a one-element sequence)
        is_item: Predicate deciding whether a document is a flat item

    Returns:
        Flat list of item documents, empty when nothing recognizable was found
    """
    if documents is None:
        return []
    if isinstance(documents, Mapping):
        documents = [documents]

    docs = list(documents)
    if not docs:
        return []

    if classify_document(docs[0], is_item) is DocumentShape.FLAT_ITEM:
        return docs

    items: list[Any] = []
    for document in docs:
        items.extend(extract_wrapped_items(document))
    return items
