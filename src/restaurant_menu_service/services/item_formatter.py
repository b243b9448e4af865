"""Per-item formatting for menu responses.

Applies defaults and coercions to raw menu items and resolves image
references against the request or configured base URLs.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from bson import Decimal128

from restaurant_menu_service.config import ServiceConfig
from restaurant_menu_service.models.menu_models import DEFAULT_CATEGORY, serialize_document

_ABSOLUTE_URL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class ImageContext:
    """Base URLs used to resolve relative image filenames.

    Attributes:
        base_url: Public URL of this backend, without trailing slash
        image_base_url: Explicit base URL for images, without trailing slash
    """

    base_url: str = ""
    image_base_url: str = ""


def to_number(value: Any) -> float:
    """Coerce a stored price into a number.

    Numbers pass through. Other values are converted to text and the leading
    numeric portion is parsed. Anything unparsable yields 0.

    Args:
        value: Raw price (number, string, Decimal128 or other object)

    Returns:
        Finite numeric price, 0 when it cannot be parsed
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else 0
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    if isinstance(value, Decimal):
        return float(value) if value.is_finite() else 0

    match = _LEADING_NUMBER.match(str(value))
    if match is None:
        return 0

    number = float(match.group(1))
    return number if math.isfinite(number) else 0


def is_absolute_url(reference: str) -> bool:
    """Check whether a reference already carries a `scheme://` prefix."""
    return bool(_ABSOLUTE_URL.match(reference))


def resolve_image_url(image: Any, context: ImageContext) -> str | None:
    """Resolve an item's image reference into a URL.

    Args:
        image: Stored image reference (absolute URL or bare filename)
        context: Base URLs for the current request

    Returns:
        Absolute URLs unchanged; filenames joined to the image base URL, the
        backend's /images/ path, or a relative /images/ path; None if absent
    """
    if not image:
        return None

    reference = str(image)
    if is_absolute_url(reference):
        return reference

    filename = reference.lstrip("/")
    if context.image_base_url:
        return f"{context.image_base_url}/{filename}"
    if context.base_url:
        return f"{context.base_url}/images/{filename}"
    return f"/images/{filename}"


def build_image_context(
    scheme: str,
    headers: Mapping[str, str],
    config: ServiceConfig,
) -> ImageContext:
    """Derive image base URLs from the request and configuration.

    The backend URL is taken from the BASE_URL override, then from the
    forwarded protocol and Host header, then from the platform host.

    Args:
        scheme: Scheme the request arrived with
        headers: Request headers (case-insensitive mapping)
        config: Service configuration

    Returns:
        ImageContext for formatting this request's items
    """
    forwarded = headers.get("x-forwarded-proto", "")
    proto = forwarded.split(",")[0].strip() or scheme or "http"
    host = headers.get("host", "").strip()

    if config.public_base_url:
        base_url = config.public_base_url
    elif host:
        base_url = f"{proto}://{host}"
    elif config.platform_host:
        base_url = f"{proto}://{config.platform_host}"
    else:
        base_url = ""

    return ImageContext(base_url=base_url, image_base_url=config.image_base_url)


def format_menu_item(item: Mapping[str, Any], context: ImageContext) -> dict[str, Any]:
    """Format a raw menu item for clients.

    Args:
        item: Raw item document
        context: Base URLs for image resolution

    Returns:
        Item with numeric price, populated category, badge/tags defaults,
        mirrored description/desc and a resolved image URL
    """
    description = item.get("description") or item.get("desc") or None

    formatted = serialize_document(dict(item))
    formatted.update(
        {
            "price": to_number(item.get("price")),
            "badge": item.get("badge") or "",
            "category": item.get("category") or DEFAULT_CATEGORY,
            "tags": item.get("tags") or "",
            "description": description,
            "desc": description,
            "image": resolve_image_url(item.get("image"), context),
        }
    )
    return formatted


def group_by_category(items: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group formatted items by category, keeping first-seen category order."""
    grouped: dict[str, list[dict[str, Any]]] = {}
    for item in items:
        grouped.setdefault(item.get("category") or DEFAULT_CATEGORY, []).append(item)
    return grouped
