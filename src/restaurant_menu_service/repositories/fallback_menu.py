"""Static JSON menu used when no database is configured."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class FallbackMenuLoader:
    """Reads the fallback menu file.

    The file holds either an array of items or an object with an `items`
    array. Items are returned exactly as stored.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize loader.

        Args:
            path: Location of the fallback JSON file
        """
        self.path = Path(path)

    async def load(self) -> list[Any] | None:
        """Load items from the fallback file.

        Returns:
            List of stored items, or None when the file is missing, unreadable
            or not in a recognized shape
        """
        if not self.path.is_file():
            logger.info(f"Fallback menu file not found: {self.path}")
            return None

        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            parsed = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read fallback menu file {self.path}: {e}")
            return None

        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, dict) and isinstance(parsed.get("items"), list):
            return parsed["items"]

        logger.warning(f"Fallback menu file {self.path} has no item array")
        return None
