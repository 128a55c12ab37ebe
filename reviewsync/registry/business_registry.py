"""
Business Registry - the configured list of businesses.

Loaded once per run and written back once, as a whole, at the end.
"""

import json
import logging
import os
import shutil
from typing import Iterable, List, Optional, Tuple

from reviewsync.models.business import Business
from reviewsync.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class BusinessRegistry:
    """
    Holds the business configuration list in its original order.

    Entries are immutable Business values; apply() swaps each selected entry
    for its updated copy in place, so save() writes back every other entry
    verbatim. Slugs are not assumed to be unique.
    """

    def __init__(self, config_path: str):
        """
        Load registry from disk.

        Args:
            config_path: Path to the config.json business list

        Raises:
            ConfigurationError: If the file is missing or not a JSON list
        """
        self.config_path = str(config_path)
        self.businesses: List[Business] = []
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self.config_path):
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to read config {self.config_path}: {e}") from e

        if not isinstance(data, list):
            raise ConfigurationError(f"Config must be a list of businesses: {self.config_path}")

        self.businesses = [Business.from_dict(entry) for entry in data if isinstance(entry, dict)]
        logger.info(f"Loaded {len(self.businesses)} businesses from {self.config_path}")

    def select(self, platform_field: str, slug: Optional[str] = None) -> List[Business]:
        """
        Businesses configured for a platform, in config order.

        Args:
            platform_field: Identifying field, e.g. "google_business_id"
            slug: Restrict to a single business
        """
        selected = [b for b in self.businesses if b.get(platform_field)]
        if slug:
            selected = [b for b in selected if b.slug == slug]
        return selected

    def apply(self, updates: Iterable[Tuple[Business, Business]]) -> None:
        """
        Replace entries with updated versions.

        Args:
            updates: (original, updated) pairs; originals are the objects
                returned by select() and are matched by identity
        """
        for original, updated in updates:
            for index, business in enumerate(self.businesses):
                if business is original:
                    self.businesses[index] = updated
                    break

    def save(self) -> None:
        """
        Persist the full list with an atomic write.
        Keeps the previous file as <config>.backup.
        """
        if os.path.exists(self.config_path):
            backup_path = f"{self.config_path}.backup"
            shutil.copy(self.config_path, backup_path)
            logger.debug(f"Created backup: {backup_path}")

        data = [b.to_dict() for b in self.businesses]

        temp_path = f"{self.config_path}.tmp"
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(temp_path, self.config_path)
            logger.info(f"Config saved: {len(data)} businesses")
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
