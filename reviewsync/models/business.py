"""
Business data model.

A business is one entry of the configuration list. Only the fields the
sync job reads are exposed as properties; everything else in the entry
is preserved untouched when the configuration is written back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from reviewsync.utils.dates import format_timestamp, parse_date


@dataclass(frozen=True)
class Business:
    """
    Immutable view of a configured business.
    Updates produce a new Business via with_last_fetched().
    """
    slug: str
    data: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: dict) -> "Business":
        """Create Business from a config entry."""
        return cls(slug=str(data.get("slug", "")), data=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    @property
    def minimum_star_rating(self) -> int:
        return int(self.data.get("minimum_star_rating") or 0)

    @property
    def number_of_reviews(self) -> int:
        value = self.data.get("number_of_reviews")
        return -1 if value is None else int(value)

    @property
    def fetch_frequency_days(self) -> int:
        return int(self.data.get("fetch_frequency_days") or 0)

    def last_fetched(self, source: Optional[str] = None) -> Optional[datetime]:
        """
        Last successful fetch time for a platform.

        Prefers the platform-namespaced field (last_fetched_<source>) and
        falls back to the generic last_fetched.
        """
        raw = None
        if source:
            raw = self.data.get(f"last_fetched_{source}")
        raw = raw or self.data.get("last_fetched")
        return parse_date(raw)

    def has_last_fetched(self, source: Optional[str] = None) -> bool:
        if source and self.data.get(f"last_fetched_{source}"):
            return True
        return bool(self.data.get("last_fetched"))

    def with_last_fetched(self, source: Optional[str], when: datetime) -> "Business":
        """Return a copy with the last-fetched timestamp set."""
        key = f"last_fetched_{source}" if source else "last_fetched"
        data = dict(self.data)
        data[key] = format_timestamp(when)
        return Business(slug=self.slug, data=data)
