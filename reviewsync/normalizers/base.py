"""
Normalizer base class.

Upstream actors disagree on field names, so every canonical field is
resolved from an ordered tuple of candidate paths: the first present
value wins. Paths may be dotted to reach into nested objects
(e.g. "user.name").
"""

import logging
import re
from typing import Any, Dict, Optional, Sequence

from reviewsync.models.review import Review, Source
from reviewsync.utils.dates import parse_date, utcnow

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def lookup(record: Dict[str, Any], path: str) -> Any:
    """Resolve a dotted path; missing or non-dict hops yield None."""
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def first_present(
    record: Dict[str, Any],
    candidates: Sequence[str],
    default: Any = None
) -> Any:
    """
    Return the first truthy value among candidate paths.

    None, "", 0 and False are treated as absent, so a zero primary rating
    falls through to the alternate field.
    """
    for path in candidates:
        value = lookup(record, path)
        if value:
            return value
    return default


def parse_int(value: Any) -> Optional[int]:
    """Parse a leading integer ("4", " 4.5", 4.0); None when impossible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def clamp_rating(value: Optional[int]) -> int:
    if value is None:
        return 0
    return max(0, min(5, value))


def as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class ReviewNormalizer:
    """
    Maps a raw platform record to a canonical Review.

    Subclasses declare FIELD_CANDIDATES and override extract_* hooks where
    a field is derived rather than copied. normalize() is total: it never
    raises, whatever the input shape.
    """

    source: Source = Source.GOOGLE
    ANONYMOUS = "Anonymous"

    FIELD_CANDIDATES: Dict[str, Sequence[str]] = {
        "content": (),
        "date": (),
        "rating": (),
        "author": (),
        "author_url": (),
        "photo_url": (),
    }

    def normalize(self, raw: Any) -> Review:
        record = raw if isinstance(raw, dict) else {}
        return Review(
            content=self.extract_content(record),
            date=self.extract_date(record),
            rating=clamp_rating(self.extract_rating(record)),
            author=self.extract_author(record),
            author_url=self.extract_author_url(record),
            photo_url=self.extract_photo_url(record),
            user_id=self.extract_user_id(record),
            is_recommended=self.extract_is_recommended(record),
            review_title=self.extract_review_title(record),
        )

    def _field(self, record: Dict[str, Any], name: str, default: Any = None) -> Any:
        return first_present(record, self.FIELD_CANDIDATES.get(name, ()), default)

    def extract_content(self, record: Dict[str, Any]) -> str:
        return as_text(self._field(record, "content", "")).strip()

    def extract_date(self, record: Dict[str, Any]):
        raw = self._field(record, "date")
        parsed = parse_date(raw)
        if raw and parsed is None:
            logger.debug(f"Unparseable {self.source.value} review date {raw!r}, using now")
        return parsed or utcnow()

    def extract_rating(self, record: Dict[str, Any]) -> Optional[int]:
        return parse_int(self._field(record, "rating", 0))

    def extract_author(self, record: Dict[str, Any]) -> str:
        return as_text(self._field(record, "author", self.ANONYMOUS))

    def extract_author_url(self, record: Dict[str, Any]) -> str:
        return as_text(self._field(record, "author_url", ""))

    def extract_photo_url(self, record: Dict[str, Any]) -> str:
        return as_text(self._field(record, "photo_url", ""))

    def extract_user_id(self, record: Dict[str, Any]) -> Optional[str]:
        return None

    def extract_is_recommended(self, record: Dict[str, Any]) -> Optional[bool]:
        return None

    def extract_review_title(self, record: Dict[str, Any]) -> Optional[str]:
        return None
