"""
Review data models.

Review is the canonical, platform-agnostic shape produced by the
normalizers. StoredReview is what lands on disk, one file per review.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from reviewsync.utils.dates import to_iso


class Source(str, Enum):
    """Review platform a record was fetched from."""
    GOOGLE = "google"
    FACEBOOK = "facebook"
    TRUSTPILOT = "trustpilot"


@dataclass
class Review:
    """
    Canonical review.
    Optional platform fields (is_recommended, review_title) are carried
    through for rendering only.
    """
    content: str
    date: datetime
    rating: int  # 0-5
    author: str = "Anonymous"
    author_url: str = ""
    photo_url: str = ""
    user_id: Optional[str] = None
    is_recommended: Optional[bool] = None  # Facebook only
    review_title: Optional[str] = None  # Trustpilot only

    def __post_init__(self):
        if not isinstance(self.rating, int) or not (0 <= self.rating <= 5):
            raise ValueError(f"Invalid rating: {self.rating}. Must be 0-5")


@dataclass
class StoredReview:
    """A review as persisted under <reviews_root>/<business_slug>/."""
    review: Review
    source: Source
    thumbnail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        data = {
            "author": self.review.author,
            "authorUrl": self.review.author_url,
            "rating": self.review.rating,
            "content": self.review.content,
            "date": to_iso(self.review.date),
            "userId": self.review.user_id or None,
            "photoUrl": self.review.photo_url,
            "thumbnail": self.thumbnail,
            "source": self.source.value,
        }
        if self.review.is_recommended is not None:
            data["isRecommended"] = self.review.is_recommended
        if self.review.review_title is not None:
            data["reviewTitle"] = self.review.review_title
        return data
