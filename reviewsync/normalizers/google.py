"""Google Maps review normalizer."""

import re
from typing import Any, Dict, Optional

from reviewsync.models.review import Source
from reviewsync.normalizers.base import ReviewNormalizer

_CONTRIBUTOR_ID = re.compile(r"/contrib/(\d+)")


def extract_google_user_id(author_url: Optional[str]) -> Optional[str]:
    """
    Extract the numeric contributor id from a Google Maps profile URL.

    e.g. https://www.google.com/maps/contrib/101426519435404522118?hl=en
    -> "101426519435404522118"
    """
    if not author_url or not isinstance(author_url, str):
        return None
    match = _CONTRIBUTOR_ID.search(author_url)
    return match.group(1) if match else None


class GoogleNormalizer(ReviewNormalizer):
    source = Source.GOOGLE

    FIELD_CANDIDATES = {
        "content": ("text", "reviewText"),
        "date": ("publishedAtDate",),
        "rating": ("stars", "rating"),
        "author": ("name", "authorName"),
        "author_url": ("reviewerUrl", "authorUrl"),
        "photo_url": ("reviewerPhotoUrl", "userPhotoUrl", "reviewerAvatar"),
    }

    def extract_user_id(self, record: Dict[str, Any]) -> Optional[str]:
        return extract_google_user_id(self.extract_author_url(record))
