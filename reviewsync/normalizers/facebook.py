"""
Facebook review normalizer.

Facebook pages expose recommendations rather than star ratings, so a
recommendation maps to 5 stars and anything else to 1.
"""

import re
from typing import Any, Dict, Optional

from reviewsync.models.review import Source
from reviewsync.normalizers.base import ReviewNormalizer

_NUMERIC_ID = re.compile(r"\d+")


def extract_facebook_user_id(user: Any) -> Optional[str]:
    """
    Build a stable user id from a Facebook user object.

    Numeric ids are used whole ("fb-12345"); opaque ids such as pfbid
    tokens are truncated to their first 20 characters.
    """
    if not isinstance(user, dict):
        return None
    user_id = user.get("id")
    if not user_id:
        return None
    user_id = str(user_id)
    if _NUMERIC_ID.fullmatch(user_id):
        return f"fb-{user_id}"
    return f"fb-{user_id[:20]}"


class FacebookNormalizer(ReviewNormalizer):
    source = Source.FACEBOOK

    FIELD_CANDIDATES = {
        "content": ("text",),
        "date": ("date",),
        "author": ("user.name",),
        "author_url": ("url", "user.profileUrl"),
        "photo_url": ("user.profilePic",),
    }

    def extract_rating(self, record: Dict[str, Any]) -> Optional[int]:
        return 5 if record.get("isRecommended") else 1

    def extract_user_id(self, record: Dict[str, Any]) -> Optional[str]:
        return extract_facebook_user_id(record.get("user"))

    def extract_is_recommended(self, record: Dict[str, Any]) -> Optional[bool]:
        value = record.get("isRecommended")
        return None if value is None else bool(value)
