"""
Trustpilot review normalizer.

Trustpilot reviews carry a title and a body. The actor frequently returns
a title that is just the opening words of the body (sometimes cut off with
an ellipsis), so the title is only prepended when it adds text.
"""

from typing import Any, Dict, Optional

from reviewsync.models.review import Source
from reviewsync.normalizers.base import ReviewNormalizer, as_text, parse_int

_ELLIPSES = ("...", "…")
_TERMINAL_PUNCTUATION = (".", "!", "?", "…")


def _title_prefix(title: str) -> str:
    """Strip a trailing ellipsis so a truncated title matches the body."""
    for ellipsis in _ELLIPSES:
        if title.endswith(ellipsis):
            return title[: -len(ellipsis)].rstrip()
    return title


def _title_repeats_body(title: str, body: str) -> bool:
    body_lower = body.lower()
    if body_lower.startswith(title.lower()):
        return True
    prefix = _title_prefix(title)
    return bool(prefix) and prefix != title and body_lower.startswith(prefix.lower())


def build_trustpilot_content(title: Optional[str], body: Optional[str]) -> str:
    """
    Combine review title and body.

    Examples:
        ("Title", "Body") -> "Title.\\n\\nBody"
        ("Great Title", "Great Title product was excellent")
            -> "Great Title product was excellent"
        (None, "Body") -> "Body"
    """
    title = as_text(title).strip()
    body = as_text(body).strip()

    if not title:
        return body
    if body and _title_repeats_body(title, body):
        return body
    if not title.endswith(_TERMINAL_PUNCTUATION):
        title = f"{title}."
    return f"{title}\n\n{body}".strip()


def extract_trustpilot_user_id(record: Any) -> Optional[str]:
    if not isinstance(record, dict) or not record.get("reviewId"):
        return None
    return f"tp-{record['reviewId']}"


class TrustpilotNormalizer(ReviewNormalizer):
    source = Source.TRUSTPILOT

    FIELD_CANDIDATES = {
        "date": ("date",),
        "rating": ("ratingValue",),
        "author": ("name",),
        "author_url": ("url",),
        "photo_url": ("avatar",),
    }

    def extract_content(self, record: Dict[str, Any]) -> str:
        return build_trustpilot_content(record.get("reviewTitle"), record.get("reviewText"))

    def extract_rating(self, record: Dict[str, Any]) -> Optional[int]:
        return parse_int(record.get("ratingValue"))

    def extract_user_id(self, record: Dict[str, Any]) -> Optional[str]:
        return extract_trustpilot_user_id(record)

    def extract_review_title(self, record: Dict[str, Any]) -> Optional[str]:
        return as_text(record.get("reviewTitle")).strip() or None
