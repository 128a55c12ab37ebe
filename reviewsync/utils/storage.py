"""
Review storage.

One JSON file per review under <reviews_root>/<business_slug>/, named
<slug(author)>-<YYYY-MM-DD>.json. The file name is the identity: a review
whose file already exists has been fetched before and is skipped.
"""

import json
import logging
import os
import re
from datetime import datetime
from typing import Iterable, Iterator, Optional, Tuple

from reviewsync.models.review import Review, Source, StoredReview
from reviewsync.utils.dates import format_ymd, utcnow
from reviewsync.utils.thumbnails import ThumbnailPipeline

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 30

_UNSAFE_CHARS = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def slugify_author(name: Optional[str]) -> str:
    """Lowercase, strip non-alphanumerics, dash-join words, cap at 30 chars."""
    safe = (name or "anonymous").lower()
    safe = _UNSAFE_CHARS.sub("", safe)
    safe = _WHITESPACE.sub("-", safe)
    return safe[:MAX_SLUG_LENGTH]


def format_filename(author: Optional[str], date: Optional[datetime]) -> str:
    """
    e.g. ("John Smith", 2024-06-15) -> "john-smith-2024-06-15.json".
    A missing date falls back to today.
    """
    return f"{slugify_author(author)}-{format_ymd(date or utcnow())}.json"


def iter_review_files(business_dir: str) -> Iterator[Tuple[str, dict]]:
    """
    Yield (path, data) for every readable review file in a business directory.
    Unreadable or non-object files are logged and skipped.
    """
    if not os.path.isdir(business_dir):
        return
    for filename in sorted(os.listdir(business_dir)):
        if not filename.endswith(".json"):
            continue
        filepath = os.path.join(business_dir, filename)
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading {filepath}: {e}")
            continue
        if not isinstance(data, dict):
            logger.warning(f"Skipping {filepath}: not a JSON object")
            continue
        yield filepath, data


def format_rating(rating: int, source: Source) -> str:
    if Source(source) == Source.FACEBOOK:
        return "recommended" if rating == 5 else "not recommended"
    return f"{rating}/5 stars"


class ReviewStore:
    """
    Persists reviews and triggers thumbnail acquisition for new ones.
    """

    def __init__(
        self,
        reviews_root: str,
        thumbnails: ThumbnailPipeline,
        thumbnail_url_prefix: str = "/images/reviewers"
    ):
        """
        Initialize review store.

        Args:
            reviews_root: Root directory; one subdirectory per business
            thumbnails: Pipeline used for reviewer avatars
            thumbnail_url_prefix: Public path prefix recorded in stored reviews
        """
        self.reviews_root = str(reviews_root)
        self.thumbnails = thumbnails
        self.thumbnail_url_prefix = thumbnail_url_prefix.rstrip("/")

    def business_dir(self, slug: str) -> str:
        return os.path.join(self.reviews_root, slug)

    def ensure_business_dir(self, slug: str) -> str:
        path = self.business_dir(slug)
        os.makedirs(path, exist_ok=True)
        return path

    def thumbnail_url(self, user_id: str) -> str:
        return f"{self.thumbnail_url_prefix}/{user_id}.webp"

    def try_thumbnail(self, review: Review) -> Optional[str]:
        """Acquire a thumbnail; returns its public path or None."""
        if not review.user_id or not review.photo_url:
            return None
        if self.thumbnails.acquire(review.photo_url, review.user_id):
            return self.thumbnail_url(review.user_id)
        return None

    def save(self, review: Review, business_dir: str, source: Source = Source.GOOGLE) -> bool:
        """
        Save a review unless a file with the same name already exists.

        Returns:
            True if the review was newly written, False if it was already present
        """
        source = Source(source)
        filename = format_filename(review.author, review.date)
        filepath = os.path.join(business_dir, filename)

        if os.path.exists(filepath):
            logger.debug(f"Already fetched: {filename}")
            return False

        thumbnail = self.try_thumbnail(review)
        stored = StoredReview(review=review, source=source, thumbnail=thumbnail)
        self.write(filepath, stored.to_dict())

        thumb_info = " [with thumbnail]" if thumbnail else ""
        logger.info(f"✓ {filename} ({format_rating(review.rating, source)}){thumb_info}")
        return True

    def save_all(self, reviews: Iterable[Review], business_dir: str, source: Source) -> int:
        """Save reviews one at a time; returns how many were new."""
        saved = 0
        for review in reviews:
            if self.save(review, business_dir, source):
                saved += 1
        return saved

    def iter_stored(self, business_dir: str) -> Iterator[Tuple[str, dict]]:
        """See iter_review_files."""
        return iter_review_files(business_dir)

    @staticmethod
    def write(filepath: str, data: dict) -> None:
        """Write a review file atomically via a temp file and os.replace."""
        temp_path = f"{filepath}.tmp"
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, filepath)
        except OSError:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
