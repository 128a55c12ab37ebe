"""
Incremental fetch planning.

Decides whether a business is due for a fetch and, for platforms that
support server-side date filtering, how far back the next fetch must go.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from reviewsync.models.business import Business
from reviewsync.utils.dates import format_ymd, parse_date, utcnow
from reviewsync.utils.storage import iter_review_files

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class FetchOptions:
    max_reviews: int
    reviews_start_date: Optional[str] = None  # YYYY-MM-DD


def should_fetch(
    business: Business,
    source: Optional[str] = None,
    now: Optional[datetime] = None
) -> bool:
    """
    Check the fetch cooldown for a business.

    Returns True when the business was never fetched for this platform, or
    when at least fetch_frequency_days whole days have elapsed since.
    """
    if not business.has_last_fetched(source):
        return True

    last_fetched = business.last_fetched(source)
    if last_fetched is None:
        logger.warning(f"Unparseable last-fetched timestamp for {business.slug}, fetching")
        return True

    now = now or utcnow()
    days_since_fetch = int((now - last_fetched).total_seconds() // SECONDS_PER_DAY)
    return days_since_fetch >= business.fetch_frequency_days


def latest_review_date(business_dir: str) -> Optional[str]:
    """
    Find the day after the newest stored review.

    Unreadable or undated files are skipped with a warning.

    Args:
        business_dir: Directory holding one JSON file per review

    Returns:
        Date string (YYYY-MM-DD), or None if there are no dated reviews
    """
    latest = None
    for filepath, data in iter_review_files(business_dir):
        date = parse_date(data.get("date"))
        if date is None:
            logger.warning(f"Skipping {filepath}: missing or invalid date")
            continue
        if latest is None or date > latest:
            latest = date

    if latest is None:
        return None
    return format_ymd(latest + timedelta(days=1))


def build_fetch_options(
    business: Business,
    business_dir: str,
    max_reviews: int,
    use_start_date: bool = False
) -> FetchOptions:
    """Translate a business config into options for one fetch."""
    count = business.number_of_reviews
    return FetchOptions(
        max_reviews=max_reviews if count == -1 else count,
        reviews_start_date=latest_review_date(business_dir) if use_start_date else None,
    )
