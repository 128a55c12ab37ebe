"""
Review filters.

Content is filtered before rating so that short reviews never reach the
store (and never trigger a thumbnail download).
"""

from typing import Iterable, List

from reviewsync.models.review import Review

MIN_CONTENT_LENGTH = 5


def has_content(review: Review, min_length: int = MIN_CONTENT_LENGTH) -> bool:
    """True iff the review text is longer than min_length characters."""
    content = getattr(review, "content", None)
    return content is not None and len(content) > min_length


def meets_min_rating(review: Review, minimum_star_rating: int) -> bool:
    return review.rating >= (minimum_star_rating or 0)


def filter_reviews(
    reviews: Iterable[Review],
    minimum_star_rating: int,
    min_length: int = MIN_CONTENT_LENGTH
) -> List[Review]:
    """Apply the content filter, then the rating filter."""
    with_content = [r for r in reviews if has_content(r, min_length)]
    return [r for r in with_content if meets_min_rating(r, minimum_star_rating)]
