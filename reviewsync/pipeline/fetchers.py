"""
Per-platform review fetchers.

A fetcher knows which config field identifies a business on its platform,
which Apify actor to run, how to phrase the request body, and how to pull
individual review records out of the dataset items.
"""

import logging
from typing import Any, Dict, List, Optional

from reviewsync.models.business import Business
from reviewsync.models.review import Review, Source
from reviewsync.normalizers import (
    FacebookNormalizer,
    GoogleNormalizer,
    ReviewNormalizer,
    TrustpilotNormalizer,
)
from reviewsync.pipeline.api_client import ApiClient
from reviewsync.pipeline.filters import MIN_CONTENT_LENGTH, has_content
from reviewsync.pipeline.planner import FetchOptions

logger = logging.getLogger(__name__)

GOOGLE_MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"


class ReviewFetcher:
    """
    Fetches and normalizes one business's reviews.

    Facebook and Trustpilot actors return a flat list of reviews and accept
    no date bound, so this base class covers them directly.
    """

    source: Source
    platform_field: str
    supports_start_date = False

    def __init__(
        self,
        api_client: ApiClient,
        actor_id: str,
        normalizer: ReviewNormalizer,
        default_max_reviews: int = 9999,
        min_content_length: int = MIN_CONTENT_LENGTH
    ):
        self.api_client = api_client
        self.actor_id = actor_id
        self.normalizer = normalizer
        self.default_max_reviews = default_max_reviews
        self.min_content_length = min_content_length

    def start_url(self, business: Business) -> str:
        return business.get(self.platform_field)

    def extra_params(self, options: FetchOptions) -> Dict[str, Any]:
        return {}

    def extract_reviews(self, results: List[Any]) -> List[Any]:
        return list(results)

    def build_request(self, business: Business, options: FetchOptions) -> Dict[str, Any]:
        body = {
            "startUrls": [{"url": self.start_url(business)}],
            "maxReviews": options.max_reviews or self.default_max_reviews,
        }
        body.update(self.extra_params(options))
        return body

    def fetch_raw(self, business: Business, options: FetchOptions) -> List[Any]:
        """Run the actor and return the raw review records."""
        url = self.api_client.actor_url(self.actor_id)
        results = self.api_client.fetch_api_array(url, self.build_request(business, options))
        return self.extract_reviews(results)

    def fetch(self, business: Business, options: FetchOptions) -> List[Review]:
        """
        Fetch reviews for a business.

        Returns:
            Normalized reviews with enough content to be worth keeping
        """
        raw_reviews = self.fetch_raw(business, options)
        reviews = [self.normalizer.normalize(raw) for raw in raw_reviews]
        kept = [r for r in reviews if has_content(r, self.min_content_length)]
        logger.info(
            f"Fetched {len(raw_reviews)} {self.source.value} reviews for {business.slug} "
            f"({len(reviews) - len(kept)} without content)"
        )
        return kept


class GoogleReviewFetcher(ReviewFetcher):
    source = Source.GOOGLE
    platform_field = "google_business_id"
    supports_start_date = True

    def __init__(
        self,
        api_client: ApiClient,
        actor_id: str,
        default_max_reviews: int = 9999,
        sort: str = "newest",
        language: str = "en",
        min_content_length: int = MIN_CONTENT_LENGTH
    ):
        super().__init__(api_client, actor_id, GoogleNormalizer(), default_max_reviews, min_content_length)
        self.sort = sort
        self.language = language

    def start_url(self, business: Business) -> str:
        return GOOGLE_MAPS_PLACE_URL.format(place_id=business.get(self.platform_field))

    def extra_params(self, options: FetchOptions) -> Dict[str, Any]:
        params = {"reviewsSort": self.sort, "language": self.language}
        if options.reviews_start_date:
            params["reviewsStartDate"] = options.reviews_start_date
        return params

    def extract_reviews(self, results: List[Any]) -> List[Any]:
        # Each dataset item is a place with its reviews nested inside
        reviews = []
        for item in results:
            if isinstance(item, dict):
                reviews.extend(item.get("reviews") or [])
        return reviews


class FacebookReviewFetcher(ReviewFetcher):
    source = Source.FACEBOOK
    platform_field = "facebook_page_url"

    def __init__(
        self,
        api_client: ApiClient,
        actor_id: str,
        default_max_reviews: int = 9999,
        min_content_length: int = MIN_CONTENT_LENGTH
    ):
        super().__init__(api_client, actor_id, FacebookNormalizer(), default_max_reviews, min_content_length)


class TrustpilotReviewFetcher(ReviewFetcher):
    source = Source.TRUSTPILOT
    platform_field = "trustpilot_url"

    def __init__(
        self,
        api_client: ApiClient,
        actor_id: str,
        default_max_reviews: int = 9999,
        min_content_length: int = MIN_CONTENT_LENGTH
    ):
        super().__init__(api_client, actor_id, TrustpilotNormalizer(), default_max_reviews, min_content_length)


def build_fetcher(
    source: Source,
    api_client: ApiClient,
    actor_ids: Dict[Source, str],
    default_max_reviews: int = 9999,
    google_sort: Optional[str] = None,
    google_language: Optional[str] = None,
    min_content_length: int = MIN_CONTENT_LENGTH
) -> ReviewFetcher:
    """Create the fetcher for a platform."""
    source = Source(source)
    if source == Source.GOOGLE:
        return GoogleReviewFetcher(
            api_client,
            actor_ids[source],
            default_max_reviews,
            sort=google_sort or "newest",
            language=google_language or "en",
            min_content_length=min_content_length,
        )
    if source == Source.FACEBOOK:
        return FacebookReviewFetcher(api_client, actor_ids[source], default_max_reviews, min_content_length)
    return TrustpilotReviewFetcher(api_client, actor_ids[source], default_max_reviews, min_content_length)
