"""
Sync Orchestrator.

Runs one platform's fetch over every configured business, sequentially.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from reviewsync.models.business import Business
from reviewsync.models.review import Source
from reviewsync.normalizers.google import extract_google_user_id
from reviewsync.pipeline.api_client import ApiClient
from reviewsync.pipeline.fetchers import ReviewFetcher, build_fetcher
from reviewsync.pipeline.filters import filter_reviews
from reviewsync.pipeline.planner import FetchOptions, build_fetch_options, should_fetch
from reviewsync.registry.business_registry import BusinessRegistry
from reviewsync.utils.dates import utcnow
from reviewsync.utils.exceptions import ReviewSyncError
from reviewsync.utils.storage import ReviewStore
from reviewsync.utils.thumbnails import ThumbnailPipeline
from reviewsync.utils.transport import Transport, build_default_transport
import config.settings as settings

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    source: str
    processed: int = 0
    skipped: int = 0
    saved: int = 0


@dataclass
class BackfillSummary:
    businesses: int = 0
    updated: int = 0
    failed: int = 0


class SyncOrchestrator:
    """
    Orchestrates a platform run.

    Per business:
    1. Cooldown check → 2. Fetch (+ start date on Google) → 3. Normalize
    → 4. Content filter → 5. Rating filter → 6. Save (+ thumbnails)
    → 7. Timestamp update

    Updated business records are collected and written to the config once,
    after every business has been handled.
    """

    def __init__(
        self,
        api_token: str,
        config_path: str,
        reviews_root: str,
        images_dir: str,
        transport: Optional[Transport] = None,
        api_client: Optional[ApiClient] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        """
        Initialize sync orchestrator.

        Args:
            api_token: Apify API token
            config_path: Path to the business config list
            reviews_root: Root directory for stored reviews
            images_dir: Output directory for reviewer thumbnails
            transport: Shared network transport (defaults to requests + curl fallback)
            api_client: Override the Apify client (tests)
            clock: Source of "now" for cooldowns and timestamps
        """
        logger.info("Initializing sync components...")

        self.registry = BusinessRegistry(config_path)
        self.transport = transport or build_default_transport(
            settings.CURL_BINARY, settings.MAX_IMAGE_REDIRECTS
        )
        self.api_client = api_client or ApiClient(
            token=api_token,
            base_url=settings.APIFY_API_BASE_URL,
            transport=self.transport,
            timeout_seconds=settings.API_TIMEOUT_SECONDS,
        )
        self.thumbnails = ThumbnailPipeline(
            images_dir=images_dir,
            transport=self.transport,
            timeout_seconds=settings.IMAGE_TIMEOUT_SECONDS,
            size=settings.THUMBNAIL_SIZE,
            size_2x=settings.THUMBNAIL_SIZE_2X,
            quality=settings.THUMBNAIL_QUALITY,
            max_redirects=settings.MAX_IMAGE_REDIRECTS,
        )
        self.store = ReviewStore(reviews_root, self.thumbnails, settings.THUMBNAIL_URL_PREFIX)
        self.actor_ids: Dict[Source, str] = {
            Source.GOOGLE: settings.GOOGLE_ACTOR_ID,
            Source.FACEBOOK: settings.FACEBOOK_ACTOR_ID,
            Source.TRUSTPILOT: settings.TRUSTPILOT_ACTOR_ID,
        }
        self.max_reviews = settings.MAX_REVIEWS
        self.persist_partial_progress = settings.PERSIST_PARTIAL_PROGRESS
        self.clock = clock

    def fetcher_for(self, source: Source) -> ReviewFetcher:
        return build_fetcher(
            source,
            self.api_client,
            self.actor_ids,
            default_max_reviews=self.max_reviews,
            google_sort=settings.GOOGLE_REVIEWS_SORT,
            google_language=settings.GOOGLE_LANGUAGE,
            min_content_length=settings.MIN_CONTENT_LENGTH,
        )

    def run(self, source: Source, slug: Optional[str] = None) -> RunSummary:
        """
        Fetch and store reviews for every due business on one platform.

        Args:
            source: Platform to run
            slug: Restrict the run to a single business

        Returns:
            RunSummary with processed/skipped/saved counts

        Raises:
            Any error from fetching or saving. The config is not written
            unless PERSIST_PARTIAL_PROGRESS is set, in which case the
            businesses finished before the failure are persisted first.
        """
        source = Source(source)
        fetcher = self.fetcher_for(source)
        summary = RunSummary(source=source.value)

        businesses = self.registry.select(fetcher.platform_field, slug)
        if not businesses:
            logger.warning(
                f"No businesses configured for {source.value}"
                + (f" with slug '{slug}'" if slug else "")
            )
            return summary

        logger.info(f"Starting {source.value} run for {len(businesses)} businesses")

        completed: List[Tuple[Business, Business]] = []
        try:
            for business in businesses:
                if not should_fetch(business, source.value, now=self.clock()):
                    logger.info(
                        f"Skipping {business.slug}: fetched less than "
                        f"{business.fetch_frequency_days} days ago"
                    )
                    summary.skipped += 1
                    continue

                updated, saved = self._process_business(business, fetcher)
                completed.append((business, updated))
                summary.processed += 1
                summary.saved += saved
        except Exception as e:
            logger.error(f"{source.value} run aborted at business #{len(completed) + summary.skipped + 1}: {e}")
            if self.persist_partial_progress and completed:
                logger.warning(f"Persisting timestamps for {len(completed)} completed businesses")
                self.registry.apply(completed)
                self.registry.save()
            raise

        self.registry.apply(completed)
        self.registry.save()

        logger.info(
            f"{source.value} run complete: {summary.processed} processed, "
            f"{summary.skipped} skipped, {summary.saved} new reviews"
        )
        return summary

    def _process_business(self, business: Business, fetcher: ReviewFetcher) -> Tuple[Business, int]:
        """Fetch, filter and save one business's reviews."""
        business_dir = self.store.ensure_business_dir(business.slug)
        options = build_fetch_options(
            business,
            business_dir,
            self.max_reviews,
            use_start_date=fetcher.supports_start_date,
        )
        if options.reviews_start_date:
            logger.info(f"Fetching {business.slug} reviews since {options.reviews_start_date}")

        reviews = fetcher.fetch(business, options)
        eligible = filter_reviews(reviews, business.minimum_star_rating, fetcher.min_content_length)

        saved = self.store.save_all(eligible, business_dir, fetcher.source)
        logger.info(
            f"{business.slug}: {saved} new of {len(eligible)} eligible reviews "
            f"({len(reviews) - len(eligible)} below {business.minimum_star_rating} stars)"
        )
        return business.with_last_fetched(fetcher.source.value, self.clock()), saved

    def backfill_thumbnails(self, slug: Optional[str] = None) -> BackfillSummary:
        """
        Add thumbnails to stored Google reviews that lack one.

        Re-fetches each business's reviews to recover reviewer photo URLs,
        then runs the thumbnail pipeline for matching stored files. A failing
        business is logged and skipped; the config is never written.
        """
        fetcher = self.fetcher_for(Source.GOOGLE)
        summary = BackfillSummary()

        for business in self.registry.select(fetcher.platform_field, slug):
            business_dir = self.store.business_dir(business.slug)
            if not os.path.isdir(business_dir):
                continue

            summary.businesses += 1
            try:
                summary.updated += self._backfill_business(business, business_dir, fetcher)
            except (ReviewSyncError, OSError) as e:
                logger.error(f"Thumbnail backfill failed for {business.slug}: {e}")
                summary.failed += 1
                continue

        logger.info(f"Thumbnail backfill complete: {summary.updated} reviews updated")
        return summary

    def _backfill_business(self, business: Business, business_dir: str, fetcher: ReviewFetcher) -> int:
        raw_reviews = fetcher.fetch_raw(business, FetchOptions(max_reviews=self.max_reviews))

        photo_map: Dict[str, str] = {}
        for raw in raw_reviews:
            review = fetcher.normalizer.normalize(raw)
            if review.author_url and review.photo_url:
                photo_map[review.author_url] = review.photo_url

        updated = 0
        for filepath, data in self.store.iter_stored(business_dir):
            if data.get("thumbnail"):
                continue
            author_url = data.get("authorUrl") or ""
            photo_url = photo_map.get(author_url)
            user_id = data.get("userId") or extract_google_user_id(author_url)
            if not photo_url or not user_id:
                continue

            if self.thumbnails.acquire(photo_url, user_id):
                data["userId"] = user_id
                data["photoUrl"] = photo_url
                data["thumbnail"] = self.store.thumbnail_url(user_id)
                self.store.write(filepath, data)
                updated += 1

        logger.info(f"{business.slug}: {updated} reviews given thumbnails")
        return updated
