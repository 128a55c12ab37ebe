"""
reviewsync - Review Aggregation Sync

CLI entry point for fetching platform reviews and backfilling thumbnails.
"""

import argparse
import logging
import sys
from typing import List, Optional

from reviewsync.models.review import Source
from reviewsync.orchestrator import SyncOrchestrator
from reviewsync.utils.exceptions import ConfigurationError
import config.settings as settings

THUMBNAILS_COMMAND = "thumbnails"
COMMANDS = [s.value for s in Source] + [THUMBNAILS_COMMAND]


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def build_parser(command: Optional[str] = None) -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Args:
        command: Preselected command (console scripts); omits the positional
    """
    parser = argparse.ArgumentParser(
        description="reviewsync - fetch Google, Facebook and Trustpilot reviews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch Google reviews for every due business
  python main.py google

  # Fetch Trustpilot reviews for one business
  python main.py trustpilot acme-plumbing

  # Add missing thumbnails to stored Google reviews
  python main.py thumbnails

Note: Set APIFY_API_TOKEN environment variable before running.
        """
    )

    if command is None:
        parser.add_argument(
            "command",
            choices=COMMANDS,
            help="Platform to fetch, or 'thumbnails' to backfill reviewer images"
        )

    parser.add_argument(
        "slug",
        nargs="?",
        help="Only process the business with this slug"
    )

    parser.add_argument(
        "--config",
        default=str(settings.CONFIG_PATH),
        help=f"Business config JSON (default: {settings.CONFIG_PATH})"
    )

    parser.add_argument(
        "--reviews-root",
        default=str(settings.REVIEWS_ROOT),
        help=f"Review output directory (default: {settings.REVIEWS_ROOT})"
    )

    parser.add_argument(
        "--images-dir",
        default=str(settings.IMAGES_DIR),
        help=f"Thumbnail output directory (default: {settings.IMAGES_DIR})"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    return parser


def main(argv: Optional[List[str]] = None, command: Optional[str] = None):
    """Main CLI entry point."""
    args = build_parser(command).parse_args(argv)
    command = command or args.command

    # Setup logging
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    # Validate API token
    if not settings.APIFY_API_TOKEN:
        logger.error(
            f"{settings.APIFY_TOKEN_ENV} environment variable not set. "
            "Please set it before running reviewsync."
        )
        sys.exit(1)

    # Print banner
    print("=" * 60)
    print(f"reviewsync - {command}")
    print("=" * 60)
    print(f"Config: {args.config}")
    if args.slug:
        print(f"Business: {args.slug}")
    print("=" * 60)
    print()

    try:
        orchestrator = SyncOrchestrator(
            api_token=settings.APIFY_API_TOKEN,
            config_path=args.config,
            reviews_root=args.reviews_root,
            images_dir=args.images_dir
        )

        if command == THUMBNAILS_COMMAND:
            backfill = orchestrator.backfill_thumbnails(slug=args.slug)
            print()
            print("=" * 60)
            print("✅ Thumbnail backfill complete")
            print(f"Businesses: {backfill.businesses}  Updated: {backfill.updated}  Failed: {backfill.failed}")
            print("=" * 60)
        else:
            summary = orchestrator.run(Source(command), slug=args.slug)
            print()
            print("=" * 60)
            print(f"✅ {command} fetch complete")
            print(f"Processed: {summary.processed}  Skipped: {summary.skipped}  New reviews: {summary.saved}")
            print("=" * 60)

        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Run interrupted by user")
        print("\n⚠️  Run interrupted")
        sys.exit(1)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"\n❌ {e}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Run failed: {e}", exc_info=True)
        print(f"\n❌ Run failed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


def fetch_google():
    main(command=Source.GOOGLE.value)


def fetch_facebook():
    main(command=Source.FACEBOOK.value)


def fetch_trustpilot():
    main(command=Source.TRUSTPILOT.value)


def fetch_thumbnails():
    main(command=THUMBNAILS_COMMAND)


if __name__ == "__main__":
    main()
