"""
Configuration settings for reviewsync.

Centralized configuration for the fetch pipeline, thumbnail pipeline and CLI.
Secrets come from the environment; a .env file at the project root is loaded
first without overriding variables that are already set.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent

load_dotenv(PROJECT_ROOT / ".env", override=False)

CONFIG_PATH = Path(os.getenv("REVIEWSYNC_CONFIG_PATH", PROJECT_ROOT / "config.json"))
REVIEWS_ROOT = Path(os.getenv("REVIEWSYNC_REVIEWS_ROOT", PROJECT_ROOT / "data"))
IMAGES_DIR = Path(os.getenv("REVIEWSYNC_IMAGES_DIR", PROJECT_ROOT / "images" / "reviewers"))

# Apify scraping API
APIFY_TOKEN_ENV = "APIFY_API_TOKEN"
APIFY_API_TOKEN = os.getenv(APIFY_TOKEN_ENV, "")
APIFY_API_BASE_URL = "https://api.apify.com/v2"

GOOGLE_ACTOR_ID = "nwua9Gu5YrADL7ZDj"
FACEBOOK_ACTOR_ID = "dX3d80hsNMilEwjXG"
TRUSTPILOT_ACTOR_ID = "4AQb7n4pXPxFQQ2w5"

# Fetching
MAX_REVIEWS = 9999  # Used when number_of_reviews is -1
GOOGLE_REVIEWS_SORT = "newest"
GOOGLE_LANGUAGE = "en"
MIN_CONTENT_LENGTH = 5  # Content must be strictly longer than this

# Timeouts (seconds). Actor runs are synchronous and can take many minutes.
API_TIMEOUT_SECONDS = 1200
IMAGE_TIMEOUT_SECONDS = 30

# Fallback transport
CURL_BINARY = os.getenv("REVIEWSYNC_CURL_BINARY", "curl")

# Thumbnails
THUMBNAIL_SIZE = 48
THUMBNAIL_SIZE_2X = 96
THUMBNAIL_QUALITY = 80
THUMBNAIL_URL_PREFIX = "/images/reviewers"
MAX_IMAGE_REDIRECTS = 5

# Pipeline Configuration
PERSIST_PARTIAL_PROGRESS = False  # Save timestamps of finished businesses when a run aborts

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "reviewsync.log"
