"""
Platform normalizers.

Each normalizer maps a raw Apify record to a canonical Review:
- GoogleNormalizer (Google Maps Reviews actor)
- FacebookNormalizer (Facebook Reviews actor)
- TrustpilotNormalizer (Trustpilot Reviews actor)
"""

from reviewsync.normalizers.base import ReviewNormalizer
from reviewsync.normalizers.facebook import FacebookNormalizer
from reviewsync.normalizers.google import GoogleNormalizer
from reviewsync.normalizers.trustpilot import TrustpilotNormalizer

__all__ = [
    "ReviewNormalizer",
    "GoogleNormalizer",
    "FacebookNormalizer",
    "TrustpilotNormalizer",
]
