"""
Exception taxonomy for reviewsync.

Transport failures are split so callers can tell a recoverable DNS hiccup
from everything else.
"""


class ReviewSyncError(Exception):
    """Base class for all reviewsync errors."""


class ConfigurationError(ReviewSyncError):
    """Missing token, missing config file, or unreadable configuration."""


class TransportError(ReviewSyncError):
    """A network request could not be completed."""


class DnsResolutionError(TransportError):
    """Temporary name resolution failure (EAI_AGAIN)."""


class HttpStatusError(TransportError):
    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class InvalidResponseError(ReviewSyncError):
    def __init__(self, message: str = "Invalid API response format"):
        super().__init__(message)
