"""
Apify API client.

Runs an actor synchronously and returns its dataset items. The call blocks
until the actor finishes, which for large review counts can take many
minutes, hence the long timeout.
"""

import json
import logging
from typing import Any, List, Optional

from reviewsync.utils.exceptions import InvalidResponseError
from reviewsync.utils.transport import Transport, build_default_transport

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Thin client over a Transport.

    Does not care which transport is active; the default composes the
    requests client with the curl fallback.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.apify.com/v2",
        transport: Optional[Transport] = None,
        timeout_seconds: float = 1200
    ):
        """
        Initialize API client.

        Args:
            token: Apify API token
            base_url: Apify API root
            transport: Transport to use (defaults to requests + curl fallback)
            timeout_seconds: Per-request timeout
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.transport = transport or build_default_transport()
        self.timeout_seconds = timeout_seconds

    def actor_url(self, actor_id: str) -> str:
        return f"{self.base_url}/acts/{actor_id}/run-sync-get-dataset-items?token={self.token}"

    def request(self, url: str, body: Any) -> str:
        """POST body as JSON and return the raw response text."""
        logger.debug(f"POST {url.split('?')[0]}")
        return self.transport.post_json(url, body, self.timeout_seconds)

    def fetch_api_array(self, url: str, body: Any) -> List[Any]:
        """
        POST and parse the response as a JSON array.

        Raises:
            InvalidResponseError: If the body is not JSON or not a top-level array
        """
        text = self.request(url, body)
        try:
            results = json.loads(text)
        except ValueError as e:
            raise InvalidResponseError() from e

        if not isinstance(results, list):
            raise InvalidResponseError()
        return results
