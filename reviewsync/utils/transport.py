"""
HTTP transports.

The sync job talks to the network through a small Transport interface:
- HttpTransport: requests-based primary client
- CurlTransport: shells out to the curl binary
- FallbackTransport: primary first, fallback only on DNS resolution errors

Containers and CI runners sometimes fail name resolution inside the Python
process while curl (using the system resolver) still works, hence the
fallback.
"""

import json
import logging
import socket
import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from reviewsync.utils.exceptions import (
    DnsResolutionError,
    HttpStatusError,
    TransportError,
)

logger = logging.getLogger(__name__)

DNS_ERROR_MARKERS = ("EAI_AGAIN", "Temporary failure in name resolution")


@dataclass
class HttpResponse:
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400 and bool(self.location)

    @property
    def location(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == "location":
                return value
        return None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def is_dns_error(error: BaseException) -> bool:
    """
    True when an exception (or anything in its cause chain) is a temporary
    name resolution failure.
    """
    seen = set()
    pending = [error]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, socket.gaierror) and current.errno == getattr(socket, "EAI_AGAIN", -3):
            return True
        if any(marker in str(current) for marker in DNS_ERROR_MARKERS):
            return True

        pending.append(current.__cause__)
        pending.append(current.__context__)
        # requests/urllib3 nest the underlying error in args and .reason
        pending.append(getattr(current, "reason", None))
        pending.extend(arg for arg in getattr(current, "args", ()) if isinstance(arg, BaseException))
    return False


class Transport:
    """Interface implemented by all transports."""

    def post_json(self, url: str, payload: Any, timeout: float) -> str:
        """
        POST a JSON body and return the response text.

        Raises:
            HttpStatusError: On a non-2xx status
            DnsResolutionError: On a temporary name resolution failure
            TransportError: On any other failure
        """
        raise NotImplementedError

    def get(self, url: str, timeout: float, follow_redirects: bool = False) -> HttpResponse:
        """
        GET a URL and return the raw response.

        Redirects are returned to the caller unless follow_redirects is set.
        """
        raise NotImplementedError


class HttpTransport(Transport):
    """Primary transport backed by a requests Session."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def post_json(self, url: str, payload: Any, timeout: float) -> str:
        try:
            response = self.session.post(url, json=payload, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise TransportError("Request timeout") from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise self._wrap(e) from e

        if not 200 <= response.status_code < 300:
            raise HttpStatusError(response.status_code, response.text)
        return response.text

    def get(self, url: str, timeout: float, follow_redirects: bool = False) -> HttpResponse:
        try:
            response = self.session.get(url, timeout=timeout, allow_redirects=follow_redirects)
        except requests.exceptions.Timeout as e:
            raise TransportError("Request timeout") from e
        except (requests.exceptions.RequestException, ValueError) as e:
            # urllib3 reports unencodable hosts as LocationParseError, a ValueError
            raise self._wrap(e) from e

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )

    @staticmethod
    def _wrap(error: Exception) -> TransportError:
        if is_dns_error(error):
            return DnsResolutionError(str(error))
        return TransportError(str(error))


class CurlTransport(Transport):
    """
    Fallback transport that runs the curl binary in a subprocess.

    Blocks the calling thread until curl exits or its own --max-time fires.
    Every failure surfaces as a generic TransportError.
    """

    # Extra wall-clock allowance on top of curl's --max-time
    GRACE_SECONDS = 5

    def __init__(self, binary: str = "curl", max_redirects: int = 5):
        self.binary = binary
        self.max_redirects = max_redirects

    def post_json(self, url: str, payload: Any, timeout: float) -> str:
        command = [
            self.binary, "-s", "--fail",
            "--max-time", str(int(timeout)),
            "-X", "POST", url,
            "-H", "Content-Type: application/json",
            "--data-binary", "@-",
        ]
        output = self._run(command, json.dumps(payload).encode("utf-8"), timeout)
        return output.decode("utf-8")

    def get(self, url: str, timeout: float, follow_redirects: bool = False) -> HttpResponse:
        command = [self.binary, "-s", "--fail", "--max-time", str(int(timeout))]
        if follow_redirects:
            command += ["-L", "--max-redirs", str(self.max_redirects)]
        command.append(url)
        return HttpResponse(status_code=200, content=self._run(command, None, timeout))

    def _run(self, command, stdin: Optional[bytes], timeout: float) -> bytes:
        try:
            result = subprocess.run(
                command,
                input=stdin,
                capture_output=True,
                timeout=timeout + self.GRACE_SECONDS,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise TransportError(f"Curl request failed: exit status {e.returncode}") from e
        except subprocess.TimeoutExpired as e:
            raise TransportError("Curl request failed: timed out") from e
        except OSError as e:
            raise TransportError(f"Curl request failed: {e}") from e
        return result.stdout


class FallbackTransport(Transport):
    """Uses the primary transport, retrying once on the fallback after a DNS failure."""

    def __init__(self, primary: Transport, fallback: Transport):
        self.primary = primary
        self.fallback = fallback

    def post_json(self, url: str, payload: Any, timeout: float) -> str:
        try:
            return self.primary.post_json(url, payload, timeout)
        except DnsResolutionError:
            logger.info("Using curl fallback due to DNS issues...")
            return self.fallback.post_json(url, payload, timeout)

    def get(self, url: str, timeout: float, follow_redirects: bool = False) -> HttpResponse:
        try:
            return self.primary.get(url, timeout, follow_redirects=follow_redirects)
        except DnsResolutionError:
            logger.info("Using curl fallback due to DNS issues...")
            # curl resolves the whole redirect chain itself
            return self.fallback.get(url, timeout, follow_redirects=True)


def build_default_transport(curl_binary: str = "curl", max_redirects: int = 5) -> Transport:
    return FallbackTransport(HttpTransport(), CurlTransport(curl_binary, max_redirects))
