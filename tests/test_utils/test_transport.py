"""
Unit tests for HTTP transports and the DNS fallback.
"""

import pytest
import json
import socket
import subprocess
from unittest.mock import Mock, patch
import requests
from reviewsync.utils.exceptions import (
    DnsResolutionError,
    HttpStatusError,
    TransportError,
)
from reviewsync.utils.transport import (
    CurlTransport,
    FallbackTransport,
    HttpResponse,
    HttpTransport,
    Transport,
    is_dns_error,
)


def make_response(status_code=200, text="[]", headers=None, content=b""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    response.content = content
    return response


def test_http_response_properties():
    redirect = HttpResponse(302, headers={"location": "https://cdn.example.com/a.png"})
    assert redirect.is_redirect
    assert redirect.location == "https://cdn.example.com/a.png"
    assert not redirect.ok

    assert not HttpResponse(302).is_redirect
    assert HttpResponse(204).ok


def test_is_dns_error():
    """Test DNS error detection through exception chains."""
    assert is_dns_error(socket.gaierror(socket.EAI_AGAIN, "Temporary failure in name resolution"))
    assert is_dns_error(Exception("getaddrinfo EAI_AGAIN api.apify.com"))
    assert not is_dns_error(ConnectionRefusedError("Connection refused"))

    inner = socket.gaierror(socket.EAI_AGAIN, "lookup failed")
    wrapped = requests.exceptions.ConnectionError(Exception("pool error", inner))
    assert is_dns_error(wrapped)

    try:
        try:
            raise inner
        except socket.gaierror as e:
            raise RuntimeError("wrapped") from e
    except RuntimeError as chained:
        assert is_dns_error(chained)


def test_http_post_json():
    session = Mock()
    session.post.return_value = make_response(200, '[{"a": 1}]')
    transport = HttpTransport(session)

    assert transport.post_json("https://example.com", {"x": 1}, 30) == '[{"a": 1}]'
    session.post.assert_called_once_with("https://example.com", json={"x": 1}, timeout=30)


def test_http_post_json_status_error():
    session = Mock()
    session.post.return_value = make_response(500, "Internal error")
    transport = HttpTransport(session)

    with pytest.raises(HttpStatusError, match="HTTP 500: Internal error"):
        transport.post_json("https://example.com", {}, 30)


def test_http_post_json_timeout():
    session = Mock()
    session.post.side_effect = requests.exceptions.ReadTimeout("slow")
    transport = HttpTransport(session)

    with pytest.raises(TransportError, match="Request timeout"):
        transport.post_json("https://example.com", {}, 30)


def test_http_dns_failure_classified():
    session = Mock()
    session.post.side_effect = requests.exceptions.ConnectionError(
        "Failed to resolve 'api.apify.com' ([Errno -3] Temporary failure in name resolution)"
    )
    transport = HttpTransport(session)

    with pytest.raises(DnsResolutionError):
        transport.post_json("https://example.com", {}, 30)


def test_http_other_failure_not_dns():
    session = Mock()
    session.post.side_effect = requests.exceptions.ConnectionError("Connection refused")
    transport = HttpTransport(session)

    with pytest.raises(TransportError) as exc_info:
        transport.post_json("https://example.com", {}, 30)
    assert not isinstance(exc_info.value, DnsResolutionError)


def test_http_get_invalid_host_wrapped():
    """Test that a ValueError from URL handling surfaces as a TransportError."""
    session = Mock()
    session.get.side_effect = ValueError("label empty or too long")
    transport = HttpTransport(session)

    with pytest.raises(TransportError):
        transport.get("http://" + "a" * 300 + "/x.png", 30)


def test_http_get_does_not_follow_redirects():
    session = Mock()
    session.get.return_value = make_response(301, headers={"Location": "/next"})
    transport = HttpTransport(session)

    response = transport.get("https://example.com/a", 30)

    assert response.status_code == 301
    assert response.location == "/next"
    session.get.assert_called_once_with("https://example.com/a", timeout=30, allow_redirects=False)


def test_fallback_used_on_dns_error():
    """Test that the fallback runs exactly once after a DNS failure."""
    primary = Mock(spec=Transport)
    primary.post_json.side_effect = DnsResolutionError("EAI_AGAIN")
    fallback = Mock(spec=Transport)
    fallback.post_json.return_value = "[]"

    transport = FallbackTransport(primary, fallback)

    assert transport.post_json("https://example.com", {"a": 1}, 1200) == "[]"
    fallback.post_json.assert_called_once_with("https://example.com", {"a": 1}, 1200)


def test_fallback_not_used_on_other_errors():
    primary = Mock(spec=Transport)
    primary.post_json.side_effect = HttpStatusError(403, "Forbidden")
    fallback = Mock(spec=Transport)

    transport = FallbackTransport(primary, fallback)

    with pytest.raises(HttpStatusError):
        transport.post_json("https://example.com", {}, 1200)
    fallback.post_json.assert_not_called()


def test_fallback_get_follows_redirects():
    primary = Mock(spec=Transport)
    primary.get.side_effect = DnsResolutionError("EAI_AGAIN")
    fallback = Mock(spec=Transport)
    fallback.get.return_value = HttpResponse(200, content=b"img")

    transport = FallbackTransport(primary, fallback)
    response = transport.get("https://example.com/a.png", 30)

    assert response.content == b"img"
    fallback.get.assert_called_once_with("https://example.com/a.png", 30, follow_redirects=True)


@patch("reviewsync.utils.transport.subprocess.run")
def test_curl_post_json(mock_run):
    """Test curl invocation for a JSON POST."""
    mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"[]", stderr=b"")
    transport = CurlTransport("curl")

    assert transport.post_json("https://api.example.com/run", {"maxReviews": 5}, 1200) == "[]"

    command = mock_run.call_args[0][0]
    assert command[0] == "curl"
    assert "--max-time" in command and "1200" in command
    assert "https://api.example.com/run" in command
    assert "Content-Type: application/json" in command
    assert json.loads(mock_run.call_args[1]["input"]) == {"maxReviews": 5}


@patch("reviewsync.utils.transport.subprocess.run")
def test_curl_get_follows_redirects(mock_run):
    mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"img", stderr=b"")
    transport = CurlTransport("curl", max_redirects=5)

    response = transport.get("https://example.com/a.png", 30, follow_redirects=True)

    assert response.ok
    assert response.content == b"img"
    command = mock_run.call_args[0][0]
    assert "-L" in command
    assert command[command.index("--max-redirs") + 1] == "5"


@patch("reviewsync.utils.transport.subprocess.run")
def test_curl_failure_is_generic(mock_run):
    """Test that curl failures surface as a plain TransportError."""
    mock_run.side_effect = subprocess.CalledProcessError(22, ["curl"])
    transport = CurlTransport("curl")

    with pytest.raises(TransportError, match="Curl request failed") as exc_info:
        transport.post_json("https://example.com", {}, 30)
    assert not isinstance(exc_info.value, (DnsResolutionError, HttpStatusError))


@patch("reviewsync.utils.transport.subprocess.run")
def test_curl_missing_binary(mock_run):
    mock_run.side_effect = FileNotFoundError("curl")
    transport = CurlTransport("curl")

    with pytest.raises(TransportError):
        transport.get("https://example.com", 30)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
