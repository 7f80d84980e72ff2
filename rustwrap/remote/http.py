"""HTTP client abstraction.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing

Non-success statuses are not errors at this layer: callers get the status,
headers and body and decide. ``HttpError`` is reserved for requests that
produced no response at all (DNS, TLS, refused connection, timeout).
"""

from __future__ import annotations

import io
import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Protocol, cast, runtime_checkable

from rustwrap import __version__
from rustwrap.core.result import Err, Ok, Result
from rustwrap.core.structured import as_str_dict

__all__ = [
    "DEFAULT_USER_AGENT",
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "HttpStream",
    "MockHttpClient",
    "MockRequest",
    "RealHttpClient",
]

DEFAULT_USER_AGENT = f"rustwrap/{__version__}"


@dataclass(frozen=True, slots=True)
class HttpError:
    """Transport-level failure: the request got no HTTP response.

    Attributes:
        url: The URL that failed
        status: Always 0 for transport failures
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


def _lower_keys(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {k.lower(): v for k, v in headers.items()}


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """A fully-read HTTP response. Header names are lower-cased."""

    url: str
    status: int
    headers: Mapping[str, str]
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Result[dict[str, Any], HttpError]:
        """Parse the body as a JSON object."""
        try:
            data_obj: object = json.loads(self.body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=self.url, status=0, message=f"JSON parse error: {e}"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(HttpError(url=self.url, status=0, message="Expected JSON object"))
        # Values are dynamic; preserve as Any for callers.
        return Ok(cast(dict[str, Any], data))


class HttpStream:
    """An open HTTP response whose body is read incrementally.

    Use as a context manager so the connection is always released.
    """

    def __init__(
        self,
        url: str,
        status: int,
        headers: Mapping[str, str],
        reader: BinaryIO,
    ) -> None:
        self.url = url
        self.status = status
        self.headers = _lower_keys(headers)
        self._reader = reader

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def content_length(self) -> int:
        """Declared body size, 0 when missing or unparseable."""
        raw = self.header("Content-Length")
        if raw is None:
            return 0
        try:
            return max(int(raw.strip()), 0)
        except ValueError:
            return 0

    def read(self, size: int = -1) -> bytes:
        return self._reader.read(size)

    def close(self) -> None:
        self._reader.close()

    def __enter__(self) -> HttpStream:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    This abstraction allows injecting mock clients for testing,
    avoiding real network calls in unit tests.
    """

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        """Send a request and read the whole response."""
        ...

    def open(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HttpStream, HttpError]:
        """Send a GET request and return the response unread, for streaming."""
        ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Default User-Agent (overridable per request)
    - Timeout handling (applies per socket operation, not to a whole transfer)
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        # Use system certificates
        self._ssl_context = ssl.create_default_context()

    def _headers(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        merged = {"user-agent": self.user_agent}
        merged.update(_lower_keys(headers))
        return merged

    def _open(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        body: bytes | None,
    ) -> Result[HttpStream, HttpError]:
        try:
            req = urllib.request.Request(
                url,
                data=body,
                method=method,
                headers=self._headers(headers),
            )
            response = urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            )
        except urllib.error.HTTPError as e:
            # A non-success status still carries headers and a body.
            reader = cast(BinaryIO, e) if e.fp is not None else io.BytesIO(b"")
            return Ok(HttpStream(url, e.code, dict(e.headers.items()), reader))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        return Ok(HttpStream(url, response.status, dict(response.headers.items()), response))

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        opened = self._open(method, url, headers, body)
        if isinstance(opened, Err):
            return opened

        with opened.value as stream:
            try:
                data = stream.read()
            except OSError as e:
                return Err(HttpError(url=url, status=0, message=str(e)))
            return Ok(HttpResponse(url, stream.status, stream.headers, data))

    def open(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HttpStream, HttpError]:
        return self._open("GET", url, headers, None)


@dataclass(frozen=True, slots=True)
class MockRequest:
    """A request recorded by MockHttpClient."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: bytes | None


@dataclass(frozen=True, slots=True)
class _Canned:
    status: int
    body: bytes
    headers: Mapping[str, str]


def _empty_requests() -> list[MockRequest]:
    return []


@dataclass
class MockHttpClient:
    """Mock HTTP client for testing.

    Allows setting predefined responses per (method, URL). Unknown URLs
    answer 404 with an empty body.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.example.com/data", {"key": "value"})
        result = client.request("GET", "https://api.example.com/data")
        assert result.value.json() == Ok({"key": "value"})
    """

    requests: list[MockRequest] = field(default_factory=_empty_requests)
    _responses: dict[tuple[str, str], _Canned | HttpError] = field(default_factory=dict)

    def set_response(
        self,
        url: str,
        body: bytes = b"",
        *,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
        method: str = "GET",
    ) -> None:
        self._responses[(method.upper(), url)] = _Canned(status, body, _lower_keys(headers))

    def set_json(
        self,
        url: str,
        data: object,
        *,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
        method: str = "GET",
    ) -> None:
        merged = {"content-type": "application/json", **_lower_keys(headers)}
        self.set_response(
            url, json.dumps(data).encode("utf-8"), status=status, headers=merged, method=method
        )

    def set_error(self, url: str, error: HttpError, *, method: str = "GET") -> None:
        self._responses[(method.upper(), url)] = error

    @property
    def calls(self) -> list[tuple[str, str]]:
        """(method, url) of every request, in order."""
        return [(r.method, r.url) for r in self.requests]

    def _lookup(self, method: str, url: str) -> _Canned | HttpError:
        return self._responses.get(
            (method.upper(), url),
            _Canned(404, b"", {}),
        )

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> Result[HttpResponse, HttpError]:
        self.requests.append(MockRequest(method.upper(), url, _lower_keys(headers), body))
        canned = self._lookup(method, url)
        if isinstance(canned, HttpError):
            return Err(canned)
        return Ok(HttpResponse(url, canned.status, dict(canned.headers), canned.body))

    def open(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HttpStream, HttpError]:
        self.requests.append(MockRequest("GET", url, _lower_keys(headers), None))
        canned = self._lookup("GET", url)
        if isinstance(canned, HttpError):
            return Err(canned)
        return Ok(HttpStream(url, canned.status, canned.headers, io.BytesIO(canned.body)))
