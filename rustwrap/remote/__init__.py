"""Network layer: HTTP client and the remote content API client."""

from rustwrap.remote.content import GITHUB_API, ContentClient
from rustwrap.remote.http import (
    HttpClient,
    HttpError,
    HttpResponse,
    HttpStream,
    MockHttpClient,
    RealHttpClient,
)

__all__ = [
    "GITHUB_API",
    "ContentClient",
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "HttpStream",
    "MockHttpClient",
    "RealHttpClient",
]
