"""Remote Content Client for a GitHub-style REST API.

Thin GET/PUT wrapper that attaches the API headers (user agent, optional
token). It does not retry and does not interpret statuses; callers read
``status`` and ``headers`` off the returned response.

Endpoints used by rustwrap:
- GET  /repos/{repo}/releases/latest        -> {"tag_name": ...}
- GET  /repos/{repo}/contents/{path}        -> {"content": <base64>, "sha": ...}
- PUT  /repos/{repo}/contents/{path}        <- {"message", "content", "sha"?}
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from typing import TYPE_CHECKING

from rustwrap.core.errors import RemoteError
from rustwrap.core.result import Err, Ok, Result
from rustwrap.remote.http import DEFAULT_USER_AGENT

if TYPE_CHECKING:
    from rustwrap.remote.http import HttpClient, HttpError, HttpResponse

__all__ = [
    "GITHUB_API",
    "ContentClient",
    "decode_content",
    "rate_limit",
    "remote_error",
]

GITHUB_API = "https://api.github.com"


class ContentClient:
    """GET/PUT against the content-hosting API.

    The auth token is passed in explicitly (the CLI reads GITHUB_TOKEN);
    nothing here touches the environment.
    """

    def __init__(
        self,
        http: HttpClient,
        *,
        token: str | None = None,
        api_base: str = GITHUB_API,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._http = http
        self._token = token
        self.api_base = api_base.rstrip("/")
        self.user_agent = user_agent

    def url(self, path: str) -> str:
        return f"{self.api_base}/{path.lstrip('/')}"

    def headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/vnd.github+json",
        }
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    def get(self, path: str) -> Result[HttpResponse, HttpError]:
        return self._http.request("GET", self.url(path), headers=self.headers())

    def put(self, path: str, payload: Mapping[str, object]) -> Result[HttpResponse, HttpError]:
        headers = {**self.headers(), "Content-Type": "application/json"}
        body = json.dumps(payload).encode("utf-8")
        return self._http.request("PUT", self.url(path), headers=headers, body=body)

    def release_path(self, repo: str) -> str:
        return f"repos/{repo}/releases/latest"

    def contents_path(self, repo: str, file_path: str) -> str:
        return f"repos/{repo}/contents/{file_path}"


def rate_limit(response: HttpResponse) -> str | None:
    """Remaining/limit from the GitHub rate-limit headers, if present."""
    remaining = response.header("x-ratelimit-remaining")
    limit = response.header("x-ratelimit-limit")
    if remaining is None and limit is None:
        return None
    return f"{remaining or '?'}/{limit or '?'}"


def remote_error(error: HttpError) -> RemoteError:
    """Map a transport failure to the RemoteError taxonomy."""
    return RemoteError(url=error.url, status=error.status, message=error.message)


def decode_content(data: Mapping[str, object], url: str) -> Result[str, RemoteError]:
    """Decode the base64 ``content`` field of a contents API response."""
    content = data.get("content")
    if not isinstance(content, str):
        return Err(RemoteError(url=url, status=0, message="no content found"))
    try:
        raw = base64.b64decode(content.replace("\n", ""), validate=True)
        return Ok(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError) as e:
        return Err(RemoteError(url=url, status=0, message=f"cannot decode content: {e}"))
