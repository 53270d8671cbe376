"""HTTP client abstraction for the release catalog and artifact registry.

This module provides:
- HttpClient: Protocol for the two operations the runner needs (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from compat.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Lets tests inject canned catalog payloads and registry answers
    instead of touching the network.
    """

    def get_json(self, url: str) -> Result[object, HttpError]:
        """Fetch URL and parse the body as JSON (any top-level type)."""
        ...

    def exists(self, url: str) -> Result[bool, HttpError]:
        """Check whether a resource exists with a HEAD request.

        Returns:
            Ok(True) on 2xx, Ok(False) on 404, Err for anything else
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Optional bearer token (GitHub API rate limits)
    - Timeout handling
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "envoy-compat/0.1.0",
        token: str | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._token = token
        self._ssl_context = ssl.create_default_context()

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(self, url: str, method: str) -> Result[bytes, HttpError]:
        try:
            req = urllib.request.Request(url, headers=self._headers(), method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[object, HttpError]:
        result = self._request(url, "GET")
        if isinstance(result, Err):
            return result

        try:
            data: object = json.loads(result.value.decode("utf-8"))
            return Ok(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))

    def exists(self, url: str) -> Result[bool, HttpError]:
        result = self._request(url, "HEAD")
        if isinstance(result, Ok):
            return Ok(True)
        if result.error.status == 404:
            return Ok(False)
        return result


class MockHttpClient:
    """Mock HTTP client for testing.

    Unknown JSON URLs answer 404; unknown HEAD URLs answer "does not exist".

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.example.com/releases", [{"tag_name": "v1.2.0"}])
        client.set_exists("https://registry.example.com/tags/v1.2-latest", True)
    """

    def __init__(self) -> None:
        self._json_responses: dict[str, object | HttpError] = {}
        self._exists_responses: dict[str, bool | HttpError] = {}
        self.calls: list[tuple[str, str]] = []

    def set_json(self, url: str, response: object | HttpError) -> None:
        self._json_responses[url] = response

    def set_exists(self, url: str, response: bool | HttpError) -> None:
        self._exists_responses[url] = response

    def get_json(self, url: str) -> Result[object, HttpError]:
        self.calls.append(("get_json", url))

        if url not in self._json_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._json_responses[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def exists(self, url: str) -> Result[bool, HttpError]:
        self.calls.append(("exists", url))

        response = self._exists_responses.get(url, False)
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
