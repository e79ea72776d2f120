"""
Shared HTTP request executor for the REST API clients.

Every call performs exactly one request and returns a ResponseOutcome:
- Success(payload): decoded JSON, or None for 204 / empty bodies
- Failure(kind, detail): transport-error, http-error or decode-error

No exception from the network, the status code or the body escapes
execute(); callers decide how to present the failure.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

import httpx

from policies import SERVER_CONFIG

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
BODY_METHODS = ("POST", "PUT", "PATCH")
ERROR_MESSAGE_FIELDS = ("message", "error", "id")


class FailureKind(str, Enum):
    """Category of a failed request."""
    TRANSPORT_ERROR = "transport-error"  # no response obtained
    HTTP_ERROR = "http-error"  # response status outside 2xx
    DECODE_ERROR = "decode-error"  # 2xx body is not valid JSON


@dataclass(frozen=True)
class RequestDescriptor:
    """A single outbound request."""

    url: str
    method: str = "GET"
    body: Any = None

    def __post_init__(self):
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method}")
        object.__setattr__(self, "method", method)

    @property
    def sends_body(self) -> bool:
        return self.body is not None and self.method in BODY_METHODS


@dataclass(frozen=True)
class Success:
    """Request succeeded; payload is None when the response had no body."""

    payload: Any = None

    @property
    def ok(self) -> bool:
        return True

    @property
    def is_object(self) -> bool:
        """True when the payload is a JSON object or absent."""
        return self.payload is None or isinstance(self.payload, dict)


@dataclass(frozen=True)
class Failure:
    """Request failed; detail is a human-readable reason."""

    kind: FailureKind
    detail: str
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False

    def describe(self) -> str:
        """One-line summary for tool output."""
        if self.kind == FailureKind.HTTP_ERROR and self.status_code is not None:
            return f"HTTP {self.status_code}: {self.detail}"
        return self.detail


ResponseOutcome = Union[Success, Failure]


def truncate(text: str, limit: int) -> str:
    """Shorten text to at most limit characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def extract_error_message(raw_text: str, limit: int) -> str:
    """
    Pull a readable message out of an error response body.

    JSON bodies are searched for the conventional message, error and id
    fields in that order; anything else falls back to the raw text.
    """
    try:
        data = json.loads(raw_text)
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ERROR_MESSAGE_FIELDS:
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)

    return truncate(raw_text.strip(), limit)


def json_object(value: Any) -> dict:
    """Return value when it is a JSON object, else an empty dict."""
    return value if isinstance(value, dict) else {}


def json_list(value: Any) -> list:
    """Return value when it is a JSON array, else an empty list."""
    return value if isinstance(value, list) else []


class ApiClient:
    """
    Async JSON-over-HTTP client for a single REST API.

    Implements:
    - Standard headers (client identifier, bearer auth, JSON content type)
    - Body serialization for POST/PUT/PATCH only
    - Normalization of every outcome into Success or Failure
    - Injectable httpx transport for tests
    """

    def __init__(
        self,
        user_agent: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            user_agent: Client identifier sent as User-Agent
            transport: httpx transport to use instead of the network
            timeout: Request timeout in seconds (defaults to policy value,
                then httpx's default)
        """
        http_config = SERVER_CONFIG.get("http", {})
        self.user_agent = user_agent
        self.transport = transport
        self.timeout = timeout if timeout is not None else http_config.get("timeout_seconds")
        self.excerpt_chars = http_config.get("error_excerpt_chars", 200)

    def build_headers(self, credential: Optional[str] = None) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if credential:
            headers["Authorization"] = f"Bearer {credential}"
        return headers

    async def execute(
        self,
        descriptor: RequestDescriptor,
        credential: Optional[str] = None,
    ) -> ResponseOutcome:
        """
        Perform one HTTP round trip.

        Args:
            descriptor: URL, method and optional JSON body
            credential: Bearer token, omitted from headers when None

        Returns:
            Success with the decoded payload, or Failure
        """
        content = None
        if descriptor.sends_body:
            content = json.dumps(descriptor.body)
        elif descriptor.body is not None:
            logger.debug(f"Ignoring body for {descriptor.method} {descriptor.url}")

        client_kwargs = {"transport": self.transport}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout

        try:
            headers = self.build_headers(credential)
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await client.request(
                    descriptor.method,
                    descriptor.url,
                    headers=headers,
                    content=content,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"{descriptor.method} {descriptor.url}: Request error - {str(e)}")
            return Failure(
                kind=FailureKind.TRANSPORT_ERROR,
                detail=f"Request failed: {str(e) or type(e).__name__}",
            )
        except UnicodeEncodeError as e:
            # header values must be ASCII; never log the credential itself
            logger.warning(f"{descriptor.method} {descriptor.url}: Invalid header value - {e.reason}")
            return Failure(
                kind=FailureKind.TRANSPORT_ERROR,
                detail=f"Request failed: header contains non-ASCII characters ({e.reason})",
            )

        return self._normalize(descriptor, response)

    def _normalize(self, descriptor: RequestDescriptor, response: httpx.Response) -> ResponseOutcome:
        status = response.status_code

        if status == 204:
            logger.info(f"{descriptor.method} {descriptor.url}: 204 No Content")
            return Success(None)

        raw_text = response.text

        if not 200 <= status < 300:
            logger.warning(
                f"{descriptor.method} {descriptor.url}: HTTP {status} - "
                f"{raw_text[:self.excerpt_chars]}"
            )
            detail = extract_error_message(raw_text, self.excerpt_chars) or f"HTTP {status}"
            return Failure(kind=FailureKind.HTTP_ERROR, detail=detail, status_code=status)

        if not raw_text.strip():
            logger.info(f"{descriptor.method} {descriptor.url}: {status} (empty body)")
            return Success(None)

        try:
            payload = json.loads(raw_text)
        except ValueError:
            logger.warning(f"{descriptor.method} {descriptor.url}: Invalid JSON in response")
            return Failure(
                kind=FailureKind.DECODE_ERROR,
                detail=f"Invalid JSON in response: {truncate(raw_text, self.excerpt_chars)}",
                status_code=status,
            )

        logger.info(f"{descriptor.method} {descriptor.url}: Success")
        return Success(payload)
