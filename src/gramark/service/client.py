"""Async HTTP client for the grammar error correction service."""

from __future__ import annotations

import logging
from typing import Any, Self

import httpx

from gramark import __version__
from gramark.service.errors import (
    MalformedResponseError,
    ServiceAuthenticationError,
    ServiceConnectionError,
    ServiceForbiddenError,
    ServiceHTTPError,
    ServiceRateLimitError,
    ServiceTimeoutError,
)
from gramark.service.models import CorrectionRequest, SentenceWithProblems

logger = logging.getLogger(__name__)

USER_AGENT = f"gramark/{__version__}"
CORRECTION_PATH = "/v5/gec/correct/v3"
DEFAULT_TIMEOUT = 30.0


def _parse_sentences(data: Any) -> list[SentenceWithProblems]:
    """Accept either a bare list or an object wrapping the list."""
    if isinstance(data, dict):
        for key in ("corrections", "sentences"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        raise MalformedResponseError(
            f"Expected a list of sentence results, got {type(data).__name__}"
        )
    return [SentenceWithProblems.from_dict(item) for item in data]


class CorrectionClient:
    """Async client for the per-sentence correction endpoint.

    Usage::

        async with CorrectionClient("https://api.jetbrains.ai/", token) as client:
            results = await client.check_grammar(request)

    Args:
        base_url: Service root, as resolved from the platform configuration.
        token: JWT sent in the ``Grazie-Authenticate-JWT`` header.
        user_auth: True for a user token, False for an application token.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        user_auth: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._user_auth = user_auth
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, connect=10.0),
        )
        return self

    async def __aexit__(self, *_: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the underlying httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError("CorrectionClient must be used as an async context manager")
        return self._client

    @property
    def endpoint(self) -> str:
        """Absolute URL of the correction endpoint for the configured auth type."""
        auth_type = "user" if self._user_auth else "application"
        return f"{self._base_url}/{auth_type}{CORRECTION_PATH}"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            "Grazie-Authenticate-JWT": self._token,
        }

    async def check_grammar(self, request: CorrectionRequest) -> list[SentenceWithProblems]:
        """Submit sentences and return one result per sentence, in order.

        Args:
            request: Sentences, language and enabled services.

        Returns:
            Parsed sentence results as returned by the service.

        Raises:
            ServiceAuthenticationError: Token rejected (401).
            ServiceForbiddenError: Permission denied (403).
            ServiceRateLimitError: Rate limit hit (429).
            ServiceHTTPError: Any other non-2xx status.
            ServiceConnectionError: Service unreachable or the connection failed.
            ServiceTimeoutError: Request timed out.
            MalformedResponseError: Body is not valid JSON of the expected shape.
        """
        logger.debug(
            "Submitting %d sentences (%s) to %s",
            len(request.sentences),
            request.language,
            self.endpoint,
        )
        try:
            resp = await self.client.post(
                self.endpoint, json=request.to_dict(), headers=self._headers()
            )
        except httpx.ConnectError as exc:
            raise ServiceConnectionError(f"Cannot connect to {self._base_url}") from exc
        except httpx.TimeoutException as exc:
            raise ServiceTimeoutError(
                f"Request timed out after {self._timeout:g}s"
            ) from exc
        except httpx.TransportError as exc:
            raise ServiceConnectionError(
                f"Network error talking to {self._base_url}: {exc}"
            ) from exc

        if resp.status_code == 401:
            raise ServiceAuthenticationError(resp.text)
        if resp.status_code == 403:
            raise ServiceForbiddenError(resp.text)
        if resp.status_code == 429:
            raise ServiceRateLimitError(resp.text)
        if not resp.is_success:
            raise ServiceHTTPError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Invalid JSON from correction service: {exc}") from exc

        return _parse_sentences(data)
