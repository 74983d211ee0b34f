"""Resolve the correction service base URL from the platform configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_URL = "https://www.jetbrains.com/config/JetBrainsAIPlatform.json"
DEFAULT_FALLBACK_URL = "https://api.jetbrains.ai/"
RESOLVE_TIMEOUT = 10.0


class ConfigurationError(Exception):
    """Platform configuration could not be fetched or is invalid."""


@dataclass(frozen=True, slots=True)
class PlatformUrl:
    url: str
    priority: float
    deprecated: bool


@dataclass
class ResolutionResult:
    """Outcome of URL resolution.

    Args:
        url: URL to use; the fallback when resolution failed.
        is_success: True when a URL was selected from the configuration.
        is_fallback: True when ``url`` is the configured fallback.
        warnings: Non-fatal issues found during resolution.
        errors: Failures that forced the fallback.
    """

    url: str
    is_success: bool
    is_fallback: bool
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "is_success": self.is_success,
            "is_fallback": self.is_fallback,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


def validate_platform_config(config: Any) -> list[PlatformUrl]:
    """Check the ``{"urls": [...]}`` document and return its entries.

    Raises:
        ConfigurationError: The document or any entry is malformed.
    """
    if not isinstance(config, dict):
        raise ConfigurationError("Invalid configuration format: not an object")
    urls = config.get("urls")
    if not isinstance(urls, list):
        raise ConfigurationError("Invalid configuration format: urls must be an array")

    entries: list[PlatformUrl] = []
    for index, entry in enumerate(urls):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Invalid URL entry at index {index}: not an object")
        url = entry.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ConfigurationError(
                f"Invalid URL entry at index {index}: url must be a non-empty string"
            )
        priority = entry.get("priority")
        # bool is an int subclass but not a valid priority
        if isinstance(priority, bool) or not isinstance(priority, int | float) or priority < 0:
            raise ConfigurationError(
                f"Invalid URL entry at index {index}: priority must be a non-negative number"
            )
        deprecated = entry.get("deprecated")
        if not isinstance(deprecated, bool):
            raise ConfigurationError(
                f"Invalid URL entry at index {index}: deprecated must be a boolean"
            )
        entries.append(PlatformUrl(url=url, priority=priority, deprecated=deprecated))
    return entries


def select_best_url(entries: list[PlatformUrl]) -> str | None:
    """Return the non-deprecated URL with the lowest priority number."""
    active = [e for e in entries if not e.deprecated]
    if not active:
        return None
    return min(active, key=lambda e: e.priority).url


class ConfigurationUrlResolver:
    """Pick the service base URL from the published platform configuration.

    Args:
        config_url: Location of the platform configuration JSON.
        fallback_url: URL used whenever resolution fails.
        timeout: Fetch timeout in seconds.
        transport: Optional httpx transport, for tests.
    """

    def __init__(
        self,
        config_url: str = DEFAULT_CONFIG_URL,
        fallback_url: str = DEFAULT_FALLBACK_URL,
        timeout: float = RESOLVE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config_url = config_url
        self._fallback_url = fallback_url
        self._timeout = timeout
        self._transport = transport

    async def resolve(self) -> ResolutionResult:
        """Fetch, validate and select. Never raises."""
        try:
            entries = await self._fetch_config()
        except ConfigurationError as exc:
            logger.warning("Using fallback service URL %s: %s", self._fallback_url, exc)
            return ResolutionResult(
                url=self._fallback_url,
                is_success=False,
                is_fallback=True,
                errors=[f"Failed to fetch configuration from {self._config_url}: {exc}"],
            )

        selected = select_best_url(entries)
        if selected is None:
            message = (
                f"No valid URLs found in configuration from {self._config_url}, using fallback"
            )
            logger.warning(message)
            return ResolutionResult(
                url=self._fallback_url,
                is_success=False,
                is_fallback=True,
                warnings=[message],
            )

        logger.debug("Resolved service URL %s", selected)
        return ResolutionResult(url=selected, is_success=True, is_fallback=False)

    async def _fetch_config(self) -> list[PlatformUrl]:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout), transport=self._transport
            ) as client:
                resp = await client.get(
                    self._config_url, headers={"Content-Type": "application/json"}
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ConfigurationError(f"Request failed: {exc}") from exc

        if resp.status_code != 200:
            raise ConfigurationError(f"HTTP {resp.status_code}: {resp.text}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise ConfigurationError(f"Invalid JSON: {exc}") from exc
        return validate_platform_config(data)
