"""HTTP client for release metadata and release artifact downloads."""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import aiohttp
import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()

T = TypeVar("T")

GITHUB_API = "https://api.github.com"


class ReleaseClient:
    """Client for the GitHub releases API and plain artifact downloads."""

    def __init__(self, api_url: str = GITHUB_API, timeout: float = 60.0) -> None:
        """Initialize the release client.

        Args:
            api_url: Base URL of the GitHub API
            timeout: Total timeout per request in seconds
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    async def latest_version(self, repository: str) -> str:
        """Get the latest release version of a repository.

        Args:
            repository: Repository in 'owner/name' form

        Returns:
            Release tag with any leading 'v' removed

        Raises:
            aiohttp.ClientError: If the API request fails
            ValueError: If the response has no tag name
        """

        async def _attempt() -> str:
            data = await self._get_json(f"{self.api_url}/repos/{repository}/releases/latest")
            return parse_tag(data)

        version = await self._with_retry(_attempt)
        logger.debug("Queried latest release", repository=repository, version=version)
        return version

    async def download(self, url: str, destination: Path) -> None:
        """Download a URL to a local file.

        Args:
            url: Artifact URL
            destination: File to write

        Raises:
            aiohttp.ClientError: If the download fails
        """

        async def _attempt() -> None:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    response.raise_for_status()
                    with destination.open("wb") as f:
                        async for chunk in response.content.iter_chunked(65536):
                            f.write(chunk)

        await self._with_retry(_attempt)
        logger.debug("Downloaded artifact", url=url, path=str(destination))

    async def _get_json(self, url: str) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {"Accept": "application/vnd.github+json"}

        async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
            async with session.get(url) as response:
                response.raise_for_status()
                return await response.json()

    async def _with_retry(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute a request with exponential backoff.

        Raises:
            Exception: The last error once all attempts are exhausted
        """
        try:
            async for attempt in AsyncRetrying(
                wait=wait_exponential(multiplier=1, min=1, max=10),
                stop=stop_after_attempt(3),
                retry=retry_if_exception_type((aiohttp.ClientError, TimeoutError)),
                reraise=True,
            ):
                with attempt:
                    return await func()
        except RetryError as e:
            exc = e.last_attempt.exception()
            if exc is not None:
                raise exc from e
            raise

        raise RuntimeError("Unexpected retry error")


def parse_tag(data: Any) -> str:
    """Extract a version from a GitHub release payload.

    Raises:
        ValueError: If the payload carries no tag name
    """
    tag = data.get("tag_name", "") if isinstance(data, dict) else ""
    if not tag:
        raise ValueError("Release response has no tag_name")
    return tag.removeprefix("v")
