from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from asset_bundler.bundle.errors import VersionResolutionError
from asset_bundler.bundle.models import ResolvedVersion
from asset_bundler.config.models import GitHubSettings

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github.v3+json"


class VersionResolver:
    def __init__(self, *, config: GitHubSettings, session: aiohttp.ClientSession) -> None:
        self._config = config
        self._session = session

    def tags_url(self, owner: str, repo: str) -> str:
        return f"{self._config.api_base_url.rstrip('/')}/repos/{owner}/{repo}/tags"

    async def resolve(self, owner: str, repo: str, version: Optional[str] = None) -> ResolvedVersion:
        """
        Return the pinned version verbatim, or the newest tag that is not the excluded one.

        Pinned versions are trusted and never checked against the remote. Tag
        lookups are not retried.
        """
        if version:
            return ResolvedVersion(version)

        tags = await self._fetch_tags(owner, repo)
        for tag in tags:
            name = tag.get("name") if isinstance(tag, dict) else None
            if isinstance(name, str) and name and name != self._config.excluded_tag:
                logger.debug("bundle.version_resolved owner=%s repo=%s version=%s", owner, repo, name)
                return ResolvedVersion(name)

        raise VersionResolutionError(f"No valid tags found in {self.tags_url(owner, repo)}")

    async def _fetch_tags(self, owner: str, repo: str) -> list[Any]:
        url = self.tags_url(owner, repo)
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout_seconds)
        try:
            async with self._session.get(url, headers={"Accept": GITHUB_ACCEPT}, timeout=timeout) as response:
                if response.status < 200 or response.status >= 300:
                    raise VersionResolutionError(
                        f"Failed to fetch tags from {url}: HTTP {response.status}"
                    )
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise VersionResolutionError(f"Failed to fetch tags from {url}: {e}") from e

        if not isinstance(payload, list):
            raise VersionResolutionError(f"Unexpected tag list payload from {url}")
        return payload
