from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Sequence
from urllib.parse import quote

import aiohttp

from asset_bundler.bundle.errors import AssetFetchError
from asset_bundler.bundle.models import ArchiveEntry, FetchJob
from asset_bundler.bundle.retry import RetryExhaustedError, retry_async
from asset_bundler.config.models import BundleSettings, GitHubSettings

logger = logging.getLogger(__name__)

class FetchScheduler:
    """
    Downloads raw repository files under a fixed concurrency ceiling.

    The ceiling belongs to the scheduler instance: every `fetch_all` call made
    through the same instance shares the same permits.
    """

    def __init__(
        self,
        *,
        github: GitHubSettings,
        settings: BundleSettings,
        session: aiohttp.ClientSession,
    ) -> None:
        self._github = github
        self._settings = settings
        self._session = session
        self._semaphore = asyncio.Semaphore(settings.fetch_concurrency)

    def raw_url(self, owner: str, repo: str, version: str, file_name: str) -> str:
        raw_base = self._github.raw_base_url.rstrip("/")
        path = quote(f"{owner}/{repo}/{version}/{file_name}", safe="/")
        return f"{self._github.mirror_prefix}{raw_base}/{path}"

    def create_jobs(self, owner: str, repo: str, version: str, file_names: Sequence[str]) -> list[FetchJob]:
        return [
            FetchJob(
                file_name=file_name,
                url=self.raw_url(owner, repo, version, file_name),
                attempts_remaining=self._settings.fetch_attempts,
            )
            for file_name in file_names
        ]

    async def fetch_all(
        self,
        owner: str,
        repo: str,
        version: str,
        file_names: Sequence[str],
    ) -> AsyncIterator[ArchiveEntry]:
        """
        Yield one archive entry per requested file, in completion order.

        The first file that exhausts its attempts raises `AssetFetchError` and
        every other outstanding download is cancelled. Closing the iterator
        early cancels outstanding downloads as well.
        """
        jobs = self.create_jobs(owner, repo, version, file_names)
        tasks = [asyncio.create_task(self.fetch_one(job)) for job in jobs]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                logger.info("bundle.fetch_cancelled pending=%d", len(pending))
            await asyncio.gather(*tasks, return_exceptions=True)

    async def fetch_one(self, job: FetchJob) -> ArchiveEntry:
        async with self._semaphore:

            async def _attempt() -> bytes:
                job.attempts_remaining -= 1
                return await self._download(job.url)

            try:
                content = await retry_async(
                    _attempt,
                    attempts=job.attempts_remaining,
                    delay_seconds=self._settings.retry_delay_seconds,
                    description=f"fetch {job.file_name}",
                )
            except RetryExhaustedError as e:
                logger.error("bundle.fetch_failed file=%s url=%s attempts=%d", job.file_name, job.url, e.attempts)
                raise AssetFetchError(job.file_name, e.attempts, e.last_error) from e

        logger.info("Downloaded file “%s”. bytes=%d", job.file_name, len(content))
        return ArchiveEntry(name=job.file_name, content=content)

    async def _download(self, url: str) -> bytes:
        timeout = aiohttp.ClientTimeout(total=self._github.request_timeout_seconds)
        async with self._session.get(url, timeout=timeout) as response:
            response.raise_for_status()
            # Read the whole body inside the attempt so truncated transfers are retried.
            return await response.read()
