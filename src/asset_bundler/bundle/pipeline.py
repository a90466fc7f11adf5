from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Callable

from asset_bundler.bundle.builder import BundleBuilder
from asset_bundler.bundle.cache import BundleCache
from asset_bundler.bundle.cache_key import derive_cache_key
from asset_bundler.bundle.fanout import FanOut
from asset_bundler.bundle.fetcher import FetchScheduler
from asset_bundler.bundle.interfaces import ResponseSink
from asset_bundler.bundle.models import BundleRequest, CacheEntry, PipelineState
from asset_bundler.bundle.version_resolver import VersionResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    entry: CacheEntry
    cache_hit: bool
    state: PipelineState

    @property
    def artifact_name(self) -> str:
        return self.entry.artifact_name


class _StartOnFirstWrite:
    """Defers response headers until the archive produces its first bytes."""

    def __init__(self, response: ResponseSink, artifact_name: str) -> None:
        self._response = response
        self._artifact_name = artifact_name

    async def ensure_started(self) -> None:
        if not self._response.started:
            await self._response.start(self._artifact_name)

    async def write(self, chunk: bytes) -> None:
        await self.ensure_started()
        await self._response.write(chunk)


class PipelineOrchestrator:
    """
    Runs one bundle request from version resolution to delivery.

    Holds no per-request state between runs; the cache directory is the only
    thing shared across requests.
    """

    def __init__(
        self,
        *,
        resolver: VersionResolver,
        cache: BundleCache,
        fetcher: FetchScheduler,
        builder: BundleBuilder,
    ) -> None:
        self._resolver = resolver
        self._cache = cache
        self._fetcher = fetcher
        self._builder = builder

    async def run(self, request: BundleRequest, response: ResponseSink) -> PipelineResult:
        state = PipelineState.RESOLVING_VERSION

        def advance(target: PipelineState) -> None:
            nonlocal state
            state = self._transition(state, target)

        logger.info(
            "Bundle request received. owner=%s repo=%s version=%s files=%d",
            request.owner,
            request.repo,
            request.version or "<latest>",
            len(request.file_names),
        )
        try:
            resolved = await self._resolver.resolve(request.owner, request.repo, request.version)
            version = resolved.version
            advance(PipelineState.DERIVING_KEY)

            key = derive_cache_key(request.file_names)
            entry = self._cache.entry(request.owner, request.repo, version, key)
            advance(PipelineState.CHECKING_CACHE)

            if await self._cache.exists(request.owner, request.repo, version, key):
                advance(PipelineState.STREAMING)
                logger.info("Serving cached bundle. artifact=%s", entry.artifact_name)
                await self._stream_cached(entry, response)
                cache_hit = True
            else:
                advance(PipelineState.FETCHING)
                logger.info(
                    "Building bundle from %s/%s@%s. artifact=%s",
                    request.owner,
                    request.repo,
                    version,
                    entry.artifact_name,
                )
                await self._build_and_store(request, entry, response, advance)
                advance(PipelineState.FINALIZED)
                cache_hit = False

            await response.finish()
            advance(PipelineState.DELIVERED)
            return PipelineResult(entry=entry, cache_hit=cache_hit, state=state)
        except (Exception, asyncio.CancelledError) as e:
            failed_in = state
            advance(PipelineState.FAILED)
            logger.warning("bundle.pipeline_failed state=%s error=%r", failed_in.value, e)
            if response.started:
                await response.abort()
            raise

    async def _stream_cached(self, entry: CacheEntry, response: ResponseSink) -> None:
        chunks = await self._cache.open_for_read(entry.owner, entry.repo, entry.version, entry.key)
        async with aclosing(chunks):
            await response.start(entry.artifact_name)
            async for chunk in chunks:
                await response.write(chunk)

    async def _build_and_store(
        self,
        request: BundleRequest,
        entry: CacheEntry,
        response: ResponseSink,
        advance: Callable[[PipelineState], None],
    ) -> None:
        # The write sink must be open before any download starts; leaving the block
        # without finalizing unlinks the partial file.
        async with self._cache.open_for_write(entry.owner, entry.repo, entry.version, entry.key) as cache_sink:
            response_sink = _StartOnFirstWrite(response, entry.artifact_name)
            fanout = FanOut([cache_sink, response_sink])
            entries = self._fetcher.fetch_all(entry.owner, entry.repo, entry.version, request.file_names)
            async with aclosing(entries):
                advance(PipelineState.BUILDING)
                result = await self._builder.build(entries, fanout)
            logger.info(
                "Finalizing file “%s”. entries=%d bytes=%d",
                entry.artifact_name,
                result.entry_count,
                result.archive_bytes,
            )
            await cache_sink.finalize()
            await response_sink.ensure_started()

    def _transition(self, current: PipelineState, target: PipelineState) -> PipelineState:
        logger.debug("bundle.state from=%s to=%s", current.value, target.value)
        return target
