from __future__ import annotations

import aiohttp

from asset_bundler.bundle.builder import BundleBuilder
from asset_bundler.bundle.cache import BundleCache
from asset_bundler.bundle.fetcher import FetchScheduler
from asset_bundler.bundle.pipeline import PipelineOrchestrator
from asset_bundler.bundle.version_resolver import VersionResolver
from asset_bundler.config.models import AppConfig


def build_orchestrator(config: AppConfig, session: aiohttp.ClientSession) -> PipelineOrchestrator:
    """Wire the pipeline components; the returned fetcher's permit count is shared by every request."""
    return PipelineOrchestrator(
        resolver=VersionResolver(config=config.github, session=session),
        cache=BundleCache(config.bundle.cache_dir, read_chunk_size=config.bundle.chunk_size),
        fetcher=FetchScheduler(github=config.github, settings=config.bundle, session=session),
        builder=BundleBuilder(config.bundle),
    )
