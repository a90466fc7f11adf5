"""Asset bundling pipeline: resolve, key, fetch, zip, cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

from asset_bundler.bundle.errors import (
    ArchiveError,
    AssetFetchError,
    BundlerError,
    CacheStorageError,
    ClientRequestError,
    VersionResolutionError,
)
from asset_bundler.bundle.models import BundleRequest, CacheKey, PipelineState, ResolvedVersion

if TYPE_CHECKING:
    from asset_bundler.bundle.pipeline import PipelineOrchestrator, PipelineResult

__all__ = [
    "ArchiveError",
    "AssetFetchError",
    "BundleRequest",
    "BundlerError",
    "CacheKey",
    "CacheStorageError",
    "ClientRequestError",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineState",
    "ResolvedVersion",
    "VersionResolutionError",
]


def __getattr__(name: str):
    if name == "PipelineOrchestrator":
        from asset_bundler.bundle.pipeline import PipelineOrchestrator as _PipelineOrchestrator

        return _PipelineOrchestrator
    if name == "PipelineResult":
        from asset_bundler.bundle.pipeline import PipelineResult as _PipelineResult

        return _PipelineResult
    raise AttributeError(name)
