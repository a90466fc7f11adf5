from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence


@dataclass(frozen=True, slots=True)
class BundleRequest:
    owner: str
    repo: str
    file_names: tuple[str, ...]
    version: Optional[str] = None

    @classmethod
    def create(
        cls,
        *,
        owner: str,
        repo: str,
        file_names: Sequence[str],
        version: Optional[str] = None,
    ) -> BundleRequest:
        return cls(owner=owner, repo=repo, file_names=tuple(file_names), version=version)


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    version: str

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("Resolved version must be a non-empty string")

    def __str__(self) -> str:
        return self.version


@dataclass(frozen=True, slots=True)
class CacheKey:
    digest_hex: str

    def __str__(self) -> str:
        return self.digest_hex


@dataclass(frozen=True, slots=True)
class CacheEntry:
    owner: str
    repo: str
    version: str
    key: CacheKey
    path: Path

    @property
    def artifact_name(self) -> str:
        return self.path.name


@dataclass(slots=True)
class FetchJob:
    file_name: str
    url: str
    attempts_remaining: int


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    name: str
    content: bytes


class PipelineState(str, Enum):
    RESOLVING_VERSION = "resolving_version"
    DERIVING_KEY = "deriving_key"
    CHECKING_CACHE = "checking_cache"
    STREAMING = "streaming"
    FETCHING = "fetching"
    BUILDING = "building"
    FINALIZED = "finalized"
    DELIVERED = "delivered"
    FAILED = "failed"
