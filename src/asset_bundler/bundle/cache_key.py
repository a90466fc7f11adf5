from __future__ import annotations

import hashlib
import re
from typing import Sequence

from asset_bundler.bundle.models import CacheKey

ARTIFACT_PREFIX = "noname-asset"
_UNSAFE_CHARS = re.compile(r'[/\\?%*:|"<>]')


def derive_cache_key(file_names: Sequence[str]) -> CacheKey:
    """
    Hash the requested file names, in order and without separators, with SHA-256.

    The key is order-sensitive: the same files requested in a different order
    produce a different bundle.
    """
    if file_names is None:
        raise TypeError("file_names must be a sequence of strings, not None")
    data = "".join(file_names).encode("utf-8")
    return CacheKey(hashlib.sha256(data).hexdigest())


def sanitize_artifact_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("-", name)


def artifact_name(owner: str, repo: str, version: str, key: CacheKey) -> str:
    return sanitize_artifact_name(f"{ARTIFACT_PREFIX}-{owner}-{repo}-{version}-{key.digest_hex}.zip")
