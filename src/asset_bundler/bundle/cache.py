from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os

from asset_bundler.bundle.cache_key import artifact_name
from asset_bundler.bundle.errors import CacheStorageError
from asset_bundler.bundle.models import CacheEntry, CacheKey

logger = logging.getLogger(__name__)

DEFAULT_READ_CHUNK_SIZE = 64 * 1024


class CacheWriteSink:
    """
    Writable location for one bundle being built.

    Bytes go to a uniquely named temporary file beside the final path; `finalize`
    renames it into place atomically, so readers never observe a partial bundle.
    Leaving the `async with` block without finalizing aborts and unlinks the
    temporary file.
    """

    def __init__(self, entry: CacheEntry) -> None:
        self.entry = entry
        self.tmp_path = entry.path.with_name(f"{entry.path.name}.{uuid.uuid4().hex}.tmp")
        self._file = None
        self._closed = False
        self.bytes_written = 0

    async def __aenter__(self) -> CacheWriteSink:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._closed:
            await self.abort()

    async def open(self) -> None:
        try:
            self.tmp_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = await aiofiles.open(self.tmp_path, "wb")
        except OSError as e:
            raise CacheStorageError(f"Failed to create cache file {self.tmp_path}: {e}") from e
        logger.debug("bundle.cache_write_open path=%s", self.tmp_path)

    async def write(self, chunk: bytes) -> None:
        if self._file is None or self._closed:
            raise CacheStorageError(f"Cache sink is not open for writing: {self.tmp_path}")
        try:
            await self._file.write(chunk)
        except OSError as e:
            raise CacheStorageError(f"Failed to write cache file {self.tmp_path}: {e}") from e
        self.bytes_written += len(chunk)

    async def finalize(self) -> CacheEntry:
        if self._file is None or self._closed:
            raise CacheStorageError(f"Cache sink is not open for writing: {self.tmp_path}")
        self._closed = True
        try:
            await self._file.flush()
            await self._file.close()
            await aiofiles.os.replace(self.tmp_path, self.entry.path)
        except OSError as e:
            await self._unlink_tmp()
            raise CacheStorageError(f"Failed to finalize cache file {self.entry.path}: {e}") from e
        logger.info("bundle.cache_stored path=%s bytes=%d", self.entry.path, self.bytes_written)
        return self.entry

    async def abort(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._file is not None:
            # Shielded so a cancelled request still releases the file handle.
            try:
                await asyncio.shield(self._file.close())
            except OSError:
                logger.warning("bundle.cache_close_failed path=%s", self.tmp_path, exc_info=True)
        await self._unlink_tmp()
        logger.info("bundle.cache_aborted path=%s", self.tmp_path)

    async def _unlink_tmp(self) -> None:
        try:
            self.tmp_path.unlink(missing_ok=True)
        except OSError:
            logger.warning("bundle.cache_unlink_failed path=%s", self.tmp_path, exc_info=True)


class BundleCache:
    """Completed bundles stored as one zip file each; the file's presence is the index."""

    def __init__(self, cache_dir: str | Path, *, read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE) -> None:
        self._root = Path(cache_dir)
        self._read_chunk_size = read_chunk_size

    @property
    def root(self) -> Path:
        return self._root

    def entry(self, owner: str, repo: str, version: str, key: CacheKey) -> CacheEntry:
        name = artifact_name(owner, repo, version, key)
        return CacheEntry(owner=owner, repo=repo, version=version, key=key, path=self._root / name)

    async def exists(self, owner: str, repo: str, version: str, key: CacheKey) -> bool:
        path = self.entry(owner, repo, version, key).path
        try:
            await aiofiles.os.stat(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheStorageError(f"Failed to check cache file {path}: {e}") from e
        return True

    async def open_for_read(
        self,
        owner: str,
        repo: str,
        version: str,
        key: CacheKey,
        *,
        chunk_size: Optional[int] = None,
    ) -> AsyncIterator[bytes]:
        path = self.entry(owner, repo, version, key).path
        try:
            handle = await aiofiles.open(path, "rb")
        except OSError as e:
            raise CacheStorageError(f"Failed to open cache file {path}: {e}") from e
        return self._iter_file(handle, path, chunk_size or self._read_chunk_size)

    async def _iter_file(self, handle, path: Path, chunk_size: int) -> AsyncIterator[bytes]:
        try:
            while True:
                try:
                    chunk = await handle.read(chunk_size)
                except OSError as e:
                    raise CacheStorageError(f"Failed to read cache file {path}: {e}") from e
                if not chunk:
                    return
                yield chunk
        finally:
            await handle.close()

    def open_for_write(self, owner: str, repo: str, version: str, key: CacheKey) -> CacheWriteSink:
        """Return an unopened sink; use it as `async with` or call `open` first."""
        return CacheWriteSink(self.entry(owner, repo, version, key))
