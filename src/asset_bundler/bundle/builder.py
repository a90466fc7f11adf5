from __future__ import annotations

import logging
import zipfile
import zlib
from dataclasses import dataclass
from typing import AsyncIterable, Callable, TypeVar

from asset_bundler.bundle.errors import ArchiveError
from asset_bundler.bundle.interfaces import ByteSink
from asset_bundler.bundle.models import ArchiveEntry
from asset_bundler.config.models import BundleSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ZIP_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, ValueError, RuntimeError, OSError)


class _ChunkBuffer:
    """Non-seekable file object that zipfile writes into; drained after each step."""

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data) -> int:
        if data:
            self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


@dataclass(frozen=True, slots=True)
class BuildResult:
    entry_count: int
    archive_bytes: int


def _zip_call(func: Callable[..., T], *args, **kwargs) -> T:
    try:
        return func(*args, **kwargs)
    except _ZIP_ERRORS as e:
        raise ArchiveError(f"Zip writer failed: {e}") from e


class BundleBuilder:
    """
    Streams archive entries into a deflate-compressed zip as they arrive.

    Entries are written in arrival order, which need not match request order.
    Compressed bytes are pushed to the sink after every chunk, and the central
    directory is written only after the entry source is exhausted.
    """

    def __init__(self, settings: BundleSettings) -> None:
        self._compression_level = settings.compression_level
        self._chunk_size = settings.chunk_size

    async def build(self, entries: AsyncIterable[ArchiveEntry], sink: ByteSink) -> BuildResult:
        buffer = _ChunkBuffer()
        archive = _zip_call(
            zipfile.ZipFile,
            buffer,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self._compression_level,
        )
        archive_bytes = 0
        entry_count = 0

        async for entry in entries:
            archive_bytes += await self._append(archive, buffer, entry, sink)
            entry_count += 1

        logger.debug("bundle.archive_finalizing entries=%d", entry_count)
        _zip_call(archive.close)
        archive_bytes += await self._drain(buffer, sink)
        return BuildResult(entry_count=entry_count, archive_bytes=archive_bytes)

    async def _append(
        self,
        archive: zipfile.ZipFile,
        buffer: _ChunkBuffer,
        entry: ArchiveEntry,
        sink: ByteSink,
    ) -> int:
        written = 0
        content = memoryview(entry.content)
        force_zip64 = len(content) > zipfile.ZIP64_LIMIT
        dest = _zip_call(archive.open, entry.name, mode="w", force_zip64=force_zip64)
        for offset in range(0, len(content), self._chunk_size):
            _zip_call(dest.write, content[offset : offset + self._chunk_size])
            written += await self._drain(buffer, sink)
        _zip_call(dest.close)
        written += await self._drain(buffer, sink)
        logger.debug("bundle.archive_entry_added name=%s size=%d", entry.name, len(content))
        return written

    async def _drain(self, buffer: _ChunkBuffer, sink: ByteSink) -> int:
        data = buffer.drain()
        if data:
            await sink.write(data)
        return len(data)
