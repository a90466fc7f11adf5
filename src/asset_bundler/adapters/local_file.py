from __future__ import annotations

import logging
from pathlib import Path

import aiofiles

logger = logging.getLogger(__name__)


class LocalFileResponseSink:
    """Writes a delivered bundle to a local path; an aborted delivery leaves no file behind."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.artifact_name: str | None = None
        self._file = None

    @property
    def started(self) -> bool:
        return self._file is not None

    async def start(self, artifact_name: str) -> None:
        if self._file is not None:
            return
        self.artifact_name = artifact_name
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = await aiofiles.open(self.path, "wb")

    async def write(self, chunk: bytes) -> None:
        if self._file is None:
            raise RuntimeError("Output file has not been opened")
        await self._file.write(chunk)

    async def finish(self) -> None:
        if self._file is None:
            raise RuntimeError("Output file has not been opened")
        await self._file.close()
        logger.info("Bundle written. path=%s artifact=%s", self.path, self.artifact_name)

    async def abort(self) -> None:
        if self._file is not None:
            await self._file.close()
        self.path.unlink(missing_ok=True)
