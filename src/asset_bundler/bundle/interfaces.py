from __future__ import annotations

from typing import Protocol


class ByteSink(Protocol):
    async def write(self, chunk: bytes) -> None:
        ...


class ResponseSink(ByteSink, Protocol):
    """
    Destination the finished bundle is delivered to.

    The pipeline calls `start` once before the first byte, then `write` for every
    chunk, then `finish`. If a failure happens after `start`, the pipeline calls
    `abort` instead of `finish`; implementations must tear the connection down
    rather than emit a well-formed but truncated body.
    """

    @property
    def started(self) -> bool:
        ...

    async def start(self, artifact_name: str) -> None:
        ...

    async def finish(self) -> None:
        ...

    async def abort(self) -> None:
        ...
