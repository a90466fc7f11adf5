from __future__ import annotations

from typing import Sequence

from asset_bundler.bundle.interfaces import ByteSink


class FanOut:
    """
    Duplicates every chunk to each sink, in the order the sinks were given.

    A chunk is handed to the next sink only after the previous one accepted it,
    so every sink sees the same bytes in the same order. A failing sink stops
    the whole fan-out; the caller decides how to clean up.
    """

    def __init__(self, sinks: Sequence[ByteSink] = ()) -> None:
        self._sinks: list[ByteSink] = list(sinks)
        self.bytes_written = 0

    async def write(self, chunk: bytes) -> None:
        if not chunk:
            return
        for sink in self._sinks:
            await sink.write(chunk)
        self.bytes_written += len(chunk)
