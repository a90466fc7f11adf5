from __future__ import annotations

import logging
from typing import Optional

from aiohttp import web

logger = logging.getLogger(__name__)


class StreamResponseSink:
    """Delivers a bundle as a chunked `application/zip` response."""

    def __init__(self, request: web.Request) -> None:
        self._request = request
        self._response: Optional[web.StreamResponse] = None

    @property
    def started(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Optional[web.StreamResponse]:
        return self._response

    async def start(self, artifact_name: str) -> None:
        if self._response is not None:
            return
        response = web.StreamResponse(
            status=200,
            headers={
                "Content-Type": "application/zip",
                "Content-Disposition": f'attachment; filename="{artifact_name}"',
            },
        )
        await response.prepare(self._request)
        self._response = response
        logger.info("Responding to the user with file “%s”…", artifact_name)

    async def write(self, chunk: bytes) -> None:
        if self._response is None:
            raise RuntimeError("Response has not been started")
        await self._response.write(chunk)

    async def finish(self) -> None:
        if self._response is None:
            raise RuntimeError("Response has not been started")
        await self._response.write_eof()

    async def abort(self) -> None:
        # Drop the connection so the client never mistakes a truncated archive for a complete one.
        transport = self._request.transport
        if transport is not None and not transport.is_closing():
            transport.abort()
        logger.warning("Response connection torn down after a failure. path=%s", self._request.path)
