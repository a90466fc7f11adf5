from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Optional

import aiohttp
from aiohttp import web

from asset_bundler.adapters.http.models import parse_bundle_request
from asset_bundler.adapters.http.sink import StreamResponseSink
from asset_bundler.bundle.errors import ClientRequestError
from asset_bundler.bundle.factory import build_orchestrator
from asset_bundler.bundle.pipeline import PipelineOrchestrator
from asset_bundler.config.models import AppConfig

logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", AppConfig)
ORCHESTRATOR_KEY = web.AppKey("orchestrator", PipelineOrchestrator)


async def handle_bundle_request(request: web.Request) -> web.StreamResponse:
    if request.method != "POST":
        return web.Response(status=400)

    config = request.app[CONFIG_KEY]
    try:
        body = await request.json()
        bundle_request = parse_bundle_request(body, config.github)
    except (ClientRequestError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.info("Rejected bundle request. error=%s", e)
        return web.Response(status=400)

    logger.info("A user is about to download assets. remote=%s", request.remote)
    sink = StreamResponseSink(request)
    try:
        result = await request.app[ORCHESTRATOR_KEY].run(bundle_request, sink)
    except asyncio.CancelledError:
        logger.info("Client went away before the bundle was delivered. remote=%s", request.remote)
        raise
    except Exception as e:
        logger.exception("Bundle request failed.")
        if sink.response is not None:
            # Headers are out and the connection was already torn down.
            return sink.response
        return web.Response(status=500, text=str(e))

    logger.info("Bundle delivered. artifact=%s cache_hit=%s", result.artifact_name, result.cache_hit)
    # Every delivered run ends in `finish()`, which needs a started response.
    if sink.response is None:
        raise RuntimeError("Bundle finished without starting the response")
    return sink.response


def create_app(config: AppConfig, *, orchestrator: Optional[PipelineOrchestrator] = None) -> web.Application:
    """
    Build the aiohttp application.

    Without an explicit orchestrator, one is created on startup around a shared
    client session and closed on cleanup.
    """
    app = web.Application()
    app[CONFIG_KEY] = config

    if orchestrator is not None:
        app[ORCHESTRATOR_KEY] = orchestrator
    else:

        async def _pipeline_ctx(app: web.Application) -> AsyncIterator[None]:
            async with aiohttp.ClientSession() as session:
                app[ORCHESTRATOR_KEY] = build_orchestrator(config, session)
                yield

        app.cleanup_ctx.append(_pipeline_ctx)

    app.router.add_route("*", "/{tail:.*}", handle_bundle_request)
    return app


class HttpBundleAdapter:
    def __init__(self, *, config: AppConfig) -> None:
        self._config = config
        self._runner: Optional[web.AppRunner] = None

    async def start(self, *, host: Optional[str] = None, port: Optional[int] = None) -> None:
        if self._runner is not None:
            return
        host = host or self._config.server.host
        port = port if port is not None else self._config.server.port

        runner = web.AppRunner(create_app(self._config), handler_cancellation=True)
        await runner.setup()
        site = web.TCPSite(runner, host=host, port=port)
        await site.start()
        self._runner = runner
        logger.info("Bundle server listening. host=%s port=%s", host, port)

    async def serve_forever(self, *, host: Optional[str] = None, port: Optional[int] = None) -> None:
        await self.start(host=host, port=port)
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def run_for(self, *, seconds: float, host: Optional[str] = None, port: Optional[int] = None) -> None:
        await self.start(host=host, port=port)
        try:
            await asyncio.sleep(seconds)
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._runner is None:
            return
        runner = self._runner
        self._runner = None
        await runner.cleanup()
        logger.info("Bundle server stopped.")
