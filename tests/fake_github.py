from __future__ import annotations

import asyncio
import tempfile
import unittest
from pathlib import Path
from typing import Optional

import aiohttp
from aiohttp import web
from aiohttp.test_utils import TestServer

from asset_bundler.bundle.builder import BundleBuilder
from asset_bundler.bundle.cache import BundleCache
from asset_bundler.bundle.fetcher import FetchScheduler
from asset_bundler.bundle.pipeline import PipelineOrchestrator
from asset_bundler.bundle.version_resolver import VersionResolver
from asset_bundler.config.models import AppConfig, BundleSettings, GitHubSettings

PERMANENT = 10**6


class FakeGitHub:
    """In-process stand-in for the tag listing API and the raw file host."""

    def __init__(self, files: Optional[dict[str, bytes]] = None, tags: Optional[list] = None) -> None:
        self.files: dict[str, bytes] = dict(files or {})
        self.tags = tags if tags is not None else [{"name": "v1.0"}]
        self.tags_status = 200
        self.failures: dict[str, int] = {}
        self.delays: dict[str, float] = {}
        self.default_delay = 0.0
        self.tag_requests: list[dict[str, str]] = []
        self.raw_requests: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/repos/{owner}/{repo}/tags", self._tags)
        app.router.add_get("/raw/{owner}/{repo}/{version}/{path:.*}", self._raw)
        return app

    async def _tags(self, request: web.Request) -> web.Response:
        self.tag_requests.append(dict(request.headers))
        if self.tags_status != 200:
            return web.Response(status=self.tags_status, text="boom")
        return web.json_response(self.tags)

    async def _raw(self, request: web.Request) -> web.Response:
        name = request.match_info["path"]
        self.raw_requests.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(name, self.default_delay)
            if delay:
                await asyncio.sleep(delay)
            remaining = self.failures.get(name, 0)
            if remaining:
                self.failures[name] = remaining - 1
                return web.Response(status=502, text="bad gateway")
            if name not in self.files:
                return web.Response(status=404, text="not found")
            return web.Response(body=self.files[name])
        finally:
            self.in_flight -= 1


class MemoryResponseSink:
    def __init__(self, *, fail_on_write: Optional[int] = None) -> None:
        self.artifact_name: Optional[str] = None
        self.chunks: list[bytes] = []
        self.finished = False
        self.aborted = False
        self._started = False
        self._fail_on_write = fail_on_write

    @property
    def started(self) -> bool:
        return self._started

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    async def start(self, artifact_name: str) -> None:
        self._started = True
        self.artifact_name = artifact_name

    async def write(self, chunk: bytes) -> None:
        if self._fail_on_write is not None and len(self.chunks) + 1 >= self._fail_on_write:
            raise ConnectionResetError("client went away")
        self.chunks.append(chunk)

    async def finish(self) -> None:
        self.finished = True

    async def abort(self) -> None:
        self.aborted = True


class FakeGitHubTestCase(unittest.IsolatedAsyncioTestCase):
    files: dict[str, bytes] = {}

    async def asyncSetUp(self) -> None:
        self.github = FakeGitHub(files=self.files)
        self.server = TestServer(self.github.make_app())
        await self.server.start_server()
        self.session = aiohttp.ClientSession()
        self._tmp = tempfile.TemporaryDirectory()
        self.cache_dir = Path(self._tmp.name) / "cache"

    async def asyncTearDown(self) -> None:
        await self.session.close()
        await self.server.close()
        self._tmp.cleanup()

    def github_settings(self, **overrides) -> GitHubSettings:
        values = {
            "api_base_url": str(self.server.make_url("/")),
            "raw_base_url": str(self.server.make_url("/raw")),
            "mirror_prefix": "",
            "request_timeout_seconds": 5.0,
        }
        values.update(overrides)
        return GitHubSettings(**values)

    def bundle_settings(self, **overrides) -> BundleSettings:
        values = {"cache_dir": str(self.cache_dir), "chunk_size": 1024}
        values.update(overrides)
        return BundleSettings(**values)

    def app_config(self, **bundle_overrides) -> AppConfig:
        return AppConfig(github=self.github_settings(), bundle=self.bundle_settings(**bundle_overrides))

    def make_orchestrator(self, **bundle_overrides) -> PipelineOrchestrator:
        github = self.github_settings()
        settings = self.bundle_settings(**bundle_overrides)
        return PipelineOrchestrator(
            resolver=VersionResolver(config=github, session=self.session),
            cache=BundleCache(settings.cache_dir),
            fetcher=FetchScheduler(github=github, settings=settings, session=self.session),
            builder=BundleBuilder(settings),
        )

    def cache_files(self) -> list[str]:
        if not self.cache_dir.exists():
            return []
        return sorted(p.name for p in self.cache_dir.iterdir())
