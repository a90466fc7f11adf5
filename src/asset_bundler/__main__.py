from __future__ import annotations

import argparse
import asyncio
import logging

import aiohttp

from asset_bundler.adapters.http import HttpBundleAdapter
from asset_bundler.adapters.local_file import LocalFileResponseSink
from asset_bundler.bundle.factory import build_orchestrator
from asset_bundler.bundle.models import BundleRequest
from asset_bundler.config import YamlConfigLoader
from asset_bundler.config.models import AppConfig, ConfigLoadRequest
from asset_bundler.logging import init_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="asset-bundler", description="GitHub asset bundling service")
    parser.add_argument(
        "--config",
        default="data/config/config.yaml",
        help="Path to config.yaml (default: data/config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: serve
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP bundle server")
    serve_parser.add_argument("--host", default=None, help="Listen address (default: server.host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Listen port (default: server.port)")
    serve_parser.add_argument(
        "--run-seconds",
        type=float,
        default=None,
        help="Serve for N seconds then exit (useful for smoke testing).",
    )

    # Command: bundle
    bundle_parser = subparsers.add_parser("bundle", help="Build one bundle into a local file")
    bundle_parser.add_argument("--owner", default=None, help="Repository owner (default: github.default_owner)")
    bundle_parser.add_argument("--repo", default=None, help="Repository name (default: github.default_repo)")
    bundle_parser.add_argument("--version", default=None, help="Tag to bundle (default: latest usable tag)")
    bundle_parser.add_argument("--output", required=True, help="Where to write the zip file")
    bundle_parser.add_argument("files", nargs="+", help="Repository file paths to include")

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
    )
    return await loader.load(request)


async def _serve(args: argparse.Namespace) -> None:
    config = await _load_config(args)
    init_logging(config.logging)
    logger.info("Starting application in server mode. cache_dir=%s", config.bundle.cache_dir)

    adapter = HttpBundleAdapter(config=config)
    if args.run_seconds is not None:
        await adapter.run_for(seconds=args.run_seconds, host=args.host, port=args.port)
    else:
        await adapter.serve_forever(host=args.host, port=args.port)


async def _bundle(args: argparse.Namespace) -> None:
    config = await _load_config(args)
    init_logging(config.logging)

    request = BundleRequest.create(
        owner=args.owner or config.github.default_owner,
        repo=args.repo or config.github.default_repo,
        version=args.version,
        file_names=args.files,
    )
    sink = LocalFileResponseSink(args.output)
    async with aiohttp.ClientSession() as session:
        orchestrator = build_orchestrator(config, session)
        result = await orchestrator.run(request, sink)
    logger.info("Bundle ready. artifact=%s cache_hit=%s output=%s", result.artifact_name, result.cache_hit, args.output)


async def _main_async() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "serve":
        await _serve(args)
    elif args.command == "bundle":
        await _bundle(args)


def main() -> None:
    try:
        asyncio.run(_main_async())
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


if __name__ == "__main__":
    main()
