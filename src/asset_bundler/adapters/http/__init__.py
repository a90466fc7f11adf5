"""HTTP listener that accepts `downloadAssets` requests and streams bundles back."""

from asset_bundler.adapters.http.models import DownloadAssetsPayload, parse_bundle_request
from asset_bundler.adapters.http.server import HttpBundleAdapter, create_app
from asset_bundler.adapters.http.sink import StreamResponseSink

__all__ = [
    "DownloadAssetsPayload",
    "HttpBundleAdapter",
    "StreamResponseSink",
    "create_app",
    "parse_bundle_request",
]
