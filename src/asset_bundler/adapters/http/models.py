from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from asset_bundler.bundle.errors import ClientRequestError
from asset_bundler.bundle.models import BundleRequest
from asset_bundler.config.models import GitHubSettings

DOWNLOAD_ASSETS_ACTION = "downloadAssets"


class DownloadAssetsPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    action: str
    owner: Optional[str] = None
    repo: Optional[str] = None
    version: Optional[str] = None
    file_list: list[str] = Field(alias="fileList")

    def to_bundle_request(self, github: GitHubSettings) -> BundleRequest:
        return BundleRequest.create(
            owner=self.owner or github.default_owner,
            repo=self.repo or github.default_repo,
            version=self.version or None,
            file_names=self.file_list,
        )


def parse_bundle_request(data: Any, github: GitHubSettings) -> BundleRequest:
    """Validate an inbound JSON payload; anything other than `downloadAssets` is rejected."""
    if not isinstance(data, dict):
        raise ClientRequestError("Request body must be a JSON object")
    if data.get("action") != DOWNLOAD_ASSETS_ACTION:
        raise ClientRequestError(f"Unsupported action: {data.get('action')!r}")
    try:
        payload = DownloadAssetsPayload.model_validate(data)
    except ValidationError as e:
        raise ClientRequestError(f"Invalid request payload: {e.error_count()} validation error(s)") from e
    return payload.to_bundle_request(github)
