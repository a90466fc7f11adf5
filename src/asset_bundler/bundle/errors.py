from __future__ import annotations


class BundlerError(Exception):
    """Base class for every failure raised by the bundling pipeline."""


class ClientRequestError(BundlerError):
    """The inbound request is malformed or asks for an unsupported action."""


class VersionResolutionError(BundlerError):
    """The tag list could not be fetched or contains no usable tag."""


class AssetFetchError(BundlerError):
    def __init__(self, file_name: str, attempts: int, last_error: BaseException | None = None) -> None:
        message = f"Failed to fetch “{file_name}” after {attempts} attempts"
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(message)
        self.file_name = file_name
        self.attempts = attempts
        self.last_error = last_error


class CacheStorageError(BundlerError):
    """Local persistence of cached bundles failed."""


class ArchiveError(BundlerError):
    """The zip writer failed while appending or finalizing."""
