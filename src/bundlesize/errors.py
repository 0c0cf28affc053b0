"""Exception hierarchy shared by the build and report paths."""

from __future__ import annotations


class BundleSizeError(Exception):
    """Base class for every error raised by bundlesize."""


class ConfigError(BundleSizeError):
    """Invalid or incomplete configuration, raised before any build work."""


class BuildError(BundleSizeError):
    """A bundle could not be built or measured."""


class MissingChunkError(BuildError):
    """A chunk referenced by the manifest does not exist in it."""

    def __init__(self, chunk_key: str) -> None:
        super().__init__(f"Chunk not found in manifest: {chunk_key}")
        self.chunk_key = chunk_key


class SnapshotFetchError(BundleSizeError):
    """A snapshot could not be retrieved."""


class SnapshotFormatError(SnapshotFetchError):
    """A snapshot payload was retrieved but is malformed."""


class AncestorLookupError(BundleSizeError):
    """Ancestor commits could not be enumerated."""


class GitHubError(BundleSizeError):
    """A GitHub REST call failed."""


class UploadError(BundleSizeError):
    """A snapshot could not be uploaded to storage."""


class ReportError(BundleSizeError):
    """A report could not be rendered from the given comparison."""
