"""Asset-level exception types.

Convention:
- Every failure that belongs to a single asset derives from ``AssetError``.
  The run driver catches ``AssetError`` per asset, logs it at WARNING and
  reports it as that asset's result; other assets keep processing.
- ``ScanError`` is the one failure that ends a run: the root directory could
  not be enumerated, so there is no asset set to work on.
- Anything else (``TypeError``, ``AttributeError`` ...) is a bug and
  propagates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path


class AssetError(Exception):
    """Base class for failures scoped to one asset."""


class MetadataNotFoundError(AssetError):
    """The sidecar does not exist. Expected for never-tracked assets."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"No metadata sidecar at {path}")
        self.path = path


class MetadataReadError(AssetError):
    """The sidecar exists but could not be read."""


class MetadataParseError(AssetError):
    """The sidecar was read but does not hold a valid metadata record."""


class MetadataWriteError(AssetError):
    """The sidecar could not be written."""


class ContentReadError(AssetError):
    """The content file could not be stat'ed or read."""


class FileChangedDuringHashError(AssetError):
    """The content file's modification time moved while it was being hashed."""

    def __init__(self, path: Path, before: datetime, after: datetime) -> None:
        super().__init__(
            f"File changed during hash: {path} "
            f"(modified {before.isoformat()} -> {after.isoformat()})"
        )
        self.path = path
        self.before = before
        self.after = after


class ImpossiblePastError(AssetError):
    """The file claims to be older than its last recorded fingerprint."""

    def __init__(self, asset_id: str, recorded: datetime, observed: datetime) -> None:
        super().__init__(
            f"Timestamp of {asset_id} ({observed.isoformat()}) predates its last recorded "
            f"fingerprint ({recorded.isoformat()})"
        )
        self.asset_id = asset_id
        self.recorded = recorded
        self.observed = observed


class ScanError(Exception):
    """The root directory could not be enumerated."""
