"""Asset index: joins content files and their metadata sidecars by identity."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from assetguard.config import DEFAULT_META_SUFFIX
from assetguard.filesystem.metadata_store import is_temporary_sidecar
from assetguard.filesystem.scanner import ContentHandle, walk_files

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from assetguard.filesystem.scanner import ScannedFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetEntry:
    """One asset: its content file and, if discovered, its sidecar.

    ``metadata_path`` records what the scan saw and is informational only.
    The validation engine always asks the metadata store, so a sidecar that
    appears or vanishes after the scan is still seen as it is on disk.
    """

    asset_id: str
    content: ContentHandle
    metadata_path: Path | None = None

    @property
    def has_metadata(self) -> bool:
        return self.metadata_path is not None


@dataclass(frozen=True)
class AssetIndex:
    """Immutable identity -> entry mapping for one run."""

    root: Path
    entries: dict[str, AssetEntry] = field(default_factory=dict)
    orphaned_metadata: tuple[str, ...] = ()
    unreadable: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[AssetEntry]:
        return iter(self.entries[asset_id] for asset_id in sorted(self.entries))

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self.entries

    def get(self, asset_id: str) -> AssetEntry | None:
        return self.entries.get(asset_id)


def index_files(
    root: Path,
    files: Iterable[ScannedFile],
    suffix: str = DEFAULT_META_SUFFIX,
    *,
    unreadable: Iterable[str] = (),
) -> AssetIndex:
    """Partition scanned files into content and sidecars and join them by identity.

    A sidecar's identity is its relative path with ``suffix`` stripped. A
    file whose name is exactly the suffix is treated as content. Staging
    files left behind by an interrupted sidecar write are ignored.
    """
    content: dict[str, ScannedFile] = {}
    sidecars: dict[str, ScannedFile] = {}
    for scanned in files:
        name = scanned.path.name
        if is_temporary_sidecar(name, suffix):
            logger.warning("Ignoring leftover temporary file: %s", scanned.rel_path)
        elif name.endswith(suffix) and len(name) > len(suffix):
            sidecars[scanned.rel_path.removesuffix(suffix)] = scanned
        else:
            content[scanned.rel_path] = scanned

    entries: dict[str, AssetEntry] = {}
    for asset_id, scanned in content.items():
        sidecar = sidecars.get(asset_id)
        entries[asset_id] = AssetEntry(
            asset_id=asset_id,
            content=scanned.handle,
            metadata_path=sidecar.path if sidecar is not None else None,
        )

    orphans = tuple(sorted(set(sidecars) - set(content)))
    for asset_id in orphans:
        logger.warning("Orphaned metadata without content file: %s%s", asset_id, suffix)

    logger.info(
        "Indexed %d assets (%d with metadata) under %s",
        len(entries),
        sum(1 for e in entries.values() if e.has_metadata),
        root,
    )
    return AssetIndex(
        root=root,
        entries=entries,
        orphaned_metadata=orphans,
        unreadable=tuple(sorted(unreadable)),
    )


def build_asset_index(
    root: Path, suffix: str = DEFAULT_META_SUFFIX, *, skip_hidden: bool = False
) -> AssetIndex:
    """Scan ``root`` once and build the asset index.

    Raises ScanError only when ``root`` cannot be listed. Paths below it
    that could not be examined are listed in ``AssetIndex.unreadable``.
    """
    skipped: list[Path] = []
    files = list(walk_files(root, skip_hidden=skip_hidden, unreadable=skipped))
    return index_files(
        root,
        files,
        suffix,
        unreadable=(path.relative_to(root).as_posix() for path in skipped),
    )
