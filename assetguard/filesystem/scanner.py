"""Recursive directory walker and content file handles."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from assetguard.exceptions import ScanError
from assetguard.services.datetime_service import from_ns

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentHandle:
    """A readable file on disk."""

    path: Path

    def modified_time(self) -> datetime:
        """Return the file's current modification time in UTC."""
        return from_ns(self.path.stat().st_mtime_ns)

    def open(self) -> BinaryIO:
        return self.path.open("rb")


@dataclass(frozen=True)
class ScannedFile:
    """A regular file found by the walker."""

    path: Path
    rel_path: str

    @property
    def handle(self) -> ContentHandle:
        return ContentHandle(self.path)


def walk_files(
    root: Path, *, skip_hidden: bool = False, unreadable: list[Path] | None = None
) -> Iterator[ScannedFile]:
    """Yield every regular file under ``root``.

    Directories, symlinks, sockets and other non-regular entries are
    skipped. Hidden directories and files (leading ``.``) are skipped only
    when ``skip_hidden`` is set.

    Raises ScanError only when ``root`` itself cannot be listed. A
    subdirectory or file that cannot be examined is logged, appended to
    ``unreadable`` when given, and the walk continues.
    """
    if not root.is_dir():
        msg = f"Root is not a directory: {root}"
        raise ScanError(msg)

    def _skip(path: Path, exc: OSError) -> None:
        logger.warning("Cannot scan %s: %s", path, exc.strerror or exc)
        if unreadable is not None:
            unreadable.append(path)

    def _on_error(exc: OSError) -> None:
        path = Path(exc.filename) if exc.filename is not None else root
        if path == root:
            msg = f"Cannot enumerate {root}: {exc.strerror or exc}"
            raise ScanError(msg) from exc
        _skip(path, exc)

    for dirpath, dirs, files in os.walk(root, onerror=_on_error):
        if skip_hidden:
            dirs[:] = [d for d in dirs if not d.startswith(".")]
        dirs.sort()
        for filename in sorted(files):
            if skip_hidden and filename.startswith("."):
                continue
            full = Path(dirpath) / filename
            try:
                st = full.stat(follow_symlinks=False)
            except FileNotFoundError:
                logger.debug("File vanished during scan: %s", full)
                continue
            except OSError as exc:
                _skip(full, exc)
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            yield ScannedFile(path=full, rel_path=full.relative_to(root).as_posix())
