"""Content hasher: streamed SHA-256 bracketed by modification-time checks."""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

from assetguard.config import DEFAULT_CHUNK_SIZE
from assetguard.exceptions import ContentReadError, FileChangedDuringHashError
from assetguard.schemas.metadata import Fingerprint

if TYPE_CHECKING:
    from assetguard.filesystem.scanner import ContentHandle

logger = logging.getLogger(__name__)


class ContentHasher:
    """Fingerprints content files.

    The file's modification time is read before and after streaming its
    bytes through SHA-256. If the two differ the digest may cover a mix of
    old and new bytes, so FileChangedDuringHashError is raised instead of
    returning it. A rewrite that leaves the modification time unchanged is
    not detected.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def hash(self, content: ContentHandle) -> Fingerprint:
        try:
            before = content.modified_time()
            sha = hashlib.sha256()
            with content.open() as f:
                for chunk in iter(lambda: f.read(self.chunk_size), b""):
                    sha.update(chunk)
            after = content.modified_time()
        except OSError as exc:
            msg = f"Cannot read {content.path}: {exc}"
            raise ContentReadError(msg) from exc

        if before != after:
            raise FileChangedDuringHashError(content.path, before, after)

        digest = sha.hexdigest()
        logger.debug("Hashed %s -> %s", content.path, digest)
        return Fingerprint(timestamp=before, digest=digest)
