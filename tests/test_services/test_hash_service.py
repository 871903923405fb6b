"""Tests for the race-aware content hasher."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from assetguard.exceptions import ContentReadError, FileChangedDuringHashError
from assetguard.filesystem.scanner import ContentHandle
from assetguard.services.hash_service import ContentHasher
from tests.conftest import BASE_MTIME, write_asset

if TYPE_CHECKING:
    from pathlib import Path


class TestContentHasher:
    def test_fingerprint_matches_direct_hash(self, asset_root: Path) -> None:
        data = b"some asset bytes" * 100
        path = write_asset(asset_root, "a.bin", data)

        fp = ContentHasher(chunk_size=7).hash(ContentHandle(path))

        assert fp.digest == hashlib.sha256(data).hexdigest()
        assert fp.timestamp == datetime.fromtimestamp(BASE_MTIME, tz=UTC)

    def test_empty_file(self, asset_root: Path) -> None:
        path = write_asset(asset_root, "empty.bin", b"")
        fp = ContentHasher().hash(ContentHandle(path))
        assert fp.digest == hashlib.sha256(b"").hexdigest()

    def test_chunk_size_does_not_change_digest(self, asset_root: Path) -> None:
        path = write_asset(asset_root, "a.bin", bytes(range(256)) * 33)
        handle = ContentHandle(path)
        digests = {ContentHasher(chunk_size=size).hash(handle).digest for size in (1, 13, 8192)}
        assert len(digests) == 1

    def test_timestamp_change_during_hash_is_detected(self, asset_root: Path) -> None:
        path = write_asset(asset_root, "a.bin", b"data")
        before = datetime(2026, 1, 1, tzinfo=UTC)
        after = datetime(2026, 1, 1, 0, 0, 1, tzinfo=UTC)

        with (
            patch.object(ContentHandle, "modified_time", side_effect=[before, after]),
            pytest.raises(FileChangedDuringHashError) as exc_info,
        ):
            ContentHasher().hash(ContentHandle(path))

        assert exc_info.value.before == before
        assert exc_info.value.after == after
        assert exc_info.value.path == path

    def test_missing_file_is_content_read_error(self, asset_root: Path) -> None:
        with pytest.raises(ContentReadError, match="Cannot read"):
            ContentHasher().hash(ContentHandle(asset_root / "gone.bin"))

    def test_read_failure_is_content_read_error(self, asset_root: Path) -> None:
        path = write_asset(asset_root, "a.bin", b"data")
        with (
            patch.object(ContentHandle, "open", side_effect=PermissionError("denied")),
            pytest.raises(ContentReadError, match="denied"),
        ):
            ContentHasher().hash(ContentHandle(path))
