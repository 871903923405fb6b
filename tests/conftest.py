"""Shared test fixtures for AssetGuard."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from assetguard.config import ValidateOptions
from assetguard.filesystem.asset_index import build_asset_index
from assetguard.filesystem.metadata_store import MetadataStore
from assetguard.services.hash_service import ContentHasher

if TYPE_CHECKING:
    from pathlib import Path

    from assetguard.filesystem.asset_index import AssetEntry

# Whole seconds keep mtimes exact on every filesystem the tests run on.
BASE_MTIME = 1_767_225_600  # 2026-01-01T00:00:00Z


def set_mtime(path: Path, seconds: int) -> None:
    ns = seconds * 1_000_000_000
    os.utime(path, ns=(ns, ns))


def write_asset(root: Path, rel_path: str, data: bytes, mtime: int = BASE_MTIME) -> Path:
    """Create a content file with a fixed modification time."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    set_mtime(path, mtime)
    return path


def entry_for(root: Path, asset_id: str, suffix: str = ".meta") -> AssetEntry:
    """Build the index for ``root`` and return one entry."""
    entry = build_asset_index(root, suffix).get(asset_id)
    assert entry is not None, f"{asset_id} not indexed"
    return entry


@pytest.fixture
def asset_root(tmp_path: Path) -> Path:
    root = tmp_path / "assets"
    root.mkdir()
    return root


@pytest.fixture
def store() -> MetadataStore:
    return MetadataStore(".meta")


@pytest.fixture
def hasher() -> ContentHasher:
    return ContentHasher(chunk_size=4)


@pytest.fixture
def options() -> ValidateOptions:
    return ValidateOptions()
