"""Sidecar metadata store: YAML codec, read/write, and history queries."""

from __future__ import annotations

import logging
import os
import tempfile
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import ValidationError

from assetguard.config import DEFAULT_META_SUFFIX
from assetguard.exceptions import (
    MetadataNotFoundError,
    MetadataParseError,
    MetadataReadError,
    MetadataWriteError,
)
from assetguard.schemas.metadata import Fingerprint, MetadataRecord

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)


TEMP_FILE_SUFFIX = ".tmp"


def is_temporary_sidecar(name: str, suffix: str = DEFAULT_META_SUFFIX) -> bool:
    """Whether ``name`` looks like an in-flight or leftover atomic-write file.

    MetadataStore.write stages ``<sidecar>`` as ``.<sidecar>.<random>.tmp``.
    """
    return name.startswith(".") and name.endswith(TEMP_FILE_SUFFIX) and f"{suffix}." in name


class TimestampComparison(StrEnum):
    """Observed file timestamp relative to the last recorded fingerprint."""

    EQUAL = "equal"
    FILE_MODIFIED_SINCE = "file_modified_since"
    IMPOSSIBLE_PAST = "impossible_past"


def encode_record(record: MetadataRecord) -> bytes:
    """Serialize a record to sidecar bytes."""
    data = record.model_dump(mode="json", exclude_none=True)
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return text.encode("utf-8")


def decode_record(raw: bytes) -> MetadataRecord:
    """Parse sidecar bytes into a record.

    Raises MetadataParseError for undecodable text, invalid YAML, or YAML
    that does not describe a record.
    """
    try:
        data = yaml.safe_load(raw.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError) as exc:
        msg = f"Malformed sidecar: {exc}"
        raise MetadataParseError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Sidecar must hold a mapping, got {type(data).__name__}"
        raise MetadataParseError(msg)
    try:
        return MetadataRecord.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid metadata record: {exc.error_count()} error(s): {exc.errors()[0]['msg']}"
        raise MetadataParseError(msg) from exc


def latest_fingerprint(record: MetadataRecord) -> Fingerprint | None:
    """Return the current fingerprint (last history entry), if any."""
    return record.latest()


def compare_timestamp(fingerprint: Fingerprint, observed: datetime) -> TimestampComparison:
    """Compare a file's observed modification time to a recorded fingerprint."""
    if observed == fingerprint.timestamp:
        return TimestampComparison.EQUAL
    if observed < fingerprint.timestamp:
        return TimestampComparison.IMPOSSIBLE_PAST
    return TimestampComparison.FILE_MODIFIED_SINCE


class MetadataStore:
    """Reads and writes ``<content path><suffix>`` sidecars."""

    def __init__(self, suffix: str = DEFAULT_META_SUFFIX) -> None:
        self.suffix = suffix

    def sidecar_path(self, content_path: Path) -> Path:
        """Derive the sidecar path by appending the suffix to the full filename."""
        return content_path.with_name(content_path.name + self.suffix)

    def read(self, content_path: Path) -> MetadataRecord:
        """Read the record for a content file.

        Raises MetadataNotFoundError when no sidecar exists, MetadataReadError
        when it exists but cannot be read, MetadataParseError when it is
        malformed.
        """
        path = self.sidecar_path(content_path)
        try:
            raw = path.read_bytes()
        except FileNotFoundError as exc:
            raise MetadataNotFoundError(path) from exc
        except OSError as exc:
            msg = f"Cannot read {path}: {exc}"
            raise MetadataReadError(msg) from exc
        try:
            return decode_record(raw)
        except MetadataParseError as exc:
            msg = f"{path}: {exc}"
            raise MetadataParseError(msg) from exc

    def write(self, content_path: Path, record: MetadataRecord) -> Path:
        """Atomically replace the sidecar with ``record``. Returns the sidecar path."""
        path = self.sidecar_path(content_path)
        payload = encode_record(record)
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=TEMP_FILE_SUFFIX, dir=path.parent
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            msg = f"Cannot write {path}: {exc}"
            raise MetadataWriteError(msg) from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.debug("Wrote %s (%d history entries)", path, len(record.history))
        return path
