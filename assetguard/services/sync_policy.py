"""Synchronization policy: turns a classification into metadata writes."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, assert_never

from assetguard.schemas.metadata import MetadataRecord
from assetguard.services.validation_service import AssetState

if TYPE_CHECKING:
    from collections.abc import Callable

    from assetguard.config import ValidateOptions
    from assetguard.filesystem.asset_index import AssetEntry
    from assetguard.filesystem.metadata_store import MetadataStore
    from assetguard.schemas.metadata import Fingerprint
    from assetguard.services.hash_service import ContentHasher
    from assetguard.services.validation_service import Classification

logger = logging.getLogger(__name__)


class SyncAction(StrEnum):
    """What synchronization did (or, in dry-run, would do) for an asset."""

    NONE = "none"
    CREATED = "created"
    APPENDED = "appended"
    REPORTED = "reported"
    FAILED = "failed"


@dataclass(frozen=True)
class AssetResult:
    """Per-asset outcome handed to the reporting layer.

    ``record`` is the record as it stands after synchronization (or as it
    would stand, in dry-run). ``fingerprint`` is the fingerprint that was or
    would be appended, or the mismatching fresh one. ``recorded`` is the
    latest fingerprint on file before synchronization.
    """

    asset_id: str
    state: AssetState | None
    action: SyncAction
    was_persisted: bool = False
    dry_run: bool = False
    record: MetadataRecord | None = None
    fingerprint: Fingerprint | None = None
    recorded: Fingerprint | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.state is not AssetState.HASH_MISMATCH

    @classmethod
    def failed(cls, asset_id: str, exc: Exception, *, dry_run: bool = False) -> AssetResult:
        return cls(
            asset_id=asset_id,
            state=None,
            action=SyncAction.FAILED,
            dry_run=dry_run,
            error=f"{exc.__class__.__name__}: {exc}",
        )


def new_record_id() -> str:
    return str(uuid.uuid4())


class SyncPolicy:
    """Applies the synchronization rules for each classification.

    - TIMESTAMP_MATCHES: nothing to write.
    - HASH_AND_TIMESTAMP_MATCH: append the fresh fingerprint if it differs
      from the latest one (timestamp refresh).
    - MISSING_METADATA: mint a record with a new id and one fingerprint.
    - MISSING_HISTORY, STALE: hash and append to the existing record.
    - HASH_MISMATCH: report only. History is never overwritten, with or
      without dry-run.

    Dry-run computes everything above but never writes.
    """

    def __init__(
        self,
        store: MetadataStore,
        hasher: ContentHasher,
        options: ValidateOptions,
        id_factory: Callable[[], str] = new_record_id,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.options = options
        self.id_factory = id_factory

    def apply(self, entry: AssetEntry, classification: Classification) -> AssetResult:
        state = classification.state
        match state:
            case AssetState.TIMESTAMP_MATCHES:
                return self._result(classification, SyncAction.NONE)
            case AssetState.HASH_AND_TIMESTAMP_MATCH:
                return self._refresh(entry, classification)
            case AssetState.MISSING_METADATA:
                return self._create(entry, classification)
            case AssetState.MISSING_HISTORY | AssetState.STALE:
                return self._append(entry, classification)
            case AssetState.HASH_MISMATCH:
                logger.warning(
                    "Hash mismatch for %s; metadata left untouched", classification.asset_id
                )
                return self._result(
                    classification, SyncAction.REPORTED, fingerprint=classification.fingerprint
                )
            case _:
                assert_never(state)

    def _refresh(self, entry: AssetEntry, classification: Classification) -> AssetResult:
        record = _require_record(classification)
        fresh = classification.fingerprint
        if fresh is None:
            msg = f"{classification.asset_id}: hash match without a fresh fingerprint"
            raise ValueError(msg)
        if record.latest() == fresh:
            return self._result(classification, SyncAction.NONE, fingerprint=fresh)
        updated = record.model_copy(deep=True)
        updated.append(fresh)
        persisted = self._persist(entry, updated)
        return self._result(
            classification,
            SyncAction.APPENDED,
            record=updated,
            fingerprint=fresh,
            was_persisted=persisted,
        )

    def _create(self, entry: AssetEntry, classification: Classification) -> AssetResult:
        fresh = self.hasher.hash(entry.content)
        record = MetadataRecord(id=self.id_factory(), name=entry.content.path.name)
        record.append(fresh)
        persisted = self._persist(entry, record)
        return self._result(
            classification,
            SyncAction.CREATED,
            record=record,
            fingerprint=fresh,
            was_persisted=persisted,
        )

    def _append(self, entry: AssetEntry, classification: Classification) -> AssetResult:
        record = _require_record(classification)
        fresh = self.hasher.hash(entry.content)
        updated = record.model_copy(deep=True)
        updated.append(fresh)
        persisted = self._persist(entry, updated)
        return self._result(
            classification,
            SyncAction.APPENDED,
            record=updated,
            fingerprint=fresh,
            was_persisted=persisted,
        )

    def _persist(self, entry: AssetEntry, record: MetadataRecord) -> bool:
        if self.options.dry_run:
            logger.info("Dry run: would write metadata for %s", entry.asset_id)
            return False
        path = self.store.write(entry.content.path, record)
        logger.info("Wrote metadata for %s to %s", entry.asset_id, path)
        return True

    def _result(
        self,
        classification: Classification,
        action: SyncAction,
        *,
        record: MetadataRecord | None = None,
        fingerprint: Fingerprint | None = None,
        was_persisted: bool = False,
    ) -> AssetResult:
        recorded = classification.record.latest() if classification.record is not None else None
        return AssetResult(
            asset_id=classification.asset_id,
            state=classification.state,
            action=action,
            was_persisted=was_persisted,
            dry_run=self.options.dry_run,
            record=record if record is not None else classification.record,
            fingerprint=fingerprint,
            recorded=recorded,
        )


def _require_record(classification: Classification) -> MetadataRecord:
    if classification.record is None:
        msg = f"{classification.asset_id}: {classification.state} requires an existing record"
        raise ValueError(msg)
    return classification.record
