"""Validation engine: classifies each asset against its recorded fingerprint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from assetguard.exceptions import ContentReadError, ImpossiblePastError, MetadataNotFoundError
from assetguard.filesystem.metadata_store import (
    TimestampComparison,
    compare_timestamp,
    latest_fingerprint,
)

if TYPE_CHECKING:
    from datetime import datetime

    from assetguard.config import ValidateOptions
    from assetguard.filesystem.asset_index import AssetEntry
    from assetguard.filesystem.metadata_store import MetadataStore
    from assetguard.schemas.metadata import Fingerprint, MetadataRecord
    from assetguard.services.hash_service import ContentHasher

logger = logging.getLogger(__name__)


class AssetState(StrEnum):
    """Result of validating one asset."""

    TIMESTAMP_MATCHES = "timestamp_matches"
    HASH_AND_TIMESTAMP_MATCH = "hash_and_timestamp_match"
    MISSING_METADATA = "missing_metadata"
    MISSING_HISTORY = "missing_history"
    STALE = "stale"
    HASH_MISMATCH = "hash_mismatch"

    @property
    def is_valid(self) -> bool:
        return self in {AssetState.TIMESTAMP_MATCHES, AssetState.HASH_AND_TIMESTAMP_MATCH}

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass(frozen=True)
class Classification:
    """Classified asset plus what was read or computed while classifying it.

    ``record`` is None only for MISSING_METADATA. ``fingerprint`` is the
    freshly computed fingerprint when the engine had to hash.
    """

    asset_id: str
    state: AssetState
    observed: datetime
    record: MetadataRecord | None = None
    fingerprint: Fingerprint | None = None


class ValidationEngine:
    """Decides whether an asset is valid, stale, missing metadata, or corrupted.

    Per asset, in order:

    1. observe the content file's modification time;
    2. read the sidecar (absent -> MISSING_METADATA);
    3. empty history -> MISSING_HISTORY;
    4. compare timestamps: an observed time earlier than the last fingerprint
       raises ImpossiblePastError; an equal time without content verification
       is TIMESTAMP_MATCHES; an advanced time in timestamp-trust mode is
       STALE; anything else is hashed;
    5. fresh digest differs -> HASH_MISMATCH, otherwise
       HASH_AND_TIMESTAMP_MATCH.

    Store and hasher errors propagate as AssetError subclasses and never
    degrade into a classification.
    """

    def __init__(
        self, store: MetadataStore, hasher: ContentHasher, options: ValidateOptions
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.options = options

    def classify(self, entry: AssetEntry) -> Classification:
        observed = self._observe(entry)

        try:
            record = self.store.read(entry.content.path)
        except MetadataNotFoundError:
            return Classification(entry.asset_id, AssetState.MISSING_METADATA, observed)

        latest = latest_fingerprint(record)
        if latest is None:
            return Classification(
                entry.asset_id, AssetState.MISSING_HISTORY, observed, record=record
            )

        comparison = compare_timestamp(latest, observed)
        if comparison is TimestampComparison.IMPOSSIBLE_PAST:
            raise ImpossiblePastError(entry.asset_id, latest.timestamp, observed)

        if comparison is TimestampComparison.EQUAL and not self.options.verify_contents:
            logger.debug("Timestamp unchanged, skipping hash: %s", entry.asset_id)
            return Classification(
                entry.asset_id, AssetState.TIMESTAMP_MATCHES, observed, record=record
            )

        if (
            comparison is TimestampComparison.FILE_MODIFIED_SINCE
            and self.options.trust_timestamps
        ):
            return Classification(entry.asset_id, AssetState.STALE, observed, record=record)

        fresh = self.hasher.hash(entry.content)
        if not fresh.same_observation(latest):
            logger.debug(
                "Digest mismatch for %s: recorded %s, computed %s",
                entry.asset_id,
                latest.digest,
                fresh.digest,
            )
            return Classification(
                entry.asset_id,
                AssetState.HASH_MISMATCH,
                observed,
                record=record,
                fingerprint=fresh,
            )
        return Classification(
            entry.asset_id,
            AssetState.HASH_AND_TIMESTAMP_MATCH,
            observed,
            record=record,
            fingerprint=fresh,
        )

    @staticmethod
    def _observe(entry: AssetEntry) -> datetime:
        try:
            return entry.content.modified_time()
        except OSError as exc:
            msg = f"Cannot stat {entry.content.path}: {exc}"
            raise ContentReadError(msg) from exc
