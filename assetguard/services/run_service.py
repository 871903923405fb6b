"""Run driver: validates and synchronizes every asset in an index."""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from assetguard.exceptions import AssetError
from assetguard.filesystem.metadata_store import MetadataStore
from assetguard.services.hash_service import ContentHasher
from assetguard.services.sync_policy import AssetResult, SyncAction, SyncPolicy
from assetguard.services.validation_service import ValidationEngine

if TYPE_CHECKING:
    from assetguard.config import ValidateOptions
    from assetguard.filesystem.asset_index import AssetEntry, AssetIndex
    from assetguard.services.validation_service import AssetState

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Aggregate counts over one run's results."""

    results: list[AssetResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def states(self) -> Counter[AssetState]:
        return Counter(r.state for r in self.results if r.state is not None)

    @property
    def writes(self) -> int:
        return sum(1 for r in self.results if r.was_persisted)

    @property
    def errors(self) -> list[AssetResult]:
        return [r for r in self.results if r.action is SyncAction.FAILED]

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)


class AssetValidator:
    """Validates one asset at a time with a shared store, hasher and options."""

    def __init__(
        self,
        options: ValidateOptions,
        store: MetadataStore | None = None,
        hasher: ContentHasher | None = None,
        policy: SyncPolicy | None = None,
    ) -> None:
        self.options = options
        self.store = store or MetadataStore(options.meta_suffix)
        self.hasher = hasher or ContentHasher(options.chunk_size)
        self.engine = ValidationEngine(self.store, self.hasher, options)
        self.policy = policy or SyncPolicy(self.store, self.hasher, options)

    def validate(self, entry: AssetEntry) -> AssetResult:
        """Classify and synchronize one asset; AssetErrors become a failed result."""
        try:
            classification = self.engine.classify(entry)
            return self.policy.apply(entry, classification)
        except AssetError as exc:
            logger.warning("Skipping %s: %s", entry.asset_id, exc)
            return AssetResult.failed(entry.asset_id, exc, dry_run=self.options.dry_run)

    def run(self, index: AssetIndex) -> RunSummary:
        """Validate every asset in the index. Results are sorted by asset id."""
        entries = list(index)
        if self.options.jobs > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=self.options.jobs) as executor:
                results = list(executor.map(self.validate, entries))
        else:
            results = [self.validate(entry) for entry in entries]
        results.sort(key=lambda r: r.asset_id)

        summary = RunSummary(results=results)
        logger.info(
            "Validated %d assets: %d written, %d error(s)%s",
            summary.total,
            summary.writes,
            len(summary.errors),
            " (dry run)" if self.options.dry_run else "",
        )
        return summary


def validate_assets(index: AssetIndex, options: ValidateOptions) -> RunSummary:
    """Validate and synchronize every asset in ``index``."""
    return AssetValidator(options).run(index)
