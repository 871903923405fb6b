"""CLI for validating asset fingerprints and synchronizing metadata sidecars."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from assetguard.config import Settings, Verbosity
from assetguard.exceptions import ScanError
from assetguard.filesystem.asset_index import build_asset_index
from assetguard.services.run_service import AssetValidator, RunSummary
from assetguard.services.sync_policy import AssetResult, SyncAction
from assetguard.services.validation_service import AssetState

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Verbosity.MINIMAL: logging.WARNING,
    Verbosity.DEFAULT: logging.INFO,
    Verbosity.VERBOSE: logging.DEBUG,
}

# action -> (applied, dry-run)
_ACTION_TEXT: dict[SyncAction, tuple[str, str]] = {
    SyncAction.NONE: ("unchanged", "unchanged"),
    SyncAction.CREATED: ("created", "would create"),
    SyncAction.APPENDED: ("appended", "would append"),
    SyncAction.REPORTED: ("not updated", "not updated"),
}


def _configure_logging(verbosity: Verbosity) -> None:
    """Configure CLI logging; console results go to stdout, logs to stderr."""
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=_LOG_LEVELS[verbosity],
        format=fmt,
        stream=sys.stderr,
        force=True,
    )


def format_result(result: AssetResult, verbosity: Verbosity = Verbosity.DEFAULT) -> str | None:
    """Render one result as ``<asset> -> <state> -> <action>``.

    Returns None when the result is not shown at this verbosity.
    """
    if verbosity is Verbosity.MINIMAL and result.ok:
        return None
    if verbosity is Verbosity.DEFAULT and result.ok and result.action is SyncAction.NONE:
        return None

    if result.action is SyncAction.FAILED or result.state is None:
        return f"{result.asset_id} -> error -> {result.error}"

    applied, planned = _ACTION_TEXT[result.action]
    line = f"{result.asset_id} -> {result.state.label} -> {planned if result.dry_run else applied}"

    if result.action is SyncAction.REPORTED and result.recorded and result.fingerprint:
        line += f" (recorded {result.recorded.digest}, computed {result.fingerprint.digest})"
    elif verbosity is Verbosity.VERBOSE and result.fingerprint is not None:
        line += f" [sha256 {result.fingerprint.digest}]"
    return line


def format_summary(summary: RunSummary, *, dry_run: bool = False) -> str:
    states = summary.states
    valid = states[AssetState.TIMESTAMP_MATCHES] + states[AssetState.HASH_AND_TIMESTAMP_MATCH]
    synced = sum(
        1 for r in summary.results if r.action in {SyncAction.CREATED, SyncAction.APPENDED}
    )
    text = (
        f"Checked {summary.total} asset(s): {valid} valid, "
        f"{synced} {'to synchronize' if dry_run else 'synchronized'}, "
        f"{states[AssetState.HASH_MISMATCH]} mismatched, {len(summary.errors)} error(s)."
    )
    if dry_run:
        text += " Dry run: no metadata written."
    return text


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetguard-validate",
        description="Validate asset fingerprints and keep metadata sidecars in sync",
    )
    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Asset directory (default: ASSETGUARD_ROOT_DIR or current directory)",
    )
    parser.add_argument(
        "--contents",
        dest="verify_contents",
        action="store_true",
        default=None,
        help="Hash every file, even when its timestamp is unchanged",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Report what would be written without touching any sidecar",
    )
    parser.add_argument(
        "--trust-timestamps",
        action="store_true",
        default=None,
        help="Treat an advanced timestamp as an intended edit and re-fingerprint it",
    )
    parser.add_argument("--jobs", "-j", type=int, default=None, help="Parallel workers")
    parser.add_argument(
        "--suffix", dest="meta_suffix", default=None, help="Sidecar suffix (default: .meta)"
    )
    parser.add_argument(
        "--skip-hidden",
        action="store_true",
        default=None,
        help="Ignore dot-files and files under dot-directories",
    )
    level = parser.add_mutually_exclusive_group()
    level.add_argument(
        "--minimal",
        dest="verbosity",
        action="store_const",
        const=Verbosity.MINIMAL,
        help="Only print problems",
    )
    level.add_argument(
        "--verbose",
        "-v",
        dest="verbosity",
        action="store_const",
        const=Verbosity.VERBOSE,
        help="Print every asset with digests and debug logging",
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Merge CLI flags over environment/.env settings."""
    overrides: dict[str, Any] = {}
    if args.root is not None:
        overrides["root_dir"] = Path(args.root)
    for name in (
        "verify_contents",
        "dry_run",
        "trust_timestamps",
        "jobs",
        "meta_suffix",
        "skip_hidden",
    ):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.verbosity is not None:
        overrides["verbosity"] = args.verbosity
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 2

    options = settings.to_options()
    _configure_logging(options.verbosity)
    logger.debug("Running with %s", options)
    root = settings.root_dir.resolve()

    try:
        index = build_asset_index(root, options.meta_suffix, skip_hidden=settings.skip_hidden)
    except ScanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    summary = AssetValidator(options).run(index)

    for rel_path in index.unreadable:
        print(f"{rel_path} -> error -> cannot be scanned")
    for result in summary.results:
        line = format_result(result, options.verbosity)
        if line is not None:
            print(line)
    print(format_summary(summary, dry_run=options.dry_run))

    return 0 if summary.ok and not index.unreadable else 1


if __name__ == "__main__":
    raise SystemExit(main())
