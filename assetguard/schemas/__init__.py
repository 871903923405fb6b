"""Pydantic schemas for AssetGuard sidecar records."""

from assetguard.schemas.metadata import Fingerprint, MetadataRecord

__all__ = [
    "Fingerprint",
    "MetadataRecord",
]
