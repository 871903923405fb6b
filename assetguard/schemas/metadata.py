"""Fingerprint and metadata record schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from assetguard.services.datetime_service import format_iso, parse_datetime

SHA256_HEX_PATTERN = r"^[0-9a-f]{64}$"


class Fingerprint(BaseModel):
    """One observation of an asset: modification time plus content digest."""

    timestamp: datetime
    digest: str = Field(pattern=SHA256_HEX_PATTERN)

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: object) -> object:
        if isinstance(v, str | datetime):
            return parse_datetime(v)
        return v

    @field_validator("digest", mode="before")
    @classmethod
    def lowercase_digest(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_serializer("timestamp", when_used="json")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_iso(value)

    def same_observation(self, other: Fingerprint) -> bool:
        """Two fingerprints describe the same content only if their digests match."""
        return self.digest == other.digest


class MetadataRecord(BaseModel):
    """Persisted identity and append-only fingerprint history of one asset.

    ``history`` is only ever appended to; the current fingerprint is the
    last entry.
    """

    id: str = Field(min_length=1)
    name: str | None = None
    history: list[Fingerprint] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_layout(cls, data: Any) -> Any:
        """Accept the older single-fingerprint layout.

        ``{id, name, last_modified_time, sha256}`` becomes a record whose
        history holds that one fingerprint.
        """
        if not isinstance(data, dict) or "history" in data:
            return data
        if "sha256" not in data and "last_modified_time" not in data:
            return data
        upgraded = {k: v for k, v in data.items() if k not in {"sha256", "last_modified_time"}}
        upgraded["history"] = [
            {"timestamp": data.get("last_modified_time"), "digest": data.get("sha256")}
        ]
        return upgraded

    def latest(self) -> Fingerprint | None:
        return self.history[-1] if self.history else None

    def append(self, fingerprint: Fingerprint) -> None:
        self.history.append(fingerprint)
