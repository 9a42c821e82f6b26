"""
Domain entities for Helm uploads.

- UploadPayload: raw stream handed over by the HTTP layer
- AssetKind: package archive or provenance file, decided by extension
- PackageAttributes: chart identity parsed from the manifest
- CommitRecord: the persisted (path, blob, attributes) triple
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, BinaryIO

HELM_FORMAT = "helm"

# Digests computed for every uploaded blob.
HASH_ALGORITHMS: tuple[str, ...] = ("sha1", "sha256")


class AssetKind(Enum):
    """Kind of uploaded asset, with its storage path extension."""

    HELM_PACKAGE = ".tgz"
    HELM_PROVENANCE = ".tgz.prov"

    @property
    def extension(self) -> str:
        return self.value


@dataclass(frozen=True)
class UploadPayload:
    """An uploaded part: byte stream plus optional declared filename."""

    stream: BinaryIO
    filename: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class PackageAttributes:
    """
    Chart identity and descriptive fields.

    name and version, when set, are trimmed and non-blank.
    """

    name: str | None = None
    version: str | None = None
    description: str | None = None
    app_version: str | None = None
    icon: str | None = None
    sources: tuple[str, ...] = ()
    maintainers: tuple[Mapping[str, Any], ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form stored next to the blob."""
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "app_version": self.app_version,
            "icon": self.icon,
            "sources": list(self.sources),
            "maintainers": [dict(m) for m in self.maintainers],
            "extra": dict(self.extra),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PackageAttributes:
        return cls(
            name=data.get("name"),
            version=data.get("version"),
            description=data.get("description"),
            app_version=data.get("app_version"),
            icon=data.get("icon"),
            sources=tuple(data.get("sources") or ()),
            maintainers=tuple(data.get("maintainers") or ()),
            extra=dict(data.get("extra") or {}),
        )


@dataclass(frozen=True)
class CommitRecord:
    """
    Persisted asset record.

    Only ever built from a committed transaction.
    """

    repository: str
    path: str
    kind: AssetKind
    blob_ref: str  # sha256 content address
    size_bytes: int
    content_type: str
    attributes: PackageAttributes
    committed_at: datetime
    digests: Mapping[str, str] = field(default_factory=dict)
    created: bool = True  # False when an existing path was overwritten


@dataclass(frozen=True)
class UploadResponse:
    """Acknowledgment returned to the caller on success."""

    path: str
    record: CommitRecord


@dataclass(frozen=True)
class UploadFieldDefinition:
    """One field the upload form expects."""

    name: str
    type: str
    optional: bool = False
    help_text: str = ""


@dataclass(frozen=True)
class UploadDefinition:
    """Static description of the upload form for a format."""

    format: str
    multiple_upload: bool
    component_fields: tuple[UploadFieldDefinition, ...] = ()
    asset_fields: tuple[UploadFieldDefinition, ...] = ()
