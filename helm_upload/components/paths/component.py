"""
Paths component - canonical storage path for a chart asset.

The path is both the dedup/overwrite key and the authorization scope, so it
depends only on (name, version, kind).
"""

from __future__ import annotations

from helm_upload.core.entities import AssetKind, PackageAttributes
from helm_upload.core.errors import ValidationError


def build_path(name: str, version: str, kind: AssetKind) -> str:
    """Format: {name}-{version}{extension}"""
    return f"{name}-{version}{kind.extension}"


def resolve(attrs: PackageAttributes, kind: AssetKind) -> str:
    """Resolve the storage path for validated attributes."""
    if attrs.name is None:
        raise ValidationError("name")
    if attrs.version is None:
        raise ValidationError("version")
    return build_path(attrs.name, attrs.version, kind)
