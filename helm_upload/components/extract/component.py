"""
Extract component - classify uploads and parse chart identity.

Invariants:
- The asset kind is decided from the declared filename's extension only
- Unsupported extensions fail before any content is read
- Parse failures raise MalformedPackageError; attributes never default to empty
"""

from __future__ import annotations

from collections.abc import Callable
from typing import BinaryIO

from helm_upload.core.entities import AssetKind, PackageAttributes
from helm_upload.core.errors import UnsupportedInputError

from ._parsers import parse_chart_archive, parse_provenance

TGZ_EXTENSION = ".tgz"
PROVENANCE_EXTENSION = ".prov"

DEFAULT_MAX_MANIFEST_BYTES = 1_048_576

KIND_BY_EXTENSION: dict[str, AssetKind] = {
    TGZ_EXTENSION: AssetKind.HELM_PACKAGE,
    PROVENANCE_EXTENSION: AssetKind.HELM_PROVENANCE,
}

Parser = Callable[..., PackageAttributes]

PARSERS: dict[AssetKind, Parser] = {
    AssetKind.HELM_PACKAGE: parse_chart_archive,
    AssetKind.HELM_PROVENANCE: parse_provenance,
}


def extension_of(filename: str | None) -> str:
    """Suffix from the last '.' onward, or '' when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename[filename.rindex(".") :]


def classify(filename: str | None) -> AssetKind:
    """
    Map a declared filename to its asset kind (case-sensitive).

    Raises:
        UnsupportedInputError: If the extension is not recognized.
    """
    extension = extension_of(filename)
    kind = KIND_BY_EXTENSION.get(extension)
    if kind is None:
        raise UnsupportedInputError(extension)
    return kind


def extract(
    stream: BinaryIO,
    kind: AssetKind,
    *,
    max_manifest_bytes: int = DEFAULT_MAX_MANIFEST_BYTES,
) -> PackageAttributes:
    """
    Parse chart identity from the stream according to kind.

    Raises:
        MalformedPackageError: If the content cannot be parsed.
    """
    return PARSERS[kind](stream, max_manifest_bytes=max_manifest_bytes)


class MetadataExtractor:
    """Extractor bound to a manifest size limit."""

    def __init__(self, max_manifest_bytes: int = DEFAULT_MAX_MANIFEST_BYTES) -> None:
        self.max_manifest_bytes = max_manifest_bytes

    def extract(self, stream: BinaryIO, kind: AssetKind) -> PackageAttributes:
        return extract(stream, kind, max_manifest_bytes=self.max_manifest_bytes)
