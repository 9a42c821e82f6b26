"""
Chart manifest parsers.

- chart archive: gzip tar holding <chart>/Chart.yaml
- provenance: OpenPGP clear-signed Chart.yaml body plus a files section
"""

from __future__ import annotations

import gzip
import json
import tarfile
import zlib
from collections.abc import Mapping
from dataclasses import replace
from datetime import date
from typing import Any, BinaryIO

import yaml
from yaml.composer import ComposerError

from helm_upload.core.entities import PackageAttributes
from helm_upload.core.errors import MalformedPackageError

CHART_MANIFEST = "Chart.yaml"

SIGNED_MESSAGE_HEADER = "-----BEGIN PGP SIGNED MESSAGE-----"
SIGNATURE_HEADER = "-----BEGIN PGP SIGNATURE-----"
DOCUMENT_END = "..."

_KNOWN_FIELDS = {"name", "version", "description", "appVersion", "icon", "sources", "maintainers"}


def _scalar(manifest: Mapping[str, Any], key: str) -> str | None:
    value = manifest.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        raise MalformedPackageError(f"Chart field '{key}' must be a scalar value")
    text = str(value).strip()
    return text or None


def _key(key: Any) -> str:
    # Mapping keys become strings, as Helm's YAML decoding does
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    if isinstance(key, date):
        return key.isoformat()
    return str(key)


def normalize(value: Any) -> Any:
    """
    Convert a parsed YAML value into plain JSON-compatible data.

    Raises:
        MalformedPackageError: For values with no JSON form (binary, sets).
    """
    if isinstance(value, Mapping):
        return {_key(k): normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize(v) for v in value]
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, date):
        return value.isoformat()
    raise MalformedPackageError(f"Unsupported value of type {type(value).__name__} in chart metadata")


def attributes_from_manifest(manifest: Any) -> PackageAttributes:
    """Map a parsed Chart.yaml document onto PackageAttributes."""
    if not isinstance(manifest, Mapping):
        raise MalformedPackageError("Chart metadata must be a mapping")
    manifest = normalize(manifest)

    sources = manifest.get("sources") or []
    maintainers = manifest.get("maintainers") or []
    if not isinstance(sources, list) or not isinstance(maintainers, list):
        raise MalformedPackageError("Chart sources and maintainers must be lists")

    return PackageAttributes(
        name=_scalar(manifest, "name"),
        version=_scalar(manifest, "version"),
        description=_scalar(manifest, "description"),
        app_version=_scalar(manifest, "appVersion"),
        icon=_scalar(manifest, "icon"),
        sources=tuple(str(s) for s in sources if s is not None),
        maintainers=tuple(m for m in maintainers if isinstance(m, Mapping)),
        extra={k: v for k, v in manifest.items() if k not in _KNOWN_FIELDS},
    )


def check_document_size(attrs: PackageAttributes, max_bytes: int) -> PackageAttributes:
    """Reject attributes whose stored JSON form would exceed max_bytes."""
    size = len(json.dumps(attrs.to_dict(), sort_keys=True).encode("utf-8"))
    if size > max_bytes:
        raise MalformedPackageError(f"Chart metadata exceeds maximum of {max_bytes} bytes")
    return attrs


class _NoAliasLoader(yaml.SafeLoader):
    """SafeLoader that rejects aliases."""

    def compose_node(self, parent: Any, index: Any) -> Any:
        if self.check_event(yaml.AliasEvent):
            event = self.peek_event()
            raise ComposerError(
                None, None, "aliases are not allowed in chart metadata", event.start_mark
            )
        return super().compose_node(parent, index)


def _load_yaml(text: str | bytes, what: str) -> Any:
    try:
        return yaml.load(text, Loader=_NoAliasLoader)
    except yaml.YAMLError as e:
        raise MalformedPackageError(f"Invalid YAML in {what}: {e}") from e


def _is_chart_manifest(member: tarfile.TarInfo) -> bool:
    # Top-level chart only; charts/<sub>/Chart.yaml belongs to a dependency
    name = member.name[2:] if member.name.startswith("./") else member.name
    parts = name.split("/")
    return len(parts) == 2 and parts[1] == CHART_MANIFEST


def read_chart_manifest(stream: BinaryIO, *, max_manifest_bytes: int) -> bytes:
    """Return the raw bytes of the top-level Chart.yaml in a chart archive."""
    try:
        with tarfile.open(fileobj=stream, mode="r:gz") as tar:
            for member in tar:
                if not _is_chart_manifest(member):
                    continue
                if not member.isfile():
                    raise MalformedPackageError(f"{member.name} is not a regular file")
                if member.size > max_manifest_bytes:
                    raise MalformedPackageError(
                        f"{member.name} exceeds maximum of {max_manifest_bytes} bytes"
                    )
                f = tar.extractfile(member)
                if f is None:
                    raise MalformedPackageError(f"{member.name} could not be read")
                return f.read()
    except (tarfile.TarError, EOFError, zlib.error, gzip.BadGzipFile) as e:
        raise MalformedPackageError(f"Invalid chart archive: {e}") from e

    raise MalformedPackageError(f"Chart archive does not contain {CHART_MANIFEST}")


def parse_chart_archive(stream: BinaryIO, *, max_manifest_bytes: int) -> PackageAttributes:
    raw = read_chart_manifest(stream, max_manifest_bytes=max_manifest_bytes)
    attrs = attributes_from_manifest(_load_yaml(raw, CHART_MANIFEST))
    return check_document_size(attrs, max_manifest_bytes)


def read_signed_body(text: str) -> list[str]:
    """
    Return the clear-signed message body lines, dash-escaping removed.

    The body starts after the armor headers (ended by a blank line) and stops
    at the signature block.
    """
    lines = text.splitlines()
    try:
        start = next(i for i, line in enumerate(lines) if line.strip() == SIGNED_MESSAGE_HEADER)
    except StopIteration:
        raise MalformedPackageError("Provenance file is not a signed message") from None

    i = start + 1
    while i < len(lines) and lines[i].strip():
        i += 1
    if i >= len(lines):
        raise MalformedPackageError("Provenance file has no message body")

    body: list[str] = []
    for line in lines[i + 1 :]:
        if line.strip() == SIGNATURE_HEADER:
            return body
        body.append(line[2:] if line.startswith("- ") else line)

    raise MalformedPackageError("Provenance file has no signature block")


def parse_provenance(stream: BinaryIO, *, max_manifest_bytes: int) -> PackageAttributes:
    raw = stream.read(max_manifest_bytes + 1)
    if len(raw) > max_manifest_bytes:
        raise MalformedPackageError(f"Provenance file exceeds maximum of {max_manifest_bytes} bytes")
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPackageError(f"Provenance file is not valid UTF-8: {e}") from e

    body = read_signed_body(text)

    # Helm separates chart metadata and the files section with a bare "..."
    if DOCUMENT_END in (line.rstrip() for line in body):
        split = next(i for i, line in enumerate(body) if line.rstrip() == DOCUMENT_END)
        chart_lines, files_lines = body[:split], body[split + 1 :]
    else:
        chart_lines, files_lines = body, []

    attrs = attributes_from_manifest(_load_yaml("\n".join(chart_lines), "provenance metadata"))

    files_doc = _load_yaml("\n".join(files_lines), "provenance files") if files_lines else None
    if files_doc is None:
        return check_document_size(attrs, max_manifest_bytes)
    files_doc = normalize(files_doc)
    if not isinstance(files_doc, Mapping) or not isinstance(files_doc.get("files", {}), Mapping):
        raise MalformedPackageError("Provenance files section must be a mapping")

    extra = dict(attrs.extra)
    extra["files"] = dict(files_doc.get("files") or {})
    return check_document_size(replace(attrs, extra=extra), max_manifest_bytes)
