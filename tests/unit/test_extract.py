"""
Extract component unit tests.

Covers extension classification and chart/provenance manifest parsing.
"""

from __future__ import annotations

import gzip
import io
import json
from datetime import date

import pytest

from helm_upload.components.extract import (
    MetadataExtractor,
    check_document_size,
    classify,
    extension_of,
    extract,
    normalize,
    parse_chart_archive,
    parse_provenance,
    read_signed_body,
)
from helm_upload.core.entities import AssetKind, PackageAttributes
from helm_upload.core.errors import MalformedPackageError, UnsupportedInputError
from tests.builders import build_chart_archive, build_provenance, chart_yaml

MAX = 1_048_576


class TestClassify:
    @pytest.mark.parametrize(
        "filename,kind",
        [
            ("mychart-1.2.3.tgz", AssetKind.HELM_PACKAGE),
            ("mychart-1.2.3.tgz.prov", AssetKind.HELM_PROVENANCE),
            ("anything.prov", AssetKind.HELM_PROVENANCE),
            (".tgz", AssetKind.HELM_PACKAGE),
        ],
    )
    def test_recognized_extensions(self, filename: str, kind: AssetKind) -> None:
        assert classify(filename) is kind

    @pytest.mark.parametrize(
        "filename", ["notes.txt", "chart.TGZ", "chart.tar.gz", "chart.tgz.bak", "chart", "", None]
    )
    def test_unsupported_extensions(self, filename: str | None) -> None:
        with pytest.raises(UnsupportedInputError) as exc_info:
            classify(filename)
        assert exc_info.value.message.startswith("Unsupported extension")

    def test_extension_is_suffix_from_last_dot(self) -> None:
        assert extension_of("mychart-1.2.3.tgz.prov") == ".prov"
        assert extension_of("notes.txt") == ".txt"
        assert extension_of("README") == ""
        assert extension_of(None) == ""

    def test_unsupported_error_names_extension(self) -> None:
        with pytest.raises(UnsupportedInputError) as exc_info:
            classify("notes.txt")
        assert exc_info.value.extension == ".txt"
        assert str(exc_info.value) == "Unsupported extension: .txt"


class TestChartArchive:
    def test_parses_name_and_version(self) -> None:
        data = build_chart_archive(chart_yaml("mychart", "1.2.3"))

        attrs = parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

        assert attrs.name == "mychart"
        assert attrs.version == "1.2.3"

    def test_parses_descriptive_fields(self) -> None:
        manifest = (
            "apiVersion: v2\n"
            "name: web\n"
            "version: 0.4.0\n"
            "description: A web app\n"
            "appVersion: 2.1\n"
            "icon: https://example.com/icon.png\n"
            "sources:\n  - https://github.com/example/web\n"
            "maintainers:\n  - name: Ops\n    email: ops@example.com\n"
            "keywords:\n  - web\n"
        )
        attrs = parse_chart_archive(io.BytesIO(build_chart_archive(manifest)), max_manifest_bytes=MAX)

        assert attrs.description == "A web app"
        assert attrs.app_version == "2.1"
        assert attrs.icon == "https://example.com/icon.png"
        assert attrs.sources == ("https://github.com/example/web",)
        assert attrs.maintainers == ({"name": "Ops", "email": "ops@example.com"},)
        assert attrs.extra["apiVersion"] == "v2"
        assert attrs.extra["keywords"] == ["web"]

    def test_trims_whitespace_and_coerces_numbers(self) -> None:
        manifest = 'name: "  spaced  "\nversion: 1.0\n'
        attrs = parse_chart_archive(io.BytesIO(build_chart_archive(manifest)), max_manifest_bytes=MAX)

        assert attrs.name == "spaced"
        assert attrs.version == "1.0"

    def test_blank_fields_become_none(self) -> None:
        manifest = 'name: mychart\nversion: "   "\n'
        attrs = parse_chart_archive(io.BytesIO(build_chart_archive(manifest)), max_manifest_bytes=MAX)

        assert attrs.name == "mychart"
        assert attrs.version is None

    def test_ignores_subchart_manifest(self) -> None:
        data = build_chart_archive(
            chart_yaml("parent", "1.0.0"),
            chart_dir="parent",
            extra_files={"parent/charts/child/Chart.yaml": chart_yaml("child", "9.9.9").encode()},
        )

        attrs = parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

        assert attrs.name == "parent"
        assert attrs.version == "1.0.0"

    def test_missing_manifest(self) -> None:
        data = build_chart_archive(None)

        with pytest.raises(MalformedPackageError, match="does not contain Chart.yaml"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_not_gzip(self) -> None:
        with pytest.raises(MalformedPackageError, match="Invalid chart archive"):
            parse_chart_archive(io.BytesIO(b"definitely not a tarball"), max_manifest_bytes=MAX)

    def test_gzip_but_not_tar(self) -> None:
        data = gzip.compress(b"plain text, no tar headers here" * 20)

        with pytest.raises(MalformedPackageError):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_truncated_archive(self) -> None:
        data = build_chart_archive(chart_yaml())[:40]

        with pytest.raises(MalformedPackageError):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_invalid_yaml(self) -> None:
        data = build_chart_archive("name: [unclosed\nversion: 1\n")

        with pytest.raises(MalformedPackageError, match="Invalid YAML"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_manifest_not_a_mapping(self) -> None:
        data = build_chart_archive("- just\n- a list\n")

        with pytest.raises(MalformedPackageError, match="must be a mapping"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_non_scalar_name(self) -> None:
        data = build_chart_archive("name:\n  nested: value\nversion: 1.0.0\n")

        with pytest.raises(MalformedPackageError, match="'name' must be a scalar"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_manifest_size_limit(self) -> None:
        manifest = chart_yaml() + "description: " + "x" * 200 + "\n"
        data = build_chart_archive(manifest)

        with pytest.raises(MalformedPackageError, match="exceeds maximum"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=64)

    def test_mixed_key_mapping_gets_string_keys(self) -> None:
        manifest = chart_yaml() + "annotations:\n  1: one\n  two: 2\n  true: flag\n"
        data = build_chart_archive(manifest)

        attrs = parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

        assert attrs.extra["annotations"] == {"1": "one", "two": 2, "true": "flag"}
        json.dumps(attrs.to_dict(), sort_keys=True)

    def test_dates_become_iso_strings(self) -> None:
        data = build_chart_archive(chart_yaml() + "created: 2024-01-02\n")

        attrs = parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

        assert attrs.extra["created"] == "2024-01-02"

    def test_binary_value_is_malformed(self) -> None:
        data = build_chart_archive(chart_yaml() + "blob: !!binary aGVsbG8=\n")

        with pytest.raises(MalformedPackageError, match="Unsupported value of type bytes"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_aliases_are_rejected(self) -> None:
        manifest = chart_yaml() + "base: &base [a, b, c]\ncopies: [*base, *base]\n"
        data = build_chart_archive(manifest)

        with pytest.raises(MalformedPackageError, match="aliases are not allowed"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_anchor_without_alias_is_fine(self) -> None:
        data = build_chart_archive(chart_yaml() + "keywords: &kw [web]\n")

        attrs = parse_chart_archive(io.BytesIO(data), max_manifest_bytes=MAX)

        assert attrs.extra["keywords"] == ["web"]

    def test_stored_form_size_limit(self) -> None:
        # Each non-ASCII character takes two bytes raw but six once JSON-escaped
        manifest = chart_yaml() + "description: " + "é" * 50 + "\n"
        data = build_chart_archive(manifest)
        assert len(manifest.encode()) < 200

        with pytest.raises(MalformedPackageError, match="Chart metadata exceeds maximum"):
            parse_chart_archive(io.BytesIO(data), max_manifest_bytes=200)


class TestProvenance:
    def test_parses_signed_chart_metadata(self) -> None:
        data = build_provenance(
            chart_yaml("mychart", "1.2.3", description="Demo"),
            files={"mychart-1.2.3.tgz": "sha256:abc123"},
        )

        attrs = parse_provenance(io.BytesIO(data), max_manifest_bytes=MAX)

        assert attrs.name == "mychart"
        assert attrs.version == "1.2.3"
        assert attrs.description == "Demo"
        assert attrs.extra["files"] == {"mychart-1.2.3.tgz": "sha256:abc123"}

    def test_without_files_section(self) -> None:
        data = build_provenance(chart_yaml("mychart", "1.2.3"))

        attrs = parse_provenance(io.BytesIO(data), max_manifest_bytes=MAX)

        assert attrs.name == "mychart"
        assert "files" not in attrs.extra

    def test_dash_escaped_lines_are_unescaped(self) -> None:
        text = (
            "-----BEGIN PGP SIGNED MESSAGE-----\n"
            "Hash: SHA512\n"
            "\n"
            "name: mychart\n"
            'version: "1.2.3"\n'
            "sources:\n"
            "- - https://example.com/src\n"
            "-----BEGIN PGP SIGNATURE-----\n"
            "-----END PGP SIGNATURE-----\n"
        )
        assert read_signed_body(text)[-1] == "- https://example.com/src"

        attrs = parse_provenance(io.BytesIO(text.encode()), max_manifest_bytes=MAX)
        assert attrs.sources == ("https://example.com/src",)

    def test_missing_signed_message_header(self) -> None:
        with pytest.raises(MalformedPackageError, match="not a signed message"):
            parse_provenance(io.BytesIO(chart_yaml().encode()), max_manifest_bytes=MAX)

    def test_missing_signature_block(self) -> None:
        data = build_provenance(chart_yaml()).split(b"-----BEGIN PGP SIGNATURE-----")[0]

        with pytest.raises(MalformedPackageError, match="no signature block"):
            parse_provenance(io.BytesIO(data), max_manifest_bytes=MAX)

    def test_non_utf8(self) -> None:
        with pytest.raises(MalformedPackageError, match="UTF-8"):
            parse_provenance(io.BytesIO(b"\xff\xfe\x00garbage"), max_manifest_bytes=MAX)

    def test_size_limit(self) -> None:
        data = build_provenance(chart_yaml())

        with pytest.raises(MalformedPackageError, match="exceeds maximum"):
            parse_provenance(io.BytesIO(data), max_manifest_bytes=32)


class TestExtractDispatch:
    def test_dispatches_on_kind(self) -> None:
        tgz = build_chart_archive(chart_yaml("a", "1.0.0"))
        prov = build_provenance(chart_yaml("b", "2.0.0"))

        assert extract(io.BytesIO(tgz), AssetKind.HELM_PACKAGE).name == "a"
        assert extract(io.BytesIO(prov), AssetKind.HELM_PROVENANCE).name == "b"

    def test_wrong_kind_is_malformed(self) -> None:
        prov = build_provenance(chart_yaml())

        with pytest.raises(MalformedPackageError):
            extract(io.BytesIO(prov), AssetKind.HELM_PACKAGE)

    def test_extractor_applies_its_limit(self) -> None:
        extractor = MetadataExtractor(max_manifest_bytes=16)
        data = build_chart_archive(chart_yaml())

        with pytest.raises(MalformedPackageError, match="exceeds maximum"):
            extractor.extract(io.BytesIO(data), AssetKind.HELM_PACKAGE)


class TestMetadataNormalization:
    def test_nested_keys_become_strings(self) -> None:
        value = {"a": [{1: {None: date(2024, 1, 2)}}], False: 1.5}

        assert normalize(value) == {"a": [{"1": {"null": "2024-01-02"}}], "false": 1.5}

    def test_sets_are_rejected(self) -> None:
        with pytest.raises(MalformedPackageError):
            normalize({"tags": {"a", "b"}})

    def test_document_size_check(self) -> None:
        attrs = PackageAttributes(name="a", version="1", description="x" * 100)

        assert check_document_size(attrs, 10_000) is attrs
        with pytest.raises(MalformedPackageError, match="exceeds maximum of 64 bytes"):
            check_document_size(attrs, 64)
