"""
Extract component - extension classification and chart metadata parsing.
"""

from ._parsers import (
    attributes_from_manifest,
    check_document_size,
    normalize,
    parse_chart_archive,
    parse_provenance,
    read_signed_body,
)
from .component import (
    KIND_BY_EXTENSION,
    PROVENANCE_EXTENSION,
    TGZ_EXTENSION,
    MetadataExtractor,
    classify,
    extension_of,
    extract,
)

__all__ = [
    # Entry points
    "classify",
    "extension_of",
    "extract",
    "MetadataExtractor",
    # Parsers
    "attributes_from_manifest",
    "check_document_size",
    "normalize",
    "parse_chart_archive",
    "parse_provenance",
    "read_signed_body",
    # Configuration
    "KIND_BY_EXTENSION",
    "PROVENANCE_EXTENSION",
    "TGZ_EXTENSION",
]
