"""
helm-upload - ingestion path for Helm chart packages and provenance files.

Uploads are classified by extension, parsed for chart identity, validated,
authorized against their derived storage path and committed atomically into
a content-addressed repository store.
"""

__version__ = "0.1.0"
