"""
Upload component - Helm chart upload pipeline and upload form definition.
"""

from .component import UploadHandler, get_upload_definition

__all__ = ["UploadHandler", "get_upload_definition"]
