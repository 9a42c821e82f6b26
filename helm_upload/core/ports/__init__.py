"""
Port interfaces for the upload pipeline.

- storage: temp blob creation and the transactional repository store
- policy: content permission checks
"""

from .policy import ContentScope, PermissionCheckerPort
from .storage import (
    RepositoryStorePort,
    StoredAsset,
    TempBlob,
    TempStoragePort,
    UnitOfWork,
)

__all__ = [
    "ContentScope",
    "PermissionCheckerPort",
    "RepositoryStorePort",
    "StoredAsset",
    "TempBlob",
    "TempStoragePort",
    "UnitOfWork",
]
