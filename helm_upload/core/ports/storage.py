"""
Storage port interfaces.

Two collaborators back the upload pipeline:
- TempStoragePort: buffers an uploaded stream into a scoped, hashed temp blob
- RepositoryStorePort: content-addressed store written through a unit of work

Invariants:
- A temp blob is re-readable until it is closed, and is released once
- Work passed to transaction() is either fully committed or fully rolled back
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Protocol, TypeVar

T = TypeVar("T")


class TempBlob(Protocol):
    """Scoped copy of an uploaded payload with precomputed digests."""

    @property
    def digests(self) -> Mapping[str, str]:
        """Hex digests keyed by algorithm name."""
        ...

    @property
    def size_bytes(self) -> int: ...

    def get(self) -> BinaryIO:
        """Open a new independent reader over the buffered content."""
        ...

    def close(self) -> None:
        """Release underlying storage. Safe to call more than once."""
        ...

    def __enter__(self) -> TempBlob: ...

    def __exit__(self, *exc_info: Any) -> None: ...


class TempStoragePort(Protocol):
    def create_temp_blob(
        self,
        stream: BinaryIO,
        algorithms: tuple[str, ...],
    ) -> TempBlob:
        """
        Buffer stream into temporary storage, hashing as it is written.

        Raises:
            OSError: If the temp medium cannot accept the write
        """
        ...


@dataclass(frozen=True)
class StoredAsset:
    """Asset row as held by the repository store."""

    repository: str
    path: str
    kind: str
    blob_sha256: str
    size_bytes: int
    content_type: str
    attributes: Mapping[str, Any]
    created_at: datetime
    updated_at: datetime
    digests: Mapping[str, str] = field(default_factory=dict)


class UnitOfWork(Protocol):
    """Write operations available inside one store transaction."""

    def put_blob(self, blob: TempBlob) -> str:
        """Store blob content under its sha256 address; returns the address."""
        ...

    def save_asset(
        self,
        *,
        repository: str,
        path: str,
        kind: str,
        blob_sha256: str,
        content_type: str,
        attributes: Mapping[str, Any],
    ) -> tuple[StoredAsset, bool]:
        """Insert or overwrite the asset at path. Returns (asset, created)."""
        ...


class RepositoryStorePort(Protocol):
    def transaction(self, work: Callable[[UnitOfWork], T]) -> T:
        """
        Run work under one atomic scope.

        Commits when work returns, rolls back and re-raises when it raises.
        """
        ...

    def get_asset(self, repository: str, path: str) -> StoredAsset | None: ...

    def list_assets(self, repository: str) -> list[StoredAsset]: ...

    def read_blob(self, sha256: str) -> bytes | None: ...
