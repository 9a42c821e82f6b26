"""
Commit component - persist blob and metadata in one transaction.

Invariants:
- The blob row and the asset row are written in the same unit of work
- A CommitRecord exists only for a committed transaction
- Same path means overwrite; the last committed upload wins
"""

from __future__ import annotations

from datetime import UTC, datetime

from helm_upload.core.entities import AssetKind, CommitRecord, PackageAttributes, UploadPayload
from helm_upload.core.ports.storage import RepositoryStorePort, TempBlob, UnitOfWork

CONTENT_TYPES: dict[AssetKind, str] = {
    AssetKind.HELM_PACKAGE: "application/x-tgz",
    AssetKind.HELM_PROVENANCE: "application/pgp-signature",
}


def stored_attributes(attrs: PackageAttributes, payload: UploadPayload) -> dict[str, object]:
    """Metadata document saved next to the blob."""
    doc: dict[str, object] = attrs.to_dict()
    doc["upload"] = {
        "filename": payload.filename,
        "content_type": payload.content_type,
    }
    return doc


def commit(
    path: str,
    blob: TempBlob,
    payload: UploadPayload,
    kind: AssetKind,
    attrs: PackageAttributes,
    *,
    repository: str,
    store: RepositoryStorePort,
) -> CommitRecord:
    """
    Write (path, blob, attributes) atomically and return the committed record.

    Raises:
        CommitError: If the transaction cannot commit.
        IOFailure: If the store cannot be written.
    """

    def work(tx: UnitOfWork) -> CommitRecord:
        blob_ref = tx.put_blob(blob)
        asset, created = tx.save_asset(
            repository=repository,
            path=path,
            kind=kind.name,
            blob_sha256=blob_ref,
            content_type=CONTENT_TYPES[kind],
            attributes=stored_attributes(attrs, payload),
        )
        return CommitRecord(
            repository=repository,
            path=asset.path,
            kind=kind,
            blob_ref=blob_ref,
            size_bytes=blob.size_bytes,
            content_type=asset.content_type,
            attributes=attrs,
            committed_at=datetime.now(UTC),
            digests=dict(blob.digests),
            created=created,
        )

    return store.transaction(work)
