"""
Upload component - the Helm upload pipeline.

Stages run strictly in order and any failure stops the rest:
classify -> intake -> extract -> validate -> resolve -> authorize -> commit

Invariants:
- The kind is classified before any temp storage is allocated
- Validation happens before the path is built or permission is checked
- Permission is checked exactly once, against the resolved path
- The temp blob is released on every exit path
"""

from __future__ import annotations

import logging
from functools import lru_cache

from helm_upload.components.access import AccessGate
from helm_upload.components.commit import commit
from helm_upload.components.extract import MetadataExtractor, classify
from helm_upload.components.intake import acquire
from helm_upload.components.paths import resolve
from helm_upload.components.validate import validate
from helm_upload.core.entities import (
    HASH_ALGORITHMS,
    HELM_FORMAT,
    UploadDefinition,
    UploadFieldDefinition,
    UploadPayload,
    UploadResponse,
)
from helm_upload.core.errors import UploadError
from helm_upload.core.ports.policy import PermissionCheckerPort
from helm_upload.core.ports.storage import RepositoryStorePort, TempStoragePort

logger = logging.getLogger(__name__)


@lru_cache
def get_upload_definition(
    format: str = HELM_FORMAT,
    multiple_upload: bool = False,
) -> UploadDefinition:
    """Upload form description for discovery by UI/API callers."""
    return UploadDefinition(
        format=format,
        multiple_upload=multiple_upload,
        asset_fields=(
            UploadFieldDefinition(
                name="file",
                type="FILE",
                help_text="Chart package (.tgz) or provenance file (.prov)",
            ),
        ),
    )


class UploadHandler:
    """
    Handles uploads into one hosted Helm repository.

    Collaborators are passed in explicitly; nothing is looked up at runtime.
    """

    def __init__(
        self,
        repository: str,
        *,
        temp_storage: TempStoragePort,
        store: RepositoryStorePort,
        permissions: PermissionCheckerPort,
        extractor: MetadataExtractor | None = None,
        algorithms: tuple[str, ...] = HASH_ALGORITHMS,
    ) -> None:
        self.repository = repository
        self._temp_storage = temp_storage
        self._store = store
        self._gate = AccessGate(permissions)
        self._extractor = extractor or MetadataExtractor()
        self._algorithms = algorithms

    def get_definition(self) -> UploadDefinition:
        return get_upload_definition(HELM_FORMAT, False)

    def handle(self, payload: UploadPayload) -> UploadResponse:
        """
        Ingest one uploaded chart package or provenance file.

        Raises:
            UnsupportedInputError, PayloadTooLargeError, MalformedPackageError,
            ValidationError, PermissionDenied, IOFailure, CommitError
        """
        try:
            kind = classify(payload.filename)

            with acquire(
                payload, temp_storage=self._temp_storage, algorithms=self._algorithms
            ) as blob:
                with blob.get() as stream:
                    attrs = self._extractor.extract(stream, kind)

                validate(attrs)
                path = resolve(attrs, kind)
                self._gate.authorize(self.repository, HELM_FORMAT, path)

                record = commit(
                    path,
                    blob,
                    payload,
                    kind,
                    attrs,
                    repository=self.repository,
                    store=self._store,
                )
        except UploadError as e:
            logger.warning(
                "Rejected upload %r to %s: %s: %s",
                payload.filename,
                self.repository,
                type(e).__name__,
                e.message,
            )
            raise

        logger.info(
            "Stored %s %s in %s (sha256=%s)",
            kind.name,
            record.path,
            self.repository,
            record.blob_ref,
        )
        return UploadResponse(path=record.path, record=record)
