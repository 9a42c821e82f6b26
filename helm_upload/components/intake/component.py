"""
Temp Intake component - buffer an upload into a scoped temp blob.

Invariants:
- Digests are computed for HASH_ALGORITHMS while buffering
- The blob can be read any number of times while the scope is open
- The blob is released exactly once when the scope exits, on every path
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from helm_upload.core.entities import HASH_ALGORITHMS, UploadPayload
from helm_upload.core.errors import IOFailure
from helm_upload.core.ports.storage import TempBlob, TempStoragePort

logger = logging.getLogger(__name__)


@contextmanager
def acquire(
    payload: UploadPayload,
    *,
    temp_storage: TempStoragePort,
    algorithms: tuple[str, ...] = HASH_ALGORITHMS,
) -> Iterator[TempBlob]:
    """
    Buffer payload into temp storage for the duration of the with-block.

    Raises:
        IOFailure: If the temp medium cannot accept the write.
    """
    try:
        blob = temp_storage.create_temp_blob(payload.stream, algorithms)
    except OSError as e:
        raise IOFailure(f"Could not buffer upload {payload.filename!r}: {e}") from e

    try:
        yield blob
    finally:
        blob.close()
