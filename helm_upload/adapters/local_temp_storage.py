"""
Local filesystem temp storage adapter.

Implements TempStoragePort by streaming uploads into a temp file and
hashing each chunk as it is written.

Invariants:
- Digests describe exactly the bytes on disk
- close() removes the file once; later calls do nothing
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, BinaryIO

from helm_upload.core.errors import PayloadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class LocalTempBlob:
    """Temp file holding one uploaded payload."""

    def __init__(self, path: Path, size_bytes: int, digests: Mapping[str, str]) -> None:
        self._path = path
        self._size_bytes = size_bytes
        self._digests = dict(digests)
        self._released = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def digests(self) -> Mapping[str, str]:
        return self._digests

    @property
    def size_bytes(self) -> int:
        return self._size_bytes

    @property
    def released(self) -> bool:
        return self._released

    def get(self) -> BinaryIO:
        if self._released:
            raise ValueError(f"Temp blob already released: {self._path}")
        return open(self._path, "rb")

    def close(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        logger.debug("Released temp blob %s", self._path)

    def __enter__(self) -> LocalTempBlob:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class LocalTempStorage:
    """
    TempStoragePort backed by a local directory.

    Payloads larger than max_upload_bytes are rejected while streaming,
    so an oversized upload never lands on disk in full.
    """

    def __init__(
        self,
        temp_dir: str | Path | None = None,
        *,
        max_upload_bytes: int | None = None,
        create_dirs: bool = True,
    ) -> None:
        self.temp_dir = Path(temp_dir) if temp_dir is not None else None
        self.max_upload_bytes = max_upload_bytes

        if create_dirs and self.temp_dir is not None:
            self.temp_dir.mkdir(parents=True, exist_ok=True)

    def create_temp_blob(
        self,
        stream: BinaryIO,
        algorithms: tuple[str, ...],
    ) -> LocalTempBlob:
        hashers = {name: hashlib.new(name) for name in algorithms}
        fd, name = tempfile.mkstemp(prefix="upload-", suffix=".tmp", dir=self.temp_dir)
        path = Path(name)
        size = 0

        try:
            with os.fdopen(fd, "wb") as f:
                for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
                    size += len(chunk)
                    if self.max_upload_bytes is not None and size > self.max_upload_bytes:
                        raise PayloadTooLargeError(self.max_upload_bytes)
                    f.write(chunk)
                    for hasher in hashers.values():
                        hasher.update(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        digests = {k: h.hexdigest().lower() for k, h in hashers.items()}
        logger.debug("Created temp blob %s (%d bytes)", path, size)
        return LocalTempBlob(path, size, digests)
