from __future__ import annotations

from pathlib import Path

import pytest

from helm_upload.adapters.sqlite.store import SQLiteRepositoryStore
from helm_upload.components.upload import UploadHandler
from tests.builders import REPOSITORY, CountingTempStorage, RecordingPermissions


@pytest.fixture
def temp_storage(tmp_path: Path) -> CountingTempStorage:
    return CountingTempStorage(tmp_path / "tmp")


@pytest.fixture
def store(tmp_path: Path) -> SQLiteRepositoryStore:
    return SQLiteRepositoryStore(str(tmp_path / "repository.db"))


@pytest.fixture
def permissions() -> RecordingPermissions:
    return RecordingPermissions(allow=True)


@pytest.fixture
def handler(
    temp_storage: CountingTempStorage,
    store: SQLiteRepositoryStore,
    permissions: RecordingPermissions,
) -> UploadHandler:
    return UploadHandler(
        REPOSITORY,
        temp_storage=temp_storage,
        store=store,
        permissions=permissions,
    )
