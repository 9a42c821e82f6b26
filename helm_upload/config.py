import logging
import os
from functools import lru_cache
from pathlib import Path

from helm_upload.adapters.local_temp_storage import LocalTempStorage
from helm_upload.adapters.policy import RulesPermissionChecker
from helm_upload.adapters.sqlite.store import SQLiteRepositoryStore
from helm_upload.components.extract import MetadataExtractor
from helm_upload.components.upload import UploadHandler
from helm_upload.core.ports.policy import PermissionCheckerPort
from helm_upload.rules.loader import load_rules
from helm_upload.rules.models import Rules

DEFAULT_RULES_FILE = "helm-upload_rules.yaml"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings:
    def __init__(self) -> None:
        self.data_dir = Path(os.environ.get("HELM_UPLOAD_DATA_DIR", "./data"))
        self.rules_path = Path(os.environ.get("HELM_UPLOAD_RULES", DEFAULT_RULES_FILE))
        self.repository = os.environ.get("HELM_UPLOAD_REPOSITORY", "helm-hosted")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def create_upload_handler(
    settings: Settings,
    rules: Rules | None = None,
    *,
    permissions: PermissionCheckerPort | None = None,
) -> UploadHandler:
    """Wire adapters for one repository from settings and rules."""
    if rules is None:
        rules = load_rules(settings.rules_path)

    settings.data_dir.mkdir(parents=True, exist_ok=True)

    temp_storage = LocalTempStorage(
        settings.data_dir / rules.storage.temp_dir_name,
        max_upload_bytes=rules.uploads.max_upload_bytes,
    )
    store = SQLiteRepositoryStore(
        str(settings.data_dir / rules.storage.db_filename),
        busy_timeout=rules.storage.busy_timeout_seconds,
    )

    return UploadHandler(
        settings.repository,
        temp_storage=temp_storage,
        store=store,
        permissions=permissions or RulesPermissionChecker(rules.access),
        extractor=MetadataExtractor(rules.uploads.max_manifest_bytes),
    )
