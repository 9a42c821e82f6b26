from pathlib import Path

import pytest

from helm_upload.rules.loader import load_rules

PROJECT_ROOT = Path(__file__).parent.parent.parent


def test_project_rules_file_loads():
    rules = load_rules(PROJECT_ROOT / "helm-upload_rules.yaml")

    assert rules.project.slug == "helm-upload"
    assert rules.uploads.max_upload_bytes > 0
    assert rules.access.grants, "default rules should grant something"


def test_defaults_applied(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("project:\n  slug: x\n  rules_version: '1'\n")

    rules = load_rules(path)

    assert rules.uploads.max_manifest_bytes == 1_048_576
    assert rules.storage.db_filename == "repository.db"
    assert rules.access.grants == []


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_rules(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("project: [unclosed\n")

    with pytest.raises(ValueError, match="Invalid YAML"):
        load_rules(path)


def test_schema_violation(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "project:\n  slug: x\n  rules_version: '1'\nuploads:\n  max_upload_bytes: 0\n"
    )

    with pytest.raises(ValueError, match="Rules validation failed"):
        load_rules(path)
