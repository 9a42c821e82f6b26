from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class UploadsRules(BaseModel):
    max_upload_bytes: int = Field(default=50_000_000, gt=0)
    max_manifest_bytes: int = Field(default=1_048_576, gt=0)


class StorageRules(BaseModel):
    db_filename: str = "repository.db"
    temp_dir_name: str = "tmp"
    busy_timeout_seconds: float = Field(default=30.0, ge=0)


class AccessGrant(BaseModel):
    repository: str = "*"
    format: str = "helm"
    paths: list[str] = Field(default_factory=lambda: ["*"])
    actions: list[str]


class AccessRules(BaseModel):
    grants: list[AccessGrant] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    uploads: UploadsRules = Field(default_factory=UploadsRules)
    storage: StorageRules = Field(default_factory=StorageRules)
    access: AccessRules = Field(default_factory=AccessRules)
