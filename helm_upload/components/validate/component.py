"""
Validate component - required chart identity fields.

Both name and version must be present and non-blank after trimming.
Runs after extraction and before any path, permission or storage step.
"""

from __future__ import annotations

from helm_upload.core.entities import PackageAttributes
from helm_upload.core.errors import ValidationError

REQUIRED_FIELDS: tuple[str, ...] = ("name", "version")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def collect_errors(attrs: PackageAttributes) -> list[ValidationError]:
    """Return one error per missing field, in REQUIRED_FIELDS order."""
    return [ValidationError(f) for f in REQUIRED_FIELDS if _is_blank(getattr(attrs, f))]


def validate(attrs: PackageAttributes) -> PackageAttributes:
    """
    Raise for the first missing field; return attrs unchanged when valid.

    Raises:
        ValidationError: Identifying the missing field.
    """
    errors = collect_errors(attrs)
    if errors:
        raise errors[0]
    return attrs
