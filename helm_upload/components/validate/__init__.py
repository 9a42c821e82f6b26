from .component import REQUIRED_FIELDS, collect_errors, validate

__all__ = ["REQUIRED_FIELDS", "collect_errors", "validate"]
