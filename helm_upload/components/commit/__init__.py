from .component import CONTENT_TYPES, commit, stored_attributes

__all__ = ["CONTENT_TYPES", "commit", "stored_attributes"]
