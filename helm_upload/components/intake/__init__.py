"""
Intake component - scoped, hashed temp buffering of uploads.
"""

from .component import acquire

__all__ = ["acquire"]
