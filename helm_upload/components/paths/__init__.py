from .component import build_path, resolve

__all__ = ["build_path", "resolve"]
