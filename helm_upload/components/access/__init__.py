from .component import AccessGate

__all__ = ["AccessGate"]
