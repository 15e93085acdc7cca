"""
Palette backend adapters and selection.
"""
from typing import Union

from ..models import BackendKind
from .base import PaletteBackend
from .cluster import ClusterBackend
from .remote import RemoteScoreBackend


def create_backend(kind: Union[BackendKind, str]) -> PaletteBackend:
    """Build a fresh adapter for one request."""
    kind = BackendKind(kind)
    if kind is BackendKind.REMOTE:
        return RemoteScoreBackend()
    return ClusterBackend()


__all__ = ["PaletteBackend", "ClusterBackend", "RemoteScoreBackend", "create_backend"]
