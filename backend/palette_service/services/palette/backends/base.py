"""
Backend adapter interface.

An adapter turns image bytes into raw swatch records. It is the only place
that knows a backend's wire or object shape; everything it returns has
already been narrowed to ``RawRemoteSwatch`` / ``RawClusterSwatch``.
"""
import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..errors import MalformedBackendResponse
from ..models import BackendKind, PaletteRequestConfig
from ..normalizer import RawSwatch

HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class PaletteBackend(ABC):
    """Common capability of all palette backends."""

    kind: BackendKind

    @abstractmethod
    def extract(self, image_bytes: bytes, config: PaletteRequestConfig) -> List[Optional[RawSwatch]]:
        """
        Run the backend on one image.

        Blocking; the pipeline runs it off the event loop.

        Raises:
            UpstreamFailure: The backend call failed
            MalformedBackendResponse: The backend answered with an unusable shape
        """

    def is_configured(self) -> bool:
        """Whether the backend has what it needs to be called."""
        return True


def require_hex(value: Any, source: str) -> str:
    """Validate a backend-supplied hex code without changing its case."""
    if not isinstance(value, str) or not HEX_RE.match(value):
        raise MalformedBackendResponse(
            f"Invalid hex color from {source} backend",
            details=repr(value)
        )
    return value
