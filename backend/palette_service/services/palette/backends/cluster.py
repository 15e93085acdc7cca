"""
Local cluster backend.

Wraps the pixel quantizer and narrows its slot mapping into
``RawClusterSwatch`` records.
"""
from typing import Any, Callable, List, Mapping, Optional

from PIL import UnidentifiedImageError

from ..errors import MalformedBackendResponse, UpstreamFailure
from ..models import BackendKind, PaletteRequestConfig, RawClusterSwatch
from ..quantizer import quantize_slots
from .base import PaletteBackend, require_hex

Quantizer = Callable[..., Mapping[str, Any]]


class ClusterBackend(PaletteBackend):
    """Adapter for the local median-cut quantizer."""

    kind = BackendKind.CLUSTER

    def __init__(self, quantizer: Optional[Quantizer] = None):
        self.quantizer = quantizer or quantize_slots

    def extract(self, image_bytes: bytes, config: PaletteRequestConfig) -> List[Optional[RawClusterSwatch]]:
        try:
            slots = self.quantizer(
                image_bytes,
                quality=config.quality,
                max_color_count=config.max_color_count
            )
        except UnidentifiedImageError as e:
            raise UpstreamFailure(
                "Could not decode uploaded image",
                details=str(e),
                status_code=422,
                stage="quantize"
            ) from e

        if not isinstance(slots, Mapping):
            raise MalformedBackendResponse(
                "Quantizer returned an unexpected palette shape",
                details=type(slots).__name__
            )

        # Empty slots are dropped here; nothing downstream sees slot names.
        return [self._narrow(name, swatch) for name, swatch in slots.items() if swatch is not None]

    @staticmethod
    def _narrow(name: str, swatch: Any) -> RawClusterSwatch:
        if isinstance(swatch, RawClusterSwatch):
            return swatch

        if isinstance(swatch, Mapping):
            hex_code = swatch.get("hex")
            rgb = swatch.get("rgb")
            population = swatch.get("population")
        else:
            hex_code = getattr(swatch, "hex", None)
            rgb = getattr(swatch, "rgb", None)
            population = getattr(swatch, "population", None)

        try:
            rgb_triple = tuple(int(channel) for channel in rgb)
        except (TypeError, ValueError) as e:
            raise MalformedBackendResponse(f"Invalid rgb in slot {name}", details=repr(rgb)) from e
        if len(rgb_triple) != 3 or any(not 0 <= channel <= 255 for channel in rgb_triple):
            raise MalformedBackendResponse(f"Invalid rgb in slot {name}", details=repr(rgb))

        if isinstance(population, bool) or not isinstance(population, int) or population < 0:
            raise MalformedBackendResponse(f"Invalid population in slot {name}", details=repr(population))

        return RawClusterSwatch(hex=require_hex(hex_code, "cluster"), rgb=rgb_triple, population=population)
