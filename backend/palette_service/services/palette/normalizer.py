"""
Dominance normalization for raw backend swatches.

Each backend reports "how much" of a color it saw in its own unit. This module
maps both onto the single ``dominance`` scale carried by ``Swatch``.
"""
from typing import Iterable, List, Optional, Union

from .errors import MalformedBackendResponse
from .models import BackendKind, RawClusterSwatch, RawRemoteSwatch, Swatch

# Calibration constant for the remote scorer. The remote score is not an area
# percentage; score / image_bytes * 10000 only approximates one. Keep the value
# as-is so palettes stay comparable with previously stored results.
DOMINANCE_SCALE = 10000

RawSwatch = Union[RawRemoteSwatch, RawClusterSwatch]


def remote_dominance(score: float, image_byte_size: int) -> float:
    """Approximate percentage for a remote score, scaled by upload size."""
    return (score / image_byte_size) * DOMINANCE_SCALE


def normalize(raw: Iterable[Optional[RawSwatch]], backend_kind: BackendKind,
              image_byte_size: int) -> List[Swatch]:
    """
    Convert raw backend records into ``Swatch`` objects.

    Args:
        raw: Raw records from one backend; ``None`` entries are skipped
        backend_kind: Which backend produced ``raw``
        image_byte_size: Size of the uploaded image in bytes (remote only)

    Returns:
        Swatches in input order, hex passed through unchanged

    Raises:
        MalformedBackendResponse: If a record does not match ``backend_kind``
        ValueError: If ``image_byte_size`` is not positive for remote input
    """
    backend_kind = BackendKind(backend_kind)
    swatches: List[Swatch] = []

    if backend_kind is BackendKind.REMOTE:
        if image_byte_size <= 0:
            raise ValueError(f"image_byte_size must be positive, got {image_byte_size}")
        for record in raw:
            if record is None:
                continue
            if not isinstance(record, RawRemoteSwatch):
                raise MalformedBackendResponse(
                    "Unexpected record from remote backend",
                    details=repr(record)
                )
            swatches.append(Swatch(hex=record.hex, dominance=remote_dominance(record.score, image_byte_size)))
        return swatches

    for record in raw:
        if record is None:
            continue
        if not isinstance(record, RawClusterSwatch):
            raise MalformedBackendResponse(
                "Unexpected record from cluster backend",
                details=repr(record)
            )
        # Raw pixel count, deliberately not divided by the sampled total.
        swatches.append(Swatch(hex=record.hex, dominance=float(record.population), rgb=record.rgb))
    return swatches
