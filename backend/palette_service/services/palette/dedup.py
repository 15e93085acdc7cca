"""Collapse swatches that share a color."""
from typing import Iterable, List

from .models import Swatch


def dedup(swatches: Iterable[Swatch]) -> List[Swatch]:
    """
    Drop swatches whose hex (case-insensitive) was already seen.

    The first occurrence wins even when a later duplicate carries a higher
    dominance. Order of the survivors is preserved, so ``dedup`` is idempotent.
    """
    seen = set()
    unique: List[Swatch] = []
    for swatch in swatches:
        if swatch.key in seen:
            continue
        seen.add(swatch.key)
        unique.append(swatch)
    return unique
