"""Order swatches by dominance."""
from typing import Iterable, List

from .models import Swatch


def rank(swatches: Iterable[Swatch]) -> List[Swatch]:
    """Most dominant first. ``sorted`` is stable, so ties keep their incoming order."""
    return sorted(swatches, key=lambda swatch: swatch.dominance, reverse=True)
