"""
Palette domain records.

Raw swatch shapes produced at the backend adapter boundary, the uniform
``Swatch`` output record, and the clamped per-request configuration.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from palette_service.config import (
    QUALITY_MIN, QUALITY_MAX, QUALITY_DEFAULT,
    MAX_COLOR_COUNT_MIN, MAX_COLOR_COUNT_MAX, MAX_COLOR_COUNT_DEFAULT,
)

RGB = Tuple[int, int, int]


class BackendKind(str, Enum):
    """Which backend produced a batch of raw swatches."""
    REMOTE = "remote"
    CLUSTER = "cluster"


@dataclass(frozen=True)
class RawRemoteSwatch:
    """(hex, score) pair from the remote scorer. Score is relative to upload size."""
    hex: str
    score: float


@dataclass(frozen=True)
class RawClusterSwatch:
    """Quantizer cluster: representative color plus its pixel population."""
    hex: str
    rgb: RGB
    population: int


@dataclass(frozen=True)
class Swatch:
    """A single palette color with its dominance metric."""
    hex: str
    dominance: float
    rgb: Optional[RGB] = None

    @property
    def key(self) -> str:
        """Identity key used for deduplication."""
        return self.hex.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hex": self.hex,
            "rgb": list(self.rgb) if self.rgb is not None else None,
            "dominance": float(self.dominance),
        }


PaletteResult = List[Swatch]


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


_LEADING_INT_RE = re.compile(r"\s*[+-]?\d+")


def _parse_int(value: Any, default: int) -> int:
    """
    Lenient integer parsing for form values.

    Reads the leading integer and ignores whatever follows it, so "12abc" is 12
    and "7.9" is 7. Input without a leading integer yields the default.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(0)) if match else default


@dataclass(frozen=True)
class PaletteRequestConfig:
    """
    Tunable parameters for the cluster backend.

    Both fields are always clamped into their fixed bounds, whatever the
    client submitted. The remote backend ignores them.
    """
    quality: int = QUALITY_DEFAULT
    max_color_count: int = MAX_COLOR_COUNT_DEFAULT

    def __post_init__(self):
        object.__setattr__(self, "quality", _clamp(int(self.quality), QUALITY_MIN, QUALITY_MAX))
        object.__setattr__(
            self, "max_color_count",
            _clamp(int(self.max_color_count), MAX_COLOR_COUNT_MIN, MAX_COLOR_COUNT_MAX)
        )

    @classmethod
    def from_form(cls, quality: Any = None, max_color_count: Any = None) -> "PaletteRequestConfig":
        """Build a config from raw (string) form values."""
        return cls(
            quality=_parse_int(quality, QUALITY_DEFAULT),
            max_color_count=_parse_int(max_color_count, MAX_COLOR_COUNT_DEFAULT),
        )
