"""
Palette Aggregation Module

Turns raw swatches from either backend into a deduplicated, dominance-ranked
palette.
"""
from .dedup import dedup
from .errors import (
    MalformedBackendResponse, MissingInput, PaletteError, PayloadTooLarge,
    UnexpectedFailure, UpstreamFailure,
)
from .models import (
    BackendKind, PaletteRequestConfig, PaletteResult, RawClusterSwatch,
    RawRemoteSwatch, Swatch,
)
from .normalizer import DOMINANCE_SCALE, normalize
from .pipeline import PaletteOrchestrator, PaletteRun, PipelineState
from .ranking import rank

__all__ = [
    "BackendKind", "DOMINANCE_SCALE", "MalformedBackendResponse", "MissingInput",
    "PaletteError", "PaletteOrchestrator", "PaletteRequestConfig", "PaletteResult",
    "PaletteRun", "PayloadTooLarge", "PipelineState", "RawClusterSwatch",
    "RawRemoteSwatch", "Swatch", "UnexpectedFailure", "UpstreamFailure",
    "dedup", "normalize", "rank",
]
