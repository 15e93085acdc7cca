"""
Local pixel-clustering quantizer.

Samples the image, reduces it to at most ``max_color_count`` colors with
Pillow's median cut, then picks one representative cluster for each of six
named slots (vibrant/muted x light/normal/dark). Slots with no eligible
cluster are ``None``.

Output shape per slot: ``{"hex": "#RRGGBB", "rgb": [r, g, b], "population": n}``.
"""
import colorsys
import io
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from PIL import Image

from palette_service.utils.logging import get_logger

logger = get_logger()

MIN_ALPHA = 125
NEAR_WHITE = 250

WEIGHT_SATURATION = 3.0
WEIGHT_LUMA = 6.5
WEIGHT_POPULATION = 0.5


@dataclass(frozen=True)
class SlotTarget:
    """HSL window and ideal point for one named slot."""
    target_luma: float
    min_luma: float
    max_luma: float
    target_saturation: float
    min_saturation: float
    max_saturation: float

    def accepts(self, saturation: float, luma: float) -> bool:
        return (self.min_saturation <= saturation <= self.max_saturation
                and self.min_luma <= luma <= self.max_luma)

    def score(self, saturation: float, luma: float, population: int, max_population: int) -> float:
        weighted = (
            WEIGHT_SATURATION * (1 - abs(saturation - self.target_saturation))
            + WEIGHT_LUMA * (1 - abs(luma - self.target_luma))
            + WEIGHT_POPULATION * (population / max_population if max_population else 0.0)
        )
        return weighted / (WEIGHT_SATURATION + WEIGHT_LUMA + WEIGHT_POPULATION)


# Slot fill order matters: a cluster taken by an earlier slot is not reused.
SLOT_TARGETS: Dict[str, SlotTarget] = {
    "Vibrant": SlotTarget(0.5, 0.3, 0.7, 1.0, 0.35, 1.0),
    "LightVibrant": SlotTarget(0.74, 0.55, 1.0, 1.0, 0.35, 1.0),
    "DarkVibrant": SlotTarget(0.26, 0.0, 0.45, 1.0, 0.35, 1.0),
    "Muted": SlotTarget(0.5, 0.3, 0.7, 0.3, 0.0, 0.4),
    "LightMuted": SlotTarget(0.74, 0.55, 1.0, 0.3, 0.0, 0.4),
    "DarkMuted": SlotTarget(0.26, 0.0, 0.45, 0.3, 0.0, 0.4),
}


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    """Convert an RGB triple to an uppercase ``#RRGGBB`` string."""
    r, g, b = [int(x) for x in rgb]
    return f"#{r:02X}{g:02X}{b:02X}"


def sample_pixels(image_bytes: bytes, quality: int = 1) -> np.ndarray:
    """
    Decode the image and keep every ``quality``-th pixel.

    Transparent (alpha < 125) and near-white pixels are skipped.

    Returns:
        RGB pixels array (N, 3) uint8
    """
    with Image.open(io.BytesIO(image_bytes)) as image:
        rgba = np.asarray(image.convert("RGBA"), dtype=np.uint8).reshape(-1, 4)

    sampled = rgba[::max(1, quality)]
    opaque = sampled[sampled[:, 3] >= MIN_ALPHA, :3]
    near_white = np.all(opaque > NEAR_WHITE, axis=1)
    return opaque[~near_white]


def cluster_pixels(pixels_rgb_u8: np.ndarray, max_color_count: int) -> List[Tuple[Tuple[int, int, int], int]]:
    """
    Median-cut the pixels into at most ``max_color_count`` clusters.

    Returns:
        List of ``(rgb, population)`` pairs in palette index order
    """
    if pixels_rgb_u8.size == 0:
        return []

    strip = Image.fromarray(np.ascontiguousarray(pixels_rgb_u8.reshape(1, -1, 3)))
    quantized = strip.quantize(colors=max_color_count, method=Image.Quantize.MEDIANCUT)
    palette = quantized.getpalette() or []
    counts = quantized.getcolors(maxcolors=256) or []

    clusters = []
    for population, index in sorted(counts, key=lambda item: item[1]):
        rgb = tuple(palette[index * 3:index * 3 + 3])
        if len(rgb) == 3:
            clusters.append((rgb, int(population)))
    return clusters


def assign_slots(clusters: List[Tuple[Tuple[int, int, int], int]]) -> Dict[str, Optional[dict]]:
    """Pick the best-scoring unused cluster for each named slot."""
    slots: Dict[str, Optional[dict]] = {name: None for name in SLOT_TARGETS}
    if not clusters:
        return slots

    max_population = max(population for _, population in clusters)
    hsl = [colorsys.rgb_to_hls(*(channel / 255.0 for channel in rgb)) for rgb, _ in clusters]
    used = set()

    for name, target in SLOT_TARGETS.items():
        best_index, best_score = None, None
        for index, (rgb, population) in enumerate(clusters):
            if index in used:
                continue
            _, luma, saturation = hsl[index]
            if not target.accepts(saturation, luma):
                continue
            score = target.score(saturation, luma, population, max_population)
            if best_score is None or score > best_score:
                best_index, best_score = index, score

        if best_index is not None:
            used.add(best_index)
            rgb, population = clusters[best_index]
            slots[name] = {"hex": rgb_to_hex(rgb), "rgb": list(rgb), "population": population}

    return slots


def quantize_slots(image_bytes: bytes, quality: int = 1, max_color_count: int = 256) -> Dict[str, Optional[dict]]:
    """
    Full quantizer run: sample, cluster, assign slots.

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not a decodable image
    """
    pixels = sample_pixels(image_bytes, quality)
    clusters = cluster_pixels(pixels, max_color_count)
    slots = assign_slots(clusters)

    logger.bind(
        sampled_pixels=int(len(pixels)),
        clusters=len(clusters),
        filled_slots=sum(1 for swatch in slots.values() if swatch is not None)
    ).debug("Quantization complete")
    return slots
