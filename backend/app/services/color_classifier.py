"""
Disc Rescue Backend — Color Classifier
=======================================

What:  Turns the dominant RGB color of a disc photo into a primary color family.
How:   1. RGB → CSS3 color name with webcolors (exact name, else the nearest
          named color by squared RGB distance).
       2. First family whose keyword list has a case-insensitive substring hit
          on that name wins ("darkred" → Red, "navy" → Blue).
       3. No hit, but only one RGB channel is lit → the family of that
          channel's name ((40, 0, 0) is "black" by name, Red by family).
       4. Otherwise → "Unknown".
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Sequence, Tuple

import webcolors

UNKNOWN_FAMILY = "Unknown"

_CHANNEL_NAMES = ("red", "green", "blue")

PRIMARY_COLOR_FAMILIES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "red": ("red", "crimson", "maroon"),
    "blue": ("blue", "navy", "sky"),
    "yellow": ("yellow", "gold", "amber"),
})


@dataclass(frozen=True)
class ColorClassification:
    """Family ("Red", "Blue", "Yellow" or "Unknown"), the color name, and its score."""

    primary_family: str
    raw_name: str
    score: float

    @property
    def display_name(self) -> str:
        """The family when known, else the raw color name."""
        if self.primary_family == UNKNOWN_FAMILY:
            return self.raw_name
        return self.primary_family


def _clamp_channel(value: float) -> int:
    return max(0, min(255, int(round(value))))


def rgb_to_color_name(rgb: Sequence[float]) -> str:
    """CSS3 name for an RGB triple; nearest named color when there is no exact one."""
    target = tuple(_clamp_channel(channel) for channel in rgb)
    try:
        return webcolors.rgb_to_name(target, spec=webcolors.CSS3)
    except ValueError:
        pass

    best_name = ""
    best_distance = None
    for name in webcolors.names(webcolors.CSS3):
        r, g, b = webcolors.name_to_rgb(name, spec=webcolors.CSS3)
        distance = (r - target[0]) ** 2 + (g - target[1]) ** 2 + (b - target[2]) ** 2
        if best_distance is None or distance < best_distance:
            best_name, best_distance = name, distance
    return best_name


def primary_family(
    color_name: str,
    families: Mapping[str, Sequence[str]] = PRIMARY_COLOR_FAMILIES,
) -> str:
    """Capitalized family name for a color name, or "Unknown"."""
    lowered = color_name.lower()
    for family, keywords in families.items():
        if any(keyword in lowered for keyword in keywords):
            return family.capitalize()
    return UNKNOWN_FAMILY


def classify_color(
    rgb: Sequence[float],
    score: float = 0.0,
    families: Mapping[str, Sequence[str]] = PRIMARY_COLOR_FAMILIES,
) -> ColorClassification:
    name = rgb_to_color_name(rgb)
    family = primary_family(name, families)

    # Dim single-channel colors land on "black"; name them by their channel instead
    channels = [_clamp_channel(channel) for channel in rgb]
    lit = [channel_name for channel_name, value in zip(_CHANNEL_NAMES, channels) if value > 0]
    if family == UNKNOWN_FAMILY and len(lit) == 1:
        family = primary_family(lit[0], families)

    return ColorClassification(primary_family=family, raw_name=name, score=score)
