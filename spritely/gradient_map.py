"""Gradient maps ("skins") that recolor grayscale sprites.

A gradient map file is YAML::

    skins:
      ember:
        0: "#000000"
        50: "b22222"
        100: "ffd700"
    groups:
      - pattern: "^flame"
        skins: ember
        match: sprite

Positions are integers in 0-100. Groups restrict the named skins to sprites
(``match: sprite``) or subimages (``match: subimage``, the default) whose
name matches ``pattern``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import math
import re

import numpy as np
import yaml

from .color import Color
from .errors import (
    DuplicateGradientStop,
    InvalidColor,
    InvalidGradientMapFile,
    InvalidGradientPosition,
)
from .frame import Frame


GRADIENT_MAP_BASENAMES = ("gradmaps", "gradients", "gradmap", "skins", "skin")
GRADIENT_MAP_EXTENSIONS = (".yml", ".yaml", ".txt")
PASSTHROUGH_NAME = "none"

LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])


class MatchScope(str, Enum):
    SPRITE = "sprite"
    SUBIMAGE = "subimage"


@dataclass(frozen=True)
class GradientStop:
    position: float
    color: Color


@dataclass
class GradientMap:
    name: str
    stops: list[GradientStop] = field(default_factory=list)
    filters: list[tuple[re.Pattern[str], MatchScope]] = field(default_factory=list)

    def add_stop(self, position: float, color: "Color | str") -> "GradientMap":
        if isinstance(position, bool) or not isinstance(position, (int, float)):
            raise InvalidGradientPosition(f"Position {position!r} is not a number")
        if position < 0 or position > 100:
            raise InvalidGradientPosition(
                f"Position {position} in gradient map '{self.name}' is outside 0-100"
            )
        color = Color.parse(color)
        if any(stop.position == position for stop in self.stops):
            raise DuplicateGradientStop(
                f"Gradient map '{self.name}' already has a stop at {position}"
            )
        self.stops.append(GradientStop(position, color))
        self.stops.sort(key=lambda stop: stop.position)
        return self

    def add_filter(self, pattern: "str | re.Pattern[str]", scope: MatchScope) -> None:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.filters.append((compiled, scope))

    def _matches(self, name: str, scope: MatchScope) -> bool:
        patterns = [pattern for pattern, s in self.filters if s == scope]
        if not patterns:
            return True
        return any(pattern.search(name) for pattern in patterns)

    def applies_to_sprite(self, sprite_name: str) -> bool:
        return self._matches(sprite_name, MatchScope.SPRITE)

    def applies_to_subimage(self, subimage_name: str) -> bool:
        return self._matches(subimage_name, MatchScope.SUBIMAGE)

    def get_color_at_position(self, position: float) -> Color:
        if not self.stops:
            raise InvalidGradientPosition(f"Gradient map '{self.name}' has no stops")
        first, last = self.stops[0], self.stops[-1]
        if position <= first.position:
            return first.color
        if position >= last.position:
            return last.color
        for left, right in zip(self.stops, self.stops[1:]):
            if left.position <= position <= right.position:
                if position == left.position:
                    return left.color
                if position == right.position:
                    return right.color
                fraction = (position - left.position) / (right.position - left.position)
                channels = [
                    math.floor(a + fraction * (b - a))
                    for a, b in zip(left.color.rgba, right.color.rgba)
                ]
                return Color(*channels)
        return last.color

    def lookup_table(self) -> np.ndarray:
        """RGB color for every integer ramp position 0-100."""
        return np.array(
            [self.get_color_at_position(p).rgb for p in range(101)], dtype=np.int64
        )

    def recolor(self, frame: Frame) -> Frame:
        table = self.lookup_table()
        pixels = frame.pixels
        color = pixels[:, :, :3].astype(np.int64)
        r, g, b = color[:, :, 0], color[:, :, 1], color[:, :, 2]
        gray = (r == g) & (g == b)
        luminance = color @ LUMINANCE_WEIGHTS
        intensity = np.where(gray, r, luminance)
        relative = np.clip(intensity / frame.max_value, 0.0, 1.0)
        positions = np.floor(relative * 100).astype(np.int64)

        mapped = table[positions]
        if frame.max_value != 255:
            mapped = mapped * frame.max_value // 255
        visible = np.ones(gray.shape, dtype=bool) if frame.alpha is None else frame.alpha > 0

        result = pixels.copy()
        result[visible, :3] = mapped[visible].astype(pixels.dtype)
        return Frame(result, path=frame.path, bit_depth=frame.bit_depth, mode=frame.mode)


def find_gradient_maps_file(directory: Path) -> Path | None:
    for basename in GRADIENT_MAP_BASENAMES:
        for extension in GRADIENT_MAP_EXTENSIONS:
            candidate = directory / f"{basename}{extension}"
            if candidate.is_file():
                return candidate
    return None


def _parse_position(raw: object, skin: str) -> int:
    if isinstance(raw, bool):
        raise InvalidGradientPosition(f"Skin '{skin}' has invalid position {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and re.fullmatch(r"\s*-?\d+\s*", raw):
        return int(raw)
    raise InvalidGradientPosition(f"Skin '{skin}' has non-integer position {raw!r}")


def _parse_color(raw: object, skin: str) -> Color:
    # Unquoted all-digit hex values arrive from YAML as integers.
    if isinstance(raw, int) and not isinstance(raw, bool):
        raw = str(raw).zfill(6)
    if not isinstance(raw, str):
        raise InvalidColor(f"Skin '{skin}' has invalid color {raw!r}")
    return Color.from_hex(raw)


def parse_gradient_maps(data: object) -> list[GradientMap]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise InvalidGradientMapFile("Gradient map file must be a mapping")
    skins = data.get("skins") or {}
    if not isinstance(skins, dict):
        raise InvalidGradientMapFile("'skins' must map skin names to color stops")

    maps: dict[str, GradientMap] = {}
    for raw_name, stops in skins.items():
        name = str(raw_name)
        if name == PASSTHROUGH_NAME:
            raise InvalidGradientMapFile(f"Skin name '{PASSTHROUGH_NAME}' is reserved")
        if not isinstance(stops, dict) or not stops:
            raise InvalidGradientMapFile(f"Skin '{name}' must map positions to colors")
        gradient_map = GradientMap(name)
        for raw_position, raw_color in stops.items():
            gradient_map.add_stop(
                _parse_position(raw_position, name), _parse_color(raw_color, name)
            )
        maps[name] = gradient_map

    groups = data.get("groups") or []
    if not isinstance(groups, list):
        raise InvalidGradientMapFile("'groups' must be a list")
    for group in groups:
        if not isinstance(group, dict) or not isinstance(group.get("pattern"), str):
            raise InvalidGradientMapFile("Every group needs a string 'pattern'")
        try:
            pattern = re.compile(group["pattern"])
        except re.error as exc:
            raise InvalidGradientMapFile(
                f"Invalid group pattern {group['pattern']!r}: {exc}"
            ) from exc
        try:
            scope = MatchScope(group.get("match", MatchScope.SUBIMAGE.value))
        except ValueError as exc:
            raise InvalidGradientMapFile(
                f"Group 'match' must be 'sprite' or 'subimage', got {group.get('match')!r}"
            ) from exc
        names = group.get("skins")
        if isinstance(names, str):
            names = [names]
        if not isinstance(names, list) or not names:
            raise InvalidGradientMapFile("Every group needs 'skins'")
        for skin in names:
            if str(skin) not in maps:
                raise InvalidGradientMapFile(f"Group references unknown skin '{skin}'")
            maps[str(skin)].add_filter(pattern, scope)

    return list(maps.values())


def load_gradient_maps(path: Path) -> list[GradientMap]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise InvalidGradientMapFile(f"Could not parse {path}: {exc}") from exc
    return parse_gradient_maps(data)
