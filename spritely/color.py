from __future__ import annotations

from dataclasses import dataclass
import re

from .errors import InvalidColor


_HEX_PATTERN = re.compile(r"^[0-9a-f]{6}([0-9a-f]{2})?$", re.IGNORECASE)


@dataclass(frozen=True)
class Color:
    """Immutable RGBA color with 0-255 integer channels."""

    red: int
    green: int
    blue: int
    alpha: int = 255

    def __post_init__(self) -> None:
        for value in self.rgba:
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidColor("Every color value must be an integer")
            if value < 0 or value > 255:
                raise InvalidColor("Every color value must be in range 0-255")

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        if not isinstance(value, str):
            raise InvalidColor(f"Color {value!r} is not a hex string")
        raw = value.strip()
        if raw.startswith("#"):
            raw = raw[1:]
        if not _HEX_PATTERN.match(raw):
            raise InvalidColor(f"Color {value} is not valid hexadecimal")
        if len(raw) == 6:
            raw += "ff"
        channels = [int(raw[i : i + 2], 16) for i in range(0, 8, 2)]
        return cls(*channels)

    @classmethod
    def from_tuple(cls, values: tuple[int, ...] | list[int]) -> "Color":
        if len(values) not in (3, 4):
            raise InvalidColor("Color must be 3 or 4 values, or a hex string")
        return cls(*values)

    @classmethod
    def parse(cls, value: "str | tuple[int, ...] | list[int] | Color") -> "Color":
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        if isinstance(value, (tuple, list)):
            return cls.from_tuple(value)
        raise InvalidColor(f"Cannot interpret {value!r} as a color")

    @property
    def rgba(self) -> tuple[int, int, int, int]:
        return (self.red, self.green, self.blue, self.alpha)

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.red, self.green, self.blue)

    @property
    def rgba_hex(self) -> str:
        return "".join(f"{value:02x}" for value in self.rgba)

    @property
    def rgb_hex(self) -> str:
        return self.rgba_hex[:6]

    def equals_rgb(self, other: "Color") -> bool:
        return self.rgb == other.rgb

    def equals_rgba(self, other: "Color") -> bool:
        return self.rgba == other.rgba

    def to_dict(self) -> dict[str, int]:
        return {
            "red": self.red,
            "green": self.green,
            "blue": self.blue,
            "alpha": self.alpha,
        }

    def __str__(self) -> str:
        return f"#{self.rgba_hex}"
