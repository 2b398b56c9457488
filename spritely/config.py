from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os


DEFAULT_CROP_PADDING = 1


def load_dotenv(path: Path) -> None:
    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc
    if value < minimum:
        raise RuntimeError(f"{name} must be at least {minimum}")
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be a positive number")
    return value


@dataclass(frozen=True)
class SpritelyConfig:
    crop_padding: int = DEFAULT_CROP_PADDING
    retry_attempts: int = 5
    retry_delay: float = 0.25
    watch_debounce: float = 1.0
    vendor_software: tuple[str, ...] = ("Adobe Animate",)
    debug: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Path = Path(".env")) -> "SpritelyConfig":
        load_dotenv(dotenv_path)
        vendor_raw = os.getenv("SPRITELY_VENDOR_SOFTWARE")
        if vendor_raw is None:
            vendor_software = cls.vendor_software
        else:
            vendor_software = tuple(
                part.strip() for part in vendor_raw.split(",") if part.strip()
            )
        debug = os.getenv("SPRITELY_DEBUG", "0").strip().lower() in {"1", "true", "yes"}
        return cls(
            crop_padding=_int_env("SPRITELY_CROP_PADDING", DEFAULT_CROP_PADDING, 0),
            retry_attempts=_int_env("SPRITELY_RETRY_ATTEMPTS", 5, 1),
            retry_delay=_float_env("SPRITELY_RETRY_DELAY", 0.25),
            watch_debounce=_float_env("SPRITELY_WATCH_DEBOUNCE", 1.0),
            vendor_software=vendor_software,
            debug=debug,
        )
