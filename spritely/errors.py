from __future__ import annotations

from pathlib import Path


class SpritelyError(Exception):
    pass


class InvalidDirectory(SpritelyError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path} {reason}")
        self.path = path


class NoSubimagesFound(SpritelyError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"No subimages found in {path}")
        self.path = path


class SizeMismatch(SpritelyError):
    def __init__(
        self,
        frame: Path,
        expected_width: int,
        expected_height: int,
        actual_width: int,
        actual_height: int,
    ) -> None:
        super().__init__(
            f"Subimage '{frame}' is {actual_width}x{actual_height}; "
            f"expected {expected_width}x{expected_height}"
        )
        self.frame = frame
        self.expected_width = expected_width
        self.expected_height = expected_height
        self.actual_width = actual_width
        self.actual_height = actual_height


class NoAlphaChannel(SpritelyError):
    def __init__(self, frame: Path | None) -> None:
        super().__init__(f"Subimage '{frame}' has no alpha channel")
        self.frame = frame


class InvalidColor(SpritelyError):
    pass


class InvalidGradientPosition(SpritelyError):
    pass


class DuplicateGradientStop(SpritelyError):
    pass


class InvalidGradientMapFile(SpritelyError):
    pass


class UnknownOverrideToken(SpritelyError):
    def __init__(self, name: str, token: str) -> None:
        super().__init__(f"Unknown override suffix '--{token}' in '{name}'")
        self.name = name
        self.token = token


class WatchedRootDeleted(SpritelyError):
    pass
