from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import UnknownOverrideToken
from .models import FixMethod


class Override(Enum):
    CROP = "crop"
    NO_CROP = "no-crop"
    BLEED = "bleed"
    NO_BLEED = "no-bleed"


TOKENS = {
    "c": Override.CROP,
    "crop": Override.CROP,
    "nc": Override.NO_CROP,
    "no-crop": Override.NO_CROP,
    "b": Override.BLEED,
    "bleed": Override.BLEED,
    "nb": Override.NO_BLEED,
    "no-bleed": Override.NO_BLEED,
}

SEPARATOR = "--"


@dataclass(frozen=True)
class NameOverrides:
    name: str
    add: frozenset[FixMethod] = frozenset()
    remove: frozenset[FixMethod] = frozenset()

    @property
    def has_overrides(self) -> bool:
        return bool(self.add or self.remove)

    def resolve(self, methods: list[FixMethod]) -> list[FixMethod]:
        """Apply the overrides to ``methods``; crop always precedes bleed."""
        selected = {method for method in [*methods, *self.add] if method not in self.remove}
        return sorted(selected, key=lambda method: method.order)


def tokenize(folder_name: str) -> tuple[str, list[Override]]:
    """Split trailing ``--<token>`` suffixes off ``folder_name``.

    Returns the bare name and the overrides, nearest-to-the-end first.
    """
    name = folder_name
    overrides: list[Override] = []
    while True:
        head, sep, token = name.rpartition(SEPARATOR)
        if not sep or not head:
            break
        override = TOKENS.get(token)
        if override is None:
            raise UnknownOverrideToken(folder_name, token)
        overrides.append(override)
        name = head
    return name, overrides


def parse_name_overrides(folder_name: str) -> NameOverrides:
    name, overrides = tokenize(folder_name)
    add: set[FixMethod] = set()
    remove: set[FixMethod] = set()
    for override in overrides:
        if override is Override.CROP:
            add.add(FixMethod.CROP)
        elif override is Override.NO_CROP:
            remove.add(FixMethod.CROP)
        elif override is Override.BLEED:
            add.add(FixMethod.BLEED)
        else:
            remove.add(FixMethod.BLEED)
    return NameOverrides(name=name, add=frozenset(add), remove=frozenset(remove))
