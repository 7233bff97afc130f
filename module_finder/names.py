"""Module names and the relative paths derived from them.

A module name is ``dotted.name`` optionally followed by ``:slot``. Two
directory layouts exist for a name under a repository root:

- current: ``dotted/name`` (dots become path separators, no slot)
- legacy:  ``dotted/name/<slot>`` (slot defaults to ``main``)

Descriptors are always probed in the legacy layout; the current form only
takes part in path filtering.
"""

import os
from dataclasses import dataclass

from .errors import NameFormatError

DEFAULT_SLOT = "main"


@dataclass(frozen=True)
class ModuleName:
    """Parsed module name."""

    name: str
    slot: str = DEFAULT_SLOT

    @classmethod
    def parse(cls, text: str) -> "ModuleName":
        """Parse ``name[:slot]``.

        A backslash escapes the next character, so ``a\\:b`` is the name
        ``a:b`` with the default slot.

        Raises:
            NameFormatError: Empty name or slot, more than one unescaped
                colon, or a dangling backslash.
        """
        name: list[str] = []
        slot: list[str] = []
        current = name
        has_slot = False
        i = 0
        while i < len(text):
            ch = text[i]
            if ch == "\\":
                if i + 1 == len(text):
                    raise NameFormatError(text, "trailing escape character")
                current.append(text[i + 1])
                i += 2
                continue
            if ch == ":":
                if has_slot:
                    raise NameFormatError(text, "more than one slot separator")
                has_slot = True
                current = slot
            else:
                current.append(ch)
            i += 1

        if not name:
            raise NameFormatError(text, "empty module name")
        if "" in "".join(name).split("."):
            raise NameFormatError(text, "empty name segment")
        if has_slot and not slot:
            raise NameFormatError(text, "empty slot")
        return cls("".join(name), "".join(slot) if has_slot else DEFAULT_SLOT)

    def __str__(self) -> str:
        text = _escape(self.name)
        if self.slot != DEFAULT_SLOT:
            text += ":" + _escape(self.slot)
        return text


def _escape(part: str) -> str:
    return part.replace("\\", "\\\\").replace(":", "\\:")


def to_path_string(module_name: str) -> str:
    """Current layout: dots replaced by the platform separator."""
    return module_name.replace(".", os.sep)


def to_legacy_path_string(module_name: str) -> str:
    """Legacy layout: ``name`` with dots as separators, then the slot directory.

    Raises:
        NameFormatError: The name cannot be parsed.
    """
    parsed = ModuleName.parse(module_name)
    return parsed.name.replace(".", os.sep) + os.sep + parsed.slot


def candidates(module_name: str) -> tuple[str, str]:
    """Return ``(current, legacy)`` relative paths for a module name."""
    return to_path_string(module_name), to_legacy_path_string(module_name)
