"""Locale-style string collation for dictionary entry names.

Sensitivity levels follow the Intl / ICU naming:

  base    → a = A = á   (case and accents folded)
  accent  → a = A, a ≠ á
  case    → a = á, a ≠ A
  variant → everything distinct

Keys are built from the NFD decomposition of the text, so composed and
decomposed spellings of the same accented letter always compare equal.
"""

from __future__ import annotations

import unicodedata
from typing import Tuple

SENSITIVITIES = ("base", "accent", "case", "variant")
DEFAULT_SENSITIVITY = "base"


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


class Collator:
    """Total order over entry names at a fixed sensitivity."""

    def __init__(self, sensitivity: str = DEFAULT_SENSITIVITY) -> None:
        if sensitivity not in SENSITIVITIES:
            raise ValueError(
                f"Unknown collation sensitivity {sensitivity!r}, expected one of {SENSITIVITIES}"
            )
        self._sensitivity = sensitivity
        self._fold_case = sensitivity in ("base", "accent")
        self._fold_accents = sensitivity in ("base", "case")

    @property
    def sensitivity(self) -> str:
        return self._sensitivity

    def sort_key(self, text: str) -> Tuple[str, str]:
        """
        Primary key is the fully folded text; the secondary key carries
        whatever the sensitivity still distinguishes.
        """
        primary = strip_diacritics(text).casefold()
        secondary = unicodedata.normalize("NFD", text)
        if self._fold_accents:
            secondary = strip_diacritics(secondary)
        if self._fold_case:
            secondary = secondary.casefold()
        return primary, secondary

    def compare(self, a: str, b: str) -> int:
        left = self.sort_key(a)
        right = self.sort_key(b)
        if left < right:
            return -1
        if left > right:
            return 1
        return 0

    def equivalent(self, a: str, b: str) -> bool:
        return self.compare(a, b) == 0

    def __repr__(self) -> str:
        return f"Collator(sensitivity={self._sensitivity!r})"
