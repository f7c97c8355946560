"""Exception types for the dictionary store."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class DictionaryError(Exception):
    """Base class for dictionary store errors."""


class DictionaryLoadError(DictionaryError):
    """Raised when the backing JSON file cannot be read or parsed."""

    def __init__(self, path: Path, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Failed to load dictionary data from {path}"
        super().__init__(message)
        self.path = path


class StoreNotInitializedError(DictionaryError):
    """Raised when a lookup is attempted before the store has been sorted."""

    def __init__(self) -> None:
        super().__init__("DictionaryStore.init() must be called before lookups")
