"""
Sorted dictionary store
Case/accent-insensitive lookups over a JSON-backed list of definitions
"""

from .collation import Collator
from .entry import DictEntry
from .errors import DictionaryError, DictionaryLoadError, StoreNotInitializedError
from .store import DictionaryStore, InsertResult, open_store

__all__ = [
    'Collator',
    'DictEntry',
    'DictionaryError',
    'DictionaryLoadError',
    'DictionaryStore',
    'InsertResult',
    'StoreNotInitializedError',
    'open_store',
]
