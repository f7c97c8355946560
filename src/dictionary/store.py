"""
Sorted in-memory dictionary backed by a JSON file.

Entries are always kept sorted by the store's Collator so lookups are a
binary search rather than a linear scan. New entries are appended and
the whole list is re-sorted, which keeps the code simple at the cost of
n log n work per insert; inserts are rare, human-triggered events.

Every mutation snapshots the list and hands it to a single-worker
executor, so writes land on disk in the same order the mutations
happened. The caller gets a Future for the write and may wait on it.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from .collation import Collator
from .config import DictConfig
from .entry import DictEntry, check_encodable
from .errors import DictionaryLoadError, StoreNotInitializedError
from .persistence import LoadResult, load_entries, quarantine_records, save_entries
from .timing import perf_timer

logger = logging.getLogger(__name__)

NOT_FOUND = -1

T = TypeVar("T")


def binary_search(items: Sequence[T], target: str, compare: Callable[[T, str], int]) -> int:
    """
    Index of an item comparing equal to target, or NOT_FOUND.

    If several items are equivalent to target any one of them may be
    returned. Undefined if items is not sorted by compare.
    """
    start = 0
    end = len(items) - 1

    while start <= end:
        middle = (start + end) // 2
        result = compare(items[middle], target)

        if result == 0:
            return middle
        if result < 0:
            start = middle + 1
        else:
            end = middle - 1

    return NOT_FOUND


@dataclass
class InsertResult:
    """Outcome of DictionaryStore.insert.

    created is False when an equivalent name already existed; entry is
    then the existing entry and flush is None.
    """
    created: bool
    entry: DictEntry
    flush: Optional["Future[bool]"] = None


class DictionaryStore:
    """
    Collator-sorted list of DictEntry with binary-search lookup.

    Lifecycle: construct from loaded entries, call init() once to sort,
    then find/insert/search. close() drains pending writes.
    """

    def __init__(
        self,
        entries: Optional[Iterable[DictEntry]] = None,
        collator: Optional[Collator] = None,
        path: Union[str, Path, None] = None,
        atomic_write: bool = True,
    ):
        self._entries: List[DictEntry] = list(entries or [])
        self._collator = collator or Collator()
        self.path = Path(path) if path is not None else None
        self.atomic_write = atomic_write

        self._lock = threading.RLock()
        self._writer: Optional[ThreadPoolExecutor] = None
        self._initialized = False
        self._sorted = False

        self.stats = {
            "lookups": 0,
            "hits": 0,
            "misses": 0,
            "inserts": 0,
            "duplicates": 0,
            "flushes": 0,
            "flush_failures": 0,
        }

    @property
    def collator(self) -> Collator:
        return self._collator

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def is_sorted(self) -> bool:
        return self._sorted

    # ── Ordering ─────────────────────────────────────────────────

    def init(self) -> None:
        """Sort the loaded entries. Safe to call again; re-sorting is idempotent."""
        with self._lock:
            self._sort()
            self._initialized = True

    def _sort(self) -> None:
        with perf_timer("sort dictionary", logger):
            try:
                self._entries.sort(key=lambda e: self._collator.sort_key(e.name))
                self._sorted = True
                logger.info("Sorted %d dictionary items.", len(self._entries))
            except Exception as e:
                self._sorted = False
                logger.error("Failed to sort dict data, got %s", e)

    def _compare_entry(self, entry: DictEntry, name: str) -> int:
        return self._collator.compare(entry.name, name)

    def index_of(self, name: str) -> int:
        """Position of name in the store, or NOT_FOUND."""
        if not self._initialized:
            raise StoreNotInitializedError()

        with self._lock:
            if self._sorted:
                return binary_search(self._entries, name, self._compare_entry)

            logger.warning("Dictionary is not sorted, falling back to linear lookup for %r", name)
            for index, entry in enumerate(self._entries):
                if self._compare_entry(entry, name) == 0:
                    return index
            return NOT_FOUND

    # ── Queries ──────────────────────────────────────────────────

    def count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return self.count()

    def entries(self) -> Tuple[DictEntry, ...]:
        """Snapshot of the entries in store order."""
        with self._lock:
            return tuple(self._entries)

    def find(self, name: str) -> Optional[DictEntry]:
        with self._lock:
            index = self.index_of(name)
            self.stats["lookups"] += 1
            if index == NOT_FOUND:
                self.stats["misses"] += 1
                return None
            self.stats["hits"] += 1
            return self._entries[index]

    def search(self, substring: str) -> List[DictEntry]:
        """Entries whose definition contains substring, case-insensitively, in store order."""
        needle = substring.lower()
        with self._lock:
            return [entry for entry in self._entries if needle in entry.definition.lower()]

    # ── Mutation ─────────────────────────────────────────────────

    def insert(self, name: str, definition: str, author: str) -> InsertResult:
        """
        Add a new entry unless an equivalent name already exists.

        The lookup, append, re-sort and write submission all happen under
        one lock, so two racing inserts of the same name cannot both win.
        """
        if not name:
            raise ValueError("entry name must not be empty")
        check_encodable(name=name, definition=definition, author=author)

        with self._lock:
            index = self.index_of(name)
            if index != NOT_FOUND:
                self.stats["duplicates"] += 1
                return InsertResult(created=False, entry=self._entries[index])

            entry = DictEntry(name=name, definition=definition, author=author)
            self._entries.append(entry)
            self._sort()
            self.stats["inserts"] += 1
            logger.info("Added dictionary entry %r by %s", name, author)

            return InsertResult(created=True, entry=entry, flush=self._submit_flush())

    # ── Persistence ──────────────────────────────────────────────

    def flush(self) -> "Future[bool]":
        """Queue a write of the current entries; the Future resolves to True on success."""
        with self._lock:
            return self._submit_flush()

    def _submit_flush(self) -> "Future[bool]":
        snapshot = list(self._entries)

        if self.path is None:
            done: "Future[bool]" = Future()
            done.set_result(True)
            return done

        if self._writer is None:
            self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dict-writer")
        return self._writer.submit(self._write_snapshot, snapshot)

    def _write_snapshot(self, snapshot: List[DictEntry]) -> bool:
        try:
            save_entries(self.path, snapshot, atomic=self.atomic_write)
        except Exception as e:
            with self._lock:
                self.stats["flush_failures"] += 1
            logger.error("Error flushing dict data file %s, got %r", self.path, e)
            return False

        with self._lock:
            self.stats["flushes"] += 1
        logger.info("Successfully wrote dict data (%d entries)", len(snapshot))
        return True

    def close(self, wait: bool = True) -> None:
        """Stop the writer, by default after pending writes finish."""
        if self._writer is not None:
            self._writer.shutdown(wait=wait)
            self._writer = None

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = dict(self.stats)
            stats["entries"] = len(self._entries)
            stats["sorted"] = self._sorted
            return stats


def open_store(config: DictConfig) -> DictionaryStore:
    """
    Load the configured dictionary file and return an initialized store.

    With strict_load off, a load failure is logged and the store starts
    empty; with it on, DictionaryLoadError propagates. Malformed records
    are moved to a sidecar file so the next write does not lose them.
    """
    path = config.dict_path
    try:
        result = load_entries(path)
    except DictionaryLoadError as e:
        if config.strict_load:
            raise
        logger.error("%s; starting with an empty dictionary", e)
        result = LoadResult()

    if result.rejected:
        if config.strict_load:
            raise DictionaryLoadError(
                path, f"{len(result.rejected)} malformed records in {path}"
            )
        quarantine_records(path, result.rejected)

    store = DictionaryStore(
        result.entries,
        collator=Collator(config.sensitivity),
        path=path,
        atomic_write=config.atomic_write,
    )
    store.init()
    return store
