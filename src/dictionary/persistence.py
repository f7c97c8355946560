"""
JSON persistence for the dictionary store.

The backing file is a JSON array of {"entry", "definition", "author"}
objects, pretty-printed with 2-space indentation so it diffs cleanly.
Loading and saving hold no state: both operate on a path and a
snapshot of entries.
"""

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .entry import DictEntry, entry_errors
from .errors import DictionaryLoadError
from .timing import perf_timer

logger = logging.getLogger(__name__)


@dataclass
class RejectedRecord:
    """A record from the backing file that failed validation."""
    index: int
    record: Any
    errors: List[str]


@dataclass
class LoadResult:
    entries: List[DictEntry] = field(default_factory=list)
    rejected: List[RejectedRecord] = field(default_factory=list)


def load_entries(path: Union[str, Path]) -> LoadResult:
    """
    Read dictionary entries from a JSON file.

    Raises DictionaryLoadError if the file is missing, unreadable, or not
    a JSON array. Individual malformed records are quarantined into
    LoadResult.rejected rather than failing the whole load.
    """
    path = Path(path)

    with perf_timer(f"load_entries({path})", logger):
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError as e:
            raise DictionaryLoadError(path, f"Dictionary file not found: {path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise DictionaryLoadError(path, f"Could not read dictionary file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise DictionaryLoadError(path, f"Malformed JSON in {path}: {e}") from e

        if not isinstance(data, list):
            raise DictionaryLoadError(
                path, f"Expected a JSON array in {path}, got {type(data).__name__}"
            )

        result = LoadResult()
        for index, record in enumerate(data):
            errors = entry_errors(record)
            if errors:
                logger.warning(
                    "Quarantined dictionary record #%d in %s: %s",
                    index, path, "; ".join(errors),
                )
                result.rejected.append(RejectedRecord(index=index, record=record, errors=errors))
                continue
            result.entries.append(DictEntry.from_dict(record))

    logger.info(
        "Loaded %d dictionary entries from %s (%d rejected)",
        len(result.entries), path, len(result.rejected),
    )
    return result


def quarantine_path(path: Union[str, Path]) -> Path:
    path = Path(path)
    return path.with_name(path.name + ".rejected")


def _read_quarantine(target: Path) -> Optional[List[Any]]:
    """Existing sidecar contents, [] if absent, None if it cannot be parsed."""
    if not target.exists():
        return []
    try:
        with target.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Could not read quarantine file %s: %s", target, e)
        return None
    if not isinstance(data, list):
        logger.warning("Quarantine file %s is not a JSON array", target)
        return None
    return data


def quarantine_records(path: Union[str, Path], rejected: List[RejectedRecord]) -> Path:
    """
    Add rejected raw records to the sidecar next to the dictionary file.

    Records from earlier runs are kept: new ones are appended, and a
    record already present is not added twice. If the existing sidecar
    is unreadable it is left alone and a timestamped one is written.
    """
    target = quarantine_path(path)
    existing = _read_quarantine(target)
    if existing is None:
        target = target.with_name(f"{target.name}.{int(time.time())}")
        existing = []

    known = [item.get("record") for item in existing if isinstance(item, dict)]
    now = time.time()
    added = 0
    for item in rejected:
        if item.record in known:
            continue
        existing.append({
            "index": item.index,
            "errors": item.errors,
            "record": item.record,
            "quarantined_at": now,
        })
        known.append(item.record)
        added += 1

    if added:
        text = json.dumps(existing, indent=2, ensure_ascii=False) + "\n"
        _atomic_write_bytes(target, text.encode("utf-8", errors="backslashreplace"))
    logger.warning(
        "Moved %d malformed dictionary records to %s (%d new)",
        len(rejected), target, added,
    )
    return target


def _serialize(entries: Iterable[DictEntry]) -> bytes:
    payload: List[Dict[str, str]] = [entry.to_dict() for entry in entries]
    return (json.dumps(payload, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "wb", dir=str(path.parent),
        prefix=f".{path.name}.", suffix=".tmp", delete=False,
    )
    tmp_name = handle.name
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def save_entries(path: Union[str, Path], entries: Iterable[DictEntry], atomic: bool = True) -> None:
    """
    Overwrite the file at path with the given entries.

    The entries are encoded before any file is touched, so text that
    cannot be written as UTF-8 raises UnicodeEncodeError and leaves the
    existing file as it was. With atomic=True the data goes to a temp
    file in the same directory and is moved into place with os.replace;
    the temp file is removed if anything fails. Errors propagate.
    """
    path = Path(path)
    data = _serialize(entries)

    with perf_timer(f"save_entries({path})", logger):
        if not atomic:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as handle:
                handle.write(data)
            return

        _atomic_write_bytes(path, data)
