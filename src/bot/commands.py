#!/usr/bin/env python3
"""
Dictionary command handlers

Turns chat commands into DictionaryStore operations and formats replies:

  /dict PHRASE               → definition + author, or "no definition"
  /define PHRASE = MEANING   → adds the entry unless it already exists
  /index TEXT                → names of entries whose definition contains TEXT
  /status                    → entry count and store counters

Handlers never raise. Any failure is logged and the user gets an apology.
"""

import asyncio
import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Tuple, Union

from dictionary.store import DictionaryStore, InsertResult

logger = logging.getLogger(__name__)

ERROR_REPLY = "Something went wrong on my end. Try again in a moment."


def parse_define_args(text: str) -> Optional[Tuple[str, str]]:
    """
    Split "/define" arguments into (phrase, definition).

    "phrase words = definition" splits on the first '='; without one the
    first word is the phrase and the rest is the definition. Returns None
    when either half is missing.
    """
    text = (text or "").strip()
    if "=" in text:
        phrase, _, definition = text.partition("=")
    else:
        parts = text.split(None, 1)
        if len(parts) < 2:
            return None
        phrase, definition = parts

    phrase = phrase.strip()
    definition = definition.strip()
    if not phrase or not definition:
        return None
    return phrase, definition


class DictCommands:
    """Reply formatting for the dictionary commands."""

    def __init__(
        self,
        store: DictionaryStore,
        wait_for_flush: bool = False,
        flush_timeout_sec: float = 5.0,
    ):
        self.store = store
        self.wait_for_flush = wait_for_flush
        self.flush_timeout_sec = flush_timeout_sec

    def lookup(self, phrase: str) -> str:
        phrase = (phrase or "").strip()
        if not phrase:
            return "DICT entry for what, /dict WHAT"

        try:
            entry = self.store.find(phrase)
        except Exception as e:
            logger.error("Failed to handle DICT command for %r: %s", phrase, e)
            return ERROR_REPLY

        if entry is None:
            return f"DICT: No definition for {phrase}"
        return f"DICT: {phrase} = {entry.definition} [added by: {entry.author}]"

    def _insert(self, phrase: str, definition: str, author: str) -> Union[str, InsertResult]:
        """Insert and return the InsertResult, or the final reply if there is nothing to wait for."""
        if not phrase or not definition:
            logger.warning("Missing data for define command: phrase=%r definition=%r", phrase, definition)
            return "Missing entries for define command, need phrase and definition"

        try:
            result = self.store.insert(phrase, definition, author)
        except ValueError as e:
            logger.warning("Rejected definition for %r: %s", phrase, e)
            return "DICT: That definition contains characters I can't store."
        except Exception as e:
            logger.error("Failed to set definition for %r: %s", phrase, e)
            return ERROR_REPLY

        if not result.created:
            existing = result.entry
            return (
                f"DICT: Definition for {phrase} already exists as: "
                f"{existing.definition} by {existing.author}"
            )
        return result

    def _added_reply(self, phrase: str, saved: bool) -> str:
        if not saved:
            return (
                f"DICT: Definition for {phrase} added, "
                "but it could not be saved to disk yet."
            )
        return f"DICT: Definition for {phrase} added successfully."

    def define(self, phrase: str, definition: str, author: str) -> str:
        """Blocking variant; waits on the write in the calling thread when wait_for_flush is set."""
        phrase = (phrase or "").strip()
        definition = (definition or "").strip()
        outcome = self._insert(phrase, definition, author)
        if isinstance(outcome, str):
            return outcome

        saved = True
        if self.wait_for_flush and outcome.flush is not None:
            try:
                saved = outcome.flush.result(timeout=self.flush_timeout_sec)
            except FutureTimeoutError:
                logger.warning("Timed out waiting for dictionary write after defining %r", phrase)
                saved = False
            except Exception as e:
                logger.error("Dictionary write failed after defining %r: %s", phrase, e)
                saved = False
        return self._added_reply(phrase, saved)

    async def define_async(self, phrase: str, definition: str, author: str) -> str:
        """Event-loop variant of define; the write is awaited, never blocked on."""
        phrase = (phrase or "").strip()
        definition = (definition or "").strip()
        outcome = self._insert(phrase, definition, author)
        if isinstance(outcome, str):
            return outcome

        saved = True
        if self.wait_for_flush and outcome.flush is not None:
            # shield so a timeout does not cancel the queued write
            pending = asyncio.shield(asyncio.wrap_future(outcome.flush))
            try:
                saved = await asyncio.wait_for(pending, timeout=self.flush_timeout_sec)
            except asyncio.TimeoutError:
                logger.warning("Timed out waiting for dictionary write after defining %r", phrase)
                saved = False
            except Exception as e:
                logger.error("Dictionary write failed after defining %r: %s", phrase, e)
                saved = False
        return self._added_reply(phrase, saved)

    def search(self, search_string: str) -> str:
        search_string = (search_string or "").strip().lower()
        if not search_string:
            return "Search for what, /index TEXT"

        try:
            matches = self.store.search(search_string)
        except Exception as e:
            logger.error("Failed to handle index command for %r: %s", search_string, e)
            return ERROR_REPLY

        if not matches:
            return f"Search string {search_string} not found in entries."

        names = ", ".join(f'"{entry.name}"' for entry in matches)
        return f"Search string {search_string} found in entries: {names}"

    def status(self) -> str:
        stats = self.store.get_stats()
        lines = ["Dictionary Status:"]
        lines.append(f"  Entries: {stats['entries']} ({'sorted' if stats['sorted'] else 'UNSORTED'})")
        lines.append(f"  Collation: {self.store.collator.sensitivity}")
        lines.append(f"  Lookups: {stats['lookups']} (hits {stats['hits']}, misses {stats['misses']})")
        lines.append(f"  Inserts: {stats['inserts']} (duplicates rejected {stats['duplicates']})")
        lines.append(f"  Writes: {stats['flushes']} ok, {stats['flush_failures']} failed")
        return "\n".join(lines)
