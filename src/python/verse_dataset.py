"""
Verse Dataset

Read-only "{Book} {chapter}:{verse}" -> text mapping used for verse lookup,
split validation and navigation. The JSON file is produced by
dataset_builder.py and loaded once per VerseDataset instance.

Navigation walks forward/backward one verse at a time and crosses chapter and
book boundaries (Exodus 1:1 -> Genesis 50:26, Genesis 50:26 -> Exodus 1:1).
"""

import json
import os
import re
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from bible_books import chapter_count, next_book, previous_book

# ============================================================================
# CONFIGURATION
# ============================================================================

DEFAULT_VERSES_PATH = Path(__file__).parent / "data" / "verses-kjv.json"

# Overrides DEFAULT_VERSES_PATH when set
VERSES_PATH_ENV = 'SMARTVERSES_VERSES_PATH'

# Upper bound when scanning down for the last verse of a chapter (Psalm 119 has 176)
MAX_VERSES_PER_CHAPTER = 200


class VerseDatasetError(Exception):
    """Raised when the verse dataset file is missing, unreadable or malformed."""


# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class VerseLocation:
    """A single verse position."""
    book: str
    chapter: int
    verse: int

    @property
    def display_ref(self) -> str:
        return verse_key(self.book, self.chapter, self.verse)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'book': self.book,
            'chapter': self.chapter,
            'verse': self.verse,
            'displayRef': self.display_ref,
        }


@dataclass(frozen=True)
class VerseText:
    """One looked-up verse of a passage."""
    verse: int
    text: str
    display_ref: str
    chapter: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'verse': self.verse,
            'text': self.text,
            'displayRef': self.display_ref,
        }


@dataclass(frozen=True)
class LoadedVerse:
    """A verse loaded by book/chapter/verse components."""
    book: str
    chapter: int
    verse: int
    verse_text: str

    @property
    def display_ref(self) -> str:
        return verse_key(self.book, self.chapter, self.verse)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reference': self.display_ref,
            'displayRef': self.display_ref,
            'verseText': self.verse_text,
            'book': self.book,
            'chapter': self.chapter,
            'verse': self.verse,
        }


@dataclass(frozen=True)
class NavigationResult:
    """Neighbours of a verse, computed fresh on every call."""
    has_previous: bool
    has_next: bool
    previous: Optional[VerseLocation] = None
    next: Optional[VerseLocation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hasPrevious': self.has_previous,
            'hasNext': self.has_next,
            'previous': self.previous.to_dict() if self.previous else None,
            'next': self.next.to_dict() if self.next else None,
        }


# ============================================================================
# TEXT HELPERS
# ============================================================================


def verse_key(book: str, chapter: int, verse: int) -> str:
    return f"{book} {chapter}:{verse}"


def clean_verse_text(text: str) -> str:
    """Strip a leading '#' paragraph marker and unwrap [italic] translator additions."""
    text = re.sub(r'^#\s*', '', text)
    return re.sub(r'\[([^\]]+)\]', r'\1', text)


# ============================================================================
# DATASET
# ============================================================================


class VerseDataset:
    """
    Lazily loaded verse dataset.

    Args:
        path: JSON file with "Book C:V" keys. Defaults to $SMARTVERSES_VERSES_PATH,
            then data/verses-kjv.json next to this module.
        verses: In-memory mapping to use instead of a file.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None,
                 verses: Optional[Mapping[str, str]] = None):
        if path is None and verses is None:
            path = os.environ.get(VERSES_PATH_ENV) or DEFAULT_VERSES_PATH
        self.path = Path(path) if path is not None else None
        self._verses: Optional[Mapping[str, str]] = (
            MappingProxyType(dict(verses)) if verses is not None else None
        )
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._verses is not None

    def load(self) -> Mapping[str, str]:
        """
        Return the verse mapping, reading the file on first use.

        Concurrent first callers share one read. A failed read is not cached,
        so a later call retries.

        Raises:
            VerseDatasetError: the file cannot be read or is not a JSON object
        """
        verses = self._verses
        if verses is not None:
            return verses
        with self._lock:
            if self._verses is None:
                self._verses = self._read_file()
            return self._verses

    def _read_file(self) -> Mapping[str, str]:
        if self.path is None:
            raise VerseDatasetError("No verse dataset path configured")
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise VerseDatasetError(f"Could not load verse dataset {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise VerseDatasetError(f"Verse dataset {self.path} is not a JSON object")
        print(f"  ✓ Loaded {len(data)} verses from {self.path}", file=sys.stderr)
        return MappingProxyType({str(key): str(value) for key, value in data.items()})

    def _safe_load(self) -> Optional[Mapping[str, str]]:
        """load() for lookup paths: failures are logged and read as "no data"."""
        try:
            return self.load()
        except VerseDatasetError as e:
            print(f"  ⚠ {e}", file=sys.stderr)
            return None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def verse_exists(self, book: str, chapter: int, verse: int) -> bool:
        verses = self._safe_load()
        return verses is not None and verse_key(book, chapter, verse) in verses

    def get_text(self, book: str, chapter: int, verse: int) -> Optional[str]:
        """Cleaned text of one verse, or None when it is not in the dataset."""
        verses = self._safe_load()
        if verses is None:
            return None
        text = verses.get(verse_key(book, chapter, verse))
        return clean_verse_text(text) if text else None

    def last_verse_in_chapter(self, book: str, chapter: int) -> Optional[int]:
        verses = self._safe_load()
        if verses is None:
            return None
        for verse in range(MAX_VERSES_PER_CHAPTER, 0, -1):
            if verse_key(book, chapter, verse) in verses:
                return verse
        return None

    def lookup_one(self, reference) -> Optional[str]:
        """Text of the first verse of a parsed reference."""
        return self.get_text(reference.book, reference.chapter, reference.start_verse)

    def lookup_range(self, reference) -> List[VerseText]:
        """
        Every verse of a parsed reference, in order.

        Cross-chapter references walk each intermediate chapter to its last
        verse. Verses missing from the dataset are skipped.
        """
        verses = self._safe_load()
        if verses is None:
            return []

        results: List[VerseText] = []
        start_chapter = reference.chapter
        end_chapter = getattr(reference, 'end_chapter', None) or start_chapter

        for chapter in range(start_chapter, end_chapter + 1):
            first = reference.start_verse if chapter == start_chapter else 1
            if chapter == end_chapter:
                last = reference.end_verse
            else:
                last = self.last_verse_in_chapter(reference.book, chapter)
            if not last or last < first:
                continue
            for verse in range(first, last + 1):
                key = verse_key(reference.book, chapter, verse)
                text = verses.get(key)
                if text:
                    results.append(VerseText(
                        verse=verse, text=clean_verse_text(text), display_ref=key, chapter=chapter
                    ))
        return results

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def previous_verse(self, book: str, chapter: int, verse: int) -> Optional[VerseLocation]:
        """
        The verse before book chapter:verse.

        Same chapter first, then the last verse of the previous chapter, then
        (from chapter 1) the last verse of the previous book's last chapter.
        """
        if verse > 1 and self.verse_exists(book, chapter, verse - 1):
            return VerseLocation(book, chapter, verse - 1)

        if chapter > 1:
            last = self.last_verse_in_chapter(book, chapter - 1)
            return VerseLocation(book, chapter - 1, last) if last else None

        prior = previous_book(book)
        if prior is None:
            return None
        prior_chapter = chapter_count(prior)
        last = self.last_verse_in_chapter(prior, prior_chapter)
        return VerseLocation(prior, prior_chapter, last) if last else None

    def next_verse(self, book: str, chapter: int, verse: int) -> Optional[VerseLocation]:
        """The verse after book chapter:verse, crossing into the next chapter or book."""
        if self.verse_exists(book, chapter, verse + 1):
            return VerseLocation(book, chapter, verse + 1)
        if self.verse_exists(book, chapter + 1, 1):
            return VerseLocation(book, chapter + 1, 1)
        if chapter >= chapter_count(book):
            following = next_book(book)
            if following and self.verse_exists(following, 1, 1):
                return VerseLocation(following, 1, 1)
        return None

    def get_verse_navigation(self, book: str, chapter: int, verse: int) -> NavigationResult:
        previous = self.previous_verse(book, chapter, verse)
        following = self.next_verse(book, chapter, verse)
        return NavigationResult(
            has_previous=previous is not None,
            has_next=following is not None,
            previous=previous,
            next=following,
        )

    def load_verse_by_components(self, book: str, chapter: int, verse: int) -> Optional[LoadedVerse]:
        text = self.get_text(book, chapter, verse)
        if text is None:
            return None
        return LoadedVerse(book=book, chapter=chapter, verse=verse, verse_text=text)
