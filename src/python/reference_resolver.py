"""
Reference Resolver

Turns one utterance into zero or more ParsedReference values. Resolution runs
an ordered cascade of strategies; the first one that produces references wins:

1. Navigation commands ("next verse") are never Scripture -> no match
2. "chapter 3 verse 5" with no book, using the context book
3. "verse 7" / "verses 2 and 3" with no book, using the context book and chapter
4. "Matthew chapter 5" / "chapter 5 of Matthew"
5. Full grammar parse
6. Grammar parse with the context reference as a hint
7. Same, with the raw text of the last resolved utterance
8. Bare chapter/verse numbers spliced onto the last resolved reference

Each ScriptureSession owns its own ParseContext, so two transcription streams
can resolve independently. The context is overwritten from the first reference
of every successful resolution.
"""

import os
import re
import sys
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from bible_books import OSIS_TO_BOOK, canonical_book_name, chapter_count, osis_code
from reference_grammar import PassageEntity, ReferenceGrammar
from verse_dataset import MAX_VERSES_PER_CHAPTER
from reference_normalizer import (
    VERSE_LIST_PATTERN,
    contains_bible_book,
    is_navigation_command,
    normalize,
    parse_verse_range_list,
)

# Set to "true" to trace every resolution on stderr
DEBUG_PARSE_ENV = 'SMARTVERSES_DEBUG_PARSE'

# Recursion limit when a context-assisted parse hands back an OSIS string
MAX_CONTEXT_DEPTH = 1

_EXPLICIT_CHAPTER_RE = re.compile(r'\b(?:chapter|ch\.?)\s*(\d{1,3})\b', re.IGNORECASE)
_VERSE_PHRASE_RE = re.compile(
    rf'\b(?:verses?|vv?\.?|vs|v)\s*({VERSE_LIST_PATTERN})',
    re.IGNORECASE,
)
_CHAPTER_ONLY_RES = [
    # "Matthew chapter 5", "the book of Luke chapter 3"
    (re.compile(r'^(?:the\s+book\s+of\s+)?([A-Za-z0-9\s]+?)\s+chapter\s+(\d+)$', re.IGNORECASE), 1, 2),
    # "chapter 5 of Matthew"
    (re.compile(r'^chapter\s+(\d+)\s+of\s+([A-Za-z0-9\s]+)$', re.IGNORECASE), 2, 1),
]
_FALLBACK_CHAPTER_RE = re.compile(r'(?:chapter|ch\.?)\s*(\d+)', re.IGNORECASE)
_FALLBACK_VERSE_RE = re.compile(r'(?:verse|v\.?)\s*(\d+)', re.IGNORECASE)
_FULL_REFERENCE_RE = re.compile(r'^(.+?)\s+(\d+):(\d+)$')


def _debug_enabled() -> bool:
    return os.environ.get(DEBUG_PARSE_ENV, '').lower() in ('1', 'true', 'yes')


def _debug(message: str):
    if _debug_enabled():
        print(f"  ℹ [parse] {message}", file=sys.stderr)


# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class ParsedReference:
    """
    One resolved passage.

    `book` is the canonical display name used as the verse dataset key prefix,
    `full_book_name` the grammar's own identifier (OSIS code). `end_chapter`
    is set only for ranges that cross a chapter boundary.
    """
    book: str
    full_book_name: str
    chapter: int
    start_verse: int
    end_verse: int
    display_ref: str
    end_chapter: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'book': self.book,
            'fullBookName': self.full_book_name,
            'chapter': self.chapter,
            'startVerse': self.start_verse,
            'endVerse': self.end_verse,
            'endChapter': self.end_chapter,
            'displayRef': self.display_ref,
        }


@dataclass
class ParseContext:
    """The last resolved reference. Every field is None until something resolves."""
    book: Optional[str] = None
    chapter: Optional[int] = None
    verse: Optional[int] = None
    full_reference: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['fullReference'] = data.pop('full_reference')
        return data


def create_display_ref(book: str, chapter: int, start_verse: int,
                       end_verse: Optional[int] = None, end_chapter: Optional[int] = None) -> str:
    """"John 3:16", "John 3:16-18" or "John 3:36-4:2"."""
    if end_verse and end_verse != start_verse or (end_chapter and end_chapter != chapter):
        if end_chapter and end_chapter != chapter:
            return f"{book} {chapter}:{start_verse}-{end_chapter}:{end_verse}"
        return f"{book} {chapter}:{start_verse}-{end_verse}"
    return f"{book} {chapter}:{start_verse}"


def make_reference(book: str, chapter: int, start_verse: int,
                   end_verse: Optional[int] = None, end_chapter: Optional[int] = None) -> ParsedReference:
    """Build a ParsedReference from a canonical display book name."""
    end_verse = end_verse if end_verse is not None else start_verse
    if end_chapter == chapter:
        end_chapter = None
    return ParsedReference(
        book=book,
        full_book_name=osis_code(book) or book,
        chapter=chapter,
        start_verse=start_verse,
        end_verse=end_verse,
        display_ref=create_display_ref(book, chapter, start_verse, end_verse, end_chapter),
        end_chapter=end_chapter,
    )


def reference_from_entity(entity: PassageEntity) -> Optional[ParsedReference]:
    """
    Convert one grammar entity into a ParsedReference.

    Entities come from a pluggable collaborator, so every field is checked
    rather than trusted. Returns None for invalid or malformed entities.
    """
    try:
        if not getattr(entity, 'valid', False):
            return None
        start = entity.start
        end = getattr(entity, 'end', None) or start
        book = OSIS_TO_BOOK.get(start.book) or canonical_book_name(str(start.book))
        chapter = int(start.chapter)
        if not book or chapter < 1:
            return None
        start_verse = int(start.verse) if start.verse is not None else 1
        end_chapter = int(end.chapter) if end.chapter else chapter
        end_verse = int(end.verse) if end.verse is not None else start_verse
    except (AttributeError, TypeError, ValueError):
        return None

    if start_verse < 1 or end_chapter < chapter:
        return None
    if end_chapter == chapter and end_verse < start_verse:
        return None
    return make_reference(book, chapter, start_verse, end_verse, end_chapter)


# ============================================================================
# SESSION
# ============================================================================

# A strategy returns a list of references on success, None to fall through,
# or an empty list to stop the cascade with no match.
Strategy = Callable[[str, str, bool, int], Optional[List[ParsedReference]]]


class ScriptureSession:
    """
    One conversation's resolver state.

    Args:
        grammar: Grammar collaborator (parse / parse_with_context / osis /
            resolve_book_name). Defaults to ReferenceGrammar().
    """

    def __init__(self, grammar=None):
        self.grammar = grammar if grammar is not None else ReferenceGrammar()
        self.context = ParseContext()
        self.legacy_context: Optional[str] = None
        self.strategies: Tuple[Strategy, ...] = (
            self._navigation_filter,
            self._contextual_chapter_verse,
            self._contextual_verse_only,
            self._chapter_only,
            self._grammar_parse,
            self._context_assisted,
            self._legacy_context_assisted,
            self._regex_context_splice,
        )

    def reset(self):
        """Forget the last resolved reference."""
        self.context = ParseContext()
        self.legacy_context = None

    def get_context(self) -> ParseContext:
        """Snapshot of the current context; changing it does not affect the session."""
        return replace(self.context)

    def resolve(self, text: str, _depth: int = 0) -> Optional[List[ParsedReference]]:
        """
        Resolve text into references, or None when nothing is found.

        Never raises: a failing strategy is logged and the next one runs.
        """
        if not text or not text.strip():
            return None

        try:
            normalized = normalize(text)
            has_book = contains_bible_book(normalized)
        except Exception as e:
            print(f"  ⚠ Normalization failed for '{text}': {e}", file=sys.stderr)
            normalized, has_book = text.strip(), contains_bible_book(text)
        _debug(f"raw={text!r} normalized={normalized!r} has_book={has_book}")

        for strategy in self.strategies:
            try:
                references = strategy(text, normalized, has_book, _depth)
            except Exception as e:
                print(f"  ⚠ {strategy.__name__} failed for '{text}': {e}", file=sys.stderr)
                continue
            if references is None:
                continue
            if not references:
                return None
            _debug(f"{strategy.__name__} -> {[r.display_ref for r in references]}")
            self.update_context(references, text)
            return references

        _debug("no match")
        return None

    def update_context(self, references: List[ParsedReference], raw: str):
        first = references[0]
        chapter = first.end_chapter or first.chapter
        self.context = ParseContext(
            book=first.book,
            chapter=chapter,
            verse=first.end_verse,
            full_reference=f"{first.book} {chapter}:{first.end_verse}",
        )
        self.legacy_context = raw

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _navigation_filter(self, raw, text, has_book, depth):
        if is_navigation_command(raw):
            return []
        return None

    def _verse_ranges(self, text: str) -> Optional[List[Tuple[int, int]]]:
        """Ranges named by a verse phrase; None when there is no verse phrase."""
        match = _VERSE_PHRASE_RE.search(text)
        return parse_verse_range_list(match.group(1)) if match else None

    def _last_verse(self, book: str, chapter: int) -> int:
        lookup = getattr(self.grammar, 'last_verse', None)
        if callable(lookup):
            try:
                last = lookup(book, chapter)
            except Exception as e:
                print(f"  ⚠ Versification lookup failed for {book} {chapter}: {e}", file=sys.stderr)
                last = None
            if isinstance(last, int) and last > 0:
                return last
        return MAX_VERSES_PER_CHAPTER

    def _in_range(self, book: str, chapter: int, verse: int) -> bool:
        if not 1 <= chapter <= chapter_count(book):
            return False
        return 1 <= verse <= self._last_verse(book, chapter)

    def _contextual_chapter_verse(self, raw, text, has_book, depth):
        """"chapter 3 verse 5" / "chapter 4" in the context book."""
        if has_book or not self.context.book:
            return None
        chapter_match = _EXPLICIT_CHAPTER_RE.search(text)
        if not chapter_match:
            return None
        book = self.context.book
        chapter = int(chapter_match.group(1))
        if not 1 <= chapter <= chapter_count(book):
            return []
        ranges = self._verse_ranges(text)
        if ranges is None:
            ranges = [(1, 1)]
        if not ranges or not all(self._in_range(book, chapter, end) for _, end in ranges):
            return []
        return [make_reference(book, chapter, start, end) for start, end in ranges]

    def _contextual_verse_only(self, raw, text, has_book, depth):
        """"verse 7" / "from verse 18" / "verses 2 and 3" in the context chapter."""
        if has_book or not self.context.book or not self.context.chapter:
            return None
        if _EXPLICIT_CHAPTER_RE.search(text):
            return None
        ranges = self._verse_ranges(text)
        if ranges is None:
            return None
        book, chapter = self.context.book, self.context.chapter
        if not ranges or not all(self._in_range(book, chapter, end) for _, end in ranges):
            return []
        return [make_reference(book, chapter, start, end) for start, end in ranges]

    def _chapter_only(self, raw, text, has_book, depth):
        for pattern, book_group, chapter_group in _CHAPTER_ONLY_RES:
            match = pattern.match(text.strip())
            if not match:
                continue
            book = self.grammar.resolve_book_name(match.group(book_group).strip())
            chapter = int(match.group(chapter_group))
            if not book or not 1 <= chapter <= chapter_count(book):
                return None
            return [make_reference(book, chapter, 1)]
        return None

    def _grammar_parse(self, raw, text, has_book, depth):
        references = [
            reference for reference in
            (reference_from_entity(entity) for entity in self.grammar.parse(text))
            if reference is not None
        ]
        return references or None

    def _resolve_with_hint(self, text: str, hint: str, depth: int) -> Optional[List[ParsedReference]]:
        if depth >= MAX_CONTEXT_DEPTH:
            return None
        self.grammar.parse_with_context(text, hint)
        osis = self.grammar.osis()
        if not osis:
            return None
        _debug(f"context hint {hint!r} -> {osis}")
        return self.resolve(osis, _depth=depth + 1)

    def _context_assisted(self, raw, text, has_book, depth):
        if has_book or not self.context.full_reference:
            return None
        return self._resolve_with_hint(text, self.context.full_reference, depth)

    def _legacy_context_assisted(self, raw, text, has_book, depth):
        if has_book or not self.legacy_context or self.legacy_context == raw:
            return None
        return self._resolve_with_hint(text, self.legacy_context, depth)

    def _regex_context_splice(self, raw, text, has_book, depth):
        """Last resort: graft "chapter N" / "verse N" onto the last resolved reference."""
        if has_book or not self.legacy_context:
            return None
        chapter_match = _FALLBACK_CHAPTER_RE.search(raw)
        verse_match = _FALLBACK_VERSE_RE.search(raw)
        if not chapter_match and not verse_match:
            return None

        book, chapter, verse = self.context.book, self.context.chapter, self.context.verse
        legacy = _FULL_REFERENCE_RE.match(self.legacy_context.strip())
        if legacy:
            book = canonical_book_name(legacy.group(1)) or book
            chapter, verse = int(legacy.group(2)), int(legacy.group(3))
        if not book or chapter is None or verse is None:
            return None

        chapter = int(chapter_match.group(1)) if chapter_match else chapter
        verse = int(verse_match.group(1)) if verse_match else verse
        if not self._in_range(book, chapter, verse):
            return None
        return [make_reference(book, chapter, verse)]
