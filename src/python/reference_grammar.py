"""
Reference Grammar

Default grammar collaborator for the reference resolver. Finds book mentions in
free text and reads the chapter/verse notation that follows each one:

- Standard: "John 3:16", "John 3:16-18", "John 3:36-4:2"
- Period: "Romans 12.1", OSIS strings "John.3.16", "Rom.3.5-Rom.3.7"
- Space separated: "Luke 3 3"
- Keywords: "Matthew chapter 5 verse 3", "John 3 verses 4 to 6"
- Chapter only: "Psalms 23" (expands to the whole chapter), "Matthew 5-7"
- Lists: "Romans 3:3, 5", "John 3:16 and 17", "Exodus 30:1; 31:1"

The resolver talks to any grammar through four calls: parse(),
parse_with_context(), osis() and resolve_book_name(). Entities come back as
PassageEntity values carrying OSIS book codes and a validity flag; chapters are
checked against the book table and verses against an optional versification
callback (usually the verse dataset's last-verse lookup).
"""

import re
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from bible_books import (
    BOOK_NAMES_PATTERN,
    OSIS_TO_BOOK,
    SINGLE_CHAPTER_BOOKS,
    canonical_book_name,
    chapter_count,
    osis_code,
)

# (book display name, chapter) -> last verse number, or None when unknown
LastVerseLookup = Callable[[str, int], Optional[int]]

# (start chapter, start verse, end chapter, end verse); verses are None for chapter-level spans
Span = Tuple[int, Optional[int], int, Optional[int]]

# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class BCV:
    """Book/chapter/verse point. `book` is an OSIS code ("John", "1Cor")."""
    book: str
    chapter: int
    verse: Optional[int] = None

    def osis(self) -> str:
        if self.verse is None:
            return f"{self.book}.{self.chapter}"
        return f"{self.book}.{self.chapter}.{self.verse}"


@dataclass(frozen=True)
class PassageEntity:
    """One passage reported by the grammar."""
    start: BCV
    end: BCV
    valid: bool = True

    def osis(self) -> str:
        if self.start == self.end:
            return self.start.osis()
        return f"{self.start.osis()}-{self.end.osis()}"


# ============================================================================
# PATTERNS
# ============================================================================

BOOK_MENTION_RE = re.compile(
    rf"(?<![A-Za-z0-9])(?:the\s+book\s+of\s+)?(?P<book>{BOOK_NAMES_PATTERN})\.?(?![A-Za-z])",
    re.IGNORECASE,
)

_OSIS_POINT = r'[1-3]?[A-Z][a-z]+\.\d{1,3}(?:\.\d{1,3})?'
_OSIS_LIST_RE = re.compile(
    rf'^\s*{_OSIS_POINT}(?:-{_OSIS_POINT})?(?:\s*,\s*{_OSIS_POINT}(?:-{_OSIS_POINT})?)*\s*$'
)
_OSIS_RANGE_RE = re.compile(
    r'(?P<b1>[1-3]?[A-Z][a-z]+)\.(?P<c1>\d{1,3})(?:\.(?P<v1>\d{1,3}))?'
    r'(?:-(?P<b2>[1-3]?[A-Z][a-z]+)\.(?P<c2>\d{1,3})(?:\.(?P<v2>\d{1,3}))?)?'
)

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<num>\d+)|(?P<colon>:)|(?P<dot>\.(?=\d))|(?P<dash>[-–—])"
    r"|(?P<comma>,)|(?P<semi>;)|(?P<amp>&)|(?P<word>[A-Za-z]+\.?)|(?P<other>\S))"
)

_WORD_KINDS = {
    'chapter': 'ch', 'chapters': 'ch', 'chap': 'ch', 'ch': 'ch',
    'verse': 'vs', 'verses': 'vs', 'v': 'vs', 'vs': 'vs', 'vv': 'vs',
    'and': 'and',
    'to': 'to', 'through': 'to', 'thru': 'to',
}

# Elliptical input resolved against a context reference
_CONTEXT_CHAPTER_RE = re.compile(r'\b(?:chapters?|ch)\.?\s*(\d{1,3})\b', re.IGNORECASE)
_CONTEXT_VERSE_RE = re.compile(
    r'\b(?:verses?|vv|vs|v)\.?\s*(\d{1,3})\b(?:\s*(?:-|to|through|thru)\s*(\d{1,3})\b)?',
    re.IGNORECASE,
)
_CONTEXT_BARE_RE = re.compile(
    r'^\s*(?:and\s+|also\s+)?(\d{1,3})(?:[:.](\d{1,3}))?'
    r'(?:\s*(?:-|to|through|thru)\s*(\d{1,3}))?\s*[.,;!?]?\s*$',
    re.IGNORECASE,
)


def _tokenize(tail: str) -> List[Tuple[str, str]]:
    """Split the text after a book mention into reference tokens, stopping at the first foreign word."""
    tokens: List[Tuple[str, str]] = []
    pos = 0
    while pos < len(tail):
        match = _TOKEN_RE.match(tail, pos)
        if not match or match.end() == pos:
            break
        pos = match.end()
        kind = match.lastgroup or 'other'
        value = match.group(kind)
        if kind == 'word':
            kind = _WORD_KINDS.get(value.lower().rstrip('.'), 'stop')
        elif kind == 'amp':
            kind = 'and'
        elif kind == 'other':
            kind = 'stop'
        if kind == 'stop' or (kind == 'num' and len(value) > 3):
            break
        tokens.append((kind, value))
    return tokens


class _TailReader:
    """Cursor over the tokens that follow one book mention."""

    def __init__(self, tokens: List[Tuple[str, str]]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[str]:
        index = self.pos + offset
        return self.tokens[index][0] if index < len(self.tokens) else None

    def number(self, offset: int = 0) -> int:
        return int(self.tokens[self.pos + offset][1])

    def at_verse_marker(self) -> bool:
        """Current token starts a ":V", ".V" or "verse V" suffix."""
        return self.peek() in ('colon', 'dot', 'vs') and self.peek(1) == 'num'


# ============================================================================
# GRAMMAR
# ============================================================================


class ReferenceGrammar:
    """
    Regex/token grammar over the 66-book alias table.

    Args:
        last_verse: Optional versification callback returning the last verse of
            a chapter. Without it every verse number is accepted.
    """

    def __init__(self, last_verse: Optional[LastVerseLookup] = None):
        self.last_verse = last_verse
        self._last_entities: List[PassageEntity] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def parse(self, text: str) -> List[PassageEntity]:
        """Parse every reference in text. Invalid passages are reported with valid=False."""
        self._last_entities = self._parse(text)
        return list(self._last_entities)

    def parse_with_context(self, text: str, context_reference: str) -> List[PassageEntity]:
        """
        Parse text, filling in what it leaves out from a previously resolved reference.

        "verse 17" with context "John 3:16" gives John 3:17; "chapter 5" gives
        John 5; a bare "17" continues the verse when the context has one.
        """
        entities = self._parse(text)
        if not any(entity.valid for entity in entities):
            anchor = self._context_anchor(context_reference)
            entities = self._parse_elliptical(text, anchor) if anchor else []
        self._last_entities = entities
        return list(entities)

    def osis(self) -> str:
        """Comma-separated OSIS serialisation of the valid passages from the most recent parse."""
        return ','.join(entity.osis() for entity in self._last_entities if entity.valid)

    def resolve_book_name(self, text: str) -> Optional[str]:
        """Canonical display name for a bare book mention, checked by parsing "{text} 1:1"."""
        if not text or not text.strip():
            return None
        candidate = re.sub(r'^([1-3])\s*(?=[A-Za-z])', r'\1 ', ' '.join(text.split()))
        for entity in self._parse(f"{candidate} 1:1"):
            if entity.valid:
                return OSIS_TO_BOOK.get(entity.start.book)
        return None

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _parse(self, text: str) -> List[PassageEntity]:
        if not text or not text.strip():
            return []

        if _OSIS_LIST_RE.match(text):
            return self._parse_osis_list(text)

        entities: List[PassageEntity] = []
        mentions = list(BOOK_MENTION_RE.finditer(text))
        for i, mention in enumerate(mentions):
            book = canonical_book_name(mention.group('book'))
            if not book:
                continue
            tail_end = mentions[i + 1].start() if i + 1 < len(mentions) else len(text)
            tokens = _tokenize(text[mention.end():tail_end])
            for span in self._read_spans(book, tokens):
                entities.append(self._entity(book, span))
        return entities

    def _parse_osis_list(self, text: str) -> List[PassageEntity]:
        entities: List[PassageEntity] = []
        for match in _OSIS_RANGE_RE.finditer(text):
            book = OSIS_TO_BOOK.get(match.group('b1'))
            if not book:
                continue
            start_chapter = int(match.group('c1'))
            start_verse = int(match.group('v1')) if match.group('v1') else None
            if match.group('b2'):
                if OSIS_TO_BOOK.get(match.group('b2')) != book:
                    continue  # cross-book ranges are not supported
                end_chapter = int(match.group('c2'))
                end_verse = int(match.group('v2')) if match.group('v2') else None
            else:
                end_chapter, end_verse = start_chapter, start_verse
            if start_verse is None or end_verse is None:
                span: Span = (start_chapter, None, end_chapter, None)
            else:
                span = (start_chapter, start_verse, end_chapter, end_verse)
            entities.append(self._entity(book, span))
        return entities

    def _read_spans(self, book: str, tokens: List[Tuple[str, str]]) -> List[Span]:
        reader = _TailReader(tokens)
        spans: List[Span] = []

        item = self._read_chapter_item(book, reader)
        if item is None:
            return spans
        span, kind = item
        spans.append(span)
        chapter = span[2]

        while reader.peek() in ('comma', 'and', 'semi'):
            separator = reader.peek()
            saved = reader.pos
            reader.pos += 1
            if separator == 'comma' and reader.peek() == 'and':
                reader.pos += 1  # "9:6, and 7"
            following = reader.peek()

            if (separator == 'semi' or following == 'ch'
                    or (following == 'num' and reader.peek(1) in ('colon', 'dot') and reader.peek(2) == 'num')):
                item = self._read_chapter_item(book, reader)
            elif following == 'vs':
                reader.pos += 1
                item = self._read_verse_item(chapter, reader)
            elif following == 'num' and kind == 'verse':
                item = self._read_verse_item(chapter, reader)
            elif following == 'num':
                item = self._read_chapter_item(book, reader)
            else:
                item = None

            if item is None:
                reader.pos = saved
                break
            span, kind = item
            spans.append(span)
            chapter = span[2]

        return spans

    def _read_chapter_item(self, book: str, reader: _TailReader) -> Optional[Tuple[Span, str]]:
        """Read "[chapter] C", "C:V", "C.V", "C verse V" or "C V", plus an optional range."""
        start = reader.pos
        if reader.peek() == 'ch':
            reader.pos += 1
        if reader.peek() != 'num':
            reader.pos = start
            return None
        first = reader.number()
        reader.pos += 1

        if reader.at_verse_marker():
            verse = reader.number(1)
            reader.pos += 2
            return self._read_range(reader, first, verse), 'verse'

        # "Luke 3 3"
        if reader.peek() == 'num' and reader.peek(1) not in ('colon', 'dot'):
            verse = reader.number()
            reader.pos += 1
            return self._read_range(reader, first, verse), 'verse'

        # Single-chapter books: "Jude 3" is verse 3 of chapter 1
        if book in SINGLE_CHAPTER_BOOKS and not (first == 1 and reader.peek() not in ('dash', 'to')):
            return self._read_range(reader, 1, first), 'verse'

        end_chapter = first
        if reader.peek() in ('dash', 'to'):
            saved = reader.pos
            reader.pos += 1
            if reader.peek() == 'ch':
                reader.pos += 1
            if reader.peek() == 'num':
                end_chapter = reader.number()
                reader.pos += 1
                if reader.peek() in ('colon', 'dot') and reader.peek(1) == 'num':
                    end_verse = reader.number(1)
                    reader.pos += 2
                    return (first, 1, end_chapter, end_verse), 'verse'
            else:
                reader.pos = saved
        return (first, None, end_chapter, None), 'chapter'

    def _read_verse_item(self, chapter: int, reader: _TailReader) -> Optional[Tuple[Span, str]]:
        if reader.peek() != 'num':
            return None
        verse = reader.number()
        reader.pos += 1
        return self._read_range(reader, chapter, verse), 'verse'

    def _read_range(self, reader: _TailReader, chapter: int, verse: int) -> Span:
        if reader.peek() not in ('dash', 'to'):
            return (chapter, verse, chapter, verse)
        saved = reader.pos
        reader.pos += 1
        if reader.peek() in ('vs', 'ch'):
            reader.pos += 1
        if reader.peek() != 'num':
            reader.pos = saved
            return (chapter, verse, chapter, verse)
        end = reader.number()
        reader.pos += 1
        if reader.peek() in ('colon', 'dot') and reader.peek(1) == 'num':
            end_verse = reader.number(1)
            reader.pos += 2
            return (chapter, verse, end, end_verse)
        return (chapter, verse, chapter, end)

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def _context_anchor(self, context_reference: str) -> Optional[Tuple[str, int, Optional[int]]]:
        if not context_reference:
            return None
        anchor = None
        for entity in self._parse(context_reference):
            if entity.valid:
                anchor = (OSIS_TO_BOOK[entity.end.book], entity.end.chapter, entity.end.verse)
        return anchor

    def _parse_elliptical(self, text: str, anchor: Tuple[str, int, Optional[int]]) -> List[PassageEntity]:
        book, anchor_chapter, anchor_verse = anchor
        chapter_match = _CONTEXT_CHAPTER_RE.search(text)
        verse_match = _CONTEXT_VERSE_RE.search(text)

        if chapter_match or verse_match:
            chapter = int(chapter_match.group(1)) if chapter_match else anchor_chapter
            if verse_match:
                start = int(verse_match.group(1))
                end = int(verse_match.group(2)) if verse_match.group(2) else start
                return [self._entity(book, (chapter, start, chapter, end))]
            return [self._entity(book, (chapter, None, chapter, None))]

        bare = _CONTEXT_BARE_RE.match(text)
        if not bare:
            return []
        first = int(bare.group(1))
        if bare.group(2):
            verse = int(bare.group(2))
            end = int(bare.group(3)) if bare.group(3) else verse
            return [self._entity(book, (first, verse, first, end))]
        end = int(bare.group(3)) if bare.group(3) else first
        if anchor_verse is not None:
            return [self._entity(book, (anchor_chapter, first, anchor_chapter, end))]
        return [self._entity(book, (first, None, end, None))]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _lookup_last_verse(self, book: str, chapter: int) -> Optional[int]:
        if self.last_verse is None:
            return None
        try:
            return self.last_verse(book, chapter)
        except Exception as e:
            print(f"  ⚠ Versification lookup failed for {book} {chapter}: {e}", file=sys.stderr)
            return None

    def _entity(self, book: str, span: Span) -> PassageEntity:
        """Validate a span against the book table and versification, clamping range ends."""
        code = osis_code(book) or book
        start_chapter, start_verse, end_chapter, end_verse = span
        chapters = chapter_count(book)
        end_chapter = min(end_chapter, chapters) if chapters else end_chapter
        valid = 1 <= start_chapter <= chapters and end_chapter >= start_chapter

        if start_verse is None or end_verse is None:
            last = self._lookup_last_verse(book, end_chapter) if valid else None
            if last is None:
                return PassageEntity(BCV(code, start_chapter), BCV(code, end_chapter), valid)
            return PassageEntity(BCV(code, start_chapter, 1), BCV(code, end_chapter, last), valid)

        if valid:
            start_last = self._lookup_last_verse(book, start_chapter)
            if start_verse < 1 or (start_last is not None and start_verse > start_last):
                valid = False
        if valid:
            end_last = self._lookup_last_verse(book, end_chapter)
            if end_last is not None and end_verse > end_last:
                end_verse = end_last
            if end_chapter == start_chapter and end_verse < start_verse:
                valid = False
        return PassageEntity(
            BCV(code, start_chapter, start_verse),
            BCV(code, end_chapter, end_verse),
            valid,
        )
