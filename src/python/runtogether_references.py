"""
Run-Together Reference Splitting

Speech-to-text often collapses "John 3 16" into "John316" or "John 316". This
module splits such fused chapter+verse numbers back apart, using the verse
dataset as the judge:

- "John316"   -> candidates 3:16 and 31:6 -> only 3:16 exists -> "John 3:16"
- "Romans 323" -> 3:23 (Romans has no chapter 32)
- "John111"   -> 1:11 and 11:1 both exist -> left untouched

Ambiguous input is never guessed at: the text is only rewritten when exactly
one split is a real verse.
"""

import re
import sys
from typing import List, Optional, Tuple

from bible_books import BOOKS_REGEX_FLEX, canonical_book_name

_COMBINED_RE = re.compile(
    rf'(?:\b(?:the\s+)?(?:book\s+of\s+))?(?P<book>{BOOKS_REGEX_FLEX})\s*(?P<combined>\d{{3,5}})\b',
    re.IGNORECASE,
)

# Digits followed by one of these are a chapter mention ("Psalms 107, ... verse 15")
_CHAPTER_FOLLOWERS = '),.;'
_VERSE_KEYWORD_RE = re.compile(r'\b(?:verse|verses|v|vs)\b', re.IGNORECASE)
_LOOKAHEAD_WINDOW = 100

# Chapter prefix lengths tried when splitting ("316" -> 3|16, 31|6)
CHAPTER_SPLIT_LENGTHS = (1, 2)


def split_candidates(combined: str) -> List[Tuple[int, int]]:
    """All (chapter, verse) splits of a digit run with positive parts."""
    candidates = []
    for length in CHAPTER_SPLIT_LENGTHS:
        if len(combined) <= length:
            continue
        chapter = int(combined[:length])
        verse = int(combined[length:])
        if chapter > 0 and verse > 0:
            candidates.append((chapter, verse))
    return candidates


def _resolve_book(book_text: str, grammar) -> Optional[str]:
    if grammar is not None:
        try:
            book = grammar.resolve_book_name(book_text)
            if book:
                return book
        except Exception as e:
            print(f"  ⚠ Book lookup failed for '{book_text}': {e}", file=sys.stderr)
    return canonical_book_name(book_text)


def _is_chapter_mention(text: str, end: int) -> bool:
    next_char = text[end:end + 1]
    if next_char == ':' or (next_char and next_char in _CHAPTER_FOLLOWERS):
        return True
    return _VERSE_KEYWORD_RE.search(text[end:end + _LOOKAHEAD_WINDOW]) is not None


def disambiguate_combined(text: str, dataset, grammar=None) -> str:
    """
    Split fused chapter+verse digits after a book name when exactly one split exists.

    Args:
        text: Normalized input
        dataset: VerseDataset used to validate candidate splits
        grammar: Grammar collaborator used to resolve the book's canonical name

    Returns:
        Text with unambiguous run-together references rewritten as "Book C:V"
    """
    if not text:
        return text

    try:
        dataset.load()
    except Exception as e:
        print(f"  ⚠ Verse dataset unavailable, skipping run-together split: {e}", file=sys.stderr)
        return text

    result = text
    pos = 0
    while True:
        match = _COMBINED_RE.search(result, pos)
        if not match:
            break
        pos = match.end()

        if _is_chapter_mention(result, match.end()):
            continue

        book = _resolve_book(match.group('book'), grammar)
        if not book:
            continue

        valid = [
            (chapter, verse) for chapter, verse in split_candidates(match.group('combined'))
            if dataset.verse_exists(book, chapter, verse)
        ]
        if len(valid) != 1:
            continue

        chapter, verse = valid[0]
        replacement = f"{book} {chapter}:{verse}"
        result = result[:match.start()] + replacement + result[match.end():]
        pos = match.start() + len(replacement)

    return result
