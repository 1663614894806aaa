"""
Reference Normalizer

Rewrites noisy typed queries and speech-to-text transcripts into a shape the
reference grammar can read. Every pass is a plain regex rewrite, so the whole
normalizer is pure and idempotent on its own output.

Handles transcription formats such as:
- Sentence-break periods: "Luke. Three. Three." -> "Luke 3 3"
- Spoken cadence commas: "Romans, three, five" -> "Romans 3:5"
- Number words: "John three sixteen", "Psalm one hundred nineteen"
- Homophones: "axe chapter 2" -> "Acts chapter 2", "romance 3:23" -> "Romans 3:23"
- Roman numerals: "II Kings 2", "chapter iv"
- Trailing verse lists: "John 3:16 and 17" -> "John 3:16-17"
- Chapter lists: "Exodus chapters 30 and 31" -> "Exodus 30:1; Exodus 31:1"
- Missing spaces: "Daniel2:16Daniel 2:17" -> "Daniel 2:16 Daniel 2:17"

In aggressive (live speech) mode it also rewrites "Book 3 verse 16",
"Book 3 verses 4, 5 and 7" and "Book 3 16" into colon form.
"""

import re
from typing import List, Optional, Tuple

from bible_books import BOOKS_REGEX_FLEX, contains_bible_book

# ============================================================================
# NUMBER WORDS
# ============================================================================

WORD_TO_NUMBER = {
    'zero': 0, 'one': 1, 'two': 2, 'three': 3, 'four': 4,
    'five': 5, 'six': 6, 'seven': 7, 'eight': 8, 'nine': 9,
    'ten': 10, 'eleven': 11, 'twelve': 12, 'thirteen': 13,
    'fourteen': 14, 'fifteen': 15, 'sixteen': 16, 'seventeen': 17,
    'eighteen': 18, 'nineteen': 19, 'twenty': 20,
    'thirty': 30, 'forty': 40, 'fifty': 50, 'sixty': 60,
    'seventy': 70, 'eighty': 80, 'ninety': 90,
    'first': 1, 'second': 2, 'third': 3,
}

NUMBER_WORDS = frozenset(WORD_TO_NUMBER) | {
    'hundred', 'fourth', 'fifth', 'sixth', 'seventh', 'eighth', 'ninth', 'tenth',
}

NUMBER_WORDS_PATTERN = '(?:' + '|'.join(sorted(NUMBER_WORDS, key=len, reverse=True)) + ')'

_TENS_PATTERN = r'(twenty|thirty|forty|fifty|sixty|seventy|eighty|ninety)'
_ONES_PATTERN = r'(one|two|three|four|five|six|seven|eight|nine)'

_COMPOUND_NUMBER_RE = re.compile(rf'\b{_TENS_PATTERN}(?:\s+|-){_ONES_PATTERN}\b', re.IGNORECASE)
_SIMPLE_NUMBER_RE = re.compile(
    r'\b(' + '|'.join(sorted(WORD_TO_NUMBER, key=len, reverse=True)) + r')\b',
    re.IGNORECASE,
)
_HUNDRED_RE = re.compile(r'\b(?:(?:(\d)|a)\s+)?hundred(?:\s+and)?(?:\s+(\d{1,2})\b)?', re.IGNORECASE)

# ============================================================================
# SHARED PATTERNS
# ============================================================================

# Optional lead-in before a book name ("in the book of Romans 3 5")
_BOOK_PREFIX = r'(?:the\s+)?(?:book\s+of\s+)?'

_VERSE_KEYWORD = r'(?:verses?|vv?\.?|vs)'

# A following "2 Kings" / "1 Corinthians" must not be read as a verse number
_NUMBERED_BOOK_AHEAD = (
    r'\s+(?:Samuel|Sam|Kings|Kgs|Chronicles|Chr|Corinthians|Cor|Thessalonians|Thess|'
    r'Timothy|Tim|Peter|Pet|John|Jn)\b'
)

# One verse, range or list: "4", "4-6", "4, 5 and 7", "29 to 31"
VERSE_LIST_PATTERN = (
    rf'\d{{1,3}}(?:\s*(?:,|-|&|\band\b|\bto\b|\bthrough\b|\bthru\b)\s*(?:verses?\s+)?'
    rf'\d{{1,3}}(?!\d|\s*:|{_NUMBERED_BOOK_AHEAD}))*'
)

# Corrections for book names mangled by transcription; only applied before a number or "chapter"
TRANSCRIPTION_ERRORS = {
    'fast chronicles': 'Chronicles',
    'fast kings': 'Kings',
    'fast samuel': 'Samuel',
    'force corinthians': '1 Corinthians',
    'the tronomy': 'Deuteronomy',
    'axe': 'Acts',
    'romance': 'Romans',
    'viticus': 'Leviticus',
    'route': 'Ruth',
    'look': 'Luke',
}

_FOLLOWED_BY_NUMBER = rf'(?=\s+(?:\d+|{NUMBER_WORDS_PATTERN}|chapter|ch)\b)'

_TRANSCRIPTION_ERROR_RES = [
    (re.compile(rf'\b{re.escape(error)}\b{_FOLLOWED_BY_NUMBER}', re.IGNORECASE), correction)
    for error, correction in sorted(TRANSCRIPTION_ERRORS.items(), key=lambda item: len(item[0]), reverse=True)
]

_WORD_COMMA_RE = re.compile(r'\b([A-Za-z]+)\s*,\s*(?=([A-Za-z]+|\d))')
_STRAY_SLASH_RE = re.compile(rf'[\\/]+(?={BOOKS_REGEX_FLEX})', re.IGNORECASE)

_ROMAN_NUMERAL = r'(?=[ivxlc]+\b)c{0,3}(?:xc|xl|l?x{0,3})(?:ix|iv|v?i{0,3})'
_ROMAN_VALUES = {'i': 1, 'v': 5, 'x': 10, 'l': 50, 'c': 100}

_ORDINAL_RE = re.compile(r'\b(\d{1,3})(?:st|nd|rd|th)\b', re.IGNORECASE)
_ROMAN_BOOK_RE = re.compile(
    r'\b(I{1,3})\.?\s+(?=(?:Samuel|Kings|Chronicles|Corinthians|Thessalonians|Timothy|Peter|John)\b)',
    re.IGNORECASE,
)
_ROMAN_CHAPTER_VERSE_RE = re.compile(
    rf'\b(chapter|ch\.?|verses?|vs|v)\s+({_ROMAN_NUMERAL})\b',
    re.IGNORECASE,
)
_SPOKEN_CHAPTER_DIGITS_RE = re.compile(
    rf'\b(?:in\s+)?{_BOOK_PREFIX}({BOOKS_REGEX_FLEX})\s+(?:chapter\s+)?(\d)\s+(\d)\s+(\d)'
    rf'(?=\s*(?:,\s*)?{_VERSE_KEYWORD}\b)',
    re.IGNORECASE,
)
_COMMA_BEFORE_VERSE_RE = re.compile(rf'\b(\d{{1,3}})\s*,\s*(?={_VERSE_KEYWORD}\b)', re.IGNORECASE)
_FROM_VERSE_RE = re.compile(r'\bfrom\s+(verses?|vs|v)\b', re.IGNORECASE)

_BOOK_CHAPTER_COLON_VERSE_RE = re.compile(
    rf'\b(?:in\s+)?{_BOOK_PREFIX}({BOOKS_REGEX_FLEX})\s+(?:chapter|ch\.?)\s+(\d{{1,3}}:\d{{1,3}}(?:-\d{{1,3}})?)\b',
    re.IGNORECASE,
)
_TRAILING_VERSE_LIST_RE = re.compile(
    rf'\b({BOOKS_REGEX_FLEX})\s+(\d{{1,3}}):(\d{{1,3}})'
    rf'((?:\s*(?:,|\band\b|&|\bto\b|\bthrough\b|\bthru\b|-)\s*\d{{1,3}}(?!\d|\s*:|{_NUMBERED_BOOK_AHEAD})){{1,6}})',
    re.IGNORECASE,
)
_BOOK_CHAPTER_VERSE_PHRASE_RE = re.compile(
    rf'\b(?:in\s+)?{_BOOK_PREFIX}({BOOKS_REGEX_FLEX})\s+(?:chapter\s+)?(\d{{1,3}})\s*(?:,\s*)?'
    rf'{_VERSE_KEYWORD}\s+({VERSE_LIST_PATTERN})',
    re.IGNORECASE,
)
_VERSE_AFTER_FILLER_RE = re.compile(
    rf'\b({BOOKS_REGEX_FLEX})\s+(\d{{1,3}})\b([^\d]{{0,80}}?)\b{_VERSE_KEYWORD}\s+({VERSE_LIST_PATTERN})',
    re.IGNORECASE,
)
_SPACE_SEPARATED_RE = re.compile(
    rf'\b(?:in\s+)?{_BOOK_PREFIX}({BOOKS_REGEX_FLEX})\s+(\d{{1,3}})\s+(\d{{1,3}})(?!\d|{_NUMBERED_BOOK_AHEAD})',
    re.IGNORECASE,
)
_COMMA_SEPARATED_RE = re.compile(
    rf'\b(?:in\s+)?{_BOOK_PREFIX}({BOOKS_REGEX_FLEX})\s+(\d{{1,3}})\s*,\s*(\d{{1,3}})(?!\d|\s*:|{_NUMBERED_BOOK_AHEAD})',
    re.IGNORECASE,
)
_EXPLICIT_CHAPTER_LIST_RE = re.compile(
    rf'\b({BOOKS_REGEX_FLEX})\s+chapters?\s+(\d{{1,3}})\s*(?:,|\band\b|\bto\b|-)\s*(\d{{1,3}})\b(?!\s*:)',
    re.IGNORECASE,
)
_CHAPTER_RANGE_RE = re.compile(
    rf'\b({BOOKS_REGEX_FLEX})\s+(\d{{1,3}})\s*(?:\band\b|\bto\b|-)\s*(\d{{1,3}})\b(?!\s*(?:to|-)\s*\d)',
    re.IGNORECASE,
)
_HAS_VERSE_KEYWORD_RE = re.compile(r'\b(?:verses?|vs|v)\b\.?', re.IGNORECASE)
_MISSING_SPACE_RE = re.compile(rf'\b({BOOKS_REGEX_FLEX})(?<!\.)(\d{{1,3}}(?::\d{{1,3}})?)', re.IGNORECASE)
_CONCATENATED_RE = re.compile(rf'(\d{{1,3}}:\d{{1,3}}(?:-\d{{1,3}})?)({BOOKS_REGEX_FLEX})', re.IGNORECASE)

# ============================================================================
# PREPROCESSING
# ============================================================================


def _is_number_word(word: str) -> bool:
    return word.lower() in NUMBER_WORDS


def normalize_dash_variants(text: str) -> str:
    return text.replace('–', '-').replace('—', '-')


def normalize_transcription_errors(text: str) -> str:
    """
    Repair book names commonly mangled by speech-to-text.

    Only rewrites when followed by a number, number word or "chapter", so
    "look at this" stays while "look 3 3" becomes "Luke 3 3".
    """
    for pattern, correction in _TRANSCRIPTION_ERROR_RES:
        text = pattern.sub(correction, text)
    return text


def normalize_book_homophones(text: str) -> str:
    return re.sub(r'\bdue\s+(?=chapter\b|ch\b)', 'Joel ', text, flags=re.IGNORECASE)


def _strip_word_commas(text: str) -> str:
    def replace(match):
        if _is_number_word(match.group(1)) and _is_number_word(match.group(2)):
            return match.group(0)
        return match.group(1) + ' '
    return _WORD_COMMA_RE.sub(replace, text)


def preprocess_reference(text: str) -> str:
    """Punctuation and typo cleanup that runs before any number handling."""
    # Sentence-break periods only; "12.1" and "John.3.16" keep theirs
    normalized = re.sub(r'\.(?=\s|$)', ' ', text)
    normalized = _strip_word_commas(normalized)
    normalized = re.sub(r'\bchaper\b', 'chapter', normalized, flags=re.IGNORECASE)
    normalized = normalize_transcription_errors(normalized)
    normalized = normalize_book_homophones(normalized)
    normalized = _STRAY_SLASH_RE.sub('', normalized)
    normalized = normalize_dash_variants(normalized)
    return re.sub(r'\s+', ' ', normalized).strip()


# ============================================================================
# NUMBERS
# ============================================================================


def words_to_numbers(text: str) -> str:
    """
    Convert spoken numbers to digits.

    "twenty one" and "twenty-one" are handled before single words, then
    "(one) hundred (and) N" compounds are folded ("one hundred nineteen" -> "119").
    """
    def compound(match):
        return str(WORD_TO_NUMBER[match.group(1).lower()] + WORD_TO_NUMBER[match.group(2).lower()])

    def hundreds(match):
        multiplier = int(match.group(1)) if match.group(1) else 1
        rest = int(match.group(2)) if match.group(2) else 0
        return str(multiplier * 100 + rest)

    result = _COMPOUND_NUMBER_RE.sub(compound, text)
    result = _SIMPLE_NUMBER_RE.sub(lambda m: str(WORD_TO_NUMBER[m.group(1).lower()]), result)
    return _HUNDRED_RE.sub(hundreds, result)


def normalize_ordinal_indicators(text: str) -> str:
    return _ORDINAL_RE.sub(r'\1', text)


def roman_to_int(roman: str) -> Optional[int]:
    total = 0
    previous = 0
    for char in reversed(roman.lower()):
        value = _ROMAN_VALUES.get(char)
        if not value:
            return None
        if value < previous:
            total -= value
        else:
            total += value
            previous = value
    return total if total > 0 else None


def normalize_roman_numerals_for_books(text: str) -> str:
    """"II Kings" -> "2 Kings"."""
    return _ROMAN_BOOK_RE.sub(lambda m: f"{len(m.group(1))} ", text)


def normalize_roman_numerals_for_chapter_verse(text: str) -> str:
    """"chapter iv" -> "chapter 4"."""
    def replace(match):
        value = roman_to_int(match.group(2)) if match.group(2) else None
        if not value:
            return match.group(0)
        return f"{match.group(1)} {value}"
    return _ROMAN_CHAPTER_VERSE_RE.sub(replace, text)


def normalize_spoken_chapter_digits(text: str) -> str:
    """"Psalm 1 1 9 verse 105" -> "Psalm 119 verse 105"."""
    return _SPOKEN_CHAPTER_DIGITS_RE.sub(
        lambda m: f"{m.group(1)} {m.group(2)}{m.group(3)}{m.group(4)}", text
    )


def normalize_comma_before_verse_keyword(text: str) -> str:
    """"chapter 21, verse 22" -> "chapter 21 verse 22"."""
    return _COMMA_BEFORE_VERSE_RE.sub(r'\1 ', text)


def normalize_from_verse_keyword(text: str) -> str:
    return _FROM_VERSE_RE.sub(r'\1', text)


# ============================================================================
# VERSE LISTS
# ============================================================================


def _is_valid_verse_number(value: int) -> bool:
    return 0 < value <= 200


def parse_verse_range_list(raw: str) -> List[Tuple[int, int]]:
    """
    Parse a spoken verse list into (start, end) ranges.

    "4, 5 and 7" -> [(4, 4), (5, 5), (7, 7)]; "29 through 31" -> [(29, 31)]
    """
    cleaned = normalize_dash_variants(raw or '')
    cleaned = re.sub(r'\bthrough\b|\bthru\b', 'to', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'\band\b|&', ',', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'\b(?:verses?|vv?)\b\.?', ' ', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    if not cleaned:
        return []

    ranges: List[Tuple[int, int]] = []
    for token in (t.strip() for t in re.split(r'[,;]+', cleaned)):
        if not token:
            continue
        range_match = re.match(r'^(\d{1,3})\s*(?:-|to)\s*(\d{1,3})$', token, re.IGNORECASE)
        if range_match:
            start, end = int(range_match.group(1)), int(range_match.group(2))
            if _is_valid_verse_number(start) and _is_valid_verse_number(end):
                ranges.append((min(start, end), max(start, end)))
            continue
        for number in re.findall(r'\d{1,3}', token):
            value = int(number)
            if _is_valid_verse_number(value):
                ranges.append((value, value))
    return ranges


def merge_verse_ranges(ranges: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Sort ranges and merge overlapping or adjacent ones."""
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def format_verse_ranges(ranges: List[Tuple[int, int]]) -> Optional[str]:
    if not ranges:
        return None
    return ', '.join(
        str(start) if start == end else f"{start}-{end}"
        for start, end in merge_verse_ranges(ranges)
    )


# ============================================================================
# BOOK-ANCHORED REWRITES
# ============================================================================


def normalize_book_chapter_colon_verse(text: str) -> str:
    """"Luke chapter 4:1" -> "Luke 4:1"."""
    return _BOOK_CHAPTER_COLON_VERSE_RE.sub(lambda m: f"{m.group(1)} {m.group(2)}", text)


def normalize_trailing_verse_list(text: str) -> str:
    """"John 3:16 and 17" -> "John 3:16-17"; "John 3:16, 4:2" is left alone."""
    def replace(match):
        formatted = format_verse_ranges(parse_verse_range_list(f"{match.group(3)} {match.group(4)}"))
        if not formatted:
            return match.group(0)
        return f"{match.group(1)} {match.group(2)}:{formatted}"
    return _TRAILING_VERSE_LIST_RE.sub(replace, text)


def normalize_book_chapter_verse_phrase(text: str) -> str:
    """
    Speech phrasing with an explicit verse keyword.

    "Psalm 66 verse 3" -> "Psalm 66:3"
    "Luke chapter 4 verse 1 to 2" -> "Luke 4:1-2"
    "Book 3 verses 4, 5 and 7" -> "Book 3:4-5, 7"
    """
    def replace(match):
        formatted = format_verse_ranges(parse_verse_range_list(match.group(3)))
        if not formatted:
            return match.group(0)
        return f"{match.group(1)} {match.group(2)}:{formatted}"
    return _BOOK_CHAPTER_VERSE_PHRASE_RE.sub(replace, text)


def normalize_verse_after_filler(text: str) -> str:
    """"Psalms 107 thank you Holy Spirit verse 15 and 16" -> "Psalms 107:15-16"."""
    def replace(match):
        if contains_bible_book(match.group(3)):
            return match.group(0)
        formatted = format_verse_ranges(parse_verse_range_list(match.group(4)))
        if not formatted:
            return match.group(0)
        return f"{match.group(1)} {match.group(2)}:{formatted}"
    return _VERSE_AFTER_FILLER_RE.sub(replace, text)


def normalize_space_separated_chapter_verse(text: str) -> str:
    """"Book 3 16" -> "Book 3:16"."""
    return _SPACE_SEPARATED_RE.sub(lambda m: f"{m.group(1)} {m.group(2)}:{m.group(3)}", text)


def normalize_comma_separated_chapter_verse(text: str) -> str:
    """"Romans 3, 5" -> "Romans 3:5" unless the second number starts another reference."""
    return _COMMA_SEPARATED_RE.sub(lambda m: f"{m.group(1)} {m.group(2)}:{m.group(3)}", text)


def normalize_explicit_chapter_list(text: str) -> str:
    """"Exodus chapters 30 and 31" -> "Exodus 30:1; Exodus 31:1"."""
    return _EXPLICIT_CHAPTER_LIST_RE.sub(
        lambda m: f"{m.group(1)} {m.group(2)}:1; {m.group(1)} {m.group(3)}:1", text
    )


def normalize_chapter_range_or_list(text: str) -> str:
    """
    "Matthew 21 to 22" -> "Matthew 21:1; Matthew 22:1".

    Skipped when the text already has a colon or a verse keyword.
    """
    if ':' in text or _HAS_VERSE_KEYWORD_RE.search(text):
        return text
    return _CHAPTER_RANGE_RE.sub(
        lambda m: f"{m.group(1)} {m.group(2)}:1; {m.group(1)} {m.group(3)}:1", text
    )


def normalize_missing_book_chapter_space(text: str) -> str:
    """"Daniel2:16" -> "Daniel 2:16"."""
    return _MISSING_SPACE_RE.sub(r'\1 \2', text)


def normalize_concatenated_references(text: str) -> str:
    """"Daniel 2:16Daniel 2:17" -> "Daniel 2:16 Daniel 2:17"."""
    return _CONCATENATED_RE.sub(r'\1 \2', text)


# ============================================================================
# ENTRY POINT
# ============================================================================


def normalize(text: str, aggressive: bool = False) -> str:
    """
    Normalize a typed query or transcript segment for reference parsing.

    Args:
        text: Raw input
        aggressive: Live-speech mode; also rewrites "Book X verse Y" and
            "Book X Y" into colon form. Leave off for typed search.

    Returns:
        Normalized text (idempotent: normalize(normalize(x)) == normalize(x))
    """
    if not text:
        return ''

    result = preprocess_reference(text)
    result = words_to_numbers(result)
    result = normalize_ordinal_indicators(result)
    result = normalize_roman_numerals_for_books(result)
    result = normalize_roman_numerals_for_chapter_verse(result)
    result = normalize_spoken_chapter_digits(result)
    result = normalize_comma_before_verse_keyword(result)
    result = normalize_from_verse_keyword(result)

    result = normalize_missing_book_chapter_space(result)
    result = normalize_concatenated_references(result)

    if not contains_bible_book(result):
        return result

    result = normalize_book_chapter_colon_verse(result)
    if aggressive:
        result = normalize_book_chapter_verse_phrase(result)
        result = normalize_verse_after_filler(result)
        result = normalize_space_separated_chapter_verse(result)
    result = normalize_comma_separated_chapter_verse(result)
    result = normalize_trailing_verse_list(result)
    result = normalize_explicit_chapter_list(result)
    return normalize_chapter_range_or_list(result)


# ============================================================================
# UTTERANCE CLASSIFIERS
# ============================================================================

_NAVIGATION_PATTERNS = [
    ('next', [
        r'\bnext\s+(?:verse|scripture|one)\b',
        r'\bgo\s+(?:to\s+)?next\b(?!\s+chapter)',
        r'\bshow\s+next\b(?!\s+chapter)',
    ]),
    ('previous', [
        r'\b(?:previous|last)\s+(?:verse|scripture|one)\b',
        r'\bgo\s+back\b(?!\s+a\s+chapter)',
    ]),
    ('next_chapter', [
        r'\bnext\s+chapter\b',
        r'\bchapter\s+after\b',
    ]),
    ('previous_chapter', [
        r'\b(?:previous|prior)\s+chapter\b',
        r'\bgo\s+back\s+a\s+chapter\b',
    ]),
]


def is_navigation_command(text: str) -> Optional[str]:
    """
    Classify operator navigation phrases.

    Returns:
        'next', 'previous', 'next_chapter', 'previous_chapter' or None
    """
    normalized = (text or '').lower().strip()
    for command, patterns in _NAVIGATION_PATTERNS:
        for pattern in patterns:
            if re.search(pattern, normalized):
                return command
    return None


def is_likely_numbered_list(text: str) -> bool:
    """
    True for list-item speech like "number three" that carries no Scripture cue.

    A book name, a chapter/verse keyword or a "C:V" reference all rule it out.
    """
    normalized = (text or '').lower().strip()
    if not normalized or not re.search(r'\bnumber\b', normalized):
        return False
    if re.search(r'\bnumbers\b', normalized) or contains_bible_book(normalized):
        return False
    if re.search(r'\b(?:chapter|ch|verses?|vs|v)\b', normalized):
        return False
    if re.search(r'\d{1,3}:\d{1,3}', normalized):
        return False
    return re.search(rf'\bnumber\s+(?:\d{{1,3}}|{NUMBER_WORDS_PATTERN})\b', normalized) is not None
