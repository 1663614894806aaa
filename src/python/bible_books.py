"""
Bible Book Data

Canonical 66-book table (standard Protestant order) shared by the reference
engine: display names, OSIS codes, Bolls.life book IDs, chapter counts, the
spoken/typed alias table, and the book-name regex alternations used by the
normalizer.

Display names are the ones used as keys in the verse dataset
("1 Corinthians 13:4", "Song of Solomon 2:1", "Psalms 23:1").
"""

import re
from typing import Dict, List, Optional, Tuple

# ============================================================================
# BOOK TABLE
# ============================================================================

# (display name, OSIS code, chapter count)
BOOKS: List[Tuple[str, str, int]] = [
    # Old Testament
    ('Genesis', 'Gen', 50), ('Exodus', 'Exod', 40), ('Leviticus', 'Lev', 27),
    ('Numbers', 'Num', 36), ('Deuteronomy', 'Deut', 34), ('Joshua', 'Josh', 24),
    ('Judges', 'Judg', 21), ('Ruth', 'Ruth', 4), ('1 Samuel', '1Sam', 31),
    ('2 Samuel', '2Sam', 24), ('1 Kings', '1Kgs', 22), ('2 Kings', '2Kgs', 25),
    ('1 Chronicles', '1Chr', 29), ('2 Chronicles', '2Chr', 36), ('Ezra', 'Ezra', 10),
    ('Nehemiah', 'Neh', 13), ('Esther', 'Esth', 10), ('Job', 'Job', 42),
    ('Psalms', 'Ps', 150), ('Proverbs', 'Prov', 31), ('Ecclesiastes', 'Eccl', 12),
    ('Song of Solomon', 'Song', 8), ('Isaiah', 'Isa', 66), ('Jeremiah', 'Jer', 52),
    ('Lamentations', 'Lam', 5), ('Ezekiel', 'Ezek', 48), ('Daniel', 'Dan', 12),
    ('Hosea', 'Hos', 14), ('Joel', 'Joel', 3), ('Amos', 'Amos', 9),
    ('Obadiah', 'Obad', 1), ('Jonah', 'Jonah', 4), ('Micah', 'Mic', 7),
    ('Nahum', 'Nah', 3), ('Habakkuk', 'Hab', 3), ('Zephaniah', 'Zeph', 3),
    ('Haggai', 'Hag', 2), ('Zechariah', 'Zech', 14), ('Malachi', 'Mal', 4),
    # New Testament
    ('Matthew', 'Matt', 28), ('Mark', 'Mark', 16), ('Luke', 'Luke', 24),
    ('John', 'John', 21), ('Acts', 'Acts', 28), ('Romans', 'Rom', 16),
    ('1 Corinthians', '1Cor', 16), ('2 Corinthians', '2Cor', 13), ('Galatians', 'Gal', 6),
    ('Ephesians', 'Eph', 6), ('Philippians', 'Phil', 4), ('Colossians', 'Col', 4),
    ('1 Thessalonians', '1Thess', 5), ('2 Thessalonians', '2Thess', 3),
    ('1 Timothy', '1Tim', 6), ('2 Timothy', '2Tim', 4), ('Titus', 'Titus', 3),
    ('Philemon', 'Phlm', 1), ('Hebrews', 'Heb', 13), ('James', 'Jas', 5),
    ('1 Peter', '1Pet', 5), ('2 Peter', '2Pet', 3), ('1 John', '1John', 5),
    ('2 John', '2John', 1), ('3 John', '3John', 1), ('Jude', 'Jude', 1),
    ('Revelation', 'Rev', 22),
]

BOOK_ORDER: List[str] = [name for name, _, _ in BOOKS]

# Book name to Bolls.life book ID mapping
BOOK_ID_MAP: Dict[str, int] = {name: i + 1 for i, name in enumerate(BOOK_ORDER)}

BOOK_CHAPTER_COUNTS: Dict[str, int] = {name: chapters for name, _, chapters in BOOKS}

BOOK_TO_OSIS: Dict[str, str] = {name: osis for name, osis, _ in BOOKS}
OSIS_TO_BOOK: Dict[str, str] = {osis: name for name, osis, _ in BOOKS}

SINGLE_CHAPTER_BOOKS = frozenset(name for name, _, chapters in BOOKS if chapters == 1)

# ============================================================================
# ALIASES
# ============================================================================

# Lowercase alias -> display name, for books without a numeric prefix
_BASE_ALIASES: Dict[str, str] = {
    # Old Testament
    'genesis': 'Genesis', 'gen': 'Genesis', 'gn': 'Genesis',
    'exodus': 'Exodus', 'exod': 'Exodus', 'exo': 'Exodus', 'ex': 'Exodus',
    'leviticus': 'Leviticus', 'lev': 'Leviticus',
    'numbers': 'Numbers', 'num': 'Numbers',
    'deuteronomy': 'Deuteronomy', 'deut': 'Deuteronomy', 'deu': 'Deuteronomy',
    'joshua': 'Joshua', 'josh': 'Joshua',
    'judges': 'Judges', 'judg': 'Judges',
    'ruth': 'Ruth',
    'ezra': 'Ezra',
    'nehemiah': 'Nehemiah', 'neh': 'Nehemiah',
    'esther': 'Esther', 'esth': 'Esther', 'est': 'Esther',
    'job': 'Job',
    'psalms': 'Psalms', 'psalm': 'Psalms', 'ps': 'Psalms', 'psa': 'Psalms', 'pss': 'Psalms',
    'proverbs': 'Proverbs', 'proverb': 'Proverbs', 'prov': 'Proverbs',
    'ecclesiastes': 'Ecclesiastes', 'eccl': 'Ecclesiastes', 'ecc': 'Ecclesiastes',
    'song of solomon': 'Song of Solomon', 'song of songs': 'Song of Solomon',
    'canticles': 'Song of Solomon', 'cant': 'Song of Solomon', 'song': 'Song of Solomon',
    'isaiah': 'Isaiah', 'isa': 'Isaiah',
    'jeremiah': 'Jeremiah', 'jer': 'Jeremiah',
    'lamentations': 'Lamentations', 'lam': 'Lamentations',
    'ezekiel': 'Ezekiel', 'ezek': 'Ezekiel',
    'daniel': 'Daniel', 'dan': 'Daniel',
    'hosea': 'Hosea', 'hos': 'Hosea',
    'joel': 'Joel',
    'amos': 'Amos',
    'obadiah': 'Obadiah', 'obad': 'Obadiah',
    'jonah': 'Jonah',
    'micah': 'Micah', 'mic': 'Micah',
    'nahum': 'Nahum', 'nah': 'Nahum',
    'habakkuk': 'Habakkuk', 'hab': 'Habakkuk',
    'zephaniah': 'Zephaniah', 'zeph': 'Zephaniah',
    'haggai': 'Haggai', 'hag': 'Haggai',
    'zechariah': 'Zechariah', 'zech': 'Zechariah',
    'malachi': 'Malachi', 'mal': 'Malachi',
    # New Testament
    'matthew': 'Matthew', 'matt': 'Matthew', 'mat': 'Matthew', 'mt': 'Matthew',
    'mark': 'Mark', 'mk': 'Mark',
    'luke': 'Luke', 'lk': 'Luke',
    'john': 'John', 'jn': 'John', 'jhn': 'John',
    'acts': 'Acts',
    'romans': 'Romans', 'rom': 'Romans',
    'galatians': 'Galatians', 'gal': 'Galatians',
    'ephesians': 'Ephesians', 'eph': 'Ephesians',
    'philippians': 'Philippians', 'phil': 'Philippians', 'php': 'Philippians',
    'colossians': 'Colossians', 'col': 'Colossians',
    'titus': 'Titus',
    'philemon': 'Philemon', 'phlm': 'Philemon', 'phm': 'Philemon',
    'hebrews': 'Hebrews', 'heb': 'Hebrews',
    'james': 'James', 'jas': 'James',
    'jude': 'Jude',
    'revelation': 'Revelation', 'revelations': 'Revelation', 'rev': 'Revelation',
}

# Stem variants for numbered books ("1 Samuel", "2 Kings", ...)
_NUMBERED_STEMS: Dict[str, List[str]] = {
    'Samuel': ['samuel', 'sam'],
    'Kings': ['kings', 'kgs'],
    'Chronicles': ['chronicles', 'chron', 'chr'],
    'Corinthians': ['corinthians', 'cor'],
    'Thessalonians': ['thessalonians', 'thess'],
    'Timothy': ['timothy', 'tim'],
    'Peter': ['peter', 'pet'],
    'John': ['john', 'jn', 'jhn'],
}

_NUMBER_PREFIXES: Dict[int, Tuple[str, ...]] = {
    1: ('1', '1st', 'first', 'i'),
    2: ('2', '2nd', 'second', 'ii'),
    3: ('3', '3rd', 'third', 'iii'),
}


def _build_aliases() -> Dict[str, str]:
    aliases = dict(_BASE_ALIASES)
    for stem_name, stems in _NUMBERED_STEMS.items():
        for number, prefixes in _NUMBER_PREFIXES.items():
            display = f"{number} {stem_name}"
            if display not in BOOK_ID_MAP:
                continue
            for prefix in prefixes:
                for stem in stems:
                    aliases[f"{prefix} {stem}"] = display
                    if prefix.isdigit():
                        aliases[f"{prefix}{stem}"] = display
    for name, osis, _ in BOOKS:
        aliases.setdefault(name.lower(), name)
        aliases.setdefault(osis.lower(), name)
    return aliases


BIBLE_BOOKS: Dict[str, str] = _build_aliases()

# Alias alternation sorted by length (longest first) to avoid partial matches.
# Spaces inside aliases match any run of whitespace.
BOOK_NAMES_PATTERN = '|'.join(
    re.escape(alias).replace(r'\ ', r'\s+')
    for alias in sorted(BIBLE_BOOKS.keys(), key=len, reverse=True)
)

# ============================================================================
# BOOK-NAME REGEX ALTERNATIONS (normalizer)
# ============================================================================

# Full English book names, including numbered books with optional space
BOOKS_REGEX_STRICT = (
    "(?:Genesis|Exodus|Leviticus|Numbers|Deuteronomy|"
    "Joshua|Judges|Ruth|1\\s*Samuel|2\\s*Samuel|1\\s*Kings|2\\s*Kings|"
    "1\\s*Chronicles|2\\s*Chronicles|Ezra|Nehemiah|Esther|Job|Psalms?"
    "|Proverbs?|Ecclesiastes|Song\\s+of\\s+Solomon|Song\\s+of\\s+Songs|Canticles|"
    "Isaiah|Jeremiah|Lamentations|Ezekiel|Daniel|Hosea|Joel|Amos|Obadiah|"
    "Jonah|Micah|Nahum|Habakkuk|Zephaniah|Haggai|Zechariah|Malachi|"
    "Matthew|Mark|Luke|John|Acts|Romans|1\\s*Corinthians|2\\s*Corinthians|"
    "Galatians|Ephesians|Philippians|Colossians|1\\s*Thessalonians|2\\s*Thessalonians|"
    "1\\s*Timothy|2\\s*Timothy|Titus|Philemon|Hebrews|James|1\\s*Peter|2\\s*Peter|"
    "1\\s*John|2\\s*John|3\\s*John|Jude|Revelation)"
)

# Common abbreviations; ambiguous two-letter forms are left out on purpose
BOOKS_REGEX_ABBREV = (
    "(?:Gen\\.?|Exod\\.?|Lev\\.?|Num\\.?|Deut\\.?|Josh\\.?|Judg\\.?|"
    "1\\s*Sam\\.?|2\\s*Sam\\.?|1\\s*Kgs\\.?|2\\s*Kgs\\.?|1\\s*Chr\\.?|2\\s*Chr\\.?|"
    "Neh\\.?|Esth\\.?|Ps\\.?|Prov\\.?|Eccl\\.?|Song\\.?|Cant\\.?|Isa\\.?|Jer\\.?|"
    "Lam\\.?|Ezek\\.?|Dan\\.?|Hos\\.?|Joel\\.?|Amos\\.?|Obad\\.?|Jonah\\.?|Mic\\.?|"
    "Nah\\.?|Hab\\.?|Zeph\\.?|Hag\\.?|Zech\\.?|Mal\\.?|Matt\\.?|Mark\\.?|Luke\\.?|"
    "Jn\\.?|Acts\\.?|Rom\\.?|1\\s*Cor\\.?|2\\s*Cor\\.?|Gal\\.?|Eph\\.?|Phil\\.?|Col\\.?|"
    "1\\s*Thess\\.?|2\\s*Thess\\.?|1\\s*Tim\\.?|2\\s*Tim\\.?|Phlm\\.?|Heb\\.?|Jas\\.?|"
    "1\\s*Pet\\.?|2\\s*Pet\\.?|1\\s*Jn\\.?|2\\s*Jn\\.?|3\\s*Jn\\.?|Jude\\.?|Rev\\.?)"
)

BOOKS_REGEX_FLEX = f"(?:{BOOKS_REGEX_STRICT}|{BOOKS_REGEX_ABBREV})"

_BOOK_STRICT_RE = re.compile(rf"\b{BOOKS_REGEX_STRICT}\b", re.IGNORECASE)
_BOOK_ABBREV_CONTEXT_RE = re.compile(
    rf"\b{BOOKS_REGEX_ABBREV}(?![A-Za-z])(?=\s*(?:\d{{1,3}}|chapter|ch\.?))",
    re.IGNORECASE,
)

# ============================================================================
# LOOKUPS
# ============================================================================


def contains_bible_book(text: str) -> bool:
    """True when text mentions a full book name, or an abbreviation followed by a chapter cue."""
    if not text:
        return False
    if _BOOK_STRICT_RE.search(text):
        return True
    return _BOOK_ABBREV_CONTEXT_RE.search(text) is not None


def canonical_book_name(name: str) -> Optional[str]:
    """
    Normalize a book name to its canonical display form.

    Accepts full names, abbreviations (with or without a trailing period),
    numbered variants ("1st John", "II Kings", "1john") and OSIS codes.

    Returns:
        Display name (e.g. "1 John") or None if not recognized
    """
    if not name:
        return None
    normalized = re.sub(r'\s+', ' ', name.strip().rstrip('.').lower())
    if normalized.startswith('the book of '):
        normalized = normalized[len('the book of '):]
    book = BIBLE_BOOKS.get(normalized)
    if book:
        return book
    # "1john" / "2 kings" spacing variants
    spaced = re.sub(r'^([1-3])\s*(?=[a-z])', r'\1 ', normalized)
    return BIBLE_BOOKS.get(spaced)


def osis_code(book: str) -> Optional[str]:
    """OSIS code for a display name ("1 John" -> "1John")."""
    return BOOK_TO_OSIS.get(book)


def chapter_count(book: str) -> int:
    """Number of chapters in a book, 0 for unknown names."""
    return BOOK_CHAPTER_COUNTS.get(book, 0)


def is_valid_chapter(book: str, chapter: int) -> bool:
    """Check whether chapter exists in book."""
    return 1 <= chapter <= chapter_count(book)


def previous_book(book: str) -> Optional[str]:
    """Book before this one in canonical order, None for Genesis or unknown names."""
    if book not in BOOK_ID_MAP:
        return None
    index = BOOK_ID_MAP[book] - 1
    return BOOK_ORDER[index - 1] if index > 0 else None


def next_book(book: str) -> Optional[str]:
    """Book after this one in canonical order, None for Revelation or unknown names."""
    if book not in BOOK_ID_MAP:
        return None
    index = BOOK_ID_MAP[book] - 1
    return BOOK_ORDER[index + 1] if index + 1 < len(BOOK_ORDER) else None
