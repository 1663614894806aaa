"""
SmartVerses

Public entry points for Scripture detection: normalize an utterance, split
run-together numbers, resolve references against the session context, and
look up verse text. Navigation commands ("next verse", "previous chapter")
step from the last resolved verse.

Usage:
    from smart_verses import detect_and_lookup, reset_context

    for ref in detect_and_lookup("Romans three, five", aggressive_speech_normalization=True):
        print(ref.display_ref, ref.verse_text)

The module-level functions share one default engine (one conversation).
Callers handling several transcription streams create one SmartVerses each.
"""

import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from reference_grammar import ReferenceGrammar
from reference_normalizer import is_likely_numbered_list, is_navigation_command, normalize
from reference_resolver import ParseContext, ParsedReference, ScriptureSession, make_reference
from runtogether_references import disambiguate_combined
from verse_dataset import LoadedVerse, NavigationResult, VerseDataset, VerseLocation

# Source tag for references found in the utterance itself
SOURCE_DIRECT = 'direct'

# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass
class DetectOptions:
    """Per-call detection options."""
    # Live speech: also rewrite "Book 3 16" and "Book 3 verse 16" into colon form
    aggressive_speech_normalization: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'DetectOptions':
        data = data or {}
        return cls(aggressive_speech_normalization=bool(
            data.get('aggressiveSpeechNormalization', data.get('aggressive_speech_normalization', False))
        ))


@dataclass(frozen=True)
class DetectedReference:
    """One detected verse with its text, ready to display."""
    display_ref: str
    verse_text: str
    book: str
    chapter: int
    verse: int
    transcript_text: str = ''
    source: str = SOURCE_DIRECT
    is_navigation_result: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'reference': self.display_ref,
            'displayRef': self.display_ref,
            'verseText': self.verse_text,
            'source': self.source,
            'transcriptText': self.transcript_text,
            'timestamp': self.timestamp,
            'book': self.book,
            'chapter': self.chapter,
            'verse': self.verse,
            'isNavigationResult': self.is_navigation_result,
        }


# ============================================================================
# ENGINE
# ============================================================================


class SmartVerses:
    """
    Detection engine bundling a verse dataset, a grammar and one session.

    Args:
        dataset: VerseDataset (defaults to the bundled dataset)
        grammar: Grammar collaborator (defaults to ReferenceGrammar validated
            against the dataset's versification)
    """

    def __init__(self, dataset: Optional[VerseDataset] = None, grammar=None):
        self.dataset = dataset if dataset is not None else VerseDataset()
        self.grammar = grammar if grammar is not None else ReferenceGrammar(
            last_verse=self.dataset.last_verse_in_chapter
        )
        self.session = ScriptureSession(self.grammar)

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def reset_context(self):
        self.session.reset()

    def get_context(self) -> ParseContext:
        return self.session.get_context()

    # ------------------------------------------------------------------
    # Parsing and detection
    # ------------------------------------------------------------------

    def parse_reference(self, text: str) -> Optional[List[ParsedReference]]:
        """Resolve text to references without looking up verse text."""
        return self.session.resolve(text)

    def find_references(self, text: str, options: Optional[DetectOptions] = None) -> List[ParsedReference]:
        """
        Normalize, split run-together numbers and resolve, without looking up text.

        Numbered-list speech ("number three") is never treated as Scripture.
        """
        options = options or DetectOptions()
        if not text or not text.strip() or is_likely_numbered_list(text):
            return []

        try:
            normalized = normalize(text, aggressive=options.aggressive_speech_normalization)
        except Exception as e:
            print(f"  ⚠ Normalization failed for '{text}': {e}", file=sys.stderr)
            normalized = text
        normalized = disambiguate_combined(normalized, self.dataset, self.grammar)
        return self.session.resolve(normalized) or []

    def detect_and_lookup(self, text: str, options: Optional[DetectOptions] = None) -> List[DetectedReference]:
        """
        Detect Scripture references in text and return one result per verse.

        Returns:
            Detected verses in reference order; empty when nothing was found
        """
        options = options or DetectOptions()
        if not text or not text.strip():
            return []

        command = is_navigation_command(text)
        if command:
            navigated = self._navigate(command, text)
            if navigated:
                return navigated

        references = self.find_references(text, options)
        if not references:
            return []

        results: List[DetectedReference] = []
        for reference in references:
            for verse in self.dataset.lookup_range(reference):
                results.append(DetectedReference(
                    display_ref=verse.display_ref,
                    verse_text=verse.text,
                    book=reference.book,
                    chapter=verse.chapter or reference.chapter,
                    verse=verse.verse,
                    transcript_text=text,
                ))
        return results

    def _navigation_target(self, command: str) -> Optional[VerseLocation]:
        context = self.session.context
        if not context.book or not context.chapter:
            return None
        if command == 'next' and context.verse:
            return self.dataset.next_verse(context.book, context.chapter, context.verse)
        if command == 'previous' and context.verse:
            return self.dataset.previous_verse(context.book, context.chapter, context.verse)
        if command == 'next_chapter':
            return VerseLocation(context.book, context.chapter + 1, 1)
        if command == 'previous_chapter' and context.chapter > 1:
            return VerseLocation(context.book, context.chapter - 1, 1)
        return None

    def _navigate(self, command: str, text: str) -> List[DetectedReference]:
        target = self._navigation_target(command)
        if target is None:
            return []
        loaded = self.dataset.load_verse_by_components(target.book, target.chapter, target.verse)
        if loaded is None:
            return []
        self.session.update_context([make_reference(loaded.book, loaded.chapter, loaded.verse)], text)
        return [DetectedReference(
            display_ref=loaded.display_ref,
            verse_text=loaded.verse_text,
            book=loaded.book,
            chapter=loaded.chapter,
            verse=loaded.verse,
            transcript_text=text,
            is_navigation_result=True,
        )]

    # ------------------------------------------------------------------
    # Lookup and navigation
    # ------------------------------------------------------------------

    def lookup_verse(self, reference: ParsedReference) -> Optional[str]:
        return self.dataset.lookup_one(reference)

    def lookup_verses(self, reference: ParsedReference) -> List[Dict[str, Any]]:
        return [verse.to_dict() for verse in self.dataset.lookup_range(reference)]

    def get_verse_navigation(self, book: str, chapter: int, verse: int) -> NavigationResult:
        return self.dataset.get_verse_navigation(book, chapter, verse)

    def load_verse_by_components(self, book: str, chapter: int, verse: int) -> Optional[LoadedVerse]:
        return self.dataset.load_verse_by_components(book, chapter, verse)


# ============================================================================
# DEFAULT ENGINE
# ============================================================================

_default_engine: Optional[SmartVerses] = None


def get_engine() -> SmartVerses:
    """The shared engine behind the module-level functions, created on first use."""
    global _default_engine
    if _default_engine is None:
        _default_engine = SmartVerses()
    return _default_engine


def reset_context():
    get_engine().reset_context()


def get_context() -> ParseContext:
    return get_engine().get_context()


def parse_reference(text: str) -> Optional[List[ParsedReference]]:
    return get_engine().parse_reference(text)


def detect_and_lookup(text: str, aggressive_speech_normalization: bool = False) -> List[DetectedReference]:
    options = DetectOptions(aggressive_speech_normalization=aggressive_speech_normalization)
    return get_engine().detect_and_lookup(text, options)


def lookup_verse(reference: ParsedReference) -> Optional[str]:
    return get_engine().lookup_verse(reference)


def lookup_verses(reference: ParsedReference) -> List[Dict[str, Any]]:
    return get_engine().lookup_verses(reference)


def get_verse_navigation(book: str, chapter: int, verse: int) -> NavigationResult:
    return get_engine().get_verse_navigation(book, chapter, verse)


def load_verse_by_components(book: str, chapter: int, verse: int) -> Optional[LoadedVerse]:
    return get_engine().load_verse_by_components(book, chapter, verse)
