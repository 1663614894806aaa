#!/usr/bin/env python3
"""
SmartVerses Python Bridge

JSON-lines subprocess interface for the host app to:
1. Detect Scripture references in typed queries or transcript segments
2. Look up verse text and step through neighbouring verses
3. Read or reset the conversation context

Protocol: one JSON command per line on stdin, one JSON line per response on
stdout ({"type": "result", ...} or {"type": "error", "error": ...}). The
session lives as long as the process, so "verse 17" after "John 3:16"
resolves to John 3:17. Diagnostics go to stderr.
"""

import sys
import json
import traceback
from typing import Optional, Dict, Any

from bible_books import canonical_book_name, chapter_count
from reference_resolver import make_reference
from smart_verses import DetectOptions, SmartVerses, get_engine

# ============================================================================
# OUTPUT
# ============================================================================

def emit_error(error: str, command: Optional[str] = None):
    """Emit an error to stdout as JSON."""
    result = {
        "type": "error",
        "error": error,
        "command": command
    }
    print(json.dumps(result), flush=True)


def emit_result(data: Dict[str, Any]):
    """Emit a command result to stdout as JSON."""
    result = {
        "type": "result",
        **data
    }
    print(json.dumps(result), flush=True)


# ============================================================================
# COMMAND HANDLER
# ============================================================================

def _components(command: Dict[str, Any]):
    book = canonical_book_name(str(command.get('book', '')))
    try:
        chapter = int(command.get('chapter'))
        verse = int(command.get('verse'))
    except (TypeError, ValueError):
        return book, None, None
    return book, chapter, verse


def handle_command(command: Dict[str, Any], engine: Optional[SmartVerses] = None) -> Dict[str, Any]:
    """
    Handle a command from the host app.

    Commands:
        - detect: Detect references in text and return verses with text
        - parse: Resolve references without looking up text
        - lookup: Verses for a book/chapter/startVerse[/endVerse/endChapter] reference
        - navigate: Previous/next verse around book/chapter/verse
        - load_verse: One verse by book/chapter/verse
        - reset_context / get_context: Conversation context
        - check_dependencies: Check if all required packages are installed
    """
    engine = engine or get_engine()
    cmd = command.get('command', '')

    if cmd == 'check_dependencies':
        return check_dependencies(engine)

    elif cmd == 'detect':
        text = command.get('text')
        if not text:
            return {'error': 'text is required'}
        options = DetectOptions.from_dict(command)
        references = engine.detect_and_lookup(text, options)
        return {'references': [ref.to_dict() for ref in references]}

    elif cmd == 'parse':
        text = command.get('text')
        if not text:
            return {'error': 'text is required'}
        references = engine.parse_reference(text) or []
        return {'references': [ref.to_dict() for ref in references]}

    elif cmd == 'lookup':
        book = canonical_book_name(str(command.get('book', '')))
        if not book:
            return {'error': f"Unknown book: {command.get('book')}"}
        try:
            chapter = int(command.get('chapter'))
            start_verse = int(command.get('startVerse', command.get('verse', 1)))
            end_verse = int(command.get('endVerse', start_verse))
            end_chapter = int(command['endChapter']) if command.get('endChapter') else None
        except (TypeError, ValueError):
            return {'error': 'chapter and startVerse must be integers'}
        if not 1 <= chapter <= chapter_count(book) or start_verse < 1:
            return {'error': f"Invalid reference: {book} {chapter}:{start_verse}"}
        if end_chapter is not None and end_chapter < chapter:
            return {'error': 'endChapter must not be before chapter'}
        if end_chapter is not None and end_chapter > chapter_count(book):
            return {'error': f"Invalid endChapter: {book} {end_chapter}"}
        if end_verse < 1 or ((end_chapter is None or end_chapter == chapter) and end_verse < start_verse):
            return {'error': 'endVerse must not be before startVerse'}
        reference = make_reference(book, chapter, start_verse, end_verse, end_chapter)
        return {
            'reference': reference.to_dict(),
            'verses': engine.lookup_verses(reference),
        }

    elif cmd == 'navigate':
        book, chapter, verse = _components(command)
        if not book or chapter is None:
            return {'error': 'book, chapter and verse are required'}
        return {'navigation': engine.get_verse_navigation(book, chapter, verse).to_dict()}

    elif cmd == 'load_verse':
        book, chapter, verse = _components(command)
        if not book or chapter is None:
            return {'error': 'book, chapter and verse are required'}
        loaded = engine.load_verse_by_components(book, chapter, verse)
        return {'verse': loaded.to_dict() if loaded else None}

    elif cmd == 'reset_context':
        engine.reset_context()
        return {'context': engine.get_context().to_dict()}

    elif cmd == 'get_context':
        return {'context': engine.get_context().to_dict()}

    else:
        return {'error': f'Unknown command: {cmd}'}


def check_dependencies(engine: Optional[SmartVerses] = None) -> Dict[str, Any]:
    """Check if all required Python packages are installed and the verse dataset loads."""
    deps: Dict[str, Any] = {
        'requests': False,
        'tqdm': False,
    }

    try:
        import requests
        deps['requests'] = True
        deps['requests_version'] = str(requests.__version__)
    except ImportError:
        pass

    try:
        import tqdm
        deps['tqdm'] = True
    except ImportError:
        pass

    dataset = (engine or get_engine()).dataset
    try:
        verse_count = len(dataset.load())
    except Exception as e:
        print(f"  ⚠ {e}", file=sys.stderr)
        verse_count = 0

    return {
        'dependencies': deps,
        'all_installed': all(deps.get(k, False) for k in ['requests', 'tqdm']),
        'versesPath': str(dataset.path) if dataset.path else None,
        'verseCount': verse_count,
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def serve(stdin=None, engine: Optional[SmartVerses] = None):
    """Answer one command per input line until stdin closes."""
    stdin = stdin or sys.stdin
    for line in stdin:
        if not line.strip():
            continue
        try:
            command = json.loads(line)
        except json.JSONDecodeError as e:
            emit_error(f"Invalid JSON input: {e}")
            continue
        if not isinstance(command, dict):
            emit_error("Command must be a JSON object")
            continue

        try:
            result = handle_command(command, engine)
        except Exception as e:
            emit_error(f"Error processing command: {e}\n{traceback.format_exc()}", command.get('command'))
            continue
        if 'error' in result:
            emit_error(result['error'], command.get('command'))
        else:
            emit_result(result)


def main():
    """
    Main entry point for subprocess mode.
    Reads JSON commands from stdin and writes JSON responses to stdout.
    """
    # Ensure proper stdout encoding for JSON output
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore[union-attr]
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore[union-attr]
    serve()


if __name__ == "__main__":
    main()
