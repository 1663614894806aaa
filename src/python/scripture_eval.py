#!/usr/bin/env python3
"""
Scripture detection evaluation.

Runs labelled transcript chunks through the detection pipeline (live speech
mode, fresh context per chunk) and scores them. Each input line is a JSON
object:

    {"index": 12, "text": "turn with me to Romans three, five",
     "expected_references": ["Romans 3:5"]}

A chunk passes when every expected verse is found (ranges are expanded to
single verses). A chunk labelled with no references passes only when nothing
is detected; detecting something there is a false positive.

Usage:
    python scripture_eval.py --input cases.jsonl [--verses path] [--failures-out path]
"""

import argparse
import json
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from bible_books import contains_bible_book
from smart_verses import DetectOptions, SmartVerses
from verse_dataset import VerseDataset


@dataclass
class EvalSummary:
    total: int = 0
    passed: int = 0
    false_positives: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)
    records: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def scored_total(self) -> int:
        """Chunks counted in the score; false positives are reported separately."""
        return max(self.total - self.false_positives, 1)

    @property
    def score(self) -> float:
        return round(self.passed / self.scored_total * 100, 2)


def normalize_reference(ref: str) -> str:
    return re.sub(r'\s+', ' ', ref.strip().lower())


def expand_reference(ref: str) -> List[str]:
    """
    "Isaiah 45:1-3" -> ["isaiah 45:1", "isaiah 45:2", "isaiah 45:3"].

    Cross-chapter ranges only expand to the start verse, the first verse of
    each later chapter and the end verse.
    """
    normalized = normalize_reference(ref)

    cross = re.match(r'^(.+?)\s+(\d+):(\d+)-(\d+):(\d+)$', normalized)
    if cross:
        book = cross.group(1)
        sc, sv, ec, ev = (int(cross.group(i)) for i in range(2, 6))
        if min(sc, sv, ec, ev) > 0 and ec >= sc:
            expanded = [f"{book} {sc}:{sv}"]
            expanded.extend(f"{book} {c}:1" for c in range(sc + 1, ec + 1))
            expanded.append(f"{book} {ec}:{ev}")
            return expanded

    verse_range = re.match(r'^(.+?)\s+(\d+):(\d+)-(\d+)$', normalized)
    if verse_range:
        book, chapter = verse_range.group(1), verse_range.group(2)
        start, end = int(verse_range.group(3)), int(verse_range.group(4))
        return [f"{book} {chapter}:{v}" for v in range(start, end + 1)]

    return [normalized]


def expand_reference_set(refs: Iterable[str]) -> Set[str]:
    expanded: Set[str] = set()
    for ref in refs:
        expanded.update(expand_reference(ref))
    return expanded


def expected_references(case: Dict[str, Any]) -> List[str]:
    for key in ('expected_references', 'expected', 'groq_references'):
        if isinstance(case.get(key), list):
            return case[key]
    return []


def evaluate_case(engine: SmartVerses, case: Dict[str, Any], check_false_positives: bool = True) -> Dict[str, Any]:
    text = case.get('text') or case.get('transcript') or ''
    expected = expected_references(case)

    engine.reset_context()
    references = engine.find_references(text, DetectOptions(aggressive_speech_normalization=True))
    parsed = [ref.display_ref for ref in references]

    expected_set = expand_reference_set(expected)
    parsed_set = expand_reference_set(parsed)
    is_false_positive = check_false_positives and not expected_set and bool(parsed_set)
    passed = not parsed_set if not expected_set else expected_set <= parsed_set

    return {
        'index': case.get('index'),
        'text': text,
        'expected_references': expected,
        'parsed_references': parsed,
        'pass': 'false_positive' if is_false_positive else passed,
    }


def run_eval(cases: Iterable[Dict[str, Any]], engine: SmartVerses,
             check_false_positives: bool = True) -> EvalSummary:
    summary = EvalSummary()
    for case in cases:
        record = evaluate_case(engine, case, check_false_positives)
        summary.total += 1
        summary.records.append(record)
        if record['pass'] == 'false_positive':
            summary.false_positives += 1
            summary.failures.append(record)
        elif record['pass']:
            summary.passed += 1
        elif contains_bible_book(record['text']):
            # Chatter without any book name is not worth reviewing
            summary.failures.append(record)
    summary.failures.sort(key=lambda r: r['index'] if isinstance(r['index'], int) else 0)
    return summary


def load_cases(path: Path) -> List[Dict[str, Any]]:
    """Read JSON lines, or a single JSON array."""
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()
    if content.lstrip().startswith('['):
        return json.loads(content)
    return [json.loads(line) for line in content.splitlines() if line.strip()]


def write_json_lines(path: Path, records: List[Dict[str, Any]]):
    with open(path, 'w', encoding='utf-8') as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False) + '\n')


def print_summary(summary: EvalSummary):
    print("=" * 70)
    print("SCRIPTURE DETECTION EVALUATION")
    print("=" * 70)
    print(f"  Chunks:          {summary.total}")
    print(f"  Passed:          {summary.passed}")
    print(f"  False positives: {summary.false_positives}")
    print(f"  Failures:        {len(summary.failures) - summary.false_positives}")
    print()
    print(f"  Pass score: {summary.passed}/{summary.scored_total} ({summary.score}%)")
    if summary.false_positives:
        print(f"  ⚠️  {summary.false_positives} false positive(s) detected "
              f"(references found when none expected)")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Score Scripture detection against labelled transcripts.")
    parser.add_argument("--input", required=True, help="JSON lines file of labelled chunks")
    parser.add_argument("--verses", default=None, help="Verse dataset JSON (default: bundled dataset)")
    parser.add_argument("--failures-out", default=None, help="Write failing chunks here as JSON lines")
    parser.add_argument("--start", type=int, default=0, help="Skip this many chunks")
    parser.add_argument("--limit", type=int, default=0, help="Evaluate at most this many chunks")
    parser.add_argument("--no-check-false-positives", dest="check_false_positives",
                        action="store_false", help="Score empty-label chunks as plain passes/failures")
    args = parser.parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input not found at {input_path}", file=sys.stderr)
        return 2

    try:
        cases = load_cases(input_path)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: Could not read {input_path}: {e}", file=sys.stderr)
        return 2

    cases = cases[args.start:]
    if args.limit > 0:
        cases = cases[:args.limit]

    engine = SmartVerses(dataset=VerseDataset(args.verses) if args.verses else None)
    summary = run_eval(cases, engine, args.check_false_positives)
    print_summary(summary)

    if args.failures_out:
        write_json_lines(Path(args.failures_out), summary.failures)
        print(f"  Failures written to {args.failures_out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
