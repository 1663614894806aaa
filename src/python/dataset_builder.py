#!/usr/bin/env python3
"""
Verse Dataset Builder

Downloads every chapter of the 66 books from the Bolls.life API and writes the
"{Book} {chapter}:{verse}" -> text JSON file that VerseDataset reads.

API format:
- Full chapter: https://bolls.life/get-text/{translation}/{book_id}/{chapter}/

Usage:
    python dataset_builder.py --translation KJV --output data/verses-kjv.json
"""

import argparse
import json
import os
import re
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

import requests
from tqdm import tqdm

from bible_books import BOOK_ID_MAP, BOOK_ORDER, chapter_count
from verse_dataset import DEFAULT_VERSES_PATH, verse_key

# ============================================================================
# CONFIGURATION
# ============================================================================

BIBLE_API_BASE = "https://bolls.life"
DEFAULT_TRANSLATION = os.environ.get('SMARTVERSES_TRANSLATION', 'KJV')
API_RATE_LIMIT_DELAY = 0.5  # seconds between chapter requests
REQUEST_TIMEOUT = 10


class BollsClient:
    """Chapter fetcher for the Bolls.life API with rate limiting."""

    def __init__(self, translation: str = DEFAULT_TRANSLATION, delay: float = API_RATE_LIMIT_DELAY,
                 session: Optional[requests.Session] = None):
        self.translation = translation
        self.delay = delay
        self.session = session or requests.Session()
        self.last_request_time = 0.0

    def _rate_limit(self):
        """Ensure we don't exceed API rate limits."""
        elapsed = time.time() - self.last_request_time
        if elapsed < self.delay:
            time.sleep(self.delay - elapsed)
        self.last_request_time = time.time()

    def _clean_html(self, text: str) -> str:
        """Remove HTML tags and Strong's numbers from verse text.

        Bolls.life returns verse text with Strong's numbers embedded in tags like:
        "Wherefore<S>3606</S> he is able<S>1410</S>..."
        """
        text = re.sub(r'<S>\d+</S>', '', text)
        text = re.sub(r'<sup>[^<]*</sup>', '', text)
        text = re.sub(r'<[^>]+>', '', text)
        text = re.sub(r'\s+', ' ', text)
        return text.strip()

    def fetch_chapter(self, book: str, chapter: int) -> Optional[List[dict]]:
        """Fetch an entire chapter; None on HTTP or network failure."""
        book_id = BOOK_ID_MAP.get(book)
        if not book_id:
            print(f"  ⚠ Unknown book: {book}", file=sys.stderr)
            return None

        self._rate_limit()

        try:
            url = f"{BIBLE_API_BASE}/get-text/{self.translation}/{book_id}/{chapter}/"
            response = self.session.get(url, timeout=REQUEST_TIMEOUT)

            if response.status_code == 200:
                data = response.json()
                if data and isinstance(data, list):
                    return [
                        {'verse': item['verse'], 'text': self._clean_html(item['text'])}
                        for item in data
                        if item.get('verse') and item.get('text')
                    ]
            else:
                print(f"  ⚠ HTTP {response.status_code} for {book} {chapter}", file=sys.stderr)
        except (requests.RequestException, ValueError) as e:
            print(f"  ⚠ Request error for {book} {chapter}: {e}", file=sys.stderr)

        return None


def build_dataset(client: BollsClient, books: Optional[List[str]] = None,
                  progress: bool = True) -> Dict[str, str]:
    """
    Fetch every chapter of the given books (all 66 by default).

    Chapters that fail to download are reported and skipped.
    """
    books = books or BOOK_ORDER
    chapters = [(book, chapter) for book in books for chapter in range(1, chapter_count(book) + 1)]

    verses: Dict[str, str] = {}
    missing = []
    for book, chapter in tqdm(chapters, desc="Chapters", unit="ch", disable=not progress, file=sys.stderr):
        items = client.fetch_chapter(book, chapter)
        if not items:
            missing.append(f"{book} {chapter}")
            continue
        for item in items:
            verses[verse_key(book, chapter, int(item['verse']))] = item['text']

    if missing:
        print(f"  ⚠ {len(missing)} chapters could not be fetched: {', '.join(missing[:10])}", file=sys.stderr)
    return verses


def write_dataset(verses: Dict[str, str], output: Path):
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        json.dump(verses, f, ensure_ascii=False, indent=0)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build the SmartVerses verse dataset from the Bolls.life API."
    )
    parser.add_argument(
        "--translation", default=DEFAULT_TRANSLATION,
        help=f"Bolls.life translation code (default: {DEFAULT_TRANSLATION})",
    )
    parser.add_argument(
        "--output", default=str(DEFAULT_VERSES_PATH),
        help="Output JSON file (default: data/verses-kjv.json next to this module)",
    )
    parser.add_argument(
        "--books", nargs="*", default=None,
        help="Only fetch these books (display names, e.g. \"1 John\")",
    )
    parser.add_argument(
        "--delay", type=float, default=API_RATE_LIMIT_DELAY,
        help=f"Seconds between requests (default: {API_RATE_LIMIT_DELAY})",
    )
    args = parser.parse_args(argv)

    unknown = [book for book in (args.books or []) if book not in BOOK_ID_MAP]
    if unknown:
        print(f"[ERROR] Unknown books: {', '.join(unknown)}", file=sys.stderr)
        return 2

    client = BollsClient(translation=args.translation, delay=args.delay)
    verses = build_dataset(client, args.books)
    if not verses:
        print("[ERROR] No verses were fetched", file=sys.stderr)
        return 1

    output = Path(args.output)
    try:
        write_dataset(verses, output)
    except OSError as e:
        print(f"[ERROR] Could not write {output}: {e}", file=sys.stderr)
        return 1

    print(f"  ✓ Wrote {len(verses)} verses to {output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
