"""
Tests for the canonical book table.

Covers:
- Book ordering, ids and chapter counts
- Alias resolution (abbreviations, numbered books, OSIS codes)
- contains_bible_book() guardrails
- Neighbouring books for navigation
"""

import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bible_books import (
    BOOK_CHAPTER_COUNTS,
    BOOK_ID_MAP,
    BOOK_ORDER,
    OSIS_TO_BOOK,
    SINGLE_CHAPTER_BOOKS,
    canonical_book_name,
    chapter_count,
    contains_bible_book,
    is_valid_chapter,
    next_book,
    osis_code,
    previous_book,
)


class TestBookTable(unittest.TestCase):

    def test_sixty_six_books_in_order(self):
        self.assertEqual(len(BOOK_ORDER), 66)
        self.assertEqual(BOOK_ORDER[0], 'Genesis')
        self.assertEqual(BOOK_ORDER[-1], 'Revelation')
        self.assertEqual(BOOK_ID_MAP['Matthew'], 40)

    def test_chapter_counts(self):
        self.assertEqual(BOOK_CHAPTER_COUNTS['Psalms'], 150)
        self.assertEqual(BOOK_CHAPTER_COUNTS['John'], 21)
        self.assertEqual(chapter_count('Obadiah'), 1)
        self.assertEqual(chapter_count('Not A Book'), 0)

    def test_single_chapter_books(self):
        self.assertEqual(
            SINGLE_CHAPTER_BOOKS,
            {'Obadiah', 'Philemon', '2 John', '3 John', 'Jude'},
        )

    def test_is_valid_chapter(self):
        self.assertTrue(is_valid_chapter('Genesis', 50))
        self.assertFalse(is_valid_chapter('Genesis', 51))
        self.assertFalse(is_valid_chapter('Genesis', 0))

    def test_osis_round_trip(self):
        for book in BOOK_ORDER:
            self.assertEqual(OSIS_TO_BOOK[osis_code(book)], book)
        self.assertEqual(osis_code('1 Corinthians'), '1Cor')


class TestCanonicalBookName(unittest.TestCase):

    def test_full_names_and_abbreviations(self):
        self.assertEqual(canonical_book_name('romans'), 'Romans')
        self.assertEqual(canonical_book_name('Rom.'), 'Romans')
        self.assertEqual(canonical_book_name('Ps'), 'Psalms')
        self.assertEqual(canonical_book_name('psalm'), 'Psalms')

    def test_numbered_books(self):
        self.assertEqual(canonical_book_name('1st John'), '1 John')
        self.assertEqual(canonical_book_name('first john'), '1 John')
        self.assertEqual(canonical_book_name('II Kings'), '2 Kings')
        self.assertEqual(canonical_book_name('1john'), '1 John')

    def test_book_of_prefix(self):
        self.assertEqual(canonical_book_name('the book of Acts'), 'Acts')

    def test_unknown(self):
        self.assertIsNone(canonical_book_name('Hezekiah'))
        self.assertIsNone(canonical_book_name(''))


class TestContainsBibleBook(unittest.TestCase):

    def test_full_name(self):
        self.assertTrue(contains_bible_book('turn with me to Romans'))

    def test_abbreviation_needs_chapter_cue(self):
        self.assertTrue(contains_bible_book('Gen 1'))
        self.assertTrue(contains_bible_book('Rom. 3'))
        self.assertFalse(contains_bible_book('the gen z crowd'))

    def test_no_book(self):
        self.assertFalse(contains_bible_book('verse seven please'))
        self.assertFalse(contains_bible_book(''))


class TestNeighbours(unittest.TestCase):

    def test_previous_and_next(self):
        self.assertEqual(previous_book('Exodus'), 'Genesis')
        self.assertEqual(next_book('Malachi'), 'Matthew')

    def test_boundaries(self):
        self.assertIsNone(previous_book('Genesis'))
        self.assertIsNone(next_book('Revelation'))
        self.assertIsNone(next_book('Hezekiah'))


if __name__ == '__main__':
    unittest.main()
