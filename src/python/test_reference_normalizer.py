#!/usr/bin/env python3
"""
Tests for reference normalization of typed queries and transcripts.

Covers:
- Sentence-break periods and spoken cadence commas
- Number words, ordinals and Roman numerals
- Transcription error repairs (only before a number)
- Trailing verse lists, chapter lists and chapter ranges
- Missing spaces and concatenated references
- Aggressive (live speech) rewrites
- Idempotency
- Navigation and numbered-list classifiers
"""

import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from reference_normalizer import (
    format_verse_ranges,
    is_likely_numbered_list,
    is_navigation_command,
    merge_verse_ranges,
    normalize,
    normalize_spoken_chapter_digits,
    normalize_transcription_errors,
    parse_verse_range_list,
    preprocess_reference,
    roman_to_int,
    words_to_numbers,
)


# ============================================================================
# PREPROCESSING AND NUMBERS
# ============================================================================

class TestPreprocessing(unittest.TestCase):

    def test_sentence_periods_become_spaces(self):
        self.assertEqual(preprocess_reference("Luke. Three. Three."), "Luke Three Three")

    def test_decimal_periods_are_kept(self):
        self.assertEqual(preprocess_reference("Romans 12.1"), "Romans 12.1")

    def test_word_commas_are_dropped(self):
        """A comma after a book name goes; one between two number words stays."""
        self.assertEqual(preprocess_reference("Romans, three, five"), "Romans three, five")

    def test_dash_variants(self):
        self.assertEqual(preprocess_reference("John 3:16–18"), "John 3:16-18")


class TestNumbers(unittest.TestCase):

    def test_simple_words(self):
        self.assertEqual(words_to_numbers("John three sixteen"), "John 3 16")

    def test_compound_words(self):
        self.assertEqual(words_to_numbers("twenty-one"), "21")
        self.assertEqual(words_to_numbers("twenty one"), "21")

    def test_hundreds(self):
        self.assertEqual(words_to_numbers("Psalm one hundred nineteen"), "Psalm 119")

    def test_roman_to_int(self):
        self.assertEqual(roman_to_int("iv"), 4)
        self.assertEqual(roman_to_int("XL"), 40)
        self.assertIsNone(roman_to_int("abc"))

    def test_spoken_chapter_digits(self):
        self.assertEqual(
            normalize_spoken_chapter_digits("Psalm 1 1 9 verse 105"),
            "Psalm 119 verse 105",
        )


class TestTranscriptionErrors(unittest.TestCase):

    def test_before_number(self):
        self.assertEqual(normalize_transcription_errors("look 3 3"), "Luke 3 3")
        self.assertEqual(normalize_transcription_errors("romance 3:23"), "Romans 3:23")

    def test_before_chapter(self):
        self.assertEqual(normalize_transcription_errors("axe chapter 2"), "Acts chapter 2")

    def test_ordinary_words_untouched(self):
        self.assertEqual(normalize_transcription_errors("look at this"), "look at this")


# ============================================================================
# VERSE LISTS
# ============================================================================

class TestVerseLists(unittest.TestCase):

    def test_parse_list(self):
        self.assertEqual(parse_verse_range_list("4, 5 and 7"), [(4, 4), (5, 5), (7, 7)])

    def test_parse_range(self):
        self.assertEqual(parse_verse_range_list("29 through 31"), [(29, 31)])

    def test_parse_drops_out_of_range_numbers(self):
        self.assertEqual(parse_verse_range_list("0 and 250"), [])

    def test_merge_adjacent(self):
        self.assertEqual(merge_verse_ranges([(7, 7), (4, 4), (5, 5)]), [(4, 5), (7, 7)])

    def test_format(self):
        self.assertEqual(format_verse_ranges([(4, 4), (5, 5), (7, 7)]), "4-5, 7")
        self.assertIsNone(format_verse_ranges([]))


# ============================================================================
# NORMALIZE
# ============================================================================

class TestNormalize(unittest.TestCase):

    def test_spoken_commas(self):
        self.assertEqual(normalize("Romans three, five"), "Romans 3:5")
        self.assertEqual(normalize("Romans, three, five"), "Romans 3:5")

    def test_sentence_periods(self):
        self.assertEqual(normalize("Luke. Three. Three."), "Luke 3 3")

    def test_roman_numeral_book(self):
        self.assertEqual(normalize("II Kings 2"), "2 Kings 2")

    def test_roman_numeral_chapter(self):
        self.assertEqual(normalize("John chapter iv"), "John chapter 4")

    def test_book_chapter_colon_verse(self):
        self.assertEqual(normalize("Luke chapter 4:1"), "Luke 4:1")

    def test_trailing_verse_list(self):
        self.assertEqual(normalize("John 3:16 and 17"), "John 3:16-17")

    def test_trailing_list_keeps_gaps(self):
        self.assertEqual(normalize("Romans 3:3, 5"), "Romans 3:3, 5")

    def test_chapter_verse_list_left_alone(self):
        self.assertEqual(normalize("John 3:16, 4:2"), "John 3:16, 4:2")

    def test_explicit_chapter_list(self):
        self.assertEqual(normalize("Exodus chapters 30 and 31"), "Exodus 30:1; Exodus 31:1")

    def test_chapter_range(self):
        self.assertEqual(normalize("Matthew 21 to 22"), "Matthew 21:1; Matthew 22:1")

    def test_missing_space(self):
        self.assertEqual(normalize("John3:16"), "John 3:16")

    def test_concatenated_references(self):
        self.assertEqual(normalize("Daniel2:16Daniel 2:17"), "Daniel 2:16 Daniel 2:17")

    def test_osis_string_untouched(self):
        self.assertEqual(normalize("John.3.17"), "John.3.17")

    def test_no_book_skips_book_rewrites(self):
        self.assertEqual(normalize("verse seventeen"), "verse 17")

    def test_empty(self):
        self.assertEqual(normalize(""), "")


class TestAggressiveNormalize(unittest.TestCase):

    def test_space_separated_only_when_aggressive(self):
        self.assertEqual(normalize("Luke 3 3"), "Luke 3 3")
        self.assertEqual(normalize("Luke 3 3", aggressive=True), "Luke 3:3")

    def test_verse_keyword(self):
        self.assertEqual(normalize("Psalm 66 verse 3", aggressive=True), "Psalm 66:3")

    def test_verse_keyword_list(self):
        self.assertEqual(normalize("John 3 verses 4, 5 and 7", aggressive=True), "John 3:4-5, 7")

    def test_spoken_numbers(self):
        self.assertEqual(normalize("John three sixteen", aggressive=True), "John 3:16")

    def test_filler_between_chapter_and_verse(self):
        self.assertEqual(
            normalize("Psalms 107 thank you Holy Spirit verse 15 and 16", aggressive=True),
            "Psalms 107:15-16",
        )

    def test_spoken_chapter_digits(self):
        self.assertEqual(normalize("Psalm 1 1 9 verse 105", aggressive=True), "Psalm 119:105")


class TestIdempotency(unittest.TestCase):

    CASES = [
        "John 3:16 and 17",
        "Romans three, five",
        "Luke. Three. Three.",
        "Exodus chapters 30 and 31",
        "Matthew 21 to 22",
        "Daniel2:16Daniel 2:17",
        "John 3 verses 4, 5 and 7",
    ]

    def test_normalize_twice(self):
        for aggressive in (False, True):
            for text in self.CASES:
                with self.subTest(text=text, aggressive=aggressive):
                    once = normalize(text, aggressive=aggressive)
                    self.assertEqual(normalize(once, aggressive=aggressive), once)


# ============================================================================
# CLASSIFIERS
# ============================================================================

class TestNavigationCommand(unittest.TestCase):

    def test_verse_steps(self):
        self.assertEqual(is_navigation_command("next verse"), 'next')
        self.assertEqual(is_navigation_command("Go back"), 'previous')
        self.assertEqual(is_navigation_command("previous scripture"), 'previous')

    def test_chapter_steps(self):
        self.assertEqual(is_navigation_command("next chapter"), 'next_chapter')
        self.assertEqual(is_navigation_command("go back a chapter"), 'previous_chapter')

    def test_not_navigation(self):
        self.assertIsNone(is_navigation_command("John 3:16"))
        self.assertIsNone(is_navigation_command(""))


class TestNumberedList(unittest.TestCase):

    def test_list_item(self):
        self.assertTrue(is_likely_numbered_list("number three"))
        self.assertTrue(is_likely_numbered_list("and number 2 is grace"))

    def test_scripture_cues_rule_it_out(self):
        self.assertFalse(is_likely_numbered_list("Numbers 3"))
        self.assertFalse(is_likely_numbered_list("number three in John"))
        self.assertFalse(is_likely_numbered_list("number 3 verse 2"))
        self.assertFalse(is_likely_numbered_list("number 3:2"))

    def test_no_number_word(self):
        self.assertFalse(is_likely_numbered_list("three points"))


if __name__ == '__main__':
    unittest.main()
