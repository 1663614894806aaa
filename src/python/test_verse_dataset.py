"""
Tests for the verse dataset: loading, lookup, text cleanup and navigation.
"""

import sys
import os
import json
import tempfile
import threading
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from reference_resolver import make_reference
from verse_dataset import (
    VERSES_PATH_ENV,
    VerseDataset,
    VerseDatasetError,
    clean_verse_text,
)

SAMPLE_VERSES = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'testdata', 'verses-sample.json')


class TestLoading(unittest.TestCase):

    def test_loads_fixture(self):
        dataset = VerseDataset(SAMPLE_VERSES)
        self.assertFalse(dataset.is_loaded)
        verses = dataset.load()
        self.assertTrue(dataset.is_loaded)
        self.assertIn('John 3:16', verses)

    def test_load_is_cached(self):
        dataset = VerseDataset(SAMPLE_VERSES)
        self.assertIs(dataset.load(), dataset.load())

    def test_mapping_is_read_only(self):
        verses = VerseDataset(SAMPLE_VERSES).load()
        with self.assertRaises(TypeError):
            verses['John 3:16'] = 'changed'  # type: ignore[index]

    def test_concurrent_first_load_reads_once(self):
        dataset = VerseDataset(SAMPLE_VERSES)
        original = dataset._read_file
        calls = []

        def counting_read():
            calls.append(1)
            return original()

        with patch.object(dataset, '_read_file', side_effect=counting_read):
            threads = [threading.Thread(target=dataset.load) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        self.assertEqual(len(calls), 1)

    def test_missing_file_raises_and_is_not_cached(self):
        dataset = VerseDataset('/nonexistent/verses.json')
        with self.assertRaises(VerseDatasetError):
            dataset.load()
        self.assertFalse(dataset.is_loaded)

    def test_non_object_json_raises(self):
        with tempfile.NamedTemporaryFile('w', suffix='.json', delete=False) as f:
            json.dump(["not", "a", "mapping"], f)
        try:
            with self.assertRaises(VerseDatasetError):
                VerseDataset(f.name).load()
        finally:
            os.unlink(f.name)

    def test_path_from_environment(self):
        with patch.dict(os.environ, {VERSES_PATH_ENV: SAMPLE_VERSES}):
            dataset = VerseDataset()
        self.assertEqual(str(dataset.path), SAMPLE_VERSES)

    def test_in_memory_verses(self):
        dataset = VerseDataset(verses={'Jude 1:1': 'Jude, the servant of Jesus Christ'})
        self.assertTrue(dataset.verse_exists('Jude', 1, 1))
        self.assertIsNone(dataset.path)

    def test_lookups_survive_missing_file(self):
        dataset = VerseDataset('/nonexistent/verses.json')
        self.assertFalse(dataset.verse_exists('John', 3, 16))
        self.assertIsNone(dataset.get_text('John', 3, 16))
        self.assertEqual(dataset.lookup_range(make_reference('John', 3, 16)), [])


class TestCleanVerseText(unittest.TestCase):

    def test_strips_paragraph_marker(self):
        self.assertEqual(clean_verse_text('# For God so loved'), 'For God so loved')

    def test_unwraps_italic_brackets(self):
        self.assertEqual(clean_verse_text('The LORD [is] my shepherd'), 'The LORD is my shepherd')


class TestLookup(unittest.TestCase):

    def setUp(self):
        self.dataset = VerseDataset(SAMPLE_VERSES)

    def test_lookup_one_is_clean(self):
        text = self.dataset.lookup_one(make_reference('John', 3, 16))
        self.assertTrue(text.startswith('For God so loved the world'))

    def test_lookup_one_missing(self):
        self.assertIsNone(self.dataset.lookup_one(make_reference('John', 3, 99)))

    def test_lookup_range(self):
        verses = self.dataset.lookup_range(make_reference('John', 3, 16, 18))
        self.assertEqual([v.display_ref for v in verses], ['John 3:16', 'John 3:17', 'John 3:18'])
        self.assertNotIn('#', verses[0].text)

    def test_lookup_range_across_chapters(self):
        verses = self.dataset.lookup_range(make_reference('John', 3, 36, 1, end_chapter=4))
        self.assertEqual([v.display_ref for v in verses], ['John 3:36', 'John 4:1'])
        self.assertEqual(verses[1].chapter, 4)

    def test_lookup_range_to_dict(self):
        verse = self.dataset.lookup_range(make_reference('John', 11, 35))[0]
        self.assertEqual(verse.to_dict(), {'verse': 35, 'text': 'Jesus wept.', 'displayRef': 'John 11:35'})

    def test_last_verse_in_chapter(self):
        self.assertEqual(self.dataset.last_verse_in_chapter('John', 3), 36)
        self.assertIsNone(self.dataset.last_verse_in_chapter('John', 21))

    def test_load_verse_by_components(self):
        loaded = self.dataset.load_verse_by_components('Psalms', 23, 1)
        self.assertEqual(loaded.display_ref, 'Psalms 23:1')
        self.assertEqual(loaded.verse_text, 'The LORD is my shepherd; I shall not want.')
        self.assertEqual(loaded.to_dict()['verseText'], loaded.verse_text)
        self.assertIsNone(self.dataset.load_verse_by_components('Psalms', 23, 9))


class TestNavigation(unittest.TestCase):

    def setUp(self):
        self.dataset = VerseDataset(SAMPLE_VERSES)

    def test_previous_crosses_into_previous_chapter(self):
        nav = self.dataset.get_verse_navigation('John', 3, 1)
        self.assertTrue(nav.has_previous)
        self.assertEqual(nav.previous.display_ref, 'John 2:25')
        self.assertEqual(nav.next.display_ref, 'John 3:2')

    def test_genesis_start_has_no_previous(self):
        nav = self.dataset.get_verse_navigation('Genesis', 1, 1)
        self.assertFalse(nav.has_previous)
        self.assertIsNone(nav.previous)
        self.assertTrue(nav.has_next)

    def test_previous_crosses_book_boundary(self):
        previous = self.dataset.previous_verse('Exodus', 1, 1)
        self.assertEqual(previous.display_ref, 'Genesis 50:26')

    def test_next_crosses_chapter_boundary(self):
        self.assertEqual(self.dataset.next_verse('John', 3, 36).display_ref, 'John 4:1')

    def test_next_crosses_book_boundary(self):
        self.assertEqual(self.dataset.next_verse('Genesis', 50, 26).display_ref, 'Exodus 1:1')

    def test_revelation_end_has_no_next(self):
        nav = self.dataset.get_verse_navigation('Revelation', 22, 21)
        self.assertFalse(nav.has_next)
        self.assertEqual(nav.to_dict()['next'], None)
        self.assertEqual(nav.to_dict()['previous']['displayRef'], 'Revelation 22:20')


if __name__ == '__main__':
    unittest.main()
