"""
Tests for the Bolls.life verse dataset builder. No network access: the HTTP
session is always mocked.
"""

import sys
import os
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import dataset_builder
from dataset_builder import BollsClient, build_dataset, write_dataset
from verse_dataset import VerseDataset


def mock_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestBollsClient(unittest.TestCase):

    def make_client(self, *responses):
        session = MagicMock()
        session.get.side_effect = list(responses)
        return BollsClient(translation='KJV', delay=0, session=session), session

    def test_clean_html_strips_strongs_numbers(self):
        client = BollsClient(delay=0, session=MagicMock())
        self.assertEqual(
            client._clean_html("Wherefore<S>3606</S> he is <i>able</i><sup>a</sup>  to save"),
            "Wherefore he is able to save",
        )

    def test_fetch_chapter(self):
        client, session = self.make_client(mock_response(payload=[
            {'pk': 1, 'verse': 1, 'text': 'Jude, the servant<S>1401</S> of Jesus Christ'},
            {'pk': 2, 'verse': 2, 'text': 'Mercy unto you'},
        ]))
        verses = client.fetch_chapter('Jude', 1)
        self.assertEqual(verses, [
            {'verse': 1, 'text': 'Jude, the servant of Jesus Christ'},
            {'verse': 2, 'text': 'Mercy unto you'},
        ])
        url = session.get.call_args[0][0]
        self.assertEqual(url, 'https://bolls.life/get-text/KJV/65/1/')
        self.assertEqual(session.get.call_args[1]['timeout'], dataset_builder.REQUEST_TIMEOUT)

    def test_http_error(self):
        client, _ = self.make_client(mock_response(status_code=404))
        self.assertIsNone(client.fetch_chapter('Jude', 1))

    def test_network_error(self):
        client, _ = self.make_client(requests.ConnectionError("offline"))
        self.assertIsNone(client.fetch_chapter('Jude', 1))

    def test_unknown_book(self):
        client, session = self.make_client()
        self.assertIsNone(client.fetch_chapter('Hezekiah', 1))
        session.get.assert_not_called()


class TestBuildDataset(unittest.TestCase):

    def test_builds_keys_and_skips_failed_chapters(self):
        client = MagicMock()
        client.fetch_chapter.side_effect = lambda book, chapter: (
            [{'verse': 1, 'text': f'{book} {chapter} first'}] if chapter != 2 else None
        )
        verses = build_dataset(client, ['Joel'], progress=False)
        self.assertEqual(sorted(verses), ['Joel 1:1', 'Joel 3:1'])
        self.assertEqual(client.fetch_chapter.call_count, 3)

    def test_written_file_loads_as_dataset(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = os.path.join(tmp, 'nested', 'verses.json')
            write_dataset({'Jude 1:1': 'Jude, the servant of Jesus Christ'}, Path(output))
            self.assertTrue(VerseDataset(output).verse_exists('Jude', 1, 1))


class TestMain(unittest.TestCase):

    def test_writes_selected_books(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = os.path.join(tmp, 'verses.json')
            with patch.object(BollsClient, 'fetch_chapter', return_value=[{'verse': 3, 'text': 'Beloved'}]):
                code = dataset_builder.main(['--books', 'Jude', '3 John', '--output', output, '--delay', '0'])
            self.assertEqual(code, 0)
            with open(output, encoding='utf-8') as f:
                data = json.load(f)
            self.assertEqual(data, {'Jude 1:3': 'Beloved', '3 John 1:3': 'Beloved'})

    def test_unknown_book(self):
        self.assertEqual(dataset_builder.main(['--books', 'Hezekiah']), 2)

    def test_nothing_fetched(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = os.path.join(tmp, 'verses.json')
            with patch.object(BollsClient, 'fetch_chapter', return_value=None):
                code = dataset_builder.main(['--books', 'Jude', '--output', output, '--delay', '0'])
            self.assertEqual(code, 1)
            self.assertFalse(os.path.exists(output))


if __name__ == '__main__':
    unittest.main()
