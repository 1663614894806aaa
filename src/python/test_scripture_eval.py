"""
Tests for the Scripture detection evaluation harness.
"""

import sys
import os
import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import scripture_eval
from scripture_eval import evaluate_case, expand_reference, expected_references, run_eval
from smart_verses import SmartVerses
from verse_dataset import VerseDataset

SAMPLE_VERSES = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'testdata', 'verses-sample.json')

CASES = [
    {'index': 1, 'text': 'turn with me to Romans three, five', 'expected_references': ['Romans 3:5']},
    {'index': 2, 'text': 'John 3:16', 'expected_references': []},
    {'index': 3, 'text': 'Romans 8:28', 'expected_references': ['Romans 8:29']},
    {'index': 4, 'text': 'amen', 'expected_references': ['John 1:1']},
    {'index': 5, 'text': 'welcome everyone', 'expected_references': []},
]


class TestExpandReference(unittest.TestCase):

    def test_single(self):
        self.assertEqual(expand_reference("  John  3:16 "), ["john 3:16"])

    def test_range(self):
        self.assertEqual(expand_reference("Isaiah 45:1-3"), ["isaiah 45:1", "isaiah 45:2", "isaiah 45:3"])

    def test_cross_chapter(self):
        self.assertEqual(expand_reference("John 3:36-5:2"), ["john 3:36", "john 4:1", "john 5:1", "john 5:2"])

    def test_expected_reference_keys(self):
        self.assertEqual(expected_references({'expected': ['John 1:1']}), ['John 1:1'])
        self.assertEqual(expected_references({'groq_references': ['John 1:1']}), ['John 1:1'])
        self.assertEqual(expected_references({'text': 'no labels'}), [])


class TestEvaluate(unittest.TestCase):

    def setUp(self):
        self.engine = SmartVerses(dataset=VerseDataset(SAMPLE_VERSES))

    def test_pass(self):
        record = evaluate_case(self.engine, CASES[0])
        self.assertIs(record['pass'], True)
        self.assertEqual(record['parsed_references'], ['Romans 3:5'])

    def test_range_covers_expected_verse(self):
        case = {'text': 'John 3:16-18', 'expected_references': ['John 3:17']}
        self.assertIs(evaluate_case(self.engine, case)['pass'], True)

    def test_false_positive(self):
        self.assertEqual(evaluate_case(self.engine, CASES[1])['pass'], 'false_positive')
        self.assertIs(evaluate_case(self.engine, CASES[1], check_false_positives=False)['pass'], False)

    def test_context_does_not_leak_between_cases(self):
        evaluate_case(self.engine, CASES[0])
        record = evaluate_case(self.engine, {'text': 'verse 4', 'expected_references': []})
        self.assertIs(record['pass'], True)

    def test_run_eval_summary(self):
        summary = run_eval(CASES, self.engine)
        self.assertEqual(summary.total, 5)
        self.assertEqual(summary.passed, 2)
        self.assertEqual(summary.false_positives, 1)
        # Index 4 has no book name, so it is not reported
        self.assertEqual([r['index'] for r in summary.failures], [2, 3])
        self.assertEqual(summary.scored_total, 4)
        self.assertEqual(summary.score, 50.0)


class TestMain(unittest.TestCase):

    def test_main_writes_failures(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_path = os.path.join(tmp, 'cases.jsonl')
            failures_path = os.path.join(tmp, 'failures.jsonl')
            with open(input_path, 'w', encoding='utf-8') as f:
                for case in CASES:
                    f.write(json.dumps(case) + '\n')

            out = io.StringIO()
            with redirect_stdout(out):
                code = scripture_eval.main([
                    '--input', input_path, '--verses', SAMPLE_VERSES, '--failures-out', failures_path,
                ])
            self.assertEqual(code, 0)
            self.assertIn('Pass score: 2/4 (50.0%)', out.getvalue())
            with open(failures_path, encoding='utf-8') as f:
                failures = [json.loads(line) for line in f]
            self.assertEqual([r['index'] for r in failures], [2, 3])

    def test_main_limit(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_path = os.path.join(tmp, 'cases.json')
            with open(input_path, 'w', encoding='utf-8') as f:
                json.dump(CASES, f)
            out = io.StringIO()
            with redirect_stdout(out):
                scripture_eval.main(['--input', input_path, '--verses', SAMPLE_VERSES, '--start', '2', '--limit', '1'])
            self.assertIn('Chunks:          1', out.getvalue())

    def test_missing_input(self):
        self.assertEqual(scripture_eval.main(['--input', '/nonexistent/cases.jsonl']), 2)


if __name__ == '__main__':
    unittest.main()
