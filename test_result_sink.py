#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Unit tests for the result sink (filters, dedup, sorted buffering) and component pool
"""
import io
import sys
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Import from passmut module
sys.path.insert(0, str(Path(__file__).parent))
from passmut import ResultSink, CandidatePool, MutationConfig, ConfigError


def make_sink(**kwargs):
    out = io.StringIO()
    return ResultSink(MutationConfig(**kwargs), out), out


class TestFilters(unittest.TestCase):
    """Test each output filter"""

    def test_no_filters_accept_everything(self):
        sink, _ = make_sink()
        for w in ["", "a", "Password1!", "ü"]:
            self.assertTrue(sink.accepts(w))

    def test_length_bounds(self):
        sink, _ = make_sink(min_length=3, max_length=5)
        self.assertFalse(sink.accepts("ab"))
        self.assertTrue(sink.accepts("abc"))
        self.assertTrue(sink.accepts("abcde"))
        self.assertFalse(sink.accepts("abcdef"))

    def test_length_in_characters(self):
        """Lengths count characters, not encoded bytes"""
        sink, _ = make_sink(max_length=3)
        self.assertTrue(sink.accepts("äöü"))

    def test_exclusions(self):
        cases = [
            ({"no_numbers": True}, "abc1", False),
            ({"no_numbers": True}, "abc!", True),
            ({"no_capitals": True}, "Abc", False),
            ({"no_capitals": True}, "abc1", True),
            ({"no_symbols": True}, "abc!", False),
            ({"no_symbols": True}, "a b", False),
            ({"no_symbols": True}, "Abc1", True),
        ]
        for kwargs, word, expected in cases:
            sink, _ = make_sink(**kwargs)
            self.assertEqual(sink.accepts(word), expected, f"{kwargs} {word!r}")

    def test_crunch(self):
        sink, _ = make_sink(crunch_mask="%%%#")
        self.assertTrue(sink.accepts("cat1"))
        self.assertFalse(sink.accepts("cat"))
        self.assertFalse(sink.accepts("Cat1"))

    def test_blacklist_exact(self):
        sink, _ = make_sink(blacklist={"password", "123456"})
        self.assertFalse(sink.accepts("password"))
        self.assertTrue(sink.accepts("Password"))

    def test_min_strength(self):
        sink, _ = make_sink(min_strength=3)
        self.assertTrue(sink.accepts("Password123!"))
        self.assertFalse(sink.accepts("cat"))


class TestSubmit(unittest.TestCase):
    """Test dedup, counters and output writing"""

    def test_unsorted_writes_immediately(self):
        sink, out = make_sink()
        self.assertTrue(sink.submit("b"))
        self.assertTrue(sink.submit("a"))
        self.assertEqual(out.getvalue(), "b\na\n")

    def test_duplicates_written_once(self):
        sink, out = make_sink()
        self.assertTrue(sink.submit("cat"))
        self.assertFalse(sink.submit("cat"))
        self.assertEqual(out.getvalue(), "cat\n")
        self.assertEqual(sink.accepted, 1)
        self.assertEqual(sink.duplicates, 1)

    def test_rejected_counted(self):
        sink, out = make_sink(min_length=4)
        self.assertFalse(sink.submit("cat"))
        self.assertEqual(sink.rejected, 1)
        self.assertEqual(out.getvalue(), "")

    def test_rejected_word_not_remembered(self):
        """Filtered words never reach the dedup table"""
        sink, _ = make_sink(min_length=4)
        sink.submit("cat")
        sink.submit("cat")
        self.assertEqual(sink.rejected, 2)
        self.assertEqual(sink.duplicates, 0)

    def test_sorted_buffers_until_flush(self):
        sink, out = make_sink(sort_mode="a")
        for w in ["c", "a", "b", "a"]:
            sink.submit(w)
        self.assertEqual(out.getvalue(), "")
        sink.flush()
        self.assertEqual(out.getvalue(), "a\nb\nc\n")

    def test_drain_releases_buffer(self):
        sink, _ = make_sink(sort_mode="a")
        sink.submit("b")
        sink.submit("a")
        self.assertEqual(sink.drain_sorted(), ["a", "b"])
        self.assertEqual(sink.drain_sorted(), [])

    def test_flush_without_sort_is_noop(self):
        sink, out = make_sink()
        sink.submit("x")
        sink.flush()
        self.assertEqual(out.getvalue(), "x\n")

    def test_no_output_stream(self):
        sink = ResultSink(MutationConfig())
        self.assertTrue(sink.submit("x"))
        self.assertEqual(sink.accepted, 1)

    def test_concurrent_submits(self):
        """Words submitted from many threads are still committed once"""
        sink, out = make_sink()
        words = [f"word{i}" for i in range(200)]

        def submit_all(_):
            for w in words:
                sink.submit(w)

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(submit_all, range(8)))

        lines = out.getvalue().splitlines()
        self.assertEqual(sorted(lines), sorted(words))
        self.assertEqual(sink.accepted, 200)
        self.assertEqual(sink.duplicates, 200 * 7)


class TestCandidatePool(unittest.TestCase):
    """Test the unfiltered passphrase component pool"""

    def test_keeps_duplicates(self):
        pool = CandidatePool()
        for w in ["a", "a", "b"]:
            pool.add(w)
        self.assertEqual(len(pool), 3)
        self.assertEqual(pool.snapshot(), ["a", "a", "b"])

    def test_snapshot_is_copy(self):
        pool = CandidatePool()
        pool.add("a")
        snap = pool.snapshot()
        snap.append("b")
        self.assertEqual(len(pool), 1)


class TestConfigValidation(unittest.TestCase):
    """Test MutationConfig validation"""

    def test_invalid_values(self):
        for kwargs in [
            {"sort_mode": "x"},
            {"mutation_level": 3},
            {"min_strength": 5},
            {"min_strength": -1},
            {"min_length": -1},
            {"passphrase_count": -2},
            {"combination_budget": 0},
        ]:
            with self.assertRaises(ConfigError, msg=str(kwargs)):
                MutationConfig(**kwargs)

    def test_coerces_collections(self):
        config = MutationConfig(common_words=["pw"], blacklist=["x"])
        self.assertEqual(config.common_words, ("pw",))
        self.assertEqual(config.blacklist, frozenset({"x"}))

    def test_has_exclusions(self):
        self.assertFalse(MutationConfig().has_exclusions)
        self.assertTrue(MutationConfig(no_symbols=True).has_exclusions)


def run_tests():
    """Run all tests"""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestFilters))
    suite.addTests(loader.loadTestsFromTestCase(TestSubmit))
    suite.addTests(loader.loadTestsFromTestCase(TestCandidatePool))
    suite.addTests(loader.loadTestsFromTestCase(TestConfigValidation))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
