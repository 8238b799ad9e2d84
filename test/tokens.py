# python
"""
Tokenizer behavioral tests.

Scope
- tokenize(): single-space separation, quote toggling, empty segments and
  re-tokenizing rejoined segments.
- partition(): completed segments versus the segment being typed.
- unquote(): one pair of surrounding quotes.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import tokenize, partition, unquote


class TestTokenize(TestCase):
    """Behavioral tests for tokenize()."""

    def testEmptyInput(self):
        self.assertEqual(tokenize(""), [])

    def testPlainWords(self):
        self.assertEqual(tokenize("cd folder name"), ["cd", "folder", "name"])

    def testQuotedSegmentKeepsQuotes(self):
        self.assertEqual(tokenize('cd "folder name"'), ["cd", '"folder name"'])

    def testSeveralQuotedSegments(self):
        self.assertEqual(tokenize('cd "a" to "b"'), ["cd", '"a"', "to", '"b"'])

    def testRejoinedSegmentsTokenizeAgain(self):
        for line in ('cd "folder name"', 'cd "a" to "b"', "link list docs", 'cp "x y" "z w" -r', 'cd "a b'):
            segments = tokenize(line)
            self.assertEqual(tokenize(" ".join(segments)), segments, line)

    def testDoubleSpaceProducesEmptySegment(self):
        self.assertEqual(tokenize("a  b"), ["a", "", "b"])

    def testTrailingSpaceClosesSegment(self):
        self.assertEqual(tokenize("cd "), ["cd"])

    def testUnterminatedQuoteExtendsToEnd(self):
        self.assertEqual(tokenize('cd "a b'), ["cd", '"a b'])

    def testQuotesInsideWord(self):
        self.assertEqual(tokenize('a"b c"d e'), ['a"b c"d', "e"])

    def testNonStringRejected(self):
        with self.assertRaises(TypeError):
            tokenize(["cd"])


class TestPartition(TestCase):
    """Behavioral tests for partition()."""

    def testEmptyInput(self):
        self.assertEqual(partition(""), ([], ""))

    def testFirstSegmentActive(self):
        self.assertEqual(partition("cd"), ([], "cd"))

    def testTrailingSpaceStartsNewSegment(self):
        self.assertEqual(partition("cd "), (["cd"], ""))

    def testSecondSegmentActive(self):
        self.assertEqual(partition("cd asdf"), (["cd"], "asdf"))

    def testSpaceInsideOpenQuoteStaysActive(self):
        self.assertEqual(partition('cd "my '), (["cd"], '"my '))


class TestUnquote(TestCase):
    """Behavioral tests for unquote()."""

    def testSurroundingQuotesStripped(self):
        self.assertEqual(unquote('"a b"'), "a b")

    def testOnlyOnePairStripped(self):
        self.assertEqual(unquote('""a""'), '"a"')

    def testUnbalancedQuotesKept(self):
        self.assertEqual(unquote('"a b'), '"a b')

    def testLoneQuoteKept(self):
        self.assertEqual(unquote('"'), '"')


if __name__ == "__main__":
    unittest.main()
