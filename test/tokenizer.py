"""
Tokenizer behavioral tests (classification, separators, terminator, combined runs).

Conventions
- Test method names follow CamelCase per project convention.
- Options are built through ParseOptions with explicit prefixes so results do
  not depend on the host platform.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from parlance.options import ParseOptions, ParsingMode, PrefixTerminationMode
from parlance.tokenizer import TokenKind, Tokenizer


def tokens(args, /, digit_names=False, **options):
    return list(Tokenizer(args, ParseOptions(**{"prefixes": ("-", "/")} | options), digit_names=digit_names))


class TestClassification(TestCase):
    def testNamedWithSeparators(self):
        colon, equals, empty = tokens(["-Name:value", "/Name=value", "-Name="])
        self.assertEqual((colon.kind, colon.name, colon.value, colon.prefix), (TokenKind.NAMED, "Name", "value", "-"))
        self.assertEqual((equals.name, equals.value, equals.prefix), ("Name", "value", "/"))
        self.assertEqual(empty.value, "")

    def testNameWithoutSeparatorHasNoValue(self):
        token, = tokens(["-Verbose"])
        self.assertIs(token.kind, TokenKind.NAMED)
        self.assertIsNone(token.value)

    def testEarliestSeparatorSplits(self):
        token, = tokens(["-Define=key:value"])
        self.assertEqual((token.name, token.value), ("Define", "key:value"))

    def testPlainTextIsPositional(self):
        token, = tokens(["value"])
        self.assertEqual(token.kind, TokenKind.POSITIONAL)
        self.assertEqual(token.text, "value")

    def testBarePrefixIsPositional(self):
        token, = tokens(["-"])
        self.assertEqual(token.kind, TokenKind.POSITIONAL)

    def testNegativeNumbersArePositional(self):
        integer, number = tokens(["-5", "-1.5"])
        self.assertEqual(integer.kind, TokenKind.POSITIONAL)
        self.assertEqual(number.kind, TokenKind.POSITIONAL)

    def testDigitNamesDisableNegativeNumberRule(self):
        token, = tokens(["-5"], digit_names=True)
        self.assertEqual((token.kind, token.name), (TokenKind.NAMED, "5"))

    def testIndicesFollowInput(self):
        self.assertEqual([token.index for token in tokens(["a", "-b", "c"])], [0, 1, 2])


class TestTerminator(TestCase):
    def testTerminatorIgnoredWithoutPrefixTermination(self):
        kinds = [token.kind for token in tokens(["--", "x"], mode=ParsingMode.LONG_SHORT)]
        self.assertNotIn(TokenKind.TERMINATOR, kinds)

    def testPositionalOnlyAfterTerminator(self):
        result = tokens(["Foo", "--", "-Arg4", "Bar"], prefix_termination=PrefixTerminationMode.POSITIONAL_ONLY)
        self.assertEqual(
            [token.kind for token in result],
            [TokenKind.POSITIONAL, TokenKind.TERMINATOR, TokenKind.POSITIONAL, TokenKind.POSITIONAL],
        )
        self.assertEqual(result[2].text, "-Arg4")

    def testRemainingStartsAtCursor(self):
        tokenizer = Tokenizer(["a", "b", "c"], ParseOptions(prefixes=("-",)))
        next(tokenizer)
        self.assertEqual(tokenizer.remaining(), ("b", "c"))
        self.assertEqual(tokenizer.remaining(0), ("a", "b", "c"))
        self.assertEqual(tokenizer.peek().text, "b")
        self.assertEqual(tokenizer.index, 1)


class TestLongShort(TestCase):
    def testLongPrefixIntroducesLongName(self):
        token, = tokens(["--port=80"], mode=ParsingMode.LONG_SHORT, prefixes=("-",))
        self.assertTrue(token.long)
        self.assertFalse(token.short)
        self.assertEqual((token.name, token.value), ("port", "80"))

    def testShortRunExpandsPerCharacter(self):
        token, = tokens(["-su"], mode=ParsingMode.LONG_SHORT, prefixes=("-",))
        self.assertTrue(token.short)
        self.assertTrue(token.is_combined_run)
        expanded = token.expand()
        self.assertEqual([char.name for char in expanded], ["s", "u"])
        self.assertTrue(all(char.combined and not char.is_combined_run for char in expanded))

    def testSingleShortNameIsNotARun(self):
        token, = tokens(["-p"], mode=ParsingMode.LONG_SHORT, prefixes=("-",))
        self.assertFalse(token.is_combined_run)

    def testDefaultModeHasNoRuns(self):
        token, = tokens(["-su"])
        self.assertFalse(token.is_combined_run)


if __name__ == "__main__":
    unittest.main()
