"""
Utilities module behavioral tests (sentinel, naming helpers, prompt splitting).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import sys
import unittest
from unittest import TestCase, mock

from parlance.utils import (
    Unset,
    UnsetType,
    IntrospectableType,
    casefold,
    coalesce,
    ordinal,
    pluralize,
    quantify,
    rename,
    split_prompt,
)


class TestUnset(TestCase):
    def testUnsetIsFalseyAndDistinctFromNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetIsSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testUnsetCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnsetSupportsUnionChecks(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("text", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))


class TestHelpers(TestCase):
    def testCoalesceKeepsFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertIsNone(coalesce(None, "fallback"))

    def testPluralizeRules(self):
        self.assertEqual(pluralize("argument"), "arguments")
        self.assertEqual(pluralize("alias"), "aliases")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("named argument"), "named arguments")
        self.assertEqual(pluralize("Index"), "Indices")

    def testQuantifyPluralizesUnlessOne(self):
        self.assertEqual(quantify(1, "value"), "1 value")
        self.assertEqual(quantify(3, "value"), "3 values")
        self.assertEqual(quantify(0, "character"), "0 characters")

    def testOrdinalWordsAndSuffixes(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(103), "103rd")

    def testCasefoldRespectsSensitivity(self):
        self.assertEqual(casefold("Port", False), "port")
        self.assertEqual(casefold("Port", True), "Port")
        self.assertEqual(casefold("STRASSE", False), casefold("straße", False))

    def testRenameForms(self):
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")

        @rename("decorated")
        def other():
            pass

        self.assertEqual(other.__qualname__, "decorated")
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename()


class TestSplitPrompt(TestCase):
    def testStringIsShellSplit(self):
        self.assertEqual(split_prompt('-Name "two words" x'), ["-Name", "two words", "x"])

    def testIterableIsKeptVerbatim(self):
        self.assertEqual(split_prompt(("a", "", " b ")), ["a", "", " b "])

    def testUnsetReadsSysArgv(self):
        with mock.patch.object(sys, "argv", ["prog", "-x", "1"]):
            self.assertEqual(split_prompt(), ["-x", "1"])

    def testRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            split_prompt(1)
        with self.assertRaises(TypeError):
            split_prompt(["a", 2])


class TestIntrospectableType(TestCase):
    def testTypenameAndMirroredFields(self):
        class SampleValue(metaclass=IntrospectableType):
            __introspectable__ = ("items", "label")

            def __init__(self):
                self._items = ["a", "b"]
                self._label = "x"

        sample = SampleValue()
        self.assertEqual(SampleValue.__typename__, "sample-value")
        self.assertEqual(sample.items, ("a", "b"))
        self.assertEqual(repr(sample), "sample-value(items=('a', 'b'), label='x')")
        with self.assertRaises(AttributeError):
            sample.label = "y"

    def testFinalClassesAreSealed(self):
        class Sealed(metaclass=IntrospectableType, final=True):
            pass

        with self.assertRaises(TypeError):
            type("Derived", (Sealed,), {})


if __name__ == "__main__":
    unittest.main()
