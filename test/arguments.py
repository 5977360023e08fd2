"""
Arguments module behavioral tests (descriptor construction and set invariants).

Scope
- Validate Argument construction: kind/type inference, name rules, dest
  derivation, value description defaults and metadata constraints.
- Validate copy.replace derivation and the @argument decorator.
- Validate ArgumentSet invariants: name collisions, separators in names and
  positional layout.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from parlance import (
    Argument,
    ArgumentKind,
    ArgumentSet,
    CancelMode,
    DuplicateKeyMode,
    IntegerConverter,
    NullableConverter,
    ParseOptions,
    ParsingMode,
    ValidateRange,
    argument,
)
from parlance.utils import Unset


class TestArgument(TestCase):
    def testKindInference(self):
        self.assertIs(Argument("Name").kind, ArgumentKind.SINGLE_VALUE)
        self.assertIs(Argument("Verbose", bool).kind, ArgumentKind.SWITCH)
        self.assertIs(Argument("Run", callback=lambda: None).kind, ArgumentKind.METHOD)
        self.assertIs(Argument("Files", kind="multi-value").kind, ArgumentKind.MULTI_VALUE)

    def testTypeDefaults(self):
        self.assertIs(Argument("Name").type, str)
        self.assertIs(Argument("Flag", kind=ArgumentKind.SWITCH).type, bool)

    def testSwitchPropertiesAndDefaults(self):
        switch = Argument("Verbose", bool)
        self.assertTrue(switch.is_switch)
        self.assertFalse(switch.is_positional)
        self.assertIsNone(switch.value_description)

    def testDestIsDerivedFromName(self):
        self.assertEqual(Argument("OutputFile").dest, "output_file")
        self.assertEqual(Argument("dry-run", bool).dest, "dry_run")
        self.assertEqual(Argument("x", dest="target").dest, "target")
        with self.assertRaises(ValueError):
            Argument("x", dest="not valid")

    def testShortNameTrueTakesFirstCharacter(self):
        self.assertEqual(Argument("port", int, short_name=True).short_name, "p")
        with self.assertRaises(ValueError):
            Argument("port", short_name="po")

    def testNamesCannotBeEmptyOrBlank(self):
        with self.assertRaises(ValueError):
            Argument("")
        with self.assertRaises(ValueError):
            Argument("two words")
        with self.assertRaises(TypeError):
            Argument(1)

    def testAliasesRejectDuplicates(self):
        with self.assertRaises(ValueError):
            Argument("Port", aliases=("p", "p"))
        with self.assertRaises(TypeError):
            Argument("Port", aliases="p")

    def testRequiredCannotHaveDefault(self):
        with self.assertRaises(ValueError):
            Argument("Name", required=True, default="x")

    def testSwitchCannotBePositional(self):
        with self.assertRaises(ValueError):
            Argument("Verbose", bool, position=0)

    def testSwitchTypeMustBeBool(self):
        with self.assertRaises(TypeError):
            Argument("Verbose", int, kind=ArgumentKind.SWITCH)

    def testOnlyMethodsTakeCallbacks(self):
        with self.assertRaises(TypeError):
            Argument("Name", kind=ArgumentKind.SINGLE_VALUE, callback=print)
        with self.assertRaises(TypeError):
            Argument("Run", kind=ArgumentKind.METHOD)

    def testMultiValueSeparatorNeedsMultiValue(self):
        with self.assertRaises(ValueError):
            Argument("Name", multi_value_separator=",")
        self.assertEqual(Argument("Names", kind="multi-value", multi_value_separator=",").multi_value_separator, ",")

    def testConverterAndValueDescription(self):
        port = Argument("Port", int)
        self.assertIsInstance(port.converter, IntegerConverter)
        self.assertEqual(port.value_description, "int")
        self.assertIsInstance(Argument("Port", int, allow_null=True).converter, NullableConverter)

    def testEnumMembersAcceptStrings(self):
        argument = Argument("Define", kind="dictionary", duplicate_keys="keep-first", cancel_parsing="success")
        self.assertIs(argument.duplicate_keys, DuplicateKeyMode.KEEP_FIRST)
        self.assertIs(argument.cancel_parsing, CancelMode.SUCCESS)
        self.assertTrue(argument.is_multi_value)
        with self.assertRaises(ValueError):
            Argument("Define", kind="unknown")

    def testValidatorsMustBeArgumentValidators(self):
        with self.assertRaises(TypeError):
            Argument("Port", int, validators=ValidateRange(1, 2))
        with self.assertRaises(TypeError):
            Argument("Port", int, validators=(lambda value: True,))

    def testReplaceRebuildsDescriptor(self):
        original = Argument("Port", int, default=80)
        derived = copy.replace(original, position=0, dest="listen")
        self.assertEqual((derived.position, derived.dest, derived.default), (0, "listen", 80))
        self.assertIs(original.position, Unset)
        self.assertIs(copy.copy(original), original)

    def testArgumentDecoratorBuildsMethod(self):
        calls = []

        @argument(description="show the version")
        def Version():
            calls.append(True)
            return False

        self.assertIsInstance(Version, Argument)
        self.assertEqual(Version.name, "Version")
        self.assertIs(Version.kind, ArgumentKind.METHOD)
        self.assertTrue(Version.is_switch)
        Version.callback()
        self.assertEqual(calls, [True])

    def testArgumentDecoratorRejectsNonStringName(self):
        with self.assertRaises(TypeError):
            argument(1)


class TestArgumentSet(TestCase):
    def setUp(self):
        self.options = ParseOptions(prefixes=("-",))

    def testCollisionsUnderCaseInsensitiveComparison(self):
        with self.assertRaises(ValueError):
            ArgumentSet((Argument("Port"), Argument("port")), self.options)
        with self.assertRaises(ValueError):
            ArgumentSet((Argument("Port", aliases=("p",)), Argument("P")), self.options)

    def testCaseSensitiveNamesMayDifferInCase(self):
        options = ParseOptions(prefixes=("-",), case_sensitive=True)
        arguments = ArgumentSet((Argument("Port"), Argument("port")), options)
        self.assertEqual(len(arguments), 2)
        self.assertEqual(arguments.get("port").name, "port")

    def testShortAndLongNamespacesAreSeparate(self):
        options = ParseOptions(mode=ParsingMode.LONG_SHORT, prefixes=("-",))
        ArgumentSet((Argument("p", int), Argument("port", int, short_name="p")), options)
        with self.assertRaises(ValueError):
            ArgumentSet((Argument("port", short_name="p"), Argument("path", short_name="p")), options)

    def testNamesCannotContainSeparators(self):
        with self.assertRaises(ValueError):
            ArgumentSet((Argument("a:b"),), self.options)

    def testPositionsMustBeContiguous(self):
        with self.assertRaises(ValueError):
            ArgumentSet((Argument("A", position=0), Argument("B", position=2)), self.options)

    def testMultiValuePositionalMustBeLast(self):
        with self.assertRaises(ValueError):
            ArgumentSet(
                (Argument("A", kind="multi-value", position=0), Argument("B", position=1)), self.options,
            )

    def testRequiredPositionalCannotFollowOptional(self):
        with self.assertRaises(ValueError):
            ArgumentSet((Argument("A", position=0), Argument("B", position=1, required=True)), self.options)

    def testPositionalOrderAndDigitNames(self):
        arguments = ArgumentSet(
            (Argument("B", position=1), Argument("A", position=0), Argument("7z", bool)), self.options,
        )
        self.assertEqual([argument.name for argument in arguments.positional], ["A", "B"])
        self.assertTrue(arguments.digit_names)
        self.assertIsNone(arguments.get("missing"))


if __name__ == "__main__":
    unittest.main()
