"""
Validator pipeline behavioral tests.

Scope
- Built-in argument validators at each stage (before conversion, after
  conversion, after parsing) and their fault categories.
- Dependency validators and class validators over the whole parse state.
- The open Validate variant and usage annotations (describe).

Conventions
- Test method names follow CamelCase per project convention.
- Parses go through the public parser API with "-" as the only prefix.
"""

from __future__ import annotations

import enum
import unittest
from unittest import TestCase

from parlance import (
    Argument,
    ArgumentKind,
    CommandLineParser,
    DependencyFailedError,
    ErrorCategory,
    MissingRequiredArgumentError,
    NullArgumentValueError,
    ParseStatus,
    Prohibits,
    Requires,
    RequiresAny,
    Validate,
    ValidateCount,
    ValidateEnumValue,
    ValidateNotEmpty,
    ValidateNotNull,
    ValidateNotWhiteSpace,
    ValidatePattern,
    ValidateRange,
    ValidateStringLength,
    ValidationFailedError,
    ValidationMode,
    parse,
)

OPTIONS = {"prefixes": ("-",)}


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class Access(enum.Flag):
    READ = 1
    WRITE = 2


def outcome(arguments, prompt, /, **kwargs):
    return parse(arguments, prompt, OPTIONS, **kwargs)


class TestValueValidators(TestCase):
    def testRangeRejectsOutOfBounds(self):
        port = Argument("Port", int, validators=(ValidateRange(1, 65535),))
        self.assertTrue(outcome((port,), ["-Port:80"]))
        result = outcome((port,), ["-Port:0"])
        self.assertIsInstance(result.error, ValidationFailedError)
        self.assertEqual(result.error.category, ErrorCategory.VALIDATION_FAILED)
        self.assertEqual(result.argument_name, "Port")
        self.assertIn("between 1 and 65535", str(result.error))

    def testRangeBoundsAreChecked(self):
        with self.assertRaises(TypeError):
            ValidateRange()
        with self.assertRaises(ValueError):
            ValidateRange(5, 1)

    def testRangeKeepsValueBoundBeforeFailure(self):
        parser = CommandLineParser((Argument("Port", int, validators=(ValidateRange(maximum=10),)),), OPTIONS)
        result = parser.parse(["-Port:11"])
        self.assertIs(result.status, ParseStatus.ERROR)
        self.assertTrue(parser.has_value("Port"))
        self.assertEqual(parser.get_value("Port"), 11)

    def testNotEmptyRunsBeforeConversion(self):
        count = Argument("Count", int, validators=(ValidateNotEmpty(),))
        result = outcome((count,), ["-Count:"])
        self.assertIsInstance(result.error, ValidationFailedError)
        self.assertIsNone(result.error.inner)

    def testNotWhiteSpace(self):
        name = Argument("Name", validators=(ValidateNotWhiteSpace(),))
        self.assertIsInstance(outcome((name,), ["-Name:   "]).error, ValidationFailedError)
        self.assertTrue(outcome((name,), ["-Name: x "]))

    def testStringLength(self):
        name = Argument("Name", validators=(ValidateStringLength(2, 4),))
        self.assertTrue(outcome((name,), ["-Name:abc"]))
        self.assertIsInstance(outcome((name,), ["-Name:abcde"]).error, ValidationFailedError)
        self.assertIsInstance(outcome((name,), ["-Name:a"]).error, ValidationFailedError)
        with self.assertRaises(ValueError):
            ValidateStringLength(3, 1)

    def testPatternWithCustomMessage(self):
        code = Argument("Code", validators=(ValidatePattern(r"^\d{3}$", message="{name} must be three digits"),))
        self.assertTrue(outcome((code,), ["-Code:123"]))
        result = outcome((code,), ["-Code:12a"])
        self.assertEqual(str(result.error), "Code must be three digits")

    def testNotNullUsesNullCategory(self):
        count = Argument("Count", int, allow_null=True, validators=(ValidateNotNull(),))
        result = outcome((count,), ["-Count:"])
        self.assertIsInstance(result.error, NullArgumentValueError)

    def testNullableArgumentAcceptsEmptyText(self):
        count = Argument("Count", int, allow_null=True)
        self.assertIsNone(outcome((count,), ["-Count:"]).value.count)


class TestEnumValidation(TestCase):
    def testNumericValuesNeedOptIn(self):
        color = Argument("Color", Color, validators=(ValidateEnumValue(),))
        self.assertIs(outcome((color,), ["-Color:green"]).value.color, Color.GREEN)
        result = outcome((color,), ["-Color:1"])
        self.assertIsInstance(result.error, ValidationFailedError)
        self.assertIn("possible values: RED, GREEN", str(result.error))

        numeric = Argument("Color", Color, validators=(ValidateEnumValue(allow_numeric_values=True),))
        self.assertIs(outcome((numeric,), ["-Color:1"]).value.color, Color.RED)

    def testEnumArgumentsRejectNumbersWithoutValidator(self):
        color = Argument("Color", Color)
        self.assertIs(outcome((color,), ["-Color:Green"]).value.color, Color.GREEN)
        self.assertIsInstance(outcome((color,), ["-Color:1"]).error, ValidationFailedError)
        self.assertEqual(color.validators, ())

        access = Argument("Access", Access)
        self.assertEqual(outcome((access,), ["-Access:read,write"]).value.access, Access.READ | Access.WRITE)
        self.assertIsInstance(outcome((access,), ["-Access:3"]).error, ValidationFailedError)

    def testCommaSeparatedValuesFollowFlagness(self):
        access = Argument("Access", Access, validators=(ValidateEnumValue(),))
        self.assertEqual(outcome((access,), ["-Access:read,write"]).value.access, Access.READ | Access.WRITE)

        color = Argument("Color", Color, validators=(ValidateEnumValue(allow_comma_separated_values=True),))
        self.assertIsNotNone(outcome((color,), ["-Color:red,green"]).error)
        strict = Argument("Color", Color, validators=(ValidateEnumValue(),))
        self.assertIsInstance(outcome((strict,), ["-Color:red,green"]).error, ValidationFailedError)

    def testCaseSensitiveNames(self):
        color = Argument("Color", Color, validators=(ValidateEnumValue(case_sensitive=True),))
        self.assertIsInstance(outcome((color,), ["-Color:red"]).error, ValidationFailedError)
        self.assertTrue(outcome((color,), ["-Color:RED"]))

    def testNonEnumArgumentIsAProgrammingError(self):
        name = Argument("Name", validators=(ValidateEnumValue(),))
        with self.assertRaises(TypeError):
            outcome((name,), ["-Name:x"])


class TestWholeParseValidators(TestCase):
    def testCountOnMultiValue(self):
        files = Argument("Files", kind=ArgumentKind.MULTI_VALUE, validators=(ValidateCount(1, 2),))
        self.assertTrue(outcome((files,), ["-Files:a", "-Files:b"]))
        self.assertTrue(outcome((files,), []))
        result = outcome((files,), ["-Files:a", "-Files:b", "-Files:c"])
        self.assertIsInstance(result.error, ValidationFailedError)
        self.assertEqual(result.remaining, ())

    def testRequiresFailsAfterValueIsBound(self):
        parser = CommandLineParser(
            (Argument("Port", int, validators=(Requires("Address"),)), Argument("Address")), OPTIONS,
        )
        result = parser.parse(["-Port", "9000"])
        self.assertIsInstance(result.error, DependencyFailedError)
        self.assertEqual(result.error.argument_name, "Port")
        self.assertTrue(parser.has_value("Port"))
        self.assertFalse(parser.has_value("Address"))
        self.assertTrue(parser.parse(["-Port", "9000", "-Address", "localhost"]))

    def testDependencyRunsBeforeRequiredCheck(self):
        arguments = (
            Argument("Port", int, validators=(Requires("Address"),)),
            Argument("Address"),
            Argument("Name", required=True),
        )
        self.assertIsInstance(outcome(arguments, ["-Port:1"]).error, DependencyFailedError)

    def testProhibits(self):
        arguments = (Argument("Quiet", bool, validators=(Prohibits("Verbose"),)), Argument("Verbose", bool))
        self.assertIsInstance(outcome(arguments, ["-Quiet", "-Verbose"]).error, DependencyFailedError)
        self.assertTrue(outcome(arguments, ["-Quiet"]))

    def testDependencyOnUnknownArgumentIsAProgrammingError(self):
        arguments = (Argument("Port", int, validators=(Requires("Missing"),)),)
        with self.assertRaises(LookupError):
            outcome(arguments, ["-Port:1"])

    def testRequiresAnyClassValidator(self):
        arguments = (Argument("File"), Argument("Url"))
        result = outcome(arguments, [], validators=(RequiresAny("File", "Url"),))
        self.assertIsInstance(result.error, MissingRequiredArgumentError)
        self.assertTrue(outcome(arguments, ["-Url:x"], validators=(RequiresAny("File", "Url"),)))
        with self.assertRaises(TypeError):
            RequiresAny("File")


class TestCustomValidation(TestCase):
    def testPredicateAfterConversion(self):
        even = Argument("Even", int, validators=(Validate(lambda value: value % 2 == 0, message="{name} is odd"),))
        self.assertTrue(outcome((even,), ["-Even:4"]))
        self.assertEqual(str(outcome((even,), ["-Even:3"]).error), "Even is odd")

    def testPredicateBeforeConversion(self):
        digits = Argument(
            "Hex", lambda text: int(text, 16),
            validators=(Validate(str.isalnum, ValidationMode.BEFORE_CONVERSION),),
        )
        self.assertEqual(outcome((digits,), ["-Hex:ff"]).value.hex, 255)
        self.assertIsInstance(outcome((digits,), ["-Hex:f-f"]).error, ValidationFailedError)

    def testPredicateErrorsAreChained(self):
        def check(value):
            raise ValueError("broken")

        result = outcome((Argument("Name", validators=(Validate(check),)),), ["-Name:x"])
        self.assertIsInstance(result.error, ValidationFailedError)
        self.assertIsInstance(result.error.inner, ValueError)

    def testCustomCategory(self):
        name = Argument("Name", validators=(Validate(bool, category=ErrorCategory.NULL_ARGUMENT_VALUE),))
        self.assertIsInstance(outcome((name,), ["-Name:"]).error, NullArgumentValueError)

    def testValidateRejectsBadConfiguration(self):
        with self.assertRaises(TypeError):
            Validate(1)
        with self.assertRaises(TypeError):
            Validate(bool, mode="after")


class TestDescriptions(TestCase):
    def testUsageAnnotations(self):
        port = Argument("Port", int)
        self.assertEqual(ValidateRange(1, 10).describe(port), "must be between 1 and 10")
        self.assertEqual(ValidateRange(minimum=1).describe(port), "must be at least 1")
        self.assertEqual(ValidateStringLength(2).describe(port), "must be at least 2 characters long")
        self.assertEqual(Requires("Address").describe(port), "requires Address")
        self.assertIsNone(ValidateNotNull().describe(port))


if __name__ == "__main__":
    unittest.main()
