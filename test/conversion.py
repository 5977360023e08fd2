"""
Conversion module behavioral tests (cultures, converter variants, converter_for).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import pathlib
import unittest
from unittest import TestCase

from parlance.conversion import (
    BooleanConverter,
    Culture,
    CustomConverter,
    DateTimeConverter,
    DecimalConverter,
    EnumConverter,
    FloatConverter,
    IntegerConverter,
    NullableConverter,
    PathConverter,
    StringConverter,
    converter_for,
)


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class Access(enum.Flag):
    READ = 1
    WRITE = 2


class TestCulture(TestCase):
    def testLookupIsCaseInsensitive(self):
        self.assertIs(Culture.get("nl-nl"), Culture.get("nl-NL"))
        self.assertIs(Culture.get(""), Culture.INVARIANT)

    def testUnknownCultureRaisesLookupError(self):
        with self.assertRaises(LookupError):
            Culture.get("xx-XX")

    def testSeparatorsMustDiffer(self):
        with self.assertRaises(ValueError):
            Culture("xx", ".", ".")

    def testRegisterMakesCultureAvailable(self):
        culture = Culture.register(Culture("sv-SE", ",", ";", "%Y-%m-%d"))
        self.assertIs(Culture.get("SV-se"), culture)

    def testNormalizeRejectsGroupSeparator(self):
        with self.assertRaises(ValueError):
            Culture.INVARIANT.normalize_number("1,000")
        self.assertEqual(Culture.get("nl-NL").normalize_number(" 1,5 "), "1.5")
        with self.assertRaises(ValueError):
            Culture.get("nl-NL").normalize_number("1.5")


class TestConverters(TestCase):
    def testConverterForPicksVariant(self):
        self.assertIsInstance(converter_for(str), StringConverter)
        self.assertIsInstance(converter_for(bool), BooleanConverter)
        self.assertIsInstance(converter_for(int), IntegerConverter)
        self.assertIsInstance(converter_for(float), FloatConverter)
        self.assertIsInstance(converter_for(decimal.Decimal), DecimalConverter)
        self.assertIsInstance(converter_for(Color), EnumConverter)
        self.assertIsInstance(converter_for(datetime.date), DateTimeConverter)
        self.assertIsInstance(converter_for(pathlib.Path), PathConverter)
        self.assertIsInstance(converter_for(lambda text: text), CustomConverter)
        with self.assertRaises(TypeError):
            converter_for(1)

    def testConverterInstanceIsReturnedAsIs(self):
        converter = IntegerConverter()
        self.assertIs(converter_for(converter), converter)

    def testBooleanValues(self):
        converter = BooleanConverter()
        self.assertTrue(converter("TRUE"))
        self.assertFalse(converter("0"))
        with self.assertRaises(ValueError):
            converter("yes")

    def testIntegerHonoursCulture(self):
        converter = IntegerConverter()
        self.assertEqual(converter("-42"), -42)
        with self.assertRaises(ValueError):
            converter("4.2")
        with self.assertRaises(ValueError):
            converter("1,000")

    def testFloatAndDecimalHonourCulture(self):
        dutch = Culture.get("nl-NL")
        self.assertEqual(FloatConverter()("1,5", dutch), 1.5)
        self.assertEqual(DecimalConverter()("2,25", dutch), decimal.Decimal("2.25"))
        with self.assertRaises(ValueError):
            DecimalConverter()("abc")

    def testEnumNamesValuesAndFlags(self):
        self.assertIs(EnumConverter(Color)("green"), Color.GREEN)
        self.assertIs(EnumConverter(Color)("1"), Color.RED)
        self.assertEqual(EnumConverter(Access)("read,write"), Access.READ | Access.WRITE)
        with self.assertRaises(ValueError):
            EnumConverter(Color)("blue")
        with self.assertRaises(ValueError):
            EnumConverter(Color, case_sensitive=True)("red")

    def testDateUsesIsoThenCultureFormat(self):
        converter = DateTimeConverter(datetime.date)
        self.assertEqual(converter("2026-10-17"), datetime.date(2026, 10, 17))
        self.assertEqual(converter("17-10-2026", Culture.get("nl-NL")), datetime.date(2026, 10, 17))
        with self.assertRaises(ValueError):
            converter("17-10-2026")

    def testNullableMapsEmptyToNone(self):
        converter = NullableConverter(IntegerConverter())
        self.assertIsNone(converter(""))
        self.assertEqual(converter("7"), 7)
        self.assertIs(converter.type, int)

    def testCustomConverterMayReceiveCulture(self):
        plain = CustomConverter(str.upper)
        cultured = CustomConverter(lambda text, culture: (text, culture.name))
        self.assertEqual(plain("abc"), "ABC")
        self.assertEqual(cultured("abc", Culture.get("de-DE")), ("abc", "de-DE"))


if __name__ == "__main__":
    unittest.main()
