"""
Parlance value conversion (text → typed value).

Overview
- Culture
  • Number/date formatting conventions used for a whole parse: decimal
    separator, group separator and the fallback date format. A handful of
    cultures are registered up front (invariant, en-US, en-GB, nl-NL, de-DE,
    fr-FR); hosts can register more with Culture.register().

- Converters (closed set of variants + one open "custom" variant)
  • StringConverter, BooleanConverter, IntegerConverter, FloatConverter,
    DecimalConverter, EnumConverter, DateTimeConverter, PathConverter.
  • NullableConverter wraps another converter and maps "" onto None.
  • CustomConverter holds any user callable taking the value text.
  • converter_for(type) picks the variant for a declared value type.

Contract
- convert(text, culture) returns the typed value or raises the underlying
  native error (ValueError, TypeError, decimal.InvalidOperation, ...). The
  binding engine wraps that error as the inner cause of an
  ArgumentValueConversionError; converters never build faults themselves.
- Conversion is culture-sensitive only where the value type is: numbers
  honour the decimal separator and reject group separators; dates try ISO
  8601 first and then the culture's date format.
"""
import builtins
import datetime
import decimal
import enum
import functools
import inspect
import pathlib
import re

from .utils import *


class Culture(metaclass=IntrospectableType, final=True):
    """
    Immutable number/date conventions for one locale name.

    Lookups are case-insensitive ("nl-nl" and "nl-NL" are the same culture).
    """
    __introspectable__ = (
        "name",
        "decimal_separator",
        "group_separator",
        "date_format",
    )

    _registry = {}

    def __new__(cls, name, /, decimal_separator=".", group_separator=",", date_format="%Y-%m-%d"):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} name must be a string")
        for field, value in (("decimal_separator", decimal_separator), ("group_separator", group_separator)):
            if not isinstance(value, str):
                raise TypeError(f"{cls.__typename__} {field!r} must be a string")
            if len(value) != 1:
                raise ValueError(f"{cls.__typename__} {field!r} must be a single character")
        if decimal_separator == group_separator:
            raise ValueError(f"{cls.__typename__} separators must differ")
        if not isinstance(date_format, str) or not date_format:
            raise TypeError(f"{cls.__typename__} 'date_format' must be a non-empty string")

        self = super().__new__(cls)
        self._name = name
        self._decimal_separator = decimal_separator
        self._group_separator = group_separator
        self._date_format = date_format
        return self

    def __eq__(self, other):
        if not isinstance(other, Culture):
            return NotImplemented
        return self.name.casefold() == other.name.casefold()

    def __hash__(self):
        return hash(self.name.casefold())

    @classmethod
    def register(cls, culture, /):
        """
        Make a culture available to Culture.get() (and to ParseOptions(culture="name")).
        """
        if not isinstance(culture, Culture):
            raise TypeError("register() argument must be a culture")
        cls._registry[culture.name.casefold()] = culture
        return culture

    @classmethod
    def get(cls, name, /):
        """
        Look up a registered culture by name; "" denotes the invariant culture.

        Raises
        - LookupError: when no culture with that name was registered.
        """
        if not isinstance(name, str):
            raise TypeError("get() argument must be a string")
        try:
            return cls._registry[name.casefold()]
        except KeyError:
            raise LookupError(f"unknown culture {name!r}") from None

    def normalize_number(self, text, /):
        """
        Rewrite culture-formatted number text into Python's literal form.

        - surrounding whitespace is ignored.
        - the group separator is not accepted anywhere in the text.
        - the culture's decimal separator becomes ".", and a "." that is not the
          culture's decimal separator is rejected.
        """
        text = text.strip()
        if self.group_separator in text:
            raise ValueError(f"group separator {self.group_separator!r} is not allowed in {text!r}")
        if self.decimal_separator != "." and "." in text:
            raise ValueError(f"{text!r} is not a number in the {self.name or 'invariant'} culture")
        return text.replace(self.decimal_separator, ".")


Culture.INVARIANT = Culture.register(Culture(""))
Culture.register(Culture("en-US", ".", ",", "%m/%d/%Y"))
Culture.register(Culture("en-GB", ".", ",", "%d/%m/%Y"))
Culture.register(Culture("nl-NL", ",", ".", "%d-%m-%Y"))
Culture.register(Culture("de-DE", ",", ".", "%d.%m.%Y"))
Culture.register(Culture("fr-FR", ",", " ", "%d/%m/%Y"))


class Converter(metaclass=IntrospectableType):
    """
    Base of every converter variant.

    Subclasses implement convert(text, culture). The declared value type is
    kept for usage rendering and for element-type inspection.
    """
    __introspectable__ = ("type",)

    def __init__(self, type=str, /):
        self._type = type

    def convert(self, text, culture, /):
        raise NotImplementedError

    def __call__(self, text, culture=Culture.INVARIANT, /):
        return self.convert(text, culture)


class StringConverter(Converter):
    def convert(self, text, culture, /):
        return text if self.type is str else self.type(text)


class BooleanConverter(Converter):
    """
    "true"/"false" in any casing, plus "1"/"0".
    """
    _values = {"true": True, "false": False, "1": True, "0": False}

    def __init__(self, type=bool, /):
        super().__init__(type)

    def convert(self, text, culture, /):
        try:
            return self._values[text.strip().casefold()]
        except KeyError:
            raise ValueError(f"{text!r} is not a valid boolean") from None


class IntegerConverter(Converter):
    _pattern = re.compile(r"[+-]?\d+")

    def __init__(self, type=int, /):
        super().__init__(type)

    def convert(self, text, culture, /):
        if not self._pattern.fullmatch(normalized := culture.normalize_number(text)):
            raise ValueError(f"{text!r} is not a valid integer")
        return self.type(int(normalized, 10))


class FloatConverter(Converter):
    def __init__(self, type=float, /):
        super().__init__(type)

    def convert(self, text, culture, /):
        return self.type(float(culture.normalize_number(text)))


class DecimalConverter(Converter):
    def __init__(self, type=decimal.Decimal, /):
        super().__init__(type)

    def convert(self, text, culture, /):
        try:
            return self.type(culture.normalize_number(text))
        except decimal.InvalidOperation:
            raise ValueError(f"{text!r} is not a valid decimal number") from None


class EnumConverter(Converter):
    """
    Member names (case-insensitive unless requested otherwise), member values
    given as integers, and for flag enums a comma-separated combination.

    Whether numeric or combined input is acceptable for a given argument is a
    validation concern: the parser applies ValidateEnumValue() (member names
    only) to enum arguments that do not carry their own, so the converter
    itself accepts everything the enum type can represent.
    """
    __introspectable__ = ("type", "case_sensitive")

    def __init__(self, type, /, case_sensitive=False):
        if not isinstance(type, builtins.type) or not issubclass(type, enum.Enum):
            raise TypeError("enum-converter argument must be an enum type")
        super().__init__(type)
        self._case_sensitive = bool(case_sensitive)

    @functools.cached_property
    def _members(self):
        return {casefold(name, self.case_sensitive): member for name, member in self.type.__members__.items()}

    def _single(self, text):
        if not (text := text.strip()):
            raise ValueError("empty enum value")
        if re.fullmatch(r"[+-]?\d+", text):
            return self.type(int(text))
        try:
            return self._members[casefold(text, self.case_sensitive)]
        except KeyError:
            raise ValueError(f"{text!r} is not a member of {self.type.__name__}") from None

    def convert(self, text, culture, /):
        if issubclass(self.type, enum.Flag) and "," in text:
            return functools.reduce(lambda left, right: left | right, map(self._single, text.split(",")))
        return self._single(text)


class DateTimeConverter(Converter):
    """
    ISO 8601 first, then the culture's date format (for date/datetime).
    """
    def __init__(self, type=datetime.datetime, /):
        super().__init__(type)

    def convert(self, text, culture, /):
        text = text.strip()
        try:
            return self.type.fromisoformat(text)
        except ValueError:
            if self.type is datetime.time:
                raise
        parsed = datetime.datetime.strptime(text, culture.date_format)
        return parsed.date() if self.type is datetime.date else parsed


class PathConverter(Converter):
    def __init__(self, type=pathlib.Path, /):
        super().__init__(type)

    def convert(self, text, culture, /):
        return self.type(text)


class NullableConverter(Converter):
    """
    Map the empty string onto None and delegate everything else.
    """
    __introspectable__ = ("type", "inner")

    def __init__(self, inner, /):
        if not isinstance(inner, Converter):
            raise TypeError("nullable-converter argument must be a converter")
        super().__init__(inner.type)
        self._inner = inner

    def convert(self, text, culture, /):
        if text == "":
            return None
        return self._inner.convert(text, culture)


class CustomConverter(Converter):
    """
    Open variant: any callable receiving the value text.

    A callable whose signature accepts a second positional parameter receives
    the active culture as well.
    """
    __introspectable__ = ("type", "function")

    def __init__(self, function, /, type=Unset):
        if not callable(function):
            raise TypeError("custom-converter argument must be callable")
        super().__init__(coalesce(type, function))
        self._function = function

    @functools.cached_property
    def _cultured(self):
        if isinstance(self._function, builtins.type):
            return False
        try:
            inspect.signature(self._function).bind("", Culture.INVARIANT)
        except (TypeError, ValueError):
            return False
        return True

    def convert(self, text, culture, /):
        if self._cultured:
            return self._function(text, culture)
        return self._function(text)


def converter_for(type, /):
    """
    Pick the converter variant for a declared value type.

    - Converter instance → itself
    - str, bool, int (and int subclasses), float, decimal.Decimal → dedicated variants
    - enum.Enum subclasses → EnumConverter
    - datetime.date/datetime/time → DateTimeConverter
    - pathlib.PurePath subclasses → PathConverter
    - any other callable (type or function) → CustomConverter
    """
    if isinstance(type, Converter):
        return type
    if isinstance(type, builtins.type):
        if issubclass(type, bool):
            return BooleanConverter(type)
        if issubclass(type, enum.Enum):
            return EnumConverter(type)
        if issubclass(type, int):
            return IntegerConverter(type)
        if issubclass(type, float):
            return FloatConverter(type)
        if issubclass(type, decimal.Decimal):
            return DecimalConverter(type)
        if issubclass(type, datetime.date | datetime.time):
            return DateTimeConverter(type)
        if issubclass(type, pathlib.PurePath):
            return PathConverter(type)
        if issubclass(type, str):
            return StringConverter(type)
    if callable(type):
        return CustomConverter(type)
    raise TypeError("converter_for() argument must be a type, a callable or a converter")


__all__ = (
    "Culture",
    "Converter",
    "StringConverter",
    "BooleanConverter",
    "IntegerConverter",
    "FloatConverter",
    "DecimalConverter",
    "EnumConverter",
    "DateTimeConverter",
    "PathConverter",
    "NullableConverter",
    "CustomConverter",
    "converter_for",
)
