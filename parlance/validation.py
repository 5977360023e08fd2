"""
Parlance validator pipeline.

Overview
- Each ArgumentValidator may implement any of three capabilities, invoked by
  the binding engine at well-defined points:
  • is_valid_before(argument, text): raw value text, before conversion
    (length, pattern, emptiness). text is None for a switch given without value.
  • is_valid_after(argument, value): the converted element value, after it
    has been stored (range, enum membership, not-null).
  • is_valid_final(argument, state): once every token was consumed, over the
    has-value state of the whole parse (count, requires, prohibits).
  The defaults accept everything, so a validator only overrides what it checks.

- Failures raise the ArgumentException registered for the validator's
  category (VALIDATION_FAILED unless stated otherwise), with a lowercased
  message naming the argument. Values bound before the failure are kept.

- describe(argument) returns a short usage annotation (or None).

- ClassValidator instances are attached to the parser rather than to one
  argument and see the whole parse state (RequiresAny).

Built-ins
- ValidateRange, ValidateNotNull, ValidateNotEmpty, ValidateNotWhiteSpace,
  ValidateStringLength, ValidatePattern, ValidateEnumValue, ValidateCount
- Requires, Prohibits (DEPENDENCY_FAILED), RequiresAny (MISSING_REQUIRED_ARGUMENT)
- Validate(function, ...): open variant wrapping a user predicate.
"""
import enum
import functools
import operator
import re

from .faults import ErrorCategory, fault
from .utils import *


class ValidationMode(enum.Enum):
    """
    Pipeline stage a validator hook runs at.

    - BEFORE_CONVERSION: the raw value text.
    - AFTER_CONVERSION: the converted (and stored) element value.
    - AFTER_PARSING: the whole parse state, once every token was consumed.
    """
    BEFORE_CONVERSION = "before-conversion"
    AFTER_CONVERSION = "after-conversion"
    AFTER_PARSING = "after-parsing"


class ArgumentValidator(metaclass=IntrospectableType):
    category = ErrorCategory.VALIDATION_FAILED

    def is_valid_before(self, argument, text, /):
        return True

    def is_valid_after(self, argument, value, /):
        return True

    def is_valid_final(self, argument, state, /):
        return True

    def message(self, argument, value, /):
        return "argument %r failed validation" % argument.name

    def describe(self, argument, /):
        return None

    def _raise(self, argument, value, /, **options):
        raise fault(self.category, self.message(argument, value), argument=argument.name, **options)

    def validate_before(self, argument, text, /):
        if not self.is_valid_before(argument, text):
            self._raise(argument, text)

    def validate_after(self, argument, value, /):
        if not self.is_valid_after(argument, value):
            self._raise(argument, value)

    def validate_final(self, argument, state, /):
        if not self.is_valid_final(argument, state):
            self._raise(argument, state.value(argument))


class ValidateRange(ArgumentValidator):
    """
    Inclusive bounds; either bound may be omitted. None is never in range.
    """
    __introspectable__ = ("minimum", "maximum")

    def __init__(self, minimum=Unset, maximum=Unset):
        if minimum is Unset and maximum is Unset:
            raise TypeError(f"{type(self).__typename__} needs a minimum, a maximum or both")
        if minimum is not Unset and maximum is not Unset and minimum > maximum:
            raise ValueError(f"{type(self).__typename__} minimum cannot exceed maximum")
        self._minimum = minimum
        self._maximum = maximum

    def is_valid_after(self, argument, value, /):
        if value is None:
            return False
        if self._minimum is not Unset and value < self._minimum:
            return False
        return self._maximum is Unset or value <= self._maximum

    def message(self, argument, value, /):
        if self._maximum is Unset:
            return "argument %r must be at least %s" % (argument.name, self._minimum)
        if self._minimum is Unset:
            return "argument %r must be at most %s" % (argument.name, self._maximum)
        return "argument %r must be between %s and %s" % (argument.name, self._minimum, self._maximum)

    def describe(self, argument, /):
        return self.message(argument, None).replace("argument %r " % argument.name, "")


class ValidateNotNull(ArgumentValidator):
    category = ErrorCategory.NULL_ARGUMENT_VALUE

    def is_valid_after(self, argument, value, /):
        return value is not None

    def message(self, argument, value, /):
        return "argument %r cannot be null" % argument.name


class ValidateNotEmpty(ArgumentValidator):
    def is_valid_before(self, argument, text, /):
        return bool(text)

    def message(self, argument, value, /):
        return "argument %r cannot be empty" % argument.name

    def describe(self, argument, /):
        return "must not be empty"


class ValidateNotWhiteSpace(ArgumentValidator):
    def is_valid_before(self, argument, text, /):
        return bool(text and text.strip())

    def message(self, argument, value, /):
        return "argument %r cannot be empty or only white space" % argument.name

    def describe(self, argument, /):
        return "must not be blank"


class ValidateStringLength(ArgumentValidator):
    __introspectable__ = ("minimum", "maximum")

    def __init__(self, minimum=0, maximum=Unset):
        if not isinstance(minimum, int) or minimum < 0:
            raise ValueError(f"{type(self).__typename__} minimum must be a non-negative integer")
        if maximum is not Unset and (not isinstance(maximum, int) or maximum < minimum):
            raise ValueError(f"{type(self).__typename__} maximum must be an integer not below minimum")
        self._minimum = minimum
        self._maximum = maximum

    def is_valid_before(self, argument, text, /):
        length = len(text or "")
        return length >= self._minimum and (self._maximum is Unset or length <= self._maximum)

    def message(self, argument, value, /):
        if self._maximum is Unset:
            return "argument %r must be at least %s long" % (argument.name, quantify(self._minimum, "character"))
        return "argument %r must be between %d and %s long" % (
            argument.name, self._minimum, quantify(self._maximum, "character")
        )

    def describe(self, argument, /):
        return self.message(argument, None).replace("argument %r " % argument.name, "")


class ValidatePattern(ArgumentValidator):
    """
    The raw text must contain a match of the pattern (re.search semantics).

    A custom message may use the {name}, {value} and {pattern} fields.
    """
    __introspectable__ = ("pattern", "flags")

    def __init__(self, pattern, flags=0, message=Unset):
        if not isinstance(pattern, str | re.Pattern):
            raise TypeError(f"{type(self).__typename__} pattern must be a string or a compiled pattern")
        if not isinstance(message, str | Unset):
            raise TypeError(f"{type(self).__typename__} message must be a string")
        self._regex = re.compile(pattern, flags) if isinstance(pattern, str) else pattern
        self._pattern = self._regex.pattern
        self._flags = self._regex.flags
        self._message = message

    def is_valid_before(self, argument, text, /):
        return text is not None and self._regex.search(text) is not None

    def message(self, argument, value, /):
        if self._message is Unset:
            return "argument %r value %r does not match %r" % (argument.name, value, self._pattern)
        return self._message.format(name=argument.name, value=value, pattern=self._pattern)


class ValidateEnumValue(ArgumentValidator):
    """
    Restrict what an enumeration argument accepts beyond what conversion allows.

    Options (Unset means "infer from whether the enum is a flag enum")
    - allow_non_defined_values: accept values that are not (combinations of)
      declared members. Default False.
    - allow_comma_separated_values: accept "a,b" combinations. Default: flag enums only.
    - allow_numeric_values: accept numeric text. Default False.
    - case_sensitive: require exact member-name casing. Default False.
    - include_values_in_error_message: list the members in the failure message.
    """
    __introspectable__ = (
        "allow_non_defined_values",
        "allow_comma_separated_values",
        "allow_numeric_values",
        "case_sensitive",
        "include_values_in_error_message",
    )

    def __init__(
            self,
            *,
            allow_non_defined_values=False,
            allow_comma_separated_values=Unset,
            allow_numeric_values=False,
            case_sensitive=False,
            include_values_in_error_message=True,
    ):
        self._allow_non_defined_values = bool(allow_non_defined_values)
        self._allow_comma_separated_values = allow_comma_separated_values
        self._allow_numeric_values = bool(allow_numeric_values)
        self._case_sensitive = bool(case_sensitive)
        self._include_values_in_error_message = bool(include_values_in_error_message)

    @staticmethod
    def _enum(argument):
        if not isinstance(enumeration := argument.element_type, type) or not issubclass(enumeration, enum.Enum):
            raise TypeError(f"argument {argument.name!r} is validated as an enum but is not one")
        return enumeration

    def _commas(self, enumeration):
        return coalesce(self._allow_comma_separated_values, issubclass(enumeration, enum.Flag))

    def is_valid_before(self, argument, text, /):
        if text is None:
            return True
        enumeration = self._enum(argument)
        if "," in text and not self._commas(enumeration):
            return False
        for segment in map(str.strip, text.split(",")):
            if segment[:1].isdigit() or segment[:1] in "-+":
                if not self._allow_numeric_values:
                    return False
            elif self._case_sensitive and segment not in enumeration.__members__:
                return False
        return True

    def is_valid_after(self, argument, value, /):
        if value is None or self._allow_non_defined_values:
            return True
        enumeration = type(value)
        if issubclass(enumeration, enum.Flag):
            mask = functools.reduce(operator.or_, (member.value for member in enumeration), 0)
            return value.value & ~mask == 0
        return value in enumeration.__members__.values()

    def message(self, argument, value, /):
        message = "argument %r value %r is not valid" % (argument.name, value)
        if self._include_values_in_error_message:
            message += "; possible values: %s" % ", ".join(self._enum(argument).__members__)
        return message

    def describe(self, argument, /):
        return "possible values: %s" % ", ".join(self._enum(argument).__members__)


class ValidateCount(ArgumentValidator):
    """
    Number of collected elements of a multi-value or dictionary argument.

    An argument without any value is left to the required-argument check.
    """
    __introspectable__ = ("minimum", "maximum")

    def __init__(self, minimum=0, maximum=Unset):
        self._minimum = minimum
        self._maximum = maximum

    def is_valid_final(self, argument, state, /):
        if not state.has_value(argument):
            return True
        count = len(state.value(argument))
        return count >= self._minimum and (self._maximum is Unset or count <= self._maximum)

    def message(self, argument, value, /):
        if self._maximum is Unset:
            return "argument %r needs at least %s" % (argument.name, quantify(self._minimum, "value"))
        return "argument %r needs between %d and %s" % (argument.name, self._minimum, quantify(self._maximum, "value"))

    def describe(self, argument, /):
        return self.message(argument, None).replace("argument %r " % argument.name, "")


class _DependencyValidator(ArgumentValidator):
    """
    Base of requires/prohibits: named related arguments, checked only when the
    validated argument itself has a value.
    """
    category = ErrorCategory.DEPENDENCY_FAILED
    __introspectable__ = ("names",)

    def __init__(self, *names):
        if not names:
            raise TypeError(f"{type(self).__typename__} must name at least one argument")
        for name in names:
            if not isinstance(name, str) or not name.strip():
                raise TypeError(f"{type(self).__typename__} names must be non-empty strings")
        self._names = names

    def related(self, state, /):
        return [state.parser.get_argument(name) for name in self._names]


class Requires(_DependencyValidator):
    def is_valid_final(self, argument, state, /):
        return not state.has_value(argument) or all(map(state.has_value, self.related(state)))

    def message(self, argument, value, /):
        return "argument %r requires %s" % (argument.name, " and ".join(map(repr, self._names)))

    def describe(self, argument, /):
        return "requires %s" % ", ".join(self._names)


class Prohibits(_DependencyValidator):
    def is_valid_final(self, argument, state, /):
        return not state.has_value(argument) or not any(map(state.has_value, self.related(state)))

    def message(self, argument, value, /):
        return "argument %r cannot be used with %s" % (argument.name, " or ".join(map(repr, self._names)))

    def describe(self, argument, /):
        return "cannot be used with %s" % ", ".join(self._names)


class Validate(ArgumentValidator):
    """
    Open variant: a user predicate for one pipeline stage.

    - mode BEFORE_CONVERSION receives the raw text, AFTER_CONVERSION the
      converted value and AFTER_PARSING the argument's value after parsing.
    - a predicate raising ValueError/TypeError fails validation with that
      error chained as the inner cause.
    """
    __introspectable__ = ("function", "mode")

    def __init__(self, function, /, mode=ValidationMode.AFTER_CONVERSION, message=Unset, category=ErrorCategory.VALIDATION_FAILED):
        if not callable(function):
            raise TypeError(f"{type(self).__typename__} argument must be callable")
        if not isinstance(mode, ValidationMode):
            raise TypeError(f"{type(self).__typename__} mode must be a validation-mode")
        if not isinstance(category, ErrorCategory):
            raise TypeError(f"{type(self).__typename__} category must be an error-category")
        self._function = function
        self._mode = mode
        self._message = message
        self.category = category

    def _check(self, argument, value):
        try:
            return bool(self._function(value))
        except (ValueError, TypeError) as exception:
            raise fault(self.category, self.message(argument, value), argument=argument.name) from exception

    def is_valid_before(self, argument, text, /):
        return self._mode is not ValidationMode.BEFORE_CONVERSION or self._check(argument, text)

    def is_valid_after(self, argument, value, /):
        return self._mode is not ValidationMode.AFTER_CONVERSION or self._check(argument, value)

    def is_valid_final(self, argument, state, /):
        return self._mode is not ValidationMode.AFTER_PARSING or self._check(argument, state.value(argument))

    def message(self, argument, value, /):
        if self._message is Unset:
            return super().message(argument, value)
        return self._message.format(name=argument.name, value=value)


class ClassValidator(metaclass=IntrospectableType):
    """
    Parser-level validator over the whole parse state.
    """
    category = ErrorCategory.VALIDATION_FAILED

    def is_valid(self, state, /):
        return True

    def message(self, state, /):
        return "arguments failed validation"

    def validate(self, state, /):
        if not self.is_valid(state):
            raise fault(self.category, self.message(state))


class RequiresAny(ClassValidator):
    """
    At least one of the named arguments must have a value.
    """
    category = ErrorCategory.MISSING_REQUIRED_ARGUMENT
    __introspectable__ = ("names",)

    def __init__(self, *names):
        if len(names) < 2:
            raise TypeError(f"{type(self).__typename__} must name at least two arguments")
        self._names = names

    def is_valid(self, state, /):
        return any(state.has_value(state.parser.get_argument(name)) for name in self._names)

    def message(self, state, /):
        return "at least one of %s is required" % ", ".join(map(repr, self._names))


__all__ = (
    "ValidationMode",
    "ArgumentValidator",
    "ValidateRange",
    "ValidateNotNull",
    "ValidateNotEmpty",
    "ValidateNotWhiteSpace",
    "ValidateStringLength",
    "ValidatePattern",
    "ValidateEnumValue",
    "ValidateCount",
    "Requires",
    "Prohibits",
    "Validate",
    "ClassValidator",
    "RequiresAny",
)
