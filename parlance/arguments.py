r"""
Parlance argument descriptors.

Overview
- Argument
  • One declared argument: canonical name, optional short name, long and short
    aliases, optional position, kind, value type, required/default, converter,
    separators, validators and help-only metadata.
  • Immutable after construction; derived descriptors are made with
    copy.replace(argument, field=value).

- ArgumentKind
  • SINGLE_VALUE: one value; repeating it is subject to the duplicate policy.
  • MULTI_VALUE: accumulates an ordered list across occurrences and/or split
    on multi_value_separator.
  • DICTIONARY: accumulates key→value pairs from "key=value" text.
  • SWITCH: boolean; presence alone binds True.
  • METHOD: invokes a callback when parsed (switch-like when its type is bool).

- ArgumentSet
  • The fixed, ordered descriptor list one parser works on. Checks the
    cross-argument invariants eagerly (unique names under the configured
    comparison, contiguous positions, one trailing multi-value positional,
    no required positional after an optional one).

- @argument(...)
  • Build a METHOD argument around the decorated function.

Metadata (sanitized on construction)
- name: non-empty string without whitespace.
- short_name: Unset | single character | True (first character of the name).
- aliases / short_aliases: iterables of names / single characters; duplicates
  rejected.
- position: Unset | non-negative integer.
- type: value type (element type for multi-value, value type for dictionary);
  defaults to bool for switches and str otherwise.
- converter / key_converter: Unset (derived from the type), a Converter or any
  callable taking the value text.
- multi_value_separator: Unset | non-empty string.
- key_value_separator: non-empty string ("=").
- duplicate_keys: Unset (follow the parser's duplicate policy) | DuplicateKeyMode.
- whitespace_separator: multi-value only; after the first value, keep taking
  following positional-looking strings as further values ("-Files a b c").
- validators: iterable of ArgumentValidator.
- cancel_parsing: CancelMode (help switches use ABORT).
- dest: attribute name on the bound target; derived from the name
  ("OutputFile" → "output_file").

Quick example:
    >>> from parlance import Argument, ArgumentKind
    >>> Argument("Port", int, short_name="p", aliases=("listen",))
    ...
    >>> Argument("Include", kind=ArgumentKind.MULTI_VALUE, multi_value_separator=",")
    ...
"""
import builtins
import enum
import re
from collections.abc import Iterable

from .conversion import Converter, NullableConverter, converter_for
from .options import CancelMode, ParseOptions
from .utils import *
from .validation import ArgumentValidator


class ArgumentKind(enum.Enum):
    SINGLE_VALUE = "single-value"
    MULTI_VALUE = "multi-value"
    DICTIONARY = "dictionary"
    SWITCH = "switch"
    METHOD = "method"


class DuplicateKeyMode(enum.Enum):
    """
    What a dictionary argument does with a key it already holds.

    - REJECT: InvalidDictionaryValue error.
    - OVERWRITE: the later value wins.
    - KEEP_FIRST: the earlier value is kept.
    """
    REJECT = "reject"
    OVERWRITE = "overwrite"
    KEEP_FIRST = "keep-first"


def _enum_member(cls, field, value, enumeration, /):
    if isinstance(value, enumeration):
        return value
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a {enumeration.__name__} member or string")
    try:
        return enumeration(value.strip().lower())
    except ValueError:
        raise ValueError(f"{cls.__typename__} {field!r} has no member {value!r}") from None


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate the canonical name, the short name and both alias lists.

    Raises
    - TypeError: non-string names or non-iterable alias collections.
    - ValueError: empty names, names containing whitespace, short names longer
      than one character, or duplicate aliases.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    elif not name or any(char.isspace() for char in name):
        raise ValueError(f"{cls.__typename__} name cannot be empty or contain whitespace")

    if (short := metadata["short_name"]) is True:
        metadata["short_name"] = name[0]
    elif short is False:
        metadata["short_name"] = Unset
    elif not isinstance(short, str | Unset):
        raise TypeError(f"{cls.__typename__} 'short_name' must be a character")
    elif isinstance(short, str) and (len(short) != 1 or short.isspace()):
        raise ValueError(f"{cls.__typename__} 'short_name' must be a single non-blank character")

    for field, single in (("aliases", False), ("short_aliases", True)):
        if isinstance(aliases := metadata[field], str) or not isinstance(aliases, Iterable):
            raise TypeError(f"{cls.__typename__} {field!r} must be an iterable of strings")
        sanitized = []
        for alias in aliases:
            if not isinstance(alias, str):
                raise TypeError(f"{cls.__typename__} {field} must be strings")
            elif not alias or any(char.isspace() for char in alias):
                raise ValueError(f"{cls.__typename__} {field} cannot be empty or contain whitespace")
            elif single and len(alias) != 1:
                raise ValueError(f"{cls.__typename__} {field} must be single characters")
            elif alias in sanitized:
                raise ValueError(f"{cls.__typename__} {field} cannot contain duplicates")
            sanitized.append(alias)
        metadata[field] = tuple(sanitized)


def _sanitize_kind(cls, metadata, /):
    """
    Internal: infer the kind and the value type, then check they agree.

    - kind Unset: METHOD when a callback is given, SWITCH for bool, else SINGLE_VALUE.
    - type Unset: bool for switches and method arguments, str otherwise.
    """
    callback = metadata["callback"]
    if callback is not Unset and not callable(callback):
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")

    if (kind := metadata["kind"]) is Unset:
        if callback is not Unset:
            kind = ArgumentKind.METHOD
        elif isinstance(metadata["type"], builtins.type) and issubclass(metadata["type"], bool):
            kind = ArgumentKind.SWITCH
        else:
            kind = ArgumentKind.SINGLE_VALUE
    metadata["kind"] = kind = _enum_member(cls, "kind", kind, ArgumentKind)

    if metadata["type"] is Unset:
        metadata["type"] = bool if kind in (ArgumentKind.SWITCH, ArgumentKind.METHOD) else str
    if not callable(metadata["type"]) and not isinstance(metadata["type"], Converter):
        raise TypeError(f"{cls.__typename__} 'type' must be a type or a callable")

    if kind is ArgumentKind.SWITCH and not (
        isinstance(metadata["type"], builtins.type) and issubclass(metadata["type"], bool)
    ):
        raise TypeError(f"switch {cls.__typename__} 'type' must be bool")
    if kind is ArgumentKind.METHOD and callback is Unset:
        raise TypeError(f"method {cls.__typename__} must specify a 'callback'")
    if kind is not ArgumentKind.METHOD and callback is not Unset:
        raise TypeError(f"only method {pluralize(cls.__typename__)} can specify a 'callback'")


def _sanitize_values(cls, metadata, /):
    """
    Internal: position, required/default, separators and conversion strategy.
    """
    kind = metadata["kind"]
    switch = kind is ArgumentKind.SWITCH or (kind is ArgumentKind.METHOD and metadata["type"] is bool)

    if not isinstance(position := metadata["position"], int | Unset) or isinstance(position, bool):
        raise TypeError(f"{cls.__typename__} 'position' must be an integer")
    elif isinstance(position, int) and position < 0:
        raise ValueError(f"{cls.__typename__} 'position' cannot be negative")
    elif isinstance(position, int) and switch:
        raise ValueError(f"switch {pluralize(cls.__typename__)} cannot be positional")

    metadata["required"] = bool(metadata["required"])
    if metadata["required"] and metadata["default"] is not Unset:
        raise ValueError(f"required {cls.__typename__} cannot have a 'default'")

    if not isinstance(separator := metadata["multi_value_separator"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'multi_value_separator' must be a string")
    elif separator == "":
        raise ValueError(f"{cls.__typename__} 'multi_value_separator' cannot be empty")
    elif separator is not Unset and kind not in (ArgumentKind.MULTI_VALUE, ArgumentKind.DICTIONARY):
        raise ValueError(f"only multi-value {pluralize(cls.__typename__)} can specify a 'multi_value_separator'")

    if not isinstance(separator := metadata["key_value_separator"], str):
        raise TypeError(f"{cls.__typename__} 'key_value_separator' must be a string")
    elif not separator:
        raise ValueError(f"{cls.__typename__} 'key_value_separator' cannot be empty")

    if metadata["duplicate_keys"] is not Unset:
        metadata["duplicate_keys"] = _enum_member(cls, "duplicate_keys", metadata["duplicate_keys"], DuplicateKeyMode)

    metadata["cancel_parsing"] = _enum_member(cls, "cancel_parsing", metadata["cancel_parsing"], CancelMode)
    metadata["allow_null"] = bool(metadata["allow_null"])
    metadata["whitespace_separator"] = bool(metadata["whitespace_separator"])
    metadata["hidden"] = bool(metadata["hidden"])

    converter = converter_for(coalesce(metadata["converter"], metadata["type"]))
    if metadata["allow_null"] and not isinstance(converter, NullableConverter):
        converter = NullableConverter(converter)
    metadata["converter"] = converter
    metadata["key_converter"] = converter_for(coalesce(metadata["key_converter"], metadata["key_type"]))

    if isinstance(validators := metadata["validators"], ArgumentValidator) or not isinstance(validators, Iterable):
        raise TypeError(f"{cls.__typename__} 'validators' must be an iterable of validators")
    for validator in (validators := tuple(validators)):
        if not isinstance(validator, ArgumentValidator):
            raise TypeError(f"{cls.__typename__} validators must be argument-validator instances")
    metadata["validators"] = validators


def _sanitize_display(cls, metadata, /):
    if not isinstance(dest := metadata["dest"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'dest' must be a string")
    elif isinstance(dest, str) and not dest.isidentifier():
        raise ValueError(f"{cls.__typename__} 'dest' must be a valid identifier")
    metadata["dest"] = coalesce(dest, re.sub(r"(?<!^)(?=[A-Z])", "_", metadata["name"]).lower().replace("-", "_"))

    for field in ("description", "value_description", "category"):
        if not isinstance(value := metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
        metadata[field] = coalesce(value)

    switch = metadata["kind"] is ArgumentKind.SWITCH or (
        metadata["kind"] is ArgumentKind.METHOD and metadata["type"] is bool
    )
    if metadata["value_description"] is None and not switch:
        object = metadata["converter"].type
        metadata["value_description"] = getattr(object, "__name__", type(object).__name__)


class Argument(metaclass=IntrospectableType, final=True):
    """
    Immutable argument descriptor.

    Every field listed in __introspectable__ is a read-only property. The
    descriptor never holds parse-time state; values live in the parser's
    ParseState, which is reset on every parse.
    """
    __introspectable__ = (
        "name",
        "type",
        "kind",
        "short_name",
        "aliases",
        "short_aliases",
        "position",
        "required",
        "default",
        "converter",
        "key_type",
        "key_converter",
        "multi_value_separator",
        "key_value_separator",
        "duplicate_keys",
        "allow_null",
        "whitespace_separator",
        "validators",
        "cancel_parsing",
        "callback",
        "dest",
        "description",
        "value_description",
        "category",
        "hidden",
    )

    __displayable__ = (
        "name",
        "kind",
        "type",
        "short_name",
        "aliases",
        "position",
        "required",
        "default",
    )

    def __new__(
            cls,
            name,
            /,
            type=Unset,
            kind=Unset,
            *,
            short_name=Unset,
            aliases=(),
            short_aliases=(),
            position=Unset,
            required=False,
            default=Unset,
            converter=Unset,
            key_type=str,
            key_converter=Unset,
            multi_value_separator=Unset,
            key_value_separator="=",
            duplicate_keys=Unset,
            allow_null=False,
            whitespace_separator=False,
            validators=(),
            cancel_parsing=CancelMode.NONE,
            callback=Unset,
            dest=Unset,
            description=Unset,
            value_description=Unset,
            category=Unset,
            hidden=False,
    ):
        parameters = {
            "type": type,
            "kind": kind,
            "short_name": short_name,
            "aliases": aliases,
            "short_aliases": short_aliases,
            "position": position,
            "required": required,
            "default": default,
            "converter": converter,
            "key_type": key_type,
            "key_converter": key_converter,
            "multi_value_separator": multi_value_separator,
            "key_value_separator": key_value_separator,
            "duplicate_keys": duplicate_keys,
            "allow_null": allow_null,
            "whitespace_separator": whitespace_separator,
            "validators": validators,
            "cancel_parsing": cancel_parsing,
            "callback": callback,
            "dest": dest,
            "description": description,
            "value_description": value_description,
            "category": category,
            "hidden": hidden,
        }
        metadata = {"name": name} | parameters
        _sanitize_names(cls, metadata)
        _sanitize_kind(cls, metadata)
        _sanitize_values(cls, metadata)
        _sanitize_display(cls, metadata)

        self = super().__new__(cls)
        self._parameters = {"name": name} | parameters
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def is_switch(self):
        """
        True when presence alone supplies the value (switches and bool methods).
        """
        return self._kind is ArgumentKind.SWITCH or (self._kind is ArgumentKind.METHOD and self._type is bool)

    @property
    def is_multi_value(self):
        return self._kind in (ArgumentKind.MULTI_VALUE, ArgumentKind.DICTIONARY)

    @property
    def is_positional(self):
        return self._position is not Unset

    @property
    def has_default(self):
        return self._default is not Unset

    @property
    def element_type(self):
        """
        Type produced by the converter for one element.
        """
        return self._converter.type

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        parameters = self._parameters | overrides
        return type(self)(parameters.pop("name"), **parameters)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self


def argument(name=Unset, /, **options):
    """
    Decorator/factory for method arguments.

    Usage
        @argument("Version", description="show the version and exit")
        def show_version():
            print("1.0")
            return False

    Behavior
    - The decorated function becomes the callback of a METHOD argument; the
      argument name defaults to the function name.
    - Switch-like methods (type bool, the default) are called without
      arguments; others receive the converted value.
    - Returning False cancels parsing (abort, no help); returning a CancelMode
      applies that mode; anything else continues.
    """
    if not isinstance(name, str | Unset):
        raise TypeError("@argument() name must be a string")

    @rename("argument")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@argument() must be applied to a callable")
        return Argument(coalesce(name, getattr(callback, "__name__", Unset)), **options | {
            "kind": ArgumentKind.METHOD,
            "callback": callback,
        })

    return wrapper


class ArgumentSet(metaclass=IntrospectableType, final=True):
    """
    Ordered, immutable descriptor list for one parser.

    Invariants (checked on construction, raising ValueError)
    - canonical names and long aliases are unique under the configured comparison,
      and so are short names and short aliases in long/short mode.
    - names do not contain a name/value separator.
    - positions are contiguous from 0, at most one positional argument is
      multi-value and it is the last one, and no required positional argument
      follows an optional one.

    Lookups
    - get(name): by canonical name under the configured comparison.
    - positional: positional arguments ordered by position.
    - digit_names: whether any name could start with a digit (this disables the
      negative-number rule of the tokenizer).
    """
    __introspectable__ = ("arguments", "options")
    __displayable__ = ("arguments",)

    def __new__(cls, arguments, options, /):
        if not isinstance(options, ParseOptions):
            raise TypeError(f"{cls.__typename__} options must be parse-options")
        if isinstance(arguments, Argument) or not isinstance(arguments, Iterable):
            raise TypeError(f"{cls.__typename__} arguments must be an iterable of arguments")
        arguments = tuple(arguments)
        for argument in arguments:
            if not isinstance(argument, Argument):
                raise TypeError(f"{cls.__typename__} arguments must be argument instances")

        self = super().__new__(cls)
        self._arguments = arguments
        self._options = options
        self._names = {}
        self._check_names()
        self._positional = tuple(sorted(
            (argument for argument in arguments if argument.is_positional), key=lambda argument: argument.position,
        ))
        self._check_positions()
        return self

    def _check_names(self):
        fold = lambda text: casefold(text, self._options.case_sensitive)  # NOQA: E-731
        long, short = {}, {}
        for argument in self._arguments:
            if any(separator in argument.name for separator in self._options.separators):
                raise ValueError(f"argument name {argument.name!r} cannot contain a name/value separator")

            names = (argument.name, *argument.aliases)
            shorts = ()
            if self._options.long_short:
                shorts = tuple(filter(None, (coalesce(argument.short_name), *argument.short_aliases)))
            for namespace, candidates in ((long, names), (short, shorts)):
                for candidate in candidates:
                    if (other := namespace.setdefault(fold(candidate), argument)) is not argument:
                        raise ValueError(
                            f"argument name {candidate!r} of {argument.name!r} collides with {other.name!r}"
                        )
            self._names[fold(argument.name)] = argument

        self._digit_names = any(
            candidate[:1].isdigit() for candidate in (*long, *short)
        )

    def _check_positions(self):
        for index, argument in enumerate(self._positional):
            if argument.position != index:
                raise ValueError(
                    f"positional argument {argument.name!r} must be at position {index}, not {argument.position}"
                )
            if argument.is_multi_value and index != len(self._positional) - 1:
                raise ValueError(f"multi-value positional argument {argument.name!r} must be the last one")
            if index and argument.required and not self._positional[index - 1].required:
                raise ValueError(
                    f"required positional argument {argument.name!r} cannot follow an optional one"
                )

    @property
    def positional(self):
        return self._positional

    @property
    def digit_names(self):
        return self._digit_names

    def get(self, name, /):
        """
        Return the argument with this canonical name, or None.
        """
        return self._names.get(casefold(name, self._options.case_sensitive))

    def __iter__(self):
        return iter(self._arguments)

    def __len__(self):
        return len(self._arguments)

    def __contains__(self, object):
        return isinstance(object, Argument) and any(argument is object for argument in self._arguments)


__all__ = (
    "ArgumentKind",
    "DuplicateKeyMode",
    "Argument",
    "ArgumentSet",
    "argument",
)
