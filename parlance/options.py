"""
Parlance parser configuration.

Overview
- Modes (enumerations, accepted either as members or by their string value)
  • ParsingMode: DEFAULT (one name namespace, any prefix) or LONG_SHORT
    (a long-prefixed namespace plus single-character short names).
  • ErrorMode: policy for repeated non-multi-value arguments.
  • PrefixTerminationMode: what the terminator token ("--") does.
  • CancelMode: how an argument (or a hook) stops the parse.
  • UsageHelpRequest: how much usage to render after an error.

- ParseOptions
  • Immutable configuration shared by one parser (and, through
    CommandOptions, by every command parser). Fields are sanitized on
    construction; derived copies are made with copy.replace(options, ...).

Defaults
- prefixes: ("-", "/") on Windows, ("-",) elsewhere; long prefix "--".
- case-insensitive names, separators ":" and "=", duplicates are errors,
  prefix aliases enabled, no prefix termination, invariant culture,
  whitespace value separator enabled, automatic help/version arguments.
"""
import copy
import enum
import os
from collections.abc import Mapping

from .conversion import Culture
from .utils import *


class ParsingMode(enum.Enum):
    DEFAULT = "default"
    LONG_SHORT = "long-short"


class ErrorMode(enum.Enum):
    """
    - ERROR: repeating a non-multi-value argument is a DuplicateArgument error.
    - WARNING: the last occurrence wins and a DuplicateArgumentWarning is emitted.
    - ALLOW: the last occurrence wins silently.
    """
    ERROR = "error"
    WARNING = "warning"
    ALLOW = "allow"


class PrefixTerminationMode(enum.Enum):
    """
    - NONE: the terminator has no special meaning.
    - POSITIONAL_ONLY: every token after the terminator is positional.
    - CANCEL_WITH_SUCCESS: parsing stops successfully at the terminator; the
      tokens after it are reported as remaining.
    """
    NONE = "none"
    POSITIONAL_ONLY = "positional-only"
    CANCEL_WITH_SUCCESS = "cancel-with-success"


class CancelMode(enum.Enum):
    """
    - NONE: keep parsing.
    - ABORT: stop; the result is CANCELED and carries no bound value.
    - SUCCESS: stop consuming tokens but finish the parse (required checks,
      validation, target construction); the result is SUCCESS.
    """
    NONE = "none"
    ABORT = "abort"
    SUCCESS = "success"


class UsageHelpRequest(enum.Enum):
    FULL = "full"
    SYNTAX_ONLY = "syntax-only"
    NONE = "none"


def _sanitize_enum(cls, metadata, name, enumeration, /):
    """
    Internal: accept an enumeration member or its string value.
    """
    value = metadata[name]
    if isinstance(value, enumeration):
        return
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {name!r} must be a {enumeration.__name__} member or string")
    try:
        metadata[name] = enumeration(value.strip().lower())
    except ValueError:
        choices = ", ".join(repr(member.value) for member in enumeration)
        raise ValueError(f"{cls.__typename__} {name!r} must be one of {choices}") from None


def _sanitize_prefix(cls, prefix, field, /):
    if not isinstance(prefix, str):
        raise TypeError(f"{cls.__typename__} {field} must be strings")
    elif not prefix or prefix != prefix.strip() or any(char.isspace() for char in prefix):
        raise ValueError(f"{cls.__typename__} {field} cannot be empty or contain whitespace")
    return prefix


def _sanitize_options(cls, metadata, /):
    """
    Internal: validate and normalize ParseOptions metadata in place.

    Responsibilities
    - enumerations: accept members or string values.
    - prefixes: non-empty, whitespace-free, unique; sorted longest first so
      that "--" is tried before "-".
    - long_prefix: must differ from every short prefix in LONG_SHORT mode.
    - separators: single characters (a string is read character by character).
    - terminator: non-empty string.
    - culture: a Culture or a registered culture name.
    - hooks: Unset/None or callables.

    Raises
    - TypeError / ValueError with "{typename} 'field' ..." messages.
    """
    _sanitize_enum(cls, metadata, "mode", ParsingMode)
    _sanitize_enum(cls, metadata, "duplicate_arguments", ErrorMode)
    _sanitize_enum(cls, metadata, "prefix_termination", PrefixTerminationMode)
    _sanitize_enum(cls, metadata, "show_usage_on_error", UsageHelpRequest)

    prefixes = coalesce(metadata["prefixes"], ("-", "/") if os.name == "nt" else ("-",))
    if isinstance(prefixes, str):
        prefixes = (prefixes,)
    sanitized = []
    for prefix in prefixes:
        if _sanitize_prefix(cls, prefix, "prefixes") in sanitized:
            raise ValueError(f"{cls.__typename__} prefixes cannot contain duplicates")
        sanitized.append(prefix)
    if not sanitized:
        raise ValueError(f"{cls.__typename__} must specify at least one prefix")
    metadata["prefixes"] = tuple(sorted(sanitized, key=len, reverse=True))

    metadata["long_prefix"] = _sanitize_prefix(cls, metadata["long_prefix"], "'long_prefix'")
    if metadata["mode"] is ParsingMode.LONG_SHORT and metadata["long_prefix"] in metadata["prefixes"]:
        raise ValueError(f"{cls.__typename__} 'long_prefix' must differ from the short prefixes")

    separators = []
    for separator in metadata["separators"]:
        if not isinstance(separator, str) or len(separator) != 1:
            raise TypeError(f"{cls.__typename__} separators must be single characters")
        if separator.isspace():
            raise ValueError(f"{cls.__typename__} separators cannot be whitespace")
        if separator not in separators:
            separators.append(separator)
    if not separators:
        raise ValueError(f"{cls.__typename__} must specify at least one separator")
    metadata["separators"] = tuple(separators)

    if not isinstance(terminator := metadata["terminator"], str):
        raise TypeError(f"{cls.__typename__} 'terminator' must be a string")
    elif not terminator.strip():
        raise ValueError(f"{cls.__typename__} 'terminator' cannot be empty")

    if isinstance(culture := metadata["culture"], str):
        metadata["culture"] = Culture.get(culture)
    elif not isinstance(culture, Culture):
        raise TypeError(f"{cls.__typename__} 'culture' must be a culture or a culture name")

    for hook in ("on_unknown_argument", "on_argument_parsed", "on_duplicate_argument"):
        if (callback := coalesce(metadata[hook])) is not None and not callable(callback):
            raise TypeError(f"{cls.__typename__} {hook!r} must be callable")
        metadata[hook] = callback

    for flag in (
        "case_sensitive",
        "auto_prefix_aliases",
        "whitespace_separator",
        "auto_help",
        "auto_version",
        "shell",
        "fancy",
        "colorful",
    ):
        metadata[flag] = bool(metadata[flag])


class ParseOptions(metaclass=IntrospectableType, final=True):
    """
    Immutable parser configuration.

    Every field is exposed as a read-only property; copy.replace(options,
    field=value) returns a re-sanitized copy with the given fields changed.

    Fields
    - mode: ParsingMode | str
    - prefixes: Iterable[str] (short prefixes in LONG_SHORT mode)
    - long_prefix: str (LONG_SHORT mode only)
    - case_sensitive: bool
    - separators: Iterable[str] of single characters between name and value
    - duplicate_arguments: ErrorMode | str
    - auto_prefix_aliases: bool
    - prefix_termination: PrefixTerminationMode | str
    - terminator: str
    - culture: Culture | str
    - whitespace_separator: bool (allow "-name value")
    - auto_help / auto_version: bool
    - show_usage_on_error: UsageHelpRequest | str
    - on_unknown_argument / on_argument_parsed / on_duplicate_argument: hooks
      receiving the matching event object (see parlance.parser)
    - shell / fancy / colorful: fault surfacing and rendering flags
    """
    __introspectable__ = (
        "mode",
        "prefixes",
        "long_prefix",
        "case_sensitive",
        "separators",
        "duplicate_arguments",
        "auto_prefix_aliases",
        "prefix_termination",
        "terminator",
        "culture",
        "whitespace_separator",
        "auto_help",
        "auto_version",
        "show_usage_on_error",
        "on_unknown_argument",
        "on_argument_parsed",
        "on_duplicate_argument",
        "shell",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "mode",
        "prefixes",
        "long_prefix",
        "case_sensitive",
        "separators",
        "duplicate_arguments",
        "auto_prefix_aliases",
        "prefix_termination",
        "culture",
    )

    def __new__(
            cls,
            *,
            mode=ParsingMode.DEFAULT,
            prefixes=Unset,
            long_prefix="--",
            case_sensitive=False,
            separators=(":", "="),
            duplicate_arguments=ErrorMode.ERROR,
            auto_prefix_aliases=True,
            prefix_termination=PrefixTerminationMode.NONE,
            terminator="--",
            culture=Culture.INVARIANT,
            whitespace_separator=True,
            auto_help=True,
            auto_version=True,
            show_usage_on_error=UsageHelpRequest.SYNTAX_ONLY,
            on_unknown_argument=Unset,
            on_argument_parsed=Unset,
            on_duplicate_argument=Unset,
            shell=False,
            fancy=False,
            colorful=True,
    ):
        metadata = {
            "mode": mode,
            "prefixes": prefixes,
            "long_prefix": long_prefix,
            "case_sensitive": case_sensitive,
            "separators": separators,
            "duplicate_arguments": duplicate_arguments,
            "auto_prefix_aliases": auto_prefix_aliases,
            "prefix_termination": prefix_termination,
            "terminator": terminator,
            "culture": culture,
            "whitespace_separator": whitespace_separator,
            "auto_help": auto_help,
            "auto_version": auto_version,
            "show_usage_on_error": show_usage_on_error,
            "on_unknown_argument": on_unknown_argument,
            "on_argument_parsed": on_argument_parsed,
            "on_duplicate_argument": on_duplicate_argument,
            "shell": shell,
            "fancy": fancy,
            "colorful": colorful,
        }
        _sanitize_options(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def long_short(self):
        """
        True when long and short names live in separate namespaces.
        """
        return self._mode is ParsingMode.LONG_SHORT

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(**{
            name: getattr(self, "_" + name) for name in type(self).__introspectable__
        } | overrides)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self


def options_of(options, /, **overrides):
    """
    Normalize a ParseOptions | Mapping | Unset value into ParseOptions.

    - Unset: default options (plus overrides)
    - Mapping: keyword arguments for ParseOptions
    - ParseOptions: returned as-is, or replaced when overrides are given
    """
    if options is Unset:
        return ParseOptions(**overrides)
    if isinstance(options, ParseOptions):
        return copy.replace(options, **overrides) if overrides else options
    if isinstance(options, Mapping):
        return ParseOptions(**options | overrides)
    raise TypeError("options must be parse-options or a mapping")


__all__ = (
    "ParsingMode",
    "ErrorMode",
    "PrefixTerminationMode",
    "CancelMode",
    "UsageHelpRequest",
    "ParseOptions",
    "options_of",
)
