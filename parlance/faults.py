"""
Parlance faults (errors and warnings) and rendering.

Scope
- ErrorCategory: canonical, stable numeric identifiers for every failure the
  engine can report. The category travels on each fault so hosts can match
  programmatically (fault.category is ErrorCategory.UNKNOWN_ARGUMENT) and pick
  their own message copy.
- ArgumentException: base type of all parse errors, one subclass per category.
- CommandException: base type of dispatcher errors (unknown/ambiguous command).
- ArgumentWarning: base type of non-fatal conditions (duplicate arguments in
  warning mode).
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a category from the host application.

UX goals
- Position-first messages: "unknown argument 'x' at third position".
- Soft but technical language: short titles, one-sentence bodies, a single hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The binding engine raises these faults internally and folds them into a
  ParseResult; nothing is printed while tokens are being bound.
- Hosts (or CommandLineParser.__invoke__) call trigger(fault, **ctx): outside
  shell mode the fault is raised, in shell mode it is rendered via rich and the
  process exits.
"""
import copy
import inspect
import os.path
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class ErrorCategory(IntEnum):
    """
    canonical error categories (stable identifiers).

    grouping (by pipeline stage)
    - resolution (211xx): the token's name did not map onto one argument
      • UNKNOWN_ARGUMENT, AMBIGUOUS_PREFIX_ALIAS, COMBINED_SHORT_NAME_NON_SWITCH
    - binding (212xx): the token stream does not fit the descriptor set
      • MISSING_NAMED_ARGUMENT_VALUE, TOO_MANY_ARGUMENTS, DUPLICATE_ARGUMENT
    - values (213xx): the value text was rejected
      • ARGUMENT_VALUE_CONVERSION, INVALID_DICTIONARY_VALUE, NULL_ARGUMENT_VALUE,
        VALIDATION_FAILED
    - whole-parse (214xx): checks run after every token was consumed
      • MISSING_REQUIRED_ARGUMENT, DEPENDENCY_FAILED
    - target (215xx): building the bound object
      • CREATE_ARGUMENTS_TYPE_ERROR, APPLY_VALUE_ERROR
    - commands (221xx) and warnings (231xx)

    normalize() lets hosts remap codes through a __codes__ mapping in __main__.
    """
    UNSPECIFIED                     = 21100

    # --- resolution (211xx) ---
    UNKNOWN_ARGUMENT                = 21101
    AMBIGUOUS_PREFIX_ALIAS          = 21102
    COMBINED_SHORT_NAME_NON_SWITCH  = 21103

    # --- binding (212xx) ---
    MISSING_NAMED_ARGUMENT_VALUE    = 21201
    TOO_MANY_ARGUMENTS              = 21202
    DUPLICATE_ARGUMENT              = 21203

    # --- values (213xx) ---
    ARGUMENT_VALUE_CONVERSION       = 21301
    INVALID_DICTIONARY_VALUE        = 21302
    NULL_ARGUMENT_VALUE             = 21303
    VALIDATION_FAILED               = 21304

    # --- whole-parse (214xx) ---
    MISSING_REQUIRED_ARGUMENT       = 21401
    DEPENDENCY_FAILED               = 21402

    # --- target (215xx) ---
    CREATE_ARGUMENTS_TYPE_ERROR     = 21501
    APPLY_VALUE_ERROR               = 21502

    # --- commands (221xx) ---
    UNKNOWN_COMMAND                 = 22101
    AMBIGUOUS_COMMAND               = 22102

    # --- warnings (231xx) ---
    DUPLICATE_ARGUMENT_WARNING      = 23101

    def normalize(self):
        """
        return a host-normalized string for this category.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels; otherwise the numeric value
        is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    build the rich renderable shared by every fault flavour.

    layout
    - header: "[ prog — code | title ]"
    - body: the message, then "→ hint" when a hint is available.
    - with fancy=True the body is wrapped in a left-titled Panel.
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)
    fancy = fault.options.get("fancy", False)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), style if colorful else "")

    prog = fault.options.get("prog") or getattr(main, "__prog__", os.path.basename(sys.argv[0]) or "parlance")
    title = fault.options.get("title", type(fault).title)

    header = Text.assemble(
        "[ ",
        text(prog, styler("prog-name")),
        " — ",
        text(fault.category.normalize(), styler("code")),
        " | ",
        text(title.title(), styler("title")),
        " ]",
    )
    body = [text(_message(fault), styler("message"))]
    if hint := fault.options.get("hint"):
        body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if fancy:
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


def _message(fault, /):
    """
    return the fault's message, falling back to its (lowercased) title.
    """
    return fault.message if fault.message is not Unset else fault.options.get("title", type(fault).title)


class Fault:
    """
    shared plumbing of errors and warnings.

    - constructed as Fault(message, /, **options); options are frozen in a
      MappingProxyType and enriched through copy.replace(fault, **options).
    - chained causes (raise ... from cause) survive __replace__ and are exposed
      as .inner.
    - category and title are class-level defaults; the title can be overridden
      per instance through the 'title' option.
    """
    category = ErrorCategory.UNSPECIFIED
    title = "error"
    palette = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def argument_name(self):
        """
        name of the argument (or raw name text) the fault is about, if any.
        """
        return self.options.get("argument")

    @property
    def inner(self):
        """
        underlying failure (converter, validator or target error), if any.
        """
        return self.__cause__

    def __str__(self):
        return _message(self)

    def __rich__(self):
        return _render(self, type(self).palette)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class ArgumentException(Fault, Exception):
    palette = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "title": "bold #FF4DA6",
        "message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
    }
    title = "argument error"

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)


class UnknownArgumentError(ArgumentException):
    category = ErrorCategory.UNKNOWN_ARGUMENT
    title = "unknown argument"


class AmbiguousPrefixAliasError(ArgumentException):
    category = ErrorCategory.AMBIGUOUS_PREFIX_ALIAS
    title = "ambiguous argument"

    @property
    def possible_matches(self):
        """
        sorted canonical names of every argument the prefix could denote.
        """
        return tuple(self.options.get("matches", ()))


class CombinedShortNameNonSwitchError(ArgumentException):
    category = ErrorCategory.COMBINED_SHORT_NAME_NON_SWITCH
    title = "combined non-switch"


class MissingNamedArgumentValueError(ArgumentException):
    category = ErrorCategory.MISSING_NAMED_ARGUMENT_VALUE
    title = "missing value"


class TooManyArgumentsError(ArgumentException):
    category = ErrorCategory.TOO_MANY_ARGUMENTS
    title = "too many arguments"


class DuplicateArgumentError(ArgumentException):
    category = ErrorCategory.DUPLICATE_ARGUMENT
    title = "duplicate argument"


class ArgumentValueConversionError(ArgumentException):
    category = ErrorCategory.ARGUMENT_VALUE_CONVERSION
    title = "invalid value"


class InvalidDictionaryValueError(ArgumentException):
    category = ErrorCategory.INVALID_DICTIONARY_VALUE
    title = "invalid dictionary entry"


class NullArgumentValueError(ArgumentException):
    category = ErrorCategory.NULL_ARGUMENT_VALUE
    title = "null value"


class ValidationFailedError(ArgumentException):
    category = ErrorCategory.VALIDATION_FAILED
    title = "validation failed"


class MissingRequiredArgumentError(ArgumentException):
    category = ErrorCategory.MISSING_REQUIRED_ARGUMENT
    title = "missing required argument"


class DependencyFailedError(ArgumentException):
    category = ErrorCategory.DEPENDENCY_FAILED
    title = "dependency failed"


class CreateArgumentsTypeError(ArgumentException):
    category = ErrorCategory.CREATE_ARGUMENTS_TYPE_ERROR
    title = "cannot create arguments"


class ApplyValueError(ArgumentException):
    category = ErrorCategory.APPLY_VALUE_ERROR
    title = "cannot apply value"


class CommandException(Fault, Exception):
    palette = ArgumentException.palette | {"code": "bold #B388FF"}
    title = "command error"

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)


class UnknownCommandError(CommandException):
    category = ErrorCategory.UNKNOWN_COMMAND
    title = "unknown command"


class AmbiguousCommandError(CommandException):
    category = ErrorCategory.AMBIGUOUS_COMMAND
    title = "ambiguous command"

    @property
    def possible_matches(self):
        return tuple(self.options.get("matches", ()))


class ArgumentWarning(Fault, ABC, Warning):
    palette = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    }
    title = "warning"

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)


class DuplicateArgumentWarning(ArgumentWarning):
    category = ErrorCategory.DUPLICATE_ARGUMENT_WARNING
    title = "duplicate argument"


_classes = {
    cls.category: cls for cls in (
        UnknownArgumentError,
        AmbiguousPrefixAliasError,
        CombinedShortNameNonSwitchError,
        MissingNamedArgumentValueError,
        TooManyArgumentsError,
        DuplicateArgumentError,
        ArgumentValueConversionError,
        InvalidDictionaryValueError,
        NullArgumentValueError,
        ValidationFailedError,
        MissingRequiredArgumentError,
        DependencyFailedError,
        CreateArgumentsTypeError,
        ApplyValueError,
    )
}


def fault(category, message=Unset, /, **options):
    """
    build the ArgumentException subclass registered for an error category.

    validators report a category (e.g. NULL_ARGUMENT_VALUE for not-null checks)
    and the engine turns it into the matching exception type through here.
    """
    if not isinstance(category, ErrorCategory):
        raise TypeError("fault() first argument must be an error-category")
    return _classes.get(category, ArgumentException)(message, **options)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise errors are
      raised and warnings go through the warnings module.

    typical options
    - prog, shell, fancy, colorful, title, hint, docs, and any other context the
      reporter may want to show (e.g., argument/index/matches).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(category, /):
    """
    optional documentation fetch for an error category.

    the host application may expose a __docs__ mapping in __main__ where keys
    are ErrorCategory members and values are short documentation strings; when
    not found, None is returned.
    """
    if not isinstance(category, ErrorCategory):
        raise TypeError("getdoc() argument must be an error-category")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[category]
    except KeyError:
        return None


__all__ = (
    "ErrorCategory",
    "ArgumentException",
    "UnknownArgumentError",
    "AmbiguousPrefixAliasError",
    "CombinedShortNameNonSwitchError",
    "MissingNamedArgumentValueError",
    "TooManyArgumentsError",
    "DuplicateArgumentError",
    "ArgumentValueConversionError",
    "InvalidDictionaryValueError",
    "NullArgumentValueError",
    "ValidationFailedError",
    "MissingRequiredArgumentError",
    "DependencyFailedError",
    "CreateArgumentsTypeError",
    "ApplyValueError",
    "CommandException",
    "UnknownCommandError",
    "AmbiguousCommandError",
    "ArgumentWarning",
    "DuplicateArgumentWarning",
    "fault",
    "trigger",
    "getdoc",
)
