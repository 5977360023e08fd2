"""
Parlance utilities (internal helpers shared by the engine layers)

Scope
- Small building blocks used by arguments, parser and commands for consistent
  semantics across the package. They are importable, but the higher-level
  layers are the intended consumers.

Overview
- UnsetType / Unset
  • Singleton sentinel for "not provided", distinct from None (None is a valid
    default value and a valid converted value for nullable arguments).
  • Falsey, printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; None/0/""/[] are preserved.

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated callables (hooks, method
    arguments, automatic arguments) so tracebacks stay readable.

- mirror("attr")
  • Read-only property factory over a private backing field (self._attr),
    handing out fresh container copies so engine state cannot be mutated
    through the public surface.

- pluralize(text) / quantify(count, text)
  • Best-effort English pluralization used by fault messages
    ("missing required arguments 'a' and 'b'").

- ordinal(number)
  • Position-first wording for messages ("at third position").

- casefold(text, sensitive)
  • Normalize a name for comparison under the configured case sensitivity.

- split_prompt(prompt)
  • Normalize what a caller passes to parse()/__invoke__() into a list of raw
    argument strings.

- IntrospectableType
  • Metaclass giving value objects a __typename__, mirrored read-only fields
    and stable repr/rich-repr output.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> quantify(2, "argument")
    '2 arguments'
"""
import builtins
import functools
import re
import shlex
import sys
from collections.abc import Iterable, Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a process-wide singleton.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Sentinel for "not provided" (falsey, singleton, distinct from None).
"""


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns object unless it is Unset, in which case default is returned.
    Falsey values such as None, 0, "" or [] are returned as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - rename(name) -> decorator

    Raises
    - TypeError: wrong arity, non-callable target, non-string name, or a
      built-in callable whose metadata cannot be updated.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values.

    - Sequence (non-string): tuple of processed items (argument values are
      handed out as immutable snapshots).
    - Mapping: dict with the same keys and processed values.
    - Set: frozenset of processed items.
    - Anything else is returned unchanged.
    """
    if isinstance(object, Sequence) and not isinstance(object, str | bytes):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Container values are copied on every access (see _immortalize), so callers
    never receive a live reference to internal state.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(text, /):
    """
    Best-effort English pluralizer for fault messages and labels.

    Only the last word of a phrase is pluralized; casing of that word and any
    trailing whitespace are preserved.

    Examples
    - pluralize("argument")        -> "arguments"
    - pluralize("alias")           -> "aliases"
    - pluralize("entry")           -> "entries"
    - pluralize("named argument")  -> "named arguments"
    """
    if not isinstance(text, str):
        raise TypeError("pluralize() argument must be a string")

    if not (match := re.search(r'(\S+)(\s*)$', text)):
        return text

    head, last, trail = text[:match.start(1)], match.group(1), match.group(2)
    lower = last.lower()

    irregulars = {
        "child": "children",
        "person": "people",
        "index": "indices",
        "matrix": "matrices",
        "criterion": "criteria",
        "analysis": "analyses",
    }
    if lower in {"information", "metadata", "series"}:
        plural = lower
    elif lower in irregulars:
        plural = irregulars[lower]
    elif lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = lower + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = lower[:-1] + "ies"
    elif lower.endswith("fe") and len(lower) > 2:
        plural = lower[:-2] + "ves"
    elif lower.endswith("f") and len(lower) > 1:
        plural = lower[:-1] + "ves"
    else:
        plural = lower + "s"

    if last.isupper():
        plural = plural.upper()
    elif last[:1].isupper():
        plural = plural[:1].upper() + plural[1:]

    return head + plural + trail


def quantify(count, text, /):
    """
    Render "<count> <text>" with the noun pluralized when count is not one.
    """
    return "%d %s" % (count, text if count == 1 else pluralize(text))


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based token position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with English suffixes (11th, 22nd, …).
    """
    try:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth",
        )[number - 1] if number > 0 else str(number)
    except IndexError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def casefold(text, sensitive, /):
    """
    Normalize a name for comparison.

    Case-sensitive comparisons keep the text verbatim; otherwise str.casefold()
    is applied so that e.g. "STRASSE" and "straße" compare equal.
    """
    return text if sensitive else text.casefold()


def split_prompt(prompt=Unset, /):
    """
    Normalize a prompt into raw argument strings.

    - Unset: sys.argv[1:].
    - str: shell-like string, split with shlex.split.
    - Iterable[str]: used as-is. Items are not stripped and empty strings are
      kept, since an empty value is valid input.

    Raises
    - TypeError: when prompt is none of the above or holds a non-string item.
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("prompt must be a string or an iterable of strings")
        return tokens
    raise TypeError("prompt must be a string or an iterable of strings")


class IntrospectableType(type):
    """
    Metaclass for the package's value objects (arguments, options, commands).

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used as the subject of construction errors ("argument 'name' must be ...").
    - Expose every name listed in __introspectable__ as a read-only property
      backed by "_{name}" (see mirror()).
    - Provide stable __repr__/__rich_repr__ built from __displayable__ (or
      __introspectable__ when no display subset is declared).
    - With final=True, seal the class against subclassing.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                return f"{type(self).__typename__}({", ".join(
                    "%s=%r" % pair for pair in self.__rich_repr__()
                )})"
            self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("final", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "quantify",
    "ordinal",
    "casefold",
    "split_prompt",

    # Types
    "UnsetType",
    "IntrospectableType",

    # Constants
    "Unset",
)
