"""
Parlance name resolution.

- NameTable: a name → object table (arguments or commands) with exact
  matching under the configured comparison and optional unambiguous-prefix
  matching. Exact matches (canonical names and aliases alike) always win over
  prefix matches; the owning set guarantees that no two names collide under
  the comparison, so an exact match is never ambiguous.
- NameResolver: the argument tables for one ArgumentSet. Default mode uses one
  table of names and aliases; long/short mode keeps a long table (prefix
  aliases allowed) and a short table (exact matches only), so a short token
  never matches a long-only name and vice versa.

lookup()/resolve() return a Resolution: the match, or the sorted canonical
names of every candidate when the prefix is ambiguous, or neither.
"""
from .utils import *


class Resolution(metaclass=IntrospectableType, final=True):
    __introspectable__ = ("match", "candidates")

    def __new__(cls, match=None, candidates=()):
        self = super().__new__(cls)
        self._match = match
        self._candidates = tuple(candidates)
        return self

    @property
    def ambiguous(self):
        return self._match is None and len(self._candidates) > 1

    def __bool__(self):
        return self._match is not None


class NameTable:
    """
    Name table shared by the argument resolver and the command dispatcher.

    Objects must expose a canonical .name; candidates of an ambiguous prefix
    are reported by canonical name, sorted, without duplicates.
    """

    def __init__(self, *, case_sensitive=False, prefix_aliases=True):
        self._case_sensitive = case_sensitive
        self._prefix_aliases = prefix_aliases
        self._names = {}

    def add(self, name, object, /):
        if (key := casefold(name, self._case_sensitive)) in self._names and self._names[key] is not object:
            raise ValueError(f"name {name!r} is already taken by {self._names[key].name!r}")
        self._names[key] = object

    def __contains__(self, name):
        return casefold(name, self._case_sensitive) in self._names

    def lookup(self, candidate, /):
        key = casefold(candidate, self._case_sensitive)
        if (match := self._names.get(key)) is not None:
            return Resolution(match)
        if not self._prefix_aliases:
            return Resolution()

        matches = []
        for name, object in self._names.items():
            if name.startswith(key) and all(object is not other for other in matches):
                matches.append(object)
        if len(matches) == 1:
            return Resolution(matches[0])
        return Resolution(None, sorted(object.name for object in matches))


class NameResolver:
    """
    Argument name tables for one ArgumentSet and its ParseOptions.
    """

    def __init__(self, arguments, options, /):
        self._options = options
        self._long = NameTable(case_sensitive=options.case_sensitive, prefix_aliases=options.auto_prefix_aliases)
        self._short = NameTable(case_sensitive=options.case_sensitive, prefix_aliases=False)
        for argument in arguments:
            for name in (argument.name, *argument.aliases):
                self._long.add(name, argument)
            if options.long_short:
                for name in (argument.short_name, *argument.short_aliases):
                    if name is not Unset:
                        self._short.add(name, argument)

    def resolve(self, token, /):
        """
        Resolve a named token (or one character of a combined run).
        """
        if token.short:
            return self._short.lookup(token.name)
        return self._long.lookup(token.name)


__all__ = (
    "Resolution",
    "NameTable",
    "NameResolver",
)
