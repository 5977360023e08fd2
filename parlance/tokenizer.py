"""
Parlance tokenizer: raw argument strings → tokens.

Classification (one raw string at a time, in order)
- terminator: the configured terminator ("--") when prefix termination is
  enabled. In POSITIONAL_ONLY mode every later string is positional; in
  CANCEL_WITH_SUCCESS mode the binding engine stops there.
- named: starts with a recognized prefix (longest first) and is longer than it.
  The name runs up to the first name/value separator; the rest is the inline
  value ("-Name:value", "-Name=", "--name=value"). An empty inline value is a
  value, not an omission.
  • long/short mode: the long prefix introduces a long name; a short prefix
    introduces a short name, or a combined switch run when the name has more
    than one character ("-abc").
- positional: everything else, including "-5" and "-1.5" unless some declared
  name starts with a digit.

The tokenizer is a cursor over the raw strings so the binding engine can look
ahead for whitespace-separated values and report the unconsumed remainder.
"""
import enum

from .options import PrefixTerminationMode
from .utils import *


class TokenKind(enum.Enum):
    NAMED = "named"
    POSITIONAL = "positional"
    TERMINATOR = "terminator"


class Token(metaclass=IntrospectableType, final=True):
    """
    One interpreted raw string.

    - text: the raw string as given.
    - index: 0-based position in the raw string list.
    - name / value / prefix: for named tokens; value is None without a separator.
    - long / short: the namespace of a named token in long/short mode (both
      False in default mode).
    - combined: True for the characters expanded from a combined switch run.
    """
    __introspectable__ = ("kind", "text", "index", "name", "value", "prefix", "long", "short", "combined")
    __displayable__ = ("kind", "text", "name", "value")

    def __new__(
            cls, kind, text, index, /, name=None, value=None, prefix=None, *, long=False, short=False, combined=False,
    ):
        self = super().__new__(cls)
        self._kind = kind
        self._text = text
        self._index = index
        self._name = name
        self._value = value
        self._prefix = prefix
        self._long = long
        self._short = short
        self._combined = combined
        return self

    @property
    def is_combined_run(self):
        """
        True for a short-prefixed token naming more than one character.
        """
        return self._short and not self._combined and len(self._name) > 1

    def expand(self):
        """
        Split a combined switch run into one short token per character.

        Every character carries the run's inline value (if any).
        """
        return tuple(
            Token(
                TokenKind.NAMED, self._text, self._index, char, self._value, self._prefix, short=True, combined=True,
            ) for char in self._name
        )


class Tokenizer:
    """
    Cursor over raw argument strings for one parse.

    - peek(): classify the next string without consuming it (None at the end).
    - next(): classify and consume it (StopIteration at the end).
    - remaining(start): the raw strings from index start onward.
    """

    def __init__(self, args, options, /, *, digit_names=False):
        self._args = tuple(args)
        self._options = options
        self._digit_names = digit_names
        self._index = 0
        self._terminated = False

    @property
    def index(self):
        return self._index

    @property
    def terminated(self):
        """
        True once a POSITIONAL_ONLY terminator was consumed.
        """
        return self._terminated

    def __iter__(self):
        return self

    def __next__(self):
        if (token := self.peek()) is None:
            raise StopIteration
        self._index += 1
        if token.kind is TokenKind.TERMINATOR and \
                self._options.prefix_termination is PrefixTerminationMode.POSITIONAL_ONLY:
            self._terminated = True
        return token

    next = __next__

    def peek(self):
        if self._index >= len(self._args):
            return None
        return self.classify(self._args[self._index], self._index)

    def remaining(self, start=Unset, /):
        return self._args[coalesce(start, self._index):]

    def classify(self, text, index, /):
        options = self._options
        if self._terminated:
            return Token(TokenKind.POSITIONAL, text, index)
        if text == options.terminator and options.prefix_termination is not PrefixTerminationMode.NONE:
            return Token(TokenKind.TERMINATOR, text, index)

        if options.long_short and text.startswith(options.long_prefix) and len(text) > len(options.long_prefix):
            return self._named(text, index, options.long_prefix, long=True)

        for prefix in options.prefixes:
            if not text.startswith(prefix) or len(text) <= len(prefix):
                continue
            if not self._digit_names and text[len(prefix)].isdigit():
                break
            if options.long_short and text.startswith(options.long_prefix):
                break
            return self._named(text, index, prefix, short=options.long_short)
        return Token(TokenKind.POSITIONAL, text, index)

    def _named(self, text, index, prefix, /, *, long=False, short=False):
        run = text[len(prefix):]
        split = min((run.find(separator) for separator in self._options.separators if separator in run), default=-1)
        name, value = (run, None) if split < 0 else (run[:split], run[split + 1:])
        if not name:
            return Token(TokenKind.POSITIONAL, text, index)
        return Token(TokenKind.NAMED, text, index, name, value, prefix, long=long, short=short)


__all__ = (
    "TokenKind",
    "Token",
    "Tokenizer",
)
