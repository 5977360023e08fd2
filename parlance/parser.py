"""
Parlance binding engine.

What this module provides
- CommandLineParser: binds raw argument strings onto a fixed ArgumentSet.
  • parse(prompt) → ParseResult; never raises for user input errors.
  • __invoke__(prompt): parse, then surface the outcome the way a CLI does
    (raise or render the fault, print usage on help, print the version).
- ParseResult / ParseStatus: the structured outcome (success, error, canceled)
  plus the argument that ended the parse and the unconsumed remainder.
- ParseState: per-parse has-value/value bookkeeping, reset on every parse and
  readable by validators and after the parse (values bound before a failure
  stay visible).
- UnknownArgumentEvent / ArgumentParsedEvent / DuplicateArgumentEvent: hook
  payloads for the ParseOptions callbacks, with the few writable fields a hook
  may use to steer the parse.
- parse(arguments, prompt, ...): one-shot convenience wrapper.

State machine (per token, in order)
- terminator: POSITIONAL_ONLY makes every later string positional;
  CANCEL_WITH_SUCCESS stops and finishes the parse successfully.
- positional: next unfilled positional slot (slots already set by name are
  skipped unless multi-value); none left → unknown hook, then TooManyArguments.
- named: resolve (exact, alias, then unique prefix) → unknown hook on failure,
  then AmbiguousPrefixAlias or UnknownArgument. Value: inline, else the next
  positional-looking string when whitespace separation is enabled, else True
  for switches, else MissingNamedArgumentValue.
- combined short run ("-abc"): every character must name a switch.

Value application
- duplicate policy (before conversion) → pre-conversion validators → convert
  (failure wraps the native error) → null check → store → post-conversion
  validators → method callback → argument-parsed hook → cancellation.

After the tokens
- after-parsing validators of every argument, then class validators, then the
  required check, then target construction (target() then setattr per dest).
"""
import copy
import enum
import sys
from collections.abc import Iterable, Mapping
from types import SimpleNamespace

from rich.console import Console

from .arguments import Argument, ArgumentKind, ArgumentSet, DuplicateKeyMode
from .faults import *
from .faults import console as errors
from .options import CancelMode, ErrorMode, PrefixTerminationMode, UsageHelpRequest, options_of
from .resolver import NameResolver
from .tokenizer import TokenKind, Tokenizer
from .utils import *
from .validation import ClassValidator, ValidateEnumValue

console = Console()

_CONVERSION_ERRORS = (ValueError, TypeError, ArithmeticError, LookupError)
_ENUM_VALIDATOR = ValidateEnumValue()


class ParseStatus(enum.Enum):
    NONE = "none"
    SUCCESS = "success"
    ERROR = "error"
    CANCELED = "canceled"


class ParseResult(metaclass=IntrospectableType, final=True):
    """
    Outcome of one parse.

    - status: SUCCESS, ERROR or CANCELED.
    - value: the bound target (SUCCESS only).
    - error: the ArgumentException (ERROR only); .category, .argument_name and
      .inner describe it.
    - argument_name: the argument that ended the parse early (cancellation,
      prefix termination) or failed.
    - remaining: unconsumed raw strings. For binding errors they start at the
      string that began the failing argument; after a cancellation they start
      after the canceling argument.
    - help_requested: True when usage help should be shown (help switch, an
      argument canceling with ABORT, or a hook asking for it).
    """
    __introspectable__ = ("status", "value", "error", "argument_name", "remaining", "help_requested")

    def __new__(cls, status, /, value=None, error=None, argument_name=None, remaining=(), help_requested=False):
        self = super().__new__(cls)
        self._status = status
        self._value = value
        self._error = error
        self._argument_name = argument_name
        self._remaining = tuple(remaining)
        self._help_requested = help_requested
        return self

    @classmethod
    def success(cls, value, /, argument_name=None, remaining=()):
        return cls(ParseStatus.SUCCESS, value, argument_name=argument_name, remaining=remaining)

    @classmethod
    def failure(cls, error, /, remaining=()):
        return cls(ParseStatus.ERROR, error=error, argument_name=error.argument_name, remaining=remaining)

    @classmethod
    def canceled(cls, argument_name, /, remaining=(), help_requested=False):
        return cls(
            ParseStatus.CANCELED, argument_name=argument_name, remaining=remaining, help_requested=help_requested,
        )

    def __bool__(self):
        return self._status is ParseStatus.SUCCESS


class UnknownArgumentEvent(metaclass=IntrospectableType):
    """
    Payload of on_unknown_argument.

    Read-only: token (raw string), name (None for a surplus positional value),
    value (inline value, or the positional text), combined (one character of a
    combined run), possible_matches (canonical names of an ambiguous prefix).

    Writable
    - ignore: skip the token and keep parsing.
    - cancel: CancelMode.ABORT stops without help; CancelMode.SUCCESS stops and
      finishes the parse successfully.
    """
    __introspectable__ = ("token", "name", "value", "combined", "possible_matches")

    def __init__(self, token, name, value, combined=False, possible_matches=()):
        self._token = token
        self._name = name
        self._value = value
        self._combined = combined
        self._possible_matches = tuple(possible_matches)
        self.ignore = False
        self.cancel = CancelMode.NONE


class ArgumentParsedEvent(metaclass=IntrospectableType):
    """
    Payload of on_argument_parsed, raised after a value was stored and validated.

    Writable: cancel (starts as the argument's cancel_parsing) and
    help_requested (starts True when cancel is ABORT).
    """
    __introspectable__ = ("argument", "value")

    def __init__(self, argument, value, cancel=CancelMode.NONE, help_requested=Unset):
        self._argument = argument
        self._value = value
        self.cancel = cancel
        self.help_requested = coalesce(help_requested, cancel is CancelMode.ABORT)


class DuplicateArgumentEvent(metaclass=IntrospectableType):
    """
    Payload of on_duplicate_argument (ALLOW and WARNING modes only).

    Writable: keep_old_value keeps the first occurrence's value.
    """
    __introspectable__ = ("argument", "old_value", "new_value")

    def __init__(self, argument, old_value, new_value):
        self._argument = argument
        self._old_value = old_value
        self._new_value = new_value
        self.keep_old_value = False


class ParseState:
    """
    Mutable bookkeeping for one parse call.

    Owned by the parser; validators and hosts read it through has_value() and
    value(). A fresh state is created for every parse.
    """

    def __init__(self, parser, args, /):
        self.parser = parser
        self.args = tuple(args)
        self.status = ParseStatus.NONE
        self.cancel = CancelMode.NONE
        self.argument_name = None
        self.remaining = ()
        self.help_requested = False
        self.version_requested = False
        self.start = 0
        self.warnings = []
        self._values = {}

    def has_value(self, argument, /):
        return argument in self._values

    def value(self, argument, /):
        """
        Bound value, or the argument's default when it was not given.

        Switches without a default are False; other arguments without a
        default are None.
        """
        if argument in self._values:
            return self._values[argument]
        if argument.kind is ArgumentKind.SWITCH:
            return coalesce(argument.default, False)
        return coalesce(argument.default, None)

    def store(self, argument, value, /):
        match argument.kind:
            case ArgumentKind.MULTI_VALUE:
                self._values.setdefault(argument, []).append(value)
            case _:
                self._values[argument] = value

    def mapping(self, argument, /):
        return self._values.setdefault(argument, {})

    def stop(self, cancel, argument_name, remaining, /, help_requested=False):
        self.cancel = cancel
        self.argument_name = argument_name
        self.remaining = tuple(remaining)
        self.help_requested = help_requested
        if cancel is CancelMode.ABORT:
            self.status = ParseStatus.CANCELED


def _sanitize_validators(cls, validators, /):
    if isinstance(validators, ClassValidator):
        return (validators,)
    validators = tuple(validators)
    for validator in validators:
        if not isinstance(validator, ClassValidator):
            raise TypeError(f"{cls.__typename__} validators must be class-validator instances")
    return validators


def _value_validators(argument, /):
    """
    Validators applied to each value; enum arguments without their own
    ValidateEnumValue accept member names only.
    """
    validators = argument.validators
    if (
        isinstance(enumeration := argument.element_type, type) and issubclass(enumeration, enum.Enum)
        and not any(isinstance(validator, ValidateEnumValue) for validator in validators)
    ):
        return (*validators, _ENUM_VALIDATOR)
    return validators


def _detach(argument, value):
    """
    Copy a bound value into the container its kind produces when parsed
    (defaults come back from the descriptor as immutable snapshots).
    """
    if value is None:
        return value
    match argument.kind:
        case ArgumentKind.MULTI_VALUE if isinstance(value, Iterable) and not isinstance(value, str):
            return list(value)
        case ArgumentKind.DICTIONARY if isinstance(value, Mapping):
            return dict(value)
    return value


class CommandLineParser(metaclass=IntrospectableType):
    """
    Binding engine for one descriptor list.

    Parameters
    - arguments: Iterable[Argument] (the descriptor provider's output).
    - options: ParseOptions | Mapping | Unset.
    - target: Unset (bind onto a SimpleNamespace) or a callable building the
      object that receives every value through setattr(instance, dest, value).
    - name / description / version: used by usage rendering; a version enables
      the automatic Version argument.
    - validators: ClassValidator instances evaluated after the tokens.

    Automatic arguments
    - Help (aliases "?" and "h"; "--help", "-h", "-?" in long/short mode): a
      switch canceling with ABORT and requesting help.
    - Version (when a version is given): a method switch recording the request
      and canceling without help.
    Neither is added when its name is already taken.
    """
    __introspectable__ = ("arguments", "options", "name", "description", "version", "result")
    __displayable__ = ("name", "arguments", "options")

    def __init__(
            self,
            arguments,
            /,
            options=Unset,
            *,
            target=Unset,
            name=Unset,
            description=Unset,
            version=Unset,
            validators=(),
    ):
        self._options = options = options_of(options)
        if target is not Unset and not callable(target):
            raise TypeError(f"{type(self).__typename__} 'target' must be callable")
        for field, value in (("name", name), ("description", description), ("version", version)):
            if not isinstance(value, str | Unset):
                raise TypeError(f"{type(self).__typename__} {field!r} must be a string")

        self._target = target
        self._name = coalesce(name, None)
        self._description = coalesce(description, None)
        self._version = coalesce(version, None)
        self._validators = _sanitize_validators(type(self), validators)

        arguments = ArgumentSet(arguments, options)
        self._automatic = self._automatic_arguments(arguments)
        self._arguments = ArgumentSet((*arguments, *self._automatic), options) if self._automatic else arguments
        self._resolver = NameResolver(self._arguments, options)
        self._state = ParseState(self, ())
        self._result = None

    def _automatic_arguments(self, arguments):
        options = self._options
        taken = lambda name, short=False: any(  # NOQA: E-731
            casefold(name, options.case_sensitive) == casefold(candidate, options.case_sensitive)
            for argument in arguments
            for candidate in (
                (coalesce(argument.short_name, ""), *argument.short_aliases) if short
                else (argument.name, *argument.aliases)
            )
        )

        automatic = []
        if options.auto_help and not taken("Help") and not taken("help"):
            if options.long_short:
                automatic.append(Argument(
                    "help",
                    bool,
                    short_name=Unset if taken("h", short=True) else "h",
                    short_aliases=() if taken("?", short=True) else ("?",),
                    cancel_parsing=CancelMode.ABORT,
                    description="Displays this help message.",
                    dest="help",
                ))
            else:
                automatic.append(Argument(
                    "Help",
                    bool,
                    aliases=tuple(alias for alias in ("?", "h") if not taken(alias)),
                    cancel_parsing=CancelMode.ABORT,
                    description="Displays this help message.",
                ))

        if options.auto_version and self._version is not None and not taken("Version"):
            @rename("version")
            def version():
                self._state.version_requested = True
                return False

            automatic.append(Argument(
                "version" if options.long_short else "Version",
                callback=version,
                description="Displays version information.",
            ))
        return tuple(automatic)

    @property
    def state(self):
        """
        State of the last parse (has-value inspection after an error).
        """
        return self._state

    @property
    def help_requested(self):
        return self._state.help_requested

    @property
    def version_requested(self):
        return self._state.version_requested

    def get_argument(self, name, /):
        """
        Argument with this canonical name.

        Raises
        - LookupError: no such argument.
        """
        if (argument := self._arguments.get(name)) is None:
            raise LookupError(f"unknown argument {name!r}")
        return argument

    def has_value(self, name, /):
        return self._state.has_value(self.get_argument(name))

    def get_value(self, name, /):
        return self._state.value(self.get_argument(name))

    @property
    def _runtime(self):
        return {
            "prog": self._name,
            "shell": self._options.shell,
            "fancy": self._options.fancy,
            "colorful": self._options.colorful,
        }

    def parse(self, prompt=Unset, /):
        """
        Bind a prompt (Unset: sys.argv[1:], str: shell-split, or an iterable of
        strings) and return a ParseResult.
        """
        args = split_prompt(prompt)
        state = self._state = ParseState(self, args)
        tokenizer = Tokenizer(args, self._options, digit_names=self._arguments.digit_names)

        try:
            self._bind(state, tokenizer)
        except ArgumentException as error:
            state.status = ParseStatus.ERROR
            self._result = ParseResult.failure(error, tokenizer.remaining(state.start))
        else:
            if state.status is ParseStatus.CANCELED:
                self._result = ParseResult.canceled(state.argument_name, state.remaining, state.help_requested)
            else:
                try:
                    value = self._finish(state)
                except ArgumentException as error:
                    state.status = ParseStatus.ERROR
                    self._result = ParseResult.failure(error)
                else:
                    state.status = ParseStatus.SUCCESS
                    self._result = ParseResult.success(value, state.argument_name, state.remaining)

        for warning in state.warnings:
            trigger(warning, **self._runtime)
        return self._result

    def _bind(self, state, tokenizer):
        while state.cancel is CancelMode.NONE and (token := next(tokenizer, None)) is not None:
            state.start = token.index
            match token.kind:
                case TokenKind.TERMINATOR:
                    if self._options.prefix_termination is PrefixTerminationMode.CANCEL_WITH_SUCCESS:
                        state.stop(CancelMode.SUCCESS, token.text, tokenizer.remaining())
                case TokenKind.POSITIONAL:
                    if (argument := self._next_positional(state)) is None:
                        if self._unknown(state, tokenizer, token, None, token.text):
                            continue
                        raise fault(
                            ErrorCategory.TOO_MANY_ARGUMENTS,
                            "too many arguments: unexpected %r at %s position" % (
                                token.text, ordinal(token.index + 1),
                            ),
                        )
                    self._apply(state, tokenizer, argument, token.text)
                case TokenKind.NAMED if token.is_combined_run:
                    self._combined(state, tokenizer, token)
                case TokenKind.NAMED:
                    resolution = self._resolver.resolve(token)
                    if not resolution:
                        if self._unknown(state, tokenizer, token, token.name, token.value, resolution.candidates):
                            continue
                        self._raise_unknown(token, token.name, resolution.candidates)
                    self._named(state, tokenizer, resolution.match, token)

    def _next_positional(self, state):
        for argument in self._arguments.positional:
            if argument.is_multi_value or not state.has_value(argument):
                return argument
        return None

    def _named(self, state, tokenizer, argument, token):
        text = token.value
        if text is None and not argument.is_switch:
            following = tokenizer.peek()
            if not self._options.whitespace_separator or following is None or following.kind is not TokenKind.POSITIONAL:
                raise fault(
                    ErrorCategory.MISSING_NAMED_ARGUMENT_VALUE,
                    "missing value for argument %r at %s position" % (argument.name, ordinal(token.index + 1)),
                    argument=argument.name,
                )
            text = next(tokenizer).text
        self._apply(state, tokenizer, argument, text)

    def _combined(self, state, tokenizer, token):
        switches = []
        for char in token.expand():
            resolution = self._resolver.resolve(char)
            if not resolution:
                if self._unknown(state, tokenizer, char, char.name, char.value, combined=True):
                    if state.cancel is not CancelMode.NONE:
                        return
                    continue
                self._raise_unknown(char, char.name)
            if not resolution.match.is_switch:
                raise fault(
                    ErrorCategory.COMBINED_SHORT_NAME_NON_SWITCH,
                    "combined short name %r at %s position contains %r, which is not a switch" % (
                        token.name, ordinal(token.index + 1), char.name,
                    ),
                    argument=token.name,
                )
            switches.append(resolution.match)
        for argument in switches:
            self._apply(state, tokenizer, argument, token.value)
            if state.cancel is not CancelMode.NONE:
                return

    def _unknown(self, state, tokenizer, token, name, value, matches=(), *, combined=False):
        """
        Run on_unknown_argument; True when the token was handled (ignored or canceled).
        """
        if (hook := self._options.on_unknown_argument) is None:
            return False
        event = UnknownArgumentEvent(token.text, name, value, combined, matches)
        hook(event)
        if event.cancel is not CancelMode.NONE:
            state.stop(event.cancel, name, tokenizer.remaining())
            return True
        return event.ignore

    @staticmethod
    def _raise_unknown(token, name, matches=()):
        if len(matches) > 1:
            raise fault(
                ErrorCategory.AMBIGUOUS_PREFIX_ALIAS,
                "ambiguous argument %r at %s position could be %s" % (
                    name, ordinal(token.index + 1), ", ".join(map(repr, matches)),
                ),
                argument=name,
                matches=tuple(matches),
            )
        raise fault(
            ErrorCategory.UNKNOWN_ARGUMENT,
            "unknown argument %r at %s position" % (name, ordinal(token.index + 1)),
            argument=name,
        )

    def _apply(self, state, tokenizer, argument, text):
        if state.has_value(argument) and not argument.is_multi_value and argument.kind is not ArgumentKind.METHOD:
            if not self._duplicate(state, argument, text):
                return

        values = [text]
        if argument.is_multi_value and argument.multi_value_separator is not Unset and text is not None:
            values = text.split(argument.multi_value_separator)

        for text in values:
            value = self._value(state, argument, text)
        if argument.is_multi_value and argument.whitespace_separator and self._options.whitespace_separator:
            while (following := tokenizer.peek()) is not None and following.kind is TokenKind.POSITIONAL:
                value = self._value(state, argument, next(tokenizer).text)

        cancel, help_requested = argument.cancel_parsing, Unset
        if argument.kind is ArgumentKind.METHOD:
            returned = argument.callback() if argument.is_switch else argument.callback(value)
            if returned is False:
                cancel, help_requested = CancelMode.ABORT, False
            elif isinstance(returned, CancelMode):
                cancel = returned

        event = ArgumentParsedEvent(argument, value, cancel, help_requested)
        if (hook := self._options.on_argument_parsed) is not None:
            hook(event)
        if event.cancel is not CancelMode.NONE:
            state.stop(event.cancel, argument.name, tokenizer.remaining(), event.help_requested)

    def _duplicate(self, state, argument, text):
        """
        Apply the duplicate-argument policy; False keeps the old value.
        """
        if self._options.duplicate_arguments is ErrorMode.ERROR:
            raise fault(
                ErrorCategory.DUPLICATE_ARGUMENT,
                "argument %r was specified more than once" % argument.name,
                argument=argument.name,
            )
        event = DuplicateArgumentEvent(argument, state.value(argument), text)
        if (hook := self._options.on_duplicate_argument) is not None:
            hook(event)
        if self._options.duplicate_arguments is ErrorMode.WARNING:
            state.warnings.append(DuplicateArgumentWarning(
                "argument %r was specified more than once" % argument.name,
                argument=argument.name,
            ))
        return not event.keep_old_value

    def _value(self, state, argument, text):
        """
        Validate, convert and store one element; return the stored element.
        """
        for validator in _value_validators(argument):
            validator.validate_before(argument, text)

        if argument.kind is ArgumentKind.DICTIONARY:
            key, separator, text = (text or "").partition(argument.key_value_separator)
            if not separator:
                raise fault(
                    ErrorCategory.INVALID_DICTIONARY_VALUE,
                    "argument %r value %r is not a %r-separated key/value pair" % (
                        argument.name, key, argument.key_value_separator,
                    ),
                    argument=argument.name,
                )
            key = self._convert(argument, argument.key_converter, key)

        value = True if text is None and argument.is_switch else self._convert(argument, argument.converter, text)
        if value is None and not argument.allow_null:
            raise fault(ErrorCategory.NULL_ARGUMENT_VALUE, "argument %r cannot be null" % argument.name, argument=argument.name)

        if argument.kind is ArgumentKind.DICTIONARY:
            self._insert(state, argument, key, value)
        else:
            state.store(argument, value)

        for validator in _value_validators(argument):
            validator.validate_after(argument, value)
        return value

    def _convert(self, argument, converter, text):
        try:
            return converter(text, self._options.culture)
        except _CONVERSION_ERRORS as exception:
            raise fault(
                ErrorCategory.ARGUMENT_VALUE_CONVERSION,
                "argument %r value %r is not a valid %s" % (argument.name, text, argument.value_description),
                argument=argument.name,
            ) from exception

    def _insert(self, state, argument, key, value):
        mapping = state.mapping(argument)
        policy = coalesce(
            argument.duplicate_keys,
            DuplicateKeyMode.REJECT if self._options.duplicate_arguments is ErrorMode.ERROR
            else DuplicateKeyMode.OVERWRITE,
        )
        if key in mapping:
            match policy:
                case DuplicateKeyMode.REJECT:
                    raise fault(
                        ErrorCategory.INVALID_DICTIONARY_VALUE,
                        "argument %r already has key %r" % (argument.name, key),
                        argument=argument.name,
                    )
                case DuplicateKeyMode.KEEP_FIRST:
                    return
            if argument.duplicate_keys is Unset and self._options.duplicate_arguments is ErrorMode.WARNING:
                state.warnings.append(DuplicateArgumentWarning(
                    "argument %r already has key %r" % (argument.name, key),
                    argument=argument.name,
                ))
        mapping[key] = value

    def _finish(self, state):
        for argument in self._arguments:
            for validator in argument.validators:
                validator.validate_final(argument, state)
        for validator in self._validators:
            validator.validate(state)

        missing = [argument.name for argument in self._arguments if argument.required and not state.has_value(argument)]
        if missing:
            raise fault(
                ErrorCategory.MISSING_REQUIRED_ARGUMENT,
                "missing required %s %s" % (
                    "argument" if len(missing) == 1 else pluralize("argument"),
                    " and ".join(map(repr, missing)),
                ),
                argument=missing[0],
            )
        return self._create(state)

    def _create(self, state):
        values = {
            argument.dest: _detach(argument, state.value(argument))
            for argument in self._arguments
            if argument.kind is not ArgumentKind.METHOD and argument not in self._automatic
        }
        if self._target is Unset:
            return SimpleNamespace(**values)

        try:
            instance = self._target()
        except Exception as exception:
            raise fault(
                ErrorCategory.CREATE_ARGUMENTS_TYPE_ERROR,
                "cannot create the arguments object: %s" % exception,
            ) from exception

        for argument in self._arguments:
            if argument.dest not in values or not state.has_value(argument) and not argument.has_default:
                continue
            try:
                setattr(instance, argument.dest, values[argument.dest])
            except (AttributeError, TypeError, ValueError) as exception:
                raise fault(
                    ErrorCategory.APPLY_VALUE_ERROR,
                    "cannot apply the value of argument %r: %s" % (argument.name, exception),
                    argument=argument.name,
                ) from exception
        return instance

    def render_usage(self, request=UsageHelpRequest.FULL, /):
        """
        Rich renderable with the usage for this parser (None for NONE).
        """
        from .usage import render_usage

        return render_usage(self, request)

    def __invoke__(self, prompt=Unset):
        """
        Parse and surface the outcome.

        - SUCCESS: return the bound target.
        - ERROR: outside shell mode the fault is raised; in shell mode it is
          rendered on stderr together with the configured usage, then the
          process exits with status 1.
        - CANCELED: print the version or the full usage when requested and
          return None.
        """
        result = self.parse(prompt)
        match result.status:
            case ParseStatus.SUCCESS:
                return result.value
            case ParseStatus.ERROR:
                if not self._options.shell:
                    trigger(result.error, **self._runtime)
                errors.print(copy.replace(result.error, **self._runtime))
                if (usage := self.render_usage(self._options.show_usage_on_error)) is not None:
                    errors.print(usage)
                sys.exit(1)
        if self._state.version_requested:
            console.print(" ".join(filter(None, (self._name, self._version))), highlight=False)
        elif result.help_requested:
            console.print(self.render_usage(UsageHelpRequest.FULL))
        return None


def parse(arguments, prompt=Unset, /, options=Unset, **kwargs):
    """
    One-shot convenience: build a CommandLineParser and parse the prompt.
    """
    return CommandLineParser(arguments, options, **kwargs).parse(prompt)


__all__ = (
    "ParseStatus",
    "ParseResult",
    "ParseState",
    "UnknownArgumentEvent",
    "ArgumentParsedEvent",
    "DuplicateArgumentEvent",
    "CommandLineParser",
    "parse",
)
