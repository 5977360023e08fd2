"""
Parlance command layer: select a subcommand from the first token and bind the
rest with that command's own parser.

What this module provides
- Command: wraps a callable whose parameter defaults are Argument descriptors.
  • Parameters before "/" become positional arguments in declaration order;
    every descriptor's dest is its parameter name.
  • Commands have aliases, a description and optional child commands (a
    command with children dispatches its first token to them).
- CommandOptions: dispatcher configuration (comparison, prefix aliases,
  filter, automatic version command, name suffix stripping) plus the
  ParseOptions applied to every command parser.
- CommandManager: the registry and dispatcher.
  • get_commands(): listed (non-hidden) commands sorted by name.
  • get_command(name): exact name, alias, then unique prefix.
  • create_command(args): resolve the command and parse its arguments.
  • run_command(args) → int | None.
- command(...): create a Command or return a decorator building one.
- invoke(object, prompt): run a command, a manager, a parser or a callable.

Quick start
    from parlance import Argument, command, CommandManager

    @command(description="Copy a file.")
    def copy(source=Argument("Source", required=True), /, force=Argument("Force", bool)):
        ...

    manager = CommandManager((copy,), name="tool")
    manager.run_command("copy a.txt -Force")
"""
import copy
import inspect
import re
import sys
from collections.abc import Iterable, Mapping
from inspect import Parameter

from rich.console import Console

from .arguments import Argument, ArgumentKind
from .faults import *
from .faults import console as errors
from .options import ParseOptions, UsageHelpRequest, options_of
from .parser import CommandLineParser, ParseStatus
from .resolver import NameTable
from .usage import render_commands
from .utils import *

console = Console()


def _command_name(name, suffix, /):
    """
    Derive a command name from a callable name: strip the configured suffix
    ("ReadCommand" → "Read", "read_command" → "read"), then kebab-case it.
    """
    if suffix:
        for candidate in (suffix, "_" + suffix.lower()):
            if name.endswith(candidate) and name != candidate:
                name = name[:-len(candidate)]
                break
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).replace("_", "-").strip("-").lower()


def _sanitize_command(cls, metadata, /):
    """
    Internal: validate command metadata and collect its argument descriptors.

    - callback: callable, or Unset for a pure parent command (then a name is required).
    - name: Unset (derived from the callback) or a non-empty string without whitespace.
    - aliases: iterable of such strings, duplicates rejected.
    - description: Unset (first docstring paragraph of the callback) or a string.
    """
    if (callback := metadata["callback"]) is not Unset and not callable(callback):
        raise TypeError(f"{cls.__typename__} callback must be callable")

    if (name := metadata["name"]) is Unset:
        if callback is Unset:
            raise TypeError(f"{cls.__typename__} without a callback must specify a name")
        metadata["explicit"] = False
        name = _command_name(getattr(callback, "__name__", type(callback).__name__), None)
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    elif not name or any(char.isspace() for char in name):
        raise ValueError(f"{cls.__typename__} name cannot be empty or contain whitespace")
    metadata["name"] = name

    if isinstance(aliases := metadata["aliases"], str) or not isinstance(aliases, Iterable):
        raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
    sanitized = []
    for alias in aliases:
        if not isinstance(alias, str) or not alias or any(char.isspace() for char in alias):
            raise ValueError(f"{cls.__typename__} aliases must be non-empty strings without whitespace")
        elif alias in sanitized or alias == name:
            raise ValueError(f"{cls.__typename__} aliases cannot contain duplicates")
        sanitized.append(alias)
    metadata["aliases"] = tuple(sanitized)

    if not isinstance(description := metadata["description"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'description' must be a string")
    if description is Unset and callback is not Unset and (doc := inspect.getdoc(callback)):
        description = doc.split("\n\n")[0].strip()
    metadata["description"] = coalesce(description)

    arguments = []
    if callback is not Unset:
        position = 0
        for parameter in inspect.signature(callback).parameters.values():
            if not isinstance(argument := parameter.default, Argument):
                if parameter.default is Parameter.empty and parameter.kind not in (
                    Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD,
                ):
                    raise TypeError(
                        f"{cls.__typename__} parameter {parameter.name!r} must default to an argument"
                    )
                continue
            overrides = {"dest": parameter.name}
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                if argument.kind is ArgumentKind.METHOD:
                    raise TypeError(
                        f"{cls.__typename__} parameter {parameter.name!r} cannot be a positional method argument"
                    )
                overrides["position"] = position
                position += 1
            arguments.append(copy.replace(argument, **overrides))
    metadata["arguments"] = tuple(arguments)


class Command(metaclass=IntrospectableType):
    """
    One dispatchable command.

    Read-only fields: name, aliases, description, callback, arguments,
    parent, children, hidden.
    """
    __introspectable__ = (
        "name",
        "aliases",
        "description",
        "callback",
        "arguments",
        "parent",
        "children",
        "hidden",
    )

    __displayable__ = ("name", "aliases", "description", "arguments", "children")

    def __init__(self, callback=Unset, /, name=Unset, aliases=(), description=Unset, *, hidden=False):
        metadata = {
            "callback": callback,
            "name": name,
            "aliases": aliases,
            "description": description,
            "explicit": True,
        }
        _sanitize_command(type(self), metadata)
        self._parameters = {"name": name, "aliases": aliases, "description": description, "hidden": hidden}
        for field, object in metadata.items():
            setattr(self, "_" + field, object)
        self._hidden = bool(hidden)
        self._parent = None
        self._children = []

    @property
    def explicit(self):
        """
        False when the name was derived from the callback.
        """
        return self._explicit

    @property
    def path(self):
        """
        Names from the root command down to this one.
        """
        path = []
        command = self
        while command is not None:
            path.insert(0, command.name)
            command = command._parent
        return tuple(path)

    def add(self, child, /):
        """
        Attach a child command (a Command or a callable).
        """
        if not isinstance(child, Command):
            child = Command(child)
        if child._parent is not None:
            raise ValueError(f"command {child.name!r} already has a parent")
        child._parent = self
        self._children.append(child)
        return child

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Decorator/factory registering a child command, like the module-level command().
        """
        @rename("command")
        def wrapper(source, /):
            return self.add(command(source, *args, **kwargs))

        return wrapper(source) if source is not Unset else wrapper

    def parser(self, options=Unset, /, *, prog=Unset):
        """
        Build the CommandLineParser for this command's arguments.
        """
        return CommandLineParser(
            self._arguments,
            options,
            name=coalesce(prog, " ".join(self.path)),
            description=Unset if self._description is None else self._description,
        )

    def call(self, namespace, /):
        """
        Call the callback with the bound values (positional-only parameters by
        position, the others by keyword). Method arguments have run during the
        parse and keep their parameter default.
        """
        if self._callback is Unset:
            return None
        args, kwargs = [], {}
        for parameter in inspect.signature(self._callback).parameters.values():
            if not isinstance(parameter.default, Argument) or parameter.default.kind is ArgumentKind.METHOD:
                continue
            value = getattr(namespace, parameter.name)
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value
        return self._callback(*args, **kwargs)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replaced = type(self)(self._callback, **self._parameters | overrides)
        for child in self._children:
            replaced.add(copy.replace(child))
        return replaced

    def __invoke__(self, prompt=Unset):
        return CommandManager((self,), {"strip_suffix": None}).run_command([self.name, *split_prompt(prompt)])


class Invocation(metaclass=IntrospectableType, final=True):
    """
    A resolved command with its bound values; calling it runs the command.
    """
    __introspectable__ = ("command", "values", "parser")
    __displayable__ = ("command", "values")

    def __init__(self, command, values, parser, /):
        self._command = command
        self._values = values
        self._parser = parser

    def __call__(self):
        return self._command.call(self._values)


def _sanitize_command_options(cls, metadata, /):
    if (filter := coalesce(metadata["filter"])) is not None and not callable(filter):
        raise TypeError(f"{cls.__typename__} 'filter' must be callable")
    metadata["filter"] = filter
    if not isinstance(suffix := metadata["strip_suffix"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'strip_suffix' must be a string")
    metadata["strip_suffix"] = coalesce(suffix) or None
    metadata["case_sensitive"] = bool(metadata["case_sensitive"])
    metadata["auto_prefix_aliases"] = bool(metadata["auto_prefix_aliases"])
    metadata["auto_version_command"] = bool(metadata["auto_version_command"])
    if not isinstance(metadata["parse_options"], ParseOptions | Mapping | Unset):
        raise TypeError(f"{cls.__typename__} 'parse_options' must be parse-options or a mapping")
    metadata["parse_options"] = options_of(metadata["parse_options"])


class CommandOptions(metaclass=IntrospectableType, final=True):
    """
    Dispatcher configuration.

    - case_sensitive: command name comparison (False).
    - auto_prefix_aliases: accept unique prefixes of names/aliases (True).
    - filter: Unset | predicate(command) → bool hiding commands it rejects.
    - auto_version_command: add "version" at the root when a version is set (True).
    - strip_suffix: suffix removed from derived command names ("Command").
    - parse_options: ParseOptions | Mapping for every command parser.
    """
    __introspectable__ = (
        "case_sensitive",
        "auto_prefix_aliases",
        "filter",
        "auto_version_command",
        "strip_suffix",
        "parse_options",
    )

    def __new__(
            cls,
            *,
            case_sensitive=False,
            auto_prefix_aliases=True,
            filter=Unset,
            auto_version_command=True,
            strip_suffix="Command",
            parse_options=Unset,
    ):
        metadata = {
            "case_sensitive": case_sensitive,
            "auto_prefix_aliases": auto_prefix_aliases,
            "filter": filter,
            "auto_version_command": auto_version_command,
            "strip_suffix": strip_suffix,
            "parse_options": parse_options,
        }
        _sanitize_command_options(cls, metadata)
        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(**{name: getattr(self, "_" + name) for name in type(self).__introspectable__} | overrides)


class CommandManager(metaclass=IntrospectableType):
    """
    Command registry and dispatcher.

    Parameters
    - commands: Iterable[Command | callable] registered at the root, or the
      children of parent when a parent command is given.
    - options: CommandOptions | Mapping | Unset.
    - name: program name used in usage and in command parser names.
    - version: enables the automatic version command at the root.
    - parent: Unset, or the Command whose children this manager dispatches to.
    """
    __introspectable__ = ("options", "name", "version", "parent")

    def __init__(self, commands=(), /, options=Unset, *, name=Unset, version=Unset, parent=Unset):
        if isinstance(options, Mapping):
            options = CommandOptions(**options)
        elif options is Unset:
            options = CommandOptions()
        elif not isinstance(options, CommandOptions):
            raise TypeError(f"{type(self).__typename__} options must be command-options or a mapping")
        if parent is not Unset and not isinstance(parent, Command):
            raise TypeError(f"{type(self).__typename__} parent must be a command")
        for field, value in (("name", name), ("version", version)):
            if not isinstance(value, str | Unset):
                raise TypeError(f"{type(self).__typename__} {field!r} must be a string")

        self._options = options
        self._name = coalesce(name, None)
        self._version = coalesce(version, None)
        self._parent = coalesce(parent, None)
        self._commands = []
        for object in commands:
            self.add(object)

    def add(self, object, /):
        """
        Register a Command (or a callable wrapped into one) at this scope.

        Derived names get the configured suffix stripped; explicit names are kept.
        """
        command = object if isinstance(object, Command) else Command(object)
        if not command.explicit and self._options.strip_suffix and command.callback is not Unset:
            command = copy.replace(command, name=_command_name(command.callback.__name__, self._options.strip_suffix))
        if self._parent is not None:
            self._parent.add(command)
        else:
            self._commands.append(command)
        return command

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Decorator/factory registering a command at this scope.
        """
        @rename("command")
        def wrapper(source, /):
            return self.add(command(source, *args, **kwargs))

        return wrapper(source) if source is not Unset else wrapper

    def _version_command(self):
        @rename("version")
        def version():
            console.print(" ".join(filter(None, (self._name, self._version))), highlight=False)

        return Command(version, "version", description="Displays version information.")

    def _scope(self):
        commands = list(self._parent.children if self._parent is not None else self._commands)
        if self._parent is None and self._version is not None and self._options.auto_version_command:
            fold = lambda name: casefold(name, self._options.case_sensitive)  # NOQA: E-731
            if all(fold("version") not in map(fold, (command.name, *command.aliases)) for command in commands):
                commands.append(self._version_command())
        return commands

    def _available(self):
        filter = self._options.filter
        return [command for command in self._scope() if filter is None or filter(command)]

    def get_commands(self):
        """
        Listed commands of this scope, sorted by name.

        Hidden commands are left out of the list but can still be invoked.
        """
        return sorted(
            (command for command in self._available() if not command.hidden),
            key=lambda command: casefold(command.name, self._options.case_sensitive),
        )

    def _table(self):
        table = NameTable(
            case_sensitive=self._options.case_sensitive, prefix_aliases=self._options.auto_prefix_aliases,
        )
        for command in self._available():
            for name in (command.name, *command.aliases):
                table.add(name, command)
        return table

    def get_command(self, name, /):
        """
        Command matching a name: exact name or alias first, then a unique prefix.

        Returns None when nothing (or more than one command) matches.
        """
        return self._table().lookup(name).match

    def _resolve(self, name, /):
        resolution = self._table().lookup(name)
        if resolution.ambiguous:
            raise AmbiguousCommandError(
                "ambiguous command %r could be %s" % (name, ", ".join(map(repr, resolution.candidates))),
                matches=resolution.candidates,
            )
        if not resolution:
            raise UnknownCommandError("unknown command %r" % name, argument=name)
        return resolution.match

    @property
    def _runtime(self):
        options = self._options.parse_options
        return {"prog": self._name, "shell": options.shell, "fancy": options.fancy, "colorful": options.colorful}

    def _prog(self, command):
        return " ".join(filter(None, (self._name, command.name)))

    def create_command(self, args=Unset, /):
        """
        Resolve the first token to a command and parse the remaining tokens
        with that command's parser (child commands dispatch recursively).

        Returns
        - Invocation on success.
        - None when no command was given, after help/version cancellation, or
          (in shell mode) after an error; the command list or usage is printed.

        Raises
        - UnknownCommandError / AmbiguousCommandError / ArgumentException
          outside shell mode.
        """
        args = split_prompt(args)
        if not args:
            errors.print(render_commands(self))
            return None

        try:
            command = self._resolve(args[0])
        except CommandException as error:
            if not self._options.parse_options.shell:
                trigger(error, **self._runtime)
            errors.print(copy.replace(error, **self._runtime))
            errors.print(render_commands(self))
            return None

        if command.children:
            return CommandManager(
                options=self._options, name=self._prog(command), parent=command,
            ).create_command(args[1:])

        parser = command.parser(self._options.parse_options, prog=self._prog(command))
        result = parser.parse(args[1:])
        match result.status:
            case ParseStatus.SUCCESS:
                return Invocation(command, result.value, parser)
            case ParseStatus.ERROR:
                options = self._options.parse_options
                if not options.shell:
                    trigger(result.error, **self._runtime | {"prog": parser.name})
                errors.print(copy.replace(result.error, **self._runtime | {"prog": parser.name}))
                if (usage := parser.render_usage(options.show_usage_on_error)) is not None:
                    errors.print(usage)
                return None
        if result.help_requested:
            console.print(parser.render_usage(UsageHelpRequest.FULL))
        return None

    def run_command(self, args=Unset, /):
        """
        create_command(args) and run the result; returns the command's return
        value (int | None), or None when no command ran.
        """
        if (invocation := self.create_command(args)) is None:
            return None
        return invocation()

    def __invoke__(self, prompt=Unset):
        status = self.run_command(prompt)
        if isinstance(status, int) and not isinstance(status, bool) and self._options.parse_options.shell:
            sys.exit(status)
        return status


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator to build it later.

    - command(func, ...): Command bound to func.
    - command(existing, name=...): copy of an existing Command with overrides.
    - @command(...): decorator wrapping the decorated callable.
    """
    @rename("command")
    def wrapper(source, /):
        if isinstance(source, Command):
            return copy.replace(source, **dict(zip(("name", "aliases", "description"), args)) | kwargs)
        if not callable(source):
            raise TypeError("@command() must be applied to a callable or a command")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands, managers, parsers or plain callables.

    - prompt: Unset (sys.argv[1:]), a str (shlex.split) or an iterable of strings.
    - objects implementing __invoke__(prompt) are invoked directly; a plain
      callable is wrapped into a Command first.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    if callable(object):
        return invoke(command(object), prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "Command",
    "CommandOptions",
    "CommandManager",
    "Invocation",
    "command",
    "invoke",
)
