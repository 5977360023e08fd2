"""
Parlance usage rendering (rich renderables, never printed here).

- render_usage(parser, request): syntax line, description and argument table
  built from the parser's descriptors and options, without re-running the
  engine. SYNTAX_ONLY stops after the syntax line; NONE returns None.
- render_commands(manager): table of the visible commands of a dispatcher.

Palette keys
- usage-label, program-name, argument-name, value-description, description,
  annotation, table-border, table-title
Styles are overridable through a __styles__ mapping in __main__; with
colorful=False no style is applied, with fancy=True the output is wrapped in a
panel.
"""
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .options import UsageHelpRequest
from .utils import *

_PALETTE = {
    "usage-label": "bold #00E6FF",
    "program-name": "bold #FF4D94",
    "argument-name": "bold #22C55E",
    "value-description": "bold #FFD600",
    "description": "italic #A3A3A3",
    "annotation": "#9CA3AF",
    "table-border": "#4B5563",
    "table-title": "bold #FFFFFF",
}


def _styler(options):
    styles = defaultdict(str, _PALETTE | getattr(__import__("__main__"), "__styles__", {}))
    return lambda style: styles[style] if options.colorful else ""


def _names(argument, options, styler, /):
    """
    Every name an argument answers to, with its prefix.
    """
    if options.long_short:
        names = [options.long_prefix + name for name in (argument.name, *argument.aliases)]
        names[:0] = [
            options.prefixes[0] + name for name in (argument.short_name, *argument.short_aliases) if name is not Unset
        ]
    else:
        names = [options.prefixes[0] + name for name in (argument.name, *argument.aliases)]
    return Text(", ").join(Text(name, styler("argument-name")) for name in names)


def _primary(argument, options, /):
    if options.long_short:
        return options.long_prefix + argument.name
    return options.prefixes[0] + argument.name


def _value(argument, styler, /):
    value = Text.assemble("<", (argument.value_description, styler("value-description")), ">")
    if argument.is_multi_value:
        value.append("...")
    return value


def _syntax(parser, styler, /):
    options = parser.options
    syntax = Text()
    syntax.append("usage", styler("usage-label")).append(": ")
    syntax.append(parser.name or "", styler("program-name"))

    for argument in parser.arguments.positional:
        if argument.hidden:
            continue
        value = Text.assemble(
            "<", (argument.name, styler("argument-name")), ">", "..." if argument.is_multi_value else "",
        )
        syntax.append(" ").append(value if argument.required else Text.assemble("[", value, "]"))

    for argument in parser.arguments:
        if argument.hidden or argument.is_positional:
            continue
        item = Text(_primary(argument, options), styler("argument-name"))
        if not argument.is_switch:
            item.append(" ").append(_value(argument, styler))
        syntax.append(" ").append(item if argument.required else Text.assemble("[", item, "]"))
    return syntax


def _annotations(argument, /):
    annotations = [text for validator in argument.validators if (text := validator.describe(argument))]
    if argument.has_default and argument.default is not None:
        annotations.append("default: %s" % (argument.default,))
    return annotations


def render_usage(parser, request=UsageHelpRequest.FULL, /):
    """
    Build the usage renderable for a CommandLineParser.
    """
    if isinstance(request, str):
        request = UsageHelpRequest(request)
    if request is UsageHelpRequest.NONE:
        return None

    options = parser.options
    styler = _styler(options)
    renders = [_syntax(parser, styler)]

    if request is UsageHelpRequest.FULL:
        if parser.description:
            renders.append(Text(parser.description, styler("description")))

        table = Table(
            "argument", "description",
            box=ROUNDED,
            style=styler("table-border"),
            header_style=styler("table-title"),
            show_header=False,
        )
        for argument in parser.arguments:
            if argument.hidden:
                continue
            name = _names(argument, options, styler)
            if not argument.is_switch:
                name.append(" ").append(_value(argument, styler))
            description = Text(argument.description or "", styler("description"))
            if annotations := _annotations(argument):
                description.append(" " if description else "").append(
                    "(%s)" % "; ".join(annotations), styler("annotation"),
                )
            table.add_row(name, description)
        if table.row_count:
            renders.append(table)

    renderable = Group(*renders)
    if options.fancy:
        return Panel(renderable, title=Text(parser.name or "usage", styler("program-name")), title_align="left")
    return renderable


def render_commands(manager, /):
    """
    Build the command list renderable for a CommandManager.
    """
    styler = _styler(manager.options.parse_options)
    table = Table(
        "command", "description",
        title=Text("commands", styler("table-title")),
        box=ROUNDED,
        style=styler("table-border"),
        header_style=styler("table-title"),
    )
    for command in manager.get_commands():
        name = Text(command.name, styler("argument-name"))
        if command.aliases:
            name.append(" (%s)" % ", ".join(command.aliases), styler("annotation"))
        table.add_row(name, Text(command.description or "", styler("description")))

    syntax = Text()
    syntax.append("usage", styler("usage-label")).append(": ")
    syntax.append(manager.name or "", styler("program-name"))
    syntax.append(" <command> [arguments]")
    return Group(syntax, table)


__all__ = (
    "render_usage",
    "render_commands",
)
