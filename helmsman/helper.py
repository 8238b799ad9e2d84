"""
Thin help renderer for the `help` builtin.

It walks the feature tree and lays out what is declared: group titles and
prose, one signature line per feature, its descriptions and a table of the
described arguments. Everything is returned as a rich renderable; formatting
beyond that is left to the application.

Signatures
- <name> required positional, [name] optional positional, <name...> catch-all
- [--name] option, <--name> required option
"""
from rich.console import Group
from rich.padding import Padding
from rich.table import Table
from rich.text import Text

from .arguments import CatchAll, Option, Positional
from .faults import UnknownTopicError
from .features import Feature, FeatureGroup, Visibility

INDENT = 4


def signature(feature, /):
    """
    One-line usage of a feature, e.g. "head <file> [--lines]".
    """
    parts = [feature.name]
    for spec in feature.arguments:
        parts.append(_label(spec))
    return " ".join(parts)


def _label(spec, /):
    match spec:
        case Option():
            return f"<{spec.name}>" if spec.required else f"[{spec.name}]"
        case CatchAll():
            return f"<{spec.name}...>"
        case Positional() if spec.optional:
            return f"[{spec.name}]"
    return f"<{spec.name}>"


def _text(text, /):
    return text if isinstance(text, Text) else Text(str(text))


class _Builder:
    """
    Accumulates indented lines; consecutive blank lines collapse into one.
    """

    def __init__(self):
        self.lines = []
        self.indentation = 0

    def text(self, text, /):
        self.lines.append(Padding(_text(text), (0, 0, 0, INDENT * self.indentation)))

    def newline(self):
        if self.lines and not self._blank(self.lines[-1]):
            self.lines.append(Padding(Text(""), (0, 0, 0, INDENT * self.indentation)))

    def table(self, rows, /):
        grid = Table.grid(padding=(0, 2))
        grid.add_column(no_wrap=True)
        grid.add_column()
        for row in rows:
            grid.add_row(*row)
        self.lines.append(Padding(grid, (0, 0, 0, INDENT * self.indentation)))

    @staticmethod
    def _blank(line, /):
        return isinstance(line.renderable, Text) and not line.renderable.plain


def _reference(group, /):
    """
    The name `help <name>` accepts for a collapsed group, if any.
    """
    if group.name:
        return group.name
    for child in group.children:
        match child:
            case Feature():
                return child.name
            case FeatureGroup() if child.name:
                return child.name
    return None


def _heading(group, /):
    if group.title or group.name:
        return group.title or group.name
    for child in group.children:
        if isinstance(child, Feature):
            return child.name
    return "***"


def render(registry, topic="", /, *, name="", version="", interactive=False):
    """
    Build the help page for `topic`.

    Selection
    - "" selects the whole tree, otherwise a group by name, otherwise the
      feature the topic resolves to.

    Raises
    - UnknownTopicError when nothing matches the topic.
    """
    topic = " ".join(topic.split())
    if not topic:
        selected = registry.root
    elif (selected := registry.group(topic)) is None:
        if (resolution := registry.resolve(topic)) is None:
            raise UnknownTopicError(
                f"Unknown command or help topic: {topic}",
                hint=f"run `{name} help` for a list of commands" if name else "run `help` for a list of commands"
            )
        selected = resolution.feature

    builder = _Builder()

    def visit(node):
        match node:
            case FeatureGroup():
                chosen = node is selected
                if not chosen and node.visibility is Visibility.HIDE:
                    return
                builder.newline()
                if not chosen and node.visibility is Visibility.COLLAPSE:
                    builder.newline()
                    line = Text(_heading(node))
                    if reference := _reference(node):
                        line.append(f" (expand via `{f'{name} ' if name else ''}help {reference}`)", style="dim")
                    builder.text(line)
                    builder.newline()
                    return
                if node.title:
                    builder.text(Text(node.title, style="bold"))
                if node.descr:
                    if not node.children:
                        builder.newline()
                    builder.text(node.descr)
                if node.long_descr:
                    builder.indentation += 1
                    builder.newline()
                    builder.text(node.long_descr)
                    builder.newline()
                    builder.indentation -= 1
                builder.newline()
                if node.children:
                    builder.newline()
                    if node.title:
                        builder.indentation += 1
                    for child in node.children:
                        visit(child)
                    if node.title:
                        builder.indentation -= 1
            case Feature():
                builder.text(Text("> " + signature(node), style="bold"))
                builder.indentation += 1
                if node.descr:
                    builder.text(node.descr)
                if node.long_descr:
                    builder.newline()
                    builder.text(node.long_descr)
                    builder.newline()
                if rows := [(Text(_label(spec)), _text(spec.descr)) for spec in node.arguments if spec.descr]:
                    builder.table(rows)
                builder.indentation -= 1
                builder.newline()

    if not interactive and (name or version):
        builder.text(" ".join(filter(None, (name, version))))
    visit(selected)
    return Group(*builder.lines)


__all__ = (
    "render",
    "signature",
)
