"""
Helmsman faults (user-facing runtime errors) and their rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing error, grouped
  by domain so that logs and documentation stay searchable.
- FeatureException: base type carrying a message plus rendering options; it
  knows how to render itself with rich (`console.print(fault)`).
- Concrete faults raised while an invocation is resolved or executed.
- getdoc(): optional documentation lookup provided by the host application.

What is NOT a fault
- Declaration mistakes (empty alias list, two catch-alls, malformed option
  names...) are programming errors and raise TypeError/ValueError at the
  moment the feature tree is built.
- A resolution miss is not an error either: Registry.resolve() returns None
  and the application decides how to report it.

Rendering
- Header `[ prog | code | Title ]`, then the message, then a `->` hint.
- The host application may define, in `__main__`:
  • __styles__: overrides for the palette below, keyed by role
    ("prog", "code", "title", "message", "arrow", "hint", "docs");
  • __codes__: relabeled fault codes;
  • __prog__: the program name, taking precedence over the `prog` option;
  • __docs__: documentation per fault code (see getdoc()).
- Options: title, code, hint, docs, prog, colorful (default True), fancy
  (panel layout, default False), ratio (panel width ratio when fancy).
"""
import sys
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

_PALETTE = MappingProxyType({
    "prog": "bold #E6E6F0",
    "code": "bold #00E5FF",
    "title": "bold #FF4DA6",
    "message": "#C8C8D0",
    "arrow": "dim #9CE19C",
    "hint": "italic #9CE19C",
    "docs": "dim underline #00E5FF",
})


def _host(name, default, /):
    # getattr() on a missing __main__ (None) falls back to the default
    return getattr(sys.modules.get("__main__"), name, default)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - routing (1110x): UNKNOWN_COMMAND, UNKNOWN_TOPIC
    - options (1111x): FLAG_ASSIGNMENT, OPTION_VALUE_REQUIRED
    - positionals and values (1112x): MISSING_ARGUMENT, INVALID_NUMBER,
      NO_SUCH_PATH, PATH_TYPE_MISMATCH
    - delegated (1113x): DELEGATED_ERROR, INTERRUPTED

    gaps between codes are left on purpose so new faults can be slotted in
    without renumbering.
    """
    UNKNOWN_COMMAND         = 11101
    UNKNOWN_TOPIC           = 11102

    FLAG_ASSIGNMENT         = 11113
    OPTION_VALUE_REQUIRED   = 11117

    MISSING_ARGUMENT        = 11125
    INVALID_NUMBER          = 11126
    NO_SUCH_PATH            = 11127
    PATH_TYPE_MISMATCH      = 11128

    DELEGATED_ERROR         = 11131
    INTERRUPTED             = 11132

    def normalize(self):
        """label shown for this code: the host's __codes__ entry or the number."""
        return str(_host("__codes__", {}).get(self, self.value))


class FeatureException(Exception):
    """
    Base class of every user-facing runtime fault.

    Subclasses declare their `code` and `title` through `__defaults__`; raise
    sites add the message and usually a `hint`. Options are frozen in a
    MappingProxyType and can be overridden with copy.replace(fault, **options)
    (the application injects `prog` that way before printing).
    """
    __defaults__ = {"title": "error"}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType({"colorful": True, "fancy": False, **type(self).__defaults__, **options})

    def __str__(self):
        return coalesce(self.message, "")

    def _paint(self, value, role):
        if not self.options["colorful"]:
            return Text(str(value))
        if isinstance(value, Text):
            return value
        return Text(str(value), {**_PALETTE, **_host("__styles__", {})}.get(role, ""))

    def _header(self):
        cells = [self._paint(_host("__prog__", self.options.get("prog", "helmsman")), "prog")]
        if isinstance(code := self.options.get("code"), FaultCode):
            cells.append(self._paint(code.normalize(), "code"))
        cells.append(self._paint(self.options["title"].title(), "title"))
        return Text.assemble("[ ", Text(" | ").join(cells), " ]")

    def _body(self):
        yield self._paint(coalesce(self.message, ""), "message")
        if hint := self.options.get("hint"):
            yield Text.assemble(self._paint(" -> ", "arrow"), self._paint(hint, "hint"))
        if docs := self.options.get("docs"):
            yield self._paint(docs, "docs")

    def __rich_console__(self, console, options):
        if not self.options["fancy"]:
            yield self._header()
            yield from self._body()
            return
        width = None
        if "ratio" in self.options:
            width = int((options.max_width - 4) * self.options["ratio"])
        yield Panel(Group(*self._body()), title=self._header(), title_align="left", width=width)

    def __replace__(self, /, **changes):
        clone = type(self)(self.message, **(dict(self.options) | changes))
        clone.__cause__ = self.__cause__
        return clone


class FeatureError(FeatureException):
    """
    Generic user-facing error raised by feature bodies (see App.fail).
    """
    __defaults__ = {"title": "error"}


class UnknownCommandError(FeatureException):
    __defaults__ = {"code": FaultCode.UNKNOWN_COMMAND, "title": "unknown command"}


class UnknownTopicError(FeatureException):
    __defaults__ = {"code": FaultCode.UNKNOWN_TOPIC, "title": "unknown help topic"}


class FlagAssignmentError(FeatureException):
    __defaults__ = {"code": FaultCode.FLAG_ASSIGNMENT, "title": "flag assignment"}


class OptionValueRequiredError(FeatureException):
    __defaults__ = {"code": FaultCode.OPTION_VALUE_REQUIRED, "title": "option value required"}


class MissingArgumentError(FeatureException):
    __defaults__ = {"code": FaultCode.MISSING_ARGUMENT, "title": "missing argument"}


class InvalidNumberError(FeatureException):
    __defaults__ = {"code": FaultCode.INVALID_NUMBER, "title": "invalid number"}


class NoSuchPathError(FeatureException):
    __defaults__ = {"code": FaultCode.NO_SUCH_PATH, "title": "no such path"}


class PathTypeError(FeatureException):
    __defaults__ = {"code": FaultCode.PATH_TYPE_MISMATCH, "title": "path type mismatch"}


class DelegatedFeatureError(FeatureException):
    """
    Wraps an unexpected exception escaping a feature body; the original is
    chained as __cause__ by the raise site.
    """
    __defaults__ = {"code": FaultCode.DELEGATED_ERROR, "title": "unexpected error"}


class InterruptedFeatureError(FeatureException):
    """
    Raised when an interrupt (Ctrl-C) cancels a running feature that
    registered no interrupt listener.
    """
    __defaults__ = {"code": FaultCode.INTERRUPTED, "title": "interrupted"}


class FeatureExit(Exception):
    """
    Raised to leave the application without reporting an error (see App.exit).
    """


def getdoc(code, /):
    """Documentation registered by the host for `code` (in __docs__), or None."""
    if not isinstance(code, FaultCode):
        raise TypeError(f"getdoc() expects a FaultCode, not {type(code).__name__!r}")
    return _host("__docs__", {}).get(code)


__all__ = (
    "FeatureException",
    "FeatureError",
    "FeatureExit",
    "UnknownCommandError",
    "UnknownTopicError",
    "FlagAssignmentError",
    "OptionValueRequiredError",
    "MissingArgumentError",
    "InvalidNumberError",
    "NoSuchPathError",
    "PathTypeError",
    "DelegatedFeatureError",
    "InterruptedFeatureError",
    "FaultCode",
    "getdoc",
)
