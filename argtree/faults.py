"""
Argtree faults: what can go wrong while routing and parsing, and how it is shown.

Contents
- FaultCode: numeric identifiers for every reportable problem, stable across releases.
- CommandException / CommandWarning: carry a message plus free-form options
  (title, code, hint, docs, tool, colorful, fancy) and render themselves with rich.
- trigger(): merge runtime options into a fault and surface it.
- getdoc(): per-code documentation supplied by the host program.
- console: the single stderr console every diagnostic is printed on.

Taxonomy
- ParseError: a flag value could not be converted (identifier, URL, integer, list item).
  Raised synchronously by the value adapters; the flag namespace turns it into a hard stop.
- DispatchError: missing or unknown subcommand; recovered by the dispatcher (status 1).
- InvalidArgumentsError: a command's own post-parse unpacking failed (status 1).
- InvalidFlagError: the flag-parsing facility rejected the token list (process exit 2).
- DuplicatedSubcommandWarning: two siblings share a name; emitted through warnings.

Host overrides (looked up on __main__ at render time)
- __prog__: label shown in fault headers instead of the reporting command's name.
- __styles__: palette entries replacing the built-in ones.
- __codes__: FaultCode -> label replacing the numeric code.
- __docs__: FaultCode -> short documentation line.
"""
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


def _host(name, default):
    return getattr(__import__("__main__"), name, default)


class FaultCode(IntEnum):
    """
    stable fault identifiers.

    ranges
    - 1110x routing: MISSING_SUBCOMMAND, UNKNOWN_SUBCOMMAND
    - 1111x values: MALFORMED_VALUE, MALFORMED_IDENTIFIER, MALFORMED_URL
    - 1112x flags: INVALID_FLAG
    - 1113x arguments: INVALID_ARGUMENTS
    - 121xx warnings: DUPLICATED_SUBCOMMAND
    """
    MISSING_SUBCOMMAND          = 11101
    UNKNOWN_SUBCOMMAND          = 11102

    MALFORMED_VALUE             = 11111
    MALFORMED_IDENTIFIER        = 11112
    MALFORMED_URL               = 11113

    INVALID_FLAG                = 11121

    INVALID_ARGUMENTS           = 11131

    DUPLICATED_SUBCOMMAND       = 12101

    def normalize(self):
        """
        label for this code: the host's __codes__ entry, else the number as text.
        """
        return str(_host("__codes__", {}).get(self, self.value))


class _Fault:
    """
    message + options carrier shared by exceptions and warnings.

    options (all optional)
    - title, code, hint, docs: copy shown in the rendered fault.
    - tool: the reporting command or flag namespace (its name heads the render).
    - colorful, fancy: runtime flags of the reporter.
    """
    __kind__ = "fault"
    __palette__ = {}

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | Unset):
            raise TypeError(f"{type(self).__name__} message must be a string")
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)
        super().__init__(self.message)

    def _style(self, key):
        if not self.options.get("colorful", False):
            return ""
        return defaultdict(str, self.__palette__ | _host("__styles__", {}))[key]

    def _label(self):
        tool = self.options.get("tool")
        return _host("__prog__", getattr(tool, "name", "argtree"))

    def __rich__(self):
        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            (self._label(), self._style("prog-name")),
            " — ",
            (code.normalize() if code else self.__kind__, self._style("code")),
            " | ",
            (str(self.options.get("title", self.__kind__)).title(), self._style("title")),
            " ]",
        )
        body = [Text(self.message, self._style("message"))]
        if hint := self.options.get("hint"):
            body.append(Text.assemble((" → ", self._style("hint-arrow")), (hint, self._style("hint"))))
        if docs := self.options.get("docs"):
            body.append(Text(docs, self._style("docs")))
        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __replace__(self, /, **overrides):
        return type(self)(self.message, **(dict(self.options) | overrides))


class CommandException(_Fault, Exception):
    """
    base for every error shown to the user; printed, never raised, by trigger().
    """
    __kind__ = "error"
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "title": "bold #FF4DA6",
        "message": "#C8C8D0",
        "hint-arrow": "dim #9CE19C",
        "hint": "italic #9CE19C",
        "docs": "dim underline #00E5FF",
    }

    def __trigger__(self):
        console.print(self)


class ParseError(CommandException, ValueError): ...
class MalformedValueError(ParseError): ...
class MalformedIdentifierError(ParseError): ...
class MalformedURLError(ParseError): ...

class DispatchError(CommandException): ...
class MissingSubcommandError(DispatchError): ...
class UnknownSubcommandError(DispatchError): ...

class InvalidArgumentsError(CommandException): ...
class InvalidFlagError(CommandException): ...


class CommandWarning(_Fault, Warning):
    """
    base for recoverable problems; emitted through warnings.warn by trigger().
    """
    __kind__ = "warning"
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "dim #B8EFAF",
        "hint": "italic #B8EFAF",
    }

    def __trigger__(self):
        warnings.warn(self, stacklevel=3)


class DuplicatedSubcommandWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    merge options into fault and surface it.

    errors are printed on the shared console; warnings go through warnings.warn.
    anything lacking callable __trigger__ and __replace__ is rejected with TypeError.
    """
    for method in ("__trigger__", "__replace__"):
        if not callable(getattr(fault, method, None)):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    documentation line for code from the host's __docs__ mapping, or None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return _host("__docs__", {}).get(code)


__all__ = (
    "CommandException",
    "ParseError",
    "MalformedValueError",
    "MalformedIdentifierError",
    "MalformedURLError",
    "DispatchError",
    "MissingSubcommandError",
    "UnknownSubcommandError",
    "InvalidArgumentsError",
    "InvalidFlagError",
    "CommandWarning",
    "DuplicatedSubcommandWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
