"""
Argtree command layer: nodes, subcommand trees, and the invoker.

What this module provides
- Command: optional base for a terminal command.
  • Owns one FlagSet, created by setup(); subclasses register flags in define(flags).
  • execute(context) -> int is the only method a subclass must write.
- Subcommands: a node that routes the next token to one of its children.
  • Each child parses its own flags, may unpack them, may veto itself, then runs.
  • Children can be Subcommands again, so trees nest to any depth.
- NoOp: a configurable placeholder command (handy for wiring trees and tests).
- invoke(command, prompt): run a tree as a process entry point, bridging SIGINT
  into cooperative cancellation of the context handed to the command.

Capabilities (checked at dispatch time, never required by inheritance)
- unpack_args(): convert raw flag state into richer state; fails by raising
  InvalidArgumentsError or any ValueError.
- has_invalid_flags() -> bool: a last veto before execution.
- set_args(tokens): receive the raw token scope (Subcommands uses it to recurse).

Dispatch outcomes
- missing or unknown subcommand: fault + usage table, status 1.
- unpack failure: fault + the child's default listing, status 1.
- invalid flags: the child's default listing, status 1.
- malformed flag values or unknown flags: the process exits with status 2 (see FlagSet).
- otherwise: the child's own status, verbatim.

Quick start
    from argtree import Command, Subcommands, URLValue, invoke

    class Fetch(Command):
        "fetch one url"

        def define(self, flags):
            self.url = flags.var(URLValue(), "url", "the url to fetch")

        def execute(self, context):
            print(self.url.get())
            return 0

    if __name__ == "__main__":
        raise SystemExit(invoke(Subcommands("tool", [Fetch()])))
"""
import difflib
import re
import shlex
import signal
import sys
import threading
from collections.abc import Iterable
from queue import SimpleQueue

from rich.box import ROUNDED
from rich.table import Table
from rich.text import Text

from . import faults
from .context import Context, background
from .faults import (
    DuplicatedSubcommandWarning,
    FaultCode,
    InvalidArgumentsError,
    MissingSubcommandError,
    UnknownSubcommandError,
    getdoc,
)
from .flagset import FlagSet
from .utils import Unset, coalesce


def _typename(cls):
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", cls.__name__).lower()


def _capable(object, name):
    return hasattr(object, name) and callable(getattr(object, name))


class Command:
    """
    base for terminal commands.

    parameters
    - name: routing name; defaults to the hyphenated, lowercased class name.
    - descr: one-line description; defaults to the first docstring line.
    - colorful, fancy: rendering flags; inherited from the parent when Unset.

    lifecycle
    - construct once with static configuration.
    - setup(parent) creates the flag namespace and calls define(flags).
    - execute(context) runs after the dispatcher parsed and validated the flags.
    """

    def __init__(self, name=Unset, descr=Unset, *, colorful=Unset, fancy=Unset):
        if not isinstance(name, str | Unset):
            raise TypeError(f"{type(self).__name__} name must be a string")
        if not isinstance(descr, str | Unset):
            raise TypeError(f"{type(self).__name__} descr must be a string")
        self._name = coalesce(name, _typename(type(self)))
        self._descr = coalesce(descr)
        self._colorful = colorful
        self._fancy = fancy
        self._flags = None

    @property
    def name(self):
        return self._name

    @property
    def flags(self):
        if self._flags is None:
            raise RuntimeError(f"{self._name!r} was not set up")
        return self._flags

    @property
    def colorful(self):
        return bool(coalesce(self._colorful, False))

    @property
    def fancy(self):
        return bool(coalesce(self._fancy, False))

    def description(self):
        if self._descr is not None:
            return self._descr
        if doc := type(self).__dict__.get("__doc__"):
            return doc.strip().splitlines()[0]
        return "no description"

    def setup(self, parent=Unset, /):
        if parent is not Unset:
            self._colorful = coalesce(self._colorful, getattr(parent, "colorful", False))
            self._fancy = coalesce(self._fancy, getattr(parent, "fancy", False))
        self._flags = FlagSet(self._name, colorful=self.colorful, fancy=self.fancy)
        self.define(self._flags)
        return self

    def define(self, flags, /):
        """
        hook: register this command's flags.
        """

    def has_invalid_flags(self):
        return False

    def execute(self, context, /):
        raise NotImplementedError(f"{type(self).__name__}.execute() is not implemented")

    def __repr__(self):
        return "%s(name=%r)" % (type(self).__name__, self._name)


class Subcommands(Command):
    """
    routing node over a list of child commands.

    parameters
    - name: routing name of this node (for the root, usually the program name).
    - children: iterable of commands; each must provide flags, description(),
      setup(), has_invalid_flags() and execute(context).
    - descr: overrides the generated "Subcommands: a, b" description.

    scope
    - set_args(tokens) stores the scope: tokens[0] is this node's own name (or the
      program name at the root), tokens[1] selects the child, the rest belongs to it.
    - the selected child gets the scope minus this node's name, so its own tokens[0]
      is its name again; nested Subcommands therefore behave identically at every depth.
    """

    def __init__(self, name=Unset, children=(), descr=Unset, *, colorful=Unset, fancy=Unset):
        super().__init__(name, descr, colorful=colorful, fancy=fancy)
        if not isinstance(children, Iterable):
            raise TypeError("Subcommands children must be an iterable of commands")
        self.children = list(children)
        self._args = []
        self._fallback = Unset

    @property
    def args(self):
        return list(self._args)

    def description(self):
        if self._descr is not None:
            return self._descr
        return "Subcommands: %s" % ", ".join(child.flags.name for child in self.children)

    def setup(self, parent=Unset, /):
        super().setup(parent)
        seen = set()
        for index, child in enumerate(self.children):
            child = self.children[index] = child.setup(self) if isinstance(child, Command) else child.setup()
            if child.flags.name in seen:
                self.trigger(DuplicatedSubcommandWarning(
                    "subcommand %r is defined more than once under %r; the first one wins" % (
                        child.flags.name, self._name
                    ),
                    title="duplicated subcommand",
                    code=FaultCode.DUPLICATED_SUBCOMMAND,
                    hint="give every child of %r a distinct name" % self._name,
                ))
            seen.add(child.flags.name)
        return self

    def set_args(self, tokens, /):
        self._args = list(tokens)

    def usage(self):
        table = Table(
            "name", "help",
            box=ROUNDED,
            header_style="bold #FF4DA6" if self.colorful else "",
        )
        for child in self.children:
            table.add_row(
                Text(child.flags.name, "bold #00E6FF" if self.colorful else ""),
                Text(child.description()),
            )
        faults.console.print(table)

    def fallback(self, fallback, /):
        """
        register a one-time handler receiving faults instead of the console.

        returns
        - the same callable, enabling decorator-style usage: @node.fallback
        """
        if not callable(fallback):
            raise TypeError(f"{type(self).__name__} fallback must be callable")
        if self._fallback is not Unset:
            raise TypeError(f"{type(self).__name__} fallback cannot be overridden")
        self._fallback = fallback
        return fallback

    def trigger(self, fault, /, **options):
        options = {"tool": self, "colorful": self.colorful, "fancy": self.fancy, **options}
        if self._fallback:
            self._fallback(fault.__replace__(**options))
        else:
            faults.trigger(fault, **options)

    def execute(self, context, /):
        if len(self._args) < 2:
            self.trigger(MissingSubcommandError(
                "missing subcommand",
                title="missing subcommand",
                code=FaultCode.MISSING_SUBCOMMAND,
                hint="pick one of: %s" % ", ".join(child.flags.name for child in self.children),
                docs=getdoc(FaultCode.MISSING_SUBCOMMAND),
            ))
            self.usage()
            return 1

        # strip our own name, then route on the next token
        tokens = self._args[1:]
        for child in self.children:
            if child.flags.name == tokens[0]:
                child.flags.parse(tokens[1:])
                break
        else:
            names = [child.flags.name for child in self.children]
            suggestions = difflib.get_close_matches(tokens[0], names, 5)
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "pick one of: %s" % ", ".join(names)
            self.trigger(UnknownSubcommandError(
                "unknown subcommand %r" % tokens[0],
                title="unknown subcommand",
                code=FaultCode.UNKNOWN_SUBCOMMAND,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_SUBCOMMAND),
            ))
            self.usage()
            return 1

        if _capable(child, "unpack_args"):
            try:
                child.unpack_args()
            except (InvalidArgumentsError, ValueError) as error:
                self.trigger(InvalidArgumentsError(
                    "invalid arguments for %r: %s" % (child.flags.name, getattr(error, "message", None) or error),
                    title="invalid arguments",
                    code=FaultCode.INVALID_ARGUMENTS,
                    docs=getdoc(FaultCode.INVALID_ARGUMENTS),
                ))
                child.flags.print_defaults()
                return 1

        # the child reports its own reasons; only the defaults are printed here
        if child.has_invalid_flags():
            child.flags.print_defaults()
            return 1

        if _capable(child, "set_args"):
            child.set_args(tokens)

        return child.execute(context)


class NoOp(Command):
    """
    placeholder command with scripted outcomes.

    parameters
    - name: routing name.
    - unpack_error: exception raised by unpack_args() when set.
    - invalid_flags: value returned by has_invalid_flags().
    - status: value returned by execute().
    """

    def __init__(self, name, /, *, unpack_error=Unset, invalid_flags=False, status=0):
        super().__init__(name, "Not actually implemented.")
        self.unpack_error = coalesce(unpack_error)
        self.invalid_flags = invalid_flags
        self.status = status
        self.executed = 0

    def unpack_args(self):
        if self.unpack_error is not None:
            raise self.unpack_error

    def has_invalid_flags(self):
        return self.invalid_flags

    def execute(self, context, /):
        self.executed += 1
        return self.status


def _tokens(prompt):
    if prompt is Unset:
        return list(sys.argv)
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("invoke() prompt must be a string or an iterable of strings")
        return tokens
    raise TypeError("invoke() prompt must be a string or an iterable of strings")


def _listen(context, signals):
    """
    cancel the context on every queued signal until the context is done.
    """
    while True:
        signals.get()
        if context.done:
            return
        context.cancel()


def invoke(command, prompt=Unset, /, *, context=Unset):
    """
    run a command tree and return its exit status.

    parameters
    - command: the root node (usually a Subcommands).
    - prompt:
      • Unset: sys.argv (index 0 is the program name).
      • str: split with shlex.split; the first token is the program name.
      • Iterable[str]: used as-is.
    - context: parent Context; a fresh background() context when Unset.

    behavior
    - derives a child context and cancels it on SIGINT (handler installed only when
      called from the main thread; the previous handler is restored afterwards).
    - sets the root up, hands it the full token list when it consumes arguments,
      executes it, and returns its status verbatim.
    - the derived context is always cancelled on return, which also stops the
      interrupt listener; the listener thread never outlives the call.
    """
    for method in ("setup", "execute"):
        if not _capable(command, method):
            raise TypeError(f"invoke() argument must implement {method}()")
    tokens = _tokens(prompt)
    if not isinstance(context, Context | Unset):
        raise TypeError("invoke() context must be a context")
    context = Context(coalesce(context, background()))

    signals = SimpleQueue()
    context.add_done_callback(lambda _: signals.put(None))
    listener = threading.Thread(target=_listen, args=(context, signals), name="argtree-interrupt", daemon=True)
    listener.start()

    previous = Unset
    if threading.current_thread() is threading.main_thread():
        previous = signal.signal(signal.SIGINT, lambda signum, frame: signals.put(signum))
    try:
        root = command.setup()
        if _capable(root, "set_args"):
            root.set_args(tokens)
        return root.execute(context)
    finally:
        context.cancel()
        if previous is not Unset:
            signal.signal(signal.SIGINT, signal.SIG_DFL if previous is None else previous)
        listener.join()


__all__ = (
    "Command",
    "Subcommands",
    "NoOp",
    "invoke",
)
