"""
Argtree flag namespace: one isolated flag registry per command.

What this module provides
- FlagSet: a named registry of flags backed by argparse.ArgumentParser.
  • var(value, name, usage): bind any value exposing parse/render/get (see argtree.values).
  • string/integer/boolean: convenience registrations returning a Ref cell.
  • parse(tokens): bind recognized flags, keep the rest in .args.
  • print_defaults(): the default-value listing shown after a failed validation.

Token syntax
- "-name value", "-name=value", "--name value", "--name=value".
- A value flag always takes the next token as its value, even "-x" or "--".
- Flag parsing stops at the first non-flag token; that token and everything after it
  end up in .args (a leading "--" is dropped).

Failure policy
- A value that fails to parse, an unknown flag, or a missing value is a hard stop:
  the fault and the default listing are printed and the process exits with status 2.
- "-h", "-help" and "--help" print the default listing and exit with status 0 unless
  a command registered one of those names itself.
"""
import argparse
import re
from collections import namedtuple

from rich.text import Text

from . import faults
from .faults import FaultCode, InvalidFlagError, getdoc
from .values import IntegerValue, Ref, StringValue

_Flag = namedtuple("_Flag", ("name", "usage", "value", "default", "presence"))

_NEGATIVE = re.compile(r"-\d+|-\d*\.\d+")


class _ValueAction(argparse.Action):
    """
    forward the raw flag text into a value adapter.
    """

    def __init__(self, option_strings, dest, value, **options):
        super().__init__(option_strings, dest, **options)
        self.value = value

    def __call__(self, parser, namespace, values, option_string=None):
        try:
            self.value.parse(values)
        except ValueError as error:
            reason = getattr(error, "message", None) or str(error)
            parser.error("invalid value %r for flag %s: %s" % (values, option_string, reason))


class _PresenceAction(argparse.Action):
    def __init__(self, option_strings, dest, cell, **options):
        super().__init__(option_strings, dest, nargs=0, **options)
        self.cell = cell

    def __call__(self, parser, namespace, values, option_string=None):
        self.cell.value = True


class _HelpAction(argparse.Action):
    def __init__(self, option_strings, dest, flags, **options):
        super().__init__(option_strings, dest, nargs=0, **options)
        self.flags = flags

    def __call__(self, parser, namespace, values, option_string=None):
        self.flags.print_defaults()
        parser.exit(0)


class _FlagParser(argparse.ArgumentParser):
    """
    argparse front-end reporting through the shared fault console.
    """

    def __init__(self, flags, /):
        super().__init__(prog=flags.name, add_help=False, allow_abbrev=False)
        self._flags = flags

    def error(self, message):
        faults.trigger(InvalidFlagError(
            message,
            title="invalid flag",
            code=FaultCode.INVALID_FLAG,
            hint="run '%s -help' to see the accepted flags" % self.prog,
            docs=getdoc(FaultCode.INVALID_FLAG),
        ), tool=self._flags, colorful=self._flags.colorful, fancy=self._flags.fancy)
        self._flags.print_defaults()
        self.exit(2)


class FlagSet:
    """
    named, isolated flag registry.

    parameters
    - name: the owning command's name (used for routing and messages).
    - colorful, fancy: runtime rendering flags for faults and listings.

    attributes
    - name: str
    - args: list[str], tokens left after the last parse (empty before parsing).
    - parsed: bool, whether parse() ran.
    """

    def __init__(self, name, /, *, colorful=False, fancy=False):
        if not isinstance(name, str):
            raise TypeError("FlagSet name must be a string")
        self._name = name
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._flags = {}
        self._args = []
        self._parsed = False
        self._help = []
        self._takes_value = set()
        self._parser = _FlagParser(self)
        self._parser.add_argument("args", nargs=argparse.REMAINDER)

    @property
    def name(self):
        return self._name

    @property
    def colorful(self):
        return self._colorful

    @property
    def fancy(self):
        return self._fancy

    @property
    def args(self):
        return list(self._args)

    @property
    def parsed(self):
        return self._parsed

    def _register(self, name, usage):
        if not isinstance(name, str) or not name or name.startswith("-") or "=" in name:
            raise ValueError(f"flag name {name!r} must be a non-empty string without leading '-' or '='")
        if name in self._flags:
            raise ValueError(f"flag redefined: {name}")
        if not isinstance(usage, str):
            raise TypeError("flag usage must be a string")
        return ["-" + name, "--" + name] if len(name) > 1 else ["-" + name]

    def var(self, value, name, usage, /):
        """
        register a value adapter under -name (and --name).

        the value's render() at registration time becomes the default shown by
        print_defaults(); later parses update the value in place.
        """
        for method in ("parse", "render", "get"):
            if not callable(getattr(value, method, None)):
                raise TypeError(f"flag value must implement {method}()")
        strings = self._register(name, usage)
        self._parser.add_argument(
            *strings,
            action=_ValueAction,
            dest="flag:" + name,
            value=value,
            metavar="value",
            default=argparse.SUPPRESS,
            help=usage,
        )
        self._flags[name] = _Flag(name, usage, value, value.render(), False)
        self._takes_value.update(strings)
        return value

    def string(self, name, default, usage, /):
        cell = Ref(str(default))
        self.var(StringValue(cell), name, usage)
        return cell

    def integer(self, name, default, usage, /):
        cell = Ref(int(default))
        self.var(IntegerValue(cell), name, usage)
        return cell

    def boolean(self, name, usage, /):
        cell = Ref(False)
        strings = self._register(name, usage)
        self._parser.add_argument(
            *strings,
            action=_PresenceAction,
            dest="flag:" + name,
            cell=cell,
            default=argparse.SUPPRESS,
            help=usage,
        )
        self._flags[name] = _Flag(name, usage, cell, "false", True)
        return cell

    def lookup(self, name, /):
        try:
            return self._flags[name].value
        except KeyError:
            return None

    def parse(self, tokens, /):
        """
        parse a token list; recognized flags update their values, the rest go to .args.

        failures never return: they print the fault and the defaults, then exit.
        """
        if not self._help:
            self._help = [
                string for string in ("-h", "-help", "--help")
                if string not in self._parser._option_string_actions
            ]
            if self._help:
                self._parser.add_argument(
                    *self._help,
                    action=_HelpAction,
                    dest="flag:help",
                    flags=self,
                    default=argparse.SUPPRESS,
                )
            else:
                self._help = [None]
        namespace = self._parser.parse_args(self._bind(tokens))
        args = list(namespace.args)
        if args[:1] == ["--"]:
            del args[0]
        self._args = args
        self._parsed = True

    def _bind(self, tokens):
        # a value flag always takes the next token, even one that starts with "-"
        tokens = list(tokens)
        index = 0
        while index < len(tokens):
            token = tokens[index]
            if token in ("-", "--") or not token.startswith("-"):
                break
            if _NEGATIVE.fullmatch(token) and token not in self._takes_value:
                break
            if token in self._takes_value and index + 1 < len(tokens):
                tokens[index:index + 2] = [token + "=" + tokens[index + 1]]
            index += 1
        return tokens

    def print_defaults(self):
        """
        print every flag in registration order with its usage and default.

        layout
        -   -name value
                usage (default "x")
        """
        listing = Text()
        for flag in self._flags.values():
            listing.append("  -").append(flag.name, style="bold #00E6FF" if self._colorful else "")
            if not flag.presence:
                listing.append(" value", style="bold #FFD600" if self._colorful else "")
            listing.append("\n    \t").append(flag.usage)
            if not flag.presence and flag.default and flag.default != getattr(flag.value, "zero", ""):
                listing.append(" (default %s)" % _quote(flag.default))
            listing.append("\n")
        listing.rstrip()
        if listing:
            faults.console.print(listing)

    def __repr__(self):
        return "FlagSet(name=%r, flags=%r)" % (self._name, list(self._flags))


def _quote(text):
    return '"%s"' % text.replace("\\", "\\\\").replace('"', '\\"')


__all__ = (
    "FlagSet",
)
