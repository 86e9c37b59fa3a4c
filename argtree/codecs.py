"""
Argtree codecs: the parse/format capability behind every typed flag value.

Overview
- Codec[_T] bundles four things for one element type:
  • name:   label used in messages ("identifier", "url", ...).
  • parse:  str -> _T, raising a ParseError subclass on malformed input.
  • format: _T -> str, the canonical rendering.
  • zero:   () -> _T, the "nothing set" value of the type.

- Built-in codecs
  • TEXT:       plain strings; never fails; zero is "".
  • INTEGER:    integers (0x/0o/0b prefixes accepted); zero is 0.
  • IDENTIFIER: UUIDs in canonical, braced, urn:uuid: or bare-hex form; zero is the nil UUID.
  • LOCATOR:    URLs (see parse_url); zero is the empty URL.

The values layer (argtree.values) is written once against this small contract,
so the per-type differences live only here.
"""
import re
import uuid
from urllib.parse import SplitResult, urlsplit

from .faults import FaultCode, MalformedIdentifierError, MalformedURLError, MalformedValueError, getdoc


class URL(SplitResult):
    """
    immutable URL value (scheme, netloc, path, query, fragment).

    str() renders the URL back through urllib's geturl(), so a parsed URL
    prints the way it was written. URL() with no arguments is the empty URL
    and renders as "".
    """
    __slots__ = ()

    def __new__(cls, scheme="", netloc="", path="", query="", fragment=""):
        return super().__new__(cls, scheme, netloc, path, query, fragment)

    def __str__(self):
        return self.geturl()


_IDENTIFIER = re.compile(
    r"(?:urn:uuid:)?[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
    r"|\{[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\}"
    r"|[0-9a-f]{32}",
    re.IGNORECASE,
)

_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_PORT = re.compile(r"(?::[0-9]*)?")

# characters the URL grammar never allows in a host name
_HOST_FORBIDDEN = frozenset(" `^{|}\\")


def parse_identifier(text, /):
    """
    parse a UUID in one of its accepted textual forms.

    accepted
    - xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx
    - urn:uuid:xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx
    - {xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx}
    - xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx

    raises
    - MalformedIdentifierError for anything else.
    """
    if not _IDENTIFIER.fullmatch(text):
        raise MalformedIdentifierError(
            "invalid identifier %r" % text,
            title="malformed identifier",
            code=FaultCode.MALFORMED_IDENTIFIER,
            input=text,
            hint="use the canonical form xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx",
            docs=getdoc(FaultCode.MALFORMED_IDENTIFIER),
        )
    return uuid.UUID(text)


def _malformed_url(text, reason):
    return MalformedURLError(
        "parse %r: %s" % (text, reason),
        title="malformed url",
        code=FaultCode.MALFORMED_URL,
        input=text,
        hint="check the url for spaces, stray colons or broken %-escapes",
        docs=getdoc(FaultCode.MALFORMED_URL),
    )


def parse_url(text, /):
    """
    parse a URL, rejecting what the URL grammar rejects.

    urllib.parse.urlsplit() is lenient; on top of it this enforces
    - no ASCII control characters anywhere,
    - a scheme before any leading ':',
    - no scheme or authority when the text starts with a space,
    - no ':' in the first segment of a scheme-less path,
    - well-formed IPv6 brackets and an all-digit port (its range is not checked),
    - no space or `^{|}\\ in the host,
    - every '%' in host, path and fragment followed by two hex digits.

    raises
    - MalformedURLError with the reason as message.
    """
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in text):
        raise _malformed_url(text, "invalid control character in URL")
    if text.startswith(":"):
        raise _malformed_url(text, "missing protocol scheme")

    if text.startswith(" "):
        # urlsplit would strip the space; here the whole text is a relative reference
        rest, _, fragment = text.partition("#")
        path, _, query = rest.partition("?")
        parts = URL("", "", path, query, fragment)
    else:
        try:
            parts = urlsplit(text)
        except ValueError as error:
            raise _malformed_url(text, str(error)) from None

    if not parts.scheme and ":" in parts.path.partition("/")[0]:
        raise _malformed_url(text, "first path segment in URL cannot contain colon")

    host = parts.netloc.rpartition("@")[2]
    if host.startswith("["):
        host, _, port = host.rpartition("]")
        host += "]"
    elif ":" in host:
        host, _, port = host.rpartition(":")
        port = ":" + port
    else:
        port = ""
    if not _PORT.fullmatch(port):
        raise _malformed_url(text, "invalid port %r after host" % port)
    for char in host:
        if char in _HOST_FORBIDDEN:
            raise _malformed_url(text, "invalid character %r in host name" % char)

    for component in (host, parts.path, parts.fragment):
        if _ESCAPE.search(component):
            raise _malformed_url(text, "invalid URL escape")

    return URL(*parts)


def parse_integer(text, /):
    try:
        return int(text, 0)
    except ValueError:
        raise MalformedValueError(
            "invalid integer %r" % text,
            title="malformed value",
            code=FaultCode.MALFORMED_VALUE,
            input=text,
            hint="use a base-10 number or a 0x/0o/0b prefixed one",
            docs=getdoc(FaultCode.MALFORMED_VALUE),
        ) from None


class Codec[_T]:
    """
    parse/format capability for one element type.

    parameters
    - name: label for messages and help.
    - parse: str -> _T; raises a ParseError subclass on malformed input.
    - format: _T -> str.
    - zero: () -> _T, the type's zero value.
    """
    __slots__ = ("name", "parse", "format", "zero")

    def __init__(self, name, parse, format, zero, /):
        self.name = name
        self.parse = parse
        self.format = format
        self.zero = zero

    def __repr__(self):
        return "codec(name=%r)" % self.name


TEXT = Codec("string", str, str, str)
INTEGER = Codec("integer", parse_integer, str, int)
IDENTIFIER = Codec("identifier", parse_identifier, str, lambda: uuid.UUID(int=0))
LOCATOR = Codec("url", parse_url, str, URL)


__all__ = (
    "URL",
    "Codec",
    "parse_identifier",
    "parse_url",
    "parse_integer",
    "TEXT",
    "INTEGER",
    "IDENTIFIER",
    "LOCATOR",
)
