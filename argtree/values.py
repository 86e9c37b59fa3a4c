"""
Argtree flag values: typed scalars and delimited lists.

Overview
- Ref[_T]
  • A mutable storage cell. Handing the same Ref to a value adapter and keeping it
    yourself gives two-way binding: every successful parse is visible through it.

- Scalar[_T] (UUIDValue, URLValue, StringValue, IntegerValue)
  • Reads a single typed value from a string and renders it back.
  • Unbound scalars render/get the type's zero value; the first parse allocates a cell.
  • A failed parse leaves the cell untouched and raises a ParseError.

- SliceTarget[_T] (StringSlice, UUIDSlice, URLSlice)
  • clear / append-one-parsed-item / join / get over a (possibly caller-owned) list.
  • The list is mutated in place so callers holding it observe every write.

- ListValue
  • Splits its input on a delimiter (default ",") and feeds each piece to a SliceTarget.
  • Parsing always clears first; a failing piece stops the parse and leaves the
    already-appended prefix in the target (no rollback to the pre-parse contents).

Every value exposes parse(text), render(), and get(): the contract FlagSet.var() expects.

Quick example
    >>> urls = []
    >>> value = ListValue(URLSlice(urls), ";")
    >>> value.parse("http://a.example/;http://b.example/")
    >>> [str(url) for url in urls]
    ['http://a.example/', 'http://b.example/']
"""
from .codecs import IDENTIFIER, INTEGER, LOCATOR, TEXT
from .utils import Unset, coalesce

DEFAULT_DELIMITER = ","


class Ref[_T]:
    """
    mutable storage cell shared between a value adapter and its owner.
    """
    __slots__ = ("value",)

    def __init__(self, value, /):
        self.value = value

    def __repr__(self):
        return "ref(%r)" % (self.value,)


class Scalar[_T]:
    """
    typed scalar flag value.

    parameters
    - codec: parse/format capability of the element type (see argtree.codecs).
    - cell: Ref | Unset. When given, parse() writes through it (two-way binding).

    behavior
    - render(): zero value's text when unbound, otherwise the current value's text.
    - parse(text): allocates a zero-valued cell when unbound, then overwrites it in
      place on success; on failure raises the codec's ParseError and keeps the old value.
    - get(): zero value when unbound, otherwise the current value.
    """

    def __init__(self, codec, cell=Unset, /):
        if not isinstance(cell, Ref | Unset):
            raise TypeError(f"{type(self).__name__} cell must be a ref")
        self._codec = codec
        self._cell = coalesce(cell)

    @property
    def cell(self):
        return self._cell

    @property
    def zero(self):
        return self._codec.format(self._codec.zero())

    def render(self):
        if self._cell is None:
            return self.zero
        return self._codec.format(self._cell.value)

    def parse(self, text, /):
        if self._cell is None:
            self._cell = Ref(self._codec.zero())
        self._cell.value = self._codec.parse(text)

    def get(self):
        if self._cell is None:
            return self._codec.zero()
        return self._cell.value

    def __str__(self):
        return self.render()

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.render())


class UUIDValue(Scalar):
    def __init__(self, cell=Unset, /):
        super().__init__(IDENTIFIER, cell)


class URLValue(Scalar):
    def __init__(self, cell=Unset, /):
        super().__init__(LOCATOR, cell)


class StringValue(Scalar):
    def __init__(self, cell=Unset, /):
        super().__init__(TEXT, cell)


class IntegerValue(Scalar):
    def __init__(self, cell=Unset, /):
        super().__init__(INTEGER, cell)


class SliceTarget[_T]:
    """
    list-backed target for ListValue.

    parameters
    - codec: parse/format capability of the element type.
    - target: list | Unset. A caller-owned list is cleared and appended in place.

    contract
    - clear(): empty the list.
    - append(item): parse one piece and append it; returns self. Raises ParseError.
    - join(delimiter): render every element and join them.
    - get(): the list itself (an empty list, never None, when nothing was set).
    """

    def __init__(self, codec, target=Unset, /):
        if not isinstance(target, list | Unset):
            raise TypeError(f"{type(self).__name__} target must be a list")
        self._codec = codec
        self._target = coalesce(target)

    def _safe(self):
        if self._target is None:
            self._target = []
        return self._target

    def clear(self):
        self._safe().clear()

    def append(self, item, /):
        value = self._codec.parse(item)
        self._safe().append(value)
        return self

    def join(self, delimiter, /):
        return delimiter.join(map(self._codec.format, self._safe()))

    def get(self):
        return self._safe()

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self._safe())


class StringSlice(SliceTarget):
    def __init__(self, target=Unset, /):
        super().__init__(TEXT, target)


class UUIDSlice(SliceTarget):
    def __init__(self, target=Unset, /):
        super().__init__(IDENTIFIER, target)


class URLSlice(SliceTarget):
    def __init__(self, target=Unset, /):
        super().__init__(LOCATOR, target)


class ListValue:
    """
    delimited-list flag value.

    parameters
    - target: SliceTarget | Unset. When Unset, a StringSlice is created on first use.
    - delimiter: separator; "" means DEFAULT_DELIMITER (",").

    behavior
    - render(): "" without a target, otherwise the target joined on the delimiter.
    - parse(text): split, clear the target, append each piece in order; the first
      failing piece raises and later pieces are not attempted.
    - get(): the target's list (empty when never set).
    """
    zero = ""

    def __init__(self, target=Unset, delimiter="", /):
        if not isinstance(delimiter, str):
            raise TypeError("ListValue delimiter must be a string")
        self._target = coalesce(target)
        self._delimiter = delimiter

    @property
    def delimiter(self):
        return self._delimiter or DEFAULT_DELIMITER

    @property
    def target(self):
        return self._target

    def render(self):
        if self._target is None:
            return ""
        return self._target.join(self.delimiter)

    def parse(self, text, /):
        pieces = text.split(self.delimiter)
        if self._target is None:
            self._target = StringSlice()
        self._target.clear()
        for piece in pieces:
            self._target = self._target.append(piece)

    def get(self):
        if self._target is None:
            self._target = StringSlice()
        return self._target.get()

    def __str__(self):
        return self.render()

    def __repr__(self):
        return "ListValue(%r, delimiter=%r)" % (self.render(), self.delimiter)


__all__ = (
    "DEFAULT_DELIMITER",
    "Ref",
    "Scalar",
    "UUIDValue",
    "URLValue",
    "StringValue",
    "IntegerValue",
    "SliceTarget",
    "StringSlice",
    "UUIDSlice",
    "URLSlice",
    "ListValue",
)
