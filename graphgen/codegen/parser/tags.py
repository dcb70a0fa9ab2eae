"""
Struct tag parsing.

Two layers: :func:`parse_struct_tag` splits a Go struct tag into its
``key:"value"`` pairs following ``reflect.StructTag`` conventions, and
:func:`parse_directives` turns the value of the ``dgraph`` key into a typed
:class:`DirectiveSet`. Directive values form a small grammar::

    directives := item (SPACE item)*
    item       := KEY [ '=' value ]
    value      := atom (',' atom)*
    atom       := WORD [ '(' param (',' param)* ')' ]
    param      := WORD ':' (STRING | WORD)
"""

import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..core.schema import DirectiveSet, IndexSpec
from .errors import TagSyntaxError
from .lexer import unquote_go_string, ParseError


INDEX_KINDS = {
    "exact",
    "hash",
    "term",
    "fulltext",
    "trigram",
    "int",
    "float",
    "bool",
    "geo",
    "day",
    "month",
    "year",
    "hour",
    "hnsw",
}

TYPE_HINTS = {"geo", "datetime", "int", "float", "bool", "password", "string", "float32vector"}

FLAG_KEYS = ("unique", "upsert", "count", "lang", "reverse")
VALUE_KEYS = ("predicate", "index", "type")

INDEX_PARAMS = {
    "hnsw": {"metric", "exponent"},
}
SIMILARITY_METRICS = {"cosine", "euclidean", "dotproduct"}


def parse_struct_tag(tag: str) -> Dict[str, str]:
    """Split a struct tag into its key/value pairs.

    Args:
        tag: Tag content without the surrounding backquotes

    Returns:
        Ordered mapping of tag key to decoded value

    Raises:
        TagSyntaxError: If a key is not followed by a quoted value or a value
            is not terminated.
    """
    result: Dict[str, str] = OrderedDict()
    i = 0
    n = len(tag)

    while i < n:
        while i < n and tag[i] == " ":
            i += 1
        if i >= n:
            break

        start = i
        while i < n and tag[i] > " " and tag[i] not in ':"\x7f':
            i += 1
        key = tag[start:i]
        if not key or i + 1 >= n or tag[i] != ":" or tag[i + 1] != '"':
            raise TagSyntaxError(f"malformed struct tag near {tag[start:]!r}")
        i += 1

        value_start = i
        i += 1
        while i < n and tag[i] != '"':
            if tag[i] == "\\":
                i += 1
            i += 1
        if i >= n:
            raise TagSyntaxError(f"unterminated value for tag key {key!r}")
        i += 1

        try:
            value = unquote_go_string(tag[value_start:i])
        except ParseError as e:
            raise TagSyntaxError(f"bad value for tag key {key!r}: {e.reason}") from e
        if key in result:
            raise TagSyntaxError(f"duplicate struct tag key {key!r}")
        result[key] = value

    return result


def parse_json_tag(value: Optional[str], field_name: str) -> Tuple[Optional[str], List[str]]:
    """Return the serialization name and options of a ``json`` tag.

    An absent or empty name falls back to the Go field name; ``-`` means
    the field is not serialized and yields ``None``.
    """
    if value is None:
        return field_name, []
    name, _, rest = value.partition(",")
    options = [opt for opt in rest.split(",") if opt] if rest else []
    if value == "-":
        return None, []
    return name or field_name, options


# -- directive tokenizer ---------------------------------------------------

_DIRECTIVE_TOKENS = re.compile(
    r"""
    (?P<SPACE>\s+)
  | (?P<STRING>"(?:[^"\\]|\\.)*")
  | (?P<WORD>[A-Za-z0-9_.~@\-]+)
  | (?P<PUNCT>[=,():])
  | (?P<BAD>.)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class _DirectiveToken:
    kind: str
    value: str
    pos: int


def _tokenize_directives(text: str) -> List[_DirectiveToken]:
    tokens = []
    for match in _DIRECTIVE_TOKENS.finditer(text):
        kind = match.lastgroup
        value = match.group()
        if kind == "BAD":
            if value == '"':
                raise TagSyntaxError(f"unterminated string in directive at column {match.start() + 1}")
            raise TagSyntaxError(f"unexpected {value!r} in directive at column {match.start() + 1}")
        if kind == "PUNCT":
            kind = value
        tokens.append(_DirectiveToken(kind, value, match.start()))
    tokens.append(_DirectiveToken("END", "", len(text)))
    return tokens


class _DirectiveParser:
    """Recursive-descent parser over directive tokens."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize_directives(text)
        self.pos = 0

    def peek(self) -> _DirectiveToken:
        return self.tokens[self.pos]

    def advance(self) -> _DirectiveToken:
        token = self.tokens[self.pos]
        if token.kind != "END":
            self.pos += 1
        return token

    def skip_space(self) -> None:
        while self.peek().kind == "SPACE":
            self.advance()

    def expect(self, kind: str) -> _DirectiveToken:
        token = self.advance()
        if token.kind != kind:
            found = token.value or "end of directive"
            raise TagSyntaxError(f"expected {kind} but found {found!r} in {self.text!r}")
        return token

    def parse(self) -> List[Tuple[str, Optional[List[IndexSpec]]]]:
        items = []
        self.skip_space()
        while self.peek().kind != "END":
            items.append(self.parse_item())
            if self.peek().kind not in ("SPACE", "END"):
                raise TagSyntaxError(
                    f"unexpected {self.peek().value!r} after {items[-1][0]!r} in {self.text!r}"
                )
            self.skip_space()
        return items

    def parse_item(self) -> Tuple[str, Optional[List[IndexSpec]]]:
        key = self.expect("WORD").value
        if self.peek().kind != "=":
            return key, None
        self.advance()
        if self.peek().kind in ("SPACE", "END"):
            raise TagSyntaxError(f"unterminated directive {key!r}: missing value")
        atoms = [self.parse_atom()]
        while self.peek().kind == ",":
            self.advance()
            self.skip_space()
            atoms.append(self.parse_atom())
        return key, atoms

    def parse_atom(self) -> IndexSpec:
        name = self.expect("WORD").value
        params: Dict[str, str] = OrderedDict()
        if self.peek().kind == "(":
            self.advance()
            self.skip_space()
            if self.peek().kind == ")":
                raise TagSyntaxError(f"empty parameter list for {name!r}")
            while True:
                param = self.expect("WORD").value
                self.expect(":")
                token = self.advance()
                if token.kind == "STRING":
                    try:
                        value = unquote_go_string(token.value)
                    except ParseError as e:
                        raise TagSyntaxError(f"bad parameter {param!r} of {name!r}: {e.reason}") from e
                elif token.kind == "WORD":
                    value = token.value
                else:
                    raise TagSyntaxError(f"missing value for parameter {param!r} of {name!r}")
                if param in params:
                    raise TagSyntaxError(f"duplicate parameter {param!r} for {name!r}")
                params[param] = value
                self.skip_space()
                if self.peek().kind == ",":
                    self.advance()
                    self.skip_space()
                    continue
                if self.peek().kind == ")":
                    self.advance()
                    break
                raise TagSyntaxError(f"unterminated parameter list for {name!r}")
        return IndexSpec(name, dict(params))


def parse_directives(text: str) -> DirectiveSet:
    """Parse the value of a ``dgraph`` struct tag.

    Args:
        text: Directive string, e.g. ``predicate=film_title index=exact,term unique``

    Returns:
        Typed directive set

    Raises:
        TagSyntaxError: On syntax errors, unknown keys, unknown index kinds
            or type hints, misplaced parameters, and repeated keys.
    """
    directives = DirectiveSet()
    seen = set()

    for key, atoms in _DirectiveParser(text).parse():
        if key in seen:
            raise TagSyntaxError(f"directive {key!r} given more than once")
        seen.add(key)

        if key in FLAG_KEYS:
            if atoms is not None:
                raise TagSyntaxError(f"directive {key!r} does not take a value")
            setattr(directives, key, True)
            continue

        if key not in VALUE_KEYS:
            raise TagSyntaxError(f"unknown directive {key!r}")
        if atoms is None:
            raise TagSyntaxError(f"directive {key!r} requires a value")

        if key == "index":
            directives.indexes = [_validate_index(atom) for atom in atoms]
        else:
            if len(atoms) != 1 or atoms[0].params:
                raise TagSyntaxError(f"directive {key!r} takes a single plain value")
            value = atoms[0].name
            if key == "type":
                if value not in TYPE_HINTS:
                    raise TagSyntaxError(f"unknown type hint {value!r}")
                directives.type_hint = value
            else:
                directives.predicate = value

    return directives


def _validate_index(index: IndexSpec) -> IndexSpec:
    if index.name not in INDEX_KINDS:
        raise TagSyntaxError(f"unknown index kind {index.name!r}")

    allowed = INDEX_PARAMS.get(index.name, set())
    for param, value in index.params.items():
        if param not in allowed:
            raise TagSyntaxError(f"index {index.name!r} does not accept parameter {param!r}")
        if param == "metric" and value not in SIMILARITY_METRICS:
            raise TagSyntaxError(
                f"unknown similarity metric {value!r} (expected one of "
                f"{', '.join(sorted(SIMILARITY_METRICS))})"
            )
    return index
