"""
Record parser: Go source directory -> Package model.

Reads every non-test, non-generated ``.go`` file in a directory, extracts
struct declarations with their fields and struct tags, keeps the structs
that carry both identity fields, and resolves the package import path from
the nearest ``go.mod``.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..core.schema import (
    Package,
    Entity,
    Field,
    DirectiveSet,
    UID_JSON_NAME,
    DTYPE_JSON_NAME,
)
from ...logging_config import get_logger
from .errors import ParseError, TagSyntaxError, NoEntitiesError
from .lexer import (
    Token,
    TokenStream,
    tokenize,
    unquote_go_string,
    IDENT,
    STRING,
    RAW_STRING,
    NUMBER,
    OP,
    NEWLINE,
    EOF,
)
from .tags import parse_struct_tag, parse_json_tag, parse_directives

logger = get_logger(__name__)

GENERATED_MARKER = re.compile(r"^// Code generated .* DO NOT EDIT\.$")
MODULE_MANIFEST = "go.mod"

_OPENERS = {"(", "[", "{"}
_CLOSERS = {")", "]", "}"}
_WORDLIKE = {IDENT, NUMBER}


@dataclass
class RawField:
    """A field line of a struct as written in source."""

    names: List[str]
    type_expr: str
    base_type: str
    is_pointer: bool
    is_slice: bool
    qualifier: Optional[str]
    tag: Optional[str]
    line: int
    embedded: bool = False


@dataclass
class StructDecl:
    """A named struct type declaration."""

    name: str
    fields: List[RawField]
    line: int
    generic: bool = False


@dataclass
class GoFile:
    """Declarations extracted from one Go source file."""

    path: str
    package: str
    imports: Dict[str, str] = field(default_factory=dict)
    structs: List[StructDecl] = field(default_factory=list)


def is_generated(source: str) -> bool:
    """Return True if the file carries a generated-code marker before its package clause."""
    for line in source.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if not stripped.startswith("//"):
            return False
        if GENERATED_MARKER.match(stripped):
            return True
    return False


def default_import_alias(import_path: str) -> str:
    """Guess the package name Go binds for an import path without an alias."""
    segments = [s for s in import_path.split("/") if s]
    if not segments:
        return import_path
    name = segments[-1]
    if re.fullmatch(r"v\d+", name) and len(segments) > 1:
        name = segments[-2]
    if name.startswith("go-"):
        name = name[3:]
    name = re.sub(r"\.v\d+$", "", name)
    return re.sub(r"[^A-Za-z0-9_]", "_", name)


class GoFileParser:
    """Parses the package clause, imports and struct types of a Go file."""

    def __init__(self, source: str, filename: str = "<source>"):
        self.filename = filename
        self.stream = TokenStream(tokenize(source, filename), filename)

    def parse(self) -> GoFile:
        stream = self.stream
        stream.skip_newlines()
        package_token = stream.next()
        if not package_token.is_ident("package"):
            raise ParseError("missing package clause", file=self.filename, line=package_token.line)
        go_file = GoFile(path=self.filename, package=stream.expect_ident().value)

        while True:
            stream.skip_newlines()
            token = stream.peek()
            if token.kind == EOF:
                break
            if token.is_ident("import"):
                stream.next()
                self._parse_imports(go_file)
            elif token.is_ident("type"):
                stream.next()
                self._parse_type_decl(go_file)
            else:
                self._skip_statement()

        return go_file

    # -- imports ----------------------------------------------------------

    def _parse_imports(self, go_file: GoFile) -> None:
        stream = self.stream
        if stream.peek().is_op("("):
            stream.next()
            while True:
                stream.skip_newlines()
                if stream.peek().is_op(")"):
                    stream.next()
                    return
                if stream.at_end():
                    raise ParseError("unterminated import group", file=self.filename)
                self._parse_import_spec(go_file)
        else:
            self._parse_import_spec(go_file)

    def _parse_import_spec(self, go_file: GoFile) -> None:
        stream = self.stream
        alias = None
        token = stream.peek()
        if token.kind == IDENT or token.is_op(".") or token.is_op("_"):
            alias = stream.next().value
        path_token = stream.next()
        if path_token.kind == STRING:
            path = unquote_go_string(path_token.value)
        elif path_token.kind == RAW_STRING:
            path = path_token.value[1:-1]
        else:
            raise ParseError(
                f"expected import path, found {path_token.value!r}",
                file=self.filename,
                line=path_token.line,
            )
        if alias in (".", "_"):
            return
        go_file.imports[alias or default_import_alias(path)] = path

    # -- type declarations ------------------------------------------------

    def _parse_type_decl(self, go_file: GoFile) -> None:
        stream = self.stream
        if stream.peek().is_op("("):
            stream.next()
            while True:
                stream.skip_newlines()
                if stream.peek().is_op(")"):
                    stream.next()
                    return
                if stream.at_end():
                    raise ParseError("unterminated type group", file=self.filename)
                self._parse_type_spec(go_file)
        else:
            self._parse_type_spec(go_file)

    def _parse_type_spec(self, go_file: GoFile) -> None:
        stream = self.stream
        name_token = stream.expect_ident()
        generic = False
        if stream.peek().is_op("["):
            stream.skip_balanced()
            generic = True
        if stream.peek().is_op("="):
            stream.next()

        if stream.peek().is_ident("struct"):
            stream.next()
            fields = self._parse_struct_body(name_token.value)
            go_file.structs.append(
                StructDecl(name=name_token.value, fields=fields, line=name_token.line, generic=generic)
            )
        else:
            self._skip_statement()

    def _parse_struct_body(self, type_name: str) -> List[RawField]:
        stream = self.stream
        stream.expect_op("{")
        fields = []
        while True:
            stream.skip_newlines()
            token = stream.peek()
            if token.is_op("}"):
                stream.next()
                return fields
            if token.kind == EOF:
                raise ParseError(
                    "unterminated struct body", file=self.filename, line=token.line, type_name=type_name
                )
            line_tokens = self._collect_line()
            if line_tokens:
                fields.append(self._build_field(type_name, line_tokens))

    def _collect_line(self) -> List[Token]:
        """Collect tokens up to the end of the current field line."""
        stream = self.stream
        collected = []
        depth = 0
        while True:
            token = stream.peek()
            if token.kind == EOF:
                return collected
            if depth == 0 and (token.kind == NEWLINE or token.is_op(";") or token.is_op("}")):
                return collected
            stream.next()
            if token.kind == OP and token.value in _OPENERS:
                depth += 1
            elif token.kind == OP and token.value in _CLOSERS:
                depth -= 1
            if token.kind == NEWLINE:
                continue
            collected.append(token)

    def _build_field(self, type_name: str, tokens: List[Token]) -> RawField:
        line = tokens[0].line
        tag = None
        if tokens[-1].kind in (STRING, RAW_STRING) and len(tokens) > 1:
            tag_token = tokens.pop()
            if tag_token.kind == RAW_STRING:
                tag = tag_token.value[1:-1]
            else:
                tag = unquote_go_string(tag_token.value)

        names: List[str] = []
        type_tokens = tokens
        if self._is_embedded(tokens):
            type_tokens = tokens
        elif len(tokens) > 1 and tokens[0].kind == IDENT and tokens[1].is_op(","):
            i = 0
            while i < len(tokens) and tokens[i].kind == IDENT:
                names.append(tokens[i].value)
                if i + 1 < len(tokens) and tokens[i + 1].is_op(","):
                    i += 2
                else:
                    i += 1
                    break
            type_tokens = tokens[i:]
        else:
            names = [tokens[0].value]
            type_tokens = tokens[1:]

        if not type_tokens:
            raise ParseError(
                "field has no type",
                file=self.filename,
                line=line,
                type_name=type_name,
                field_name=names[0] if names else None,
            )

        base_type, is_pointer, is_slice, qualifier = _type_shape(type_tokens)
        return RawField(
            names=names,
            type_expr=_join_type(type_tokens),
            base_type=base_type,
            is_pointer=is_pointer,
            is_slice=is_slice,
            qualifier=qualifier,
            tag=tag,
            line=line,
            embedded=not names,
        )

    @staticmethod
    def _is_embedded(tokens: List[Token]) -> bool:
        values = [t.value for t in tokens]
        kinds = [t.kind for t in tokens]
        if values and values[0] == "*":
            values, kinds = values[1:], kinds[1:]
        if kinds == [IDENT]:
            return True
        return len(kinds) == 3 and kinds[0] == IDENT and values[1] == "." and kinds[2] == IDENT

    def _skip_statement(self) -> None:
        """Skip a top-level or grouped declaration up to its line end."""
        stream = self.stream
        while True:
            token = stream.peek()
            if token.kind in (EOF, NEWLINE) or token.is_op(";"):
                return
            if token.kind == OP and token.value in _OPENERS:
                stream.skip_balanced()
                continue
            if token.kind == OP and token.value in _CLOSERS:
                return
            stream.next()


def _join_type(tokens: List[Token]) -> str:
    parts = []
    previous: Optional[Token] = None
    for token in tokens:
        if previous is not None:
            if previous.kind in _WORDLIKE and token.kind in _WORDLIKE:
                parts.append(" ")
            elif previous.is_op(")") and token.kind == IDENT:
                parts.append(" ")
            elif previous.is_op(","):
                parts.append(" ")
        parts.append(token.value)
        previous = token
    return "".join(parts)


def _type_shape(tokens: List[Token]) -> Tuple[str, bool, bool, Optional[str]]:
    """Strip pointer and slice prefixes; return (base, pointer, slice, qualifier)."""
    is_pointer = False
    is_slice = False
    i = 0
    while i < len(tokens):
        if tokens[i].is_op("*"):
            is_pointer = True
            i += 1
        elif tokens[i].is_op("[") and i + 1 < len(tokens) and tokens[i + 1].is_op("]"):
            is_slice = True
            i += 2
        else:
            break
    rest = tokens[i:]
    qualifier = None
    if len(rest) == 3 and rest[0].kind == IDENT and rest[1].is_op(".") and rest[2].kind == IDENT:
        qualifier = rest[0].value
    return _join_type(rest), is_pointer, is_slice, qualifier


def parse_go_file(path: Union[str, Path]) -> Optional[GoFile]:
    """Parse one Go file; generated files yield None."""
    path = Path(path)
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"cannot read file: {e}", file=str(path)) from e

    if is_generated(source):
        logger.debug("Skipping generated file %s", path.name)
        return None
    return GoFileParser(source, filename=str(path)).parse()


def find_module(directory: Path) -> Tuple[str, Path]:
    """Find the enclosing go.mod and return (module path, module root).

    Raises:
        ParseError: If no manifest exists in the directory or any parent,
            or the manifest has no module directive.
    """
    directory = directory.resolve()
    for candidate in [directory, *directory.parents]:
        manifest = candidate / MODULE_MANIFEST
        if manifest.is_file():
            content = manifest.read_text(encoding="utf-8")
            match = re.search(r'^\s*module\s+"?([^\s"]+)"?', content, re.MULTILINE)
            if not match:
                raise ParseError("no module directive", file=str(manifest))
            return match.group(1), candidate
    raise ParseError(f"no {MODULE_MANIFEST} found in {directory} or any parent directory")


def resolve_import_path(directory: Path) -> Tuple[str, str]:
    """Return (module path, import path) for a package directory."""
    module_path, root = find_module(directory)
    relative = directory.resolve().relative_to(root).as_posix()
    if relative in ("", "."):
        return module_path, module_path
    return module_path, f"{module_path}/{relative}"


def build_entity(decl: StructDecl, go_file: GoFile) -> Optional[Entity]:
    """Turn a struct declaration into an Entity, or None if it lacks identity fields.

    Raises:
        TagSyntaxError: If a field's struct tag or directives are malformed.
    """
    entity = Entity(name=decl.name, source_file=Path(go_file.path).name, imports=dict(go_file.imports))
    uid_field = None
    dtype_field = None

    for raw in decl.fields:
        if raw.embedded:
            continue
        for name in raw.names:
            if not name[:1].isupper():
                continue
            try:
                tags = parse_struct_tag(raw.tag or "")
                json_name, _ = parse_json_tag(tags.get("json"), name)
                directives = parse_directives(tags["dgraph"]) if "dgraph" in tags else DirectiveSet()
            except TagSyntaxError as e:
                err = e.with_context(file=go_file.path, line=raw.line, type_name=decl.name, field_name=name)
                logger.error("%s", err)
                raise err from e
            if json_name is None:
                continue

            if json_name == UID_JSON_NAME and raw.type_expr == "string":
                uid_field = name
            elif json_name == DTYPE_JSON_NAME and raw.type_expr == "[]string":
                dtype_field = name

            entity.add_field(
                Field(
                    name=name,
                    go_type=raw.type_expr,
                    json_name=json_name,
                    directives=directives,
                    line=raw.line,
                    base_type=raw.base_type,
                    is_pointer=raw.is_pointer,
                    is_slice=raw.is_slice,
                    qualifier=raw.qualifier,
                )
            )

    if decl.generic or uid_field is None or dtype_field is None:
        return None

    entity.uid_field = uid_field
    entity.dtype_field = dtype_field
    return entity


def parse_package(directory: Union[str, Path]) -> Package:
    """
    Parse a Go package directory into a Package model.

    Args:
        directory: Directory holding the Go source files

    Returns:
        Package with entities in file-name then declaration order. The model
        is not yet inferred: field kinds and predicates are unset.

    Raises:
        ParseError: On unreadable or malformed source, a missing go.mod, or
            files declaring different packages.
        NoEntitiesError: If no struct qualifies as an entity.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ParseError(f"not a directory: {directory}")

    files = sorted(
        p for p in directory.iterdir()
        if p.suffix == ".go" and not p.name.endswith("_test.go") and p.is_file()
    )
    logger.debug("Scanning %d Go files in %s", len(files), directory)

    package_name = None
    package_imports: Dict[str, str] = {}
    struct_names: List[str] = []
    entities: List[Entity] = []

    for path in files:
        go_file = parse_go_file(path)
        if go_file is None:
            continue
        if package_name is None:
            package_name = go_file.package
        elif go_file.package != package_name:
            raise ParseError(
                f"found packages {package_name} and {go_file.package} in {directory}",
                file=str(path),
            )
        package_imports.update(go_file.imports)

        for decl in go_file.structs:
            struct_names.append(decl.name)
            entity = build_entity(decl, go_file)
            if entity is None:
                logger.debug("Struct %s is not an entity (missing identity fields)", decl.name)
                continue
            entities.append(entity)

    if not entities:
        raise NoEntitiesError(
            f"no entities found in {directory}: a struct needs a `uid` string field "
            f"and a `dgraph.type` []string field"
        )

    module_path, import_path = resolve_import_path(directory)

    package = Package(
        name=package_name,
        import_path=import_path,
        directory=str(directory.resolve()),
        module_path=module_path,
        entities=entities,
        imports=package_imports,
        struct_names=struct_names,
    )
    logger.info("Parsed package %s (%s): %d entities", package.name, package.import_path, len(entities))
    return package
