"""
Go record parser.

Turns a directory of Go struct declarations into the intermediate Package
model consumed by the inference engine.
"""

from .errors import ParseError, TagSyntaxError, NoEntitiesError
from .lexer import Token, TokenStream, tokenize, unquote_go_string
from .tags import parse_struct_tag, parse_json_tag, parse_directives
from .parser import (
    GoFile,
    GoFileParser,
    StructDecl,
    RawField,
    parse_go_file,
    parse_package,
    find_module,
    resolve_import_path,
    is_generated,
    default_import_alias,
)

__all__ = [
    "ParseError",
    "TagSyntaxError",
    "NoEntitiesError",
    "Token",
    "TokenStream",
    "tokenize",
    "unquote_go_string",
    "parse_struct_tag",
    "parse_json_tag",
    "parse_directives",
    "GoFile",
    "GoFileParser",
    "StructDecl",
    "RawField",
    "parse_go_file",
    "parse_package",
    "find_module",
    "resolve_import_path",
    "is_generated",
    "default_import_alias",
]
