"""
Go identifier rules for generated code.

Field names become unexported locals in the generated methods
(``Films`` -> ``films``); a local that would shadow a keyword, a
predeclared identifier or one of the generator's own locals gets a
``Value`` suffix instead.
"""

from ...core.naming import NameSanitizer, NamingCase, lower_first


GO_KEYWORDS = frozenset(
    """
    break case chan const continue default defer else fallthrough for func
    go goto if import interface map package range return select struct
    switch type var
    """.split()
)

# Predeclared types, constants and functions (universe block, Go 1.21+)
GO_PREDECLARED = frozenset(
    """
    any bool byte comparable complex64 complex128 error float32 float64 int
    int8 int16 int32 int64 rune string uint uint8 uint16 uint32 uint64
    uintptr true false iota nil append cap clear close complex copy delete
    imag len make max min new panic print println real recover
    """.split()
)

# Locals the generated methods declare themselves
GENERATED_LOCALS = frozenset({"c", "ctx", "v", "q", "o", "err", "child", "opts"})


def create_go_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for Go."""
    return NameSanitizer(set(GO_KEYWORDS), set(GO_PREDECLARED | GENERATED_LOCALS))


def local_name(sanitizer: NameSanitizer, name: str) -> str:
    """Unexported local variable for a Go field name: ``Films`` -> ``films``."""
    candidate = lower_first(name)
    if sanitizer.is_reserved(candidate):
        return sanitizer.sanitize_name(candidate, NamingCase.CAMEL_CASE, suffix_on_conflict="Value")
    return candidate
