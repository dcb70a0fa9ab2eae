"""
Go type helpers for code generation.

Import resolution for field types and the table of typed query-builder
methods each index kind contributes.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Tuple

from ...core.schema import Field, FieldKind

_QUALIFIED_NAME = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\.[A-Za-z_]")


def type_qualifiers(go_type: str) -> List[str]:
    """Package aliases referenced by a type expression, in order of appearance."""
    seen = []
    for alias in _QUALIFIED_NAME.findall(go_type):
        if alias not in seen:
            seen.append(alias)
    return seen


def is_stdlib_import(path: str) -> bool:
    """Standard library import paths have no dot in their first element."""
    return "." not in path.split("/", 1)[0]


def field_imports(fields: Iterable[Field], imports: Dict[str, str]) -> Tuple[List[str], List[str]]:
    """
    Resolve the imports a set of field types needs.

    Aliases missing from ``imports`` are skipped. Each distinct package
    appears once no matter how many fields reference it.

    Returns:
        (stdlib paths, external paths), each sorted
    """
    stdlib = set()
    external = set()
    for f in fields:
        for alias in type_qualifiers(f.go_type):
            path = imports.get(alias)
            if path is None:
                continue
            (stdlib if is_stdlib_import(path) else external).add(path)
    return sorted(stdlib), sorted(external)


def external_imports(fields: Iterable[Field], imports: Dict[str, str]) -> List[str]:
    """Sorted, de-duplicated non-stdlib import paths used by field types."""
    return field_imports(fields, imports)[1]


@dataclass(frozen=True)
class QueryMethod:
    """
    A typed filter method on a generated query builder.

    ``expr`` is a Go expression returning the DQL filter; ``{predicate}``
    is replaced with the field's predicate.
    """

    suffix: str
    params: str
    expr: str
    doc: str
    imports: FrozenSet[str] = field(default_factory=frozenset)

    def render_expr(self, predicate: str) -> str:
        return self.expr.replace("{predicate}", predicate)


def _comparisons(go_param: str, var_type: str, convert: str, imports=frozenset()) -> List[QueryMethod]:
    return [
        QueryMethod(
            suffix,
            f"value {go_param}",
            f'fmt.Sprintf("{fn}({{predicate}}, %s)", q.vars.bind("{var_type}", {convert}))',
            doc,
            frozenset(imports),
        )
        for suffix, fn, doc in (
            ("Eq", "eq", "equals value"),
            ("Gt", "gt", "is greater than value"),
            ("Lt", "lt", "is less than value"),
        )
    ]


_EQ_STRING = QueryMethod(
    "Eq",
    "value string",
    'fmt.Sprintf("eq({predicate}, %s)", q.vars.bind("string", value))',
    "equals value",
)

_DATETIME = _comparisons("time.Time", "string", "value.Format(time.RFC3339)", {"time"})

QUERY_METHODS: Dict[str, List[QueryMethod]] = {
    "exact": [_EQ_STRING],
    "hash": [_EQ_STRING],
    "term": [
        QueryMethod(
            "AllOfTerms",
            "terms string",
            'fmt.Sprintf("allofterms({predicate}, %s)", q.vars.bind("string", terms))',
            "contains all of terms",
        ),
        QueryMethod(
            "AnyOfTerms",
            "terms string",
            'fmt.Sprintf("anyofterms({predicate}, %s)", q.vars.bind("string", terms))',
            "contains any of terms",
        ),
    ],
    "fulltext": [
        QueryMethod(
            "AllOfText",
            "text string",
            'fmt.Sprintf("alloftext({predicate}, %s)", q.vars.bind("string", text))',
            "matches all words of text, after stemming",
        ),
        QueryMethod(
            "AnyOfText",
            "text string",
            'fmt.Sprintf("anyoftext({predicate}, %s)", q.vars.bind("string", text))',
            "matches any word of text, after stemming",
        ),
    ],
    "trigram": [
        QueryMethod(
            "Regexp",
            "pattern string",
            'fmt.Sprintf("regexp({predicate}, /%s/)", pattern)',
            "matches pattern",
        ),
    ],
    "int": _comparisons("int64", "int", "strconv.FormatInt(value, 10)", {"strconv"}),
    "float": _comparisons("float64", "float", "strconv.FormatFloat(value, 'f', -1, 64)", {"strconv"}),
    "bool": [
        QueryMethod(
            "Eq",
            "value bool",
            'fmt.Sprintf("eq({predicate}, %s)", q.vars.bind("bool", strconv.FormatBool(value)))',
            "equals value",
            frozenset({"strconv"}),
        ),
    ],
    "day": _DATETIME,
    "month": _DATETIME,
    "year": _DATETIME,
    "hour": _DATETIME,
    "geo": [
        QueryMethod(
            "Near",
            "lon, lat float64, meters int",
            'fmt.Sprintf("near({predicate}, [%g, %g], %d)", lon, lat, meters)',
            "lies within meters of the point lon, lat",
        ),
    ],
    "hnsw": [
        QueryMethod(
            "SimilarTo",
            "vector []float32, k int",
            'fmt.Sprintf("similar_to({predicate}, %d, %q)", k, formatVector(vector))',
            "is among the k nearest neighbours of vector",
        ),
    ],
}


def query_methods(f: Field) -> List[QueryMethod]:
    """Filter methods for a scalar field, one per distinct suffix, in index order."""
    if f.kind not in (FieldKind.SCALAR, FieldKind.COMPOUND):
        return []
    methods: Dict[str, QueryMethod] = {}
    for index in f.directives.index_names:
        for method in QUERY_METHODS.get(index, []):
            methods.setdefault(method.suffix, method)
    return list(methods.values())
