"""Tests for struct tag and dgraph directive parsing."""

import pytest

from graphgen.codegen.core.schema import DirectiveSet
from graphgen.codegen.parser import TagSyntaxError, parse_directives, parse_json_tag, parse_struct_tag


class TestStructTag:
    def test_key_value_pairs(self):
        tags = parse_struct_tag('json:"name,omitempty" dgraph:"index=exact"')
        assert dict(tags) == {"json": "name,omitempty", "dgraph": "index=exact"}

    def test_escaped_quotes_in_value(self):
        tags = parse_struct_tag(r'dgraph:"index=hnsw(metric:\"cosine\")"')
        assert tags["dgraph"] == 'index=hnsw(metric:"cosine")'

    def test_empty_tag(self):
        assert dict(parse_struct_tag("")) == {}

    @pytest.mark.parametrize(
        "tag, message",
        [
            ('json:"name', "unterminated value"),
            ("json:name", "malformed struct tag"),
            ('json:"a" json:"b"', "duplicate struct tag key"),
        ],
    )
    def test_malformed(self, tag, message):
        with pytest.raises(TagSyntaxError, match=message):
            parse_struct_tag(tag)


class TestJSONTag:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ("Name", [])),
            ("name", ("name", [])),
            (",omitempty", ("Name", ["omitempty"])),
            ("name,omitempty", ("name", ["omitempty"])),
            ("-", (None, [])),
            ("-,", ("-", [])),
        ],
    )
    def test_names(self, value, expected):
        assert parse_json_tag(value, "Name") == expected


class TestDirectives:
    def test_full_set(self):
        directives = parse_directives("predicate=film_title index=exact,term unique upsert count")
        assert directives.predicate == "film_title"
        assert directives.index_names == ["exact", "term"]
        assert directives.unique and directives.upsert and directives.count
        assert not directives.reverse and not directives.lang

    def test_reverse_predicate(self):
        assert parse_directives("predicate=~director.film").predicate == "~director.film"

    def test_type_hint(self):
        assert parse_directives("type=datetime").type_hint == "datetime"

    def test_similarity_parameters(self):
        directives = parse_directives('index=hnsw(metric:"cosine", exponent:"4")')
        index = directives.indexes[0]
        assert index.name == "hnsw"
        assert index.params == {"metric": "cosine", "exponent": "4"}
        assert str(index) == 'hnsw(metric:"cosine",exponent:"4")'

    def test_bare_parameter_value(self):
        assert parse_directives("index=hnsw(metric:euclidean)").indexes[0].params == {"metric": "euclidean"}

    def test_empty(self):
        assert parse_directives("").is_empty()
        assert parse_directives("   ") == DirectiveSet()

    @pytest.mark.parametrize(
        "text, message",
        [
            ("index=bogus", "unknown index kind"),
            ("colour=red", "unknown directive"),
            ("unique=yes", "does not take a value"),
            ("index", "requires a value"),
            ("index=", "missing value"),
            ('index=exact(metric:"cosine")', "does not accept parameter"),
            ('index=hnsw(metric:"manhattan")', "unknown similarity metric"),
            ('index=hnsw(metric:"cosine"', "unterminated parameter list"),
            ("index=hnsw()", "empty parameter list"),
            ("type=secret", "unknown type hint"),
            ("unique unique", "more than once"),
            ("predicate=a,b", "single plain value"),
            ('index=exact "x"', "expected WORD"),
            ("index=exact;", "unexpected"),
        ],
    )
    def test_errors(self, text, message):
        with pytest.raises(TagSyntaxError, match=message):
            parse_directives(text)
