"""Tests for the Go record parser."""

import pytest

from graphgen.codegen.parser import (
    GoFileParser,
    NoEntitiesError,
    ParseError,
    TagSyntaxError,
    default_import_alias,
    is_generated,
    parse_package,
)

from conftest import MOVIES_ENTITIES, entity_source


class TestMoviesPackage:
    """Parsing the movies fixture package."""

    def test_package_identity(self, movies_dir):
        package = parse_package(movies_dir)
        assert package.name == "movies"
        assert package.module_path == "github.com/example/moviesproject"
        assert package.import_path == "github.com/example/moviesproject/movies"

    def test_entities_in_file_then_declaration_order(self, movies_dir):
        package = parse_package(movies_dir)
        assert package.entity_names == MOVIES_ENTITIES

    def test_non_entity_structs_are_recorded(self, movies_dir):
        package = parse_package(movies_dir)
        assert "Award" in package.struct_names
        assert package.get_entity("Award") is None

    def test_unexported_and_skipped_fields(self, movies_dir):
        film = parse_package(movies_dir).get_entity("Film")
        names = [f.name for f in film.fields]
        assert "cached" not in names
        assert "Draft" not in names
        assert names[:3] == ["UID", "DType", "Name"]

    def test_field_shapes(self, movies_dir):
        package = parse_package(movies_dir)
        film = package.get_entity("Film")

        status = film.get_field("Status")
        assert status.qualifier == "enums"
        assert status.base_type == "enums.ReleaseStatus"
        assert film.imports["enums"] == "github.com/example/moviesproject/enums"

        directors = film.get_field("Directors")
        assert directors.go_type == "[]*Director"
        assert directors.is_slice and directors.is_pointer
        assert directors.base_type == "Director"
        assert directors.directives.predicate == "~director.film"

        loc = package.get_entity("Location").get_field("Loc")
        assert loc.go_type == "*geom.Point"
        assert loc.is_pointer and not loc.is_slice
        assert package.imports["geom"] == "github.com/twpayne/go-geom"

    def test_hnsw_parameters(self, movies_dir):
        embedding = parse_package(movies_dir).get_entity("Location").get_field("Embedding")
        assert embedding.directives.indexes[0].params == {"metric": "cosine"}

    def test_fields_are_not_inferred_yet(self, movies_dir):
        film = parse_package(movies_dir).get_entity("Film")
        assert all(f.kind is None for f in film.fields)
        assert all(f.predicate == "" for f in film.fields)


class TestDeclarations:
    """Struct declaration forms."""

    def test_identifier_lists_and_embedded_fields(self, make_package):
        pkg = make_package(
            {
                "person.go": """
                package app

                import "example.com/app/base"

                type Person struct {
                    base.Model
                    *Audit
                    UID   string   `json:"uid"`
                    DType []string `json:"dgraph.type"`
                    First, Last string
                    Tags map[string]string `json:"tags"`
                    OnSave func(ctx context.Context) error `json:"-"`
                }

                type Audit struct{ By string }
                """
            }
        )
        person = parse_package(pkg).get_entity("Person")
        assert [f.name for f in person.fields] == ["UID", "DType", "First", "Last", "Tags"]
        assert person.get_field("First").json_name == "First"
        assert person.get_field("Tags").go_type == "map[string]string"

    def test_identity_fields_need_exact_types(self, make_package):
        pkg = make_package(
            {
                "a.go": """
                package app

                type WrongUID struct {
                    UID   int      `json:"uid"`
                    DType []string `json:"dgraph.type"`
                }

                type Ok struct {
                    ID    string   `json:"uid"`
                    Types []string `json:"dgraph.type"`
                }
                """
            }
        )
        package = parse_package(pkg)
        assert package.entity_names == ["Ok"]
        ok = package.get_entity("Ok")
        assert (ok.uid_field, ok.dtype_field) == ("ID", "Types")

    def test_generic_structs_are_not_entities(self, make_package):
        pkg = make_package(
            {
                "a.go": """
                package app

                type Box[T any] struct {
                    UID   string   `json:"uid"`
                    DType []string `json:"dgraph.type"`
                    Value T        `json:"value"`
                }
                """,
                "b.go": entity_source("Thing"),
            }
        )
        assert parse_package(pkg).entity_names == ["Thing"]

    def test_functions_and_constants_are_skipped(self, make_package):
        pkg = make_package(
            {
                "a.go": """
                package app

                const (
                    A = iota
                    B
                )

                var defaults = map[string]int{"x": 1}

                type Kind int

                func (t *Thing) Label() string {
                    if t.UID == "" {
                        return "{new}"
                    }
                    return t.UID
                }
                """,
                "b.go": entity_source("Thing"),
            }
        )
        assert parse_package(pkg).entity_names == ["Thing"]

    def test_import_aliases(self):
        source = """package app

import mg "github.com/matthewmcneely/modusgraph"
import (
	_ "embed"
	. "strings"
	"gopkg.in/yaml.v3"
	"time"
)
"""
        go_file = GoFileParser(source).parse()
        assert go_file.imports == {
            "mg": "github.com/matthewmcneely/modusgraph",
            "yaml": "gopkg.in/yaml.v3",
            "time": "time",
        }

    @pytest.mark.parametrize(
        "path, alias",
        [
            ("github.com/twpayne/go-geom", "geom"),
            ("gopkg.in/yaml.v3", "yaml"),
            ("github.com/foo/bar/v2", "bar"),
            ("time", "time"),
            ("net/http", "http"),
        ],
    )
    def test_default_import_alias(self, path, alias):
        assert default_import_alias(path) == alias


class TestPackageDiscovery:
    """File selection and module resolution."""

    def test_generated_and_test_files_are_skipped(self, make_package):
        pkg = make_package(
            {
                "thing.go": entity_source("Thing"),
                "ghost_gen.go": "// Code generated by graphgen. DO NOT EDIT.\n\n" + entity_source("Ghost"),
                "thing_test.go": entity_source("Probe"),
            }
        )
        assert parse_package(pkg).entity_names == ["Thing"]

    def test_is_generated(self):
        assert is_generated("// Code generated by graphgen. DO NOT EDIT.\n\npackage app\n")
        assert is_generated("// Copyright notice\n\n// Code generated by mockgen. DO NOT EDIT.\npackage app\n")
        assert not is_generated("package app\n\n// Code generated by graphgen. DO NOT EDIT.\n")

    def test_nested_package_import_path(self, make_package):
        pkg = make_package({"thing.go": entity_source("Thing", package="model")}, subdir="internal/model")
        package = parse_package(pkg)
        assert package.name == "model"
        assert package.import_path == "example.com/app/internal/model"

    def test_missing_go_mod(self, tmp_path):
        (tmp_path / "thing.go").write_text(entity_source("Thing"), encoding="utf-8")
        with pytest.raises(ParseError, match="go.mod"):
            parse_package(tmp_path)

    def test_no_entities(self, make_package):
        pkg = make_package({"a.go": "package app\n\ntype Plain struct {\n\tName string\n}\n"})
        with pytest.raises(NoEntitiesError, match="no entities found"):
            parse_package(pkg)

    def test_mixed_packages(self, make_package):
        pkg = make_package({"a.go": entity_source("A"), "b.go": entity_source("B", package="other")})
        with pytest.raises(ParseError, match="found packages app and other"):
            parse_package(pkg)

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(ParseError, match="not a directory"):
            parse_package(tmp_path / "missing")


class TestParseErrors:
    """Errors carry file, line, type and field."""

    def test_bad_directive_location(self, make_package):
        pkg = make_package(
            {"film.go": entity_source("Film", 'Name string `json:"name" dgraph:"index=bogus"`')}
        )
        with pytest.raises(TagSyntaxError) as excinfo:
            parse_package(pkg)

        err = excinfo.value
        assert err.type_name == "Film"
        assert err.field_name == "Name"
        assert err.line == 6
        assert err.file.endswith("film.go")
        assert "film.go:6: Film.Name: unknown index kind 'bogus'" in str(err)

    def test_unterminated_struct(self, make_package):
        pkg = make_package({"a.go": "package app\n\ntype Thing struct {\n\tUID string\n"})
        with pytest.raises(ParseError, match="unterminated struct body"):
            parse_package(pkg)

    def test_missing_package_clause(self, make_package):
        pkg = make_package({"a.go": "type Thing struct{}\n"})
        with pytest.raises(ParseError, match="missing package clause"):
            parse_package(pkg)
