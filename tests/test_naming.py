"""Tests for case conversion and identifier sanitization."""

import pytest

from graphgen.codegen.core.naming import (
    NameSanitizer,
    NamingCase,
    lower_first,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
    with_article,
)
from graphgen.codegen.languages.go.naming import create_go_sanitizer, local_name


class TestCaseConversion:
    """Case conversion helpers."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("ContentRating", "content_rating"),
            ("HTTPServer", "http_server"),
            ("InitialReleaseDate", "initial_release_date"),
            ("UserID", "user_id"),
            ("Film", "film"),
            ("UID", "uid"),
            ("film-db", "film_db"),
        ],
    )
    def test_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    @pytest.mark.parametrize(
        "name",
        ["ContentRating", "HTTPServer", "InitialReleaseDate", "XMLHTTPRequest", "GeoJSONPoint"],
    )
    def test_snake_case_round_trip(self, name):
        """Splitting and re-joining recovers the name up to case."""
        parts = to_snake_case(name).split("_")
        assert all(parts)
        assert "".join(p.capitalize() for p in parts).lower() == name.lower()

    def test_camel_pascal_kebab(self):
        assert to_camel_case("content_rating") == "contentRating"
        assert to_pascal_case("content_rating") == "ContentRating"
        assert to_kebab_case("ContentRating") == "content-rating"

    @pytest.mark.parametrize(
        "name, expected",
        [("UID", "uid"), ("HTTPServer", "httpServer"), ("Film", "film"), ("films", "films"), ("", "")],
    )
    def test_lower_first(self, name, expected):
        assert lower_first(name) == expected

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Actor", "an Actor"),
            ("Film", "a Film"),
            ("Update", "an Update"),
            ("User", "a User"),
            ("Unit", "a Unit"),
            ("Episode", "an Episode"),
        ],
    )
    def test_with_article(self, name, expected):
        assert with_article(name) == expected


class TestNameSanitizer:
    """Reserved word handling."""

    def test_reserved_word_gets_suffix(self):
        sanitizer = NameSanitizer(reserved_words={"type"})
        assert sanitizer.sanitize_name("type", NamingCase.SNAKE_CASE) == "type_"
        assert sanitizer.sanitize_name("Type", NamingCase.CAMEL_CASE, "Value") == "typeValue"

    def test_invalid_characters_are_replaced(self):
        sanitizer = NameSanitizer()
        assert sanitizer.sanitize_name("first name!", NamingCase.SNAKE_CASE) == "first_name"

    def test_go_local_names(self):
        sanitizer = create_go_sanitizer()
        assert local_name(sanitizer, "Films") == "films"
        assert local_name(sanitizer, "Type") == "typeValue"
        assert local_name(sanitizer, "Max") == "maxValue"
        # collides with a local the generated methods declare
        assert local_name(sanitizer, "Ctx") == "ctxValue"
