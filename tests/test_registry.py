"""Tests for the template registry."""

import pytest

from graphgen.codegen import RegistryError, TemplateRegistry, TemplateScope, TemplateSpec, default_go_registry


class TestDefaultRegistry:
    def test_templates_by_scope(self):
        registry = default_go_registry()
        assert len(registry) == 7
        assert [s.output for s in registry.for_scope(TemplateScope.PACKAGE)] == [
            "client_gen.go",
            "page_options_gen.go",
            "iter_gen.go",
        ]
        assert [s.output_name("content_rating") for s in registry.for_scope(TemplateScope.ENTITY)] == [
            "content_rating_gen.go",
            "content_rating_options_gen.go",
            "content_rating_query_gen.go",
        ]
        assert [s.output for s in registry.for_scope(TemplateScope.COMMAND)] == ["main.go"]

    def test_templates_exist_on_disk(self):
        from graphgen.codegen.languages.go import GoClientGenerator

        generator = GoClientGenerator()
        for name in default_go_registry().list_templates():
            assert generator.template_exists(name), name


class TestTemplateRegistry:
    def test_duplicate_name(self):
        registry = TemplateRegistry()
        registry.register(TemplateSpec("a.j2", TemplateScope.PACKAGE, "a.go"))
        with pytest.raises(RegistryError, match="already registered"):
            registry.register(TemplateSpec("a.j2", TemplateScope.PACKAGE, "b.go"))

    def test_replace(self):
        registry = TemplateRegistry()
        registry.register(TemplateSpec("a.j2", TemplateScope.PACKAGE, "a.go"))
        registry.register(TemplateSpec("a.j2", TemplateScope.PACKAGE, "b.go"), replace=True)
        assert registry.get("a.j2").output == "b.go"

    def test_same_output_in_scope(self):
        registry = TemplateRegistry()
        registry.register(TemplateSpec("a.j2", TemplateScope.ENTITY, "{snake}.go"))
        with pytest.raises(RegistryError, match="both write"):
            registry.register(TemplateSpec("b.j2", TemplateScope.ENTITY, "{snake}.go"))
        registry.register(TemplateSpec("c.j2", TemplateScope.PACKAGE, "{snake}.go"))

    def test_unknown_template(self):
        registry = default_go_registry()
        with pytest.raises(RegistryError, match="Available: client.go.j2"):
            registry.get("missing.j2")

    def test_unregister(self):
        registry = default_go_registry()
        registry.unregister("cli.go.j2")
        assert "cli.go.j2" not in registry
        assert registry.for_scope(TemplateScope.COMMAND) == []

    def test_entity_output_needs_name(self):
        with pytest.raises(RegistryError, match="needs an entity name"):
            TemplateSpec("e.j2", TemplateScope.ENTITY, "{snake}_gen.go").output_name()
