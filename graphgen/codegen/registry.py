"""
Template registry for code generation.

Maps each template to the scope it renders against and the output file
it produces. Generators iterate the registry instead of hard-coding their
template list, so adding an artifact is a single registration.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class RegistryError(Exception):
    """Exception raised for registry-related errors."""

    pass


class TemplateScope(Enum):
    """What a template is rendered against."""

    PACKAGE = "package"  # once per package
    ENTITY = "entity"  # once per entity
    COMMAND = "command"  # once, into the command directory


@dataclass(frozen=True)
class TemplateSpec:
    """
    A registered template.

    ``output`` is a file name pattern; ``{snake}`` is replaced with the
    snake_case entity name for entity-scope templates.
    """

    name: str
    scope: TemplateScope
    output: str

    def output_name(self, snake: Optional[str] = None) -> str:
        if self.scope is TemplateScope.ENTITY:
            if snake is None:
                raise RegistryError(f"Template {self.name} needs an entity name")
            return self.output.format(snake=snake)
        return self.output


class TemplateRegistry:
    """Ordered collection of templates for one target language."""

    def __init__(self):
        """Initialize empty registry."""
        self._templates: Dict[str, TemplateSpec] = {}

    def register(self, spec: TemplateSpec, replace: bool = False):
        """
        Register a template.

        Args:
            spec: Template to add
            replace: If True, replace an existing registration with the same name

        Raises:
            RegistryError: If the name is taken, or another template of the
                same scope already writes the same output file
        """
        if spec.name in self._templates and not replace:
            raise RegistryError(f"Template '{spec.name}' is already registered")

        for other in self._templates.values():
            if other.name != spec.name and other.scope is spec.scope and other.output == spec.output:
                raise RegistryError(
                    f"Templates '{other.name}' and '{spec.name}' both write '{spec.output}'"
                )

        self._templates[spec.name] = spec

    def unregister(self, name: str):
        """Remove a template if registered."""
        self._templates.pop(name, None)

    def get(self, name: str) -> TemplateSpec:
        """
        Get a template by name.

        Raises:
            RegistryError: If the template is not registered
        """
        try:
            return self._templates[name]
        except KeyError:
            raise RegistryError(
                f"No template registered as: {name}. "
                f"Available: {', '.join(self.list_templates())}"
            ) from None

    def for_scope(self, scope: TemplateScope) -> List[TemplateSpec]:
        """Templates of one scope, in registration order."""
        return [spec for spec in self._templates.values() if spec.scope is scope]

    def list_templates(self) -> List[str]:
        return list(self._templates)

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)


def default_go_registry() -> TemplateRegistry:
    """Registry of the templates the Go client generator renders."""
    registry = TemplateRegistry()
    registry.register(TemplateSpec("client.go.j2", TemplateScope.PACKAGE, "client_gen.go"))
    registry.register(TemplateSpec("page_options.go.j2", TemplateScope.PACKAGE, "page_options_gen.go"))
    registry.register(TemplateSpec("iter.go.j2", TemplateScope.PACKAGE, "iter_gen.go"))
    registry.register(TemplateSpec("entity.go.j2", TemplateScope.ENTITY, "{snake}_gen.go"))
    registry.register(TemplateSpec("options.go.j2", TemplateScope.ENTITY, "{snake}_options_gen.go"))
    registry.register(TemplateSpec("query.go.j2", TemplateScope.ENTITY, "{snake}_query_gen.go"))
    registry.register(TemplateSpec("cli.go.j2", TemplateScope.COMMAND, "main.go"))
    return registry
