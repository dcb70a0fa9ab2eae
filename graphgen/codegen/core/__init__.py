"""
Core code generation components.

Provides the intermediate model and the base classes and utilities used
by all language generators.
"""

from .generator import (
    Artifact,
    CodeGenerator,
    GeneratorError,
    GenerationResult,
    generate_code,
    write_artifacts,
)
from .schema import (
    Package,
    Entity,
    Field,
    FieldKind,
    DirectiveSet,
    IndexSpec,
)
from .naming import NameSanitizer, NamingCase, to_snake_case, to_camel_case, to_pascal_case
from .config import GeneratorConfig, ConfigManager, ConfigError, load_config
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "Artifact",
    "CodeGenerator",
    "GeneratorError",
    "GenerationResult",
    "generate_code",
    "write_artifacts",
    # Intermediate model
    "Package",
    "Entity",
    "Field",
    "FieldKind",
    "DirectiveSet",
    "IndexSpec",
    # Naming utilities - language-agnostic
    "NameSanitizer",
    "NamingCase",
    "to_snake_case",
    "to_camel_case",
    "to_pascal_case",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Template system - language-agnostic
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
