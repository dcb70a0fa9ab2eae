"""
Go code generator module.

Generates modusGraph typed clients and a Kong CLI from inferred packages.
"""

from .generator import GoClientGenerator, GENERATED_HEADER
from .naming import create_go_sanitizer
from .types import QueryMethod, QUERY_METHODS, external_imports, field_imports, query_methods

__all__ = [
    "GoClientGenerator",
    "GENERATED_HEADER",
    "QueryMethod",
    "QUERY_METHODS",
    "create_go_sanitizer",
    "create_generator",
    "external_imports",
    "field_imports",
    "query_methods",
]


def create_generator(config=None, registry=None) -> GoClientGenerator:
    """
    Create a Go client generator.

    Args:
        config: GeneratorConfig for the run (defaults when omitted)
        registry: TemplateRegistry overriding the default Go templates

    Returns:
        Configured GoClientGenerator instance
    """
    return GoClientGenerator(config, registry)
