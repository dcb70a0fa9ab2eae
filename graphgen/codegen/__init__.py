"""
graphgen code generation module.

Parses a Go package of tagged structs, infers graph relationships, and
renders a typed modusGraph client. The stages run in order:

    parse_package -> InferenceEngine.run -> GoClientGenerator.generate -> write_artifacts
"""

from typing import Any, Dict, Optional

from .core.config import GeneratorConfig, ConfigManager, ConfigError, load_config
from .core.generator import (
    Artifact,
    CodeGenerator,
    GeneratorError,
    GenerationResult,
    generate_code,
    write_artifacts,
)
from .core.schema import Package, Entity, Field, FieldKind
from .core.templates import TemplateError
from .golden import GoldenHarness, GoldenMismatchError, GoldenReport
from .inference import InferenceEngine, InferenceError, infer
from .languages.go import GoClientGenerator
from .parser import ParseError, TagSyntaxError, NoEntitiesError, parse_package
from .registry import TemplateRegistry, TemplateScope, TemplateSpec, RegistryError, default_go_registry
from ..logging_config import get_logger

logger = get_logger(__name__)


def build_package(config: GeneratorConfig) -> Package:
    """
    Parse and infer the package named by a configuration.

    Args:
        config: Run configuration (pkg_dir, cli_name, with_validator)

    Returns:
        Fully inferred package

    Raises:
        ParseError: If the sources cannot be parsed or hold no entities
        InferenceError: If the model is semantically invalid
    """
    package = parse_package(config.resolved_pkg_dir())

    if config.cli_name:
        package.cli_name = config.cli_name
    package.with_validator = config.with_validator

    return InferenceEngine(package).run()


def generate_package(config: Optional[GeneratorConfig] = None, write: bool = True) -> GenerationResult:
    """
    Run the whole pipeline for one package.

    Files are written only after every artifact rendered successfully, so
    a failing run leaves the output directory untouched.

    Args:
        config: Run configuration; defaults when omitted
        write: Write artifacts to disk (False renders in memory only)

    Returns:
        GenerationResult with artifacts, warnings and metadata

    Raises:
        ParseError: If the sources cannot be parsed or hold no entities
        InferenceError: If the model is semantically invalid
        GeneratorError: If an artifact cannot be written
    """
    config = config or GeneratorConfig()
    package = build_package(config)

    generator = GoClientGenerator(config)
    result = generate_code(generator, package)
    if not result.success:
        return result

    if write:
        written = write_artifacts(result.artifacts)
        result.metadata["written"] = [str(p) for p in written]
        logger.info("Wrote %d files for package %s", len(written), package.name)

    return result


def quick_generate(pkg_dir: str = ".", **options: Any) -> Dict[str, bytes]:
    """
    Render a package in memory.

    Args:
        pkg_dir: Go package directory
        **options: GeneratorConfig overrides

    Returns:
        Generated file contents keyed by path

    Raises:
        GeneratorError: If rendering fails
    """
    config = load_config(custom_config={"pkg_dir": pkg_dir, **options})
    result = generate_package(config, write=False)
    if not result.success:
        raise GeneratorError(result.error_message)
    return result.files


# Export main interfaces
__all__ = [
    "Artifact",
    "CodeGenerator",
    "ConfigError",
    "ConfigManager",
    "Entity",
    "Field",
    "FieldKind",
    "GenerationResult",
    "GeneratorConfig",
    "GeneratorError",
    "GoClientGenerator",
    "GoldenHarness",
    "GoldenMismatchError",
    "GoldenReport",
    "InferenceEngine",
    "InferenceError",
    "NoEntitiesError",
    "Package",
    "ParseError",
    "RegistryError",
    "TagSyntaxError",
    "TemplateError",
    "TemplateRegistry",
    "TemplateScope",
    "TemplateSpec",
    "build_package",
    "default_go_registry",
    "generate_code",
    "generate_package",
    "infer",
    "load_config",
    "parse_package",
    "quick_generate",
    "write_artifacts",
]
