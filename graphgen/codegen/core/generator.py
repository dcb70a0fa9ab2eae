"""
Base generator interface for all code generation targets.

Defines the contract that language generators implement and the helpers
shared by all of them: artifact containers, output formatting, and the
all-or-nothing write step.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Any, Optional, Tuple
from pathlib import Path

from .schema import Package, FieldKind
from .templates import TemplateEngine, TemplateError, create_template_engine
from ...logging_config import get_logger

logger = get_logger(__name__)


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


@dataclass(frozen=True)
class Artifact:
    """One rendered output file, held in memory until every render succeeds."""

    path: Path
    content: bytes
    template: str
    entity: Optional[str] = None  # None for package and command scope

    def relative_to(self, root: Path) -> str:
        try:
            return self.path.relative_to(root).as_posix()
        except ValueError:
            return self.path.as_posix()

    def describe(self) -> str:
        """Template and scope that produced this artifact, for error messages."""
        owner = f"entity {self.entity}" if self.entity else "package"
        return f"{self.template} ({owner})"


class CodeGenerator(ABC):
    """Abstract base class for all code generators."""

    def __init__(self, config=None):
        """Initialize generator with a GeneratorConfig."""
        self.config = config
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        self._template_engine = create_template_engine(self.get_template_directory())

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'go')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.go')."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Return None to use in-memory templates only.
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def generate(self, package: Package) -> List[Artifact]:
        """
        Render every artifact for a fully inferred package.

        Args:
            package: Inferred package model

        Returns:
            Artifacts in deterministic order
        """
        pass

    def validate_package(self, package: Package) -> List[str]:
        """
        Collect non-fatal warnings about the model.

        Language generators may extend this with target-specific checks.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = list(package.warnings)

        for entity in package.entities:
            if not entity.data_fields:
                warnings.append(f"Entity '{entity.name}' has no data fields")

            for field in entity.data_fields:
                if field.kind is None:
                    warnings.append(
                        f"Field {entity.name}.{field.name} was not classified; "
                        f"run inference before generation"
                    )

        return warnings

    def check_output_paths(self, artifacts: List[Artifact]):
        """
        Reject artifacts that would be written to the same path.

        Raises:
            GeneratorError: Naming the path and both templates that target it
        """
        seen: Dict[Path, Artifact] = {}
        for artifact in artifacts:
            first = seen.setdefault(artifact.path, artifact)
            if first is artifact:
                continue
            message = (
                f"Output file {artifact.path.name} would be written twice: "
                f"by {first.describe()} and by {artifact.describe()}"
            )
            logger.error(message)
            raise GeneratorError(message)

    def format_code(self, code: str) -> str:
        """
        Normalize whitespace of generated code.

        Trailing whitespace is stripped, runs of blank lines collapse to one,
        and the result ends with exactly one newline.
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 1:
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a template with context."""
        return self.template_engine.render_template(template_name, context)

    def template_exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        return self.template_engine.template_exists(template_name)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self,
        artifacts: List[Artifact] = None,
        warnings: List[str] = None,
        metadata: Dict[str, Any] = None,
    ):
        """
        Initialize generation result.

        Args:
            artifacts: Rendered artifacts
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.artifacts = artifacts or []
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None

    @property
    def files(self) -> Dict[str, bytes]:
        """Artifact contents keyed by path."""
        return {artifact.path.as_posix(): artifact.content for artifact in self.artifacts}

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls()
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def write_artifacts(artifacts: List[Artifact]) -> List[Path]:
    """
    Write rendered artifacts to disk.

    Every file is first written to a temporary sibling; only when all of them
    are on disk are they moved into place. A failure while staging removes
    the temporary files and leaves the existing output untouched.

    Returns:
        Paths written, in artifact order
    """
    staged: List[Tuple[str, Artifact]] = []
    try:
        for artifact in artifacts:
            artifact.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=artifact.path.parent, prefix=f".{artifact.path.name}.", suffix=".tmp"
            )
            staged.append((tmp_name, artifact))
            with os.fdopen(fd, "wb") as f:
                f.write(artifact.content)

        written = []
        for tmp_name, artifact in staged:
            os.replace(tmp_name, artifact.path)
            logger.debug("Wrote %s (%d bytes)", artifact.path, len(artifact.content))
            written.append(artifact.path)
    except OSError as e:
        for tmp_name, _ in staged:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.error("Failed to write generated files: %s", e)
        raise GeneratorError(f"Failed to write generated files: {e}") from e
    return written


def generate_code(generator: CodeGenerator, package: Package) -> GenerationResult:
    """
    Generate code using the specified generator with error handling.

    Args:
        generator: Code generator instance
        package: Fully inferred package

    Returns:
        GenerationResult with artifacts, warnings, and metadata
    """
    try:
        warnings = generator.validate_package(package)
        artifacts = generator.generate(package)
    except (GeneratorError, TemplateError) as e:
        logger.error("Code generation failed: %s", e)
        return GenerationResult.error(f"Code generation failed: {str(e)}", exception=e)

    metadata = {
        "language": generator.language_name,
        "file_extension": generator.file_extension,
        "package": package.name,
        "import_path": package.import_path,
        "entity_count": len(package.entities),
        "artifact_count": len(artifacts),
        "entities": [
            {"name": e.name, "fields": len(e.fields), "search_field": e.search_field}
            for e in package.entities
        ],
        "searchable": [e.name for e in package.entities if e.searchable],
        "edge_count": sum(
            1
            for entity in package.entities
            for field in entity.data_fields
            if field.kind in (FieldKind.EDGE, FieldKind.EDGE_LIST)
        ),
    }

    return GenerationResult(artifacts, warnings, metadata)
