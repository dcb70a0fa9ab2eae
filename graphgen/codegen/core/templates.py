"""
Template engine wrapper for code generation.

Provides a small interface over Jinja2 so generators only depend on
``render(template_name, context) -> bytes``. Undefined template variables
are errors: a template that reads a model attribute that does not exist is
a defect in the generator and must stop generation immediately.
"""

from typing import Dict, Any, List, Optional, Sequence
from pathlib import Path

from jinja2 import (
    Environment,
    ChoiceLoader,
    FileSystemLoader,
    DictLoader,
    StrictUndefined,
    TemplateNotFound,
    select_autoescape,
)
from jinja2 import TemplateError as JinjaTemplateError
from jinja2 import UndefinedError

from .naming import with_article
from ...logging_config import get_logger

logger = get_logger(__name__)


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    def __init__(self, message: str, template_name: Optional[str] = None):
        super().__init__(message)
        self.template_name = template_name


class TemplateEngine:
    """Wrapper for Jinja2 template engine with code generation utilities."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize template engine.

        Args:
            template_dir: Directory containing template files
        """
        self.template_dir = template_dir
        self._memory: Dict[str, str] = {}
        self._env = None
        self._setup_environment()

    def _setup_environment(self):
        """Setup Jinja2 environment with code generation utilities."""
        # In-memory templates take precedence over files
        loaders = [DictLoader(self._memory)]
        if self.template_dir and self.template_dir.exists():
            loaders.append(FileSystemLoader(str(self.template_dir)))
        loader = ChoiceLoader(loaders)

        self._env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml"], default_for_string=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        self._env.filters["go_quote"] = go_quote
        self._env.filters["align"] = align_columns
        self._env.filters["article"] = with_article

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template file
            context: Variables to pass to template

        Returns:
            Rendered template content

        Raises:
            TemplateError: If the template is missing, malformed, or reads an
                undefined variable or attribute.
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except TemplateNotFound as e:
            logger.error("Template not found: %s", template_name)
            raise TemplateError(f"Template not found: {template_name}", template_name) from e
        except UndefinedError as e:
            logger.error("Template %s references a missing field: %s", template_name, e.message)
            raise TemplateError(
                f"Template {template_name} references a missing field: {e.message}",
                template_name,
            ) from e
        except JinjaTemplateError as e:
            logger.error("Failed to render template %s: %s", template_name, e)
            raise TemplateError(f"Failed to render template {template_name}: {e}", template_name) from e

    def render(self, template_name: str, context: Dict[str, Any]) -> bytes:
        """Render a template to UTF-8 bytes."""
        return self.render_template(template_name, context).encode("utf-8")

    def add_template(self, name: str, content: str):
        """
        Add an in-memory template.

        Args:
            name: Template name
            content: Template content
        """
        self._memory[name] = content
        # a compiled file template of the same name would otherwise stay cached
        if self._env.cache is not None:
            self._env.cache.clear()

    def template_exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        try:
            self._env.get_template(template_name)
            return True
        except TemplateNotFound:
            return False


def go_quote(value: str) -> str:
    """Quote a string as a Go interpreted string literal."""
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def create_template_engine(template_dir: Optional[Path] = None) -> TemplateEngine:
    """Create a template engine, loading from template_dir when given."""
    return TemplateEngine(template_dir)


def align_columns(rows: Sequence[Sequence[str]]) -> List[str]:
    """Pad every column but the last to a common width, as gofmt aligns struct fields."""
    rows = [list(row) for row in rows]
    if not rows:
        return []
    widths = {}
    for row in rows:
        for i, cell in enumerate(row[:-1]):
            widths[i] = max(widths.get(i, 0), len(cell))
    lines = []
    for row in rows:
        cells = [cell.ljust(widths[i]) for i, cell in enumerate(row[:-1])] + [row[-1]]
        lines.append(" ".join(cells).rstrip())
    return lines
