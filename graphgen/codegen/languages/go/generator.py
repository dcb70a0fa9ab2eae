"""
Go client generator.

Renders the modusGraph typed client for a package: shared client, paging
options, iterator and query helpers, per-entity CRUD, functional options
and query builders, and optionally a Kong command-line entry point.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...core.config import GeneratorConfig
from ...core.generator import Artifact, CodeGenerator
from ...core.naming import to_snake_case, to_kebab_case, lower_first, with_article
from ...core.schema import Entity, Field, Package
from ...core.templates import go_quote
from ...registry import TemplateRegistry, TemplateScope, TemplateSpec, default_go_registry
from ....logging_config import get_logger
from .naming import create_go_sanitizer, local_name
from .types import field_imports, query_methods

logger = get_logger(__name__)

GENERATED_HEADER = "// Code generated by graphgen. DO NOT EDIT."
KONG_IMPORT = "github.com/alecthomas/kong"


class GoClientGenerator(CodeGenerator):
    """Code generator for modusGraph typed clients."""

    def __init__(self, config: Optional[GeneratorConfig] = None, registry: Optional[TemplateRegistry] = None):
        super().__init__(config or GeneratorConfig())
        self.registry = registry or default_go_registry()
        self.sanitizer = create_go_sanitizer()

    def get_template_directory(self) -> Optional[Path]:
        """Return the Go templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    @property
    def language_name(self) -> str:
        return "go"

    @property
    def file_extension(self) -> str:
        return ".go"

    def generate(self, package: Package) -> List[Artifact]:
        """Render every registered template; nothing is written here."""
        output_dir = self.config.resolved_output_dir()
        package_context = self.build_package_context(package)
        artifacts: List[Artifact] = []

        for spec in self.registry.for_scope(TemplateScope.PACKAGE):
            artifacts.append(self._render(spec, package_context, output_dir / spec.output_name()))

        entity_specs = self.registry.for_scope(TemplateScope.ENTITY)

        def render_entity(entity: Entity) -> List[Artifact]:
            context = self.build_entity_context(package, entity)
            snake = to_snake_case(entity.name)
            return [
                self._render(spec, context, output_dir / spec.output_name(snake), entity.name) for spec in entity_specs
            ]

        workers = max(1, self.config.workers)
        if workers > 1 and len(package.entities) > 1:
            logger.debug("Rendering %d entities with %d workers", len(package.entities), workers)
            with ThreadPoolExecutor(max_workers=workers) as pool:
                # map yields in submission order, so the first failing entity raises
                for rendered in pool.map(render_entity, package.entities):
                    artifacts.extend(rendered)
        else:
            for entity in package.entities:
                artifacts.extend(render_entity(entity))

        if self.config.generate_cli:
            cli_dir = self.config.resolved_cli_dir(package.name)
            command_context = self.build_command_context(package)
            for spec in self.registry.for_scope(TemplateScope.COMMAND):
                artifacts.append(self._render(spec, command_context, cli_dir / spec.output_name()))

        self.check_output_paths(artifacts)
        logger.info("Rendered %d artifacts for package %s", len(artifacts), package.name)
        return artifacts

    def _render(
        self, spec: TemplateSpec, context: Dict[str, Any], path: Path, entity: Optional[str] = None
    ) -> Artifact:
        body = self.render_template(spec.name, context)
        code = self.format_code(f"{GENERATED_HEADER}\n\n{body}")
        return Artifact(path=path, content=code.encode("utf-8"), template=spec.name, entity=entity)

    # -- contexts ---------------------------------------------------------

    def build_package_context(self, package: Package) -> Dict[str, Any]:
        """Context for package-scope templates."""
        return {
            "package": package,
            "entities": package.entities,
            "runtime_import": self.config.runtime_import,
            "page_size": self.config.page_size,
            "client_fields": [("conn", "modusgraph.Client")]
            + [(e.name, f"*{e.name}Client") for e in package.entities],
            "client_inits": [("conn:", "conn,")]
            + [(f"{e.name}:", f"&{e.name}Client{{conn: conn}},") for e in package.entities],
        }

    def build_entity_context(self, package: Package, entity: Entity) -> Dict[str, Any]:
        """Context for entity-scope templates."""
        data_fields = entity.data_fields
        option_stdlib, option_external = field_imports(data_fields, entity.imports)

        methods = []
        query_imports = {"context", "fmt", "strings"}
        for f in entity.scalar_fields:
            for method in query_methods(f):
                methods.append(
                    {
                        "name": f"Where{f.name}{method.suffix}",
                        "field": f.name,
                        "params": method.params,
                        "expr": method.render_expr(f.predicate),
                        "doc": method.doc,
                    }
                )
                query_imports.update(method.imports)

        search = None
        if entity.searchable:
            search = {
                "field": entity.search_field,
                "predicate": entity.search_predicate,
                "function": entity.search_function,
            }

        reverse = [self._reverse_context(package, entity, f) for f in entity.reverse_fields]

        return {
            "package": package,
            "entity": entity,
            "name": entity.name,
            "uid": entity.uid_field,
            "dtype": entity.dtype_field,
            "new_value": f"&{entity.name}{{{entity.dtype_field}: []string{{{go_quote(entity.name)}}}}}",
            "fields": data_fields,
            "reverse": reverse,
            "links": [r for r in reverse if r["managed"]],
            "query_methods": methods,
            "upsert_predicates": entity.upsert_predicates,
            "search": search,
            "option_imports": {"stdlib": option_stdlib, "external": option_external},
            "query_imports": sorted(query_imports),
            "runtime_import": self.config.runtime_import,
        }

    def _reverse_context(self, package: Package, entity: Entity, f: Field) -> Dict[str, Any]:
        """Go snippets for re-pointing children of a reverse edge at a new parent."""
        related = package.get_entity(f.related)
        parent_ref = f"{entity.name}{{{entity.uid_field}: v.{entity.uid_field}}}"
        context = {
            "name": f.name,
            "var": local_name(self.sanitizer, f.name),
            "related": f.related,
            "slice": f.is_slice,
            "elem_pointer": f.is_pointer,
            "child_uid": related.uid_field,
            "managed": f.managed_reverse,
            "predicate": f.stripped_predicate,
            "link_type": f"{lower_first(entity.name)}{f.name}Link",
            "assign": None,
            "fields": [],
            "inits": [],
        }
        if f.managed_reverse:
            context["fields"] = [
                ("UID", "string", '`json:"uid,omitempty"`'),
                ("DType", "[]string", '`json:"dgraph.type,omitempty"`'),
                (entity.name, f"*{entity.name}", f'`json:"{f.stripped_predicate},omitempty"`'),
            ]
            context["inits"] = [
                ("UID:", f"child.{related.uid_field},"),
                ("DType:", f'[]string{{"{f.related}"}},'),
                (f"{entity.name}:", f"&{parent_ref},"),
            ]
        else:
            forward = related.get_field(f.forward_field)
            target = f"&{parent_ref}" if forward.is_pointer else parent_ref
            if forward.is_slice:
                context["assign"] = f"child.{forward.name} = append(child.{forward.name}, {target})"
            else:
                context["assign"] = f"child.{forward.name} = {target}"
        return context

    def build_command_context(self, package: Package) -> Dict[str, Any]:
        """Context for the command-surface template."""
        commands = []
        for e in package.entities:
            subcommands = [
                ("Get", f"{e.name}GetCmd", f'`cmd:"" help:"Get {with_article(e.name)} by UID."`'),
                ("List", f"{e.name}ListCmd", f'`cmd:"" help:"List {e.name} nodes."`'),
                ("Delete", f"{e.name}DeleteCmd", f'`cmd:"" help:"Delete {with_article(e.name)} by UID."`'),
            ]
            if e.searchable:
                subcommands.append(
                    ("Search", f"{e.name}SearchCmd", f'`cmd:"" help:"Search {e.name} nodes by {e.search_field}."`')
                )
            commands.append({"entity": e, "name": e.name, "rows": subcommands})

        return {
            "package": package,
            "entities": package.entities,
            "commands": commands,
            "command_fields": [("Query", "QueryCmd", '`cmd:"" help:"Run a raw DQL query."`')]
            + [
                (e.name, f"{e.name}Cmd", f'`cmd:"" name:"{to_kebab_case(e.name)}" help:"Manage {e.name} nodes."`')
                for e in package.entities
            ],
            "name": package.display_name,
            "env_prefix": to_snake_case(package.display_name).upper(),
            "with_validator": package.with_validator,
            "page_size": self.config.page_size,
            "imports": {
                "stdlib": ["context", "encoding/json", "fmt", "os"],
                "external": sorted([KONG_IMPORT, self.config.runtime_import]),
                "local": [package.import_path],
            },
        }

