"""
Relationship inference over a parsed Package.

Passes run in a fixed order and annotate the model in place:

1. classify_types: scalar, compound or edge kind for every field
2. resolve_predicates: effective storage predicate, duplicate detection
3. pair_reverse_edges: match ``~`` fields with their forward edges
4. infer_type_hints: type hints implied by index kinds and Go types
5. determine_searchability: pick the search field of each entity

Any InferenceError aborts the run; no partially inferred package reaches
the generator.
"""

from typing import Dict, List, Optional, Set

from .core.schema import Package, Entity, Field, FieldKind, REVERSE_SIGIL
from ..logging_config import get_logger

logger = get_logger(__name__)


# Go types stored as a single compound value, with the type hint they imply
COMPOUND_TYPES: Dict[str, Optional[str]] = {
    "time.Time": "datetime",
    "geom.Point": "geo",
    "geom.Polygon": "geo",
    "geom.MultiPolygon": "geo",
    "dg.VectorFloat32": "float32vector",
}

INDEX_TYPE_HINTS: Dict[str, str] = {
    "geo": "geo",
    "day": "datetime",
    "month": "datetime",
    "year": "datetime",
    "hour": "datetime",
    "int": "int",
    "float": "float",
    "bool": "bool",
    "hnsw": "float32vector",
}

# Text index kinds usable by Search, in order of preference, with the DQL function
SEARCH_FUNCTIONS = (("fulltext", "alloftext"), ("term", "allofterms"))


class InferenceError(Exception):
    """Semantic error in the parsed model, naming the entity and field."""

    def __init__(self, message: str, entity: Optional[str] = None, field: Optional[str] = None):
        self.reason = message
        self.entity = entity
        self.field = field
        subject = entity or ""
        if entity and field:
            subject = f"{entity}.{field}"
        super().__init__(f"{subject}: {message}" if subject else message)


class InferenceEngine:
    """Runs the inference passes over a Package."""

    PASSES = (
        "classify_types",
        "resolve_predicates",
        "pair_reverse_edges",
        "infer_type_hints",
        "determine_searchability",
    )

    def __init__(self, package: Package):
        self.package = package
        self._entity_names: Set[str] = set(package.entity_names)

    def run(self) -> Package:
        """Run every pass in order and return the annotated package."""
        for name in self.PASSES:
            logger.debug("Inference pass: %s", name)
            getattr(self, name)()
        logger.info(
            "Inferred %d entities (%d searchable, %d warnings)",
            len(self.package.entities),
            sum(1 for e in self.package.entities if e.searchable),
            len(self.package.warnings),
        )
        return self.package

    def _fail(self, message: str, entity: Entity, field: Optional[Field] = None) -> InferenceError:
        err = InferenceError(message, entity.name, field.name if field else None)
        logger.error("%s", err)
        return err

    def _warn(self, message: str) -> None:
        logger.warning("%s", message)
        self.package.warnings.append(message)

    # -- pass 1 -----------------------------------------------------------

    def classify_types(self) -> None:
        """Assign a FieldKind to every data field."""
        for entity in self.package.entities:
            for field in entity.data_fields:
                base = field.base_type or field.go_type
                if field.qualifier is None and base in self._entity_names:
                    field.kind = FieldKind.EDGE_LIST if field.is_slice else FieldKind.EDGE
                    field.related = base
                elif base in COMPOUND_TYPES and not field.is_slice:
                    field.kind = FieldKind.COMPOUND
                elif field.go_type == "[]float32":
                    field.kind = FieldKind.COMPOUND
                else:
                    field.kind = FieldKind.SCALAR
                    if field.qualifier is None and base in self.package.struct_names:
                        self._warn(
                            f"{entity.name}.{field.name} references struct {base}, which is not "
                            f"an entity; it is stored as a scalar value"
                        )

    # -- pass 2 -----------------------------------------------------------

    def resolve_predicates(self) -> None:
        """Compute effective predicates and reject duplicates within an entity."""
        shared: Dict[str, List[tuple]] = {}

        for entity in self.package.entities:
            seen: Dict[str, Field] = {}
            for field in entity.data_fields:
                field.predicate = field.directives.predicate or field.json_name
                if field.predicate in seen:
                    first = seen[field.predicate]
                    raise self._fail(
                        f"fields {first.name} and {field.name} both resolve to predicate "
                        f"{field.predicate!r}",
                        entity,
                        field,
                    )
                seen[field.predicate] = field
                if not field.predicate.startswith(REVERSE_SIGIL):
                    shared.setdefault(field.predicate, []).append((entity, field))

        for predicate, owners in shared.items():
            signatures = {
                (tuple(sorted(str(i) for i in f.directives.indexes)), f.directives.type_hint)
                for _, f in owners
            }
            if len(signatures) > 1:
                names = ", ".join(f"{e.name}.{f.name}" for e, f in owners)
                self._warn(
                    f"Predicate {predicate!r} is declared with different indexes or types by {names}"
                )

    # -- pass 3 -----------------------------------------------------------

    def pair_reverse_edges(self) -> None:
        """Link reverse edges to their forward edge or mark them managed."""
        for entity in self.package.entities:
            for field in entity.data_fields:
                if not field.predicate.startswith(REVERSE_SIGIL):
                    continue
                if not field.is_edge:
                    raise self._fail(
                        f"reverse predicate {field.predicate!r} requires an entity edge type, "
                        f"not {field.go_type}",
                        entity,
                        field,
                    )
                if field.kind is FieldKind.EDGE and not field.is_pointer:
                    raise self._fail(
                        f"reverse edge must be a pointer or a slice, not {field.go_type}",
                        entity,
                        field,
                    )
                field.is_reverse = True
                related = self.package.get_entity(field.related)
                forward = self._find_forward(related, field.stripped_predicate)

                if forward is None:
                    field.managed_reverse = True
                    logger.debug(
                        "%s.%s is a managed reverse edge of %s.%s",
                        entity.name,
                        field.name,
                        related.name,
                        field.stripped_predicate,
                    )
                    continue

                if not forward.is_edge or forward.related != entity.name:
                    raise self._fail(
                        f"reverse predicate {field.predicate!r} reads {related.name}.{forward.name}, "
                        f"which is not an edge to {entity.name}",
                        entity,
                        field,
                    )
                reverse_kinds = set(field.directives.index_names)
                forward_kinds = set(forward.directives.index_names)
                if reverse_kinds and forward_kinds and reverse_kinds != forward_kinds:
                    raise self._fail(
                        f"index kinds {sorted(reverse_kinds)} differ from "
                        f"{sorted(forward_kinds)} declared on {related.name}.{forward.name}",
                        entity,
                        field,
                    )
                if not forward.directives.reverse:
                    self._warn(
                        f"{related.name}.{forward.name} is read in reverse by {entity.name}.{field.name} "
                        f"but does not declare the reverse directive"
                    )
                field.forward_field = forward.name

    @staticmethod
    def _find_forward(related: Entity, predicate: str) -> Optional[Field]:
        for candidate in related.data_fields:
            if candidate.predicate == predicate:
                return candidate
        return None

    # -- pass 4 -----------------------------------------------------------

    def infer_type_hints(self) -> None:
        """Fill in type hints implied by index kinds and compound Go types."""
        for entity in self.package.entities:
            for field in entity.data_fields:
                if field.is_edge:
                    continue

                sources: Dict[str, str] = {}
                for index in field.directives.index_names:
                    hint = INDEX_TYPE_HINTS.get(index)
                    if hint:
                        sources.setdefault(hint, f"index {index}")
                compound_hint = self._compound_hint(field)
                if compound_hint:
                    sources.setdefault(compound_hint, f"Go type {field.go_type}")

                if len(sources) > 1:
                    detail = ", ".join(f"{hint} from {origin}" for hint, origin in sources.items())
                    raise self._fail(f"conflicting type hints: {detail}", entity, field)

                explicit = field.directives.type_hint
                inferred = next(iter(sources), None)
                if explicit and inferred and explicit != inferred:
                    raise self._fail(
                        f"type={explicit} conflicts with {inferred} inferred from {sources[inferred]}",
                        entity,
                        field,
                    )
                if explicit == "password" and field.directives.indexes:
                    raise self._fail("password fields cannot be indexed", entity, field)

                field.type_hint = explicit or inferred

    @staticmethod
    def _compound_hint(field: Field) -> Optional[str]:
        if field.kind is not FieldKind.COMPOUND:
            return None
        if field.go_type == "[]float32":
            return "float32vector"
        return COMPOUND_TYPES.get(field.base_type or field.go_type)

    # -- pass 5 -----------------------------------------------------------

    def determine_searchability(self) -> None:
        """Mark entities with a text-indexed scalar field as searchable."""
        for entity in self.package.entities:
            for field in entity.scalar_fields:
                function = self._search_function(field)
                if function is None:
                    continue
                if entity.searchable:
                    logger.debug(
                        "%s.%s is also text indexed; Search keeps %s",
                        entity.name,
                        field.name,
                        entity.search_field,
                    )
                    continue
                entity.searchable = True
                entity.search_field = field.name
                entity.search_predicate = field.predicate
                entity.search_function = function

    @staticmethod
    def _search_function(field: Field) -> Optional[str]:
        if field.kind is not FieldKind.SCALAR:
            return None
        for index, function in SEARCH_FUNCTIONS:
            if field.directives.has_index(index):
                return function
        return None


def infer(package: Package) -> Package:
    """Run all inference passes over a freshly parsed package."""
    return InferenceEngine(package).run()
