"""
Intermediate model for code generation.

The parser builds a Package from Go source, the inference engine annotates
it in place, and generators read it. Entities refer to each other by name
only, so cyclic relationships need no special handling.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from enum import Enum


UID_JSON_NAME = "uid"
DTYPE_JSON_NAME = "dgraph.type"
REVERSE_SIGIL = "~"


class FieldKind(Enum):
    """Value kinds a field can resolve to."""

    SCALAR = "scalar"
    COMPOUND = "compound"  # timestamp, geo, vector
    EDGE = "edge"
    EDGE_LIST = "edge_list"


@dataclass(frozen=True)
class IndexSpec:
    """One index kind from an ``index=`` directive, with its parameters."""

    name: str
    params: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.params:
            return self.name
        inner = ",".join(f'{k}:"{v}"' for k, v in self.params.items())
        return f"{self.name}({inner})"


@dataclass
class DirectiveSet:
    """Typed form of a ``dgraph`` struct tag."""

    predicate: Optional[str] = None
    indexes: List[IndexSpec] = field(default_factory=list)
    type_hint: Optional[str] = None
    unique: bool = False
    upsert: bool = False
    count: bool = False
    lang: bool = False
    reverse: bool = False

    @property
    def index_names(self) -> List[str]:
        return [index.name for index in self.indexes]

    def has_index(self, name: str) -> bool:
        return name in self.index_names

    def is_empty(self) -> bool:
        return self == DirectiveSet()


@dataclass
class Field:
    """A single exported field of an entity."""

    name: str
    go_type: str
    json_name: str
    directives: DirectiveSet = field(default_factory=DirectiveSet)
    line: int = 0

    # Type shape recorded by the parser
    base_type: str = ""
    is_pointer: bool = False
    is_slice: bool = False
    qualifier: Optional[str] = None

    # Set by the inference engine
    kind: Optional[FieldKind] = None
    related: Optional[str] = None
    predicate: str = ""
    type_hint: Optional[str] = None
    is_reverse: bool = False
    forward_field: Optional[str] = None
    managed_reverse: bool = False

    @property
    def is_identity(self) -> bool:
        return self.json_name in (UID_JSON_NAME, DTYPE_JSON_NAME)

    @property
    def is_edge(self) -> bool:
        return self.kind in (FieldKind.EDGE, FieldKind.EDGE_LIST)

    @property
    def stripped_predicate(self) -> str:
        """Effective predicate without the reverse sigil."""
        return self.predicate.lstrip(REVERSE_SIGIL)


@dataclass
class Entity:
    """A struct type recognized as a graph node type."""

    name: str
    fields: List[Field] = field(default_factory=list)
    uid_field: str = "UID"
    dtype_field: str = "DType"
    source_file: str = ""
    imports: Dict[str, str] = field(default_factory=dict)

    # Set by the inference engine
    searchable: bool = False
    search_field: Optional[str] = None
    search_predicate: Optional[str] = None
    search_function: Optional[str] = None

    def add_field(self, field: Field) -> None:
        """Add a field to this entity."""
        self.fields.append(field)

    def get_field(self, name: str) -> Optional[Field]:
        """Get field by Go name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @property
    def data_fields(self) -> List[Field]:
        """Fields other than the two identity fields."""
        return [f for f in self.fields if not f.is_identity]

    @property
    def edge_fields(self) -> List[Field]:
        return [f for f in self.data_fields if f.is_edge]

    @property
    def scalar_fields(self) -> List[Field]:
        return [f for f in self.data_fields if not f.is_edge]

    @property
    def reverse_fields(self) -> List[Field]:
        return [f for f in self.data_fields if f.is_reverse]

    @property
    def upsert_predicates(self) -> List[str]:
        return [f.predicate for f in self.data_fields if f.directives.upsert]


@dataclass
class Package:
    """The parse unit: one Go package directory."""

    name: str
    import_path: str
    directory: str = ""
    module_path: str = ""
    entities: List[Entity] = field(default_factory=list)
    imports: Dict[str, str] = field(default_factory=dict)
    struct_names: List[str] = field(default_factory=list)
    cli_name: Optional[str] = None
    with_validator: bool = False
    warnings: List[str] = field(default_factory=list)

    def get_entity(self, name: str) -> Optional[Entity]:
        """Get entity by type name."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    @property
    def entity_names(self) -> List[str]:
        return [entity.name for entity in self.entities]

    @property
    def display_name(self) -> str:
        """Name used by the generated command surface."""
        return self.cli_name or self.name
