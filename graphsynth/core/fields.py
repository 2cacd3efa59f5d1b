from __future__ import annotations
from dataclasses import dataclass, field as dc_field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import SchemaDefinitionError

SCALAR_TYPE_IDENTIFIERS = ('String', 'Boolean', 'Int', 'Float', 'ID', 'Password', 'Enum')
IDENTITY_FIELD = 'id'
RESERVED_MODEL_NAMES = ('Query', 'Mutation', 'Viewer', 'Node', 'PageInfo')


@dataclass(frozen=True)
class FieldDescriptor:
    """Abstract description of one field of a client entity.

    Attributes:
        field_name: GraphQL name of the field (e.g. "title", "author").
        type_identifier: One of the scalar identifiers in
            ``SCALAR_TYPE_IDENTIFIERS`` or the model name of another entity,
            in which case the field is a relation.
        is_required: Whether the field is non-null on the object type and
            required on the create input.
        is_list: For relations, distinguishes one-to-many from one-to-one.
        enum_values: Ordered enum values for ``Enum`` fields.
        default_value: Raw default (string) used when the stored value is
            absent; parsed according to ``type_identifier``.
    """

    field_name: str
    type_identifier: str
    is_required: bool = False
    is_list: bool = False
    enum_values: Optional[Tuple[str, ...]] = None
    default_value: Optional[str] = None

    @property
    def is_scalar(self) -> bool:
        return self.is_identity or self.type_identifier in SCALAR_TYPE_IDENTIFIERS

    @property
    def is_relation(self) -> bool:
        return not self.is_scalar

    @property
    def is_one_to_one(self) -> bool:
        return self.is_relation and not self.is_list

    @property
    def is_identity(self) -> bool:
        return self.field_name == IDENTITY_FIELD

    @property
    def foreign_key(self) -> str:
        """Storage/argument key of a one-to-one relation (``<fieldName>Id``)."""
        return f"{self.field_name}Id"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'FieldDescriptor':
        enum_values = raw.get('enumValues')
        return cls(
            field_name=raw['fieldName'],
            type_identifier=raw['typeIdentifier'],
            is_required=bool(raw.get('isRequired', False)),
            is_list=bool(raw.get('isList', False)),
            enum_values=tuple(enum_values) if enum_values is not None else None,
            default_value=raw.get('defaultValue'),
        )


@dataclass(frozen=True)
class EntitySchema:
    """A named client model and its ordered field list."""

    model_name: str
    fields: Tuple[FieldDescriptor, ...]

    def field(self, name: str) -> Optional[FieldDescriptor]:
        for f in self.fields:
            if f.field_name == name:
                return f
        return None

    @property
    def scalar_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.is_scalar]

    @property
    def relation_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.is_relation]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'EntitySchema':
        return cls(
            model_name=raw['modelName'],
            fields=tuple(FieldDescriptor.from_dict(f) for f in raw.get('fields', [])),
        )


def load_client_schemas(raw_schemas: Iterable[Any]) -> List[EntitySchema]:
    """Normalize client schema descriptions and validate the batch.

    Accepts ``EntitySchema`` instances or mappings in the JSON shape
    (``modelName``, ``fields``). Raises ``SchemaDefinitionError`` on duplicate
    or reserved model names, a missing or repeated ``id`` field, or an ``Enum`` field
    without values. Relation targets are validated later, when relationships
    are wired.
    """
    out: List[EntitySchema] = []
    seen: set[str] = set()
    for raw in raw_schemas:
        entity = raw if isinstance(raw, EntitySchema) else EntitySchema.from_dict(raw)
        if entity.model_name in seen:
            raise SchemaDefinitionError(f"Duplicate model name '{entity.model_name}'")
        if entity.model_name in RESERVED_MODEL_NAMES:
            raise SchemaDefinitionError(f"Model name '{entity.model_name}' is reserved")
        seen.add(entity.model_name)
        id_count = sum(1 for f in entity.fields if f.is_identity)
        if id_count != 1:
            raise SchemaDefinitionError(
                f"Model '{entity.model_name}' must declare exactly one 'id' field (found {id_count})"
            )
        for f in entity.fields:
            if f.type_identifier == 'Enum' and not f.enum_values:
                raise SchemaDefinitionError(
                    f"Enum field '{entity.model_name}.{f.field_name}' declares no enum values"
                )
        out.append(entity)
    return out


@dataclass(frozen=True)
class RelationPlaceholder:
    """Marks a relation field whose concrete type is set by the wiring pass."""

    target: str


@dataclass(frozen=True)
class ArgSpec:
    """One GraphQL argument (or input field) of a synthesized shape.

    ``annotation`` is the final Python annotation, already wrapped in
    ``Optional`` when the argument is nullable.
    """

    name: str
    python_name: str
    annotation: Any
    required: bool = False


@dataclass(frozen=True)
class FieldSpec:
    """Snapshot of one object-type field between build passes.

    ``annotation`` holds the nullable inner type (or a ``RelationPlaceholder``
    before wiring); ``non_null`` is only ever set by the non-null pass.
    """

    descriptor: FieldDescriptor
    python_name: str
    annotation: Any
    resolver: Optional[Callable[..., Any]] = None
    arguments: Mapping[str, ArgSpec] = dc_field(default_factory=dict)
    non_null: bool = False

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.annotation, RelationPlaceholder)

    def final_annotation(self) -> Any:
        if self.is_placeholder:
            raise SchemaDefinitionError(
                f"Field '{self.descriptor.field_name}' still refers to unresolved relation "
                f"'{self.annotation.target}'"
            )
        if self.non_null:
            return self.annotation
        return Optional[self.annotation]


FieldSpecs = Dict[str, FieldSpec]
