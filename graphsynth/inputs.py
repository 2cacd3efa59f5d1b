"""Input argument synthesis: create/update/filter shapes and sort enums."""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Optional, Type

import strawberry

from .core.fields import ArgSpec, EntitySchema, FieldDescriptor
from .core.naming import filter_input_name, python_name, sort_enum_name
from .types import TypeMapper

FieldPredicate = Callable[[FieldDescriptor], bool]

RELAY_PAGINATION_ARGS: Dict[str, Any] = {
    'before': str,
    'after': str,
    'first': int,
    'last': int,
}

SIMPLE_PAGINATION_ARGS: Dict[str, Any] = {
    'skip': int,
    'take': int,
}


def _arg(name: str, inner: Any, required: bool) -> ArgSpec:
    return ArgSpec(
        name=name,
        python_name=python_name(name),
        annotation=inner if required else Optional[inner],
        required=required,
    )


def object_mutation_arguments(
    entity: EntitySchema,
    mapper: TypeMapper,
    scalar_filter: FieldPredicate,
    one_to_one_filter: FieldPredicate,
    force_fields_optional: bool = False,
    force_id_field_optional: bool = False,
) -> Dict[str, ArgSpec]:
    """Shared routine behind the create, update and filter shapes.

    Scalars keep their field name; one-to-one relations become
    ``<fieldName>Id`` arguments of type ``ID``. A field stays required only
    when declared required and not forced optional; ``id`` survives
    ``force_fields_optional`` unless ``force_id_field_optional`` is set too.
    """
    model = entity.model_name
    out: Dict[str, ArgSpec] = {}
    for f in entity.fields:
        if not scalar_filter(f):
            continue
        forced = force_fields_optional and (force_id_field_optional or not f.is_identity)
        inner = strawberry.ID if f.is_identity else mapper.field_type(model, f)
        out[f.field_name] = _arg(f.field_name, inner, f.is_required and not forced)
    for f in entity.fields:
        if not one_to_one_filter(f):
            continue
        out[f.foreign_key] = _arg(f.foreign_key, strawberry.ID, f.is_required and not force_fields_optional)
    return out


def create_arguments(entity: EntitySchema, mapper: TypeMapper) -> Dict[str, ArgSpec]:
    model = entity.model_name
    return object_mutation_arguments(
        entity,
        mapper,
        lambda f: not mapper.is_relation(model, f) and not f.is_identity,
        lambda f: mapper.is_relation(model, f) and not f.is_list,
    )


def update_arguments(entity: EntitySchema, mapper: TypeMapper) -> Dict[str, ArgSpec]:
    model = entity.model_name
    return object_mutation_arguments(
        entity,
        mapper,
        lambda f: not mapper.is_relation(model, f),
        lambda f: mapper.is_relation(model, f) and not f.is_list,
        force_fields_optional=True,
    )


def filter_fields(entity: EntitySchema, mapper: TypeMapper) -> Dict[str, ArgSpec]:
    model = entity.model_name
    return object_mutation_arguments(
        entity,
        mapper,
        lambda f: not mapper.is_relation(model, f),
        lambda f: mapper.is_relation(model, f) and not f.is_list,
        force_fields_optional=True,
        force_id_field_optional=True,
    )


def build_input_type(name: str, fields: Dict[str, ArgSpec], description: Optional[str] = None) -> Type[Any]:
    """Create a Strawberry input type whose fields are ``fields``.

    Every field defaults to ``UNSET`` so omitted values can be told apart
    from explicit nulls.
    """
    namespace: Dict[str, Any] = {'__module__': __name__, '__doc__': description}
    annotations: Dict[str, Any] = {}
    for gql_name, spec in fields.items():
        annotations[spec.python_name] = spec.annotation
        namespace[spec.python_name] = strawberry.field(name=gql_name, default=strawberry.UNSET)
    namespace['__annotations__'] = annotations
    plain_cls = type(name, (), namespace)
    return strawberry.input(plain_cls, name=name, description=description)


def sort_enum(entity: EntitySchema) -> Any:
    """``<Model>SortBy`` with ``<field>_ASC`` and ``<field>_DESC`` per scalar field."""
    values = []
    for f in entity.scalar_fields:
        values.append(f"{f.field_name}_ASC")
        values.append(f"{f.field_name}_DESC")
    name = sort_enum_name(entity.model_name)
    py_enum = Enum(name, [(v, v) for v in values])
    py_enum.__module__ = __name__
    return strawberry.enum(py_enum, name=name)


def filter_arguments(entity: EntitySchema, mapper: TypeMapper, relay: bool) -> Dict[str, ArgSpec]:
    """Query arguments for collections of ``entity``.

    Pagination (``before/after/first/last`` or ``skip/take``), a ``filter``
    input object built from the filter shape and an ``orderBy`` sort enum.
    """
    pagination = RELAY_PAGINATION_ARGS if relay else SIMPLE_PAGINATION_ARGS
    out = {name: _arg(name, inner, False) for name, inner in pagination.items()}
    filter_type = build_input_type(
        filter_input_name(entity.model_name),
        filter_fields(entity, mapper),
        description=f"Equality filter for {entity.model_name} collections.",
    )
    out['filter'] = _arg('filter', filter_type, False)
    out['orderBy'] = _arg('orderBy', sort_enum(entity), False)
    return out
