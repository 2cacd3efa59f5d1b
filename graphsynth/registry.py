"""Type bundles, the registry arena and the three-pass schema build.

Every client entity gets a ``TypeBundle``: its object, edge and connection
classes, the create/update/filter argument shapes and one ``FieldSpec`` per
field. Bundles are immutable; each pass stores a superseding bundle in the
``TypeRegistry`` under the entity's model name.

Pass 1 (``build_bundles``) creates plain classes and scalar resolvers, with
relation fields as placeholders. Pass 2 (``wire_relations``) resolves every
placeholder against the complete registry. Pass 3 (``apply_non_null``) marks
required fields non-null. Only then are the classes decorated for Strawberry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Type

import strawberry
from strawberry.schema.config import StrawberryConfig
from strawberry.types import Info as StrawberryInfo

from .core.fields import ArgSpec, EntitySchema, FieldDescriptor, FieldSpec, FieldSpecs, load_client_schemas
from .core.ids import to_global_id
from .core.naming import python_name
from .core.utils import value_or_default
from .errors import SchemaDefinitionError
from .inputs import create_arguments, filter_arguments, update_arguments
from .relations import wire_relation
from .types import Node, TypeMapper, connection_type_for, edge_type_for

_logger = logging.getLogger("graphsynth")


class OutputMode(str, Enum):
    """Shape of the generated API: relay connections or simple skip/take lists."""

    RELAY = 'RELAY'
    SIMPLE = 'SIMPLE'


@dataclass(frozen=True)
class TypeBundle:
    entity: EntitySchema
    object_type: Type[Any]
    connection_type: Type[Any]
    edge_type: Type[Any]
    create_args: Mapping[str, ArgSpec]
    update_args: Mapping[str, ArgSpec]
    filter_args: Mapping[str, ArgSpec]
    fields: Mapping[str, FieldSpec]

    @property
    def model_name(self) -> str:
        return self.entity.model_name


class TypeRegistry(Mapping[str, TypeBundle]):
    """Arena of type bundles indexed by model name.

    Resolvers hold the registry and look bundles up at request time, which is
    how forward and cyclic relations resolve. The registry is sealed once the
    build completes and is read-only afterwards.
    """

    def __init__(self, mode: OutputMode = OutputMode.RELAY):
        self.mode = mode
        self._bundles: Dict[str, TypeBundle] = {}
        self._sealed = False

    @property
    def relay(self) -> bool:
        return self.mode is OutputMode.RELAY

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __getitem__(self, model_name: str) -> TypeBundle:
        return self._bundles[model_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bundles)

    def __len__(self) -> int:
        return len(self._bundles)

    def put(self, bundle: TypeBundle) -> None:
        if self._sealed:
            raise SchemaDefinitionError(f"Registry is sealed; cannot replace bundle '{bundle.model_name}'")
        self._bundles[bundle.model_name] = bundle

    def seal(self) -> None:
        self._sealed = True


def _make_scalar_resolver(model_name: str, descriptor: FieldDescriptor, enum_cls: Optional[Type[Enum]]):
    if descriptor.is_identity:
        def _resolver(self, info: StrawberryInfo):
            value = value_or_default(self, descriptor)
            return None if value is None else to_global_id(model_name, value)
    elif enum_cls is not None:
        def _resolver(self, info: StrawberryInfo):
            value = value_or_default(self, descriptor)
            if value is None or isinstance(value, enum_cls):
                return value
            return enum_cls(value)
    else:
        def _resolver(self, info: StrawberryInfo):
            return value_or_default(self, descriptor)
    _resolver.__name__ = f"resolve_{python_name(descriptor.field_name)}"
    return _resolver


class SchemaGenerator:
    """Compiles client entity schemas into Strawberry types.

    Usage::

        gen = SchemaGenerator(client_schemas, mode=OutputMode.RELAY)
        schema = gen.to_strawberry()

    The individual passes are public so they can be driven (and observed)
    one at a time; ``build()`` runs whichever of them have not run yet.
    """

    def __init__(self, client_schemas: Iterable[Any], mode: OutputMode | str = OutputMode.RELAY):
        self.entities: List[EntitySchema] = load_client_schemas(client_schemas)
        self.mode = OutputMode(mode)
        self.mapper = TypeMapper()
        self.registry = TypeRegistry(self.mode)
        self._stage = 0

    # --- pass 1 ------------------------------------------------------------

    def _build_fields(self, entity: EntitySchema) -> FieldSpecs:
        model = entity.model_name
        specs: FieldSpecs = {}
        for d in entity.fields:
            annotation = self.mapper.field_type(model, d)
            pname = python_name(d.field_name)
            if self.mapper.is_relation(model, d):
                specs[d.field_name] = FieldSpec(descriptor=d, python_name=pname, annotation=annotation)
                continue
            enum_cls = annotation if d.type_identifier == 'Enum' and not d.is_identity else None
            specs[d.field_name] = FieldSpec(
                descriptor=d,
                python_name=pname,
                annotation=annotation,
                resolver=_make_scalar_resolver(model, d, enum_cls),
            )
        return specs

    def build_bundles(self) -> TypeRegistry:
        """Pass 1: object/edge/connection skeletons and argument shapes."""
        if self._stage >= 1:
            return self.registry
        relay = self.mode is OutputMode.RELAY
        for entity in self.entities:
            model = entity.model_name
            object_type = type(model, (Node,), {'__module__': __name__, '__doc__': f"{model} entity"})
            edge_type = edge_type_for(object_type, f"{model}Edge")
            connection_type = connection_type_for(object_type, edge_type, f"{model}Connection")
            self.registry.put(TypeBundle(
                entity=entity,
                object_type=object_type,
                connection_type=connection_type,
                edge_type=edge_type,
                create_args=create_arguments(entity, self.mapper),
                update_args=update_arguments(entity, self.mapper),
                filter_args=filter_arguments(entity, self.mapper, relay),
                fields=self._build_fields(entity),
            ))
        self._stage = 1
        _logger.debug("graphsynth: built %d type bundles (%s mode)", len(self.registry), self.mode.value)
        return self.registry

    # --- pass 2 ------------------------------------------------------------

    def wire_relations(self) -> TypeRegistry:
        """Pass 2: replace every relation placeholder with its final type and resolver."""
        self.build_bundles()
        if self._stage >= 2:
            return self.registry
        wired = 0
        for model in list(self.registry):
            bundle = self.registry[model]
            fields: FieldSpecs = {}
            for name, spec in bundle.fields.items():
                if spec.is_placeholder:
                    spec = wire_relation(self.registry, model, spec)
                    wired += 1
                fields[name] = spec
            self.registry.put(replace(bundle, fields=fields))
        self._stage = 2
        _logger.debug("graphsynth: wired %d relation fields", wired)
        return self.registry

    # --- pass 3 ------------------------------------------------------------

    def apply_non_null(self) -> TypeRegistry:
        """Pass 3: mark required fields non-null.

        Refuses to run over a placeholder: the non-null type must wrap the
        wired type, so this pass has to follow ``wire_relations``.
        """
        self.build_bundles()
        if self._stage >= 3:
            return self.registry
        updated: List[TypeBundle] = []
        for model in list(self.registry):
            bundle = self.registry[model]
            fields: FieldSpecs = {}
            for name, spec in bundle.fields.items():
                if spec.descriptor.is_required:
                    if spec.is_placeholder:
                        raise SchemaDefinitionError(
                            f"Cannot make '{model}.{name}' non-null before its relation to "
                            f"'{spec.annotation.target}' is wired"
                        )
                    spec = replace(spec, non_null=True)
                fields[name] = spec
            updated.append(replace(bundle, fields=fields))
        if self._stage < 2:
            raise SchemaDefinitionError("apply_non_null() must run after wire_relations()")
        for bundle in updated:
            self.registry.put(bundle)
        self._stage = 3
        return self.registry

    # --- materialization ---------------------------------------------------

    def materialize(self) -> TypeRegistry:
        """Attach annotations and fields to the classes and decorate them."""
        if self._stage >= 4:
            return self.registry
        if self._stage < 3:
            raise SchemaDefinitionError("materialize() requires wire_relations() and apply_non_null() first")
        for bundle in self.registry.values():
            cls = bundle.object_type
            annotations: Dict[str, Any] = {}
            for name, spec in bundle.fields.items():
                annotations[spec.python_name] = spec.final_annotation()
                setattr(cls, spec.python_name, strawberry.field(resolver=spec.resolver, name=name))
            cls.__annotations__ = annotations

        for bundle in self.registry.values():
            model = bundle.model_name
            strawberry.type(bundle.object_type, name=model, description=bundle.object_type.__doc__)
            strawberry.type(bundle.edge_type, name=f"{model}Edge", description=bundle.edge_type.__doc__)
            strawberry.type(
                bundle.connection_type, name=f"{model}Connection", description=bundle.connection_type.__doc__
            )
        self.registry.seal()
        self._stage = 4
        return self.registry

    def build(self) -> TypeRegistry:
        self.build_bundles()
        self.wire_relations()
        self.apply_non_null()
        return self.materialize()

    def to_strawberry(self, *, strawberry_config: Optional[StrawberryConfig] = None) -> strawberry.Schema:
        from .mutations import build_mutation
        from .viewer import build_query

        self.build()
        query, viewer_type = build_query(self.registry)
        mutation = build_mutation(self.registry, viewer_type)
        types = [b.object_type for b in self.registry.values()]
        return strawberry.Schema(query=query, mutation=mutation, types=types, config=strawberry_config)
