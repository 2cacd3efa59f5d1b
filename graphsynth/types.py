"""Scalar/enum type mapping, the shared ``Node`` interface and connection classes."""
from __future__ import annotations

import logging
from enum import Enum
from types import new_class
from typing import Any, Dict, Iterable, List, Optional, Type

import strawberry
from strawberry import relay
from strawberry.types import Info as StrawberryInfo

from .core.fields import FieldDescriptor, RelationPlaceholder
from .core.naming import enum_type_name
from .core.utils import wrap

_logger = logging.getLogger("graphsynth")

SCALAR_TYPES: Dict[str, Any] = {
    'String': str,
    'Boolean': bool,
    'Int': int,
    'Float': float,
    'ID': strawberry.ID,
    'Password': str,
}


@strawberry.interface(name='Node', description='An object with a globally unique identifier.')
class Node:
    id: Optional[strawberry.ID]


@strawberry.type(name='Connection', description='A connection to a list of items.')
class ListConnectionWithTotalCount(relay.ListConnection[relay.NodeType]):
    """Relay list connection that also reports how many items matched.

    Concrete connections are made per entity by ``connection_type_for``;
    their edges wrap backend records in the entity's object type.
    """

    # set by resolve_connection; not a GraphQL field
    nodes = None
    _node_type = None

    @strawberry.field(description='Number of items matching the filter.')
    def total_count(self) -> Optional[int]:
        return len(self.nodes) if self.nodes is not None else None

    @classmethod
    def resolve_node(cls, node: Any, *, info: StrawberryInfo, **kwargs: Any) -> Any:
        if cls._node_type is None:
            return node
        return wrap(cls._node_type, node)

    @classmethod
    def resolve_connection(
        cls,
        nodes: Iterable[Any],
        *,
        info: StrawberryInfo,
        before: Optional[str] = None,
        after: Optional[str] = None,
        first: Optional[int] = None,
        last: Optional[int] = None,
        max_results: Optional[int] = None,
        **kwargs: Any,
    ):
        nodes = list(nodes)
        if max_results is None:
            # the whole filtered list is already in memory, never cap below it
            max_results = max(len(nodes), first or 0, last or 0)
        conn = super().resolve_connection(
            nodes,
            info=info,
            before=before,
            after=after,
            first=first,
            last=last,
            max_results=max_results,
            **kwargs,
        )
        conn.nodes = nodes
        return conn


def edge_type_for(object_type: Type[Any], name: str) -> Type[Any]:
    """Undecorated ``relay.Edge`` subclass for ``object_type``."""
    def body(ns: Dict[str, Any]) -> None:
        ns['__module__'] = __name__
        ns['__doc__'] = 'An edge in a connection.'

    return new_class(name, (relay.Edge[object_type],), exec_body=body)


def connection_type_for(object_type: Type[Any], edge_type: Type[Any], name: str) -> Type[Any]:
    """Undecorated ``ListConnectionWithTotalCount`` subclass listing ``edge_type`` edges."""
    def body(ns: Dict[str, Any]) -> None:
        ns['__module__'] = __name__
        ns['__doc__'] = f"A connection to a list of {object_type.__name__} items."
        ns['__annotations__'] = {'edges': List[edge_type]}
        ns['edges'] = strawberry.field(description='Contains the nodes in this connection')
        ns['_node_type'] = object_type

    return new_class(name, (ListConnectionWithTotalCount[object_type],), exec_body=body)


class TypeMapper:
    """Maps field descriptors to Strawberry annotations for one schema build.

    Enum types are memoized per ``<model>_<field>`` so every shape that
    mentions the field (object type, inputs, filters) shares one enum node.
    A mapper is owned by a single build; independent builds never share it.
    """

    def __init__(self):
        self._enums: Dict[str, Any] = {}

    @property
    def enum_types(self) -> Dict[str, Any]:
        return dict(self._enums)

    def enum_type(self, model_name: str, descriptor: FieldDescriptor) -> Any:
        name = enum_type_name(model_name, descriptor.field_name)
        cached = self._enums.get(name)
        if cached is not None:
            return cached
        py_enum = Enum(name, [(value, value) for value in descriptor.enum_values or ()])
        py_enum.__module__ = __name__
        st_enum = strawberry.enum(py_enum, name=name)
        self._enums[name] = st_enum
        _logger.debug("graphsynth: created enum %s with %d values", name, len(py_enum))
        return st_enum

    def field_type(self, model_name: str, descriptor: FieldDescriptor) -> Any:
        """Return the nullable inner type for ``descriptor``.

        Relation fields, and any unrecognized type identifier, map to a
        ``RelationPlaceholder`` that the wiring pass replaces.
        """
        if descriptor.is_identity:
            return strawberry.ID
        if descriptor.type_identifier == 'Enum':
            return self.enum_type(model_name, descriptor)
        scalar = SCALAR_TYPES.get(descriptor.type_identifier)
        if scalar is not None:
            return scalar
        return RelationPlaceholder(target=descriptor.type_identifier)

    def is_relation(self, model_name: str, descriptor: FieldDescriptor) -> bool:
        return isinstance(self.field_type(model_name, descriptor), RelationPlaceholder)
