"""Root query assembly: the ``Viewer`` type and the ``Query`` root."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Type

import strawberry
from strawberry.types import Info as StrawberryInfo

from .core.fields import ArgSpec
from .core.filters import slice_nodes
from .core.ids import from_global_id, to_global_id
from .core.naming import all_nodes_field, python_name
from .core.utils import (
    build_resolver,
    field_value,
    get_backend,
    get_current_user,
    get_operation,
    normalize_args,
    wrap,
)
from .relations import filter_and_sort, to_connection
from .types import Node

if TYPE_CHECKING:  # pragma: no cover
    from .registry import TypeBundle, TypeRegistry

_logger = logging.getLogger("graphsynth")

USER_MODEL = 'User'
ANONYMOUS_VIEWER_ID = 'viewer-fixed'


def make_viewer(viewer_type: Type[Any], user: Any) -> Any:
    """Viewer instance for ``user`` (``None`` for anonymous requests)."""
    inst = viewer_type()
    inst._record = user
    return inst


def _viewer_id(self, info: StrawberryInfo):
    user = getattr(self, '_record', None)
    user_id = field_value(user, 'id') if user is not None else None
    return to_global_id(USER_MODEL, user_id if user_id is not None else ANONYMOUS_VIEWER_ID)


async def _viewer_user(registry: 'TypeRegistry', info: StrawberryInfo) -> Any:
    record = await get_backend(info).fetch_current_user()
    return wrap(registry[USER_MODEL].object_type, record)


def _make_all_nodes_resolver(registry: 'TypeRegistry', bundle: 'TypeBundle'):
    model = bundle.model_name

    async def _impl(self, info, args: Dict[str, Any]):
        params = normalize_args(args)
        records = await get_backend(info).list_all_nodes_by_type(
            model, params, bundle.entity, get_current_user(info), get_operation(info)
        )
        nodes = filter_and_sort(bundle, records or [], params)
        if registry.relay:
            return to_connection(bundle, nodes, params, True, info)
        sliced = slice_nodes(nodes, params.get('skip'), params.get('take'))
        return [wrap(bundle.object_type, n) for n in sliced]

    return build_resolver(f"resolve_{python_name(all_nodes_field(model))}", bundle.filter_args, _impl)


def build_viewer_type(registry: 'TypeRegistry') -> Type[Any]:
    """Create the ``Viewer`` type with one ``all<Model>s`` field per entity."""
    viewer = type('Viewer', (Node,), {'__module__': __name__, '__doc__': 'Entry point to every collection.'})
    annotations: Dict[str, Any] = {}
    for model, bundle in registry.items():
        field_name = all_nodes_field(model)
        pname = python_name(field_name)
        if registry.relay:
            annotations[pname] = Optional[bundle.connection_type]
        else:
            annotations[pname] = Optional[List[Optional[bundle.object_type]]]
        setattr(viewer, pname, strawberry.field(resolver=_make_all_nodes_resolver(registry, bundle), name=field_name))

    annotations['id'] = Optional[strawberry.ID]
    viewer.id = strawberry.field(resolver=_viewer_id, name='id')

    if USER_MODEL in registry:
        async def resolve_user(self, info: StrawberryInfo):
            return await _viewer_user(registry, info)

        annotations['user'] = Optional[registry[USER_MODEL].object_type]
        viewer.user = strawberry.field(resolver=resolve_user, name='user')

    viewer.__annotations__ = annotations
    _logger.debug("graphsynth: viewer exposes %d collections", len(registry))
    return strawberry.type(viewer, name='Viewer', description=viewer.__doc__)


def _make_node_resolver(registry: 'TypeRegistry'):
    async def _impl(self, info, args: Dict[str, Any]):
        model, internal_id = from_global_id(args['id'])
        bundle = registry.get(model)
        if bundle is None:
            return None
        record = await get_backend(info).fetch_node_by_id(
            model, internal_id, bundle.entity, get_current_user(info), get_operation(info)
        )
        return wrap(bundle.object_type, record)

    arguments = {'id': ArgSpec(name='id', python_name='id', annotation=strawberry.ID, required=True)}
    return build_resolver('resolve_node', arguments, _impl)


def build_query(registry: 'TypeRegistry') -> Tuple[Type[Any], Type[Any]]:
    """Return ``(Query, Viewer)`` for a fully built registry."""
    viewer_type = build_viewer_type(registry)

    def resolve_viewer(info: StrawberryInfo):
        return make_viewer(viewer_type, get_current_user(info))

    query = type('Query', (), {'__module__': __name__})
    query.__annotations__ = {'viewer': viewer_type, 'node': Optional[Node]}
    query.viewer = strawberry.field(resolver=resolve_viewer, name='viewer')
    query.node = strawberry.field(
        resolver=_make_node_resolver(registry),
        name='node',
        description='Fetches an object given its global id.',
    )
    return strawberry.type(query, name='Query'), viewer_type
