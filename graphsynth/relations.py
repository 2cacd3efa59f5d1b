"""Relationship wiring pass and connection shaping.

Relation fields leave the first pass as ``RelationPlaceholder`` annotations.
``wire_relation`` turns one of them into either a connection of the target
entity (one-to-many) or a direct reference (one-to-one), attaching a resolver
that calls back into the request's backend.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Sequence

from strawberry import relay
from strawberry.types import Info as StrawberryInfo

from .core.fields import FieldSpec
from .core.filters import apply_equality_filter, sort_nodes
from .core.utils import (
    build_resolver,
    field_value,
    get_backend,
    get_current_user,
    get_operation,
    normalize_args,
    wrap,
)
from .errors import SchemaDefinitionError

if TYPE_CHECKING:  # pragma: no cover
    from .registry import TypeBundle, TypeRegistry

_logger = logging.getLogger("graphsynth")


def filter_and_sort(bundle: 'TypeBundle', records: Sequence[Any], args: Mapping[str, Any]) -> List[Any]:
    """Apply the ``filter`` equality match and then ``orderBy`` to ``records``."""
    nodes = apply_equality_filter(records, args.get('filter'), bundle.entity)
    return sort_nodes(nodes, args.get('orderBy'))


def to_connection(
    bundle: 'TypeBundle', nodes: Sequence[Any], args: Mapping[str, Any], relay_mode: bool, info: StrawberryInfo
) -> Any:
    """Wrap already filtered and sorted records in ``bundle``'s connection type.

    Relay mode slices with ``first/after/last/before``; simple mode turns
    ``skip/take`` into the equivalent ``after/first`` window. ``totalCount``
    is always the length of ``nodes``.
    """
    if relay_mode:
        window = {name: args.get(name) for name in ('before', 'after', 'first', 'last')}
    else:
        skip = max(args.get('skip') or 0, 0)
        take = args.get('take') or None
        window = {
            'after': relay.to_base64(relay.Edge.CURSOR_PREFIX, skip - 1) if skip else None,
            'first': max(take, 0) if take is not None else None,
        }
    return bundle.connection_type.resolve_connection(nodes, info=info, **window)


def _make_list_resolver(registry: 'TypeRegistry', owner_model: str, spec: FieldSpec, target_model: str):
    field_name = spec.descriptor.field_name

    async def _impl(self, info, args: Dict[str, Any]):
        target = registry[target_model]
        backend = get_backend(info)
        params = normalize_args(args)
        owner_id = field_value(self, 'id')
        try:
            records = await backend.list_nodes_by_relation(
                owner_model,
                owner_id,
                field_name,
                params,
                target.entity,
                get_current_user(info),
                get_operation(info),
            )
        except Exception:
            _logger.exception(
                "graphsynth: listing relation %s.%s failed for owner %r", owner_model, field_name, owner_id
            )
            raise
        nodes = filter_and_sort(target, records or [], params)
        return to_connection(target, nodes, params, registry.relay, info)

    return build_resolver(f"resolve_{spec.python_name}", registry[target_model].filter_args, _impl)


def _make_single_resolver(registry: 'TypeRegistry', spec: FieldSpec, target_model: str):
    foreign_key = spec.descriptor.foreign_key

    async def _resolver(self, info: StrawberryInfo):
        related_id = field_value(self, foreign_key)
        if related_id is None:
            return None
        target = registry[target_model]
        record = await get_backend(info).fetch_node_by_id(
            target_model, related_id, target.entity, get_current_user(info), get_operation(info)
        )
        return wrap(target.object_type, record)

    _resolver.__name__ = f"resolve_{spec.python_name}"
    return _resolver


def wire_relation(registry: 'TypeRegistry', owner_model: str, spec: FieldSpec) -> FieldSpec:
    """Return a new spec for relation field ``spec`` with its final type and resolver."""
    target_model = spec.annotation.target
    if target_model not in registry:
        raise SchemaDefinitionError(
            f"Field '{owner_model}.{spec.descriptor.field_name}' refers to unknown model '{target_model}'"
        )
    target = registry[target_model]
    if spec.descriptor.is_list:
        _logger.debug("graphsynth: wiring %s.%s -> %sConnection", owner_model, spec.descriptor.field_name, target_model)
        return replace(
            spec,
            annotation=target.connection_type,
            arguments=target.filter_args,
            resolver=_make_list_resolver(registry, owner_model, spec, target_model),
        )
    _logger.debug("graphsynth: wiring %s.%s -> %s", owner_model, spec.descriptor.field_name, target_model)
    return replace(
        spec,
        annotation=target.object_type,
        resolver=_make_single_resolver(registry, spec, target_model),
    )
