from __future__ import annotations
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .fields import EntitySchema
from .ids import convert_input_fields_to_internal_ids
from .utils import field_value

ASC_SUFFIX = '_ASC'
DESC_SUFFIX = '_DESC'


def filter_pairs(filter_arg: Optional[Mapping[str, Any]]) -> List[Tuple[str, Any]]:
    """Return ``(field, value)`` pairs for every filter entry that is set."""
    if not filter_arg:
        return []
    return [(name, value) for name, value in filter_arg.items() if value is not None]


def apply_equality_filter(
    nodes: Sequence[Any], filter_arg: Optional[Mapping[str, Any]], entity: EntitySchema
) -> List[Any]:
    """Keep the nodes whose fields equal every value in ``filter_arg``.

    Global ids in ``id`` and ``<relation>Id`` entries are decoded first, so
    they compare against stored internal ids. Relative order is preserved.
    """
    if not filter_arg:
        return list(nodes)
    pairs = filter_pairs(convert_input_fields_to_internal_ids(filter_arg, entity))
    return [n for n in nodes if all(field_value(n, name) == value for name, value in pairs)]


def parse_order_by(order_by: str) -> Tuple[str, bool]:
    """Split ``<field>_ASC`` / ``<field>_DESC`` into ``(field, descending)``."""
    if order_by.endswith(DESC_SUFFIX):
        return order_by[:-len(DESC_SUFFIX)], True
    if order_by.endswith(ASC_SUFFIX):
        return order_by[:-len(ASC_SUFFIX)], False
    raise ValueError(f"Invalid orderBy value {order_by!r}; expected <field>_ASC or <field>_DESC")


def _sort_key(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def sort_nodes(nodes: Sequence[Any], order_by: Optional[str]) -> List[Any]:
    """Sort by ``order_by``: strings case-insensitively, everything else natively.

    Nodes without a value for the sort field keep their relative order at the end.
    """
    if not order_by:
        return list(nodes)
    field_name, descending = parse_order_by(order_by)
    present = [n for n in nodes if field_value(n, field_name) is not None]
    missing = [n for n in nodes if field_value(n, field_name) is None]
    present.sort(key=lambda n: _sort_key(field_value(n, field_name)), reverse=descending)
    return present + missing


def slice_nodes(nodes: Sequence[Any], skip: Optional[int], take: Optional[int]) -> List[Any]:
    """Records from ``skip`` on; a missing or zero ``take`` means all remaining."""
    start = max(skip or 0, 0)
    count = take or len(nodes)
    return list(nodes[start:start + max(count, 0)])
