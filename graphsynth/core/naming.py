from __future__ import annotations

import keyword
import re

__all__ = [
    'python_name',
    'lower_first',
    'all_nodes_field',
    'enum_type_name',
    'sort_enum_name',
    'filter_input_name',
]

_RESERVED_PARAMS = {'self', 'info', 'root', '_impl', '_args', '_UNSET'}
_invalid_chars = re.compile(r'\W')


def python_name(name: str) -> str:
    """Return a Python identifier usable as attribute/parameter for a GraphQL name.

    GraphQL names are already identifiers; keywords and names reserved by
    Strawberry resolvers get a trailing underscore.
    """
    safe = _invalid_chars.sub('_', name)
    if keyword.iskeyword(safe) or safe in _RESERVED_PARAMS or safe.startswith('__'):
        return f"{safe}_"
    return safe


def lower_first(name: str) -> str:
    if not name:
        return name
    return name[0].lower() + name[1:]


def all_nodes_field(model_name: str) -> str:
    return f"all{model_name}s"


def enum_type_name(model_name: str, field_name: str) -> str:
    return f"{model_name}_{field_name}"


def sort_enum_name(model_name: str) -> str:
    return f"{model_name}SortBy"


def filter_input_name(model_name: str) -> str:
    return f"{model_name}Filter"
