from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Callable, Dict, Mapping

import strawberry
from strawberry.types import Info as StrawberryInfo

from ..errors import BackendError
from .fields import ArgSpec, FieldDescriptor

UNSET = strawberry.UNSET


@dataclass
class RequestContext:
    """Per-request execution context passed as ``context_value``.

    ``backend`` is the storage collaborator for this request and
    ``current_user`` the authenticated user record (or ``None``). A plain dict
    with the same keys is accepted as well.
    """

    backend: Any
    current_user: Any = None


def _context_get(info_or_ctx: Any, key: str) -> Any:
    ctx = getattr(info_or_ctx, 'context', info_or_ctx)
    if ctx is None:
        return None
    if isinstance(ctx, Mapping):
        return ctx.get(key)
    return getattr(ctx, key, None)


def get_backend(info_or_ctx: Any) -> Any:
    """Return the backend from a Strawberry ``Info`` or a raw context object."""
    backend = _context_get(info_or_ctx, 'backend')
    if backend is None:
        raise BackendError("No backend in the request context; pass context_value={'backend': ...}")
    return backend


def get_current_user(info_or_ctx: Any) -> Any:
    return _context_get(info_or_ctx, 'current_user')


def get_operation(info: Any) -> Any:
    return getattr(info, 'operation', None)


# --- records ---------------------------------------------------------------

def record_of(obj: Any) -> Any:
    """Return the backend record behind a generated object (or ``obj`` itself)."""
    return getattr(obj, '_record', obj)


def field_value(record: Any, name: str) -> Any:
    record = record_of(record)
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def wrap(cls: type, record: Any) -> Any:
    """Instantiate a generated Strawberry type around a backend record."""
    if record is None:
        return None
    inst = cls()
    inst._record = record
    return inst


def parse_default_value(raw: str, type_identifier: str) -> Any:
    if type_identifier == 'Int':
        return int(raw)
    if type_identifier == 'Float':
        return float(raw)
    if type_identifier == 'Boolean':
        return str(raw).strip().lower() in ('true', '1', 'yes')
    return raw


def value_or_default(record: Any, descriptor: FieldDescriptor) -> Any:
    value = field_value(record, descriptor.field_name)
    if not value and descriptor.default_value is not None:
        return parse_default_value(descriptor.default_value, descriptor.type_identifier)
    return value


# --- inputs ----------------------------------------------------------------

def plain(value: Any) -> Any:
    """Unwrap enum members to their stored value."""
    if isinstance(value, Enum):
        return value.value
    return value


def is_input_object(value: Any) -> bool:
    """True for Strawberry input instances.

    Enum members carry a ``__strawberry_definition__`` as well, so the
    definition itself has to say it is an input.
    """
    if isinstance(value, Enum):
        return False
    definition = getattr(value, '__strawberry_definition__', None)
    return bool(getattr(definition, 'is_input', False))


def input_to_dict(obj: Any) -> Dict[str, Any]:
    """Convert a Strawberry input instance into ``{graphql_name: value}``.

    Unset fields are dropped and enum members unwrapped.
    """
    if not is_input_object(obj):
        return dict(obj) if isinstance(obj, Mapping) else {}
    definition = obj.__strawberry_definition__
    out: Dict[str, Any] = {}
    for f in definition.fields:
        value = getattr(obj, f.python_name, UNSET)
        if value is UNSET:
            continue
        out[f.graphql_name or f.python_name] = plain(value)
    return out


def normalize_args(args: Mapping[str, Any]) -> Dict[str, Any]:
    """Plain-data view of resolver arguments (input objects become dicts)."""
    out: Dict[str, Any] = {}
    for name, value in args.items():
        if value is UNSET:
            continue
        if is_input_object(value):
            value = input_to_dict(value)
        out[name] = plain(value)
    return out


# --- dynamic resolvers -----------------------------------------------------

def build_resolver(func_name: str, arguments: Mapping[str, ArgSpec], impl: Callable[..., Any]) -> Callable[..., Any]:
    """Generate ``async def func_name(self, info, <arguments>)`` delegating to ``impl``.

    Strawberry reads GraphQL arguments from the resolver signature, so entity
    dependent argument lists need a real function per field. ``impl`` is
    awaited as ``impl(self, info, args)`` with ``args`` keyed by GraphQL name
    and unset arguments left out.
    """
    params = ''.join(f", {spec.python_name}=_UNSET" for spec in arguments.values())
    entries = ', '.join(f"{name!r}: {spec.python_name}" for name, spec in arguments.items())
    src = (
        f"async def {func_name}(self, info{params}):\n"
        f"    _args = {{{entries}}}\n"
        f"    return await _impl(self, info, {{k: v for k, v in _args.items() if v is not _UNSET}})\n"
    )
    ns: Dict[str, Any] = {'_impl': impl, '_UNSET': UNSET}
    exec(src, ns)
    fn = ns[func_name]
    fn.__module__ = __name__
    ann: Dict[str, Any] = {'info': StrawberryInfo}
    for name, spec in arguments.items():
        ann[spec.python_name] = Annotated[spec.annotation, strawberry.argument(name=name)]
    fn.__annotations__ = ann
    return fn
