"""graphsynth public API with lightweight lazy exports.

Submodules build Strawberry types on import of the schema machinery, so the
package root only resolves names on first access.

Exposes:
- generate_schema, OutputMode, SchemaGenerator, TypeRegistry, TypeBundle
- EntitySchema, FieldDescriptor, load_client_schemas
- RequestContext
- Backend, MemoryBackend, SQLBackend
- to_global_id, from_global_id
- the error classes from graphsynth.errors
"""
from __future__ import annotations

_EXPORTS = {
    'generate_schema': 'schema',
    'OutputMode': 'registry',
    'SchemaGenerator': 'registry',
    'TypeRegistry': 'registry',
    'TypeBundle': 'registry',
    'EntitySchema': 'core.fields',
    'FieldDescriptor': 'core.fields',
    'load_client_schemas': 'core.fields',
    'RequestContext': 'core.utils',
    'to_global_id': 'core.ids',
    'from_global_id': 'core.ids',
    'Backend': 'backends.base',
    'MemoryBackend': 'backends.memory',
    'SQLBackend': 'backends.sql',
    'GraphSynthError': 'errors',
    'SchemaDefinitionError': 'errors',
    'InvalidGlobalIdError': 'errors',
    'BackendError': 'errors',
    'AuthenticationError': 'errors',
    'UnknownEmailError': 'errors',
    'WrongPasswordError': 'errors',
}


def __getattr__(name: str):  # PEP 562 lazy exports
    import importlib as _importlib
    if name in {'registry', 'schema', 'mutations', 'viewer', 'backends'}:
        return _importlib.import_module(__name__ + '.' + name)
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(name)
    return getattr(_importlib.import_module(__name__ + '.' + module), name)


__all__ = sorted(_EXPORTS)
