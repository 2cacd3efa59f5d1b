"""Global identifiers.

Ids are base64 encodings of ``"<model>:<internal id>"`` produced by
Strawberry's relay helpers, so they are interchangeable with relay clients.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from strawberry.relay import from_base64, to_base64

from ..errors import InvalidGlobalIdError
from .fields import IDENTITY_FIELD, EntitySchema


def to_global_id(model_name: str, internal_id: Any) -> str:
    return to_base64(model_name, internal_id)


def from_global_id(global_id: str) -> Tuple[str, str]:
    """Decode a global id into ``(model_name, internal_id)``."""
    try:
        model_name, internal_id = from_base64(global_id)
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidGlobalIdError(f"Invalid global id {global_id!r}") from exc
    return model_name, internal_id


def internal_id_for(model_name: str, global_id: str) -> str:
    """Decode ``global_id`` and require that it was minted for ``model_name``."""
    tag, internal_id = from_global_id(global_id)
    if tag != model_name:
        raise InvalidGlobalIdError(
            f"Global id {global_id!r} refers to '{tag}', expected '{model_name}'"
        )
    return internal_id


def convert_input_fields_to_internal_ids(values: Mapping[str, Any], entity: EntitySchema) -> Dict[str, Any]:
    """Decode the ``id`` and ``<relation>Id`` entries of an input map.

    Filter, create and update shapes all name foreign keys ``<fieldName>Id``,
    so the same decoding serves every one of them. ``None`` values are kept.
    """
    out = dict(values)
    id_keys = {IDENTITY_FIELD: entity.model_name}
    for f in entity.fields:
        if f.is_one_to_one:
            id_keys[f.foreign_key] = f.type_identifier
    for key, model_name in id_keys.items():
        value = out.get(key)
        if value is None:
            continue
        out[key] = internal_id_for(model_name, value)
    return out
