"""Dict-backed reference backend, mostly for tests and demos."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from ..core.fields import EntitySchema
from ..core.utils import field_value
from .base import Backend, back_reference

_logger = logging.getLogger("graphsynth")


class MemoryBackend(Backend):
    """Keeps records as dicts, per model, in insertion order.

    ``for_user()`` copies share the same storage.
    """

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._store: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def add(self, model_name: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Seed a record as-is (no hashing); an ``id`` is generated when missing."""
        stored = dict(record)
        stored['id'] = str(stored.get('id') or uuid.uuid4().hex)
        self._store.setdefault(model_name, {})[stored['id']] = stored
        return stored

    def _table(self, model_name: str) -> Dict[str, Dict[str, Any]]:
        return self._store.get(model_name, {})

    async def list_all_nodes_by_type(self, model_name, args, entity, current_user, operation) -> List[Any]:
        return self._visible(model_name, list(self._table(model_name).values()), current_user, operation)

    async def list_nodes_by_relation(
        self, owner_model, owner_id, relation_field, args, related_entity, current_user, operation
    ) -> List[Any]:
        key = back_reference(owner_model, relation_field, related_entity)
        related = [r for r in self._table(related_entity.model_name).values() if r.get(key) == owner_id]
        return self._visible(related_entity.model_name, related, current_user, operation)

    async def fetch_node_by_id(self, model_name, node_id, entity, current_user, operation) -> Optional[Any]:
        record = self._table(model_name).get(str(node_id))
        if record is None or not self.can_read(model_name, record, current_user, operation):
            return None
        return record

    async def list_all_nodes_unchecked(self, model_name: str) -> List[Any]:
        return list(self._table(model_name).values())

    async def fetch_current_user(self) -> Optional[Any]:
        user_id = field_value(self.current_user, 'id') if self.current_user is not None else None
        if user_id is None:
            return self.current_user
        return self._table('User').get(user_id, self.current_user)

    async def create_node(self, model_name: str, values, entity: EntitySchema, current_user, operation) -> Any:
        record = await self.prepare_values(entity, values)
        record.pop('id', None)
        _logger.debug("graphsynth: memory backend creating %s", model_name)
        return self.add(model_name, record)

    async def update_node(self, model_name, node_id, values, entity, current_user, operation) -> Optional[Any]:
        record = self._table(model_name).get(str(node_id))
        if record is None:
            return None
        changes = await self.prepare_values(entity, values)
        changes.pop('id', None)
        record.update(changes)
        return record

    async def delete_node(self, model_name, node_id, entity, current_user, operation) -> Optional[Any]:
        return self._table(model_name).pop(str(node_id), None)
