"""SQLAlchemy (async Core) reference backend.

One table per entity, named after the model. Scalars map to columns of the
matching SQLAlchemy type, one-to-one relations to an indexed ``<field>Id``
string column; one-to-many relations have no column and are resolved through
the back reference on the related table.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.ext.asyncio import AsyncEngine

from ..core.fields import EntitySchema, load_client_schemas
from ..core.utils import field_value
from ..errors import BackendError
from .base import Backend, back_reference

_logger = logging.getLogger("graphsynth")

ID_LENGTH = 64
CREATED_COLUMN = '_created'

_last_stamp = 0


def _next_stamp() -> int:
    """Strictly increasing insertion stamp, so rows list in creation order."""
    global _last_stamp
    _last_stamp = max(time.time_ns(), _last_stamp + 1)
    return _last_stamp


_COLUMN_TYPES: Dict[str, Any] = {
    'String': Text,
    'Boolean': Boolean,
    'Int': Integer,
    'Float': Float,
    'ID': lambda: String(ID_LENGTH),
    'Password': lambda: String(255),
    'Enum': lambda: String(255),
}


def build_table(metadata: MetaData, entity: EntitySchema) -> Table:
    """Create the ``Table`` for ``entity`` on ``metadata``."""
    columns: List[Column] = [
        Column('id', String(ID_LENGTH), primary_key=True),
        Column(CREATED_COLUMN, BigInteger, nullable=False, index=True),
    ]
    for f in entity.fields:
        if f.is_identity or f.is_list:
            continue
        if f.is_one_to_one:
            columns.append(Column(f.foreign_key, String(ID_LENGTH), nullable=True, index=True))
            continue
        column_type = _COLUMN_TYPES.get(f.type_identifier, Text)
        columns.append(Column(f.field_name, column_type(), nullable=True, index=f.field_name == 'email'))
    return Table(entity.model_name, metadata, *columns)


class SQLBackend(Backend):
    """Stores every entity in its own table behind an ``AsyncEngine``.

    Call ``await backend.create_all()`` once to create the tables.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        entities: Iterable[Any],
        *,
        metadata: Optional[MetaData] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.engine = engine
        self.metadata = metadata if metadata is not None else MetaData()
        self.entities: Dict[str, EntitySchema] = {e.model_name: e for e in load_client_schemas(entities)}
        self.tables: Dict[str, Table] = {
            name: build_table(self.metadata, entity) for name, entity in self.entities.items()
        }

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self.metadata.drop_all)

    def table(self, model_name: str) -> Table:
        try:
            return self.tables[model_name]
        except KeyError:
            raise BackendError(f"No table for model '{model_name}'") from None

    @staticmethod
    def _to_record(row: Any) -> Dict[str, Any]:
        record = dict(row._mapping)
        record.pop(CREATED_COLUMN, None)
        return record

    async def _fetch_all(self, stmt) -> List[Dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.execute(stmt)
            return [self._to_record(row) for row in result]

    async def _fetch_one(self, model_name: str, node_id: Any) -> Optional[Dict[str, Any]]:
        table = self.table(model_name)
        rows = await self._fetch_all(select(table).where(table.c.id == str(node_id)))
        return rows[0] if rows else None

    def _column_values(self, model_name: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        table = self.table(model_name)
        unknown = [k for k in values if k not in table.c or k == CREATED_COLUMN]
        if unknown:
            raise BackendError(f"Unknown column(s) for '{model_name}': {', '.join(sorted(unknown))}")
        return dict(values)

    # --- reads ---------------------------------------------------------------

    async def list_all_nodes_by_type(self, model_name, args, entity, current_user, operation) -> List[Any]:
        records = await self.list_all_nodes_unchecked(model_name)
        return self._visible(model_name, records, current_user, operation)

    async def list_nodes_by_relation(
        self, owner_model, owner_id, relation_field, args, related_entity, current_user, operation
    ) -> List[Any]:
        key = back_reference(owner_model, relation_field, related_entity)
        table = self.table(related_entity.model_name)
        stmt = select(table).where(table.c[key] == owner_id).order_by(table.c[CREATED_COLUMN], table.c.id)
        records = await self._fetch_all(stmt)
        return self._visible(related_entity.model_name, records, current_user, operation)

    async def fetch_node_by_id(self, model_name, node_id, entity, current_user, operation) -> Optional[Any]:
        record = await self._fetch_one(model_name, node_id)
        if record is None or not self.can_read(model_name, record, current_user, operation):
            return None
        return record

    async def list_all_nodes_unchecked(self, model_name: str) -> List[Any]:
        table = self.table(model_name)
        return await self._fetch_all(select(table).order_by(table.c[CREATED_COLUMN], table.c.id))

    async def find_user_by_email(self, email: str) -> Optional[Any]:
        table = self.table('User')
        if 'email' not in table.c:
            return await super().find_user_by_email(email)
        rows = await self._fetch_all(select(table).where(table.c.email == email).limit(1))
        return rows[0] if rows else None

    async def fetch_current_user(self) -> Optional[Any]:
        user = self.current_user
        if user is None or 'User' not in self.tables:
            return user
        user_id = field_value(user, 'id')
        if user_id is None:
            return user
        return await self._fetch_one('User', user_id)

    # --- writes --------------------------------------------------------------

    async def insert_record(self, model_name: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert ``values`` as-is (no hashing); an ``id`` is generated when missing."""
        data = self._column_values(model_name, values)
        data['id'] = str(data.get('id') or uuid.uuid4().hex)
        data[CREATED_COLUMN] = _next_stamp()
        async with self.engine.begin() as conn:
            await conn.execute(insert(self.table(model_name)).values(**data))
        data.pop(CREATED_COLUMN)
        return await self._fetch_one(model_name, data['id']) or data

    async def create_node(self, model_name, values, entity, current_user, operation) -> Any:
        data = await self.prepare_values(entity, values)
        data.pop('id', None)
        _logger.debug("graphsynth: sql backend creating %s", model_name)
        return await self.insert_record(model_name, data)

    async def update_node(self, model_name, node_id, values, entity, current_user, operation) -> Optional[Any]:
        data = self._column_values(model_name, await self.prepare_values(entity, values))
        data.pop('id', None)
        table = self.table(model_name)
        async with self.engine.begin() as conn:
            if data:
                result = await conn.execute(update(table).where(table.c.id == str(node_id)).values(**data))
                if result.rowcount == 0:
                    return None
        return await self._fetch_one(model_name, node_id)

    async def delete_node(self, model_name, node_id, entity, current_user, operation) -> Optional[Any]:
        record = await self._fetch_one(model_name, node_id)
        if record is None:
            return None
        table = self.table(model_name)
        async with self.engine.begin() as conn:
            await conn.execute(delete(table).where(table.c.id == str(node_id)))
        return record
