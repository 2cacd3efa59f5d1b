"""Backend capability consumed by generated resolvers.

Resolvers never touch storage directly: they call the backend found in the
request context. A backend instance is request scoped through ``for_user()``
so the current user is never cached across requests.
"""
from __future__ import annotations

import copy
import hmac
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from ..core.fields import EntitySchema
from ..core.naming import lower_first
from ..core.utils import field_value
from ..errors import BackendError

_logger = logging.getLogger("graphsynth")

MaybeAwaitable = Union[Any, Awaitable[Any]]
Permission = Callable[[str, Any, Any, Any], bool]


async def _maybe_await(value: MaybeAwaitable) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _plain_compare(plaintext: str, hashed: Any) -> bool:
    if hashed is None:
        return False
    return hmac.compare_digest(str(plaintext).encode(), str(hashed).encode())


def back_reference(owner_model: str, relation_field: str, related_entity: EntitySchema) -> str:
    """Storage key on ``related_entity`` that points back at ``owner_model``.

    A one-to-many ``Post.comments`` is stored on ``Comment`` as the
    foreign key of its one-to-one relation to ``Post``. When several such
    relations exist, the one named after the owner (``post``) wins.
    """
    candidates = [
        f for f in related_entity.fields
        if f.is_one_to_one and f.type_identifier == owner_model
    ]
    if not candidates:
        raise BackendError(
            f"Cannot resolve {owner_model}.{relation_field}: '{related_entity.model_name}' has no "
            f"relation back to '{owner_model}'"
        )
    preferred = lower_first(owner_model)
    for f in candidates:
        if f.field_name == preferred:
            return f.foreign_key
    return candidates[0].foreign_key


class Backend(ABC):
    """Abstract storage collaborator.

    Records are mappings keyed by field name; one-to-one relations are stored
    under ``<fieldName>Id`` with the related record's internal id.

    ``hash_secret``, ``compare_secret`` and ``issue_token`` may be plain or
    async callables. ``permission(model_name, record, current_user, operation)``
    filters what the checked read methods return.
    """

    def __init__(
        self,
        *,
        hash_secret: Optional[Callable[[str], MaybeAwaitable]] = None,
        compare_secret: Optional[Callable[[str, Any], MaybeAwaitable]] = None,
        issue_token: Optional[Callable[[Any], str]] = None,
        permission: Optional[Permission] = None,
        current_user: Any = None,
    ):
        self._hash_secret = hash_secret
        self._compare_secret = compare_secret or _plain_compare
        self._issue_token = issue_token
        self._permission = permission
        self.current_user = current_user

    def for_user(self, user: Any) -> 'Backend':
        """Shallow copy bound to ``user``; storage is shared with ``self``."""
        scoped = copy.copy(self)
        scoped.current_user = user
        return scoped

    def can_read(self, model_name: str, record: Any, current_user: Any, operation: Any) -> bool:
        if self._permission is None:
            return True
        return bool(self._permission(model_name, record, current_user, operation))

    def _visible(self, model_name: str, records: List[Any], current_user: Any, operation: Any) -> List[Any]:
        return [r for r in records if self.can_read(model_name, r, current_user, operation)]

    # --- reads ---------------------------------------------------------------

    @abstractmethod
    async def list_all_nodes_by_type(
        self, model_name: str, args: Mapping[str, Any], entity: EntitySchema, current_user: Any, operation: Any
    ) -> List[Any]:
        """All records of ``model_name`` visible to ``current_user``."""

    @abstractmethod
    async def list_nodes_by_relation(
        self,
        owner_model: str,
        owner_id: Any,
        relation_field: str,
        args: Mapping[str, Any],
        related_entity: EntitySchema,
        current_user: Any,
        operation: Any,
    ) -> List[Any]:
        """Records of ``related_entity`` reachable from the owner's one-to-many field."""

    @abstractmethod
    async def fetch_node_by_id(
        self, model_name: str, node_id: Any, entity: EntitySchema, current_user: Any, operation: Any
    ) -> Optional[Any]:
        """One record, or ``None`` when missing or not visible."""

    @abstractmethod
    async def list_all_nodes_unchecked(self, model_name: str) -> List[Any]:
        """All records of ``model_name``, bypassing access checks."""

    async def fetch_current_user(self) -> Optional[Any]:
        return self.current_user

    async def find_user_by_email(self, email: str) -> Optional[Any]:
        for user in await self.list_all_nodes_unchecked('User'):
            if field_value(user, 'email') == email:
                return user
        return None

    # --- writes --------------------------------------------------------------

    @abstractmethod
    async def create_node(
        self, model_name: str, values: Mapping[str, Any], entity: EntitySchema, current_user: Any, operation: Any
    ) -> Any:
        """Persist a new record and return it."""

    @abstractmethod
    async def update_node(
        self,
        model_name: str,
        node_id: Any,
        values: Mapping[str, Any],
        entity: EntitySchema,
        current_user: Any,
        operation: Any,
    ) -> Optional[Any]:
        """Apply ``values`` to a record; ``None`` when it does not exist."""

    @abstractmethod
    async def delete_node(
        self, model_name: str, node_id: Any, entity: EntitySchema, current_user: Any, operation: Any
    ) -> Optional[Any]:
        """Delete a record and return its last state; ``None`` when it does not exist."""

    async def prepare_values(self, entity: EntitySchema, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy of ``values`` with ``Password`` fields hashed."""
        out = dict(values)
        if self._hash_secret is None:
            return out
        for f in entity.fields:
            if f.type_identifier == 'Password' and out.get(f.field_name) is not None:
                out[f.field_name] = await _maybe_await(self._hash_secret(out[f.field_name]))
        return out

    # --- secrets -------------------------------------------------------------

    async def compare_secret(self, plaintext: str, hashed: Any) -> bool:
        return bool(await _maybe_await(self._compare_secret(plaintext, hashed)))

    def issue_token_for_user(self, record: Any) -> str:
        if self._issue_token is None:
            raise BackendError("No issue_token callable configured on the backend")
        return self._issue_token(record)
