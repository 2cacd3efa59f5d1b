"""Mutation root: create/update/delete per entity and ``signinUser``.

Relay mode follows the client-mutation-id convention: every mutation takes a
single ``input`` object and answers with a ``<Name>Payload`` that echoes
``clientMutationId`` and carries the ``viewer``. Simple mode takes the input
fields as flat arguments and returns the affected object (or a bare
``{token}`` payload for sign-in).
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple, Type

import strawberry

from .core.fields import ArgSpec, EntitySchema
from .core.ids import convert_input_fields_to_internal_ids, internal_id_for
from .core.naming import lower_first, python_name
from .core.utils import (
    build_resolver,
    field_value,
    get_backend,
    get_current_user,
    get_operation,
    input_to_dict,
    normalize_args,
    wrap,
)
from .errors import InvalidGlobalIdError, UnknownEmailError, WrongPasswordError
from .inputs import build_input_type
from .viewer import USER_MODEL, make_viewer

if TYPE_CHECKING:  # pragma: no cover
    from .registry import TypeBundle, TypeRegistry

_logger = logging.getLogger("graphsynth")

CLIENT_MUTATION_ID = 'clientMutationId'
PASSWORD_FIELD = 'password'


def _arg(name: str, annotation: Any, required: bool = False) -> ArgSpec:
    return ArgSpec(
        name=name,
        python_name=python_name(name),
        annotation=annotation if required else Optional[annotation],
        required=required,
    )


def build_payload_type(name: str, fields: Dict[str, Any], description: Optional[str] = None) -> Type[Any]:
    """Object type whose fields are plain values keyed by GraphQL name.

    Instances are created with ``payload_cls(**{python_name: value})``.
    """
    namespace: Dict[str, Any] = {'__module__': __name__, '__doc__': description}
    annotations: Dict[str, Any] = {}
    for gql_name, annotation in fields.items():
        pname = python_name(gql_name)
        annotations[pname] = annotation
        namespace[pname] = strawberry.field(name=gql_name, default=None)
    namespace['__annotations__'] = annotations
    return strawberry.type(type(name, (), namespace), name=name, description=description)


def _payload(payload_cls: Type[Any], **values: Any) -> Any:
    return payload_cls(**{python_name(k): v for k, v in values.items()})


def _split_envelope(input_obj: Any) -> Tuple[Dict[str, Any], Optional[str]]:
    values = input_to_dict(input_obj)
    return values, values.pop(CLIENT_MUTATION_ID, None)


def password_field_name(entity: EntitySchema) -> str:
    for f in entity.fields:
        if f.type_identifier == 'Password':
            return f.field_name
    return PASSWORD_FIELD


# --- backend calls ---------------------------------------------------------

async def _create(bundle: 'TypeBundle', info, values: Dict[str, Any]) -> Any:
    entity = bundle.entity
    data = convert_input_fields_to_internal_ids(values, entity)
    record = await get_backend(info).create_node(
        entity.model_name, data, entity, get_current_user(info), get_operation(info)
    )
    _logger.debug("graphsynth: created %s", entity.model_name)
    return record


async def _update(bundle: 'TypeBundle', info, values: Dict[str, Any]) -> Any:
    entity = bundle.entity
    data = convert_input_fields_to_internal_ids(values, entity)
    node_id = data.pop('id', None)
    if node_id is None:
        raise InvalidGlobalIdError(f"update{entity.model_name} requires an id")
    return await get_backend(info).update_node(
        entity.model_name, node_id, data, entity, get_current_user(info), get_operation(info)
    )


async def _delete(bundle: 'TypeBundle', info, global_id: str) -> Any:
    entity = bundle.entity
    node_id = internal_id_for(entity.model_name, global_id)
    return await get_backend(info).delete_node(
        entity.model_name, node_id, entity, get_current_user(info), get_operation(info)
    )


async def sign_in(backend: Any, entity: EntitySchema, email: str, password: str) -> Tuple[Any, str]:
    """Authenticate ``email``/``password`` and return ``(user, token)``.

    Raises ``UnknownEmailError`` or ``WrongPasswordError``.
    """
    user = await backend.find_user_by_email(email)
    if user is None:
        _logger.debug("graphsynth: sign-in rejected, unknown email")
        raise UnknownEmailError(email)
    hashed = field_value(user, password_field_name(entity))
    if not await backend.compare_secret(password, hashed):
        _logger.debug("graphsynth: sign-in rejected, wrong password")
        raise WrongPasswordError(email)
    return user, backend.issue_token_for_user(user)


# --- relay mode ------------------------------------------------------------

def _relay_crud_fields(bundle: 'TypeBundle', viewer_type: Type[Any]) -> Dict[str, Tuple[Any, Callable[..., Any]]]:
    model = bundle.model_name
    obj = bundle.object_type
    node_key = lower_first(model)
    cmid = {CLIENT_MUTATION_ID: _arg(CLIENT_MUTATION_ID, str)}

    def payload_type(verb: str, extra: Optional[Dict[str, Any]] = None) -> Type[Any]:
        fields: Dict[str, Any] = {node_key: Optional[obj]}
        fields.update(extra or {})
        fields['viewer'] = Optional[viewer_type]
        fields[CLIENT_MUTATION_ID] = Optional[str]
        return build_payload_type(f"{verb}{model}Payload", fields)

    def input_arg(verb: str, fields: Dict[str, ArgSpec]) -> Dict[str, ArgSpec]:
        input_type = build_input_type(f"{verb}{model}Input", {**fields, **cmid})
        return {'input': _arg('input', input_type, required=True)}

    create_payload = payload_type('Create')
    update_payload = payload_type('Update')
    delete_payload = payload_type('Delete', {'deletedId': Optional[strawberry.ID]})

    async def create_impl(self, info, args):
        values, client_mutation_id = _split_envelope(args['input'])
        record = await _create(bundle, info, values)
        return _payload(
            create_payload,
            **{node_key: wrap(obj, record)},
            viewer=make_viewer(viewer_type, get_current_user(info)),
            clientMutationId=client_mutation_id,
        )

    async def update_impl(self, info, args):
        values, client_mutation_id = _split_envelope(args['input'])
        record = await _update(bundle, info, values)
        return _payload(
            update_payload,
            **{node_key: wrap(obj, record)},
            viewer=make_viewer(viewer_type, get_current_user(info)),
            clientMutationId=client_mutation_id,
        )

    async def delete_impl(self, info, args):
        values, client_mutation_id = _split_envelope(args['input'])
        record = await _delete(bundle, info, values['id'])
        return _payload(
            delete_payload,
            **{node_key: wrap(obj, record)},
            deletedId=values['id'] if record is not None else None,
            viewer=make_viewer(viewer_type, get_current_user(info)),
            clientMutationId=client_mutation_id,
        )

    create_resolver = build_resolver(f"create_{model}", input_arg('Create', dict(bundle.create_args)), create_impl)
    update_resolver = build_resolver(f"update_{model}", input_arg('Update', dict(bundle.update_args)), update_impl)
    delete_fields = {'id': _arg('id', strawberry.ID, required=True)}
    delete_resolver = build_resolver(f"delete_{model}", input_arg('Delete', delete_fields), delete_impl)
    return {
        f"create{model}": (Optional[create_payload], create_resolver),
        f"update{model}": (Optional[update_payload], update_resolver),
        f"delete{model}": (Optional[delete_payload], delete_resolver),
    }


def _relay_signin_field(registry: 'TypeRegistry', viewer_type: Type[Any]) -> Tuple[Any, Callable[..., Any]]:
    user_entity = registry[USER_MODEL].entity
    payload = build_payload_type('SigninUserPayload', {
        'token': Optional[str],
        'viewer': Optional[viewer_type],
        CLIENT_MUTATION_ID: Optional[str],
    })
    input_type = build_input_type('SigninUserInput', {
        'email': _arg('email', str, required=True),
        'password': _arg('password', str, required=True),
        CLIENT_MUTATION_ID: _arg(CLIENT_MUTATION_ID, str),
    })

    async def _impl(self, info, args):
        values = input_to_dict(args['input'])
        user, token = await sign_in(get_backend(info), user_entity, values['email'], values['password'])
        return _payload(
            payload,
            token=token,
            viewer=make_viewer(viewer_type, user),
            clientMutationId=values.get(CLIENT_MUTATION_ID),
        )

    arguments = {'input': _arg('input', input_type, required=True)}
    return Optional[payload], build_resolver('signin_user', arguments, _impl)


# --- simple mode -----------------------------------------------------------

def _simple_crud_fields(bundle: 'TypeBundle') -> Dict[str, Tuple[Any, Callable[..., Any]]]:
    model = bundle.model_name
    obj = bundle.object_type

    async def create_impl(self, info, args):
        return wrap(obj, await _create(bundle, info, normalize_args(args)))

    async def update_impl(self, info, args):
        return wrap(obj, await _update(bundle, info, normalize_args(args)))

    async def delete_impl(self, info, args):
        return wrap(obj, await _delete(bundle, info, args['id']))

    delete_args = {'id': _arg('id', strawberry.ID, required=True)}
    return {
        f"create{model}": (Optional[obj], build_resolver(f"create_{model}", bundle.create_args, create_impl)),
        f"update{model}": (Optional[obj], build_resolver(f"update_{model}", bundle.update_args, update_impl)),
        f"delete{model}": (Optional[obj], build_resolver(f"delete_{model}", delete_args, delete_impl)),
    }


def _simple_signin_field(registry: 'TypeRegistry') -> Tuple[Any, Callable[..., Any]]:
    user_entity = registry[USER_MODEL].entity
    payload = build_payload_type('SigninUserPayload', {'token': str})

    async def _impl(self, info, args):
        _user, token = await sign_in(get_backend(info), user_entity, args['email'], args['password'])
        return _payload(payload, token=token)

    arguments = {
        'email': _arg('email', str, required=True),
        'password': _arg('password', str, required=True),
    }
    return Optional[payload], build_resolver('signin_user', arguments, _impl)


def build_mutation(registry: 'TypeRegistry', viewer_type: Type[Any]) -> Optional[Type[Any]]:
    """Return the ``Mutation`` root type, or ``None`` when there is nothing to mutate."""
    fields: Dict[str, Tuple[Any, Callable[..., Any]]] = {}
    for bundle in registry.values():
        if registry.relay:
            fields.update(_relay_crud_fields(bundle, viewer_type))
        else:
            fields.update(_simple_crud_fields(bundle))
    if USER_MODEL in registry:
        if registry.relay:
            fields['signinUser'] = _relay_signin_field(registry, viewer_type)
        else:
            fields['signinUser'] = _simple_signin_field(registry)
    if not fields:
        return None

    mutation = type('Mutation', (), {'__module__': __name__})
    annotations: Dict[str, Any] = {}
    for name, (annotation, resolver) in fields.items():
        pname = python_name(name)
        annotations[pname] = annotation
        setattr(mutation, pname, strawberry.mutation(resolver=resolver, name=name))
    mutation.__annotations__ = annotations
    _logger.debug("graphsynth: mutation root exposes %d fields", len(fields))
    return strawberry.type(mutation, name='Mutation')
