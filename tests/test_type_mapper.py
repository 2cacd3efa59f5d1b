import pytest

import strawberry

from graphsynth import SchemaGenerator
from graphsynth.core.fields import FieldDescriptor, RelationPlaceholder
from graphsynth.types import TypeMapper
from tests.schema import CLIENT_SCHEMAS, schema

STATUS = FieldDescriptor('status', 'Enum', enum_values=('DRAFT', 'PUBLISHED'))


def test_scalar_mapping():
    mapper = TypeMapper()
    assert mapper.field_type('Post', FieldDescriptor('title', 'String')) is str
    assert mapper.field_type('Post', FieldDescriptor('views', 'Int')) is int
    assert mapper.field_type('Post', FieldDescriptor('rating', 'Float')) is float
    assert mapper.field_type('Post', FieldDescriptor('pinned', 'Boolean')) is bool
    assert mapper.field_type('User', FieldDescriptor('password', 'Password')) is str
    assert mapper.field_type('Post', FieldDescriptor('id', 'ID')) is strawberry.ID


def test_relation_and_unknown_identifiers_become_placeholders():
    mapper = TypeMapper()
    assert mapper.field_type('Post', FieldDescriptor('author', 'User')) == RelationPlaceholder('User')
    assert mapper.is_relation('Post', FieldDescriptor('blob', 'Bytes'))
    assert not mapper.is_relation('Post', FieldDescriptor('title', 'String'))


def test_identity_field_is_always_an_id():
    mapper = TypeMapper()
    assert mapper.field_type('Post', FieldDescriptor('id', 'GraphQLID')) is strawberry.ID
    assert FieldDescriptor('id', 'GraphQLID').is_scalar


def test_enum_identity_within_a_build():
    mapper = TypeMapper()
    first = mapper.enum_type('Post', STATUS)
    assert mapper.enum_type('Post', STATUS) is first
    assert mapper.field_type('Post', STATUS) is first
    assert [m.value for m in first] == ['DRAFT', 'PUBLISHED']
    assert 'Post_status' in mapper.enum_types


def test_enum_cache_is_not_shared_between_builds():
    a = SchemaGenerator(CLIENT_SCHEMAS)
    b = SchemaGenerator(CLIENT_SCHEMAS)
    a.build_bundles()
    b.build_bundles()
    assert a.mapper.enum_types['Post_status'] is not b.mapper.enum_types['Post_status']


def test_enum_shared_by_object_and_filter_shapes():
    gen = SchemaGenerator(CLIENT_SCHEMAS)
    registry = gen.build_bundles()
    status_enum = gen.mapper.enum_types['Post_status']
    assert registry['Post'].fields['status'].annotation is status_enum
    create_status = registry['Post'].create_args['status'].annotation
    assert status_enum in getattr(create_status, '__args__', ())


@pytest.mark.asyncio
async def test_enum_type_in_schema():
    q = '{ __type(name: "User_role") { kind enumValues { name } } }'
    res = await schema.execute(q)
    assert res.errors is None, res.errors
    assert res.data['__type']['kind'] == 'ENUM'
    assert [v['name'] for v in res.data['__type']['enumValues']] == ['ADMIN', 'MEMBER']
