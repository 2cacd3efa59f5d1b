import pytest

from graphsynth import SchemaGenerator, SchemaDefinitionError, load_client_schemas
from graphsynth.core.fields import RelationPlaceholder
from tests.schema import CLIENT_SCHEMAS, schema


def _field_type(res, type_name, field_name):
    fields = {f['name']: f['type'] for f in res.data['__type']['fields']}
    return fields[field_name]


TYPE_QUERY = """
query($name: String!) {
  __type(name: $name) {
    name
    kind
    interfaces { name }
    fields { name type { kind name ofType { kind name } } }
  }
}
"""


def test_first_pass_leaves_relation_placeholders():
    gen = SchemaGenerator(CLIENT_SCHEMAS)
    registry = gen.build_bundles()
    post = registry['Post']
    assert isinstance(post.fields['author'].annotation, RelationPlaceholder)
    assert post.fields['author'].annotation.target == 'User'
    assert post.fields['comments'].annotation.target == 'Comment'
    assert not post.fields['title'].is_placeholder


def test_non_null_before_wiring_is_rejected():
    gen = SchemaGenerator(CLIENT_SCHEMAS)
    gen.build_bundles()
    with pytest.raises(SchemaDefinitionError, match="Post.author"):
        gen.apply_non_null()


def test_non_null_requires_wiring_even_without_required_relations():
    schemas = [{'modelName': 'Tag', 'fields': [
        {'fieldName': 'id', 'typeIdentifier': 'ID', 'isRequired': True},
        {'fieldName': 'label', 'typeIdentifier': 'String', 'isRequired': True},
    ]}]
    gen = SchemaGenerator(schemas)
    gen.build_bundles()
    with pytest.raises(SchemaDefinitionError):
        gen.apply_non_null()
    gen.wire_relations()
    registry = gen.apply_non_null()
    assert registry['Tag'].fields['label'].non_null is True


def test_each_pass_supersedes_bundles():
    gen = SchemaGenerator(CLIENT_SCHEMAS)
    first = gen.build_bundles()['Post']
    wired = gen.wire_relations()['Post']
    final = gen.apply_non_null()['Post']
    assert first is not wired and wired is not final
    # earlier snapshots are untouched
    assert first.fields['author'].is_placeholder
    assert wired.fields['author'].non_null is False
    assert final.fields['author'].non_null is True
    # the classes themselves are shared across snapshots
    assert first.object_type is final.object_type
    assert wired.fields['author'].annotation is gen.registry['User'].object_type
    assert wired.fields['comments'].annotation is gen.registry['Comment'].connection_type


def test_registry_is_sealed_after_build():
    gen = SchemaGenerator(CLIENT_SCHEMAS)
    registry = gen.build()
    assert registry.sealed
    with pytest.raises(SchemaDefinitionError):
        registry.put(registry['Post'])


def test_unknown_relation_target_fails_at_wiring():
    schemas = [{'modelName': 'Post', 'fields': [
        {'fieldName': 'id', 'typeIdentifier': 'ID'},
        {'fieldName': 'author', 'typeIdentifier': 'Writer'},
    ]}]
    gen = SchemaGenerator(schemas)
    gen.build_bundles()
    with pytest.raises(SchemaDefinitionError, match="unknown model 'Writer'"):
        gen.wire_relations()


@pytest.mark.parametrize('schemas, message', [
    ([{'modelName': 'A', 'fields': [{'fieldName': 'id', 'typeIdentifier': 'ID'}]}] * 2, 'Duplicate'),
    ([{'modelName': 'A', 'fields': [{'fieldName': 'name', 'typeIdentifier': 'String'}]}], "exactly one 'id'"),
    ([{'modelName': 'A', 'fields': [
        {'fieldName': 'id', 'typeIdentifier': 'ID'},
        {'fieldName': 'kind', 'typeIdentifier': 'Enum', 'enumValues': []},
    ]}], 'no enum values'),
    ([{'modelName': 'Viewer', 'fields': [{'fieldName': 'id', 'typeIdentifier': 'ID'}]}], 'reserved'),
])
def test_invalid_client_schemas(schemas, message):
    with pytest.raises(SchemaDefinitionError, match=message):
        load_client_schemas(schemas)


@pytest.mark.asyncio
async def test_required_fields_are_non_null():
    res = await schema.execute(TYPE_QUERY, variable_values={'name': 'Post'})
    assert res.errors is None, res.errors
    assert res.data['__type']['interfaces'] == [{'name': 'Node'}]
    author = _field_type(res, 'Post', 'author')
    assert author['kind'] == 'NON_NULL'
    assert author['ofType'] == {'kind': 'OBJECT', 'name': 'User'}
    title = _field_type(res, 'Post', 'title')
    assert title['kind'] == 'NON_NULL' and title['ofType']['name'] == 'String'
    views = _field_type(res, 'Post', 'views')
    assert views == {'kind': 'SCALAR', 'name': 'Int', 'ofType': None}
    comments = _field_type(res, 'Post', 'comments')
    assert comments == {'kind': 'OBJECT', 'name': 'CommentConnection', 'ofType': None}
    id_type = _field_type(res, 'Post', 'id')
    assert id_type['ofType']['name'] == 'ID'


@pytest.mark.asyncio
async def test_optional_one_to_one_stays_nullable():
    res = await schema.execute(TYPE_QUERY, variable_values={'name': 'Comment'})
    assert res.errors is None, res.errors
    assert _field_type(res, 'Comment', 'post') == {'kind': 'OBJECT', 'name': 'Post', 'ofType': None}


@pytest.mark.asyncio
async def test_connection_and_edge_shapes():
    res = await schema.execute(TYPE_QUERY, variable_values={'name': 'PostConnection'})
    assert res.errors is None, res.errors
    names = {f['name'] for f in res.data['__type']['fields']}
    assert names == {'edges', 'pageInfo', 'totalCount'}
    res = await schema.execute(TYPE_QUERY, variable_values={'name': 'PostEdge'})
    names = {f['name'] for f in res.data['__type']['fields']}
    assert names == {'node', 'cursor'}
