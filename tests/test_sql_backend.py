import pytest

from graphsynth import BackendError, RequestContext, to_global_id
from graphsynth.backends import SQLBackend
from tests.fixtures import backend_options
from tests.schema import schema, simple_schema


def _ctx(backend, user=None):
    return RequestContext(backend=backend.for_user(user), current_user=user)


@pytest.mark.asyncio
async def test_tables_follow_entities(sql_backend):
    post = sql_backend.table('Post')
    assert 'authorId' in post.c and 'comments' not in post.c and 'author' not in post.c
    assert post.c.id.primary_key
    user = sql_backend.table('User')
    assert any(ix.columns.contains_column(user.c.email) for ix in user.indexes)
    with pytest.raises(BackendError):
        sql_backend.table('Tag')


@pytest.mark.asyncio
async def test_sorted_collection(sql_backend):
    q = '{ viewer { allUsers(orderBy: name_ASC) { totalCount edges { node { name role } } } } }'
    res = await schema.execute(q, context_value=_ctx(sql_backend))
    assert res.errors is None, res.errors
    conn = res.data['viewer']['allUsers']
    assert conn['totalCount'] == 3
    assert [e['node'] for e in conn['edges']] == [
        {'name': 'alice', 'role': 'MEMBER'},
        {'name': 'Bob', 'role': 'MEMBER'},
        {'name': 'carol', 'role': 'ADMIN'},
    ]


@pytest.mark.asyncio
async def test_relations_through_back_reference(sql_backend):
    q = """
    query($id: ID!) {
      node(id: $id) {
        ... on User {
          posts(filter: {status: PUBLISHED}) { totalCount edges { node { title author { email } } } }
        }
      }
    }
    """
    res = await schema.execute(q, variable_values={'id': to_global_id('User', 'u1')}, context_value=_ctx(sql_backend))
    assert res.errors is None, res.errors
    posts = res.data['node']['posts']
    assert posts['totalCount'] == 2
    assert [e['node']['title'] for e in posts['edges']] == ['First', 'fourth']
    assert posts['edges'][0]['node']['author'] == {'email': 'carol@example.com'}


@pytest.mark.asyncio
async def test_crud_round_trip(sql_backend):
    create = """
    mutation($author: ID!) {
      createPost(input: {title: "Stored", authorId: $author, rating: 1.5}) { post { id title rating author { name } } }
    }
    """
    res = await schema.execute(
        create, variable_values={'author': to_global_id('User', 'u3')}, context_value=_ctx(sql_backend)
    )
    assert res.errors is None, res.errors
    post = res.data['createPost']['post']
    assert post['title'] == 'Stored' and post['rating'] == 1.5
    assert post['author'] == {'name': 'Bob'}

    update = 'mutation($id: ID!) { updatePost(input: {id: $id, status: PUBLISHED}) { post { title status } } }'
    res = await schema.execute(update, variable_values={'id': post['id']}, context_value=_ctx(sql_backend))
    assert res.errors is None, res.errors
    assert res.data['updatePost']['post'] == {'title': 'Stored', 'status': 'PUBLISHED'}

    delete = 'mutation($id: ID!) { deletePost(input: {id: $id}) { deletedId } }'
    res = await schema.execute(delete, variable_values={'id': post['id']}, context_value=_ctx(sql_backend))
    assert res.errors is None, res.errors
    assert res.data['deletePost']['deletedId'] == post['id']
    assert len(await sql_backend.list_all_nodes_unchecked('Post')) == 5


@pytest.mark.asyncio
async def test_signin_uses_email_lookup(sql_backend):
    q = 'mutation { signinUser(email: "carol@example.com", password: "carol-pw") { token } }'
    res = await simple_schema.execute(q, context_value=_ctx(sql_backend))
    assert res.errors is None, res.errors
    assert res.data['signinUser'] == {'token': 'token-u1'}
    assert await sql_backend.find_user_by_email('missing@example.com') is None


@pytest.mark.asyncio
async def test_current_user_is_refetched(sql_backend):
    res = await schema.execute('{ viewer { user { name } } }', context_value=_ctx(sql_backend, {'id': 'u2'}))
    assert res.errors is None, res.errors
    assert res.data['viewer']['user'] == {'name': 'alice'}


@pytest.mark.asyncio
async def test_unknown_columns_are_rejected(engine):
    backend = SQLBackend(engine, [{'modelName': 'Tag', 'fields': [
        {'fieldName': 'id', 'typeIdentifier': 'ID'},
        {'fieldName': 'label', 'typeIdentifier': 'String'},
    ]}], **backend_options())
    await backend.create_all()
    with pytest.raises(BackendError, match='colour'):
        await backend.insert_record('Tag', {'label': 'x', 'colour': 'red'})
    tag = await backend.insert_record('Tag', {'label': 'x'})
    assert tag['label'] == 'x' and tag['id']
