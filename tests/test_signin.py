import pytest

from graphsynth import RequestContext, SchemaGenerator, to_global_id
from tests.schema import schema, simple_schema

SIGNIN = """
mutation($email: String!, $password: String!) {
  signinUser(input: {email: $email, password: $password, clientMutationId: "s-1"}) {
    token
    clientMutationId
    viewer { id user { name } }
  }
}
"""


def _ctx(backend):
    return RequestContext(backend=backend)


@pytest.mark.asyncio
async def test_signin_success(memory_backend):
    variables = {'email': 'alice@example.com', 'password': 'alice-pw'}
    res = await schema.execute(SIGNIN, variable_values=variables, context_value=_ctx(memory_backend))
    assert res.errors is None, res.errors
    payload = res.data['signinUser']
    assert payload['token'] == 'token-u2'
    assert payload['clientMutationId'] == 's-1'
    assert payload['viewer']['id'] == to_global_id('User', 'u2')


@pytest.mark.asyncio
async def test_signin_unknown_email(memory_backend):
    variables = {'email': 'nobody@example.com', 'password': 'whatever'}
    res = await schema.execute(SIGNIN, variable_values=variables, context_value=_ctx(memory_backend))
    assert res.errors is not None
    assert res.errors[0].message == "no user with the email 'nobody@example.com'"
    assert res.data['signinUser'] is None


@pytest.mark.asyncio
async def test_signin_wrong_password(memory_backend):
    variables = {'email': 'alice@example.com', 'password': 'nope'}
    res = await schema.execute(SIGNIN, variable_values=variables, context_value=_ctx(memory_backend))
    assert res.errors is not None
    assert res.errors[0].message == "incorrect password for email 'alice@example.com'"


@pytest.mark.asyncio
async def test_signin_simple_mode(memory_backend):
    q = 'mutation { signinUser(email: "bob@example.com", password: "bob-pw") { token } }'
    res = await simple_schema.execute(q, context_value=_ctx(memory_backend))
    assert res.errors is None, res.errors
    assert res.data['signinUser'] == {'token': 'token-u3'}


@pytest.mark.asyncio
async def test_signin_with_async_secret_callables(memory_backend):
    async def compare(plaintext, hashed):
        return hashed == f"hashed:{plaintext}"

    memory_backend._compare_secret = compare
    variables = {'email': 'carol@example.com', 'password': 'carol-pw'}
    res = await schema.execute(SIGNIN, variable_values=variables, context_value=_ctx(memory_backend))
    assert res.errors is None, res.errors
    assert res.data['signinUser']['token'] == 'token-u1'


def test_signin_only_exists_with_a_user_entity():
    schemas = [{'modelName': 'Tag', 'fields': [{'fieldName': 'id', 'typeIdentifier': 'ID'}]}]
    built = SchemaGenerator(schemas).to_strawberry()
    sdl = str(built)
    assert 'signinUser' not in sdl
    assert 'createTag' in sdl
