"""
Basic example of synthesizing a GraphQL API with graphsynth.

This example demonstrates:
- Describing client models as plain dicts
- Generating a relay-style Strawberry schema from them
- Serving reads, nested connections and mutations from the in-memory backend
- Signing a user in and querying the viewer
"""

import asyncio
import json
import logging

from graphsynth import MemoryBackend, OutputMode, RequestContext, generate_schema, to_global_id

CLIENT_SCHEMAS = [
    {
        'modelName': 'User',
        'fields': [
            {'fieldName': 'id', 'typeIdentifier': 'ID', 'isRequired': True},
            {'fieldName': 'name', 'typeIdentifier': 'String', 'isRequired': True},
            {'fieldName': 'email', 'typeIdentifier': 'String', 'isRequired': True},
            {'fieldName': 'password', 'typeIdentifier': 'Password'},
            {'fieldName': 'todos', 'typeIdentifier': 'Todo', 'isList': True},
        ],
    },
    {
        'modelName': 'Todo',
        'fields': [
            {'fieldName': 'id', 'typeIdentifier': 'ID', 'isRequired': True},
            {'fieldName': 'text', 'typeIdentifier': 'String', 'isRequired': True},
            {'fieldName': 'done', 'typeIdentifier': 'Boolean', 'defaultValue': 'false'},
            {
                'fieldName': 'priority',
                'typeIdentifier': 'Enum',
                'enumValues': ['LOW', 'HIGH'],
                'defaultValue': 'LOW',
            },
            {'fieldName': 'user', 'typeIdentifier': 'User', 'isRequired': True},
        ],
    },
]

LIST_QUERY = """
query {
  viewer {
    allUsers(orderBy: name_ASC) {
      totalCount
      edges {
        node {
          id
          name
          todos(first: 2) {
            totalCount
            pageInfo { hasNextPage endCursor }
            edges { node { text done priority } }
          }
        }
      }
    }
  }
}
"""

CREATE_TODO = """
mutation CreateTodo($input: CreateTodoInput!) {
  createTodo(input: $input) {
    clientMutationId
    todo { id text priority user { name } }
  }
}
"""

SIGN_IN = """
mutation {
  signinUser(input: {email: "ada@example.com", password: "lovelace"}) {
    token
    viewer { id }
  }
}
"""


def hash_secret(plaintext: str) -> str:
    # Stand-in for a real password hash such as bcrypt.
    return plaintext[::-1]


def compare_secret(plaintext: str, hashed: str) -> bool:
    return hash_secret(plaintext) == hashed


def issue_token(user) -> str:
    return f"token-for-{user['id']}"


def make_backend() -> MemoryBackend:
    backend = MemoryBackend(hash_secret=hash_secret, compare_secret=compare_secret, issue_token=issue_token)
    backend.add('User', {'id': 'ada', 'name': 'Ada', 'email': 'ada@example.com', 'password': hash_secret('lovelace')})
    backend.add('User', {'id': 'alan', 'name': 'Alan', 'email': 'alan@example.com', 'password': hash_secret('enigma')})
    for text, owner in [('write notes', 'ada'), ('run engine', 'ada'), ('debug', 'ada'), ('crack code', 'alan')]:
        backend.add('Todo', {'text': text, 'userId': owner})
    return backend


async def main() -> None:
    schema = generate_schema(CLIENT_SCHEMAS, mode=OutputMode.RELAY)
    backend = make_backend()
    context = RequestContext(backend=backend)

    print("=== SDL ===")
    print(schema.as_str())

    result = await schema.execute(LIST_QUERY, context_value=context)
    print("\n=== Users with their first two todos ===")
    print(json.dumps(result.data, indent=2))

    variables = {
        'input': {
            'text': 'analytical engine',
            'priority': 'HIGH',
            'userId': to_global_id('User', 'ada'),
            'clientMutationId': 'demo-1',
        }
    }
    result = await schema.execute(CREATE_TODO, variable_values=variables, context_value=context)
    print("\n=== createTodo ===")
    print(json.dumps(result.data, indent=2))

    result = await schema.execute(SIGN_IN, context_value=context)
    print("\n=== signinUser ===")
    print(json.dumps(result.data, indent=2))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
