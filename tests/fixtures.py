"""Sample records for graphsynth tests (shared)."""

import pytest

from graphsynth.backends import MemoryBackend, SQLBackend

from .schema import CLIENT_SCHEMAS, compare_secret, hash_secret, issue_token

# Insertion order matters: collections list records in this order.
USERS = [
    {'id': 'u1', 'name': 'carol', 'email': 'carol@example.com', 'password': 'hashed:carol-pw',
     'age': 41, 'role': 'ADMIN'},
    {'id': 'u2', 'name': 'alice', 'email': 'alice@example.com', 'password': 'hashed:alice-pw',
     'age': 30, 'role': 'MEMBER'},
    {'id': 'u3', 'name': 'Bob', 'email': 'bob@example.com', 'password': 'hashed:bob-pw',
     'age': 25, 'role': None},
]

POSTS = [
    {'id': 'p1', 'title': 'First', 'views': 10, 'rating': 4.5, 'status': 'PUBLISHED', 'authorId': 'u1'},
    {'id': 'p2', 'title': 'second', 'views': 3, 'rating': 2.0, 'status': 'DRAFT', 'authorId': 'u1'},
    {'id': 'p3', 'title': 'Third', 'views': 7, 'rating': 3.5, 'status': 'PUBLISHED', 'authorId': 'u2'},
    {'id': 'p4', 'title': 'fourth', 'views': None, 'rating': None, 'status': 'PUBLISHED', 'authorId': 'u1'},
    {'id': 'p5', 'title': 'Fifth', 'views': 1, 'rating': 5.0, 'status': None, 'authorId': 'u3'},
]

COMMENTS = [
    {'id': 'c1', 'text': 'nice', 'postId': 'p1', 'authorId': 'u2'},
    {'id': 'c2', 'text': 'great', 'postId': 'p1', 'authorId': 'u3'},
    {'id': 'c3', 'text': 'more please', 'postId': 'p1', 'authorId': 'u2'},
    {'id': 'c4', 'text': 'ok', 'postId': 'p3', 'authorId': 'u1'},
]

SAMPLE_DATA = [('User', USERS), ('Post', POSTS), ('Comment', COMMENTS)]


def backend_options():
    return {'hash_secret': hash_secret, 'compare_secret': compare_secret, 'issue_token': issue_token}


def populate_memory(backend: MemoryBackend) -> MemoryBackend:
    for model_name, records in SAMPLE_DATA:
        for record in records:
            backend.add(model_name, record)
    return backend


async def populate_sql(backend: SQLBackend) -> SQLBackend:
    for model_name, records in SAMPLE_DATA:
        for record in records:
            await backend.insert_record(model_name, record)
    return backend


@pytest.fixture(scope="function")
def memory_backend() -> MemoryBackend:
    return populate_memory(MemoryBackend(**backend_options()))


@pytest.fixture(scope="function")
async def sql_backend(engine) -> SQLBackend:
    backend = SQLBackend(engine, CLIENT_SCHEMAS, **backend_options())
    await backend.create_all()
    await populate_sql(backend)
    yield backend
    await backend.drop_all()
