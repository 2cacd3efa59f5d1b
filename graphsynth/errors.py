"""Exception hierarchy for graphsynth.

Resolvers raise these errors and Strawberry turns them into per-field
GraphQL errors; schema construction raises them synchronously.
"""
from __future__ import annotations


class GraphSynthError(Exception):
    """Base class for all graphsynth errors."""


class SchemaDefinitionError(GraphSynthError):
    """Client schema descriptions cannot be compiled into a GraphQL schema."""


class InvalidGlobalIdError(GraphSynthError, ValueError):
    """A global identifier could not be decoded or names the wrong entity."""


class BackendError(GraphSynthError):
    """The backend collaborator is missing or misconfigured."""


class AuthenticationError(GraphSynthError):
    """Sign-in failed."""

    def __init__(self, email: str, message: str):
        super().__init__(message)
        self.email = email


class UnknownEmailError(AuthenticationError):
    def __init__(self, email: str):
        super().__init__(email, f"no user with the email '{email}'")


class WrongPasswordError(AuthenticationError):
    def __init__(self, email: str):
        super().__init__(email, f"incorrect password for email '{email}'")
