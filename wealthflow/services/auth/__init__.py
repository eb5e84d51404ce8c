"""
Auth Services Package

Email/password authentication behind an injectable provider.
"""

from wealthflow.services.auth.interface import (
    AuthenticationError,
    AuthProviderInterface,
    DuplicateUserError,
    InvalidCredentialsError,
    InvalidEmailError,
    PasswordAuthProvider,
    UserRecord,
    WeakPasswordError,
)
from wealthflow.services.auth.memory import InMemoryAuthProvider
from wealthflow.services.auth.google_sheets import GoogleSheetsAuthProvider

__all__ = [
    "AuthenticationError",
    "AuthProviderInterface",
    "DuplicateUserError",
    "GoogleSheetsAuthProvider",
    "InMemoryAuthProvider",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "PasswordAuthProvider",
    "UserRecord",
    "WeakPasswordError",
]
