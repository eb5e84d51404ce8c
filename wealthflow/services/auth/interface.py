"""
Authentication Interface

DESIGN DECISION: Auth is an injected collaborator, not a global.
Providers are stateless: sign_in and register only check credentials
and return the identity. Who is signed in is kept by the AuthFlow of
each browser session, so one provider can serve every visitor.

Auth failures are the only errors meant to reach the user directly,
so their messages are written to be shown verbatim.
"""

import hashlib
import hmac
import secrets
from abc import ABC, abstractmethod
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict

from wealthflow.models.user import UserIdentity


PBKDF2_ITERATIONS = 200_000


class AuthenticationError(Exception):
    """Base exception for sign-in and registration failures."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password."""
    pass


class InvalidEmailError(AuthenticationError):
    """Email address is missing or malformed."""
    pass


class WeakPasswordError(AuthenticationError):
    """Password rejected at registration."""
    pass


class DuplicateUserError(AuthenticationError):
    """An account already exists for this email."""
    pass


class AuthProviderInterface(ABC):
    """Abstract interface for authentication backends."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> UserIdentity:
        """
        Sign in with email and password.

        Raises:
            InvalidCredentialsError: If the email or password is wrong
        """
        pass

    @abstractmethod
    async def register(self, email: str, password: str, display_name: str) -> UserIdentity:
        """
        Create a user and return their identity.

        Raises:
            InvalidEmailError: If the email is malformed
            WeakPasswordError: If the password is too short
            DuplicateUserError: If the email is already registered
        """
        pass


class UserRecord(BaseModel):
    """Stored form of a registered user."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    display_name: str = ""
    password_hash: str
    salt: str

    def identity(self) -> UserIdentity:
        return UserIdentity.build(self.id, self.email, self.display_name)


def hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt),
        PBKDF2_ITERATIONS,
    )
    return digest.hex()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class PasswordAuthProvider(AuthProviderInterface):
    """
    Email/password auth over a pluggable user table.

    Subclasses only decide where UserRecords are kept.
    """

    def __init__(self, min_password_length: int = 6):
        self._min_password_length = min_password_length

    @abstractmethod
    async def _find_user(self, email: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def _save_user(self, record: UserRecord) -> None:
        pass

    async def sign_in(self, email: str, password: str) -> UserIdentity:
        record = await self._find_user(normalize_email(email))
        if record is None or not hmac.compare_digest(
            record.password_hash, hash_password(password, record.salt)
        ):
            raise InvalidCredentialsError("Invalid email or password")

        return record.identity()

    async def register(self, email: str, password: str, display_name: str) -> UserIdentity:
        email = normalize_email(email)
        local, _, domain = email.partition("@")
        if not local or not domain:
            raise InvalidEmailError("Please enter a valid email address")
        if len(password or "") < self._min_password_length:
            raise WeakPasswordError(
                f"Password should be at least {self._min_password_length} characters"
            )
        if await self._find_user(email) is not None:
            raise DuplicateUserError("An account already exists for this email")

        salt = secrets.token_hex(16)
        record = UserRecord(
            id=uuid4().hex,
            email=email,
            display_name=(display_name or "").strip(),
            password_hash=hash_password(password, salt),
            salt=salt,
        )
        await self._save_user(record)
        return record.identity()
