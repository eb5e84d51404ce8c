"""In-memory auth provider for tests and local runs."""

from typing import Optional

from wealthflow.services.auth.interface import PasswordAuthProvider, UserRecord


class InMemoryAuthProvider(PasswordAuthProvider):
    """Users are kept in a dict keyed by normalized email."""

    def __init__(self, min_password_length: int = 6):
        super().__init__(min_password_length)
        self._users: dict[str, UserRecord] = {}

    async def _find_user(self, email: str) -> Optional[UserRecord]:
        return self._users.get(email)

    async def _save_user(self, record: UserRecord) -> None:
        self._users[record.email] = record
