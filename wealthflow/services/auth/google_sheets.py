"""
Google Sheets Auth Provider

Registered users are rows in the Users worksheet of the same
spreadsheet as the records. Only salted password hashes are stored.
"""

from typing import Optional

from tenacity import retry, stop_after_attempt, wait_exponential

from wealthflow.services.auth.interface import PasswordAuthProvider, UserRecord
from wealthflow.services.storage.google_sheets import GoogleSheetsClient
from wealthflow.services.storage.interface import StorageError


USER_COLUMNS = ["id", "email", "display_name", "password_hash", "salt"]


class GoogleSheetsAuthProvider(PasswordAuthProvider):
    """Password auth backed by a Users worksheet."""

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        min_password_length: int = 6,
    ):
        super().__init__(min_password_length)
        self._client = client or GoogleSheetsClient()

    def _sheet(self):
        return self._client.get_worksheet(
            self._client.settings.users_sheet_name,
            USER_COLUMNS,
        )

    async def _find_user(self, email: str) -> Optional[UserRecord]:
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to read users: {e}")

        for row in all_rows:
            if len(row) >= len(USER_COLUMNS) and row[1] == email:
                return UserRecord(**dict(zip(USER_COLUMNS, row)))
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append(self, row: list[str]) -> None:
        self._sheet().append_row(row, value_input_option="RAW")

    async def _save_user(self, record: UserRecord) -> None:
        try:
            self._append([getattr(record, col) for col in USER_COLUMNS])
        except Exception as e:
            raise StorageError(f"Failed to save user: {e}")
