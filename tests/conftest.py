"""
Shared fixtures.

Everything runs in memory: no Google Sheets, no Gemini. The price
model is a stand-in object exposing the one coroutine the agent calls,
and the Sheets client is a fake whose worksheets keep rows in a list.
"""

import re
from types import SimpleNamespace

import pytest

from wealthflow.audit import AuditLogger
from wealthflow.config.settings import GeminiSettings
from wealthflow.models.audit import AUDIT_COLUMNS
from wealthflow.services.auth import InMemoryAuthProvider
from wealthflow.services.storage import InMemoryAuditStorage, InMemoryRecordStore
from wealthflow.services.storage.google_sheets import COLLECTION_COLUMNS
from wealthflow.sync import Collection


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeGeminiModel:
    """Returns a canned answer, or raises the given exception."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.prompts = []
        self.tools = []

    async def generate_content_async(self, prompt, tools=None):
        self.prompts.append(prompt)
        self.tools.append(tools)
        if self.error:
            raise self.error
        return FakeResponse(self.text)


class FakeWorksheet:
    """Rows kept in a list; row 1 is the header."""

    def __init__(self, columns):
        self.rows = [list(columns)]
        self.fail = False

    def _check(self):
        if self.fail:
            raise RuntimeError("quota exceeded")

    def get_all_values(self):
        self._check()
        return [list(r) for r in self.rows]

    def append_row(self, row, value_input_option=None):
        self._check()
        self.rows.append(list(row))

    def append_rows(self, rows, value_input_option=None):
        self._check()
        self.rows.extend(list(r) for r in rows)

    def batch_update(self, updates, value_input_option=None):
        self._check()
        for update in updates:
            row_index = int(re.match(r"[A-Z]+(\d+)", update["range"]).group(1))
            self.rows[row_index - 1] = list(update["values"][0])

    def delete_rows(self, index):
        self._check()
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient with one FakeWorksheet per sheet."""

    def __init__(self):
        self.settings = SimpleNamespace(users_sheet_name="Users")
        self.sheets = {c: FakeWorksheet(COLLECTION_COLUMNS[c]) for c in Collection}
        self.audit = FakeWorksheet(AUDIT_COLUMNS)
        self.worksheets = {}

    def get_collection_sheet(self, collection):
        return self.sheets[Collection(collection)]

    def get_audit_sheet(self):
        return self.audit

    def get_worksheet(self, title, columns):
        return self.worksheets.setdefault(title, FakeWorksheet(columns))


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def auth_provider():
    return InMemoryAuthProvider()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


@pytest.fixture
def gemini_settings():
    return GeminiSettings(api_key=None)


@pytest.fixture
def make_model():
    """Factory for fake Gemini models: make_model(text=..., error=...)."""
    return FakeGeminiModel
