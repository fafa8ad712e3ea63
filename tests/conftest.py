from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from pagecraft.database import connection
from pagecraft.services.model_client import ModelClient, ModelError


class FakeModelClient(ModelClient):
    """Records every call and answers with canned replies in order."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[Dict] = []

    async def generate(self, system: str, messages: List[Dict[str, str]]) -> str:
        self.calls.append({"system": system, "messages": messages})
        if self.error is not None:
            raise self.error
        if not self.replies:
            raise ModelError("no canned reply left")
        return self.replies.pop(0)


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(connection, "DB_PATH", tmp_path / "pagecraft-test.db")
    connection.init_db()
    return connection.DB_PATH


@pytest.fixture
def fake_model(monkeypatch):
    from pagecraft.services import generation

    fake = FakeModelClient()
    monkeypatch.setattr(generation, "get_model_client", lambda: fake)
    return fake


@pytest_asyncio.fixture
async def client(db):
    from pagecraft.main import app

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
