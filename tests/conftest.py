import uuid
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from main import app, get_repo
from repo_events import ConnectivityError


class FakeEventLogRepo:
    """In-memory stand-in for `EventLogRepo`."""

    def __init__(self) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.fail_with: str | None = None

    def insert_entry(self, document: Dict[str, Any], date: Any) -> Dict[str, Any]:
        if self.fail_with:
            raise ConnectivityError(self.fail_with)
        stored = {"_id": str(uuid.uuid4()), **document}
        self.documents.append(stored)
        return stored


@pytest.fixture
def repo() -> FakeEventLogRepo:
    return FakeEventLogRepo()


@pytest.fixture
def client(repo: FakeEventLogRepo):
    app.dependency_overrides[get_repo] = lambda: repo
    yield TestClient(app)
    app.dependency_overrides.clear()
