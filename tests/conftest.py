import os
import tempfile

# Settings are read at import time, so point them at throwaway locations first
_TMP_DIR = tempfile.mkdtemp(prefix="inventory-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["STORAGE_PATH"] = os.path.join(_TMP_DIR, "storage")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["AI_GATEWAY_API_KEY"] = "test-gateway-key"
os.environ["AI_GATEWAY_RETRY_BACKOFF"] = "0"

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from core.database import Base, SessionLocal, engine
from core.exceptions import GatewayError
from main import app
from modules.analysis.schemas import ExtractionResult
from modules.inventory.models import InventoryItem
from utils.ai_gateway import get_extraction_gateway


class FakeGateway:
    """Stands in for the AI gateway; optionally fails on the n-th image (1-based)."""

    def __init__(self, fail_on: Optional[int] = None):
        self.fail_on = fail_on
        self.calls: List[str] = []

    def ensure_configured(self):
        pass

    def extract(self, image_url: str) -> ExtractionResult:
        self.calls.append(image_url)
        n = len(self.calls)
        if self.fail_on == n:
            raise GatewayError("AI analysis failed")
        return ExtractionResult(
            name=f"Item {n}",
            description=f"Photographed item number {n}",
            category="electronics",
            estimated_value=100.0 * n,
            condition="good",
            brand="Acme",
            model=f"X{n}",
            color="black",
        )


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _register(client: TestClient, email: str, password: str = "correct-horse") -> Dict[str, str]:
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    user_id = response.json()["id"]

    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"id": user_id, "token": token}


@pytest.fixture
def make_user(client):
    def _make(email: str = "owner@example.com") -> Dict[str, str]:
        user = _register(client, email)
        user["headers"] = {"Authorization": f"Bearer {user['token']}"}
        return user
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def fake_gateway():
    gateway = FakeGateway()
    app.dependency_overrides[get_extraction_gateway] = lambda: gateway
    return gateway


@pytest.fixture
def count_items(db_session):
    def _count() -> int:
        db_session.rollback()
        return db_session.query(InventoryItem).count()
    return _count
