"""
Pytest configuration - shared fixtures.

In-memory SQLite, a FastAPI TestClient and fakes for the Vision and OpenAI clients.
"""
import base64
import json
import os
from types import SimpleNamespace
from typing import Any, Dict, Generator, List, Optional

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from receipt_splitter.config import Settings, get_settings
from receipt_splitter.core import security
from receipt_splitter.core.security import TokenService
from receipt_splitter.database import Base, get_db
from receipt_splitter.dependencies import get_ocr_client, get_structurer
from receipt_splitter.main import app
from receipt_splitter.models import Modifier, Receipt, ReceiptItem, User  # noqa: F401
from receipt_splitter.services.llm_service import ReceiptStructurer
from receipt_splitter.services.ocr_service import VisionOCRClient

TEST_SECRET = "test-secret"
VISION_ENDPOINT = "https://vision.test/v1/images:annotate"

STRUCTURED_REPLY = {
    "name": "Corner Shop",
    "modifiers": [{"type": "Service Charge", "value": 1.2, "percentage": 10}],
    "items": [
        {"item": "Milk", "price": 1.5, "qty": 2},
        {"item": "Bread", "price": 1.0, "qty": 1},
    ],
}

IMAGE_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\n fake receipt photo").decode("ascii")


class FakeVision:
    """Stands in for the Cloud Vision endpoint behind httpx.MockTransport."""

    def __init__(self):
        self.status_code = 200
        self.payload: Any = {
            "responses": [{"fullTextAnnotation": {"text": "CORNER SHOP\nMILK 2 x 1.50\nBREAD 1.00\n"}}]
        }
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last_body(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


class FakeCompletions:
    def __init__(self, reply: Optional[str], error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.reply is None:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(role="assistant", content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    """Minimal object with the ``chat.completions.create`` surface of openai.OpenAI."""

    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None):
        self.completions = FakeCompletions(reply, error)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cheap hashes keep the suite fast; production cost stays at 12."""
    monkeypatch.setattr(security, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def test_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_db(test_engine) -> Generator[Session, None, None]:
    """Create in-memory SQLite database for testing"""
    SessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(JWT_SECRET=TEST_SECRET, ACCESS_TOKEN_EXPIRE_MINUTES=15)


@pytest.fixture
def token_service(test_settings) -> TokenService:
    return TokenService(test_settings.JWT_SECRET, test_settings.ACCESS_TOKEN_EXPIRE_MINUTES)


@pytest.fixture
def fake_vision() -> FakeVision:
    return FakeVision()


@pytest.fixture
def ocr_client(fake_vision) -> Generator[VisionOCRClient, None, None]:
    http_client = httpx.Client(transport=httpx.MockTransport(fake_vision.handler))
    try:
        yield VisionOCRClient(http_client, api_key="test-key", endpoint=VISION_ENDPOINT)
    finally:
        http_client.close()


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI(reply="```json\n" + json.dumps(STRUCTURED_REPLY) + "\n```")


@pytest.fixture
def structurer(fake_openai) -> ReceiptStructurer:
    return ReceiptStructurer(fake_openai, model="gpt-test")


@pytest.fixture
def client(test_db, test_settings, ocr_client, structurer):
    def _get_db():
        yield test_db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_ocr_client] = lambda: ocr_client
    app.dependency_overrides[get_structurer] = lambda: structurer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def register_and_login(client):
    """Register a user over HTTP and return ``(user_json, auth_headers)``."""

    def _register_and_login(name="Alice", email="a@x.com", password="pw123"):
        resp = client.post(
            "/register", json={"name": name, "email": email, "password": password}
        )
        assert resp.status_code == 201, resp.text
        resp = client.post("/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register_and_login
