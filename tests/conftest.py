"""
Shared pytest fixtures.

Uses a SQLite file database so no Postgres is required for tests. Every test
gets a fresh user id, so rows from other tests never fall into its queries.

The classification service is replaced by StubGateway (tests/factories.py),
mounted on an httpx.MockTransport.
"""
import uuid

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.security import create_access_token
from app.db.base import Base, get_db
from app.main import app
from app.routers.risk import get_classifier
from app.services.classifier import RiskClassifier
from tests.factories import StubGateway

SQLITE_URL = "sqlite:///./test_mindhaven.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture()
def auth_headers(user_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture()
def classifier(gateway) -> RiskClassifier:
    return RiskClassifier(
        api_url="https://llm.test/v1/chat/completions",
        api_key="test-key",
        model="test-model",
        transport=httpx.MockTransport(gateway.handler),
    )


@pytest.fixture()
def client(db, classifier):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_classifier] = lambda: classifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
