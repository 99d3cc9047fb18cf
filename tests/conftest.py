"""Test configuration and fixtures.

Provides an isolated in-memory SQLite database shared by the test session and
the FastAPI app, plus an in-memory stand-in for the client/asset directory.
"""

import os
from typing import Generator

# Set env flags BEFORE importing application modules
os.environ.setdefault("DEBUG", "1")
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test_db.sqlite")
os.environ.setdefault("LOG_FILE", "logs/test.log")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import database
from database import Base, get_db
from main import app
from services.directory import asset_from_payload, client_from_payload, get_directory

# StaticPool keeps a single connection so the in-memory DB survives across sessions
engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeDirectory:
    def __init__(self, clients: dict | None = None, assets: dict | None = None):
        self.clients = clients or {}
        self.assets = assets or {}
        self.asset_lookups: list[str] = []

    async def get_client(self, client_id):
        data = self.clients.get(client_id)
        return client_from_payload(client_id, data) if data is not None else None

    async def get_asset(self, asset_id):
        self.asset_lookups.append(asset_id)
        data = self.assets.get(asset_id)
        return asset_from_payload(asset_id, data) if data is not None else None


@pytest.fixture(autouse=True)
def setup_db() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:  # type: ignore
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory(
        clients={
            "C1": {"name": "Ana Pérez", "accountNumber": "1001"},
            "C2": {"denominacion": "Acme SA", "idCliente": "77"},
            "C3": {},
        },
        assets={
            "A1": {"ticker": "GOOGL"},
            "A2": {"ticker": "AAPL"},
            "A3": {"ticker": "MSFT"},
            "NOTICKER": {"name": "Bono sin ticker"},
        },
    )


@pytest.fixture(autouse=True)
def override_dependencies(db_session, directory):  # type: ignore
    """Point the app at the SQLite session and the fake directory."""
    def _get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_directory] = lambda: directory

    database.SessionLocal = TestingSessionLocal  # type: ignore
    yield
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_directory, None)


@pytest.fixture()
def client() -> TestClient:  # type: ignore
    return TestClient(app)
