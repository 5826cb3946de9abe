from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Settings are read at import time; point them at a throwaway SQLite file.
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(tempfile.gettempdir()) / 'coffee_ledger_test.db'}")
os.environ.setdefault("SMS_PROVIDER", "none")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coffee_ledger.database import Base, get_db
from coffee_ledger.main import app
from coffee_ledger.services.sms_gateway import SmsDeliveryError, get_sms_gateway


class FakeSmsGateway:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.error: str | None = None

    def send(self, phone: str, message: str) -> str:
        if self.error:
            raise SmsDeliveryError(self.error)
        self.sent.append((phone, message))
        return f"msg-{len(self.sent)}"


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sms_gateway() -> FakeSmsGateway:
    return FakeSmsGateway()


@pytest.fixture
def client(session_factory, sms_gateway):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_sms_gateway] = lambda: sms_gateway
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
