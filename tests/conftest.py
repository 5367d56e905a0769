"""Shared test fixtures."""
from datetime import datetime
from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from crmsync.config import Settings

# Import all models so SQLModel.metadata knows about them
from crmsync.models.contact import Contact  # noqa: F401
from crmsync.models.sync import SyncRun  # noqa: F401


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    """Settings pointing at a fake Salesforce org; ignores any local .env."""
    return Settings(
        _env_file=None,
        salesforce_login_url="https://login.example.com",
        salesforce_client_id="client-id",
        salesforce_client_secret="client-secret",
        salesforce_api_version="v59.0",
        sync_interval_minutes=30,
    )


@pytest.fixture(name="seeded_contact")
def seeded_contact_fixture(test_session: Session) -> Contact:
    """A contact already linked to Salesforce record SF1."""
    contact = Contact(
        remote_id="SF1",
        first_name="John",
        last_name="Doe",
        email="john@example.com",
        phone="555-0100",
        company="Acme",
        last_synced_at=datetime(2025, 1, 15, 7, 30),
    )
    test_session.add(contact)
    test_session.commit()
    test_session.refresh(contact)
    return contact
