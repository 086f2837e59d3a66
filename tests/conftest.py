"""Shared fixtures: an in-memory SQLite catalog and item factories."""

import os

# Settings are cached on first import, so point them at SQLite before any
# casefit module loads. The shared container cache is disabled so tests
# never see each other's catalogs.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CONTAINER_CACHE_TTL_SECONDS", "0")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

import casefit.models  # noqa: F401  registers every table on Base.metadata
from casefit.db.base import Base
from casefit.db.session import create_session_factory
from casefit.models import ContainerItem, PayloadItem
from casefit.services.matching_service import build_catalog_matcher
from tests.factories import build_container, build_payload


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_payload(db):
    def _make(**overrides) -> PayloadItem:
        payload = build_payload(**overrides)
        db.add(payload)
        db.commit()
        return payload
    return _make


@pytest.fixture
def make_container(db):
    def _make(**overrides) -> ContainerItem:
        container = build_container(**overrides)
        db.add(container)
        db.commit()
        return container
    return _make


@pytest.fixture
def matcher(db):
    return build_catalog_matcher(db)
