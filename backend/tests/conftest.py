import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import registrar.models  # noqa: F401
from registrar import main as main_module
from registrar.api.deps import get_db
from registrar.api.routes import health as health_routes
from registrar.db import bootstrap
from registrar.db.base import Base
from registrar.main import app


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def file_engine(tmp_path):
    # Separate connections per session, so one session can commit under another.
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'registrar.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(file_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=file_engine)


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(engine, monkeypatch):
    # Startup schema checks and the readiness check use the in-memory engine.
    monkeypatch.setattr(
        main_module,
        "ensure_runtime_schema_compatibility",
        lambda: bootstrap.ensure_runtime_schema_compatibility(engine),
    )
    monkeypatch.setattr(health_routes, "engine", engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
