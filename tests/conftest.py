"""
Root test configuration.

Test organization:
- unit/        Pure service logic, no HTTP
- integration/ Routers through FastAPI's TestClient over in-memory SQLite

Run specific levels:
    pytest tests/unit -v
    pytest tests/integration -v
    pytest tests -v
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import init_db
from services.feature_flags import flag_cache


@pytest.fixture(autouse=True)
def offline_agents(monkeypatch):
    """Agents fall back to their heuristic implementations without an API key."""
    monkeypatch.delenv("MISTRAL_API_KEY", raising=False)


@pytest.fixture(autouse=True)
def fresh_flag_cache():
    flag_cache.invalidate()
    yield
    flag_cache.invalidate()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()
