import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite:///./test_campus_events.db"
os.environ["RESEND_API_KEY"] = ""
os.environ["PUBLIC_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret-0123456789abcdef0123456789abcdef"

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from campus_events.core.celery_config import celery_app
from campus_events.core.security import create_access_token
from campus_events.database.db import Base, SessionLocal, engine
from campus_events.main import app
from campus_events.services.notifications import EmailDispatcher

# Run triggers inline instead of through the broker
celery_app.conf.task_always_eager = True
celery_app.conf.task_eager_propagates = True


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def dispatcher():
    """A configured dispatcher whose provider calls are mocked out."""
    mock = MagicMock(spec=EmailDispatcher)
    mock.send.return_value = "email-id"
    mock.send_batch.side_effect = lambda messages: len(messages)
    return mock


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = create_access_token({"sub": "admin-1", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
