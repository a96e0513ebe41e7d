"""Shared test fixtures for backend tests."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.cache import Cache, MemoryBackend, get_cache
from app.core.database import get_session
from app.models.conversation import ActorRef, ActorType
from app.models.staff import Admin, Employee
from app.services.messaging import build_messaging
from app.services.notifications import get_dispatcher

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def get_test_session():
    with Session(test_engine) as session:
        yield session


class RecordingDispatcher:
    """Stands in for the thread-pool dispatcher and keeps every notification."""

    def __init__(self):
        self.sent = []

    def dispatch(self, notification):
        self.sent.append(notification)


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import app.models.conversation  # noqa: F401 - register models
    import app.models.staff  # noqa: F401
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def session():
    with Session(test_engine) as s:
        yield s


@pytest.fixture
def staff():
    """Employees 7, 8 and 9 plus one active admin (id 1)."""
    with Session(test_engine) as s:
        s.add(Admin(id=1, name="Owner", status="active"))
        s.add(Employee(id=7, first_name="Ana", last_name="Lopez", profile_image="avatars/7.png"))
        s.add(Employee(id=8, first_name="Ben", last_name="Okafor"))
        s.add(Employee(id=9, profile_data={"firstName": "Cara", "lastName": "Nguyen"}))
        s.commit()
    return {
        "admin": ActorRef(ActorType.ADMIN, "1"),
        "ana": ActorRef(ActorType.EMPLOYEE, "7"),
        "ben": ActorRef(ActorType.EMPLOYEE, "8"),
        "cara": ActorRef(ActorType.EMPLOYEE, "9"),
    }


@pytest.fixture
def cache():
    return Cache(MemoryBackend())


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def messaging(session, cache, dispatcher):
    return build_messaging(session, cache, dispatcher)  # type: ignore[arg-type]


@pytest.fixture
def client(cache, dispatcher):
    """FastAPI TestClient with the database, cache and notifications swapped for test doubles."""
    with patch("app.core.database.engine", test_engine):
        from app.main import app

        app.dependency_overrides[get_session] = get_test_session
        app.dependency_overrides[get_cache] = lambda: cache
        app.dependency_overrides[get_dispatcher] = lambda: dispatcher

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Build the identity headers the auth gateway would forward for an actor."""
    def headers_for(actor: ActorRef) -> dict:
        return {"X-Actor-Id": actor.id, "X-Actor-Type": actor.type.value}
    return headers_for
