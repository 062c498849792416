import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure tests always use HTTP-friendly cookies regardless of local config.yaml.
os.environ["IDEABOARD_SECURE_COOKIES"] = "false"
# Keep the app's own engine (used by lifespan and /health) off the local disk.
os.environ.setdefault("IDEABOARD_DATABASE_URL", "sqlite:///:memory:")

from ideaboard.auth.credentials import Caller
from ideaboard.data.user_manager import UserManager, get_password_hash
from ideaboard.database import Base, get_db
from ideaboard.main import app

OWNER_LOGIN_FOR_TEST = "facilitator"
OWNER_PASSWORD_FOR_TEST = "Facilitator@123!"

TEST_DATABASE_URL = "sqlite:///:memory:"  # Use in-memory SQLite for tests
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session")
def create_test_tables():
    """Create all database tables once per session before tests run."""
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function")
def db_session(create_test_tables):
    """
    Provides a transactional database session for a test.
    Rolls back changes after the test.
    Overrides the main app's get_db dependency.
    """
    connection = engine.connect()
    transaction = connection.begin()
    db = TestingSessionLocal(bind=connection)

    original_get_db = app.dependency_overrides.get(get_db)
    app.dependency_overrides[get_db] = lambda: db

    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()
        if original_get_db:
            app.dependency_overrides[get_db] = original_get_db
        else:
            del app.dependency_overrides[get_db]


@pytest.fixture(scope="function")
def client(db_session: Session):
    """Provides a TestClient instance for making requests to the FastAPI app."""
    with TestClient(app) as c:
        yield c


def _add_user(db_session: Session, login: str, password: str):
    manager = UserManager()
    manager.set_db(db_session)
    return manager.add_user(login=login, hashed_password=get_password_hash(password))


@pytest.fixture(scope="function")
def owner(db_session: Session):
    return _add_user(db_session, OWNER_LOGIN_FOR_TEST, OWNER_PASSWORD_FOR_TEST)


@pytest.fixture(scope="function")
def other_user(db_session: Session):
    return _add_user(db_session, "another.facilitator", "Another@123!")


@pytest.fixture(scope="function")
def owner_caller(owner) -> Caller:
    return Caller(user_id=owner.user_id)


@pytest.fixture(scope="function")
def authenticated_client(client: TestClient, owner):
    """
    A TestClient signed in as ``owner``.
    The login endpoint sets the auth cookie and the client keeps sending it.
    """
    login_data = {"username": OWNER_LOGIN_FOR_TEST, "password": OWNER_PASSWORD_FOR_TEST}
    response = client.post("/api/auth/token", json=login_data)
    assert response.status_code == 200
    yield client
