import os
import tempfile

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_microposts.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["FIRST_ADMIN_EMAIL"] = "admin@test.example.com"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminTest123!"
# Cheapest bcrypt cost; every fixture user and token is hashed
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from app.core.security import hash_secret
from app.db.base import enable_sqlite_foreign_keys
from app.db.models.user import User as UserModel, utcnow
from app.main import app

DEFAULT_PASSWORD = "password"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
    )
    event.listen(test_engine, "connect", enable_sqlite_foreign_keys)

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed the admin
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        test_engine.dispose()
        try:
            if os.path.exists(test_db_path):
                os.remove(test_db_path)
            if os.path.exists(temp_db_dir):
                os.rmdir(temp_db_dir)
        except OSError as e:
            print(f"Cleanup failed: {e}")


@pytest.fixture(scope="function")
def client(db_session):
    """Test client sharing the test database. Redirects are not followed."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from app.api.deps import get_db

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app, follow_redirects=False)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


@pytest.fixture(scope="function")
def admin_user(db: Session) -> dict:
    """The admin seeded by the first migration."""
    from app.repositories.user import get_user_by_email
    from app.core.config import settings

    user = get_user_by_email(db, settings.first_admin_email)
    if not user:
        raise RuntimeError("Admin user not found. Check migration 001.")

    return {
        "id": user.id,
        "email": user.email,
        "password": settings.first_admin_password,
    }


@pytest.fixture(scope="function")
def make_user(db: Session):
    """Factory inserting users directly, bypassing signup and activation."""

    def _make_user(
        name: str,
        email: str,
        password: str = DEFAULT_PASSWORD,
        activated: bool = True,
        admin: bool = False,
    ) -> UserModel:
        user = UserModel(
            name=name,
            email=email,
            password_hash=hash_secret(password),
            activated=activated,
            activated_at=utcnow() if activated else None,
            admin=admin,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture(scope="function")
def michael(make_user) -> UserModel:
    return make_user("Michael Example", "michael@example.com")


@pytest.fixture(scope="function")
def archer(make_user) -> UserModel:
    return make_user("Sterling Archer", "duchess@example.gov")


@pytest.fixture(scope="function")
def lana(make_user) -> UserModel:
    return make_user("Lana Kane", "hands@example.gov")


@pytest.fixture(scope="function")
def inactive_user(make_user) -> UserModel:
    return make_user("Malory Archer", "boss@example.gov", activated=False)


@pytest.fixture(scope="function")
def log_in_as(client):
    """Log a user in through the login endpoint and return the response."""

    def _log_in_as(
        email: str, password: str = DEFAULT_PASSWORD, remember_me: bool = True
    ):
        return client.post(
            "/api/v1/auth/login",
            data={
                "email": email,
                "password": password,
                "remember_me": "1" if remember_me else "0",
            },
        )

    return _log_in_as


@pytest.fixture(scope="function")
def session_state(client):
    """Fetch the login state (and consume the flash) as the client sees it."""

    def _session_state() -> dict:
        response = client.get("/api/v1/auth/session")
        assert response.status_code == 200
        return response.json()

    return _session_state
