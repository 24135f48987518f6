import os
import tempfile
from pathlib import Path

# Set environment variables BEFORE any imports that might use settings
_test_db_dir = tempfile.mkdtemp()
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_test_db_dir, 'test_backoffice.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "15"
os.environ["REFRESH_TOKEN_EXPIRE_DAYS"] = "7"
os.environ["ENVIRONMENT"] = "test"
os.environ["FIRST_ADMIN_EMAIL"] = ""
os.environ["FIRST_ADMIN_PASSWORD"] = ""

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backoffice.api.deps import get_db, get_mailer
from backoffice.core.config import Settings
from backoffice.core.security import TokenSigner, get_password_hash
from backoffice.db.base import Database
from backoffice.db.models import Department, Role, RolePermission, Zone
from backoffice.main import create_app
from backoffice.repositories.user import create_user
from backoffice.services.auth import AuthService

ROOT = Path(__file__).resolve().parent.parent

USER_EMAIL = "a@b.com"
USER_PASSWORD = "P@ssw0rd1"


class FakeMailer:
    """Records password reset emails instead of talking to SMTP."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.error: Exception | None = None

    async def send_password_reset_email(self, email: str, reset_link: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((email, reset_link))


@pytest.fixture(scope="function")
def database(tmp_path) -> Database:
    """Create a fresh database for each test and run migrations."""
    test_db_url = f"sqlite:///{tmp_path / 'test.db'}"

    alembic_cfg = Config(str(ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    database = Database(test_db_url)
    yield database
    database.dispose()


@pytest.fixture(scope="function")
def db(database: Database):
    session = database.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def app_settings() -> Settings:
    return Settings(ENVIRONMENT="test")


@pytest.fixture(scope="function")
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture(scope="function")
def make_client(db: Session, mailer: FakeMailer):
    """Build a test client for the given settings, wired to the test database and mailer."""
    apps = []

    def _make_client(
        settings: Settings,
        override_mailer: bool = True,
        raise_server_exceptions: bool = True,
    ) -> TestClient:
        app = create_app(settings)

        def override_get_db():
            yield db

        app.dependency_overrides[get_db] = override_get_db
        if override_mailer:
            app.dependency_overrides[get_mailer] = lambda: mailer
        apps.append(app)
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield _make_client

    for app in apps:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(make_client, app_settings: Settings) -> TestClient:
    return make_client(app_settings)


@pytest.fixture(scope="function")
def signer(app_settings: Settings) -> TokenSigner:
    return TokenSigner.from_settings(app_settings)


@pytest.fixture(scope="function")
def auth_service(db: Session, signer: TokenSigner, mailer: FakeMailer, app_settings: Settings):
    return AuthService(db=db, signer=signer, mailer=mailer, settings=app_settings)


@pytest.fixture(scope="function")
def organization(db: Session) -> dict:
    """A department, a zone and the admin role with a couple of permissions."""
    department = Department(name="Water Resources")
    zone = Zone(name="North Zone")
    role = db.query(Role).filter(Role.name == "admin").one()
    role.permissions = [
        RolePermission(permission="works.view"),
        RolePermission(permission="works.edit"),
    ]
    db.add_all([department, zone])
    db.commit()
    return {"department_id": department.id, "zone_id": zone.id, "role_id": role.id}


@pytest.fixture(scope="function")
def user_dict(db: Session, organization: dict) -> dict:
    """Create an active user for testing."""
    user = create_user(
        db,
        email=USER_EMAIL,
        password_hash=get_password_hash(USER_PASSWORD),
        role_id=organization["role_id"],
        username="abuser",
        full_name="A. B. User",
        department_id=organization["department_id"],
        zone_id=organization["zone_id"],
    )

    return {
        "id": user.id,
        "email": user.email,
        "password": USER_PASSWORD,
        "role_id": user.role_id,
        "department_id": user.department_id,
    }
