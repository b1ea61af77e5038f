"""
conftest.py — Shared Test Fixtures for the Ashinaga API

Provides an in-memory SQLite database, FastAPI TestClients with auth
overrides (staff, scholar, anonymous), and factory fixtures for the core
models (User, Staff, Scholar, Goal, Task, ScholarRequest, Invitation).

Business Rules:
- All tests run against isolated in-memory DB (no prod data risk)
- Auth is overridden through app.dependency_overrides
- Each test function gets a fresh schema (create_all / drop_all)

Called by: all test files via pytest autodiscovery
Depends on: app.models (Base), app.database (get_db), app.dependencies
"""

import os
os.environ["TESTING"] = "1"  # Must be set before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Goal, Invitation, Scholar, ScholarRequest, Staff, Task, User
from app.services.auth_service import hash_password

TEST_DB_URL = "sqlite://"  # in-memory
TEST_PASSWORD = "correct-horse-battery"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)  # hashed once, PBKDF2 is slow

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default; turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Database ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# ── Users ────────────────────────────────────────────────────────────


def make_staff(db: Session, email: str, name: str = "Test Staff", role: str = "admin", active: bool = True) -> User:
    user = User(
        name=name,
        email=email,
        user_type="staff",
        email_verified=True,
        password_hash=TEST_PASSWORD_HASH,
    )
    db.add(user)
    db.flush()
    db.add(Staff(user_id=user.id, role=role, is_active=active))
    db.commit()
    db.refresh(user)
    return user


def make_scholar(
    db: Session,
    email: str,
    name: str = "Test Scholar",
    program: str = "Economics",
    year: str = "2",
    university: str = "University of Nairobi",
    location: str = "Kenya",
    status: str = "active",
) -> Scholar:
    user = User(
        name=name,
        email=email,
        user_type="scholar",
        email_verified=True,
        password_hash=TEST_PASSWORD_HASH,
    )
    db.add(user)
    db.flush()
    scholar = Scholar(
        user_id=user.id,
        program=program,
        year=year,
        university=university,
        location=location,
        status=status,
        start_date=_now(),
    )
    db.add(scholar)
    db.commit()
    db.refresh(scholar)
    return scholar


@pytest.fixture()
def staff_user(db_session: Session) -> User:
    """An active admin staff member."""
    return make_staff(db_session, "staff@ashinaga.org", name="Amina Staff")


@pytest.fixture()
def test_scholar(db_session: Session) -> Scholar:
    """A scholar with a password-bearing user account."""
    return make_scholar(db_session, "scholar@example.com", name="Kofi Scholar")


@pytest.fixture()
def scholar_user(test_scholar: Scholar) -> User:
    return test_scholar.user


@pytest.fixture()
def other_scholar(db_session: Session) -> Scholar:
    """A second scholar, for ownership checks."""
    return make_scholar(
        db_session,
        "other@example.com",
        name="Other Scholar",
        program="Engineering",
        year="3",
        university="Makerere University",
        location="Uganda",
    )


# ── Domain objects ───────────────────────────────────────────────────


@pytest.fixture()
def test_goal(db_session: Session, test_scholar: Scholar) -> Goal:
    goal = Goal(
        scholar_id=test_scholar.id,
        title="Finish research proposal",
        description="Draft and submit by spring",
        category="academic",
        target_date=_now() + timedelta(days=90),
        progress=20,
        status="in_progress",
    )
    db_session.add(goal)
    db_session.commit()
    db_session.refresh(goal)
    return goal


@pytest.fixture()
def test_task(db_session: Session, test_scholar: Scholar, staff_user: User) -> Task:
    task = Task(
        scholar_id=test_scholar.id,
        assigned_by=staff_user.id,
        title="Upload transcript",
        description="Latest semester transcript",
        type="document_upload",
        priority="high",
        due_date=_now() + timedelta(days=14),
        status="pending",
    )
    db_session.add(task)
    db_session.commit()
    db_session.refresh(task)
    return task


@pytest.fixture()
def test_request(db_session: Session, test_scholar: Scholar) -> ScholarRequest:
    req = ScholarRequest(
        scholar_id=test_scholar.id,
        type="summer_funding_request",
        description="Funding for a summer internship in Nairobi",
        form_data='{"amount": 1200, "currency": "USD"}',
        priority="medium",
        status="pending",
        submitted_date=_now(),
    )
    db_session.add(req)
    db_session.commit()
    db_session.refresh(req)
    return req


@pytest.fixture()
def test_invitation(db_session: Session, staff_user: User) -> Invitation:
    inv = Invitation(
        email="invitee@example.com",
        user_type="scholar",
        invited_by=staff_user.id,
        token="A" * 32,
        scholar_data='{"program": "Medicine", "year": "1", "university": "University of Ghana"}',
        expires_at=_now() + timedelta(days=7),
        status="pending",
        resent_count=0,
    )
    db_session.add(inv)
    db_session.commit()
    db_session.refresh(inv)
    return inv


# ── Clients ──────────────────────────────────────────────────────────


def _client_as(db_session: Session, user: User | None):
    from app.database import get_db
    from app.dependencies import require_user
    from app.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    if user is not None:
        app.dependency_overrides[require_user] = lambda: user
    return app


@pytest.fixture()
def client(db_session: Session) -> TestClient:
    """TestClient WITHOUT auth overrides (real session cookie flow)."""
    app = _client_as(db_session, None)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def staff_client(db_session: Session, staff_user: User) -> TestClient:
    """TestClient authenticated as staff_user."""
    app = _client_as(db_session, staff_user)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def scholar_client(db_session: Session, scholar_user: User) -> TestClient:
    """TestClient authenticated as the test scholar."""
    app = _client_as(db_session, scholar_user)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def client_for(db_session: Session):
    """Factory: TestClient authenticated as an arbitrary user (one per test)."""
    opened = []

    def _make(user: User) -> TestClient:
        app = _client_as(db_session, user)
        c = TestClient(app)
        c.__enter__()
        opened.append((app, c))
        return c

    yield _make
    for app, c in opened:
        c.__exit__(None, None, None)
        app.dependency_overrides.clear()
